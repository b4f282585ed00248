"""Observability utilities: logging setup.

All log output goes to stderr so that JSON reports written to stdout are
never interleaved with log lines.
"""

from __future__ import annotations

import logging
import sys

# Human readable report; setup_logging never filters it above INFO.
REPORT_LOGGER = "detect_angular.report"


def setup_logging(level: str = "INFO") -> None:
    """Configure application logging.

    Parameters
    ----------
    level: str
        Logging level name (e.g., "DEBUG", "INFO"). Defaults to "INFO".

    Behavior
    --------
    - Initializes Python's logging with the requested level on stderr.
    - Keeps ``httpx``/``httpcore`` request logging at WARNING unless DEBUG is
      requested, since every dashboard fetch would otherwise log a line.
    - Keeps the report logger at INFO or below whatever ``level`` is.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format=("%(asctime)s %(levelname)s %(name)s - %(message)s"),
        datefmt="%Y-%m-%dT%H:%M:%S",
        stream=sys.stderr,
    )

    transport_level = (
        logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING
    )
    for logger_name in ("httpx", "httpcore"):
        logging.getLogger(logger_name).setLevel(transport_level)
    logging.getLogger(REPORT_LOGGER).setLevel(min(numeric_level, logging.INFO))
