"""Report output for the command-line tool.

Two formats are supported: human readable log lines and indented JSON. Both
leave out dashboards without detections; the readable format mentions them
at DEBUG level only. Readable lines go to the report logger, which stays
enabled at INFO whatever log level is configured.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, Dict, List, Optional, Protocol, Sequence, TextIO

from ..domain.models import DashboardReport
from ..observability import REPORT_LOGGER

logger = logging.getLogger(REPORT_LOGGER)


def dashboards_with_detections(
    dashboards: Sequence[DashboardReport],
) -> List[DashboardReport]:
    return [d for d in dashboards if d.detections]


def dump_dashboards(dashboards: Sequence[DashboardReport]) -> List[Dict[str, Any]]:
    """JSON-ready representation of the dashboards that have detections."""
    return [
        d.model_dump(by_alias=True, mode="json")
        for d in dashboards_with_detections(dashboards)
    ]


class Outputter(Protocol):
    def output(self, dashboards: Sequence[DashboardReport]) -> None:
        raise NotImplementedError

    def bulk_output(self, orgs: Dict[int, List[DashboardReport]]) -> None:
        raise NotImplementedError


class ReadableOutput:
    """Writes one log line per dashboard and per detection."""

    def __init__(self, log: Optional[logging.Logger] = None) -> None:
        self._log = log or logger

    def output(self, dashboards: Sequence[DashboardReport]) -> None:
        for dashboard in dashboards:
            if not dashboard.detections:
                self._log.debug(
                    'Checking dashboard "%s" "%s"', dashboard.title, dashboard.url
                )
                continue
            self._log.info(
                'Found dashboard with Angular plugins "%s" "%s":',
                dashboard.title,
                dashboard.url,
            )
            for detection in dashboard.detections:
                self._log.info("%s", detection)

    def bulk_output(self, orgs: Dict[int, List[DashboardReport]]) -> None:
        for org_id, dashboards in sorted(orgs.items()):
            if not dashboards_with_detections(dashboards):
                continue
            self._log.info("Found dashboards with Angular plugins in org %d", org_id)
            self.output(dashboards)


class JSONOutput:
    """Writes the report as indented JSON (stdout by default)."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream

    def _write(self, payload: Any) -> None:
        stream = self._stream or sys.stdout
        stream.write(json.dumps(payload, indent=2))
        stream.write("\n")
        stream.flush()

    def output(self, dashboards: Sequence[DashboardReport]) -> None:
        self._write(dump_dashboards(dashboards))

    def bulk_output(self, orgs: Dict[int, List[DashboardReport]]) -> None:
        payload = {
            str(org_id): dump_dashboards(dashboards)
            for org_id, dashboards in sorted(orgs.items())
            if dashboards_with_detections(dashboards)
        }
        self._write(payload)
