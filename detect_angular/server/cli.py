"""Command-line interface for detecting Angular dashboards.

Runs one detection pass against a Grafana instance and prints the report, or
with ``--server`` keeps running and exposes the latest report over HTTP.

The token is read from the ``GRAFANA_TOKEN`` environment variable. A token of
the form ``user:password`` enables basic auth, which ``--bulk`` requires to
switch between organizations.

Usage
-----
    GRAFANA_TOKEN=... detect-angular-dashboards http://localhost:3000/api
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Dict, List, Optional, Sequence, Tuple

from .. import __version__
from ..adapters.gcom import GcomAdapter
from ..adapters.grafana import DEFAULT_BASE_URL, GrafanaAdapter
from ..config.models import EnvSettings, GrafanaConfig
from ..domain.detector import Detector
from ..domain.errors import DetectionError
from ..domain.models import DashboardReport
from ..observability import setup_logging
from ..utils.partial_results import FailureInfo, PartialResult, format_failure_summary
from .output import JSONOutput, Outputter, ReadableOutput

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_PARTIAL = 3


def build_parser(settings: EnvSettings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="detect-angular-dashboards",
        description="Detect Grafana dashboards that depend on Angular plugins",
    )
    parser.add_argument(
        "url",
        nargs="?",
        default=DEFAULT_BASE_URL,
        help=f"Grafana API URL (default {DEFAULT_BASE_URL})",
    )
    parser.add_argument(
        "--version", action="store_true", help="print version number"
    )
    parser.add_argument(
        "-v", dest="verbose", action="store_true", help="verbose output"
    )
    parser.add_argument(
        "-j", dest="json_output", action="store_true", help="json output"
    )
    parser.add_argument(
        "--insecure", action="store_true", help="skip TLS verification"
    )
    parser.add_argument(
        "--bulk",
        action="store_true",
        help="detect use of angular in all orgs, requires basicauth instead of token",
    )
    parser.add_argument(
        "--server",
        metavar="ADDR",
        default="",
        help=(
            "Run as HTTP server instead of CLI. Value must be a listen address "
            "(e.g.: 0.0.0.0:5000). Output is exposed as JSON at /detections."
        ),
    )
    parser.add_argument(
        "--interval",
        type=int,
        default=settings.interval_seconds,
        help="detection refresh interval in seconds when running in HTTP server mode",
    )
    parser.add_argument(
        "--max-concurrency",
        dest="max_concurrency",
        type=int,
        default=settings.max_concurrency,
        help="maximum number of concurrent dashboard downloads",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
        help="Logging level (overrides environment)",
    )
    return parser


def parse_listen_address(addr: str) -> Tuple[str, int]:
    """Split ``host:port`` (host may be empty) into its parts."""
    host, sep, port = addr.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid listen address {addr!r}, expected host:port")
    return host.strip("[]") or "0.0.0.0", int(port)


def _grafana_adapter(cfg: GrafanaConfig) -> GrafanaAdapter:
    return GrafanaAdapter(
        cfg.url,
        cfg.token,
        cfg.timeout_seconds,
        insecure=cfg.insecure,
        max_retries=cfg.max_retries,
        backoff_initial_ms=cfg.backoff_initial_ms,
        backoff_multiplier=cfg.backoff_multiplier,
    )


async def detect(
    grafana: GrafanaAdapter,
    gcom: GcomAdapter,
    *,
    bulk: bool,
    max_concurrency: int,
) -> Tuple[Dict[int, List[DashboardReport]], List[FailureInfo]]:
    """Run detection for the current org, or for every org with ``bulk``.

    Returns
    -------
    tuple
        Reports per org id and the per-dashboard failures of all orgs.

    Raises
    ------
    DetectionError
        If an org cannot be scanned.
    """
    current_org = await grafana.get_current_org()
    if bulk and not grafana.uses_basic_auth:
        logger.warning("--bulk requires basic auth, scanning the current org only")
    if bulk and grafana.uses_basic_auth:
        orgs = sorted(await grafana.get_orgs(), key=lambda o: o.id)
        logger.info("Found %d orgs to scan", len(orgs))
    else:
        orgs = [current_org]

    detector = Detector(grafana, gcom, max_concurrency=max_concurrency)
    reports: Dict[int, List[DashboardReport]] = {}
    failures: List[FailureInfo] = []
    try:
        for org in orgs:
            if grafana.uses_basic_auth:
                logger.info(
                    "Detecting Angular dashboards for org: %s(%d)", org.name, org.id
                )
                try:
                    await grafana.user_switch_context(org.id)
                except Exception as exc:  # noqa: BLE001
                    logger.error("failed to switch to org %d: %s", org.id, exc)
                    continue
            try:
                run = await detector.run()
            except DetectionError as exc:
                raise DetectionError(f"failed to scan org {org.id}: {exc}") from exc
            reports[org.id] = run.dashboards
            failures.extend(run.failures)
    finally:
        if grafana.uses_basic_auth:
            try:
                await grafana.user_switch_context(current_org.id)
            except Exception as exc:  # noqa: BLE001
                logger.error("failed to switch back to initial org: %s", exc)
    return reports, failures


async def _run_cli(args: argparse.Namespace, cfg: GrafanaConfig) -> int:
    async with _grafana_adapter(cfg) as grafana, GcomAdapter(
        timeout=cfg.timeout_seconds
    ) as gcom:
        try:
            reports, failures = await detect(
                grafana,
                gcom,
                bulk=args.bulk,
                max_concurrency=args.max_concurrency,
            )
        except Exception as exc:  # noqa: BLE001
            logger.error("%s", exc)
            return EXIT_ERROR

    out: Outputter = JSONOutput() if args.json_output else ReadableOutput()
    if args.bulk:
        out.bulk_output(reports)
    else:
        out.output([d for dashboards in reports.values() for d in dashboards])

    if failures:
        logger.error(
            "%s",
            format_failure_summary(
                PartialResult(
                    successes=[d for ds in reports.values() for d in ds],
                    failures=failures,
                ),
                "dashboard download",
            ),
        )
        return EXIT_PARTIAL
    return EXIT_OK


def _run_server(
    args: argparse.Namespace, cfg: GrafanaConfig, listen: Tuple[str, int]
) -> int:
    # Lazy import uvicorn only for HTTP mode
    import uvicorn

    from .app import DetectionService
    from .http import create_app

    host, port = listen
    grafana = _grafana_adapter(cfg)
    gcom = GcomAdapter(timeout=cfg.timeout_seconds)
    service = DetectionService(
        Detector(grafana, gcom, max_concurrency=args.max_concurrency),
        interval_seconds=args.interval,
    )
    app = create_app(service, resources=(grafana, gcom))
    logger.info("Listening on %s:%d", host, port)
    uvicorn.run(app, host=host, port=port, log_level=args.log_level.lower())
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entrypoint; returns the process exit code."""
    settings = EnvSettings()
    parser = build_parser(settings)
    args = parser.parse_args(argv)

    if args.version:
        print(f"{parser.prog} {__version__}")
        return EXIT_OK

    args.log_level = args.log_level or (
        "DEBUG" if args.verbose else settings.log_level.upper()
    )
    setup_logging(args.log_level)

    if not settings.grafana_token:
        print('missing env var "GRAFANA_TOKEN"', file=sys.stderr)
        return EXIT_ERROR
    if args.max_concurrency < 1:
        parser.error("--max-concurrency must be >= 1")
    if args.interval < 1:
        parser.error("--interval must be >= 1")
    listen: Optional[Tuple[str, int]] = None
    if args.server:
        try:
            listen = parse_listen_address(args.server)
        except ValueError as exc:
            parser.error(str(exc))

    cfg = GrafanaConfig(
        url=args.url,
        token=settings.grafana_token,
        insecure=args.insecure,
        timeout_seconds=settings.timeout_seconds,
    )

    logger.info('Detecting Angular dashboards for "%s"', cfg.url)
    if listen is not None:
        return _run_server(args, cfg, listen)
    return asyncio.run(_run_cli(args, cfg))


if __name__ == "__main__":
    sys.exit(main())
