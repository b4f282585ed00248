"""Dashboard fetch orchestrator.

Runs one full detection pass against a Grafana instance:

1. Classify installed plugins and resolve datasource names (sequentially,
   once per run).
2. Page through the dashboard search results.
3. For every page, fetch and classify all dashboards concurrently, bounded by
   a semaphore, and wait for the whole page before requesting the next one.

Per-dashboard failures do not abort the run. They are collected next to the
successful reports and the run stops after the page in which they happened.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Mapping, Optional

import httpx

from ..adapters import GrafanaDetectorClient, PluginCatalogClient
from ..schemas.grafana import ListedDashboard
from ..utils.partial_results import FailureInfo, PartialResult
from .angular import classify_plugins
from .datasources import resolve_datasource_plugin_ids
from .errors import DashboardFetchError, DetectionError
from .models import DashboardReport
from .panels import classify_panels

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 10


class DetectionRun(PartialResult[DashboardReport]):
    """Outcome of one detection pass.

    ``successes`` holds one report per processed dashboard, including those
    without detections. Their order is not the listing order.
    """

    @property
    def dashboards(self) -> List[DashboardReport]:
        return self.successes

    @property
    def error(self) -> Optional[DashboardFetchError]:
        """Aggregate error for the failed dashboards, or None."""
        if not self.failures:
            return None
        return DashboardFetchError(self.failures)

    def raise_for_failures(self) -> None:
        error = self.error
        if error is not None:
            raise error


class _RunAccumulator:
    """Results shared by the dashboard tasks of one run."""

    def __init__(self) -> None:
        self.result = DetectionRun()
        self._lock = asyncio.Lock()

    async def add_dashboard(self, report: DashboardReport) -> None:
        async with self._lock:
            self.result.successes.append(report)

    async def add_failure(self, failure: FailureInfo) -> None:
        async with self._lock:
            self.result.failures.append(failure)


def dashboard_url(base_url: str, path: str) -> str:
    """Join the Grafana root URL (``base_url`` minus ``/api``) and ``path``.

    Returns "" if the URL cannot be built.
    """
    base = base_url.rstrip("/")
    if base.endswith("/api"):
        base = base[: -len("/api")]
    try:
        url = httpx.URL(base)
        rel = path.lstrip("/")
        base_path = url.path.rstrip("/")
        joined = f"{base_path}/{rel}" if rel else base_path
        return str(url.copy_with(path=joined or "/"))
    except (httpx.InvalidURL, TypeError, ValueError):
        return ""


class Detector:
    """Detects Angular plugin usage in the dashboards of a Grafana instance.

    Parameters
    ----------
    grafana: GrafanaDetectorClient
        Client for the target Grafana instance.
    gcom: PluginCatalogClient
        Client for the grafana.com catalog, used with old Grafana versions.
    max_concurrency: int
        Maximum number of dashboards downloaded at the same time.
    """

    def __init__(
        self,
        grafana: GrafanaDetectorClient,
        gcom: PluginCatalogClient,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self._grafana = grafana
        self._gcom = gcom
        self._max_concurrency = max_concurrency

    async def run(self) -> DetectionRun:
        """Run one full detection pass.

        Returns
        -------
        DetectionRun
            Reports for every dashboard processed, plus the per-dashboard
            failures (see ``DetectionRun.error``).

        Raises
        ------
        DetectionError
            If plugins, datasources or a dashboard page cannot be fetched.
        """
        angular = await classify_plugins(self._grafana, self._gcom)
        datasource_plugin_ids = await resolve_datasource_plugin_ids(self._grafana)

        acc = _RunAccumulator()
        semaphore = asyncio.Semaphore(self._max_concurrency)
        page = 0
        while True:
            page += 1
            try:
                dashboards = await self._grafana.get_dashboards(page)
            except Exception as exc:
                raise DetectionError(f"get dashboards (page {page}): {exc}") from exc
            if not dashboards:
                break
            logger.debug(
                "detector.page.fetched", extra={"page": page, "count": len(dashboards)}
            )

            await asyncio.gather(
                *(
                    self._process_dashboard(
                        dash, angular, datasource_plugin_ids, semaphore, acc
                    )
                    for dash in dashboards
                )
            )

            if acc.result.has_failures:
                logger.warning(
                    "detector.page.failures",
                    extra={"page": page, "failures": len(acc.result.failures)},
                )
                break

        logger.info(
            "detector.run.complete",
            extra={
                "dashboards": len(acc.result.successes),
                "failures": len(acc.result.failures),
            },
        )
        return acc.result

    async def _process_dashboard(
        self,
        dash: ListedDashboard,
        angular: Mapping[str, bool],
        datasource_plugin_ids: Mapping[str, str],
        semaphore: asyncio.Semaphore,
        acc: _RunAccumulator,
    ) -> None:
        async with semaphore:
            url = dashboard_url(self._grafana.base_url, dash.url)
            try:
                definition = await self._grafana.get_dashboard(dash.uid)
                detections = classify_panels(
                    definition.dashboard.panels,
                    definition.dashboard.schema_version,
                    angular,
                    datasource_plugin_ids,
                )
            except Exception as exc:  # noqa: BLE001
                logger.debug(
                    "detector.dashboard.failed",
                    extra={"uid": dash.uid, "error": str(exc)},
                )
                await acc.add_failure(FailureInfo.from_exception(dash.uid, exc))
                return

            meta = definition.meta
            await acc.add_dashboard(
                DashboardReport(
                    detections=detections,
                    url=url,
                    title=dash.title,
                    folder=meta.folder_title,
                    created_by=meta.created_by,
                    updated_by=meta.updated_by,
                    created=meta.created,
                    updated=meta.updated,
                )
            )
