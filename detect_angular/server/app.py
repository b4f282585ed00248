"""Long-running detection service.

Runs a full detection pass periodically and keeps the latest report in
memory for the HTTP server. Every pass starts cold: plugin classification and
datasource maps are rebuilt from scratch.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from ..domain.detector import DetectionRun, Detector
from ..domain.errors import DetectionError
from ..utils.partial_results import format_failure_summary

logger = logging.getLogger(__name__)


class DetectionService:
    """Periodic detection runner.

    Parameters
    ----------
    detector: Detector
        Detector bound to the target Grafana instance.
    interval_seconds: float
        Delay between the end of one pass and the start of the next.
    """

    def __init__(self, detector: Detector, interval_seconds: float = 300) -> None:
        self._detector = detector
        self._interval = interval_seconds
        self._task: Optional["asyncio.Task[None]"] = None
        self._refresh_lock = asyncio.Lock()
        self.latest: Optional[DetectionRun] = None
        self.last_error: Optional[Exception] = None
        self.last_refresh: Optional[datetime] = None

    @property
    def started(self) -> bool:
        return self._task is not None

    @property
    def ready(self) -> bool:
        """True once a pass has produced a report."""
        return self.latest is not None

    async def start(self) -> None:
        """Start the refresh loop.

        Idempotent: repeated calls are safe and have no effect after start.
        """
        if self._task is not None:
            logger.debug("service.start no-op: already started")
            return
        self._task = asyncio.create_task(self._loop(), name="detection-refresh")
        logger.info("service.started", extra={"interval_seconds": self._interval})

    async def stop(self) -> None:
        """Stop the refresh loop, cancelling any pass in progress. Idempotent."""
        if self._task is None:
            logger.debug("service.stop no-op: not started")
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("service.stopped")

    async def _loop(self) -> None:
        while True:
            await self.refresh()
            await asyncio.sleep(self._interval)

    async def refresh(self) -> Optional[DetectionRun]:
        """Run one detection pass and store its result.

        A fatal error keeps the previous report and is exposed through
        ``last_error``. A pass with per-dashboard failures replaces the
        report with the partial one.
        """
        async with self._refresh_lock:
            logger.info("service.refresh.start")
            try:
                run = await self._detector.run()
            except DetectionError as exc:
                logger.error("service.refresh.failed: %s", exc)
                self.last_error = exc
                return None
            if run.has_failures:
                logger.warning(
                    "service.refresh.partial: %s",
                    format_failure_summary(run, "dashboard download"),
                )
            self.latest = run
            self.last_error = run.error
            self.last_refresh = datetime.now(timezone.utc)
            logger.info(
                "service.refresh.done",
                extra={
                    "dashboards": len(run.dashboards),
                    "failures": len(run.failures),
                },
            )
            return run
