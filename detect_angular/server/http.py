"""HTTP server exposing detection results via FastAPI.

The app owns a :class:`DetectionService` whose refresh loop runs for the
lifetime of the app. ``GET /detections`` returns the latest report in the
same JSON format as the command-line tool. Bearer authentication is enabled
when ``DETECT_ANGULAR_HTTP_TOKEN`` is set.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Sequence

from fastapi import Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import __version__
from .app import DetectionService
from .output import dump_dashboards

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Simple health/readiness response model."""

    status: str


class ErrorResponse(BaseModel):
    """Structured JSON error response for HTTP endpoints.

    Fields
    ------
    detail: str
        Human-readable explanation of the error.
    error_type: str
        Machine-readable error classification.
    """

    detail: str
    error_type: str


class StatusResponse(BaseModel):
    """State of the refresh loop."""

    ready: bool
    last_refresh: Optional[str] = None
    last_error: Optional[str] = None
    dashboards: int = 0
    failures: int = 0


def _get_expected_token() -> str | None:
    """Return expected bearer token from environment, or ``None`` if disabled.

    Environment variable: ``DETECT_ANGULAR_HTTP_TOKEN``.
    """
    token = os.environ.get("DETECT_ANGULAR_HTTP_TOKEN")
    return token if token else None


def _auth_dependency(authorization: str | None = Header(default=None)) -> None:
    """Enforce the optional bearer token."""
    expected = _get_expected_token()
    if expected is None:
        return
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    token = authorization.split(" ", 1)[1]
    if token != expected:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN)


def _not_ready() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="no detection results yet",
    )


def create_app(
    service: DetectionService, resources: Sequence[Any] = ()
) -> FastAPI:
    """Create the FastAPI application around ``service``.

    Parameters
    ----------
    service: DetectionService
        Service started on app startup and stopped on shutdown.
    resources: Sequence[Any]
        Objects with an async ``aclose()`` (adapters) closed on shutdown.
    """

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        logger.info("http.startup")
        await service.start()
        try:
            yield
        finally:
            logger.info("http.shutdown")
            await service.stop()
            for resource in resources:
                await resource.aclose()

    app = FastAPI(
        title="Detect Angular Dashboards", version=__version__, lifespan=lifespan
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException):
        err = ErrorResponse(
            detail=str(exc.detail) or "HTTP error", error_type="http_error"
        )
        return JSONResponse(
            status_code=exc.status_code, content={"detail": err.model_dump()}
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(_request: Request, exc: Exception):
        logger.error("http.unhandled_exception", exc_info=exc)
        err = ErrorResponse(
            detail="Internal error. See server logs.",
            error_type="internal_server_error",
        )
        return JSONResponse(status_code=500, content={"detail": err.model_dump()})

    _ = (http_exception_handler, unhandled_exception_handler)

    @app.get("/health", response_model=HealthResponse, summary="Liveness probe")
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get("/ready", response_model=HealthResponse, summary="Readiness probe")
    async def ready() -> HealthResponse:
        if not service.ready:
            raise _not_ready()
        return HealthResponse(status="ready")

    @app.get(
        "/status",
        response_model=StatusResponse,
        summary="Refresh loop state",
        dependencies=[Depends(_auth_dependency)],
    )
    async def refresh_status() -> StatusResponse:
        run = service.latest
        return StatusResponse(
            ready=service.ready,
            last_refresh=(
                service.last_refresh.isoformat() if service.last_refresh else None
            ),
            last_error=str(service.last_error) if service.last_error else None,
            dashboards=len(run.dashboards) if run else 0,
            failures=len(run.failures) if run else 0,
        )

    @app.get(
        "/detections",
        summary="Dashboards with Angular detections",
        dependencies=[Depends(_auth_dependency)],
    )
    async def detections() -> List[Dict[str, Any]]:
        run = service.latest
        if run is None:
            raise _not_ready()
        return dump_dashboards(run.dashboards)

    _ = (health, ready, refresh_status, detections)
    return app
