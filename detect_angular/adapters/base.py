"""Shared JSON-over-HTTP adapter.

Encapsulates transport concerns (base URL, headers, timeouts, retries) for
the Grafana and grafana.com adapters. Requests go through a single
``httpx.AsyncClient`` so connections are pooled across the concurrent
dashboard fetches.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

# Upstream statuses worth retrying; anything else is returned to the caller.
_RETRYABLE_STATUS = (429, 502, 503, 504)


class JSONHTTPAdapter:
    """Base class for adapters that exchange JSON with a REST API.

    Parameters
    ----------
    base_url: str
        Base URL of the API (e.g., "http://localhost:3000/api").
    headers: Optional[Dict[str, str]]
        Default headers attached to every request.
    auth: Optional[httpx.Auth]
        Optional authentication flow (e.g., basic auth).
    timeout: float
        Request timeout in seconds for all HTTP operations.
    verify: bool
        Whether TLS certificates are verified.
    """

    name = "http"

    def __init__(
        self,
        base_url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        auth: Optional[httpx.Auth] = None,
        timeout: float = 30,
        verify: bool = True,
        max_retries: int = 1,
        backoff_initial_ms: int = 200,
        backoff_multiplier: float = 2.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        # Trailing slash so relative paths are appended instead of replacing
        # the last path segment of the base URL.
        self._client = httpx.AsyncClient(
            base_url=self._base_url + "/",
            headers=headers,
            auth=auth,
            timeout=timeout,
            verify=verify,
        )
        self._max_retries = max(0, int(max_retries))
        self._backoff_initial_ms = max(0, int(backoff_initial_ms))
        self._backoff_multiplier = max(1.0, float(backoff_multiplier))
        self._timeout_seconds = timeout

    @property
    def base_url(self) -> str:
        """Configured base URL without trailing slash."""
        return self._base_url

    def inject_http_client_for_testing(self, client: Any) -> None:
        """Replace underlying HTTP client (testing only).

        This allows unit tests to provide a mock compatible with ``request()``.
        """
        self._client = client

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def _backoff_delay(self, attempt: int) -> float:
        return (self._backoff_initial_ms / 1000.0) * (
            self._backoff_multiplier**attempt
        )

    async def _request_json(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send a request and return the parsed JSON body.

        Parameters
        ----------
        method: str
            HTTP method ("GET" or "POST").
        path: str
            URL path relative to the base URL (e.g., "frontend/settings").
        params: Optional[Dict[str, Any]]
            Query string parameters.

        Returns
        -------
        Any
            Parsed JSON document, or ``None`` for an empty body.

        Raises
        ------
        httpx.HTTPError
            On transport errors or non-2xx responses.
        ValueError
            If the response body is not valid JSON.
        """
        logger.debug(
            f"{self.name}.http.request",
            extra={"method": method, "path": path, "params": params},
        )
        attempt = 0
        while True:
            try:
                resp = await self._client.request(method, path, params=params)
                resp.raise_for_status()
                break
            except (httpx.ConnectError, httpx.ReadTimeout) as exc:
                if attempt >= self._max_retries:
                    raise
                logger.warning(
                    f"{self.name}.http.retry",
                    extra={
                        "path": path,
                        "attempt": attempt + 1,
                        "max_retries": self._max_retries,
                        "timeout_seconds": self._timeout_seconds,
                        "error": str(exc) or type(exc).__name__,
                    },
                )
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                if status in _RETRYABLE_STATUS and attempt < self._max_retries:
                    logger.warning(
                        f"{self.name}.http.retry",
                        extra={"path": path, "attempt": attempt + 1, "status": status},
                    )
                else:
                    body_preview = ""
                    text = exc.response.text
                    if text:
                        body_preview = text if len(text) <= 500 else text[:500] + "..."
                    logger.debug(
                        f"{self.name}.http.status_error",
                        extra={
                            "path": path,
                            "status": status,
                            "body_preview": body_preview,
                        },
                    )
                    raise
            await asyncio.sleep(self._backoff_delay(attempt))
            attempt += 1

        logger.debug(
            f"{self.name}.http.response",
            extra={"path": path, "status_code": resp.status_code},
        )
        if not resp.content:
            return None
        return resp.json()

    async def _get_json(
        self, path: str, params: Optional[Dict[str, Any]] = None
    ) -> Any:
        return await self._request_json("GET", path, params=params)
