"""grafana.com catalog adapter tests with mocked HTTP."""

from __future__ import annotations

from typing import Callable

import httpx
import pytest

from detect_angular.adapters.gcom import GCOM_BASE_URL, GcomAdapter

VERSIONS = {
    "items": [
        {"version": "1.0.3", "angularDetected": True},
        {"version": "2.0.0", "angularDetected": False},
    ]
}


def _adapter(handler: Callable[[httpx.Request], httpx.Response]) -> GcomAdapter:
    adapter = GcomAdapter(max_retries=0)
    adapter.inject_http_client_for_testing(
        httpx.AsyncClient(
            base_url=GCOM_BASE_URL + "/", transport=httpx.MockTransport(handler)
        )
    )
    return adapter


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "version, expected",
    [("1.0.3", True), ("2.0.0", False), ("1.0.4", False)],
)
async def test_exact_version_match(version: str, expected: bool) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/plugins/grafana-clock-panel/versions"
        return httpx.Response(200, json=VERSIONS)

    async with _adapter(handler) as gcom:
        assert await gcom.get_angular_detected("grafana-clock-panel", version) is expected


@pytest.mark.asyncio
async def test_unknown_plugin_is_not_angular() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"code": "NotFound"})

    async with _adapter(handler) as gcom:
        assert await gcom.get_angular_detected("private-panel", "1.0.0") is False


@pytest.mark.asyncio
async def test_transport_errors_propagate() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    async with _adapter(handler) as gcom:
        with pytest.raises(httpx.ConnectError):
            await gcom.get_angular_detected("grafana-clock-panel", "1.0.3")
