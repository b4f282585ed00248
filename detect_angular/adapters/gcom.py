"""grafana.com plugin catalog adapter.

Used as a fallback source of Angular status for Grafana versions whose
frontend settings do not report it. Only public plugins are listed in the
catalog, so private plugins are never flagged through this path.
"""

from __future__ import annotations

import logging

import httpx

from ..schemas.grafana import GcomPluginVersions
from .base import JSONHTTPAdapter

logger = logging.getLogger(__name__)

GCOM_BASE_URL = "https://grafana.com/api"


class GcomAdapter(JSONHTTPAdapter):
    """Adapter for the public grafana.com plugin catalog."""

    name = "gcom"

    def __init__(
        self,
        base_url: str = GCOM_BASE_URL,
        timeout: float = 30,
        *,
        max_retries: int = 1,
        backoff_initial_ms: int = 200,
        backoff_multiplier: float = 2.0,
    ) -> None:
        super().__init__(
            base_url,
            headers={"Accept": "application/json"},
            timeout=timeout,
            max_retries=max_retries,
            backoff_initial_ms=backoff_initial_ms,
            backoff_multiplier=backoff_multiplier,
        )

    async def get_angular_detected(self, slug: str, version: str) -> bool:
        """Return whether ``slug`` at exactly ``version`` uses Angular.

        A non-2xx answer means the plugin is not in the catalog (private or
        unlisted plugin) and yields False, as does an unknown version.
        Transport and decoding errors propagate.
        """
        try:
            data = await self._get_json(f"plugins/{slug}/versions")
        except httpx.HTTPStatusError as exc:
            logger.debug(
                "gcom.plugin.not_found",
                extra={"plugin_id": slug, "status": exc.response.status_code},
            )
            return False
        versions = GcomPluginVersions.model_validate(data or {})
        for item in versions.items:
            if item.version == version:
                return item.angular_detected
        return False
