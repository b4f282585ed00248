"""Adapter interfaces consumed by the detection engine."""

from __future__ import annotations

from typing import Dict, List, Protocol

from ..schemas.grafana import (
    DashboardDefinition,
    Datasource,
    FrontendSettings,
    ListedDashboard,
    Plugin,
)


class GrafanaDetectorClient(Protocol):
    """Protocol for the Grafana API calls needed to detect Angular plugins.

    Implementations return validated models; transport errors propagate as
    ``httpx.HTTPError`` (or any exception the implementation raises).
    """

    @property
    def base_url(self) -> str:
        """Configured API base URL (e.g., "http://localhost:3000/api")."""
        raise NotImplementedError

    async def get_frontend_settings(self) -> FrontendSettings:
        """Return panel and datasource plugin metadata."""
        raise NotImplementedError

    async def get_service_account_permissions(self) -> Dict[str, List[str]]:
        """Return the current credential's permissions (action -> scopes)."""
        raise NotImplementedError

    async def get_plugins(self) -> List[Plugin]:
        """List installed plugins with their versions."""
        raise NotImplementedError

    async def get_datasources(self) -> List[Datasource]:
        """List datasources with their plugin ids."""
        raise NotImplementedError

    async def get_dashboards(self, page: int) -> List[ListedDashboard]:
        """Return one page (1-based) of the dashboard listing."""
        raise NotImplementedError

    async def get_dashboard(self, uid: str) -> DashboardDefinition:
        """Fetch one full dashboard definition by UID."""
        raise NotImplementedError


class PluginCatalogClient(Protocol):
    """Protocol for the public plugin catalog lookup."""

    async def get_angular_detected(self, slug: str, version: str) -> bool:
        """Return the Angular status of a plugin version; False if unknown."""
        raise NotImplementedError
