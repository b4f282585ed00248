"""Pytest configuration for test suite.

Ensures the project root is on ``sys.path`` so imports like
``import detect_angular`` resolve correctly regardless of the working
directory pytest chooses, and provides in-memory Grafana and catalog clients.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence


def _ensure_project_root_on_syspath() -> None:
    project_root = Path(__file__).resolve().parents[1]
    project_root_str = str(project_root)
    if project_root_str not in sys.path:
        # Prepend to prefer local sources over site-packages
        sys.path.insert(0, project_root_str)


_ensure_project_root_on_syspath()

import pytest  # noqa: E402

from detect_angular.schemas.grafana import (  # noqa: E402
    DashboardDefinition,
    Datasource,
    FrontendSettings,
    ListedDashboard,
    Org,
    Plugin,
)

# Frontend settings as returned by Grafana >= 10.3.0.
FRONTEND_SETTINGS: Dict[str, Any] = {
    "panels": {
        "timeseries": {"angular": {"detected": False}},
        "graph": {"angular": {"detected": True}},
        "table": {"angular": {"detected": False}},
        "grafana-worldmap-panel": {"angular": {"detected": True}},
        "grafana-clock-panel": {"angular": {"detected": True}},
    },
    "datasources": {
        "akumuli": {
            "type": "akumuli-datasource",
            "meta": {"angular": {"detected": True}},
        },
        "Prometheus": {
            "type": "prometheus",
            "meta": {"angular": {"detected": False}},
        },
    },
}

DATASOURCES = [
    {"name": "akumuli", "type": "akumuli-datasource"},
    {"name": "Prometheus", "type": "prometheus"},
]


def make_definition(
    panels: Sequence[Dict[str, Any]],
    schema_version: int = 36,
    **meta: Any,
) -> DashboardDefinition:
    """Build a dashboard definition from raw panel JSON."""
    return DashboardDefinition.model_validate(
        {
            "dashboard": {"panels": list(panels), "schemaVersion": schema_version},
            "meta": {
                "folderTitle": meta.get("folder", "General"),
                "createdBy": meta.get("created_by", "admin"),
                "updatedBy": meta.get("updated_by", "admin"),
                "created": meta.get("created", "2023-11-07T11:13:24+01:00"),
                "updated": meta.get("updated", "2024-02-21T13:09:27+01:00"),
            },
        }
    )


class FakeGrafanaClient:
    """In-memory implementation of the Grafana client used by the detector.

    ``pages`` lists the dashboard search results page by page; ``definitions``
    maps dashboard UIDs to their definitions. ``errors`` maps a method name
    (or ``"dashboard:<uid>"``) to the exception it raises.
    """

    def __init__(
        self,
        *,
        frontend_settings: Optional[Dict[str, Any]] = None,
        permissions: Optional[Dict[str, List[str]]] = None,
        plugins: Optional[List[Dict[str, Any]]] = None,
        datasources: Optional[List[Dict[str, Any]]] = None,
        pages: Optional[List[List[Dict[str, Any]]]] = None,
        definitions: Optional[Dict[str, DashboardDefinition]] = None,
        errors: Optional[Dict[str, Exception]] = None,
        base_url: str = "http://grafana.example/api",
        basic_auth_user: str = "",
        orgs: Optional[List[Dict[str, Any]]] = None,
        current_org: int = 1,
    ) -> None:
        self._frontend_settings = (
            FRONTEND_SETTINGS if frontend_settings is None else frontend_settings
        )
        self._permissions = (
            {"datasources:create": []} if permissions is None else permissions
        )
        self._plugins = plugins or []
        self._datasources = DATASOURCES if datasources is None else datasources
        self._pages = pages or []
        self._definitions = definitions or {}
        self._errors = errors or {}
        self._base_url = base_url
        self.basic_auth_user = basic_auth_user
        self._orgs = orgs or [{"id": current_org, "name": "Main Org."}]
        self._current_org = current_org
        self.calls: List[str] = []
        self.switched_orgs: List[int] = []
        self.closed = False

    def _maybe_raise(self, key: str) -> None:
        self.calls.append(key)
        if key in self._errors:
            raise self._errors[key]

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def uses_basic_auth(self) -> bool:
        return bool(self.basic_auth_user)

    async def get_frontend_settings(self) -> FrontendSettings:
        self._maybe_raise("frontend_settings")
        return FrontendSettings.model_validate(self._frontend_settings)

    async def get_service_account_permissions(self) -> Dict[str, List[str]]:
        self._maybe_raise("permissions")
        return self._permissions

    async def get_plugins(self) -> List[Plugin]:
        self._maybe_raise("plugins")
        return [Plugin.model_validate(p) for p in self._plugins]

    async def get_datasources(self) -> List[Datasource]:
        self._maybe_raise("datasources")
        return [Datasource.model_validate(d) for d in self._datasources]

    async def get_dashboards(self, page: int) -> List[ListedDashboard]:
        self._maybe_raise(f"dashboards:{page}")
        if page > len(self._pages):
            return []
        return [ListedDashboard.model_validate(d) for d in self._pages[page - 1]]

    async def get_dashboard(self, uid: str) -> DashboardDefinition:
        self._maybe_raise(f"dashboard:{uid}")
        return self._definitions[uid]

    async def get_current_org(self) -> Org:
        self._maybe_raise("org")
        return Org(id=self._current_org, name="Main Org.")

    async def get_orgs(self) -> List[Org]:
        self._maybe_raise("orgs")
        return [Org.model_validate(o) for o in self._orgs]

    async def user_switch_context(self, org_id: int) -> None:
        self._maybe_raise(f"switch:{org_id}")
        self.switched_orgs.append(org_id)

    async def aclose(self) -> None:
        self.closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


class FakeCatalog:
    """In-memory grafana.com catalog keyed by ``(slug, version)``."""

    def __init__(
        self,
        angular: Optional[Dict[tuple, bool]] = None,
        errors: Optional[Dict[str, Exception]] = None,
    ) -> None:
        self._angular = angular or {}
        self._errors = errors or {}
        self.lookups: List[tuple] = []
        self.closed = False

    async def get_angular_detected(self, slug: str, version: str) -> bool:
        self.lookups.append((slug, version))
        if slug in self._errors:
            raise self._errors[slug]
        return self._angular.get((slug, version), False)

    async def aclose(self) -> None:
        self.closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()
