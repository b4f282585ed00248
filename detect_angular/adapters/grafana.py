"""Grafana HTTP API adapter.

Translates the calls needed by the detector into requests against a Grafana
instance and returns validated Pydantic models. Authentication uses either a
service account token (bearer) or ``user:password`` basic auth, which is
required for switching between organizations.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

import httpx
from pydantic import TypeAdapter

from ..schemas.grafana import (
    DashboardDefinition,
    Datasource,
    FrontendSettings,
    ListedDashboard,
    Org,
    Plugin,
)
from .base import JSONHTTPAdapter

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://127.0.0.1:3000/api"

# Page size requested from the search endpoint.
DASHBOARDS_PAGE_SIZE = 5000

_plugins_adapter = TypeAdapter(List[Plugin])
_datasources_adapter = TypeAdapter(List[Datasource])
_dashboards_adapter = TypeAdapter(List[ListedDashboard])
_orgs_adapter = TypeAdapter(List[Org])
_permissions_adapter = TypeAdapter(Dict[str, List[str]])


class GrafanaAdapter(JSONHTTPAdapter):
    """Adapter for the Grafana HTTP API.

    Parameters
    ----------
    base_url: str
        Grafana API URL, including the ``/api`` suffix.
    token: str
        Service account token, or ``user:password`` for basic auth.
    timeout: float
        Request timeout in seconds.
    insecure: bool
        Skip TLS certificate verification.
    """

    name = "grafana"

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        token: str = "",
        timeout: float = 30,
        *,
        insecure: bool = False,
        max_retries: int = 1,
        backoff_initial_ms: int = 200,
        backoff_multiplier: float = 2.0,
    ) -> None:
        self.basic_auth_user, headers, auth = self._credentials(token)
        super().__init__(
            base_url,
            headers=headers,
            auth=auth,
            timeout=timeout,
            verify=not insecure,
            max_retries=max_retries,
            backoff_initial_ms=backoff_initial_ms,
            backoff_multiplier=backoff_multiplier,
        )
        logger.info(
            "grafana.adapter.init",
            extra={
                "base_url": self.base_url,
                "auth": "basic" if self.basic_auth_user else "token",
                "timeout_seconds": timeout,
            },
        )

    @staticmethod
    def _credentials(
        token: str,
    ) -> tuple[str, Dict[str, str], Optional[httpx.Auth]]:
        """Split ``token`` into basic auth or bearer credentials.

        Returns
        -------
        tuple
            ``(basic_auth_user, headers, auth)``; ``basic_auth_user`` is empty
            when a bearer token is used.
        """
        headers = {"Accept": "application/json"}
        user, sep, password = token.partition(":")
        if sep:
            return user, headers, httpx.BasicAuth(user, password)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return "", headers, None

    @property
    def uses_basic_auth(self) -> bool:
        return bool(self.basic_auth_user)

    async def get_frontend_settings(self) -> FrontendSettings:
        data = await self._get_json("frontend/settings")
        return FrontendSettings.model_validate(data or {})

    async def get_service_account_permissions(self) -> Dict[str, List[str]]:
        """Return the permissions of the current credential.

        Not available on Grafana versions without access control, in which
        case the request fails and the caller decides what to do.
        """
        data = await self._get_json("access-control/user/permissions")
        return _permissions_adapter.validate_python(data or {})

    async def get_plugins(self) -> List[Plugin]:
        data = await self._get_json("plugins")
        return _plugins_adapter.validate_python(data or [])

    async def get_datasources(self) -> List[Datasource]:
        data = await self._get_json("datasources")
        return _datasources_adapter.validate_python(data or [])

    async def get_dashboards(self, page: int) -> List[ListedDashboard]:
        """Return one page of the dashboard search results (1-based)."""
        data = await self._get_json(
            "search",
            params={"type": "dash-db", "limit": DASHBOARDS_PAGE_SIZE, "page": page},
        )
        return _dashboards_adapter.validate_python(data or [])

    async def get_dashboard(self, uid: str) -> DashboardDefinition:
        data = await self._get_json(f"dashboards/uid/{uid}")
        return DashboardDefinition.model_validate(data or {})

    async def get_current_org(self) -> Org:
        data = await self._get_json("org")
        return Org.model_validate(data)

    async def get_orgs(self) -> List[Org]:
        """List all organizations (requires server admin basic auth)."""
        data = await self._get_json("orgs", params={"perpage": 1000})
        return _orgs_adapter.validate_python(data or [])

    async def user_switch_context(self, org_id: int) -> None:
        """Switch the basic auth user's active organization."""
        await self._request_json("POST", f"user/using/{org_id}")
        logger.debug("grafana.org.switched", extra={"org_id": org_id})
