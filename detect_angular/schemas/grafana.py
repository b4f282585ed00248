"""
Grafana and grafana.com API schemas

Pydantic models for the payloads consumed by the detection engine. Field
names follow the JSON returned by the Grafana HTTP API; Python attribute names
are snake_case with camelCase aliases. Unknown fields are ignored so that the
models keep working across Grafana versions.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _APIModel(BaseModel):
    """Base model accepting both aliases and attribute names."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# Angular metadata in /api/frontend/settings


@dataclass(frozen=True)
class AngularProbe:
    """Angular status of one plugin as reported by the frontend settings.

    Grafana exposed this information in two shapes over time, so both are
    kept and resolved in priority order.

    Attributes
    ----------
    angular: Optional[bool]
        ``angular.detected`` (Grafana >= 10.3.0).
    angular_detected: Optional[bool]
        ``angularDetected`` (Grafana >= 10.1.0 and < 10.3.0).
    """

    angular: Optional[bool] = None
    angular_detected: Optional[bool] = None

    def resolve(self) -> Tuple[bool, bool]:
        """Return ``(is_angular, found)``.

        ``found`` is False when neither shape is present, which is the case
        for Grafana < 10.1.0.
        """
        if self.angular is not None:
            return self.angular, True
        if self.angular_detected is not None:
            return self.angular_detected, True
        return False, False


class AngularMeta(_APIModel):
    """Angular metadata block (Grafana >= 10.3.0)."""

    detected: bool = False


class FrontendSettingsPanel(_APIModel):
    """Panel plugin entry in the frontend settings."""

    angular_detected: Optional[bool] = Field(None, alias="angularDetected")
    angular: Optional[AngularMeta] = None

    def probe(self) -> AngularProbe:
        return AngularProbe(
            angular=self.angular.detected if self.angular is not None else None,
            angular_detected=self.angular_detected,
        )


class FrontendSettingsDatasourceMeta(_APIModel):
    """Plugin metadata attached to a datasource entry."""

    angular: Optional[AngularMeta] = None


class FrontendSettingsDatasource(_APIModel):
    """Datasource entry in the frontend settings.

    Attributes
    ----------
    type: str
        Plugin id of the datasource.
    """

    type: str = ""
    angular_detected: Optional[bool] = Field(None, alias="angularDetected")
    meta: FrontendSettingsDatasourceMeta = Field(
        default_factory=FrontendSettingsDatasourceMeta
    )

    def probe(self) -> AngularProbe:
        angular = self.meta.angular
        return AngularProbe(
            angular=angular.detected if angular is not None else None,
            angular_detected=self.angular_detected,
        )


class FrontendSettings(_APIModel):
    """Response of ``GET /api/frontend/settings``.

    Attributes
    ----------
    panels: Dict[str, FrontendSettingsPanel]
        Panel plugin id to plugin metadata.
    datasources: Dict[str, FrontendSettingsDatasource]
        Datasource name to plugin metadata.
    """

    panels: Dict[str, FrontendSettingsPanel] = Field(default_factory=dict)
    datasources: Dict[str, FrontendSettingsDatasource] = Field(
        default_factory=dict
    )


# Plugins, datasources, orgs


class PluginInfo(_APIModel):
    version: str = ""


class Plugin(_APIModel):
    """Entry of ``GET /api/plugins``."""

    id: str
    info: PluginInfo = Field(default_factory=PluginInfo)


class Datasource(_APIModel):
    """Entry of ``GET /api/datasources``."""

    name: str
    type: str = ""


class Org(_APIModel):
    id: int
    name: str = ""


# Dashboards


class ListedDashboard(_APIModel):
    """Entry of ``GET /api/search``."""

    uid: str
    url: str = ""
    title: str = ""


class DatasourceRefKind(str, Enum):
    """Shapes of a panel's ``datasource`` field."""

    BY_NAME = "name"
    """Bare string with the datasource name (legacy dashboards)."""

    BY_PLUGIN_ID = "plugin_id"
    """Object carrying the plugin id in its ``type`` field."""

    MALFORMED = "malformed"
    """Anything else; kept so the classifier can report it."""


class DatasourceRef(BaseModel):
    """Reference from a panel to its datasource.

    Attributes
    ----------
    kind: DatasourceRefKind
        Which JSON shape the reference was parsed from.
    value: str
        Datasource name (``BY_NAME``) or plugin id (``BY_PLUGIN_ID``).
    raw: Any
        Original JSON value for ``MALFORMED`` references.
    """

    model_config = ConfigDict(frozen=True)

    kind: DatasourceRefKind
    value: str = ""
    raw: Any = None

    @classmethod
    def by_name(cls, name: str) -> "DatasourceRef":
        return cls(kind=DatasourceRefKind.BY_NAME, value=name)

    @classmethod
    def by_plugin_id(cls, plugin_id: str) -> "DatasourceRef":
        return cls(kind=DatasourceRefKind.BY_PLUGIN_ID, value=plugin_id)

    @classmethod
    def from_raw(cls, raw: Any) -> Optional["DatasourceRef"]:
        """Build a reference from the raw JSON value, or None if unset."""
        if raw is None or raw == "":
            return None
        if isinstance(raw, str):
            return cls.by_name(raw)
        if isinstance(raw, dict):
            plugin_id = raw.get("type")
            if plugin_id is None:
                plugin_id = ""
            if isinstance(plugin_id, str):
                return cls.by_plugin_id(plugin_id)
        return cls(kind=DatasourceRefKind.MALFORMED, raw=raw)


class DashboardPanel(_APIModel):
    """Panel node of a dashboard.

    ``panels`` is only populated for collapsed rows, which nest their
    children instead of listing them at the top level.
    """

    type: str = ""
    title: str = ""
    datasource: Optional[DatasourceRef] = None
    panels: List["DashboardPanel"] = Field(default_factory=list)

    @field_validator("type", "title", mode="before")
    @classmethod
    def _null_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("datasource", mode="before")
    @classmethod
    def _parse_datasource(cls, v: Any) -> Any:
        if isinstance(v, DatasourceRef):
            return v
        return DatasourceRef.from_raw(v)

    @field_validator("panels", mode="before")
    @classmethod
    def _null_to_list(cls, v: Any) -> Any:
        return [] if v is None else v


class Dashboard(_APIModel):
    panels: List[DashboardPanel] = Field(default_factory=list)
    schema_version: int = Field(0, alias="schemaVersion")

    @field_validator("panels", mode="before")
    @classmethod
    def _null_to_list(cls, v: Any) -> Any:
        return [] if v is None else v


class DashboardMeta(_APIModel):
    folder_title: str = Field("", alias="folderTitle")
    created_by: str = Field("", alias="createdBy")
    updated_by: str = Field("", alias="updatedBy")
    created: str = ""
    updated: str = ""


class DashboardDefinition(_APIModel):
    """Response of ``GET /api/dashboards/uid/{uid}``."""

    dashboard: Dashboard = Field(default_factory=Dashboard)
    meta: DashboardMeta = Field(default_factory=DashboardMeta)


# grafana.com plugin catalog


class GcomPluginVersion(_APIModel):
    version: str
    angular_detected: bool = Field(False, alias="angularDetected")


class GcomPluginVersions(_APIModel):
    """Response of ``GET https://grafana.com/api/plugins/{slug}/versions``."""

    items: List[GcomPluginVersion] = Field(default_factory=list)
