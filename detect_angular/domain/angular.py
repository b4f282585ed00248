"""Plugin classification: which installed plugins use Angular.

Two sources are supported:

- ``/api/frontend/settings`` (Grafana >= 10.1.0). Fast, and covers private
  plugins as well.
- The grafana.com catalog (older Grafana). Slower, one request per plugin,
  and only knows about public plugins.

The frontend settings are always fetched first; the catalog is used only when
its panel entries carry no Angular metadata at all.
"""

from __future__ import annotations

import logging
from typing import Dict, Mapping

from ..adapters import GrafanaDetectorClient, PluginCatalogClient
from ..schemas.grafana import FrontendSettings
from .errors import (
    DetectionError,
    InsufficientPrivilegesError,
    UnknownAngularStatusError,
)

logger = logging.getLogger(__name__)

# Either permission lets the plugins endpoint return every installed plugin;
# without them Grafana only lists core plugins.
REQUIRED_PERMISSIONS = ("datasources:create", "plugins:install")

AngularMap = Mapping[str, bool]


def frontend_settings_report_angular(settings: FrontendSettings) -> bool:
    """Return True if the frontend settings carry Angular metadata.

    One entry is enough: all entries come from the same Grafana version.
    With no panel entries at all the settings are trusted as-is.
    """
    panel = next(iter(settings.panels.values()), None)
    if panel is None:
        return True
    _, found = panel.probe().resolve()
    return found


def classify_from_frontend_settings(settings: FrontendSettings) -> Dict[str, bool]:
    """Read the Angular status of every panel and datasource plugin.

    Raises
    ------
    UnknownAngularStatusError
        If an entry reports neither Angular metadata shape.
    """
    angular: Dict[str, bool] = {}
    for plugin_id, panel in settings.panels.items():
        is_angular, found = panel.probe().resolve()
        if not found:
            raise UnknownAngularStatusError(plugin_id)
        angular[plugin_id] = is_angular
    for ds in settings.datasources.values():
        is_angular, found = ds.probe().resolve()
        if not found:
            raise UnknownAngularStatusError(ds.type)
        angular[ds.type] = is_angular
    return angular


async def check_catalog_permissions(grafana: GrafanaDetectorClient) -> None:
    """Make sure the credential can see every installed plugin.

    A failing permissions request is only logged: Grafana versions without
    service accounts do not have the endpoint.

    Raises
    ------
    InsufficientPrivilegesError
        If the permissions are known and none of ``REQUIRED_PERMISSIONS`` is
        granted.
    """
    try:
        permissions = await grafana.get_service_account_permissions()
    except Exception as exc:  # noqa: BLE001
        logger.warning(
            "could not get service account permissions: %s. Please make sure "
            "that you have created an ADMIN token or the output will be wrong",
            exc,
        )
        return
    if not any(p in permissions for p in REQUIRED_PERMISSIONS):
        raise InsufficientPrivilegesError(
            'the service account does not have "datasources:create" or '
            '"plugins:install" permission, please provide a token for a service '
            "account with admin privileges"
        )


async def classify_from_catalog(
    grafana: GrafanaDetectorClient, gcom: PluginCatalogClient
) -> Dict[str, bool]:
    """Look up every installed plugin version in the grafana.com catalog.

    Plugins that report no version (core plugins) are skipped.
    """
    await check_catalog_permissions(grafana)
    try:
        plugins = await grafana.get_plugins()
    except Exception as exc:
        raise DetectionError(f"get plugins: {exc}") from exc

    angular: Dict[str, bool] = {}
    for plugin in plugins:
        version = plugin.info.version
        if not version:
            continue
        try:
            angular[plugin.id] = await gcom.get_angular_detected(plugin.id, version)
        except Exception as exc:
            raise DetectionError(
                f"get angular detected {plugin.id!r} {version!r}: {exc}"
            ) from exc
    return angular


async def classify_plugins(
    grafana: GrafanaDetectorClient, gcom: PluginCatalogClient
) -> Dict[str, bool]:
    """Build the plugin id -> uses Angular map for a Grafana instance.

    Raises
    ------
    DetectionError
        On any fetch failure, unknown Angular status or missing privileges.
    """
    try:
        settings = await grafana.get_frontend_settings()
    except Exception as exc:
        raise DetectionError(f"get frontend settings: {exc}") from exc

    if frontend_settings_report_angular(settings):
        logger.debug("Using frontendsettings to find Angular plugins")
        angular = classify_from_frontend_settings(settings)
    else:
        logger.debug("Using GCOM to find Angular plugins")
        logger.info("(WARNING, dependencies on private plugins won't be flagged)")
        angular = await classify_from_catalog(grafana, gcom)

    for plugin_id, is_angular in sorted(angular.items()):
        logger.debug("Plugin %r angular %s", plugin_id, is_angular)
    return angular
