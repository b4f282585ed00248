"""Datasource name to plugin id resolution.

Dashboards with an old schema reference datasources by name instead of by
plugin id; this map lets the panel classifier resolve them.
"""

from __future__ import annotations

import logging
from typing import Dict

from ..adapters import GrafanaDetectorClient
from .errors import DetectionError

logger = logging.getLogger(__name__)


async def resolve_datasource_plugin_ids(
    grafana: GrafanaDetectorClient,
) -> Dict[str, str]:
    """Return a map from datasource name to plugin id.

    Raises
    ------
    DetectionError
        If the datasource list cannot be fetched.
    """
    try:
        datasources = await grafana.get_datasources()
    except Exception as exc:
        raise DetectionError(f"get datasource plugin ids: {exc}") from exc
    plugin_ids = {ds.name: ds.type for ds in datasources}
    logger.debug("datasources.resolved", extra={"count": len(plugin_ids)})
    return plugin_ids
