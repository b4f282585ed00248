"""Panel tree classification.

Each panel yields at most one panel detection (legacy or Angular) and at
most one datasource detection. Collapsed rows are walked recursively; the
result is in pre-order, a panel's own detections before its children's.
"""

from __future__ import annotations

from typing import List, Mapping, Sequence

from ..schemas.grafana import DashboardPanel, DatasourceRef, DatasourceRefKind
from .errors import MalformedDatasourceError
from .models import Detection, DetectionType

# Panels that Grafana migrates to a React equivalent when the dashboard is
# opened in the browser.
LEGACY_PANEL_TYPES = frozenset(
    {
        # replaced by "timeseries"
        "graph",
        # Angular table panel, after schema migration
        "table-old",
        "grafana-piechart-panel",
        # migrated to "geomap"
        "grafana-worldmap-panel",
        # both migrated to "stat"
        "grafana-singlestat-panel",
        "singlestat",
    }
)

# Below this schema version "table" is the Angular table, which the dashboard
# migrator renames to "table-old".
TABLE_MIGRATION_SCHEMA_VERSION = 24


def is_legacy_panel(panel_type: str, schema_version: int) -> bool:
    """Return True if Grafana can auto-migrate ``panel_type`` to React."""
    if panel_type in LEGACY_PANEL_TYPES:
        return True
    return panel_type == "table" and schema_version < TABLE_MIGRATION_SCHEMA_VERSION


def resolve_datasource_plugin_id(
    ref: DatasourceRef,
    datasource_plugin_ids: Mapping[str, str],
    panel_title: str,
) -> str:
    """Return the plugin id behind a datasource reference.

    Unknown datasource names resolve to "".

    Raises
    ------
    MalformedDatasourceError
        If the reference had an unexpected JSON shape.
    """
    if ref.kind is DatasourceRefKind.BY_NAME:
        return datasource_plugin_ids.get(ref.value, "")
    if ref.kind is DatasourceRefKind.BY_PLUGIN_ID:
        return ref.value
    raise MalformedDatasourceError(panel_title, ref.raw)


def classify_panel(
    panel: DashboardPanel,
    schema_version: int,
    angular: Mapping[str, bool],
    datasource_plugin_ids: Mapping[str, str],
) -> List[Detection]:
    """Return the detections for one panel, ignoring its children."""
    out: List[Detection] = []

    if is_legacy_panel(panel.type, schema_version):
        out.append(
            Detection(
                plugin_id=panel.type,
                detection_type=DetectionType.LEGACY_PANEL,
                title=panel.title,
            )
        )
    elif angular.get(panel.type, False):
        out.append(
            Detection(
                plugin_id=panel.type,
                detection_type=DetectionType.PANEL,
                title=panel.title,
            )
        )

    if panel.datasource is None:
        return out
    ds_plugin_id = resolve_datasource_plugin_id(
        panel.datasource, datasource_plugin_ids, panel.title
    )
    if angular.get(ds_plugin_id, False):
        # Reported under the panel title so the user can find it.
        out.append(
            Detection(
                plugin_id=ds_plugin_id,
                detection_type=DetectionType.DATASOURCE,
                title=panel.title,
            )
        )
    return out


def classify_panels(
    panels: Sequence[DashboardPanel],
    schema_version: int,
    angular: Mapping[str, bool],
    datasource_plugin_ids: Mapping[str, str],
) -> List[Detection]:
    """Classify a panel tree, recursing into collapsed rows."""
    out: List[Detection] = []
    for panel in panels:
        out.extend(
            classify_panel(panel, schema_version, angular, datasource_plugin_ids)
        )
        if panel.panels:
            out.extend(
                classify_panels(
                    panel.panels, schema_version, angular, datasource_plugin_ids
                )
            )
    return out
