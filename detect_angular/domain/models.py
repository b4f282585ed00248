"""Detection results produced by the engine.

Serialization aliases match the JSON report format of the command-line tool
(``PluginID``, ``DetectionType``, ...), so ``model_dump(by_alias=True)`` can
be written out directly.
"""

from __future__ import annotations

from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class DetectionType(str, Enum):
    """Kind of Angular dependency found in a panel."""

    PANEL = "panel"
    DATASOURCE = "datasource"
    LEGACY_PANEL = "legacyPanel"


class Detection(BaseModel):
    """Single finding in a dashboard.

    Attributes
    ----------
    plugin_id: str
        Plugin id that triggered the detection.
    detection_type: DetectionType
        Kind of detection.
    title: str
        Title of the panel that triggered the detection, so the user can
        find it on the dashboard.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    plugin_id: str = Field(..., serialization_alias="PluginID")
    detection_type: DetectionType = Field(..., serialization_alias="DetectionType")
    title: str = Field("", serialization_alias="Title")

    def __str__(self) -> str:
        if self.detection_type is DetectionType.PANEL:
            return f'Found angular panel "{self.title}" ("{self.plugin_id}")'
        if self.detection_type is DetectionType.DATASOURCE:
            return (
                f'Found panel with angular data source "{self.title}" '
                f'("{self.plugin_id}")'
            )
        return (
            f'Found legacy plugin "{self.plugin_id}" in panel "{self.title}". '
            "It can be migrated to a React-based panel by Grafana when opening "
            "the dashboard."
        )


class DashboardReport(BaseModel):
    """Detections for one dashboard, with its location and audit metadata."""

    model_config = ConfigDict(populate_by_name=True)

    detections: List[Detection] = Field(
        default_factory=list, serialization_alias="Detections"
    )
    url: str = Field("", serialization_alias="URL")
    title: str = Field("", serialization_alias="Title")
    folder: str = Field("", serialization_alias="Folder")
    updated_by: str = Field("", serialization_alias="UpdatedBy")
    created_by: str = Field("", serialization_alias="CreatedBy")
    created: str = Field("", serialization_alias="Created")
    updated: str = Field("", serialization_alias="Updated")
