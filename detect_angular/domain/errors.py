"""Errors raised by the detection engine."""

from __future__ import annotations

from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from ..utils.partial_results import FailureInfo


class DetectionError(RuntimeError):
    """A detection run could not complete.

    The underlying cause, if any, is chained as ``__cause__``.
    """


class UnknownAngularStatusError(DetectionError):
    """A frontend settings entry reports neither Angular metadata shape."""

    def __init__(self, plugin_id: str) -> None:
        super().__init__(
            f"{plugin_id!r}: could not determine if plugin is angular or not, "
            "use the grafana.com catalog instead"
        )
        self.plugin_id = plugin_id


class InsufficientPrivilegesError(DetectionError):
    """The credential cannot list all installed plugins."""


class MalformedDatasourceError(DetectionError):
    """A panel's datasource field has an unexpected JSON shape."""

    def __init__(self, panel_title: str, raw: object) -> None:
        super().__init__(
            f"panel {panel_title!r}: unknown datasource type "
            f"{type(raw).__name__} ({raw!r})"
        )
        self.panel_title = panel_title
        self.raw = raw


class DashboardFetchError(DetectionError):
    """Some dashboards could not be fetched or classified.

    Attributes
    ----------
    failures: List[FailureInfo]
        One entry per failed dashboard, identified by its UID.
    """

    def __init__(self, failures: "List[FailureInfo]") -> None:
        self.failures = list(failures)
        details = "; ".join(f"{f.identifier}: {f.error}" for f in self.failures)
        super().__init__(
            f"errors occurred during dashboard download "
            f"({len(self.failures)} failed): {details}"
        )

    @property
    def identifiers(self) -> List[str]:
        return [f.identifier for f in self.failures]
