"""Tests for the readable and JSON report formats."""

from __future__ import annotations

import io
import json
import logging

import pytest

from detect_angular.domain.models import DashboardReport, Detection, DetectionType
from detect_angular.observability import REPORT_LOGGER
from detect_angular.server.output import JSONOutput, ReadableOutput, dump_dashboards


def _report(title: str, *detections: Detection) -> DashboardReport:
    return DashboardReport(
        detections=list(detections),
        url=f"http://grafana.example/d/{title}",
        title=title,
        folder="General",
        created_by="admin",
        updated_by="admin",
        created="2023-11-07T11:13:24+01:00",
        updated="2024-02-21T13:09:27+01:00",
    )


CLOCK = Detection(
    plugin_id="grafana-clock-panel", detection_type=DetectionType.PANEL, title="clock"
)
AKUMULI = Detection(
    plugin_id="akumuli-datasource",
    detection_type=DetectionType.DATASOURCE,
    title="Panel two",
)
GRAPH = Detection(
    plugin_id="graph", detection_type=DetectionType.LEGACY_PANEL, title="old"
)


def test_detection_messages() -> None:
    assert str(CLOCK) == 'Found angular panel "clock" ("grafana-clock-panel")'
    assert str(AKUMULI) == (
        'Found panel with angular data source "Panel two" ("akumuli-datasource")'
    )
    assert str(GRAPH) == (
        'Found legacy plugin "graph" in panel "old". It can be migrated to a '
        "React-based panel by Grafana when opening the dashboard."
    )


def test_dump_uses_report_keys_and_skips_clean_dashboards() -> None:
    payload = dump_dashboards([_report("angular", CLOCK, AKUMULI), _report("react")])
    assert payload == [
        {
            "Detections": [
                {
                    "PluginID": "grafana-clock-panel",
                    "DetectionType": "panel",
                    "Title": "clock",
                },
                {
                    "PluginID": "akumuli-datasource",
                    "DetectionType": "datasource",
                    "Title": "Panel two",
                },
            ],
            "URL": "http://grafana.example/d/angular",
            "Title": "angular",
            "Folder": "General",
            "UpdatedBy": "admin",
            "CreatedBy": "admin",
            "Created": "2023-11-07T11:13:24+01:00",
            "Updated": "2024-02-21T13:09:27+01:00",
        }
    ]


def test_json_output() -> None:
    stream = io.StringIO()
    JSONOutput(stream).output([_report("a", GRAPH), _report("clean")])
    data = json.loads(stream.getvalue())
    assert [d["Title"] for d in data] == ["a"]
    assert data[0]["Detections"][0]["DetectionType"] == "legacyPanel"


def test_json_output_empty_list() -> None:
    stream = io.StringIO()
    JSONOutput(stream).output([_report("clean")])
    assert json.loads(stream.getvalue()) == []


def test_json_bulk_output() -> None:
    stream = io.StringIO()
    JSONOutput(stream).bulk_output(
        {
            3: [_report("ops", CLOCK)],
            1: [_report("main", GRAPH), _report("clean")],
            2: [_report("clean")],
        }
    )
    data = json.loads(stream.getvalue())
    assert list(data) == ["1", "3"]
    assert [d["Title"] for d in data["1"]] == ["main"]
    assert [d["Title"] for d in data["3"]] == ["ops"]


def test_readable_output(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger=REPORT_LOGGER):
        ReadableOutput().output([_report("angular", CLOCK, AKUMULI), _report("react")])
    messages = [(r.levelno, r.getMessage()) for r in caplog.records]
    assert messages == [
        (
            logging.INFO,
            'Found dashboard with Angular plugins "angular" '
            '"http://grafana.example/d/angular":',
        ),
        (logging.INFO, str(CLOCK)),
        (logging.INFO, str(AKUMULI)),
        (logging.DEBUG, 'Checking dashboard "react" "http://grafana.example/d/react"'),
    ]


def test_readable_bulk_output(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO, logger=REPORT_LOGGER):
        ReadableOutput().bulk_output(
            {2: [_report("ops", CLOCK)], 1: [_report("clean")]}
        )
    messages = [r.getMessage() for r in caplog.records]
    assert messages[0] == "Found dashboards with Angular plugins in org 2"
    assert "org 1" not in caplog.text
