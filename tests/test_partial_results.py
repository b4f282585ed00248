"""
Tests for partial results handling utilities.
"""

import asyncio

import httpx
import pytest
from pydantic import BaseModel, ValidationError

from detect_angular.domain.errors import MalformedDatasourceError
from detect_angular.utils.partial_results import (
    FailureInfo,
    PartialResult,
    format_failure_summary,
)


def _status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "http://grafana.example/api/dashboards/uid/x")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError("boom", request=request, response=response)


class _Model(BaseModel):
    value: int


def _validation_error() -> Exception:
    try:
        _Model.model_validate({"value": "nope"})
    except ValidationError as exc:
        return exc
    raise AssertionError("validation should fail")


@pytest.mark.parametrize(
    "exc, error_type, retryable",
    [
        (_status_error(500), "server_error", True),
        (_status_error(502), "server_error", True),
        (_status_error(429), "rate_limit", True),
        (_status_error(401), "auth_error", False),
        (_status_error(403), "auth_error", False),
        (_status_error(404), "not_found", False),
        (_status_error(400), "http_error", False),
        (httpx.ReadTimeout("slow"), "timeout", True),
        (asyncio.TimeoutError(), "timeout", True),
        (httpx.ConnectError("refused"), "connection_error", True),
        (httpx.RemoteProtocolError("eof"), "transport_error", True),
        (MalformedDatasourceError("p", 42), "classification_error", False),
        (ValueError("bad json"), "parse_error", False),
        (_validation_error(), "parse_error", False),
        (KeyError("dashboard"), "missing_field", False),
        (RuntimeError("other"), "unknown_error", False),
    ],
)
def test_failure_info_from_exception(
    exc: Exception, error_type: str, retryable: bool
) -> None:
    info = FailureInfo.from_exception("uid-1", exc)
    assert info.identifier == "uid-1"
    assert info.error_type == error_type
    assert info.retryable is retryable
    assert info.error


def test_failure_info_uses_type_name_for_empty_message() -> None:
    info = FailureInfo.from_exception("uid-1", asyncio.TimeoutError())
    assert info.error == "TimeoutError"


def test_partial_result_properties():
    """Test PartialResult property calculations."""
    result = PartialResult(
        successes=["a", "b", "c"],
        failures=[FailureInfo("x", "error", "timeout", True)],
    )
    assert result.has_failures
    assert not result.all_succeeded
    assert result.success_rate == 0.75

    empty = PartialResult()
    assert empty.success_rate == 0.0
    assert not empty.has_failures
    assert not empty.all_succeeded

    clean = PartialResult(successes=["a"])
    assert clean.all_succeeded


def test_format_failure_summary_all_succeeded():
    """Test formatting summary when all operations succeed."""
    result = PartialResult(successes=[1, 2, 3])
    summary = format_failure_summary(result, "dashboard download")
    assert summary == "All 3 dashboard download(s) succeeded."


def test_format_failure_summary_groups_by_type():
    """Test formatting summary with failures of several types."""
    result = PartialResult(
        successes=["ok"],
        failures=[
            FailureInfo("d1", "timed out", "timeout", True),
            FailureInfo("d2", "timed out", "timeout", True),
            FailureInfo("d3", "timed out", "timeout", True),
            FailureInfo("d4", "timed out", "timeout", True),
            FailureInfo("d5", "not found", "not_found", False),
        ],
    )
    summary = format_failure_summary(result, "dashboard download")
    assert "1 succeeded, 5 failed" in summary
    assert "16.7% success rate" in summary
    assert "4 timeout (retryable)" in summary
    assert "Affected: d1, d2, d3, ... and 1 more" in summary
    assert "1 not_found (not retryable)" in summary
    assert "Affected: d5" in summary
