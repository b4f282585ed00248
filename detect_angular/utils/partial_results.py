"""
Partial results for detection runs in which some dashboards fail.

A run keeps every report it managed to build and records one ``FailureInfo``
per dashboard it could not download or classify, so one broken dashboard
does not hide the findings for the rest of the instance.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, TypeVar

import httpx
from pydantic import ValidationError

from ..domain.errors import DetectionError

T = TypeVar("T")

# Failures that may go away on the next run.
RETRYABLE_ERROR_TYPES = frozenset(
    {"timeout", "connection_error", "transport_error", "server_error", "rate_limit"}
)

_STATUS_ERROR_TYPES = {
    401: "auth_error",
    403: "auth_error",
    404: "not_found",
    429: "rate_limit",
}


@dataclass
class FailureInfo:
    """
    One dashboard that could not be processed.

    Attributes
    ----------
    identifier : str
        Dashboard UID
    error : str
        Error message (the exception type name if the message is empty)
    error_type : str
        Category returned by ``classify_error``
    retryable : bool
        Whether a later run might succeed
    """

    identifier: str
    error: str
    error_type: str
    retryable: bool = False

    @classmethod
    def from_exception(cls, identifier: str, exc: BaseException) -> "FailureInfo":
        error_type = classify_error(exc)
        return cls(
            identifier=identifier,
            error=str(exc) or type(exc).__name__,
            error_type=error_type,
            retryable=error_type in RETRYABLE_ERROR_TYPES,
        )


@dataclass
class PartialResult(Generic[T]):
    """
    Successful items of a run next to the failures.

    Attributes
    ----------
    successes : List[T]
        Items that were processed
    failures : List[FailureInfo]
        One entry per item that was not
    """

    successes: List[T] = field(default_factory=list)
    failures: List[FailureInfo] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.successes) + len(self.failures)

    @property
    def success_rate(self) -> float:
        """Share of processed items (0.0-1.0); 0.0 for an empty result."""
        if not self.total:
            return 0.0
        return len(self.successes) / self.total

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)

    @property
    def all_succeeded(self) -> bool:
        """True if something was processed and nothing failed."""
        return bool(self.successes) and not self.failures

    def failures_by_type(self) -> Dict[str, List[FailureInfo]]:
        grouped: Dict[str, List[FailureInfo]] = {}
        for failure in self.failures:
            grouped.setdefault(failure.error_type, []).append(failure)
        return grouped


def classify_error(exc: BaseException) -> str:
    """Map an exception raised while processing a dashboard to a category."""
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status >= 500:
            return "server_error"
        return _STATUS_ERROR_TYPES.get(status, "http_error")
    if isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError)):
        return "timeout"
    if isinstance(exc, httpx.ConnectError):
        return "connection_error"
    if isinstance(exc, httpx.TransportError):
        return "transport_error"
    if isinstance(exc, DetectionError):
        return "classification_error"
    if isinstance(exc, (ValidationError, ValueError)):
        return "parse_error"
    if isinstance(exc, KeyError):
        return "missing_field"
    return "unknown_error"


def format_failure_summary(
    result: PartialResult[Any],
    operation_type: str = "operation",
    max_identifiers: int = 3,
) -> str:
    """
    Describe the failures of ``result`` for a log message.

    Parameters
    ----------
    result : PartialResult
        Result to summarize
    operation_type : str
        Name of the operation, e.g. "dashboard download"
    max_identifiers : int
        Identifiers listed per error type before the rest is counted

    Returns
    -------
    str
        One header line, then two lines per error type
    """
    if not result.has_failures:
        return f"All {len(result.successes)} {operation_type}(s) succeeded."

    lines = [
        f"Partial results: {len(result.successes)} succeeded, "
        f"{len(result.failures)} failed ({result.success_rate:.1%} success rate)"
    ]
    for error_type, failures in result.failures_by_type().items():
        note = "retryable" if failures[0].retryable else "not retryable"
        lines.append(f"  - {len(failures)} {error_type} ({note})")
        affected = [f.identifier for f in failures[:max_identifiers]]
        hidden = len(failures) - max_identifiers
        if hidden > 0:
            affected.append(f"... and {hidden} more")
        lines.append(f"    Affected: {', '.join(affected)}")
    return "\n".join(lines)
