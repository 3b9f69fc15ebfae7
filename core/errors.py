"""Closed error taxonomy shared by every component.

Every fallible operation resolves to either a value or exactly one of the
seven ``ApiError`` variants below, wrapped in an ``ApiResult``.  The module
also owns the mapping from HTTP status codes (and transport exceptions) onto
the taxonomy so that the one-shot client and the session agree on it.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Generic, Literal, Mapping, TypeVar

import pydantic

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_RETRY_AFTER_MS = 60_000

_LEADING_INT = re.compile(r"\s*[+-]?\d+")


# ---------------------------------------------------------------------------
# Variants
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ApiError:
    """Base class for the closed set of API error variants."""

    @property
    def tag(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class NetworkError(ApiError):
    message: str
    cause: BaseException | None = None


@dataclass(frozen=True)
class ValidationIssue:
    """One failed check: where it failed and why."""

    path: tuple[str | int, ...]
    message: str


@dataclass(frozen=True)
class ValidationError(ApiError):
    issues: tuple[ValidationIssue, ...]


@dataclass(frozen=True)
class AuthError(ApiError):
    message: str
    status_code: Literal[401, 403]


@dataclass(frozen=True)
class RateLimitError(ApiError):
    retry_after_ms: int


@dataclass(frozen=True)
class NotFoundError(ApiError):
    resource: str
    id: str


@dataclass(frozen=True)
class ConflictError(ApiError):
    message: str
    conflicting_resource: str | None = None


@dataclass(frozen=True)
class ServerError(ApiError):
    status_code: int
    message: str


API_ERROR_TYPES: tuple[type[ApiError], ...] = (
    NetworkError,
    ValidationError,
    AuthError,
    RateLimitError,
    NotFoundError,
    ConflictError,
    ServerError,
)


# ---------------------------------------------------------------------------
# Result container
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ApiResult(Generic[T]):
    """Outcome of a fallible operation: a value or an ``ApiError``, never both."""

    value: T | None = None
    error: ApiError | None = None

    def __post_init__(self) -> None:
        if self.error is not None and self.value is not None:
            raise ValueError("ApiResult cannot carry both a value and an error")

    @classmethod
    def success(cls, value: T) -> ApiResult[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: ApiError) -> ApiResult[T]:
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.ok


# ---------------------------------------------------------------------------
# Constructors
# ---------------------------------------------------------------------------

def single_issue(message: str, path: tuple[str | int, ...] = ()) -> ValidationError:
    """Build a ``ValidationError`` carrying one synthesized issue."""
    return ValidationError(issues=(ValidationIssue(path=path, message=message),))


def validation_error_from_pydantic(exc: pydantic.ValidationError) -> ValidationError:
    """Convert a pydantic failure into the taxonomy's ``ValidationError``."""
    issues = tuple(
        ValidationIssue(path=tuple(err["loc"]), message=err["msg"])
        for err in exc.errors()
    )
    return ValidationError(issues=issues)


def parse_retry_after(value: str | None) -> int:
    """Convert a ``Retry-After`` header (seconds) to milliseconds.

    Only the leading integer counts (``"1.5"`` is one second).  Missing or
    non-numeric headers fall back to one minute.
    """
    match = _LEADING_INT.match(value or "")
    if match is None:
        return DEFAULT_RETRY_AFTER_MS
    seconds = int(match.group(0))
    if seconds <= 0:
        return DEFAULT_RETRY_AFTER_MS
    return seconds * 1000


def error_from_status(
    status_code: int,
    message: str,
    headers: Mapping[str, str] | None = None,
) -> ApiError:
    """Map an HTTP error status onto the taxonomy."""
    headers = headers or {}
    if status_code == 400:
        return single_issue(message)
    if status_code in (401, 403):
        return AuthError(message=message, status_code=status_code)  # type: ignore[arg-type]
    if status_code == 404:
        return NotFoundError(resource="resource", id="unknown")
    if status_code == 409:
        return ConflictError(message=message)
    if status_code == 429:
        return RateLimitError(retry_after_ms=parse_retry_after(headers.get("Retry-After")))
    if 500 <= status_code < 600:
        return ServerError(status_code=status_code, message=message)
    if 400 <= status_code < 500:
        return single_issue(message)

    logger.warning("Unexpected HTTP status %d folded into NetworkError", status_code)
    return NetworkError(message=f"Unexpected HTTP status {status_code}: {message}")


def error_from_exception(exc: BaseException) -> NetworkError:
    """Fold an arbitrary failure into ``NetworkError`` with a best-effort message."""
    message = str(exc) or "An unexpected error occurred"
    return NetworkError(message=message, cause=exc)


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

def format_api_error(error: ApiError) -> str:
    """Render any variant as a human-readable line."""
    if isinstance(error, NetworkError):
        if error.cause is not None:
            return f"Network Error: {error.message} (Cause: {error.cause})"
        return f"Network Error: {error.message}"
    if isinstance(error, ValidationError):
        if len(error.issues) == 1:
            return f"Validation Error: {error.issues[0].message}"
        joined = ", ".join(issue.message for issue in error.issues)
        return f"Validation Error ({len(error.issues)} issues): {joined}"
    if isinstance(error, AuthError):
        return f"Auth Error ({error.status_code}): {error.message}"
    if isinstance(error, RateLimitError):
        return f"Rate Limit Error: Retry after {error.retry_after_ms}ms"
    if isinstance(error, NotFoundError):
        return f"Not Found Error: {error.resource} with id {error.id} not found"
    if isinstance(error, ConflictError):
        if error.conflicting_resource:
            return (
                f"Conflict Error: {error.message} "
                f"(Conflicting: {error.conflicting_resource})"
            )
        return f"Conflict Error: {error.message}"
    if isinstance(error, ServerError):
        return f"Server Error ({error.status_code}): {error.message}"
    raise AssertionError(f"Unhandled ApiError variant: {error!r}")


def error_to_dict(error: ApiError) -> dict[str, Any]:
    """Serialise a variant for logs and CLI output (``cause`` is stringified)."""
    payload: dict[str, Any] = {"tag": error.tag}
    for name in error.__dataclass_fields__:
        value = getattr(error, name)
        if name == "cause" and value is not None:
            value = repr(value)
        elif name == "issues":
            value = [{"path": list(i.path), "message": i.message} for i in value]
        payload[name] = value
    return payload
