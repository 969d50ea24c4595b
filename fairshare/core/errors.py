"""Error classification utilities for engine and insight store errors.

The engine itself raises plain built-in exceptions (ValueError, KeyError,
RuntimeError). Callers that surface failures to users run them through
classify_engine_error() to get a stable code and a friendly message.
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ValidationError


class ErrorCategory(Enum):
    """Categories of errors the engine can surface."""

    NO_MEMBERS = "no_members"
    INSIGHT_NOT_FOUND = "insight_not_found"
    INVALID_STATUS_TRANSITION = "invalid_status_transition"
    INVALID_TASK_DATA = "invalid_task_data"
    STORE_UNAVAILABLE = "store_unavailable"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode:
    """Error codes for specific error conditions."""

    # Allocation errors
    ERR_NO_MEMBERS = "ERR_NO_MEMBERS"

    # Insight errors
    ERR_INSIGHT_NOT_FOUND = "ERR_INSIGHT_NOT_FOUND"
    ERR_INVALID_STATUS_TRANSITION = "ERR_INVALID_STATUS_TRANSITION"

    # Input errors
    ERR_INVALID_TASK_DATA = "ERR_INVALID_TASK_DATA"

    # Store errors
    ERR_STORE_UNAVAILABLE = "ERR_STORE_UNAVAILABLE"

    # Generic errors
    ERR_UNKNOWN = "ERR_UNKNOWN"


class ErrorResponse(BaseModel):
    """Structured error response with user-friendly messaging."""

    code: str
    category: ErrorCategory
    message: str
    suggestion: str
    severity: ErrorSeverity


_ERROR_PATTERNS: dict[
    Literal["no_members", "not_found", "transition", "store"],
    dict[str, list[str] | set[str]],
] = {
    "no_members": {
        "phrases": ["no members"],
        "exception_types": set(),
    },
    "not_found": {
        "phrases": ["not found"],
        "exception_types": {"KeyError"},
    },
    "transition": {
        "phrases": ["cannot transition", "invalid status", "is not a valid insightstatus"],
        "exception_types": set(),
    },
    "store": {
        "phrases": [
            "failed to create record",
            "failed to get record",
            "failed to update record",
            "failed to list records",
            "database is locked",
            "does not exist",
        ],
        "exception_types": {"OperationalError", "ConnectionError", "TimeoutError"},
    },
}


def _match_error_pattern(
    *,
    error_str: str,
    exception_type: str,
    pattern_type: Literal["no_members", "not_found", "transition", "store"],
) -> bool:
    """Return True if the error matches the configured pattern type."""
    patterns = _ERROR_PATTERNS[pattern_type]
    return any(phrase in error_str for phrase in patterns["phrases"]) or exception_type in patterns["exception_types"]


def classify_engine_error(exception: Exception) -> ErrorResponse:  # noqa: PLR0911
    """Classify an engine error and return a structured response with recovery suggestions.

    Args:
        exception: The exception raised by an engine operation

    Returns:
        ErrorResponse with code, category, message, suggestion, and severity
    """
    error_str = str(exception).lower()
    exception_type = type(exception).__name__

    if isinstance(exception, ValidationError):
        return ErrorResponse(
            code=ErrorCode.ERR_INVALID_TASK_DATA,
            category=ErrorCategory.INVALID_TASK_DATA,
            message="Some task data was invalid.",
            suggestion="Check that difficulty is between 1 and 10 and the category is known.",
            severity=ErrorSeverity.LOW,
        )

    if exception_type == "ValueError" and _match_error_pattern(
        error_str=error_str, exception_type=exception_type, pattern_type="no_members"
    ):
        return ErrorResponse(
            code=ErrorCode.ERR_NO_MEMBERS,
            category=ErrorCategory.NO_MEMBERS,
            message="There is nobody in this space to assign chores to.",
            suggestion="Invite at least one member before auto-assigning chores.",
            severity=ErrorSeverity.LOW,
        )

    if exception_type == "ValueError" and _match_error_pattern(
        error_str=error_str, exception_type=exception_type, pattern_type="transition"
    ):
        return ErrorResponse(
            code=ErrorCode.ERR_INVALID_STATUS_TRANSITION,
            category=ErrorCategory.INVALID_STATUS_TRANSITION,
            message="This insight has already been handled.",
            suggestion="Refresh your insights to see the latest suggestions.",
            severity=ErrorSeverity.LOW,
        )

    if _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="not_found"):
        return ErrorResponse(
            code=ErrorCode.ERR_INSIGHT_NOT_FOUND,
            category=ErrorCategory.INSIGHT_NOT_FOUND,
            message="I couldn't find that insight.",
            suggestion="It may have expired. Refresh your insights and try again.",
            severity=ErrorSeverity.LOW,
        )

    if _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="store"):
        return ErrorResponse(
            code=ErrorCode.ERR_STORE_UNAVAILABLE,
            category=ErrorCategory.STORE_UNAVAILABLE,
            message="Insights are temporarily unavailable.",
            suggestion="Please try again in a moment.",
            severity=ErrorSeverity.HIGH,
        )

    return ErrorResponse(
        code=ErrorCode.ERR_UNKNOWN,
        category=ErrorCategory.UNKNOWN,
        message="An unexpected error occurred.",
        suggestion="Please try again later. If the problem persists, contact support.",
        severity=ErrorSeverity.MEDIUM,
    )
