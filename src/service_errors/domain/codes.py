from __future__ import annotations

from enum import Enum


class ErrorCategory(str, Enum):
    """Top-level error classification.

    Any string is accepted as a category by :func:`service_errors.errors.new`,
    these are the ones with a dedicated constructor and a known HTTP status.
    """

    BAD_REQUEST = "bad_request"
    BAD_RESPONSE = "bad_response"
    FORBIDDEN = "forbidden"
    INTERNAL_SERVICE = "internal_service"
    NOT_FOUND = "not_found"
    PRECONDITION_FAILED = "precondition_failed"
    TIMEOUT = "timeout"
    UNAUTHORIZED = "unauthorized"
    UNKNOWN = "unknown"

    def is_default_retryable(self) -> bool:
        return self in RETRYABLE_CATEGORIES


RETRYABLE_CATEGORIES: frozenset[ErrorCategory] = frozenset(
    {
        ErrorCategory.INTERNAL_SERVICE,
        ErrorCategory.TIMEOUT,
        ErrorCategory.UNKNOWN,
    }
)


def categories() -> frozenset[ErrorCategory]:
    return frozenset(ErrorCategory)


def category_value(category: ErrorCategory | str) -> str:
    """Return the canonical string of *category*."""
    if isinstance(category, ErrorCategory):
        return category.value
    return category


def is_default_retryable(category: ErrorCategory | str) -> bool:
    try:
        return ErrorCategory(category_value(category)).is_default_retryable()
    except ValueError:
        return False
