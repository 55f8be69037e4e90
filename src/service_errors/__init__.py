"""Structured errors for service backends."""

from service_errors.application.chain import (
    augment,
    is_code,
    matches,
    new_internal_with_cause,
    prefix_matches,
    propagate,
    wrap,
    wrap_with_code,
)
from service_errors.domain.codes import (
    RETRYABLE_CATEGORIES,
    ErrorCategory,
    categories,
    is_default_retryable,
)
from service_errors.domain.models import ErrorPayload
from service_errors.errors import (
    StructuredError,
    bad_request,
    bad_response,
    forbidden,
    internal_service,
    new,
    not_found,
    precondition_failed,
    timeout,
    unauthorized,
)

__all__ = [
    "RETRYABLE_CATEGORIES",
    "ErrorCategory",
    "ErrorPayload",
    "StructuredError",
    "augment",
    "bad_request",
    "bad_response",
    "categories",
    "forbidden",
    "internal_service",
    "is_code",
    "is_default_retryable",
    "matches",
    "new",
    "new_internal_with_cause",
    "not_found",
    "precondition_failed",
    "prefix_matches",
    "propagate",
    "timeout",
    "unauthorized",
    "wrap",
    "wrap_with_code",
]
