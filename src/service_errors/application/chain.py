from __future__ import annotations

from collections.abc import Mapping

from service_errors.domain.codes import ErrorCategory
from service_errors.errors import StructuredError, error_code, error_factory


def wrap(
    err: BaseException | None, context: Mapping[str, str] | None = None
) -> StructuredError | None:
    """Turn any exception into a :class:`StructuredError`.

    A structured error gets *context* merged into its own. Anything else
    becomes an ``internal_service`` error carrying the original message; the
    original exception is not kept as a cause.
    """
    return wrap_with_code(err, context, ErrorCategory.INTERNAL_SERVICE)


def wrap_with_code(
    err: BaseException | None,
    context: Mapping[str, str] | None,
    category: ErrorCategory | str,
) -> StructuredError | None:
    """Like :func:`wrap`, with *category* used for foreign exceptions."""
    if err is None:
        return None
    if isinstance(err, StructuredError):
        return err.with_context(context)
    return error_factory(category, error_code(category), str(err), context)


def new_internal_with_cause(
    err: BaseException | None,
    message: str,
    context: Mapping[str, str] | None = None,
    sub_code: str = "",
) -> StructuredError:
    """Create an ``internal_service`` error with *err* attached as its cause.

    Prefer :func:`augment`; this one exists for callers that need a
    sub-code. An explicit retryability on a structured cause is inherited,
    so a non-retryable failure stays non-retryable even when an upstream
    layer forgets to classify it.
    """
    created = error_factory(
        ErrorCategory.INTERNAL_SERVICE,
        error_code(ErrorCategory.INTERNAL_SERVICE, sub_code),
        message,
        context,
    )
    is_retryable = created.is_retryable
    if isinstance(err, StructuredError) and err.is_retryable is not None:
        is_retryable = err.is_retryable
    return StructuredError(
        category=created.category,
        code=created.code,
        message=created.message,
        context=created.context,
        is_retryable=is_retryable,
        cause=err,
    )


def propagate(err: BaseException | None) -> StructuredError | None:
    """Return structured errors unchanged, normalise anything else.

    Foreign exceptions become ``internal_service`` errors with the original
    kept as the cause, so :func:`is_code` and ``str()`` can still see it.
    """
    if err is None:
        return None
    if isinstance(err, StructuredError):
        return err
    return new_internal_with_cause(err, str(err))


def augment(
    err: BaseException | None,
    context_message: str,
    context: Mapping[str, str] | None = None,
) -> StructuredError | None:
    """Add a narrative message and *context* on top of *err*.

    The new error keeps the classification of a structured *err* and links
    back to it, so each call-stack level can say what it was doing::

        augment(err, "while validating payment", {"order_id": order_id})
    """
    if err is None:
        return None
    if isinstance(err, StructuredError):
        return StructuredError(
            category=err.category,
            code=err.code,
            message=context_message,
            context={**err.context, **(context or {})},
            is_retryable=err.is_retryable,
            cause=err,
        )
    return new_internal_with_cause(err, context_message, context)


def matches(err: BaseException | None, match: str) -> bool:
    if isinstance(err, StructuredError):
        return err.matches(match)
    return False


def prefix_matches(err: BaseException | None, *prefix_parts: str) -> bool:
    if isinstance(err, StructuredError):
        return err.prefix_matches(*prefix_parts)
    return False


def is_code(err: BaseException | None, *code: str) -> bool:
    """Check *err* and its causes for a code starting with *code*.

    The walk stops at the first foreign exception in the chain.
    """
    link = err
    while isinstance(link, StructuredError):
        if link.prefix_matches(*code):
            return True
        link = link.cause
    return False
