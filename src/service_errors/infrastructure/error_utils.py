from __future__ import annotations

import asyncio
import dataclasses
import functools
import inspect
import traceback
from collections.abc import Callable, Mapping
from typing import NoReturn, ParamSpec, TypeVar

from loguru import logger

from service_errors.application.chain import augment, propagate, wrap_with_code
from service_errors.domain.codes import ErrorCategory
from service_errors.errors import StructuredError

P = ParamSpec("P")
R = TypeVar("R")


def _format_tail(exc: BaseException, *, limit: int = 6) -> str:
    tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
    return "".join(tb[-limit:])


def log_and_propagate(
    exc: BaseException,
    log,  # loguru logger-like
    context: Mapping[str, str] | None = None,
) -> NoReturn:
    formatted_tb = _format_tail(exc)
    log.opt(exception=exc).exception("{}", formatted_tb)
    wrapped = propagate(exc)
    assert wrapped is not None
    raise wrapped.with_context(context) from exc


def _convert(
    exc: Exception, category: ErrorCategory | str, message: str | None
) -> StructuredError:
    if isinstance(exc, StructuredError):
        converted = exc
    else:
        wrapped = wrap_with_code(exc, None, category)
        assert wrapped is not None
        converted = dataclasses.replace(wrapped, cause=exc)
    if message is not None:
        augmented = augment(converted, message)
        assert augmented is not None
        converted = augmented
    return converted


def propagate_exceptions(
    category: ErrorCategory | str = ErrorCategory.INTERNAL_SERVICE,
    message: str | None = None,
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Decorator to log short traceback and convert errors into structured ones.

    Structured errors pass through (augmented with *message* when given),
    anything else becomes a *category* error.
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs):  # type: ignore[override]
                try:
                    return await func(*args, **kwargs)
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    converted = _convert(exc, category, message)
                    if converted is exc:
                        raise
                    if not isinstance(exc, StructuredError):
                        logger.opt(exception=exc).exception("{}", _format_tail(exc))
                    raise converted from exc

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(func)
        def sync_wrapper(*args: P.args, **kwargs: P.kwargs):  # type: ignore[override]
            try:
                return func(*args, **kwargs)
            except Exception as exc:
                converted = _convert(exc, category, message)
                if converted is exc:
                    raise
                if not isinstance(exc, StructuredError):
                    logger.opt(exception=exc).exception("{}", _format_tail(exc))
                raise converted from exc

        return sync_wrapper  # type: ignore[return-value]

    return decorator
