from __future__ import annotations

import sys
from collections.abc import Callable, Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

from loguru import logger

from service_errors.config import Settings
from service_errors.domain.models import ConfiguredBaseModel
from service_errors.errors import StructuredError


class LogContext(ConfiguredBaseModel):
    """Per-request identifiers attached to every event."""

    correlation_id: str = ""
    user_id: str = ""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def configure_logging(settings: Settings) -> int:
    """Replace loguru sinks with a single stderr sink; return its id."""
    logger.remove()
    return logger.add(
        sys.stderr, level=settings.log_level, serialize=settings.log_json
    )


class ServiceLogger:
    """Structured event logger for service boundaries.

    Error context is merged into the bound event data, so everything a
    :class:`StructuredError` carries ends up in the log record's ``extra``.
    """

    def __init__(
        self,
        service_name: str,
        *,
        log: Any = logger,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.service_name = service_name
        self._log = log.bind(service=service_name)
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> ServiceLogger:
        return cls(settings.service_name)

    def _bind(
        self,
        context: LogContext | None,
        data: Mapping[str, Any] | None = None,
        code: str | None = None,
    ) -> Any:
        extra: dict[str, Any] = dict(data or {})
        if code is not None:
            extra["event_code"] = code
        if context is not None:
            if context.user_id:
                extra["user_id"] = context.user_id
            if context.correlation_id:
                extra["correlation_id"] = context.correlation_id
        return self._log.bind(**extra)

    def metric(
        self, name: str, value: float, context: LogContext | None = None
    ) -> None:
        self._bind(context, {"metric": name, "value": value}).info(
            "metric {} = {}", name, value
        )

    def info(
        self,
        code: str,
        message: str,
        data: Mapping[str, str] | None = None,
        context: LogContext | None = None,
    ) -> None:
        self._bind(context, data, code).info(message)

    def warning(
        self,
        code: str,
        message: str,
        data: Mapping[str, str] | None = None,
        context: LogContext | None = None,
    ) -> None:
        self._bind(context, data, code).warning(message)

    def error(
        self,
        code: str,
        err: BaseException | str,
        data: Mapping[str, str] | None = None,
        context: LogContext | None = None,
    ) -> None:
        if isinstance(err, StructuredError):
            merged = {**err.log_metadata(), **(data or {})}
            bound = self._bind(context, merged, code).bind(
                error_code=err.code, retryable=err.retryable
            )
            if err.__traceback__ is not None:
                bound = bound.opt(exception=err)
            bound.error(str(err))
        elif isinstance(err, BaseException):
            self._bind(context, data, code).opt(exception=err).error(str(err))
        else:
            self._bind(context, data, code).error(err)

    def request(
        self,
        method: str,
        url: str,
        duration: timedelta,
        response_code: str,
        client_address: str = "",
        context: LogContext | None = None,
    ) -> None:
        started_at = self._clock() - duration
        self._bind(
            context,
            {
                "method": method,
                "url": url,
                "duration_ms": duration.total_seconds() * 1000,
                "response_code": response_code,
                "source": client_address,
                "started_at": started_at.isoformat(),
            },
        ).info("{} {} -> {}", method, url, response_code)
