from __future__ import annotations

import time
import uuid
from collections.abc import Callable
from datetime import timedelta

import httpx
from pydantic import ValidationError

from service_errors.application.chain import propagate
from service_errors.domain.codes import ErrorCategory, category_value
from service_errors.domain.models import ConfiguredBaseModel, ErrorPayload
from service_errors.errors import StructuredError, new
from service_errors.infrastructure.telemetry import LogContext, ServiceLogger

HTTP_STATUS_BY_CATEGORY: dict[ErrorCategory, int] = {
    ErrorCategory.BAD_REQUEST: 400,
    ErrorCategory.BAD_RESPONSE: 406,
    ErrorCategory.FORBIDDEN: 403,
    ErrorCategory.INTERNAL_SERVICE: 500,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.PRECONDITION_FAILED: 412,
    ErrorCategory.TIMEOUT: 504,
    ErrorCategory.UNAUTHORIZED: 401,
}
DEFAULT_STATUS = 500

_CATEGORY_BY_STATUS = {status: cat for cat, status in HTTP_STATUS_BY_CATEGORY.items()}

Handler = Callable[
    [httpx.Request, LogContext], httpx.Response | StructuredError | None
]


class ErrorResponse(ConfiguredBaseModel):
    status_code: int
    payload: ErrorPayload

    def to_httpx(self) -> httpx.Response:
        return httpx.Response(self.status_code, json=self.payload.model_dump())


def status_for_category(category: ErrorCategory | str) -> int:
    """Map *category* to an HTTP status; unmapped categories give 500."""
    try:
        return HTTP_STATUS_BY_CATEGORY[ErrorCategory(category_value(category))]
    except (KeyError, ValueError):
        return DEFAULT_STATUS


def error_response(err: BaseException) -> ErrorResponse:
    structured = propagate(err)
    assert structured is not None
    return ErrorResponse(
        status_code=status_for_category(structured.category),
        payload=structured.to_payload(),
    )


def handle_request(
    handler: Handler, log: ServiceLogger
) -> Callable[[httpx.Request], httpx.Response]:
    """Adapt *handler* into a request -> response callable.

    Every call gets a fresh correlation id and is logged as a request
    event. Returned or raised errors are rendered as their JSON payload with
    the mapped status. The result plugs straight into
    ``httpx.MockTransport``.
    """

    def handle(request: httpx.Request) -> httpx.Response:
        context = LogContext(
            correlation_id=str(uuid.uuid4()),
            user_id=request.headers.get("X-User-Id", ""),
        )
        start = time.perf_counter()
        try:
            result = handler(request, context)
        except Exception as exc:
            result = propagate(exc)
            log.error("request_failed", exc, context=context)
        duration = timedelta(seconds=time.perf_counter() - start)

        if isinstance(result, StructuredError):
            response = error_response(result).to_httpx()
        elif result is None:
            response = httpx.Response(200)
        else:
            response = result

        log.request(
            request.method,
            str(request.url),
            duration,
            str(response.status_code),
            request.headers.get("X-Forwarded-For", ""),
            context,
        )
        return response

    return handle


def _category_for_status(status_code: int) -> ErrorCategory:
    if status_code in _CATEGORY_BY_STATUS:
        return _CATEGORY_BY_STATUS[status_code]
    if status_code >= 500:
        return ErrorCategory.INTERNAL_SERVICE
    return ErrorCategory.BAD_REQUEST


def error_from_response(response: httpx.Response) -> StructuredError | None:
    """Rebuild the error carried by a downstream *response*.

    Bodies holding a serialized error are decoded as-is; otherwise the
    status code decides the category.
    """
    if not response.is_error:
        return None
    try:
        payload = ErrorPayload.model_validate_json(response.content)
    except ValidationError:
        payload = None
    if payload is not None:
        return StructuredError.from_payload(payload)

    context = {"status_code": str(response.status_code)}
    try:
        context["url"] = str(response.request.url)
    except RuntimeError:
        # built without a request
        pass
    return new(
        _category_for_status(response.status_code),
        message=response.text or response.reason_phrase,
        context=context,
    )


def raise_for_error_response(response: httpx.Response) -> None:
    err = error_from_response(response)
    if err is not None:
        raise err
