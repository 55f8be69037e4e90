import asyncio

import pytest
from loguru import logger

from service_errors import errors
from service_errors.application.chain import is_code
from service_errors.domain.codes import ErrorCategory
from service_errors.errors import StructuredError
from service_errors.infrastructure.error_utils import (
    log_and_propagate,
    propagate_exceptions,
)


def test_sync_wrapper_converts_foreign_errors(log_records: list) -> None:
    @propagate_exceptions()
    def load() -> None:
        raise ValueError("bad row")

    with pytest.raises(StructuredError) as info:
        load()
    err = info.value
    assert err.code == "internal_service"
    assert err.message == "bad row"
    assert isinstance(err.cause, ValueError)
    assert err.__cause__ is err.cause
    assert err.retryable is True
    assert any("bad row" in str(m) for m in log_records)


def test_sync_wrapper_uses_category_and_message() -> None:
    @propagate_exceptions(ErrorCategory.TIMEOUT, message="calling inventory")
    def call() -> None:
        raise TimeoutError("read timed out")

    with pytest.raises(StructuredError) as info:
        call()
    err = info.value
    assert err.code == "timeout"
    assert str(err) == "timeout: calling inventory: read timed out: read timed out"
    assert is_code(err, "timeout")


def test_sync_wrapper_passes_structured_errors_through() -> None:
    original = errors.not_found("sku", "unknown sku")

    @propagate_exceptions()
    def lookup() -> None:
        raise original

    with pytest.raises(StructuredError) as info:
        lookup()
    assert info.value is original


def test_sync_wrapper_augments_structured_errors() -> None:
    original = errors.not_found("sku", "unknown sku", {"sku": "s1"})

    @propagate_exceptions(message="building cart")
    def lookup() -> None:
        raise original

    with pytest.raises(StructuredError) as info:
        lookup()
    err = info.value
    assert err.cause is original
    assert err.code == "not_found.sku"
    assert err.context == {"sku": "s1"}
    assert str(err) == "not_found.sku: building cart: unknown sku"


def test_sync_wrapper_returns_value() -> None:
    @propagate_exceptions()
    def ok(x: int) -> int:
        return x * 2

    assert ok(21) == 42
    assert ok.__name__ == "ok"


@pytest.mark.asyncio
async def test_async_wrapper_converts_foreign_errors() -> None:
    @propagate_exceptions(ErrorCategory.BAD_RESPONSE)
    async def fetch() -> None:
        raise KeyError("payload")

    with pytest.raises(StructuredError) as info:
        await fetch()
    assert info.value.code == "bad_response"
    assert info.value.retryable is False


@pytest.mark.asyncio
async def test_async_wrapper_returns_value() -> None:
    @propagate_exceptions()
    async def fetch() -> str:
        return "ok"

    assert await fetch() == "ok"


@pytest.mark.asyncio
async def test_async_wrapper_keeps_cancellation() -> None:
    @propagate_exceptions()
    async def cancelled() -> None:
        raise asyncio.CancelledError()

    with pytest.raises(asyncio.CancelledError):
        await cancelled()


def test_log_and_propagate_raises_with_context(log_records: list) -> None:
    try:
        raise OSError("disk full")
    except OSError as exc:
        with pytest.raises(StructuredError) as info:
            log_and_propagate(exc, logger, {"path": "/var/data"})
    err = info.value
    assert err.code == "internal_service"
    assert err.context == {"path": "/var/data"}
    assert isinstance(err.cause, OSError)
    assert any("disk full" in str(m) for m in log_records)
