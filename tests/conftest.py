from datetime import datetime, timezone
from typing import Callable, Iterator

import httpx
import pytest
from loguru import logger


@pytest.fixture
def fake_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Provide environment variables read by Settings."""
    monkeypatch.setenv("SERVICE_ERRORS_SERVICE_NAME", "billing")
    monkeypatch.setenv("SERVICE_ERRORS_LOG_LEVEL", "debug")


@pytest.fixture
def log_records() -> Iterator[list]:
    """Collect loguru messages; each item exposes the raw ``.record``."""
    messages: list = []
    sink_id = logger.add(messages.append, level="TRACE", format="{message}")
    yield messages
    logger.remove(sink_id)


@pytest.fixture
def httpx_transport() -> Callable[
    [Callable[[httpx.Request], httpx.Response]], httpx.Client
]:
    """Create httpx.Client with a custom MockTransport."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
        return httpx.Client(
            base_url="https://svc.test", transport=httpx.MockTransport(handler)
        )

    return factory


@pytest.fixture
def frozen_clock() -> Callable[[], datetime]:
    """Clock that always returns the same instant."""
    now = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
    return lambda: now
