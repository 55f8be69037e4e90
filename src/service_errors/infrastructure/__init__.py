from __future__ import annotations

from ..config import Settings
from .telemetry import ServiceLogger, configure_logging


def build_logger(settings: Settings) -> ServiceLogger:
    """Configure loguru from *settings* and return a :class:`ServiceLogger`."""

    configure_logging(settings)
    return ServiceLogger.from_settings(settings)


__all__ = ["build_logger", "ServiceLogger"]
