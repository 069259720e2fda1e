"""Contract for runtime telemetry and structured logging sinks."""

from __future__ import annotations

import logging
from typing import Protocol

from rich.logging import RichHandler


class Telemetry(Protocol):
    """Reports operational events such as finished synthesis runs or recognition sessions."""

    def emit(self, event_name: str, payload: dict) -> None:
        """Publish telemetry event to the configured sink."""


class LoggingTelemetry:
    """Telemetry sink that writes events to a logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("speech_runtime.telemetry")

    def emit(self, event_name: str, payload: dict) -> None:
        self._logger.info(event_name, extra={"telemetry": payload})


class NullTelemetry:
    """Discards every event."""

    def emit(self, event_name: str, payload: dict) -> None:
        return None


def build_telemetry(enabled: bool) -> Telemetry:
    return LoggingTelemetry() if enabled else NullTelemetry()


def configure_logging(level: str = "INFO") -> None:
    """Route ``speech_runtime`` loggers through a rich console handler."""
    root = logging.getLogger("speech_runtime")
    root.setLevel(level.upper())
    if any(isinstance(handler, RichHandler) for handler in root.handlers):
        return
    root.addHandler(RichHandler(rich_tracebacks=True, show_path=False))
