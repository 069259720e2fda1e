"""Telemetry sinks and logging setup."""

from .logging import LoggingTelemetry, NullTelemetry, Telemetry, build_telemetry, configure_logging

__all__ = [
    "LoggingTelemetry",
    "NullTelemetry",
    "Telemetry",
    "build_telemetry",
    "configure_logging",
]
