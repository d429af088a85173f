"""Telemetry: logging setup and status reporting."""

from crossarb.telemetry.logger import AsyncLogger, setup_logging
from crossarb.telemetry.reporter import EngineStatus, StatusReporter


__all__ = ["AsyncLogger", "EngineStatus", "StatusReporter", "setup_logging"]
