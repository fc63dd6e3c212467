"""Reporters for suite lifecycle events."""

from grove.reporting.base import Reporter
from grove.reporting.logging_reporter import LoggingReporter

__all__ = ["LoggingReporter", "Reporter"]
