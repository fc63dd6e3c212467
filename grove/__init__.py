"""Behavior-driven test execution engine."""

from grove.assertion import Assertion
from grove.config import RunnerConfig, load_config
from grove.host import Host
from grove.models.failure import Failure
from grove.models.result import TestResult
from grove.reporting import LoggingReporter, Reporter
from grove.runner import Grove, SuiteDefinitionError, Unwind

__all__ = [
    "Assertion",
    "Failure",
    "Grove",
    "Host",
    "LoggingReporter",
    "Reporter",
    "RunnerConfig",
    "SuiteDefinitionError",
    "TestResult",
    "Unwind",
    "load_config",
]
