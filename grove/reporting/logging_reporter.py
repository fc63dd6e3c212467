"""Reporter writing suite progress and a summary to a logger."""

import dataclasses
import logging
import threading
import time
from collections import Counter
from collections.abc import Mapping

from grove.models.failure import Failure
from grove.models.result import Status, TestResult
from grove.reporting.base import Reporter

STATUS_SYMBOLS: Mapping[str, str] = {
    "passed": "✓",
    "failed": "✗",
    "pending": "-",
    "excluded": "○",
}


class LoggingReporter(Reporter):
    """Logs one line per group and leaf, then a summary at the end.

    With ``tty`` enabled each leaf is prefixed with a status symbol,
    otherwise with the status word. Results are kept in ``results`` for the
    caller to inspect once the run has ended.
    """

    def __init__(self, tty: bool = True, logger: logging.Logger | None = None) -> None:
        self.tty = tty
        self.log = logger or logging.getLogger("grove.report")
        self.results: list[TestResult] = []
        self._depth = 0
        self._duration: float | None = None
        self._started: float | None = None
        self._lock = threading.Lock()

    def begin(self) -> None:
        self._started = time.perf_counter()

    def end(self) -> None:
        elapsed = time.perf_counter() - self._started if self._started else 0.0
        self.log_summary(elapsed)

    def begin_describe(self, name: str) -> None:
        self.log.info("%s%s", self._indent(), name)
        self._depth += 1

    def end_describe(self) -> None:
        self._depth -= 1

    def it_passed(self, name: str) -> None:
        self._record(name, "passed")

    def it_failed(self, name: str) -> None:
        self._record(name, "failed")

    def it_is_pending(self, name: str) -> None:
        self._record(name, "pending", timed=False)

    def it_is_excluded(self, name: str) -> None:
        self._record(name, "excluded", timed=False)

    def it_took(self, duration: float) -> None:
        with self._lock:
            self._duration = duration

    def failure(self, failure: Failure) -> None:
        with self._lock:
            if self.results and self.results[-1].status == "failed":
                self.results[-1] = dataclasses.replace(self.results[-1], failure=failure)

    def log_summary(self, elapsed: float) -> None:
        """Log pass/fail counts and the details of every failure."""
        counts = Counter(result.status for result in self.results)

        self.log.info("=" * 80)
        self.log.info(
            "%d tests complete (%.3fs): %d passed, %d failed, %d pending, %d excluded",
            len(self.results),
            elapsed,
            counts["passed"],
            counts["failed"],
            counts["pending"],
            counts["excluded"],
        )

        failures = [result.failure for result in self.results if result.failure]
        for number, failure in enumerate(failures, start=1):
            self.log.info("%d) %s:", number, failure.test_name)
            self.log.info("   %s", failure.message)
            for frame in failure.stack:
                self.log.info("     %s", frame)

    def _record(self, name: str, status: Status, timed: bool = True) -> None:
        with self._lock:
            duration = self._duration if timed else None
            self._duration = None
            self.results.append(
                TestResult(name=name, status=status, duration=duration)
            )

        label = STATUS_SYMBOLS[status] if self.tty else status.upper()
        if duration is None:
            self.log.info("%s%s %s", self._indent(), label, name)
        else:
            self.log.info("%s%s %s (%.3fs)", self._indent(), label, name, duration)

    def _indent(self) -> str:
        return "  " * self._depth
