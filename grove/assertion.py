"""Assertions that report through the failure API of the running test."""

from collections.abc import Callable
from typing import Any


class Assertion:
    """Comparisons against a source value.

    A failed comparison calls ``fail`` with a message, which stops the
    running test body.
    """

    def __init__(self, src: Any, fail: Callable[[Any], None]) -> None:
        self.src = src
        self.fail = fail

    def equal(self, dst: Any, message: str | None = None) -> None:
        if self.src != dst:
            self._fail(f"{self.src!r} does not equal {dst!r}", message)

    eql = equal

    def not_equal(self, dst: Any, message: str | None = None) -> None:
        if self.src == dst:
            self._fail(f"{self.src!r} is equal to {dst!r}", message)

    def is_true(self, message: str | None = None) -> None:
        if self.src is not True:
            self._fail(f"{self.src!r} expected to be true", message)

    def is_false(self, message: str | None = None) -> None:
        if self.src is not False:
            self._fail(f"{self.src!r} expected to be false", message)

    def is_none(self, message: str | None = None) -> None:
        if self.src is not None:
            self._fail(f"{self.src!r} expected to be None", message)

    def is_not_none(self, message: str | None = None) -> None:
        if self.src is None:
            self._fail("None expected not to be None", message)

    def _fail(self, description: str, message: str | None) -> None:
        self.fail(f"{description}, {message}" if message else description)
