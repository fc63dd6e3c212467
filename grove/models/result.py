"""Models for leaf outcomes collected by reporters."""

from dataclasses import dataclass
from typing import Literal

from grove.models.failure import Failure

Status = Literal["passed", "failed", "pending", "excluded"]


@dataclass(frozen=True, kw_only=True)
class TestResult:
    """Outcome of a single leaf.

    Contains only what the reporter observed; the group path is known to
    the caller.
    """

    __test__ = False

    name: str
    status: Status
    duration: float | None = None
    failure: Failure | None = None
