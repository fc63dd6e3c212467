"""Contract with the host framework that owns the overall run."""

from abc import ABC, abstractmethod


class Host(ABC):
    """Failure and abort primitives provided by the hosting test framework."""

    @abstractmethod
    def fail(self) -> None:
        """Mark the whole run as failed without stopping it."""

    @abstractmethod
    def fail_now(self) -> None:
        """Mark the run as failed and abort the current execution path."""

    def helper(self) -> None:
        """Mark the calling function as a test helper, where supported."""
