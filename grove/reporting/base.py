"""Abstract reporter receiving suite lifecycle events."""

from abc import ABC, abstractmethod

from grove.models.failure import Failure


class Reporter(ABC):
    """Receives lifecycle events in execution order.

    The engine makes no formatting decisions; everything a human sees is
    up to the reporter.
    """

    @abstractmethod
    def begin(self) -> None:
        """Start of a root suite run."""

    @abstractmethod
    def end(self) -> None:
        """End of a root suite run."""

    @abstractmethod
    def begin_describe(self, name: str) -> None:
        """A group with tests starts running."""

    @abstractmethod
    def end_describe(self) -> None:
        """The most recently started group finished."""

    @abstractmethod
    def it_passed(self, name: str) -> None: ...

    @abstractmethod
    def it_failed(self, name: str) -> None: ...

    @abstractmethod
    def it_is_pending(self, name: str) -> None: ...

    @abstractmethod
    def it_is_excluded(self, name: str) -> None: ...

    @abstractmethod
    def it_took(self, duration: float) -> None:
        """Time spent in the body of the leaf about to be reported (s)."""

    @abstractmethod
    def failure(self, failure: Failure) -> None:
        """Details of the leaf just reported as failed."""
