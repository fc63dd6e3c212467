"""Group and leaf nodes of a registered suite."""

import logging
import threading
import weakref
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any

from grove.models.failure import Failure

if TYPE_CHECKING:
    from grove.runner import Grove

log = logging.getLogger(__name__)

Hook = Callable[[], Any]


class Runnable(ABC):
    """A child of a group: executes within a context and reports failure."""

    name: str

    @abstractmethod
    def run(self, grove: "Grove") -> bool:
        """Execute and return True if anything failed."""

    def failed(self, message: str, stack: Sequence[str]) -> None:
        """Record a failure; nodes that cannot fail ignore it."""


class Describe(Runnable):
    """A named group of tests with its own hooks.

    The parent link is weak; a group is owned by its parent's children list
    (or by the caller for the root) and only looks upward for hook
    composition, flag propagation and qualified names.
    """

    def __init__(self, name: str, parent: "Describe | None" = None) -> None:
        self.name = name
        self._parent = weakref.ref(parent) if parent is not None else None
        self.children: list[Runnable] = []
        self.befores: list[Hook] = []
        self.afters: list[Hook] = []
        self.before_each: list[Hook] = []
        self.just_before_each: list[Hook] = []
        self.after_each: list[Hook] = []
        self.has_tests = False
        self.has_runnable_tests = False
        self.skipping = parent.skipping if parent is not None else False

        if parent is not None:
            parent.children.append(self)

    @property
    def parent(self) -> "Describe | None":
        return self._parent() if self._parent is not None else None

    def ancestry(self) -> Sequence["Describe"]:
        """Return this group and its ancestors, outermost first."""
        chain: list[Describe] = []
        node: Describe | None = self
        while node is not None:
            chain.append(node)
            node = node.parent
        return chain[::-1]

    def mark_has_tests(self) -> None:
        for node in self.ancestry():
            node.has_tests = True

    def mark_has_runnable_tests(self) -> None:
        for node in self.ancestry():
            node.has_runnable_tests = True

    def run_before_each(self) -> None:
        for node in self.ancestry():
            if node.has_runnable_tests:
                _call_all(node.before_each)

    def run_just_before_each(self) -> None:
        for node in self.ancestry():
            if node.has_runnable_tests:
                _call_all(node.just_before_each)

    def run_after_each(self) -> None:
        for node in reversed(self.ancestry()):
            if node.has_runnable_tests:
                _call_all(node.after_each)

    def run(self, grove: "Grove") -> bool:
        if not self.has_tests:
            return False

        failed = False
        grove.reporter.begin_describe(self.name)

        if self.has_runnable_tests:
            _call_all(self.befores)

        for child in self.children:
            if child.run(grove):
                failed = True

        if self.has_runnable_tests:
            _call_all(self.afters)

        grove.reporter.end_describe()
        return failed


class It(Runnable):
    """A leaf test; a missing handler marks it pending."""

    def __init__(
        self,
        name: str,
        parent: Describe,
        handler: Callable[..., Any] | None = None,
        origin: Sequence[str] = (),
    ) -> None:
        self.name = name
        self._parent = weakref.ref(parent)
        self.handler = handler
        # where the leaf was registered, used when it has no stack of its own
        self.origin = tuple(origin)
        self._failure: Failure | None = None
        self._failure_lock = threading.Lock()

    @property
    def parent(self) -> Describe:
        parent = self._parent()
        if parent is None:  # pragma: no cover
            raise RuntimeError(f"Test {self.name!r} outlived its group")
        return parent

    @property
    def qualified_name(self) -> str:
        return f"{self.parent.name} {self.name}"

    @property
    def failure(self) -> Failure | None:
        with self._failure_lock:
            return self._failure

    def failed(self, message: str, stack: Sequence[str]) -> None:
        failure = Failure(
            stack=tuple(stack), message=message, test_name=self.qualified_name
        )
        with self._failure_lock:
            self._failure = failure

    def run(self, grove: "Grove") -> bool:
        if self.handler is None:
            grove.reporter.it_is_pending(self.name)
            return False

        grove.run_leaf(self, self.handler)

        failure = self.failure
        if failure is not None:
            grove.reporter.it_failed(self.name)
            grove.reporter.failure(failure)
            return True

        grove.reporter.it_passed(self.name)
        return False


class Xit(Runnable):
    """An excluded leaf; it never runs and cannot fail."""

    def __init__(
        self, name: str, parent: Describe, handler: Callable[..., Any] | None = None
    ) -> None:
        self.name = name
        self._parent = weakref.ref(parent)
        self.handler = handler

    @property
    def parent(self) -> Describe | None:
        return self._parent()

    @property
    def failure(self) -> None:
        return None

    def run(self, grove: "Grove") -> bool:
        grove.reporter.it_is_excluded(self.name)
        return False


def _call_all(hooks: Sequence[Hook]) -> None:
    for hook in hooks:
        hook()
