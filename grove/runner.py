"""Execution context: suite registration and the per-leaf deadline protocol."""

import asyncio
import inspect
import logging
import threading
import time
import weakref
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, Literal

from grove.assertion import Assertion
from grove.config import RunnerConfig, format_duration, parse_duration
from grove.filter import matches
from grove.host import Host
from grove.reporting.base import Reporter
from grove.reporting.logging_reporter import LoggingReporter
from grove.stack import resolve_stack, stack_from_traceback
from grove.tree import Describe, Hook, It, Xit
from grove.truthiness import to_bool

log = logging.getLogger(__name__)

Body = Callable[[], Any]
Done = Callable[..., None]
HandlerKind = Literal["plain", "done", "coroutine"]


class SuiteDefinitionError(Exception):
    """Raised when a suite is declared or driven outside its valid scope."""


class Unwind(BaseException):
    """Raised on a worker thread to stop a test body after a fatal failure."""


def handler_kind(handler: Callable[..., Any]) -> HandlerKind:
    """Classify a test handler by its shape.

    Raises:
        SuiteDefinitionError: If the handler takes more than a done callback

    """
    try:
        signature = inspect.signature(handler)
    except (TypeError, ValueError):
        return "plain"

    required = [
        param
        for param in signature.parameters.values()
        if param.default is param.empty
        and param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD)
    ]

    if inspect.iscoroutinefunction(handler):
        if required:
            raise SuiteDefinitionError(
                f"Coroutine handler {handler!r} must not take arguments"
            )
        return "coroutine"
    if not required:
        return "plain"
    if len(required) == 1:
        return "done"
    raise SuiteDefinitionError(
        f"Handler {handler!r} must take no arguments or a single done callback"
    )


class LeafRun:
    """Execution window of one leaf.

    Holds the completion signal and the deadline the controlling thread
    races against. A fresh instance is created for every leaf, so a worker
    abandoned after a timeout can only ever touch its own run.
    """

    def __init__(self, leaf: It, handler: Callable[..., Any], timeout: float) -> None:
        self.leaf = leaf
        self.handler = handler
        self.kind = handler_kind(handler)
        self.timeout = timeout
        # guarded by Grove._mutex
        self.timed_out = False
        self.closed = False
        self._condition = threading.Condition()
        self._completed = False
        self._detached = False
        self._deadline = time.monotonic() + timeout
        self._preexisting = frozenset(threading.enumerate())

    def spawned_threads(self) -> list[threading.Thread]:
        """Threads alive now that were started after this run began."""
        return [
            thread
            for thread in threading.enumerate()
            if thread not in self._preexisting
        ]

    def rearm(self, timeout: float) -> None:
        with self._condition:
            self.timeout = timeout
            self._deadline = time.monotonic() + timeout
            self._condition.notify_all()

    def complete(self) -> None:
        with self._condition:
            if self._detached:
                return
            self._completed = True
            self._condition.notify_all()

    def detach(self) -> None:
        with self._condition:
            self._detached = True

    def wait(self) -> bool:
        """Block until completion (True) or the deadline (False)."""
        with self._condition:
            while not self._completed:
                remaining = self._deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._condition.wait(remaining)
            return True

    def remaining(self) -> float:
        with self._condition:
            return max(0.0, self._deadline - time.monotonic())


class Grove:
    """Registers nested suites and runs them leaf by leaf.

    One instance drives one suite tree. Registration happens synchronously
    on the caller's thread; every leaf body then runs on its own worker
    thread while the caller waits for completion or the leaf's deadline.
    """

    def __init__(
        self,
        host: Host,
        config: RunnerConfig | None = None,
        reporter: Reporter | None = None,
    ) -> None:
        self.host = host
        self.config = config or RunnerConfig()
        self.reporter = reporter or LoggingReporter(tty=self.config.tty)
        self._scope: Describe | None = None
        self._current: LeafRun | None = None
        self._mutex = threading.Lock()
        self._local = threading.local()
        # threads left behind by leaves that timed out, guarded by _mutex
        self._orphans: weakref.WeakKeyDictionary[threading.Thread, LeafRun] = (
            weakref.WeakKeyDictionary()
        )

    def set_reporter(self, reporter: Reporter) -> None:
        self.reporter = reporter

    # Registration

    def describe(
        self, name: str, body: Body | None = None
    ) -> Callable[[Body], Body] | None:
        """Register a group and run its body to collect children.

        Without a body, returns a decorator that registers the decorated
        function as the body. The outermost group runs its tree as soon as
        registration finishes.
        """
        if body is None:

            def decorator(func: Body) -> Body:
                self.describe(name, func)
                return func

            return decorator

        parent = self._scope
        node = Describe(name, parent)

        self._scope = node
        try:
            body()
        finally:
            self._scope = parent

        if parent is None and node.has_tests:
            self._run_root(node)
        return None

    def it(self, name: str, handler: Callable[..., Any] | None = None) -> None:
        """Register a test; without a handler it is reported as pending."""
        if not matches(self.config.run, name):
            log.debug("Test %r does not match filter, not registering", name)
            return

        scope = self._require_scope(f'it("{name}")')
        if scope.skipping:
            self.xit(name, handler)
            return

        if handler is not None:
            handler_kind(handler)

        leaf = It(name, scope, handler, origin=resolve_stack(limit=1))
        scope.mark_has_tests()
        if handler is not None:
            scope.mark_has_runnable_tests()
        scope.children.append(leaf)

    def xit(self, name: str, handler: Callable[..., Any] | None = None) -> None:
        """Register an excluded test; the handler is kept but never called."""
        if not matches(self.config.run, name):
            log.debug("Test %r does not match filter, not registering", name)
            return

        scope = self._require_scope(f'xit("{name}")')
        scope.mark_has_tests()
        scope.children.append(Xit(name, scope, handler))

    def skip(self, *args: Any) -> None:
        """Skip the rest of the current group, or exclude a single test.

        With no arguments every test declared after this call in the same
        body is excluded. Otherwise behaves as ``xit(args[0], args[1])``.
        """
        scope = self._require_scope(f"skip{args!r}")
        if not args:
            scope.skipping = True
            return

        handler = args[1] if len(args) > 1 else None
        self.xit(str(args[0]), handler)

    def resume(self) -> None:
        """Stop skipping tests declared after this call."""
        self._require_scope("resume()").skipping = False

    def skip_if(self, *conditions: Any) -> None:
        """Skip the rest of the current group if every condition holds."""
        scope = self._require_scope(f"skip_if{conditions!r}")
        if all(to_bool(condition) for condition in conditions):
            scope.skipping = True

    def before(self, hook: Hook) -> None:
        self._require_scope("before()").befores.append(hook)

    def after(self, hook: Hook) -> None:
        self._require_scope("after()").afters.append(hook)

    def before_each(self, hook: Hook) -> None:
        self._require_scope("before_each()").before_each.append(hook)

    def just_before_each(self, hook: Hook) -> None:
        self._require_scope("just_before_each()").just_before_each.append(hook)

    def after_each(self, hook: Hook) -> None:
        self._require_scope("after_each()").after_each.append(hook)

    def _require_scope(self, call: str) -> Describe:
        if self._scope is None:
            raise SuiteDefinitionError(
                f"{call} should be written inside a describe() block."
            )
        return self._scope

    # Execution

    def _run_root(self, node: Describe) -> None:
        log.debug("Running suite %r", node.name)
        self.reporter.begin()
        failed = node.run(self)
        self.reporter.end()

        if failed:
            log.info("Suite %r failed", node.name)
            self.host.fail()

    def run_leaf(self, leaf: It, handler: Callable[..., Any]) -> None:
        """Run one leaf on a worker thread, racing it against its deadline.

        Every leaf starts from the configured timeout; an override set with
        ``timeout()`` only lives on the leaf's own run.
        """
        run = LeafRun(leaf, handler, self.config.timeout)
        self._current = run

        log.debug(
            "Running %r with timeout %s",
            leaf.qualified_name,
            format_duration(run.timeout),
        )
        worker = threading.Thread(
            target=self._work,
            args=(run,),
            name=f"grove-{leaf.name}",
            daemon=True,
        )
        worker.start()

        try:
            if run.wait():
                worker.join(run.remaining())
                if worker.is_alive():
                    log.debug("Worker for %r still running, leaving it", leaf.name)
            else:
                self._time_out(run)
        finally:
            with self._mutex:
                run.closed = True
            self._current = None

    def _time_out(self, run: LeafRun) -> None:
        with self._mutex:
            run.timed_out = True
            for thread in run.spawned_threads():
                self._orphans[thread] = run
        run.detach()

        message = f"Test exceeded {format_duration(run.timeout)}"
        log.warning(
            "%s: %s, abandoning its worker", run.leaf.qualified_name, message
        )
        run.leaf.failed(message, run.leaf.origin)

    @contextmanager
    def _bound(self, run: LeafRun) -> Iterator[None]:
        previous = getattr(self._local, "run", None)
        self._local.run = run
        try:
            yield
        finally:
            self._local.run = previous

    def _work(self, run: LeafRun) -> None:
        leaf = run.leaf
        scope = leaf.parent
        handler = run.handler

        with self._bound(run):
            try:
                scope.run_before_each()
                scope.run_just_before_each()

                if run.kind == "done":
                    done = self._done_callback(run)
                    self._time_track(run, lambda: handler(done))
                    return

                if run.kind == "coroutine":
                    self._time_track(run, lambda: asyncio.run(handler()))
                else:
                    self._time_track(run, handler)

                if self._is_late(run):
                    log.debug(
                        "Skipping after-each of %r, it already finished", leaf.name
                    )
                    return
                scope.run_after_each()
                run.complete()
            except Unwind:
                log.debug("Unwound worker for %r", leaf.qualified_name)
            except Exception as exc:
                self._record_exception(run, exc)

    def _time_track(self, run: LeafRun, call: Callable[[], Any]) -> None:
        started = time.perf_counter()
        try:
            call()
        finally:
            if not self._is_late(run):
                self.reporter.it_took(time.perf_counter() - started)

    def _done_callback(self, run: LeafRun) -> Done:
        calls = 0

        def done(*errors: Any) -> None:
            nonlocal calls
            on_worker = getattr(self._local, "run", None) is run

            errors = tuple(error for error in errors if error is not None)
            if errors:
                message = " ".join(str(error) for error in errors)
                self._error_common(message, fatal=on_worker, run=run)
                return

            calls += 1
            if calls > 1:
                self._error_common(
                    "Done called multiple times", fatal=on_worker, run=run
                )
                return

            if self._is_late(run):
                log.debug("Ignoring done() for %r after it finished", run.leaf.name)
                return
            with self._bound(run):
                run.leaf.parent.run_after_each()
            run.complete()

        return done

    def _record_exception(self, run: LeafRun, exc: Exception) -> None:
        if self._is_late(run):
            log.warning(
                "Dropping exception from %r raised after it finished: %r",
                run.leaf.qualified_name,
                exc,
            )
            return

        message = f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__
        run.leaf.failed(message, stack_from_traceback(exc.__traceback__))
        run.complete()

    def _is_late(self, run: LeafRun) -> bool:
        with self._mutex:
            return run.timed_out or run.closed

    # Failure API

    def _resolve_run(self) -> LeafRun | None:
        """Find the run the calling thread acts for.

        Workers are bound to their own run. A thread started by a leaf that
        timed out stays attached to that leaf, so whatever it reports later
        is dropped. Any other thread acts for the leaf running now.
        """
        bound: LeafRun | None = getattr(self._local, "run", None)
        if bound is not None:
            return bound
        with self._mutex:
            orphaned = self._orphans.get(threading.current_thread())
        return orphaned or self._current

    def _error_common(
        self, message: str, fatal: bool, run: LeafRun | None = None
    ) -> None:
        run = run or self._resolve_run()
        if run is None:
            raise SuiteDefinitionError(
                "Asserts should be written inside an it() block."
            )

        if self._is_late(run):
            log.warning(
                "Dropping failure for %r reported after it finished: %s",
                run.leaf.qualified_name,
                message,
            )
            return

        run.leaf.failed(message, resolve_stack())
        run.complete()

        if fatal:
            with self._mutex:
                timed_out = run.timed_out
            if not timed_out:
                raise Unwind(message)

    def fail(self, error: Any) -> None:
        """Record a failure and stop the current test body."""
        self._error_common(str(error), fatal=True)

    def failf(self, fmt: str, *args: Any) -> None:
        self._error_common(fmt % args if args else fmt, fatal=True)

    def fatalf(self, fmt: str, *args: Any) -> None:
        self._error_common(fmt % args if args else fmt, fatal=True)

    def errorf(self, fmt: str, *args: Any) -> None:
        """Record a failure and let the test body carry on."""
        self._error_common(fmt % args if args else fmt, fatal=False)

    def fail_now(self) -> None:
        self.host.fail_now()

    def helper(self) -> None:
        self.host.helper()

    def timeout(self, timeout: float | str) -> None:
        """Override the current test's timeout and restart its deadline."""
        run = self._resolve_run()
        if run is None:
            raise SuiteDefinitionError(
                "timeout() should be called inside an it() block."
            )

        seconds = parse_duration(timeout)
        if self._is_late(run):
            return
        log.debug("Re-arming %r deadline to %ss", run.leaf.name, seconds)
        run.rearm(seconds)

    def assert_(self, value: Any) -> Assertion:
        """Start an assertion on behalf of the test running right now."""
        run = self._resolve_run()
        if run is None:
            return Assertion(value, fail=self.fail)

        def fail(error: Any) -> None:
            self._error_common(str(error), fatal=True, run=run)

        return Assertion(value, fail=fail)
