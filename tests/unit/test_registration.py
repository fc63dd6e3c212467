"""Tests for suite registration: groups, tests, skipping and filtering."""

from unittest.mock import Mock

import pytest

from grove.config import RunnerConfig
from grove.runner import Grove, SuiteDefinitionError, handler_kind
from grove.testing.events import reporter_events


def noop() -> None:
    """Test body that always passes."""


def test_runs_outermost_group_after_registration(
    g: Grove, reporter_mock: Mock, host_mock: Mock
) -> None:
    """Executes the tree once the outermost describe returns."""

    def suite() -> None:
        g.it("adds", noop)

    g.describe("Math", suite)

    assert reporter_events(reporter_mock) == [
        ("begin", ()),
        ("begin_describe", ("Math",)),
        ("it_passed", ("adds",)),
        ("end_describe", ()),
        ("end", ()),
    ]
    host_mock.fail.assert_not_called()


def test_describe_as_decorator(g: Grove, reporter_mock: Mock) -> None:
    """Registers the decorated function as the group body."""

    @g.describe("Math")
    def math() -> None:
        g.it("adds", noop)

    assert ("it_passed", ("adds",)) in reporter_events(reporter_mock)


def test_group_without_tests_is_silent(
    g: Grove, reporter_mock: Mock, host_mock: Mock
) -> None:
    """Emits no events when nothing was registered."""
    before = Mock()

    def suite() -> None:
        g.before(before)
        g.describe("nested", lambda: None)

    g.describe("Empty", suite)

    assert reporter_mock.mock_calls == []
    before.assert_not_called()
    host_mock.fail.assert_not_called()


def test_nested_empty_group_is_silent(g: Grove, reporter_mock: Mock) -> None:
    """Leaves empty child groups out of the report."""

    def suite() -> None:
        g.describe("empty", lambda: None)
        g.it("adds", noop)

    g.describe("Math", suite)

    assert ("begin_describe", ("empty",)) not in reporter_events(reporter_mock)


def test_pending_test_without_handler(g: Grove, reporter_mock: Mock) -> None:
    """Reports tests declared without a handler as pending."""
    g.describe("Math", lambda: g.it("divides"))

    assert ("it_is_pending", ("divides",)) in reporter_events(reporter_mock)


def test_xit_is_excluded_and_never_called(g: Grove, reporter_mock: Mock) -> None:
    """Reports excluded tests without invoking their handler."""
    handler = Mock()

    g.describe("Math", lambda: g.xit("subtracts", handler))

    assert ("it_is_excluded", ("subtracts",)) in reporter_events(reporter_mock)
    handler.assert_not_called()


class TestMisuse:
    """Tests for declarations made outside a group."""

    def test_it_outside_describe(self, g: Grove) -> None:
        """Raises when a test is declared outside any group."""
        with pytest.raises(SuiteDefinitionError, match="inside a describe"):
            g.it("orphan", noop)

    def test_xit_outside_describe(self, g: Grove) -> None:
        """Raises when an excluded test is declared outside any group."""
        with pytest.raises(SuiteDefinitionError):
            g.xit("orphan")

    @pytest.mark.parametrize(
        "method",
        ["before", "after", "before_each", "just_before_each", "after_each"],
    )
    def test_hooks_outside_describe(self, g: Grove, method: str) -> None:
        """Raises when a hook is registered outside any group."""
        with pytest.raises(SuiteDefinitionError):
            getattr(g, method)(noop)

    @pytest.mark.parametrize("method", ["skip", "resume", "skip_if"])
    def test_skipping_outside_describe(self, g: Grove, method: str) -> None:
        """Raises when skipping is toggled outside any group."""
        with pytest.raises(SuiteDefinitionError):
            getattr(g, method)()

    def test_fail_outside_it(self, g: Grove) -> None:
        """Raises when a failure is reported outside a running test."""
        with pytest.raises(SuiteDefinitionError, match="inside an it"):
            g.fail("nowhere")

    def test_timeout_outside_it(self, g: Grove) -> None:
        """Raises when a timeout is set outside a running test."""
        with pytest.raises(SuiteDefinitionError):
            g.timeout(1)

    def test_scope_restored_after_error(self, g: Grove) -> None:
        """Leaves no active group behind when a body raises."""

        def suite() -> None:
            raise RuntimeError("broken body")

        with pytest.raises(RuntimeError):
            g.describe("Broken", suite)

        with pytest.raises(SuiteDefinitionError):
            g.it("orphan", noop)

    def test_unsupported_handler_shape(self, g: Grove) -> None:
        """Rejects handlers taking more than a done callback."""

        def handler(first: object, second: object) -> None:
            pass  # pragma: no cover

        with pytest.raises(SuiteDefinitionError, match="single done callback"):
            g.describe("Math", lambda: g.it("adds", handler))


class TestHandlerKind:
    """Tests for handler_kind."""

    def test_plain(self) -> None:
        """Classifies zero-argument callables as plain."""
        assert handler_kind(noop) == "plain"

    def test_done(self) -> None:
        """Classifies single-argument callables as done handlers."""
        assert handler_kind(lambda done: done()) == "done"

    def test_optional_arguments_are_plain(self) -> None:
        """Ignores parameters with defaults."""
        assert handler_kind(lambda retries=3: None) == "plain"

    def test_coroutine(self) -> None:
        """Classifies coroutine functions."""

        async def body() -> None:
            pass  # pragma: no cover

        assert handler_kind(body) == "coroutine"

    def test_coroutine_with_arguments(self) -> None:
        """Rejects coroutine functions expecting a done callback."""

        async def body(done: object) -> None:
            pass  # pragma: no cover

        with pytest.raises(SuiteDefinitionError):
            handler_kind(body)


class TestSkip:
    """Tests for skip, resume and skip_if."""

    def test_skip_excludes_only_later_tests(
        self, g: Grove, reporter_mock: Mock
    ) -> None:
        """Excludes tests declared after skip() and resumes after resume()."""
        skipped = Mock()

        def suite() -> None:
            g.it("before skip", noop)
            g.skip()
            g.it("skipped", skipped)
            g.resume()
            g.it("after resume", noop)

        g.describe("Math", suite)

        assert reporter_events(reporter_mock) == [
            ("begin", ()),
            ("begin_describe", ("Math",)),
            ("it_passed", ("before skip",)),
            ("it_is_excluded", ("skipped",)),
            ("it_passed", ("after resume",)),
            ("end_describe", ()),
            ("end", ()),
        ]
        skipped.assert_not_called()

    def test_skip_with_arguments_is_xit(self, g: Grove, reporter_mock: Mock) -> None:
        """Excludes a single named test when given arguments."""
        handler = Mock()

        def suite() -> None:
            g.skip("flaky", handler)
            g.it("stable", noop)

        g.describe("Math", suite)

        events = reporter_events(reporter_mock)
        assert ("it_is_excluded", ("flaky",)) in events
        assert ("it_passed", ("stable",)) in events
        handler.assert_not_called()

    def test_nested_group_inherits_skipping(
        self, g: Grove, reporter_mock: Mock
    ) -> None:
        """Copies skipping into child groups without sharing later changes."""

        def inner() -> None:
            g.it("inherited", noop)
            g.resume()
            g.it("resumed", noop)

        def outer() -> None:
            g.skip()
            g.describe("inner", inner)
            g.it("still skipped", noop)

        g.describe("outer", outer)

        events = reporter_events(reporter_mock)
        assert ("it_is_excluded", ("inherited",)) in events
        assert ("it_passed", ("resumed",)) in events
        assert ("it_is_excluded", ("still skipped",)) in events

    @pytest.mark.parametrize(
        ("conditions", "skipped"),
        [
            ((True, False), False),
            ((True, True), True),
            (("ci", 1, lambda: True), True),
            ((None,), False),
            ((lambda reason: True,), False),
        ],
    )
    def test_skip_if_requires_every_condition(
        self,
        g: Grove,
        reporter_mock: Mock,
        conditions: tuple[object, ...],
        skipped: bool,
    ) -> None:
        """Skips only when all conditions are truthy."""

        def suite() -> None:
            g.skip_if(*conditions)
            g.it("maybe", noop)

        g.describe("Math", suite)

        expected = "it_is_excluded" if skipped else "it_passed"
        assert (expected, ("maybe",)) in reporter_events(reporter_mock)


class TestFilter:
    """Tests for the configured name filter."""

    @pytest.fixture
    def config(self) -> RunnerConfig:
        """Configuration only registering names starting with Foo."""
        return RunnerConfig(timeout=1.0, run="^Foo")

    def test_registers_only_matching_tests(
        self, g: Grove, reporter_mock: Mock
    ) -> None:
        """Leaves unmatched tests out of the report entirely."""
        handler = Mock()

        def suite() -> None:
            g.it("Foo bar", noop)
            g.it("Baz", handler)
            g.xit("Bazinga")

        g.describe("Suite", suite)

        assert reporter_events(reporter_mock) == [
            ("begin", ()),
            ("begin_describe", ("Suite",)),
            ("it_passed", ("Foo bar",)),
            ("end_describe", ()),
            ("end", ()),
        ]
        handler.assert_not_called()

    def test_nothing_matching_means_no_events(
        self, g: Grove, reporter_mock: Mock
    ) -> None:
        """Runs nothing when every test is filtered out."""
        g.describe("Suite", lambda: g.it("Baz", noop))

        assert reporter_mock.mock_calls == []
