"""pytest integration: a host that fails the pytest test and a ``grove`` fixture."""

import pytest

from grove.config import RunnerConfig
from grove.host import Host
from grove.reporting.logging_reporter import LoggingReporter
from grove.runner import Grove


class PytestHost(Host):
    """Host backed by the currently running pytest test."""

    def fail(self) -> None:
        pytest.fail("grove suite reported failing tests", pytrace=False)

    def fail_now(self) -> None:
        pytest.fail("grove suite aborted", pytrace=False)


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("grove")
    group.addoption(
        "--grove-timeout",
        dest="grove_timeout",
        default=None,
        help="Default timeout for grove tests (e.g. 5s, 250ms)",
    )
    group.addoption(
        "--grove-no-tty",
        dest="grove_tty",
        action="store_false",
        default=True,
        help="Report grove results with plain words instead of symbols",
    )
    group.addoption(
        "--grove-run",
        dest="grove_run",
        default=None,
        help="Only register grove tests whose name matches this regex",
    )


@pytest.fixture(scope="session")
def grove_config(pytestconfig: pytest.Config) -> RunnerConfig:
    """Runner configuration resolved once from the command line."""
    values = {
        "timeout": pytestconfig.getoption("grove_timeout", default=None),
        "tty": pytestconfig.getoption("grove_tty", default=True),
        "run": pytestconfig.getoption("grove_run", default=None),
    }
    return RunnerConfig.model_validate(
        {key: value for key, value in values.items() if value is not None}
    )


@pytest.fixture
def grove(grove_config: RunnerConfig) -> Grove:
    """A Grove that fails the current pytest test when its suite fails."""
    return Grove(
        PytestHost(),
        config=grove_config,
        reporter=LoggingReporter(tty=grove_config.tty),
    )
