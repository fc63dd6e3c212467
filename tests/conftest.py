"""Shared fixtures for grove tests."""

from unittest.mock import Mock

import pytest

from grove.config import RunnerConfig
from grove.host import Host
from grove.reporting.base import Reporter
from grove.runner import Grove


@pytest.fixture
def reporter_mock() -> Mock:
    """Create mock reporter recording every lifecycle event."""
    return Mock(spec=Reporter)


@pytest.fixture
def host_mock() -> Mock:
    """Create mock host framework."""
    return Mock(spec=Host)


@pytest.fixture
def config() -> RunnerConfig:
    """Configuration with a short default timeout."""
    return RunnerConfig(timeout=1.0)


@pytest.fixture
def g(host_mock: Mock, reporter_mock: Mock, config: RunnerConfig) -> Grove:
    """Create a Grove wired to mock collaborators."""
    return Grove(host_mock, config=config, reporter=reporter_mock)
