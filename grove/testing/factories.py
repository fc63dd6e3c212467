"""Test factories for generating reporter records."""

from polyfactory.factories import DataclassFactory
from polyfactory.factories.pydantic_factory import ModelFactory

from grove.models.failure import Failure
from grove.models.result import TestResult


class FailureFactory(ModelFactory[Failure]):
    """Factory for Failure."""

    stack = ("tests/test_suite.py:12",)


class TestResultFactory(DataclassFactory[TestResult]):
    """Factory for TestResult."""

    __model__ = TestResult

    duration = None
    failure = None
