"""Truthiness coercion used by ``skip_if`` conditions."""

import inspect
from collections.abc import Callable
from numbers import Real
from typing import Any


def to_bool(value: Any) -> bool:
    """Coerce a skip condition to a boolean.

    Recognised kinds:

    * ``bool`` is returned as is
    * real numbers are true when non-zero
    * ``str`` and byte sequences are true when non-empty
    * zero-argument predicates are called, true only if they return ``True``
    * objects defining their own ``__str__`` are true when it renders non-empty

    Anything else, ``None``, classes and callables expecting arguments
    included, is false.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, Real):
        return value != 0
    if isinstance(value, str):
        return value != ""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return len(value) > 0
    if isinstance(value, type):
        return False
    if callable(value):
        return _is_predicate(value) and value() is True
    if value is not None and type(value).__str__ is not object.__str__:
        return str(value) != ""
    return False


def _is_predicate(func: Callable[..., Any]) -> bool:
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        return False
    return all(
        parameter.default is not inspect.Parameter.empty
        or parameter.kind
        in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
        for parameter in signature.parameters.values()
    )
