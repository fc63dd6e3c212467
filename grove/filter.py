"""Name filter applied when tests are registered."""

import re


def matches(pattern: re.Pattern[str] | None, name: str) -> bool:
    """Return True when no pattern is configured or the pattern finds the name."""
    if pattern is None:
        return True
    return pattern.search(name) is not None
