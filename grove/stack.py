"""Call stack resolution for failure records."""

import traceback
from collections.abc import Sequence
from pathlib import Path
from types import TracebackType

MAX_FRAMES = 32

PACKAGE_DIR = Path(__file__).resolve().parent


def resolve_stack(limit: int = MAX_FRAMES) -> Sequence[str]:
    """Return the caller's stack as ``file:line`` strings, outermost first.

    Frames that belong to this package are left out so the record points
    at the test code that failed.
    """
    return _format(traceback.extract_stack(), limit)


def stack_from_traceback(tb: TracebackType | None, limit: int = MAX_FRAMES) -> Sequence[str]:
    """Resolve the frames of an exception traceback the same way."""
    return _format(traceback.extract_tb(tb), limit)


def _format(frames: traceback.StackSummary, limit: int) -> Sequence[str]:
    resolved = [
        f"{frame.filename}:{frame.lineno}"
        for frame in frames
        if not _is_internal(frame.filename)
    ]
    return tuple(resolved[-limit:])


def _is_internal(filename: str) -> bool:
    path = Path(filename).resolve()
    if path.parent == PACKAGE_DIR:
        return True
    # threading bootstrap frames carry no useful location
    return path.name == "threading.py"
