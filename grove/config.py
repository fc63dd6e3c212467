"""Process-wide runner configuration."""

import argparse
import logging
import re
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0

DURATION_RE = re.compile(r"^\s*(?P<value>\d+(?:\.\d+)?)\s*(?P<unit>ms|s|m|h)?\s*$")

UNIT_SECONDS = {
    "ms": 0.001,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(value: str | float | int) -> float:
    """Convert a duration such as ``"250ms"``, ``"5s"`` or ``2`` to seconds.

    Bare numbers are taken as seconds.

    Raises:
        ValueError: If the value is not a recognised duration

    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)

    match = DURATION_RE.match(value)
    if match is None:
        raise ValueError(f"Invalid duration: {value!r}")

    unit = match.group("unit") or "s"
    return float(match.group("value")) * UNIT_SECONDS[unit]


def format_duration(seconds: float) -> str:
    """Render seconds the way timeout messages show them (``5s``, ``1ms``)."""
    if seconds >= 60 and seconds % 60 == 0:
        return f"{int(seconds // 60)}m"
    if seconds >= 1:
        return f"{round(seconds, 6):g}s"
    return f"{round(seconds * 1000, 6):g}ms"


class RunnerConfig(BaseModel):
    """Defaults resolved once before any suite is registered."""

    model_config = ConfigDict(frozen=True)

    timeout: float = Field(
        default=DEFAULT_TIMEOUT, gt=0, description="Default per-test timeout (s)"
    )
    tty: bool = Field(default=True, description="Use symbols in report output")
    run: re.Pattern[str] | None = Field(
        default=None, description="Only register tests whose name matches"
    )

    @field_validator("timeout", mode="before")
    @classmethod
    def _parse_timeout(cls, value: object) -> object:
        if isinstance(value, str):
            return parse_duration(value)
        return value

    @field_validator("run", mode="before")
    @classmethod
    def _empty_run_is_none(cls, value: object) -> object:
        if value == "":
            return None
        return value


def build_parser() -> argparse.ArgumentParser:
    """Build the parser for the ``--grove.*`` flags."""
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument(
        "--grove.timeout",
        dest="timeout",
        default=None,
        help="Sets default timeouts for all tests (e.g. 5s, 250ms)",
    )
    parser.add_argument(
        "--grove.tty",
        dest="tty",
        action="store_true",
        default=None,
        help="Report with status symbols (default)",
    )
    parser.add_argument(
        "--grove.no-tty",
        dest="tty",
        action="store_false",
        default=None,
        help="Report with plain status words",
    )
    parser.add_argument(
        "--grove.run",
        dest="run",
        default=None,
        help="Runs only tests which match the supplied regex",
    )
    return parser


def load_config(argv: Sequence[str] | None = None) -> RunnerConfig:
    """Resolve a RunnerConfig from command line flags.

    Unknown arguments are left alone so the host runner can own them.

    Args:
        argv: Arguments to parse (defaults to ``sys.argv[1:]``)

    Returns:
        Validated, frozen configuration

    Raises:
        pydantic.ValidationError: If a flag value is invalid

    """
    args, _ = build_parser().parse_known_args(argv)
    values = {key: value for key, value in vars(args).items() if value is not None}

    config = RunnerConfig.model_validate(values)
    log.debug(
        "Resolved runner config: timeout=%s, tty=%s, run=%s",
        config.timeout,
        config.tty,
        config.run.pattern if config.run else None,
    )
    return config
