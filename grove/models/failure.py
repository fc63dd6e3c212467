"""Failure record captured when a leaf fails."""

from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict, Field


class Failure(BaseModel):
    """Message, resolved call stack and qualified name of a failed leaf.

    Frozen, since the same record is handed to every reporter.
    """

    model_config = ConfigDict(frozen=True)

    stack: Sequence[str] = Field(
        default=(), description="Resolved frames, outermost caller first"
    )
    message: str = Field(..., description="Human readable failure message")
    test_name: str = Field(..., description="Parent group name and leaf name")
