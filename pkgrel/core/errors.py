"""Error records and exit codes.

A release run has exactly two outcomes as far as the shell is concerned:
success (0) or failure (1). The ``kind`` on ``ReleaseError`` only serves
the message printed before exiting.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Literal

__all__ = ["ErrorCode", "ErrorKind", "ReleaseError"]


class ErrorCode(IntEnum):
    """Process exit codes."""

    OK = 0
    FAILURE = 1

    def __str__(self) -> str:
        return self.name.lower()


ErrorKind = Literal[
    "usage",
    "precondition",
    "tool_failed",
    "api_failed",
]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """A fatal problem detected by one of the release steps.

    Attributes:
        kind: Category (bad input, unmet precondition, external tool, remote API).
        message: One-line description shown to the operator.
        hint: Optional follow-up (captured stderr, log file, flag to pass).
    """

    kind: ErrorKind
    message: str
    hint: str | None = None

    def __str__(self) -> str:
        return self.message
