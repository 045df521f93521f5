from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Stable numeric codes reported to the host for rejected transitions."""

    TOKEN_ALREADY_EXISTS = 0


@dataclass
class TransitionError(Exception):
    """Base class for domain errors raised by state transitions."""

    code: ErrorCode
    description: str
    details: Any | None = None

    def __str__(self) -> str:
        return self.description


class TokenAlreadyExists(TransitionError):
    def __init__(self, symbol: str) -> None:
        super().__init__(ErrorCode.TOKEN_ALREADY_EXISTS, "Token already exists", {"symbol": symbol})


@dataclass(frozen=True)
class ExecutionError(Exception):
    """Host-facing rendering of a rejected transition."""

    code: int
    description: str

    @staticmethod
    def from_transition_error(err: TransitionError) -> "ExecutionError":
        return ExecutionError(int(err.code), str(err))

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.code}:{self.description}"
