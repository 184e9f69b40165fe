"""Immutable result models shared by every layer of the link.

Errors are values: each operation reports exactly one Outcome, either on its
own or wrapped in a frozen dataclass together with the data it produced.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Outcome(Enum):
    """Closed set of results produced by transport, stream, framing and session calls.

    SUCCESS and NO_EFFECT are non-fatal; every other member aborts the
    calling operation.
    """
    NO_EFFECT = 1
    SUCCESS = 0
    TIMEOUT = -1
    ILLEGAL_ARGUMENT = -2
    DEVICE_NOT_VISIBLE = -3
    DISCONNECTED = -4
    NOT_OPEN = -5
    IO_ERROR = -6
    DEPENDENT_ERROR = -7
    OTHER_ERROR = -8

    @property
    def is_error(self) -> bool:
        """True for every outcome that must abort the caller."""
        return self not in (Outcome.SUCCESS, Outcome.NO_EFFECT)

    @property
    def message(self) -> str:
        """Short human-readable description."""
        return _MESSAGES[self]


_MESSAGES = {
    Outcome.NO_EFFECT: "An operation had no effect",
    Outcome.SUCCESS: "No errors occurred",
    Outcome.TIMEOUT: "An IO operation timed out",
    Outcome.ILLEGAL_ARGUMENT: "Illegal argument supplied to a function",
    Outcome.DEVICE_NOT_VISIBLE: "Device is not physically connected to host",
    Outcome.DISCONNECTED: "Device has become disconnected",
    Outcome.NOT_OPEN: "IO attempt when connection was not open",
    Outcome.IO_ERROR: "An error occurred during an IO operation",
    Outcome.DEPENDENT_ERROR: "Error in dependent library",
    Outcome.OTHER_ERROR: "An error occurred",
}


@dataclass(frozen=True)
class Transfer:
    """Result of a chunked read or write.

    Attributes:
        outcome: How the transfer ended
        transferred: Bytes actually moved, reported on every path including
            TIMEOUT and error outcomes so callers can account for partial
            progress
    """
    outcome: Outcome
    transferred: int = 0


@dataclass(frozen=True)
class Received:
    """Result of receiving one frame.

    Attributes:
        outcome: How the receive ended
        payload: Message bytes, or None for the exit sentinel and on failure
    """
    outcome: Outcome
    payload: Optional[bytes] = None

    @property
    def is_exit(self) -> bool:
        """True when the peer sent the zero-length exit frame."""
        return self.outcome is Outcome.SUCCESS and self.payload is None

    @property
    def length(self) -> int:
        """Payload size in bytes; 0 for the exit sentinel and on failure."""
        return len(self.payload) if self.payload is not None else 0


class SessionError(RuntimeError):
    """Raised by the session entry points that cannot return an Outcome."""

    def __init__(self, outcome: Outcome, message: Optional[str] = None):
        super().__init__(message or outcome.message)
        self.outcome = outcome
