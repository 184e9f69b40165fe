"""Abstract base class for the transport collaborator.

The Transport interface hides the concrete bus behind two chunk primitives.
A chunk call may move fewer bytes than requested, may time out after moving
some data, and may report that the device went away. Transports never raise
for those conditions; they classify them into a Transfer.
"""
from __future__ import annotations

from abc import ABC, abstractmethod

from ..models import Outcome, SessionError, Transfer


class Transport(ABC):
    """Abstract transport to a single attached device.

    Transports are responsible for:
    1. Discovering and claiming the device
    2. Moving raw chunks of bytes in each direction
    3. Releasing the device

    Transports do NOT retry, buffer or frame. Those concerns live in the
    link layers built on top.
    """

    @abstractmethod
    def open(self) -> Outcome:
        """Discover the device and claim it.

        Returns:
            SUCCESS, NO_EFFECT if already open, DEVICE_NOT_VISIBLE,
            DISCONNECTED or DEPENDENT_ERROR
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the device.

        Should be safe to call multiple times.
        """
        pass

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """True while a device handle is held."""
        pass

    @abstractmethod
    def chunk_read(
        self,
        buffer: bytearray,
        offset: int,
        max_length: int,
        timeout_enabled: bool,
    ) -> Transfer:
        """Read at most `max_length` bytes into `buffer[offset:]`.

        Returns:
            Transfer with SUCCESS, TIMEOUT, DISCONNECTED or IO_ERROR and the
            number of bytes stored
        """
        pass

    @abstractmethod
    def chunk_write(
        self,
        buffer: bytes,
        offset: int,
        length: int,
        timeout_enabled: bool,
    ) -> Transfer:
        """Write `buffer[offset:offset + length]`.

        Returns:
            Transfer with SUCCESS, TIMEOUT, DISCONNECTED or IO_ERROR and the
            number of bytes sent
        """
        pass

    def __enter__(self) -> Transport:
        """Context manager support - open on enter.

        Raises:
            SessionError: The device could not be opened
        """
        outcome = self.open()
        if outcome.is_error:
            raise SessionError(outcome, f"Could not open transport: {outcome.message}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager support - close on exit."""
        self.close()
