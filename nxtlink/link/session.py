"""Session lifecycle for the packet link.

A Session is one connection to the brick: it owns the transport handle, the
buffered stream and the timeout flag. States are CLOSED and OPEN.

Opening switches the brick into packet mode with a fixed request/reply
handshake. Closing is a best-effort, two-sided shutdown: flush what is
queued, send the exit frame, drain the peer's remaining messages until its
own exit frame arrives, then release the transport no matter what failed.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Iterator, Optional

from ..models import Outcome, Received, SessionError
from ..transport.base import Transport
from ..transport.usb import UsbTransport
from .framing import EXIT_FRAME, receive_frame, send_frame
from .raw_io import raw_read, raw_write
from .stream import BUFFER_SIZE, BufferedStream

logger = logging.getLogger(__name__)

# System command (reply requested) 0x01, "enter packet mode" 0xFF.
PACKET_MODE_REQUEST = bytes([0x01, 0xFF])
PACKET_MODE_REPLY = bytes([0x02, 0xFE, 0xEF])


class SessionState(Enum):
    CLOSED = "closed"
    OPEN = "open"


class Session:
    """Message session with a single attached device.

    Callers serialize access; there is no internal locking.

    Example:
        >>> with Session() as session:
        ...     session.send(bytes([0x00, 0x08]))
        ...     for message in session.messages():
        ...         print(message)
    """

    def __init__(self,
                 transport: Optional[Transport] = None,
                 buffer_size: int = BUFFER_SIZE,
                 timeout_enabled: bool = False):
        """Initialize a closed session.

        Args:
            transport: Transport to the device, or None for a UsbTransport
            buffer_size: Capacity of each stream buffer in bytes
            timeout_enabled: Initial value of the timeout flag
        """
        if transport is None:
            transport = UsbTransport()
        self._transport = transport
        self._buffer_size = buffer_size
        self._timeout_enabled = timeout_enabled
        self._stream: Optional[BufferedStream] = None

    @property
    def state(self) -> SessionState:
        return SessionState.OPEN if self._stream is not None else SessionState.CLOSED

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    @property
    def timeout_enabled(self) -> bool:
        return self._timeout_enabled

    @timeout_enabled.setter
    def timeout_enabled(self, enabled: bool) -> None:
        self._timeout_enabled = bool(enabled)
        if self._stream is not None:
            self._stream.timeout_enabled = self._timeout_enabled

    def set_timeout(self, enabled: bool) -> None:
        """Enable or disable the bounded wait on stream I/O."""
        self.timeout_enabled = enabled

    def open(self) -> Outcome:
        """Open the transport and switch the device into packet mode.

        Returns:
            SUCCESS, NO_EFFECT if already open, OTHER_ERROR if the device
            answered the handshake wrongly, or the transport/raw I/O error.
            On any failure the session is left CLOSED with the transport
            released.
        """
        if self._stream is not None:
            return Outcome.NO_EFFECT

        outcome = self._transport.open()
        if outcome.is_error:
            logger.error(f"Could not open transport: {outcome.message}")
            return outcome

        self._stream = BufferedStream(self._transport, self._buffer_size, self._timeout_enabled)

        outcome = self._handshake()
        if outcome.is_error:
            logger.error(f"Packet mode handshake failed: {outcome.message}")
            self._release()
            return outcome

        logger.info("Session open in packet mode")
        return Outcome.SUCCESS

    def close(self) -> None:
        """Shut the session down; never fails from the caller's view.

        The timeout flag is disabled for the duration and restored after.
        """
        if self._stream is None:
            return

        saved_timeout = self._timeout_enabled
        self.timeout_enabled = False
        try:
            self._shutdown()
        finally:
            self._release()
            self.timeout_enabled = saved_timeout
        logger.info("Session closed")

    def send(self, payload: bytes) -> Outcome:
        """Send one message. Empty payloads are rejected with ILLEGAL_ARGUMENT."""
        if self._stream is None:
            return Outcome.NOT_OPEN
        return send_frame(self._stream, payload)

    def receive(self) -> Received:
        """Receive one message, or the exit sentinel."""
        if self._stream is None:
            return Received(Outcome.NOT_OPEN)
        return receive_frame(self._stream)

    def flush(self) -> Outcome:
        """Transmit anything still queued in the output buffer."""
        if self._stream is None:
            return Outcome.NOT_OPEN
        return self._stream.flush()

    def messages(self) -> Iterator[bytes]:
        """Yield received payloads until the peer sends its exit frame.

        Raises:
            SessionError: A receive failed
        """
        while True:
            received = self.receive()
            if received.outcome.is_error:
                raise SessionError(received.outcome)
            if received.is_exit:
                return
            yield received.payload

    def __enter__(self) -> Session:
        outcome = self.open()
        if outcome.is_error:
            raise SessionError(outcome, f"Could not open session: {outcome.message}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # Internal methods

    def _handshake(self) -> Outcome:
        """Send the packet mode request and check the reply byte for byte."""
        sent = raw_write(self._transport, PACKET_MODE_REQUEST, 0, len(PACKET_MODE_REQUEST), False)
        if sent.outcome.is_error:
            return sent.outcome

        reply = bytearray(self._buffer_size)
        got = raw_read(self._transport, reply, 0, len(reply), False)
        if got.outcome.is_error:
            return got.outcome

        if bytes(reply[:got.transferred]) != PACKET_MODE_REPLY:
            logger.warning(f"Unexpected packet mode reply: {bytes(reply[:got.transferred]).hex()}")
            return Outcome.OTHER_ERROR
        return Outcome.SUCCESS

    def _shutdown(self) -> None:
        """Flush, send the exit frame, then drain until the peer's exit frame."""
        outcome = self._stream.flush()
        if outcome.is_error:
            logger.warning(f"Shutdown: flush failed: {outcome.message}")
            return

        sent = raw_write(self._transport, EXIT_FRAME, 0, len(EXIT_FRAME), False)
        if sent.outcome.is_error:
            logger.warning(f"Shutdown: exit frame not sent: {sent.outcome.message}")
            return

        drained = 0
        while True:
            received = receive_frame(self._stream)
            if received.outcome.is_error:
                logger.warning(f"Shutdown: drain stopped after {drained} messages: "
                               f"{received.outcome.message}")
                return
            if received.is_exit:
                break
            drained += 1

        if drained:
            logger.info(f"Shutdown: discarded {drained} in-flight messages")

    def _release(self) -> None:
        """Close the transport and drop both buffers."""
        self._transport.close()
        self._stream = None
