"""Byte-at-a-time stream over the chunked raw I/O layer.

One input and one output buffer of fixed capacity sit between the framing
layer and the transport. I/O only happens when the input buffer is
exhausted (refill) or the output buffer is full or explicitly flushed, so
the timing of blocking calls is fully determined by those two events.
"""
from __future__ import annotations

import logging
from typing import Optional, Tuple

from ..models import Outcome
from ..transport.base import Transport
from .buffer import InputBuffer, OutputBuffer
from .raw_io import raw_read, raw_write

logger = logging.getLogger(__name__)

BUFFER_SIZE = 512  # bytes, >= the largest single USB chunk


class BufferedStream:
    """Buffered byte stream bound to an open transport.

    Attributes:
        timeout_enabled: Forwarded to every raw read/write; the owning
            session toggles it
    """

    def __init__(self,
                 transport: Transport,
                 capacity: int = BUFFER_SIZE,
                 timeout_enabled: bool = False):
        self._transport = transport
        self._input = InputBuffer(capacity)
        self._output = OutputBuffer(capacity)
        self.timeout_enabled = timeout_enabled

    @property
    def capacity(self) -> int:
        return self._input.capacity

    @property
    def pending_input(self) -> int:
        """Received bytes not yet handed out."""
        return self._input.available

    @property
    def pending_output(self) -> int:
        """Bytes queued but not yet transmitted."""
        return self._output.count

    def read_byte(self) -> Tuple[Outcome, Optional[int]]:
        """Return the next received byte, refilling the input buffer if exhausted.

        Returns:
            (SUCCESS, byte), or (outcome, None) where outcome is TIMEOUT when
            a refill produced no data, or the raw layer's error
        """
        if self._input.exhausted:
            self._input.reset()
            result = raw_read(
                self._transport, self._input.data, 0, self._input.capacity, self.timeout_enabled)
            self._input.fill(result.transferred)
            if result.outcome.is_error and result.outcome is not Outcome.TIMEOUT:
                return result.outcome, None

        if self._input.exhausted:
            return Outcome.TIMEOUT, None
        return Outcome.SUCCESS, self._input.take()

    def write_byte(self, value: int) -> Outcome:
        """Queue one byte, flushing first if the output buffer is full."""
        if not 0 <= value <= 0xFF:
            return Outcome.ILLEGAL_ARGUMENT

        if self._output.full:
            outcome = self.flush()
            if outcome.is_error and outcome is not Outcome.TIMEOUT:
                return outcome

        if self._output.full:
            return Outcome.TIMEOUT
        self._output.append(value)
        return Outcome.SUCCESS

    def flush(self) -> Outcome:
        """Transmit the queued bytes.

        Returns:
            NO_EFFECT if nothing was queued (the transport is not touched),
            otherwise the raw write's outcome. Only the bytes reported as
            sent are dropped from the queue.
        """
        if self._output.empty:
            return Outcome.NO_EFFECT

        result = raw_write(
            self._transport, self._output.data, 0, self._output.count, self.timeout_enabled)
        self._output.consume(result.transferred)
        return result.outcome
