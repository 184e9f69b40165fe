"""Raw I/O over the transport's chunk primitives.

A single chunk call may move part of the request, time out after moving
data, or report device loss. raw_read and raw_write turn a run of chunk
calls into one Transfer, always carrying the exact count of bytes moved.
"""
from __future__ import annotations

import logging
from typing import Optional

from ..models import Outcome, Transfer
from ..transport.base import Transport

logger = logging.getLogger(__name__)

_FATAL = (Outcome.DISCONNECTED, Outcome.IO_ERROR)


def _check_request(transport: Transport, buffer, offset: int, length: int) -> Optional[Transfer]:
    """Shared precondition checks. Returns the early result, or None to proceed."""
    if not transport.is_open:
        return Transfer(Outcome.NOT_OPEN)
    if length < 0 or offset < 0 or offset + length > len(buffer):
        return Transfer(Outcome.ILLEGAL_ARGUMENT)
    if length == 0:
        return Transfer(Outcome.NO_EFFECT)
    return None


def raw_read(
    transport: Transport,
    buffer: bytearray,
    offset: int,
    max_length: int,
    timeout_enabled: bool,
) -> Transfer:
    """Read up to `max_length` bytes into `buffer[offset:]`.

    The read is bounded: it ends with SUCCESS as soon as a chunk completes
    with data, or when `max_length` bytes have arrived.

    With the timeout flag disabled, a chunk that times out without data is
    treated as "nothing yet" and retried. With it enabled, the same chunk
    ends the read with TIMEOUT.

    A chunk that times out after moving data keeps the read going. The
    first empty timeout after it is retried; a second one concludes the
    read with the partial count, as TIMEOUT when the flag is enabled and as
    a completed SUCCESS when it is disabled.

    Returns:
        Transfer with SUCCESS, NO_EFFECT, TIMEOUT, DISCONNECTED, IO_ERROR,
        NOT_OPEN or ILLEGAL_ARGUMENT, and the bytes stored
    """
    early = _check_request(transport, buffer, offset, max_length)
    if early is not None:
        return early

    total = 0
    straddling = False
    grace_used = False
    while True:
        chunk = transport.chunk_read(buffer, offset + total, max_length - total, timeout_enabled)
        total += chunk.transferred
        logger.debug(f"chunk read: {chunk.outcome.name} +{chunk.transferred} (total {total})")

        if chunk.outcome in _FATAL:
            return Transfer(chunk.outcome, total)

        if total >= max_length:
            return Transfer(Outcome.SUCCESS, total)

        if chunk.outcome is Outcome.TIMEOUT:
            if chunk.transferred > 0:
                # Timed out mid-transfer: the message straddles a device-side
                # buffering boundary, so the rest is expected to follow.
                straddling = True
                grace_used = False
                continue
            if straddling:
                # One spurious empty timeout after partial progress is
                # absorbed; a second ends the transfer with what we have.
                # Only a bounded wait reports that as TIMEOUT.
                if not grace_used:
                    grace_used = True
                    continue
                if not timeout_enabled:
                    return Transfer(Outcome.SUCCESS, total)
                return Transfer(Outcome.TIMEOUT, total)
            if not timeout_enabled:
                continue
            return Transfer(Outcome.TIMEOUT, total)

        if chunk.outcome is not Outcome.SUCCESS:
            logger.error(f"Unexpected chunk read outcome {chunk.outcome.name}")
            return Transfer(Outcome.IO_ERROR, total)

        if chunk.transferred == 0 and not timeout_enabled and not straddling:
            continue

        return Transfer(Outcome.SUCCESS, total)


def raw_write(
    transport: Transport,
    buffer: bytes,
    offset: int,
    length: int,
    timeout_enabled: bool,
) -> Transfer:
    """Write `buffer[offset:offset + length]`, accumulating partial chunks.

    With the timeout flag enabled, a chunk timeout stops the write and the
    partial count is reported. With it disabled, timeouts are retried until
    everything is written or an error occurs.
    """
    early = _check_request(transport, buffer, offset, length)
    if early is not None:
        return early

    total = 0
    while total < length:
        chunk = transport.chunk_write(buffer, offset + total, length - total, timeout_enabled)
        total += chunk.transferred
        logger.debug(f"chunk write: {chunk.outcome.name} +{chunk.transferred} (total {total})")

        if chunk.outcome in _FATAL:
            return Transfer(chunk.outcome, total)

        if chunk.outcome is Outcome.TIMEOUT:
            if timeout_enabled:
                return Transfer(Outcome.TIMEOUT, total)
            continue

        if chunk.outcome is not Outcome.SUCCESS:
            logger.error(f"Unexpected chunk write outcome {chunk.outcome.name}")
            return Transfer(Outcome.IO_ERROR, total)

        if chunk.transferred == 0 and timeout_enabled:
            # Device accepted nothing; do not spin on a bounded wait.
            return Transfer(Outcome.TIMEOUT, total)

    return Transfer(Outcome.SUCCESS, total)
