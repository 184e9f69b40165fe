"""Length-prefixed message framing.

Wire format:
    [length LSB][length MSB][payload ...]

The length is an unsigned little-endian 16-bit integer. Length 0 is reserved
for the exit frame, which carries no payload and asks the peer to shut the
connection down.
"""
from __future__ import annotations

import logging
import struct

from ..models import Outcome, Received
from .stream import BufferedStream

logger = logging.getLogger(__name__)

HEADER = struct.Struct("<H")
MAX_PAYLOAD = 0xFFFF
EXIT_FRAME = HEADER.pack(0)


def send_frame(stream: BufferedStream, payload: bytes) -> Outcome:
    """Queue one framed message and flush it.

    A failure at any byte aborts the call; bytes queued before it stay
    queued. When every byte was queued, the flush outcome is the result.

    Returns:
        ILLEGAL_ARGUMENT for an empty or oversized payload (nothing is
        written), otherwise the first error or the flush outcome
    """
    length = len(payload)
    if length == 0:
        # Zero length on the wire means "exit"; real messages never use it.
        logger.warning("Refusing to send an empty message")
        return Outcome.ILLEGAL_ARGUMENT
    if length > MAX_PAYLOAD:
        logger.warning(f"Refusing to send {length}-byte message (max {MAX_PAYLOAD})")
        return Outcome.ILLEGAL_ARGUMENT

    for value in HEADER.pack(length):
        outcome = stream.write_byte(value)
        if outcome.is_error:
            return outcome

    for value in payload:
        outcome = stream.write_byte(value)
        if outcome.is_error:
            return outcome

    return stream.flush()


def receive_frame(stream: BufferedStream) -> Received:
    """Read one framed message.

    Returns:
        Received with the payload, the exit sentinel (payload None) for a
        zero-length frame, or the failing outcome and no payload
    """
    header = bytearray(HEADER.size)
    for i in range(HEADER.size):
        outcome, value = stream.read_byte()
        if outcome.is_error:
            return Received(outcome)
        header[i] = value

    (length,) = HEADER.unpack(header)
    if length == 0:
        logger.debug("Received exit frame")
        return Received(Outcome.SUCCESS)

    payload = bytearray(length)
    for i in range(length):
        outcome, value = stream.read_byte()
        if outcome.is_error:
            logger.debug(f"Receive aborted after {i} of {length} payload bytes: {outcome.name}")
            return Received(outcome)
        payload[i] = value

    return Received(Outcome.SUCCESS, bytes(payload))
