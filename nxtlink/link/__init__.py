"""Link layers for the NXT packet protocol.

This package provides, bottom-up:
- Raw chunked I/O with partial-transfer accounting (raw_read, raw_write)
- Fixed-capacity buffered byte stream (BufferedStream)
- Length-prefixed framing (send_frame, receive_frame)
- Session lifecycle with packet mode handshake and two-sided shutdown (Session)
"""

from .raw_io import raw_read, raw_write
from .buffer import InputBuffer, OutputBuffer
from .stream import BufferedStream, BUFFER_SIZE
from .framing import EXIT_FRAME, MAX_PAYLOAD, receive_frame, send_frame
from .session import PACKET_MODE_REPLY, PACKET_MODE_REQUEST, Session, SessionState

__all__ = [
    # Raw I/O
    'raw_read',
    'raw_write',

    # Stream
    'InputBuffer',
    'OutputBuffer',
    'BufferedStream',
    'BUFFER_SIZE',

    # Framing
    'EXIT_FRAME',
    'MAX_PAYLOAD',
    'receive_frame',
    'send_frame',

    # Session
    'PACKET_MODE_REPLY',
    'PACKET_MODE_REQUEST',
    'Session',
    'SessionState',
]
