"""NXT packet link - length-prefixed messaging with a USB-attached NXT brick."""

from .models import (
    Outcome,
    Transfer,
    Received,
    SessionError,
)
from .transport import Transport, UsbTransport
from .link import BufferedStream, Session, SessionState

__all__ = [
    "Outcome",
    "Transfer",
    "Received",
    "SessionError",
    "Transport",
    "UsbTransport",
    "BufferedStream",
    "Session",
    "SessionState",
]
