"""Transport layer for the NXT link."""

from .base import Transport
from .usb import UsbTransport

__all__ = ["Transport", "UsbTransport"]
