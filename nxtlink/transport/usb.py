"""USB bulk transport for the NXT brick.

The brick enumerates as a vendor-specific device with one bulk IN and one
bulk OUT endpoint. This module handles:
- Discovery by VID/PID and claiming the interface
- Draining stale input on open and close
- Single bulk transfers, classified into Transfer outcomes

Note: This is a RAW CHUNK layer. It does not retry, buffer or frame.
"""
from __future__ import annotations

import errno
import logging
from typing import Any, Optional

import usb.core
import usb.util

from ..finder import BackendUnavailableError, DeviceNotFoundError, find_device
from ..models import Outcome, Transfer
from .base import Transport

logger = logging.getLogger(__name__)

VENDOR_LEGO = 0x0694
PRODUCT_NXT = 0x0002

CONFIGURATION = 1
INTERFACE = 0
BULK_READ_EP = 0x82
BULK_WRITE_EP = 0x01
MAX_PACKET_SIZE = 64  # bytes

TRANSFER_TIMEOUT_MS = 20_000
POLL_TIMEOUT_MS = 1_000
DRAIN_TIMEOUT_MS = 1_000

LIBUSB_ERROR_NO_DEVICE = -4


def is_device_loss(error: usb.core.USBError) -> bool:
    """True when pyusb reports that the device is gone."""
    return (
        error.errno == errno.ENODEV
        or getattr(error, "backend_error_code", None) == LIBUSB_ERROR_NO_DEVICE
    )


def classify_error(error: usb.core.USBError) -> Outcome:
    """Map a pyusb transfer exception onto the Outcome taxonomy."""
    if isinstance(error, usb.core.USBTimeoutError):
        return Outcome.TIMEOUT
    if is_device_loss(error):
        return Outcome.DISCONNECTED
    return Outcome.IO_ERROR


class UsbTransport(Transport):
    """Bulk-transfer transport to one NXT brick via pyusb.

    Example:
        >>> transport = UsbTransport()
        >>> transport.open()
        <Outcome.SUCCESS: 0>
        >>> buf = bytearray(64)
        >>> transport.chunk_read(buf, 0, 64, timeout_enabled=True)
        Transfer(outcome=<Outcome.TIMEOUT: -1>, transferred=0)
        >>> transport.close()
    """

    def __init__(self,
                 vendor_id: int = VENDOR_LEGO,
                 product_id: int = PRODUCT_NXT,
                 configuration: int = CONFIGURATION,
                 interface: int = INTERFACE,
                 read_endpoint: int = BULK_READ_EP,
                 write_endpoint: int = BULK_WRITE_EP,
                 max_packet_size: int = MAX_PACKET_SIZE,
                 timeout_ms: int = TRANSFER_TIMEOUT_MS,
                 poll_ms: int = POLL_TIMEOUT_MS,
                 drain_timeout_ms: int = DRAIN_TIMEOUT_MS):
        """Initialize the transport. Nothing is touched until open().

        Args:
            vendor_id: USB vendor ID to match
            product_id: USB product ID to match
            configuration: bConfigurationValue to select
            interface: bInterfaceNumber to claim
            read_endpoint: Bulk IN endpoint address
            write_endpoint: Bulk OUT endpoint address
            max_packet_size: Largest bulk packet the device moves at once
            timeout_ms: Per-transfer timeout while the timeout flag is enabled
            poll_ms: Per-transfer timeout while the flag is disabled; the
                caller keeps retrying so this only bounds each wait
            drain_timeout_ms: Timeout for the reads that discard stale input
        """
        self._vendor_id = vendor_id
        self._product_id = product_id
        self._configuration = configuration
        self._interface = interface
        self._read_endpoint = read_endpoint
        self._write_endpoint = write_endpoint
        self._max_packet_size = max_packet_size
        self._timeout_ms = timeout_ms
        self._poll_ms = poll_ms
        self._drain_timeout_ms = drain_timeout_ms

        self._device: Optional[Any] = None

    @property
    def is_open(self) -> bool:
        return self._device is not None

    def open(self) -> Outcome:
        """Find the brick, select its configuration and claim the interface."""
        if self._device is not None:
            logger.warning("Already open")
            return Outcome.NO_EFFECT

        try:
            info = find_device(expected_vid=self._vendor_id, expected_pid=self._product_id)
        except DeviceNotFoundError as e:
            logger.error(f"Device {self._vendor_id:04x}:{self._product_id:04x} not found: {e}")
            return Outcome.DEVICE_NOT_VISIBLE
        except BackendUnavailableError as e:
            logger.error(f"USB backend unavailable: {e}")
            return Outcome.DEPENDENT_ERROR
        except usb.core.USBError as e:
            logger.error(f"Error enumerating USB devices: {e}")
            return Outcome.DEPENDENT_ERROR

        dev = info.device
        try:
            self._detach_kernel_driver(dev)
            dev.set_configuration(self._configuration)
            usb.util.claim_interface(dev, self._interface)
        except usb.core.USBError as e:
            logger.error(f"Failed to claim device {info.device_id}: {e}")
            usb.util.dispose_resources(dev)
            return Outcome.DISCONNECTED if is_device_loss(e) else Outcome.DEPENDENT_ERROR

        self._device = dev
        discarded = self._drain()
        if discarded:
            logger.debug(f"Discarded {discarded} stale bytes on open")

        logger.info(f"Opened device {info.device_id}")
        return Outcome.SUCCESS

    def close(self) -> None:
        """Discard pending input and release the interface and handle."""
        if self._device is None:
            return

        dev = self._device
        self._device = None

        discarded = self._drain(dev)
        if discarded:
            logger.debug(f"Discarded {discarded} unread bytes on close")

        try:
            usb.util.release_interface(dev, self._interface)
        except usb.core.USBError as e:
            logger.warning(f"Error releasing interface: {e}")
        finally:
            usb.util.dispose_resources(dev)

        logger.info("Closed device")

    def chunk_read(
        self,
        buffer: bytearray,
        offset: int,
        max_length: int,
        timeout_enabled: bool,
    ) -> Transfer:
        if self._device is None:
            return Transfer(Outcome.NOT_OPEN)

        timeout = self._timeout_ms if timeout_enabled else self._poll_ms
        try:
            data = self._device.read(self._read_endpoint, max_length, timeout)
        except usb.core.USBError as e:
            outcome = classify_error(e)
            if outcome is not Outcome.TIMEOUT:
                logger.error(f"Bulk read failed: {e}")
            return Transfer(outcome)

        count = len(data)
        buffer[offset:offset + count] = bytes(data)
        return Transfer(Outcome.SUCCESS, count)

    def chunk_write(
        self,
        buffer: bytes,
        offset: int,
        length: int,
        timeout_enabled: bool,
    ) -> Transfer:
        if self._device is None:
            return Transfer(Outcome.NOT_OPEN)

        timeout = self._timeout_ms if timeout_enabled else self._poll_ms
        try:
            written = self._device.write(
                self._write_endpoint, bytes(buffer[offset:offset + length]), timeout)
        except usb.core.USBError as e:
            outcome = classify_error(e)
            if outcome is not Outcome.TIMEOUT:
                logger.error(f"Bulk write failed: {e}")
            return Transfer(outcome)

        return Transfer(Outcome.SUCCESS, written)

    # Internal methods

    def _detach_kernel_driver(self, dev) -> None:
        """Detach a kernel driver bound to our interface, where the OS allows it."""
        try:
            if dev.is_kernel_driver_active(self._interface):
                dev.detach_kernel_driver(self._interface)
        except NotImplementedError:
            # Backend has no notion of kernel drivers (e.g. Windows).
            pass

    def _drain(self, dev=None) -> int:
        """Read and discard whatever the device has queued.

        Stops at the first empty read or error. Returns bytes discarded.
        """
        dev = dev if dev is not None else self._device
        discarded = 0
        while True:
            try:
                data = dev.read(self._read_endpoint, self._max_packet_size, self._drain_timeout_ms)
            except usb.core.USBError:
                break
            if len(data) == 0:
                break
            discarded += len(data)
        return discarded
