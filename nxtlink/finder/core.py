from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

import usb.core

from .errors import BackendUnavailableError, DeviceNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeviceInfo:
    """
    Representation of one USB device as seen by pyusb.

    Attributes:
        vid: USB Vendor ID.
        pid: USB Product ID.
        bus: Bus number, or None if the backend does not report it.
        address: Device address on the bus, or None if unknown.
        serial_number: USB serial string, if it could be read.
        device: The pyusb Device object used to open the handle.
    """
    vid: int
    pid: int
    bus: Optional[int]
    address: Optional[int]
    serial_number: Optional[str]
    device: Any = field(default=None, compare=False, repr=False)

    @property
    def device_id(self) -> str:
        """
        OS-agnostic identifier for the device.

        Prefer the USB serial_number; fall back to the bus/address pair.
        """
        if self.serial_number:
            return self.serial_number
        return f"{self.bus}:{self.address}"


def _read_serial(dev) -> Optional[str]:
    """Fetch the serial string; needs device access, so failures are expected."""
    try:
        return dev.serial_number
    except (usb.core.USBError, ValueError, NotImplementedError) as e:
        logger.debug(f"Could not read serial number of {dev.idVendor:04x}:{dev.idProduct:04x}: {e}")
        return None


def _device_to_info(dev) -> DeviceInfo:
    """Convert a pyusb Device to DeviceInfo."""
    return DeviceInfo(
        vid=dev.idVendor,
        pid=dev.idProduct,
        bus=getattr(dev, "bus", None),
        address=getattr(dev, "address", None),
        serial_number=_read_serial(dev),
        device=dev,
    )


def is_matching_device(
    info: DeviceInfo,
    *,
    expected_vid: Optional[int] = None,
    expected_pid: Optional[int] = None,
) -> bool:
    """
    Decide whether a given DeviceInfo describes our device.

    All checks are AND-combined; if a criterion is None, it is ignored.
    """
    if expected_vid is not None and info.vid != expected_vid:
        return False

    if expected_pid is not None and info.pid != expected_pid:
        return False

    return True


def find_devices(
    *,
    matcher: Optional[Callable[[DeviceInfo], bool]] = None,
    expected_vid: Optional[int] = None,
    expected_pid: Optional[int] = None,
) -> List[DeviceInfo]:
    """
    Find all matching devices attached to this machine.

    Either pass a custom `matcher(info) -> bool` or use the built-in
    criteria (expected_vid / expected_pid). The criteria also narrow the
    candidates handed to a matcher, and are checked before any serial
    number is read.

    Raises:
        BackendUnavailableError: pyusb could not load a libusb backend.
    """
    try:
        devices = list(usb.core.find(find_all=True))
    except usb.core.NoBackendError as e:
        raise BackendUnavailableError(f"No USB backend available: {e}") from e

    results: List[DeviceInfo] = []
    for dev in devices:
        # Reading the serial opens the device; skip other vendors' hardware first.
        if expected_vid is not None and dev.idVendor != expected_vid:
            continue
        if expected_pid is not None and dev.idProduct != expected_pid:
            continue
        info = _device_to_info(dev)
        if matcher is not None:
            if matcher(info):
                results.append(info)
        elif is_matching_device(info, expected_vid=expected_vid, expected_pid=expected_pid):
            results.append(info)

    return results


def find_device(
    *,
    matcher: Optional[Callable[[DeviceInfo], bool]] = None,
    expected_vid: Optional[int] = None,
    expected_pid: Optional[int] = None,
) -> DeviceInfo:
    """
    Find the first matching device.

    Behaviour:
        - 0 matches  -> DeviceNotFoundError
        - 1+ matches -> return the first one the backend enumerated
    """
    matches = find_devices(
        matcher=matcher,
        expected_vid=expected_vid,
        expected_pid=expected_pid,
    )

    if not matches:
        raise DeviceNotFoundError("No matching device found")

    if len(matches) > 1:
        logger.info(f"{len(matches)} matching devices found, using {matches[0].device_id}")

    return matches[0]


def is_device_available(
    expected_vid: Optional[int] = None,
    expected_pid: Optional[int] = None,
) -> bool:
    """Check whether a matching device is physically present.

    Does not open the device.
    """
    try:
        find_device(expected_vid=expected_vid, expected_pid=expected_pid)
        return True
    except (DeviceNotFoundError, BackendUnavailableError):
        return False
