from .core import (
    DeviceInfo,
    find_devices,
    find_device,
    is_matching_device,
    is_device_available,
)
from .errors import BackendUnavailableError, DeviceNotFoundError

__all__ = [
    "DeviceInfo",
    "find_devices",
    "find_device",
    "is_matching_device",
    "is_device_available",
    "BackendUnavailableError",
    "DeviceNotFoundError",
]
