class DeviceNotFoundError(RuntimeError):
    """Raised when no matching USB device could be found."""
    pass


class BackendUnavailableError(RuntimeError):
    """Raised when pyusb has no usable libusb backend."""
    pass
