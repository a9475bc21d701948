"""Exceptions raised by the simulated character devices."""

import errno as _errno
import os


class DeviceError(OSError):
    """Base class for device errors; carries the matching ``errno`` code."""

    code = _errno.EIO

    def __init__(self, message=None):
        super().__init__(self.code, message or os.strerror(self.code))


class NoSuchDeviceError(DeviceError):
    """The requested minor number does not name a device."""

    code = _errno.ENODEV


class BufferBusyError(DeviceError):
    """The buffer holds more data than the requested new size."""

    code = _errno.EBUSY


class InvalidArgumentError(DeviceError):
    """A control request or its argument was rejected."""

    code = _errno.EINVAL


class InterruptedError_(DeviceError, InterruptedError):
    """A blocking call was interrupted before it transferred anything."""

    code = _errno.EINTR