"""Blocking ring-buffer character devices shared between openers."""

from __future__ import annotations

import threading
import time
from collections import deque

from .errors import BufferBusyError, DeviceError, InterruptedError_, InvalidArgumentError, NoSuchDeviceError

DEFAULT_BUFFER_SIZE = 1024
BUFFER_COUNT = 4
MIN_BUFFER_SIZE = 256
MAX_BUFFER_SIZE = 16384


def _deadline(timeout):
    return None if timeout is None else time.monotonic() + timeout


class RingDevice:
    """One ring buffer; readers block while it is empty, writers while it is full.

    A blocking call that times out or is interrupted returns what it has
    transferred so far, or raises ``InterruptedError_`` if that is nothing.
    """

    def __init__(self, minor):
        self.minor = minor
        self._cond = threading.Condition()
        self._data = None
        self._size = DEFAULT_BUFFER_SIZE
        self._users = 0
        self._interrupted = False

    def open(self):
        with self._cond:
            self._users += 1
            if self._users == 1:
                self._data = deque()
                self._size = DEFAULT_BUFFER_SIZE

    def release(self):
        with self._cond:
            if self._users == 0:
                raise DeviceError("device is not open")
            self._users -= 1
            if self._users == 0:
                self._data = None

    def _buffer(self):
        if self._data is None:
            raise DeviceError("device is not open")
        return self._data

    def _sleep(self, deadline):
        """Wait for a change; False if interrupted or out of time."""
        if self._interrupted:
            self._interrupted = False
            return False
        remaining = None
        if deadline is not None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
        self._cond.wait(remaining)
        if self._interrupted:
            self._interrupted = False
            return False
        return True

    def read(self, count, timeout=None):
        """Read up to ``count`` bytes; stops early at EOF when no other opener remains."""
        if count < 0:
            raise InvalidArgumentError("negative count")
        deadline = _deadline(timeout)
        out = bytearray()
        with self._cond:
            buf = self._buffer()
            while len(out) < count:
                while not buf:
                    if self._users == 1:
                        return bytes(out)
                    if not self._sleep(deadline):
                        if not out:
                            raise InterruptedError_()
                        return bytes(out)
                out.append(buf.popleft())
                self._cond.notify_all()
        return bytes(out)

    def write(self, data, timeout=None):
        """Write ``data``; returns the number of bytes stored."""
        data = bytes(data)
        deadline = _deadline(timeout)
        with self._cond:
            buf = self._buffer()
            for written, byte in enumerate(data):
                while len(buf) >= self._size:
                    if not self._sleep(deadline):
                        if written == 0:
                            raise InterruptedError_()
                        return written
                buf.append(byte)
                self._cond.notify_all()
        return len(data)

    def set_buffer_size(self, size):
        if not MIN_BUFFER_SIZE <= size <= MAX_BUFFER_SIZE:
            raise InvalidArgumentError(f"buffer size must be in {MIN_BUFFER_SIZE}..{MAX_BUFFER_SIZE}")
        with self._cond:
            if size == self._size:
                return
            if size < len(self._buffer()):
                raise BufferBusyError("buffer holds more data than the new size")
            self._size = size
            self._cond.notify_all()

    def buffer_size(self):
        return self._size

    def pending(self):
        """Number of bytes waiting to be read."""
        with self._cond:
            return len(self._data) if self._data is not None else 0

    def interrupt(self):
        """Deliver an interruption to a blocked (or the next blocking) call."""
        with self._cond:
            self._interrupted = True
            self._cond.notify_all()


class RingHandle:
    """An open file on a ring device; usable as a context manager."""

    def __init__(self, device):
        self.device = device
        device.open()
        self._closed = False

    def _check(self):
        if self._closed:
            raise ValueError("I/O operation on closed handle")

    def read(self, count, timeout=None):
        self._check()
        return self.device.read(count, timeout)

    def write(self, data, timeout=None):
        self._check()
        return self.device.write(data, timeout)

    def set_buffer_size(self, size):
        self._check()
        self.device.set_buffer_size(size)

    def get_buffer_size(self):
        self._check()
        return self.device.buffer_size()

    def close(self):
        if not self._closed:
            self._closed = True
            self.device.release()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class RingDriver:
    """A fixed set of ring devices addressed by minor number."""

    def __init__(self, count=BUFFER_COUNT):
        self._devices = tuple(RingDevice(minor) for minor in range(count))

    def device(self, minor):
        if not 0 <= minor < len(self._devices):
            raise NoSuchDeviceError(f"no ring device {minor}")
        return self._devices[minor]

    def open(self, minor):
        return RingHandle(self.device(minor))