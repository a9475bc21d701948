"""Morse code transmitter devices that blink a cell of a text screen."""

from __future__ import annotations

import dataclasses
import enum
import threading
import time
from collections import deque

from .errors import BufferBusyError, DeviceError, InterruptedError_, InvalidArgumentError, NoSuchDeviceError

DEVICE_COUNT = 8
DEFAULT_BUFFER_SIZE = 256
MIN_BUFFER_SIZE = 0
MAX_BUFFER_SIZE = 1024
TICK_MS = 10  # one scheduler tick, a jiffy at 100 Hz

SIGNAL_ON_CELL = (0x4 << 12) | (0x4 << 8) | ord(" ")
SIGNAL_OFF_CELL = (0x0 << 12) | (0x0 << 8) | ord(" ")

_LETTERS = (
    ".-", "-...", "-.-.", "-..", ".", "..-.", "--.", "....", "..", ".---",
    "-.-", ".-..", "--", "-.", "---", ".--.", "--.-", ".-.", "...", "-",
    "..-", "...-", ".--", "-..-", "-.--", "--..",
)
_DIGITS = (
    "-----", ".----", "..---", "...--", "....-",
    ".....", "-....", "--...", "---..", "----.",
)


@dataclasses.dataclass(frozen=True)
class MorseTimings:
    """Durations in milliseconds."""

    dot: int = 200
    dash: int = 600
    symbol_pause: int = 200
    letter_pause: int = 600
    word_pause: int = 1400

    def with_value(self, name, value):
        """Return a copy with one timing replaced; it must be positive."""
        if name not in _TIMING_NAMES:
            raise InvalidArgumentError(f"unknown timing {name!r}")
        if value <= 0:
            raise InvalidArgumentError(f"{name} must be positive")
        return dataclasses.replace(self, **{name: value})


_TIMING_NAMES = frozenset(field.name for field in dataclasses.fields(MorseTimings))


class Signal(enum.IntEnum):
    OFF = 0
    ON = 1


def code_for(char):
    """Morse pattern for a letter or digit, or None if it has none."""
    if isinstance(char, int):
        char = chr(char)
    if len(char) != 1:
        raise ValueError("expected a single character")
    if "A" <= char <= "Z":
        return _LETTERS[ord(char) - ord("A")]
    if "a" <= char <= "z":
        return _LETTERS[ord(char) - ord("a")]
    if "0" <= char <= "9":
        return _DIGITS[ord(char) - ord("0")]
    return None


def _characters(text):
    if isinstance(text, (bytes, bytearray)):
        return text.decode("latin-1")
    return text


def signal_schedule(text, timings=None):
    """Yield ``(Signal, milliseconds)`` steps that transmit ``text``.

    Characters without a pattern, other than space, are skipped.
    """
    timings = timings or MorseTimings()
    for char in _characters(text):
        if char == " ":
            yield Signal.OFF, timings.word_pause
            continue
        code = code_for(char)
        if code is None:
            continue
        for symbol in code:
            yield Signal.ON, timings.dot if symbol == "." else timings.dash
            yield Signal.OFF, timings.symbol_pause
        yield Signal.OFF, timings.letter_pause


class Screen:
    """Text-mode screen memory; each device owns the cell at its minor number."""

    def __init__(self, width=80):
        self._cells = [0] * width

    def _check(self, minor):
        if not 0 <= minor < len(self._cells):
            raise IndexError(f"cell {minor} is off the screen")

    def set_signal(self, minor, state):
        self._check(minor)
        self._cells[minor] = SIGNAL_ON_CELL if state else SIGNAL_OFF_CELL

    def cell(self, minor):
        self._check(minor)
        return self._cells[minor]


def _timer_scheduler(delay_ms, callback):
    timer = threading.Timer(delay_ms / 1000, callback)
    timer.daemon = True
    timer.start()


class MorseDevice:
    """A buffered transmitter driven by ``scheduler(delay_ms, callback)``."""

    def __init__(self, minor, screen, scheduler=None):
        self.minor = minor
        self.screen = screen
        self._schedule = scheduler or _timer_scheduler
        self.timings = MorseTimings()
        self.is_transmitting = False
        self._cond = threading.Condition()
        self._data = None
        self._size = DEFAULT_BUFFER_SIZE
        self._users = 0
        self._code = None
        self._position = 0
        self._signal = Signal.OFF
        self._interrupted = False

    def open(self):
        with self._cond:
            self._users += 1
            if self._users == 1 and not self.is_transmitting:
                self._data = deque()
                self._signal = Signal.OFF

    def release(self):
        with self._cond:
            if self._users == 0:
                raise DeviceError("device is not open")
            self._users -= 1
            if self._users == 0 and not self.is_transmitting:
                self._data = None

    def _sleep(self, deadline):
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

    def write(self, data, timeout=None):
        """Queue ``data`` for transmission; returns the number of bytes queued.

        Transmission starts only once the whole write has been queued.
        """
        if isinstance(data, str):
            data = data.encode("latin-1")
        data = bytes(data)
        deadline = None if timeout is None else time.monotonic() + timeout
        start = False
        with self._cond:
            if self._data is None:
                raise DeviceError("device is not open")
            buf = self._data
            for written, byte in enumerate(data):
                while len(buf) >= self._size:
                    if not self._sleep(deadline):
                        if written == 0:
                            raise InterruptedError_()
                        return written
                buf.append(byte)
            if not self.is_transmitting and buf:
                self.is_transmitting = True
                start = True
        if start:
            self._schedule(TICK_MS, self.tick)
        return len(data)

    def set_timing(self, name, value):
        with self._cond:
            self.timings = self.timings.with_value(name, value)

    def set_buffer_size(self, size):
        if not MIN_BUFFER_SIZE <= size <= MAX_BUFFER_SIZE:
            raise InvalidArgumentError(f"buffer size must be in {MIN_BUFFER_SIZE}..{MAX_BUFFER_SIZE}")
        with self._cond:
            if size == self._size:
                return
            if self._data is not None and size < len(self._data):
                raise BufferBusyError("buffer holds more data than the new size")
            self._size = size
            self._cond.notify_all()

    def buffer_size(self):
        return self._size

    def interrupt(self):
        with self._cond:
            self._interrupted = True
            self._cond.notify_all()

    def _set_signal(self, state):
        self.screen.set_signal(self.minor, state)
        self._signal = Signal(state)

    def tick(self):
        """Advance the transmitter by one step and schedule the next one."""
        with self._cond:
            delay = self._advance()
        if delay is not None:
            self._schedule(delay, self.tick)

    def _advance(self):
        timings = self.timings
        if self._code is None:
            if not self._data:
                self.is_transmitting = False
                self._set_signal(Signal.OFF)
                if self._users == 0:
                    self._data = None
                return None
            char = chr(self._data.popleft())
            self._cond.notify_all()
            if char == " ":
                self._set_signal(Signal.OFF)
                return timings.word_pause
            self._code = code_for(char)
            self._position = 0
            return TICK_MS
        if self._signal is Signal.ON:
            self._set_signal(Signal.OFF)
            return timings.symbol_pause
        if self._position == len(self._code):
            self._code = None
            return timings.letter_pause
        symbol = self._code[self._position]
        self._position += 1
        self._set_signal(Signal.ON)
        return timings.dot if symbol == "." else timings.dash


class MorseDriver:
    """A fixed set of Morse devices sharing one screen."""

    def __init__(self, screen=None, scheduler=None, count=DEVICE_COUNT):
        self.screen = screen if screen is not None else Screen()
        self._devices = tuple(MorseDevice(minor, self.screen, scheduler) for minor in range(count))

    def device(self, minor):
        if not 0 <= minor < len(self._devices):
            raise NoSuchDeviceError(f"no morse device {minor}")
        return self._devices[minor]

    def open(self, minor):
        device = self.device(minor)
        device.open()
        return device