import errno
import threading

import pytest

from chardevsim.errors import (
    BufferBusyError,
    DeviceError,
    InterruptedError_,
    InvalidArgumentError,
    NoSuchDeviceError,
)
from chardevsim.ring import RingDevice, RingDriver, RingHandle


@pytest.fixture
def driver():
    return RingDriver()


def test_default_buffer_size_read_back(driver):
    with driver.open(0) as handle:
        assert handle.get_buffer_size() == 1024


def test_set_then_get_buffer_size(driver):
    with driver.open(0) as handle:
        handle.set_buffer_size(2048)
        assert handle.get_buffer_size() == 2048


@pytest.mark.parametrize("size", [100, 255, 16385, -1])
def test_invalid_buffer_size_reports_einval(driver, size):
    with driver.open(0) as handle:
        with pytest.raises(InvalidArgumentError) as info:
            handle.set_buffer_size(size)
        assert info.value.errno == errno.EINVAL
        assert handle.get_buffer_size() == 1024


def test_unknown_minor(driver):
    with pytest.raises(NoSuchDeviceError):
        driver.open(4)
    with pytest.raises(NoSuchDeviceError):
        driver.device(-1)


def test_write_then_read_between_handles(driver):
    with driver.open(1) as writer, driver.open(1) as reader:
        assert writer.write(b"hello") == 5
        assert reader.read(5) == b"hello"


def test_single_opener_reads_to_eof(driver):
    with driver.open(2) as handle:
        handle.write(b"ab")
        assert handle.read(5) == b"ab"
        assert handle.read(5) == b""


def test_read_times_out_with_partial_data(driver):
    with driver.open(0) as writer, driver.open(0) as reader:
        writer.write(b"abc")
        assert reader.read(10, timeout=0.05) == b"abc"


def test_read_times_out_with_nothing(driver):
    with driver.open(0), driver.open(0) as reader:
        with pytest.raises(InterruptedError_):
            reader.read(1, timeout=0.02)


def test_write_blocks_when_full_and_returns_partial(driver):
    with driver.open(0) as handle:
        handle.set_buffer_size(256)
        assert handle.write(b"x" * 300, timeout=0.05) == 256
        assert handle.device.pending() == 256
        with pytest.raises(InterruptedError_):
            handle.write(b"y", timeout=0.02)


def test_interrupt_wakes_blocked_writer(driver):
    device = driver.device(3)
    handle = RingHandle(device)
    handle.write(b"z" * 1024)
    errors = []

    def blocked():
        try:
            handle.write(b"!")
        except InterruptedError_ as exc:
            errors.append(exc)

    thread = threading.Thread(target=blocked)
    thread.start()
    device.interrupt()
    thread.join(5)
    assert not thread.is_alive()
    assert len(errors) == 1
    assert device.pending() == 1024
    handle.close()


def test_threaded_transfer_through_small_buffer(driver):
    payload = bytes(range(256)) * 20
    received = []
    with driver.open(0) as writer, driver.open(0) as reader:
        writer.set_buffer_size(256)

        def consume():
            received.append(reader.read(len(payload), timeout=10))

        thread = threading.Thread(target=consume)
        thread.start()
        assert writer.write(payload, timeout=10) == len(payload)
        thread.join(10)
    assert received == [payload]


def test_resize_keeps_contents(driver):
    with driver.open(0) as handle:
        handle.write(b"abcdef")
        handle.read(2)
        handle.set_buffer_size(512)
        handle.write(b"gh")
        assert handle.read(10) == b"cdefgh"


def test_resize_below_content_is_busy(driver):
    with driver.open(0) as handle:
        handle.write(b"q" * 300)
        with pytest.raises(BufferBusyError):
            handle.set_buffer_size(256)
        assert handle.get_buffer_size() == 1024


def test_reopen_resets_state(driver):
    with driver.open(0) as handle:
        handle.set_buffer_size(512)
        handle.write(b"left over")
    with driver.open(0) as handle:
        assert handle.get_buffer_size() == 1024
        assert handle.read(4) == b""


def test_closed_handle_rejects_io(driver):
    handle = driver.open(0)
    handle.close()
    handle.close()
    with pytest.raises(ValueError):
        handle.write(b"a")


def test_device_not_open():
    device = RingDevice(0)
    with pytest.raises(DeviceError):
        device.write(b"a")
    with pytest.raises(DeviceError):
        device.release()


def test_negative_read_count(driver):
    with driver.open(0) as handle:
        with pytest.raises(InvalidArgumentError):
            handle.read(-1)