# chardevsim

Two kinds of character device, simulated in pure Python with threads and
condition variables:

* **ring** (`chardevsim.ring`): a blocking FIFO byte buffer for each minor
  number. Readers wait for data and writers wait for free space. The buffer
  can be resized while it holds data.
* **morse** (`chardevsim.morse`): a buffered transmitter. It turns letters,
  digits and spaces into timed on/off signals and shows them as a cell on a
  simulated text screen.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Ring buffer

```python
from chardevsim.ring import RingDriver

driver = RingDriver(4)
with driver.open(0) as writer, driver.open(0) as reader:
    writer.write(b"hello", timeout=1.0)
    assert reader.read(5, timeout=1.0) == b"hello"
    writer.set_buffer_size(512)
    assert reader.get_buffer_size() == 512
```

`RingDriver(count=4)` holds `count` `RingDevice` objects, numbered by minor.
`RingDriver.open(minor)` returns a `RingHandle`. The handle opens the device
and closes it again on `close()` or at the end of a `with` block. Using a
handle after it is closed raises `ValueError`.

The device keeps a count of its users:

* When the first user opens the device, it gets a fresh, empty buffer of
  1024 bytes.
* When the last user releases it, the buffer is dropped.
* Reading, writing or resizing a device that is not open raises `DeviceError`.

Blocking behaviour:

* `read(count, timeout=None)` returns up to `count` bytes.
  * It returns early with what it has so far if the buffer is empty and the
    caller is the only user.
  * A negative `count` raises `InvalidArgumentError`.
* `write(data, timeout=None)` stores `data` and returns the number of bytes
  stored.
* A timeout, or `RingDevice.interrupt()`, ends a blocked call.
  * If some bytes were already transferred, the call returns them.
  * If nothing was transferred, it raises `InterruptedError_`.
  * An interrupt delivered while no call is blocked applies to the next call
    that would block.

Buffer size:

* `set_buffer_size(size)` accepts sizes from 256 to 16384. Any other size
  raises `InvalidArgumentError`.
* Shrinking below the number of bytes held raises `BufferBusyError`.
* The data held is kept, and blocked writers are woken.

`RingDevice.pending()` reports how many bytes are waiting to be read.

## Morse transmitter

### Patterns and schedules

```python
from chardevsim.morse import MorseTimings, Signal, code_for, signal_schedule

assert code_for("S") == "..."
assert code_for("7") == "--..."
assert code_for("?") is None

timings = MorseTimings().with_value("dot", 100)
steps = list(signal_schedule("E", timings))
assert steps == [(Signal.ON, 100), (Signal.OFF, 200), (Signal.OFF, 600)]
```

`MorseTimings` is a frozen dataclass. Every value is in milliseconds:

| field | default | meaning |
| --- | --- | --- |
| `dot` | 200 | length of a dot |
| `dash` | 600 | length of a dash |
| `symbol_pause` | 200 | pause after each symbol |
| `letter_pause` | 600 | pause after each letter |
| `word_pause` | 1400 | pause for a space |

`with_value(name, value)` raises `InvalidArgumentError` for an unknown name
or for a value that is not positive.

`signal_schedule(text, timings=None)` yields `(Signal, milliseconds)` pairs.
It accepts `str` or `bytes`. Characters that have no pattern, other than
space, are skipped.

### Devices

```python
from chardevsim.morse import MorseDriver, Screen, SIGNAL_ON_CELL

pending = []
driver = MorseDriver(Screen(80), scheduler=lambda delay_ms, cb: pending.append(cb))
device = driver.open(0)
device.write("E")

pending.pop(0)()   # takes "E" from the buffer
pending.pop(0)()   # signal on for a dot
assert driver.screen.cell(0) == SIGNAL_ON_CELL

while pending:
    pending.pop(0)()
assert not device.is_transmitting
device.release()
```

`MorseDriver(screen=None, scheduler=None, count=8)` creates `count` devices
that share one `Screen`. Each device owns the screen cell at its minor
number. `MorseDriver.open(minor)` opens the device and returns it. An unknown
minor number raises `NoSuchDeviceError`.

Scheduling:

* A scheduler is any `scheduler(delay_ms, callback)`.
* By default a daemon `threading.Timer` runs each step.
* Passing your own scheduler lets you drive the transmitter step by step, as
  in the example above.

Writing and transmitting:

* `MorseDevice.write(data, timeout=None)` queues text (`str` as Latin-1) or
  bytes.
* Transmission starts once the whole write has been queued.
* Each `tick()` advances one step and schedules the next.
* When the buffer runs dry, the cell is switched off and `is_transmitting`
  becomes false.
* A device released during transmission keeps its buffer until the
  transmission ends.

Other device methods:

* `set_timing(name, value)` changes one timing, with the same rules as
  `MorseTimings.with_value`.
* `set_buffer_size(size)` accepts sizes from 0 to 1024. It raises
  `BufferBusyError` if the buffer holds more than `size` bytes.
* `interrupt()` ends a blocked write, with the same rules as on the ring
  device.

## What this package does not do

The devices live only inside the Python process:

* Nothing is registered with the operating system.
* No device files appear under `/dev`.
* No command-line program is installed.

The screen is a list of integers, not a real display. Callers use the classes
above directly.