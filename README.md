# smcekit

Tools for building Arduino-style sketches with CMake and for reading and
driving the state of an emulated board.

## Installing

```
pip install smcekit
```

For running the tests:

```
pip install "smcekit[test]"
pytest
```

## What is inside

- `smcekit.uuid.Uuid`: a 16-byte random identifier. `Uuid.generate()` makes
  a new one; `to_hex()` renders it as 32 upper-case hex digits.
- `smcekit.plugin_manifest`: `PluginManifest`, the description of a plugin,
  and `Defaults`, its source layout. `cmake_list()` joins items with `;`,
  `render_manifest()` returns the CMake script for a manifest and
  `write_manifest()` writes it to a file, creating parent directories.
- `smcekit.sketch`: `SketchConfig`, `ArduinoLibrary`,
  `BoardDeviceSpecification` and `Sketch`. A sketch gets a fresh `Uuid` and
  removes its temporary build directory on `cleanup()` or on leaving a
  `with` block.
- `smcekit.board_config`: `BoardConfig` and its parts (`GpioDrivers`,
  `DigitalDriver`, `AnalogDriver`, `UartChannel`, `SecureDigitalStorage`,
  `FrameBufferConfig`, `BoardDevice`, `FrameBufferDirection`). Out-of-range
  pin ids, baud rates and sizes raise `ValueError`.
- `smcekit.board_data`: `BoardData`, the live state of a board: `Pin`s
  (kept sorted by id), `UartChannelData`, `DirectStorage`s and
  `FrameBufferData` (kept sorted by key), plus a `stop_requested` flag.
  `find_pin()` and `find_frame_buffer()` look elements up.
- `smcekit.pixels`: conversions from RGB888 to RGB444, RGB565 and YUV422 and
  back. Input whose length is not a whole number of pixel groups raises
  `ValueError`.
- `smcekit.board_view`: `BoardView` with `pins`, `uart_channels` and
  `frame_buffers`, through which a frontend reads and drives a board.
  Operations on a missing pin, channel or frame-buffer quietly do nothing or
  return a neutral value (`0`, `False`, `b""`, `None`, `""`).
- `smcekit.toolchain`: `Toolchain`, whose `check_suitable_environment()`
  checks the resource directory and that CMake runs, and whose `compile()`
  configures and builds a `Sketch`. Failures raise `ToolchainError`, whose
  `code` is a `ToolchainErrorCode`. `build_log()` returns what CMake printed.

## Example

```python
from smcekit.board_data import BoardData, Pin, UartChannelData
from smcekit.board_view import BoardView

data = BoardData(
    pins=[Pin(id=0, can_digital_read=True, can_digital_write=True)],
    uart_channels=[UartChannelData()],
)
view = BoardView(data)

uart = view.uart_channels[0]
uart.rx().write(b"hello")
print(uart.rx().read(5))  # b'hello'

view.pins[0].digital().write(True)
print(view.pins[0].digital().read())  # True
```

Compiling a sketch (needs CMake and a prepared resource directory):

```python
from smcekit.sketch import Sketch, SketchConfig
from smcekit.toolchain import Toolchain, ToolchainError

toolchain = Toolchain("/path/to/resources")
toolchain.check_suitable_environment()
with Sketch("sketches/blink", SketchConfig(fqbn="arduino:avr:nano")) as sketch:
    try:
        toolchain.compile(sketch)
    except ToolchainError as err:
        print(err.code, toolchain.build_log())
```

## What it does not do

- It does not run compiled sketches: there is no board runner that starts,
  suspends or stops a sketch process, and no shared memory between the host
  and a sketch. `BoardData` lives in the current process only.
- It does not turn a `BoardConfig` into a `BoardData`; the board state is
  built directly from its own parts.
- It has no command-line program.