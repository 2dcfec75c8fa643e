"""Mutable, no-fail views over a virtual board's state.

Every accessor tolerates missing board data or a missing element: reads
return neutral values and writes are silently dropped.
"""

from __future__ import annotations

import dataclasses
import enum
from collections.abc import Iterator
from typing import Callable

from smcekit.board_config import FrameBufferDirection
from smcekit.board_data import (
    ActiveDriver,
    BoardData,
    DataDirection,
    FrameBufferData,
    Pin,
    StorageBus,
    UartChannelData,
)
from smcekit.pixels import (
    convert_rgb444_to_rgb888,
    convert_rgb565_to_rgb888,
    convert_rgb888_to_rgb444,
    convert_rgb888_to_rgb565,
    convert_rgb888_to_yuv422,
    convert_yuv422_to_rgb888,
)

_LOCK_TIMEOUT = 1.0
_U8_MAX = 0xFF
_U16_MAX = 0xFFFF

Buffer = bytes | bytearray | memoryview


def _check_range(value: int, upper: int, what: str) -> int:
    if not 0 <= value <= upper:
        raise ValueError(f"{what} must be in 0..{upper}, got {value}")
    return value


class Link(enum.Enum):
    """Bus through which a board device is reached."""

    UART = 0
    SPI = 1
    I2C = 2


_LINK_TO_BUS: dict[Link, StorageBus] = {Link.SPI: StorageBus.SPI}


class VirtualAnalogDriver:
    """Analog driver of a GPIO pin."""

    def __init__(self, pin: Pin | None) -> None:
        self._pin = pin

    def exists(self) -> bool:
        """Whether the pin exists."""
        return self._pin is not None

    def can_read(self) -> bool:
        return self._pin is not None and self._pin.can_analog_read

    def can_write(self) -> bool:
        return self._pin is not None and self._pin.can_analog_write

    def read(self) -> int:
        """Return the pin's value, or 0 if the pin does not exist."""
        return self._pin.value if self._pin is not None else 0

    def write(self, value: int) -> None:
        """Store a 16-bit value on the pin."""
        _check_range(value, _U16_MAX, "analog value")
        if self._pin is not None:
            self._pin.value = value


class VirtualDigitalDriver:
    """Digital driver of a GPIO pin."""

    def __init__(self, pin: Pin | None) -> None:
        self._pin = pin

    def exists(self) -> bool:
        """Whether the pin exists."""
        return self._pin is not None

    def can_read(self) -> bool:
        return self._pin is not None and self._pin.can_digital_read

    def can_write(self) -> bool:
        return self._pin is not None and self._pin.can_digital_write

    def read(self) -> bool:
        """Return whether the pin is high; False if the pin does not exist."""
        return self._pin is not None and self._pin.value != 0

    def write(self, value: bool) -> None:
        """Drive the pin high (255) or low (0)."""
        if self._pin is not None:
            self._pin.value = 255 if value else 0


class VirtualPin:
    """A GPIO pin of the board."""

    def __init__(self, pin: Pin | None) -> None:
        self._pin = pin

    def exists(self) -> bool:
        """Whether the pin exists."""
        return self._pin is not None

    def locked(self) -> bool:
        """Whether the pin is missing or owned by a peripheral other than GPIO."""
        return self._pin is None or self._pin.active_driver != ActiveDriver.GPIO

    @property
    def direction(self) -> DataDirection:
        """Data direction; IN when the pin is missing or locked."""
        if self._pin is None or self.locked():
            return DataDirection.IN
        return DataDirection(self._pin.data_direction)

    @direction.setter
    def direction(self, value: DataDirection) -> None:
        if self._pin is not None and not self.locked():
            self._pin.data_direction = DataDirection(value)

    def digital(self) -> VirtualDigitalDriver:
        return VirtualDigitalDriver(self._pin)

    def analog(self) -> VirtualAnalogDriver:
        return VirtualAnalogDriver(self._pin)


class VirtualPins:
    """Pins of the board, indexed by pin id."""

    def __init__(self, board_data: BoardData | None) -> None:
        self._bdat = board_data

    def __getitem__(self, pin_id: int) -> VirtualPin:
        if self._bdat is None:
            return VirtualPin(None)
        return VirtualPin(self._bdat.find_pin(pin_id))


class _UartSide(enum.Enum):
    RX = "rx"
    TX = "tx"


class VirtualUartBuffer:
    """One direction of a UART channel's buffered data."""

    def __init__(self, board_data: BoardData | None, index: int, side: _UartSide) -> None:
        self._bdat = board_data
        self._index = index
        self._side = side

    def _channel(self) -> UartChannelData | None:
        if self._bdat is None or not 0 <= self._index < len(self._bdat.uart_channels):
            return None
        return self._bdat.uart_channels[self._index]

    def _parts(self, channel: UartChannelData):
        if self._side is _UartSide.RX:
            return channel.rx, channel.rx_lock, channel.max_buffered_rx
        return channel.tx, channel.tx_lock, channel.max_buffered_tx

    def _locked(self, action: Callable[[bytearray, int], object], fallback: object) -> object:
        channel = self._channel()
        if channel is None:
            return fallback
        data, lock, max_buffered = self._parts(channel)
        if not lock.acquire(timeout=_LOCK_TIMEOUT):
            return fallback
        try:
            return action(data, max_buffered)
        finally:
            lock.release()

    def exists(self) -> bool:
        """Whether the channel exists."""
        return self._channel() is not None

    def max_size(self) -> int:
        """Capacity of the buffer in bytes; 0 if the channel is missing."""
        channel = self._channel()
        return 0 if channel is None else self._parts(channel)[2]

    def size(self) -> int:
        """Number of bytes currently buffered."""
        return self._locked(lambda data, _: len(data), 0)

    def read(self, count: int) -> bytes:
        """Remove and return up to count bytes from the front of the buffer."""

        def take(data: bytearray, _: int) -> bytes:
            n = min(len(data), max(count, 0))
            chunk = bytes(data[:n])
            del data[:n]
            return chunk

        return self._locked(take, b"")

    def write(self, data: Buffer) -> int:
        """Append as much of data as fits; return the number of bytes taken."""
        payload = bytes(data)

        def put(buffer: bytearray, max_buffered: int) -> int:
            n = min(max(max_buffered - len(buffer), 0), len(payload))
            buffer.extend(payload[:n])
            return n

        return self._locked(put, 0)

    def front(self) -> int:
        """Return the first buffered byte without removing it; 0 if empty."""
        return self._locked(lambda data, _: data[0] if data else 0, 0)


class VirtualUart:
    """A UART channel of the board."""

    def __init__(self, board_data: BoardData | None, index: int) -> None:
        self._bdat = board_data
        self._index = index

    def _channel(self) -> UartChannelData | None:
        if self._bdat is None or not 0 <= self._index < len(self._bdat.uart_channels):
            return None
        return self._bdat.uart_channels[self._index]

    def exists(self) -> bool:
        """Whether the channel exists."""
        return self._channel() is not None

    @property
    def active(self) -> bool:
        """Whether the board has the channel active."""
        channel = self._channel()
        return channel is not None and channel.active

    @active.setter
    def active(self, value: bool) -> None:
        channel = self._channel()
        if channel is not None:
            channel.active = bool(value)

    def rx(self) -> VirtualUartBuffer:
        return VirtualUartBuffer(self._bdat, self._index, _UartSide.RX)

    def tx(self) -> VirtualUartBuffer:
        return VirtualUartBuffer(self._bdat, self._index, _UartSide.TX)


class VirtualUarts:
    """UART channels of the board, indexed by position."""

    def __init__(self, board_data: BoardData | None) -> None:
        self._bdat = board_data

    def __getitem__(self, index: int) -> VirtualUart:
        return VirtualUart(self._bdat, index)

    def __iter__(self) -> Iterator[VirtualUart]:
        return (VirtualUart(self._bdat, index) for index in range(len(self)))

    def __len__(self) -> int:
        return 0 if self._bdat is None else len(self._bdat.uart_channels)


class FrameBuffer:
    """An RGB888 frame-buffer holding a single frame (camera or screen)."""

    def __init__(self, frame: FrameBufferData | None) -> None:
        self._frame = frame

    def exists(self) -> bool:
        """Whether the frame-buffer exists."""
        return self._frame is not None

    @property
    def direction(self) -> FrameBufferDirection:
        """Data direction; IN when the frame-buffer is missing."""
        return self._frame.direction if self._frame is not None else FrameBufferDirection.IN

    @property
    def needs_horizontal_flip(self) -> bool:
        return self._frame is not None and self._frame.transform.horiz_flip

    @needs_horizontal_flip.setter
    def needs_horizontal_flip(self, value: bool) -> None:
        if self._frame is not None:
            self._frame.transform = dataclasses.replace(self._frame.transform, horiz_flip=bool(value))

    @property
    def needs_vertical_flip(self) -> bool:
        return self._frame is not None and self._frame.transform.vert_flip

    @needs_vertical_flip.setter
    def needs_vertical_flip(self, value: bool) -> None:
        if self._frame is not None:
            self._frame.transform = dataclasses.replace(self._frame.transform, vert_flip=bool(value))

    def _resize(self) -> None:
        frame = self._frame
        wanted = frame.width * frame.height * 3
        if len(frame.data) > wanted:
            del frame.data[wanted:]
        else:
            frame.data.extend(bytes(wanted - len(frame.data)))

    @property
    def width(self) -> int:
        """Width in pixels; setting it resizes the frame."""
        return self._frame.width if self._frame is not None else 0

    @width.setter
    def width(self, value: int) -> None:
        _check_range(value, _U16_MAX, "width")
        if self._frame is not None:
            self._frame.width = value
            self._resize()

    @property
    def height(self) -> int:
        """Height in pixels; setting it resizes the frame."""
        return self._frame.height if self._frame is not None else 0

    @height.setter
    def height(self, value: int) -> None:
        _check_range(value, _U16_MAX, "height")
        if self._frame is not None:
            self._frame.height = value
            self._resize()

    @property
    def freq(self) -> int:
        """Frame frequency in Hz."""
        return self._frame.freq if self._frame is not None else 0

    @freq.setter
    def freq(self, value: int) -> None:
        _check_range(value, _U8_MAX, "freq")
        if self._frame is not None:
            self._frame.freq = value

    def _write(self, data: Buffer, expected: Callable[[int], int],
               convert: Callable[[bytes], bytes]) -> bool:
        frame = self._frame
        if frame is None:
            return False
        payload = bytes(data)
        if len(payload) != expected(len(frame.data)):
            return False
        converted = convert(payload)
        with frame.data_lock:
            frame.data[: len(converted)] = converted
        return True

    def _read(self, used: Callable[[int], int], convert: Callable[[bytes], bytes]) -> bytes | None:
        frame = self._frame
        if frame is None:
            return None
        with frame.data_lock:
            source = bytes(frame.data[: used(len(frame.data))])
        return convert(source)

    def write_rgb888(self, data: Buffer) -> bool:
        """Copy a packed RGB888 frame in; False if missing or the size is wrong."""
        return self._write(data, lambda n: n, lambda b: b)

    def read_rgb888(self) -> bytes | None:
        """Return the frame as packed RGB888, or None if missing."""
        return self._read(lambda n: n, lambda b: b)

    def write_rgb444(self, data: Buffer) -> bool:
        """Copy a frame in from GGGGBBBB 0000RRRR pixel pairs."""
        return self._write(data, lambda n: n // 3 * 2, convert_rgb444_to_rgb888)

    def read_rgb444(self) -> bytes | None:
        """Return the frame as GGGGBBBB 0000RRRR pixel pairs."""
        return self._read(lambda n: n // 3 * 3, convert_rgb888_to_rgb444)

    def write_rgb565(self, data: Buffer) -> bool:
        """Copy a frame in from RGB565 pixels."""
        return self._write(data, lambda n: n // 3 * 2, convert_rgb565_to_rgb888)

    def read_rgb565(self) -> bytes | None:
        """Return the frame as RGB565 pixels."""
        return self._read(lambda n: n // 3 * 3, convert_rgb888_to_rgb565)

    def write_yuv422(self, data: Buffer) -> bool:
        """Copy a frame in from Y1 U Y2 V groups."""
        return self._write(data, lambda n: n // 6 * 4, convert_yuv422_to_rgb888)

    def read_yuv422(self) -> bytes | None:
        """Return the frame as Y1 U Y2 V groups."""
        return self._read(lambda n: n // 6 * 6, convert_rgb888_to_yuv422)


class FrameBuffers:
    """Frame-buffers of the board, indexed by key."""

    def __init__(self, board_data: BoardData | None) -> None:
        self._bdat = board_data

    def __getitem__(self, key: int) -> FrameBuffer:
        if self._bdat is None:
            return FrameBuffer(None)
        return FrameBuffer(self._bdat.find_frame_buffer(key))


class BoardView:
    """Mutable view of a virtual board."""

    def __init__(self, board_data: BoardData | None = None) -> None:
        self._bdat = board_data
        self.pins = VirtualPins(board_data)
        self.uart_channels = VirtualUarts(board_data)
        self.frame_buffers = FrameBuffers(board_data)

    def valid(self) -> bool:
        """Whether the view is attached to board data."""
        return self._bdat is not None

    def stop_requested(self) -> bool:
        """Whether the host has requested the sketch to stop."""
        return self._bdat is not None and self._bdat.stop_requested

    def storage_get_root(self, link: Link, accessor: int) -> str:
        """Return the root directory of a storage device, or an empty string."""
        if self._bdat is None:
            return ""
        bus = _LINK_TO_BUS.get(Link(link))
        if bus is None:
            return ""
        for storage in self._bdat.direct_storages:
            if storage.bus == bus and storage.accessor == accessor:
                return storage.root_dir
        return ""