"""State of a running virtual board, shared between host and sketch."""

from __future__ import annotations

import enum
import threading
from bisect import bisect_left
from dataclasses import dataclass, field
from operator import attrgetter

from smcekit.board_config import FrameBufferDirection


class DataDirection(enum.IntEnum):
    """Direction of a GPIO pin."""

    IN = 0
    OUT = 1


class ActiveDriver(enum.IntEnum):
    """Which peripheral currently owns a pin."""

    GPIO = 0
    UART = 1
    I2C = 2
    SPI = 3
    OPAQUE = 4


@dataclass
class Pin:
    """A GPIO pin and its capabilities."""

    id: int
    can_digital_read: bool = False
    can_digital_write: bool = False
    can_analog_read: bool = False
    can_analog_write: bool = False
    value: int = 0
    data_direction: DataDirection = DataDirection.IN
    active_driver: ActiveDriver = ActiveDriver.GPIO


@dataclass
class UartChannelData:
    """A UART channel's buffers, each guarded by its own lock."""

    max_buffered_rx: int = 64
    max_buffered_tx: int = 64
    baud_rate: int = 9600
    rx_pin_override: int | None = None
    tx_pin_override: int | None = None
    active: bool = False
    rx: bytearray = field(default_factory=bytearray)
    tx: bytearray = field(default_factory=bytearray)
    rx_lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)
    tx_lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


class StorageBus(enum.Enum):
    """Bus through which a storage device is reached."""

    SPI = 0


@dataclass
class DirectStorage:
    """A storage device mapped onto a host directory."""

    bus: StorageBus = StorageBus.SPI
    accessor: int = 0
    root_dir: str = ""


class PixelFormat(enum.IntEnum):
    """Pixel formats a frame-buffer may advertise."""

    RGB888 = 0
    RGB444 = 1
    RGB565 = 2


@dataclass(frozen=True)
class Transform:
    """Flip flags and pixel format of a frame-buffer."""

    horiz_flip: bool = False
    vert_flip: bool = False
    pixel_format: PixelFormat = PixelFormat.RGB888


@dataclass
class FrameBufferData:
    """A single RGB888 frame with its geometry."""

    key: int
    direction: FrameBufferDirection = FrameBufferDirection.IN
    width: int = 0
    height: int = 0
    freq: int = 0
    transform: Transform = field(default_factory=Transform)
    data: bytearray = field(default_factory=bytearray)
    data_lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


@dataclass
class BoardData:
    """All state of a virtual board.

    Pins are kept sorted by id and frame-buffers by key.
    """

    pins: list[Pin] = field(default_factory=list)
    uart_channels: list[UartChannelData] = field(default_factory=list)
    direct_storages: list[DirectStorage] = field(default_factory=list)
    frame_buffers: list[FrameBufferData] = field(default_factory=list)
    stop_requested: bool = False

    def __post_init__(self) -> None:
        self.pins.sort(key=attrgetter("id"))
        self.frame_buffers.sort(key=attrgetter("key"))

    def find_pin(self, pin_id: int) -> Pin | None:
        """Return the pin with the given id, or None."""
        index = bisect_left(self.pins, pin_id, key=attrgetter("id"))
        if index < len(self.pins) and self.pins[index].id == pin_id:
            return self.pins[index]
        return None

    def find_frame_buffer(self, key: int) -> FrameBufferData | None:
        """Return the frame-buffer with the given key, or None."""
        index = bisect_left(self.frame_buffers, key, key=attrgetter("key"))
        if index < len(self.frame_buffers) and self.frame_buffers[index].key == key:
            return self.frame_buffers[index]
        return None