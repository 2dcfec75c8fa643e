"""Configuration of a virtual board: pins, UARTs, storage, frame-buffers and devices."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path

from smcekit.sketch import BoardDeviceSpecification

_U16_MAX = 0xFFFF


def _check_u16(value: int, what: str) -> None:
    if not 0 <= value <= _U16_MAX:
        raise ValueError(f"{what} must be in 0..{_U16_MAX}, got {value}")


def _check_size(value: int, what: str) -> None:
    if value < 0:
        raise ValueError(f"{what} must not be negative, got {value}")


class FrameBufferDirection(enum.Enum):
    """Data direction of a frame-buffer."""

    IN = 0  # host-to-board (camera)
    OUT = 1  # board-to-host (screen)


@dataclass(frozen=True)
class DigitalDriver:
    """Digital capabilities of a GPIO pin, as seen from the board."""

    board_read: bool = False
    board_write: bool = False


@dataclass(frozen=True)
class AnalogDriver:
    """Analog capabilities of a GPIO pin, as seen from the board."""

    board_read: bool = False
    board_write: bool = False


@dataclass
class GpioDrivers:
    """Drivers to apply on an existing GPIO pin."""

    pin_id: int = 0
    digital_driver: DigitalDriver | None = None
    analog_driver: AnalogDriver | None = None

    def __post_init__(self) -> None:
        _check_u16(self.pin_id, "pin_id")


@dataclass
class UartChannel:
    """A UART channel with its buffer sizes."""

    rx_pin_override: int | None = None
    tx_pin_override: int | None = None
    baud_rate: int = 9600
    rx_buffer_length: int = 64
    tx_buffer_length: int = 64
    flushing_threshold: int = 0

    def __post_init__(self) -> None:
        if self.rx_pin_override is not None:
            _check_u16(self.rx_pin_override, "rx_pin_override")
        if self.tx_pin_override is not None:
            _check_u16(self.tx_pin_override, "tx_pin_override")
        _check_u16(self.baud_rate, "baud_rate")
        _check_size(self.rx_buffer_length, "rx_buffer_length")
        _check_size(self.tx_buffer_length, "tx_buffer_length")
        _check_size(self.flushing_threshold, "flushing_threshold")


@dataclass
class SecureDigitalStorage:
    """An SD card reachable over SPI, backed by a host directory."""

    cspin: int = 0  # SPI chip-select pin
    root_dir: Path = field(default_factory=Path)

    def __post_init__(self) -> None:
        _check_u16(self.cspin, "cspin")
        self.root_dir = Path(self.root_dir)


@dataclass
class FrameBufferConfig:
    """A frame-buffer (camera or screen) identified by its key."""

    key: int
    direction: FrameBufferDirection = FrameBufferDirection.IN

    def __post_init__(self) -> None:
        _check_size(self.key, "key")


@dataclass
class BoardDevice:
    """A number of instances of a board device to install."""

    spec: BoardDeviceSpecification
    count: int = 1

    def __post_init__(self) -> None:
        _check_size(self.count, "count")


@dataclass
class BoardConfig:
    """Configuration for running a sketch on a virtual board."""

    pins: list[int] = field(default_factory=list)
    gpio_drivers: list[GpioDrivers] = field(default_factory=list)
    uart_channels: list[UartChannel] = field(default_factory=list)
    sd_cards: list[SecureDigitalStorage] = field(default_factory=list)
    frame_buffers: list[FrameBufferConfig] = field(default_factory=list)
    board_devices: list[BoardDevice] = field(default_factory=list)

    def __post_init__(self) -> None:
        for pin in self.pins:
            _check_u16(pin, "pin")