"""Sketch build configuration and the sketch itself."""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path

from smcekit.plugin_manifest import PluginManifest
from smcekit.uuid import Uuid


@dataclass(frozen=True)
class BoardDeviceSpecification:
    """Resource counts a board device needs from the shared board data."""

    full_string: str
    name: str
    r8_count: int = 0
    r16_count: int = 0
    r32_count: int = 0
    r64_count: int = 0
    a8_count: int = 0
    a16_count: int = 0
    a32_count: int = 0
    a64_count: int = 0
    mtx_count: int = 0


@dataclass
class ArduinoLibrary:
    """A library to pull from the Arduino library manager."""

    name: str
    version: str = ""  # empty means latest


@dataclass
class SketchConfig:
    """Configuration for building a sketch."""

    fqbn: str = ""
    extra_board_uris: list[str] = field(default_factory=list)
    legacy_preproc_libs: list[ArduinoLibrary] = field(default_factory=list)
    plugins: list[PluginManifest] = field(default_factory=list)
    genbind_devices: list[BoardDeviceSpecification] = field(default_factory=list)


class Sketch:
    """A sketch source together with its build state.

    The temporary build directory, once assigned, is removed by cleanup()
    or on leaving a with-block.
    """

    def __init__(self, source: str | Path, config: SketchConfig) -> None:
        self.source = Path(source)
        self.config = config
        self.uuid = Uuid.generate()
        self.tmpdir: Path | None = None
        self.executable: Path | None = None
        self.compiled = False

    def cleanup(self) -> None:
        """Remove the temporary build directory, ignoring errors."""
        if self.tmpdir is not None:
            shutil.rmtree(self.tmpdir, ignore_errors=True)
            self.tmpdir = None

    def __enter__(self) -> Sketch:
        return self

    def __exit__(self, *args: object) -> None:
        self.cleanup()

    def __repr__(self) -> str:
        return (
            f"Sketch(source={str(self.source)!r}, uuid={self.uuid.to_hex()}, "
            f"compiled={self.compiled})"
        )