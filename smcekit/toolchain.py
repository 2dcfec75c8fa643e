"""Compilation of sketches through CMake."""

from __future__ import annotations

import enum
import os
import shutil
import subprocess
import threading
from pathlib import Path

from smcekit.plugin_manifest import write_manifest
from smcekit.sketch import Sketch, SketchConfig

_SMCE_MARKER = "-- SMCE: "
_CONFIGURE_SCRIPT = "/RtResources/SMCE/share/CMake/Scripts/ConfigureSketch.cmake"
_ON_WINDOWS = os.name == "nt"
_NO_WINDOW = getattr(subprocess, "CREATE_NO_WINDOW", 0)


class ToolchainErrorCode(enum.IntEnum):
    """Reasons a toolchain operation can fail."""

    RESDIR_ABSENT = 1
    RESDIR_FILE = 2
    RESDIR_EMPTY = 3
    CMAKE_NOT_FOUND = 4
    CMAKE_UNKNOWN_OUTPUT = 5
    CMAKE_FAILING = 6
    INVALID_PLUGIN_NAME = 7
    SKETCH_INVALID = 8
    CONFIGURE_FAILED = 9
    BUILD_FAILED = 10
    GENERIC = 255

    @property
    def message(self) -> str:
        return _MESSAGES.get(self, "smce.toolchain error")


_MESSAGES = {
    ToolchainErrorCode.RESDIR_ABSENT: "Resource directory does not exist",
    ToolchainErrorCode.RESDIR_EMPTY: "Resource directory empty",
    ToolchainErrorCode.RESDIR_FILE: "Resource directory is a file",
    ToolchainErrorCode.CMAKE_NOT_FOUND: "CMake not found in PATH",
    ToolchainErrorCode.INVALID_PLUGIN_NAME: (
        'Plugin name is ".", "..", or contains a forward slash'
    ),
    ToolchainErrorCode.SKETCH_INVALID: "Sketch path is invalid",
    ToolchainErrorCode.CONFIGURE_FAILED: "CMake configure failed",
    ToolchainErrorCode.BUILD_FAILED: "CMake build failed",
}


class ToolchainError(Exception):
    """A toolchain operation failed for the reason given by code."""

    def __init__(self, code: ToolchainErrorCode) -> None:
        super().__init__(code.message)
        self.code = code


def process_libraries(config: SketchConfig) -> str:
    """Return the CMake argument listing the legacy preprocessing libraries."""
    specs = [
        f"{lib.name}@{lib.version}" if lib.version else lib.name
        for lib in config.legacy_preproc_libs
    ]
    return "-DPREPROC_REMOTE_LIBS=" + ";".join(specs)


def write_manifests(config: SketchConfig, tmpdir: str | Path) -> None:
    """Write one manifest script per plugin into tmpdir/manifests.

    Raises ToolchainError for an invalid plugin name and OSError on I/O failure.
    """
    manifests_dir = Path(tmpdir) / "manifests"
    manifests_dir.mkdir(exist_ok=True)
    for plugin in config.plugins:
        if plugin.name in (".", "..") or "/" in plugin.name:
            raise ToolchainError(ToolchainErrorCode.INVALID_PLUGIN_NAME)
        write_manifest(plugin, manifests_dir / f"{plugin.name}.cmake")


def write_devices_specs(config: SketchConfig, tmpdir: str | Path) -> None:
    """Write the Devices.cmake script requesting bindings for each device."""
    lines = ["# HSD generated", "include (BindGen)"]
    lines.extend(
        f"smce_bindgen_sketch ({device.full_string})" for device in config.genbind_devices
    )
    with (Path(tmpdir) / "Devices.cmake").open("w", encoding="utf-8", newline="") as handle:
        handle.write("\n".join(lines) + "\n")


class Toolchain:
    """Compilation environment for sketches."""

    def __init__(self, resources_dir: str | Path, cmake_path: str = "cmake") -> None:
        self._res_dir = Path(resources_dir)
        self._cmake_path = str(cmake_path)
        self._build_log: list[str] = []
        self._log_lock = threading.Lock()

    @property
    def resource_dir(self) -> Path:
        """The resource directory."""
        return self._res_dir

    @property
    def cmake_path(self) -> str:
        """The CMake executable in use."""
        return self._cmake_path

    def build_log(self) -> str:
        """Return a snapshot of everything logged by CMake so far."""
        with self._log_lock:
            return "".join(self._build_log)

    def _log(self, line: str) -> None:
        with self._log_lock:
            self._build_log.append(line + "\n")

    def check_suitable_environment(self) -> None:
        """Check the resource directory and that CMake runs.

        Raises ToolchainError describing the first problem found.
        """
        if not self._res_dir.exists():
            raise ToolchainError(ToolchainErrorCode.RESDIR_ABSENT)
        if not self._res_dir.is_dir():
            raise ToolchainError(ToolchainErrorCode.RESDIR_FILE)
        if next(self._res_dir.iterdir(), None) is None:
            raise ToolchainError(ToolchainErrorCode.RESDIR_EMPTY)

        if self._cmake_path != "cmake":
            cmake = Path(self._cmake_path)
            empty = next(cmake.iterdir(), None) is None if cmake.is_dir() else cmake.stat().st_size == 0
            if empty:
                raise ToolchainError(ToolchainErrorCode.CMAKE_NOT_FOUND)
        else:
            found = shutil.which(self._cmake_path)
            if not found:
                self._cmake_path = ""
                raise ToolchainError(ToolchainErrorCode.CMAKE_NOT_FOUND)
            self._cmake_path = found

        result = subprocess.run(
            [self._cmake_path, "--version"],
            stdout=subprocess.PIPE,
            text=True,
            creationflags=_NO_WINDOW,
        )
        if result.returncode != 0:
            raise ToolchainError(ToolchainErrorCode.CMAKE_FAILING)
        first_line = result.stdout.splitlines()[0] if result.stdout else ""
        if not first_line.startswith("cmake"):
            raise ToolchainError(ToolchainErrorCode.CMAKE_UNKNOWN_OUTPUT)

    def compile(self, sketch: Sketch) -> None:
        """Configure and build a sketch; raises ToolchainError or OSError on failure."""
        sketch.compiled = False
        if not sketch.source.exists():
            raise ToolchainError(ToolchainErrorCode.SKETCH_INVALID)
        if not sketch.config.fqbn:
            raise ToolchainError(ToolchainErrorCode.SKETCH_INVALID)
        self._configure(sketch)
        self._build(sketch)
        sketch.compiled = True

    def _configure(self, sketch: Sketch) -> None:
        hexid = sketch.uuid.to_hex()
        sketch.tmpdir = self._res_dir / "tmp" / hexid
        sketch.tmpdir.mkdir(parents=True, exist_ok=True)

        env = dict(os.environ)
        if not _ON_WINDOWS:
            generator = os.environ.get("CMAKE_GENERATOR")
            if generator is None:
                generator = "Ninja" if shutil.which("ninja") else ""
            env["CMAKE_GENERATOR"] = generator

        write_devices_specs(sketch.config, sketch.tmpdir)
        write_manifests(sketch.config, sketch.tmpdir)
        libs_arg = process_libraries(sketch.config)

        command = [
            self._cmake_path,
            f"-DSMCE_DIR={self._res_dir}",
            f"-DSKETCH_HEXID={hexid}",
            f"-DSKETCH_FQBN={sketch.config.fqbn}",
            f"-DSKETCH_PATH={sketch.source.absolute().as_posix()}",
            libs_arg,
            "-P",
            str(self._res_dir) + _CONFIGURE_SCRIPT,
        ]
        with subprocess.Popen(
            command,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            env=env,
            creationflags=_NO_WINDOW,
        ) as process:
            for raw in process.stdout:
                line = raw.rstrip("\n")
                if line.startswith(_SMCE_MARKER):
                    quoted = line[line.find('"') + 1:]
                    sketch.executable = Path(quoted[:-1])
                    break
                self._log(line)
            process.communicate()
        if process.returncode != 0:
            raise ToolchainError(ToolchainErrorCode.CONFIGURE_FAILED)

    def _build(self, sketch: Sketch) -> None:
        env = dict(os.environ)
        if _ON_WINDOWS:
            env["MSBUILDDISABLENODEREUSE"] = "1"
        command = [
            self._cmake_path,
            "--build",
            str(sketch.tmpdir / "build"),
            "--config",
            "Release",
        ]
        with subprocess.Popen(
            command,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            env=env,
            creationflags=_NO_WINDOW,
        ) as process:
            for raw in process.stdout:
                self._log(raw.rstrip("\n"))
        if process.returncode != 0:
            raise ToolchainError(ToolchainErrorCode.BUILD_FAILED)
        if sketch.executable is None or not sketch.executable.exists():
            raise ToolchainError(ToolchainErrorCode.BUILD_FAILED)