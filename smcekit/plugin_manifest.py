"""Plugin manifests and their CMake rendering."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path


class Defaults(enum.Enum):
    """Layout conventions for a plugin's sources; values are the CMake keywords."""

    ARDUINO = "ARDUINO"  # src/** is sources, src/ is incdir, no linkdir
    SINGLE_DIR = "SINGLE"  # ./* is sources, ./ is incdir, ./ is linkdir
    C = "C"  # src/* is sources, include/ is incdir, lib is linkdir
    NONE = ""  # empty
    CMAKE = "CMAKE"  # no generated target; add_subdirectory instead


@dataclass
class PluginManifest:
    """Description of a plugin to compile together with a sketch."""

    name: str
    version: str = ""
    depends: list[str] = field(default_factory=list)
    needs_devices: list[str] = field(default_factory=list)
    uri: str = ""
    patch_uri: str = ""
    defaults: Defaults = Defaults.ARDUINO
    incdirs: list[str] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)
    linkdirs: list[str] = field(default_factory=list)
    linklibs: list[str] = field(default_factory=list)
    development: bool = False


def cmake_list(items: Iterable[str]) -> str:
    """Join items into a semicolon-separated CMake list."""
    return ";".join(items)


def render_manifest(manifest: PluginManifest) -> str:
    """Return the CMake script describing a manifest."""
    lines = [
        "# HSD generated",
        "include_guard ()",
        "",
        f'set (PLUGIN_NAME "{manifest.name}")',
        f'set (PLUGIN_VERSION "{manifest.version}")',
        f"set (PLUGIN_DEPENDS {cmake_list(manifest.depends)})",
        f"set (PLUGIN_NEEDS_DEVICES {cmake_list(manifest.needs_devices)})",
        f'set (PLUGIN_DEV "{int(bool(manifest.development))}")',
        f'set (PLUGIN_URI "{manifest.uri}")',
        f'set (PLUGIN_PATCH_URI "{manifest.patch_uri}")',
        f'set (PLUGIN_DEFAULTS "{manifest.defaults.value}")',
        f"set (PLUGIN_INCDIRS {cmake_list(manifest.incdirs)})",
        f"set (PLUGIN_SOURCES {cmake_list(manifest.sources)})",
        f"set (PLUGIN_LINKDIRS {cmake_list(manifest.linkdirs)})",
        f"set (PLUGIN_LINKLIBS {cmake_list(manifest.linklibs)})",
    ]
    return "\n".join(lines) + "\n"


def write_manifest(manifest: PluginManifest, location: str | Path) -> None:
    """Write a manifest's CMake script to location, creating parent directories.

    Raises OSError when the directories or the file cannot be created.
    """
    path = Path(location)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as handle:
        handle.write(render_manifest(manifest))