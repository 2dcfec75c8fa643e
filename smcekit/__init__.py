"""Sketch toolchain, plugin manifests, board state and virtual board views for emulated boards."""

__version__ = "0.1.0"

__all__ = [
    "board_config",
    "board_data",
    "board_view",
    "pixels",
    "plugin_manifest",
    "sketch",
    "toolchain",
    "uuid",
]