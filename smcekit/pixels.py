"""Conversions between RGB888 frames and packed RGB444, RGB565 and YUV422 data."""

from __future__ import annotations

from collections.abc import Iterator


def _groups(source: bytes | bytearray | memoryview, size: int, name: str) -> Iterator[tuple[int, ...]]:
    data = bytes(source)
    if len(data) % size:
        raise ValueError(f"{name} data length must be a multiple of {size}, got {len(data)}")
    it = iter(data)
    return zip(*[it] * size)


def _clamp_byte(value: float) -> int:
    return int(min(max(value, 0.0), 255.0))


def convert_rgb444_to_rgb888(source: bytes | bytearray | memoryview) -> bytes:
    """Expand GGGGBBBB 0000RRRR pixel pairs into RGB888 triples."""
    out = bytearray()
    for left, right in _groups(source, 2, "RGB444"):
        out.append(((right << 4) | (right & 0x0F)) & 0xFF)
        out.append((left & 0xF0) | (left >> 4))
        out.append(((left << 4) | (left & 0x0F)) & 0xFF)
    return bytes(out)


def convert_rgb888_to_rgb444(source: bytes | bytearray | memoryview) -> bytes:
    """Pack RGB888 triples into GGGGBBBB 0000RRRR byte pairs."""
    out = bytearray()
    for red, green, blue in _groups(source, 3, "RGB888"):
        out.append((green & 0xF0) | ((blue & 0xF0) >> 4))
        out.append(red >> 4)
    return bytes(out)


def convert_rgb565_to_rgb888(source: bytes | bytearray | memoryview) -> bytes:
    """Expand little-endian RGB565 pixels into RGB888 triples."""
    out = bytearray()
    for left, right in _groups(source, 2, "RGB565"):
        out.append((right & 0xF8) | (right >> 5))
        out.append(((right & 0x07) << 5) | ((left & 0xE0) >> 3) | ((right & 0x06) >> 1))
        out.append(((left << 3) & 0xFF) | ((left & 0x1C) >> 2))
    return bytes(out)


def convert_rgb888_to_rgb565(source: bytes | bytearray | memoryview) -> bytes:
    """Pack RGB888 triples into little-endian RGB565 pixels."""
    out = bytearray()
    for red, green, blue in _groups(source, 3, "RGB888"):
        out.append(((green & 0x1C) << 3) | ((blue & 0xF8) >> 3))
        out.append((red & 0xF8) | ((green & 0xE0) >> 5))
    return bytes(out)


def convert_yuv422_to_rgb888(source: bytes | bytearray | memoryview) -> bytes:
    """Convert Y1 U Y2 V groups into two RGB888 pixels each."""
    out = bytearray()
    for y1, u, y2, v in _groups(source, 4, "YUV422"):
        du = u - 128
        dv = v - 128
        for y in (y1, y2):
            out.append(_clamp_byte(y + 1.402 * dv))
            out.append(_clamp_byte(y - 0.344 * du - 0.714 * dv))
            out.append(_clamp_byte(y + 1.772 * du))
    return bytes(out)


def convert_rgb888_to_yuv422(source: bytes | bytearray | memoryview) -> bytes:
    """Convert pairs of RGB888 pixels into Y1 U Y2 V groups, averaging chroma."""
    out = bytearray()
    for r1, g1, b1, r2, g2, b2 in _groups(source, 6, "RGB888 pixel pair"):
        y1 = 0.299 * r1 + 0.587 * g1 + 0.114 * b1
        u1 = -0.169 * r1 - 0.331 * g1 + 0.499 * b1 + 128
        v1 = 0.499 * r1 - 0.418 * g1 - 0.0813 * b1 + 128

        y2 = 0.299 * r2 + 0.587 * g2 + 0.114 * b2
        u2 = -0.169 * r2 - 0.331 * g2 + 0.499 * b2 + 128
        v2 = 0.499 * r2 - 0.418 * g2 - 0.0813 * b2 + 128

        out.append(_clamp_byte(y1))
        out.append(_clamp_byte((u1 + u2) / 2))
        out.append(_clamp_byte(y2))
        out.append(_clamp_byte((v1 + v2) / 2))
    return bytes(out)