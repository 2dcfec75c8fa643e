"""Random 128-bit identifiers for sketches."""

from __future__ import annotations

import secrets
from dataclasses import dataclass

UUID_SIZE = 16


@dataclass(frozen=True)
class Uuid:
    """A 16-byte random identifier."""

    value: bytes

    def __post_init__(self) -> None:
        if len(self.value) != UUID_SIZE:
            raise ValueError(
                f"a Uuid holds exactly {UUID_SIZE} bytes, got {len(self.value)}"
            )

    def to_hex(self) -> str:
        """Return the identifier as 32 upper-case hexadecimal digits."""
        return self.value.hex().upper()

    @staticmethod
    def generate() -> Uuid:
        """Create a new identifier from a cryptographically strong source."""
        return Uuid(secrets.token_bytes(UUID_SIZE))

    def __str__(self) -> str:
        return self.to_hex()