"""Immutable view over cached bytes."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ByteView:
    """A read-only snapshot of a byte sequence held in the cache."""

    data: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", bytes(self.data))

    def __len__(self) -> int:
        return len(self.data)

    def byte_slice(self) -> bytes:
        """Return a copy of the held bytes."""
        return bytes(self.data)

    def __str__(self) -> str:
        return self.data.decode("utf-8", errors="replace")