"""Common types and options for the in-memory stores."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Protocol, runtime_checkable


class CacheType(str, Enum):
    """Eviction policy of a store."""

    LRU = "lru"
    LFU = "lfu"

    def __str__(self) -> str:
        return self.value


@runtime_checkable
class Value(Protocol):
    """Anything whose size in bytes is given by ``len``."""

    def __len__(self) -> int: ...


@runtime_checkable
class Store(Protocol):
    """Operations every store offers."""

    def get(self, key: str) -> Value | None: ...

    def set(self, key: str, value: Value | None) -> None: ...

    def set_with_expiration(
        self, key: str, value: Value | None, expiration: float
    ) -> None: ...

    def delete(self, key: str) -> bool: ...

    def clear(self) -> None: ...

    def __len__(self) -> int: ...

    def close(self) -> None: ...


EvictionCallback = Callable[[str, Value], None]


@dataclass
class Options:
    """Store settings; ``cleanup_interval`` is in seconds."""

    max_bytes: int = 8 * 1024
    cleanup_interval: float = 60.0
    on_evicted: EvictionCallback | None = None


def default_options() -> Options:
    """Return the default store options: 8 KiB, one-minute cleanup, no callback."""
    return Options()