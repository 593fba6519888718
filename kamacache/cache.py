"""Lazily created, statistics-keeping wrapper around a store."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any

from .byte_view import ByteView
from .store.factory import new_store
from .store.options import CacheType, EvictionCallback, Options, Store

logger = logging.getLogger(__name__)


@dataclass
class CacheOptions:
    """Cache settings; ``cleanup_interval`` is in seconds."""

    cache_type: CacheType = CacheType.LFU
    max_bytes: int = 8 * 1024 * 1024
    cleanup_interval: float = 60.0
    on_evicted: EvictionCallback | None = None


def default_cache_options() -> CacheOptions:
    """Return the defaults: LFU, 8 MiB, one-minute cleanup, no callback."""
    return CacheOptions()


class Cache:
    """Holds ByteView values in a store created on first write.

    Once closed, writes are ignored and reads find nothing.
    """

    def __init__(self, opts: CacheOptions | None = None) -> None:
        self._opts = opts if opts is not None else default_cache_options()
        self._lock = threading.RLock()
        self._store: Store | None = None
        self._hits = 0
        self._misses = 0
        self._closed = False

    def __enter__(self) -> Cache:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _ensure_store(self) -> Store:
        if self._store is None:
            self._store = new_store(
                self._opts.cache_type,
                Options(
                    max_bytes=self._opts.max_bytes,
                    cleanup_interval=self._opts.cleanup_interval,
                    on_evicted=self._opts.on_evicted,
                ),
            )
            logger.info(
                "Cache initialized with type %s, max bytes: %d",
                self._opts.cache_type,
                self._opts.max_bytes,
            )
        return self._store

    def add(self, key: str, value: ByteView) -> None:
        """Store ``value`` under ``key`` without expiry."""
        with self._lock:
            if self._closed:
                logger.warning("Attempted to add to a closed cache: %s", key)
                return
            self._ensure_store().set(key, value)

    def get(self, key: str) -> ByteView | None:
        """Return the value for ``key``, or None when it is not cached."""
        with self._lock:
            if self._closed:
                return None
            if self._store is None:
                self._misses += 1
                return None
            value = self._store.get(key)
            if value is None:
                self._misses += 1
                return None
            self._hits += 1
            if isinstance(value, ByteView):
                return value
            logger.warning("Type assertion failed for key %s, expected ByteView", key)
            self._misses += 1
            return None

    def add_with_expiration(
        self, key: str, value: ByteView, expiration_time: float
    ) -> None:
        """Store ``value`` until the POSIX timestamp ``expiration_time``."""
        with self._lock:
            if self._closed:
                logger.warning("Attempted to add to a closed cache: %s", key)
                return
            store = self._ensure_store()
            remaining = expiration_time - time.time()
            if remaining <= 0:
                logger.debug("Key %s already expired, not adding to cache", key)
                return
            store.set_with_expiration(key, value, remaining)

    def delete(self, key: str) -> bool:
        """Remove ``key``; return whether it was present."""
        with self._lock:
            if self._closed or self._store is None:
                return False
            return self._store.delete(key)

    def clear(self) -> None:
        """Remove every item and reset the hit and miss counters."""
        with self._lock:
            if self._closed or self._store is None:
                return
            self._store.clear()
            self._hits = 0
            self._misses = 0

    def __len__(self) -> int:
        with self._lock:
            if self._closed or self._store is None:
                return 0
            return len(self._store)

    def close(self) -> None:
        """Close the cache and release its store; later calls do nothing."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            if self._store is not None:
                self._store.close()
                self._store = None
            logger.debug("Cache closed, hits: %d, misses: %d", self._hits, self._misses)

    def stats(self) -> dict[str, Any]:
        """Return counters, and size and hit rate once the store exists."""
        with self._lock:
            initialized = self._store is not None
            result: dict[str, Any] = {
                "initialized": initialized,
                "closed": self._closed,
                "hits": self._hits,
                "misses": self._misses,
            }
            if initialized:
                result["size"] = len(self)
                total = self._hits + self._misses
                result["hit_rate"] = self._hits / total if total else 0.0
            return result