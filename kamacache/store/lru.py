"""Least-recently-used store with optional per-key expiry."""

from __future__ import annotations

import threading
import time
import weakref
from collections import OrderedDict

from .options import Options, Value

_DEFAULT_CLEANUP_INTERVAL = 60.0


def _key_size(key: str) -> int:
    return len(key.encode("utf-8"))


class LruCache:
    """Thread-safe LRU store bounded by total key and value bytes.

    Expirations are given in seconds; expiry times are POSIX timestamps.
    A background thread removes expired items every cleanup interval.
    """

    def __init__(self, opts: Options | None = None) -> None:
        opts = opts if opts is not None else Options()
        interval = opts.cleanup_interval
        if interval <= 0:
            interval = _DEFAULT_CLEANUP_INTERVAL
        self._lock = threading.RLock()
        self._items: OrderedDict[str, Value] = OrderedDict()
        self._expires: dict[str, float] = {}
        self._max_bytes = opts.max_bytes
        self._used_bytes = 0
        self._on_evicted = opts.on_evicted
        self._cleanup_interval = interval
        self._stop = threading.Event()
        threading.Thread(
            target=self._cleanup_loop,
            args=(weakref.ref(self), self._stop, interval),
            name="lru-cleanup",
            daemon=True,
        ).start()

    @staticmethod
    def _cleanup_loop(ref, stop: threading.Event, interval: float) -> None:
        while not stop.wait(interval):
            cache = ref()
            if cache is None:
                return
            with cache._lock:
                cache._evict()
            del cache

    def __enter__(self) -> LruCache:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _is_expired(self, key: str, now: float) -> bool:
        expiry = self._expires.get(key)
        return expiry is not None and now > expiry

    def get(self, key: str) -> Value | None:
        """Return the value for ``key``, or None if absent or expired."""
        with self._lock:
            if key not in self._items:
                return None
            if self._is_expired(key, time.time()):
                self._remove(key)
                return None
            self._items.move_to_end(key)
            return self._items[key]

    def set(self, key: str, value: Value | None) -> None:
        """Store ``value`` without expiry; a None value deletes the key."""
        self.set_with_expiration(key, value, 0)

    def set_with_expiration(
        self, key: str, value: Value | None, expiration: float
    ) -> None:
        """Store ``value`` expiring after ``expiration`` seconds (<= 0: never)."""
        if value is None:
            self.delete(key)
            return
        with self._lock:
            if expiration > 0:
                self._expires[key] = time.time() + expiration
            else:
                self._expires.pop(key, None)

            if key in self._items:
                old = self._items[key]
                self._used_bytes += len(value) - len(old)
                self._items[key] = value
                self._items.move_to_end(key)
                return

            self._items[key] = value
            self._used_bytes += _key_size(key) + len(value)
            self._evict()

    def delete(self, key: str) -> bool:
        """Remove ``key``; return whether it was present."""
        with self._lock:
            if key in self._items:
                self._remove(key)
                return True
            return False

    def clear(self) -> None:
        """Remove every item, reporting each to the eviction callback."""
        with self._lock:
            if self._on_evicted is not None:
                for key, value in list(self._items.items()):
                    self._on_evicted(key, value)
            self._items = OrderedDict()
            self._expires = {}
            self._used_bytes = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def close(self) -> None:
        """Stop the background cleanup."""
        self._stop.set()

    def _evict(self) -> None:
        now = time.time()
        for key in [k for k, exp in self._expires.items() if now > exp]:
            if key in self._items:
                self._remove(key)
            else:
                self._expires.pop(key, None)

        while 0 < self._max_bytes < self._used_bytes and self._items:
            oldest = next(iter(self._items))
            self._remove(oldest)

    def _remove(self, key: str) -> None:
        value = self._items.pop(key)
        self._expires.pop(key, None)
        self._used_bytes -= _key_size(key) + len(value)
        if self._on_evicted is not None:
            self._on_evicted(key, value)

    def get_with_expiration(self, key: str) -> tuple[Value, float] | None:
        """Return ``(value, seconds_left)``; seconds_left is 0 without expiry."""
        with self._lock:
            if key not in self._items:
                return None
            now = time.time()
            expiry = self._expires.get(key)
            if expiry is not None:
                if now > expiry:
                    return None
                ttl = expiry - now
            else:
                ttl = 0.0
            self._items.move_to_end(key)
            return self._items[key], ttl

    def get_expiration(self, key: str) -> float | None:
        """Return the expiry timestamp of ``key``, or None if it has none."""
        with self._lock:
            return self._expires.get(key)

    def update_expiration(self, key: str, expiration: float) -> bool:
        """Reset the expiry of an existing key; <= 0 removes the expiry."""
        with self._lock:
            if key not in self._items:
                return False
            if expiration > 0:
                self._expires[key] = time.time() + expiration
            else:
                self._expires.pop(key, None)
            return True

    def used_bytes(self) -> int:
        """Bytes currently taken by keys and values."""
        with self._lock:
            return self._used_bytes

    def max_bytes(self) -> int:
        """The byte limit; 0 or less means unbounded."""
        with self._lock:
            return self._max_bytes

    def set_max_bytes(self, max_bytes: int) -> None:
        """Change the byte limit, evicting at once if it is positive."""
        with self._lock:
            self._max_bytes = max_bytes
            if max_bytes > 0:
                self._evict()