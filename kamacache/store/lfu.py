"""Least-frequently-used store with optional per-key expiry."""

from __future__ import annotations

import threading
import time
import weakref
from collections import OrderedDict
from dataclasses import dataclass

from .options import Options, Value

_DEFAULT_CLEANUP_INTERVAL = 60.0


def _key_size(key: str) -> int:
    return len(key.encode("utf-8"))


@dataclass
class _Entry:
    key: str
    value: Value
    freq: int = 1


class LfuCache:
    """Thread-safe LFU store bounded by total key and value bytes.

    On inserting a new key, the least frequently used item is evicted when the
    used bytes equal the limit exactly; the periodic cleanup evicts whatever
    exceeds the limit. Expirations are in seconds; expiry times are POSIX
    timestamps.
    """

    def __init__(self, opts: Options | None = None) -> None:
        opts = opts if opts is not None else Options()
        interval = opts.cleanup_interval
        if interval <= 0:
            interval = _DEFAULT_CLEANUP_INTERVAL
        self._lock = threading.RLock()
        self._entries: dict[str, _Entry] = {}
        self._buckets: dict[int, OrderedDict[str, _Entry]] = {1: OrderedDict()}
        self._min_freq = 1
        self._expires: dict[str, float] = {}
        self._max_bytes = opts.max_bytes
        self._used_bytes = 0
        self._on_evicted = opts.on_evicted
        self._cleanup_interval = interval
        self._stop = threading.Event()
        threading.Thread(
            target=self._cleanup_loop,
            args=(weakref.ref(self), self._stop, interval),
            name="lfu-cleanup",
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

    def __enter__(self) -> LfuCache:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _is_expired(self, key: str, now: float) -> bool:
        expiry = self._expires.get(key)
        return expiry is not None and now > expiry

    def get(self, key: str) -> Value | None:
        """Return the value for ``key``, or None if absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._is_expired(key, time.time()):
                self._remove(entry)
                return None
            self._touch(entry)
            return entry.value

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

            entry = self._entries.get(key)
            if entry is not None:
                self._used_bytes += len(value) - len(entry.value)
                entry.value = value
                self._touch(entry)
                return

            if self._used_bytes == self._max_bytes and self._entries:
                self._remove(self._least_frequent())

            entry = _Entry(key, value)
            self._buckets.setdefault(1, OrderedDict())[key] = entry
            self._entries[key] = entry
            self._min_freq = 1
            self._used_bytes += _key_size(key) + len(value)

    def delete(self, key: str) -> bool:
        """Remove ``key``; return whether it was present."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            self._remove(entry)
            return True

    def clear(self) -> None:
        """Remove every item, reporting each to the eviction callback."""
        with self._lock:
            if self._on_evicted is not None:
                for entry in list(self._entries.values()):
                    self._on_evicted(entry.key, entry.value)
            self._entries = {}
            self._buckets = {1: OrderedDict()}
            self._expires = {}
            self._used_bytes = 0
            self._min_freq = 1

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def close(self) -> None:
        """Stop the background cleanup."""
        self._stop.set()

    def _evict(self) -> None:
        now = time.time()
        for key in [k for k, exp in self._expires.items() if now > exp]:
            entry = self._entries.get(key)
            if entry is not None:
                self._remove(entry)
            else:
                self._expires.pop(key, None)

        while 0 < self._max_bytes < self._used_bytes and self._entries:
            self._remove(self._least_frequent())

    def _least_frequent(self) -> _Entry:
        bucket = self._buckets.get(self._min_freq)
        if not bucket:
            self._min_freq = min(f for f, b in self._buckets.items() if b)
            bucket = self._buckets[self._min_freq]
        return next(iter(bucket.values()))

    def _touch(self, entry: _Entry) -> None:
        old = self._buckets[entry.freq]
        del old[entry.key]
        if not old:
            if entry.freq != 1:
                del self._buckets[entry.freq]
            if self._min_freq == entry.freq:
                self._min_freq += 1
        entry.freq += 1
        bucket = self._buckets.setdefault(entry.freq, OrderedDict())
        bucket[entry.key] = entry
        bucket.move_to_end(entry.key, last=False)

    def _remove(self, entry: _Entry) -> None:
        bucket = self._buckets[entry.freq]
        del bucket[entry.key]
        if not bucket and entry.freq != 1:
            del self._buckets[entry.freq]
        del self._entries[entry.key]
        self._expires.pop(entry.key, None)
        self._used_bytes -= _key_size(entry.key) + len(entry.value)
        if self._on_evicted is not None:
            self._on_evicted(entry.key, entry.value)

    def get_with_expiration(self, key: str) -> tuple[Value, float] | None:
        """Return ``(value, seconds_left)``; seconds_left is 0 without expiry."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            now = time.time()
            expiry = self._expires.get(key)
            if expiry is not None and now > expiry:
                return None
            ttl = expiry - now if expiry is not None else 0.0
            self._touch(entry)
            return entry.value, ttl

    def get_expiration(self, key: str) -> float | None:
        """Return the expiry timestamp of ``key``, or None if it has none."""
        with self._lock:
            return self._expires.get(key)

    def update_expiration(self, key: str, expiration: float) -> bool:
        """Reset the expiry of an existing key; <= 0 removes the expiry."""
        with self._lock:
            if key not in self._entries:
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