"""Construction of stores by policy."""

from __future__ import annotations

from .lfu import LfuCache
from .lru import LruCache
from .options import CacheType, Options, Store


def new_store(cache_type: CacheType | str, opts: Options | None = None) -> Store:
    """Return an LRU store for ``"lru"``; any other type gives an LFU store."""
    if cache_type == CacheType.LRU:
        return LruCache(opts)
    return LfuCache(opts)