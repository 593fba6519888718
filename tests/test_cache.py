import time

import pytest

from kamacache.byte_view import ByteView
from kamacache.cache import Cache, CacheOptions, default_cache_options
from kamacache.store.options import CacheType


@pytest.fixture
def cache():
    with Cache() as c:
        yield c


def test_default_options():
    opts = default_cache_options()
    assert opts.cache_type == CacheType.LFU
    assert opts.max_bytes == 8 * 1024 * 1024
    assert opts.on_evicted is None


def test_add_then_get(cache):
    cache.add("k", ByteView(b"value"))
    assert cache.get("k") == ByteView(b"value")
    assert len(cache) == 1


def test_get_before_init_counts_miss(cache):
    assert cache.get("k") is None
    stats = cache.stats()
    assert stats["misses"] == 1
    assert stats["initialized"] is False
    assert "hit_rate" not in stats


def test_stats_hit_rate(cache):
    cache.add("k", ByteView(b"v"))
    cache.get("k")
    cache.get("missing")
    stats = cache.stats()
    assert stats["hits"] == 1
    assert stats["misses"] == 1
    assert stats["size"] == 1
    assert stats["hit_rate"] == 0.5


def test_delete(cache):
    assert cache.delete("k") is False
    cache.add("k", ByteView(b"v"))
    assert cache.delete("k") is True
    assert cache.get("k") is None


def test_clear_resets_counters(cache):
    cache.add("k", ByteView(b"v"))
    cache.get("k")
    cache.clear()
    stats = cache.stats()
    assert stats["hits"] == 0
    assert stats["misses"] == 0
    assert len(cache) == 0


def test_expiration_in_past_is_ignored(cache):
    cache.add_with_expiration("k", ByteView(b"v"), time.time() - 1)
    assert cache.get("k") is None
    assert cache.stats()["initialized"] is True


def test_expiration_in_future_is_kept(cache):
    cache.add_with_expiration("k", ByteView(b"v"), time.time() + 60)
    assert cache.get("k") == ByteView(b"v")


def test_expired_value_disappears(cache):
    cache.add_with_expiration("k", ByteView(b"v"), time.time() + 0.05)
    time.sleep(0.1)
    assert cache.get("k") is None


def test_close_stops_everything():
    c = Cache()
    c.add("k", ByteView(b"v"))
    c.close()
    assert c.get("k") is None
    c.add("k2", ByteView(b"v"))
    assert len(c) == 0
    assert c.delete("k") is False
    stats = c.stats()
    assert stats["closed"] is True
    assert stats["initialized"] is False


def test_lru_eviction_reports_callback():
    evicted = []
    opts = CacheOptions(
        cache_type=CacheType.LRU,
        max_bytes=4,
        on_evicted=lambda key, value: evicted.append(key),
    )
    with Cache(opts) as c:
        c.add("a", ByteView(b"xy"))
        c.add("b", ByteView(b"zw"))
        assert evicted == ["a"]
        assert c.get("a") is None
        assert c.get("b") == ByteView(b"zw")