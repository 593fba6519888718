import pytest

from kamacache.store.options import CacheType, Options, default_options


def test_default_options_values():
    opts = default_options()
    assert opts.max_bytes == 1024 * 8
    assert opts.cleanup_interval == 60.0
    assert opts.on_evicted is None


def test_default_options_returns_fresh_instances():
    first = default_options()
    first.max_bytes = 1
    assert default_options().max_bytes == Options().max_bytes


def test_cache_type_from_string():
    assert CacheType("lru") is CacheType.LRU
    assert CacheType("lfu") is CacheType.LFU
    assert str(CacheType.LRU) == "lru"


def test_cache_type_rejects_unknown():
    with pytest.raises(ValueError):
        CacheType("fifo")


def test_cache_type_compares_with_string():
    assert CacheType("lfu") == "lfu"
    assert CacheType("lru") == "lru"
    assert CacheType("lru") != "lfu"