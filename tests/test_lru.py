import time

import pytest

from kamacache.store.lru import LruCache
from kamacache.store.options import Options


@pytest.fixture
def make_cache():
    caches = []

    def factory(max_bytes=1024, on_evicted=None, cleanup_interval=3.0):
        cache = LruCache(
            Options(
                max_bytes=max_bytes,
                cleanup_interval=cleanup_interval,
                on_evicted=on_evicted,
            )
        )
        caches.append(cache)
        return cache

    yield factory
    for cache in caches:
        cache.close()


def test_set_and_get(make_cache):
    cache = make_cache()
    cache.set("1", "1")
    assert cache.get("1") == "1"
    assert len(cache) == 1


def test_least_recently_used_is_evicted(make_cache):
    cache = make_cache(max_bytes=10)
    for i in range(5):
        cache.set(str(i), str(i))
    for j in range(5):
        assert cache.get(str(4 - j)) == str(4 - j)
    cache.set("5", "5")
    assert cache.get("4") is None
    assert cache.get("0") == "0"


def test_missing_key_returns_none(make_cache):
    assert make_cache().get("absent") is None


def test_used_bytes_tracks_keys_and_values(make_cache):
    cache = make_cache()
    cache.set("ab", "cde")
    assert cache.used_bytes() == 5
    cache.set("ab", "c")
    assert cache.used_bytes() == 3
    cache.delete("ab")
    assert cache.used_bytes() == 0


def test_delete_reports_presence(make_cache):
    cache = make_cache()
    cache.set("k", "v")
    assert cache.delete("k") is True
    assert cache.delete("k") is False
    assert cache.get("k") is None


def test_setting_none_deletes(make_cache):
    cache = make_cache()
    cache.set("k", "v")
    cache.set("k", None)
    assert len(cache) == 0


def test_eviction_callback_receives_key_and_value(make_cache):
    evicted = []
    cache = make_cache(max_bytes=4, on_evicted=lambda k, v: evicted.append((k, v)))
    cache.set("a", "x")
    cache.set("b", "y")
    cache.set("c", "z")
    assert evicted == [("a", "x")]


def test_clear_reports_all_and_resets(make_cache):
    evicted = []
    cache = make_cache(on_evicted=lambda k, v: evicted.append(k))
    cache.set("a", "1")
    cache.set("b", "2")
    cache.clear()
    assert sorted(evicted) == ["a", "b"]
    assert len(cache) == 0
    assert cache.used_bytes() == 0


def test_expired_item_is_not_returned(make_cache):
    cache = make_cache()
    cache.set_with_expiration("k", "v", 0.02)
    assert cache.get("k") == "v"
    time.sleep(0.05)
    assert cache.get("k") is None
    assert len(cache) == 0


def test_get_with_expiration(make_cache):
    cache = make_cache()
    cache.set("plain", "v")
    cache.set_with_expiration("timed", "v", 10)
    assert cache.get_with_expiration("plain") == ("v", 0.0)
    value, ttl = cache.get_with_expiration("timed")
    assert value == "v"
    assert 0 < ttl <= 10
    assert cache.get_with_expiration("absent") is None


def test_get_and_update_expiration(make_cache):
    cache = make_cache()
    cache.set("k", "v")
    assert cache.get_expiration("k") is None
    before = time.time()
    assert cache.update_expiration("k", 5) is True
    expiry = cache.get_expiration("k")
    assert before + 5 <= expiry <= time.time() + 5
    assert cache.update_expiration("k", 0) is True
    assert cache.get_expiration("k") is None
    assert cache.update_expiration("absent", 5) is False


def test_background_cleanup_removes_expired(make_cache):
    cache = make_cache(cleanup_interval=0.02)
    cache.set_with_expiration("k", "v", 0.01)
    deadline = time.time() + 2
    while len(cache) and time.time() < deadline:
        time.sleep(0.02)
    assert len(cache) == 0


def test_context_manager_returns_cache():
    with LruCache(Options(max_bytes=100)) as cache:
        cache.set("k", "v")
        assert cache.get("k") == "v"