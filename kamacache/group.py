"""Named cache groups that load missing keys and keep peers in step."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Protocol, runtime_checkable

from .byte_view import ByteView
from .cache import Cache, CacheOptions, default_cache_options
from .singleflight import SingleFlight

logger = logging.getLogger(__name__)

Getter = Callable[[str], bytes]
"""Loads the bytes of a key from the source of truth when the cache misses."""


class CacheError(Exception):
    """Base class of the errors raised by cache groups."""


class KeyRequiredError(CacheError, ValueError):
    """The key is empty."""

    def __init__(self) -> None:
        super().__init__("key is required")


class ValueRequiredError(CacheError, ValueError):
    """The value is empty."""

    def __init__(self) -> None:
        super().__init__("value is required")


class GroupClosedError(CacheError):
    """The group was closed."""

    def __init__(self) -> None:
        super().__init__("cache group is closed")


class LoadError(CacheError):
    """Neither a peer nor the getter could supply the value."""


@runtime_checkable
class Peer(Protocol):
    """Another cache node reachable for one group's keys."""

    def get(self, group: str, key: str) -> bytes: ...

    def set(self, group: str, key: str, value: bytes) -> None: ...

    def delete(self, group: str, key: str) -> bool: ...

    def close(self) -> None: ...


@runtime_checkable
class PeerPicker(Protocol):
    """Chooses the node that owns a key."""

    def pick_peer(self, key: str) -> tuple[Peer, bool] | None:
        """Return ``(peer, is_self)`` for ``key``, or None when no node owns it."""
        ...

    def print_peers(self) -> None: ...

    def close(self) -> None: ...


_COUNTERS = (
    "loads",
    "local_hits",
    "local_misses",
    "peer_hits",
    "peer_misses",
    "loader_hits",
    "loader_errors",
)


class Group:
    """A named cache of one kind of data.

    Misses are filled from the owning peer when there is one, otherwise from
    the getter; concurrent loads of one key run only once. ``expiration`` is in
    seconds, 0 or less meaning entries never expire.
    """

    def __init__(
        self,
        name: str,
        getter: Getter,
        cache_options: CacheOptions | None = None,
        expiration: float = 0.0,
        peers: PeerPicker | None = None,
    ) -> None:
        if getter is None:
            raise ValueError("nil getter")
        self.name = name
        self._getter = getter
        self._cache = Cache(cache_options if cache_options is not None else default_cache_options())
        self._expiration = expiration
        self._peers = peers
        self._loader = SingleFlight()
        self._lock = threading.Lock()
        self._closed = False
        self._counts = dict.fromkeys(_COUNTERS, 0)
        self._load_ns = 0

    def __enter__(self) -> Group:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def _count(self, name: str, amount: int = 1) -> None:
        with self._lock:
            self._counts[name] += amount

    def _store_locally(self, key: str, view: ByteView) -> None:
        if self._expiration > 0:
            self._cache.add_with_expiration(key, view, time.time() + self._expiration)
        else:
            self._cache.add(key, view)

    def _check_open(self, key: str) -> None:
        if self.closed:
            raise GroupClosedError()
        if not key:
            raise KeyRequiredError()

    def set(self, key: str, value: bytes, from_peer: bool = False) -> None:
        """Cache ``value`` under ``key`` and, unless it came from a peer, pass it on."""
        self._check_open(key)
        if not value:
            raise ValueRequiredError()
        self._store_locally(key, ByteView(value))
        if not from_peer and self._peers is not None:
            self._sync_in_background("set", key, bytes(value))

    def get(self, key: str) -> ByteView:
        """Return the value of ``key``, loading it when it is not cached."""
        self._check_open(key)
        view = self._cache.get(key)
        if view is not None:
            self._count("local_hits")
            return view
        self._count("local_misses")
        return self._load(key)

    def delete(self, key: str, from_peer: bool = False) -> None:
        """Drop ``key`` and, unless the request came from a peer, pass it on."""
        self._check_open(key)
        self._cache.delete(key)
        if not from_peer and self._peers is not None:
            self._sync_in_background("delete", key, None)

    def clear(self) -> None:
        """Empty the local cache."""
        if self.closed:
            return
        self._cache.clear()
        logger.info("cleared cache for group [%s]", self.name)

    def close(self) -> None:
        """Close the group, release its cache and unregister it; idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._cache.close()
        with _groups_lock:
            if _groups.get(self.name) is self:
                del _groups[self.name]
        logger.info("closed cache group [%s]", self.name)

    def register_peers(self, peers: PeerPicker) -> None:
        """Attach the peer picker; it can be set only once."""
        if self._peers is not None:
            raise RuntimeError("register_peers called more than once")
        self._peers = peers
        logger.info("registered peers for group [%s]", self.name)

    def stats(self) -> dict[str, Any]:
        """Return counters, hit rate, mean load time and the cache's own stats."""
        with self._lock:
            result: dict[str, Any] = {
                "name": self.name,
                "closed": self._closed,
                "expiration": self._expiration,
                **self._counts,
            }
            load_ns = self._load_ns
        total_gets = result["local_hits"] + result["local_misses"]
        if total_gets > 0:
            result["hit_rate"] = result["local_hits"] / total_gets
        if result["loads"] > 0:
            result["avg_load_time_ms"] = load_ns / result["loads"] / 1_000_000
        for name, value in self._cache.stats().items():
            result[f"cache_{name}"] = value
        return result

    def _load(self, key: str) -> ByteView:
        start = time.perf_counter_ns()
        try:
            view = self._loader.do(key, lambda: self._load_data(key))
        except Exception as exc:
            self._record_load(start)
            self._count("loader_errors")
            raise LoadError(f"failed to load key {key!r}: {exc}") from exc
        self._record_load(start)
        self._store_locally(key, view)
        return view

    def _record_load(self, start: int) -> None:
        elapsed = time.perf_counter_ns() - start
        with self._lock:
            self._load_ns += elapsed
            self._counts["loads"] += 1

    def _load_data(self, key: str) -> ByteView:
        if self._peers is not None:
            picked = self._peers.pick_peer(key)
            if picked is not None:
                peer, is_self = picked
                if not is_self:
                    try:
                        data = peer.get(self.name, key)
                    except Exception as exc:
                        self._count("peer_misses")
                        logger.warning(
                            "failed to get from peer, key [%s], err [%s]", key, exc
                        )
                    else:
                        self._count("peer_hits")
                        return ByteView(data)
        data = self._getter(key)
        self._count("loader_hits")
        return ByteView(data)

    def _sync_in_background(self, op: str, key: str, value: bytes | None) -> None:
        threading.Thread(
            target=self._sync_to_peers,
            args=(op, key, value),
            name=f"sync-{self.name}",
            daemon=True,
        ).start()

    def _sync_to_peers(self, op: str, key: str, value: bytes | None) -> None:
        peers = self._peers
        if peers is None:
            return
        picked = peers.pick_peer(key)
        if picked is None:
            return
        peer, is_self = picked
        if is_self:
            return
        try:
            if op == "set":
                peer.set(self.name, key, value)
            elif op == "delete":
                peer.delete(self.name, key)
        except Exception as exc:
            logger.error("failed to sync %s to peer: %s", op, exc)


_groups_lock = threading.RLock()
_groups: dict[str, Group] = {}


def new_group(
    name: str,
    cache_bytes: int,
    getter: Getter,
    expiration: float = 0.0,
    cache_options: CacheOptions | None = None,
    peers: PeerPicker | None = None,
) -> Group:
    """Create a group and register it under ``name``, replacing any earlier one.

    ``cache_options``, when given, replaces the default options entirely,
    ``cache_bytes`` included.
    """
    if getter is None:
        raise ValueError("nil getter")
    if cache_options is None:
        cache_options = default_cache_options()
        cache_options.max_bytes = cache_bytes
    group = Group(name, getter, cache_options, expiration, peers)
    with _groups_lock:
        if name in _groups:
            logger.warning("Group with name %s already exists, will be replaced", name)
        _groups[name] = group
    logger.info(
        "Created cache group [%s] with cacheBytes=%d, expiration=%s",
        name,
        cache_bytes,
        expiration,
    )
    return group


def get_group(name: str) -> Group | None:
    """Return the registered group called ``name``, or None."""
    with _groups_lock:
        return _groups.get(name)


def list_groups() -> list[str]:
    """Return the names of all registered groups, sorted."""
    with _groups_lock:
        return sorted(_groups)


def destroy_group(name: str) -> bool:
    """Close and unregister the group ``name``; return whether it existed."""
    with _groups_lock:
        group = _groups.pop(name, None)
    if group is None:
        return False
    group.close()
    logger.info("destroyed cache group [%s]", name)
    return True


def destroy_all_groups() -> None:
    """Close and unregister every group."""
    with _groups_lock:
        groups = list(_groups.items())
        _groups.clear()
    for name, group in groups:
        group.close()
        logger.info("destroyed cache group [%s]", name)