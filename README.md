# kamacache

A caching library built around named cache groups. Each group keeps its
values in a local store that has a byte budget. When a value is missing,
the group loads it through a getter you supply. If you register a peer
picker, the group first asks the node that owns the key. It also hands its
own writes and deletes on to that node in the background.

Requires Python 3.11 or later and has no third-party dependencies.

## Modules

- `kamacache.byte_view.ByteView` is an immutable snapshot of bytes.
  `len()` gives its size, `byte_slice()` returns a copy of the bytes, and
  `str()` decodes it as UTF-8.
- `kamacache.store.lru.LruCache` and `kamacache.store.lfu.LfuCache` are
  thread-safe stores with these features:
  - They are bounded by the bytes of their keys plus their values.
  - Expiry is set per key, in seconds.
  - An optional eviction callback is called for each removed item.
  - A background thread removes expired items every `cleanup_interval`
    seconds.

  `get` returns the value, or `None` if the key is absent or expired.
  Other methods are `set`, `set_with_expiration`, `delete`, `clear`,
  `get_with_expiration`, `get_expiration`, `update_expiration`,
  `used_bytes`, `max_bytes`, `set_max_bytes` and `close`. Both stores also
  work as context managers.
- `kamacache.store.options` defines `CacheType` (`LRU`, `LFU`), the
  `Options` dataclass (`max_bytes`, `cleanup_interval`, `on_evicted`), the
  `Value` and `Store` protocols, and `default_options()`. The defaults are
  8 KiB and a 60-second cleanup interval.
- `kamacache.store.factory.new_store(cache_type, opts)` returns an
  `LruCache` for `"lru"` and an `LfuCache` for any other type.
- `kamacache.cache.Cache` wraps a store that is created on the first write.
  It counts hits and misses and reports them from `stats()`. It is
  configured with `CacheOptions`. The defaults, from
  `default_cache_options()`, are LFU, 8 MiB and a 60-second cleanup.
- `kamacache.group` provides the following:
  - the `Group` class;
  - the registry functions `new_group`, `get_group`, `list_groups`,
    `destroy_group` and `destroy_all_groups`;
  - the `Peer` and `PeerPicker` protocols;
  - the errors `CacheError`, `KeyRequiredError`, `ValueRequiredError`,
    `GroupClosedError` and `LoadError`.
- `kamacache.consistenthash.ConsistentHashingMap` is a hash ring with
  virtual nodes, configured with `Config`. The defaults are 50 virtual nodes
  per node, kept between 10 and 200, with a CRC-32 hash. A background thread
  checks the load once the ring has served at least 1000 requests. If the
  load is spread unevenly beyond `load_balance_threshold`, it adjusts each
  node's virtual-node count.
- `kamacache.singleflight.SingleFlight.do(key, fn)` runs `fn` once per key
  while concurrent callers of the same key wait. Those callers then get the
  same result or exception.
- `kamacache.retry.RetryConfig.run(fn, on_retry)` calls `fn` until it
  succeeds.
  - It makes up to `max_attempts` attempts; `0` retries forever.
  - The delay doubles after each failure.
  - It raises `RetryError`, which holds every error seen.
- `kamacache.dbconfig.DBConfig` holds MySQL connection settings and builds
  their data source name with `dsn()`. Create one with `new_db_config`,
  which reads the `mysql` section of a mapping, or with `load_db_config`,
  which reads a TOML file.
- `kamacache.utils.create_config_cache(content)` writes text to
  `tmp/nacos/config/config.yaml`, relative to the working directory. It
  returns the path written, or `None` on failure.
- `kamacache.consts` holds the shared names (`FROM_PEER`,
  `DEFAULT_CLIENT_NAME`, `DATA_ID`, `GROUP`).

## Using a group

```python
from kamacache.group import new_group, get_group, KeyRequiredError, LoadError

source = {"alice": b"630", "bob": b"589"}

def load(key):
    return source[key]          # raising here makes get() raise LoadError

scores = new_group("scores", 2 << 20, load)

print(str(scores.get("alice")))   # loaded through the getter, then cached
print(str(scores.get("alice")))   # served from the local cache

scores.set("carol", b"567")
scores.delete("bob")

assert get_group("scores") is scores
print(scores.stats()["local_hits"])

try:
    scores.get("")
except KeyRequiredError:
    pass

try:
    scores.get("nobody")
except LoadError as exc:
    print(exc)

scores.close()                   # also removes it from the registry
```

`new_group` takes these optional arguments:

- `expiration`, in seconds, for the entries it caches;
- `cache_options`, which replaces the defaults entirely;
- `peers`, a `PeerPicker`.

A peer picker can also be attached once, later, with `register_peers`.
`set` and `delete` accept `from_peer=True`, which stops the change from
being sent on to other nodes.

## Using a store directly

```python
from kamacache.byte_view import ByteView
from kamacache.store.lru import LruCache
from kamacache.store.options import Options

with LruCache(Options(max_bytes=1024)) as store:
    store.set("greeting", ByteView(b"hello"))
    store.set_with_expiration("session", ByteView(b"abc"), 30)
    print(str(store.get("greeting")), store.used_bytes())
    print(store.get("missing"))   # None
```

Once `max_bytes` is exceeded, `LruCache` evicts the least recently used
entries.

`LfuCache` evicts the least frequently used entry in two situations:

- when a new key is inserted while the used bytes equal the limit exactly;
- when its periodic cleanup, or `set_max_bytes`, finds the limit exceeded.

## Consistent hashing

```python
from kamacache.consistenthash import Config, ConsistentHashingMap

with ConsistentHashingMap(Config()) as ring:
    ring.add("10.0.0.1:8001", "10.0.0.2:8001", "10.0.0.3:8001")
    print(ring.get("user:42"))
    print(ring.get_stats())
    ring.remove("10.0.0.2:8001")
```

## What the package does not do

Everything here runs inside one Python process. The package contains:

- no network server;
- no client for talking to other cache nodes;
- no service registration or discovery;
- no command-line program.

To spread a group across machines, supply your own `Peer` and `PeerPicker`
implementations.

`DBConfig` only describes a database connection. The package does not
connect to a database. Loading from one is up to the getter you pass to a
group.

## Running the tests

Install the `test` extra, which provides pytest, and run `pytest` from the
project root.