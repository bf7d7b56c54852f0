# memkv

An in-process key-value store that keeps typed values under string keys:
plain strings and integer counters, bitmaps, hashes, sets, lists, sorted
sets, geospatial indexes, Bloom filters and HyperLogLog cardinality
estimators.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Usage

`memkv.store.Store` combines every data type over one key space. Each type is
also available on its own as a subclass of `memkv.keyspace.Keyspace`:
`BitmapStore` (`memkv.bitmap`), `HashStore` (`memkv.hashes`), `SetStore`
(`memkv.sets`), `ListStore` (`memkv.lists`), `ZSetStore` (`memkv.zset_store`),
`GeoStore` (`memkv.geo`), `BloomStore` (`memkv.bloom`) and `HyperLogLogStore`
(`memkv.hyperloglog`).

```python
import time

from memkv.store import Store
from memkv.geo import GeoPoint
from memkv.skiplist import ZSetMember

store = Store()

# strings, counters and expiry (absolute epoch seconds)
store.set("greeting", "hello", None)
store.get("greeting")                    # "hello"
store.incr("visits")                     # 1
store.expire("greeting", time.time() + 60)
store.ttl("greeting")                    # 59 or 60; -1 without expiry, -2 if absent

# bitmaps (bit 0 is the most significant bit of the first byte)
store.setbit("flags", 7, 1)              # previous bit: 0
store.bitcount("flags")                  # 1

# hashes
store.hset("user:1", "name", "Ada", "lang", "en")   # 2 new fields
store.hget("user:1", "name")             # "Ada"
store.hincrby("user:1", "logins", 1)     # 1

# sets and lists
store.sadd("tags", "a", "b", "c")        # 3
store.sinter("tags")                     # {"a", "b", "c"}
store.rpush("queue", "job1", "job2")     # 2
store.lpop("queue", 1)                   # ["job1"]

# sorted sets
store.zadd("board", [ZSetMember("alice", 10), ZSetMember("bob", 20)])
store.zrange("board", 0, -1)             # [ZSetMember("alice", 10), ZSetMember("bob", 20)]
store.zrank("board", "bob")              # 1

# geospatial (stored as a sorted set scored by a 52-bit geohash)
store.geoadd("places", [
    GeoPoint(longitude=13.361389, latitude=38.115556, member="Palermo"),
    GeoPoint(longitude=15.087269, latitude=37.502669, member="Catania"),
])
store.geodist("places", "Palermo", "Catania", "km")
store.georadius("places", 15.0, 37.0, 200, "km", with_dist=True)

# Bloom filters
store.bf_reserve("seen", 0.01, 1000)
store.bf_add("seen", "item")             # True
store.bf_exists("seen", "item")          # True

# HyperLogLog
store.pfadd("visitors", ["u1", "u2", "u3"])
store.pfcount(["visitors"])              # about 3
```

The data structures can also be used directly: `memkv.zset.ZSet`,
`memkv.skiplist.SkipList`, `memkv.bloom.BloomFilter` and
`memkv.hyperloglog.HyperLogLog`. `memkv.geo` exposes the geohash and distance
helpers (`geohash_encode`, `geohash_decode`, `geohash_to_string`,
`haversine_distance`, `convert_to_meters`, `convert_from_meters`).

## Expiry

Expired keys are removed lazily when they are accessed, and in batches by
`cleanup_expired_keys()`, which samples keys that carry an expiry and stops
after about a millisecond. Writing a hash, set, list, sorted set, Bloom filter
or HyperLogLog, or a counter through `incr_by`, stores the key without an
expiry.

## Errors

Failures are raised as subclasses of `memkv.errors.StorageError`:

- `WrongTypeError` when hash, list, bitmap or sorted-set writes meet a key of
  another type. Set commands treat such a key as an empty set, and sorted-set
  reads treat it as absent.
- `InvalidOperationError` for a bad bit offset or bit value, an empty key list
  for `bitop_*`, `pfcount` or `pfmerge`, invalid coordinates in `geoadd` or
  `georadius`, reserving a Bloom filter over an existing key, or using a Bloom
  filter or HyperLogLog command on a key of another type.
- `KeyNotFoundError` for Bloom filter commands on a missing key.
- `NoSuchKeyError` and `IndexOutOfRangeError` from `lset`.
- `NotIntegerError` from `incr`/`incr_by`/`decr`/`decr_by`,
  `HashValueNotIntegerError` from `hincrby`, `HashValueNotFloatError` from
  `hincrbyfloat`.
- `WrongNumArgsError` when `hset` gets an odd number of field/value arguments.
- `PrecisionMismatchError` and `InvalidRegisterCountError` from
  `HyperLogLog.merge` and `HyperLogLog.load_registers`.

## Snapshots

`get_all_data()` returns a shallow copy of the key space and marks a snapshot
as active. While a snapshot is active, hash, set, list, sorted-set and
HyperLogLog writes copy the stored value before changing it, so the snapshot
stays as it was. Call `release_snapshot()` when done, or use the `snapshot()`
context manager, which releases it for you:

```python
with store.snapshot() as data:
    for key, value in data.items():
        print(key, value.type, value.expires_at)
```

## What it does not do

memkv is a library only. It has no network server or wire protocol, no
command-line program, no persistence to disk (snapshots are in-memory copies),
no publish/subscribe, no replication and no clustering.