"""The complete store: every data type over one key space."""

from __future__ import annotations

from memkv.bitmap import BitmapStore
from memkv.bloom import BloomStore
from memkv.geo import GeoStore
from memkv.hashes import HashStore
from memkv.hyperloglog import HyperLogLogStore
from memkv.lists import ListStore
from memkv.sets import SetStore
from memkv.skiplist import ZSetMember
from memkv.zset_store import ZSetStore


class Store(
    BitmapStore,
    HashStore,
    SetStore,
    ListStore,
    GeoStore,
    BloomStore,
    HyperLogLogStore,
):
    """Key space offering string, bitmap, hash, set, list, sorted set, geo,
    Bloom filter and HyperLogLog commands."""

    # List and sorted-set stores each keep a private pop helper of the same
    # name; bind every pop command to its own one explicitly.

    def lpop(self, key: str, count: int = 1) -> list[str] | None:
        return ListStore._pop(self, key, count, from_head=True)

    def rpop(self, key: str, count: int = 1) -> list[str] | None:
        return ListStore._pop(self, key, count, from_head=False)

    def zpopmin(self, key: str) -> ZSetMember | None:
        return ZSetStore._pop(self, key, lowest=True)

    def zpopmax(self, key: str) -> ZSetMember | None:
        return ZSetStore._pop(self, key, lowest=False)