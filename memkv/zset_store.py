"""Sorted set commands over the key space."""

from __future__ import annotations

from collections.abc import Iterable

from memkv.errors import WrongTypeError
from memkv.keyspace import Keyspace, ValueType
from memkv.skiplist import ZSetMember
from memkv.zset import ZSet


def _normalize_ranks(length: int, start: int, stop: int) -> tuple[int, int] | None:
    """Resolve negative and out-of-range ranks; None if the range is empty."""
    if start < 0:
        start += length
    if stop < 0:
        stop += length
    start = max(start, 0)
    stop = min(stop, length - 1)
    if start > stop:
        return None
    return start, stop


class ZSetStore(Keyspace):
    """Key space with sorted set commands.

    Read commands treat a key of another type as absent; write commands raise
    WrongTypeError for it.
    """

    def _existing_zset(self, key: str) -> ZSet | None:
        value = self._lookup(key)
        if value is None:
            return None
        if value.type is not ValueType.ZSET:
            raise WrongTypeError()
        return value.data if isinstance(value.data, ZSet) else None

    def _readable_zset(self, key: str) -> ZSet | None:
        try:
            return self._existing_zset(key)
        except WrongTypeError:
            return None

    def _zset_for_write(self, key: str) -> ZSet:
        """A sorted set that may be modified, cloned while a snapshot is held."""
        value = self._lookup(key)
        if value is None:
            return ZSet()
        if value.type is not ValueType.ZSET:
            raise WrongTypeError()
        if not isinstance(value.data, ZSet):
            return ZSet()
        if self._snapshot_active():
            return value.data.clone()
        return value.data

    def _save_zset(self, key: str, zset: ZSet) -> None:
        if len(zset):
            self._put(key, zset, ValueType.ZSET)
        else:
            self._delete_key(key)

    def zadd(self, key: str, members: Iterable[ZSetMember]) -> int:
        """Add or re-score members; return how many were new."""
        zset = self._zset_for_write(key)
        added = sum(zset.add(entry.member, entry.score) for entry in members)
        self._save_zset(key, zset)
        return added

    def zrem(self, key: str, members: Iterable[str]) -> int:
        """Remove members; return how many were present."""
        if self._existing_zset(key) is None:
            return 0
        zset = self._zset_for_write(key)
        removed = sum(zset.remove(member) for member in members)
        self._save_zset(key, zset)
        return removed

    def zscore(self, key: str, member: str) -> float | None:
        zset = self._readable_zset(key)
        return None if zset is None else zset.score(member)

    def zrank(self, key: str, member: str) -> int:
        """Ascending 0-based rank, or -1 if the member or key is absent."""
        zset = self._readable_zset(key)
        return -1 if zset is None else zset.rank(member)

    def zrevrank(self, key: str, member: str) -> int:
        """Descending 0-based rank, or -1 if the member or key is absent."""
        zset = self._readable_zset(key)
        return -1 if zset is None else zset.rev_rank(member)

    def zcard(self, key: str) -> int:
        zset = self._readable_zset(key)
        return 0 if zset is None else len(zset)

    def zrange(self, key: str, start: int, stop: int) -> list[ZSetMember]:
        """Members by ascending rank, stop inclusive; negative ranks count from the end."""
        zset = self._readable_zset(key)
        if zset is None:
            return []
        span = _normalize_ranks(len(zset), start, stop)
        return [] if span is None else zset.range_by_rank(*span)

    def zrevrange(self, key: str, start: int, stop: int) -> list[ZSetMember]:
        """Members by descending rank, stop inclusive; negative ranks count from the end."""
        zset = self._readable_zset(key)
        if zset is None:
            return []
        span = _normalize_ranks(len(zset), start, stop)
        return [] if span is None else zset.rev_range_by_rank(*span)

    def zrangebyscore(
        self,
        key: str,
        min_score: float,
        max_score: float,
        offset: int = 0,
        count: int = -1,
    ) -> list[ZSetMember]:
        """Members with min_score <= score <= max_score, ascending; count -1 is no limit."""
        zset = self._readable_zset(key)
        if zset is None:
            return []
        return zset.range_by_score(min_score, max_score, offset, count)

    def zrevrangebyscore(
        self,
        key: str,
        min_score: float,
        max_score: float,
        offset: int = 0,
        count: int = -1,
    ) -> list[ZSetMember]:
        """Members with min_score <= score <= max_score, descending."""
        zset = self._readable_zset(key)
        if zset is None:
            return []
        return zset.rev_range_by_score(min_score, max_score, offset, count)

    def zincrby(self, key: str, delta: float, member: str) -> float:
        """Add delta to member's score, creating it if needed; return the new score."""
        zset = self._zset_for_write(key)
        score = zset.incr_by(member, delta)
        self._save_zset(key, zset)
        return score

    def zcount(self, key: str, min_score: float, max_score: float) -> int:
        zset = self._readable_zset(key)
        return 0 if zset is None else zset.count(min_score, max_score)

    def _pop(self, key: str, lowest: bool) -> ZSetMember | None:
        if self._readable_zset(key) is None:
            return None
        zset = self._zset_for_write(key)
        entry = zset.pop_min() if lowest else zset.pop_max()
        self._save_zset(key, zset)
        return entry

    def zpopmin(self, key: str) -> ZSetMember | None:
        return self._pop(key, lowest=True)

    def zpopmax(self, key: str) -> ZSetMember | None:
        return self._pop(key, lowest=False)

    def zremrangebyscore(self, key: str, min_score: float, max_score: float) -> int:
        if self._readable_zset(key) is None:
            return 0
        zset = self._zset_for_write(key)
        removed = zset.remove_range_by_score(min_score, max_score)
        self._save_zset(key, zset)
        return removed

    def zremrangebyrank(self, key: str, start: int, stop: int) -> int:
        existing = self._readable_zset(key)
        if existing is None:
            return 0
        span = _normalize_ranks(len(existing), start, stop)
        if span is None:
            return 0
        zset = self._zset_for_write(key)
        removed = zset.remove_range_by_rank(*span)
        self._save_zset(key, zset)
        return removed