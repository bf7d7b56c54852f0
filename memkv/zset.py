"""Sorted set: a member-to-score map paired with a skip list."""

from __future__ import annotations

from memkv.skiplist import SkipList, ZSetMember


class ZSet:
    """Unique members ordered by score, then by member."""

    def __init__(self) -> None:
        self._scores: dict[str, float] = {}
        self._skiplist = SkipList()

    def __len__(self) -> int:
        return len(self._scores)

    def add(self, member: str, score: float) -> bool:
        """Add or re-score member; False only when the score is unchanged."""
        old = self._scores.get(member)
        exists = member in self._scores
        if exists:
            if old == score:
                return False
            self._skiplist.delete(member, old)
        self._scores[member] = score
        inserted = self._skiplist.insert(member, score)
        return not exists or inserted

    def remove(self, member: str) -> bool:
        if member not in self._scores:
            return False
        score = self._scores.pop(member)
        self._skiplist.delete(member, score)
        return True

    def score(self, member: str) -> float | None:
        return self._scores.get(member)

    def rank(self, member: str) -> int:
        """0-based ascending rank, or -1 if absent."""
        if member not in self._scores:
            return -1
        return self._skiplist.rank(member, self._scores[member])

    def rev_rank(self, member: str) -> int:
        """0-based descending rank, or -1 if absent."""
        rank = self.rank(member)
        if rank == -1:
            return -1
        return len(self) - rank - 1

    def range_by_score(
        self, min_score: float, max_score: float, offset: int = 0, count: int = -1
    ) -> list[ZSetMember]:
        return self._skiplist.range_by_score(min_score, max_score, offset, count, False)

    def rev_range_by_score(
        self, min_score: float, max_score: float, offset: int = 0, count: int = -1
    ) -> list[ZSetMember]:
        return self._skiplist.range_by_score(min_score, max_score, offset, count, True)

    def range_by_rank(self, start: int, stop: int) -> list[ZSetMember]:
        return self._skiplist.range_by_rank(start, stop, False)

    def rev_range_by_rank(self, start: int, stop: int) -> list[ZSetMember]:
        return self._skiplist.range_by_rank(start, stop, True)

    def incr_by(self, member: str, delta: float) -> float:
        """Add delta to member's score, creating it at delta; return the new score."""
        exists = member in self._scores
        old = self._scores.get(member, 0.0)
        new = old + delta
        if exists:
            self._skiplist.delete(member, old)
        self._scores[member] = new
        self._skiplist.insert(member, new)
        return new

    def count(self, min_score: float, max_score: float) -> int:
        return len(self.range_by_score(min_score, max_score))

    def pop_min(self) -> ZSetMember | None:
        entry = self._skiplist.first()
        if entry is not None:
            self.remove(entry.member)
        return entry

    def pop_max(self) -> ZSetMember | None:
        entry = self._skiplist.last()
        if entry is not None:
            self.remove(entry.member)
        return entry

    def remove_range_by_score(self, min_score: float, max_score: float) -> int:
        return sum(self.remove(entry.member) for entry in self.range_by_score(min_score, max_score))

    def remove_range_by_rank(self, start: int, stop: int) -> int:
        return sum(self.remove(entry.member) for entry in self.range_by_rank(start, stop))

    def clone(self) -> ZSet:
        copy = ZSet()
        copy._scores = dict(self._scores)
        copy._skiplist = self._skiplist.clone()
        return copy

    def members(self) -> list[ZSetMember]:
        """All members in ascending order."""
        return list(self._skiplist)