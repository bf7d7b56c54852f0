"""Skip list ordered by (score, member) with span bookkeeping for ranks."""

from __future__ import annotations

import random
from collections.abc import Iterator
from dataclasses import dataclass

MAX_LEVEL = 32
PROBABILITY = 0.25


@dataclass(frozen=True)
class ZSetMember:
    """A sorted-set member with its score."""

    member: str
    score: float


class _Node:
    __slots__ = ("member", "score", "forward", "span", "backward")

    def __init__(self, member: str, score: float, level: int) -> None:
        self.member = member
        self.score = score
        self.forward: list[_Node | None] = [None] * level
        self.span: list[int] = [0] * level
        self.backward: _Node | None = None

    def precedes(self, score: float, member: str) -> bool:
        return self.score < score or (self.score == score and self.member < member)

    def as_member(self) -> ZSetMember:
        return ZSetMember(self.member, self.score)


class SkipList:
    """Probabilistic ordered structure with O(log n) insert, delete and rank."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng if rng is not None else random.Random()
        self._header = _Node("", float("-inf"), MAX_LEVEL)
        self._tail: _Node | None = None
        self._length = 0
        self._level = 1

    def __len__(self) -> int:
        return self._length

    def __iter__(self) -> Iterator[ZSetMember]:
        node = self._header.forward[0]
        while node is not None:
            yield node.as_member()
            node = node.forward[0]

    def _random_level(self) -> int:
        level = 1
        while self._rng.random() < PROBABILITY and level < MAX_LEVEL:
            level += 1
        return level

    def _find_update(self, member: str, score: float) -> tuple[list[_Node], list[int]]:
        update: list[_Node] = [self._header] * MAX_LEVEL
        rank = [0] * MAX_LEVEL
        node = self._header
        for i in reversed(range(self._level)):
            rank[i] = 0 if i == self._level - 1 else rank[i + 1]
            while (nxt := node.forward[i]) is not None and nxt.precedes(score, member):
                rank[i] += node.span[i]
                node = nxt
            update[i] = node
        return update, rank

    def insert(self, member: str, score: float) -> bool:
        """Insert member with score; False if that exact pair is already present."""
        update, rank = self._find_update(member, score)
        candidate = update[0].forward[0]
        if candidate is not None and candidate.score == score and candidate.member == member:
            return False
        if candidate is not None and candidate.member == member:
            self._delete_node(candidate, update)

        level = self._random_level()
        if level > self._level:
            for i in range(self._level, level):
                rank[i] = 0
                update[i] = self._header
                self._header.span[i] = self._length
            self._level = level

        node = _Node(member, score, level)
        for i in range(level):
            node.forward[i] = update[i].forward[i]
            update[i].forward[i] = node
            node.span[i] = update[i].span[i] - (rank[0] - rank[i])
            update[i].span[i] = rank[0] - rank[i] + 1
        for i in range(level, self._level):
            update[i].span[i] += 1

        node.backward = None if update[0] is self._header else update[0]
        if node.forward[0] is not None:
            node.forward[0].backward = node
        else:
            self._tail = node
        self._length += 1
        return True

    def delete(self, member: str, score: float) -> bool:
        """Remove the node holding exactly member and score; True if it was found."""
        update, _ = self._find_update(member, score)
        node = update[0].forward[0]
        if node is not None and node.score == score and node.member == member:
            self._delete_node(node, update)
            return True
        return False

    def _delete_node(self, node: _Node, update: list[_Node]) -> None:
        for i in range(self._level):
            if update[i].forward[i] is node:
                update[i].span[i] += node.span[i] - 1
                update[i].forward[i] = node.forward[i]
            else:
                update[i].span[i] -= 1
        if node.forward[0] is not None:
            node.forward[0].backward = node.backward
        else:
            self._tail = node.backward
        while self._level > 1 and self._header.forward[self._level - 1] is None:
            self._level -= 1
        self._length -= 1

    def score(self, member: str) -> float | None:
        """Score of member, or None if it is absent."""
        return next((entry.score for entry in self if entry.member == member), None)

    def rank(self, member: str, score: float) -> int:
        """0-based ascending rank of the member with this score, or -1."""
        traversed = 0
        node = self._header
        for i in reversed(range(self._level)):
            while (nxt := node.forward[i]) is not None and (
                nxt.score < score or (nxt.score == score and nxt.member <= member)
            ):
                traversed += node.span[i]
                node = nxt
            if node is not self._header and node.member == member and node.score == score:
                return traversed - 1
        return -1

    def range_by_score(
        self,
        min_score: float,
        max_score: float,
        offset: int = 0,
        count: int = -1,
        reverse: bool = False,
    ) -> list[ZSetMember]:
        """Members with min_score <= score <= max_score; count -1 means no limit."""
        if self._length == 0:
            return []
        if reverse:
            return self._range_by_score_reverse(min_score, max_score, offset, count)

        node = self._header
        for i in reversed(range(self._level)):
            while (nxt := node.forward[i]) is not None and nxt.score < min_score:
                node = nxt
        current = node.forward[0]
        while offset > 0 and current is not None:
            current = current.forward[0]
            offset -= 1

        result: list[ZSetMember] = []
        while current is not None and current.score <= max_score and (
            count == -1 or len(result) < count
        ):
            result.append(current.as_member())
            current = current.forward[0]
        return result

    def _range_by_score_reverse(
        self, min_score: float, max_score: float, offset: int, count: int
    ) -> list[ZSetMember]:
        node = self._header
        for i in reversed(range(self._level)):
            while (nxt := node.forward[i]) is not None and nxt.score <= max_score:
                node = nxt
        if node is self._header:
            return []
        current: _Node | None = node
        while offset > 0 and current is not None:
            current = current.backward
            offset -= 1

        result: list[ZSetMember] = []
        while current is not None and current.score >= min_score and (
            count == -1 or len(result) < count
        ):
            result.append(current.as_member())
            current = current.backward
        return result

    def range_by_rank(self, start: int, stop: int, reverse: bool = False) -> list[ZSetMember]:
        """Members with rank in [start, stop], both 0-based and inclusive."""
        if start < 0 or start >= self._length or stop < start:
            return []
        stop = min(stop, self._length - 1)
        count = stop - start + 1
        if reverse:
            start = self._length - 1 - stop

        traversed = 0
        node = self._header
        for i in reversed(range(self._level)):
            while (nxt := node.forward[i]) is not None and traversed + node.span[i] <= start:
                traversed += node.span[i]
                node = nxt

        result: list[ZSetMember] = []
        current = node.forward[0]
        while count > 0 and current is not None:
            result.append(current.as_member())
            current = current.forward[0]
            count -= 1
        if reverse:
            result.reverse()
        return result

    def first(self) -> ZSetMember | None:
        node = self._header.forward[0]
        return None if node is None else node.as_member()

    def last(self) -> ZSetMember | None:
        return None if self._tail is None else self._tail.as_member()

    def clone(self) -> SkipList:
        """Independent copy holding the same entries."""
        copy = SkipList(self._rng)
        for entry in self:
            copy.insert(entry.member, entry.score)
        return copy