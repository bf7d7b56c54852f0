"""List commands: ordered sequences of strings under one key."""

from __future__ import annotations

from collections import deque
from itertools import islice

from memkv.errors import IndexOutOfRangeError, NoSuchKeyError, WrongTypeError
from memkv.keyspace import Keyspace, ValueType


def _span(length: int, start: int, stop: int) -> tuple[int, int] | None:
    """Resolve an inclusive index range; None if it selects nothing."""
    if length == 0:
        return None
    if start < 0:
        start += length
    if stop < 0:
        stop += length
    start = max(start, 0)
    stop = min(stop, length - 1)
    if start > stop or start >= length:
        return None
    return start, stop


def _resolve_index(length: int, index: int) -> int | None:
    if index < 0:
        index += length
    if 0 <= index < length:
        return index
    return None


class ListStore(Keyspace):
    """Key space with list commands."""

    def _existing_list(self, key: str) -> deque[str] | None:
        value = self._lookup(key)
        if value is None:
            return None
        if value.type is not ValueType.LIST:
            raise WrongTypeError()
        return value.data if isinstance(value.data, deque) else None

    def _list_for_write(self, key: str) -> deque[str]:
        """Return a list that may be modified, copying it while a snapshot is held."""
        value = self._lookup(key)
        if value is None:
            return deque()
        if value.type is not ValueType.LIST:
            raise WrongTypeError()
        if not isinstance(value.data, deque):
            return deque()
        if self._snapshot_active():
            return deque(value.data)
        return value.data

    def _save_list(self, key: str, items: deque[str]) -> None:
        if items:
            self._put(key, items, ValueType.LIST)
        else:
            self._delete_key(key)

    def lpush(self, key: str, *args: str) -> int:
        """Push values onto the head one by one; return the new length."""
        items = self._list_for_write(key)
        items.extendleft(args)
        self._save_list(key, items)
        return len(items)

    def rpush(self, key: str, *args: str) -> int:
        """Append values to the tail; return the new length."""
        items = self._list_for_write(key)
        items.extend(args)
        self._save_list(key, items)
        return len(items)

    def _pop(self, key: str, count: int, from_head: bool) -> list[str] | None:
        if not self._existing_list(key):
            return None
        items = self._list_for_write(key)
        count = min(max(count, 1), len(items))
        pop = items.popleft if from_head else items.pop
        result = [pop() for _ in range(count)]
        self._save_list(key, items)
        return result

    def lpop(self, key: str, count: int = 1) -> list[str] | None:
        """Remove up to count elements from the head; None if the list is absent."""
        return self._pop(key, count, from_head=True)

    def rpop(self, key: str, count: int = 1) -> list[str] | None:
        """Remove up to count elements from the tail; None if the list is absent."""
        return self._pop(key, count, from_head=False)

    def llen(self, key: str) -> int:
        return len(self._existing_list(key) or ())

    def lrange(self, key: str, start: int, stop: int) -> list[str]:
        """Elements from start to stop inclusive; negative indices count from the end."""
        items = self._existing_list(key)
        if not items:
            return []
        span = _span(len(items), start, stop)
        if span is None:
            return []
        first, last = span
        return list(islice(items, first, last + 1))

    def lindex(self, key: str, index: int) -> str | None:
        items = self._existing_list(key)
        if not items:
            return None
        position = _resolve_index(len(items), index)
        return None if position is None else items[position]

    def lset(self, key: str, index: int, value: str) -> None:
        if self._existing_list(key) is None:
            raise NoSuchKeyError()
        items = self._list_for_write(key)
        position = _resolve_index(len(items), index)
        if position is None:
            raise IndexOutOfRangeError()
        items[position] = value
        self._save_list(key, items)

    def lrem(self, key: str, count: int, value: str) -> int:
        """Remove occurrences of value: count > 0 from the head, < 0 from the tail, 0 all."""
        if not self._existing_list(key):
            return 0
        items = self._list_for_write(key)
        limit = len(items) if count == 0 else abs(count)
        ordered = items if count >= 0 else reversed(items)
        kept: list[str] = []
        removed = 0
        for item in ordered:
            if removed < limit and item == value:
                removed += 1
            else:
                kept.append(item)
        if count < 0:
            kept.reverse()
        items.clear()
        items.extend(kept)
        self._save_list(key, items)
        return removed

    def ltrim(self, key: str, start: int, stop: int) -> None:
        """Keep only elements from start to stop inclusive."""
        if self._existing_list(key) is None:
            return
        items = self._list_for_write(key)
        span = _span(len(items), start, stop)
        kept = [] if span is None else list(islice(items, span[0], span[1] + 1))
        items.clear()
        items.extend(kept)
        self._save_list(key, items)

    def linsert(self, key: str, before: bool, pivot: str, value: str) -> int:
        """Insert value next to the first pivot; new length, -1 if no pivot, 0 if no list."""
        if not self._existing_list(key):
            return 0
        items = self._list_for_write(key)
        try:
            position = items.index(pivot)
        except ValueError:
            return -1
        items.insert(position if before else position + 1, value)
        self._save_list(key, items)
        return len(items)