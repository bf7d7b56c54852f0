"""Set commands: unordered collections of unique strings under one key."""

from __future__ import annotations

import random
from collections.abc import Iterable

from memkv.keyspace import Keyspace, ValueType


class SetStore(Keyspace):
    """Key space with set commands; a key of another type reads as an empty set."""

    def _existing_set(self, key: str) -> set[str] | None:
        value = self._lookup(key)
        if value is None or value.type is not ValueType.SET:
            return None
        return value.data if isinstance(value.data, set) else None

    def _set_for_write(self, key: str) -> set[str] | None:
        """A set that may be modified and then saved; None if key holds another type."""
        value = self._lookup(key)
        if value is None:
            return set()
        if value.type is not ValueType.SET:
            return None
        if not isinstance(value.data, set):
            return set()
        if self._snapshot_active():
            return set(value.data)
        return value.data

    def _mutable_set(self, key: str) -> set[str] | None:
        """The stored set itself, detached from any held snapshot first."""
        members = self._existing_set(key)
        if members is None:
            return None
        if self._snapshot_active():
            members = set(members)
            self._data[key].data = members
        return members

    def _save_set(self, key: str, members: set[str]) -> None:
        if members:
            self._put(key, members, ValueType.SET)
        else:
            self._delete_key(key)

    def _store_result(self, dest_key: str, members: Iterable[str]) -> int:
        result = set(members)
        self._save_set(dest_key, result)
        return len(result)

    def sadd(self, key: str, *args: str) -> int:
        """Add members; return how many were new (0 if key holds another type)."""
        members = self._set_for_write(key)
        if members is None:
            return 0
        before = len(members)
        members.update(args)
        added = len(members) - before
        self._save_set(key, members)
        return added

    def srem(self, key: str, *args: str) -> int:
        if self._existing_set(key) is None:
            return 0
        members = self._set_for_write(key)
        removed = 0
        for member in args:
            if member in members:
                members.remove(member)
                removed += 1
        self._save_set(key, members)
        return removed

    def sismember(self, key: str, member: str) -> bool:
        members = self._existing_set(key)
        return members is not None and member in members

    def smembers(self, key: str) -> set[str]:
        return set(self._existing_set(key) or ())

    def scard(self, key: str) -> int:
        return len(self._existing_set(key) or ())

    def srandmember(self, key: str, count: int) -> list[str]:
        """Random members; a negative count allows repeats and returns abs(count)."""
        members = self._existing_set(key)
        if not members or count == 0:
            return []
        pool = list(members)
        if count < 0:
            return random.choices(pool, k=-count)
        return random.sample(pool, min(count, len(pool)))

    def spop(self, key: str, count: int) -> list[str]:
        """Remove and return up to count random members."""
        members = self._mutable_set(key)
        if members is None:
            return []
        popped = [members.pop() for _ in range(min(count, len(members)))]
        if not members:
            self._delete_key(key)
        return popped

    def sunion(self, *args: str) -> set[str]:
        result: set[str] = set()
        for key in args:
            result |= self._existing_set(key) or set()
        return result

    def sinter(self, *args: str) -> set[str]:
        if not args:
            return set()
        first = self._existing_set(args[0])
        if first is None:
            return set()
        result = set(first)
        for key in args[1:]:
            other = self._existing_set(key)
            if other is None:
                return set()
            result &= other
            if not result:
                return set()
        return result

    def sdiff(self, *args: str) -> set[str]:
        if not args:
            return set()
        first = self._existing_set(args[0])
        if first is None:
            return set()
        result = set(first)
        for key in args[1:]:
            result -= self._existing_set(key) or set()
        return result

    def smove(self, src_key: str, dest_key: str, member: str) -> bool:
        """Move member between sets; False if absent or destination has another type."""
        source = self._existing_set(src_key)
        if source is None or member not in source:
            return False
        destination = self._set_for_write(dest_key)
        if destination is None:
            return False
        source = self._mutable_set(src_key)
        source.discard(member)
        destination.add(member)
        if not source:
            self._delete_key(src_key)
        self._save_set(dest_key, destination)
        return True

    def sunionstore(self, dest_key: str, *args: str) -> int:
        return self._store_result(dest_key, self.sunion(*args))

    def sinterstore(self, dest_key: str, *args: str) -> int:
        return self._store_result(dest_key, self.sinter(*args))

    def sdiffstore(self, dest_key: str, *args: str) -> int:
        return self._store_result(dest_key, self.sdiff(*args))