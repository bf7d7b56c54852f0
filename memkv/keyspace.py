"""The key space: typed values, expiry and plain string commands."""

from __future__ import annotations

import random
import re
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from memkv.errors import NotIntegerError

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")

_CLEANUP_BUDGET_SECONDS = 0.001
_KEYS_PER_SAMPLE = 20


class ValueType(Enum):
    """Kind of data held under a key."""

    STRING = 0
    LIST = 1
    SET = 2
    HASH = 3
    ZSET = 4
    BLOOM_FILTER = 5
    HYPERLOGLOG = 6


@dataclass
class Value:
    """A stored value with its type and optional absolute expiry (epoch seconds)."""

    data: Any
    type: ValueType = ValueType.STRING
    expires_at: float | None = None


def _expired(value: Value, now: float | None = None) -> bool:
    if value.expires_at is None:
        return False
    return (time.time() if now is None else now) > value.expires_at


def _wrap_int64(number: int) -> int:
    return (number - _INT64_MIN) % (1 << 64) + _INT64_MIN


def _parse_int(data: Any) -> int:
    if isinstance(data, bool):
        raise NotIntegerError()
    if isinstance(data, int):
        return data
    if isinstance(data, (bytes, bytearray)):
        data = bytes(data).decode("utf-8", errors="replace")
    if not isinstance(data, str):
        raise NotIntegerError()
    match = _INT_PREFIX.match(data)
    if match is None:
        raise NotIntegerError()
    number = int(match.group(1))
    if not _INT64_MIN <= number <= _INT64_MAX:
        raise NotIntegerError()
    return number


class Keyspace:
    """Dictionary of keys to typed values, with lazy and active expiry."""

    def __init__(self) -> None:
        self._data: dict[str, Value] = {}
        self._expiring: dict[str, float] = {}
        self._snapshot_count = 0
        self._snapshot_lock = threading.Lock()

    # ---------- internal helpers shared by the typed stores ----------

    def _delete_key(self, key: str) -> None:
        self._data.pop(key, None)
        self._expiring.pop(key, None)

    def _lookup(self, key: str) -> Value | None:
        """Return the live value for key, dropping it first if it has expired."""
        value = self._data.get(key)
        if value is None:
            return None
        if _expired(value):
            self._delete_key(key)
            return None
        return value

    def _put(self, key: str, data: Any, value_type: ValueType) -> None:
        """Store data under key with no expiry."""
        self._data[key] = Value(data, value_type)
        self._expiring.pop(key, None)

    def _snapshot_active(self) -> bool:
        with self._snapshot_lock:
            return self._snapshot_count > 0

    # ---------- string commands ----------

    def set(self, key: str, value: Any, expiry: float | None = None) -> None:
        """Store a string value, optionally expiring at an epoch timestamp."""
        self._data[key] = Value(value, ValueType.STRING, expiry)
        if expiry is not None:
            self._expiring[key] = expiry
        else:
            self._expiring.pop(key, None)

    def get(self, key: str) -> Any:
        """Return the data under key, or None if it is missing or expired."""
        value = self._lookup(key)
        return None if value is None else value.data

    def delete(self, key: str) -> bool:
        if key in self._data:
            self._delete_key(key)
            return True
        return False

    def exists(self, key: str) -> bool:
        return self._lookup(key) is not None

    def keys(self) -> list[str]:
        now = time.time()
        return [key for key, value in self._data.items() if not _expired(value, now)]

    def flush(self) -> None:
        self._data = {}
        self._expiring = {}

    def expire(self, key: str, expiry: float | None) -> bool:
        """Set or clear the expiry of a live key; False if the key is absent."""
        value = self._lookup(key)
        if value is None:
            return False
        value.expires_at = expiry
        if expiry is not None:
            self._expiring[key] = expiry
        else:
            self._expiring.pop(key, None)
        return True

    def ttl(self, key: str) -> int:
        """Seconds left to live; -2 if the key is absent, -1 if it never expires."""
        value = self._lookup(key)
        if value is None:
            return -2
        if value.expires_at is None:
            return -1
        remaining = value.expires_at - time.time()
        if remaining < 0:
            self._delete_key(key)
            return -2
        return int(remaining)

    def incr(self, key: str) -> int:
        return self.incr_by(key, 1)

    def incr_by(self, key: str, increment: int) -> int:
        """Add increment to the integer under key and store the result as a string."""
        value = self._lookup(key)
        current = 0 if value is None else _parse_int(value.data)
        result = _wrap_int64(current + increment)
        self._put(key, str(result), ValueType.STRING)
        return result

    def decr(self, key: str) -> int:
        return self.incr_by(key, -1)

    def decr_by(self, key: str, decrement: int) -> int:
        return self.incr_by(key, -decrement)

    # ---------- expiry housekeeping ----------

    def cleanup_expired_keys(self) -> None:
        """Remove expired keys by random sampling within a small time budget."""
        deadline = time.monotonic() + _CLEANUP_BUDGET_SECONDS
        while time.monotonic() < deadline:
            sample = self._sample_expiring(_KEYS_PER_SAMPLE)
            if not sample:
                break
            expired_count = 0
            now = time.time()
            for key in sample:
                value = self._data.get(key)
                if value is None:
                    self._expiring.pop(key, None)
                    continue
                if _expired(value, now):
                    self._delete_key(key)
                    expired_count += 1
            if len(sample) < _KEYS_PER_SAMPLE:
                break
            if expired_count * 4 < _KEYS_PER_SAMPLE:
                break

    def _sample_expiring(self, count: int) -> list[str]:
        keys = list(self._expiring)
        return random.sample(keys, min(count, len(keys)))

    # ---------- snapshots ----------

    def get_all_data(self) -> dict[str, Value]:
        """Return a shallow copy of all values; pair with release_snapshot()."""
        with self._snapshot_lock:
            self._snapshot_count += 1
        return {key: replace(value) for key, value in self._data.items()}

    def release_snapshot(self) -> None:
        with self._snapshot_lock:
            self._snapshot_count -= 1

    @contextmanager
    def snapshot(self) -> Iterator[dict[str, Value]]:
        """Hold a copy-on-write snapshot for the duration of the block."""
        data = self.get_all_data()
        try:
            yield data
        finally:
            self.release_snapshot()