"""Hash commands: string fields mapped to string values under one key."""

from __future__ import annotations

import math
import re
from decimal import Decimal
from typing import Any

from memkv.errors import (
    HashValueNotFloatError,
    HashValueNotIntegerError,
    WrongNumArgsError,
    WrongTypeError,
)
from memkv.keyspace import Keyspace, ValueType

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_INTEGER = re.compile(r"[+-]?[0-9]+")


def _wrap_int64(number: int) -> int:
    return (number - _INT64_MIN) % (1 << 64) + _INT64_MIN


def _parse_int(text: str) -> int:
    if _INTEGER.fullmatch(text) is None:
        raise HashValueNotIntegerError()
    number = int(text)
    if not _INT64_MIN <= number <= _INT64_MAX:
        raise HashValueNotIntegerError()
    return number


def _parse_float(text: str) -> float:
    if not text or text != text.strip() or "_" in text:
        raise HashValueNotFloatError()
    try:
        number = float(text)
    except ValueError:
        raise HashValueNotFloatError() from None
    if math.isinf(number) and "inf" not in text.lower():
        raise HashValueNotFloatError()
    return number


def _format_float(number: float) -> str:
    """Shortest decimal form without an exponent."""
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "+Inf" if number > 0 else "-Inf"
    text = format(Decimal(repr(number)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


class HashStore(Keyspace):
    """Key space with hash commands."""

    def _existing_hash(self, key: str) -> dict[str, str] | None:
        value = self._lookup(key)
        if value is None:
            return None
        if value.type is not ValueType.HASH:
            raise WrongTypeError()
        return value.data if isinstance(value.data, dict) else None

    def _hash_for_write(self, key: str) -> dict[str, str]:
        """Return a hash that may be modified, copying it while a snapshot is held."""
        value = self._lookup(key)
        if value is None:
            return {}
        if value.type is not ValueType.HASH:
            raise WrongTypeError()
        if not isinstance(value.data, dict):
            return {}
        if self._snapshot_active():
            return dict(value.data)
        return value.data

    def _save_hash(self, key: str, fields: dict[str, str]) -> None:
        if fields:
            self._put(key, fields, ValueType.HASH)
        else:
            self._delete_key(key)

    def hset(self, key: str, *args: str) -> int:
        """Set field/value pairs; return how many fields were new."""
        if len(args) % 2:
            raise WrongNumArgsError()
        fields = self._hash_for_write(key)
        added = 0
        for field, value in zip(args[::2], args[1::2]):
            if field not in fields:
                added += 1
            fields[field] = value
        self._save_hash(key, fields)
        return added

    def hget(self, key: str, field: str) -> str | None:
        fields = self._existing_hash(key)
        if fields is None:
            return None
        return fields.get(field)

    def hmget(self, key: str, *args: str) -> list[Any]:
        fields = self._existing_hash(key) or {}
        return [fields.get(field) for field in args]

    def hdel(self, key: str, *args: str) -> int:
        if self._existing_hash(key) is None:
            return 0
        fields = self._hash_for_write(key)
        deleted = 0
        for field in args:
            if fields.pop(field, None) is not None:
                deleted += 1
        self._save_hash(key, fields)
        return deleted

    def hexists(self, key: str, field: str) -> bool:
        fields = self._existing_hash(key)
        return fields is not None and field in fields

    def hlen(self, key: str) -> int:
        return len(self._existing_hash(key) or {})

    def hkeys(self, key: str) -> list[str]:
        return list(self._existing_hash(key) or {})

    def hvals(self, key: str) -> list[str]:
        return list((self._existing_hash(key) or {}).values())

    def hgetall(self, key: str) -> dict[str, str]:
        return dict(self._existing_hash(key) or {})

    def hsetnx(self, key: str, field: str, value: str) -> bool:
        """Set field only if it is absent; True if it was set."""
        fields = self._hash_for_write(key)
        if field in fields:
            return False
        fields[field] = value
        self._save_hash(key, fields)
        return True

    def hincrby(self, key: str, field: str, increment: int) -> int:
        fields = self._hash_for_write(key)
        current = _parse_int(fields[field]) if field in fields else 0
        result = _wrap_int64(current + increment)
        fields[field] = str(result)
        self._save_hash(key, fields)
        return result

    def hincrbyfloat(self, key: str, field: str, increment: float) -> float:
        fields = self._hash_for_write(key)
        current = _parse_float(fields[field]) if field in fields else 0.0
        result = current + increment
        fields[field] = _format_float(result)
        self._save_hash(key, fields)
        return result