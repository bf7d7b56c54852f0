"""HyperLogLog cardinality estimation."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

from memkv.errors import (
    InvalidOperationError,
    InvalidRegisterCountError,
    KeyNotFoundError,
    PrecisionMismatchError,
)
from memkv.keyspace import Keyspace, ValueType

DEFAULT_PRECISION = 14
MIN_PRECISION = 4
MAX_PRECISION = 16

_MASK64 = (1 << 64) - 1
_FNV_OFFSET = 0xCBF29CE484222325
_FNV_PRIME = 0x100000001B3
_TWO_32 = 2.0**32


def fnv1a_64(data: str | bytes) -> int:
    """64-bit FNV-1a hash of data (strings are hashed as UTF-8)."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    value = _FNV_OFFSET
    for byte in data:
        value = ((value ^ byte) * _FNV_PRIME) & _MASK64
    return value


def _alpha(m: int) -> float:
    if m == 16:
        return 0.673
    if m == 32:
        return 0.697
    if m == 64:
        return 0.709
    return 0.7213 / (1 + 1.079 / m)


class HyperLogLog:
    """Estimates distinct counts with 2**precision small registers."""

    def __init__(self, precision: int = DEFAULT_PRECISION) -> None:
        precision = min(max(precision, MIN_PRECISION), MAX_PRECISION)
        self.precision = precision
        self.m = 1 << precision
        self.alpha = _alpha(self.m)
        self._registers = bytearray(self.m)

    def add(self, element: str | bytes) -> bool:
        """Record element; True if a register was raised."""
        hashed = fnv1a_64(element)
        index = hashed >> (64 - self.precision)
        rest = (hashed << self.precision) & _MASK64
        leading_zeros = 64 - rest.bit_length()
        rank = min(leading_zeros, 64 - self.precision) + 1
        if rank > self._registers[index]:
            self._registers[index] = rank
            return True
        return False

    def count(self) -> int:
        """Estimated number of distinct elements added."""
        m = float(self.m)
        total = sum(2.0 ** -value for value in self._registers)
        zeros = self._registers.count(0)
        raw = self.alpha * m * m / total
        if raw <= 2.5 * m:
            estimate = m * math.log(m / zeros) if zeros > 0 else raw
        elif raw <= _TWO_32 / 30.0:
            estimate = raw
        else:
            estimate = -_TWO_32 * math.log(1.0 - raw / _TWO_32)
        return int(estimate + 0.5)

    def merge(self, *args: HyperLogLog) -> None:
        """Fold other estimators into this one by taking register maxima."""
        for other in args:
            if other.precision != self.precision:
                raise PrecisionMismatchError()
            self._registers = bytearray(
                max(mine, theirs) for mine, theirs in zip(self._registers, other._registers)
            )

    def clone(self) -> HyperLogLog:
        copy = HyperLogLog(self.precision)
        copy._registers = bytearray(self._registers)
        return copy

    def reset(self) -> None:
        self._registers = bytearray(self.m)

    def registers(self) -> bytes:
        """A copy of the register values."""
        return bytes(self._registers)

    def load_registers(self, registers: Sequence[int]) -> None:
        """Replace the registers; the length must equal the register count."""
        if len(registers) != self.m:
            raise InvalidRegisterCountError()
        self._registers = bytearray(registers)


class HyperLogLogStore(Keyspace):
    """Key space with HyperLogLog commands."""

    def _hyperloglog(self, key: str) -> HyperLogLog:
        value = self._lookup(key)
        if value is None:
            raise KeyNotFoundError()
        if value.type is not ValueType.HYPERLOGLOG or not isinstance(value.data, HyperLogLog):
            raise InvalidOperationError()
        return value.data

    def _existing_hyperloglogs(self, keys: Iterable[str]) -> list[HyperLogLog]:
        found = []
        for key in keys:
            try:
                found.append(self._hyperloglog(key))
            except KeyNotFoundError:
                continue
        return found

    def pfadd(self, key: str, elements: Iterable[str]) -> bool:
        """Add elements, creating the key; True if any register changed."""
        try:
            hll = self._hyperloglog(key)
            if self._snapshot_active():
                hll = hll.clone()
        except KeyNotFoundError:
            hll = HyperLogLog(DEFAULT_PRECISION)
        updated = False
        for element in elements:
            if hll.add(element):
                updated = True
        self._put(key, hll, ValueType.HYPERLOGLOG)
        return updated

    def pfcount(self, keys: Sequence[str]) -> int:
        """Estimated cardinality of the union of the given keys; missing keys count as empty."""
        if not keys:
            raise InvalidOperationError()
        hlls = self._existing_hyperloglogs(keys)
        if not hlls:
            return 0
        if len(hlls) == 1:
            return hlls[0].count()
        merged = HyperLogLog(hlls[0].precision)
        merged.merge(*hlls)
        return merged.count()

    def pfmerge(self, dest_key: str, source_keys: Sequence[str]) -> None:
        """Store the union of the source estimators under dest_key."""
        if not source_keys:
            raise InvalidOperationError()
        sources = self._existing_hyperloglogs(source_keys)
        if not sources:
            self._put(dest_key, HyperLogLog(DEFAULT_PRECISION), ValueType.HYPERLOGLOG)
            return
        merged = HyperLogLog(sources[0].precision)
        merged.merge(*sources)
        self._put(dest_key, merged, ValueType.HYPERLOGLOG)