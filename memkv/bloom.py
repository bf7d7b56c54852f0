"""Bloom filters: probabilistic set membership with no false negatives."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

from memkv.errors import InvalidOperationError, KeyNotFoundError
from memkv.hyperloglog import fnv1a_64
from memkv.keyspace import Keyspace, ValueType

DEFAULT_CAPACITY = 100
DEFAULT_ERROR_RATE = 0.01

_MASK64 = (1 << 64) - 1


@dataclass(frozen=True)
class BloomFilterInfo:
    """Parameters and fill statistics of a Bloom filter."""

    capacity: int
    size: int
    num_hashes: int
    count: int
    error_rate: float
    bits_per_item: float


def optimal_params(capacity: int, error_rate: float) -> tuple[int, int]:
    """Bit array size (a multiple of 64) and hash count for capacity and error rate."""
    n = float(capacity)
    m = -n * math.log(error_rate) / (math.log(2) ** 2)
    size = math.ceil(m / 64.0) * 64
    k = (size / n) * math.log(2)
    num_hashes = max(int(math.floor(k + 0.5)), 1)
    return size, num_hashes


def _encode(item: str | bytes) -> bytes:
    return item.encode("utf-8") if isinstance(item, str) else bytes(item)


class BloomFilter:
    """A fixed-size bit array probed by k double-hashed positions per item."""

    def __init__(
        self, capacity: int = DEFAULT_CAPACITY, error_rate: float = DEFAULT_ERROR_RATE
    ) -> None:
        if capacity == 0:
            capacity = DEFAULT_CAPACITY
        if error_rate <= 0 or error_rate >= 1:
            error_rate = DEFAULT_ERROR_RATE
        self.capacity = capacity
        self.error_rate = error_rate
        self.size, self.num_hashes = optimal_params(capacity, error_rate)
        self.count = 0
        self._bits = bytearray(self.size // 8)

    def _positions(self, item: str | bytes) -> list[int]:
        data = _encode(item)
        first = fnv1a_64(data)
        second = fnv1a_64(data + b"salt")
        return [((first + i * second) & _MASK64) % self.size for i in range(self.num_hashes)]

    def _is_set(self, position: int) -> bool:
        return bool(self._bits[position >> 3] & (1 << (position & 7)))

    def _set(self, position: int) -> None:
        self._bits[position >> 3] |= 1 << (position & 7)

    def add(self, item: str | bytes) -> bool:
        """Add item; True if it was new, False if it was probably present."""
        positions = self._positions(item)
        already = all(self._is_set(position) for position in positions)
        for position in positions:
            self._set(position)
        if already:
            return False
        self.count += 1
        return True

    def __contains__(self, item: object) -> bool:
        if not isinstance(item, (str, bytes)):
            return False
        return all(self._is_set(position) for position in self._positions(item))

    def actual_error_rate(self) -> float:
        """Expected false positive rate for the current item count."""
        if self.size == 0:
            return 0.0
        exponent = -self.num_hashes * self.count / self.size
        return (1.0 - math.exp(exponent)) ** self.num_hashes

    def info(self) -> BloomFilterInfo:
        bits_per_item = self.size / self.count if self.count > 0 else 0.0
        return BloomFilterInfo(
            capacity=self.capacity,
            size=self.size,
            num_hashes=self.num_hashes,
            count=self.count,
            error_rate=self.error_rate,
            bits_per_item=bits_per_item,
        )


class BloomStore(Keyspace):
    """Key space with Bloom filter commands."""

    def _bloom_filter(self, key: str) -> BloomFilter:
        value = self._lookup(key)
        if value is None:
            raise KeyNotFoundError()
        if value.type is not ValueType.BLOOM_FILTER or not isinstance(value.data, BloomFilter):
            raise InvalidOperationError()
        return value.data

    def bf_reserve(self, key: str, error_rate: float, capacity: int) -> None:
        """Create a filter under key; the key must not exist yet."""
        if key in self._data:
            raise InvalidOperationError()
        self._put(key, BloomFilter(capacity, error_rate), ValueType.BLOOM_FILTER)

    def bf_add(self, key: str, item: str) -> bool:
        return self._bloom_filter(key).add(item)

    def bf_madd(self, key: str, items: Iterable[str]) -> list[bool]:
        bloom = self._bloom_filter(key)
        return [bloom.add(item) for item in items]

    def bf_exists(self, key: str, item: str) -> bool:
        return item in self._bloom_filter(key)

    def bf_mexists(self, key: str, items: Iterable[str]) -> list[bool]:
        bloom = self._bloom_filter(key)
        return [item in bloom for item in items]

    def bf_info(self, key: str) -> BloomFilterInfo:
        return self._bloom_filter(key).info()