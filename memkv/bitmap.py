"""Bit-level commands over string values."""

from __future__ import annotations

from collections.abc import Callable, Sequence

from memkv.errors import InvalidOperationError, KeyNotFoundError, WrongTypeError
from memkv.keyspace import Keyspace, ValueType


def _to_bytes(data: object) -> bytes:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    if isinstance(data, str):
        return data.encode("utf-8")
    return str(data).encode("utf-8")


def _byte_range(length: int, start: int | None, end: int | None) -> tuple[int, int] | None:
    """Resolve an inclusive byte range; None if it selects nothing."""
    first, last = 0, length - 1
    if start is not None:
        first = start + length if start < 0 else start
        first = max(first, 0)
    if end is not None:
        last = end + length if end < 0 else end
        last = min(last, length - 1)
    if first > last or first >= length:
        return None
    return first, last


class BitmapStore(Keyspace):
    """Key space with bitmap commands; bits are numbered from the most significant."""

    def _string_bytes(self, key: str) -> bytes:
        value = self._lookup(key)
        if value is None:
            raise KeyNotFoundError()
        if value.type is not ValueType.STRING:
            raise WrongTypeError()
        return _to_bytes(value.data)

    def _string_bytes_or_empty(self, key: str) -> bytes | None:
        try:
            return self._string_bytes(key)
        except KeyNotFoundError:
            return None

    def setbit(self, key: str, offset: int, value: int) -> int:
        """Set or clear one bit, growing the string with zero bytes; return the old bit."""
        if offset < 0 or value not in (0, 1):
            raise InvalidOperationError()
        data = bytearray(self._string_bytes_or_empty(key) or b"")
        byte_index, shift = divmod(offset, 8)
        mask = 1 << (7 - shift)
        if len(data) <= byte_index:
            data.extend(bytes(byte_index + 1 - len(data)))
        old = 1 if data[byte_index] & mask else 0
        if value:
            data[byte_index] |= mask
        else:
            data[byte_index] &= ~mask & 0xFF
        self._put(key, bytes(data), ValueType.STRING)
        return old

    def getbit(self, key: str, offset: int) -> int:
        if offset < 0:
            raise InvalidOperationError()
        data = self._string_bytes_or_empty(key)
        if data is None:
            return 0
        byte_index, shift = divmod(offset, 8)
        if byte_index >= len(data):
            return 0
        return (data[byte_index] >> (7 - shift)) & 1

    def bitcount(self, key: str, start: int | None = None, end: int | None = None) -> int:
        """Count set bits, optionally within an inclusive byte range."""
        data = self._string_bytes_or_empty(key)
        if not data:
            return 0
        span = _byte_range(len(data), start, end)
        if span is None:
            return 0
        first, last = span
        return int.from_bytes(data[first : last + 1], "big").bit_count()

    def bitpos(
        self, key: str, bit: int, start: int | None = None, end: int | None = None
    ) -> int:
        """Position of the first bit equal to bit, or -1 if none is found."""
        if bit not in (0, 1):
            raise InvalidOperationError()
        data = self._string_bytes_or_empty(key)
        if not data:
            return 0 if bit == 0 else -1
        span = _byte_range(len(data), start, end)
        if span is None:
            return -1
        first, last = span
        for index, byte in enumerate(data[first : last + 1], start=first):
            for shift in range(8):
                if (byte >> (7 - shift)) & 1 == bit:
                    return index * 8 + shift
        return -1

    def bitop_and(self, dest_key: str, src_keys: Sequence[str]) -> int:
        return self._bit_operation(dest_key, src_keys, lambda a, b: a & b)

    def bitop_or(self, dest_key: str, src_keys: Sequence[str]) -> int:
        return self._bit_operation(dest_key, src_keys, lambda a, b: a | b)

    def bitop_xor(self, dest_key: str, src_keys: Sequence[str]) -> int:
        return self._bit_operation(dest_key, src_keys, lambda a, b: a ^ b)

    def bitop_not(self, dest_key: str, src_key: str) -> int:
        data = self._string_bytes_or_empty(src_key) or b""
        result = bytes(byte ^ 0xFF for byte in data)
        self._put(dest_key, result, ValueType.STRING)
        return len(result)

    def _bit_operation(
        self, dest_key: str, src_keys: Sequence[str], op: Callable[[int, int], int]
    ) -> int:
        if not src_keys:
            raise InvalidOperationError()
        sources = [self._string_bytes_or_empty(key) or b"" for key in src_keys]
        width = max(len(source) for source in sources)
        if width == 0:
            self._put(dest_key, b"", ValueType.STRING)
            return 0
        padded = [source.ljust(width, b"\x00") for source in sources]
        result = bytearray(padded[0])
        for other in padded[1:]:
            result = bytearray(op(a, b) for a, b in zip(result, other))
        self._put(dest_key, bytes(result), ValueType.STRING)
        return width