import time

import pytest

from memkv.bitmap import BitmapStore
from memkv.errors import InvalidOperationError, WrongTypeError
from memkv.keyspace import ValueType


@pytest.fixture
def store():
    return BitmapStore()


def test_setbit_returns_old_bit(store):
    assert store.setbit("b", 10, 1) == 0
    assert store.setbit("b", 10, 1) == 1
    assert store.setbit("b", 10, 0) == 1
    assert store.getbit("b", 10) == 0


def test_setbit_most_significant_first(store):
    store.setbit("b", 0, 1)
    assert store.get("b") == b"\x80"


def test_setbit_grows_string(store):
    store.setbit("b", 23, 1)
    assert len(store.get("b")) == 3
    assert store.bitcount("b") == 1


def test_setbit_invalid_arguments(store):
    with pytest.raises(InvalidOperationError):
        store.setbit("b", -1, 1)
    with pytest.raises(InvalidOperationError):
        store.setbit("b", 0, 2)


def test_getbit_missing_and_beyond(store):
    assert store.getbit("missing", 5) == 0
    store.setbit("b", 3, 1)
    assert store.getbit("b", 3) == 1
    assert store.getbit("b", 100) == 0
    with pytest.raises(InvalidOperationError):
        store.getbit("b", -1)


def test_bitcount_whole_string(store):
    store.set("s", "foobar")
    assert store.bitcount("s") == 26


def test_bitcount_matches_set_bits(store):
    offsets = [1, 9, 17, 30]
    for offset in offsets:
        store.setbit("b", offset, 1)
    assert store.bitcount("b") == len(offsets)
    assert store.bitcount("b", 0, 0) == 1
    assert store.bitcount("b", -1, -1) == 1
    assert store.bitcount("b", 2, 1) == 0
    assert store.bitcount("missing") == 0


def test_bitpos_zero(store):
    store.set("s", b"\xff\xf0\x00")
    assert store.bitpos("s", 0) == 12


def test_bitpos_one_after_setbit(store):
    store.setbit("b", 21, 1)
    assert store.bitpos("b", 1) == 21
    assert store.bitpos("b", 1, 3) == -1


def test_bitpos_missing_key(store):
    assert store.bitpos("missing", 0) == 0
    assert store.bitpos("missing", 1) == -1
    with pytest.raises(InvalidOperationError):
        store.bitpos("missing", 3)


def test_bitpos_not_found(store):
    store.set("s", b"\xff\xff")
    assert store.bitpos("s", 0) == -1


def test_bitop_and_or_with_self(store):
    store.set("a", b"\x12\x34")
    assert store.bitop_and("d", ["a", "a"]) == 2
    assert store.get("d") == b"\x12\x34"
    assert store.bitop_or("e", ["a", "missing"]) == 2
    assert store.get("e") == b"\x12\x34"


def test_bitop_xor_self_is_zero(store):
    store.set("a", b"abc")
    assert store.bitop_xor("d", ["a", "a"]) == 3
    assert store.get("d") == bytes(3)


def test_bitop_pads_shorter_operands(store):
    store.set("a", b"ab")
    store.set("b", b"abcd")
    assert store.bitop_and("d", ["a", "b"]) == 4
    assert store.get("d")[2:] == bytes(2)


def test_bitop_not_twice_restores(store):
    store.set("a", b"hello")
    assert store.bitop_not("n", "a") == 5
    store.bitop_not("nn", "n")
    assert store.get("nn") == b"hello"
    assert store.bitop_not("empty", "missing") == 0
    assert store.get("empty") == b""


def test_bitop_without_sources_raises(store):
    with pytest.raises(InvalidOperationError):
        store.bitop_and("d", [])


def test_bitop_all_missing_gives_empty(store):
    assert store.bitop_or("d", ["x", "y"]) == 0
    assert store.get("d") == b""


def test_wrong_type_raises(store):
    store._put("l", ["x"], ValueType.LIST)
    with pytest.raises(WrongTypeError):
        store.bitcount("l")
    with pytest.raises(WrongTypeError):
        store.setbit("l", 0, 1)
    with pytest.raises(WrongTypeError):
        store.bitop_and("d", ["l"])


def test_expired_key_treated_as_missing(store):
    store.set("k", "abc", time.time() - 1)
    assert store.getbit("k", 1) == 0
    assert store.bitcount("k") == 0
    assert store.bitpos("k", 1) == -1