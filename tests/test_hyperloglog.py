import hashlib

import pytest

from memkv.errors import (
    InvalidOperationError,
    InvalidRegisterCountError,
    PrecisionMismatchError,
)
from memkv.hyperloglog import (
    DEFAULT_PRECISION,
    MAX_PRECISION,
    MIN_PRECISION,
    HyperLogLog,
    HyperLogLogStore,
    fnv1a_64,
)


def _items(prefix, n):
    return [hashlib.sha256(f"{prefix}{i}".encode()).hexdigest() for i in range(n)]


def test_fnv_offset_basis_for_empty_input():
    assert fnv1a_64(b"") == 0xCBF29CE484222325


def test_fnv_known_vector():
    assert fnv1a_64("a") == 0xAF63DC4C8601EC8C
    assert fnv1a_64("a") == fnv1a_64(b"a")


def test_precision_is_clamped():
    low = HyperLogLog(1)
    high = HyperLogLog(30)
    assert low.precision == MIN_PRECISION
    assert len(low.registers()) == 1 << MIN_PRECISION
    assert high.precision == MAX_PRECISION


def test_empty_counts_zero():
    assert HyperLogLog().count() == 0


def test_repeated_element_counts_one():
    hll = HyperLogLog()
    assert hll.add("x") is True
    assert hll.add("x") is False
    assert hll.count() == 1


def test_estimate_is_close():
    hll = HyperLogLog()
    for item in _items("e", 2000):
        hll.add(item)
    assert abs(hll.count() - 2000) < 200


def test_merge_equals_union():
    a, b, union = HyperLogLog(), HyperLogLog(), HyperLogLog()
    for item in _items("a", 300):
        a.add(item)
        union.add(item)
    for item in _items("b", 300):
        b.add(item)
        union.add(item)
    a.merge(b)
    assert a.registers() == union.registers()
    assert a.count() == union.count()


def test_merge_precision_mismatch():
    with pytest.raises(PrecisionMismatchError):
        HyperLogLog(10).merge(HyperLogLog(12))


def test_clone_is_independent():
    hll = HyperLogLog()
    hll.add("one")
    copy = hll.clone()
    copy.add("two")
    assert hll.registers() != copy.registers()
    assert hll.count() == 1


def test_reset_clears():
    hll = HyperLogLog()
    for item in _items("r", 50):
        hll.add(item)
    hll.reset()
    assert hll.count() == 0
    assert set(hll.registers()) == {0}


def test_register_round_trip():
    hll = HyperLogLog(8)
    for item in _items("x", 40):
        hll.add(item)
    other = HyperLogLog(8)
    other.load_registers(hll.registers())
    assert other.registers() == hll.registers()
    assert other.count() == hll.count()


def test_load_registers_wrong_length():
    with pytest.raises(InvalidRegisterCountError):
        HyperLogLog(8).load_registers(bytes(10))


def test_store_pfcount_multiple_keys():
    store = HyperLogLogStore()
    store.pfadd("h1", _items("p", 100))
    store.pfadd("h2", _items("p", 100))
    assert store.pfcount(["h1", "h2", "missing"]) == store.pfcount(["h1"])


def test_store_pfcount_requires_keys():
    with pytest.raises(InvalidOperationError):
        HyperLogLogStore().pfcount([])


def test_store_wrong_type():
    store = HyperLogLogStore()
    store.set("s", "v")
    with pytest.raises(InvalidOperationError):
        store.pfadd("s", ["a"])
    with pytest.raises(InvalidOperationError):
        store.pfcount(["s"])


def test_store_pfmerge():
    store = HyperLogLogStore()
    store.pfadd("a", ["x", "y"])
    store.pfadd("b", ["y", "z"])
    store.pfmerge("dest", ["a", "b"])
    assert store.pfcount(["dest"]) == store.pfcount(["a", "b"])


def test_store_pfmerge_without_sources_creates_empty():
    store = HyperLogLogStore()
    store.pfmerge("dest", ["none"])
    assert store.exists("dest")
    assert store.pfcount(["dest"]) == 0
    with pytest.raises(InvalidOperationError):
        store.pfmerge("dest", [])


def test_pfadd_during_snapshot_leaves_snapshot_intact():
    store = HyperLogLogStore()
    store.pfadd("h", ["a"])
    with store.snapshot() as snap:
        before = snap["h"].data.registers()
        store.pfadd("h", _items("s", 50))
        assert snap["h"].data.registers() == before
    assert store.pfcount(["h"]) > 1
    assert DEFAULT_PRECISION == snap["h"].data.precision