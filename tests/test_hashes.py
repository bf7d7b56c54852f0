import time

import pytest

from memkv.errors import (
    HashValueNotFloatError,
    HashValueNotIntegerError,
    WrongNumArgsError,
    WrongTypeError,
)
from memkv.hashes import HashStore


@pytest.fixture
def store():
    return HashStore()


def test_hset_counts_new_fields_only(store):
    assert store.hset("h", "a", "1", "b", "2") == 2
    assert store.hset("h", "a", "10", "c", "3") == 1
    assert store.hget("h", "a") == "10"
    assert store.hlen("h") == 3


def test_hset_odd_arguments_raises(store):
    with pytest.raises(WrongNumArgsError):
        store.hset("h", "a", "1", "b")
    assert not store.exists("h")


def test_wrong_type_raises(store):
    store.set("s", "text")
    with pytest.raises(WrongTypeError):
        store.hset("s", "a", "1")
    with pytest.raises(WrongTypeError):
        store.hget("s", "a")
    with pytest.raises(WrongTypeError):
        store.hgetall("s")
    assert str(WrongTypeError()).startswith("WRONGTYPE")


def test_hget_missing(store):
    assert store.hget("nope", "a") is None
    store.hset("h", "a", "1")
    assert store.hget("h", "b") is None


def test_hmget(store):
    store.hset("h", "a", "1", "b", "2")
    assert store.hmget("h", "a", "x", "b") == ["1", None, "2"]
    assert store.hmget("missing", "a") == [None]


def test_hdel_removes_key_when_empty(store):
    store.hset("h", "a", "1", "b", "2")
    assert store.hdel("h", "a", "zz") == 1
    assert store.hexists("h", "b")
    assert store.hdel("h", "b") == 1
    assert not store.exists("h")
    assert store.hdel("h", "b") == 0


def test_listing_commands_agree(store):
    store.hset("h", "a", "1", "b", "2", "c", "3")
    everything = store.hgetall("h")
    assert everything == {"a": "1", "b": "2", "c": "3"}
    assert sorted(store.hkeys("h")) == sorted(everything)
    assert sorted(store.hvals("h")) == sorted(everything.values())
    assert store.hkeys("missing") == []
    assert store.hvals("missing") == []
    assert store.hgetall("missing") == {}


def test_hsetnx(store):
    assert store.hsetnx("h", "a", "1") is True
    assert store.hsetnx("h", "a", "2") is False
    assert store.hget("h", "a") == "1"


def test_hincrby(store):
    assert store.hincrby("h", "n", 5) == 5
    assert store.hget("h", "n") == "5"
    assert store.hincrby("h", "n", -5) == 0
    assert store.hget("h", "n") == "0"


@pytest.mark.parametrize("bad", ["abc", " 5", "1.5", ""])
def test_hincrby_rejects_non_integers(store, bad):
    store.hset("h", "n", bad)
    with pytest.raises(HashValueNotIntegerError):
        store.hincrby("h", "n", 1)


def test_hincrby_wraps_at_int64(store):
    store.hset("h", "n", str(2**63 - 1))
    assert store.hincrby("h", "n", 1) == -(2**63)


def test_hincrbyfloat(store):
    store.hset("h", "f", "1.5")
    assert store.hincrbyfloat("h", "f", 1.5) == pytest.approx(3.0)
    assert store.hget("h", "f") == "3"
    assert float(store.hget("h", "f")) == 3.0


def test_hincrbyfloat_rejects_non_floats(store):
    store.hset("h", "f", "abc")
    with pytest.raises(HashValueNotFloatError):
        store.hincrbyfloat("h", "f", 1.0)


def test_hset_clears_expiry(store):
    store.hset("h", "a", "1")
    assert store.expire("h", time.time() + 100)
    assert store.ttl("h") >= 0
    store.hset("h", "b", "2")
    assert store.ttl("h") == -1


def test_expired_hash_is_gone(store):
    store.hset("h", "a", "1")
    store.expire("h", time.time() - 1)
    assert store.hget("h", "a") is None
    assert store.hlen("h") == 0


def test_snapshot_is_not_modified(store):
    store.hset("h", "a", "1")
    with store.snapshot() as snap:
        store.hset("h", "b", "2")
        store.hdel("h", "a")
        assert snap["h"].data == {"a": "1"}
    assert store.hgetall("h") == {"b": "2"}