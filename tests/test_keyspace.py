import time

import pytest

from memkv.errors import NotIntegerError
from memkv.keyspace import Keyspace, ValueType


@pytest.fixture
def ks():
    return Keyspace()


def test_set_and_get(ks):
    ks.set("name", "alice")
    assert ks.get("name") == "alice"
    assert ks.exists("name") is True


def test_get_missing_returns_none(ks):
    assert ks.get("nope") is None
    assert ks.exists("nope") is False


def test_expired_key_is_invisible(ks):
    ks.set("k", "v", time.time() - 1)
    assert ks.get("k") is None
    assert ks.exists("k") is False
    assert ks.ttl("k") == -2


def test_keys_skips_expired(ks):
    ks.set("live", "1")
    ks.set("dead", "2", time.time() - 5)
    assert ks.keys() == ["live"]


def test_delete(ks):
    ks.set("k", "v")
    assert ks.delete("k") is True
    assert ks.delete("k") is False
    assert ks.get("k") is None


def test_flush(ks):
    ks.set("a", "1")
    ks.set("b", "2", time.time() + 100)
    ks.flush()
    assert ks.keys() == []


def test_ttl_values(ks):
    assert ks.ttl("missing") == -2
    ks.set("forever", "x")
    assert ks.ttl("forever") == -1
    ks.set("soon", "x", time.time() + 100)
    assert 0 <= ks.ttl("soon") <= 100


def test_expire(ks):
    assert ks.expire("missing", time.time() + 10) is False
    ks.set("k", "v")
    assert ks.expire("k", time.time() + 50) is True
    assert 0 <= ks.ttl("k") <= 50
    assert ks.expire("k", None) is True
    assert ks.ttl("k") == -1


def test_incr_on_missing_key(ks):
    assert ks.incr("counter") == 1
    assert ks.incr_by("other", 5) == 5
    assert ks.get("other") == "5"


def test_incr_decr_round_trip(ks):
    ks.set("n", "10")
    after = ks.incr_by("n", 7)
    assert after == 10 + 7
    assert ks.decr_by("n", 7) == 10
    assert ks.decr("n") == 9
    assert ks.get("n") == "9"


def test_incr_accepts_leading_integer(ks):
    ks.set("n", "12abc")
    assert ks.incr("n") == 13


def test_incr_non_integer_raises(ks):
    ks.set("n", "hello")
    with pytest.raises(NotIntegerError):
        ks.incr("n")


def test_incr_non_string_data_raises(ks):
    ks.set("n", [1, 2])
    with pytest.raises(NotIntegerError):
        ks.incr("n")


def test_incr_clears_expiry(ks):
    ks.set("n", "1", time.time() + 100)
    ks.incr("n")
    assert ks.ttl("n") == -1


def test_cleanup_removes_expired(ks):
    past = time.time() - 10
    for i in range(5):
        ks.set(f"old{i}", "x", past)
    ks.set("fresh", "y", time.time() + 100)
    ks.cleanup_expired_keys()
    assert set(ks._data) == {"fresh"}


def test_get_all_data_is_a_copy(ks):
    ks.set("k", "v")
    data = ks.get_all_data()
    try:
        data["k"].expires_at = 0.0
        assert ks.ttl("k") == -1
        assert data["k"].data == "v"
        assert data["k"].type is ValueType.STRING
    finally:
        ks.release_snapshot()


def test_snapshot_context_tracks_activity(ks):
    ks.set("k", "v")
    with ks.snapshot() as data:
        assert ks._snapshot_active() is True
        assert list(data) == ["k"]
    assert ks._snapshot_active() is False