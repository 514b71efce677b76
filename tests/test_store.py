"""Tests for the TTL + LRU expiring store."""
import pytest

from ratekeeper.store import ExpiringStore


@pytest.fixture
def store(clock):
    return ExpiringStore(max_size=3, ttl_ms=1000, clock=clock)


def test_get_missing_returns_none(store):
    assert store.get("nope") is None


def test_set_then_get(store):
    store.set("a", 1)
    assert store.get("a") == 1
    assert "a" in store


def test_expired_entry_reads_as_absent(store, clock):
    """An entry past its TTL is absent even though nothing purged it yet."""
    store.set("a", 1)
    clock.advance(999)
    assert store.get("a") == 1
    clock.advance(1)
    assert store.get("a") is None
    assert "a" not in store


def test_explicit_ttl_overrides_default(store, clock):
    store.set("a", 1, ttl_ms=100)
    clock.advance(100)
    assert store.get("a") is None


def test_overwrite_restarts_ttl(store, clock):
    store.set("a", 1)
    clock.advance(900)
    store.set("a", 2)
    clock.advance(900)
    assert store.get("a") == 2


def test_capacity_evicts_least_recently_used(store):
    store.set("a", 1)
    store.set("b", 2)
    store.set("c", 3)
    store.get("a")  # a is now most recently used
    store.set("d", 4)
    assert store.get("b") is None
    assert store.get("a") == 1
    assert store.get("c") == 3
    assert store.get("d") == 4
    assert len(store) == 3


def test_overwrite_at_capacity_does_not_evict(store):
    store.set("a", 1)
    store.set("b", 2)
    store.set("c", 3)
    store.set("a", 10)
    assert len(store) == 3
    assert store.get("b") == 2


def test_delete(store):
    store.set("a", 1)
    assert store.delete("a") is True
    assert store.get("a") is None
    assert store.delete("a") is False


def test_purge_expired_only_drops_stale(store, clock):
    store.set("old", 1)
    clock.advance(500)
    store.set("new", 2)
    clock.advance(600)
    assert store.purge_expired() == 1
    assert len(store) == 1
    assert store.get("new") == 2


def test_clear(store):
    store.set("a", 1)
    store.clear()
    assert len(store) == 0


@pytest.mark.parametrize("kwargs", [{"max_size": 0, "ttl_ms": 10}, {"max_size": 1, "ttl_ms": 0}])
def test_invalid_construction(kwargs):
    with pytest.raises(ValueError):
        ExpiringStore(**kwargs)
