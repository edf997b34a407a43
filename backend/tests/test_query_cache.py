import pytest

from backoffice.services.query_cache import QueryCache, freeze


class Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_entries_expire_after_ttl():
    clock = Clock()
    cache = QueryCache(ttl_seconds=10, clock=clock)
    cache.set(("profiles", "count"), 3)

    clock.now = 9
    assert cache.get(("profiles", "count")) == 3
    clock.now = 11
    assert cache.get(("profiles", "count")) is None
    assert len(cache) == 0


def test_oldest_entry_evicted_when_full():
    cache = QueryCache(max_entries=2)
    cache.set(("a",), 1)
    cache.set(("b",), 2)
    cache.set(("c",), 3)

    assert ("a",) not in cache
    assert ("c",) in cache


def test_invalidate_drops_only_matching_prefix():
    cache = QueryCache()
    cache.set(("profiles", "list", ()), [])
    cache.set(("profiles", "count", ()), 0)
    cache.set(("payments", "count", ()), 0)

    assert cache.invalidate(("profiles",)) == 2
    assert ("payments", "count", ()) in cache


def test_freeze_is_order_independent():
    assert freeze({"b": [1, 2], "a": {"x": 1}}) == freeze({"a": {"x": 1}, "b": [1, 2]})


def test_optimistic_update_is_kept_on_success():
    cache = QueryCache()
    cache.set(("profiles", "one", "u1"), {"id": "u1", "account_locked": True})

    with cache.optimistic(("profiles", "one", "u1"), lambda row: {**row, "account_locked": False}) as value:
        assert value["account_locked"] is False

    assert cache.get(("profiles", "one", "u1"))["account_locked"] is False


def test_optimistic_update_rolls_back_on_failure():
    cache = QueryCache()
    key = ("profiles", "one", "u1")
    cache.set(key, {"id": "u1", "vip_subscription": False})

    with pytest.raises(RuntimeError):
        with cache.optimistic(key, lambda row: {**row, "vip_subscription": True}):
            raise RuntimeError("write failed")

    assert cache.get(key) == {"id": "u1", "vip_subscription": False}


def test_optimistic_update_without_snapshot_leaves_nothing_behind():
    cache = QueryCache()

    with pytest.raises(RuntimeError):
        with cache.optimistic(("profiles", "one", "u2"), lambda row: row):
            raise RuntimeError("write failed")

    assert ("profiles", "one", "u2") not in cache
