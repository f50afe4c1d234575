from conftest import make_item

from scout_core.cache_store import CacheSnapshot
from scout_core.constants import ITEM_CACHE_TTL
from scout_core.planner import dedupe, plan


def test_empty_request_plans_nothing(memory_store):
    assert plan([], CacheSnapshot(), memory_store) == []
    # Never even consulted the backing store
    assert memory_store.reads == 0
    assert memory_store.writes == 0


def test_invalid_snapshot_fetches_everything_once(memory_store, clock):
    stale = CacheSnapshot(records={1: make_item(1)}, negative={2}, timestamp=clock() - ITEM_CACHE_TTL)

    assert plan([3, 1, 2, 3, 1], stale, memory_store) == [3, 1, 2]


def test_valid_snapshot_skips_known_ids(memory_store, clock):
    snapshot = CacheSnapshot(records={1: make_item(1)}, negative={2}, timestamp=clock())

    assert plan([1, 2, 3, 4, 3], snapshot, memory_store) == [3, 4]
    assert plan([1, 2], snapshot, memory_store) == []


def test_dedupe_keeps_first_seen_order():
    assert dedupe([5, 1, 5, 3, 1]) == [5, 1, 3]
