from collections.abc import Iterable

from .cache_store import CacheSnapshot, CacheStore


def dedupe(ids: Iterable[int]) -> list[int]:
    """Drop repeated ids, keeping first-seen order."""
    return list(dict.fromkeys(ids))


def plan(requested: list[int], snapshot: CacheSnapshot, store: CacheStore, now: int | None = None) -> list[int]:
    """
    Ids that need a fresh fetch.

    An expired snapshot invalidates everything; a valid one only leaves out
    ids it already knows about, present or confirmed missing.
    """
    if not requested:
        return []
    if not store.is_valid(snapshot, now):
        return dedupe(requested)
    return dedupe(i for i in requested if i not in snapshot.records and i not in snapshot.negative)
