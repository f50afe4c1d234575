import logging
from typing import Any

from .cache_store import CacheSnapshot
from .constants import UNKNOWN_CREATOR
from .planner import dedupe
from .steam_web import NameResolver

logger = logging.getLogger(__name__)


def merge(snapshot: CacheSnapshot, delta: list[int], fetched: list[dict[str, Any]], now: int) -> CacheSnapshot:
    """
    Fold a fetch result into a copy of the snapshot.

    Every id in delta ends up either in records (it came back) or in
    negative (it did not). The timestamp moves to now.
    """
    merged = snapshot.copy()
    returned = {item["published_file_id"]: item for item in fetched}

    for item_id in delta:
        if item_id in returned:
            merged.records[item_id] = dict(returned[item_id])
            merged.negative.discard(item_id)
        else:
            merged.records.pop(item_id, None)
            merged.negative.add(item_id)

    merged.timestamp = now
    return merged


def order_output(requested: list[int], snapshot: CacheSnapshot) -> list[dict[str, Any]]:
    """Records in request order, repeats kept. Ids without a record are left out."""
    output = []
    for item_id in requested:
        record = snapshot.records.get(item_id)
        if record is None:
            logger.debug(f"Workshop item {item_id} is unavailable; omitting it")
            continue
        output.append(dict(record))
    return output


def is_item_record(record: Any) -> bool:
    """Shape every cached item must have before merge, order_output and enrich may touch it."""
    if not isinstance(record, dict):
        return False
    item_id = record.get("published_file_id")
    owner = record.get("owner")
    if isinstance(item_id, bool) or not isinstance(item_id, int) or not isinstance(owner, dict):
        return False
    steam_id = owner.get("steam_id64", 0)
    return isinstance(steam_id, int) and not isinstance(steam_id, bool)


def owner_id(record: dict[str, Any]) -> int:
    return int(record.get("owner", {}).get("steam_id64", 0))


async def enrich(records: list[dict[str, Any]], resolver: NameResolver, app_id: int) -> list[dict[str, Any]]:
    """Attach creator_id and creator_name to each record with a single resolver call."""
    if not records:
        return []

    owners = dedupe(owner_id(record) for record in records)
    try:
        names = await resolver.resolve(owners, app_id)
    except Exception as e:
        logger.warning(f"Creator name lookup failed for app {app_id}: {e}")
        names = {}

    enriched = []
    for record in records:
        owner = owner_id(record)
        enriched.append({**record, "creator_id": str(owner), "creator_name": names.get(owner, UNKNOWN_CREATOR)})
    return enriched
