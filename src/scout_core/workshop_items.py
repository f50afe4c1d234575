import logging
import os
from collections.abc import Callable
from typing import Any

from .cache_store import CacheStore, FileCacheStore, system_clock
from .constants import FETCH_TIMEOUT, ITEM_CACHE_FILE, ITEM_CACHE_TTL
from .fetch_bridge import BlockingFetchBridge
from .merger import enrich, is_item_record, merge, order_output
from .planner import plan
from .steam_web import NameResolver, WorkshopClient

logger = logging.getLogger(__name__)


def item_cache_store(cache_dir: str | os.PathLike, clock: Callable[[], int] = system_clock) -> FileCacheStore:
    return FileCacheStore(
        os.path.join(cache_dir, ITEM_CACHE_FILE), ttl=ITEM_CACHE_TTL, clock=clock, record_check=is_item_record
    )


class WorkshopItemsManager:
    """
    Serves workshop item metadata from the local cache and fetches only what
    the cache cannot answer.

    The workshop client is created lazily through client_factory, so fully
    cached requests never touch the platform.
    """

    def __init__(
        self,
        store: CacheStore,
        resolver: NameResolver,
        client_factory: Callable[[int], WorkshopClient],
        fetch_timeout: float = FETCH_TIMEOUT,
    ):
        self.store = store
        self.resolver = resolver
        self.client_factory = client_factory
        self.fetch_timeout = fetch_timeout

    def create_bridge(self, client: WorkshopClient) -> BlockingFetchBridge:
        return BlockingFetchBridge(client, timeout=self.fetch_timeout)

    async def fetch_items(self, app_id: int, item_ids: list[int]) -> list[dict[str, Any]]:
        if not item_ids:
            return []

        now = self.store.clock()
        snapshot = self.store.current(now)
        delta = plan(item_ids, snapshot, self.store, now)

        if delta:
            logger.info(f"Fetching {len(delta)} of {len(item_ids)} workshop item(s) for app {app_id}")
            bridge = self.create_bridge(self.client_factory(app_id))
            fetched = await bridge.fetch(delta)
            snapshot = merge(snapshot, delta, fetched, self.store.clock())
            self.store.save(snapshot)
        else:
            logger.debug(f"All {len(item_ids)} workshop item(s) for app {app_id} served from cache")

        return await enrich(order_output(item_ids, snapshot), self.resolver, app_id)
