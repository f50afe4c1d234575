import threading

import pytest
import pytest_asyncio
from dotenv import load_dotenv

from scout_core.cache_store import MemoryCacheStore
from scout_core.constants import ITEM_CACHE_TTL
from scout_core.merger import is_item_record

load_dotenv()

START = 1_700_000_000


class FakeClock:
    """Settable wall clock for cache TTL tests."""

    def __init__(self, now: int = START):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int):
        self.now += seconds


class SteppingClock:
    """Monotonic clock that only moves when the worker sleeps."""

    def __init__(self):
        self.now = 0.0
        self._lock = threading.Lock()

    def __call__(self) -> float:
        with self._lock:
            return self.now

    def sleep(self, seconds: float):
        with self._lock:
            self.now += seconds


def make_item(item_id: int, owner: int = 76561197960265728, file_type: str = "Community", title: str | None = None):
    return {
        "published_file_id": item_id,
        "creator_app_id": 4000,
        "consumer_app_id": 4000,
        "title": title or f"Item {item_id}",
        "description": "",
        "owner": {"steam_id64": owner},
        "time_created": 1600000000,
        "time_updated": 1600000100,
        "visibility": 0,
        "banned": False,
        "tags": ["Addon"],
        "file_type": file_type,
        "file_size": 1024,
        "preview_url": "",
        "url": "",
        "num_children": 0,
        "children": [],
    }


class FakeWorkshopClient:
    """
    Pump-driven client double. The handler fires on the `complete_on`-th
    pump after the query was registered, never if `complete_on` is None.
    """

    def __init__(self, catalog: dict | None = None, error: str | None = None, complete_on: int | None = 1):
        self.catalog = catalog or {}
        self.error = error
        self.complete_on = complete_on
        self.queries: list[list[int]] = []
        self.pumps = 0
        self.active_pumps = 0
        self.max_active_pumps = 0
        self._handler = None
        self._ids: list[int] = []
        self._lock = threading.Lock()

    def query_items(self, item_ids, include_children, handler):
        with self._lock:
            self.queries.append(list(item_ids))
            self._ids = list(item_ids)
            self._handler = handler

    def run_callbacks(self):
        with self._lock:
            self.active_pumps += 1
            self.max_active_pumps = max(self.max_active_pumps, self.active_pumps)
            self.pumps += 1
            handler = None
            if self._handler and self.complete_on is not None and self.pumps >= self.complete_on:
                handler, self._handler = self._handler, None
        try:
            if handler:
                if self.error:
                    handler(None, self.error)
                else:
                    handler([self.catalog.get(i) for i in self._ids], None)
        finally:
            with self._lock:
                self.active_pumps -= 1


class FakeResolver:
    def __init__(self, names: dict | None = None, error: Exception | None = None):
        self.names = names or {}
        self.error = error
        self.calls: list[tuple[list[int], int]] = []

    async def resolve(self, owner_ids, app_id):
        self.calls.append((list(owner_ids), app_id))
        if self.error:
            raise self.error
        return {i: self.names[i] for i in owner_ids if i in self.names}


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_store(clock):
    return MemoryCacheStore(ttl=ITEM_CACHE_TTL, clock=clock, record_check=is_item_record)


@pytest_asyncio.fixture
async def resolver():
    return FakeResolver({76561197960265728: "Gabe", 76561197960265729: "Robin"})
