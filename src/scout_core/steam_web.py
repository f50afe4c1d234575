import asyncio
import concurrent.futures
import logging
import threading
from collections.abc import Callable
from typing import Any, Protocol

import aiohttp

from .constants import FileType
from .exceptions import ExternalAPIError
from .network import HEADERS, STEAM_API_BASE
from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

QueryHandler = Callable[[list[dict | None] | None, str | None], None]


class WorkshopClient(Protocol):
    """
    Callback-driven workshop query API.

    query_items() registers a batched query; the handler is called exactly
    once, with (items, None) or (None, message), and only from inside
    run_callbacks(). Calls to run_callbacks() must not overlap.
    """

    def query_items(self, item_ids: list[int], include_children: bool, handler: QueryHandler) -> None: ...

    def run_callbacks(self) -> None: ...


class NameResolver(Protocol):
    async def resolve(self, owner_ids: list[int], app_id: int) -> dict[int, str]: ...


def parse_published_file(details: dict[str, Any]) -> dict[str, Any] | None:
    """Turn one GetDetails entry into an item record. Entries the platform reports as failed become None."""
    if details.get("result") != 1:
        return None

    file_type = FileType.from_code(int(details.get("file_type", 0)))
    return {
        "published_file_id": int(details["publishedfileid"]),
        "creator_app_id": details.get("creator_appid"),
        "consumer_app_id": details.get("consumer_appid"),
        "title": details.get("title", ""),
        "description": details.get("file_description", ""),
        "owner": {"steam_id64": int(details.get("creator", 0))},
        "time_created": details.get("time_created", 0),
        "time_updated": details.get("time_updated", 0),
        "visibility": details.get("visibility"),
        "banned": bool(details.get("banned", False)),
        "tags": [tag["tag"] for tag in details.get("tags", []) if tag.get("tag")],
        "file_type": file_type.value if file_type else "Unknown",
        "file_size": int(details.get("file_size") or 0),
        "preview_url": details.get("preview_url", ""),
        "url": details.get("url", ""),
        "num_children": details.get("num_children", 0),
        "children": [int(child["publishedfileid"]) for child in details.get("children", []) if "publishedfileid" in child],
    }


class SteamWebWorkshopClient:
    """
    WorkshopClient backed by the Steam Web API.

    The HTTP request runs on the event loop passed in; its completion is held
    back until run_callbacks() is called, so callers see the same pump-driven
    contract as the native client.
    """

    DETAILS_URL = f"{STEAM_API_BASE}/IPublishedFileService/GetDetails/v1/"

    def __init__(
        self,
        session: aiohttp.ClientSession,
        loop: asyncio.AbstractEventLoop,
        api_key: str = "",
        rate_limiter: RateLimiter | None = None,
    ):
        self.session = session
        self.loop = loop
        self.api_key = api_key
        self.rate_limiter = rate_limiter
        self._pending: list[tuple[concurrent.futures.Future, QueryHandler]] = []
        self._lock = threading.Lock()

    def query_items(self, item_ids: list[int], include_children: bool, handler: QueryHandler) -> None:
        if not item_ids:
            raise ExternalAPIError("Failed to create query handle: no item ids")
        if self.loop.is_closed():
            raise ExternalAPIError("Failed to create query handle: event loop is closed")

        future = asyncio.run_coroutine_threadsafe(self.fetch_details(item_ids, include_children), self.loop)
        with self._lock:
            self._pending.append((future, handler))

    def run_callbacks(self) -> None:
        with self._lock:
            ready, waiting = [], []
            for entry in self._pending:
                (ready if entry[0].done() else waiting).append(entry)
            self._pending = waiting

        for future, handler in ready:
            try:
                items = future.result()
            except ExternalAPIError as e:
                handler(None, e.message)
            except concurrent.futures.CancelledError:
                handler(None, "Steam API error: request cancelled")
            except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
                handler(None, f"Steam API error: {e!r}")
            else:
                handler(items, None)

    async def fetch_details(self, item_ids: list[int], include_children: bool = True) -> list[dict | None]:
        params = {
            "includetags": "true",
            "includechildren": "true" if include_children else "false",
        }
        if self.api_key:
            params["key"] = self.api_key
        for i, item_id in enumerate(item_ids):
            params[f"publishedfileids[{i}]"] = str(item_id)

        if self.rate_limiter:
            await self.rate_limiter.acquire()

        async with self.session.get(self.DETAILS_URL, params=params, headers=HEADERS) as resp:
            if resp.status == 429:
                raise ExternalAPIError("Steam API error: rate limit exceeded (429)")
            if resp.status != 200:
                raise ExternalAPIError(f"Steam API error: HTTP {resp.status}")
            data = await resp.json(content_type=None)

        by_id: dict[int, dict | None] = {}
        for entry in (data or {}).get("response", {}).get("publishedfiledetails", []):
            try:
                by_id[int(entry["publishedfileid"])] = parse_published_file(entry)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed workshop entry: {e}")
        return [by_id.get(item_id) for item_id in item_ids]


class SteamProfileResolver:
    """Resolves SteamID64s to persona names through ISteamUser/GetPlayerSummaries."""

    SUMMARIES_URL = f"{STEAM_API_BASE}/ISteamUser/GetPlayerSummaries/v2/"
    BATCH_SIZE = 100

    def __init__(self, session: aiohttp.ClientSession, api_key: str, rate_limiter: RateLimiter | None = None):
        self.session = session
        self.api_key = api_key
        self.rate_limiter = rate_limiter

    async def resolve(self, owner_ids: list[int], app_id: int) -> dict[int, str]:
        if not owner_ids:
            return {}
        if not self.api_key:
            logger.warning("STEAM_API_KEY not set. skipping creator name lookup.")
            return {}

        names: dict[int, str] = {}
        for start in range(0, len(owner_ids), self.BATCH_SIZE):
            names.update(await self._fetch_chunk(owner_ids[start : start + self.BATCH_SIZE], app_id))
        return names

    async def _fetch_chunk(self, owner_ids: list[int], app_id: int) -> dict[int, str]:
        params = {"key": self.api_key, "steamids": ",".join(str(i) for i in owner_ids)}

        if self.rate_limiter:
            await self.rate_limiter.acquire()

        try:
            async with self.session.get(self.SUMMARIES_URL, params=params, headers=HEADERS) as resp:
                if resp.status != 200:
                    logger.warning(f"Player summaries failed for app {app_id}: HTTP {resp.status}")
                    return {}
                data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning(f"Player summaries failed for app {app_id}: {e}")
            return {}

        names = {}
        for player in (data or {}).get("response", {}).get("players", []):
            try:
                names[int(player["steamid"])] = player["personaname"]
            except (KeyError, TypeError, ValueError):
                continue
        return names
