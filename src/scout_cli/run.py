import argparse
import asyncio
import json
import sys

import aiohttp

from scout_core.cache_store import clear_cache
from scout_core.constants import (
    APP_INSTALL_PATH_CACHE_FILE,
    CACHE_FILES,
    LIBRARY_PATHS_CACHE_FILE,
    WORKSHOP_PATH_CACHE_FILE,
)
from scout_core.exceptions import ScoutException
from scout_core.rate_limiter import RateLimiter
from scout_core.steam_paths import app_installation_path, path_cache_store, steam_library_paths, workshop_path
from scout_core.steam_web import SteamProfileResolver, SteamWebWorkshopClient
from scout_core.workshop_items import WorkshopItemsManager, item_cache_store

from .config import (
    CACHE_DIR,
    FETCH_TIMEOUT,
    HTTP_TIMEOUT_GRACE,
    LOG_LEVEL,
    STEAM_API_KEY,
    STEAM_REQUESTS_PER_SECOND,
)
from .logging_config import get_logger, setup_logging

logger = get_logger(__name__)


def parse_item_ids(value: str) -> list[int]:
    ids = []
    for token in value.split(","):
        try:
            item_id = int(token.strip())
        except ValueError:
            raise argparse.ArgumentTypeError(f"Invalid item ID: {token}") from None
        if item_id < 0:
            raise argparse.ArgumentTypeError(f"Invalid item ID: {token}")
        ids.append(item_id)
    return ids


async def fetch_workshop_items(app_id: int, item_ids: list[int], cache_dir: str = CACHE_DIR) -> list[dict]:
    # The bridge owns the fetch deadline; the session only catches requests that hang past it
    timeout = aiohttp.ClientTimeout(total=FETCH_TIMEOUT + HTTP_TIMEOUT_GRACE)
    async with aiohttp.ClientSession(timeout=timeout) as session:
        loop = asyncio.get_running_loop()
        limiter = RateLimiter(STEAM_REQUESTS_PER_SECOND)
        manager = WorkshopItemsManager(
            store=item_cache_store(cache_dir),
            resolver=SteamProfileResolver(session, STEAM_API_KEY, limiter),
            client_factory=lambda _app_id: SteamWebWorkshopClient(session, loop, STEAM_API_KEY, limiter),
            fetch_timeout=FETCH_TIMEOUT,
        )
        return await manager.fetch_items(app_id, item_ids)


def _libraries(cache_dir: str):
    store = path_cache_store(cache_dir, LIBRARY_PATHS_CACHE_FILE, key_type=str)
    return lambda: steam_library_paths(store)


def cmd_workshop_items(args):
    return asyncio.run(fetch_workshop_items(args.app_id, args.item_ids, args.cache_dir))


def cmd_workshop_path(args):
    store = path_cache_store(args.cache_dir, WORKSHOP_PATH_CACHE_FILE)
    path = workshop_path(args.app_id, store, _libraries(args.cache_dir))
    if path is None:
        raise ScoutException(f"Workshop path not found for app ID {args.app_id}")
    return path


def cmd_app_installation_path(args):
    store = path_cache_store(args.cache_dir, APP_INSTALL_PATH_CACHE_FILE)
    return app_installation_path(args.app_id, store, _libraries(args.cache_dir))


def cmd_steam_library_paths(args):
    return _libraries(args.cache_dir)()


def cmd_clear_cache(args):
    removed = clear_cache(args.cache_dir, CACHE_FILES)
    return f"Cleared {removed} cache file(s) in {args.cache_dir}"


COMMANDS = {
    "workshop-items": (cmd_workshop_items, "Fetch metadata for workshop items", True),
    "workshop-path": (cmd_workshop_path, "Print the workshop content directory of an app", True),
    "app-installation-path": (cmd_app_installation_path, "Print the installation directory of an app", True),
    "steam-library-paths": (cmd_steam_library_paths, "List Steam library folders", False),
    "clear-cache": (cmd_clear_cache, "Delete all cache files", False),
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="workshop-scout", description="Cached Steam Workshop lookups")
    parser.add_argument("--app-id", type=int, default=None, help="Steam app id (may also follow the command)")
    parser.add_argument("--cache-dir", default=CACHE_DIR, help=f"Cache directory (default: {CACHE_DIR})")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)
    for name, (handler, help_text, needs_app) in COMMANDS.items():
        sub = subparsers.add_parser(name, help=help_text)
        sub.set_defaults(handler=handler, needs_app=needs_app)
        if needs_app:
            sub.add_argument("--app-id", type=int, default=argparse.SUPPRESS)
        if name == "workshop-items":
            sub.add_argument("--item-ids", type=parse_item_ids, default=[], help="Comma-separated item ids")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.needs_app and args.app_id is None:
        parser.error("Missing --app-id")

    setup_logging("DEBUG" if args.verbose else LOG_LEVEL)

    try:
        result = args.handler(args)
    except ScoutException as e:
        logger.debug(f"{args.command} failed: {e!r}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        sys.exit(130)
