import logging
import os
import re
import sys
from collections.abc import Callable

from .cache_store import CacheSnapshot, CacheStore, FileCacheStore, LookupKind, system_clock
from .constants import (
    APP_INSTALL_PATH_CACHE_FILE,
    LIBRARY_PATHS_CACHE_FILE,
    PATH_CACHE_TTL,
    WORKSHOP_PATH_CACHE_FILE,
)
from .exceptions import SteamPathError

logger = logging.getLogger(__name__)

LIBRARY_PATHS_KEY = "paths"

QUOTED_STRING = re.compile(r'"((?:[^"\\]|\\.)*)"')
ESCAPE = re.compile(r"\\(.)")


def is_install_record(record) -> bool:
    if not isinstance(record, dict):
        return False
    return isinstance(record["path"] if "path" in record else record.get("error"), str)


def is_library_record(record) -> bool:
    return isinstance(record, list) and all(isinstance(path, str) for path in record)


def is_workshop_record(record) -> bool:
    return isinstance(record, str)


RECORD_CHECKS = {
    APP_INSTALL_PATH_CACHE_FILE: is_install_record,
    LIBRARY_PATHS_CACHE_FILE: is_library_record,
    WORKSHOP_PATH_CACHE_FILE: is_workshop_record,
}


def path_cache_store(
    cache_dir: str | os.PathLike, name: str, key_type=int, clock: Callable[[], int] = system_clock
) -> FileCacheStore:
    return FileCacheStore(
        os.path.join(cache_dir, name),
        ttl=PATH_CACHE_TTL,
        clock=clock,
        key_type=key_type,
        record_check=RECORD_CHECKS.get(name),
    )


def extract_quoted_strings(text: str) -> list[str]:
    """Every quoted token of a Valve KeyValues document (.vdf/.acf), unescaped, in order."""
    return [ESCAPE.sub(r"\1", match) for match in QUOTED_STRING.findall(text)]


def _values_for(strings: list[str], key: str) -> list[str]:
    return [value for name, value in zip(strings, strings[1:]) if name == key]


def _registry_steam_paths() -> list[str]:
    import winreg

    paths = []
    for hive, subkey, value in (
        (winreg.HKEY_CURRENT_USER, r"Software\Valve\Steam", "SteamPath"),
        (winreg.HKEY_LOCAL_MACHINE, r"SOFTWARE\WOW6432Node\Valve\Steam", "InstallPath"),
        (winreg.HKEY_LOCAL_MACHINE, r"SOFTWARE\Valve\Steam", "InstallPath"),
    ):
        try:
            with winreg.OpenKey(hive, subkey) as key:
                paths.append(str(winreg.QueryValueEx(key, value)[0]))
        except OSError:
            continue
    return paths


def steam_install_paths() -> list[str]:
    if sys.platform == "win32":
        candidates = _registry_steam_paths()
        candidates.append(os.path.join(os.environ.get("ProgramFiles(x86)", r"C:\Program Files (x86)"), "Steam"))
    elif sys.platform == "darwin":
        candidates = [os.path.expanduser("~/Library/Application Support/Steam")]
    else:
        candidates = [
            os.path.expanduser("~/.steam/steam"),
            os.path.expanduser("~/.local/share/Steam"),
            os.path.expanduser("~/.var/app/com.valvesoftware.Steam/.local/share/Steam"),
            os.path.expanduser("~/snap/steam/common/.local/share/Steam"),
        ]

    found: list[str] = []
    for candidate in candidates:
        resolved = os.path.realpath(candidate)
        if os.path.isdir(resolved) and resolved not in found:
            found.append(resolved)

    if not found:
        raise SteamPathError("Steam installation not found")
    return found


def steam_library_paths(store: CacheStore, install_paths: Callable[[], list[str]] = steam_install_paths) -> list[str]:
    """Library folders listed in every Steam installation's libraryfolders.vdf."""
    now = store.clock()
    lookup = store.get(store.load(), LIBRARY_PATHS_KEY, now)
    if lookup.kind is LookupKind.HIT:
        return list(lookup.record)

    libraries: list[str] = []
    for root in install_paths():
        meta_file = os.path.join(root, "steamapps", "libraryfolders.vdf")
        if not os.path.isfile(meta_file):
            continue
        try:
            with open(meta_file, encoding="utf-8", errors="replace") as f:
                strings = extract_quoted_strings(f.read())
        except OSError as e:
            raise SteamPathError(f"Failed to read library metadata file: {e}") from e
        libraries.extend(_values_for(strings, "path"))

    store.save(CacheSnapshot(records={LIBRARY_PATHS_KEY: libraries}, timestamp=now))
    return libraries


def _find_installation(app_id: int, libraries: list[str]) -> dict[str, str]:
    for library in libraries:
        steamapps = os.path.join(library, "steamapps")
        manifest = os.path.join(steamapps, f"appmanifest_{app_id}.acf")
        if not os.path.isfile(manifest):
            continue
        try:
            with open(manifest, encoding="utf-8", errors="replace") as f:
                strings = extract_quoted_strings(f.read())
        except OSError as e:
            raise SteamPathError(f"Failed to read manifest file: {e}") from e

        install_dirs = _values_for(strings, "installdir")
        if not install_dirs:
            return {"error": f"Found manifest file but couldn't parse installation directory for app {app_id}"}

        full_path = os.path.join(steamapps, "common", install_dirs[0])
        if os.path.exists(full_path):
            return {"path": full_path}
        return {"error": f"Installation directory exists in manifest but not on disk: {full_path}"}

    return {"error": f"App {app_id} is not installed or manifest file not found"}


def app_installation_path(app_id: int, store: CacheStore, libraries: Callable[[], list[str]]) -> str:
    """
    Installation directory of an app. Lookup failures are cached as well and
    raised as SteamPathError on every hit.
    """
    now = store.clock()
    snapshot = store.current(now)
    lookup = store.get(snapshot, app_id, now)
    if lookup.kind is LookupKind.HIT:
        result = lookup.record
    else:
        try:
            library_paths = libraries()
        except SteamPathError as e:
            raise SteamPathError(f"Failed to get Steam library paths: {e}") from e
        result = _find_installation(app_id, library_paths)
        snapshot.records[app_id] = result
        snapshot.timestamp = now
        store.save(snapshot)

    if "path" in result:
        return result["path"]
    raise SteamPathError(result.get("error", f"App {app_id} is not installed"))


def workshop_path(app_id: int, store: CacheStore, libraries: Callable[[], list[str]]) -> str | None:
    """Workshop content directory of an app in the first library that has one."""
    now = store.clock()
    snapshot = store.current(now)
    lookup = store.get(snapshot, app_id, now)
    if lookup.kind is LookupKind.HIT:
        return lookup.record
    if lookup.kind is LookupKind.NEGATIVE:
        return None

    try:
        library_paths = libraries()
    except SteamPathError as e:
        logger.debug(f"No Steam libraries to search for app {app_id}: {e}")
        library_paths = []

    result = None
    for library in library_paths:
        candidate = os.path.join(library, "steamapps", "workshop", "content", str(app_id))
        if os.path.exists(candidate):
            result = candidate
            break

    if result is None:
        snapshot.negative.add(app_id)
    else:
        snapshot.records[app_id] = result
    snapshot.timestamp = now
    store.save(snapshot)
    return result
