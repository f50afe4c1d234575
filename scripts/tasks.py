import os
import pathlib
import shutil
import sys
import time

sys.path.insert(0, str(pathlib.Path(__file__).resolve().parent.parent / "src"))

from scout_cli.config import CACHE_DIR  # noqa: E402
from scout_core.cache_store import FileCacheStore  # noqa: E402
from scout_core.constants import CACHE_FILES, ITEM_CACHE_FILE, ITEM_CACHE_TTL, PATH_CACHE_TTL  # noqa: E402


def check_cache():
    print(f"📊 Checking caches in {CACHE_DIR}...")
    for name in CACHE_FILES:
        path = os.path.join(CACHE_DIR, name)
        if not os.path.exists(path):
            print(f"⚠️  {name}: not present")
            continue
        ttl = ITEM_CACHE_TTL if name == ITEM_CACHE_FILE else PATH_CACHE_TTL
        store = FileCacheStore(path, ttl=ttl, key_type=str)
        snapshot = store.load()
        age = int(time.time()) - snapshot.timestamp
        state = "valid" if store.is_valid(snapshot) else "expired/unreadable"
        print(f"✅ {name}: {len(snapshot.records)} record(s), {len(snapshot.negative)} negative, {age}s old ({state})")


def clean_cache():
    print("🧹 Cleaning Python cache files...")
    for p in pathlib.Path(".").rglob("__pycache__"):
        shutil.rmtree(p)
    for p in pathlib.Path(".").rglob("*.pyc"):
        p.unlink()
    print("✅ Python cache cleaned")


def clean_test():
    print("🧹 Cleaning test artifacts...")
    for p in [".pytest_cache", "htmlcov"]:
        shutil.rmtree(p, ignore_errors=True)
    pathlib.Path(".coverage").unlink(missing_ok=True)
    print("✅ Test artifacts cleaned")


def clean_build():
    print("🧹 Cleaning build artifacts...")
    for p in ["dist", "build"]:
        shutil.rmtree(p, ignore_errors=True)
    for p in pathlib.Path(".").rglob("*.egg-info"):
        shutil.rmtree(p)
    print("✅ Build artifacts cleaned")


def check_env():
    print("🔍 Checking environment configuration...")
    if os.path.exists(".env"):
        print("✅ .env file found")
    else:
        print("⚠️  .env file not found. Copy .env.example to .env")
    if os.getenv("STEAM_API_KEY"):
        print("✅ STEAM_API_KEY is set")
    else:
        print("⚠️  STEAM_API_KEY is not set; creator names will show as [unknown]")


def main():
    if len(sys.argv) < 2:
        print("Usage: python scripts/tasks.py <command>")
        sys.exit(1)

    command = sys.argv[1]

    commands = {
        "check-cache": check_cache,
        "clean-cache": clean_cache,
        "clean-test": clean_test,
        "clean-build": clean_build,
        "check-env": check_env,
    }

    if command in commands:
        commands[command]()
    else:
        print(f"Unknown command: {command}")
        sys.exit(1)


if __name__ == "__main__":
    main()
