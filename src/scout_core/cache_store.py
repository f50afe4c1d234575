import json
import logging
import os
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .exceptions import CacheIOError, SerializationError

logger = logging.getLogger(__name__)

MAX_TIMESTAMP = 2**64 - 1


def system_clock() -> int:
    return int(time.time())


@dataclass
class CacheSnapshot:
    """In-memory copy of one cache file: records, negative markers and the time it was written."""

    records: dict[Any, Any] = field(default_factory=dict)
    negative: set[Any] = field(default_factory=set)
    timestamp: int = 0

    def copy(self) -> "CacheSnapshot":
        return CacheSnapshot(records=dict(self.records), negative=set(self.negative), timestamp=self.timestamp)


class LookupKind(Enum):
    HIT = "hit"
    NEGATIVE = "negative"
    MISS = "miss"


@dataclass(frozen=True)
class CacheLookup:
    kind: LookupKind
    record: Any = None


MISS = CacheLookup(LookupKind.MISS)


class CacheStore:
    """
    Keyed snapshot cache with a whole-snapshot TTL.

    The cache never decides correctness: every read or write problem is
    downgraded to "no cache" at the two decision points in load() and save().
    Subclasses only move bytes (_read/_write/_remove).
    """

    location = "<cache>"

    def __init__(
        self,
        ttl: int,
        clock: Callable[[], int] = system_clock,
        key_type: Callable[[str], Any] = int,
        record_check: Callable[[Any], bool] | None = None,
    ):
        self.ttl = ttl
        self.clock = clock
        self.key_type = key_type
        self.record_check = record_check

    def load(self) -> CacheSnapshot:
        try:
            snapshot = self._decode(self._read())
        except (CacheIOError, SerializationError) as e:
            logger.debug(f"Ignoring cache {self.location}: {e}")
            return CacheSnapshot()

        if snapshot.timestamp > self.clock():
            logger.debug(f"Ignoring cache {self.location}: timestamp {snapshot.timestamp} is in the future")
            return CacheSnapshot()
        return snapshot

    def current(self, now: int | None = None) -> CacheSnapshot:
        """Loaded snapshot, or an empty one if it has expired."""
        snapshot = self.load()
        if not self.is_valid(snapshot, now):
            return CacheSnapshot()
        return snapshot

    def is_valid(self, snapshot: CacheSnapshot, now: int | None = None) -> bool:
        if now is None:
            now = self.clock()
        return now - snapshot.timestamp < self.ttl

    def get(self, snapshot: CacheSnapshot, key: Any, now: int | None = None) -> CacheLookup:
        if not self.is_valid(snapshot, now):
            return MISS
        if key in snapshot.records:
            return CacheLookup(LookupKind.HIT, snapshot.records[key])
        if key in snapshot.negative:
            return CacheLookup(LookupKind.NEGATIVE)
        return MISS

    def save(self, snapshot: CacheSnapshot) -> bool:
        try:
            self._write(self._encode(snapshot))
        except (CacheIOError, SerializationError) as e:
            logger.debug(f"Could not write cache {self.location}: {e}")
            return False
        return True

    def clear(self) -> bool:
        try:
            return self._remove()
        except CacheIOError as e:
            logger.debug(f"Could not remove cache {self.location}: {e}")
            return False

    def _encode(self, snapshot: CacheSnapshot) -> bytes:
        payload = {
            "records": {str(key): value for key, value in snapshot.records.items()},
            "negative": sorted(snapshot.negative, key=str),
            "timestamp": snapshot.timestamp,
        }
        try:
            return json.dumps(payload, separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise SerializationError(self.location, str(e)) from e

    def _decode(self, raw: bytes) -> CacheSnapshot:
        try:
            payload = json.loads(raw)
        except ValueError as e:
            raise SerializationError(self.location, str(e)) from e

        if not isinstance(payload, dict):
            raise SerializationError(self.location, "top-level value is not an object")

        records = payload.get("records")
        negative = payload.get("negative", [])
        timestamp = payload.get("timestamp")

        if not isinstance(records, dict) or not isinstance(negative, list):
            raise SerializationError(self.location, "records/negative have the wrong shape")
        if isinstance(timestamp, bool) or not isinstance(timestamp, int) or not 0 <= timestamp <= MAX_TIMESTAMP:
            raise SerializationError(self.location, f"invalid timestamp {timestamp!r}")

        try:
            snapshot = CacheSnapshot(
                records={self.key_type(key): value for key, value in records.items()},
                negative={self.key_type(str(key)) for key in negative},
                timestamp=timestamp,
            )
        except (TypeError, ValueError) as e:
            raise SerializationError(self.location, f"bad key: {e}") from e

        if self.record_check:
            for key, value in snapshot.records.items():
                if not self.record_check(value):
                    raise SerializationError(self.location, f"record {key!r} has the wrong shape")
        return snapshot

    def _read(self) -> bytes:
        raise NotImplementedError

    def _write(self, data: bytes) -> None:
        raise NotImplementedError

    def _remove(self) -> bool:
        raise NotImplementedError


class FileCacheStore(CacheStore):
    def __init__(
        self,
        path: str | os.PathLike,
        ttl: int,
        clock: Callable[[], int] = system_clock,
        key_type=int,
        record_check=None,
    ):
        super().__init__(ttl, clock=clock, key_type=key_type, record_check=record_check)
        self.path = os.fspath(path)

    @property
    def location(self) -> str:
        return self.path

    def _read(self) -> bytes:
        try:
            with open(self.path, "rb") as f:
                return f.read()
        except OSError as e:
            raise CacheIOError(self.path, e) from e

    def _write(self, data: bytes) -> None:
        try:
            os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
            with open(self.path, "wb") as f:
                f.write(data)
        except OSError as e:
            raise CacheIOError(self.path, e) from e

    def _remove(self) -> bool:
        try:
            os.remove(self.path)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise CacheIOError(self.path, e) from e
        return True


class MemoryCacheStore(CacheStore):
    """Keeps the encoded cache in memory. Used by tests and dry runs."""

    location = "<memory>"

    def __init__(self, ttl: int, clock: Callable[[], int] = system_clock, key_type=int, record_check=None):
        super().__init__(ttl, clock=clock, key_type=key_type, record_check=record_check)
        self.data: bytes | None = None
        self.reads = 0
        self.writes = 0

    def _read(self) -> bytes:
        self.reads += 1
        if self.data is None:
            raise CacheIOError(self.location, FileNotFoundError("empty"))
        return self.data

    def _write(self, data: bytes) -> None:
        self.data = data
        self.writes += 1

    def _remove(self) -> bool:
        existed = self.data is not None
        self.data = None
        return existed


def clear_cache(cache_dir: str | os.PathLike, names: tuple[str, ...]) -> int:
    """Delete the named cache files under cache_dir. Returns how many were removed."""
    removed = 0
    for name in names:
        if FileCacheStore(os.path.join(cache_dir, name), ttl=0).clear():
            removed += 1
    return removed
