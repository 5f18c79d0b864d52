import hashlib
import logging
import shutil
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable

from kv_cache.settings import settings
from kv_cache.utils.jsonio import read_json, write_json

logger = logging.getLogger(__name__)


class CacheError(Exception):
    pass


class CorruptEntryError(CacheError):
    def __init__(self, key: str, path: Path, reason: str):
        super().__init__(f"Corrupt cache entry for {key!r} at {path}: {reason}")
        self.key = key
        self.path = path
        self.reason = reason


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(ts: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision, e.g. 2022-08-17T01:52:52.973Z"""
    ts = ts.astimezone(timezone.utc)
    return ts.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    if not isinstance(value, str):
        raise TypeError(f"expected an ISO-8601 string, got {type(value).__name__}")
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    ts = datetime.fromisoformat(value)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _as_timedelta(ttl) -> timedelta:
    if not isinstance(ttl, timedelta):
        try:
            ttl = timedelta(seconds=float(ttl))
        except OverflowError as e:
            raise ValueError(f"ttl out of range: {ttl}") from e
    if ttl <= timedelta(0):
        raise ValueError(f"ttl must be positive, got {ttl}")
    return ttl


@dataclass(frozen=True)
class CacheEntry:
    expiration: datetime
    data: Any

    def is_expired(self, now: datetime) -> bool:
        return self.expiration <= now

    def to_dict(self) -> dict:
        return {"expiration": format_timestamp(self.expiration), "data": self.data}

    @classmethod
    def from_dict(cls, obj: dict) -> "CacheEntry":
        return cls(expiration=parse_timestamp(obj["expiration"]), data=obj["data"])


# File-based cache storing one JSON entry per hashed key, with expiration.
class FileCache:
    def __init__(self, root, ttl=None, clock: Callable[[], datetime] | None = None):
        self.root = Path(root)
        self.ttl = _as_timedelta(settings.cache_ttl_seconds if ttl is None else ttl)
        self.clock = clock or _utcnow
        self.root.mkdir(parents=True, exist_ok=True)

    # Current time from the clock; naive values are taken as UTC.
    def _now(self) -> datetime:
        now = self.clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now

    def _path(self, key: str) -> Path:
        h = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self.root / f"{h}.json"

    def _load(self, key: str, p: Path) -> CacheEntry:
        try:
            obj = read_json(p)
        except ValueError as e:
            # JSONDecodeError and UnicodeDecodeError
            raise CorruptEntryError(key, p, f"invalid JSON ({e})") from e
        if not isinstance(obj, dict):
            raise CorruptEntryError(key, p, "entry is not a JSON object")
        try:
            return CacheEntry.from_dict(obj)
        except KeyError as e:
            raise CorruptEntryError(key, p, f"missing field {e}") from e
        except (TypeError, ValueError) as e:
            raise CorruptEntryError(key, p, f"bad expiration ({e})") from e

    def lookup(self, key: str) -> CacheEntry | None:
        """Return the stored entry, or None when the key is absent or expired.

        Expired files are removed as they are found.
        """
        p = self._path(key)
        if not p.exists():
            logger.debug("Cache miss for %s", key)
            return None
        try:
            entry = self._load(key, p)
        except CorruptEntryError as e:
            logger.warning("%s", e)
            raise
        if entry.is_expired(self._now()):
            p.unlink(missing_ok=True)
            logger.debug("Cache expired for %s (at %s)", key,
                         format_timestamp(entry.expiration))
            return None
        logger.debug("Cache hit for %s", key)
        return entry

    def get(self, key: str, default: Any = None) -> Any:
        entry = self.lookup(key)
        return default if entry is None else entry.data

    def set(self, key: str, data: Any, ttl=None) -> CacheEntry:
        ttl = self.ttl if ttl is None else _as_timedelta(ttl)
        try:
            expiration = self._now() + ttl
        except OverflowError as e:
            raise ValueError(f"ttl out of range: {ttl}") from e
        # stored timestamps carry millisecond precision
        expiration = expiration.replace(
            microsecond=expiration.microsecond // 1000 * 1000)
        entry = CacheEntry(expiration=expiration, data=data)
        write_json(self._path(key), entry.to_dict())
        logger.debug("Cached %s until %s", key, format_timestamp(entry.expiration))
        return entry

    def clear(self, key: str) -> bool:
        p = self._path(key)
        try:
            p.unlink()
        except FileNotFoundError:
            return False
        logger.debug("Cleared %s", key)
        return True

    def clear_all(self) -> bool:
        if self.root.exists():
            shutil.rmtree(self.root)
        self.root.mkdir(parents=True, exist_ok=True)
        logger.info("Cache cleared: %s", self.root)
        return True

    def __contains__(self, key: str) -> bool:
        return self.lookup(key) is not None
