"""
Short-lived file cache for aggregated results.

One JSON file per query key (md5 of the key), holding the store time and
the serialized events. Entries older than the TTL are evicted on read.
"""

import hashlib
import time
from pathlib import Path
from typing import Optional

import structlog
from pydantic import BaseModel, ValidationError

from .errors import CacheError
from .models import DateRange, Event

log = structlog.get_logger(__name__)


DEFAULT_TTL_SECONDS = 30 * 60


class CacheEntry(BaseModel):
    """A cached result set."""

    stored_at: float  # Unix timestamp
    events: list[Event]


def make_cache_key(city: str, date_range: DateRange, radius_km: int) -> str:
    """Deterministic key from location, range bounds and radius."""
    return (
        f"events_{city}_{date_range.start:%Y-%m-%d}_"
        f"{date_range.end:%Y-%m-%d}_{radius_km}"
    )


class ResultCache:
    """File-backed cache keyed by query parameters."""

    def __init__(self, directory: Path, ttl_seconds: float = DEFAULT_TTL_SECONDS):
        """Create the cache directory if needed.

        Raises:
            CacheError: If the directory cannot be created
        """
        self.directory = Path(directory)
        self.ttl_seconds = ttl_seconds
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheError(f"cannot create cache directory {self.directory}: {e}") from e

    def _path(self, key: str) -> Path:
        digest = hashlib.md5(key.encode("utf-8")).hexdigest()
        return self.directory / f"{digest}.json"

    def get(self, key: str, now: Optional[float] = None) -> Optional[CacheEntry]:
        """Return a fresh entry, or None when missing, expired or unreadable."""
        path = self._path(key)
        if not path.exists():
            return None

        try:
            entry = CacheEntry.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            log.warning("cache_entry_unreadable", key=key, error=str(e))
            return None

        now = time.time() if now is None else now
        if now - entry.stored_at > self.ttl_seconds:
            log.debug("cache_entry_expired", key=key)
            path.unlink(missing_ok=True)
            return None

        return entry

    def put(self, key: str, events: list[Event], now: Optional[float] = None) -> None:
        """Store events under key.

        Raises:
            CacheError: If the entry cannot be written
        """
        entry = CacheEntry(stored_at=time.time() if now is None else now, events=events)
        try:
            self._path(key).write_text(entry.model_dump_json(), encoding="utf-8")
        except OSError as e:
            raise CacheError(f"cannot write cache entry: {e}") from e
