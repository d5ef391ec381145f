"""Thread-safe in-memory TTL cache."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from threading import Lock
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CacheEntry:
    data: Any
    created_at: float  # time.monotonic() seconds
    ttl: float  # seconds

    def is_live(self, now: float) -> bool:
        return now < self.created_at + self.ttl


class TTLCache:
    """Thread-safe key/value store where each entry expires after its own TTL.

    Writers: MarketQueries (generated historical series).
    Readers: MarketQueries; the periodic sweeper calls cleanup().

    Expiry is evaluated lazily on read. size() reflects physical storage, so
    expired entries still count until they are read or swept.
    """

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._lock = Lock()

    def set(self, key: str, value: Any, ttl_ms: float) -> None:
        """Store or overwrite a value. `ttl_ms` is in milliseconds."""
        with self._lock:
            self._entries[key] = CacheEntry(
                data=value,
                created_at=time.monotonic(),
                ttl=ttl_ms / 1000.0,
            )

    def get(self, key: str) -> Any | None:
        """Return the live value for `key`, or None if absent or expired.

        An expired entry is removed as a side effect.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if not entry.is_live(time.monotonic()):
                del self._entries[key]
                return None
            return entry.data

    def has(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and entry.is_live(time.monotonic())

    def delete(self, key: str) -> None:
        """Remove an entry. No-op if the key is absent."""
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def size(self) -> int:
        """Number of physically stored entries, live or not."""
        with self._lock:
            return len(self._entries)

    def cleanup(self) -> int:
        """Drop every entry that is no longer live. Returns how many were removed."""
        with self._lock:
            now = time.monotonic()
            expired = [key for key, entry in self._entries.items() if not entry.is_live(now)]
            for key in expired:
                del self._entries[key]
            return len(expired)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, key: str) -> bool:
        return self.has(key)


async def run_cache_sweeper(cache: TTLCache, interval: float) -> None:
    """Periodically reclaim memory held by expired cache entries.

    Runs until cancelled. A failed sweep is logged and retried next interval.
    """
    while True:
        await asyncio.sleep(interval)
        try:
            removed = cache.cleanup()
            if removed:
                logger.debug("Cache sweep removed %d expired entries", removed)
        except Exception:
            logger.exception("Cache sweep failed")
