"""In-process TTL cache with LRU eviction.

Used by the dashboard to keep recently requested traders (fetched data
plus their memoizing scorer) for a short while.  The cache is bounded by
entry count: expired entries are dropped on every write and on read, and
the least recently used entry goes first once the cache is full.
"""

from __future__ import annotations

import time
from collections import OrderedDict
from dataclasses import dataclass
from threading import Lock
from typing import Any

from vantake.observability.logger import get_logger

log = get_logger(__name__)


@dataclass
class CacheEntry:
    value: Any
    created_at: float
    ttl_secs: float

    def is_expired(self, now: float) -> bool:
        return now - self.created_at > self.ttl_secs


class TTLCache:
    """Thread-safe TTL cache holding at most ``max_entries`` values."""

    def __init__(self, max_entries: int = 256, ttl_secs: float = 60.0):
        self._lock = Lock()
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._max_entries = max(1, max_entries)
        self._ttl_secs = ttl_secs
        self._hits = 0
        self._misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None on miss or expiry."""
        now = time.time()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry.is_expired(now):
                self._entries.pop(key, None)
                self._misses += 1
                return None
            self._entries.move_to_end(key)
            self._hits += 1
            return entry.value

    def put(self, key: str, value: Any, ttl_secs: float | None = None) -> None:
        now = time.time()
        with self._lock:
            self._entries.pop(key, None)
            self._evict_expired(now)
            while len(self._entries) >= self._max_entries:
                evicted, _ = self._entries.popitem(last=False)
                log.debug("cache.evicted", key=evicted[:10])
            self._entries[key] = CacheEntry(
                value=value,
                created_at=now,
                ttl_secs=self._ttl_secs if ttl_secs is None else ttl_secs,
            )

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _evict_expired(self, now: float) -> None:
        """Must be called with the lock held."""
        expired = [k for k, e in self._entries.items() if e.is_expired(now)]
        for k in expired:
            del self._entries[k]

    @property
    def stats(self) -> dict[str, Any]:
        with self._lock:
            total = self._hits + self._misses
            return {
                "entries": len(self._entries),
                "max_entries": self._max_entries,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(self._hits / total, 3) if total > 0 else 0.0,
            }
