"""Bounded, time-expiring cache of parsed feeds."""

import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Any

from .config import CacheConfig
from .models import CacheEntry


class FeedCache:
    """Thread-safe LRU cache with a fixed time-to-live per entry.

    Entries expire ``ttl_seconds`` after insertion regardless of how often
    they are read. Reads refresh recency for eviction purposes only. The
    capacity bound holds after every ``put``.
    """

    def __init__(
        self,
        config: CacheConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the feed cache.

        Args:
            config: Capacity and TTL settings (defaults: 512 entries, 19 minutes)
            clock: Monotonic time source in seconds, injectable for tests
        """
        self._config = config or CacheConfig()
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    @property
    def max_size(self) -> int:
        return self._config.max_size

    @property
    def ttl_seconds(self) -> float:
        return self._config.ttl_seconds

    def get(self, key: str) -> Any | None:
        """Get a value from the cache.

        Args:
            key: Feed URL to look up

        Returns:
            The cached value if present and fresh, None otherwise
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            if self._is_expired(entry, self._clock()):
                del self._entries[key]
                self._misses += 1
                return None

            self._entries.move_to_end(key)
            self._hits += 1
            return entry.value

    def put(self, key: str, value: Any) -> None:
        """Insert or overwrite a value, evicting entries to stay in bounds.

        Args:
            key: Feed URL
            value: Value to cache
        """
        with self._lock:
            now = self._clock()
            self._entries.pop(key, None)

            if len(self._entries) >= self._config.max_size:
                self._purge_expired(now)
            while len(self._entries) >= self._config.max_size:
                self._entries.popitem(last=False)
                self._evictions += 1

            self._entries[key] = CacheEntry(value=value, inserted_at=now)

    def stats(self) -> dict[str, int]:
        """Return hit, miss and eviction counters plus the current size."""
        with self._lock:
            return {
                "size": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.inserted_at >= self._config.ttl_seconds

    def _purge_expired(self, now: float) -> None:
        expired = [
            key for key, entry in self._entries.items() if self._is_expired(entry, now)
        ]
        for key in expired:
            del self._entries[key]

    def __contains__(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not self._is_expired(entry, self._clock())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
