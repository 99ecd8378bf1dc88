"""
AnalysisCache: short-lived in-memory cache for analysis results.

Entries are keyed by (symbol, series length, latest bar date) and expire
after a fixed time-to-live. Concurrent callers asking for the same key
compute it once; distinct keys do not block each other. Expired entries
are purged whenever a value is stored, and a key's lock is released once
no caller is waiting on it, so a long-running service holds at most the
entries stored within one TTL.
"""
from __future__ import annotations

import threading
import time
from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple

import pandas as pd

from ..shared.defaults import CACHE_TTL_SECONDS
from ..shared.errors import InvalidConfigurationError

CacheKey = Tuple[str, int, pd.Timestamp]


def make_cache_key(symbol: str, series_length: int, latest_date) -> CacheKey:
    """Key for one analysis: a new bar or a longer window yields a new key."""
    return (symbol, int(series_length), pd.Timestamp(latest_date))


class AnalysisCache:
    """
    TTL cache with hit/miss statistics.

    Args:
        ttl_seconds: Entry lifetime (default: 300)
        clock: Monotonic time source, injectable for tests
    """

    def __init__(self, ttl_seconds: float = CACHE_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        if ttl_seconds <= 0:
            raise InvalidConfigurationError(f"ttl_seconds must be > 0, got {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[float, Any]] = {}
        # key -> [lock, number of callers holding or waiting on it]
        self._key_locks: Dict[Hashable, List[Any]] = {}
        self._lock = threading.Lock()

        # Track stats
        self.hits = 0
        self.misses = 0

    def _lookup(self, key: Hashable) -> Tuple[bool, Any]:
        """(found, value); drops the entry if it has expired. Caller holds self._lock."""
        entry = self._entries.get(key)
        if entry is None:
            return False, None
        stored_at, value = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            del self._entries[key]
            return False, None
        return True, value

    def _purge_expired(self) -> int:
        """Drop every expired entry. Caller holds self._lock."""
        now = self._clock()
        expired = [k for k, (stored_at, _) in self._entries.items() if now - stored_at >= self.ttl_seconds]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def get(self, key: Hashable) -> Optional[Any]:
        """
        Retrieve a cached value.

        Returns:
            Cached value or None if missing / expired
        """
        with self._lock:
            found, value = self._lookup(key)
            if found:
                self.hits += 1
                return value
            self.misses += 1
            return None

    def put(self, key: Hashable, value: Any) -> None:
        """Store (or overwrite) a value; its lifetime starts now."""
        with self._lock:
            self._purge_expired()
            self._entries[key] = (self._clock(), value)

    def get_or_compute(self, key: Hashable, compute: Callable[[], Any]) -> Any:
        """
        Return the cached value, computing and storing it on a miss.

        Holds a per-key lock while computing so concurrent callers for the
        same key wait for the first computation. Exceptions from ``compute``
        propagate and nothing is cached.
        """
        with self._lock:
            slot = self._key_locks.setdefault(key, [threading.Lock(), 0])
            slot[1] += 1
        try:
            with slot[0]:
                with self._lock:
                    found, value = self._lookup(key)
                    if found:
                        self.hits += 1
                        return value
                    self.misses += 1
                value = compute()
                self.put(key, value)
                return value
        finally:
            with self._lock:
                slot[1] -= 1
                if slot[1] == 0:
                    del self._key_locks[key]

    def delete(self, key: Hashable) -> bool:
        """
        Delete one entry.

        Returns:
            True if the entry existed
        """
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        """Drop every entry and reset statistics."""
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def keys(self) -> List[Hashable]:
        """Keys of live (unexpired) entries."""
        with self._lock:
            now = self._clock()
            return [k for k, (stored_at, _) in self._entries.items() if now - stored_at < self.ttl_seconds]

    def __len__(self) -> int:
        return len(self.keys())

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        keys = self.keys()
        total = self.hits + self.misses
        hit_rate = (self.hits / total * 100) if total > 0 else 0

        return {
            "size": len(keys),
            "keys": keys,
            "hits": self.hits,
            "misses": self.misses,
            "total_requests": total,
            "hit_rate_pct": hit_rate,
            "ttl_seconds": self.ttl_seconds,
        }

    def __repr__(self) -> str:
        stats = self.get_stats()
        return (
            f"AnalysisCache(size={stats['size']}, ttl={self.ttl_seconds}s, "
            f"hits={stats['hits']}, misses={stats['misses']}, "
            f"hit_rate={stats['hit_rate_pct']:.1f}%)"
        )
