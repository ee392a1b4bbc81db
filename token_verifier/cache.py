"""In-memory TTL cache for verification results.

Usage:
    cache = VerificationCache(ttl_seconds=3600)

    key = cache_key(address, chain_id, cross_chain)
    result = cache.get(key)
    if result is None:
        result = await compute()
        cache.put(key, result)

Storage is a ``cachetools.TTLCache``. An entry expires once its age reaches
the TTL. Expired entries are evicted by the next read or write, whichever
comes first, and the least recently used entry gives way when the cache is
full. Values are deep-copied on the way in and on the way out, so callers
never share mutable state with the cache or with each other.
"""

import copy
import threading
import time
from typing import Callable, Generic, Optional, TypeVar

from cachetools import TTLCache

V = TypeVar("V")


def cache_key(address: str, chain_id: int, cross_chain: bool) -> str:
    """``{address}:{chainId}:{crossChainFlag}`` with a lowercase address."""
    return f"{address.lower()}:{chain_id}:{str(bool(cross_chain)).lower()}"


class VerificationCache(Generic[V]):
    """Thread- and task-safe keyed store with a fixed time-to-live."""

    def __init__(
        self,
        ttl_seconds: float = 3600.0,
        maxsize: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.maxsize = maxsize
        self._clock = clock
        self._entries: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl_seconds, timer=clock)
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def _expire(self) -> None:
        # Caller holds the lock
        self._evictions += len(self._entries.expire(self._clock()))

    def get(self, key: str) -> Optional[V]:
        """Return a copy of the cached value, or None on a miss or an expired entry."""
        with self._lock:
            self._expire()
            value = self._entries.get(key)
            if value is None:
                self._misses += 1
                return None
            self._hits += 1
        return copy.deepcopy(value)

    def put(self, key: str, value: V) -> None:
        """Store a copy of ``value`` under ``key``, replacing any previous entry whole."""
        value = copy.deepcopy(value)
        with self._lock:
            self._expire()
            self._entries[key] = value

    def invalidate(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            self._expire()
            return len(self._entries)

    def stats(self) -> dict:
        with self._lock:
            self._expire()
            return {
                "size": len(self._entries),
                "maxSize": self.maxsize,
                "entries": list(self._entries),
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "ttlSeconds": self.ttl_seconds,
            }
