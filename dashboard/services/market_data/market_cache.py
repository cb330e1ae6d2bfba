import logging
import time
from typing import Any, Dict, Generic, Hashable, Optional, TypeVar

from .market_models import CacheEntry, Clock

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")


class TimedCache(Generic[K, T]):
    """Process-lifetime keyed cache whose entries can be served stale.

    Entries are never evicted on read: a fresh read honours ``duration``,
    while ``get_any`` returns whatever was last stored so callers can fall back
    to stale data when a refresh is impossible.
    """

    def __init__(self, duration: float, clock: Clock = time.time, name: str = "cache"):
        self.duration = duration
        self.clock = clock
        self.name = name
        self._cache: Dict[K, CacheEntry[T]] = {}
        self._hits = 0
        self._misses = 0

    def _is_cache_valid(self, entry: CacheEntry[T], duration: Optional[float] = None) -> bool:
        return entry.is_fresh(self.clock(), self.duration if duration is None else duration)

    def get_fresh(self, key: K, duration: Optional[float] = None) -> Optional[CacheEntry[T]]:
        """Entry for ``key`` if younger than ``duration`` (default: the cache's own)."""
        entry = self._cache.get(key)
        if entry is not None and self._is_cache_valid(entry, duration):
            self._hits += 1
            logger.debug(f"[{self.name}] cache hit for {key}")
            return entry
        self._misses += 1
        return None

    def get_any(self, key: K) -> Optional[CacheEntry[T]]:
        """Entry for ``key`` regardless of age."""
        return self._cache.get(key)

    def set(self, key: K, data: T) -> CacheEntry[T]:
        entry = CacheEntry(data=data, timestamp=self.clock())
        self._cache[key] = entry
        return entry

    def clear(self) -> int:
        cleared = len(self._cache)
        self._cache.clear()
        if cleared:
            logger.info(f"[{self.name}] cleared {cleared} entries")
        return cleared

    def clear_expired_cache(self) -> int:
        expired = [key for key, entry in self._cache.items() if not self._is_cache_valid(entry)]
        for key in expired:
            del self._cache[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, key: object) -> bool:
        return key in self._cache

    def get_cache_stats(self) -> Dict[str, Any]:
        now = self.clock()
        fresh = sum(1 for entry in self._cache.values() if entry.is_fresh(now, self.duration))
        return {
            "name": self.name,
            "entries": len(self._cache),
            "fresh": fresh,
            "stale": len(self._cache) - fresh,
            "hits": self._hits,
            "misses": self._misses,
            "duration": self.duration,
        }
