import asyncio
import copy
import threading
import time
from typing import Any, Callable, Dict, Optional

from catalog_adaptor.core.logging import get_logger
from catalog_adaptor.adapters.interfaces.cache import CacheStrategy

logger = get_logger(__name__)


class CacheItem:
    """Class representing a cached item with expiration."""

    def __init__(self, value: Any, expires_at: Optional[float] = None):
        """
        Initialize a cache item.

        Args:
            value: Cached value
            expires_at: Expiration timestamp on the cache's clock
        """
        self.value = value
        self.expires_at = expires_at

    def is_expired(self, now: float) -> bool:
        if self.expires_at is None:
            return False
        return now >= self.expires_at


class MemoryCache(CacheStrategy):
    """
    Process-local cache tier.

    Entries expire lazily on read; when a running event loop is available a
    removal is also scheduled at expiry so idle keys do not accumulate.
    Values are deep-copied in and out so callers cannot mutate stored data.
    """

    def __init__(self, default_ttl: float = 300, clock: Optional[Callable[[], float]] = None):
        """
        Initialize the in-memory cache.

        Args:
            default_ttl: Default TTL in seconds
            clock: Time source in seconds (injectable for tests)
        """
        self.default_ttl = default_ttl
        self._clock = clock or time.monotonic
        self._cache: Dict[str, CacheItem] = {}
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0

        logger.debug("In-memory cache initialized")

    def _schedule_removal(self, key: str, item: CacheItem, ttl: float) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        loop.call_later(ttl, self._remove_if_same, key, item)

    def _remove_if_same(self, key: str, item: CacheItem) -> None:
        # A later set() for the same key replaces the item; leave that one alone
        with self._lock:
            if self._cache.get(key) is item:
                del self._cache[key]

    async def get(self, key: str) -> Optional[Any]:
        """
        Get item from cache.

        Returns:
            Cached value or None if not found or expired
        """
        with self._lock:
            item = self._cache.get(key)

            if item is None:
                self._misses += 1
                return None

            if item.is_expired(self._clock()):
                del self._cache[key]
                self._misses += 1
                logger.debug(f"Cache miss (expired) for key: {key}")
                return None

            self._hits += 1
            return copy.deepcopy(item.value)

    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> bool:
        effective_ttl = ttl if ttl is not None else self.default_ttl

        expires_at = None
        if effective_ttl > 0:
            expires_at = self._clock() + effective_ttl

        item = CacheItem(value=copy.deepcopy(value), expires_at=expires_at)

        with self._lock:
            self._cache[key] = item

        if expires_at is not None:
            self._schedule_removal(key, item, effective_ttl)

        logger.debug(f"Set cache key {key} with TTL {effective_ttl}s")
        return True

    async def delete(self, key: str) -> bool:
        with self._lock:
            if key in self._cache:
                del self._cache[key]
                return True
            return False

    async def exists(self, key: str) -> bool:
        with self._lock:
            item = self._cache.get(key)
            if item is None:
                return False
            if item.is_expired(self._clock()):
                del self._cache[key]
                return False
            return True

    async def clear(self) -> int:
        with self._lock:
            count = len(self._cache)
            self._cache.clear()
        logger.info(f"Flushed all {count} keys from memory cache")
        return count

    async def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "type": "memory",
                "size": len(self._cache),
                "hits": self._hits,
                "misses": self._misses,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
