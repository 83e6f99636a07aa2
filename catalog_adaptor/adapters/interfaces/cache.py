from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Optional


class CacheStrategy(ABC):
    """
    Abstract base interface for one cache tier.

    Keys are strings produced by ``build_cache_key``; values are JSON-compatible
    structures. TTLs are given in seconds.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """
        Retrieves a cached item by key.

        Args:
            key: The key of the item to retrieve

        Returns:
            Optional[Any]: The cached value if found and not expired, None otherwise
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> bool:
        """
        Stores an item in the cache.

        Args:
            key: The key to store the value under
            value: The value to store
            ttl: Optional time-to-live in seconds

        Returns:
            bool: True if successfully cached
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Removes an item; True if it was present."""
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        pass

    @abstractmethod
    async def clear(self) -> int:
        """
        Clears every entry this tier owns.

        Returns:
            int: Number of entries removed
        """
        pass

    async def get_or_set(
        self,
        key: str,
        value_func: Callable[[], Awaitable[Any]],
        ttl: Optional[float] = None
    ) -> Any:
        """
        Retrieves an item from cache or sets it using the provided coroutine function.

        Empty values are returned but not stored.
        """
        value = await self.get(key)
        if value is None:
            value = await value_func()
            if value:
                await self.set(key, value, ttl)
        return value

    async def get_stats(self) -> Dict[str, Any]:
        return {}
