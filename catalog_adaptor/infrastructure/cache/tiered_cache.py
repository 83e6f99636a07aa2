"""
Two-tier cache: a shared Redis tier in front of a process-local tier.

The tiers fail independently. When the shared tier is unavailable every
operation degrades to local-only caching and the outage is logged once,
not once per call.
"""
import hashlib
import json
import threading
from typing import Any, Dict, Mapping, Optional

from catalog_adaptor.adapters.interfaces.cache import CacheStrategy
from catalog_adaptor.core.exceptions import CacheError
from catalog_adaptor.core.logging import get_logger
from catalog_adaptor.infrastructure.cache.memory_cache import MemoryCache

logger = get_logger(__name__)


def build_cache_key(endpoint: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """
    Derive a cache key from an endpoint and its query parameters.

    Parameters are serialized with sorted keys, so their order never
    affects the key. ``None`` values are dropped.

    Args:
        endpoint: Logical endpoint, e.g. ``"dummyjson:search"``
        params: Query parameters

    Returns:
        str: ``{endpoint}:{sha256 of the canonical parameter string}``
    """
    cleaned = {str(k): v for k, v in (params or {}).items() if v is not None}
    canonical = json.dumps(cleaned, sort_keys=True, separators=(",", ":"), default=str)
    digest = hashlib.sha256(f"{endpoint}|{canonical}".encode("utf-8")).hexdigest()
    return f"{endpoint}:{digest}"


class TieredCache(CacheStrategy):
    """Shared tier first, local tier always."""

    def __init__(
        self,
        local: Optional[MemoryCache] = None,
        shared: Optional[CacheStrategy] = None,
        default_ttl: float = 300
    ):
        """
        Initialize the tiered cache.

        Args:
            local: Process-local tier; created if not given
            shared: Optional network tier (usually ``RedisCache``)
            default_ttl: TTL in seconds when callers do not pass one
        """
        self.local = local or MemoryCache(default_ttl=default_ttl)
        self.shared = shared
        self.default_ttl = default_ttl
        self._shared_down = False
        self._state_lock = threading.Lock()
        self._shared_errors = 0

    @property
    def shared_available(self) -> bool:
        return self.shared is not None and not self._shared_down

    def _mark_shared_failure(self, operation: str, error: Exception) -> None:
        with self._state_lock:
            self._shared_errors += 1
            first = not self._shared_down
            self._shared_down = True
        if first:
            logger.warning(
                f"Shared cache tier unavailable, using local cache only: {str(error)}",
                extra={"data": {"operation": operation}}
            )

    def _mark_shared_success(self) -> None:
        with self._state_lock:
            recovered = self._shared_down
            self._shared_down = False
        if recovered:
            logger.info("Shared cache tier reachable again")

    async def get(self, key: str) -> Optional[Any]:
        if self.shared is not None:
            try:
                value = await self.shared.get(key)
                self._mark_shared_success()
                if value is not None:
                    return value
            except CacheError as e:
                self._mark_shared_failure("get", e)
        return await self.local.get(key)

    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> bool:
        effective_ttl = ttl if ttl is not None else self.default_ttl
        if self.shared is not None:
            try:
                await self.shared.set(key, value, effective_ttl)
                self._mark_shared_success()
            except CacheError as e:
                self._mark_shared_failure("set", e)
        return await self.local.set(key, value, effective_ttl)

    async def delete(self, key: str) -> bool:
        removed = False
        if self.shared is not None:
            try:
                removed = await self.shared.delete(key)
                self._mark_shared_success()
            except CacheError as e:
                self._mark_shared_failure("delete", e)
        return await self.local.delete(key) or removed

    async def exists(self, key: str) -> bool:
        if self.shared is not None:
            try:
                found = await self.shared.exists(key)
                self._mark_shared_success()
                if found:
                    return True
            except CacheError as e:
                self._mark_shared_failure("exists", e)
        return await self.local.exists(key)

    async def clear(self) -> int:
        count = 0
        if self.shared is not None:
            try:
                count += await self.shared.clear()
                self._mark_shared_success()
            except CacheError as e:
                self._mark_shared_failure("clear", e)
        return count + await self.local.clear()

    async def get_stats(self) -> Dict[str, Any]:
        stats: Dict[str, Any] = {
            "local": await self.local.get_stats(),
            "shared_configured": self.shared is not None,
            "shared_available": self.shared_available,
            "shared_errors": self._shared_errors,
        }
        if self.shared is not None:
            stats["shared"] = await self.shared.get_stats()
        return stats
