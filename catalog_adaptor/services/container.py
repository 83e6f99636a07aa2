import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from catalog_adaptor.adapters.base import BaseSourceAdapter
from catalog_adaptor.adapters.factory import AdaptorFactory
from catalog_adaptor.adapters.interfaces.document_store import DocumentStore
from catalog_adaptor.adapters.registry import AdaptorRegistry
from catalog_adaptor.core.config import Settings, get_settings
from catalog_adaptor.core.exceptions import CacheError
from catalog_adaptor.core.logging import get_logger
from catalog_adaptor.infrastructure.cache import CircuitBreakerConfig, MemoryCache, RedisCache, TieredCache
from catalog_adaptor.infrastructure.error.handler import ErrorHandler
from catalog_adaptor.services.catalog_service import CatalogService
from catalog_adaptor.services.feature_flags import FeatureFlags
from catalog_adaptor.services.priority_resolver import PriorityResolver

logger = get_logger(__name__)


class ServiceContainer:
    """
    Owns every long-lived collaborator of the service.

    Nothing is built at import time. ``connect()`` opens the shared HTTP
    client, attempts the Redis connection and wires the adapters, resolver
    and catalog service; ``disconnect()`` releases the connections.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        shared_cache: Optional[RedisCache] = None,
        store: Optional[DocumentStore] = None,
        feature_flags: Optional[FeatureFlags] = None,
        registry: Optional[AdaptorRegistry] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.settings = settings or get_settings()
        self.store = store
        self.feature_flags = feature_flags or FeatureFlags()
        self.registry = registry or AdaptorRegistry()
        self.error_handler = ErrorHandler(get_logger("catalog_adaptor.failures"))
        self._sleep = sleep

        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._shared_cache = shared_cache

        self.cache: Optional[TieredCache] = None
        self.adapters: Dict[str, BaseSourceAdapter] = {}
        self.resolver: Optional[PriorityResolver] = None
        self._catalog: Optional[CatalogService] = None

    @property
    def connected(self) -> bool:
        return self._catalog is not None

    @property
    def catalog(self) -> CatalogService:
        if self._catalog is None:
            raise RuntimeError("ServiceContainer is not connected")
        return self._catalog

    def _build_shared_cache(self) -> Optional[RedisCache]:
        if self._shared_cache is not None:
            return self._shared_cache
        if not self.settings.REDIS_URL:
            logger.info("REDIS_URL not set, caching locally only")
            return None
        return RedisCache(
            url=self.settings.REDIS_URL,
            prefix=self.settings.REDIS_PREFIX,
            default_ttl=self.settings.CACHE_TTL_MS / 1000.0,
            connect_timeout=self.settings.REDIS_CONNECT_TIMEOUT,
            socket_timeout=self.settings.REDIS_SOCKET_TIMEOUT,
            breaker=CircuitBreakerConfig(
                failure_threshold=self.settings.CACHE_FAILURE_THRESHOLD,
                reset_timeout=self.settings.CACHE_RESET_TIMEOUT,
            ),
        )

    async def connect(self) -> None:
        if self.connected:
            return

        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                follow_redirects=True,
                timeout=httpx.Timeout(self.settings.HTTP_TIMEOUT)
            )

        shared = self._build_shared_cache()
        if shared is not None:
            try:
                await shared.connect()
            except CacheError as e:
                # The circuit breaker probes again once its reset timeout passes
                logger.warning(f"Redis unavailable, continuing with local cache: {str(e)}")
            self._shared_cache = shared

        default_ttl = self.settings.CACHE_TTL_MS / 1000.0
        self.cache = TieredCache(
            local=MemoryCache(default_ttl=default_ttl),
            shared=shared,
            default_ttl=default_ttl
        )

        factory = AdaptorFactory(
            self.settings,
            cache=self.cache,
            error_handler=self.error_handler,
            http_client=self._http_client,
            registry=self.registry,
            sleep=self._sleep
        )
        self.adapters = factory.create_all()
        self.resolver = PriorityResolver(
            feature_flags=self.feature_flags,
            fallback=self.settings.UNIVERSAL_FALLBACK
        )
        self._catalog = CatalogService(
            self.adapters,
            self.resolver,
            store=self.store,
            default_region=self.settings.DEFAULT_REGION
        )
        logger.info(
            f"Service container connected with {len(self.adapters)} adapters",
            extra={"data": {"adapters": list(self.adapters)}}
        )

    async def disconnect(self) -> None:
        if self._shared_cache is not None:
            await self._shared_cache.disconnect()
        if self._http_client is not None and self._owns_http_client:
            await self._http_client.aclose()
            self._http_client = None
        self._catalog = None
        self.adapters = {}
        logger.info("Service container disconnected")

    async def health(self) -> Dict[str, Any]:
        """Detailed health: cache tiers, adapters and failure counters."""
        cache_stats = await self.cache.get_stats() if self.cache is not None else {}
        if self.cache is not None and self.cache.shared is not None:
            cache_stats["shared_health"] = await self.cache.shared.health_check()
        adapters = {}
        for name, adapter in self.adapters.items():
            adapter_health = await adapter.health()
            adapter_health["enabled"] = self.feature_flags.is_enabled(name)
            adapters[name] = adapter_health
        return {
            "connected": self.connected,
            "cache": cache_stats,
            "adapters": adapters,
            "errors": self.error_handler.get_stats(),
        }
