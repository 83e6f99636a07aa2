from catalog_adaptor.infrastructure.cache.memory_cache import MemoryCache
from catalog_adaptor.infrastructure.cache.redis_cache import CircuitBreakerConfig, CircuitBreakerState, RedisCache
from catalog_adaptor.infrastructure.cache.tiered_cache import TieredCache, build_cache_key

__all__ = [
    "CircuitBreakerConfig",
    "CircuitBreakerState",
    "MemoryCache",
    "RedisCache",
    "TieredCache",
    "build_cache_key",
]
