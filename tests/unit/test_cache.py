import asyncio
import json
import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from catalog_adaptor.core.exceptions import CacheError
from catalog_adaptor.infrastructure.cache import (
    CircuitBreakerConfig,
    CircuitBreakerState,
    MemoryCache,
    RedisCache,
    TieredCache,
    build_cache_key,
)


def _unreachable_shared() -> AsyncMock:
    shared = AsyncMock()
    shared.get.side_effect = CacheError("connection refused")
    shared.set.side_effect = CacheError("connection refused")
    shared.delete.side_effect = CacheError("connection refused")
    shared.exists.side_effect = CacheError("connection refused")
    shared.clear.side_effect = CacheError("connection refused")
    shared.get_stats.return_value = {"type": "redis"}
    return shared


# -- keys ------------------------------------------------------------------

def test_cache_key_ignores_parameter_order():
    first = build_cache_key("dummyjson:search", {"query": "phone", "limit": 20, "offset": 0})
    second = build_cache_key("dummyjson:search", {"offset": 0, "limit": 20, "query": "phone"})
    assert first == second
    assert first.startswith("dummyjson:search:")


def test_cache_key_differs_by_endpoint_and_value():
    base = build_cache_key("dummyjson:search", {"query": "phone"})
    assert base != build_cache_key("fakestore:search", {"query": "phone"})
    assert base != build_cache_key("dummyjson:search", {"query": "phones"})


def test_cache_key_drops_none_params():
    assert build_cache_key("ebay:category", {"category": "x", "region": None}) == \
        build_cache_key("ebay:category", {"category": "x"})


# -- local tier --------------------------------------------------------------

@pytest.mark.asyncio
async def test_memory_cache_roundtrip_and_copy(clock):
    cache = MemoryCache(default_ttl=60, clock=clock)
    value = {"items": [1, 2]}
    await cache.set("k", value)
    value["items"].append(3)

    cached = await cache.get("k")
    assert cached == {"items": [1, 2]}
    cached["items"].clear()
    assert await cache.get("k") == {"items": [1, 2]}


@pytest.mark.asyncio
async def test_memory_cache_expires_on_read(clock):
    cache = MemoryCache(default_ttl=60, clock=clock)
    await cache.set("k", "v", ttl=10)

    clock.advance(9.9)
    assert await cache.exists("k") is True
    clock.advance(0.1)
    assert await cache.get("k") is None
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_memory_cache_schedules_removal():
    cache = MemoryCache(default_ttl=60)
    await cache.set("k", "v", ttl=0.01)
    await asyncio.sleep(0.05)
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_memory_cache_stats_and_clear():
    cache = MemoryCache()
    await cache.set("a", 1)
    await cache.get("a")
    await cache.get("missing")

    stats = await cache.get_stats()
    assert stats["hits"] == 1
    assert stats["misses"] == 1
    assert await cache.clear() == 1
    assert await cache.delete("a") is False


@pytest.mark.asyncio
async def test_get_or_set_skips_empty_results():
    cache = MemoryCache()
    loader = AsyncMock(return_value=[])

    assert await cache.get_or_set("k", loader) == []
    assert await cache.get_or_set("k", loader) == []
    assert loader.await_count == 2


# -- tiered --------------------------------------------------------------------

@pytest.mark.asyncio
async def test_tiered_prefers_shared_tier():
    shared = AsyncMock()
    shared.get.return_value = {"from": "shared"}
    local = MemoryCache()
    await local.set("k", {"from": "local"})
    cache = TieredCache(local=local, shared=shared)

    assert await cache.get("k") == {"from": "shared"}


@pytest.mark.asyncio
async def test_tiered_falls_back_to_local_on_shared_miss():
    shared = AsyncMock()
    shared.get.return_value = None
    cache = TieredCache(local=MemoryCache(), shared=shared)
    await cache.set("k", [1])

    shared.set.assert_awaited_once()
    assert await cache.get("k") == [1]


@pytest.mark.asyncio
async def test_unreachable_shared_tier_degrades_to_local(caplog):
    cache = TieredCache(local=MemoryCache(), shared=_unreachable_shared())

    with caplog.at_level(logging.WARNING, logger="catalog_adaptor.infrastructure.cache.tiered_cache"):
        assert await cache.set("k", {"v": 1}, ttl=30) is True
        assert await cache.get("k") == {"v": 1}
        assert await cache.exists("k") is True
        assert await cache.delete("k") is True
        assert await cache.get("k") is None

    assert cache.shared_available is False
    outage_logs = [r for r in caplog.records if "Shared cache tier unavailable" in r.getMessage()]
    assert len(outage_logs) == 1


@pytest.mark.asyncio
async def test_shared_tier_recovery_is_detected():
    shared = _unreachable_shared()
    cache = TieredCache(local=MemoryCache(), shared=shared)
    await cache.get("k")
    assert cache.shared_available is False

    shared.get.side_effect = None
    shared.get.return_value = None
    await cache.get("k")
    assert cache.shared_available is True


@pytest.mark.asyncio
async def test_tiered_stats_report_shared_state():
    cache = TieredCache(local=MemoryCache(), shared=_unreachable_shared())
    await cache.get("k")

    stats = await cache.get_stats()
    assert stats["shared_configured"] is True
    assert stats["shared_available"] is False
    assert stats["shared_errors"] == 1


# -- redis tier ----------------------------------------------------------------

def _redis_client() -> MagicMock:
    client = MagicMock()
    client.get = AsyncMock()
    client.setex = AsyncMock(return_value=True)
    client.set = AsyncMock(return_value=True)
    client.ping = AsyncMock(return_value=True)
    client.aclose = AsyncMock()
    return client


@pytest.mark.asyncio
async def test_redis_cache_prefixes_keys_and_serializes_json():
    client = _redis_client()
    cache = RedisCache(prefix="catalog", client=client)

    await cache.set("dummyjson:search:abc", {"a": 1}, ttl=2.5)
    client.setex.assert_awaited_once_with("catalog:dummyjson:search:abc", 3, json.dumps({"a": 1}))

    client.get.return_value = json.dumps({"a": 1})
    assert await cache.get("dummyjson:search:abc") == {"a": 1}


@pytest.mark.asyncio
async def test_redis_breaker_opens_and_half_opens(clock):
    client = _redis_client()
    client.get.side_effect = RedisConnectionError("down")
    cache = RedisCache(
        client=client,
        breaker=CircuitBreakerConfig(failure_threshold=2, reset_timeout=30),
        clock=clock
    )

    for _ in range(2):
        with pytest.raises(CacheError):
            await cache.get("k")
    assert cache.state == CircuitBreakerState.OPEN

    client.get.reset_mock()
    with pytest.raises(CacheError):
        await cache.get("k")
    client.get.assert_not_awaited()

    clock.advance(31)
    client.get.side_effect = None
    client.get.return_value = None
    assert await cache.get("k") is None
    assert cache.state == CircuitBreakerState.CLOSED


@pytest.mark.asyncio
async def test_redis_without_client_raises_cache_error():
    cache = RedisCache(url=None)
    with pytest.raises(CacheError):
        await cache.connect()
    with pytest.raises(CacheError):
        await cache.get("k")
    with pytest.raises(CacheError):
        await cache.set("k", [1])
    with pytest.raises(CacheError):
        await cache.delete("k")
    with pytest.raises(CacheError):
        await cache.exists("k")


@pytest.mark.asyncio
async def test_tiered_over_unconnected_redis_uses_local_tier():
    redis = RedisCache(url="redis://127.0.0.1:1")
    cache = TieredCache(local=MemoryCache(), shared=redis)

    assert await cache.set("k", [1]) is True
    assert await cache.get("k") == [1]
    assert await cache.exists("k") is True
    assert await cache.delete("k") is True
    assert cache.shared_available is False


@pytest.mark.asyncio
async def test_redis_client_gets_a_read_timeout():
    client = _redis_client()
    with patch("catalog_adaptor.infrastructure.cache.redis_cache.aioredis.from_url", return_value=client) as from_url:
        cache = RedisCache(url="redis://cache:6379/0", connect_timeout=1.5, socket_timeout=0.5)
        await cache.connect()

    assert from_url.call_args.kwargs["socket_timeout"] == 0.5
    assert from_url.call_args.kwargs["socket_connect_timeout"] == 1.5


@pytest.mark.asyncio
async def test_redis_read_timeout_surfaces_as_cache_error():
    client = _redis_client()
    client.get.side_effect = RedisTimeoutError("Timeout reading from socket")
    cache = TieredCache(local=MemoryCache(), shared=RedisCache(client=client))
    await cache.local.set("k", {"v": 1})

    with pytest.raises(CacheError):
        await cache.shared.get("k")
    assert await cache.get("k") == {"v": 1}
