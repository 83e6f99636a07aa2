import json
import math
import time
from enum import Enum
from typing import Any, Callable, Dict, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError
from pydantic import BaseModel

from catalog_adaptor.core.exceptions import CacheError
from catalog_adaptor.core.logging import get_logger
from catalog_adaptor.adapters.interfaces.cache import CacheStrategy

logger = get_logger(__name__)


class CircuitBreakerState(str, Enum):
    """State enum for the circuit breaker pattern."""
    CLOSED = "closed"  # Normal operation
    OPEN = "open"      # Preventing calls to Redis
    HALF_OPEN = "half_open"  # Testing if Redis is back


class CircuitBreakerConfig(BaseModel):
    """Configuration for the Redis circuit breaker."""
    enabled: bool = True
    failure_threshold: int = 3  # Number of failures before opening
    reset_timeout: float = 30   # Seconds before trying again


class RedisCache(CacheStrategy):
    """
    Shared cache tier backed by Redis.

    Values are stored as JSON under ``{prefix}:{key}`` with a whole-second
    TTL. Every command goes through a circuit breaker: after
    ``failure_threshold`` consecutive failures the tier refuses calls for
    ``reset_timeout`` seconds, then lets one probe through. All failures
    surface as ``CacheError``; deciding what to do about them is the
    caller's job.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        prefix: str = "catalog",
        default_ttl: float = 300,
        connect_timeout: float = 2.0,
        socket_timeout: Optional[float] = 2.0,
        breaker: Optional[CircuitBreakerConfig] = None,
        client: Optional[Any] = None,
        clock: Optional[Callable[[], float]] = None
    ):
        """
        Initialize the Redis cache.

        Args:
            url: Redis connection URL; ignored when ``client`` is given
            prefix: Key prefix for namespacing
            default_ttl: Default TTL in seconds
            connect_timeout: Socket connect timeout in seconds
            socket_timeout: Per-command read timeout in seconds
            breaker: Circuit breaker settings
            client: Pre-built asyncio Redis client
            clock: Time source for the breaker (injectable for tests)
        """
        self.url = url
        self.prefix = prefix
        self.default_ttl = default_ttl
        self.connect_timeout = connect_timeout
        self.socket_timeout = socket_timeout
        self.breaker = breaker or CircuitBreakerConfig()
        self._clock = clock or time.monotonic
        self.client = client

        self.state = CircuitBreakerState.CLOSED
        self.failure_count = 0
        self.last_failure_time: Optional[float] = None

    async def connect(self) -> None:
        """
        Create the client and verify the server answers.

        Raises:
            CacheError: If Redis cannot be reached
        """
        if self.client is None:
            if not self.url:
                raise CacheError("No Redis URL configured")
            self.client = aioredis.from_url(
                self.url,
                socket_connect_timeout=self.connect_timeout,
                socket_timeout=self.socket_timeout,
                decode_responses=True
            )
        await self._execute("ping")
        logger.info("Successfully connected to Redis")

    async def disconnect(self) -> None:
        if self.client is None:
            return
        try:
            await self.client.aclose()
        except RedisError as e:
            logger.warning(f"Error closing Redis connection: {str(e)}")
        finally:
            self.client = None

    def _update_circuit_breaker(self, success: bool) -> None:
        """Update circuit breaker state based on operation success/failure."""
        if not self.breaker.enabled:
            return

        if success:
            if self.state in (CircuitBreakerState.HALF_OPEN, CircuitBreakerState.OPEN):
                logger.info("Redis circuit breaker reset to CLOSED")
                self.state = CircuitBreakerState.CLOSED
            self.failure_count = 0
            return

        now = self._clock()
        if self.state == CircuitBreakerState.CLOSED:
            self.failure_count += 1
            if self.failure_count >= self.breaker.failure_threshold:
                logger.warning(f"Redis circuit breaker OPENED after {self.failure_count} failures")
                self.state = CircuitBreakerState.OPEN
                self.last_failure_time = now
        elif self.state == CircuitBreakerState.OPEN:
            self.last_failure_time = now
        else:
            logger.warning("Redis circuit breaker reopened after test failure")
            self.state = CircuitBreakerState.OPEN
            self.last_failure_time = now

    def _check_circuit_breaker(self) -> bool:
        """
        Check if the circuit breaker allows Redis operations.

        Returns:
            bool: True if operations are allowed, False otherwise
        """
        if not self.breaker.enabled or self.state == CircuitBreakerState.CLOSED:
            return True

        if self.state == CircuitBreakerState.OPEN:
            if self._clock() - (self.last_failure_time or 0) > self.breaker.reset_timeout:
                logger.info("Redis circuit breaker entering HALF-OPEN state for testing")
                self.state = CircuitBreakerState.HALF_OPEN
                return True
            return False

        return True

    async def _execute(self, command: str, *args, **kwargs) -> Any:
        """
        Execute a Redis command with circuit breaker protection.

        ``command`` is looked up on the client only after the connection
        check, so a missing client surfaces as ``CacheError`` too.

        Raises:
            CacheError: If the circuit is open, the client is missing or the command fails
        """
        if self.client is None:
            raise CacheError("Redis client is not connected")

        if not self._check_circuit_breaker():
            raise CacheError("Redis circuit breaker is open due to previous failures")

        try:
            result = await getattr(self.client, command)(*args, **kwargs)
        except (RedisError, OSError) as e:
            self._update_circuit_breaker(success=False)
            raise CacheError(f"Redis operation failed: {str(e)}") from e
        self._update_circuit_breaker(success=True)
        return result

    def _prepare_key(self, key: str) -> str:
        return f"{self.prefix}:{key}" if self.prefix else key

    async def get(self, key: str) -> Optional[Any]:
        raw = await self._execute("get", self._prepare_key(key))
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            raise CacheError(f"Failed to deserialize cached value: {str(e)}") from e

    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> bool:
        effective_ttl = ttl if ttl is not None else self.default_ttl
        try:
            payload = json.dumps(value, default=str)
        except (TypeError, ValueError) as e:
            raise CacheError(f"Failed to serialize value: {str(e)}") from e

        full_key = self._prepare_key(key)
        if effective_ttl and effective_ttl > 0:
            result = await self._execute(
                "setex", full_key, max(1, math.ceil(effective_ttl)), payload
            )
        else:
            result = await self._execute("set", full_key, payload)
        return bool(result)

    async def delete(self, key: str) -> bool:
        return bool(await self._execute("delete", self._prepare_key(key)))

    async def exists(self, key: str) -> bool:
        return bool(await self._execute("exists", self._prepare_key(key)))

    async def clear(self) -> int:
        if self.client is None:
            raise CacheError("Redis client is not connected")
        try:
            keys = [k async for k in self.client.scan_iter(match=f"{self.prefix}:*")]
        except (RedisError, OSError) as e:
            self._update_circuit_breaker(success=False)
            raise CacheError(f"Redis scan failed: {str(e)}") from e
        if not keys:
            return 0
        count = await self._execute("delete", *keys)
        logger.info(f"Flushed {count} keys with prefix {self.prefix}")
        return count

    async def health_check(self) -> Dict[str, Any]:
        """
        Check the health of the Redis cache.

        Returns:
            Dict[str, Any]: Health status information
        """
        try:
            start_time = time.time()
            await self._execute("ping")
            response_time = time.time() - start_time
            return {
                "status": "healthy",
                "circuit_breaker_state": self.state.value,
                "response_time_ms": round(response_time * 1000, 2),
            }
        except CacheError as e:
            return {
                "status": "unhealthy",
                "circuit_breaker_state": self.state.value,
                "response_time_ms": None,
                "error": e.detail,
            }

    async def get_stats(self) -> Dict[str, Any]:
        return {
            "type": "redis",
            "connected": self.client is not None,
            "circuit_breaker_state": self.state.value,
            "failure_count": self.failure_count,
        }
