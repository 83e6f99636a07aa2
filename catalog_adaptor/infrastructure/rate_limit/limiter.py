"""Fixed-window request limiter, one instance per vendor adapter."""
import math
import threading
import time
from typing import Callable, Optional

from pydantic import BaseModel

from catalog_adaptor.core.exceptions import RateLimited
from catalog_adaptor.core.logging import get_logger
from catalog_adaptor.domain.models.descriptor import RateLimitConfig

logger = get_logger(__name__)


class RateLimitWindow(BaseModel):
    """Point-in-time view of a limiter's window."""
    window_start: float
    count: int
    limit: int
    period_ms: int


class RateLimiter:
    """
    Fixed-window counter guarding one vendor's quota.

    ``count`` resets to 0 exactly when more than ``period_ms`` has passed
    since ``window_start``; otherwise it only grows. All state changes
    happen under one lock so concurrent increments are never lost.
    """

    def __init__(
        self,
        name: str,
        config: RateLimitConfig,
        clock: Optional[Callable[[], float]] = None
    ):
        """
        Initialize the limiter.

        Args:
            name: Adapter name, used in errors and logs
            config: Requests allowed per period
            clock: Monotonic time source in seconds (injectable for tests)
        """
        self.name = name
        self.limit = config.requests
        self.period_ms = config.period_ms
        self._clock = clock or time.monotonic
        self._lock = threading.Lock()
        self._window_start = self._now_ms()
        self._count = 0

    def _now_ms(self) -> float:
        return self._clock() * 1000.0

    def _roll_window(self, now_ms: float) -> None:
        # Caller holds the lock
        if now_ms - self._window_start > self.period_ms:
            self._window_start = now_ms
            self._count = 0

    def can_proceed(self) -> bool:
        """Reset the window if it has elapsed, then report whether quota remains."""
        with self._lock:
            self._roll_window(self._now_ms())
            return self._count < self.limit

    def record_attempt(self) -> None:
        """Count one outbound attempt against the current window."""
        with self._lock:
            self._roll_window(self._now_ms())
            self._count += 1

    def acquire(self) -> None:
        """
        Check and record in one step.

        Raises:
            RateLimited: If the window's quota is already used up
        """
        with self._lock:
            now_ms = self._now_ms()
            self._roll_window(now_ms)
            if self._count >= self.limit:
                retry_after = self._seconds_until_reset(now_ms)
                logger.warning(
                    f"Rate limit reached for {self.name}",
                    extra={"data": {"source": self.name, "limit": self.limit, "retry_after": retry_after}}
                )
                raise RateLimited(self.name, retry_after=retry_after)
            self._count += 1

    def _seconds_until_reset(self, now_ms: float) -> int:
        remaining_ms = self.period_ms - (now_ms - self._window_start)
        return max(1, math.ceil(remaining_ms / 1000.0))

    def snapshot(self) -> RateLimitWindow:
        with self._lock:
            self._roll_window(self._now_ms())
            return RateLimitWindow(
                window_start=self._window_start,
                count=self._count,
                limit=self.limit,
                period_ms=self.period_ms
            )

    @property
    def remaining(self) -> int:
        with self._lock:
            self._roll_window(self._now_ms())
            return max(0, self.limit - self._count)
