"""Per-adapter request quota tracking."""

from catalog_adaptor.infrastructure.rate_limit.limiter import RateLimiter, RateLimitWindow

__all__ = ["RateLimiter", "RateLimitWindow"]
