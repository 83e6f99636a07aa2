"""Descriptor helpers for vendors reached through the RapidAPI gateway."""
from typing import Optional
from urllib.parse import urlparse

from catalog_adaptor.core.config import Settings
from catalog_adaptor.domain.models.descriptor import AdapterDescriptor, AuthType, RateLimitConfig

RAPIDAPI_KEY_HEADER = "X-RapidAPI-Key"
RAPIDAPI_HOST_HEADER = "X-RapidAPI-Host"

# Vendors without a category endpoint are browsed through these search terms
DEFAULT_CATEGORY_TERMS = {
    "electronics": "electronics",
    "laptops": "laptop",
    "mens-shirts": "mens shirt",
    "womens-fashion": "womens fashion",
    "beauty-skincare": "beauty skincare",
    "home-garden": "home garden",
    "sports": "sports",
    "automotive": "automotive",
    "motorcycle": "motorcycle",
}

GENERAL_SEARCH_TERM = "popular products"

PREDEFINED_CATEGORIES = [
    {"id": "electronics", "name": "Electronics"},
    {"id": "laptops", "name": "Laptops"},
    {"id": "mens-shirts", "name": "Men's Shirts"},
    {"id": "womens-fashion", "name": "Women's Fashion"},
    {"id": "beauty-skincare", "name": "Beauty & Skincare"},
    {"id": "home-garden", "name": "Home & Garden"},
    {"id": "sports", "name": "Sports"},
    {"id": "automotive", "name": "Automotive"},
    {"id": "motorcycle", "name": "Motorcycle"},
]


def rapidapi_descriptor(
    name: str,
    base_url: str,
    settings: Settings,
    rate_limit: Optional[RateLimitConfig] = None,
    cache_ttl_ms: Optional[int] = None
) -> AdapterDescriptor:
    """
    Descriptor for a RapidAPI-hosted vendor.

    The gateway wants the shared key plus the upstream host name on every call.
    """
    host = urlparse(base_url).netloc
    return AdapterDescriptor(
        name=name,
        base_url=base_url,
        auth_type=AuthType.APIKEY,
        credentials={"api_key": settings.RAPIDAPI_KEY} if settings.RAPIDAPI_KEY else {},
        rate_limit=rate_limit or RateLimitConfig(requests=100, period_ms=60_000),
        cache_ttl_ms=cache_ttl_ms or settings.CACHE_TTL_MS,
        api_key_header=RAPIDAPI_KEY_HEADER,
        extra_headers={RAPIDAPI_HOST_HEADER: host},
    )


def page_for(limit: int, offset: int) -> int:
    """1-based page number for page/limit style pagination."""
    return offset // limit + 1
