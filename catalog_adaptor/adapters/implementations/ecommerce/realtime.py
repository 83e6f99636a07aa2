from typing import Any, Dict, List, Mapping, Optional

from catalog_adaptor.adapters.base import BaseSourceAdapter
from catalog_adaptor.adapters.implementations.ecommerce.rapidapi import (
    DEFAULT_CATEGORY_TERMS,
    GENERAL_SEARCH_TERM,
    PREDEFINED_CATEGORIES,
    rapidapi_descriptor,
)
from catalog_adaptor.adapters.interfaces.normalizer import Normalizer, as_list, first
from catalog_adaptor.core.config import Settings
from catalog_adaptor.domain.models.category import Category
from catalog_adaptor.domain.models.descriptor import AdapterDescriptor, RateLimitConfig
from catalog_adaptor.domain.models.product import Product

COUNTRY = "US"
LANGUAGE = "en"


class RealTimeNormalizer(Normalizer):
    """Real-Time Product Search uses ``product_*`` prefixed fields."""

    def product_fields(self, raw: Mapping[str, Any]) -> Dict[str, Any]:
        photo = raw.get("product_photo")
        return {
            "id": first(raw.get("product_id"), raw.get("asin")),
            "title": first(raw.get("product_title"), raw.get("title")),
            "description": first(raw.get("product_description"), raw.get("description")),
            "amount": first(raw.get("product_price"), raw.get("price")),
            "currency": raw.get("currency"),
            "images": first(raw.get("product_photos"), as_list(photo)),
            "thumbnail": first(photo, raw.get("thumbnail")),
            "rating": first(raw.get("product_star_rating"), raw.get("rating")),
            "category": first(raw.get("category"), "general"),
            "brand": raw.get("brand"),
            "stock": raw.get("stock"),
            "status": None,
            "specifications": first(raw.get("product_attributes"), raw.get("specifications")),
        }


class RealTimeAdaptor(BaseSourceAdapter):
    """Adapter for the Real-Time Product Search API via RapidAPI."""

    name = "realtime"
    normalizer_class = RealTimeNormalizer

    @classmethod
    def describe(cls, settings: Settings) -> AdapterDescriptor:
        return rapidapi_descriptor(
            cls.name,
            "https://real-time-product-search.p.rapidapi.com",
            settings,
            rate_limit=RateLimitConfig(requests=100, period_ms=60_000),
            cache_ttl_ms=10 * 60 * 1000,
        )

    async def fetch_categories(self) -> List[Category]:
        return self.normalizer.normalize_categories(PREDEFINED_CATEGORIES)

    async def fetch_search(self, query: str, limit: int, offset: int) -> List[Product]:
        data = await self.get_json(
            "/search",
            params={"q": query, "country": COUNTRY, "language": LANGUAGE, "limit": limit, "offset": offset}
        )
        return self.normalizer.normalize_products(self.items(data, "data", required=False))

    async def fetch_category(self, category_id: str, limit: int, offset: int) -> List[Product]:
        return await self.fetch_search(DEFAULT_CATEGORY_TERMS.get(category_id, category_id), limit, offset)

    async def fetch_general(self, limit: int, offset: int) -> List[Product]:
        return await self.fetch_search(GENERAL_SEARCH_TERM, limit, offset)

    async def fetch_details(self, product_id: str) -> Optional[Product]:
        data = await self.get_json(
            "/product-details",
            params={"product_id": product_id, "country": COUNTRY, "language": LANGUAGE}
        )
        return self.normalizer.normalize_product(self.mapping(data, "data"))
