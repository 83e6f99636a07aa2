from typing import Any, Dict, List, Mapping, Optional

from catalog_adaptor.adapters.base import BaseSourceAdapter
from catalog_adaptor.adapters.interfaces.normalizer import Normalizer, first
from catalog_adaptor.core.config import Settings
from catalog_adaptor.domain.models.category import Category
from catalog_adaptor.domain.models.descriptor import AdapterDescriptor, AuthType, RateLimitConfig
from catalog_adaptor.domain.models.product import Product

MAX_CATEGORIES = 20
WATCH_CATEGORY = "mens-watches"


class DummyJSONNormalizer(Normalizer):
    """DummyJSON already uses near-canonical field names."""

    def product_fields(self, raw: Mapping[str, Any]) -> Dict[str, Any]:
        return {
            "id": raw.get("id"),
            "title": raw.get("title"),
            "description": raw.get("description"),
            "amount": raw.get("price"),
            "currency": "USD",
            "images": raw.get("images"),
            "thumbnail": raw.get("thumbnail"),
            "rating": raw.get("rating"),
            "category": raw.get("category"),
            "brand": raw.get("brand"),
            "stock": raw.get("stock"),
            "status": raw.get("availabilityStatus"),
            "specifications": None,
        }

    def category_fields(self, raw: Mapping[str, Any]) -> Dict[str, Any]:
        slug = first(raw.get("slug"), raw.get("id"))
        return {
            "id": slug,
            "name": first(raw.get("name"), str(slug or "").replace("-", " ").capitalize()),
            "image": raw.get("image"),
            "description": None,
            "subcategories": None,
        }


class DummyJSONAdaptor(BaseSourceAdapter):
    """
    Adapter for dummyjson.com, the public demo catalog.

    Always enabled and the designated universal fallback, so it is the one
    vendor guaranteed to exist in every deployment.
    """

    name = "dummyjson"
    normalizer_class = DummyJSONNormalizer

    @classmethod
    def describe(cls, settings: Settings) -> AdapterDescriptor:
        return AdapterDescriptor(
            name=cls.name,
            base_url="https://dummyjson.com",
            auth_type=AuthType.PUBLIC,
            rate_limit=RateLimitConfig(requests=100, period_ms=60_000),
            cache_ttl_ms=settings.CACHE_TTL_MS,
        )

    async def fetch_categories(self) -> List[Category]:
        data = await self.get_json("/products/categories")
        return self.normalizer.normalize_categories(self.items(data)[:MAX_CATEGORIES])

    async def fetch_search(self, query: str, limit: int, offset: int) -> List[Product]:
        data = await self.get_json("/products/search", params={"q": query, "limit": limit, "skip": offset})
        return self.normalizer.normalize_products(self.items(data, "products"))

    async def fetch_general(self, limit: int, offset: int) -> List[Product]:
        data = await self.get_json("/products", params={"limit": limit, "skip": offset})
        return self.normalizer.normalize_products(self.items(data, "products"))

    async def fetch_category(self, category_id: str, limit: int, offset: int) -> List[Product]:
        if category_id == WATCH_CATEGORY:
            return await self._fetch_watches(limit, offset)

        data = await self.get_json(
            f"/products/category/{self.segment(category_id)}",
            params={"limit": limit, "skip": offset}
        )
        return self.normalizer.normalize_products(self.items(data, "products"))

    async def _fetch_watches(self, limit: int, offset: int) -> List[Product]:
        # The category endpoint is sparse for watches; filter a wider general page instead
        data = await self.get_json("/products", params={"limit": limit * 3, "skip": offset})
        watches = [
            item for item in self.items(data, "products")
            if isinstance(item, Mapping) and (
                "watch" in str(item.get("title", "")).lower()
                or "watch" in str(item.get("description", "")).lower()
                or item.get("category") == WATCH_CATEGORY
            )
        ]
        return self.normalizer.normalize_products(watches[:limit])

    async def fetch_details(self, product_id: str) -> Optional[Product]:
        data = await self.get_json(f"/products/{self.segment(product_id)}")
        return self.normalizer.normalize_product(self.mapping(data))
