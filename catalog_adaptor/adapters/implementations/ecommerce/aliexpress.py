from typing import Any, Dict, List, Mapping, Optional

from catalog_adaptor.adapters.base import BaseSourceAdapter
from catalog_adaptor.adapters.implementations.ecommerce.rapidapi import page_for, rapidapi_descriptor
from catalog_adaptor.adapters.interfaces.normalizer import Normalizer, first
from catalog_adaptor.core.config import Settings
from catalog_adaptor.domain.models.category import Category
from catalog_adaptor.domain.models.descriptor import AdapterDescriptor, RateLimitConfig
from catalog_adaptor.domain.models.product import Product

MAX_CATEGORIES = 20


class AliExpressNormalizer(Normalizer):

    def product_fields(self, raw: Mapping[str, Any]) -> Dict[str, Any]:
        fields = super().product_fields(raw)
        fields["id"] = first(raw.get("id"), raw.get("productId"))
        return fields

    def category_fields(self, raw: Mapping[str, Any]) -> Dict[str, Any]:
        fields = super().category_fields(raw)
        fields["description"] = f"{fields['name']} products from AliExpress" if fields["name"] else None
        return fields


class AliExpressAdaptor(BaseSourceAdapter):
    """Adapter for AliExpress product data via RapidAPI (page-based pagination)."""

    name = "aliexpress"
    normalizer_class = AliExpressNormalizer

    @classmethod
    def describe(cls, settings: Settings) -> AdapterDescriptor:
        return rapidapi_descriptor(
            cls.name,
            "https://aliexpress-datahub.p.rapidapi.com",
            settings,
            rate_limit=RateLimitConfig(requests=100, period_ms=60_000),
        )

    async def fetch_categories(self) -> List[Category]:
        data = await self.get_json("/categories")
        return self.normalizer.normalize_categories(self.items(data, "categories")[:MAX_CATEGORIES])

    async def fetch_search(self, query: str, limit: int, offset: int) -> List[Product]:
        data = await self.get_json(
            "/products/search",
            params={"keyword": query, "page": page_for(limit, offset), "limit": limit}
        )
        return self.normalizer.normalize_products(self.items(data, "products", required=False))

    async def fetch_category(self, category_id: str, limit: int, offset: int) -> List[Product]:
        data = await self.get_json(
            f"/products/category/{self.segment(category_id)}",
            params={"page": page_for(limit, offset), "limit": limit}
        )
        return self.normalizer.normalize_products(self.items(data, "products", required=False))

    async def fetch_details(self, product_id: str) -> Optional[Product]:
        data = await self.get_json(f"/products/{self.segment(product_id)}")
        return self.normalizer.normalize_product(self.mapping(data, "product"))
