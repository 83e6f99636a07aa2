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

CATEGORY_TERMS = {**DEFAULT_CATEGORY_TERMS, "mens-shirts": "mens clothing"}


class BestBuyNormalizer(Normalizer):

    def product_fields(self, raw: Mapping[str, Any]) -> Dict[str, Any]:
        return {
            "id": first(raw.get("id"), raw.get("sku")),
            "title": first(raw.get("title"), raw.get("name")),
            "description": first(raw.get("description"), raw.get("shortDescription")),
            "amount": first(raw.get("price"), raw.get("salePrice")),
            "currency": "USD",
            "images": first(raw.get("images"), as_list(raw.get("image"))),
            "thumbnail": first(raw.get("thumbnail"), raw.get("image")),
            "rating": first(raw.get("rating"), raw.get("customerReviewAverage")),
            "category": first(raw.get("category"), "general"),
            "brand": raw.get("brand"),
            "stock": raw.get("stock"),
            "status": None,
            "specifications": raw.get("specifications"),
        }


class BestBuyAdaptor(BaseSourceAdapter):
    """
    Adapter for Best Buy product data via RapidAPI.

    The API has no category endpoint: categories are a fixed list and
    category listings are searches for a mapped term.
    """

    name = "bestbuy"
    normalizer_class = BestBuyNormalizer

    @classmethod
    def describe(cls, settings: Settings) -> AdapterDescriptor:
        return rapidapi_descriptor(
            cls.name,
            "https://bestbuyraygorodskijv1.p.rapidapi.com",
            settings,
            rate_limit=RateLimitConfig(requests=100, period_ms=60_000),
            cache_ttl_ms=10 * 60 * 1000,
        )

    async def fetch_categories(self) -> List[Category]:
        return self.normalizer.normalize_categories(PREDEFINED_CATEGORIES)

    async def fetch_search(self, query: str, limit: int, offset: int) -> List[Product]:
        data = await self.get_json(
            "/getSimilarProducts",
            params={"query": query, "limit": limit, "offset": offset}
        )
        return self.normalizer.normalize_products(self.items(data, "products", "results", required=False))

    async def fetch_category(self, category_id: str, limit: int, offset: int) -> List[Product]:
        return await self.fetch_search(CATEGORY_TERMS.get(category_id, category_id), limit, offset)

    async def fetch_general(self, limit: int, offset: int) -> List[Product]:
        return await self.fetch_search(GENERAL_SEARCH_TERM, limit, offset)

    async def fetch_details(self, product_id: str) -> Optional[Product]:
        data = await self.get_json("/getProductDetails", params={"productId": product_id})
        return self.normalizer.normalize_product(self.mapping(data, "product"))
