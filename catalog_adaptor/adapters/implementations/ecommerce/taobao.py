from typing import Any, Dict, List, Mapping, Optional

from catalog_adaptor.adapters.base import BaseSourceAdapter
from catalog_adaptor.adapters.implementations.ecommerce.rapidapi import (
    DEFAULT_CATEGORY_TERMS,
    GENERAL_SEARCH_TERM,
    PREDEFINED_CATEGORIES,
    rapidapi_descriptor,
)
from catalog_adaptor.adapters.interfaces.normalizer import Normalizer, as_list, dig, first
from catalog_adaptor.core.config import Settings
from catalog_adaptor.domain.models.category import Category
from catalog_adaptor.domain.models.descriptor import AdapterDescriptor, RateLimitConfig
from catalog_adaptor.domain.models.product import Product

CATEGORY_TERMS = {
    **DEFAULT_CATEGORY_TERMS,
    "laptops": "laptop computer",
    "sports": "sports fitness",
    "automotive": "automotive car",
}


class TaobaoNormalizer(Normalizer):
    """Taobao items are priced in CNY and carry no rating."""

    def product_fields(self, raw: Mapping[str, Any]) -> Dict[str, Any]:
        pic = raw.get("pic_url")
        # item_imgs entries are {"url": ...}
        gallery = [dig(img, "url") if isinstance(img, Mapping) else img for img in as_list(raw.get("item_imgs"))]
        return {
            "id": first(raw.get("item_id"), raw.get("num_iid")),
            "title": first(raw.get("title"), raw.get("item_title")),
            "description": first(raw.get("description"), raw.get("item_short_title")),
            "amount": first(raw.get("price"), raw.get("item_price")),
            "currency": "CNY",
            "images": first(raw.get("images"), gallery, as_list(pic)),
            "thumbnail": first(pic, raw.get("thumbnail")),
            "rating": raw.get("rating"),
            "category": first(raw.get("category"), "general"),
            "brand": first(raw.get("brand"), raw.get("seller_nick")),
            "stock": first(raw.get("stock"), raw.get("quantity")),
            "status": None,
            "specifications": raw.get("props") if isinstance(raw.get("props"), Mapping) else None,
        }


class TaobaoAdaptor(BaseSourceAdapter):
    """Adapter for Taobao listings via RapidAPI."""

    name = "taobao"
    normalizer_class = TaobaoNormalizer

    @classmethod
    def describe(cls, settings: Settings) -> AdapterDescriptor:
        return rapidapi_descriptor(
            cls.name,
            "https://taobao-api2.p.rapidapi.com",
            settings,
            rate_limit=RateLimitConfig(requests=100, period_ms=60_000),
            cache_ttl_ms=10 * 60 * 1000,
        )

    async def fetch_categories(self) -> List[Category]:
        return self.normalizer.normalize_categories(PREDEFINED_CATEGORIES)

    async def fetch_search(self, query: str, limit: int, offset: int) -> List[Product]:
        data = await self.get_json(
            "/api/search_items",
            params={"query": query, "limit": limit, "offset": offset}
        )
        return self.normalizer.normalize_products(self.items(data, "result", "result_list", required=False))

    async def fetch_category(self, category_id: str, limit: int, offset: int) -> List[Product]:
        return await self.fetch_search(CATEGORY_TERMS.get(category_id, category_id), limit, offset)

    async def fetch_general(self, limit: int, offset: int) -> List[Product]:
        return await self.fetch_search(GENERAL_SEARCH_TERM, limit, offset)

    async def fetch_details(self, product_id: str) -> Optional[Product]:
        data = await self.get_json("/api/item_detail", params={"item_id": product_id})
        return self.normalizer.normalize_product(self.mapping(data, "result"))
