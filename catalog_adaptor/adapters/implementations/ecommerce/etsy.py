from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from catalog_adaptor.adapters.base import BaseSourceAdapter
from catalog_adaptor.adapters.interfaces.normalizer import Normalizer, dig, first, to_decimal
from catalog_adaptor.core.config import Settings
from catalog_adaptor.domain.models.category import Category
from catalog_adaptor.domain.models.descriptor import AdapterDescriptor, AuthType, RateLimitConfig
from catalog_adaptor.domain.models.product import Product

DAY_MS = 24 * 60 * 60 * 1000

CATEGORIES = [
    {"id": "handmade", "name": "Handmade & Unique"},
    {"id": "fashion", "name": "Fashion & Accessories"},
    {"id": "home", "name": "Home & Living"},
    {"id": "jewelry", "name": "Jewelry & Accessories"},
    {"id": "art", "name": "Art & Collectibles"},
    {"id": "crafts", "name": "Craft Supplies"},
]

CATEGORY_KEYWORDS = {
    "handmade": "handmade",
    "fashion": "fashion accessories",
    "home": "home living",
    "jewelry": "jewelry",
    "art": "art collectibles",
    "crafts": "craft supplies",
}


class EtsyNormalizer(Normalizer):
    """Etsy v3 listings; prices arrive as integer cents."""

    def product_fields(self, raw: Mapping[str, Any]) -> Dict[str, Any]:
        cents = to_decimal(dig(raw, "price", "amount"))
        divisor = to_decimal(dig(raw, "price", "divisor")) or Decimal(100)
        images = raw.get("images") or []
        return {
            "id": raw.get("listing_id"),
            "title": raw.get("title"),
            "description": first(raw.get("description"), raw.get("title")),
            "amount": cents / divisor if cents is not None else None,
            "currency": dig(raw, "price", "currency_code"),
            "images": [dig(img, "url_fullxfull") for img in images],
            "thumbnail": first(dig(images, 0, "url_170x135"), dig(images, 0, "url_fullxfull")),
            "rating": None,  # not in the basic listing payload
            "category": "Handmade",
            "brand": dig(raw, "shop", "shop_name"),
            "stock": raw.get("quantity"),
            "status": raw.get("state") if raw.get("state") == "discontinued" else None,
            "specifications": None,
        }

    def category_fields(self, raw: Mapping[str, Any]) -> Dict[str, Any]:
        fields = super().category_fields(raw)
        fields["description"] = f"{fields['name']} from Etsy artisans"
        return fields


class EtsyAdaptor(BaseSourceAdapter):
    """Adapter for the Etsy Open API v3 (``x-api-key`` header)."""

    name = "etsy"
    normalizer_class = EtsyNormalizer

    @classmethod
    def describe(cls, settings: Settings) -> AdapterDescriptor:
        return AdapterDescriptor(
            name=cls.name,
            base_url="https://api.etsy.com/v3/application",
            auth_type=AuthType.APIKEY,
            credentials={"api_key": settings.ETSY_API_KEY} if settings.ETSY_API_KEY else {},
            rate_limit=RateLimitConfig(requests=10_000, period_ms=DAY_MS),
            cache_ttl_ms=settings.CACHE_TTL_MS,
            api_key_header="x-api-key",
        )

    async def fetch_categories(self) -> List[Category]:
        return self.normalizer.normalize_categories(CATEGORIES)

    async def fetch_search(self, query: str, limit: int, offset: int) -> List[Product]:
        data = await self.get_json(
            "/listings/active",
            params={"keywords": query, "limit": limit, "offset": offset}
        )
        return self.normalizer.normalize_products(self.items(data, "results"))

    async def fetch_category(self, category_id: str, limit: int, offset: int) -> List[Product]:
        # Categories are keyword searches
        return await self.fetch_search(CATEGORY_KEYWORDS.get(category_id, category_id), limit, offset)

    async def fetch_details(self, product_id: str) -> Optional[Product]:
        data = await self.get_json(f"/listings/{self.segment(product_id)}")
        return self.normalizer.normalize_product(self.mapping(data))
