from typing import Any, Dict, List, Mapping, Optional

from catalog_adaptor.adapters.base import BaseSourceAdapter
from catalog_adaptor.adapters.interfaces.normalizer import Normalizer, as_list, dig
from catalog_adaptor.core.config import Settings
from catalog_adaptor.domain.models.category import Category
from catalog_adaptor.domain.models.descriptor import AdapterDescriptor, AuthType, RateLimitConfig
from catalog_adaptor.domain.models.product import Product

# FakeStore exposes four flat categories; the storefront shows them with these subcategories
CATEGORY_HIERARCHY = [
    {
        "id": "electronics",
        "name": "Electronics & Smart Gadgets",
        "subcategories": [
            {"id": "smartphones", "name": "Smartphones"},
            {"id": "laptops", "name": "Laptops"},
            {"id": "cameras", "name": "Cameras"},
            {"id": "headphones", "name": "Headphones"},
        ],
    },
    {
        "id": "jewelery",
        "name": "Jewelry & Accessories",
        "subcategories": [
            {"id": "necklaces", "name": "Necklaces"},
            {"id": "rings", "name": "Rings"},
            {"id": "earrings", "name": "Earrings"},
        ],
    },
    {
        "id": "men's clothing",
        "name": "Men's Fashion",
        "subcategories": [
            {"id": "mens-shirts", "name": "Shirts"},
            {"id": "mens-pants", "name": "Pants"},
            {"id": "mens-shoes", "name": "Shoes"},
        ],
    },
    {
        "id": "women's clothing",
        "name": "Women's Fashion",
        "subcategories": [
            {"id": "womens-dresses", "name": "Dresses"},
            {"id": "womens-tops", "name": "Tops"},
            {"id": "womens-shoes", "name": "Shoes"},
        ],
    },
]


class FakeStoreNormalizer(Normalizer):

    def product_fields(self, raw: Mapping[str, Any]) -> Dict[str, Any]:
        return {
            "id": raw.get("id"),
            "title": raw.get("title"),
            "description": raw.get("description"),
            "amount": raw.get("price"),
            "currency": "USD",
            "images": as_list(raw.get("image")),
            "thumbnail": raw.get("image"),
            "rating": dig(raw, "rating", "rate"),
            "category": raw.get("category"),
            "brand": None,
            "stock": None,  # not provided; configured default applies
            "status": None,
            "specifications": None,
        }


class FakeStoreAdaptor(BaseSourceAdapter):
    """
    Adapter for fakestoreapi.com.

    The API has no search or pagination, so both are done client-side over
    the full product list.
    """

    name = "fakestore"
    normalizer_class = FakeStoreNormalizer

    @classmethod
    def describe(cls, settings: Settings) -> AdapterDescriptor:
        return AdapterDescriptor(
            name=cls.name,
            base_url="https://fakestoreapi.com",
            auth_type=AuthType.PUBLIC,
            rate_limit=RateLimitConfig(requests=100, period_ms=60_000),
            cache_ttl_ms=settings.CACHE_TTL_MS,
        )

    async def fetch_categories(self) -> List[Category]:
        # Probe the API so an unreachable vendor lists nothing
        self.items(await self.get_json("/products/categories"))
        return self.normalizer.normalize_categories(CATEGORY_HIERARCHY)

    async def _all_products(self) -> List[Any]:
        return self.items(await self.get_json("/products"))

    async def fetch_search(self, query: str, limit: int, offset: int) -> List[Product]:
        needle = query.lower()
        matches = [
            item for item in await self._all_products()
            if isinstance(item, Mapping) and any(
                needle in str(item.get(field, "")).lower()
                for field in ("title", "description", "category")
            )
        ]
        return self.normalizer.normalize_products(matches[offset:offset + limit])

    async def fetch_general(self, limit: int, offset: int) -> List[Product]:
        products = await self._all_products()
        return self.normalizer.normalize_products(products[offset:offset + limit])

    async def fetch_category(self, category_id: str, limit: int, offset: int) -> List[Product]:
        data = await self.get_json(f"/products/category/{self.segment(category_id)}")
        return self.normalizer.normalize_products(self.items(data)[offset:offset + limit])

    async def fetch_details(self, product_id: str) -> Optional[Product]:
        data = await self.get_json(f"/products/{self.segment(product_id)}")
        # FakeStore answers 200 with an empty body for unknown ids
        if data is None:
            return None
        return self.normalizer.normalize_product(self.mapping(data))
