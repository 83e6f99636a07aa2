from typing import Any, Dict, List, Mapping, Optional

from catalog_adaptor.adapters.base import BaseSourceAdapter
from catalog_adaptor.adapters.interfaces.normalizer import Normalizer, as_list, dig, first, to_float
from catalog_adaptor.core.config import Settings
from catalog_adaptor.domain.models.category import Category
from catalog_adaptor.domain.models.descriptor import AdapterDescriptor, AuthType, RateLimitConfig
from catalog_adaptor.domain.models.product import Product

MARKETPLACE_HEADER = "X-EBAY-C-MARKETPLACE-ID"
MAX_CATEGORIES = 20
DAY_MS = 24 * 60 * 60 * 1000


class EbayNormalizer(Normalizer):
    """Maps Browse API item summaries and items."""

    def product_fields(self, raw: Mapping[str, Any]) -> Dict[str, Any]:
        primary = dig(raw, "image", "imageUrl")
        extra = [dig(img, "imageUrl") for img in raw.get("additionalImages") or []]

        # Seller feedback percentage is the only rating signal; 100% maps to 5 stars
        feedback = to_float(dig(raw, "seller", "feedbackPercentage"))
        rating = round(feedback / 20) if feedback is not None else None

        aspects = {}
        for aspect in raw.get("localizedAspects") or []:
            if isinstance(aspect, Mapping) and aspect.get("name"):
                aspects[aspect["name"]] = aspect.get("value", "")

        return {
            "id": raw.get("itemId"),
            "title": raw.get("title"),
            "description": first(raw.get("shortDescription"), raw.get("description"), raw.get("title")),
            "amount": dig(raw, "price", "value"),
            "currency": dig(raw, "price", "currency"),
            "images": [url for url in [primary, *extra] if url],
            "thumbnail": first(dig(raw, "thumbnailImages", 0, "imageUrl"), primary),
            "rating": rating,
            "category": first(dig(raw, "categories", 0, "categoryName"), "General"),
            "brand": raw.get("brand"),
            "stock": None,  # Browse API has no stock figure
            "status": None,
            "specifications": aspects,
        }

    def category_fields(self, raw: Mapping[str, Any]) -> Dict[str, Any]:
        node = raw.get("category") if isinstance(raw.get("category"), Mapping) else raw
        name = node.get("categoryName")
        return {
            "id": node.get("categoryId"),
            "name": name,
            "image": None,
            "description": f"{name} products from eBay" if name else None,
            "subcategories": None,
        }


class EbayAdaptor(BaseSourceAdapter):
    """Adapter for the eBay Browse and Taxonomy APIs (OAuth bearer token)."""

    name = "ebay"
    normalizer_class = EbayNormalizer

    @classmethod
    def describe(cls, settings: Settings) -> AdapterDescriptor:
        credentials = {}
        if settings.EBAY_ACCESS_TOKEN:
            credentials["access_token"] = settings.EBAY_ACCESS_TOKEN
        if settings.EBAY_APP_ID:
            credentials["app_id"] = settings.EBAY_APP_ID
        return AdapterDescriptor(
            name=cls.name,
            base_url="https://api.ebay.com",
            auth_type=AuthType.OAUTH,
            credentials=credentials,
            rate_limit=RateLimitConfig(requests=5000, period_ms=DAY_MS),
            cache_ttl_ms=settings.CACHE_TTL_MS,
            extra_headers={MARKETPLACE_HEADER: settings.EBAY_MARKETPLACE_ID},
        )

    @property
    def marketplace_id(self) -> str:
        return self.descriptor.extra_headers.get(MARKETPLACE_HEADER, "EBAY_US")

    async def fetch_categories(self) -> List[Category]:
        tree_ref = await self.get_json(
            "/commerce/taxonomy/v1/get_default_category_tree_id",
            params={"marketplace_id": self.marketplace_id}
        )
        tree_id = self.mapping(tree_ref).get("categoryTreeId")
        if not tree_id:
            return []

        tree = await self.get_json(f"/commerce/taxonomy/v1/category_tree/{self.segment(tree_id)}")
        nodes = as_list(dig(self.mapping(tree), "categoryTreeNode", "childCategoryTreeNodes"))
        return self.normalizer.normalize_categories(nodes[:MAX_CATEGORIES])

    async def _summaries(self, params: Dict[str, Any]) -> List[Product]:
        data = await self.get_json("/buy/browse/v1/item_summary/search", params=params)
        # A search with no hits omits itemSummaries entirely
        return self.normalizer.normalize_products(self.items(data, "itemSummaries", required=False))

    async def fetch_search(self, query: str, limit: int, offset: int) -> List[Product]:
        return await self._summaries({"q": query, "limit": limit, "offset": offset})

    async def fetch_category(self, category_id: str, limit: int, offset: int) -> List[Product]:
        return await self._summaries({"category_ids": category_id, "limit": limit, "offset": offset})

    async def fetch_details(self, product_id: str) -> Optional[Product]:
        data = await self.get_json(f"/buy/browse/v1/item/{self.segment(product_id)}")
        return self.normalizer.normalize_product(self.mapping(data))
