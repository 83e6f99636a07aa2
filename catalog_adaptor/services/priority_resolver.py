"""
Choose which vendor answers a request.

Candidate order is built from three static tables (global, per region,
per category). More specific tables are prepended, duplicates keep their
first position, and adapters that are flag-disabled or not configured are
dropped. Candidates are then tried one at a time, in order, until one
returns something; the universal fallback answers when none does.
"""
import re
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, Field

from catalog_adaptor.adapters.interfaces.source import ProductSourceAdapter
from catalog_adaptor.core.logging import get_logger
from catalog_adaptor.domain.models.resolution import GENERAL_CATEGORY, Operation, Resolution, ResolveContext
from catalog_adaptor.services.feature_flags import FeatureFlags

logger = get_logger(__name__)

GLOBAL_PRIORITY = ["realtime", "taobao", "ebay", "amazon", "aliexpress", "etsy", "dummyjson", "fakestore"]

REGION_PRIORITY = {
    "US": ["bestbuy", "ebay", "amazon", "aliexpress", "etsy", "dummyjson", "fakestore"],
    "CA": ["ebay", "etsy", "fakestore"],
    "GB": ["ebay", "etsy", "fakestore"],
    "EU": ["ebay", "etsy", "fakestore"],
    "IN": ["flipkart", "ebay", "etsy", "fakestore"],
    "ID": ["tokopedia", "shopee", "lazada", "ebay", "fakestore"],
    "SG": ["lazada", "shopee", "ebay", "fakestore"],
    "MY": ["lazada", "shopee", "ebay", "fakestore"],
    "TH": ["lazada", "shopee", "ebay", "fakestore"],
    "VN": ["lazada", "shopee", "ebay", "fakestore"],
    "PH": ["lazada", "shopee", "ebay", "fakestore"],
    "BR": ["mercadolibre", "ebay", "etsy", "fakestore"],
    "MX": ["mercadolibre", "ebay", "etsy", "fakestore"],
    "AR": ["mercadolibre", "ebay", "etsy", "fakestore"],
    "CL": ["mercadolibre", "ebay", "etsy", "fakestore"],
    "CO": ["mercadolibre", "ebay", "etsy", "fakestore"],
    "PE": ["mercadolibre", "ebay", "etsy", "fakestore"],
    "PL": ["olx", "ebay", "etsy", "fakestore"],
}

_ELECTRONICS = ["bestbuy", "ebay", "etsy", "fakestore"]
_CRAFT = ["etsy", "ebay", "fakestore"]
_MARKET = ["ebay", "etsy", "fakestore"]

CATEGORY_PRIORITY = {
    "electronics": [
        "bestbuy", "ebay", "amazon", "aliexpress", "digikey", "octopart", "etsy", "dummyjson", "fakestore",
    ],
    "phones": _ELECTRONICS,
    "computers": _ELECTRONICS,
    "laptops": _ELECTRONICS,
    "tablets": _ELECTRONICS,
    "headphones": _ELECTRONICS,
    "cameras": _ELECTRONICS,
    "gaming": _ELECTRONICS,
    "fashion": _CRAFT,
    "clothing": _CRAFT,
    "shoes": _CRAFT,
    "jewelry": _CRAFT,
    "handmade": _CRAFT,
    "home": _CRAFT,
    "garden": _CRAFT,
    "sports": _MARKET,
    "books": _MARKET,
    "toys": _MARKET,
    "beauty": _MARKET,
    "health": _MARKET,
}

# Substring -> category key, checked in order
CATEGORY_SYNONYMS: List[Tuple[str, str]] = [
    ("electronic", "electronics"),
    ("headphone", "headphones"),
    ("phone", "phones"),
    ("computer", "computers"),
    ("laptop", "laptops"),
    ("tablet", "tablets"),
    ("camera", "cameras"),
    ("game", "gaming"),
    ("fashion", "fashion"),
    ("cloth", "clothing"),
    ("shirt", "clothing"),
    ("shoe", "shoes"),
    ("jewel", "jewelry"),
    ("handmade", "handmade"),
    ("home", "home"),
    ("garden", "garden"),
    ("sport", "sports"),
    ("book", "books"),
    ("toy", "toys"),
    ("beauty", "beauty"),
    ("skincare", "beauty"),
    ("health", "health"),
]

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")


class PriorityConfig(BaseModel):
    """Static priority tables; all lookups are by exact key."""

    global_order: List[str] = Field(default_factory=lambda: list(GLOBAL_PRIORITY))
    regions: Dict[str, List[str]] = Field(default_factory=lambda: dict(REGION_PRIORITY))
    categories: Dict[str, List[str]] = Field(default_factory=lambda: dict(CATEGORY_PRIORITY))
    synonyms: List[Tuple[str, str]] = Field(default_factory=lambda: list(CATEGORY_SYNONYMS))


class CategoryNormalizer:
    """Map free-form category names onto the keys of the category table."""

    def __init__(self, config: PriorityConfig):
        self.config = config

    def normalize(self, category: str) -> str:
        normalized = _NON_ALNUM.sub("", (category or "").lower()).strip()
        if not normalized:
            return ""
        if normalized in self.config.categories:
            return normalized

        stemmed = normalized[:-1] if normalized.endswith("s") and len(normalized) > 3 else normalized
        for plural in (stemmed + "s", stemmed):
            if plural in self.config.categories:
                return plural

        for needle, key in self.config.synonyms:
            if needle in normalized:
                return key
        return normalized


class PriorityResolver:
    """
    Ordered, deterministic adapter selection with a universal fallback.

    ``resolve`` never raises: adapter failures are logged and skipped, and
    total failure yields the fallback adapter's best-effort result.
    """

    def __init__(
        self,
        feature_flags: Optional[FeatureFlags] = None,
        config: Optional[PriorityConfig] = None,
        fallback: str = "dummyjson"
    ):
        self.feature_flags = feature_flags or FeatureFlags()
        self.config = config or PriorityConfig()
        self.category_normalizer = CategoryNormalizer(self.config)
        self.fallback = fallback.lower()

    def priority_order(self, region: Optional[str] = None, category: Optional[str] = None) -> List[str]:
        """Combined priority list before flag and availability filtering."""
        order = list(self.config.global_order)

        if region:
            order = self.config.regions.get(region.upper(), []) + order

        if category:
            key = self.category_normalizer.normalize(category)
            order = self.config.categories.get(key, []) + order

        return list(dict.fromkeys(order))

    def candidates(
        self,
        adapters: Mapping[str, ProductSourceAdapter],
        context: ResolveContext
    ) -> List[str]:
        """
        Names of the adapters to try, in order.

        Drops names whose flag is explicitly False and names with no
        configured adapter instance.
        """
        category = self._raw_category(context.category, adapters)
        return [
            name for name in self.priority_order(context.region, category)
            if adapters.get(name) is not None and not self.feature_flags.is_excluded(name)
        ]

    @staticmethod
    def _raw_category(category: Optional[str], adapters: Mapping[str, Any]) -> Optional[str]:
        """Strip a vendor id prefix (``dummyjson_laptops``) so every vendor sees the bare slug."""
        if not category:
            return category
        for name in adapters:
            prefix = f"{name}_"
            if category.startswith(prefix) and len(category) > len(prefix):
                return category[len(prefix):]
        return category

    async def _invoke(
        self,
        adapter: ProductSourceAdapter,
        operation: Operation,
        context: ResolveContext,
        category: Optional[str]
    ) -> Any:
        if operation == Operation.DETAILS:
            return await adapter.get_product_details(context.product_id)
        if operation == Operation.CATEGORY:
            return await adapter.get_products_by_category(category, limit=context.limit, offset=context.offset)
        if operation == Operation.SEARCH:
            return await adapter.search_products(context.query, limit=context.limit, offset=context.offset)
        return await adapter.get_products_by_category(GENERAL_CATEGORY, limit=context.limit, offset=context.offset)

    async def resolve(
        self,
        adapters: Mapping[str, ProductSourceAdapter],
        context: ResolveContext
    ) -> Resolution:
        """
        Try candidates in priority order and return the first non-empty result.

        Args:
            adapters: Configured adapters by name
            context: Request context; its ``operation`` picks the adapter call

        Returns:
            Resolution whose ``result`` is a list of products, a single
            product, or (total failure of a detail lookup) None
        """
        operation = context.operation
        category = self._raw_category(context.category, adapters)
        candidates = self.candidates(adapters, context)
        empty: Any = None if operation == Operation.DETAILS else []
        attempted: List[str] = []

        for name in candidates:
            attempted.append(name)
            try:
                result = await self._invoke(adapters[name], operation, context, category)
            except Exception as e:
                logger.warning(
                    f"{name} failed for {operation.value}, trying next priority: {str(e)}",
                    extra={"data": {"source": name, "operation": operation.value}}
                )
                continue

            if result:
                logger.info(
                    f"Selected {name} for {operation.value}",
                    extra={"data": {"source": name, "operation": operation.value, "attempted": attempted}}
                )
                return Resolution(result=result, source=name, candidates=candidates, attempted=attempted)

            logger.debug(f"{name} returned no results for {operation.value}")

        fallback = adapters.get(self.fallback)
        logger.warning(
            f"All prioritized adapters failed for {operation.value}, using {self.fallback} fallback",
            extra={"data": {"operation": operation.value, "attempted": attempted}}
        )
        if fallback is None or self.fallback in attempted:
            return Resolution(
                result=empty,
                source=self.fallback if fallback is not None else None,
                candidates=candidates,
                attempted=attempted,
                fallback_used=True
            )

        attempted.append(self.fallback)
        try:
            result = await self._invoke(fallback, operation, context, category)
        except Exception as e:
            logger.warning(
                f"Fallback {self.fallback} failed for {operation.value}: {str(e)}",
                extra={"data": {"source": self.fallback, "operation": operation.value}}
            )
            result = empty

        return Resolution(
            result=result if result else empty,
            source=self.fallback,
            candidates=candidates,
            attempted=attempted,
            fallback_used=True
        )
