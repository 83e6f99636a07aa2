from decimal import Decimal
from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel, Field

from catalog_adaptor.adapters.interfaces.document_store import DocumentStore
from catalog_adaptor.adapters.interfaces.source import ProductSourceAdapter
from catalog_adaptor.core.exceptions import NotFoundError, ValidationException
from catalog_adaptor.core.logging import get_logger
from catalog_adaptor.domain.models.category import Category
from catalog_adaptor.domain.models.product import Product
from catalog_adaptor.domain.models.resolution import ResolveContext
from catalog_adaptor.services.priority_resolver import PriorityResolver
from catalog_adaptor.services.relevance import SortOrder, sort_products

logger = get_logger(__name__)

STORE_SOURCE = "store"

# Sources merged for the category listing
CATEGORY_SOURCES = ("dummyjson", "fakestore")


class ProductFilters(BaseModel):
    """Post-fetch filters applied to listing results."""

    min_price: Optional[Decimal] = Field(default=None, ge=0)
    max_price: Optional[Decimal] = Field(default=None, ge=0)
    min_rating: Optional[float] = Field(default=None, ge=0, le=5)
    brand: Optional[str] = None

    def is_empty(self) -> bool:
        return all(value is None for value in self.model_dump().values())

    def matches(self, product: Product) -> bool:
        if self.min_price is not None and product.price.amount < self.min_price:
            return False
        if self.max_price is not None and product.price.amount > self.max_price:
            return False
        if self.min_rating is not None and product.rating < self.min_rating:
            return False
        if self.brand and product.brand.lower() != self.brand.strip().lower():
            return False
        return True


class ProductPage(BaseModel):
    """One page of a product listing."""

    data: List[Product] = Field(default_factory=list)
    total: int = 0
    limit: int
    offset: int
    has_more: bool = False
    source: Optional[str] = None
    attempted: List[str] = Field(default_factory=list)

    def to_response(self) -> Dict:
        return {
            "data": [product.to_response() for product in self.data],
            "pagination": {
                "limit": self.limit,
                "offset": self.offset,
                "total": self.total,
                "hasMore": self.has_more,
            },
            "source": self.source,
        }


class CatalogService:
    """
    Catalog reads for the storefront.

    A configured ``DocumentStore`` is consulted first and wins whenever it
    has data. Otherwise the request goes to the vendor adapters through the
    ``PriorityResolver``.
    """

    def __init__(
        self,
        adapters: Mapping[str, ProductSourceAdapter],
        resolver: PriorityResolver,
        store: Optional[DocumentStore] = None,
        default_region: Optional[str] = None
    ):
        self.adapters = adapters
        self.resolver = resolver
        self.store = store
        self.default_region = default_region

    async def list_products(
        self,
        query: Optional[str] = None,
        category_id: Optional[str] = None,
        region: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
        sort: Optional[SortOrder] = None,
        filters: Optional[ProductFilters] = None
    ) -> ProductPage:
        """
        List products by search query, category, or neither (general browse).

        Search results default to relevance order; other listings keep the
        vendor's order unless ``sort`` is given.

        Raises:
            ValidationException: If ``limit`` or ``offset`` is out of range
        """
        if limit <= 0:
            raise ValidationException("limit must be greater than 0", field="limit")
        if offset < 0:
            raise ValidationException("offset must not be negative", field="offset")

        query = (query or "").strip() or None
        category_id = (category_id or "").strip() or None
        if sort is None:
            sort = SortOrder.RELEVANCE if query else SortOrder.NONE

        products: List[Product] = []
        source: Optional[str] = None
        attempted: List[str] = []
        from_store = False

        if self.store is not None:
            try:
                products = await self.store.find_products(
                    query=query, category_id=category_id, limit=limit, offset=offset
                )
            except Exception as e:
                logger.warning(f"Document store unavailable, using adapters: {str(e)}")
                products = []
            if products:
                source = STORE_SOURCE
                from_store = True

        if not from_store:
            context = ResolveContext(
                region=region or self.default_region,
                category=category_id,
                query=query,
                limit=limit,
                offset=offset
            )
            resolution = await self.resolver.resolve(self.adapters, context)
            products = list(resolution.result or [])
            source = resolution.source
            attempted = resolution.attempted

        if filters is not None and not filters.is_empty():
            products = [product for product in products if filters.matches(product)]

        products = sort_products(products, sort, query)
        logger.debug(
            f"Listed {len(products)} products from {source}",
            extra={"data": {"source": source, "query": query, "category": category_id}}
        )

        return ProductPage(
            data=products,
            total=len(products),
            limit=limit,
            offset=offset,
            # Adapter listings carry no total, so there is no reliable next page
            has_more=from_store and len(products) >= limit,
            source=source,
            attempted=attempted
        )

    def _owner(self, product_id: str) -> Optional[str]:
        for name in self.adapters:
            if product_id.startswith(f"{name}_"):
                return name
        return None

    async def get_product(self, product_id: str) -> Product:
        """
        Look up one product by canonical id.

        Raises:
            NotFoundError: If neither the store nor any adapter has it
        """
        product_id = (product_id or "").strip()
        if not product_id:
            raise NotFoundError("Product", product_id)

        if self.store is not None:
            try:
                product = await self.store.get_product(product_id)
            except Exception as e:
                logger.warning(f"Document store unavailable for product lookup: {str(e)}")
                product = None
            if product is not None:
                return product

        adapters = dict(self.adapters)
        owner = self._owner(product_id)
        if owner is not None:
            try:
                return await adapters.pop(owner).get_product_details(product_id)
            except NotFoundError:
                # Other vendors never hold ids carrying this prefix
                logger.info(f"{owner} has no product {product_id}")
                raise
            except Exception as e:
                logger.warning(f"{owner} failed for product {product_id}: {str(e)}")

        resolution = await self.resolver.resolve(adapters, ResolveContext(product_id=product_id))
        if resolution.result is None:
            raise NotFoundError("Product", product_id)
        return resolution.result

    async def get_categories(self) -> List[Category]:
        """Store categories, else the merged dummyjson and fakestore trees."""
        if self.store is not None:
            try:
                categories = await self.store.find_categories()
            except Exception as e:
                logger.warning(f"Document store unavailable for categories: {str(e)}")
                categories = []
            if categories:
                return categories

        merged: Dict[str, Category] = {}
        for name in CATEGORY_SOURCES:
            adapter = self.adapters.get(name)
            if adapter is None:
                continue
            for category in await adapter.get_categories():
                merged.setdefault(category.id, category)
        return list(merged.values())
