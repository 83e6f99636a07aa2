from abc import ABC, abstractmethod
from typing import List

from catalog_adaptor.domain.models.category import Category
from catalog_adaptor.domain.models.product import Product


class ProductSourceAdapter(ABC):
    """
    Abstract base interface for product-catalog vendor adapters.

    Every vendor integration implements this contract so callers can query
    products and categories without knowing which vendor answers.

    Listing operations (``get_categories``, ``search_products``,
    ``get_products_by_category``) never raise: any failure yields an empty
    list, which callers read as "try the next candidate". Only
    ``get_product_details`` raises typed errors, since a singular lookup
    must tell "does not exist" apart from "could not reach the vendor".

    Ids passed in may carry this adapter's ``"<name>_"`` prefix; every id
    handed back carries it.
    """

    name: str

    @abstractmethod
    async def get_categories(self) -> List[Category]:
        """
        Retrieves the vendor's category tree.

        Returns:
            List[Category]: Top-level categories, or [] on any failure
        """
        pass

    @abstractmethod
    async def search_products(self, query: str, limit: int = 20, offset: int = 0) -> List[Product]:
        """
        Full-text product search.

        Args:
            query: Search terms
            limit: Maximum number of products, must be > 0
            offset: Number of products to skip, must be >= 0

        Returns:
            List[Product]: Matching products, or [] on any failure

        Raises:
            ValidationException: If limit or offset is out of range
        """
        pass

    @abstractmethod
    async def get_products_by_category(
        self,
        category_id: str,
        limit: int = 20,
        offset: int = 0
    ) -> List[Product]:
        """
        Products listed under one category; ``"general"`` lists everything.

        Raises:
            ValidationException: If limit or offset is out of range
        """
        pass

    @abstractmethod
    async def get_product_details(self, product_id: str) -> Product:
        """
        Single product lookup.

        Raises:
            NotFoundError: The vendor has no such product
            UpstreamError: The vendor could not be reached
            RateLimited: This adapter's quota is exhausted
        """
        pass

    async def list_products(self, limit: int = 20, offset: int = 0) -> List[Product]:
        """General listing, used when a request names neither category nor query."""
        return await self.get_products_by_category("general", limit=limit, offset=offset)
