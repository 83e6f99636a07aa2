from typing import List, Optional, Protocol, runtime_checkable

from catalog_adaptor.domain.models.category import Category
from catalog_adaptor.domain.models.product import Product


@runtime_checkable
class DocumentStore(Protocol):
    """
    Seeded catalog store consulted before any vendor adapter.

    Implementations live outside this service. An empty result means
    "not seeded" and sends the request on to the adapters; any exception
    is treated as the store being unreachable.
    """

    async def find_products(
        self,
        query: Optional[str] = None,
        category_id: Optional[str] = None,
        limit: int = 20,
        offset: int = 0
    ) -> List[Product]:
        ...

    async def get_product(self, product_id: str) -> Optional[Product]:
        ...

    async def find_categories(self) -> List[Category]:
        ...
