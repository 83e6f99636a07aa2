"""Test doubles and builders shared by the unit tests."""

import json
from decimal import Decimal
from typing import Any, Dict, List, Optional

import httpx

from catalog_adaptor.adapters.interfaces.source import ProductSourceAdapter
from catalog_adaptor.core.exceptions import NotFoundError
from catalog_adaptor.domain.models.category import Category
from catalog_adaptor.domain.models.product import Price, Product


class FakeClock:
    """Manually advanced time source, in seconds."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class StubAdapter(ProductSourceAdapter):
    """In-memory adapter returning canned results or raising a canned error."""

    def __init__(
        self,
        name: str,
        products: Optional[List[Product]] = None,
        error: Optional[BaseException] = None,
        categories: Optional[List[Category]] = None
    ):
        self.name = name
        self.products = products or []
        self.error = error
        self.categories = categories or []
        self.calls: List[tuple] = []

    async def get_categories(self) -> List[Category]:
        self.calls.append(("categories",))
        return list(self.categories)

    async def search_products(self, query: str, limit: int = 20, offset: int = 0) -> List[Product]:
        self.calls.append(("search", query, limit, offset))
        if self.error is not None:
            raise self.error
        return list(self.products)

    async def get_products_by_category(self, category_id: str, limit: int = 20, offset: int = 0) -> List[Product]:
        self.calls.append(("category", category_id, limit, offset))
        if self.error is not None:
            raise self.error
        return list(self.products)

    async def get_product_details(self, product_id: str) -> Product:
        self.calls.append(("details", product_id))
        if self.error is not None:
            raise self.error
        for product in self.products:
            if product.id == product_id:
                return product
        raise NotFoundError("Product", product_id)


def make_product(
    product_id: str,
    source: str = "stub",
    title: str = "Product",
    amount: str = "10.00",
    rating: float = 4.0,
    **kwargs: Any
) -> Product:
    return Product(
        id=product_id,
        title=title,
        price=Price(amount=Decimal(amount), currency="USD"),
        rating=rating,
        source=source,
        **kwargs
    )


def json_transport(routes: Dict[str, Any], calls: Optional[List[httpx.Request]] = None) -> httpx.MockTransport:
    """
    MockTransport answering by URL path.

    A route value may be a JSON-serializable body (answered with 200), an
    ``httpx.Response``, or a callable taking the request.
    """
    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        route = routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"message": "not found"})
        if callable(route):
            return route(request)
        if isinstance(route, httpx.Response):
            return route
        return httpx.Response(200, content=json.dumps(route).encode(), headers={"Content-Type": "application/json"})

    return httpx.MockTransport(handler)
