from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from catalog_adaptor.core.exceptions import NotFoundError, UpstreamError, ValidationException
from catalog_adaptor.domain.models.category import Category
from catalog_adaptor.services.catalog_service import CatalogService, ProductFilters
from catalog_adaptor.services.feature_flags import FeatureFlags
from catalog_adaptor.services.priority_resolver import PriorityResolver
from catalog_adaptor.services.relevance import SortOrder, relevance_score, sort_products
from tests.helpers import StubAdapter, make_product


def service(adapters, store=None) -> CatalogService:
    resolver = PriorityResolver(feature_flags=FeatureFlags(environ={}))
    return CatalogService({a.name: a for a in adapters}, resolver, store=store)


def store_mock(products=(), product=None, categories=()) -> AsyncMock:
    store = AsyncMock()
    store.find_products.return_value = list(products)
    store.get_product.return_value = product
    store.find_categories.return_value = list(categories)
    return store


# -- relevance -----------------------------------------------------------------

def test_phrase_in_title_outranks_token_matches():
    exact = make_product("a", title="Red running shoes")
    scattered = make_product("b", title="Shoes", description="running red", brand="red")

    assert relevance_score(exact, "running shoes") > relevance_score(scattered, "running shoes")


def test_sorts_are_stable():
    products = [
        make_product("a", amount="5", rating=4.0),
        make_product("b", amount="1", rating=4.0),
        make_product("c", amount="5", rating=4.5),
    ]

    assert [p.id for p in sort_products(products, SortOrder.PRICE_ASC)] == ["b", "a", "c"]
    assert [p.id for p in sort_products(products, SortOrder.PRICE_DESC)] == ["a", "c", "b"]
    assert [p.id for p in sort_products(products, SortOrder.RATING)] == ["c", "a", "b"]
    assert [p.id for p in sort_products(products, SortOrder.RELEVANCE)] == ["a", "b", "c"]


# -- listing -------------------------------------------------------------------

@pytest.mark.asyncio
async def test_search_defaults_to_relevance_order():
    adapter = StubAdapter("dummyjson", products=[
        make_product("dummyjson_1", source="dummyjson", title="Phone case"),
        make_product("dummyjson_2", source="dummyjson", title="Gaming laptop"),
        make_product("dummyjson_3", source="dummyjson", title="Laptop stand", description="for any laptop"),
    ])

    page = await service([adapter]).list_products(query="gaming laptop")

    assert [p.id for p in page.data] == ["dummyjson_2", "dummyjson_3", "dummyjson_1"]
    assert page.source == "dummyjson"


@pytest.mark.asyncio
async def test_explicit_sort_wins_over_relevance():
    adapter = StubAdapter("dummyjson", products=[
        make_product("dummyjson_1", source="dummyjson", title="Laptop", amount="900"),
        make_product("dummyjson_2", source="dummyjson", title="Laptop bag", amount="40"),
    ])

    page = await service([adapter]).list_products(query="laptop", sort=SortOrder.PRICE_ASC)

    assert [p.id for p in page.data] == ["dummyjson_2", "dummyjson_1"]


@pytest.mark.asyncio
async def test_filters_apply_after_resolution():
    adapter = StubAdapter("dummyjson", products=[
        make_product("dummyjson_1", source="dummyjson", amount="5", rating=3.0, brand="Acme"),
        make_product("dummyjson_2", source="dummyjson", amount="50", rating=4.8, brand="Acme"),
        make_product("dummyjson_3", source="dummyjson", amount="500", rating=4.9, brand="Other"),
    ])
    filters = ProductFilters(min_price=Decimal("10"), max_price=Decimal("100"), min_rating=4.0, brand="acme")

    page = await service([adapter]).list_products(category_id="dummyjson_beauty", filters=filters)

    assert [p.id for p in page.data] == ["dummyjson_2"]
    assert page.total == 1
    assert page.has_more is False


@pytest.mark.asyncio
async def test_store_is_consulted_first():
    adapter = StubAdapter("dummyjson", products=[make_product("dummyjson_1", source="dummyjson")])
    store = store_mock(products=[make_product(f"store_{i}", source="store") for i in range(2)])

    page = await service([adapter], store=store).list_products(category_id="books", limit=2)

    assert page.source == "store"
    assert page.has_more is True
    assert adapter.calls == []
    store.find_products.assert_awaited_once_with(query=None, category_id="books", limit=2, offset=0)


@pytest.mark.asyncio
async def test_store_failure_falls_through_to_adapters():
    adapter = StubAdapter("dummyjson", products=[make_product("dummyjson_1", source="dummyjson")])
    store = store_mock()
    store.find_products.side_effect = ConnectionError("store down")

    page = await service([adapter], store=store).list_products(query="lamp")

    assert page.source == "dummyjson"
    assert page.attempted == ["dummyjson"]


@pytest.mark.asyncio
async def test_paging_is_validated():
    with pytest.raises(ValidationException):
        await service([]).list_products(limit=0)
    with pytest.raises(ValidationException):
        await service([]).list_products(offset=-1)


@pytest.mark.asyncio
async def test_response_shape():
    adapter = StubAdapter("dummyjson", products=[make_product("dummyjson_1", source="dummyjson")])

    body = (await service([adapter]).list_products(limit=10, offset=20)).to_response()

    assert body["pagination"] == {"limit": 10, "offset": 20, "total": 1, "hasMore": False}
    assert body["source"] == "dummyjson"
    assert body["data"][0]["id"] == "dummyjson_1"


# -- details -------------------------------------------------------------------

@pytest.mark.asyncio
async def test_product_goes_to_owning_adapter_first():
    ebay = StubAdapter("ebay", products=[make_product("ebay_9", source="ebay")])
    dummy = StubAdapter("dummyjson")

    product = await service([dummy, ebay]).get_product("ebay_9")

    assert product.id == "ebay_9"
    assert dummy.calls == []


@pytest.mark.asyncio
async def test_owner_failure_falls_back_to_resolver_without_retrying_owner():
    ebay = StubAdapter("ebay", error=UpstreamError("ebay", attempts=3, status_code_upstream=503))
    dummy = StubAdapter("dummyjson", products=[make_product("ebay_9", source="dummyjson")])

    product = await service([dummy, ebay]).get_product("ebay_9")

    assert product.source == "dummyjson"
    assert ebay.calls == [("details", "ebay_9")]


@pytest.mark.asyncio
async def test_owner_not_found_is_final():
    ebay = StubAdapter("ebay")
    dummy = StubAdapter("dummyjson")
    fakestore = StubAdapter("fakestore")

    with pytest.raises(NotFoundError):
        await service([dummy, fakestore, ebay]).get_product("ebay_123")

    assert ebay.calls == [("details", "ebay_123")]
    assert dummy.calls == []
    assert fakestore.calls == []


@pytest.mark.asyncio
async def test_unknown_product_raises_not_found():
    with pytest.raises(NotFoundError):
        await service([StubAdapter("dummyjson")]).get_product("dummyjson_404")
    with pytest.raises(NotFoundError):
        await service([]).get_product("  ")


@pytest.mark.asyncio
async def test_store_product_wins():
    stored = make_product("ebay_1", source="store")
    ebay = StubAdapter("ebay")

    product = await service([ebay], store=store_mock(product=stored)).get_product("ebay_1")

    assert product is stored
    assert ebay.calls == []


# -- categories ------------------------------------------------------------------

@pytest.mark.asyncio
async def test_categories_merge_demo_sources_without_duplicates():
    dummy = StubAdapter("dummyjson", categories=[
        Category(id="shared", name="Shared", source="dummyjson"),
        Category(id="dummyjson_beauty", name="Beauty", source="dummyjson"),
    ])
    fakestore = StubAdapter("fakestore", categories=[
        Category(id="shared", name="Shared again", source="fakestore"),
        Category(id="fakestore_electronics", name="Electronics", source="fakestore"),
    ])
    ebay = StubAdapter("ebay", categories=[Category(id="ebay_1", name="Ignored", source="ebay")])

    categories = await service([ebay, fakestore, dummy]).get_categories()

    assert [c.id for c in categories] == ["shared", "dummyjson_beauty", "fakestore_electronics"]
    assert categories[0].source == "dummyjson"
    assert ebay.calls == []


@pytest.mark.asyncio
async def test_store_categories_win():
    stored = [Category(id="store_books", name="Books", source="store")]
    dummy = StubAdapter("dummyjson")

    assert await service([dummy], store=store_mock(categories=stored)).get_categories() == stored
    assert dummy.calls == []
