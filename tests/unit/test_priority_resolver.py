import pytest

from catalog_adaptor.core.exceptions import NotFoundError, UpstreamError
from catalog_adaptor.domain.models.resolution import ResolveContext
from catalog_adaptor.services.feature_flags import FeatureFlags
from catalog_adaptor.services.priority_resolver import CategoryNormalizer, PriorityConfig, PriorityResolver
from tests.helpers import StubAdapter, make_product


def laptop_config() -> PriorityConfig:
    return PriorityConfig(
        global_order=["y", "dummyjson"],
        regions={"US": ["z"]},
        categories={"laptops": ["x", "y", "z"]},
        synonyms=[("laptop", "laptops")],
    )


@pytest.mark.asyncio
async def test_disabled_and_empty_candidates_are_skipped():
    x = StubAdapter("x", products=[make_product("x_1", source="x")])
    y = StubAdapter("y", products=[])
    z = StubAdapter("z", products=[make_product(f"z_{i}", source="z") for i in range(3)])
    resolver = PriorityResolver(
        feature_flags=FeatureFlags(environ={"ENABLE_X": "false", "ENABLE_Y": "true", "ENABLE_Z": "true"}),
        config=laptop_config(),
    )

    resolution = await resolver.resolve({"x": x, "y": y, "z": z}, ResolveContext(region="US", category="laptops"))

    assert [p.id for p in resolution.result] == ["z_0", "z_1", "z_2"]
    assert resolution.source == "z"
    assert resolution.attempted == ["y", "z"]
    assert resolution.fallback_used is False
    assert x.calls == []


def test_priority_order_prepends_specific_tables_and_dedupes():
    resolver = PriorityResolver(feature_flags=FeatureFlags(environ={}), config=laptop_config())

    assert resolver.priority_order() == ["y", "dummyjson"]
    assert resolver.priority_order(region="us") == ["z", "y", "dummyjson"]
    assert resolver.priority_order(region="US", category="Gaming Laptops") == ["x", "y", "z", "dummyjson"]


def test_candidates_are_deterministic_and_skip_missing_adapters():
    resolver = PriorityResolver(feature_flags=FeatureFlags(environ={}))
    adapters = {name: StubAdapter(name) for name in ("fakestore", "ebay", "dummyjson", "etsy")}
    context = ResolveContext(region="IN", category="phones")

    first = resolver.candidates(adapters, context)

    assert first == ["ebay", "etsy", "fakestore", "dummyjson"]
    assert all(resolver.candidates(adapters, context) == first for _ in range(5))


def test_rapidapi_listing_vendors_lead_when_configured():
    names = ("dummyjson", "fakestore", "ebay", "etsy", "bestbuy", "amazon", "aliexpress", "realtime", "taobao")
    adapters = {name: StubAdapter(name) for name in names}
    resolver = PriorityResolver(feature_flags=FeatureFlags(environ={"ENABLE_REALTIME": "true", "ENABLE_TAOBAO": "true"}))

    assert resolver.candidates(adapters, ResolveContext())[:2] == ["realtime", "taobao"]
    assert {"realtime", "taobao"} <= set(resolver.candidates(adapters, ResolveContext(region="US", category="laptops")))


@pytest.mark.asyncio
async def test_realtime_answers_general_listing():
    realtime = StubAdapter("realtime", products=[make_product("realtime_1", source="realtime")])
    dummy = StubAdapter("dummyjson", products=[make_product("dummyjson_1", source="dummyjson")])
    resolver = PriorityResolver(feature_flags=FeatureFlags(environ={}))

    resolution = await resolver.resolve({"dummyjson": dummy, "realtime": realtime}, ResolveContext())

    assert resolution.source == "realtime"
    assert dummy.calls == []


def test_unset_flag_keeps_adapter():
    resolver = PriorityResolver(feature_flags=FeatureFlags(environ={"ENABLE_EBAY": "off"}))
    adapters = {name: StubAdapter(name) for name in ("ebay", "etsy", "dummyjson")}

    assert resolver.candidates(adapters, ResolveContext()) == ["etsy", "dummyjson"]


@pytest.mark.asyncio
async def test_failures_move_on_to_the_next_candidate():
    broken = StubAdapter("ebay", error=UpstreamError("ebay", attempts=3))
    working = StubAdapter("etsy", products=[make_product("etsy_1", source="etsy")])
    resolver = PriorityResolver(feature_flags=FeatureFlags(environ={}))

    resolution = await resolver.resolve({"ebay": broken, "etsy": working}, ResolveContext(query="mug"))

    assert resolution.source == "etsy"
    assert resolution.attempted == ["ebay", "etsy"]
    assert broken.calls == [("search", "mug", 20, 0)]


@pytest.mark.asyncio
async def test_fallback_answers_when_every_candidate_fails():
    broken = StubAdapter("ebay", error=RuntimeError("boom"))
    fallback = StubAdapter("dummyjson", products=[make_product("dummyjson_1", source="dummyjson")])
    config = PriorityConfig(global_order=["ebay"], regions={}, categories={})
    resolver = PriorityResolver(feature_flags=FeatureFlags(environ={}), config=config)

    resolution = await resolver.resolve({"ebay": broken, "dummyjson": fallback}, ResolveContext(query="lamp"))

    assert resolution.fallback_used is True
    assert resolution.source == "dummyjson"
    assert [p.id for p in resolution.result] == ["dummyjson_1"]


@pytest.mark.asyncio
async def test_fallback_is_not_called_twice():
    fallback = StubAdapter("dummyjson", products=[])
    resolver = PriorityResolver(feature_flags=FeatureFlags(environ={}))

    resolution = await resolver.resolve({"dummyjson": fallback}, ResolveContext(query="lamp"))

    assert resolution.result == []
    assert resolution.fallback_used is True
    assert len(fallback.calls) == 1


@pytest.mark.asyncio
async def test_total_failure_never_raises():
    adapters = {
        "ebay": StubAdapter("ebay", error=RuntimeError("down")),
        "dummyjson": StubAdapter("dummyjson", error=RuntimeError("down too")),
    }
    resolver = PriorityResolver(feature_flags=FeatureFlags(environ={}))

    listing = await resolver.resolve(adapters, ResolveContext(category="books"))
    details = await resolver.resolve(adapters, ResolveContext(product_id="ebay_1"))

    assert listing.result == []
    assert details.result is None
    assert details.fallback_used is True


@pytest.mark.asyncio
async def test_details_lookup_uses_first_adapter_that_finds_it():
    wanted = make_product("etsy_5", source="etsy")
    adapters = {
        "ebay": StubAdapter("ebay", error=NotFoundError("Product", "etsy_5")),
        "etsy": StubAdapter("etsy", products=[wanted]),
    }
    resolver = PriorityResolver(feature_flags=FeatureFlags(environ={}))

    resolution = await resolver.resolve(adapters, ResolveContext(product_id="etsy_5"))

    assert resolution.result == wanted
    assert resolution.source == "etsy"


@pytest.mark.asyncio
async def test_prefixed_category_reaches_every_vendor_bare():
    ebay = StubAdapter("ebay", products=[])
    fakestore = StubAdapter("fakestore", products=[make_product("fakestore_1", source="fakestore")])
    resolver = PriorityResolver(feature_flags=FeatureFlags(environ={}))

    await resolver.resolve({"ebay": ebay, "fakestore": fakestore}, ResolveContext(category="fakestore_electronics"))

    assert ebay.calls[0][1] == "electronics"
    assert fakestore.calls[0][1] == "electronics"


@pytest.mark.parametrize("raw,key", [
    ("Laptops", "laptops"),
    ("laptop", "laptops"),
    ("Smartphones", "phones"),
    ("Wireless Headphones", "headphones"),
    ("mens-shirts", "clothing"),
    ("beauty-skincare", "beauty"),
    ("Women's Fashion", "fashion"),
    ("Gardening", "garden"),
    ("furniture", "furniture"),
    ("", ""),
])
def test_category_normalization(raw, key):
    assert CategoryNormalizer(PriorityConfig()).normalize(raw) == key
