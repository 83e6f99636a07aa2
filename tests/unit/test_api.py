import json

import httpx
import pytest
from fastapi.testclient import TestClient

from catalog_adaptor.main import create_application
from catalog_adaptor.services.container import ServiceContainer
from catalog_adaptor.services.feature_flags import FeatureFlags
from tests.helpers import RecordingSleep

DUMMYJSON_PRODUCTS = [
    {"id": 1, "title": "Essence Mascara", "price": 9.99, "rating": 4.9, "brand": "Essence", "category": "beauty"},
    {"id": 2, "title": "Eyeshadow Palette", "price": 19.99, "rating": 3.3, "brand": "Glamour", "category": "beauty"},
]

# (host, path) -> body
VENDOR_ROUTES = {
    ("dummyjson.com", "/products/search"): {"products": DUMMYJSON_PRODUCTS},
    ("dummyjson.com", "/products"): {"products": DUMMYJSON_PRODUCTS},
    ("dummyjson.com", "/products/1"): DUMMYJSON_PRODUCTS[0],
    ("dummyjson.com", "/products/categories"): [{"slug": "beauty", "name": "Beauty"}],
    ("fakestoreapi.com", "/products/categories"): ["electronics", "jewelery", "men's clothing", "women's clothing"],
}


def vendor_handler(request: httpx.Request) -> httpx.Response:
    body = VENDOR_ROUTES.get((request.url.host, request.url.path))
    if body is None:
        return httpx.Response(404)
    return httpx.Response(200, content=json.dumps(body).encode(), headers={"Content-Type": "application/json"})


@pytest.fixture
def app(settings):
    container = ServiceContainer(
        settings,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(vendor_handler)),
        feature_flags=FeatureFlags(environ={}),
        sleep=RecordingSleep(),
    )
    return create_application(settings, container=container)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def test_basic_health(client):
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert "X-Correlation-ID" in response.headers


def test_correlation_id_is_echoed(client):
    response = client.get("/api/v1/health", headers={"X-Correlation-ID": "abc-123"})
    assert response.headers["X-Correlation-ID"] == "abc-123"


def test_detailed_health_lists_adapters(client):
    body = client.get("/api/v1/health/detailed").json()

    assert body["status"] == "ok"
    names = [dependency["name"] for dependency in body["dependencies"]]
    assert names == ["cache", "dummyjson", "fakestore"]


def test_search_returns_page_in_relevance_order(client):
    response = client.get("/api/v1/products", params={"query": "palette", "limit": 5})

    assert response.status_code == 200
    body = response.json()
    assert [p["id"] for p in body["data"]] == ["dummyjson_2", "dummyjson_1"]
    assert body["source"] == "dummyjson"
    assert body["pagination"] == {"limit": 5, "offset": 0, "total": 2, "hasMore": False}


def test_listing_filters_and_sort(client):
    response = client.get("/api/v1/products", params={"minRating": 4, "sort": "price_desc"})

    assert [p["id"] for p in response.json()["data"]] == ["dummyjson_1"]


def test_invalid_query_parameters_are_rejected(client):
    response = client.get("/api/v1/products", params={"limit": 0})

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "validation_error"


def test_product_details(client):
    response = client.get("/api/v1/products/dummyjson_1")

    assert response.status_code == 200
    assert response.json()["data"]["title"] == "Essence Mascara"


def test_unknown_product_is_404(client):
    response = client.get("/api/v1/products/dummyjson_999")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "not_found_error"


def test_categories_are_merged(client):
    ids = [c["id"] for c in client.get("/api/v1/categories").json()["data"]]

    assert ids[0] == "dummyjson_beauty"
    assert "fakestore_electronics" in ids


def test_feature_flags_can_be_toggled(client):
    assert client.get("/api/v1/admin/feature-flags").json()["data"]["dummyjson"] is True

    response = client.put("/api/v1/admin/feature-flags/ebay", json={"enabled": False})
    assert response.json()["data"] == {"name": "ebay", "enabled": False}

    refused = client.put("/api/v1/admin/feature-flags/dummyjson", json={"enabled": False})
    assert refused.status_code == 422


def test_requests_before_startup_get_503(app):
    test_client = TestClient(app)

    response = test_client.get("/api/v1/products")

    assert response.status_code == 503
