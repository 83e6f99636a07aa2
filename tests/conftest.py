"""Shared pytest fixtures for the catalog adaptor tests."""

import os

import pytest

from catalog_adaptor.core.config import Settings
from catalog_adaptor.core.logging import get_logger
from catalog_adaptor.infrastructure.cache import MemoryCache, TieredCache
from catalog_adaptor.infrastructure.error.handler import ErrorHandler
from tests.helpers import FakeClock, RecordingSleep


@pytest.fixture(autouse=True)
def isolated_flags(monkeypatch):
    """Keep ENABLE_<NAME> variables from the developer's shell out of tests."""
    for key in list(os.environ):
        if key.startswith("ENABLE_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        REDIS_URL=None,
        RAPIDAPI_KEY=None,
        EBAY_ACCESS_TOKEN=None,
        ETSY_API_KEY=None,
        ADAPTER_OVERRIDES={},
        DEFAULT_REGION=None,
    )


@pytest.fixture
def cache() -> TieredCache:
    return TieredCache(local=MemoryCache(default_ttl=60), default_ttl=60)


@pytest.fixture
def error_handler() -> ErrorHandler:
    return ErrorHandler(get_logger("tests.failures"))
