import pytest
from pydantic import ValidationError

from catalog_adaptor.core.config import Settings


def test_defaults_match_retry_policy():
    settings = Settings(_env_file=None)

    assert settings.MAX_RETRIES == 3
    assert settings.HTTP_TIMEOUT == 10.0
    assert settings.retry_backoff_base == 1.0
    assert settings.UNIVERSAL_FALLBACK == "dummyjson"
    assert settings.DEFAULT_RATING == 4.5
    assert settings.DEFAULT_STOCK == 10


def test_values_come_from_environment(monkeypatch):
    monkeypatch.setenv("REDIS_URL", "redis://cache:6379/0")
    monkeypatch.setenv("RETRY_BACKOFF_BASE_MS", "250")
    monkeypatch.setenv("ADAPTER_OVERRIDES", '{"ebay": {"rate_limit": {"requests": 10}}}')

    settings = Settings(_env_file=None)

    assert settings.REDIS_URL == "redis://cache:6379/0"
    assert settings.retry_backoff_base == 0.25
    assert settings.ADAPTER_OVERRIDES == {"ebay": {"rate_limit": {"requests": 10}}}


def test_retries_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, MAX_RETRIES=0)


def test_cors_origins_accept_comma_separated_string():
    settings = Settings(_env_file=None, BACKEND_CORS_ORIGINS="https://a.test, https://b.test")
    assert settings.BACKEND_CORS_ORIGINS == ["https://a.test", "https://b.test"]
