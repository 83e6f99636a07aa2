from enum import Enum
from typing import Any, Dict, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AuthType(str, Enum):
    """How requests to a vendor are authenticated."""
    OAUTH = "oauth"
    APIKEY = "apikey"
    PUBLIC = "public"


class RateLimitConfig(BaseModel):
    """Requests allowed per fixed window."""

    model_config = ConfigDict(frozen=True)

    requests: int = Field(default=100, gt=0)
    period_ms: int = Field(default=60_000, gt=0)


class AdapterDescriptor(BaseModel):
    """
    Static description of one vendor integration.

    Built once at process start from configuration and never mutated.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    base_url: str
    auth_type: AuthType = AuthType.PUBLIC
    credentials: Dict[str, Any] = Field(default_factory=dict)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    cache_ttl_ms: int = Field(default=5 * 60 * 1000, gt=0)
    api_key_header: str = "X-API-Key"
    extra_headers: Dict[str, str] = Field(default_factory=dict)

    @field_validator("name")
    @classmethod
    def lower_name(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def id_prefix(self) -> str:
        return f"{self.name}_"

    @property
    def cache_ttl_seconds(self) -> float:
        return self.cache_ttl_ms / 1000.0

    def with_overrides(self, overrides: Mapping[str, Any]) -> "AdapterDescriptor":
        """Return a copy with configured fields replaced."""
        if not overrides:
            return self
        data = self.model_dump()
        for key, value in overrides.items():
            if key == "rate_limit" and isinstance(value, Mapping):
                data["rate_limit"] = {**data["rate_limit"], **value}
            elif key in data:
                data[key] = value
        return AdapterDescriptor.model_validate(data)
