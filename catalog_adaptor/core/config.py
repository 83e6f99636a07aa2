from functools import lru_cache
from typing import Any, Dict, List, Optional
import os

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # API settings
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Catalog Adaptor Service"
    DEBUG: bool = False

    # CORS settings
    BACKEND_CORS_ORIGINS: List[str] = ["*"]

    # Logging settings
    LOG_LEVEL: str = "INFO"
    ENABLE_STRUCTURED_LOGGING: bool = True

    # Shared cache tier; unset means local-only caching
    REDIS_URL: Optional[str] = None
    REDIS_PREFIX: str = "catalog"
    REDIS_CONNECT_TIMEOUT: float = 2.0
    REDIS_SOCKET_TIMEOUT: float = 2.0
    CACHE_TTL_MS: int = 5 * 60 * 1000
    CACHE_FAILURE_THRESHOLD: int = 3
    CACHE_RESET_TIMEOUT: int = 30  # seconds before the shared tier is probed again

    # External API timeout settings
    HTTP_TIMEOUT: float = 10.0  # seconds, per attempt
    MAX_RETRIES: int = 3
    RETRY_BACKOFF_BASE_MS: int = 1000

    # Substituted when a vendor omits the field
    DEFAULT_RATING: float = 4.5
    DEFAULT_STOCK: int = 10
    DEFAULT_CURRENCY: str = "USD"

    # Vendor credentials
    EBAY_ACCESS_TOKEN: Optional[str] = None
    EBAY_APP_ID: Optional[str] = None
    EBAY_MARKETPLACE_ID: str = "EBAY_US"
    ETSY_API_KEY: Optional[str] = None
    RAPIDAPI_KEY: Optional[str] = None

    # Per-adapter descriptor overrides, e.g. {"ebay": {"rate_limit": {"requests": 10}}}
    ADAPTER_OVERRIDES: Dict[str, Dict[str, Any]] = {}

    # Resolution settings
    UNIVERSAL_FALLBACK: str = "dummyjson"
    DEFAULT_REGION: Optional[str] = None

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Any) -> List[str]:
        """Parse CORS origins from string or list."""
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    @field_validator("MAX_RETRIES")
    @classmethod
    def validate_retries(cls, v: int) -> int:
        if v < 1:
            raise ValueError("MAX_RETRIES must be at least 1")
        return v

    @property
    def retry_backoff_base(self) -> float:
        """Backoff base in seconds."""
        return self.RETRY_BACKOFF_BASE_MS / 1000.0


def load_env_file(env_file: str = ".env") -> None:
    """
    Load environment variables from specified .env file.

    Args:
        env_file: Path to the .env file. Defaults to ".env".
    """
    env_path = os.path.join(os.getcwd(), env_file)
    if os.path.exists(env_path):
        load_dotenv(env_path)


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings with caching for efficiency.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
