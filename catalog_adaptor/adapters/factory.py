import asyncio
from typing import Awaitable, Callable, Dict, List, Optional, Type

import httpx

from catalog_adaptor.adapters.base import BaseSourceAdapter
from catalog_adaptor.adapters.interfaces.normalizer import NormalizerDefaults
from catalog_adaptor.adapters.registry import AdaptorRegistry
from catalog_adaptor.core.config import Settings
from catalog_adaptor.core.exceptions import AdaptorConfigError, AdaptorNotFoundError
from catalog_adaptor.core.logging import get_logger
from catalog_adaptor.domain.models.descriptor import AdapterDescriptor
from catalog_adaptor.infrastructure.auth.headers import has_credentials
from catalog_adaptor.infrastructure.cache.tiered_cache import TieredCache
from catalog_adaptor.infrastructure.error.handler import ErrorHandler
from catalog_adaptor.infrastructure.http.client import RequestConfig, RetryingHttpClient

logger = get_logger(__name__)


class AdaptorFactory:
    """
    Factory for creating adaptor instances.

    Every adapter it builds shares one ``httpx.AsyncClient``, one
    ``TieredCache`` and one ``ErrorHandler``; each gets its own descriptor,
    rate limiter and retrying HTTP client.
    """

    def __init__(
        self,
        settings: Settings,
        cache: TieredCache,
        error_handler: ErrorHandler,
        http_client: Optional[httpx.AsyncClient] = None,
        registry: Optional[AdaptorRegistry] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        """
        Initialize the adaptor factory.

        Args:
            settings: Application settings (credentials, retry policy, defaults)
            cache: Cache shared by all adapters
            error_handler: Sink for out-of-band failure signals
            http_client: Shared HTTP client; each adapter creates its own if omitted
            registry: Adapter table; defaults to every bundled vendor
            sleep: Backoff sleep passed to every retrying client
        """
        self.settings = settings
        self.cache = cache
        self.error_handler = error_handler
        self.http_client = http_client
        self.registry = registry or AdaptorRegistry()
        self._sleep = sleep
        self.defaults = NormalizerDefaults(
            rating=settings.DEFAULT_RATING,
            stock=settings.DEFAULT_STOCK,
            currency=settings.DEFAULT_CURRENCY,
        )
        self.request_config = RequestConfig(
            max_retries=settings.MAX_RETRIES,
            timeout=settings.HTTP_TIMEOUT,
            backoff_base=settings.retry_backoff_base,
        )

    def _adaptor_class(self, adaptor_type: str) -> Type[BaseSourceAdapter]:
        adaptor_class = self.registry.get(adaptor_type)
        if not adaptor_class:
            raise AdaptorNotFoundError(
                f"Adaptor type '{adaptor_type}' not found in registry",
                context={"available": self.registry.list()}
            )
        return adaptor_class

    def describe(self, adaptor_type: str) -> AdapterDescriptor:
        """
        Build the descriptor for an adapter, applying ``ADAPTER_OVERRIDES``.

        Raises:
            AdaptorNotFoundError: If the adapter is not registered
            AdaptorConfigError: If the overrides produce an invalid descriptor
        """
        adaptor_class = self._adaptor_class(adaptor_type)
        descriptor = adaptor_class.describe(self.settings)
        overrides = self.settings.ADAPTER_OVERRIDES.get(descriptor.name, {})
        try:
            return descriptor.with_overrides(overrides)
        except ValueError as e:
            raise AdaptorConfigError(
                f"Invalid overrides for {descriptor.name} adaptor: {str(e)}",
                context={"adaptor": descriptor.name}
            ) from e

    def create_adaptor(self, adaptor_type: str) -> BaseSourceAdapter:
        """
        Create an adaptor instance of the specified type.

        Args:
            adaptor_type: Registered adapter name (e.g. 'dummyjson', 'ebay')

        Returns:
            A ready-to-use adapter

        Raises:
            AdaptorNotFoundError: If the adaptor type is not registered
            AdaptorConfigError: If the configuration is invalid
        """
        adaptor_class = self._adaptor_class(adaptor_type)
        descriptor = self.describe(adaptor_type)
        http = RetryingHttpClient(
            descriptor.name,
            config=self.request_config,
            client=self.http_client,
            sleep=self._sleep
        )
        adaptor = adaptor_class(
            descriptor,
            http=http,
            cache=self.cache,
            error_handler=self.error_handler,
            defaults=self.defaults
        )
        logger.info(
            f"Created {descriptor.name} adaptor",
            extra={"data": {
                "adaptor": descriptor.name,
                "auth_type": descriptor.auth_type.value,
                "rate_limit": descriptor.rate_limit.requests,
            }}
        )
        return adaptor

    def create_all(self) -> Dict[str, BaseSourceAdapter]:
        """
        Create every registered adapter whose credentials are configured.

        Vendors missing credentials are skipped with an info log so the
        service still starts with the public sources.
        """
        adaptors: Dict[str, BaseSourceAdapter] = {}
        for adaptor_type in self.registry.list():
            descriptor = self.describe(adaptor_type)
            if not has_credentials(descriptor):
                logger.info(f"Skipping {descriptor.name} adaptor: credentials not configured")
                continue
            adaptors[descriptor.name] = self.create_adaptor(adaptor_type)
        return adaptors

    def get_adaptor_types(self) -> List[str]:
        return self.registry.list()
