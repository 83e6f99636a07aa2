"""
Shared machinery for vendor adapters.

Each vendor is one subclass of ``BaseSourceAdapter`` that supplies its
descriptor (``describe``), its normalizer and four fetch hooks. The base
class owns everything else: id prefixes, argument checks, the cache, the
rate limiter, the retrying HTTP call and the empty-list-on-failure contract
for listings.
"""
from abc import abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Type
from urllib.parse import quote

from catalog_adaptor.adapters.interfaces.normalizer import Normalizer, NormalizerDefaults
from catalog_adaptor.adapters.interfaces.source import ProductSourceAdapter
from catalog_adaptor.core.config import Settings
from catalog_adaptor.core.exceptions import (
    MalformedResponse,
    NotFoundError,
    RateLimited,
    UpstreamError,
    ValidationException,
)
from catalog_adaptor.core.logging import get_logger
from catalog_adaptor.domain.models.category import Category
from catalog_adaptor.domain.models.descriptor import AdapterDescriptor
from catalog_adaptor.domain.models.product import Product
from catalog_adaptor.domain.models.resolution import GENERAL_CATEGORY
from catalog_adaptor.infrastructure.auth.headers import build_auth_headers
from catalog_adaptor.infrastructure.cache.tiered_cache import TieredCache, build_cache_key
from catalog_adaptor.infrastructure.error.handler import ErrorHandler
from catalog_adaptor.infrastructure.http.client import RetryingHttpClient
from catalog_adaptor.infrastructure.rate_limit.limiter import RateLimiter

logger = get_logger(__name__)


class BaseSourceAdapter(ProductSourceAdapter):
    """
    Base class for vendor adapters.

    Composes an ``AdapterDescriptor``, a ``RetryingHttpClient``, a
    ``Normalizer``, a ``RateLimiter`` and a ``TieredCache``. Subclasses
    implement the ``fetch_*`` hooks, which receive un-prefixed ids and may
    raise freely; the public methods apply caching and failure handling.
    """

    name: str = ""
    normalizer_class: Type[Normalizer] = Normalizer

    def __init__(
        self,
        descriptor: AdapterDescriptor,
        http: RetryingHttpClient,
        cache: TieredCache,
        error_handler: ErrorHandler,
        defaults: Optional[NormalizerDefaults] = None,
        rate_limiter: Optional[RateLimiter] = None
    ):
        self.descriptor = descriptor
        self.name = descriptor.name
        self.http = http
        self.cache = cache
        self.error_handler = error_handler
        self.normalizer = self.normalizer_class(self.name, defaults)
        self.rate_limiter = rate_limiter or RateLimiter(self.name, descriptor.rate_limit)

    @classmethod
    @abstractmethod
    def describe(cls, settings: Settings) -> AdapterDescriptor:
        """Build this vendor's descriptor from settings."""
        pass

    # -- hooks ---------------------------------------------------------

    @abstractmethod
    async def fetch_categories(self) -> List[Category]:
        pass

    @abstractmethod
    async def fetch_search(self, query: str, limit: int, offset: int) -> List[Product]:
        pass

    @abstractmethod
    async def fetch_category(self, category_id: str, limit: int, offset: int) -> List[Product]:
        pass

    @abstractmethod
    async def fetch_details(self, product_id: str) -> Optional[Product]:
        pass

    async def fetch_general(self, limit: int, offset: int) -> List[Product]:
        """Browse-all listing; vendors without one list nothing."""
        return []

    # -- helpers -------------------------------------------------------

    def strip_prefix(self, value: str) -> str:
        value = (value or "").strip()
        prefix = self.descriptor.id_prefix
        if value.startswith(prefix):
            return value[len(prefix):]
        return value

    @staticmethod
    def segment(value: Any) -> str:
        """Quote a caller-supplied value for use as one URL path segment."""
        return quote(str(value), safe="")

    def url(self, path: str) -> str:
        return f"{self.descriptor.base_url}/{path.lstrip('/')}"

    async def get_json(
        self,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> Any:
        """
        One logical vendor call: auth headers, per-attempt quota check, retries.
        """
        request_headers = build_auth_headers(self.descriptor)
        if headers:
            request_headers.update(headers)
        return await self.http.get_json(
            self.url(path),
            params=params,
            headers=request_headers,
            before_attempt=self.rate_limiter.acquire
        )

    def items(self, data: Any, *keys: str, required: bool = True) -> List[Any]:
        """
        Extract the list of entries from a vendor payload.

        Args:
            data: Decoded JSON body
            keys: Candidate keys tried in order; none means ``data`` itself is the list
            required: Raise if no candidate key holds a list

        Raises:
            MalformedResponse: If the payload does not have the expected shape
        """
        if not keys:
            if isinstance(data, list):
                return data
            raise MalformedResponse(self.name, detail="Expected a JSON array")

        if isinstance(data, Mapping):
            for key in keys:
                value = data.get(key)
                if isinstance(value, list):
                    return value
            if not required:
                return []

        raise MalformedResponse(
            self.name,
            detail=f"Expected a list under one of {list(keys)}",
            context={"keys": list(keys)}
        )

    def mapping(self, data: Any, *keys: str) -> Mapping[str, Any]:
        """Return ``data`` (or the first mapping found under ``keys``) as a mapping."""
        if isinstance(data, Mapping):
            for key in keys:
                value = data.get(key)
                if isinstance(value, Mapping):
                    return value
            return data
        raise MalformedResponse(self.name, detail="Expected a JSON object")

    @staticmethod
    def _check_page(limit: int, offset: int) -> None:
        if not isinstance(limit, int) or limit <= 0:
            raise ValidationException("limit must be greater than 0", field="limit")
        if not isinstance(offset, int) or offset < 0:
            raise ValidationException("offset must not be negative", field="offset")

    async def _cached_products(
        self,
        operation: str,
        params: Dict[str, Any],
        loader: Callable[[], Awaitable[List[Product]]]
    ) -> List[Product]:
        key = build_cache_key(f"{self.name}:{operation}", params)
        cached = await self.cache.get(key)
        if cached is not None:
            return [Product.model_validate(item) for item in cached]

        products = await loader()
        if products:
            await self.cache.set(
                key,
                [product.to_response() for product in products],
                self.descriptor.cache_ttl_seconds
            )
        return products

    async def _listing(
        self,
        operation: str,
        params: Dict[str, Any],
        loader: Callable[[], Awaitable[List[Product]]]
    ) -> List[Product]:
        try:
            return await self._cached_products(operation, params, loader)
        except Exception as e:
            self.error_handler.handle_error(e, self.name, operation, context=params)
            return []

    # -- contract ------------------------------------------------------

    async def get_categories(self) -> List[Category]:
        key = build_cache_key(f"{self.name}:categories")
        try:
            cached = await self.cache.get(key)
            if cached is not None:
                return [Category.model_validate(item) for item in cached]

            categories = await self.fetch_categories()
            if categories:
                await self.cache.set(
                    key,
                    [category.to_response() for category in categories],
                    self.descriptor.cache_ttl_seconds
                )
            return categories
        except Exception as e:
            self.error_handler.handle_error(e, self.name, "categories")
            return []

    async def search_products(self, query: str, limit: int = 20, offset: int = 0) -> List[Product]:
        self._check_page(limit, offset)
        query = (query or "").strip()
        if not query:
            return []
        return await self._listing(
            "search",
            {"query": query, "limit": limit, "offset": offset},
            lambda: self.fetch_search(query, limit, offset)
        )

    async def get_products_by_category(
        self,
        category_id: str,
        limit: int = 20,
        offset: int = 0
    ) -> List[Product]:
        self._check_page(limit, offset)
        raw_category = self.strip_prefix(category_id)
        if not raw_category:
            return []

        if raw_category.lower() == GENERAL_CATEGORY:
            return await self._listing(
                "general",
                {"limit": limit, "offset": offset},
                lambda: self.fetch_general(limit, offset)
            )

        return await self._listing(
            "category",
            {"category": raw_category, "limit": limit, "offset": offset},
            lambda: self.fetch_category(raw_category, limit, offset)
        )

    async def get_product_details(self, product_id: str) -> Product:
        raw_id = self.strip_prefix(product_id)
        canonical_id = f"{self.descriptor.id_prefix}{raw_id}"
        if not raw_id:
            raise NotFoundError("Product", product_id, context={"source": self.name})

        key = build_cache_key(f"{self.name}:details", {"id": raw_id})
        cached = await self.cache.get(key)
        if cached is not None:
            return Product.model_validate(cached)

        try:
            product = await self.fetch_details(raw_id)
        except NotFoundError:
            raise NotFoundError("Product", canonical_id, context={"source": self.name}) from None
        except (UpstreamError, RateLimited) as e:
            self.error_handler.handle_error(e, self.name, "details", context={"product_id": canonical_id})
            raise

        if product is None:
            raise NotFoundError("Product", canonical_id, context={"source": self.name})

        await self.cache.set(key, product.to_response(), self.descriptor.cache_ttl_seconds)
        return product

    async def health(self) -> Dict[str, Any]:
        window = self.rate_limiter.snapshot()
        return {
            "name": self.name,
            "base_url": self.descriptor.base_url,
            "auth_type": self.descriptor.auth_type.value,
            "rate_limit": {"count": window.count, "limit": window.limit, "period_ms": window.period_ms},
            "failures": self.error_handler.failure_count(self.name),
        }
