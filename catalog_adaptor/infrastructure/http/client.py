"""
Retrying HTTP execution path shared by every vendor adapter.

One logical call is up to ``max_retries`` attempts. Between attempts the
client sleeps ``backoff_base * 2 ** (attempt - 1)`` seconds, so with the
default one-second base the delays are 1s, 2s, 4s...
"""
import asyncio
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

import httpx
from pydantic import BaseModel, Field
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from catalog_adaptor.core.exceptions import MalformedResponse, NotFoundError, UpstreamError
from catalog_adaptor.core.logging import get_logger

logger = get_logger(__name__)

BeforeAttempt = Callable[[], None]


class RequestConfig(BaseModel):
    """Retry and timeout settings for one vendor."""

    max_retries: int = Field(default=3, ge=1)
    timeout: float = Field(default=10.0, gt=0)  # seconds, per attempt
    backoff_base: float = Field(default=1.0, gt=0)  # seconds


def _is_retryable(exc: BaseException) -> bool:
    # A malformed payload will not fix itself on retry
    return isinstance(exc, UpstreamError) and not isinstance(exc, MalformedResponse)


class RetryingHttpClient:
    """
    GET-and-decode-JSON with bounded retries and exponential backoff.

    Network errors, timeouts and non-2xx responses are retried. A 404 is
    reported as ``NotFoundError`` straight away, and an undecodable body as
    ``MalformedResponse``; neither is retried. An empty 2xx body decodes to
    None. When attempts run out the last failure is raised as
    ``UpstreamError`` with ``attempts`` set.
    """

    def __init__(
        self,
        source: str,
        config: Optional[RequestConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        """
        Initialize the client.

        Args:
            source: Adapter name used in errors and logs
            config: Retry and timeout settings
            client: Shared ``httpx.AsyncClient``; one is created if not given
            sleep: Coroutine used for backoff delays (injectable for tests)
        """
        self.source = source
        self.config = config or RequestConfig()
        self._client = client
        self._owns_client = client is None
        self._sleep = sleep

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(follow_redirects=True)
        return self._client

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def get_json(
        self,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        before_attempt: Optional[BeforeAttempt] = None
    ) -> Any:
        """
        Perform one logical GET and return the decoded JSON body.

        Args:
            url: Absolute URL
            params: Query parameters; ``None`` values are dropped
            headers: Request headers, including auth
            before_attempt: Called before every attempt; exceptions it
                raises abort the call without a network request

        Raises:
            NotFoundError: Vendor answered 404
            MalformedResponse: Body is not JSON
            UpstreamError: Every attempt failed
            RateLimited: Raised by ``before_attempt``
        """
        query = {k: v for k, v in (params or {}).items() if v is not None}
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.config.max_retries),
            wait=wait_exponential(multiplier=self.config.backoff_base, exp_base=2),
            retry=retry_if_exception(_is_retryable),
            sleep=self._sleep,
            reraise=True,
        )

        result: Any = None
        async for attempt in retrying:
            with attempt:
                attempt_number = attempt.retry_state.attempt_number
                if before_attempt is not None:
                    before_attempt()
                result = await self._attempt(url, query, headers or {}, attempt_number)
        return result

    async def _attempt(
        self,
        url: str,
        params: Dict[str, Any],
        headers: Dict[str, str],
        attempt_number: int
    ) -> Any:
        try:
            response = await self.client.get(
                url,
                params=params,
                headers=headers,
                timeout=httpx.Timeout(self.config.timeout)
            )
        except httpx.TimeoutException as e:
            logger.warning(
                f"Timeout calling {self.source} (attempt {attempt_number})",
                extra={"data": {"source": self.source, "url": url, "attempt": attempt_number}}
            )
            raise UpstreamError(
                self.source,
                detail=f"Request timed out after {self.config.timeout}s",
                attempts=attempt_number,
                original_exception=e
            ) from e
        except httpx.HTTPError as e:
            logger.warning(
                f"Network error calling {self.source} (attempt {attempt_number}): {str(e)}",
                extra={"data": {"source": self.source, "url": url, "attempt": attempt_number}}
            )
            raise UpstreamError(
                self.source,
                detail=f"Network error: {str(e)}",
                attempts=attempt_number,
                original_exception=e
            ) from e

        if response.status_code == 404:
            raise NotFoundError("Upstream resource", url, context={"source": self.source})

        if not response.is_success:
            logger.warning(
                f"{self.source} responded {response.status_code} (attempt {attempt_number})",
                extra={"data": {"source": self.source, "url": url, "status": response.status_code}}
            )
            raise UpstreamError(
                self.source,
                detail=f"HTTP {response.status_code} from {self.source}",
                attempts=attempt_number,
                status_code_upstream=response.status_code
            )

        if not response.content.strip():
            return None

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponse(
                self.source,
                detail="Response body is not valid JSON",
                context={"url": url}
            ) from e
