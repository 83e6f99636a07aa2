from fastapi import status
from typing import Any, Dict, Optional, Union


class APIException(Exception):
    """
    Base exception for API errors.

    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail: str = "An unexpected error occurred",
        code: str = "internal_error",
        context: Optional[Dict[str, Any]] = None
    ):
        self.status_code = status_code
        self.detail = detail
        self.code = code
        self.context = context or {}
        super().__init__(self.detail)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for consistent response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.detail,
                "status_code": self.status_code,
                "context": self.context
            }
        }


class IntegrationException(APIException):
    """Exception raised when an external API integration fails."""

    def __init__(
        self,
        detail: str = "External API integration error",
        code: str = "integration_error",
        status_code: int = status.HTTP_502_BAD_GATEWAY,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        super().__init__(status_code=status_code, detail=detail, code=code, context=context)
        self.original_exception = original_exception

        # Add original exception info to context if available
        if original_exception and self.context is not None:
            self.context["original_error"] = str(original_exception)


class UpstreamError(IntegrationException):
    """A vendor call failed (network, timeout, non-2xx) after exhausting retries."""

    def __init__(
        self,
        source: str,
        detail: str = "Upstream vendor request failed",
        attempts: int = 0,
        status_code_upstream: Optional[int] = None,
        code: str = "upstream_error",
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        merged_context = {"source": source, "attempts": attempts}
        if status_code_upstream is not None:
            merged_context["upstream_status"] = status_code_upstream
        if context:
            merged_context.update(context)

        super().__init__(
            detail=detail,
            code=code,
            context=merged_context,
            original_exception=original_exception
        )
        self.source = source
        self.attempts = attempts
        self.upstream_status = status_code_upstream


class MalformedResponse(UpstreamError):
    """A vendor answered, but with a payload whose shape cannot be normalized."""

    def __init__(
        self,
        source: str,
        detail: str = "Unexpected vendor payload shape",
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            source=source,
            detail=detail,
            code="malformed_response",
            context=context
        )


class ValidationException(APIException):
    """Exception raised when data validation fails."""

    def __init__(
        self,
        detail: str = "Validation error",
        code: str = "validation_error",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        merged_context = {"field": field} if field else {}
        if context:
            merged_context.update(context)

        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            code=code,
            context=merged_context
        )


class NotFoundError(APIException):
    """Exception raised when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: Union[str, int],
        detail: Optional[str] = None,
        code: str = "not_found_error",
        context: Optional[Dict[str, Any]] = None
    ):
        if detail is None:
            detail = f"{resource_type} with id '{resource_id}' not found"

        merged_context = {
            "resource_type": resource_type,
            "resource_id": str(resource_id)
        }
        if context:
            merged_context.update(context)

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            code=code,
            context=merged_context
        )


class RateLimitError(APIException):
    """Exception raised when rate limits are exceeded for external APIs."""

    def __init__(
        self,
        detail: str = "Rate limit exceeded",
        code: str = "rate_limit_error",
        retry_after: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        merged_context = {}
        if retry_after is not None:
            merged_context["retry_after"] = retry_after

        if context:
            merged_context.update(context)

        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=detail,
            code=code,
            context=merged_context
        )
        self.retry_after = retry_after


class RateLimited(RateLimitError):
    """An adapter's own request quota is exhausted; no network call was made."""

    def __init__(self, source: str, retry_after: Optional[int] = None):
        super().__init__(
            detail=f"Rate limit exceeded for {source}",
            code="rate_limited",
            retry_after=retry_after,
            context={"source": source}
        )
        self.source = source


class CacheError(APIException):
    """Raised by a cache tier when its backing store cannot be used."""

    def __init__(self, detail: str = "Cache operation failed", context: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=detail,
            code="cache_error",
            context=context
        )


class AdaptorConfigError(APIException):
    """Raised when an adaptor descriptor or its configuration is invalid."""

    def __init__(self, detail: str = "Invalid adaptor configuration", context: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            code="adaptor_config_error",
            context=context
        )


class AdaptorNotFoundError(APIException):
    """Raised when an adaptor name is not in the registry."""

    def __init__(self, detail: str = "Adaptor not found", context: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            code="adaptor_not_found",
            context=context
        )
