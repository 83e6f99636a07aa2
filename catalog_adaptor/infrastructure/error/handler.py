"""
Error handling module for the Catalog Adaptor Service.

Listing operations return empty lists instead of raising. The handler here
is the out-of-band channel that keeps those failures visible: every
swallowed error is categorized, logged, counted per source and handed to
any registered listeners, so "zero results" and "adapter failed" can be
told apart without changing any return value.
"""
import logging
import threading
import traceback
from collections import Counter
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

import httpx
from pydantic import BaseModel, Field

from catalog_adaptor.core.exceptions import (
    CacheError,
    MalformedResponse,
    NotFoundError,
    RateLimited,
    UpstreamError,
    ValidationException,
)


class ErrorCategory(str, Enum):
    """Categorization of errors for processing and reporting."""
    RATE_LIMIT = "rate_limit"
    CONNECTION = "connection"
    TIMEOUT = "timeout"
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    MALFORMED_RESPONSE = "malformed_response"
    EXTERNAL_API = "external_api"
    CACHE = "cache"
    INTERNAL = "internal"
    UNKNOWN = "unknown"


class ErrorSeverity(str, Enum):
    """Severity levels for errors."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorDetails(BaseModel):
    """Structured error details for consistency in logging and reporting."""
    timestamp: datetime
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    source: str
    operation: Optional[str] = None
    error_code: Optional[str] = None
    http_status_code: Optional[int] = None
    context: Dict[str, Any] = Field(default_factory=dict)
    stacktrace: Optional[str] = None
    should_notify: bool = False


ErrorListener = Callable[[ErrorDetails], None]


class ErrorHandler:
    """
    Central error processing class that handles error categorization,
    logging, counting and listener notification.
    """

    # Checked in order; first isinstance match wins, so subclasses come first
    exception_map: List[Tuple[Type[BaseException], ErrorCategory, ErrorSeverity]] = [
        (RateLimited, ErrorCategory.RATE_LIMIT, ErrorSeverity.LOW),
        (MalformedResponse, ErrorCategory.MALFORMED_RESPONSE, ErrorSeverity.MEDIUM),
        (UpstreamError, ErrorCategory.EXTERNAL_API, ErrorSeverity.MEDIUM),
        (NotFoundError, ErrorCategory.RESOURCE_NOT_FOUND, ErrorSeverity.LOW),
        (ValidationException, ErrorCategory.VALIDATION, ErrorSeverity.LOW),
        (CacheError, ErrorCategory.CACHE, ErrorSeverity.MEDIUM),
        (httpx.TimeoutException, ErrorCategory.TIMEOUT, ErrorSeverity.MEDIUM),
        (httpx.TransportError, ErrorCategory.CONNECTION, ErrorSeverity.MEDIUM),
    ]

    def __init__(
        self,
        logger: logging.Logger,
        notify_callback: Optional[ErrorListener] = None
    ):
        """
        Initialize the error handler.

        Args:
            logger: Logger instance for error logging
            notify_callback: Optional callback for high-severity errors
        """
        self.logger = logger
        self.notify_callback = notify_callback
        self._listeners: List[ErrorListener] = []
        self._counts: Counter = Counter()
        self._last_error: Dict[str, ErrorDetails] = {}
        self._lock = threading.Lock()

    def add_listener(self, listener: ErrorListener) -> None:
        """Register a callable invoked with every handled error."""
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: ErrorListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def handle_error(
        self,
        exception: BaseException,
        source: str,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ) -> ErrorDetails:
        """
        Process an error that will not be propagated to the caller.

        Args:
            exception: The exception that occurred
            source: Adapter or component name
            operation: Operation that failed, e.g. "search"
            context: Additional context about the error

        Returns:
            ErrorDetails: Structured details about the error
        """
        error_details = self.categorize_error(exception, source, operation, context or {})

        with self._lock:
            self._counts[(source, error_details.category.value)] += 1
            self._last_error[source] = error_details
            listeners = list(self._listeners)

        self.log_error(error_details)

        for listener in listeners:
            try:
                listener(error_details)
            except Exception as e:
                self.logger.error(f"Error listener failed: {str(e)}")

        if self.should_notify(error_details):
            error_details.should_notify = True
            self.notify_error(error_details)

        return error_details

    def categorize_error(
        self,
        exception: BaseException,
        source: str,
        operation: Optional[str],
        context: Dict[str, Any]
    ) -> ErrorDetails:
        """
        Categorize an error based on the exception type and build error details.
        """
        category = ErrorCategory.UNKNOWN
        severity = ErrorSeverity.HIGH

        for exc_type, mapped_category, mapped_severity in self.exception_map:
            if isinstance(exception, exc_type):
                category, severity = mapped_category, mapped_severity
                break

        error_code = getattr(exception, "code", None)
        http_status_code = getattr(exception, "upstream_status", None)
        if http_status_code is not None and http_status_code >= 500:
            severity = ErrorSeverity.HIGH

        merged_context = dict(getattr(exception, "context", None) or {})
        merged_context.update(context)

        stacktrace = None
        if exception.__traceback__ is not None and category == ErrorCategory.UNKNOWN:
            stacktrace = "".join(traceback.format_exception(type(exception), exception, exception.__traceback__))

        return ErrorDetails(
            timestamp=datetime.now(timezone.utc),
            category=category,
            severity=severity,
            message=str(exception),
            source=source,
            operation=operation,
            error_code=error_code if isinstance(error_code, str) else None,
            http_status_code=http_status_code,
            context=merged_context,
            stacktrace=stacktrace,
        )

    def should_notify(self, error_details: ErrorDetails) -> bool:
        return error_details.severity in (ErrorSeverity.HIGH, ErrorSeverity.CRITICAL)

    def log_error(self, error_details: ErrorDetails) -> None:
        """
        Log error details at the appropriate level.
        """
        log_data = {
            "event": "adapter_failure",
            "category": error_details.category.value,
            "severity": error_details.severity.value,
            "source": error_details.source,
        }
        if error_details.operation:
            log_data["operation"] = error_details.operation
        if error_details.error_code:
            log_data["error_code"] = error_details.error_code
        if error_details.http_status_code:
            log_data["http_status_code"] = error_details.http_status_code
        if error_details.context:
            log_data["context"] = error_details.context

        message = f"{error_details.source} {error_details.operation or 'call'} failed: {error_details.message}"
        extra = {"data": log_data}

        if error_details.severity == ErrorSeverity.CRITICAL:
            self.logger.critical(message, extra=extra)
        elif error_details.severity == ErrorSeverity.HIGH:
            self.logger.error(message, extra=extra)
            if error_details.stacktrace:
                self.logger.error(f"Stacktrace:\n{error_details.stacktrace}")
        elif error_details.severity == ErrorSeverity.MEDIUM:
            self.logger.warning(message, extra=extra)
        else:
            self.logger.info(message, extra=extra)

    def notify_error(self, error_details: ErrorDetails) -> None:
        """
        Send error notifications via the configured callback.
        """
        if self.notify_callback:
            try:
                self.notify_callback(error_details)
            except Exception as e:
                # Log but don't raise if notification itself fails
                self.logger.error(
                    f"Failed to send error notification: {str(e)}",
                    extra={"data": {"error_details": error_details.model_dump(mode="json")}}
                )

    def failure_count(self, source: str, category: Optional[ErrorCategory] = None) -> int:
        """Number of handled errors for a source, optionally for one category."""
        with self._lock:
            if category is not None:
                return self._counts[(source, category.value)]
            return sum(n for (src, _), n in self._counts.items() if src == source)

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            by_source: Dict[str, Dict[str, int]] = {}
            for (source, category), n in sorted(self._counts.items()):
                by_source.setdefault(source, {})[category] = n
            last = {
                source: {
                    "category": details.category.value,
                    "message": details.message,
                    "timestamp": details.timestamp.isoformat(),
                }
                for source, details in self._last_error.items()
            }
        return {"failures": by_source, "last_error": last}

    def reset(self) -> None:
        with self._lock:
            self._counts.clear()
            self._last_error.clear()
