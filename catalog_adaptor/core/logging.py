import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from catalog_adaptor.core.config import get_settings

# Context variable for request tracking
correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

# Vendor credentials can end up in error context; never write them out
REDACTED_KEYS = frozenset({"api_key", "access_token", "auth_token", "authorization", "x-rapidapi-key", "x-api-key"})

# Promoted from ``extra={"data": ...}`` to top-level fields so log search can filter on them
PROMOTED_KEYS = ("source", "operation", "event")


def redact(data: Any) -> Any:
    """Copy of ``data`` with credential-looking values masked, at any depth."""
    if isinstance(data, dict):
        return {
            key: "[REDACTED]" if str(key).lower() in REDACTED_KEYS else redact(value)
            for key, value in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [redact(item) for item in data]
    return data


class StructuredLogFormatter(logging.Formatter):
    """
    JSON formatter for the catalog service.

    Every record carries timestamp, level, logger and correlation id.
    Payloads passed as ``extra={"data": {...}}`` are redacted and nested
    under ``data``; the adapter name and operation, when present, are also
    lifted to the top level.
    """

    def __init__(self, service: str = "catalog-adaptor"):
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "service": self.service,
            "message": record.getMessage(),
            "logger": record.name,
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        corr_id = getattr(record, "correlation_id", None) or correlation_id.get()
        if corr_id:
            log_data["correlation_id"] = corr_id

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info)
            }

        data = getattr(record, "data", None)
        if isinstance(data, dict) and data:
            safe = redact(data)
            for key in PROMOTED_KEYS:
                if key in safe:
                    log_data[key] = safe[key]
            log_data["data"] = safe

        return json.dumps(log_data, default=str)


class CorrelationIdFilter(logging.Filter):
    """Injects the current correlation ID into every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id.get()
        return True


def configure_logging() -> None:
    """
    Configure application-wide logging.

    JSON lines on stdout when ``ENABLE_STRUCTURED_LOGGING`` is set, a
    readable single-line format otherwise. Vendor HTTP chatter from httpx
    is kept at WARNING so per-attempt retry logs stay readable.
    """
    settings = get_settings()
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
    root_logger.setLevel(log_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(CorrelationIdFilter())
    if settings.ENABLE_STRUCTURED_LOGGING:
        handler.setFormatter(StructuredLogFormatter(service=settings.PROJECT_NAME))
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)-7s %(name)s [%(correlation_id)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))
    root_logger.addHandler(handler)

    for noisy in ("uvicorn.access", "httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str, **extra: Any) -> logging.Logger:
    """
    Get a logger that stamps records with the correlation ID.

    Args:
        name: Logger name, typically the module name
        **extra: Fields merged into every record's ``data`` payload,
            e.g. ``get_logger(__name__, source="ebay")``

    Returns:
        logging.Logger: Logger instance
    """
    logger = logging.getLogger(name)

    if not any(isinstance(f, CorrelationIdFilter) for f in logger.filters):
        logger.addFilter(CorrelationIdFilter())

    if extra:
        class ContextFilter(logging.Filter):
            def filter(self, record: logging.LogRecord) -> bool:
                data = getattr(record, "data", None)
                record.data = {**extra, **data} if isinstance(data, dict) else dict(extra)
                return True

        logger.addFilter(ContextFilter())

    return logger


def set_correlation_id(corr_id: Optional[str] = None) -> str:
    """
    Set the correlation ID for the current context.

    Args:
        corr_id: Correlation ID to set. If None, a new UUID is generated.

    Returns:
        str: The correlation ID that was set
    """
    corr_id = corr_id or str(uuid.uuid4())
    correlation_id.set(corr_id)
    return corr_id
