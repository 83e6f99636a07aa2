"""
Error handling package for the Catalog Adaptor Service.
Provides centralized error categorization and failure signalling.
"""

from catalog_adaptor.infrastructure.error.handler import (
    ErrorHandler,
    ErrorDetails,
    ErrorCategory,
    ErrorSeverity
)

__all__ = [
    "ErrorHandler",
    "ErrorDetails",
    "ErrorCategory",
    "ErrorSeverity",
]
