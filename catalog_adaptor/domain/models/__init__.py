"""
Domain models package for the Catalog Adaptor Service.

These are the canonical shapes every vendor integration normalizes into,
plus the descriptors and request contexts that drive adapter resolution.
"""

from catalog_adaptor.domain.models.category import Category
from catalog_adaptor.domain.models.descriptor import AdapterDescriptor, AuthType, RateLimitConfig
from catalog_adaptor.domain.models.product import Availability, AvailabilityStatus, Price, Product
from catalog_adaptor.domain.models.resolution import GENERAL_CATEGORY, Operation, Resolution, ResolveContext

__all__ = [
    "AdapterDescriptor",
    "AuthType",
    "Availability",
    "AvailabilityStatus",
    "Category",
    "GENERAL_CATEGORY",
    "Operation",
    "Price",
    "Product",
    "RateLimitConfig",
    "Resolution",
    "ResolveContext",
]
