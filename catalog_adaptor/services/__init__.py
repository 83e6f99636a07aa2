"""
Services package for the Catalog Adaptor Service.

This package contains the classes that orchestrate catalog reads: feature
flags, the priority resolver that chooses vendors, the catalog service the
API calls, and the container that owns their lifecycle.
"""

from catalog_adaptor.services.catalog_service import CatalogService, ProductFilters, ProductPage
from catalog_adaptor.services.container import ServiceContainer
from catalog_adaptor.services.feature_flags import FeatureFlags
from catalog_adaptor.services.priority_resolver import CategoryNormalizer, PriorityConfig, PriorityResolver
from catalog_adaptor.services.relevance import SortOrder, relevance_score, sort_products

__all__ = [
    "CatalogService",
    "CategoryNormalizer",
    "FeatureFlags",
    "PriorityConfig",
    "PriorityResolver",
    "ProductFilters",
    "ProductPage",
    "ServiceContainer",
    "SortOrder",
    "relevance_score",
    "sort_products",
]
