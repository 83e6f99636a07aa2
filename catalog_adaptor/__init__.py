"""
Catalog Adaptor Service - product catalog aggregation over external marketplaces.

This package integrates with many vendor product APIs, normalizes their
responses into one schema, rate-limits and caches vendor calls, and picks
which vendor answers each request with deterministic priority fallback.
"""

__version__ = "0.1.0"
