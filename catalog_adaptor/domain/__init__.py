"""
Domain package for the Catalog Adaptor Service.

This package contains the canonical Product/Category schema and the value
objects describing vendor integrations. The domain layer is independent of
HTTP, caching and vendor specifics.
"""
