"""
Adapters package for the Catalog Adaptor Service.

This package contains components for integrating with product-catalog vendors:
- Abstract interfaces that define the contracts for adapters
- Concrete implementations for specific vendors
- Factory and registry for managing adapter instances
"""
