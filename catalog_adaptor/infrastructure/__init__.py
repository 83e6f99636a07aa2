"""Infrastructure layer for the Catalog Adaptor Service."""

__version__ = "0.1.0"
