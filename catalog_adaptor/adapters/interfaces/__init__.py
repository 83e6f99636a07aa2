"""
Interfaces package for the Catalog Adaptor Service.

This package contains the abstract contracts every vendor integration and
cache tier implements, plus the shared payload normalizer.
"""

from .source import ProductSourceAdapter
from .normalizer import Normalizer, NormalizerDefaults
from .cache import CacheStrategy
from .document_store import DocumentStore

__all__ = [
    'ProductSourceAdapter',
    'Normalizer',
    'NormalizerDefaults',
    'CacheStrategy',
    'DocumentStore',
]
