from typing import Dict, List, Mapping, Optional, Type

from catalog_adaptor.adapters.base import BaseSourceAdapter
from catalog_adaptor.adapters.implementations import ADAPTOR_IMPLEMENTATIONS
from catalog_adaptor.core.logging import get_logger

logger = get_logger(__name__)


class AdaptorRegistry:
    """
    Registry of available adaptor implementations.

    Maps adapter names to their implementing classes. The registry is a
    flat, explicit table: it is seeded from a mapping at construction and
    never discovers implementations on its own.
    """

    def __init__(self, adaptors: Optional[Mapping[str, Type[BaseSourceAdapter]]] = None):
        """
        Initialize the registry.

        Args:
            adaptors: Initial name to class table; defaults to every bundled vendor
        """
        self._adaptors: Dict[str, Type[BaseSourceAdapter]] = {}
        for name, adaptor_class in (ADAPTOR_IMPLEMENTATIONS if adaptors is None else adaptors).items():
            self.register(name, adaptor_class)
        logger.debug(f"Initialized AdaptorRegistry with {len(self._adaptors)} adaptors")

    def register(self, adaptor_type: str, adaptor_class: Type[BaseSourceAdapter]) -> None:
        """
        Register an adaptor implementation.

        Args:
            adaptor_type: Adapter name, also its id prefix
            adaptor_class: Class to instantiate for this adapter

        Raises:
            ValueError: If the name is invalid or already registered
        """
        if not adaptor_type or not isinstance(adaptor_type, str):
            raise ValueError("Adaptor type must be a non-empty string")

        if not isinstance(adaptor_class, type) or not issubclass(adaptor_class, BaseSourceAdapter):
            raise ValueError("Adaptor class must be a subclass of BaseSourceAdapter")

        adaptor_type = adaptor_type.lower()
        if adaptor_type in self._adaptors:
            raise ValueError(f"Adaptor type '{adaptor_type}' is already registered")

        self._adaptors[adaptor_type] = adaptor_class
        logger.debug(f"Registered adaptor type: {adaptor_type}")

    def get(self, adaptor_type: str) -> Optional[Type[BaseSourceAdapter]]:
        return self._adaptors.get((adaptor_type or "").lower())

    def list(self) -> List[str]:
        """List registered adapter names in registration order."""
        return list(self._adaptors.keys())

    def is_registered(self, adaptor_type: str) -> bool:
        return (adaptor_type or "").lower() in self._adaptors

    def clear(self) -> None:
        """
        Clear all registered adaptors.
        Primarily used for testing purposes.
        """
        self._adaptors.clear()
        logger.debug("Cleared all registered adaptors")
