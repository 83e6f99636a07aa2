import os
import threading
from typing import Dict, FrozenSet, Iterable, Mapping, Optional

from catalog_adaptor.core.logging import get_logger

logger = get_logger(__name__)

ALWAYS_ON: FrozenSet[str] = frozenset({"dummyjson", "fakestore"})

# Adapters the original deployment could toggle through ENABLE_<NAME>
KNOWN_FLAGS = (
    "ebay", "bestbuy", "etsy", "flipkart", "lazada", "shopee", "tokopedia",
    "mercadolibre", "olx", "digikey", "octopart", "dummyjson", "aliexpress",
    "amazon", "fakestore", "realtime", "taobao",
)

_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off"}


class FeatureFlags:
    """
    Per-adapter enablement.

    A flag is a tri-state: True, False or None (not configured). Only an
    explicit False removes an adapter from resolution. Values come from a
    runtime override when one was set through ``update``, otherwise from
    ``ENABLE_<NAME>`` in the environment, read on every call so a changed
    environment takes effect without a restart.
    """

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        always_on: Iterable[str] = ALWAYS_ON,
        known: Iterable[str] = KNOWN_FLAGS
    ):
        self._environ = environ if environ is not None else os.environ
        self._always_on = frozenset(name.lower() for name in always_on)
        self._known = tuple(name.lower() for name in known)
        self._overrides: Dict[str, bool] = {}
        self._lock = threading.Lock()

    def _from_env(self, name: str) -> Optional[bool]:
        raw = self._environ.get(f"ENABLE_{name.upper()}")
        if raw is None:
            return None
        value = raw.strip().lower()
        if value in _TRUE:
            return True
        if value in _FALSE:
            return False
        logger.warning(f"Ignoring unrecognised value for ENABLE_{name.upper()}: {raw!r}")
        return None

    def is_enabled(self, name: str) -> Optional[bool]:
        name = name.lower()
        if name in self._always_on:
            return True
        with self._lock:
            if name in self._overrides:
                return self._overrides[name]
        return self._from_env(name)

    def is_excluded(self, name: str) -> bool:
        return self.is_enabled(name) is False

    def update(self, name: str, enabled: bool) -> None:
        """
        Set a runtime override for one adapter.

        Raises:
            ValueError: If the adapter is always on and ``enabled`` is False
        """
        name = name.lower()
        if name in self._always_on and not enabled:
            raise ValueError(f"'{name}' is always enabled")
        with self._lock:
            self._overrides[name] = bool(enabled)
        logger.info(f"Feature flag {name} set to {bool(enabled)}", extra={"data": {"flag": name}})

    def clear_override(self, name: str) -> None:
        with self._lock:
            self._overrides.pop(name.lower(), None)

    def snapshot(self, names: Iterable[str] = ()) -> Dict[str, Optional[bool]]:
        """Current value of every known, overridden or requested flag."""
        with self._lock:
            overridden = list(self._overrides)
        ordered = list(dict.fromkeys([*self._known, *overridden, *(n.lower() for n in names)]))
        return {name: self.is_enabled(name) for name in ordered}
