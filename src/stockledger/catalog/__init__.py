"""Catalog resolver factory.

Provides get_catalog() / set_catalog() to swap implementations. The default
is an empty InMemoryCatalog; deployments install an adapter over the real
product catalog at startup.
"""

from stockledger.catalog.memory_adapter import InMemoryCatalog
from stockledger.catalog.port import CatalogResolver

_current_catalog: CatalogResolver | None = None


def get_catalog() -> CatalogResolver:
    """Return the current catalog resolver. Defaults to InMemoryCatalog."""
    global _current_catalog
    if _current_catalog is None:
        _current_catalog = InMemoryCatalog()
    return _current_catalog


def set_catalog(catalog: CatalogResolver) -> None:
    """Override the active catalog resolver (useful for tests)."""
    global _current_catalog
    _current_catalog = catalog


def reset_catalog() -> None:
    """Reset to the default catalog resolver."""
    global _current_catalog
    _current_catalog = None
