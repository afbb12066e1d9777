"""Catalog resolver port (abstract interface).

The ledger does not own product data. It asks the catalog which variants
belong to a product and which product owns a variant, before it takes any
record lock.
"""

from abc import ABC, abstractmethod


class CatalogResolver(ABC):
    """Abstract catalog lookup interface."""

    @abstractmethod
    def variants_of_product(self, product_id: str) -> list[str]:
        """Return the variant ids that belong to a product (empty if unknown)."""
        ...

    @abstractmethod
    def product_of(self, variant_id: str) -> str | None:
        """Return the id of the product owning a variant, or None if unknown."""
        ...
