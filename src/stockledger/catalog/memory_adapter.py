"""In-memory catalog resolver for development and testing."""

import threading

from stockledger.catalog.port import CatalogResolver


class InMemoryCatalog(CatalogResolver):
    """Catalog held in a dictionary, registered at runtime."""

    def __init__(self, products: dict[str, list[str]] | None = None) -> None:
        self._lock = threading.Lock()
        self._variants: dict[str, list[str]] = {}
        self._owners: dict[str, str] = {}
        for product_id, variant_ids in (products or {}).items():
            self.register_product(product_id, variant_ids)

    def register_product(self, product_id: str, variant_ids: list[str] | None = None) -> None:
        """Register a product and, optionally, its variants."""
        with self._lock:
            self._variants.setdefault(str(product_id), [])
        for variant_id in variant_ids or []:
            self.add_variant(product_id, variant_id)

    def add_variant(self, product_id: str, variant_id: str) -> None:
        """Attach a variant to a product. A variant belongs to one product only."""
        product_id, variant_id = str(product_id), str(variant_id)
        with self._lock:
            owner = self._owners.get(variant_id)
            if owner is not None and owner != product_id:
                raise ValueError(f"Variant {variant_id} already belongs to product {owner}")
            self._owners[variant_id] = product_id
            variants = self._variants.setdefault(product_id, [])
            if variant_id not in variants:
                variants.append(variant_id)

    def variants_of_product(self, product_id: str) -> list[str]:
        with self._lock:
            return list(self._variants.get(str(product_id), []))

    def product_of(self, variant_id: str) -> str | None:
        with self._lock:
            return self._owners.get(str(variant_id))
