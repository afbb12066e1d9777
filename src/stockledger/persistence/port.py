"""Stock record store port (abstract interface).

The executor loads and saves records only through this interface. A save
must be atomic for the single record it writes; multi-record consistency is
provided by the executor's lock ordering and compensating restores.
"""

from abc import ABC, abstractmethod

from stockledger.stock.record import StockRecord


class StaleRecord(Exception):
    """A save found a newer version of the record already stored. Nothing was written."""


class StockRecordStore(ABC):
    """Abstract persistence interface for stock records."""

    @abstractmethod
    def load(self, item_id: str) -> StockRecord | None:
        """Return a fresh copy of the record with this id, or None."""
        ...

    @abstractmethod
    def load_by_variant(self, product_id: str, variant_id: str | None = None) -> StockRecord | None:
        """Return the record for a (product, variant) pair, or None."""
        ...

    @abstractmethod
    def load_by_product(self, product_id: str) -> list[StockRecord]:
        """Return every record of a product, regular and variants."""
        ...

    @abstractmethod
    def save(self, record: StockRecord) -> None:
        """Persist the record. Raises ``StaleRecord`` if the stored copy is not one version behind."""
        ...

    @abstractmethod
    def all(self) -> list[StockRecord]:
        """Return every stored record."""
        ...
