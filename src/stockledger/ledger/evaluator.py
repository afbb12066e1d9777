"""Low-stock evaluation: an advisory, read-only view over record snapshots.

Nothing here takes a lock. Results may be stale by the time the caller reads
them; they are never used to gate a mutation.
"""

from enum import Enum


class StockStatus(Enum):
    IN_STOCK = "in_stock"
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"


def is_out(record):
    return record.sellable == 0


def is_low(record, threshold=None):
    """Sellable stock at or below the threshold (the record's reorder level by default)."""
    limit = record.reorder_level if threshold is None else threshold
    return record.sellable <= (limit or 0)


def stock_status(record, threshold=None):
    if is_out(record):
        return StockStatus.OUT_OF_STOCK
    if is_low(record, threshold):
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


def low_stock(records, threshold=None):
    """Records at or below their threshold, lowest sellable first."""
    return sorted(
        (record for record in records if is_low(record, threshold)),
        key=lambda record: (record.sellable, str(record.id)),
    )


def out_of_stock(records):
    return sorted((record for record in records if is_out(record)), key=lambda record: str(record.id))
