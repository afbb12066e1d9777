"""Pydantic request/response schemas for the StockLedger API.

These are external contracts (anti-corruption layer), separate from the
ledger's own request objects and the protean aggregate.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from stockledger.ledger import evaluator
from stockledger.stock.record import StockState


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
# Quantities are deliberately unconstrained here: the ledger answers a
# non-positive quantity with an InvalidQuantity rejection.
class TransferStockRequest(BaseModel):
    from_state: StockState
    to_state: StockState
    quantity: int
    reason: str | None = Field(default=None, max_length=500)
    expected_version: int | None = None


class TransferVariantStockRequest(BaseModel):
    from_variant_id: str
    to_variant_id: str
    quantity: int
    reason: str | None = Field(default=None, max_length=500)
    expected_from_version: int | None = None
    expected_to_version: int | None = None


class AddStockRequest(BaseModel):
    state: StockState = StockState.SELLABLE
    quantity: int
    reason: str | None = Field(default=None, max_length=500)
    expected_version: int | None = None


class ReceiveStockRequest(BaseModel):
    product_id: str
    variant_id: str | None = None
    state: StockState = StockState.SELLABLE
    quantity: int
    reason: str | None = Field(default=None, max_length=500)
    sku: str | None = Field(default=None, max_length=50)
    product_name: str | None = Field(default=None, max_length=255)
    reorder_level: int | None = Field(default=None, ge=0)
    warehouse: str | None = Field(default=None, max_length=255)
    location: str | None = Field(default=None, max_length=255)


class StockReservationRequest(BaseModel):
    """Reserve or release units of a product (``variant_id`` omitted) or one of its variants."""

    product_id: str
    variant_id: str | None = None
    quantity: int
    reason: str | None = Field(default=None, max_length=500)
    expected_version: int | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class StockLevelsSchema(BaseModel):
    sellable: int
    damaged: int
    hold: int
    transit: int


class StockRecordResponse(BaseModel):
    item_id: str
    product_id: str
    variant_id: str | None = None
    kind: str
    sku: str | None = None
    product_name: str | None = None
    levels: StockLevelsSchema
    total_stock: int
    reorder_level: int
    status: str
    warehouse: str | None = None
    location: str | None = None
    version: int
    updated_at: datetime | None = None

    @classmethod
    def from_record(cls, record):
        return cls(
            item_id=str(record.id),
            product_id=str(record.product_id),
            variant_id=str(record.variant_id) if record.variant_id else None,
            kind=record.kind,
            sku=record.sku,
            product_name=record.product_name,
            levels=StockLevelsSchema(**record.levels.as_dict()),
            total_stock=record.total_stock,
            reorder_level=record.reorder_level or 0,
            status=evaluator.stock_status(record).value,
            warehouse=record.warehouse,
            location=record.location,
            version=record.version or 0,
            updated_at=record.updated_at,
        )


class TransferResponse(BaseModel):
    record: StockRecordResponse
    entry_id: str


class VariantTransferResponse(BaseModel):
    from_record: StockRecordResponse
    to_record: StockRecordResponse
    entry_id: str


class AuditEntryResponse(BaseModel):
    entry_id: str
    sequence: int
    kind: str
    item_id: str
    counterpart_item_id: str | None = None
    from_state: str | None = None
    to_state: str | None = None
    from_variant_id: str | None = None
    to_variant_id: str | None = None
    quantity: int
    reason: str | None = Field(default=None, max_length=500)
    item_version: int
    counterpart_version: int | None = None
    recorded_at: datetime

    @classmethod
    def from_entry(cls, entry):
        return cls(
            entry_id=str(entry.entry_id),
            sequence=entry.sequence,
            kind=entry.kind,
            item_id=str(entry.item_id),
            counterpart_item_id=str(entry.counterpart_item_id) if entry.counterpart_item_id else None,
            from_state=entry.from_state,
            to_state=entry.to_state,
            from_variant_id=str(entry.from_variant_id) if entry.from_variant_id else None,
            to_variant_id=str(entry.to_variant_id) if entry.to_variant_id else None,
            quantity=entry.quantity,
            reason=entry.reason,
            item_version=entry.item_version,
            counterpart_version=entry.counterpart_version,
            recorded_at=entry.recorded_at,
        )


class ReconciliationResponse(BaseModel):
    item_id: str
    balanced: bool
    expected: dict[str, int]
    actual: dict[str, int]
    discrepancies: dict[str, int]
    entry_count: int
    version: int
