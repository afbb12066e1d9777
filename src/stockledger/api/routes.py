"""FastAPI routes for the StockLedger: stock records, transfers and audit trail."""

from fastapi import APIRouter, Depends, HTTPException

from stockledger.api.schemas import (
    AddStockRequest,
    AuditEntryResponse,
    ReceiveStockRequest,
    ReconciliationResponse,
    StockRecordResponse,
    StockReservationRequest,
    TransferResponse,
    TransferStockRequest,
    TransferVariantStockRequest,
    VariantTransferResponse,
)
from stockledger.ledger import StockLedger, get_ledger
from stockledger.ledger.evaluator import StockStatus
from stockledger.ledger.rejections import InvalidStockDetails, LedgerUnavailable, RejectionReason

_REJECTION_STATUS = {
    RejectionReason.ITEM_NOT_FOUND: 404,
    RejectionReason.INVALID_QUANTITY: 422,
    RejectionReason.NO_OP_TRANSFER: 422,
    RejectionReason.CROSS_PRODUCT_TRANSFER: 422,
    RejectionReason.INSUFFICIENT_STOCK: 409,
    RejectionReason.CONCURRENT_MODIFICATION: 409,
}


def _raise_for_rejection(outcome):
    rejection = outcome.rejection
    detail = {"reason": rejection.reason.value, "message": rejection.message}
    if rejection.available is not None:
        detail["available"] = rejection.available
    raise HTTPException(status_code=_REJECTION_STATUS[rejection.reason], detail=detail)


def _run(operation, *args, **kwargs):
    """Call a ledger mutation, turning rejections, bad details and outages into HTTP errors."""
    try:
        outcome = operation(*args, **kwargs)
    except InvalidStockDetails as exc:
        raise HTTPException(
            status_code=422,
            detail={"reason": "InvalidStockDetails", "message": str(exc), "errors": exc.messages},
        ) from exc
    except LedgerUnavailable as exc:
        raise HTTPException(status_code=503, detail={"reason": "LedgerUnavailable", "message": str(exc)}) from exc
    if not outcome.committed:
        _raise_for_rejection(outcome)
    return outcome


def _require_item(ledger, item_id):
    record = ledger.get_item(item_id)
    if record is None:
        raise HTTPException(status_code=404, detail={"reason": "ItemNotFound", "message": f"Stock record {item_id} not found"})
    return record


# ---------------------------------------------------------------------------
# Stock Router
# ---------------------------------------------------------------------------
stock_router = APIRouter(prefix="/stock", tags=["stock"])


@stock_router.get("/items/{item_id}", response_model=StockRecordResponse)
async def get_item(item_id: str, ledger: StockLedger = Depends(get_ledger)) -> StockRecordResponse:
    return StockRecordResponse.from_record(_require_item(ledger, item_id))


@stock_router.get("/records", response_model=StockRecordResponse)
async def get_stock_record(
    product_id: str,
    variant_id: str | None = None,
    ledger: StockLedger = Depends(get_ledger),
) -> StockRecordResponse:
    record = ledger.get_stock_record(product_id, variant_id)
    if record is None:
        raise HTTPException(
            status_code=404,
            detail={"reason": "ItemNotFound", "message": f"No stock record for product {product_id}"},
        )
    return StockRecordResponse.from_record(record)


@stock_router.get("/products/{product_id}", response_model=list[StockRecordResponse])
async def records_for_product(product_id: str, ledger: StockLedger = Depends(get_ledger)) -> list[StockRecordResponse]:
    return [StockRecordResponse.from_record(record) for record in ledger.records_for_product(product_id)]


@stock_router.get("/search", response_model=list[StockRecordResponse])
async def search(
    term: str | None = None,
    status: StockStatus | None = None,
    ledger: StockLedger = Depends(get_ledger),
) -> list[StockRecordResponse]:
    return [StockRecordResponse.from_record(record) for record in ledger.search(term=term, status=status)]


@stock_router.get("/low-stock", response_model=list[StockRecordResponse])
async def list_low_stock(
    threshold: int | None = None,
    ledger: StockLedger = Depends(get_ledger),
) -> list[StockRecordResponse]:
    return [StockRecordResponse.from_record(record) for record in ledger.list_low_stock(threshold)]


@stock_router.get("/out-of-stock", response_model=list[StockRecordResponse])
async def list_out_of_stock(ledger: StockLedger = Depends(get_ledger)) -> list[StockRecordResponse]:
    return [StockRecordResponse.from_record(record) for record in ledger.list_out_of_stock()]


@stock_router.post("/items/{item_id}/transfer", response_model=TransferResponse)
async def transfer_within_item(
    item_id: str,
    body: TransferStockRequest,
    ledger: StockLedger = Depends(get_ledger),
) -> TransferResponse:
    outcome = _run(
        ledger.transfer_within_item,
        item_id,
        body.from_state,
        body.to_state,
        body.quantity,
        reason=body.reason,
        expected_version=body.expected_version,
    )
    return TransferResponse(record=StockRecordResponse.from_record(outcome.record), entry_id=outcome.entry_id)


@stock_router.post("/variants/transfer", response_model=VariantTransferResponse)
async def transfer_between_variants(
    body: TransferVariantStockRequest,
    ledger: StockLedger = Depends(get_ledger),
) -> VariantTransferResponse:
    outcome = _run(
        ledger.transfer_between_variants,
        body.from_variant_id,
        body.to_variant_id,
        body.quantity,
        reason=body.reason,
        expected_from_version=body.expected_from_version,
        expected_to_version=body.expected_to_version,
    )
    source, destination = outcome.records
    return VariantTransferResponse(
        from_record=StockRecordResponse.from_record(source),
        to_record=StockRecordResponse.from_record(destination),
        entry_id=outcome.entry_id,
    )


@stock_router.post("/items/{item_id}/add", response_model=TransferResponse)
async def add_new_stock(
    item_id: str,
    body: AddStockRequest,
    ledger: StockLedger = Depends(get_ledger),
) -> TransferResponse:
    outcome = _run(
        ledger.add_new_stock,
        item_id,
        body.state,
        body.quantity,
        reason=body.reason,
        expected_version=body.expected_version,
    )
    return TransferResponse(record=StockRecordResponse.from_record(outcome.record), entry_id=outcome.entry_id)


@stock_router.post("/receipts", status_code=201, response_model=TransferResponse)
async def receive_new_stock(body: ReceiveStockRequest, ledger: StockLedger = Depends(get_ledger)) -> TransferResponse:
    outcome = _run(
        ledger.receive_new_stock,
        body.product_id,
        body.state,
        body.quantity,
        variant_id=body.variant_id,
        reason=body.reason,
        sku=body.sku,
        product_name=body.product_name,
        reorder_level=body.reorder_level,
        warehouse=body.warehouse,
        location=body.location,
    )
    return TransferResponse(record=StockRecordResponse.from_record(outcome.record), entry_id=outcome.entry_id)


@stock_router.post("/reservations", response_model=TransferResponse)
async def reserve_stock(body: StockReservationRequest, ledger: StockLedger = Depends(get_ledger)) -> TransferResponse:
    outcome = _run(
        ledger.reserve_stock,
        body.product_id,
        body.variant_id,
        body.quantity,
        reason=body.reason,
        expected_version=body.expected_version,
    )
    return TransferResponse(record=StockRecordResponse.from_record(outcome.record), entry_id=outcome.entry_id)


@stock_router.post("/releases", response_model=TransferResponse)
async def release_stock(body: StockReservationRequest, ledger: StockLedger = Depends(get_ledger)) -> TransferResponse:
    outcome = _run(
        ledger.release_stock,
        body.product_id,
        body.variant_id,
        body.quantity,
        reason=body.reason,
        expected_version=body.expected_version,
    )
    return TransferResponse(record=StockRecordResponse.from_record(outcome.record), entry_id=outcome.entry_id)


@stock_router.get("/items/{item_id}/history", response_model=list[AuditEntryResponse])
async def history(item_id: str, ledger: StockLedger = Depends(get_ledger)) -> list[AuditEntryResponse]:
    _require_item(ledger, item_id)
    return [AuditEntryResponse.from_entry(entry) for entry in ledger.history(item_id)]


@stock_router.get("/items/{item_id}/reconciliation", response_model=ReconciliationResponse)
async def reconcile(item_id: str, ledger: StockLedger = Depends(get_ledger)) -> ReconciliationResponse:
    _require_item(ledger, item_id)
    result = ledger.reconcile(item_id)
    return ReconciliationResponse(
        item_id=result.item_id,
        balanced=result.balanced,
        expected=result.expected,
        actual=result.actual,
        discrepancies=result.discrepancies,
        entry_count=result.entry_count,
        version=result.version,
    )
