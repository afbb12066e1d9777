"""StockLedger, the public API of the stock ledger.

Callers (HTTP routes, receiving and fulfillment workflows) hold a ledger
instance and call it synchronously. Mutations are delegated to the transfer
executor; reads go straight to the record store and are not locked.
"""

import threading

import structlog

from stockledger.catalog import get_catalog
from stockledger.config import LedgerSettings
from stockledger.ledger import evaluator
from stockledger.ledger.audit import AuditLog
from stockledger.ledger.executor import (
    StockAddition,
    TransferExecutor,
    TransferOutcome,
    TransferRequest,
    VariantTransferRequest,
)
from stockledger.ledger.locks import RecordLocks
from stockledger.ledger.rejections import Rejection, RejectionReason
from stockledger.ledger.validator import check_details, check_quantity, validate_addition
from stockledger.persistence import get_store
from stockledger.stock.record import StockRecord, StockState

logger = structlog.get_logger(__name__)


class StockLedger:
    def __init__(self, catalog=None, store=None, settings=None, audit_log=None, executor=None):
        self.settings = settings or LedgerSettings.from_env()
        self.catalog = catalog or get_catalog()
        self.store = store or get_store()
        self.audit_log = audit_log or AuditLog()
        self.locks = RecordLocks(timeout=self.settings.lock_timeout)
        self.executor = executor or TransferExecutor(self.store, self.catalog, self.audit_log, self.locks)
        self._creation_lock = threading.Lock()

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def get_stock_record(self, product_id, variant_id=None):
        """Record for a product (``variant_id=None``) or one of its variants, or None."""
        return self.store.load_by_variant(product_id, variant_id)

    def get_item(self, item_id):
        return self.store.load(item_id)

    def records_for_product(self, product_id):
        """The product's regular record followed by its variants' records, in catalog order.

        Variants the catalog no longer lists come last, ordered by id.
        """
        position = {variant_id: index for index, variant_id in enumerate(self.catalog.variants_of_product(product_id))}
        return sorted(
            self.store.load_by_product(product_id),
            key=lambda record: (
                record.is_variant,
                position.get(str(record.variant_id), len(position)),
                str(record.variant_id or ""),
            ),
        )

    def list_low_stock(self, threshold=None):
        return evaluator.low_stock(self.store.all(), threshold)

    def list_out_of_stock(self):
        return evaluator.out_of_stock(self.store.all())

    def search(self, term=None, status=None):
        """Records whose product name or SKU contains ``term``, optionally filtered by stock status."""
        needle = (term or "").strip().lower()
        wanted = evaluator.StockStatus(status) if status else None

        results = []
        for record in self.store.all():
            if needle and needle not in (record.product_name or "").lower() and needle not in (record.sku or "").lower():
                continue
            if wanted is not None and evaluator.stock_status(record) != wanted:
                continue
            results.append(record)
        return sorted(results, key=lambda record: (record.product_name or "", record.sku or "", str(record.id)))

    def history(self, item_id):
        return self.audit_log.entries_for(item_id)

    def reconcile(self, item_id):
        record = self.store.load(item_id)
        if record is None:
            return None
        return self.audit_log.reconcile(record)

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def transfer_within_item(self, item_id, from_state, to_state, quantity, reason=None, expected_version=None):
        return self.executor.execute(
            TransferRequest(
                item_id=item_id,
                from_state=from_state,
                to_state=to_state,
                quantity=quantity,
                reason=reason,
                expected_version=expected_version,
            )
        )

    def transfer_between_variants(
        self,
        from_variant_id,
        to_variant_id,
        quantity,
        reason=None,
        expected_from_version=None,
        expected_to_version=None,
    ):
        return self.executor.execute(
            VariantTransferRequest(
                from_variant_id=from_variant_id,
                to_variant_id=to_variant_id,
                quantity=quantity,
                reason=reason,
                expected_from_version=expected_from_version,
                expected_to_version=expected_to_version,
            )
        )

    def add_new_stock(self, item_id, state, quantity, reason=None, expected_version=None):
        """Increase one bucket of an existing record. Adding to a non-empty bucket is additive."""
        return self.executor.execute(
            StockAddition(
                item_id=item_id,
                state=state,
                quantity=quantity,
                reason=reason,
                expected_version=expected_version,
            )
        )

    def reserve_stock(self, product_id, variant_id, quantity, reason=None, expected_version=None):
        """Claim sellable units for an order by moving them to ``hold``.

        The record is addressed by product and variant (``None`` for the
        product's regular record). Fails with ``InsufficientStock`` when fewer
        than ``quantity`` units are sellable.
        """
        return self._move_by_coordinates(
            product_id, variant_id, StockState.SELLABLE, StockState.HOLD, quantity, reason, expected_version
        )

    def release_stock(self, product_id, variant_id, quantity, reason=None, expected_version=None):
        """Return held units to ``sellable``, undoing a reservation."""
        return self._move_by_coordinates(
            product_id, variant_id, StockState.HOLD, StockState.SELLABLE, quantity, reason, expected_version
        )

    def _move_by_coordinates(self, product_id, variant_id, from_state, to_state, quantity, reason, expected_version):
        check_details(reason=reason)
        rejection = check_quantity(quantity)
        if rejection:
            return TransferOutcome.rejected(rejection)

        record = self.store.load_by_variant(product_id, variant_id)
        if record is None:
            target = f"variant {variant_id}" if variant_id is not None else f"product {product_id}"
            return TransferOutcome.rejected(
                Rejection(RejectionReason.ITEM_NOT_FOUND, f"No stock record for {target}")
            )
        return self.transfer_within_item(
            record.id, from_state, to_state, quantity, reason=reason, expected_version=expected_version
        )

    def receive_new_stock(
        self,
        product_id,
        state,
        quantity,
        variant_id=None,
        reason=None,
        sku=None,
        product_name=None,
        reorder_level=None,
        warehouse=None,
        location=None,
    ):
        """Receive stock for a product or variant, opening its record on first receipt.

        The record details (``sku``, ``product_name``, ``reorder_level``,
        ``warehouse``, ``location``) are used only when the record is opened.
        On later receipts they are ignored, and any that differ from the
        stored record are logged. Details that cannot be stored raise
        ``InvalidStockDetails`` before any record is opened.
        """
        state = StockState(state)
        details = {
            "sku": sku,
            "product_name": product_name,
            "reorder_level": reorder_level,
            "warehouse": warehouse,
            "location": location,
        }
        check_details(reason=reason, **details)

        rejection = validate_addition(quantity)
        if rejection:
            return TransferOutcome.rejected(rejection)

        if variant_id is not None and self.catalog.product_of(variant_id) != str(product_id):
            return TransferOutcome.rejected(
                Rejection(
                    RejectionReason.ITEM_NOT_FOUND,
                    f"Variant {variant_id} is not part of product {product_id} in the catalog",
                )
            )

        record = self._open_record(product_id, variant_id, **details)
        return self.add_new_stock(record.id, state, quantity, reason=reason)

    def _open_record(self, product_id, variant_id, **details):
        with self._creation_lock:
            record = self.store.load_by_variant(product_id, variant_id)
            if record is not None:
                ignored = {
                    field: value
                    for field, value in details.items()
                    if value is not None and value != getattr(record, field)
                }
                if ignored:
                    logger.info("Record details ignored on receipt", item_id=str(record.id), ignored=ignored)
                return record

            if details["reorder_level"] is None:
                details["reorder_level"] = self.settings.default_reorder_level
            record = StockRecord.create(product_id=product_id, variant_id=variant_id, **details)
            self.store.save(record)

        logger.info(
            "Stock record opened",
            item_id=str(record.id),
            product_id=str(product_id),
            variant_id=variant_id,
            kind=record.kind,
        )
        return record
