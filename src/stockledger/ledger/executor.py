"""Transfer executor. Applies stock movements atomically.

Every mutation follows the same sequence, entirely under the lock(s) of the
record(s) involved:

    re-read → check version → validate → mutate → save → append audit entry

Catalog lookups and cheap input checks, including the length of the free-text
reason, happen before any lock is taken.
Inter-variant transfers lock both records in a fixed global order (variant
id, then record id), so two opposite transfers between the same pair of
variants cannot deadlock.

If a save or the audit append fails, records already saved in the same
transfer are restored and ``LedgerUnavailable`` is raised. A rejection never
leaves a mutation or an audit entry behind.
"""

from dataclasses import dataclass

import structlog

from stockledger.ledger.audit import AuditEntry
from stockledger.ledger.rejections import InvalidStockDetails, LedgerUnavailable, Rejection, RejectionReason
from stockledger.ledger.validator import (
    check_details,
    check_quantity,
    check_version,
    validate,
    validate_addition,
    validate_request,
    validate_variant_request,
    validate_variant_transfer,
)
from stockledger.stock.record import StockState

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class TransferRequest:
    """Move ``quantity`` units between two buckets of one record."""

    item_id: str
    from_state: StockState
    to_state: StockState
    quantity: int
    reason: str | None = None
    expected_version: int | None = None

    def __post_init__(self):
        object.__setattr__(self, "from_state", StockState(self.from_state))
        object.__setattr__(self, "to_state", StockState(self.to_state))


@dataclass(frozen=True)
class VariantTransferRequest:
    """Move ``quantity`` sellable units from one variant to a sibling variant."""

    from_variant_id: str
    to_variant_id: str
    quantity: int
    reason: str | None = None
    expected_from_version: int | None = None
    expected_to_version: int | None = None


@dataclass(frozen=True)
class StockAddition:
    """Add newly received units to one bucket of a record."""

    item_id: str
    state: StockState
    quantity: int
    reason: str | None = None
    expected_version: int | None = None

    def __post_init__(self):
        object.__setattr__(self, "state", StockState(self.state))


# ---------------------------------------------------------------------------
# Outcome
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class TransferOutcome:
    """Result of a transfer: either committed records or a rejection."""

    records: tuple = ()
    entry_id: str | None = None
    rejection: Rejection | None = None

    @classmethod
    def rejected(cls, rejection):
        return cls(rejection=rejection)

    @property
    def committed(self):
        return self.rejection is None

    @property
    def record(self):
        return self.records[0] if self.records else None


def _not_found(message):
    return Rejection(RejectionReason.ITEM_NOT_FOUND, message)


# ---------------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------------
class TransferExecutor:
    def __init__(self, store, catalog, audit_log, locks):
        self._store = store
        self._catalog = catalog
        self._audit_log = audit_log
        self._locks = locks

    def execute(self, request):
        if isinstance(request, VariantTransferRequest):
            return self.transfer_between_variants(request)
        if isinstance(request, StockAddition):
            return self.add_stock(request)
        return self.transfer(request)

    # -------------------------------------------------------------------
    # Intra-item transfer
    # -------------------------------------------------------------------
    def transfer(self, request):
        log = logger.bind(
            item_id=str(request.item_id),
            from_state=request.from_state.value,
            to_state=request.to_state.value,
            quantity=request.quantity,
        )

        self._check_reason(request, log)
        rejection = validate_request(request.from_state, request.to_state, request.quantity)
        if rejection:
            return self._reject(rejection, log)

        if self._store.load(request.item_id) is None:
            return self._reject(_not_found(f"Stock record {request.item_id} not found"), log)

        with self._locks.hold(str(request.item_id)):
            record = self._store.load(request.item_id)
            if record is None:
                return self._reject(_not_found(f"Stock record {request.item_id} not found"), log)

            rejection = check_version(record, request.expected_version) or validate(
                record, request.from_state, request.to_state, request.quantity
            )
            if rejection:
                return self._reject(rejection, log)

            previous = record.levels
            record.move_stock(request.from_state, request.to_state, request.quantity)
            entry = AuditEntry.for_transfer(
                record, request.from_state, request.to_state, request.quantity, reason=request.reason
            )
            entry_id = self._commit([(record, previous)], entry)

        log.info("Stock transferred", version=record.version, entry_id=entry_id)
        return TransferOutcome(records=(record,), entry_id=entry_id)

    # -------------------------------------------------------------------
    # Inter-variant transfer
    # -------------------------------------------------------------------
    def transfer_between_variants(self, request):
        log = logger.bind(
            from_variant_id=str(request.from_variant_id),
            to_variant_id=str(request.to_variant_id),
            quantity=request.quantity,
        )

        self._check_reason(request, log)
        rejection = check_quantity(request.quantity)
        if rejection:
            return self._reject(rejection, log)

        if str(request.from_variant_id) == str(request.to_variant_id):
            return self._reject(
                Rejection(
                    RejectionReason.NO_OP_TRANSFER,
                    f"Cannot transfer from variant {request.from_variant_id} to itself",
                ),
                log,
            )

        # Resolve ownership before locking; the catalog may be remote.
        from_product_id = self._catalog.product_of(request.from_variant_id)
        to_product_id = self._catalog.product_of(request.to_variant_id)
        for variant_id, product_id in (
            (request.from_variant_id, from_product_id),
            (request.to_variant_id, to_product_id),
        ):
            if product_id is None:
                return self._reject(_not_found(f"Variant {variant_id} is not in the catalog"), log)

        rejection = validate_variant_request(
            request.from_variant_id,
            request.to_variant_id,
            from_product_id,
            to_product_id,
            request.quantity,
        )
        if rejection:
            return self._reject(rejection, log)

        source = self._store.load_by_variant(from_product_id, request.from_variant_id)
        destination = self._store.load_by_variant(to_product_id, request.to_variant_id)
        for variant_id, record in ((request.from_variant_id, source), (request.to_variant_id, destination)):
            if record is None:
                return self._reject(_not_found(f"No stock record for variant {variant_id}"), log)

        ordered_ids = [
            str(record.id)
            for record in sorted((source, destination), key=lambda record: (str(record.variant_id), str(record.id)))
        ]

        with self._locks.hold(*ordered_ids):
            source = self._store.load(source.id)
            destination = self._store.load(destination.id)
            if source is None or destination is None:
                return self._reject(_not_found("Stock record disappeared before the transfer"), log)

            rejection = (
                check_version(source, request.expected_from_version)
                or check_version(destination, request.expected_to_version)
                or validate_variant_transfer(source, destination, request.quantity)
            )
            if rejection:
                return self._reject(rejection, log)

            snapshots = {str(source.id): (source, source.levels), str(destination.id): (destination, destination.levels)}
            source.release_sellable(request.quantity)
            destination.accept_sellable(request.quantity)
            entry = AuditEntry.for_variant_transfer(source, destination, request.quantity, reason=request.reason)
            entry_id = self._commit([snapshots[record_id] for record_id in ordered_ids], entry)

        log.info(
            "Stock transferred between variants",
            from_version=source.version,
            to_version=destination.version,
            entry_id=entry_id,
        )
        return TransferOutcome(records=(source, destination), entry_id=entry_id)

    # -------------------------------------------------------------------
    # Stock addition
    # -------------------------------------------------------------------
    def add_stock(self, request):
        log = logger.bind(item_id=str(request.item_id), state=request.state.value, quantity=request.quantity)

        self._check_reason(request, log)
        rejection = validate_addition(request.quantity)
        if rejection:
            return self._reject(rejection, log)

        if self._store.load(request.item_id) is None:
            return self._reject(_not_found(f"Stock record {request.item_id} not found"), log)

        with self._locks.hold(str(request.item_id)):
            record = self._store.load(request.item_id)
            if record is None:
                return self._reject(_not_found(f"Stock record {request.item_id} not found"), log)

            rejection = check_version(record, request.expected_version)
            if rejection:
                return self._reject(rejection, log)

            previous = record.levels
            record.add_stock(request.state, request.quantity)
            entry = AuditEntry.for_addition(record, request.state, request.quantity, reason=request.reason)
            entry_id = self._commit([(record, previous)], entry)

        log.info("Stock added", version=record.version, entry_id=entry_id)
        return TransferOutcome(records=(record,), entry_id=entry_id)

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    @staticmethod
    def _check_reason(request, log):
        try:
            check_details(reason=request.reason)
        except InvalidStockDetails as exc:
            log.info("Transfer refused", errors=exc.messages)
            raise

    @staticmethod
    def _reject(rejection, log):
        log.info("Transfer rejected", reason=rejection.reason.value, detail=rejection.message)
        return TransferOutcome.rejected(rejection)

    def _commit(self, changes, entry):
        """Save each (record, previous levels) pair in order, then append the entry."""
        saved = []
        try:
            for record, previous in changes:
                self._store.save(record)
                saved.append((record, previous))
            return self._audit_log.append(entry)
        except Exception as exc:
            logger.error(
                "Stock commit failed, restoring saved records",
                item_ids=[str(record.id) for record, _ in changes],
                error=str(exc),
            )
            self._restore(saved)
            raise LedgerUnavailable("Stock ledger storage is unavailable; nothing was applied") from exc

    def _restore(self, saved):
        for record, previous in reversed(saved):
            try:
                record.restore_levels(previous)
                self._store.save(record)
            except Exception:
                logger.exception(
                    "Could not restore stock record; reconcile it against the audit log",
                    item_id=str(record.id),
                )
