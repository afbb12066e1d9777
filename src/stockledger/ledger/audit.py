"""Audit log: the append-only trail of every committed stock movement.

Each committed transfer or addition produces exactly one ``AuditEntry``.
Entries carry a log-wide ``sequence`` assigned in append order, so reading an
item's entries sorted by sequence gives them in causal order. Replaying them
from an all-zero record must reproduce the record's stored levels; that is how
reconciliation detects drift.

There is no update or delete path.
"""

import threading
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

import structlog
from protean.fields import DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from stockledger.domain import stockledger
from stockledger.stock.record import StockState
from stockledger.utils.db import store_guard

logger = structlog.get_logger(__name__)


class AuditKind(Enum):
    INTRA = "intra"
    INTER = "inter"
    ADDITION = "addition"


@stockledger.projection
class AuditEntry:
    entry_id = Identifier(identifier=True, required=True)
    sequence = Integer()
    kind = String(required=True, choices=AuditKind)
    item_id = Identifier(required=True)
    counterpart_item_id = Identifier()
    from_state = String(max_length=20)
    to_state = String(max_length=20)
    from_variant_id = Identifier()
    to_variant_id = Identifier()
    quantity = Integer(required=True)
    reason = String(max_length=500)
    item_version = Integer(required=True)
    counterpart_version = Integer()
    recorded_at = DateTime(required=True)

    @classmethod
    def for_transfer(cls, record, from_state, to_state, quantity, reason=None):
        return cls(
            entry_id=str(uuid.uuid4()),
            kind=AuditKind.INTRA.value,
            item_id=str(record.id),
            from_state=StockState(from_state).value,
            to_state=StockState(to_state).value,
            quantity=quantity,
            reason=reason,
            item_version=record.version,
            recorded_at=datetime.now(UTC),
        )

    @classmethod
    def for_variant_transfer(cls, source, destination, quantity, reason=None):
        return cls(
            entry_id=str(uuid.uuid4()),
            kind=AuditKind.INTER.value,
            item_id=str(source.id),
            counterpart_item_id=str(destination.id),
            from_state=StockState.SELLABLE.value,
            to_state=StockState.SELLABLE.value,
            from_variant_id=str(source.variant_id),
            to_variant_id=str(destination.variant_id),
            quantity=quantity,
            reason=reason,
            item_version=source.version,
            counterpart_version=destination.version,
            recorded_at=datetime.now(UTC),
        )

    @classmethod
    def for_addition(cls, record, state, quantity, reason=None):
        return cls(
            entry_id=str(uuid.uuid4()),
            kind=AuditKind.ADDITION.value,
            item_id=str(record.id),
            to_state=StockState(state).value,
            quantity=quantity,
            reason=reason,
            item_version=record.version,
            recorded_at=datetime.now(UTC),
        )

    def subject_ids(self):
        return tuple(i for i in (self.item_id, self.counterpart_item_id) if i)

    def apply_to(self, levels, item_id):
        """Fold this entry into ``levels`` (bucket name -> quantity) for one item."""
        kind = AuditKind(self.kind)
        if kind == AuditKind.ADDITION:
            levels[self.to_state] += self.quantity
        elif kind == AuditKind.INTRA:
            levels[self.from_state] -= self.quantity
            levels[self.to_state] += self.quantity
        elif str(self.item_id) == str(item_id):
            levels[StockState.SELLABLE.value] -= self.quantity
        else:
            levels[StockState.SELLABLE.value] += self.quantity
        return levels


@dataclass(frozen=True)
class Reconciliation:
    """Stored levels of a record compared with the levels its audit trail implies."""

    item_id: str
    expected: dict
    actual: dict
    entry_count: int
    version: int
    discrepancies: dict = field(default_factory=dict)

    @property
    def balanced(self):
        return not self.discrepancies


class AuditLog:
    """Append-only log over the ``AuditEntry`` projection.

    Appends are serialized by the log's own lock, independent of record
    locks, so sequence numbers follow append order exactly.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._last_sequence = None

    @staticmethod
    def _repository():
        return current_domain.repository_for(AuditEntry)

    def _next_sequence(self):
        if self._last_sequence is None:
            with store_guard:
                latest = self._repository()._dao.query.order_by("-sequence").all().items
            self._last_sequence = (latest[0].sequence or 0) if latest else 0
        self._last_sequence += 1
        return self._last_sequence

    def append(self, entry):
        """Persist ``entry`` at the end of the log and return its id."""
        with self._lock:
            entry.sequence = self._next_sequence()
            with store_guard:
                self._repository().add(entry)

        logger.debug(
            "Audit entry appended",
            entry_id=entry.entry_id,
            sequence=entry.sequence,
            kind=entry.kind,
            item_ids=entry.subject_ids(),
        )
        return entry.entry_id

    def entries_for(self, item_id):
        """Entries touching an item, oldest first."""
        item_id = str(item_id)
        with store_guard:
            dao = self._repository()._dao
            primary = dao.query.filter(item_id=item_id).all().items
            counterpart = dao.query.filter(counterpart_item_id=item_id).all().items

        unique = {entry.entry_id: entry for entry in [*primary, *counterpart]}
        return sorted(unique.values(), key=lambda entry: entry.sequence)

    def replay(self, item_id):
        """Rebuild an item's bucket quantities from zero using its entries."""
        levels = {state.value: 0 for state in StockState}
        for entry in self.entries_for(item_id):
            entry.apply_to(levels, item_id)
        return levels

    def reconcile(self, record):
        """Compare a record's stored levels with its replayed audit trail."""
        entries = self.entries_for(record.id)
        expected = {state.value: 0 for state in StockState}
        for entry in entries:
            entry.apply_to(expected, record.id)

        actual = record.levels.as_dict()
        discrepancies = {
            state: actual[state] - expected[state] for state in expected if actual[state] != expected[state]
        }
        if discrepancies:
            logger.warning(
                "Stock record does not match its audit trail",
                item_id=str(record.id),
                discrepancies=discrepancies,
            )

        return Reconciliation(
            item_id=str(record.id),
            expected=expected,
            actual=actual,
            entry_count=len(entries),
            version=record.version,
            discrepancies=discrepancies,
        )
