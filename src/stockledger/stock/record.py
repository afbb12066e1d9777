"""StockRecord aggregate (CQRS): stock held for one product or product variant.

Stock Level Model:
    sellable:  Units that can be sold right away
    damaged:   Units flagged as damaged or destroyed
    hold:      Units temporarily held back from sale
    transit:   Units on their way between locations

The four buckets are mutually exclusive. A unit lives in exactly one of them,
so the total stock is always the sum of the buckets and is never stored.

Records are mutated only through the transfer executor. Every committed
mutation bumps ``version``, which callers echo back to detect lost updates.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, ValueObject

from stockledger.domain import stockledger


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class StockState(Enum):
    SELLABLE = "sellable"
    DAMAGED = "damaged"
    HOLD = "hold"
    TRANSIT = "transit"


class RecordKind(Enum):
    REGULAR = "Regular"
    VARIANT = "Variant"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@stockledger.value_object(part_of="StockRecord")
class StockLevels:
    """Quantities per stock bucket. No bucket can ever be negative."""

    sellable = Integer(default=0, min_value=0)
    damaged = Integer(default=0, min_value=0)
    hold = Integer(default=0, min_value=0)
    transit = Integer(default=0, min_value=0)

    @property
    def total(self):
        return self.sellable + self.damaged + self.hold + self.transit

    def quantity_in(self, state):
        return getattr(self, StockState(state).value) or 0

    def as_dict(self):
        return {state.value: self.quantity_in(state) for state in StockState}

    def moved(self, from_state, to_state, quantity):
        """Return new levels with ``quantity`` moved between two buckets."""
        values = self.as_dict()
        values[StockState(from_state).value] -= quantity
        values[StockState(to_state).value] += quantity
        return StockLevels(**values)

    def changed(self, state, delta):
        """Return new levels with one bucket changed by ``delta``."""
        values = self.as_dict()
        values[StockState(state).value] += delta
        return StockLevels(**values)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@stockledger.aggregate
class StockRecord:
    """Stock for one product (``Regular``) or one of its variants (``Variant``)."""

    product_id = Identifier(required=True)
    variant_id = Identifier()
    kind = String(choices=RecordKind, default=RecordKind.REGULAR.value)
    sku = String(max_length=50)
    product_name = String(max_length=255)
    levels = ValueObject(StockLevels)
    reorder_level = Integer(default=10, min_value=0)
    warehouse = String(max_length=255)
    location = String(max_length=255)
    version = Integer(default=0)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def variant_records_carry_a_variant_id(self):
        if self.kind == RecordKind.VARIANT.value and not self.variant_id:
            raise ValidationError({"variant_id": ["Variant records need a variant id"]})
        if self.kind == RecordKind.REGULAR.value and self.variant_id:
            raise ValidationError({"variant_id": ["Regular records cannot carry a variant id"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        product_id,
        variant_id=None,
        sku=None,
        product_name=None,
        reorder_level=10,
        warehouse=None,
        location=None,
    ):
        """Open an empty stock record for a product, or for one of its variants.

        Passing a ``variant_id`` makes this a ``Variant`` record. An empty
        string is rejected rather than read as "no variant".
        """
        if variant_id is not None and not str(variant_id).strip():
            raise ValidationError({"variant_id": ["Variant id cannot be blank"]})

        now = datetime.now(UTC)
        return cls(
            product_id=product_id,
            variant_id=variant_id,
            kind=RecordKind.VARIANT.value if variant_id is not None else RecordKind.REGULAR.value,
            sku=sku,
            product_name=product_name,
            levels=StockLevels(),
            reorder_level=reorder_level,
            warehouse=warehouse,
            location=location,
            version=0,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_variant(self):
        return self.kind == RecordKind.VARIANT.value

    @property
    def total_stock(self):
        return self.levels.total if self.levels else 0

    @property
    def sellable(self):
        return self.quantity_in(StockState.SELLABLE)

    def quantity_in(self, state):
        return self.levels.quantity_in(state) if self.levels else 0

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def _commit_levels(self, levels):
        self.levels = levels
        self.version = (self.version or 0) + 1
        self.updated_at = datetime.now(UTC)

    def move_stock(self, from_state, to_state, quantity):
        """Move units from one bucket to another. The total is unchanged."""
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})
        if StockState(from_state) == StockState(to_state):
            raise ValidationError({"to_state": ["Source and destination buckets must differ"]})

        self._commit_levels((self.levels or StockLevels()).moved(from_state, to_state, quantity))

    def add_stock(self, state, quantity):
        """Add newly received units to a single bucket."""
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        self._commit_levels((self.levels or StockLevels()).changed(state, quantity))

    def release_sellable(self, quantity):
        """Give sellable units away to a sibling variant."""
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        self._commit_levels((self.levels or StockLevels()).changed(StockState.SELLABLE, -quantity))

    def accept_sellable(self, quantity):
        """Take sellable units in from a sibling variant."""
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        self._commit_levels((self.levels or StockLevels()).changed(StockState.SELLABLE, quantity))

    def restore_levels(self, levels):
        """Put back levels captured before a failed commit.

        The version still moves forward so that any reader who saw the
        abandoned state is forced to re-read.
        """
        self._commit_levels(StockLevels(**levels.as_dict()))
