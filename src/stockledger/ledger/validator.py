"""Transfer validation: pure checks against a record snapshot.

Every function except ``check_details`` returns ``None`` when the proposal is
acceptable and a ``Rejection`` otherwise. Nothing here touches storage, so the
executor can run the same checks again under lock against the freshest state.

``check_details`` raises ``InvalidStockDetails`` instead: text that cannot be
stored is an input error, not a business outcome.
"""

from stockledger.ledger.rejections import InvalidStockDetails, Rejection, RejectionReason
from stockledger.stock.record import StockState


def check_quantity(quantity):
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        return Rejection(
            RejectionReason.INVALID_QUANTITY,
            f"Quantity must be a positive whole number, got {quantity!r}",
        )
    return None


def check_distinct_states(from_state, to_state):
    if StockState(from_state) == StockState(to_state):
        return Rejection(
            RejectionReason.NO_OP_TRANSFER,
            f"Cannot transfer from {StockState(from_state).value} to itself",
        )
    return None


def check_available(record, state, quantity):
    available = record.quantity_in(state)
    if quantity > available:
        return Rejection(
            RejectionReason.INSUFFICIENT_STOCK,
            f"Insufficient {StockState(state).value} stock: {available} available, {quantity} requested",
            available=available,
        )
    return None


def check_version(record, expected_version):
    """Reject when the caller's view of the record is older than the stored one."""
    if expected_version is not None and expected_version != record.version:
        return Rejection(
            RejectionReason.CONCURRENT_MODIFICATION,
            f"Record {record.id} is at version {record.version}, request was built from version {expected_version}",
        )
    return None


def validate_request(from_state, to_state, quantity):
    """Checks that need no record: quantity, then distinct buckets."""
    return check_quantity(quantity) or check_distinct_states(from_state, to_state)


def validate(record, from_state, to_state, quantity):
    """Full intra-item validation, in order: quantity, no-op, availability."""
    return validate_request(from_state, to_state, quantity) or check_available(record, from_state, quantity)


def validate_variant_request(from_variant_id, to_variant_id, from_product_id, to_product_id, quantity):
    """Checks for an inter-variant transfer that need only catalog data."""
    rejection = check_quantity(quantity)
    if rejection:
        return rejection

    if str(from_variant_id) == str(to_variant_id):
        return Rejection(
            RejectionReason.NO_OP_TRANSFER,
            f"Cannot transfer from variant {from_variant_id} to itself",
        )

    if from_product_id is None or to_product_id is None or from_product_id != to_product_id:
        return Rejection(
            RejectionReason.CROSS_PRODUCT_TRANSFER,
            f"Variants {from_variant_id} and {to_variant_id} do not belong to the same product",
        )
    return None


def validate_variant_transfer(source, destination, quantity):
    """Full inter-variant validation against both record snapshots."""
    return validate_variant_request(
        source.variant_id,
        destination.variant_id,
        source.product_id,
        destination.product_id,
        quantity,
    ) or check_available(source, StockState.SELLABLE, quantity)


def validate_addition(quantity):
    """Adding stock removes nothing, so only the quantity is checked."""
    return check_quantity(quantity)


# Longest values the StockRecord and AuditEntry string fields accept.
DETAIL_LIMITS = {
    "reason": 500,
    "sku": 50,
    "product_name": 255,
    "warehouse": 255,
    "location": 255,
}


def check_details(**details):
    """Raise ``InvalidStockDetails`` if any free-text detail cannot be stored.

    ``None`` values are skipped. ``reorder_level``, when given, must be a
    non-negative whole number.
    """
    errors = {}
    for field, value in details.items():
        if value is None:
            continue
        if field == "reorder_level":
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                errors[field] = [f"Reorder level must be a non-negative whole number, got {value!r}"]
            continue
        if not isinstance(value, str):
            errors[field] = [f"Expected text, got {type(value).__name__}"]
        elif len(value) > DETAIL_LIMITS[field]:
            errors[field] = [f"String should have at most {DETAIL_LIMITS[field]} characters"]

    if errors:
        raise InvalidStockDetails(errors)
