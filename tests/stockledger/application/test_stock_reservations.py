"""Application tests for reserving and releasing stock by product and variant.

Covers:
- reserve_stock: sellable -> hold on the record at (product, variant)
- release_stock: hold -> sellable
- InsufficientStock, ItemNotFound, InvalidQuantity and stale versions
- reservations are audited and bump the version like any transfer
"""

import pytest

from stockledger.ledger.rejections import InvalidStockDetails, RejectionReason
from stockledger.stock.record import StockState


@pytest.fixture()
def shirt(ledger):
    return ledger.receive_new_stock("prod-shirt", StockState.SELLABLE, 10, variant_id="var-shirt-m").record


class TestReserveStock:
    def test_reserve_moves_sellable_to_hold(self, ledger, shirt):
        outcome = ledger.reserve_stock("prod-shirt", "var-shirt-m", 4, reason="ORD-1001")

        assert outcome.committed
        assert outcome.record.id == shirt.id
        assert outcome.record.sellable == 6
        assert outcome.record.levels.hold == 4
        assert outcome.record.total_stock == 10
        assert outcome.record.version == shirt.version + 1

    def test_reservation_is_audited(self, ledger, shirt):
        outcome = ledger.reserve_stock("prod-shirt", "var-shirt-m", 4, reason="ORD-1001")

        entry = ledger.history(shirt.id)[-1]
        assert str(entry.entry_id) == outcome.entry_id
        assert entry.kind == "intra"
        assert (entry.from_state, entry.to_state) == ("sellable", "hold")
        assert entry.reason == "ORD-1001"

    def test_reserve_more_than_sellable(self, ledger, shirt):
        """Reserving past the sellable quantity fails and changes nothing."""
        outcome = ledger.reserve_stock("prod-shirt", "var-shirt-m", 11)

        assert outcome.rejection.reason == RejectionReason.INSUFFICIENT_STOCK
        assert outcome.rejection.available == 10
        assert ledger.get_item(shirt.id).sellable == 10
        assert ledger.get_item(shirt.id).version == shirt.version

    def test_reserve_on_regular_record(self, ledger):
        ledger.receive_new_stock("prod-poster", StockState.SELLABLE, 3)

        outcome = ledger.reserve_stock("prod-poster", None, 2)

        assert outcome.committed
        assert outcome.record.levels.hold == 2

    def test_reserve_without_record(self, ledger):
        outcome = ledger.reserve_stock("prod-shirt", "var-shirt-l", 1)
        assert outcome.rejection.reason == RejectionReason.ITEM_NOT_FOUND

    def test_variant_of_another_product_is_not_found(self, ledger, shirt):
        outcome = ledger.reserve_stock("prod-mug", "var-shirt-m", 1)
        assert outcome.rejection.reason == RejectionReason.ITEM_NOT_FOUND

    @pytest.mark.parametrize("quantity", [0, -3])
    def test_invalid_quantity_wins_over_missing_record(self, ledger, quantity):
        outcome = ledger.reserve_stock("prod-shirt", "var-shirt-l", quantity)
        assert outcome.rejection.reason == RejectionReason.INVALID_QUANTITY

    def test_stale_version(self, ledger, shirt):
        ledger.reserve_stock("prod-shirt", "var-shirt-m", 1)

        outcome = ledger.reserve_stock("prod-shirt", "var-shirt-m", 1, expected_version=shirt.version)

        assert outcome.rejection.reason == RejectionReason.CONCURRENT_MODIFICATION

    def test_long_reason(self, ledger, shirt):
        with pytest.raises(InvalidStockDetails):
            ledger.reserve_stock("prod-shirt", "var-shirt-m", 1, reason="x" * 501)


class TestReleaseStock:
    def test_release_returns_held_units(self, ledger, shirt):
        ledger.reserve_stock("prod-shirt", "var-shirt-m", 4)

        outcome = ledger.release_stock("prod-shirt", "var-shirt-m", 3, reason="order cancelled")

        assert outcome.committed
        assert outcome.record.sellable == 9
        assert outcome.record.levels.hold == 1

    def test_release_more_than_held(self, ledger, shirt):
        ledger.reserve_stock("prod-shirt", "var-shirt-m", 2)

        outcome = ledger.release_stock("prod-shirt", "var-shirt-m", 3)

        assert outcome.rejection.reason == RejectionReason.INSUFFICIENT_STOCK
        assert outcome.rejection.available == 2
        assert ledger.get_item(shirt.id).levels.hold == 2

    def test_release_without_record(self, ledger):
        outcome = ledger.release_stock("prod-poster", None, 1)
        assert outcome.rejection.reason == RejectionReason.ITEM_NOT_FOUND

    def test_reserve_then_release_reconciles(self, ledger, shirt):
        ledger.reserve_stock("prod-shirt", "var-shirt-m", 5)
        ledger.release_stock("prod-shirt", "var-shirt-m", 5)

        result = ledger.reconcile(shirt.id)

        assert result.balanced
        assert result.actual == {"sellable": 10, "damaged": 0, "hold": 0, "transit": 0}
        assert result.entry_count == 3
