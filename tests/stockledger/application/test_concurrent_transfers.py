"""Application tests for transfers racing on worker threads.

Covers:
- conservation of the total under concurrent intra-item transfers
- oversubscribed records never going negative
- one winner per version when writers share a read
- opposite variant transfers completing without deadlock
- unique audit sequence numbers
"""

import threading
from concurrent.futures import ThreadPoolExecutor

from stockledger.domain import stockledger
from stockledger.ledger.rejections import RejectionReason
from stockledger.stock.record import StockState


def _run_concurrently(count, work):
    """Run ``work(index)`` on ``count`` threads released together; return the results."""
    barrier = threading.Barrier(count)

    def worker(index):
        with stockledger.domain_context():
            barrier.wait(timeout=5)
            return work(index)

    with ThreadPoolExecutor(max_workers=count) as pool:
        return list(pool.map(worker, range(count)))


class TestConcurrentIntraItemTransfers:
    def test_total_is_conserved(self, ledger):
        """Many small transfers in both directions leave the total unchanged."""
        record = ledger.receive_new_stock("prod-poster", StockState.SELLABLE, 40).record
        moves = [
            (StockState.SELLABLE, StockState.HOLD),
            (StockState.SELLABLE, StockState.DAMAGED),
            (StockState.SELLABLE, StockState.TRANSIT),
        ]

        outcomes = _run_concurrently(
            15,
            lambda index: ledger.transfer_within_item(record.id, *moves[index % len(moves)], 2),
        )

        assert all(outcome.committed for outcome in outcomes)
        stored = ledger.get_item(record.id)
        assert stored.total_stock == 40
        assert stored.levels.sellable == 10
        assert stored.version == record.version + 15
        assert ledger.reconcile(record.id).balanced

    def test_oversubscription_never_goes_negative(self, ledger):
        """More requests than stock: the excess is rejected, never overdrawn."""
        record = ledger.receive_new_stock("prod-poster", StockState.SELLABLE, 5).record

        outcomes = _run_concurrently(
            12,
            lambda index: ledger.transfer_within_item(record.id, StockState.SELLABLE, StockState.HOLD, 1),
        )

        committed = [outcome for outcome in outcomes if outcome.committed]
        rejected = [outcome for outcome in outcomes if not outcome.committed]
        assert len(committed) == 5
        assert {outcome.rejection.reason for outcome in rejected} == {RejectionReason.INSUFFICIENT_STOCK}

        stored = ledger.get_item(record.id)
        assert stored.levels.sellable == 0
        assert stored.levels.hold == 5

    def test_only_one_writer_wins_per_version(self, ledger):
        """Writers sharing one read: exactly one commits, the rest are stale."""
        record = ledger.receive_new_stock("prod-poster", StockState.SELLABLE, 20).record
        seen_version = record.version

        outcomes = _run_concurrently(
            8,
            lambda index: ledger.transfer_within_item(
                record.id, StockState.SELLABLE, StockState.HOLD, 1, expected_version=seen_version
            ),
        )

        committed = [outcome for outcome in outcomes if outcome.committed]
        assert len(committed) == 1
        assert all(
            outcome.rejection.reason == RejectionReason.CONCURRENT_MODIFICATION
            for outcome in outcomes
            if not outcome.committed
        )
        assert ledger.get_item(record.id).levels.hold == 1


class TestConcurrentVariantTransfers:
    def test_opposite_transfers_do_not_deadlock(self, ledger):
        """A->B and B->A at once both finish within the lock timeout."""
        small = ledger.receive_new_stock("prod-shirt", StockState.SELLABLE, 20, variant_id="var-shirt-s").record
        medium = ledger.receive_new_stock("prod-shirt", StockState.SELLABLE, 20, variant_id="var-shirt-m").record

        def work(index):
            if index % 2:
                return ledger.transfer_between_variants("var-shirt-s", "var-shirt-m", 1)
            return ledger.transfer_between_variants("var-shirt-m", "var-shirt-s", 1)

        outcomes = _run_concurrently(16, work)

        assert all(outcome.committed for outcome in outcomes)
        small_now = ledger.get_item(small.id)
        medium_now = ledger.get_item(medium.id)
        assert small_now.sellable + medium_now.sellable == 40
        assert small_now.sellable == 20
        assert ledger.reconcile(small.id).balanced
        assert ledger.reconcile(medium.id).balanced

    def test_sequence_numbers_are_unique(self, ledger):
        ledger.receive_new_stock("prod-shirt", StockState.SELLABLE, 20, variant_id="var-shirt-s")
        small = ledger.get_stock_record("prod-shirt", "var-shirt-s")
        ledger.receive_new_stock("prod-shirt", StockState.SELLABLE, 20, variant_id="var-shirt-l")

        _run_concurrently(10, lambda index: ledger.transfer_between_variants("var-shirt-s", "var-shirt-l", 1))

        sequences = [entry.sequence for entry in ledger.history(small.id)]
        assert len(sequences) == 11
        assert len(set(sequences)) == 11
