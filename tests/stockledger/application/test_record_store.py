"""Application tests for the repository-backed record store.

Covers:
- new records are written without a version check
- a save must be exactly one version ahead of the stored copy
- a stale save inside a transfer surfaces as LedgerUnavailable and applies nothing
"""

import pytest

from stockledger.ledger.rejections import LedgerUnavailable
from stockledger.persistence.port import StaleRecord
from stockledger.persistence.repository_adapter import RepositoryStore
from stockledger.stock.record import StockRecord, StockState


@pytest.fixture()
def store():
    return RepositoryStore()


@pytest.fixture()
def stored_record(store):
    record = StockRecord.create(product_id="prod-poster", sku="POSTER")
    store.save(record)
    return record


class TestSave:
    def test_new_record_is_written(self, store, stored_record):
        assert store.load(stored_record.id).sku == "POSTER"

    def test_next_version_is_written(self, store, stored_record):
        record = store.load(stored_record.id)
        record.add_stock(StockState.SELLABLE, 5)

        store.save(record)

        stored = store.load(stored_record.id)
        assert stored.version == 1
        assert stored.sellable == 5

    def test_stale_copy_is_refused(self, store, stored_record):
        """Two writers read version 0; only the first save lands."""
        first = store.load(stored_record.id)
        second = store.load(stored_record.id)
        first.add_stock(StockState.SELLABLE, 5)
        second.add_stock(StockState.DAMAGED, 2)

        store.save(first)
        with pytest.raises(StaleRecord):
            store.save(second)

        stored = store.load(stored_record.id)
        assert stored.sellable == 5
        assert stored.levels.damaged == 0

    def test_unchanged_copy_is_refused(self, store, stored_record):
        with pytest.raises(StaleRecord):
            store.save(store.load(stored_record.id))


class TestStaleWriteDuringTransfer:
    def test_transfer_over_a_newer_record_applies_nothing(self, ledger, monkeypatch):
        """Another process wrote the record between our read and our save."""
        record = ledger.receive_new_stock("prod-poster", StockState.SELLABLE, 10).record
        original_load = ledger.store.load

        def load_then_race(item_id):
            loaded = original_load(item_id)
            competitor = original_load(item_id)
            competitor.add_stock(StockState.TRANSIT, 1)
            RepositoryStore.save(ledger.store, competitor)
            return loaded

        monkeypatch.setattr(ledger.store, "load", load_then_race)

        with pytest.raises(LedgerUnavailable):
            ledger.transfer_within_item(record.id, StockState.SELLABLE, StockState.HOLD, 4)

        monkeypatch.undo()
        stored = ledger.get_item(record.id)
        assert stored.levels.as_dict() == {"sellable": 10, "damaged": 0, "hold": 0, "transit": 2}
        assert len(ledger.history(record.id)) == 1
