import pytest
from protean.integrations.pytest import DomainFixture

from stockledger.catalog import reset_catalog, set_catalog
from stockledger.catalog.memory_adapter import InMemoryCatalog
from stockledger.config import LedgerSettings
from stockledger.ledger import reset_ledger, set_ledger
from stockledger.ledger.service import StockLedger
from stockledger.persistence import reset_store


@pytest.fixture(scope="session")
def stockledger_bed():
    from stockledger.domain import stockledger

    bed = DomainFixture(stockledger)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(stockledger_bed):
    with stockledger_bed.domain_context():
        yield


@pytest.fixture()
def catalog():
    """Two products with sibling variants, and a product without variants."""
    catalog = InMemoryCatalog(
        {
            "prod-shirt": ["var-shirt-s", "var-shirt-m", "var-shirt-l"],
            "prod-mug": ["var-mug-red"],
            "prod-poster": [],
        }
    )
    set_catalog(catalog)
    yield catalog
    reset_catalog()


@pytest.fixture()
def ledger(catalog):
    """A fresh ledger over the active catalog and the default repository store."""
    ledger = StockLedger(settings=LedgerSettings(lock_timeout=2.0, default_reorder_level=10))
    set_ledger(ledger)
    yield ledger
    reset_ledger()
    reset_store()
