"""Stock record store factory.

Provides get_store() / set_store() to swap implementations. The default is
RepositoryStore, which persists through the domain's configured provider.
"""

from stockledger.persistence.port import StockRecordStore
from stockledger.persistence.repository_adapter import RepositoryStore

_current_store: StockRecordStore | None = None


def get_store() -> StockRecordStore:
    """Return the current record store. Defaults to RepositoryStore."""
    global _current_store
    if _current_store is None:
        _current_store = RepositoryStore()
    return _current_store


def set_store(store: StockRecordStore) -> None:
    """Override the active record store (useful for tests)."""
    global _current_store
    _current_store = store


def reset_store() -> None:
    """Reset to the default record store."""
    global _current_store
    _current_store = None
