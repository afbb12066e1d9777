"""Stock ledger factory.

Provides get_ledger() / set_ledger() so that every caller in the process
shares one ledger, and therefore one set of record locks and one audit
sequence.
"""

import threading

from stockledger.ledger.service import StockLedger

_current_ledger: StockLedger | None = None
_ledger_lock = threading.Lock()


def get_ledger() -> StockLedger:
    """Return the process-wide ledger, built from the current catalog and store on first use."""
    global _current_ledger
    with _ledger_lock:
        if _current_ledger is None:
            _current_ledger = StockLedger()
        return _current_ledger


def set_ledger(ledger: StockLedger) -> None:
    """Override the active ledger (useful for tests)."""
    global _current_ledger
    with _ledger_lock:
        _current_ledger = ledger


def reset_ledger() -> None:
    """Drop the active ledger; the next get_ledger() builds a fresh one."""
    global _current_ledger
    with _ledger_lock:
        _current_ledger = None
