"""StockLedger FastAPI application.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level. Record locks, the audit
# sequence and the store guard live in this process, so run a single worker
# (no --workers N). Saves still refuse to overwrite a newer stored version.
# PROTEAN_ENV selects the config overlay in stockledger/domain.toml.
from stockledger.api.app import create_app
from stockledger.domain import stockledger
from stockledger.utils.logging import configure_logging

configure_logging()
stockledger.init()

app = create_app()
