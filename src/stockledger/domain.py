"""StockLedger bounded context: per-variant stock buckets and transfers.

Tracks sellable, damaged, held and in-transit quantities for every product
variant, moves units between buckets or between sibling variants under
per-record locks, and keeps an append-only audit trail of every movement.
"""

import structlog
from protean.domain import Domain

stockledger = Domain(name="stockledger")

logger = structlog.get_logger(__name__)
