"""Per-user state tracking for Locust load test scenarios.

Each Locust user keeps its own state. ``touched_items`` is process-wide so
the run can reconcile every record it exercised once the test stops.
"""

import threading
from dataclasses import dataclass

_touched_lock = threading.Lock()
touched_items: set[str] = set()


def remember_item(item_id: str) -> None:
    with _touched_lock:
        touched_items.add(item_id)


@dataclass
class StockState:
    """Tracks the record a simulated warehouse operator is working on."""

    item_id: str | None = None
    product_id: str | None = None
    version: int = 0
    reserved: int = 0
