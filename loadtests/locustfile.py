"""StockLedger Load Testing: Locust entry point.

Usage:
    # All scenarios (web UI):
    locust -f loadtests/locustfile.py

    # Lock contention only:
    locust -f loadtests/locustfile.py ContendedRecordUser

    # Headless (CI mode):
    locust -f loadtests/locustfile.py --headless -u 50 -r 5 -t 300s --csv=results/loadtest
"""

import logging
import time

import requests
from locust import events

from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import touched_items
from loadtests.scenarios.stock import ContendedRecordUser, StockOperatorUser  # noqa: F401

logger = logging.getLogger("loadtest")


@events.request.add_listener
def on_request(request_type, name, response, exception, **_kw):
    """Log error details for every failed request."""
    if exception:
        logger.error("[EXCEPTION] %s %s: %s", request_type, name, exception)
    elif response is not None and response.status_code >= 400:
        detail = extract_error_detail(response)
        logger.error("[%s] %s %s: %s", response.status_code, request_type, name, detail)


@events.test_start.add_listener
def on_test_start(environment, **_kwargs):
    print(f"\n[LOADTEST] Started at {time.strftime('%H:%M:%S')}")
    print(f"[LOADTEST] Target host: {environment.host}\n")


@events.test_stop.add_listener
def on_test_stop(environment, **_kwargs):
    """Reconcile every record the run touched against its audit trail."""
    print(f"\n[LOADTEST] Stopped at {time.strftime('%H:%M:%S')}")
    unbalanced = []
    for item_id in sorted(touched_items):
        try:
            resp = requests.get(f"{environment.host}/stock/items/{item_id}/reconciliation", timeout=5)
        except requests.RequestException as exc:
            print(f"[LOADTEST] Could not reconcile {item_id}: {exc}")
            continue
        if resp.status_code == 200 and not resp.json()["balanced"]:
            unbalanced.append((item_id, resp.json()["discrepancies"]))

    print(f"[LOADTEST] Reconciled {len(touched_items)} records, {len(unbalanced)} out of balance")
    for item_id, discrepancies in unbalanced:
        print(f"  {item_id}: {discrepancies}")
    print()
