"""Stock ledger load test scenarios.

StockOperatorUser runs a stateful receive -> transfer -> add -> reserve ->
release -> history journey. ContendedRecordUser hammers a small pool of
shared records with version-checked transfers to exercise the record locks
and the ConcurrentModification path.
"""

import random

from locust import HttpUser, SequentialTaskSet, between, constant_pacing, task

from loadtests.data_generators import addition_data, receipt_data, reservation_data, transfer_data
from loadtests.helpers.response import extract_error_detail, rejection_reason
from loadtests.helpers.state import StockState, remember_item

# Rejections that are valid business outcomes under load, not failures.
_EXPECTED_REJECTIONS = {"InsufficientStock", "ConcurrentModification"}


class StockOperatorJourney(SequentialTaskSet):
    """Receive Stock -> Transfer x3 -> Add Stock -> Reserve -> Release -> History -> Reconcile."""

    def on_start(self):
        self.state = StockState()

    @task
    def receive_stock(self):
        payload = receipt_data()
        with self.client.post(
            "/stock/receipts",
            json=payload,
            catch_response=True,
            name="POST /stock/receipts",
        ) as resp:
            if resp.status_code == 201:
                record = resp.json()["record"]
                self.state.item_id = record["item_id"]
                self.state.product_id = payload["product_id"]
                self.state.version = record["version"]
                remember_item(record["item_id"])
            else:
                resp.failure(f"Receive stock failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    def _transfer(self):
        with self.client.post(
            f"/stock/items/{self.state.item_id}/transfer",
            json=transfer_data(),
            catch_response=True,
            name="POST /stock/items/{id}/transfer",
        ) as resp:
            if resp.status_code == 200:
                self.state.version = resp.json()["record"]["version"]
            elif rejection_reason(resp) in _EXPECTED_REJECTIONS:
                resp.success()
            else:
                resp.failure(f"Transfer failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task(3)
    def transfer(self):
        self._transfer()

    @task
    def add_stock(self):
        with self.client.post(
            f"/stock/items/{self.state.item_id}/add",
            json=addition_data(),
            catch_response=True,
            name="POST /stock/items/{id}/add",
        ) as resp:
            if resp.status_code == 200:
                self.state.version = resp.json()["record"]["version"]
            else:
                resp.failure(f"Add stock failed: {resp.status_code}: {extract_error_detail(resp)}")

    def _reservation(self, path, label, quantity=None):
        with self.client.post(
            path,
            json=reservation_data(self.state.product_id, quantity=quantity),
            catch_response=True,
            name=f"POST {path}",
        ) as resp:
            if resp.status_code == 200:
                record = resp.json()["record"]
                self.state.version = record["version"]
                self.state.reserved = record["levels"]["hold"]
            elif rejection_reason(resp) in _EXPECTED_REJECTIONS:
                resp.success()
            else:
                resp.failure(f"{label} failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def reserve_stock(self):
        self._reservation("/stock/reservations", "Reserve stock")

    @task
    def release_stock(self):
        self._reservation("/stock/releases", "Release stock", quantity=self.state.reserved or None)

    @task
    def history(self):
        self.client.get(f"/stock/items/{self.state.item_id}/history", name="GET /stock/items/{id}/history")

    @task
    def reconcile(self):
        with self.client.get(
            f"/stock/items/{self.state.item_id}/reconciliation",
            catch_response=True,
            name="GET /stock/items/{id}/reconciliation",
        ) as resp:
            if resp.status_code != 200 or not resp.json()["balanced"]:
                resp.failure(f"Record {self.state.item_id} does not match its audit trail")

    @task
    def done(self):
        self.interrupt()


class StockOperatorUser(HttpUser):
    wait_time = between(0.5, 2)
    tasks = [StockOperatorJourney]


class ContendedRecordUser(HttpUser):
    """Many users, few records: every transfer races against the others."""

    wait_time = constant_pacing(0.2)
    pool_size = 3
    shared_items: list[str] = []

    def on_start(self):
        if len(ContendedRecordUser.shared_items) < self.pool_size:
            resp = self.client.post(
                "/stock/receipts",
                json=receipt_data(quantity=10_000),
                name="[CONTENDED] POST /stock/receipts",
            )
            if resp.status_code == 201:
                item_id = resp.json()["record"]["item_id"]
                ContendedRecordUser.shared_items.append(item_id)
                remember_item(item_id)

    @task(4)
    def versioned_transfer(self):
        if not self.shared_items:
            return
        item_id = random.choice(self.shared_items)
        current = self.client.get(f"/stock/items/{item_id}", name="[CONTENDED] GET /stock/items/{id}")
        if current.status_code != 200:
            return
        with self.client.post(
            f"/stock/items/{item_id}/transfer",
            json=transfer_data(expected_version=current.json()["version"]),
            catch_response=True,
            name="[CONTENDED] POST /stock/items/{id}/transfer",
        ) as resp:
            if resp.status_code == 200 or rejection_reason(resp) in _EXPECTED_REJECTIONS:
                resp.success()
            else:
                resp.failure(f"Transfer failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task(1)
    def low_stock_report(self):
        self.client.get("/stock/low-stock", name="[CONTENDED] GET /stock/low-stock")
