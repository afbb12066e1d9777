"""Faker-based data generators for Locust load test scenarios.

Payloads match the field names of the StockLedger API's Pydantic request
schemas. Products are registered without variants, so every generated
receipt opens a regular record.
"""

import random
import uuid

from faker import Faker

fake = Faker()

STATES = ["sellable", "damaged", "hold", "transit"]


def unique_product_id() -> str:
    """Generate unique product ids like 'prod-lt-a1b2c3d4'."""
    return f"prod-lt-{uuid.uuid4().hex[:8]}"


def sku() -> str:
    return f"LT-{fake.bothify('???-####').upper()}"


def receipt_data(product_id: str | None = None, quantity: int | None = None) -> dict:
    """Generate a ReceiveStockRequest payload for a fresh sellable receipt."""
    return {
        "product_id": product_id or unique_product_id(),
        "state": "sellable",
        "quantity": quantity if quantity is not None else random.randint(50, 200),
        "reason": f"PO-{uuid.uuid4().hex[:6]}",
        "sku": sku(),
        "product_name": fake.catch_phrase()[:255],
        "warehouse": fake.city()[:255],
        "location": fake.bothify("?-##").upper(),
    }


def transfer_data(quantity: int | None = None, expected_version: int | None = None) -> dict:
    """Generate a TransferStockRequest payload between two distinct buckets."""
    from_state, to_state = random.sample(STATES, 2)
    payload = {
        "from_state": from_state,
        "to_state": to_state,
        "quantity": quantity if quantity is not None else random.randint(1, 5),
        "reason": fake.sentence(nb_words=4),
    }
    if expected_version is not None:
        payload["expected_version"] = expected_version
    return payload


def addition_data() -> dict:
    """Generate an AddStockRequest payload."""
    return {
        "state": random.choice(STATES),
        "quantity": random.randint(1, 20),
        "reason": f"Restock {uuid.uuid4().hex[:6]}",
    }


def reservation_data(product_id: str, quantity: int | None = None) -> dict:
    """Generate a StockReservationRequest payload against a product's regular record."""
    return {
        "product_id": product_id,
        "quantity": quantity if quantity is not None else random.randint(1, 5),
        "reason": f"ORD-{uuid.uuid4().hex[:8]}",
    }
