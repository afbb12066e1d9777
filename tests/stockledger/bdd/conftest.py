"""Shared BDD step definitions for StockLedger transfers."""

import pytest
from pytest_bdd import given, parsers, then

from stockledger.ledger.rejections import RejectionReason
from stockledger.stock.record import StockState


@pytest.fixture()
def context():
    """Scratch space shared by the steps of one scenario."""
    return {"versions": {}, "outcome": None}


@pytest.fixture()
def record_of(ledger):
    """Look up the stock record of a catalog variant."""

    def lookup(variant_id):
        return ledger.get_stock_record(ledger.catalog.product_of(variant_id), variant_id)

    return lookup


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('variant "{variant_id}" of product "{product_id}" holds {quantity:d} sellable units'))
def _(ledger, variant_id, product_id, quantity):
    outcome = ledger.receive_new_stock(product_id, StockState.SELLABLE, quantity, variant_id=variant_id)
    assert outcome.committed


@given(parsers.cfparse('the current version of "{variant_id}" has been read'))
def _(record_of, context, variant_id):
    context["versions"][variant_id] = record_of(variant_id).version


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then("the transfer is committed")
def _(context):
    assert context["outcome"].committed


@then(parsers.cfparse("the transfer is rejected with {reason}"))
def _(context, reason):
    outcome = context["outcome"]
    assert not outcome.committed
    assert outcome.rejection.reason == RejectionReason(reason)


@then(
    parsers.cfparse(
        '"{variant_id}" holds {sellable:d} sellable, {damaged:d} damaged, {hold:d} hold and {transit:d} transit units'
    )
)
def _(record_of, variant_id, sellable, damaged, hold, transit):
    levels = record_of(variant_id).levels.as_dict()
    assert levels == {"sellable": sellable, "damaged": damaged, "hold": hold, "transit": transit}


@then(parsers.cfparse('"{variant_id}" holds {quantity:d} units in total'))
def _(record_of, variant_id, quantity):
    assert record_of(variant_id).total_stock == quantity


@then(parsers.cfparse('"{variant_id}" holds {quantity:d} sellable units'))
def _(record_of, variant_id, quantity):
    assert record_of(variant_id).sellable == quantity
