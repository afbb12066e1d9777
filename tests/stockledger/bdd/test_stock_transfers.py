"""BDD tests for stock transfers.

Covers:
- moving stock between buckets of one record
- refusing a move larger than the bucket
- moving sellable stock between sibling variants
- refusing transfers across products
- rejecting a stale read and succeeding after a re-read
"""

from pytest_bdd import parsers, scenarios, when

from stockledger.stock.record import StockState

scenarios("features/stock_transfers.feature")

_INTRA_MOVE = r'(?P<quantity>\d+) units of "(?P<variant_id>[^"]+)" are moved from (?P<from_state>\w+) to (?P<to_state>\w+)'


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.re(_INTRA_MOVE), converters={"quantity": int})
def _(ledger, record_of, context, quantity, variant_id, from_state, to_state):
    context["outcome"] = ledger.transfer_within_item(
        record_of(variant_id).id, StockState(from_state), StockState(to_state), quantity
    )


@when(parsers.re(_INTRA_MOVE + " using the version read"), converters={"quantity": int})
def _(ledger, record_of, context, quantity, variant_id, from_state, to_state):
    context["outcome"] = ledger.transfer_within_item(
        record_of(variant_id).id,
        StockState(from_state),
        StockState(to_state),
        quantity,
        expected_version=context["versions"][variant_id],
    )


@when(parsers.cfparse('{quantity:d} sellable units are moved from "{from_variant_id}" to "{to_variant_id}"'))
def _(ledger, context, quantity, from_variant_id, to_variant_id):
    context["outcome"] = ledger.transfer_between_variants(from_variant_id, to_variant_id, quantity)


@when(parsers.cfparse('the current version of "{variant_id}" is read again'))
def _(record_of, context, variant_id):
    context["versions"][variant_id] = record_of(variant_id).version
