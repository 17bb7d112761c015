import itertools

import pytest

from dedupy.aggregate import Aggregator, AggregatorState
from dedupy.classify import Classifier
from dedupy.errors import AggregatorFinalized
from dedupy.memory import Memory
from dedupy.models import AdjustmentKey, IdentifiedKey, OutputRow, ParsedTransaction
from dedupy.money import unit_cents


def _tx(kind: str, sku: str, description: str, total: int, quantity: int) -> ParsedTransaction:
    return ParsedTransaction(
        kind=kind,
        sku=sku,
        description=description,
        total_cents=total,
        quantity=quantity,
        unit_cents=unit_cents(total, quantity),
    )


def _fold(txs, *, memory: Memory | None = None, **kwargs) -> list[OutputRow]:
    agg = Aggregator(memory or Memory(), **kwargs)
    for fp, tx in enumerate(txs):
        agg.add(fp, tx)
    return agg.finalize()


def test_classifier_picks_key_shape_by_sku():
    c = Classifier()
    assert c.classify(_tx("Order", "SKU-A", "Widget", 1299, 1)) == IdentifiedKey(
        kind="Order", sku="SKU-A", description="Widget", unit_cents=1299
    )
    assert c.classify(_tx("Adjustment", "", "Reimbursement", 150, 0)) == AdjustmentKey(
        kind="Adjustment", description="Reimbursement"
    )


def test_identified_rows_sum_quantity_exactly():
    rows = _fold(
        [
            _tx("Order", "SKU-A", "Widget", 3 * 1299, 3),
            _tx("Order", "SKU-A", "Widget", 5 * 1299, 5),
        ]
    )
    assert rows == [OutputRow("Order", "SKU-A", "Widget", 8, 1299 * 8)]


def test_identified_rows_with_different_unit_prices_stay_apart():
    rows = _fold(
        [
            _tx("Order", "SKU-A", "Widget", 1299, 1),
            _tx("Order", "SKU-A", "Widget", 1099, 1),
        ]
    )
    assert [(r.quantity, r.total_cents) for r in rows] == [(1, 1099), (1, 1299)]


def test_adjustments_sum_signed_cents_and_take_the_sign_as_quantity():
    rows = _fold(
        [
            _tx("Adjustment", "", "FBA Inventory Reimbursement", 150, 0),
            _tx("Adjustment", "", "FBA Inventory Reimbursement", -500, 0),
        ]
    )
    assert rows == [OutputRow("Adjustment", "FBATF", "FBA Inventory Reimbursement", -1, -350)]


def test_identical_adjustments_are_both_counted():
    rows = _fold([_tx("Adjustment", "", "Reimbursement", 150, 0)] * 2)
    assert rows == [OutputRow("Adjustment", "FBATF", "Reimbursement", 1, 300)]


def test_zero_adjustment_total_is_positive_one():
    rows = _fold(
        [
            _tx("Service Fee", "", "Storage Fee", 250, 0),
            _tx("Service Fee", "", "Storage Fee", -250, 0),
        ]
    )
    assert rows == [OutputRow("Service Fee", "FBATF", "Storage Fee", 1, 0)]


def test_custom_adjustment_sku():
    rows = _fold([_tx("Refund", "", "Goodwill", -100, 0)], adjustment_sku="ADJ")
    assert rows[0].sku == "ADJ"


def test_output_sorted_by_kind_then_description():
    rows = _fold(
        [
            _tx("Refund", "SKU-A", "Widget", -1299, 1),
            _tx("Order", "SKU-A", "Widget", 1299, 1),
            _tx("Adjustment", "", "Reimbursement", 100, 0),
            _tx("Order", "SKU-B", "Gadget", 550, 1),
        ]
    )
    assert [(r.kind, r.description) for r in rows] == [
        ("Adjustment", "Reimbursement"),
        ("Order", "Gadget"),
        ("Order", "Widget"),
        ("Refund", "Widget"),
    ]


def test_output_is_identical_for_every_input_order():
    txs = [
        _tx("Order", "SKU-A", "Widget", 1299, 1),
        _tx("Order", "SKU-A", "Widget", 2598, 2),
        # Same (kind, description) as above but no sku: tie broken by sku
        _tx("Order", "", "Widget", -75, 0),
        _tx("Order", "SKU-Z", "Widget", 500, 1),
        _tx("Adjustment", "", "Reimbursement", 150, 0),
    ]
    expected = _fold(txs)
    for perm in itertools.permutations(txs):
        assert _fold(perm) == expected


def test_state_machine_and_finalized_guard():
    agg = Aggregator(Memory())
    assert agg.state is AggregatorState.EMPTY
    assert agg.finalize() == []
    assert agg.state is AggregatorState.FINALIZED

    agg = Aggregator(Memory())
    agg.add(1, _tx("Order", "SKU-A", "Widget", 1299, 1))
    assert agg.state is AggregatorState.ACCUMULATING
    assert len(agg) == 1
    agg.finalize()

    with pytest.raises(AggregatorFinalized):
        agg.add(2, _tx("Order", "SKU-A", "Widget", 1299, 1))
    with pytest.raises(AggregatorFinalized):
        agg.finalize()
    with pytest.raises(AggregatorFinalized):
        agg.is_duplicate(1)


def test_duplicates_are_skipped_and_new_rows_queued():
    memory = Memory(known={10})
    agg = Aggregator(memory)

    assert agg.is_duplicate(10)
    assert not agg.is_duplicate(11)
    agg.add(11, _tx("Order", "SKU-A", "Widget", 1299, 1))

    assert agg.skipped == 1
    assert agg.folded == 1
    assert memory.pending == (11,)


def test_truncated_unit_price_keeps_every_cent():
    # 10.00 over 3 units groups at 3.33 each but the total stays 10.00
    rows = _fold(
        [
            _tx("Order", "SKU-A", "Widget", 1000, 3),
            _tx("Order", "SKU-A", "Widget", 333, 1),
        ]
    )
    assert rows == [OutputRow("Order", "SKU-A", "Widget", 4, 1333)]


def test_sku_row_without_quantity_keeps_its_total():
    rows = _fold([_tx("Service Fee", "SKU-A", "FBA Customer Return Fee", -500, 0)])
    assert rows == [OutputRow("Service Fee", "SKU-A", "FBA Customer Return Fee", 0, -500)]
