from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from farm_connect.aggregation import (
    LedgerTotals,
    aggregate,
    commission_amount,
    find_price_drift,
    gross_amount,
    summarize,
)


def test_aggregate_trusts_stored_final_price_and_recomputes_commission(goods_factory):
    flagged = goods_factory(quantity=Decimal("10"), price_per_unit=Decimal("5"), final_price=Decimal("45"))

    totals = aggregate([flagged])

    assert totals == LedgerTotals(total_revenue=Decimal("45"), total_commission=Decimal("5"))


def test_unflagged_records_add_revenue_but_no_commission(goods_factory):
    flagged = goods_factory(final_price=Decimal("45"))
    plain = goods_factory(
        with_commission=False,
        quantity=Decimal("2"),
        price_per_unit=Decimal("30"),
        final_price=Decimal("60"),
    )

    totals = aggregate([flagged, plain])

    assert totals.total_revenue == Decimal("105")
    assert totals.total_commission == Decimal("5")


def test_empty_collection_yields_zero_totals():
    totals = aggregate([])
    assert totals.total_revenue == 0
    assert totals.total_commission == 0


def test_missing_numbers_count_as_zero(goods_factory):
    record = goods_factory(quantity=None, final_price=None)
    assert aggregate([record]) == LedgerTotals(Decimal("0"), Decimal("0"))
    assert gross_amount(record) == 0
    assert commission_amount(record) == 0


def test_commission_is_not_original_minus_final(goods_factory):
    # Stored price drifted from the formula; commission still follows the inputs.
    record = goods_factory(final_price=Decimal("40"))
    assert aggregate([record]).total_commission == Decimal("5")


def test_find_price_drift_reports_only_disagreeing_records(goods_factory):
    consistent = goods_factory(final_price=Decimal("45"))
    drifted = goods_factory(final_price=Decimal("40"))

    drift = find_price_drift([consistent, drifted])

    assert [d.record for d in drift] == [drifted]
    assert drift[0].expected == Decimal("45")
    assert drift[0].difference == Decimal("-5")


def test_summarize_counts_and_keeps_most_recent_in_input_order(goods_factory, customer_factory):
    goods = [goods_factory(good_name=f"G{i}") for i in range(7)]
    customers = [customer_factory(), customer_factory()]
    fetched = datetime(2024, 3, 6, 8, 0)

    summary = summarize(goods, customers, recent_limit=5, fetched_at=fetched)

    assert summary.goods_count == 7
    assert summary.customers_count == 2
    assert [r.good_name for r in summary.recent_goods] == ["G0", "G1", "G2", "G3", "G4"]
    assert len(summary.recent_customers) == 2
    assert summary.totals.total_revenue == Decimal("45") * 7
    assert summary.fetched_at == fetched
