"""
Aggregation engine for the goods ledger.

Revenue trusts the `final_price` stored at entry time, while commission is
recomputed from quantity and unit price. Keeping both computations lets
`find_price_drift` expose records whose stored price no longer agrees with the
entry formula instead of hiding the discrepancy.

The engine never filters: it aggregates whatever collection it is handed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from farm_connect.domain.models import (
    COMMISSION_RATE,
    CustomerRecord,
    GoodsRecord,
    amount_or_zero,
    entry_final_price,
)

ZERO = Decimal("0")
DEFAULT_DRIFT_TOLERANCE = Decimal("0.01")


@dataclass(frozen=True)
class LedgerTotals:
    total_revenue: Decimal = ZERO
    total_commission: Decimal = ZERO


@dataclass(frozen=True)
class PriceDrift:
    """A goods record whose stored final price disagrees with the entry formula."""

    record: GoodsRecord
    expected: Decimal
    stored: Decimal

    @property
    def difference(self) -> Decimal:
        return self.stored - self.expected


@dataclass(frozen=True)
class LedgerSummary:
    """Dashboard view over a full snapshot."""

    goods_count: int
    customers_count: int
    totals: LedgerTotals
    recent_goods: Tuple[GoodsRecord, ...] = field(default_factory=tuple)
    recent_customers: Tuple[CustomerRecord, ...] = field(default_factory=tuple)
    fetched_at: Optional[datetime] = None


def gross_amount(record: GoodsRecord) -> Decimal:
    """quantity × price_per_unit, before any commission."""
    return amount_or_zero(record.quantity) * amount_or_zero(record.price_per_unit)


def commission_amount(record: GoodsRecord) -> Decimal:
    if not record.with_commission:
        return ZERO
    return gross_amount(record) * COMMISSION_RATE


def aggregate(goods: Sequence[GoodsRecord]) -> LedgerTotals:
    """
    Total revenue and commission over the given goods records.

    Missing `final_price` values count as zero; an empty collection yields
    zero for both totals.
    """
    revenue = sum((amount_or_zero(r.final_price) for r in goods), ZERO)
    commission = sum((commission_amount(r) for r in goods), ZERO)
    return LedgerTotals(total_revenue=revenue, total_commission=commission)


def price_drift(record: GoodsRecord) -> Decimal:
    expected = entry_final_price(record.quantity, record.price_per_unit, record.with_commission)
    return amount_or_zero(record.final_price) - expected


def find_price_drift(
    goods: Sequence[GoodsRecord], tolerance: Decimal = DEFAULT_DRIFT_TOLERANCE
) -> List[PriceDrift]:
    drifted: List[PriceDrift] = []
    for record in goods:
        expected = entry_final_price(record.quantity, record.price_per_unit, record.with_commission)
        stored = amount_or_zero(record.final_price)
        if abs(stored - expected) > tolerance:
            drifted.append(PriceDrift(record=record, expected=expected, stored=stored))
    return drifted


def summarize(
    goods: Sequence[GoodsRecord],
    customers: Sequence[CustomerRecord],
    recent_limit: int = 5,
    fetched_at: Optional[datetime] = None,
) -> LedgerSummary:
    """Counts, totals and the most recent entries of each ledger (input order)."""
    return LedgerSummary(
        goods_count=len(goods),
        customers_count=len(customers),
        totals=aggregate(goods),
        recent_goods=tuple(goods[:recent_limit]),
        recent_customers=tuple(customers[:recent_limit]),
        fetched_at=fetched_at,
    )


__all__ = [
    "LedgerSummary",
    "LedgerTotals",
    "PriceDrift",
    "aggregate",
    "commission_amount",
    "find_price_drift",
    "gross_amount",
    "price_drift",
    "summarize",
]
