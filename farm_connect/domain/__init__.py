"""
Domain package for Farm Connect.

Exports the ledger record models, the entry payload builders and the
wall-clock date helpers. Keep this package focused on data definitions.
"""

from farm_connect.domain.entries import CustomerEntry, GoodsEntry
from farm_connect.domain.models import (
    COMMISSION_RATE,
    CUSTOMERS_TABLE,
    GOODS_TABLE,
    CommissionFilter,
    CustomerRecord,
    GoodsRecord,
    LedgerKind,
    LedgerRecord,
    Snapshot,
    Units,
    amount_or_zero,
    entry_final_price,
    format_number,
    record_model,
)

__all__ = [
    "COMMISSION_RATE",
    "CUSTOMERS_TABLE",
    "GOODS_TABLE",
    "CommissionFilter",
    "CustomerEntry",
    "CustomerRecord",
    "GoodsEntry",
    "GoodsRecord",
    "LedgerKind",
    "LedgerRecord",
    "Snapshot",
    "Units",
    "amount_or_zero",
    "entry_final_price",
    "format_number",
    "record_model",
]
