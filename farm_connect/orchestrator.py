"""
Orchestrator wiring the gateway, filters, aggregation, exports and documents.

Usage (example from CLI):
    from farm_connect.orchestrator import export_report, load_snapshot

    snapshot = load_snapshot(retries=3)
    path = export_report(snapshot, "goods", "xlsx", FilterCriteria(search_text="tomato"))

Outputs are written to `output/` by default (settings.output_dir):
- `farm_connect_<kind>_report_<YYYY-MM-DD>.<csv|xlsx>` for exports
- `farmer_slip_<name>_<YYYY-MM-DD>.pdf` / `customer_invoice_<name>_<YYYY-MM-DD>.pdf`
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, tzinfo
from pathlib import Path
from typing import List, Optional, Union

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from farm_connect.aggregation import (
    LedgerSummary,
    LedgerTotals,
    PriceDrift,
    aggregate,
    find_price_drift,
    summarize,
)
from farm_connect.bulk import BulkItemResult, run_bulk
from farm_connect.config import get_settings
from farm_connect.documents import render_document, save_document
from farm_connect.domain.entries import CustomerEntry, GoodsEntry
from farm_connect.domain.models import LedgerKind, LedgerRecord, Snapshot
from farm_connect.errors import GatewayError, RecordNotFoundError
from farm_connect.export import ExportFormat, write_export
from farm_connect.filters import FilterCriteria, filter_records
from farm_connect.infrastructure.gateway import RecordStoreGateway, to_records
from farm_connect.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class ReportView:
    """One ledger after the current view parameters are applied."""

    kind: LedgerKind
    criteria: FilterCriteria
    records: List[LedgerRecord]
    totals: Optional[LedgerTotals] = None


@dataclass(frozen=True)
class Dashboard:
    summary: LedgerSummary
    drift: List[PriceDrift]


def load_snapshot(
    gateway: Optional[RecordStoreGateway] = None,
    retries: int = 1,
    retry_wait: float = 1.0,
) -> Snapshot:
    """
    Fetch both ledgers once.

    Parameters
    ----------
    gateway : RecordStoreGateway | None
        Gateway to read from. Defaults to one backed by the shared pool.
    retries : int
        Total attempts at loading the whole snapshot. 1 means no re-fetch;
        the caller asks for more explicitly.
    retry_wait : float
        Exponential backoff multiplier in seconds between attempts.
    """
    if retries < 1:
        raise ValueError("retries must be at least 1")
    gateway = gateway or RecordStoreGateway()

    retrying = Retrying(
        stop=stop_after_attempt(retries),
        wait=wait_exponential(multiplier=retry_wait, max=10),
        retry=retry_if_exception_type(GatewayError),
        before_sleep=before_sleep_log(log, logging.WARNING),
        reraise=True,
    )
    for attempt in retrying:
        with attempt:
            snapshot = gateway.fetch_snapshot()

    log.info(
        "[SNAPSHOT LOADED]",
        extra={"goods": len(snapshot.goods), "customers": len(snapshot.customers)},
    )
    return snapshot


def build_report(
    snapshot: Snapshot,
    kind: Union[str, LedgerKind],
    criteria: Optional[FilterCriteria] = None,
    tz: Optional[tzinfo] = None,
) -> ReportView:
    kind = LedgerKind.parse(kind)
    criteria = criteria or FilterCriteria()
    records = filter_records(snapshot.ledger(kind), criteria, tz)
    totals = aggregate(records) if kind is LedgerKind.GOODS else None
    return ReportView(kind=kind, criteria=criteria, records=records, totals=totals)


def build_dashboard(snapshot: Snapshot, recent_limit: Optional[int] = None) -> Dashboard:
    """Overall counts and totals, the most recent entries, and drifted prices."""
    limit = recent_limit if recent_limit is not None else get_settings().recent_limit
    summary = summarize(
        snapshot.goods, snapshot.customers, recent_limit=limit, fetched_at=snapshot.fetched_at
    )
    drift = find_price_drift(snapshot.goods)
    if drift:
        log.warning(
            "[PRICE DRIFT] %d goods record(s) disagree with the entry formula",
            len(drift),
            extra={"ids": [d.record.id for d in drift]},
        )
    return Dashboard(summary=summary, drift=drift)


def export_report(
    snapshot: Snapshot,
    kind: Union[str, LedgerKind],
    fmt: Union[str, ExportFormat],
    criteria: Optional[FilterCriteria] = None,
    output_dir: Optional[Union[str, Path]] = None,
    day: Optional[date] = None,
) -> Path:
    """Filter one ledger with the view parameters and write it as CSV or XLSX."""
    view = build_report(snapshot, kind, criteria)
    log.info(
        "[EXPORT START] %s",
        view.kind.value,
        extra={"kind": view.kind.value, "format": str(fmt), "rows": len(view.records)},
    )
    return write_export(view.records, view.kind, fmt, output_dir=output_dir, day=day)


def find_record(
    snapshot: Snapshot, kind: Union[str, LedgerKind], record_id: str
) -> LedgerRecord:
    for record in snapshot.ledger(kind):
        if record.id == str(record_id):
            return record
    raise RecordNotFoundError(f"No {LedgerKind.parse(kind).value} record with id '{record_id}'.")


def generate_document(
    snapshot: Snapshot,
    kind: Union[str, LedgerKind],
    record_id: str,
    output_dir: Optional[Union[str, Path]] = None,
) -> Path:
    """Render and save the receipt or invoice of one record."""
    record = find_record(snapshot, kind, record_id)
    target = output_dir or get_settings().output_dir
    return save_document(render_document(record), target)


def generate_documents(
    snapshot: Snapshot,
    kind: Union[str, LedgerKind],
    criteria: Optional[FilterCriteria] = None,
    output_dir: Optional[Union[str, Path]] = None,
    delay: Optional[float] = None,
) -> List[BulkItemResult]:
    """
    Render and save one document per filtered record, spaced by `delay`.

    Raises NothingToGenerateError when the filtered view is empty.
    """
    view = build_report(snapshot, kind, criteria)
    target = output_dir or get_settings().output_dir

    def _render_and_save(record: LedgerRecord) -> Path:
        return save_document(render_document(record), target)

    return run_bulk(view.records, _render_and_save, delay)


def add_record(
    entry: Union[GoodsEntry, CustomerEntry], gateway: Optional[RecordStoreGateway] = None
) -> LedgerRecord:
    """Insert an entry payload and return the stored record."""
    gateway = gateway or RecordStoreGateway()
    kind = LedgerKind.GOODS if isinstance(entry, GoodsEntry) else LedgerKind.CUSTOMERS
    row = gateway.insert(kind.table, entry.to_row())
    (record,) = to_records(kind, [row])
    log.info("[RECORD ADDED] %s", kind.value, extra={"kind": kind.value, "id": record.id})
    return record


__all__ = [
    "Dashboard",
    "ReportView",
    "add_record",
    "build_dashboard",
    "build_report",
    "export_report",
    "find_record",
    "generate_document",
    "generate_documents",
    "load_snapshot",
]
