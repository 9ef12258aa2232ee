from __future__ import annotations

from datetime import tzinfo
from typing import List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from farm_connect.aggregation import LedgerTotals
from farm_connect.bulk import BulkItemResult, ItemStatus
from farm_connect.config import get_settings
from farm_connect.documents.base import format_money
from farm_connect.domain.models import LedgerKind, LedgerRecord
from farm_connect.export import columns_for, project_rows
from farm_connect.orchestrator import Dashboard, ReportView

_NUMERIC_HEADERS = {
    "Quantity",
    "Price per Unit",
    "Final Price",
    "Commission Amount",
    "Price",
}


def ledger_table(
    records: Sequence[LedgerRecord],
    kind: LedgerKind,
    title: str,
    tz: Optional[tzinfo] = None,
) -> Table:
    """
    Render a ledger collection as a rich table.

    Uses the export projection so the console view and the exported files show
    the same columns and cell text.
    """
    table = Table(title=title, box=box.ROUNDED)
    columns = columns_for(kind)
    for column in columns:
        if column.header in _NUMERIC_HEADERS:
            table.add_column(column.header, justify="right", style="green")
        elif column.header == "Date":
            table.add_column(column.header, style="cyan", no_wrap=True)
        else:
            table.add_column(column.header)

    _, rows = project_rows(records, kind, tz)
    for row in rows:
        table.add_row(*(column.text(cell) for column, cell in zip(columns, row)))
    return table


def totals_table(totals: LedgerTotals, symbol: str) -> Table:
    table = Table(box=box.SIMPLE, show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right", style="bold green")
    table.add_row("Total Revenue", format_money(totals.total_revenue, symbol))
    table.add_row("Total Commission", format_money(totals.total_commission, symbol))
    return table


def print_report(view: ReportView, console: Optional[Console] = None) -> None:
    console = console or Console()
    if not view.records:
        console.print(f"[yellow]No {view.kind.value} records match the current filters.[/yellow]")
        return

    title = f"{view.kind.value.capitalize()} ({len(view.records)} records)"
    console.print(ledger_table(view.records, view.kind, title))
    if view.totals is not None:
        console.print(totals_table(view.totals, get_settings().currency_symbol))


def print_dashboard(dashboard: Dashboard, console: Optional[Console] = None) -> None:
    """
    Render the overview: counts, revenue and commission, the most recent
    entries of each ledger and any stored prices that drifted from the entry
    formula.
    """
    console = console or Console()
    symbol = get_settings().currency_symbol
    summary = dashboard.summary

    overview = Table(title="Farm Connect Dashboard", box=box.ROUNDED, show_header=False)
    overview.add_column("Metric", style="cyan")
    overview.add_column("Value", justify="right", style="bold")
    overview.add_row("Farmer Entries", str(summary.goods_count))
    overview.add_row("Customer Entries", str(summary.customers_count))
    overview.add_row("Total Revenue", format_money(summary.totals.total_revenue, symbol))
    overview.add_row("Total Commission", format_money(summary.totals.total_commission, symbol))
    if summary.fetched_at is not None:
        overview.caption = f"Loaded {summary.fetched_at:%Y-%m-%d %H:%M:%S %Z}"
    console.print(overview)

    if summary.recent_goods:
        console.print(ledger_table(summary.recent_goods, LedgerKind.GOODS, "Recent Farmer Entries"))
    else:
        console.print("[dim]No farmer entries yet.[/dim]")
    if summary.recent_customers:
        console.print(
            ledger_table(summary.recent_customers, LedgerKind.CUSTOMERS, "Recent Customer Entries")
        )
    else:
        console.print("[dim]No customer entries yet.[/dim]")

    if dashboard.drift:
        drift = Table(
            title="[yellow]Stored final prices that disagree with the entry formula[/yellow]",
            box=box.ROUNDED,
        )
        drift.add_column("ID", style="cyan")
        drift.add_column("Farmer")
        drift.add_column("Stored", justify="right")
        drift.add_column("Expected", justify="right")
        drift.add_column("Difference", justify="right", style="red")
        for item in dashboard.drift:
            drift.add_row(
                item.record.id or "-",
                item.record.farmer_name,
                format_money(item.stored, symbol),
                format_money(item.expected, symbol),
                format_money(item.difference, symbol),
            )
        console.print(drift)


def print_bulk_results(results: List[BulkItemResult], console: Optional[Console] = None) -> None:
    console = console or Console()
    styles = {
        ItemStatus.SUCCEEDED: "green",
        ItemStatus.FAILED: "red",
        ItemStatus.CANCELLED: "yellow",
    }
    table = Table(title="Generated Documents", box=box.ROUNDED)
    table.add_column("#", justify="right")
    table.add_column("Record", style="cyan")
    table.add_column("Status")
    table.add_column("Output / Error")
    for result in results:
        style = styles[result.status]
        detail = str(result.value) if result.ok else (result.error or "")
        table.add_row(
            str(result.index + 1),
            result.record.id or "-",
            f"[{style}]{result.status.value}[/{style}]",
            detail,
        )
    console.print(table)
