from __future__ import annotations

import sys
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import NoReturn, Optional

import typer
from pydantic import ValidationError

from farm_connect.config import get_settings
from farm_connect.domain.entries import CustomerEntry, GoodsEntry
from farm_connect.domain.models import Snapshot, Units
from farm_connect.errors import FarmConnectError, GatewayError, NothingToGenerateError
from farm_connect.export import ExportFormat
from farm_connect.filters import FilterCriteria
from farm_connect.orchestrator import (
    add_record,
    build_dashboard,
    build_report,
    export_report,
    generate_document,
    generate_documents,
    load_snapshot,
)
from farm_connect.reporter import print_bulk_results, print_dashboard, print_report
from farm_connect.utils.logging import configure_logging

app = typer.Typer(help="Farm Connect reporting CLI.")

KIND_OPTION = typer.Option("goods", "--kind", "-k", help="Ledger: goods (farmers) or customers.")
SEARCH_OPTION = typer.Option(None, "--search", "-s", help="Case-insensitive text search.")
DATE_OPTION = typer.Option(None, "--date", "-d", formats=["%Y-%m-%d"], help="Calendar day.")
COMMISSION_OPTION = typer.Option(
    "all", "--commission", "-c", help="Goods only: all, with or without commission."
)
RETRIES_OPTION = typer.Option(
    1, "--retries", min=1, help="Attempts at loading the records before giving up."
)


def _decimal(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        raise typer.BadParameter(f"'{value}' is not a number") from None


def _setup() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)


def _criteria(
    search: Optional[str], day: Optional[datetime], commission: str
) -> FilterCriteria:
    try:
        return FilterCriteria(
            search_text=search, exact_date=day.date() if day else None, commission=commission
        )
    except ValidationError as exc:
        raise typer.BadParameter(f"Invalid filter: {exc.errors()[0]['msg']}") from exc


def _load(retries: int) -> Snapshot:
    try:
        return load_snapshot(retries=retries)
    except GatewayError as exc:
        typer.echo(f"Could not load records: {exc}", err=True)
        typer.echo("No records to show. Re-run with --retries to try again.", err=True)
        raise typer.Exit(code=1)


def _fail(exc: Exception) -> NoReturn:
    typer.echo(f"Error: {exc}", err=True)
    raise typer.Exit(code=1)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"output={settings.output_dir} tz={settings.display_timezone or 'local'} "
        f"bulk_delay_ms={settings.bulk_delay_ms} currency={settings.currency_symbol}"
    )


@app.command()
def dashboard(retries: int = RETRIES_OPTION) -> None:
    """
    Show counts, revenue, commission and the most recent entries.
    """
    _setup()
    print_dashboard(build_dashboard(_load(retries)))


@app.command()
def report(
    kind: str = KIND_OPTION,
    search: Optional[str] = SEARCH_OPTION,
    day: Optional[datetime] = DATE_OPTION,
    commission: str = COMMISSION_OPTION,
    retries: int = RETRIES_OPTION,
) -> None:
    """
    Show one ledger filtered by the view parameters, with totals for goods.
    """
    _setup()
    criteria = _criteria(search, day, commission)
    snapshot = _load(retries)
    try:
        print_report(build_report(snapshot, kind, criteria))
    except FarmConnectError as exc:
        _fail(exc)


@app.command()
def export(
    kind: str = KIND_OPTION,
    fmt: ExportFormat = typer.Option(ExportFormat.CSV, "--format", "-f", help="csv or xlsx."),
    search: Optional[str] = SEARCH_OPTION,
    day: Optional[datetime] = DATE_OPTION,
    commission: str = COMMISSION_OPTION,
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", "-o"),
    retries: int = RETRIES_OPTION,
) -> None:
    """
    Export the filtered ledger to CSV or XLSX.
    """
    _setup()
    criteria = _criteria(search, day, commission)
    snapshot = _load(retries)
    try:
        path = export_report(snapshot, kind, fmt, criteria, output_dir=output_dir)
    except FarmConnectError as exc:
        _fail(exc)
    typer.echo(f"Exported {path}")


@app.command()
def slips(
    kind: str = KIND_OPTION,
    record_id: Optional[str] = typer.Option(
        None, "--id", help="Render a single record instead of the whole filtered view."
    ),
    search: Optional[str] = SEARCH_OPTION,
    day: Optional[datetime] = DATE_OPTION,
    commission: str = COMMISSION_OPTION,
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", "-o"),
    delay_ms: Optional[int] = typer.Option(
        None, "--delay-ms", min=0, help="Spacing between bulk renders (default from settings)."
    ),
    retries: int = RETRIES_OPTION,
) -> None:
    """
    Generate farmer receipts or customer invoices as PDF files.
    """
    _setup()
    criteria = _criteria(search, day, commission)
    snapshot = _load(retries)
    try:
        if record_id is not None:
            path = generate_document(snapshot, kind, record_id, output_dir=output_dir)
            typer.echo(f"Saved {path}")
            return
        delay = delay_ms / 1000 if delay_ms is not None else None
        results = generate_documents(snapshot, kind, criteria, output_dir=output_dir, delay=delay)
    except NothingToGenerateError as exc:
        typer.echo(str(exc))
        return
    except FarmConnectError as exc:
        _fail(exc)
    print_bulk_results(results)
    if any(not r.ok for r in results):
        raise typer.Exit(code=1)


@app.command("add-goods")
def add_goods(
    farmer_name: str = typer.Option(..., "--farmer-name"),
    farmer_phone: str = typer.Option(..., "--farmer-phone"),
    good_name: str = typer.Option(..., "--good-name"),
    quantity: Decimal = typer.Option(..., "--quantity", parser=_decimal),
    units: Units = typer.Option(Units.KG, "--units"),
    price_per_unit: Decimal = typer.Option(..., "--price-per-unit", parser=_decimal),
    with_commission: bool = typer.Option(False, "--with-commission/--without-commission"),
) -> None:
    """
    Record goods collected from a farmer; the final price is computed now.
    """
    _setup()
    try:
        entry = GoodsEntry(
            farmer_name=farmer_name,
            farmer_phone=farmer_phone,
            good_name=good_name,
            quantity=quantity,
            units=units,
            price_per_unit=price_per_unit,
            with_commission=with_commission,
        )
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc
    try:
        record = add_record(entry)
    except FarmConnectError as exc:
        _fail(exc)
    typer.echo(f"Added goods record {record.id} (final price {record.final_price})")


@app.command("add-customer")
def add_customer(
    customer_name: str = typer.Option(..., "--customer-name"),
    phone: str = typer.Option(..., "--phone"),
    address: str = typer.Option(..., "--address"),
    goods_purchased: str = typer.Option(..., "--goods-purchased"),
    price: Decimal = typer.Option(..., "--price", parser=_decimal),
) -> None:
    """
    Record a sale to a customer.
    """
    _setup()
    try:
        entry = CustomerEntry(
            customer_name=customer_name,
            phone=phone,
            address=address,
            goods_purchased=goods_purchased,
            price=price,
        )
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc
    try:
        record = add_record(entry)
    except FarmConnectError as exc:
        _fail(exc)
    typer.echo(f"Added customer record {record.id}")


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
