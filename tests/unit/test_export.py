from __future__ import annotations

import csv
import io
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path

import pytest
from openpyxl import load_workbook

from farm_connect.export import (
    ExportFormat,
    export_filename,
    find_unsafe_cells,
    serialize,
    write_export,
)

UTC = timezone.utc

GOODS_HEADER = [
    "Date",
    "Farmer Name",
    "Good Name",
    "Quantity",
    "Price per Unit",
    "With Commission",
    "Final Price",
    "Commission Amount",
]


def _csv_rows(payload: bytes) -> list[list[str]]:
    return list(csv.reader(io.StringIO(payload.decode("utf-8"))))


def test_goods_csv_projection(goods_factory):
    record = goods_factory()

    rows = _csv_rows(serialize([record], "goods", "csv", tz=UTC))

    assert rows == [
        GOODS_HEADER,
        ["2024-03-05", "Ravi Kumar", "Tomato", "10", "5", "Yes", "45", "5.00"],
    ]


def test_customers_csv_projection(customer_factory):
    record = customer_factory()

    rows = _csv_rows(serialize([record], "customers", ExportFormat.CSV, tz=UTC))

    assert rows[0] == ["Date", "Customer Name", "Phone", "Address", "Goods Purchased", "Price"]
    assert rows[1] == ["2024-03-05", "Anita Patel", "9123456780", "12 Market Road", "Tomato", "120"]


def test_csv_has_one_line_per_record_plus_header_in_input_order(goods_factory):
    records = [goods_factory(good_name=f"Good {i}") for i in range(4)]

    payload = serialize(records, "goods", "csv", tz=UTC)

    lines = payload.decode("utf-8").split("\n")
    assert lines[-1] == ""
    assert len(lines[:-1]) == len(records) + 1
    assert [line.split(",")[2] for line in lines[1:-1]] == [r.good_name for r in records]


def test_csv_fields_are_written_unescaped(customer_factory):
    # A comma inside a text field shifts the remaining cells of that row.
    record = customer_factory(address="12 Market Road, Guntur")

    rows = _csv_rows(serialize([record], "customers", "csv", tz=UTC))

    assert len(rows[1]) == len(rows[0]) + 1
    assert find_unsafe_cells([record], "customers", tz=UTC) == [
        (0, "Address", "12 Market Road, Guntur")
    ]


def test_commission_amount_has_two_decimals_and_zero_when_unflagged(goods_factory):
    record = goods_factory(
        with_commission=False, quantity=Decimal("3"), price_per_unit=Decimal("7.5"), final_price=Decimal("22.5")
    )

    rows = _csv_rows(serialize([record], "goods", "csv", tz=UTC))

    assert rows[1][5:] == ["No", "22.5", "0.00"]


def test_date_column_uses_wall_clock_zone(goods_factory):
    from zoneinfo import ZoneInfo

    record = goods_factory(created_at=datetime(2024, 3, 5, 20, 0, tzinfo=UTC))

    utc_rows = _csv_rows(serialize([record], "goods", "csv", tz=UTC))
    ist_rows = _csv_rows(serialize([record], "goods", "csv", tz=ZoneInfo("Asia/Kolkata")))

    assert utc_rows[1][0] == "2024-03-05"
    assert ist_rows[1][0] == "2024-03-06"


def test_xlsx_single_named_sheet_with_numeric_cells(goods_factory):
    records = [goods_factory(), goods_factory(good_name="Onion")]

    payload = serialize(records, "goods", "xlsx", tz=UTC)

    workbook = load_workbook(io.BytesIO(payload))
    assert workbook.sheetnames == ["Goods"]
    rows = list(workbook["Goods"].iter_rows(values_only=True))
    assert list(rows[0]) == GOODS_HEADER
    assert len(rows) == 3
    assert rows[1][0] == "2024-03-05"
    assert rows[1][2] == "Tomato"
    assert rows[2][2] == "Onion"
    assert isinstance(rows[1][3], (int, float))
    assert float(rows[1][7]) == pytest.approx(5.0)


def test_customers_xlsx_sheet_name(customer_factory):
    payload = serialize([customer_factory()], "customers", "xlsx", tz=UTC)
    assert load_workbook(io.BytesIO(payload)).sheetnames == ["Customers"]


def test_payloads_are_reproducible(goods_factory):
    records = [goods_factory(), goods_factory(good_name="Onion")]

    assert serialize(records, "goods", "xlsx", tz=UTC) == serialize(records, "goods", "xlsx", tz=UTC)
    assert serialize(records, "goods", "csv", tz=UTC) == serialize(records, "goods", "csv", tz=UTC)


def test_empty_export_is_header_only():
    assert serialize([], "goods", "csv", tz=UTC) == (",".join(GOODS_HEADER) + "\n").encode("utf-8")


def test_unknown_format_is_rejected(goods_factory):
    with pytest.raises(ValueError):
        serialize([goods_factory()], "goods", "pdf", tz=UTC)


def test_export_filename_carries_export_date():
    assert export_filename("goods", "csv", date(2024, 3, 5)) == "farm_connect_goods_report_2024-03-05.csv"
    assert (
        export_filename("farmers", ExportFormat.XLSX, date(2024, 3, 5))
        == "farm_connect_goods_report_2024-03-05.xlsx"
    )


def test_write_export_warns_about_unsafe_cells(customer_factory, tmp_path: Path, caplog):
    record = customer_factory(goods_purchased="Tomato, Onion")

    with caplog.at_level("WARNING", logger="farm_connect.export"):
        path = write_export([record], "customers", "csv", output_dir=tmp_path, day=date(2024, 3, 5), tz=UTC)

    assert path == tmp_path / "farm_connect_customers_report_2024-03-05.csv"
    assert path.read_bytes() == serialize([record], "customers", "csv", tz=UTC)
    assert any("[EXPORT UNSAFE CELL]" in message for message in caplog.messages)
