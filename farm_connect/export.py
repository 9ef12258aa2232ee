"""
Export serializer for ledger views.

Projects a (usually filtered) record collection onto a fixed column set per
ledger and serializes it as delimited text (CSV) or as a single-sheet XLSX
workbook. Row order always follows the input collection.

Payloads are reproducible byte for byte: the workbook carries fixed document
properties and fixed zip entry timestamps. Only the filename embeds the export
date.

CSV fields are written unescaped. A text field containing the delimiter or a
line break corrupts its row; `find_unsafe_cells` reports such cells so callers
can warn before sharing the file.
"""

from __future__ import annotations

from datetime import date, datetime, tzinfo
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from io import BytesIO
from pathlib import Path
from typing import Any, Callable, List, NamedTuple, Optional, Sequence, Tuple, Union
from zipfile import ZIP_DEFLATED, ZipFile, ZipInfo

from openpyxl import Workbook
from openpyxl.writer.excel import ExcelWriter

from farm_connect.aggregation import commission_amount
from farm_connect.config import get_settings
from farm_connect.domain.dates import display_zone, iso_day
from farm_connect.domain.models import LedgerKind, LedgerRecord, amount_or_zero, format_number
from farm_connect.utils.logging import get_logger

log = get_logger(__name__)

DELIMITER = ","
LINE_END = "\n"

# Fixed workbook metadata keeps XLSX payloads reproducible.
_WORKBOOK_TIMESTAMP = datetime(2000, 1, 1)
_ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)

Cell = Union[str, Decimal]


class ExportFormat(str, Enum):
    CSV = "csv"
    XLSX = "xlsx"


def _money(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _text(value: Cell) -> str:
    return format_number(value) if isinstance(value, Decimal) else str(value)


def _fixed2(value: Cell) -> str:
    return format(value, "f") if isinstance(value, Decimal) else str(value)


class Column(NamedTuple):
    header: str
    value: Callable[[Any, Optional[tzinfo]], Cell]
    text: Callable[[Cell], str] = _text


GOODS_COLUMNS: Tuple[Column, ...] = (
    Column("Date", lambda r, tz: iso_day(r.created_at, tz)),
    Column("Farmer Name", lambda r, tz: r.farmer_name),
    Column("Good Name", lambda r, tz: r.good_name),
    Column("Quantity", lambda r, tz: amount_or_zero(r.quantity)),
    Column("Price per Unit", lambda r, tz: amount_or_zero(r.price_per_unit)),
    Column("With Commission", lambda r, tz: "Yes" if r.with_commission else "No"),
    Column("Final Price", lambda r, tz: amount_or_zero(r.final_price)),
    Column("Commission Amount", lambda r, tz: _money(commission_amount(r)), _fixed2),
)

CUSTOMER_COLUMNS: Tuple[Column, ...] = (
    Column("Date", lambda r, tz: iso_day(r.created_at, tz)),
    Column("Customer Name", lambda r, tz: r.customer_name),
    Column("Phone", lambda r, tz: r.phone),
    Column("Address", lambda r, tz: r.address),
    Column("Goods Purchased", lambda r, tz: r.goods_purchased),
    Column("Price", lambda r, tz: amount_or_zero(r.price)),
)

SHEET_NAMES = {LedgerKind.GOODS: "Goods", LedgerKind.CUSTOMERS: "Customers"}


def columns_for(kind: Union[str, LedgerKind]) -> Tuple[Column, ...]:
    return GOODS_COLUMNS if LedgerKind.parse(kind) is LedgerKind.GOODS else CUSTOMER_COLUMNS


def project_rows(
    records: Sequence[LedgerRecord],
    kind: Union[str, LedgerKind],
    tz: Optional[tzinfo] = None,
) -> Tuple[List[str], List[List[Cell]]]:
    """Header plus one typed row per record, in input order."""
    columns = columns_for(kind)
    zone = tz if tz is not None else display_zone()
    header = [c.header for c in columns]
    rows = [[c.value(record, zone) for c in columns] for record in records]
    return header, rows


def find_unsafe_cells(
    records: Sequence[LedgerRecord],
    kind: Union[str, LedgerKind],
    tz: Optional[tzinfo] = None,
) -> List[Tuple[int, str, str]]:
    """(row index, column header, text) for every cell that would break a CSV row."""
    columns = columns_for(kind)
    _, rows = project_rows(records, kind, tz)
    unsafe = []
    for index, row in enumerate(rows):
        for column, cell in zip(columns, row):
            text = column.text(cell)
            if DELIMITER in text or "\n" in text or "\r" in text:
                unsafe.append((index, column.header, text))
    return unsafe


def to_csv(
    records: Sequence[LedgerRecord],
    kind: Union[str, LedgerKind],
    tz: Optional[tzinfo] = None,
) -> bytes:
    columns = columns_for(kind)
    header, rows = project_rows(records, kind, tz)
    lines = [DELIMITER.join(header)]
    lines.extend(
        DELIMITER.join(column.text(cell) for column, cell in zip(columns, row)) for row in rows
    )
    return "".join(line + LINE_END for line in lines).encode("utf-8")


def _freeze_archive(payload: bytes) -> bytes:
    """Rewrite a zip archive with fixed entry timestamps."""
    out = BytesIO()
    with ZipFile(BytesIO(payload)) as source, ZipFile(out, "w", ZIP_DEFLATED) as target:
        for info in source.infolist():
            frozen = ZipInfo(info.filename, date_time=_ZIP_EPOCH)
            frozen.compress_type = ZIP_DEFLATED
            frozen.external_attr = info.external_attr
            target.writestr(frozen, source.read(info.filename))
    return out.getvalue()


def to_xlsx(
    records: Sequence[LedgerRecord],
    kind: Union[str, LedgerKind],
    tz: Optional[tzinfo] = None,
) -> bytes:
    kind = LedgerKind.parse(kind)
    header, rows = project_rows(records, kind, tz)

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = SHEET_NAMES[kind]
    sheet.append(header)
    for row in rows:
        sheet.append(row)

    workbook.properties.creator = "Farm Connect"
    workbook.properties.created = _WORKBOOK_TIMESTAMP
    workbook.properties.modified = _WORKBOOK_TIMESTAMP

    buffer = BytesIO()
    # ExcelWriter directly: Workbook.save() would stamp the current time.
    ExcelWriter(workbook, ZipFile(buffer, "w", ZIP_DEFLATED)).save()
    return _freeze_archive(buffer.getvalue())


def serialize(
    records: Sequence[LedgerRecord],
    kind: Union[str, LedgerKind],
    fmt: Union[str, ExportFormat],
    tz: Optional[tzinfo] = None,
) -> bytes:
    """
    Serialize a record collection.

    Parameters
    ----------
    records : Sequence[LedgerRecord]
        Records of a single ledger, in the order they should appear.
    kind : LedgerKind | str
        Which column projection to use ("goods" or "customers").
    fmt : ExportFormat | str
        "csv" or "xlsx".
    tz : tzinfo | None
        Wall-clock zone for the Date column; defaults to the display zone.
    """
    fmt = ExportFormat(fmt)
    if fmt is ExportFormat.CSV:
        return to_csv(records, kind, tz)
    return to_xlsx(records, kind, tz)


def export_filename(
    kind: Union[str, LedgerKind], fmt: Union[str, ExportFormat], day: Optional[date] = None
) -> str:
    kind = LedgerKind.parse(kind)
    fmt = ExportFormat(fmt)
    day = day or date.today()
    return f"farm_connect_{kind.value}_report_{day.isoformat()}.{fmt.value}"


def write_export(
    records: Sequence[LedgerRecord],
    kind: Union[str, LedgerKind],
    fmt: Union[str, ExportFormat],
    output_dir: Optional[Union[str, Path]] = None,
    day: Optional[date] = None,
    tz: Optional[tzinfo] = None,
) -> Path:
    """Serialize records and write them under the output directory."""
    kind = LedgerKind.parse(kind)
    fmt = ExportFormat(fmt)
    target_dir = Path(output_dir or get_settings().output_dir)
    target_dir.mkdir(parents=True, exist_ok=True)

    if fmt is ExportFormat.CSV:
        for index, header, text in find_unsafe_cells(records, kind, tz):
            log.warning(
                "[EXPORT UNSAFE CELL] row %d column %r breaks the CSV layout",
                index + 1,
                header,
                extra={"kind": kind.value, "row": index + 1, "column": header, "value": text},
            )

    path = target_dir / export_filename(kind, fmt, day)
    path.write_bytes(serialize(records, kind, fmt, tz))
    log.info(
        "[EXPORT WRITTEN] %s",
        path.name,
        extra={"kind": kind.value, "format": fmt.value, "rows": len(records), "path": str(path)},
    )
    return path


__all__ = [
    "CUSTOMER_COLUMNS",
    "DELIMITER",
    "GOODS_COLUMNS",
    "SHEET_NAMES",
    "ExportFormat",
    "export_filename",
    "find_unsafe_cells",
    "format_number",
    "project_rows",
    "serialize",
    "to_csv",
    "to_xlsx",
    "write_export",
]
