"""
Page template and contracts shared by receipts and invoices.

A document is described by a `DocumentContent` value (pure data derived from
one ledger record) and filled into a single fixed-layout page through the
`PageCanvas` capability. Coordinates are millimetres from the top-left corner
of the page; text `y` values are baselines.
"""

from __future__ import annotations

import secrets
import string
from dataclasses import dataclass
from datetime import datetime, tzinfo
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import (
    Callable,
    Literal,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    Union,
    runtime_checkable,
)

from farm_connect.domain.dates import iso_day
from farm_connect.domain.models import LedgerKind, amount_or_zero
from farm_connect.errors import MissingReferenceError
from farm_connect.utils.logging import get_logger

log = get_logger(__name__)

FontStyle = Literal["normal", "bold", "italic"]
Align = Literal["left", "center"]

# Page layout, in millimetres.
LEFT_X = 20.0
TITLE_Y = 30.0
SUBTITLE_Y = 45.0
DATE_Y = 60.0
REFERENCE_Y = 70.0
RULE_Y = 80.0
INFO_HEADING_Y = 95.0
INFO_FIRST_Y = 110.0
INFO_STEP = 15.0
DETAIL_HEADING_Y = 160.0
TABLE_Y = 170.0
TABLE_COLUMN_WIDTHS = (50.0, 80.0)
ANNOTATION_GAP = 20.0
ANNOTATION_STEP = 10.0
FOOTER_OFFSETS = (30.0, 20.0)

_TOKEN_ALPHABET = string.digits + string.ascii_lowercase
_TOKEN_LENGTH = 9


@runtime_checkable
class PageCanvas(Protocol):
    """
    Drawing capability a document template is filled into.

    Attributes
    ----------
    page_width, page_height : float
        Page size in millimetres.
    """

    page_width: float
    page_height: float

    def text(
        self,
        value: str,
        x: float,
        y: float,
        *,
        size: float,
        style: FontStyle = "normal",
        align: Align = "left",
    ) -> None:
        """Draw one line of text with its baseline at `y`."""
        ...

    def rule(self, x1: float, y: float, x2: float, width: float = 0.5) -> None:
        """Draw a horizontal line."""
        ...

    def table(
        self,
        rows: Sequence[Tuple[str, str]],
        start_y: float,
        *,
        size: float,
        column_widths: Tuple[float, float],
    ) -> float:
        """Draw a striped two-column table from `start_y`; return its bottom edge."""
        ...

    def finish(self) -> bytes:
        """Close the page and return the encoded document."""
        ...


CanvasFactory = Callable[[str], PageCanvas]


@dataclass(frozen=True)
class Annotation:
    """Optional block printed under the detail table."""

    lines: Tuple[str, ...]
    heading: Optional[str] = None
    style: FontStyle = "normal"


@dataclass(frozen=True)
class DocumentContent:
    title: str
    subtitle: str
    date_text: str
    reference_label: str
    reference: str
    info_heading: str
    info: Tuple[Tuple[str, str], ...]
    detail_heading: str
    details: Tuple[Tuple[str, str], ...]
    footer: Tuple[str, str]
    filename: str
    annotation: Optional[Annotation] = None


@dataclass(frozen=True)
class RenderedDocument:
    kind: LedgerKind
    filename: str
    reference: str
    content: bytes


def format_money(value: Optional[Decimal], symbol: str) -> str:
    amount = amount_or_zero(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"{symbol} {amount}" if symbol else str(amount)


def reference_number(prefix: str, record_id: Optional[str], allow_fallback: bool = False) -> str:
    """
    `prefix + id`; records without an id are an integrity error unless the
    legacy random fallback token is explicitly allowed.
    """
    if record_id:
        return f"{prefix}{record_id}"
    if not allow_fallback:
        raise MissingReferenceError(f"Cannot build a {prefix!r} reference: record has no id.")
    token = "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(_TOKEN_LENGTH))
    log.warning("[REFERENCE FALLBACK] %s%s", prefix, token, extra={"prefix": prefix})
    return f"{prefix}{token}"


def document_filename(
    prefix: str, person_name: str, created_at: datetime, tz: Optional[tzinfo] = None
) -> str:
    return f"{prefix}_{person_name}_{iso_day(created_at, tz)}.pdf"


def fill_template(page: PageCanvas, content: DocumentContent) -> None:
    """Place every content block at its fixed position on the page."""
    center = page.page_width / 2

    page.text(content.title, center, TITLE_Y, size=20, style="bold", align="center")
    page.text(content.subtitle, center, SUBTITLE_Y, size=16, align="center")
    page.text(f"Date: {content.date_text}", LEFT_X, DATE_Y, size=10)
    page.text(f"{content.reference_label}: {content.reference}", LEFT_X, REFERENCE_Y, size=10)
    page.rule(LEFT_X, RULE_Y, page.page_width - LEFT_X, width=0.5)

    page.text(content.info_heading, LEFT_X, INFO_HEADING_Y, size=14, style="bold")
    for index, (label, value) in enumerate(content.info):
        page.text(f"{label}: {value}", LEFT_X, INFO_FIRST_Y + index * INFO_STEP, size=12)

    page.text(content.detail_heading, LEFT_X, DETAIL_HEADING_Y, size=14, style="bold")
    table_bottom = page.table(
        content.details, TABLE_Y, size=11, column_widths=TABLE_COLUMN_WIDTHS
    )

    if content.annotation is not None:
        y = table_bottom + ANNOTATION_GAP
        if content.annotation.heading:
            page.text(content.annotation.heading, LEFT_X, y, size=10, style="bold")
            y += ANNOTATION_STEP
        for line in content.annotation.lines:
            page.text(line, LEFT_X, y, size=10, style=content.annotation.style)
            y += ANNOTATION_STEP

    # Footer is anchored to the page bottom whatever precedes it.
    for offset, line in zip(FOOTER_OFFSETS, content.footer):
        page.text(line, center, page.page_height - offset, size=10, align="center")


def render_content(
    content: DocumentContent, kind: LedgerKind, canvas_factory: Optional[CanvasFactory] = None
) -> RenderedDocument:
    if canvas_factory is None:
        from farm_connect.documents.canvas import ReportlabCanvas

        canvas_factory = ReportlabCanvas
    page = canvas_factory(f"{content.subtitle} {content.reference}")
    fill_template(page, content)
    return RenderedDocument(
        kind=kind,
        filename=content.filename,
        reference=content.reference,
        content=page.finish(),
    )


def save_document(document: RenderedDocument, output_dir: Union[str, Path]) -> Path:
    """Write a rendered document to disk, keeping its name on a single path segment."""
    target_dir = Path(output_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    safe_name = document.filename.replace("/", "-").replace("\\", "-")
    path = target_dir / safe_name
    path.write_bytes(document.content)
    log.info(
        "[DOCUMENT SAVED] %s",
        safe_name,
        extra={"kind": document.kind.value, "reference": document.reference, "path": str(path)},
    )
    return path


__all__ = [
    "Annotation",
    "CanvasFactory",
    "DocumentContent",
    "PageCanvas",
    "RenderedDocument",
    "document_filename",
    "fill_template",
    "format_money",
    "reference_number",
    "render_content",
    "save_document",
]
