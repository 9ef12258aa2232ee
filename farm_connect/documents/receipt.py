"""
Farmer goods collection receipt.

Amounts shown as "Total Amount" are recomputed from quantity and unit price;
"Final Amount" is the final price stored when the goods were entered.
"""

from __future__ import annotations

from typing import Optional

from farm_connect.aggregation import gross_amount
from farm_connect.config import Settings, get_settings
from farm_connect.documents.base import (
    Annotation,
    CanvasFactory,
    DocumentContent,
    RenderedDocument,
    document_filename,
    format_money,
    reference_number,
    render_content,
)
from farm_connect.domain.dates import display_day, resolve_zone
from farm_connect.domain.models import GoodsRecord, LedgerKind, amount_or_zero, format_number

SUBTITLE = "Farmer Goods Collection Receipt"
REFERENCE_PREFIX = "FC-"
FILENAME_PREFIX = "farmer_slip"
COMMISSION_NOTE = "Note: 10% commission has been deducted from the total amount."
FOOTER = ("Thank you for your business!", "Farm Connect - Connecting Farmers to Markets")


def build_receipt(record: GoodsRecord, settings: Optional[Settings] = None) -> DocumentContent:
    settings = settings or get_settings()
    tz = resolve_zone(settings.display_timezone)
    symbol = settings.currency_symbol
    collected_on = display_day(record.created_at, tz)

    details = (
        ("Good Name", record.good_name),
        ("Quantity", f"{format_number(amount_or_zero(record.quantity))} {record.units.value}"),
        ("Price per Unit", format_money(record.price_per_unit, symbol)),
        ("Total Amount", format_money(gross_amount(record), symbol)),
        ("Commission Applied", "Yes (10%)" if record.with_commission else "No"),
        ("Final Amount", format_money(record.final_price, symbol)),
    )
    annotation = (
        Annotation(lines=(COMMISSION_NOTE,), style="italic") if record.with_commission else None
    )

    return DocumentContent(
        title=settings.organization_name,
        subtitle=SUBTITLE,
        date_text=collected_on,
        reference_label="Receipt #",
        reference=reference_number(
            REFERENCE_PREFIX, record.id, settings.legacy_reference_fallback
        ),
        info_heading="Farmer Information:",
        info=(
            ("Name", record.farmer_name),
            ("Phone", record.farmer_phone),
            ("Date of Collection", collected_on),
        ),
        detail_heading="Goods Information:",
        details=details,
        footer=FOOTER,
        filename=document_filename(FILENAME_PREFIX, record.farmer_name, record.created_at, tz),
        annotation=annotation,
    )


def render_receipt(
    record: GoodsRecord,
    canvas_factory: Optional[CanvasFactory] = None,
    settings: Optional[Settings] = None,
) -> RenderedDocument:
    """Render one goods record as a single-page collection receipt."""
    return render_content(build_receipt(record, settings), LedgerKind.GOODS, canvas_factory)


__all__ = ["COMMISSION_NOTE", "build_receipt", "render_receipt"]
