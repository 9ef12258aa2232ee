"""Customer purchase invoice."""

from __future__ import annotations

from typing import Optional

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
from farm_connect.domain.models import CustomerRecord, LedgerKind

SUBTITLE = "Customer Purchase Receipt"
REFERENCE_PREFIX = "FC-INV-"
FILENAME_PREFIX = "customer_invoice"
PAYMENT_STATUS = "Paid"
TERMS_HEADING = "Terms & Conditions:"
TERMS = (
    "• All goods are sold as-is without warranty",
    "• Returns are accepted within 24 hours of purchase",
    "• Quality guarantee for fresh produce",
)
FOOTER = ("Thank you for your purchase!", "Farm Connect - Fresh from Farm to Table")


def build_invoice(record: CustomerRecord, settings: Optional[Settings] = None) -> DocumentContent:
    settings = settings or get_settings()
    tz = resolve_zone(settings.display_timezone)
    purchased_on = display_day(record.created_at, tz)

    return DocumentContent(
        title=settings.organization_name,
        subtitle=SUBTITLE,
        date_text=purchased_on,
        reference_label="Invoice #",
        reference=reference_number(
            REFERENCE_PREFIX, record.id, settings.legacy_reference_fallback
        ),
        info_heading="Customer Information:",
        info=(
            ("Name", record.customer_name),
            ("Phone", record.phone),
            ("Address", record.address),
        ),
        detail_heading="Purchase Information:",
        details=(
            ("Goods Purchased", record.goods_purchased),
            ("Total Amount", format_money(record.price, settings.currency_symbol)),
            ("Payment Status", PAYMENT_STATUS),
            ("Purchase Date", purchased_on),
        ),
        footer=FOOTER,
        filename=document_filename(FILENAME_PREFIX, record.customer_name, record.created_at, tz),
        annotation=Annotation(lines=TERMS, heading=TERMS_HEADING),
    )


def render_invoice(
    record: CustomerRecord,
    canvas_factory: Optional[CanvasFactory] = None,
    settings: Optional[Settings] = None,
) -> RenderedDocument:
    """Render one customer record as a single-page invoice."""
    return render_content(build_invoice(record, settings), LedgerKind.CUSTOMERS, canvas_factory)


__all__ = ["TERMS", "build_invoice", "render_invoice"]
