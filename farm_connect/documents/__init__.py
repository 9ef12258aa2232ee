"""
Documents package for Farm Connect.

Re-exports the page template contracts and the two concrete renderers
(collection receipts for the goods ledger, invoices for the customers ledger)
so downstream code can import from `farm_connect.documents` directly.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional, Union

from farm_connect.documents.base import (
    Annotation,
    CanvasFactory,
    DocumentContent,
    PageCanvas,
    RenderedDocument,
    fill_template,
    save_document,
)
from farm_connect.documents.invoice import build_invoice, render_invoice
from farm_connect.documents.receipt import build_receipt, render_receipt
from farm_connect.domain.models import LedgerKind, LedgerRecord

Renderer = Callable[..., RenderedDocument]


def _renderers() -> Dict[LedgerKind, Renderer]:
    """Registry of document renderers per ledger."""
    return {
        LedgerKind.GOODS: render_receipt,
        LedgerKind.CUSTOMERS: render_invoice,
    }


def renderer_for(kind: Union[str, LedgerKind]) -> Renderer:
    return _renderers()[LedgerKind.parse(kind)]


def render_document(
    record: LedgerRecord, canvas_factory: Optional[CanvasFactory] = None
) -> RenderedDocument:
    """Render a receipt or an invoice depending on the record's ledger."""
    return renderer_for(record.kind)(record, canvas_factory)


__all__ = [
    # Contracts
    "Annotation",
    "CanvasFactory",
    "DocumentContent",
    "PageCanvas",
    "RenderedDocument",
    "fill_template",
    "save_document",
    # Renderers
    "build_invoice",
    "build_receipt",
    "render_document",
    "render_invoice",
    "render_receipt",
    "renderer_for",
]
