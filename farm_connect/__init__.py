"""
Farm Connect - reporting core for a farm produce collection and sales ledger.

Two ledgers are recorded: goods collected from farmers and goods sold to
customers. This package turns a snapshot of both into:

- Filtered ledger views (free-text search, calendar day, commission flag)
- Revenue and commission totals, plus price drift checks
- CSV and XLSX exports
- Printable farmer receipts and customer invoices (PDF)
- Spaced bulk generation of those documents
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from farm_connect.aggregation import LedgerSummary, LedgerTotals, aggregate, summarize
from farm_connect.bulk import BulkItemResult, BulkJob, run_bulk, schedule_bulk
from farm_connect.config import Settings, get_settings
from farm_connect.documents import RenderedDocument, render_invoice, render_receipt
from farm_connect.domain import CustomerRecord, GoodsRecord, LedgerKind, Snapshot
from farm_connect.export import ExportFormat, serialize, write_export
from farm_connect.filters import FilterCriteria, filter_records
from farm_connect.orchestrator import build_dashboard, build_report, export_report, load_snapshot
from farm_connect.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Records
    "CustomerRecord",
    "GoodsRecord",
    "LedgerKind",
    "Snapshot",
    # Views and totals
    "FilterCriteria",
    "filter_records",
    "LedgerSummary",
    "LedgerTotals",
    "aggregate",
    "summarize",
    # Exports and documents
    "ExportFormat",
    "serialize",
    "write_export",
    "RenderedDocument",
    "render_invoice",
    "render_receipt",
    # Bulk generation
    "BulkItemResult",
    "BulkJob",
    "run_bulk",
    "schedule_bulk",
    # Orchestration
    "build_dashboard",
    "build_report",
    "export_report",
    "load_snapshot",
    # Logging
    "configure_logging",
    "get_logger",
]
