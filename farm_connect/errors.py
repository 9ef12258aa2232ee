"""
Exception hierarchy for Farm Connect.

Callers catch `FarmConnectError` to handle every failure raised by the
reporting and document core; the subclasses separate store failures from data
problems so the CLI can react differently (empty state vs. skipped record).
"""

from __future__ import annotations


class FarmConnectError(Exception):
    """Base class for all Farm Connect errors."""


class GatewayError(FarmConnectError):
    """Raised when the record store is unreachable or rejects a request."""


class UnknownLedgerError(FarmConnectError, ValueError):
    """Raised when a ledger kind or table name is not recognised."""


class DataIntegrityError(FarmConnectError):
    """Raised when a stored record violates an assumption of the core."""


class MissingReferenceError(DataIntegrityError):
    """Raised when a record has no store-assigned id to build a reference from."""


class RecordNotFoundError(FarmConnectError, LookupError):
    """Raised when a record id is not present in the loaded snapshot."""


class NothingToGenerateError(FarmConnectError):
    """Raised when a bulk generation run is requested for zero records."""


__all__ = [
    "FarmConnectError",
    "GatewayError",
    "UnknownLedgerError",
    "DataIntegrityError",
    "MissingReferenceError",
    "NothingToGenerateError",
    "RecordNotFoundError",
]
