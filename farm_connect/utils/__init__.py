"""
Utilities package for Farm Connect.

Exports shared helpers for logging and other cross-cutting concerns.
Keep this package lightweight and free of ledger-specific logic.
"""

from farm_connect.utils.logging import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
]
