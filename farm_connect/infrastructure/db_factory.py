"""
Database connection factory utilities for Farm Connect.

Provides centralized management of sync and async PostgreSQL connections/pools
for the record store gateway. The PoolManager singleton ensures the shared sync
pool is cleaned up on application exit.

Connection attempts are never retried here: a failed fetch surfaces to the
caller, who may re-fetch the whole snapshot.
"""

from __future__ import annotations

import atexit
import threading
from typing import Optional

import psycopg
from psycopg import Connection, sql
from psycopg_pool import AsyncConnectionPool, ConnectionPool

from farm_connect.config import build_dsn


class PoolManager:
    """
    Thread-safe singleton for managing the shared sync connection pool.

    Handles lifecycle management with automatic cleanup via atexit hook.
    """

    _instance: Optional["PoolManager"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "PoolManager":
        """Create or return the singleton instance."""
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._sync_pool: Optional[ConnectionPool] = None
                # Register cleanup on exit
                atexit.register(cls._instance.close_all)
            return cls._instance

    def get_sync_pool(self, min_size: int = 1, max_size: int = 4) -> ConnectionPool:
        """
        Get or create the synchronous connection pool.

        Parameters
        ----------
        min_size : int
            Minimum number of idle connections to keep.
        max_size : int
            Maximum total connections in the pool.

        Returns
        -------
        ConnectionPool
            The managed sync pool instance.
        """
        with self._lock:
            if self._sync_pool is None:
                self._sync_pool = ConnectionPool(
                    conninfo=build_dsn(), min_size=min_size, max_size=max_size, open=True
                )
            return self._sync_pool

    def close_all(self) -> None:
        """
        Close the managed pool and release resources.

        This is called automatically on exit via atexit hook.
        """
        with self._lock:
            if self._sync_pool is not None:
                try:
                    self._sync_pool.close()
                finally:
                    self._sync_pool = None


def get_sync_connection(dsn: Optional[str] = None) -> Connection:
    """
    Open a dedicated synchronous connection.

    Use this for simple, one-off operations. Prefer the pool for repeated use.

    Raises
    ------
    psycopg.OperationalError
        If the store cannot be reached.
    """
    return psycopg.connect(dsn or build_dsn())


def get_sync_pool(min_size: int = 1, max_size: int = 4) -> ConnectionPool:
    """
    Get or create a synchronous connection pool via PoolManager.
    """
    manager = PoolManager()
    return manager.get_sync_pool(min_size=min_size, max_size=max_size)


def create_async_pool(
    dsn: Optional[str] = None, min_size: int = 1, max_size: int = 4
) -> AsyncConnectionPool:
    """
    Build an unopened asynchronous pool; the caller awaits `open()` and `close()`.
    """
    return AsyncConnectionPool(
        conninfo=dsn or build_dsn(), min_size=min_size, max_size=max_size, open=False
    )


def statement_timeout_sql(timeout_ms: int) -> Optional[sql.Composed]:
    """SET statement_timeout for the current session, or None when disabled."""
    if timeout_ms <= 0:
        return None
    return sql.SQL("SET statement_timeout = {}").format(sql.Literal(int(timeout_ms)))


def apply_statement_timeout(cursor: psycopg.Cursor, timeout_ms: int) -> None:
    query = statement_timeout_sql(timeout_ms)
    if query is not None:
        cursor.execute(query)


__all__ = [
    "PoolManager",
    "apply_statement_timeout",
    "create_async_pool",
    "get_sync_connection",
    "get_sync_pool",
    "statement_timeout_sql",
]
