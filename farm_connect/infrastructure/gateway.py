"""
Record store gateway for Farm Connect.

Thin read/write adapter over the two ledger tables. Reads always return
newest-first collections (`ORDER BY created_at DESC` unless asked otherwise),
converted into frozen domain records. Any store failure is surfaced as a
`GatewayError`; recovery is re-fetching the whole snapshot, never a partial
result.
"""

from __future__ import annotations

import asyncio
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Generator, Iterable, List, Mapping, Optional, Sequence, Union

import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool, ConnectionPool
from pydantic import ValidationError

from farm_connect.config import get_settings
from farm_connect.domain.models import (
    CUSTOMERS_TABLE,
    GOODS_TABLE,
    CustomerRecord,
    GoodsRecord,
    LedgerKind,
    LedgerRecord,
    Snapshot,
    record_model,
)
from farm_connect.errors import DataIntegrityError, GatewayError, UnknownLedgerError
from farm_connect.infrastructure.db_factory import (
    apply_statement_timeout,
    create_async_pool,
    get_sync_connection,
    get_sync_pool,
    statement_timeout_sql,
)
from farm_connect.utils.logging import get_logger

log = get_logger(__name__)

TABLES = (GOODS_TABLE, CUSTOMERS_TABLE)
_DIRECTIONS = {"asc": sql.SQL("ASC"), "desc": sql.SQL("DESC")}

Row = Dict[str, Any]


def _check_table(table: str) -> str:
    if table not in TABLES:
        raise UnknownLedgerError(f"Unknown table '{table}'. Available: {', '.join(TABLES)}")
    return table


def build_query(table: str, order_by: str = "created_at", direction: str = "desc") -> sql.Composed:
    """SELECT every column of a ledger table in the requested order."""
    _check_table(table)
    key = direction.lower()
    if key not in _DIRECTIONS:
        raise ValueError(f"Unknown sort direction '{direction}'. Use 'asc' or 'desc'.")
    return sql.SQL("SELECT * FROM {table} ORDER BY {column} {direction}").format(
        table=sql.Identifier("public", table),
        column=sql.Identifier(order_by),
        direction=_DIRECTIONS[key],
    )


def build_insert(table: str, columns: Sequence[str]) -> sql.Composed:
    _check_table(table)
    if not columns:
        raise ValueError("Cannot insert an empty record.")
    return sql.SQL("INSERT INTO {table} ({columns}) VALUES ({values}) RETURNING *").format(
        table=sql.Identifier("public", table),
        columns=sql.SQL(", ").join(sql.Identifier(c) for c in columns),
        values=sql.SQL(", ").join(sql.Placeholder() for _ in columns),
    )


def to_records(kind: Union[str, LedgerKind], rows: Iterable[Mapping[str, Any]]) -> List[LedgerRecord]:
    """Convert raw rows into frozen records, preserving their order."""
    model = record_model(kind)
    records: List[LedgerRecord] = []
    for row in rows:
        try:
            records.append(model.model_validate(dict(row)))
        except ValidationError as exc:
            raise DataIntegrityError(
                f"Malformed {model.kind.value} row id={row.get('id')!r}: {exc.error_count()} error(s)"
            ) from exc
    return records


def _snapshot(goods_rows: Iterable[Row], customer_rows: Iterable[Row]) -> Snapshot:
    return Snapshot(
        goods=tuple(to_records(LedgerKind.GOODS, goods_rows)),
        customers=tuple(to_records(LedgerKind.CUSTOMERS, customer_rows)),
        fetched_at=datetime.now(timezone.utc),
    )


class RecordStoreGateway:
    """
    Synchronous gateway backed by a psycopg connection pool.

    Parameters
    ----------
    dsn_override : str | None
        Open a dedicated connection per call instead of using the shared pool.
    pool : ConnectionPool | None
        Explicit pool to borrow connections from (tests, long-lived services).
    statement_timeout_ms : int | None
        Per-query timeout; defaults to settings.
    """

    def __init__(
        self,
        dsn_override: Optional[str] = None,
        pool: Optional[ConnectionPool] = None,
        statement_timeout_ms: Optional[int] = None,
    ) -> None:
        self._dsn_override = dsn_override
        self._pool = pool
        self.statement_timeout_ms = (
            statement_timeout_ms
            if statement_timeout_ms is not None
            else get_settings().db_statement_timeout_ms
        )

    @contextmanager
    def _connection(self) -> Generator[psycopg.Connection, None, None]:
        if self._pool is not None:
            with self._pool.connection() as conn:
                yield conn
        elif self._dsn_override:
            with get_sync_connection(self._dsn_override) as conn:
                yield conn
        else:
            with get_sync_pool().connection() as conn:
                yield conn

    def query(self, table: str, order_by: str = "created_at", direction: str = "desc") -> List[Row]:
        statement = build_query(table, order_by, direction)
        try:
            with self._connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    apply_statement_timeout(cur, self.statement_timeout_ms)
                    cur.execute(statement)
                    rows = cur.fetchall()
        except psycopg.Error as exc:
            log.error("[GATEWAY QUERY FAILED] %s", table, extra={"table": table, "error": str(exc)})
            raise GatewayError(f"Failed to load '{table}': {exc}") from exc
        log.info("[GATEWAY QUERY] %s", table, extra={"table": table, "rows": len(rows)})
        return rows

    def insert(self, table: str, record: Mapping[str, Any]) -> Row:
        columns = list(record.keys())
        statement = build_insert(table, columns)
        try:
            with self._connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(statement, [record[c] for c in columns])
                    created = cur.fetchone()
                conn.commit()
        except psycopg.Error as exc:
            log.error("[GATEWAY INSERT FAILED] %s", table, extra={"table": table, "error": str(exc)})
            raise GatewayError(f"Failed to insert into '{table}': {exc}") from exc
        log.info("[GATEWAY INSERT] %s", table, extra={"table": table, "id": (created or {}).get("id")})
        return created or {}

    def fetch_ledger(self, kind: Union[str, LedgerKind]) -> List[LedgerRecord]:
        kind = LedgerKind.parse(kind)
        return to_records(kind, self.query(kind.table))

    def fetch_goods(self) -> List[GoodsRecord]:
        return self.fetch_ledger(LedgerKind.GOODS)  # type: ignore[return-value]

    def fetch_customers(self) -> List[CustomerRecord]:
        return self.fetch_ledger(LedgerKind.CUSTOMERS)  # type: ignore[return-value]

    def fetch_snapshot(self) -> Snapshot:
        """Load both ledgers; either both arrive or the whole load fails."""
        return _snapshot(self.query(GOODS_TABLE), self.query(CUSTOMERS_TABLE))


class AsyncRecordStoreGateway:
    """
    Asynchronous gateway backed by a psycopg AsyncConnectionPool.

    Use as an async context manager so an internally created pool is opened
    and closed with the gateway:

        async with AsyncRecordStoreGateway() as gateway:
            snapshot = await gateway.fetch_snapshot()
    """

    def __init__(
        self,
        dsn_override: Optional[str] = None,
        pool: Optional[AsyncConnectionPool] = None,
        statement_timeout_ms: Optional[int] = None,
    ) -> None:
        self._dsn_override = dsn_override
        self._pool = pool
        self._owns_pool = pool is None
        self.statement_timeout_ms = (
            statement_timeout_ms
            if statement_timeout_ms is not None
            else get_settings().db_statement_timeout_ms
        )

    async def __aenter__(self) -> "AsyncRecordStoreGateway":
        if self._pool is None:
            self._pool = create_async_pool(self._dsn_override)
            await self._pool.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._pool is not None and self._owns_pool:
            await self._pool.close()
            self._pool = None

    async def query(
        self, table: str, order_by: str = "created_at", direction: str = "desc"
    ) -> List[Row]:
        if self._pool is None:
            raise RuntimeError("AsyncRecordStoreGateway must be entered before querying.")
        statement = build_query(table, order_by, direction)
        timeout = statement_timeout_sql(self.statement_timeout_ms)
        try:
            async with self._pool.connection() as conn:
                async with conn.cursor(row_factory=dict_row) as cur:
                    if timeout is not None:
                        await cur.execute(timeout)
                    await cur.execute(statement)
                    rows = await cur.fetchall()
        except psycopg.Error as exc:
            log.error("[GATEWAY QUERY FAILED] %s", table, extra={"table": table, "error": str(exc)})
            raise GatewayError(f"Failed to load '{table}': {exc}") from exc
        log.info("[GATEWAY QUERY] %s", table, extra={"table": table, "rows": len(rows)})
        return rows

    async def fetch_snapshot(self) -> Snapshot:
        """Fetch both ledgers concurrently."""
        goods_rows, customer_rows = await asyncio.gather(
            self.query(GOODS_TABLE), self.query(CUSTOMERS_TABLE)
        )
        return _snapshot(goods_rows, customer_rows)


__all__ = [
    "TABLES",
    "AsyncRecordStoreGateway",
    "RecordStoreGateway",
    "build_insert",
    "build_query",
    "to_records",
]
