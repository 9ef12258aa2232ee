"""
Pytest configuration for Farm Connect.

Provides fixtures for:
- Record factories for both ledgers
- Settings overrides for unit and integration tests
- Database connection management and seeding for integration tests
"""

from __future__ import annotations

import os
import tempfile
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Generator

import psycopg
import pytest

from farm_connect.config import Settings, get_settings
from farm_connect.domain.models import CustomerRecord, GoodsRecord


@pytest.fixture(autouse=True)
def _fresh_settings_cache() -> Generator[None, None, None]:
    """Make every test read settings from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def goods_factory() -> Callable[..., GoodsRecord]:
    counter = {"next": 1}

    def _make(**overrides: Any) -> GoodsRecord:
        values: dict[str, Any] = {
            "id": str(counter["next"]),
            "farmer_name": "Ravi Kumar",
            "farmer_phone": "9876543210",
            "good_name": "Tomato",
            "quantity": Decimal("10"),
            "units": "Kg",
            "price_per_unit": Decimal("5"),
            "with_commission": True,
            "final_price": Decimal("45"),
            "created_at": datetime(2024, 3, 5, 10, 30),
        }
        values.update(overrides)
        counter["next"] += 1
        return GoodsRecord(**values)

    return _make


@pytest.fixture
def customer_factory() -> Callable[..., CustomerRecord]:
    counter = {"next": 1}

    def _make(**overrides: Any) -> CustomerRecord:
        values: dict[str, Any] = {
            "id": f"c{counter['next']}",
            "customer_name": "Anita Patel",
            "phone": "9123456780",
            "address": "12 Market Road",
            "goods_purchased": "Tomato",
            "price": Decimal("120"),
            "created_at": datetime(2024, 3, 5, 18, 0),
        }
        values.update(overrides)
        counter["next"] += 1
        return CustomerRecord(**values)

    return _make


@pytest.fixture
def unit_settings(tmp_path: Path) -> Settings:
    """Settings pinned for deterministic unit tests."""
    return Settings(
        output_dir=tmp_path / "output",
        display_timezone="UTC",
        organization_name="FARM CONNECT",
        currency_symbol="Rs.",
        legacy_reference_fallback=False,
        bulk_delay_ms=500,
    )


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "farm_connect"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped database connection for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="session")
def db_schema_initialized(db_connection: psycopg.Connection) -> bool:
    """
    Ensure both ledger tables exist, creating them from db/init.sql if needed.
    """
    init_sql_path = Path(__file__).parent.parent / "db" / "init.sql"
    with db_connection.cursor() as cur:
        cur.execute(init_sql_path.read_text(encoding="utf-8"))
    db_connection.commit()
    return True


@pytest.fixture(scope="function")
def clean_ledgers(db_connection: psycopg.Connection, db_schema_initialized: bool):
    """
    Empty both ledgers before and after each test function.
    """
    with db_connection.cursor() as cur:
        cur.execute("TRUNCATE TABLE public.farmers_goods, public.customers;")
    db_connection.commit()
    yield
    with db_connection.cursor() as cur:
        cur.execute("TRUNCATE TABLE public.farmers_goods, public.customers;")
    db_connection.commit()


@pytest.fixture(scope="function")
def seeded_ledgers(
    db_connection: psycopg.Connection,
    clean_ledgers,
    test_dsn: str,
) -> tuple[int, int]:
    """
    Seed a small dataset (20 goods, 10 customers) via the seed script.

    Returns the (goods, customers) row counts.
    """
    from scripts.generate_data import (
        CUSTOMER_COLUMNS,
        GOODS_COLUMNS,
        _copy_into_db,
        _generate_customers_csv,
        _generate_goods_csv,
    )

    until = datetime(2024, 3, 31, 12, 0)
    with tempfile.TemporaryDirectory() as tmpdir:
        goods_csv = Path(tmpdir) / "farmers_goods.csv"
        customers_csv = Path(tmpdir) / "customers.csv"
        _generate_goods_csv(goods_csv, rows=20, seed=42, until=until, days=10)
        _generate_customers_csv(customers_csv, rows=10, seed=42, until=until, days=10)
        _copy_into_db(test_dsn, "farmers_goods", GOODS_COLUMNS, goods_csv)
        _copy_into_db(test_dsn, "customers", CUSTOMER_COLUMNS, customers_csv)

    with db_connection.cursor() as cur:
        cur.execute("SELECT COUNT(*) FROM public.farmers_goods;")
        goods = cur.fetchone()[0]
        cur.execute("SELECT COUNT(*) FROM public.customers;")
        customers = cur.fetchone()[0]

    return goods, customers
