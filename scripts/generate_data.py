"""
Seed data script for Farm Connect.

Generates deterministic pseudo-random farmer goods and customer sales, writes
them as CSV, and loads them into Postgres with COPY. Goods final prices are
computed with the same entry formula the application uses.
"""

from __future__ import annotations

import csv
import random
import sys
import tempfile
import time
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import psycopg
import typer

from farm_connect.config import build_dsn
from farm_connect.domain.models import CUSTOMERS_TABLE, GOODS_TABLE, Units, entry_final_price

app = typer.Typer(help="Generate synthetic ledgers and load into Postgres (CSV + COPY).")

GOODS_COLUMNS = (
    "farmer_name",
    "farmer_phone",
    "good_name",
    "quantity",
    "units",
    "price_per_unit",
    "with_commission",
    "final_price",
    "created_at",
)
CUSTOMER_COLUMNS = ("customer_name", "phone", "address", "goods_purchased", "price", "created_at")

_FIRST_NAMES = ["Ravi", "Anita", "Suresh", "Meena", "Arjun", "Lakshmi", "Vikram", "Priya"]
_LAST_NAMES = ["Kumar", "Patel", "Reddy", "Sharma", "Naidu", "Singh", "Iyer", "Das"]
_GOODS = ["Tomato", "Onion", "Potato", "Mango", "Banana", "Chilli", "Rice", "Cabbage"]
_TOWNS = ["Guntur", "Nashik", "Mysuru", "Madurai", "Indore", "Warangal"]


def _build_dsn(dsn_override: str | None) -> str:
    if dsn_override:
        return dsn_override
    return build_dsn()


def _name(rng: random.Random) -> str:
    return f"{rng.choice(_FIRST_NAMES)} {rng.choice(_LAST_NAMES)}"


def _phone(rng: random.Random) -> str:
    return f"9{rng.randint(100_000_000, 999_999_999)}"


def _timestamp(rng: random.Random, until: datetime, days: int) -> str:
    offset = timedelta(seconds=rng.randint(0, days * 86_400))
    return (until - offset).isoformat()


def _money(rng: random.Random, low: int, high: int) -> Decimal:
    return Decimal(rng.randint(low * 100, high * 100)) / 100


def _generate_goods_csv(csv_path: Path, rows: int, seed: int, until: datetime, days: int) -> None:
    rng = random.Random(seed)
    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(GOODS_COLUMNS)
        for _ in range(rows):
            quantity = Decimal(rng.randint(1, 200))
            price = _money(rng, 5, 120)
            with_commission = rng.choice([True, False])
            final_price = entry_final_price(quantity, price, with_commission)
            writer.writerow(
                [
                    _name(rng),
                    _phone(rng),
                    rng.choice(_GOODS),
                    f"{quantity}",
                    rng.choice(list(Units)).value,
                    f"{price:.2f}",
                    "t" if with_commission else "f",
                    f"{final_price:.2f}",
                    _timestamp(rng, until, days),
                ]
            )


def _generate_customers_csv(
    csv_path: Path, rows: int, seed: int, until: datetime, days: int
) -> None:
    rng = random.Random(seed + 1)
    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(CUSTOMER_COLUMNS)
        for _ in range(rows):
            goods = rng.sample(_GOODS, k=rng.randint(1, 3))
            writer.writerow(
                [
                    _name(rng),
                    _phone(rng),
                    f"{rng.randint(1, 400)} Market Road {rng.choice(_TOWNS)}",
                    " and ".join(goods),
                    f"{_money(rng, 50, 5_000):.2f}",
                    _timestamp(rng, until, days),
                ]
            )


def _copy_into_db(dsn: str, table: str, columns: tuple[str, ...], csv_path: Path) -> None:
    statement = (
        f"COPY public.{table} ({', '.join(columns)}) FROM STDIN WITH (FORMAT csv, HEADER TRUE)"
    )
    with psycopg.connect(dsn) as conn:
        with conn.cursor() as cur:
            with cur.copy(statement) as copy:
                with csv_path.open("r", encoding="utf-8") as f:
                    for line in f:
                        copy.write(line)
        conn.commit()


@app.command()
def main(
    goods: int = typer.Option(200, "--goods", "-g", help="Number of farmer goods rows."),
    customers: int = typer.Option(120, "--customers", "-c", help="Number of customer rows."),
    days: int = typer.Option(30, "--days", help="Spread created_at over this many past days."),
    seed: int = typer.Option(42, "--seed", help="Deterministic RNG seed."),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Optional directory for the CSV files (if omitted, a temp dir will be used).",
    ),
    dsn: str | None = typer.Option(None, "--dsn", help="Optional DSN override for Postgres."),
    no_load: bool = typer.Option(
        False, "--no-load", help="Only generate CSV; skip loading into Postgres."
    ),
) -> None:
    """
    Generate synthetic ledgers and optionally load them into Postgres using COPY.
    """
    start = time.perf_counter()
    out_dir = output or Path(tempfile.mkdtemp(prefix="farm_connect_seed_"))
    out_dir.mkdir(parents=True, exist_ok=True)
    goods_csv = out_dir / f"{GOODS_TABLE}.csv"
    customers_csv = out_dir / f"{CUSTOMERS_TABLE}.csv"
    until = datetime.now(timezone.utc).replace(microsecond=0)

    typer.echo(f"Generating {goods} goods and {customers} customer rows -> {out_dir} (seed={seed})")
    _generate_goods_csv(goods_csv, goods, seed, until, days)
    _generate_customers_csv(customers_csv, customers, seed, until, days)

    if no_load:
        typer.echo("Skipping load (no-load flag set).")
        return

    conn_dsn = _build_dsn(dsn)
    typer.echo("Loading CSV into Postgres via COPY...")
    _copy_into_db(conn_dsn, GOODS_TABLE, GOODS_COLUMNS, goods_csv)
    _copy_into_db(conn_dsn, CUSTOMERS_TABLE, CUSTOMER_COLUMNS, customers_csv)
    typer.echo(f"Seed completed in {time.perf_counter() - start:.2f}s.")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
