from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

import pytest
from typer.testing import CliRunner

from farm_connect import main as cli
from farm_connect.domain.models import Snapshot
from farm_connect.errors import GatewayError

runner = CliRunner()


@pytest.fixture
def snapshot(goods_factory, customer_factory) -> Snapshot:
    return Snapshot(
        goods=(
            goods_factory(id="g1", good_name="Tomato"),
            goods_factory(id="g2", good_name="Onion", with_commission=False, final_price=Decimal("50")),
        ),
        customers=(customer_factory(id="c1"),),
        fetched_at=datetime(2024, 3, 6, tzinfo=timezone.utc),
    )


@pytest.fixture
def loaded(monkeypatch: pytest.MonkeyPatch, snapshot: Snapshot) -> list[int]:
    attempts: list[int] = []

    def fake_load_snapshot(retries: int = 1) -> Snapshot:
        attempts.append(retries)
        return snapshot

    monkeypatch.setattr(cli, "load_snapshot", fake_load_snapshot)
    monkeypatch.setenv("DISPLAY_TIMEZONE", "UTC")
    return attempts


def test_info_shows_effective_configuration(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("BULK_DELAY_MS", "750")
    result = runner.invoke(cli.app, ["info"])
    assert result.exit_code == 0
    assert "bulk_delay_ms=750" in result.stdout


def test_report_prints_filtered_goods_and_totals(loaded):
    result = runner.invoke(cli.app, ["report", "--kind", "goods", "--search", "onion", "--retries", "2"])

    assert result.exit_code == 0, result.stdout
    assert "Onion" in result.stdout
    assert "Tomato" not in result.stdout
    assert "Total Revenue" in result.stdout
    assert loaded == [2]


def test_report_shows_empty_state(loaded):
    result = runner.invoke(cli.app, ["report", "--date", "2023-01-01"])
    assert result.exit_code == 0
    assert "No goods records match" in result.stdout


def test_report_rejects_unknown_commission_filter(loaded):
    result = runner.invoke(cli.app, ["report", "--commission", "sometimes"])
    assert result.exit_code != 0


def test_gateway_failure_exits_with_empty_state(monkeypatch: pytest.MonkeyPatch):
    def failing_load(retries: int = 1) -> Snapshot:
        raise GatewayError("store unreachable")

    monkeypatch.setattr(cli, "load_snapshot", failing_load)

    result = runner.invoke(cli.app, ["dashboard"])

    assert result.exit_code == 1


def test_dashboard_lists_counts(loaded):
    result = runner.invoke(cli.app, ["dashboard"])
    assert result.exit_code == 0, result.stdout
    assert "Farmer Entries" in result.stdout
    assert "Recent Customer Entries" in result.stdout


def test_export_writes_file(loaded, tmp_path: Path):
    result = runner.invoke(
        cli.app, ["export", "--kind", "customers", "--format", "xlsx", "--output-dir", str(tmp_path)]
    )

    assert result.exit_code == 0, result.stdout
    files = list(tmp_path.glob("farm_connect_customers_report_*.xlsx"))
    assert len(files) == 1


def test_slips_by_id_saves_single_document(loaded, tmp_path: Path):
    result = runner.invoke(cli.app, ["slips", "--id", "g1", "--output-dir", str(tmp_path)])

    assert result.exit_code == 0, result.stdout
    assert (tmp_path / "farmer_slip_Ravi Kumar_2024-03-05.pdf").exists()


def test_slips_bulk_renders_every_filtered_record(loaded, tmp_path: Path):
    result = runner.invoke(
        cli.app, ["slips", "--kind", "customers", "--output-dir", str(tmp_path), "--delay-ms", "0"]
    )

    assert result.exit_code == 0, result.stdout
    assert len(list(tmp_path.glob("customer_invoice_*.pdf"))) == 1


def test_slips_with_nothing_to_generate(loaded, tmp_path: Path):
    result = runner.invoke(
        cli.app, ["slips", "--search", "mango", "--output-dir", str(tmp_path), "--delay-ms", "0"]
    )

    assert result.exit_code == 0
    assert "No items to generate slips for" in result.stdout
    assert list(tmp_path.iterdir()) == []


def test_add_goods_computes_final_price(monkeypatch: pytest.MonkeyPatch):
    class _Stored:
        id = "101"

        def __init__(self, entry):
            self.final_price = entry.final_price

    monkeypatch.setattr(cli, "add_record", lambda entry: _Stored(entry))

    result = runner.invoke(
        cli.app,
        [
            "add-goods",
            "--farmer-name",
            "Ravi",
            "--farmer-phone",
            "98765",
            "--good-name",
            "Tomato",
            "--quantity",
            "10",
            "--price-per-unit",
            "5",
            "--with-commission",
        ],
    )

    assert result.exit_code == 0, result.stdout
    assert "final price 45" in result.stdout


def test_add_customer_rejects_non_numeric_price():
    result = runner.invoke(
        cli.app,
        [
            "add-customer",
            "--customer-name",
            "Anita",
            "--phone",
            "1",
            "--address",
            "x",
            "--goods-purchased",
            "Tomato",
            "--price",
            "lots",
        ],
    )
    assert result.exit_code != 0
