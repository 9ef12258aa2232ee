from __future__ import annotations

import json
import logging

from farm_connect.utils.logging import JsonFormatter, _json_formatter

EXPECTED_ROWS = 10


def _record(msg: str = "hello") -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


def test_json_formatter_promotes_standard_extra_fields() -> None:
    record = _record()
    record.rows = EXPECTED_ROWS
    record.kind = "goods"

    payload = json.loads(_json_formatter(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "test.logger"
    assert payload["message"] == "hello"
    assert payload["rows"] == EXPECTED_ROWS
    assert payload["kind"] == "goods"


def test_json_formatter_supports_legacy_nested_extra_field() -> None:
    record = _record()
    record.extra = {"format": "xlsx"}

    payload = json.loads(_json_formatter(record))

    assert payload["format"] == "xlsx"


def test_json_formatter_serializes_non_json_values_as_text() -> None:
    from decimal import Decimal
    from pathlib import Path

    record = _record("[EXPORT WRITTEN] report.csv")
    record.path = Path("output") / "report.csv"
    record.total = Decimal("45.00")

    payload = json.loads(JsonFormatter().format(record))

    assert payload["path"] == str(Path("output") / "report.csv")
    assert payload["total"] == "45.00"
