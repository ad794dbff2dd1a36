"""Unit tests for order normalization and loading."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from orderdash.records import (
    compute_total,
    load_orders,
    normalize_order,
    normalize_orders,
    parse_numeric,
    parse_record_date,
)

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(3, 3.0), ("  4.5 ", 4.5), ("12abc", None), ("", None), (True, None), (float("nan"), None), (None, None)],
)
def test_parse_numeric(raw: object, expected: float | None) -> None:
    """Only clean numbers and numeric strings parse."""

    assert parse_numeric(raw) == expected


def test_compute_total_rounds_half_up() -> None:
    """Totals are quantity times unit price, rounded half up to cents."""

    assert compute_total(2, 12.5) == 25.0
    assert compute_total(1, 0.125) == 0.13
    assert compute_total("x", 5) == 0.0


def test_normalize_order_fills_derived_fields() -> None:
    """Missing totals, customer names and addresses are derived from their parts."""

    order = normalize_order(
        {
            "quantity": 2,
            "unitPrice": "12.50",
            "firstName": "Ada",
            "lastName": " Lovelace ",
            "streetAddress": "12 Analytical Way",
            "city": "London",
            "country": "UK",
        }
    )

    assert order["total"] == 25.0
    assert order["customerName"] == "Ada Lovelace"
    assert order["address"] == "12 Analytical Way, London, UK"


def test_normalize_order_keeps_explicit_values() -> None:
    """Existing totals and names are left alone; the input is not mutated."""

    raw = {"quantity": 2, "unitPrice": 10, "total": "19.5", "customerName": "Grace"}

    order = normalize_order(raw)

    assert order["total"] == "19.5"
    assert order["customerName"] == "Grace"
    assert "address" not in order
    assert order is not raw


def test_normalize_orders_keeps_length() -> None:
    """Non-mapping entries become empty orders."""

    assert normalize_orders([{"total": 1}, "junk", None]) == [{"total": 1}, {}, {}]
    assert normalize_orders(None) == []


def test_parse_record_date_forms() -> None:
    """Dates come from ISO strings, epoch milliseconds or datetime objects."""

    assert parse_record_date("2024-06-15T09:30:00") == datetime(2024, 6, 15, 9, 30)
    assert parse_record_date(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)
    assert parse_record_date("nope") is None
    assert parse_record_date(True) is None


def test_load_orders_json_and_csv(tmp_path: Path) -> None:
    """Orders load from a JSON array, a wrapped JSON object or a CSV export."""

    array = tmp_path / "orders.json"
    array.write_text(json.dumps([{"id": "a"}, 3]), encoding="utf-8")
    wrapped = tmp_path / "wrapped.json"
    wrapped.write_text(json.dumps({"orders": [{"id": "b"}]}), encoding="utf-8")
    csv = tmp_path / "orders.csv"
    csv.write_text("id,quantity,status\nc,2,\n", encoding="utf-8")

    assert load_orders(str(array)) == [{"id": "a"}]
    assert load_orders(str(wrapped)) == [{"id": "b"}]
    assert load_orders(str(csv)) == [{"id": "c", "quantity": 2, "status": None}]
    assert load_orders(str(tmp_path / "missing.json")) == []
    assert load_orders(None) == []
