"""Unit tests for widget view payloads and their Vega-Lite chart specs."""

from __future__ import annotations

from datetime import datetime

import pytest

from orderdash.aggregations import CategoryValue
from orderdash.charts import chart_spec
from orderdash.configs import resolve_config
from orderdash.layout import add_widget, make_state, remove_widget, set_date_filter
from orderdash.views import compute_dashboard, compute_widget_view

pytestmark = pytest.mark.unit


def test_kpi_view_uses_filtered_orders(orders: list[dict], now: datetime) -> None:
    """KPIs aggregate over the dashboard date window."""

    view = compute_widget_view("kpi", {"metric": "total", "format": "currency", "decimals": 2}, orders, date_filter="last7", now=now)

    assert view["kind"] == "kpi"
    assert view["record_count"] == 2
    assert view["result"] == {"value": 85.0, "display": "$85.00"}
    assert view["validation"] == {"is_valid": True, "field_errors": {}}
    assert "spec" not in view


def test_table_ignores_filter_unless_opted_in(orders: list[dict], now: datetime) -> None:
    """Tables show every order unless applyFilter is set."""

    plain = compute_widget_view("table", {}, orders, date_filter="today", now=now)
    filtered = compute_widget_view("table", {"applyFilter": True}, orders, date_filter="today", now=now)

    assert plain["result"]["total_rows"] == 4
    assert filtered["result"]["total_rows"] == 1
    assert filtered["result"]["rows"][0]["customerName"] == "Ada Lovelace"


def test_chart_view_carries_vega_spec(orders: list[dict]) -> None:
    """Chart widgets include a Vega-Lite spec built from the grouped data."""

    view = compute_widget_view("BarChart", {"xField": "status", "yField": "count", "showLabel": True}, orders)

    assert view["kind"] == "bar"
    assert [r["category"] for r in view["result"]] == ["Completed", "Pending", "Unknown"]
    assert view["spec"]["$schema"].startswith("https://vega.github.io/schema/vega-lite/")
    assert "layer" in view["spec"]


def test_view_without_spec(orders: list[dict]) -> None:
    """Specs can be skipped for data-only callers."""

    view = compute_widget_view("pie", {}, orders, include_spec=False)

    assert "spec" not in view
    assert view["result"][0] == {"category": "Completed", "value": 2.0}


def test_chart_spec_for_each_kind() -> None:
    """Every chart kind yields a spec; empty data still produces one."""

    data = [CategoryValue(category="B", value=4.0), CategoryValue(category="A", value=2.0)]

    for kind in ("bar", "line", "area"):
        spec = chart_spec(resolve_config(kind, {}), data)
        assert spec["title"] == resolve_config(kind, {}).title
        assert spec["encoding"]["x"]["sort"] is None

    pie = chart_spec(resolve_config("pie", {"showLegend": False}), data)
    assert pie["mark"]["type"] == "arc"
    assert pie["encoding"]["color"]["legend"] is None

    empty = chart_spec(resolve_config("scatter", {"title": ""}), [])
    assert "title" not in empty
    assert empty["mark"]["type"] == "point"


def test_chart_legend_follows_show_legend() -> None:
    """Single-series charts carry a legend for the plotted field unless it is switched off."""

    data = [CategoryValue(category="B", value=4.0)]

    shown = chart_spec(resolve_config("line", {"yField": "quantity", "color": "#6366f1"}), data)
    hidden = chart_spec(resolve_config("bar", {"showLegend": False}), data)
    labelled = chart_spec(resolve_config("area", {"showLegend": False, "showLabel": True}), data)
    scatter = chart_spec(resolve_config("scatter", {"showLegend": True}), [])

    assert shown["encoding"]["color"]["scale"]["range"] == ["#6366f1"]
    assert shown["encoding"]["color"].get("legend") is not None
    assert hidden["encoding"]["color"]["legend"] is None
    assert labelled["layer"][0]["encoding"]["color"]["legend"] is None
    assert scatter["encoding"]["color"]["field"] == "series"


def test_dashboard_combines_layout_and_views(orders: list[dict], now: datetime) -> None:
    """The dashboard payload covers active widgets only, under the state's date filter."""

    state = make_state()
    state, kpi = add_widget(state, "kpi", id_factory=lambda: "k")
    state, table = add_widget(state, "table", id_factory=lambda: "t")
    state, pie = add_widget(state, "pie", id_factory=lambda: "p")
    state = set_date_filter(remove_widget(state, pie.id, soft=True), "last30")

    payload = compute_dashboard(state, orders, now=now, breakpoint="sm")

    assert payload["date_filter"] == "last30"
    assert [item["i"] for item in payload["layout"]] == ["k", "t"]
    assert [item["y"] for item in payload["layout"]] == [0, 2]
    assert set(payload["widgets"]) == {"k", "t"}
    assert payload["widgets"]["k"]["record_count"] == 2
    assert payload["widgets"]["t"]["record_count"] == 4
