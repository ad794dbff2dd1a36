"""Unit tests for widget config resolution and validation."""

from __future__ import annotations

import pytest

from orderdash.configs import (
    COLUMNS_REQUIRED,
    DEFAULT_COLOR,
    DEFAULT_TABLE_COLUMNS,
    TITLE_REQUIRED,
    ChartConfig,
    KpiConfig,
    PieConfig,
    TableConfig,
    config_to_dict,
    default_config,
    normalize_kind,
    parse_int,
    resolve_config,
    validate_widget_config,
)
from orderdash.exceptions import OrderDashError, UnknownWidgetKind

pytestmark = pytest.mark.unit


def test_default_configs_per_kind() -> None:
    """Every kind resolves to its own config shape with its default title."""

    assert default_config("kpi") == KpiConfig()
    assert default_config("bar") == ChartConfig()
    assert default_config("line").title == "Revenue Trend"
    assert default_config("scatter").kind == "scatter"
    assert default_config("pie") == PieConfig()
    assert default_config("table").columns == DEFAULT_TABLE_COLUMNS


def test_legacy_kind_aliases() -> None:
    """Older saved dashboards used BarChart-style type names."""

    assert normalize_kind("BarChart") == "bar"
    assert normalize_kind("pieChart") == "pie"
    assert normalize_kind("gauge") is None
    assert normalize_kind(None) is None


def test_unknown_kind_raises() -> None:
    """Resolution refuses kinds outside the supported set."""

    with pytest.raises(UnknownWidgetKind) as excinfo:
        resolve_config("gauge", {})

    assert isinstance(excinfo.value, OrderDashError)
    assert excinfo.value.details == {"kind": "gauge"}


def test_kpi_decimals_clamped_and_text_metric_forces_count() -> None:
    """Decimals clamp to 0..4; text metrics can only be counted."""

    assert resolve_config("kpi", {"metric": "total", "decimals": 9}).decimals == 4
    assert resolve_config("kpi", {"metric": "total", "decimals": "-3"}).decimals == 0

    cfg = resolve_config("kpi", {"metric": "product", "aggregation": "sum", "format": "currency", "decimals": 2})
    assert (cfg.aggregation, cfg.format, cfg.decimals) == ("count", "number", 0)


def test_chart_keys_accept_camel_and_snake_case() -> None:
    """Wire configs are camelCase, Python callers may pass snake_case."""

    camel = resolve_config("bar", {"xAxis": "ignored", "xField": "status", "yField": "quantity", "showLabel": "true"})
    snake = resolve_config("bar", {"x_field": "status", "y_field": "quantity", "show_label": True})

    assert camel == snake
    assert camel.show_label is True


def test_invalid_color_falls_back() -> None:
    """Chart colors must be hex; anything else reverts to the default."""

    assert resolve_config("line", {"color": "#abc"}).color == "#abc"
    assert resolve_config("line", {"color": "red"}).color == DEFAULT_COLOR


def test_table_font_size_and_page_size() -> None:
    """Font size clamps to 12..18 (0 means default) and bad page sizes revert to 5."""

    assert resolve_config("table", {"fontSize": 40}).font_size == 18
    assert resolve_config("table", {"fontSize": 3}).font_size == 12
    assert resolve_config("table", {"fontSize": 0}).font_size == 14
    assert resolve_config("table", {"fontSize": "16px"}).font_size == 16
    assert resolve_config("table", {"pageSize": 0}).page_size == 5
    assert resolve_config("table", {"pageSize": "10"}).page_size == 10


def test_table_legacy_sort_direction_in_sort_by() -> None:
    """A direction stored in sortBy becomes the sort order on orderDate."""

    cfg = resolve_config("table", {"sortBy": "desc"})

    assert isinstance(cfg, TableConfig)
    assert (cfg.sort_by, cfg.sort_order) == ("orderDate", "desc")


def test_resolve_is_idempotent() -> None:
    """Resolving an already-resolved config returns an equal config."""

    cfg = resolve_config("table", {"columns": ["product", "total", "product"], "applyFilter": 1})

    assert cfg.columns == ("product", "total")
    assert resolve_config("table", cfg) == cfg


def test_validation_reports_field_errors() -> None:
    """Blank titles and empty column lists surface as field errors, never exceptions."""

    result = validate_widget_config("table", {"title": "  ", "columns": []})

    assert result.is_valid is False
    assert result.field_errors == {"title": TITLE_REQUIRED, "columns": COLUMNS_REQUIRED}


def test_validation_of_default_and_unknown_kind() -> None:
    """Defaults validate cleanly; an unknown kind is a `kind` error."""

    assert validate_widget_config("pie", {}).is_valid is True
    assert "kind" in validate_widget_config("gauge", {}).field_errors


def test_config_to_dict_is_camel_case() -> None:
    """The wire form uses camelCase keys and lists instead of tuples."""

    wire = config_to_dict(default_config("table"))

    assert "kind" not in wire
    assert wire["sortBy"] == "orderDate"
    assert wire["columns"] == list(DEFAULT_TABLE_COLUMNS)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("7px", 7), (7.9, 7), ("junk", 3), (None, 3), (True, 3), (" -2", -2)],
)
def test_parse_int_leniency(raw: object, expected: int) -> None:
    """Integer parsing reads a leading integer and falls back on junk."""

    assert parse_int(raw, 3) == expected
