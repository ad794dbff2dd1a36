"""Widget configuration model.

Every widget kind has exactly one config shape. Raw configs coming from the
builder UI or from persistence are partial, camelCased and loosely typed;
`resolve_config` normalizes them once at the boundary so the aggregation
engine only ever sees fully-populated dataclasses.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from orderdash.exceptions import UnknownWidgetKind
from orderdash.records import NUMERIC_FIELDS, is_missing


WIDGET_KINDS = ("kpi", "bar", "line", "area", "scatter", "pie", "table")
CHART_KINDS = ("bar", "line", "area", "scatter")

# Type names used by older saved dashboards.
KIND_ALIASES = {
    "barchart": "bar",
    "linechart": "line",
    "areachart": "area",
    "scatterchart": "scatter",
    "piechart": "pie",
}

DEFAULT_TITLES = {
    "kpi": "Total Revenue",
    "bar": "Sales by Product",
    "line": "Revenue Trend",
    "area": "Order Volume",
    "scatter": "Price vs Quantity",
    "pie": "Orders by Status",
    "table": "Order Details",
}

AGGREGATIONS = ("sum", "average", "count")
KPI_FORMATS = ("number", "currency")
SORT_ORDERS = ("asc", "desc")
PAGE_SIZE_OPTIONS = (5, 10, 15)

DEFAULT_COLOR = "#10b981"
DEFAULT_HEADER_BG = "#54bd95"
DEFAULT_TABLE_COLUMNS = ("customerId", "customerName", "product", "quantity", "total", "status")
MAX_DECIMALS = 4
MIN_FONT_SIZE, MAX_FONT_SIZE = 12, 18

TITLE_REQUIRED = "Please fill the field"
COLUMNS_REQUIRED = "Select at least one column"

HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True)
class KpiConfig:
    kind: str = "kpi"
    title: str = DEFAULT_TITLES["kpi"]
    description: str = ""
    metric: str = "total"
    aggregation: str = "sum"
    format: str = "number"
    decimals: int = 0


@dataclass(frozen=True)
class ChartConfig:
    kind: str = "bar"
    title: str = DEFAULT_TITLES["bar"]
    description: str = ""
    x_field: str = "product"
    y_field: str = "total"
    color: str = DEFAULT_COLOR
    show_label: bool = False
    show_legend: bool = True


@dataclass(frozen=True)
class PieConfig:
    kind: str = "pie"
    title: str = DEFAULT_TITLES["pie"]
    description: str = ""
    data_field: str = "status"
    value_field: str = "count"
    show_legend: bool = True


@dataclass(frozen=True)
class TableConfig:
    kind: str = "table"
    title: str = DEFAULT_TITLES["table"]
    description: str = ""
    columns: Tuple[str, ...] = DEFAULT_TABLE_COLUMNS
    sort_by: str = "orderDate"
    sort_order: str = "asc"
    page_size: int = 5
    font_size: int = 14
    header_bg: str = DEFAULT_HEADER_BG
    apply_filter: bool = False


WidgetConfig = Union[KpiConfig, ChartConfig, PieConfig, TableConfig]


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    field_errors: Dict[str, str] = field(default_factory=dict)


def normalize_kind(kind: object) -> Optional[str]:
    if not isinstance(kind, str):
        return None
    key = kind.strip().lower()
    key = KIND_ALIASES.get(key, key)
    return key if key in WIDGET_KINDS else None


def is_numeric_field(name: object) -> bool:
    return name in NUMERIC_FIELDS


def parse_int(value: object, default: int) -> int:
    """Integer read with `parseInt` leniency: "7px" -> 7, 7.9 -> 7, junk -> default."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else default
    if isinstance(value, str):
        match = LEADING_INT.match(value)
        return int(match.group(1)) if match else default
    return default


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _pick(raw: Mapping[str, Any], name: str, default: Any = None) -> Any:
    for key in (_camel(name), name):
        if key in raw:
            return raw[key]
    return default


def _text(value: object, default: str) -> str:
    if is_missing(value):
        return default
    text = str(value).strip()
    return text or default


def _choice(value: object, options: Tuple[str, ...], default: str) -> str:
    text = _text(value, default).lower()
    return text if text in options else default


def _as_bool(value: object, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        s = value.strip().lower()
        if s in {"true", "1", "yes", "on"}:
            return True
        if s in {"false", "0", "no", "off", ""}:
            return False
    return default


def _color(value: object, default: str) -> str:
    text = _text(value, default)
    return text if HEX_COLOR.match(text) else default


def _title(raw: Mapping[str, Any], kind: str) -> str:
    if "title" not in raw:
        return DEFAULT_TITLES[kind]
    value = raw["title"]
    return "" if is_missing(value) else str(value).strip()


def _columns(value: object) -> Tuple[str, ...]:
    if value is None or isinstance(value, (str, bytes)) or not hasattr(value, "__iter__"):
        return DEFAULT_TABLE_COLUMNS
    out = []
    for col in value:
        if is_missing(col):
            continue
        name = str(col).strip()
        if name and name not in out:
            out.append(name)
    return tuple(out)


def _resolve_kpi(raw: Mapping[str, Any]) -> KpiConfig:
    metric = _text(_pick(raw, "metric"), "total")
    aggregation = _choice(_pick(raw, "aggregation"), AGGREGATIONS, "sum")
    fmt = _choice(_pick(raw, "format"), KPI_FORMATS, "number")
    decimals = clamp(parse_int(_pick(raw, "decimals"), 0), 0, MAX_DECIMALS)
    if not is_numeric_field(metric):
        # Only counting makes sense for text fields; format/precision are disabled.
        aggregation, fmt, decimals = "count", "number", 0
    return KpiConfig(
        title=_title(raw, "kpi"),
        description=_text(_pick(raw, "description"), ""),
        metric=metric,
        aggregation=aggregation,
        format=fmt,
        decimals=decimals,
    )


def _resolve_chart(kind: str, raw: Mapping[str, Any]) -> ChartConfig:
    return ChartConfig(
        kind=kind,
        title=_title(raw, kind),
        description=_text(_pick(raw, "description"), ""),
        x_field=_text(_pick(raw, "x_field"), "product"),
        y_field=_text(_pick(raw, "y_field"), "total"),
        color=_color(_pick(raw, "color"), DEFAULT_COLOR),
        show_label=_as_bool(_pick(raw, "show_label"), False),
        show_legend=_as_bool(_pick(raw, "show_legend"), True),
    )


def _resolve_pie(raw: Mapping[str, Any]) -> PieConfig:
    return PieConfig(
        title=_title(raw, "pie"),
        description=_text(_pick(raw, "description"), ""),
        data_field=_text(_pick(raw, "data_field"), "status"),
        value_field=_text(_pick(raw, "value_field"), "count"),
        show_legend=_as_bool(_pick(raw, "show_legend"), True),
    )


def _resolve_table(raw: Mapping[str, Any]) -> TableConfig:
    sort_by = _text(_pick(raw, "sort_by"), "orderDate")
    sort_order = _choice(_pick(raw, "sort_order"), SORT_ORDERS, "asc")
    if sort_by.lower() in SORT_ORDERS:
        # The builder's sort select used to carry the direction in sortBy.
        if _pick(raw, "sort_order") is None:
            sort_order = sort_by.lower()
        sort_by = "orderDate"
    page_size = parse_int(_pick(raw, "page_size"), 5)
    font_size = parse_int(_pick(raw, "font_size"), 14) or 14
    return TableConfig(
        title=_title(raw, "table"),
        description=_text(_pick(raw, "description"), ""),
        columns=_columns(_pick(raw, "columns")),
        sort_by=sort_by,
        sort_order=sort_order,
        page_size=page_size if page_size >= 1 else 5,
        font_size=clamp(font_size, MIN_FONT_SIZE, MAX_FONT_SIZE),
        header_bg=_color(_pick(raw, "header_bg"), DEFAULT_HEADER_BG),
        apply_filter=_as_bool(_pick(raw, "apply_filter"), False),
    )


def resolve_config(kind: object, partial: Union[Mapping[str, Any], WidgetConfig, None] = None) -> WidgetConfig:
    """Fill in defaults and coerce every key of a widget config."""
    resolved_kind = normalize_kind(kind)
    if resolved_kind is None:
        raise UnknownWidgetKind(f"Unknown widget type: {kind!r}", {"kind": kind})
    if is_dataclass(partial):
        raw: Mapping[str, Any] = config_to_dict(partial)
    elif isinstance(partial, Mapping):
        raw = partial
    else:
        raw = {}

    if resolved_kind == "kpi":
        return _resolve_kpi(raw)
    if resolved_kind in CHART_KINDS:
        return _resolve_chart(resolved_kind, raw)
    if resolved_kind == "pie":
        return _resolve_pie(raw)
    return _resolve_table(raw)


def default_config(kind: object) -> WidgetConfig:
    return resolve_config(kind, {})


def validate_widget_config(kind: object, config: Union[Mapping[str, Any], WidgetConfig, None]) -> ValidationResult:
    """Field-level validation; problems are reported, never raised."""
    if normalize_kind(kind) is None:
        return ValidationResult(is_valid=False, field_errors={"kind": f"Unknown widget type: {kind}"})
    resolved = resolve_config(kind, config)
    errors: Dict[str, str] = {}
    if not resolved.title.strip():
        errors["title"] = TITLE_REQUIRED
    if isinstance(resolved, TableConfig) and not resolved.columns:
        errors["columns"] = COLUMNS_REQUIRED
    return ValidationResult(is_valid=not errors, field_errors=errors)


def config_to_dict(config: WidgetConfig) -> Dict[str, Any]:
    """Wire (camelCase) form of a resolved config, without the kind tag."""
    out: Dict[str, Any] = {}
    for f in fields(config):
        if f.name == "kind":
            continue
        value = getattr(config, f.name)
        out[_camel(f.name)] = list(value) if isinstance(value, tuple) else value
    return out
