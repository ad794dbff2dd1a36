"""In-memory aggregation engine.

Every function here is pure and total: malformed records degrade to zero,
empty or sentinel values instead of raising, so one corrupt order never
blanks out a whole widget.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from orderdash.configs import (
    ChartConfig,
    KpiConfig,
    PieConfig,
    TableConfig,
    WidgetConfig,
    is_numeric_field,
)
from orderdash.records import CURRENCY_FIELDS, column_values, is_missing, parse_numeric, records_frame


UNKNOWN_CATEGORY = "Unknown"
EMPTY_VALUE = "—"
EMPTY_CELL = "-"


@dataclass(frozen=True)
class KpiResult:
    value: Optional[float]
    display: str


@dataclass(frozen=True)
class CategoryValue:
    category: str
    value: float


@dataclass(frozen=True)
class ScatterPoint:
    x: float
    y: float
    name: str


@dataclass(frozen=True)
class TableView:
    columns: Tuple[str, ...]
    rows: List[Dict[str, Any]] = field(default_factory=list)
    page: int = 1
    page_size: int = 5
    total_pages: int = 1
    total_rows: int = 0


AggregationResult = Union[KpiResult, List[CategoryValue], List[ScatterPoint], TableView]


# ---------------- KPI ----------------
def compute_kpi(records: Optional[Sequence[Any]], metric: str, aggregation: str) -> float:
    records = list(records or [])
    if aggregation == "count" or not is_numeric_field(metric):
        return float(len(records))
    frame = records_frame(records)
    if frame.empty:
        return 0.0
    parsed = column_values(frame, metric).map(parse_numeric)
    valid = parsed.dropna()
    total = float(valid.sum()) if not valid.empty else 0.0
    if aggregation == "average":
        return total / len(valid) if len(valid) else 0.0
    return total


def format_kpi(value: Optional[float], fmt: str = "number", decimals: int = 0) -> str:
    if value is None:
        return EMPTY_VALUE
    try:
        num = float(value)
    except (TypeError, ValueError):
        return EMPTY_VALUE
    if math.isnan(num) or math.isinf(num):
        return EMPTY_VALUE
    decimals = max(0, int(decimals))
    text = f"{num:.{decimals}f}"
    if text.startswith("-") and float(text) == 0:
        text = text[1:]
    return f"${text}" if fmt == "currency" else text


def kpi_result(records: Optional[Sequence[Any]], config: KpiConfig) -> KpiResult:
    value = compute_kpi(records, config.metric, config.aggregation)
    if math.isnan(value) or math.isinf(value):
        value = 0.0
    return KpiResult(value=value, display=format_kpi(value, config.format, config.decimals))


# ---------------- Grouped series ----------------
def category_key(value: object) -> str:
    """Stringify a category the way the browser UI labels it."""
    if is_missing(value):
        return UNKNOWN_CATEGORY
    if isinstance(value, (bool, np.bool_)):
        return "true" if value else "false"
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        return str(int(value))
    text = str(value)
    return text if text.strip() else UNKNOWN_CATEGORY


def group_by(
    records: Optional[Sequence[Any]],
    category_field: str,
    value_field: Optional[str] = None,
) -> List[CategoryValue]:
    """Accumulate a value per distinct category, in first-seen category order.

    With no `value_field` (or "count") each record counts once; otherwise the
    parsed `value_field` is summed with unreadable values counting as 0.
    """
    frame = records_frame(records)
    if not len(frame.index):
        return []
    keys = column_values(frame, category_field).map(category_key)
    if value_field in (None, "", "count"):
        values = pd.Series(1.0, index=frame.index)
    else:
        values = column_values(frame, value_field).map(lambda v: parse_numeric(v) or 0.0).astype(float)
    grouped = pd.DataFrame({"category": keys, "value": values}).groupby("category", sort=False)["value"].sum()
    return [CategoryValue(category=str(cat), value=float(val)) for cat, val in grouped.items()]


def scatter_points(records: Optional[Sequence[Any]], x_field: str, y_field: str) -> List[ScatterPoint]:
    points: List[ScatterPoint] = []
    for i, record in enumerate(records or []):
        row: Mapping[str, Any] = record if isinstance(record, Mapping) else {}
        name = row.get("product")
        points.append(
            ScatterPoint(
                x=parse_numeric(row.get(x_field)) or 0.0,
                y=parse_numeric(row.get(y_field)) or 0.0,
                name=str(name) if not is_missing(name) and str(name) else f"Point {i + 1}",
            )
        )
    return points


# ---------------- Table ----------------
def _sort_key(record: object, sort_by: str) -> Optional[str]:
    if not isinstance(record, Mapping):
        return None
    value = record.get(sort_by)
    if is_missing(value):
        return None
    return category_key(value).casefold()


def sort_records(records: Iterable[Any], sort_by: str, sort_order: str = "asc") -> List[Any]:
    """Stable string sort; records without a sort key always come last."""
    keyed = [(r, _sort_key(r, sort_by)) for r in records]
    present = [pair for pair in keyed if pair[1] is not None]
    missing = [pair[0] for pair in keyed if pair[1] is None]
    ordered = sorted(present, key=lambda pair: pair[1], reverse=(sort_order == "desc"))
    return [pair[0] for pair in ordered] + missing


def format_cell(value: object, column: str) -> Any:
    if column in CURRENCY_FIELDS:
        num = parse_numeric(value)
        return f"${num if num is not None else 0.0:.2f}"
    if is_missing(value):
        return EMPTY_CELL
    return value


def paginate(items: Sequence[Any], page: int, page_size: int) -> Tuple[List[Any], int, int]:
    page_size = max(1, int(page_size))
    total_pages = max(1, math.ceil(len(items) / page_size))
    page = max(1, int(page))
    start = (page - 1) * page_size
    return list(items[start:start + page_size]), page, total_pages


def compute_table_view(
    records: Optional[Sequence[Any]],
    columns: Sequence[str],
    sort_by: str,
    sort_order: str = "asc",
    page_size: int = 5,
    page: int = 1,
) -> TableView:
    items = list(records or [])
    ordered = sort_records(items, sort_by, sort_order)
    sliced, page, total_pages = paginate(ordered, page, page_size)
    rows = []
    for record in sliced:
        row: Mapping[str, Any] = record if isinstance(record, Mapping) else {}
        rows.append({col: format_cell(row.get(col), col) for col in columns})
    return TableView(
        columns=tuple(columns),
        rows=rows,
        page=page,
        page_size=max(1, int(page_size)),
        total_pages=total_pages,
        total_rows=len(items),
    )


# ---------------- Dispatch ----------------
def aggregate(records: Optional[Sequence[Any]], config: WidgetConfig, *, page: int = 1) -> AggregationResult:
    """Compute what a widget renders from the (already filtered) orders."""
    records = list(records or [])
    if isinstance(config, KpiConfig):
        return kpi_result(records, config)
    if isinstance(config, ChartConfig):
        if config.kind == "scatter":
            return scatter_points(records, config.x_field, config.y_field)
        return group_by(records, config.x_field, config.y_field)
    if isinstance(config, PieConfig):
        return group_by(records, config.data_field, config.value_field)
    if isinstance(config, TableConfig):
        return compute_table_view(
            records,
            config.columns,
            config.sort_by,
            sort_order=config.sort_order,
            page_size=config.page_size,
            page=page,
        )
    raise TypeError(f"Unsupported widget config: {type(config).__name__}")
