from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from orderdash.aggregations import KpiResult, TableView, aggregate
from orderdash.charts import chart_spec
from orderdash.configs import (
    ChartConfig,
    PieConfig,
    TableConfig,
    WidgetConfig,
    config_to_dict,
    resolve_config,
    validate_widget_config,
)
from orderdash.filters import filter_by_date, normalize_date_filter
from orderdash.layout import DashboardState, Widget, active_widgets, layout_for
from orderdash.records import normalize_orders


def _result_payload(result: Any) -> Any:
    if isinstance(result, (KpiResult, TableView)):
        return asdict(result)
    return [asdict(item) for item in result]


def widget_records(
    config: WidgetConfig,
    records: Optional[Sequence[Any]],
    *,
    date_filter: str = "all",
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """Orders a widget aggregates over: normalized, then narrowed by the dashboard date filter.

    Tables only honour the date filter when `applyFilter` is set.
    """
    orders = normalize_orders(records)
    if isinstance(config, TableConfig) and not config.apply_filter:
        return orders
    return filter_by_date(orders, date_filter, now)


def compute_widget_view(
    kind: str,
    config: Union[Mapping[str, Any], WidgetConfig, None],
    records: Optional[Sequence[Any]],
    *,
    date_filter: str = "all",
    now: Optional[datetime] = None,
    page: int = 1,
    include_spec: bool = True,
) -> Dict[str, Any]:
    resolved = resolve_config(kind, config)
    date_filter = normalize_date_filter(date_filter)
    rows = widget_records(resolved, records, date_filter=date_filter, now=now)
    result = aggregate(rows, resolved, page=page)
    validation = validate_widget_config(kind, resolved)

    payload: Dict[str, Any] = {
        "kind": resolved.kind,
        "config": config_to_dict(resolved),
        "validation": asdict(validation),
        "date_filter": date_filter,
        "record_count": len(rows),
        "result": _result_payload(result),
    }
    if include_spec and isinstance(resolved, (ChartConfig, PieConfig)):
        payload["spec"] = chart_spec(resolved, result)
    return payload


def compute_dashboard(
    state: DashboardState,
    records: Optional[Sequence[Any]],
    *,
    now: Optional[datetime] = None,
    breakpoint: str = "lg",
    include_spec: bool = False,
) -> Dict[str, Any]:
    widgets: List[Widget] = active_widgets(state.widgets)
    views = {
        w.id: compute_widget_view(
            w.kind,
            w.config,
            records,
            date_filter=state.date_filter,
            now=now,
            include_spec=include_spec,
        )
        for w in widgets
    }
    return {
        "date_filter": state.date_filter,
        "breakpoint": breakpoint,
        "layout": [asdict(p) for p in layout_for(widgets, breakpoint)],
        "widgets": views,
    }
