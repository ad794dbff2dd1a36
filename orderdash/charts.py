from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Sequence, Union

import altair as alt
import pandas as pd

from orderdash.aggregations import CategoryValue, ScatterPoint
from orderdash.configs import ChartConfig, PieConfig

alt.data_transformers.disable_max_rows()

PIE_COLORS = ["#10b981", "#6366f1", "#f59e0b", "#ef4444", "#8b5cf6", "#ec4899"]


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def _frame(data: Sequence[Union[CategoryValue, ScatterPoint]], columns: List[str]) -> pd.DataFrame:
    return pd.DataFrame([asdict(d) for d in data], columns=columns)


def _series_color(config: ChartConfig) -> alt.Color:
    """Single-series color channel; the legend names the plotted field when shown."""
    legend = alt.Legend(title=None) if config.show_legend else None
    return alt.Color("series:N", scale=alt.Scale(range=[config.color]), legend=legend)


def _category_chart(config: ChartConfig, data: Sequence[CategoryValue]) -> alt.Chart:
    df = _frame(data, ["category", "value"])
    df["series"] = config.y_field
    x = alt.X("category:N", title=config.x_field, sort=None, axis=alt.Axis(labelAngle=0, grid=False))
    y = alt.Y("value:Q", title=config.y_field, axis=alt.Axis(gridDash=[3, 3], domain=False, ticks=False))
    tooltip = [alt.Tooltip("category:N", title=config.x_field), alt.Tooltip("value:Q", title=config.y_field, format=",.2f")]
    base = alt.Chart(df)
    if config.kind == "line":
        chart = base.mark_line(point={"filled": True})
    elif config.kind == "area":
        chart = base.mark_area(opacity=0.2, line={"color": config.color})
    else:
        chart = base.mark_bar(cornerRadiusTopLeft=4, cornerRadiusTopRight=4)
    chart = chart.encode(x=x, y=y, color=_series_color(config), tooltip=tooltip)
    if config.show_label:
        labels = base.mark_text(dy=-6, fontSize=12).encode(x=x, y=y, text=alt.Text("value:Q", format=",.0f"))
        return alt.layer(chart, labels)
    return chart


def _scatter_chart(config: ChartConfig, data: Sequence[ScatterPoint]) -> alt.Chart:
    df = _frame(data, ["x", "y", "name"])
    df["series"] = config.y_field
    return (
        alt.Chart(df)
        .mark_point(filled=True)
        .encode(
            x=alt.X("x:Q", title=config.x_field),
            y=alt.Y("y:Q", title=config.y_field),
            color=_series_color(config),
            tooltip=["name", alt.Tooltip("x:Q", title=config.x_field), alt.Tooltip("y:Q", title=config.y_field)],
        )
    )


def _pie_chart(config: PieConfig, data: Sequence[CategoryValue]) -> alt.Chart:
    df = _frame(data, ["category", "value"])
    legend = alt.Legend(title=config.data_field) if config.show_legend else None
    return (
        alt.Chart(df)
        .mark_arc(outerRadius=100)
        .encode(
            theta=alt.Theta("value:Q", stack=True),
            color=alt.Color("category:N", sort=None, scale=alt.Scale(range=PIE_COLORS), legend=legend),
            tooltip=["category:N", "value:Q"],
        )
    )


def chart_spec(config: Union[ChartConfig, PieConfig], data: Sequence[Any]) -> Dict[str, Any]:
    """Vega-Lite spec for a chart widget; category order follows the data."""
    if isinstance(config, PieConfig):
        chart = _pie_chart(config, data)
    elif config.kind == "scatter":
        chart = _scatter_chart(config, data)
    else:
        chart = _category_chart(config, data)
    chart = chart.properties(width="container")
    if config.title:
        chart = chart.properties(title=config.title)
    return to_vega_spec(chart)
