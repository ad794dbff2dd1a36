from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from orderdash.configs import (
    WidgetConfig,
    clamp,
    config_to_dict,
    default_config,
    normalize_kind,
    parse_int,
    resolve_config,
)
from orderdash.filters import normalize_date_filter


GRID_COLUMNS: Dict[str, int] = {"lg": 12, "md": 8, "sm": 4}
BREAKPOINTS = tuple(GRID_COLUMNS)

MIN_W, MAX_W = 1, 12
MIN_H, MAX_H = 1, 10

DEFAULT_SIZES: Dict[str, Tuple[int, int]] = {
    "kpi": (2, 2),
    "bar": (5, 5),
    "line": (5, 5),
    "area": (5, 5),
    "scatter": (5, 5),
    "pie": (4, 4),
    "table": (4, 4),
}

# y value meaning "place below everything that is already on the grid"
APPEND = None


@dataclass(frozen=True)
class Widget:
    id: str
    kind: str
    config: WidgetConfig
    x: int = 0
    y: Optional[int] = APPEND
    w: int = 4
    h: int = 4
    is_active: bool = True


@dataclass(frozen=True)
class PlacedWidget:
    i: str
    x: int
    y: int
    w: int
    h: int
    min_w: int = MIN_W
    min_h: int = MIN_H


@dataclass(frozen=True)
class DashboardState:
    widgets: Tuple[Widget, ...] = field(default_factory=tuple)
    date_filter: str = "all"


def clamp_width(value: object) -> int:
    return clamp(parse_int(value, 1) or 1, MIN_W, MAX_W)


def clamp_height(value: object) -> int:
    return clamp(parse_int(value, 1) or 1, MIN_H, MAX_H)


def _coord(value: object) -> int:
    return max(0, parse_int(value, 0))


def unique_widgets(widgets: Iterable[Widget]) -> Tuple[Widget, ...]:
    seen = set()
    out = []
    for w in widgets:
        if w.id in seen:
            continue
        seen.add(w.id)
        out.append(w)
    return tuple(out)


def make_state(widgets: Iterable[Widget] = (), date_filter: object = "all") -> DashboardState:
    return DashboardState(widgets=unique_widgets(widgets), date_filter=normalize_date_filter(date_filter))


def active_widgets(widgets: Iterable[Widget]) -> List[Widget]:
    return [w for w in widgets if w.is_active]


def get_widget(state: DashboardState, widget_id: str) -> Optional[Widget]:
    return next((w for w in state.widgets if w.id == widget_id), None)


# ---------------- Mutations (each returns a new state) ----------------
def add_widget(
    state: DashboardState,
    kind: str,
    *,
    config: Optional[Mapping[str, Any]] = None,
    id_factory: Callable[[], object] = uuid.uuid4,
) -> Tuple[DashboardState, Widget]:
    """Append a widget of `kind` with default config and size, placed after existing widgets."""
    resolved_kind = normalize_kind(kind)
    resolved = resolve_config(kind, config) if config is not None else default_config(kind)
    taken = {w.id for w in state.widgets}
    new_id = str(id_factory())
    while new_id in taken:
        new_id = str(uuid.uuid4())
    w, h = DEFAULT_SIZES[resolved_kind]
    widget = Widget(id=new_id, kind=resolved_kind, config=resolved, x=0, y=APPEND, w=w, h=h)
    return replace(state, widgets=state.widgets + (widget,)), widget


def remove_widget(state: DashboardState, widget_id: str, *, soft: bool = False) -> DashboardState:
    """Delete (or deactivate) a widget. Unknown ids leave the state untouched."""
    if get_widget(state, widget_id) is None:
        return state
    if soft:
        widgets = tuple(replace(w, is_active=False) if w.id == widget_id else w for w in state.widgets)
    else:
        widgets = tuple(w for w in state.widgets if w.id != widget_id)
    return replace(state, widgets=widgets)


def _update(state: DashboardState, widget_id: str, fn: Callable[[Widget], Widget]) -> DashboardState:
    if get_widget(state, widget_id) is None:
        return state
    return replace(state, widgets=tuple(fn(w) if w.id == widget_id else w for w in state.widgets))


def update_size(widget: Widget, dimension: str, value: object) -> Widget:
    if dimension == "w":
        return replace(widget, w=clamp_width(value))
    if dimension == "h":
        return replace(widget, h=clamp_height(value))
    return widget


def resize_widget(state: DashboardState, widget_id: str, dimension: str, value: object) -> DashboardState:
    return _update(state, widget_id, lambda w: update_size(w, dimension, value))


def move_widget(state: DashboardState, widget_id: str, x: object, y: object) -> DashboardState:
    return _update(state, widget_id, lambda w: replace(w, x=_coord(x), y=_coord(y)))


def update_widget_config(state: DashboardState, widget_id: str, config: Mapping[str, Any]) -> DashboardState:
    return _update(state, widget_id, lambda w: replace(w, config=resolve_config(w.kind, config)))


def apply_layout_change(state: DashboardState, items: Iterable[Mapping[str, Any]]) -> DashboardState:
    """Fold grid drag/resize feedback (``{i, x, y, w, h}`` items) back into the state."""
    by_id = {str(item.get("i")): item for item in items if isinstance(item, Mapping)}
    widgets = []
    for w in state.widgets:
        item = by_id.get(w.id)
        if item is None:
            widgets.append(w)
            continue
        widgets.append(
            replace(
                w,
                x=_coord(item.get("x", w.x)),
                y=_coord(item.get("y", w.y)),
                w=clamp_width(item.get("w", w.w)),
                h=clamp_height(item.get("h", w.h)),
            )
        )
    return replace(state, widgets=tuple(widgets))


def set_date_filter(state: DashboardState, value: object) -> DashboardState:
    return replace(state, date_filter=normalize_date_filter(value))


# ---------------- Layout derivation ----------------
def resolve_append_row(widgets: Iterable[Widget]) -> int:
    bottoms = [w.y + w.h for w in widgets if w.y is not APPEND]
    return max(bottoms) if bottoms else 0


def _placed(widgets: Sequence[Widget]) -> List[Widget]:
    """Resolve append sentinels in order, each landing below everything placed before it."""
    out: List[Widget] = []
    bottom = resolve_append_row(widgets)
    for w in widgets:
        if w.y is APPEND:
            w = replace(w, y=bottom)
            bottom += w.h
        out.append(w)
    return out


def derive_breakpoint_layout(widgets: Sequence[Widget], breakpoint: str) -> List[Widget]:
    """Derive positions for a breakpoint from the canonical desktop layout.

    Vertical order is preserved on every breakpoint; only x and w are adapted
    to the narrower grids.
    """
    placed = _placed(active_widgets(widgets))
    if breakpoint == "md":
        cols = GRID_COLUMNS["md"]
        return [replace(w, x=w.x % cols, w=min(w.w, cols)) for w in placed]
    if breakpoint == "sm":
        return [replace(w, x=0, w=min(w.w, GRID_COLUMNS["sm"])) for w in placed]
    return placed


def layout_for(widgets: Sequence[Widget], breakpoint: str) -> List[PlacedWidget]:
    return [
        PlacedWidget(i=w.id, x=w.x, y=w.y, w=w.w, h=w.h)
        for w in derive_breakpoint_layout(widgets, breakpoint)
    ]


def layouts_for_all(widgets: Sequence[Widget]) -> Dict[str, List[PlacedWidget]]:
    return {bp: layout_for(widgets, bp) for bp in BREAKPOINTS}


# ---------------- Serialized form ----------------
def widget_to_dict(widget: Widget) -> Dict[str, Any]:
    return {
        "id": widget.id,
        "type": widget.kind,
        "x": widget.x,
        "y": widget.y,
        "w": widget.w,
        "h": widget.h,
        "isActive": widget.is_active,
        "config": config_to_dict(widget.config),
    }


def widget_from_dict(raw: Mapping[str, Any]) -> Optional[Widget]:
    """Build a widget from its stored form; entries with no id or an unknown type are skipped."""
    kind = normalize_kind(raw.get("type", raw.get("kind")))
    widget_id = raw.get("id")
    if kind is None or widget_id in (None, ""):
        return None
    default_w, default_h = DEFAULT_SIZES[kind]
    y = raw.get("y")
    config = raw.get("config")
    return Widget(
        id=str(widget_id),
        kind=kind,
        config=resolve_config(kind, config if isinstance(config, Mapping) else {}),
        x=_coord(raw.get("x", 0)),
        y=None if y is None or parse_int(y, -1) < 0 else parse_int(y, 0),
        w=clamp_width(raw.get("w", default_w)),
        h=clamp_height(raw.get("h", default_h)),
        is_active=raw.get("isActive", True) is not False,
    )


def state_to_dict(state: DashboardState) -> Dict[str, Any]:
    return {"widgets": [widget_to_dict(w) for w in state.widgets], "dateFilter": state.date_filter}


def state_from_dict(raw: Optional[Mapping[str, Any]]) -> DashboardState:
    if not isinstance(raw, Mapping):
        return DashboardState()
    items = raw.get("widgets") or []
    widgets = [w for w in (widget_from_dict(item) for item in items if isinstance(item, Mapping)) if w is not None]
    return make_state(widgets, raw.get("dateFilter", raw.get("date_filter", "all")))
