from __future__ import annotations

from dataclasses import asdict
import logging
import math
from functools import lru_cache
from typing import Any, Callable, Dict, List

import numpy as np
import pandas as pd
from fastapi import Depends, FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from orderdash.configs import (
    PAGE_SIZE_OPTIONS,
    WIDGET_KINDS,
    config_to_dict,
    default_config,
    validate_widget_config,
)
from orderdash.exceptions import UnknownWidgetKind
from orderdash.filters import DATE_FILTER_OPTIONS
from orderdash.layout import (
    BREAKPOINTS,
    DEFAULT_SIZES,
    active_widgets,
    layout_for,
    remove_widget,
    state_from_dict,
    state_to_dict,
)
from orderdash.persistence import CachePort, JsonFileCache, MemoryCache
from orderdash.records import NUMERIC_FIELDS, ORDER_COLUMNS, ORDER_STATUSES, load_orders
from orderdash.settings import get_settings
from orderdash.views import compute_dashboard, compute_widget_view
from orderdash_api.schemas import (
    DashboardConfigModel,
    DashboardViewRequest,
    LayoutRequest,
    ValidationResponse,
    WidgetConfigModel,
    WidgetViewRequest,
)


settings = get_settings()
app = FastAPI(title=settings.app_name, version=settings.app_version)
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

UNTITLED = "Untitled Chart"


@lru_cache
def get_dashboard_store() -> CachePort:
    path = get_settings().dashboard_store_path
    return JsonFileCache(path) if path else MemoryCache()


def get_orders() -> List[Dict[str, Any]]:
    return load_orders(get_settings().orders_path)


OrdersLoader = Callable[[], List[Dict[str, Any]]]


def get_orders_loader() -> OrdersLoader:
    return get_orders


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(exc: Exception, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _stored_config(store: CachePort) -> Dict[str, Any]:
    state = state_from_dict(store.read())
    widgets = [w for w in state_to_dict(state)["widgets"] if w["isActive"]]
    return {"widgets": widgets, "dateFilter": state.date_filter, "isConfigured": bool(widgets)}


@app.get("/meta/widget-kinds")
def meta_widget_kinds():
    return _json(
        {
            "kinds": list(WIDGET_KINDS),
            "defaults": {kind: config_to_dict(default_config(kind)) for kind in WIDGET_KINDS},
            "sizes": {kind: {"w": w, "h": h} for kind, (w, h) in DEFAULT_SIZES.items()},
            "columns": list(ORDER_COLUMNS),
            "numericFields": list(NUMERIC_FIELDS),
            "statuses": list(ORDER_STATUSES),
            "pageSizes": list(PAGE_SIZE_OPTIONS),
        }
    )


@app.get("/meta/date-filters")
def meta_date_filters():
    return _json({"options": [{"value": value, "label": label} for value, label in DATE_FILTER_OPTIONS]})


@app.post("/widgets/validate", response_model=ValidationResponse)
def widgets_validate(body: WidgetConfigModel):
    try:
        return _json(asdict(validate_widget_config(body.kind, body.config)))
    except Exception as exc:
        logger.exception("widgets_validate failed")
        return _error(exc)


@app.post("/widgets/view")
def widgets_view(body: WidgetViewRequest, load: OrdersLoader = Depends(get_orders_loader)):
    try:
        records = body.records if body.records is not None else load()
        view = compute_widget_view(
            body.kind,
            body.config,
            records,
            date_filter=body.date_filter,
            now=body.now,
            page=body.page,
            include_spec=body.include_spec,
        )
        return _json(view)
    except UnknownWidgetKind as exc:
        return _error(exc, status_code=422)
    except Exception as exc:
        logger.exception("widgets_view failed")
        return _error(exc)


@app.post("/layout")
def layout(body: LayoutRequest):
    try:
        breakpoint = body.breakpoint if body.breakpoint in BREAKPOINTS else "lg"
        state = state_from_dict({"widgets": body.widgets})
        placed = layout_for(state.widgets, breakpoint)
        return _json({"breakpoint": breakpoint, "layout": [asdict(p) for p in placed]})
    except Exception as exc:
        logger.exception("layout failed")
        return _error(exc)


@app.get("/dashboard/config")
def dashboard_config(store: CachePort = Depends(get_dashboard_store)):
    try:
        return _json(_stored_config(store))
    except Exception as exc:
        logger.exception("dashboard_config failed")
        return _error(exc)


@app.post("/dashboard/config")
def save_dashboard_config(body: DashboardConfigModel, store: CachePort = Depends(get_dashboard_store)):
    try:
        widgets = []
        for raw in body.widgets:
            config = dict(raw.get("config") or {})
            if not str(config.get("title") or "").strip():
                config["title"] = UNTITLED
            widgets.append({**raw, "config": config})
        state = state_from_dict({"widgets": widgets, "dateFilter": body.dateFilter})
        store.write(state_to_dict(state))
        return _json(_stored_config(store))
    except Exception as exc:
        logger.exception("save_dashboard_config failed")
        return _error(exc)


@app.delete("/dashboard/widget/{widget_id}")
def delete_dashboard_widget(widget_id: str, store: CachePort = Depends(get_dashboard_store)):
    try:
        state = state_from_dict(store.read())
        existed = any(w.id == widget_id and w.is_active for w in state.widgets)
        state = remove_widget(state, widget_id, soft=True)
        store.write(state_to_dict(state))
        return _json({"message": "Widget deleted successfully", "deleted": existed, "isConfigured": bool(active_widgets(state.widgets))})
    except Exception as exc:
        logger.exception("delete_dashboard_widget failed")
        return _error(exc)


@app.post("/dashboard/view")
def dashboard_view(
    body: DashboardViewRequest,
    store: CachePort = Depends(get_dashboard_store),
    load: OrdersLoader = Depends(get_orders_loader),
):
    try:
        state = state_from_dict(store.read())
        records = body.records if body.records is not None else load()
        breakpoint = body.breakpoint if body.breakpoint in BREAKPOINTS else "lg"
        return _json(compute_dashboard(state, records, now=body.now, breakpoint=breakpoint, include_spec=body.include_spec))
    except Exception as exc:
        logger.exception("dashboard_view failed")
        return _error(exc)
