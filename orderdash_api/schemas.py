from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class WidgetConfigModel(BaseModel):
    kind: str
    config: Dict[str, Any] = Field(default_factory=dict)


class WidgetViewRequest(WidgetConfigModel):
    records: Optional[List[Dict[str, Any]]] = None
    date_filter: str = "all"
    page: int = 1
    now: Optional[datetime] = None
    include_spec: bool = True


class LayoutRequest(BaseModel):
    widgets: List[Dict[str, Any]] = Field(default_factory=list)
    breakpoint: str = "lg"


class DashboardConfigModel(BaseModel):
    widgets: List[Dict[str, Any]] = Field(default_factory=list)
    dateFilter: str = "all"


class DashboardViewRequest(BaseModel):
    records: Optional[List[Dict[str, Any]]] = None
    now: Optional[datetime] = None
    breakpoint: str = "lg"
    include_spec: bool = False


class ValidationResponse(BaseModel):
    is_valid: bool
    field_errors: Dict[str, str]
