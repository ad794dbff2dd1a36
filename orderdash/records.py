from __future__ import annotations

import json
import math
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

import numpy as np
import pandas as pd


NUMERIC_FIELDS = ("quantity", "unitPrice", "total")
CURRENCY_FIELDS = ("unitPrice", "total")
ORDER_STATUSES = ("Pending", "In progress", "Completed")

ORDER_COLUMNS = (
    "customerId",
    "customerName",
    "email",
    "phone",
    "address",
    "orderId",
    "orderDate",
    "product",
    "quantity",
    "unitPrice",
    "total",
    "status",
    "createdBy",
)

ADDRESS_PARTS = (("streetAddress", "street"), ("city",), ("state",), ("postalCode",), ("country",))


def is_missing(value: object) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        # list-likes are never "missing" as a whole
        return False


def parse_numeric(value: object) -> Optional[float]:
    """Coerce a cell to a finite float, or None when it cannot be read as a number."""
    if value is None or isinstance(value, (bool, np.bool_)):
        return None
    if isinstance(value, (int, float, Decimal, np.number)):
        try:
            out = float(value)
        except (TypeError, ValueError, OverflowError, InvalidOperation):
            return None
    elif isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            out = float(s)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(out) or math.isinf(out):
        return None
    return out


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    num = parse_numeric(value)
    if num is None:
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(num)).quantize(q, rounding=ROUND_HALF_UP))


def compute_total(quantity: object, unit_price: object) -> float:
    q = parse_numeric(quantity) or 0.0
    p = parse_numeric(unit_price) or 0.0
    return round_half_up(q * p, 2) or 0.0


def parse_record_date(value: object) -> Optional[datetime]:
    """Read an order date.

    Accepts datetimes, dates, ISO-8601 strings and epoch milliseconds (the
    wire form produced by JavaScript clients). Returns None for anything else.
    """
    if value is None or isinstance(value, (bool, np.bool_)):
        return None
    if isinstance(value, pd.Timestamp):
        return None if pd.isna(value) else value.to_pydatetime()
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, (int, float, np.number)):
        millis = parse_numeric(value)
        if millis is None:
            return None
        try:
            return datetime.fromtimestamp(millis / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        if not value.strip():
            return None
        try:
            ts = pd.to_datetime(value.strip(), errors="coerce")
        except (TypeError, ValueError, OverflowError):
            return None
        if ts is None or pd.isna(ts):
            return None
        return ts.to_pydatetime()
    return None


def record_date(record: Mapping[str, Any]) -> Optional[datetime]:
    value = record.get("orderDate")
    if is_missing(value):
        value = record.get("createdAt")
    return parse_record_date(value)


def _clean_text(value: object) -> str:
    if is_missing(value):
        return ""
    return str(value).strip()


def _address(record: Mapping[str, Any]) -> str:
    parts: List[str] = []
    for keys in ADDRESS_PARTS:
        for key in keys:
            text = _clean_text(record.get(key))
            if text:
                parts.append(text)
                break
    return ", ".join(parts)


def normalize_order(record: object) -> Dict[str, Any]:
    """Return a copy of an order with derived fields filled in.

    Non-mapping input becomes an empty order so downstream counts stay aligned
    with the input length.
    """
    if not isinstance(record, Mapping):
        return {}
    out = dict(record)
    if parse_numeric(out.get("total")) is None:
        out["total"] = compute_total(out.get("quantity"), out.get("unitPrice"))
    if not _clean_text(out.get("customerName")):
        name = f"{_clean_text(out.get('firstName'))} {_clean_text(out.get('lastName'))}".strip()
        if name:
            out["customerName"] = name
    if not _clean_text(out.get("address")):
        address = _address(out)
        if address:
            out["address"] = address
    return out


def normalize_orders(records: Optional[Iterable[object]]) -> List[Dict[str, Any]]:
    if not records:
        return []
    return [normalize_order(r) for r in records]


def records_frame(records: Optional[Iterable[object]]) -> pd.DataFrame:
    """One row per input item; non-mapping items become all-missing rows."""
    rows = [dict(r) if isinstance(r, Mapping) else {} for r in (records or [])]
    if not rows:
        return pd.DataFrame()
    return pd.DataFrame(rows, index=pd.RangeIndex(len(rows)))


def column_values(frame: pd.DataFrame, col: str) -> pd.Series:
    if col not in frame.columns:
        return pd.Series([None] * len(frame), index=frame.index, dtype=object)
    val = frame[col]
    if isinstance(val, pd.DataFrame):
        return val.iloc[:, 0]
    return val


# ---------------- Loaders ----------------
def load_orders(path: Optional[str]) -> List[Dict[str, Any]]:
    """Read an orders export (JSON array or CSV). Missing files give an empty dataset."""
    if not path:
        return []
    source = Path(path)
    if not source.exists():
        return []
    if source.suffix.lower() == ".csv":
        df = pd.read_csv(source)
        return df.astype(object).where(pd.notna(df), None).to_dict(orient="records")
    data = json.loads(source.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("orders") or data.get("data") or []
    return [dict(r) for r in data if isinstance(r, Mapping)] if isinstance(data, list) else []
