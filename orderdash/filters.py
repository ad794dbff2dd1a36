from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from orderdash.records import record_date


DAY_SECONDS = 86400.0

DATE_FILTER_OPTIONS: Tuple[Tuple[str, str], ...] = (
    ("all", "All time"),
    ("today", "Today"),
    ("last7", "Last 7 Days"),
    ("last30", "Last 30 Days"),
    ("last90", "Last 90 Days"),
)
DATE_FILTERS = tuple(value for value, _ in DATE_FILTER_OPTIONS)
WINDOW_DAYS: Dict[str, int] = {"last7": 7, "last30": 30, "last90": 90}


def normalize_date_filter(value: object) -> str:
    if isinstance(value, str) and value.strip() in DATE_FILTERS:
        return value.strip()
    return "all"


def _align(moment: datetime, now: datetime) -> datetime:
    """Express `moment` on the same clock as `now` (local wall time)."""
    if now.tzinfo is not None:
        if moment.tzinfo is None:
            return moment.replace(tzinfo=now.tzinfo)
        return moment.astimezone(now.tzinfo)
    if moment.tzinfo is not None:
        return moment.astimezone().replace(tzinfo=None)
    return moment


def _keep(record: Mapping[str, Any], date_filter: str, now: datetime) -> bool:
    moment = record_date(record)
    if moment is None:
        return False
    try:
        moment = _align(moment, now)
    except (OverflowError, OSError, ValueError):
        return False
    if date_filter == "today":
        return (moment.year, moment.month, moment.day) == (now.year, now.month, now.day)
    age_days = (now - moment).total_seconds() / DAY_SECONDS
    return age_days <= WINDOW_DAYS[date_filter]


def filter_by_date(records: Optional[Iterable[Any]], date_filter: object, now: Optional[datetime] = None) -> List[Any]:
    """Narrow orders to a named relative window ending at `now`.

    `all` and unknown filter names return every record. Records without a
    readable `orderDate`/`createdAt` drop out of every other window. Input
    order is preserved.
    """
    items = list(records or [])
    if not isinstance(date_filter, str) or date_filter not in DATE_FILTERS or date_filter == "all":
        return items
    now = now or datetime.now()
    return [r for r in items if isinstance(r, Mapping) and _keep(r, date_filter, now)]
