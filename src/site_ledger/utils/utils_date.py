# src/site_ledger/utils/utils_date.py
from __future__ import annotations

from datetime import date, datetime, timedelta, tzinfo
from typing import Any, Optional

import pandas as pd

# Fixed English abbreviations: labels must not depend on the machine locale.
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def parse_timestamp(x: Any) -> Optional[datetime]:
    """
    Parses what the API sends as addedAt/createdAt/workDate into an aware datetime.

    - ISO strings with offset or "Z" keep their offset
    - naive strings / datetimes are read as machine-local wall time
    - int/float are epoch milliseconds (JS Date.now()) when > 1e11, else seconds
    - date -> local midnight
    - None, "", garbage -> None
    """
    if x is None or isinstance(x, bool):
        return None
    if isinstance(x, datetime):
        ts = pd.Timestamp(x)
    elif isinstance(x, date):
        ts = pd.Timestamp(datetime(x.year, x.month, x.day))
    elif isinstance(x, (int, float)):
        if pd.isna(x):
            return None
        unit = "ms" if abs(x) > 1e11 else "s"
        ts = pd.to_datetime(x, unit=unit, utc=True, errors="coerce")
    else:
        s = str(x).strip()
        if not s:
            return None
        ts = pd.to_datetime(s, errors="coerce")

    if ts is None or pd.isna(ts):
        return None
    dt = ts.to_pydatetime()
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return dt


def local_date(dt: datetime, tz: tzinfo | None = None) -> date:
    """Calendar day of `dt` in `tz` (machine local zone when None)."""
    return dt.astimezone(tz).date()


def as_day(now: date | datetime, tz: tzinfo | None = None) -> date:
    if isinstance(now, datetime):
        if now.tzinfo is None:
            return now.date()
        return local_date(now, tz)
    return now


def date_label(bucket_date: date, now: date | datetime, tz: tzinfo | None = None) -> str:
    """
    "Today" / "Yesterday" relative to `now`, otherwise "5 Mar 2025".
    """
    today = as_day(now, tz)
    if bucket_date == today:
        return "Today"
    if bucket_date == today - timedelta(days=1):
        return "Yesterday"
    return f"{bucket_date.day} {_MONTHS[bucket_date.month - 1]} {bucket_date.year}"


def iso_or_none(dt: Optional[datetime]) -> Optional[str]:
    return dt.isoformat() if dt is not None else None
