# src/site_ledger/bucketing.py
from __future__ import annotations

import logging
from datetime import date, datetime, tzinfo
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from .models import DateBucket
from .utils.utils_date import date_label, local_date

logger = logging.getLogger(__name__)

_DATE_FIELDS = ("recorded_at", "earliest_recorded_at")


def entry_timestamp(entry: Mapping[str, Any]) -> Optional[datetime]:
    """recorded_at for ledger entries, earliest_recorded_at for consolidated rows."""
    for f in _DATE_FIELDS:
        v = entry.get(f)
        if v is not None:
            return v
    return None


def bucket_by_date(
    entries: Iterable[Mapping[str, Any]],
    *,
    now: date | datetime | None = None,
    tz: tzinfo | None = None,
    timestamp_of: Callable[[Mapping[str, Any]], Optional[datetime]] = entry_timestamp,
) -> List[DateBucket]:
    """
    Splits entries into calendar-day buckets (local date in `tz`).

    Buckets come most recent first; inside a bucket the caller's order is kept.
    `now` only feeds the "Today"/"Yesterday" labels; pass it explicitly in tests.
    """
    if now is None:
        now = datetime.now().astimezone(tz)

    grouped: Dict[date, List[Any]] = {}
    skipped = 0
    for e in entries:
        ts = timestamp_of(e)
        if ts is None:
            skipped += 1
            logger.warning("Entry %r without a timestamp; left out of the timeline.", e.get("label") or e.get("identity_key"))
            continue
        grouped.setdefault(local_date(ts, tz), []).append(e)

    if skipped:
        logger.info("Timeline: %d entries without a date were skipped.", skipped)

    return [
        DateBucket(date_key=d, label=date_label(d, now, tz), entries=grouped[d])
        for d in sorted(grouped, reverse=True)
    ]


def paginate_buckets(
    buckets: List[DateBucket],
    *,
    page: int,
    page_size: int,
) -> List[DateBucket]:
    """
    Page `page` (1-based) of the flattened timeline, `page_size` entries per page.

    Bucket boundaries are kept: a day cut by the page edge shows up on both pages
    with its own slice of entries. Out-of-range pages yield [].
    """
    if page < 1 or page_size < 1:
        raise ValueError(f"page and page_size must be >= 1 (got page={page}, page_size={page_size})")

    start = (page - 1) * page_size
    stop = start + page_size
    out: List[DateBucket] = []
    pos = 0
    for b in buckets:
        n = len(b["entries"])
        lo = max(start - pos, 0)
        hi = min(stop - pos, n)
        if lo < hi:
            out.append(DateBucket(date_key=b["date_key"], label=b["label"], entries=b["entries"][lo:hi]))
        pos += n
        if pos >= stop:
            break
    return out
