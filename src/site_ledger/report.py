# src/site_ledger/report.py
from __future__ import annotations

import logging
from datetime import date, datetime, tzinfo
from typing import Any, Dict, List, Mapping, Optional

from .adapters.entries import normalize
from .adapters.snapshot import Snapshot
from .bucketing import bucket_by_date
from .models import ConsolidatedEntry, DateBucket, LedgerEntry
from .processor import consolidate
from .rollup import breakdown_by, by_field, rollup_project, totalize
from .utils.utils_date import iso_or_none

logger = logging.getLogger(__name__)

# LedgerEntry keys that never go into a report
_PRIVATE_FIELDS = ("source",)


def _jsonable(row: Mapping[str, Any]) -> Dict[str, Any]:
    """datetimes -> ISO strings, private fields dropped."""
    out: Dict[str, Any] = {}
    for k, v in row.items():
        if k in _PRIVATE_FIELDS:
            continue
        if isinstance(v, datetime):
            v = iso_or_none(v)
        elif isinstance(v, date):
            v = v.isoformat()
        out[k] = v
    return out


def in_scope(entry: Mapping[str, Any], scope: Optional[str]) -> bool:
    """True for every entry when scope is None; else scope/section/mini-section match."""
    if not scope:
        return True
    return scope in (entry.get("scope_id"), entry.get("section_id"), entry.get("mini_section_id"))


def timeline_json(buckets: List[DateBucket]) -> List[Dict[str, Any]]:
    return [
        {
            "date": b["date_key"].isoformat(),
            "label": b["label"],
            "entries": [_jsonable(e) for e in b["entries"]],
        }
        for b in buckets
    ]


def build_report(
    snapshot: Snapshot,
    *,
    scope: Optional[str] = None,
    now: date | datetime | None = None,
    tz: tzinfo | None = None,
) -> Dict[str, Any]:
    """
    Runs normalize -> consolidate -> totalize / rollup / breakdown / timeline
    over one snapshot and returns a JSON-serialisable payload.
    """
    mat_entries: List[LedgerEntry] = [e for e in normalize(snapshot["materials"], kind="material") if in_scope(e, scope)]
    lab_entries: List[LedgerEntry] = [e for e in normalize(snapshot["labor"], kind="labor") if in_scope(e, scope)]

    materials: List[ConsolidatedEntry] = consolidate(mat_entries)
    labor: List[ConsolidatedEntry] = consolidate(lab_entries)
    totals = totalize(materials, labor)

    logger.info(
        "Report: %d material rows (%d raw), %d labor rows (%d raw); grand total %.2f.",
        len(materials), len(mat_entries), len(labor), len(lab_entries), totals["grand_total"],
    )

    return {
        "meta": {
            "scope": scope,
            "raw_materials": len(snapshot["materials"]),
            "raw_labor": len(snapshot["labor"]),
            "materials_kept": len(mat_entries),
            "labor_kept": len(lab_entries),
        },
        "totals": dict(totals),
        "rollup": rollup_project(mat_entries, lab_entries),
        "materials": [_jsonable(r) for r in materials],
        "labor": [_jsonable(r) for r in labor],
        "breakdown": {
            "materials_by_name": breakdown_by(materials, by_field("name")),
            "labor_by_category": breakdown_by(labor, by_field("category")),
        },
        "timeline": timeline_json(bucket_by_date(mat_entries + lab_entries, now=now, tz=tz)),
    }
