# src/site_ledger/adapters/common.py
from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional

from ..utils.utils_date import parse_timestamp
from ..utils.utils_number import to_float, safe_div
from ..utils.utils_text import as_text

logger = logging.getLogger(__name__)

# relative tolerance between a provided totalCost and quantity × unit cost
TOTAL_COST_TOLERANCE = 0.005

_TIMESTAMP_FIELDS = ("addedAt", "createdAt", "workDate", "date", "updatedAt")
_NOTE_FIELDS = ("note", "notes", "description", "remarks")


def pick(raw: Mapping[str, Any], candidates: Iterable[str]) -> Any:
    """First candidate field that is present and not None/""."""
    for c in candidates:
        v = raw.get(c)
        if v is None:
            continue
        if isinstance(v, str) and not v.strip():
            continue
        return v
    return None


def pick_number(raw: Mapping[str, Any], candidates: Iterable[str]) -> Optional[float]:
    """First candidate field that parses as a number."""
    for c in candidates:
        f = to_float(raw.get(c))
        if f is not None:
            return f
    return None


def pick_timestamp(raw: Mapping[str, Any]):
    for c in _TIMESTAMP_FIELDS:
        dt = parse_timestamp(raw.get(c))
        if dt is not None:
            return dt
    return None


def pick_note(raw: Mapping[str, Any]) -> str:
    return as_text(pick(raw, _NOTE_FIELDS))


def scope_fields(raw: Mapping[str, Any]) -> dict[str, str]:
    """scope_id (+ section_id / mini_section_id when known)."""
    out: dict[str, str] = {}
    section = as_text(raw.get("sectionId"))
    mini = as_text(raw.get("miniSectionId"))
    if section:
        out["section_id"] = section
    if mini:
        out["mini_section_id"] = mini
    out["scope_id"] = mini or section
    return out


def resolve_costs(
    quantity: float,
    unit_cost: Optional[float],
    total_cost: Optional[float],
    *,
    ref: str = "",
) -> tuple[float, float]:
    """
    Returns (total_cost, unit_cost) for one record.

    - total missing -> quantity × unit cost
    - both missing  -> 0
    - the unit cost returned is always derived from the total
    """
    if total_cost is None:
        total_cost = quantity * unit_cost if unit_cost is not None else 0.0
    elif unit_cost is not None:
        expected = quantity * unit_cost
        if abs(expected - total_cost) > TOTAL_COST_TOLERANCE * max(abs(total_cost), 1.0):
            logger.debug(
                "%s: totalCost %.2f differs from quantity × unit cost (%.2f); keeping totalCost.",
                ref, total_cost, expected,
            )
    return total_cost, safe_div(total_cost, quantity)
