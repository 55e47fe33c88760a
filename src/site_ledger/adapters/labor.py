# src/site_ledger/adapters/labor.py
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from ..models import LedgerEntry
from ..utils.utils_text import as_text, norm_key
from .common import pick, pick_note, pick_number, pick_timestamp, resolve_costs, scope_fields

logger = logging.getLogger(__name__)

# ---------- Field aliases ----------

_FIELD_CANDIDATES = {
    "category":   ("category",),
    "type":       ("type", "laborType"),
    "count":      ("count", "quantity", "qnt"),
    "unit_cost":  ("perLaborCost", "perUnitCost", "unitCost", "cost"),
    "total_cost": ("totalCost",),
}


def labor_identity_key(category: Any, type_: Any) -> str:
    """("Civil Works Labour", "Mason") -> "civil works labour|mason" """
    return f"{norm_key(category)}|{norm_key(type_)}"


def normalize_labor(raw: Mapping[str, Any], *, index: int | None = None) -> Optional[LedgerEntry]:
    """
    Normalizes one raw labor record; returns None (and logs) without category/type.
    """
    ref = f"labor[{index}]" if index is not None else "labor"

    category = as_text(pick(raw, _FIELD_CANDIDATES["category"]))
    type_ = as_text(pick(raw, _FIELD_CANDIDATES["type"]))
    if not category or not type_:
        missing = "category" if not category else "type"
        logger.warning("%s without '%s'; skipping record (id=%r).", ref, missing, raw.get("_id"))
        return None

    count = pick_number(raw, _FIELD_CANDIDATES["count"])
    if count is None:
        logger.warning("%s %s/%s without a numeric count; using 0.", ref, category, type_)
        count = 0.0

    total_cost, unit_cost = resolve_costs(
        count,
        pick_number(raw, _FIELD_CANDIDATES["unit_cost"]),
        pick_number(raw, _FIELD_CANDIDATES["total_cost"]),
        ref=f"{ref} {category}/{type_}",
    )

    entry: LedgerEntry = {
        "kind": "labor",
        "identity_key": labor_identity_key(category, type_),
        "label": type_,
        "quantity": count,
        "unit": "labor",
        "unit_cost": unit_cost,
        "total_cost": total_cost,
        "recorded_at": pick_timestamp(raw),
        "note": pick_note(raw),
        "category": category,
        "type": type_,
        "source": dict(raw),
        **scope_fields(raw),
    }
    return entry
