# src/site_ledger/adapters/materials.py
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from ..models import LedgerEntry, Movement
from ..utils.utils_text import as_text, canonical_specs, norm_key
from .common import pick, pick_note, pick_number, pick_timestamp, resolve_costs, scope_fields

logger = logging.getLogger(__name__)

# ---------- Field aliases ----------

_FIELD_CANDIDATES = {
    "name":       ("name", "materialName"),
    "quantity":   ("qnt", "quantity", "qty"),
    "unit":       ("unit",),
    # legacy records only carry "cost" (per unit for imports)
    "unit_cost":  ("perUnitCost", "unitCost", "cost"),
    "total_cost": ("totalCost",),
    "specs":      ("specs", "specifications"),
    "movement":   ("movement", "status"),
}

# raw movement / status (normalized) -> Movement
_MOVEMENTS = {
    "imported": "imported",
    "import": "imported",
    "available": "imported",
    "received": "imported",
    "stored": "imported",
    "damaged": "imported",
    "used": "used",
    "usage": "used",
    "in_use": "used",
    "in use": "used",
    "consumed": "used",
}


def material_identity_key(name: Any, specs: Mapping[str, Any] | None) -> str:
    """
    "Cement", {"grade": "53"} -> 'cement|{"grade":"53"}'

    Same material only when the name (case-insensitive) and every spec field match.
    """
    return f"{norm_key(name)}|{canonical_specs(specs)}"


def material_movement(raw: Mapping[str, Any], *, ref: str = "material") -> Movement:
    """
    "imported" or "used", from the record's movement/status field.
    Missing -> "imported"; an unknown value is logged and read as "imported".
    """
    value = norm_key(pick(raw, _FIELD_CANDIDATES["movement"]))
    if not value:
        return "imported"
    movement = _MOVEMENTS.get(value)
    if movement is None:
        logger.warning("%s: unknown movement/status %r; reading it as imported.", ref, value)
        return "imported"
    return movement  # type: ignore[return-value]


def normalize_material(raw: Mapping[str, Any], *, index: int | None = None) -> Optional[LedgerEntry]:
    """
    Normalizes one raw material record; returns None (and logs) when it has no name.
    """
    ref = f"material[{index}]" if index is not None else "material"

    name = as_text(pick(raw, _FIELD_CANDIDATES["name"]))
    if not name:
        logger.warning("%s without 'name'; skipping record (id=%r).", ref, raw.get("_id"))
        return None

    specs = pick(raw, _FIELD_CANDIDATES["specs"])
    if specs is not None and not isinstance(specs, Mapping):
        logger.warning("%s %r: 'specs' is not an object (%r); treating as empty.", ref, name, type(specs).__name__)
        specs = None
    specs = dict(specs or {})

    quantity = pick_number(raw, _FIELD_CANDIDATES["quantity"])
    if quantity is None:
        logger.warning("%s %r without a numeric quantity; using 0.", ref, name)
        quantity = 0.0

    total_cost, unit_cost = resolve_costs(
        quantity,
        pick_number(raw, _FIELD_CANDIDATES["unit_cost"]),
        pick_number(raw, _FIELD_CANDIDATES["total_cost"]),
        ref=f"{ref} {name!r}",
    )

    entry: LedgerEntry = {
        "kind": "material",
        "identity_key": material_identity_key(name, specs),
        "label": name,
        "quantity": quantity,
        "unit": as_text(pick(raw, _FIELD_CANDIDATES["unit"])),
        "unit_cost": unit_cost,
        "total_cost": total_cost,
        "recorded_at": pick_timestamp(raw),
        "note": pick_note(raw),
        "name": name,
        "specs": specs,
        "movement": material_movement(raw, ref=f"{ref} {name!r}"),
        "source": dict(raw),
        **scope_fields(raw),
    }
    return entry
