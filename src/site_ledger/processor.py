# src/site_ledger/processor.py
from __future__ import annotations

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from .models import ConsolidatedEntry, LedgerEntry, Movement
from .utils.utils_number import safe_div
from .utils.utils_text import as_text

NOTE_SEPARATOR = "; "

# fields copied from the first entry of a group (identical inside a group, or display only)
_CARRIED_FIELDS = ("section_id", "mini_section_id", "name", "specs", "category", "type")

GroupKey = Tuple[str, str, str]  # (kind, scope_id, identity_key)


def _group_key(e: LedgerEntry) -> GroupKey:
    return (e["kind"], e.get("scope_id", ""), e["identity_key"])


def merge_notes(notes: Iterable[str], *, separator: str = NOTE_SEPARATOR) -> str:
    """Distinct non-empty notes, first-seen order."""
    seen: List[str] = []
    for n in notes:
        n = (n or "").strip()
        if n and n not in seen:
            seen.append(n)
    return separator.join(seen)


def _earliest(values: Iterable[Optional[datetime]]) -> Optional[datetime]:
    known = [v for v in values if v is not None]
    return min(known) if known else None


def _variant_ids(group: List[LedgerEntry]) -> List[str]:
    ids: List[str] = []
    for e in group:
        vid = as_text((e.get("source") or {}).get("_id"))
        if vid and vid not in ids:
            ids.append(vid)
    return ids


def _movement_split(group: List[LedgerEntry]) -> Dict[str, float]:
    """Quantity and cost per movement; records without one count as imported."""
    out = {"total_imported": 0.0, "total_used": 0.0, "imported_cost": 0.0, "used_cost": 0.0}
    for e in group:
        if e.get("movement") == "used":
            out["total_used"] += e["quantity"]
            out["used_cost"] += e["total_cost"]
        else:
            out["total_imported"] += e["quantity"]
            out["imported_cost"] += e["total_cost"]
    return out


def _fold(group: List[LedgerEntry], *, separator: str) -> ConsolidatedEntry:
    first = group[0]
    total_quantity = sum(e["quantity"] for e in group)
    total_cost = sum(e["total_cost"] for e in group)

    row = ConsolidatedEntry(
        kind=first["kind"],
        identity_key=first["identity_key"],
        scope_id=first.get("scope_id", ""),
        label=first["label"],
        unit=first["unit"],
        total_quantity=total_quantity,
        total_cost=total_cost,
        # weighted average; 0 for an all-zero quantity group
        effective_unit_cost=safe_div(total_cost, total_quantity),
        earliest_recorded_at=_earliest(e.get("recorded_at") for e in group),
        merged_notes=merge_notes((e.get("note", "") for e in group), separator=separator),
        entry_count=len(group),
    )
    for f in _CARRIED_FIELDS:
        if f in first:
            row[f] = first[f]  # type: ignore[literal-required]
    if row["kind"] == "material":
        row.update(_movement_split(group))  # type: ignore[typeddict-item]
        row["variant_ids"] = _variant_ids(group)
    return row


def consolidate(
    entries: Iterable[LedgerEntry],
    *,
    separator: str = NOTE_SEPARATOR,
) -> List[ConsolidatedEntry]:
    """
    Folds normalized entries that share an identity key into one row each.

    - groups by (kind, scope_id, identity_key): never merges across scopes
    - output order = order of the first occurrence of each group
    - total_quantity / total_cost are plain sums over the group
    - effective_unit_cost = total_cost / total_quantity (weighted, not a mean of rates)
    - earliest_recorded_at = min(recorded_at), merged_notes = distinct non-empty notes
    - material rows also split quantity / cost into imported and used, and list
      the _id of every record folded in (variant_ids)
    """
    groups: Dict[GroupKey, List[LedgerEntry]] = {}
    for e in entries:
        groups.setdefault(_group_key(e), []).append(e)
    return [_fold(g, separator=separator) for g in groups.values()]


def consolidate_by_scope(
    entries: Iterable[LedgerEntry],
    *,
    separator: str = NOTE_SEPARATOR,
) -> Dict[str, List[ConsolidatedEntry]]:
    """scope_id -> consolidated rows of that scope (first-occurrence order of scopes)."""
    out: Dict[str, List[ConsolidatedEntry]] = {}
    for row in consolidate(entries, separator=separator):
        out.setdefault(row["scope_id"], []).append(row)
    return out


def _singleton(
    row: ConsolidatedEntry,
    quantity: float,
    total_cost: float,
    movement: Optional[Movement] = None,
) -> LedgerEntry:
    entry = LedgerEntry(
        kind=row["kind"],
        identity_key=row["identity_key"],
        label=row["label"],
        quantity=quantity,
        unit=row["unit"],
        unit_cost=safe_div(total_cost, quantity),
        total_cost=total_cost,
        recorded_at=row["earliest_recorded_at"],
        note=row["merged_notes"],
        scope_id=row["scope_id"],
    )
    for f in _CARRIED_FIELDS:
        if f in row:
            entry[f] = row[f]  # type: ignore[literal-required]
    if movement is not None:
        entry["movement"] = movement
    return entry


def as_ledger_entries(row: ConsolidatedEntry) -> List[LedgerEntry]:
    """
    Re-feeds a consolidated row as ledger entries: one for a labor row, one per
    movement present for a material row. Consolidating them again gives back
    the same row (entry_count and variant_ids aside):

        consolidate([e for r in consolidate(x) for e in as_ledger_entries(r)])
    """
    if row["kind"] != "material" or "total_imported" not in row:
        return [_singleton(row, row["total_quantity"], row["total_cost"])]

    out: List[LedgerEntry] = []
    if row["total_used"] or row["used_cost"]:
        out.append(_singleton(row, row["total_used"], row["used_cost"], "used"))
    if row["total_imported"] or row["imported_cost"] or not out:
        out.insert(0, _singleton(row, row["total_imported"], row["imported_cost"], "imported"))
    return out
