# src/site_ledger/adapters/entries.py
from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional

from ..models import EntryKind, LedgerEntry
from ..utils.utils_text import as_text, norm_key
from .labor import normalize_labor
from .materials import normalize_material

logger = logging.getLogger(__name__)

# materials carry "category" too, so it is not a labor marker
_LABOR_MARKERS = ("perLaborCost", "count")


def detect_kind(raw: Mapping[str, Any]) -> EntryKind:
    """
    Explicit "kind" wins; otherwise labor when the record carries
    perLaborCost/count, or a "type" without a "name"; otherwise material.
    """
    kind = norm_key(raw.get("kind"))
    if kind in ("labor", "labour"):
        return "labor"
    if kind == "material":
        return "material"
    if any(raw.get(k) is not None for k in _LABOR_MARKERS):
        return "labor"
    if as_text(raw.get("type")) and not as_text(raw.get("name")):
        return "labor"
    return "material"


def normalize(raw: Iterable[Any], *, kind: Optional[EntryKind] = None) -> List[LedgerEntry]:
    """
    Raw material/labor records -> LedgerEntry list, same order, no dedup.

    `kind` forces every record to one kind (the caller knows which API it hit).
    Malformed records are skipped with a warning; the rest of the batch goes on.
    """
    out: List[LedgerEntry] = []
    skipped = 0
    for i, rec in enumerate(raw):
        if not isinstance(rec, Mapping):
            logger.warning("entry[%d] is not an object (%s); skipping.", i, type(rec).__name__)
            skipped += 1
            continue

        k = kind or detect_kind(rec)
        entry = normalize_labor(rec, index=i) if k == "labor" else normalize_material(rec, index=i)
        if entry is None:
            skipped += 1
            continue
        out.append(entry)

    if skipped:
        logger.info("Normalization: %d entries kept, %d skipped.", len(out), skipped)
    return out
