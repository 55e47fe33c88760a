# src/site_ledger/adapters/snapshot.py
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, TypedDict

import pandas as pd

from ..utils.utils_text import as_text, norm_text

logger = logging.getLogger(__name__)


class Snapshot(TypedDict):
    """Already-fetched raw records, as handed to the engine."""
    materials: List[Dict[str, Any]]
    labor: List[Dict[str, Any]]
    assignments: List[Dict[str, Any]]
    projects: List[Dict[str, Any]]


_KEYS = ("materials", "labor", "assignments", "projects")
_KEY_ALIASES = {"labour": "labor", "material": "materials", "staffAssignments": "assignments"}
# project payload arrays: materials still on site vs already consumed
_MOVEMENT_KEYS = {
    "MaterialAvailable": "imported",
    "materialAvailable": "imported",
    "MaterialUsed": "used",
    "materialUsed": "used",
}


def _empty() -> Snapshot:
    return Snapshot(materials=[], labor=[], assignments=[], projects=[])


def _with_movement(records: List[Any], movement: str) -> List[Any]:
    """Copies of the records with "movement" set where missing; non-objects pass through."""
    return [{**r, "movement": r.get("movement") or movement} if isinstance(r, dict) else r for r in records]


# =========================
# JSON
# =========================

def load_snapshot_json(path: str | Path) -> Snapshot:
    """
    {"materials": [...], "labor": [...], "assignments": [...], "projects": [...]}
    Every key is optional; a bare list is read as materials.
    "MaterialAvailable" / "MaterialUsed" arrays are added to materials, tagged
    with their movement (imported / used) unless a record already has one.
    """
    with open(path, "r", encoding="utf-8") as f:
        try:
            payload = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"{path}: invalid JSON ({e})") from e

    snap = _empty()
    if isinstance(payload, list):
        snap["materials"] = payload
        return snap
    if not isinstance(payload, dict):
        raise ValueError(f"{path}: expected an object or a list, got {type(payload).__name__}")

    for key, value in payload.items():
        movement = _MOVEMENT_KEYS.get(key)
        key = "materials" if movement else _KEY_ALIASES.get(key, key)
        if key not in _KEYS:
            logger.info("Snapshot: ignoring unknown key %r.", key)
            continue
        if not isinstance(value, list):
            logger.warning("Snapshot: %r is not a list; ignoring.", key)
            continue
        if movement:
            value = _with_movement(value, movement)
        snap[key].extend(value)  # type: ignore[literal-required]
    return snap


# =========================
# Excel
# =========================

# header (normalized) -> API field name
_COL_CANDIDATES = {
    "name":          ("name", "material", "material name"),
    "category":      ("category", "labor category", "labour category"),
    "type":          ("type", "labor type", "labour type"),
    "qnt":           ("qnt", "qty", "quantity"),
    "count":         ("count", "headcount", "laborers", "labourers"),
    "unit":          ("unit",),
    "perUnitCost":   ("per unit cost", "unit cost", "rate", "cost"),
    "perLaborCost":  ("per labor cost", "per labour cost", "per laborer cost"),
    "totalCost":     ("total cost", "total", "amount"),
    "addedAt":       ("added at", "date", "created at", "work date"),
    "note":          ("note", "notes", "remarks"),
    "sectionId":     ("section id", "section"),
    "miniSectionId": ("mini section id", "mini section", "minisection id"),
    "movement":      ("movement", "status"),
}


def _find_header_row(df_raw: pd.DataFrame, max_scan: int = 20) -> int | None:
    """First row with a name/type column AND a quantity/count column."""
    for i in range(min(max_scan, len(df_raw))):
        row = df_raw.iloc[i].map(norm_text)
        has_ident = row.isin(["name", "material", "material name", "type", "labor type", "labour type"]).any()
        has_qty = row.str.contains(r"\b(?:qnt|qty|quantity|count)\b", regex=True).any()
        if has_ident and has_qty:
            return i
    return None


def _map_columns(columns: Iterable[Any]) -> Dict[str, str]:
    """original column -> API field (exact normalized match; first candidate wins)."""
    lookup = {norm_text(c): c for c in columns}
    out: Dict[str, str] = {}
    for field, candidates in _COL_CANDIDATES.items():
        for c in candidates:
            if c in lookup and lookup[c] not in out:
                out[lookup[c]] = field
                break
    return out


def _spec_columns(columns: Iterable[Any]) -> Dict[str, str]:
    """'spec: grade' / 'spec grade' columns -> spec key."""
    out: Dict[str, str] = {}
    for c in columns:
        n = norm_text(c)
        if n.startswith("spec "):
            out[c] = str(c).split(":", 1)[-1].strip() if ":" in str(c) else n[5:]
    return out


def _py(v: Any) -> Any:
    """numpy scalar -> Python scalar, Timestamp -> ISO string."""
    if isinstance(v, pd.Timestamp):
        return v.isoformat()
    return v.item() if hasattr(v, "item") else v


def _spec_text(v: Any) -> str:
    """
    Spec cell -> text, the way the API stores spec values ("53", not 53.0).
    Spreadsheets turn numeric-looking text into numbers, so integral floats
    lose their ".0".
    """
    v = _py(v)
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    return as_text(v)


def _sheet_records(path: str | Path, sheet: str | int) -> List[Dict[str, Any]]:
    df_raw = pd.read_excel(path, sheet_name=sheet, header=None)
    header_row = _find_header_row(df_raw)
    if header_row is None:
        header_row = 0
        logger.warning("[%s] Header not detected; using the first row.", sheet)

    df = pd.read_excel(path, sheet_name=sheet, header=header_row)
    mapping = _map_columns(df.columns)
    specs = _spec_columns(df.columns)
    if not mapping:
        raise KeyError(f"[{sheet}] no known column. Available columns: {list(df.columns)}")

    records: List[Dict[str, Any]] = []
    for _, row in df.iterrows():
        rec: Dict[str, Any] = {}
        for col, field in mapping.items():
            v = row[col]
            if pd.isna(v):
                continue
            rec[field] = _py(v)
        spec_map = {key: _spec_text(row[col]) for col, key in specs.items() if not pd.isna(row[col])}
        if spec_map:
            rec["specs"] = spec_map
        if rec:
            records.append(rec)
    logger.info("[%s] %d rows read.", sheet, len(records))
    return records


def load_snapshot_excel(path: str | Path) -> Snapshot:
    """
    Workbook with one sheet per ledger: sheet names containing "material" go to
    materials ("Materials Used" / "Material usage" ones tagged as used),
    "labor"/"labour" to labor. Other sheets are ignored.
    """
    xls = pd.ExcelFile(path)
    snap = _empty()
    for sheet in xls.sheet_names:
        n = norm_text(sheet)
        if "material" in n:
            records = _sheet_records(path, sheet)
            if "used" in n.split() or "usage" in n.split():
                records = _with_movement(records, "used")
            snap["materials"].extend(records)
        elif "labor" in n or "labour" in n:
            snap["labor"].extend(_sheet_records(path, sheet))
        else:
            logger.info("Sheet %r ignored.", sheet)

    if not snap["materials"] and not snap["labor"]:
        logger.warning("%s: no 'materials'/'labor' sheet with data.", path)
    return snap


def load_snapshot(path: str | Path) -> Snapshot:
    """Dispatches on the extension (.json / .xlsx / .xls)."""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Snapshot not found: {p}")
    ext = p.suffix.lower()
    if ext == ".json":
        return load_snapshot_json(p)
    if ext in (".xlsx", ".xls"):
        return load_snapshot_excel(p)
    raise ValueError(f"Unsupported snapshot extension {ext!r} (use .json, .xlsx or .xls)")
