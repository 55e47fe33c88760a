# src/site_ledger/exporters/excel.py
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional
import json

import pandas as pd

_LEDGER_COLUMNS = [
    "scope_id", "label", "unit", "total_quantity", "effective_unit_cost",
    "total_cost", "entry_count", "earliest_recorded_at", "merged_notes",
]
_MATERIAL_COLUMNS = ["name", "specs"] + _LEDGER_COLUMNS + ["total_imported", "total_used", "imported_cost", "used_cost"]
_LABOR_COLUMNS = ["category", "type"] + _LEDGER_COLUMNS
_CURRENCY_COLUMNS = ("effective_unit_cost", "total_cost", "imported_cost", "used_cost", "amount")
_PERCENT_COLUMNS = ("share",)


def _autofit_columns(ws) -> None:
    """Column width from content (openpyxl worksheet)."""
    from openpyxl.utils import get_column_letter
    for i, col in enumerate(ws.columns, start=1):
        max_len = 0
        for cell in col:
            val = cell.value
            val_str = str(val) if val is not None else ""
            if len(val_str) > max_len:
                max_len = len(val_str)
        ws.column_dimensions[get_column_letter(i)].width = min(max_len + 2, 80)


def _ledger_frame(rows: List[Dict[str, Any]], columns: List[str], round_decimals: int) -> pd.DataFrame:
    if not rows:
        return pd.DataFrame(columns=columns)
    df = pd.DataFrame(rows)
    for col in columns:
        if col not in df.columns:
            df[col] = None
    df = df[columns].copy()
    if "specs" in df.columns:
        # dict cells cannot be written by openpyxl
        df["specs"] = [json.dumps(s, ensure_ascii=False, sort_keys=True) if s else "" for s in df["specs"]]
    for col in ("total_quantity", "effective_unit_cost", "total_cost"):
        df[col] = pd.to_numeric(df[col], errors="coerce").round(round_decimals)
    return df


def _breakdown_frame(breakdown: Dict[str, List[Dict[str, Any]]]) -> pd.DataFrame:
    rows = []
    for group, items in breakdown.items():
        for it in items:
            rows.append({
                "group": group,
                "key": it["key"],
                "amount": it["total_cost"],
                # share_pct is 0-100; the sheet uses a fraction + percent format
                "share": it["share_pct"] / 100.0,
                "entries": it["entry_count"],
            })
    return pd.DataFrame(rows, columns=["group", "key", "amount", "share", "entries"])


def _format_sheet(ws, number_format_currency: str, number_format_percent: str) -> None:
    _autofit_columns(ws)
    headers = [c.value for c in next(ws.iter_rows(min_row=1, max_row=1))]

    def col_idx(hdr: str) -> Optional[int]:
        try:
            return headers.index(hdr) + 1
        except ValueError:
            return None

    money = [i for i in (col_idx(h) for h in _CURRENCY_COLUMNS) if i]
    pct = [i for i in (col_idx(h) for h in _PERCENT_COLUMNS) if i]
    for r in ws.iter_rows(min_row=2):
        for i in money:
            r[i - 1].number_format = number_format_currency
        for i in pct:
            r[i - 1].number_format = number_format_percent


def export_report_excel(
    report: Dict[str, Any],
    path: str | Path,
    *,
    round_decimals: int = 2,
    number_format_currency: str = '#,##0.00',
    number_format_percent: str = '0.0%',
) -> Path:
    """
    Writes the report built by `build_report` as a workbook:
      - 'materials' / 'labor': consolidated rows
      - 'totals': material, labor and grand totals, then materials available / used
      - 'breakdown': cost per material name / labor category with its share
    Returns the Path of the file.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    df_mat = _ledger_frame(report.get("materials", []), _MATERIAL_COLUMNS, round_decimals)
    df_lab = _ledger_frame(report.get("labor", []), _LABOR_COLUMNS, round_decimals)

    totals = report.get("totals", {})
    df_tot = pd.DataFrame(
        [
            {"item": "materials", "amount": totals.get("material_total", 0.0)},
            {"item": "labor", "amount": totals.get("labor_total", 0.0)},
            {"item": "grand total", "amount": totals.get("grand_total", 0.0)},
            {"item": "materials available", "amount": totals.get("material_available", 0.0)},
            {"item": "materials used", "amount": totals.get("material_used", 0.0)},
        ],
        columns=["item", "amount"],
    )
    df_brk = _breakdown_frame(report.get("breakdown", {}))

    with pd.ExcelWriter(path, engine="openpyxl") as xlw:
        df_mat.to_excel(xlw, sheet_name="materials", index=False)
        df_lab.to_excel(xlw, sheet_name="labor", index=False)
        df_tot.to_excel(xlw, sheet_name="totals", index=False)
        df_brk.to_excel(xlw, sheet_name="breakdown", index=False)

        wb = xlw.book
        for name in ("materials", "labor", "totals", "breakdown"):
            _format_sheet(wb[name], number_format_currency, number_format_percent)

    return path
