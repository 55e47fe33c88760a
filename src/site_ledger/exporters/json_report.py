# src/site_ledger/exporters/json_report.py
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional
import json


def export_report_json(
    report: Dict[str, Any],
    path: str | Path,
    *,
    indent: int = 2,
    ensure_ascii: bool = False,
    meta: Optional[Dict[str, Any]] = None,
) -> Path:
    """
    Saves the report built by `build_report`.

    `meta` is merged over report["meta"] (e.g. the snapshot path used by the CLI).
    """
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)

    payload: Dict[str, Any] = dict(report)
    if meta:
        payload["meta"] = {**report.get("meta", {}), **meta}

    with open(out, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=ensure_ascii, indent=indent, default=str)

    return out
