from __future__ import annotations

import json
import re
import unicodedata
from typing import Any, Mapping

import pandas as pd


def strip_accents(s: str) -> str:
    return unicodedata.normalize("NFKD", s).encode("ascii", "ignore").decode()


def as_text(s: Any) -> str:
    """str() that maps None/NaN to "" and strips whitespace."""
    if s is None or (isinstance(s, float) and pd.isna(s)):
        return ""
    return str(s).strip()


def norm_text(s: str | float | int | None) -> str:
    """
    Normalizes free text for loose comparisons (column headers, sheet names):
    - converts to string
    - removes accents
    - lower/casefold
    - drops punctuation
    - collapses whitespace
    """
    s = strip_accents(as_text(s)).casefold()
    s = re.sub(r"[^a-z0-9\s]", " ", s)
    s = re.sub(r"\s+", " ", s).strip()
    return s


def norm_key(s: Any) -> str:
    """
    Identity-key component: lowercased and trimmed, nothing else.
    Accents and punctuation are kept ("Cimento 43" != "Cimento-43").
    """
    return as_text(s).lower()


def canonical_specs(specs: Mapping[str, Any] | None) -> str:
    """
    Order-independent JSON of a specification map.

      {"grade": "43", "brand": "ACC"} -> '{"brand":"ACC","grade":"43"}'
      None / {}                       -> '{}'
    """
    if not specs:
        return "{}"
    return json.dumps(dict(specs), sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)
