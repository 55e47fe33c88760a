# src/site_ledger/utils/utils_number.py
from __future__ import annotations

import math
import re
from typing import Any, Optional

_CURRENCY_NOISE = re.compile(r"[₹$€\s]|rs\.?|inr", re.IGNORECASE)


def to_float(x: Any) -> Optional[float]:
    """
    Coerces an amount coming from the API or a spreadsheet into float:
      - int/float pass through (NaN/inf -> None)
      - bool -> None (never a quantity)
      - "1,200.50" -> 1200.5   (comma as thousands separator)
      - "₹800", "Rs. 800" -> 800.0
      - "", "nan", None, garbage -> None

    Returns None instead of raising; the caller decides the default.
    """
    if x is None or isinstance(x, bool):
        return None
    if isinstance(x, (int, float)):
        f = float(x)
        return f if math.isfinite(f) else None

    s = _CURRENCY_NOISE.sub("", str(x))
    s = s.replace(",", "")
    if s == "" or s.lower() in ("nan", "none", "null"):
        return None
    try:
        f = float(s)
    except ValueError:
        return None
    return f if math.isfinite(f) else None


def safe_div(num: float, den: float) -> float:
    """num / den, or 0.0 when den is 0."""
    if den == 0:
        return 0.0
    return num / den
