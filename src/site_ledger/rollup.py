# src/site_ledger/rollup.py
from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Mapping

from .models import (
    BreakdownRow,
    ConsolidatedEntry,
    LedgerEntry,
    MiniSectionRollup,
    ProjectRollup,
    SectionRollup,
    Totals,
)
from .processor import consolidate


# =========================
# Totals
# =========================

_TOTAL_KEYS = ("material_total", "material_available", "material_used", "labor_total", "grand_total")


def _zero() -> Totals:
    return Totals(material_total=0.0, material_available=0.0, material_used=0.0, labor_total=0.0, grand_total=0.0)


def _add(a: Totals, b: Totals) -> Totals:
    return Totals(**{k: a[k] + b[k] for k in _TOTAL_KEYS})  # type: ignore[typeddict-item]


def totalize(
    materials: Iterable[ConsolidatedEntry],
    labor: Iterable[ConsolidatedEntry],
) -> Totals:
    """
    Sums CONSOLIDATED rows (never raw ones, so a duplicated raw row counts once).
    Empty inputs -> all zeros.

    Materials are also split into available (imported stock) and used, as the
    dashboards show them; material_total is their sum.
    """
    material_total = available = used = 0.0
    for m in materials:
        material_total += m["total_cost"]
        available += m.get("imported_cost", m["total_cost"])
        used += m.get("used_cost", 0.0)
    labor_total = sum((l["total_cost"] for l in labor), 0.0)
    return Totals(
        material_total=material_total,
        material_available=available,
        material_used=used,
        labor_total=labor_total,
        grand_total=material_total + labor_total,
    )


def rollup_project(
    material_entries: Iterable[LedgerEntry],
    labor_entries: Iterable[LedgerEntry],
) -> ProjectRollup:
    """
    Mini-section -> section -> project totals.

    Entries are consolidated per scope first; each scope is totalized and its
    totals are added up into its section and into the project. An entry booked
    on a section without a mini-section counts at section level only. Entries
    without any section go to the "" section.
    """
    mats = consolidate(material_entries)
    labs = consolidate(labor_entries)

    # (section_id, mini_section_id) -> (materials, labor)
    scopes: Dict[tuple[str, str], tuple[List[ConsolidatedEntry], List[ConsolidatedEntry]]] = {}
    for row in mats:
        scopes.setdefault((row.get("section_id", ""), row.get("mini_section_id", "")), ([], []))[0].append(row)
    for row in labs:
        scopes.setdefault((row.get("section_id", ""), row.get("mini_section_id", "")), ([], []))[1].append(row)

    sections: Dict[str, SectionRollup] = {}
    project = _zero()
    for (section_id, mini_id), (m_rows, l_rows) in scopes.items():
        t = totalize(m_rows, l_rows)
        sec = sections.setdefault(
            section_id,
            SectionRollup(section_id=section_id, totals=_zero(), mini_sections={}),
        )
        sec["totals"] = _add(sec["totals"], t)
        if mini_id:
            prev = sec["mini_sections"].get(mini_id)
            sec["mini_sections"][mini_id] = MiniSectionRollup(
                mini_section_id=mini_id,
                totals=_add(prev["totals"], t) if prev else t,
            )
        project = _add(project, t)

    return ProjectRollup(totals=project, sections=sections)


# =========================
# Breakdowns (charts / report)
# =========================

def share_pct(value: float, total: float) -> float:
    """Percentage of `total`, rounded to 1 decimal; 0.0 when total is 0."""
    if total <= 0:
        return 0.0
    return round(value / total * 100.0, 1)


def breakdown_by(
    entries: Iterable[ConsolidatedEntry],
    key: Callable[[ConsolidatedEntry], Any],
) -> List[BreakdownRow]:
    """
    Re-groups consolidated rows by a caller-supplied category function
    (e.g. labor category, material name). Sorted by cost, highest first.
    """
    acc: Dict[str, List[float]] = {}
    for e in entries:
        k = str(key(e) or "")
        slot = acc.setdefault(k, [0.0, 0])
        slot[0] += e["total_cost"]
        slot[1] += 1

    total = sum(v[0] for v in acc.values())
    rows = [
        BreakdownRow(key=k, total_cost=v[0], share_pct=share_pct(v[0], total), entry_count=int(v[1]))
        for k, v in acc.items()
    ]
    rows.sort(key=lambda r: r["total_cost"], reverse=True)
    return rows


def by_field(field: str) -> Callable[[Mapping[str, Any]], Any]:
    """breakdown_by(rows, by_field("category"))"""
    return lambda e: e.get(field)


def format_inr(amount: float) -> str:
    """
    Dashboard currency format:
      15_000_000 -> "₹1.5Cr", 250_000 -> "₹2.5L", 4_500 -> "₹4.5K", 800 -> "₹800"
    """
    sign = "-" if amount < 0 else ""
    a = abs(amount)
    if a >= 10_000_000:
        return f"{sign}₹{a / 10_000_000:.1f}Cr"
    if a >= 100_000:
        return f"{sign}₹{a / 100_000:.1f}L"
    if a >= 1_000:
        return f"{sign}₹{a / 1_000:.1f}K"
    return f"{sign}₹{a:g}"
