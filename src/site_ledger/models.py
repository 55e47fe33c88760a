# src/site_ledger/models.py
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional, TypedDict, NotRequired


EntryKind = Literal["material", "labor"]
# imported = stock brought to site (still available), used = consumed from it
Movement = Literal["imported", "used"]


# =========================
# Ledger entries (materials / labor)
# =========================
class LedgerEntry(TypedDict):
    """
    Canonical shape of one raw material or labor record after normalization.
    """
    kind: EntryKind
    identity_key: str
    # material name or labor type, as typed by the user (display only)
    label: str
    # material qty or labor headcount
    quantity: float
    unit: str
    # always total_cost / quantity, never copied from the raw record
    unit_cost: float
    total_cost: float
    recorded_at: Optional[datetime]
    note: str
    # mini-section when present, otherwise section, otherwise ""
    scope_id: str
    section_id: NotRequired[str]
    mini_section_id: NotRequired[str]
    # material only
    name: NotRequired[str]
    specs: NotRequired[Dict[str, Any]]
    # labor only
    category: NotRequired[str]
    type: NotRequired[str]
    # material only; "imported" when the record does not say
    movement: NotRequired[Movement]
    source: NotRequired[Dict[str, Any]]


class ConsolidatedEntry(TypedDict):
    """
    One row per distinct identity key inside a scope.
    """
    kind: EntryKind
    identity_key: str
    scope_id: str
    label: str
    unit: str
    total_quantity: float
    total_cost: float
    effective_unit_cost: float
    earliest_recorded_at: Optional[datetime]
    merged_notes: str
    entry_count: int
    section_id: NotRequired[str]
    mini_section_id: NotRequired[str]
    name: NotRequired[str]
    specs: NotRequired[Dict[str, Any]]
    category: NotRequired[str]
    type: NotRequired[str]
    # material only: split of total_quantity / total_cost by movement
    total_imported: NotRequired[float]
    total_used: NotRequired[float]
    imported_cost: NotRequired[float]
    used_cost: NotRequired[float]
    # _id of every raw record folded into the row
    variant_ids: NotRequired[List[str]]


class DateBucket(TypedDict):
    date_key: date
    label: str
    entries: List[Any]  # LedgerEntry | ConsolidatedEntry, in caller order


# =========================
# Staff assignments
# =========================
class Assignment(TypedDict):
    clientId: NotRequired[Optional[str]]
    clientName: NotRequired[Optional[str]]
    projectData: NotRequired[Optional[Dict[str, Any]]]
    projectId: NotRequired[Optional[str]]


# copy of projectData + clientName/clientId
ReconciledProject = Dict[str, Any]


# =========================
# Totals
# =========================
class Totals(TypedDict):
    material_total: float
    # material_total = material_available + material_used
    material_available: float
    material_used: float
    labor_total: float
    grand_total: float


class MiniSectionRollup(TypedDict):
    mini_section_id: str
    totals: Totals


class SectionRollup(TypedDict):
    section_id: str
    totals: Totals
    mini_sections: Dict[str, MiniSectionRollup]


class ProjectRollup(TypedDict):
    totals: Totals
    sections: Dict[str, SectionRollup]


class BreakdownRow(TypedDict):
    key: str
    total_cost: float
    share_pct: float
    entry_count: int


__all__ = [
    "EntryKind",
    "Movement",
    "LedgerEntry",
    "ConsolidatedEntry",
    "DateBucket",
    "Assignment",
    "ReconciledProject",
    "Totals",
    "MiniSectionRollup",
    "SectionRollup",
    "ProjectRollup",
    "BreakdownRow",
]
