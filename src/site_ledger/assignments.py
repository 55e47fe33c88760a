# src/site_ledger/assignments.py
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .models import Assignment, ReconciledProject
from .utils.utils_text import as_text

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "Unknown Client"


def _project_id(project: Mapping[str, Any]) -> str:
    return as_text(project.get("_id"))


def index_projects(projects: Iterable[Mapping[str, Any]]) -> Dict[str, Mapping[str, Any]]:
    """_id -> project, for resolving assignments that only carry projectId."""
    out: Dict[str, Mapping[str, Any]] = {}
    for p in projects:
        if isinstance(p, Mapping) and _project_id(p):
            out[_project_id(p)] = p
    return out


def resolve_project(
    assignment: Assignment,
    projects_by_id: Optional[Mapping[str, Mapping[str, Any]]] = None,
) -> Optional[Mapping[str, Any]]:
    """
    projectData when it is an object with a non-null _id; otherwise the
    project looked up by projectId; otherwise None.
    """
    data = assignment.get("projectData")
    if isinstance(data, Mapping) and _project_id(data):
        return data

    pid = as_text(assignment.get("projectId"))
    if pid and projects_by_id:
        return projects_by_id.get(pid)
    return None


def reconcile_assignments(
    assignments: Iterable[Assignment],
    *,
    projects_by_id: Optional[Mapping[str, Mapping[str, Any]]] = None,
    default_client_name: str = UNKNOWN_CLIENT,
) -> List[ReconciledProject]:
    """
    Flattens a staff member's assignments (possibly across several clients)
    into one project list.

    - assignments without resolvable project data are dropped (warning)
    - each row is a shallow copy of the project plus clientName/clientId
    - deduplicated by project _id: the LAST assignment wins, the position is
      the one of the FIRST occurrence
    """
    out: Dict[str, ReconciledProject] = {}
    dropped = 0
    dup_count = 0

    for i, a in enumerate(assignments):
        if not isinstance(a, Mapping):
            logger.warning("assignment[%d] is not an object (%s); skipping.", i, type(a).__name__)
            dropped += 1
            continue

        project = resolve_project(a, projects_by_id)
        if project is None:
            logger.warning(
                "assignment[%d] (client=%r) without resolvable project data; skipping.",
                i, a.get("clientName") or a.get("clientId"),
            )
            dropped += 1
            continue

        row: ReconciledProject = dict(project)
        row["clientName"] = as_text(a.get("clientName")) or default_client_name
        row["clientId"] = a.get("clientId")

        pid = _project_id(project)
        if pid in out:
            dup_count += 1
            logger.warning(
                "Project %r assigned more than once (client %r → %r); keeping the last.",
                pid, out[pid]["clientName"], row["clientName"],
            )
        # dict assignment on an existing key keeps the original insertion position
        out[pid] = row

    if dropped or dup_count:
        logger.info(
            "Assignments: %d projects, %d dropped, %d duplicate(s) resolved.",
            len(out), dropped, dup_count,
        )
    return list(out.values())
