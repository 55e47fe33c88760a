# src/cli.py
from __future__ import annotations

import sys
from datetime import date
from pathlib import Path
import json
import typer

# allows "python src/cli.py" without installing the package
sys.path.append(str(Path(__file__).resolve().parent))

from site_ledger.adapters.entries import normalize
from site_ledger.adapters.snapshot import Snapshot, load_snapshot
from site_ledger.assignments import index_projects, reconcile_assignments
from site_ledger.bucketing import bucket_by_date, paginate_buckets
from site_ledger.exporters.excel import export_report_excel
from site_ledger.exporters.json_report import export_report_json
from site_ledger.logging_setup import setup_logging
from site_ledger.processor import consolidate
from site_ledger.report import build_report, in_scope
from site_ledger.rollup import format_inr

app = typer.Typer(no_args_is_help=True, add_completion=False, help="""
Site ledger: consolidates material/labor entries of a project snapshot into reports.
""")


# -----------------------------------------
# Helpers
# -----------------------------------------
def _load(snapshot: Path) -> Snapshot:
    try:
        return load_snapshot(snapshot)
    except (FileNotFoundError, ValueError, KeyError) as e:
        typer.secho(f"Could not read snapshot: {e}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)


def _parse_today(today: str) -> date | None:
    if not today:
        return None
    try:
        return date.fromisoformat(today)
    except ValueError:
        raise typer.BadParameter(f"--today must be YYYY-MM-DD (got {today!r})")


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", "--log-level", help="DEBUG, INFO, WARNING or ERROR."),
):
    setup_logging(log_level)


# =====================================================================
# REPORT
# =====================================================================

@app.command("report")
def report(
    snapshot: Path = typer.Option(..., exists=True, readable=True, help="Snapshot (.json or .xlsx)."),
    out: Path = typer.Option(Path("output/ledger_report.json"), help="JSON output."),
    xlsx: Path = typer.Option(None, help="Also write an Excel workbook here."),
    scope: str = typer.Option("", help="Only entries of this section / mini-section id."),
    today: str = typer.Option("", help="Reference day for Today/Yesterday labels (YYYY-MM-DD)."),
):
    """
    Consolidates materials and labor and writes totals, rollup, breakdown and timeline.
    """
    typer.secho(">> Reading snapshot…", fg=typer.colors.CYAN)
    snap = _load(snapshot)

    typer.secho(">> Consolidating…", fg=typer.colors.CYAN)
    payload = build_report(snap, scope=scope or None, now=_parse_today(today))

    export_report_json(payload, out, meta={"snapshot": str(snapshot)})
    totals = payload["totals"]
    typer.echo(
        f"   materials {format_inr(totals['material_total'])} | "
        f"labor {format_inr(totals['labor_total'])} | "
        f"total {format_inr(totals['grand_total'])}"
    )
    typer.echo(
        f"   materials available {format_inr(totals['material_available'])} | "
        f"used {format_inr(totals['material_used'])}"
    )
    typer.secho(f">> OK! JSON saved to {out}", fg=typer.colors.GREEN)

    if xlsx:
        export_report_excel(payload, xlsx)
        typer.secho(f">> OK! Excel saved to {xlsx}", fg=typer.colors.GREEN)


# =====================================================================
# TIMELINE
# =====================================================================

@app.command("timeline")
def timeline(
    snapshot: Path = typer.Option(..., exists=True, readable=True, help="Snapshot (.json or .xlsx)."),
    kind: str = typer.Option("all", help="material | labor | all"),
    merged: bool = typer.Option(False, "--merged", help="Consolidate before grouping by day."),
    scope: str = typer.Option("", help="Only entries of this section / mini-section id."),
    page: int = typer.Option(1, min=1, help="Page (1-based)."),
    page_size: int = typer.Option(50, min=1, help="Entries per page."),
    today: str = typer.Option("", help="Reference day for Today/Yesterday labels (YYYY-MM-DD)."),
):
    """
    Prints entries grouped by calendar day, most recent first.
    """
    kind_norm = kind.strip().lower()
    if kind_norm not in ("material", "labor", "all"):
        raise typer.BadParameter("kind must be material, labor or all.")

    snap = _load(snapshot)
    entries = []
    if kind_norm in ("material", "all"):
        entries += normalize(snap["materials"], kind="material")
    if kind_norm in ("labor", "all"):
        entries += normalize(snap["labor"], kind="labor")
    entries = [e for e in entries if in_scope(e, scope or None)]
    rows = consolidate(entries) if merged else entries

    buckets = paginate_buckets(bucket_by_date(rows, now=_parse_today(today)), page=page, page_size=page_size)
    if not buckets:
        typer.secho("No entries on this page.", fg=typer.colors.YELLOW)
        return

    for b in buckets:
        typer.secho(f"== {b['label']} ({b['date_key'].isoformat()}) ==", fg=typer.colors.CYAN)
        for e in b["entries"]:
            qty = e.get("total_quantity", e.get("quantity"))
            typer.echo(f"  {e['label']:<30} {qty:>10g} {e['unit']:<8} {format_inr(e['total_cost'])}")


# =====================================================================
# PROJECTS
# =====================================================================

@app.command("projects")
def projects(
    snapshot: Path = typer.Option(..., exists=True, readable=True, help="Snapshot with 'assignments' (.json)."),
    out: Path = typer.Option(None, help="Also save the reconciled list as JSON."),
):
    """
    Reconciles a staff member's assignments (several clients) into one project list.
    """
    snap = _load(snapshot)
    rows = reconcile_assignments(snap["assignments"], projects_by_id=index_projects(snap["projects"]))

    for p in rows:
        typer.echo(f"  {p.get('name') or p.get('_id')}  [{p['clientName']}]")
    typer.secho(f">> {len(rows)} project(s).", fg=typer.colors.GREEN)

    if out:
        out.parent.mkdir(parents=True, exist_ok=True)
        with open(out, "w", encoding="utf-8") as f:
            json.dump(rows, f, ensure_ascii=False, indent=2, default=str)
        typer.secho(f">> OK! JSON saved to {out}", fg=typer.colors.GREEN)


if __name__ == "__main__":
    app(prog_name="cli.py")
