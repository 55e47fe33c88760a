import json

import pytest
from openpyxl import load_workbook

from site_ledger.adapters.snapshot import Snapshot
from site_ledger.exporters.excel import export_report_excel
from site_ledger.exporters.json_report import export_report_json
from site_ledger.report import build_report


@pytest.fixture
def report(raw_materials, raw_labor, now_ist, ist):
    snap = Snapshot(materials=raw_materials, labor=raw_labor, assignments=[], projects=[])
    return build_report(snap, now=now_ist, tz=ist)


def test_json_export_merges_meta(report, tmp_path):
    out = export_report_json(report, tmp_path / "out" / "report.json", meta={"snapshot": "snap.json"})
    payload = json.loads(out.read_text(encoding="utf-8"))

    assert payload["meta"]["snapshot"] == "snap.json"
    assert payload["meta"]["raw_labor"] == 3
    assert payload["totals"]["grand_total"] == 22780
    # the report passed in is left alone
    assert "snapshot" not in report["meta"]


def test_json_export_keeps_rupee_sign(tmp_path):
    out = export_report_json({"meta": {}, "label": "₹1.5Cr"}, tmp_path / "r.json")
    assert "₹1.5Cr" in out.read_text(encoding="utf-8")


def test_excel_export_sheets(report, tmp_path):
    out = export_report_excel(report, tmp_path / "report.xlsx")
    wb = load_workbook(out)

    assert wb.sheetnames == ["materials", "labor", "totals", "breakdown"]

    totals = wb["totals"]
    assert [c.value for c in totals[1]] == ["item", "amount"]
    assert totals["A4"].value == "grand total"
    assert totals["B4"].value == 22780
    assert totals["B4"].number_format == "#,##0.00"
    assert (totals["A5"].value, totals["B5"].value) == ("materials available", 13980)
    assert (totals["A6"].value, totals["B6"].value) == ("materials used", 0)

    materials = wb["materials"]
    headers = [c.value for c in materials[1]]
    assert headers[:3] == ["name", "specs", "scope_id"]
    assert materials.max_row == 1 + 3
    specs_col = headers.index("specs") + 1
    assert json.loads(materials.cell(row=2, column=specs_col).value) == {"brand": "ACC", "grade": "53"}
    imported_col = headers.index("total_imported") + 1
    assert materials.cell(row=2, column=imported_col).value == 15

    breakdown = wb["breakdown"]
    share_col = [c.value for c in breakdown[1]].index("share") + 1
    assert breakdown.cell(row=2, column=share_col).number_format == "0.0%"


def test_excel_export_empty_report(tmp_path):
    empty = {"materials": [], "labor": [], "totals": {}, "breakdown": {}}
    wb = load_workbook(export_report_excel(empty, tmp_path / "empty.xlsx"))
    assert wb["materials"].max_row == 1
    assert wb["totals"]["B4"].value == 0
