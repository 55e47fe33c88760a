from collections import defaultdict
from datetime import timezone

import pytest

from site_ledger.adapters.entries import normalize
from site_ledger.processor import as_ledger_entries, consolidate, consolidate_by_scope, merge_notes


class TestWeightedAverage:

    def test_material_same_rate(self):
        entries = normalize([
            {"name": "Cement", "qnt": 10, "perUnitCost": 100},
            {"name": "Cement", "qnt": 5, "perUnitCost": 100},
        ])
        [row] = consolidate(entries)
        assert row["total_quantity"] == 15
        assert row["total_cost"] == 1500
        assert row["effective_unit_cost"] == 100
        assert row["entry_count"] == 2

    def test_labor_weighted_by_headcount(self):
        entries = normalize([
            {"category": "Civil", "type": "Mason", "count": 5, "perLaborCost": 800},
            {"category": "Civil", "type": "Mason", "count": 3, "perLaborCost": 1000},
        ])
        [row] = consolidate(entries)
        assert row["total_quantity"] == 8
        assert row["total_cost"] == 7000
        assert row["effective_unit_cost"] == 875
        # not the naive mean of the two rates
        assert row["effective_unit_cost"] != 900

    def test_zero_quantity_group(self):
        entries = normalize([
            {"name": "Scaffold hire", "qnt": 0, "totalCost": 300},
            {"name": "Scaffold hire", "qnt": 0, "totalCost": 200},
        ])
        [row] = consolidate(entries)
        assert row["total_quantity"] == 0
        assert row["total_cost"] == 500
        assert row["effective_unit_cost"] == 0.0


class TestGrouping:

    def test_fixture_groups(self, raw_materials):
        rows = consolidate(normalize(raw_materials, kind="material"))
        # cement 53 (m1+m2), cement 43, steel
        assert len(rows) == 3
        cement53, cement43, steel = rows
        assert cement53["specs"] == {"grade": "53", "brand": "ACC"}
        assert cement53["total_quantity"] == 15
        assert cement53["total_cost"] == 1500
        assert cement43["total_cost"] == 480
        assert steel["total_cost"] == 12000
        assert steel["label"] == "Steel Rod"

    def test_first_occurrence_order(self):
        entries = normalize([
            {"name": "B", "qnt": 1}, {"name": "A", "qnt": 1}, {"name": "b", "qnt": 1},
        ])
        assert [r["label"] for r in consolidate(entries)] == ["B", "A"]

    def test_never_merges_across_scopes(self):
        entries = normalize([
            {"name": "Sand", "qnt": 1, "cost": 10, "miniSectionId": "ms-1"},
            {"name": "Sand", "qnt": 2, "cost": 10, "miniSectionId": "ms-2"},
        ])
        rows = consolidate(entries)
        assert [(r["scope_id"], r["total_quantity"]) for r in rows] == [("ms-1", 1), ("ms-2", 2)]

    def test_material_and_labor_never_merge(self):
        entries = normalize([{"name": "x", "qnt": 1}], kind="material") + normalize(
            [{"category": "x", "type": "{}", "count": 1}], kind="labor"
        )
        assert len(consolidate(entries)) == 2

    def test_earliest_recorded_at(self, raw_materials):
        [cement53, *_] = consolidate(normalize(raw_materials, kind="material"))
        assert cement53["earliest_recorded_at"].astimezone(timezone.utc).day == 9

    def test_earliest_ignores_missing_dates(self):
        entries = normalize([
            {"name": "Sand", "qnt": 1},
            {"name": "Sand", "qnt": 1, "addedAt": "2025-01-05T00:00:00Z"},
        ])
        [row] = consolidate(entries)
        assert row["earliest_recorded_at"].astimezone(timezone.utc).day == 5

    def test_single_member_passes_through(self):
        [e] = normalize([{"name": "Sand", "qnt": 4, "totalCost": 100, "note": "n"}])
        [row] = consolidate([e])
        assert row["total_quantity"] == e["quantity"]
        assert row["total_cost"] == e["total_cost"]
        assert row["effective_unit_cost"] == 25
        assert row["merged_notes"] == "n"

    def test_empty(self):
        assert consolidate([]) == []
        assert consolidate_by_scope([]) == {}

    def test_input_not_mutated(self, raw_materials):
        entries = normalize(raw_materials, kind="material")
        before = [dict(e) for e in entries]
        consolidate(entries)
        assert entries == before


class TestNotes:

    def test_distinct_non_empty_in_order(self):
        assert merge_notes(["a", "", "b", " a ", None, "c"]) == "a; b; c"

    def test_fixture_notes(self, raw_materials):
        cement53, _, steel = consolidate(normalize(raw_materials, kind="material"))
        assert cement53["merged_notes"] == "first lot; second lot"
        assert steel["merged_notes"] == "first lot"

    def test_custom_separator(self):
        entries = normalize([{"name": "S", "qnt": 1, "note": "x"}, {"name": "S", "qnt": 1, "note": "y"}])
        assert consolidate(entries, separator=" | ")[0]["merged_notes"] == "x | y"


class TestProperties:

    def test_idempotence(self, raw_materials, raw_labor):
        entries = normalize(raw_materials, kind="material") + normalize(raw_labor, kind="labor")
        once = consolidate(entries)
        twice = consolidate([e for r in once for e in as_ledger_entries(r)])

        fields = ("identity_key", "scope_id", "total_quantity", "total_cost",
                  "effective_unit_cost", "earliest_recorded_at", "merged_notes")
        assert [{f: r[f] for f in fields} for r in twice] == [{f: r[f] for f in fields} for r in once]

    def test_conservation_per_group(self, raw_materials, raw_labor):
        entries = normalize(raw_materials, kind="material") + normalize(raw_labor, kind="labor")
        qty = defaultdict(float)
        cost = defaultdict(float)
        for e in entries:
            qty[(e["kind"], e["scope_id"], e["identity_key"])] += e["quantity"]
            cost[(e["kind"], e["scope_id"], e["identity_key"])] += e["total_cost"]

        for r in consolidate(entries):
            key = (r["kind"], r["scope_id"], r["identity_key"])
            assert r["total_quantity"] == pytest.approx(qty[key])
            assert r["total_cost"] == pytest.approx(cost[key])

    def test_consolidate_by_scope(self, raw_labor):
        scopes = consolidate_by_scope(normalize(raw_labor, kind="labor"))
        assert list(scopes) == ["ms-1", "ms-2"]
        [mason] = scopes["ms-1"]
        assert mason["total_cost"] == 7000
        assert mason["effective_unit_cost"] == 875
        assert scopes["ms-2"][0]["category"] == "Electrical Works Labour"


class TestMovements:

    @pytest.fixture
    def cement_moves(self):
        return normalize([
            {"_id": "v1", "name": "Cement", "qnt": 10, "cost": 100, "movement": "imported", "note": "lot A"},
            {"_id": "v2", "name": "cement", "qnt": 4, "cost": 100, "movement": "used",
             "addedAt": "2025-03-09T05:00:00Z"},
            {"_id": "v3", "name": "Cement", "qnt": 6, "cost": 110, "status": "received"},
        ])

    def test_split_by_movement(self, cement_moves):
        [row] = consolidate(cement_moves)
        assert row["total_quantity"] == 20
        assert row["total_imported"] == 16
        assert row["total_used"] == 4
        assert row["imported_cost"] == 1000 + 660
        assert row["used_cost"] == 400
        assert row["total_cost"] == row["imported_cost"] + row["used_cost"]
        assert row["variant_ids"] == ["v1", "v2", "v3"]

    def test_labor_rows_have_no_split(self, raw_labor):
        for row in consolidate(normalize(raw_labor, kind="labor")):
            assert "total_imported" not in row
            assert "variant_ids" not in row

    def test_mixed_row_refeeds_one_entry_per_movement(self, cement_moves):
        [row] = consolidate(cement_moves)
        entries = as_ledger_entries(row)
        assert [(e["movement"], e["quantity"], e["total_cost"]) for e in entries] == [
            ("imported", 16, 1660),
            ("used", 4, 400),
        ]

        [again] = consolidate(entries)
        fields = ("total_quantity", "total_cost", "total_imported", "total_used",
                  "imported_cost", "used_cost", "earliest_recorded_at", "merged_notes")
        assert {f: again[f] for f in fields} == {f: row[f] for f in fields}

    def test_used_only_row(self):
        [row] = consolidate(normalize([{"name": "Sand", "qnt": 2, "cost": 50, "movement": "used"}]))
        assert [e["movement"] for e in as_ledger_entries(row)] == ["used"]
