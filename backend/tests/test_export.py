"""Tests for JSON / CSV export, import and number formatting."""

from __future__ import annotations

import csv
import io
import json

import pytest
from openpyxl import load_workbook

from app.allocation_engine.areas import calculate_areas
from app.allocation_engine.catalog import CatalogRegistry
from app.allocation_engine.feasibility import calculate_feasibility
from app.allocation_engine.rebalancer import add_custom_land_use, set_allocation
from app.allocation_engine.scenario import ScenarioImportError, default_scenario, update_parameters
from app.models.schemas import LandUseGroup
from app.services.export import (
    ACRONYMS,
    DEFAULT_FILE_STEM,
    DEFINITIONS,
    XLSX_SHEETS,
    active_allocation_rows,
    export_csv,
    export_xlsx,
    safe_file_name,
    scenario_from_json,
    scenario_to_json,
)
from app.services.formatting import format_currency, format_number, format_percent


def _edited_scenario():
    s = update_parameters(default_scenario(), name="Harbour Town", gsa=64, tdi=2)
    s = set_allocation(s, "com_retail", 12)
    return add_custom_land_use(s, "Ferry Terminal", "non-sellable", LandUseGroup.SPECIAL, 2).scenario


def _csv_rows(scenario):
    areas = calculate_areas(scenario)
    feasibility = calculate_feasibility(
        scenario.feasibility, areas, CatalogRegistry(scenario.custom_land_uses),
    )
    return list(csv.reader(io.StringIO(export_csv(scenario, areas, feasibility))))


# ──────────────────────────────────────────────────────────────
# FILE NAMES
# ──────────────────────────────────────────────────────────────

class TestSafeFileName:
    @pytest.mark.parametrize("name,expected", [
        ("My Plan #1", "My_Plan_1"),
        ("  North   Estate ", "North_Estate"),
        ("phase-2", "phase-2"),
    ])
    def test_cleaned(self, name, expected):
        assert safe_file_name(name) == expected

    @pytest.mark.parametrize("name", ["", "   ", "!!!"])
    def test_fallback(self, name):
        assert safe_file_name(name) == DEFAULT_FILE_STEM


# ──────────────────────────────────────────────────────────────
# JSON
# ──────────────────────────────────────────────────────────────

class TestJsonExport:
    def test_snake_case_dump(self):
        data = json.loads(scenario_to_json(default_scenario()))
        assert "preset_id" in data
        assert data["allocations"][0]["category_id"] == "res_landed"

    def test_reimport_preserves_scenario(self):
        original = _edited_scenario()
        restored = scenario_from_json(scenario_to_json(original))
        assert restored.id == original.id
        assert restored.name == "Harbour Town"
        assert restored.allocations == original.allocations
        assert restored.custom_land_uses == original.custom_land_uses
        assert calculate_areas(restored) == calculate_areas(original)

    def test_malformed_json(self):
        with pytest.raises(ScenarioImportError, match="Invalid JSON"):
            scenario_from_json("{not json")

    def test_wrong_shape(self):
        with pytest.raises(ScenarioImportError):
            scenario_from_json("[1, 2, 3]")


# ──────────────────────────────────────────────────────────────
# CSV
# ──────────────────────────────────────────────────────────────

class TestCsvExport:
    def test_header_block(self):
        rows = _csv_rows(default_scenario())
        assert rows[0] == ["MasterPlan Scenario Export"]
        assert rows[1] == ["Scenario Name", "Untitled Scenario"]
        assert ["Net Developable Area (NDA) (ha)", "55.0"] in rows

    def test_only_active_allocations_listed(self):
        rows = _csv_rows(default_scenario())
        header = rows.index(["Land Use", "Group", "Basis", "Percentage", "Area (ha)", "Sellable"])
        assert rows[header + 1] == ["Landed Housing", "Residential", "NDA", "100.0", "55.0", "Yes"]
        assert rows[header + 2] == []

    def test_custom_and_currency_rows(self):
        rows = _csv_rows(_edited_scenario())
        labels = [r[0] for r in rows if r]
        assert "Ferry Terminal" in labels
        assert "Retail & Shophouses" in labels
        assert "Total Revenue (IDR)" in labels
        assert "Profit Margin (%)" in labels

    def test_definitions_appended(self):
        rows = _csv_rows(default_scenario())
        assert [tuple(r) for r in rows[-len(DEFINITIONS):]] == DEFINITIONS

    def test_active_rows_join_category(self):
        scenario = _edited_scenario()
        rows = active_allocation_rows(scenario, calculate_areas(scenario))
        ferry = next(r for r in rows if r["label"] == "Ferry Terminal")
        assert ferry["basis"] == "GSA"
        assert ferry["sellable"] is False
        assert ferry["hectares"] == pytest.approx(64 * 0.02)


# ──────────────────────────────────────────────────────────────
# XLSX
# ──────────────────────────────────────────────────────────────

def _workbook(scenario):
    areas = calculate_areas(scenario)
    feasibility = calculate_feasibility(
        scenario.feasibility, areas, CatalogRegistry(scenario.custom_land_uses),
    )
    return load_workbook(io.BytesIO(export_xlsx(scenario, areas, feasibility))), areas, feasibility


class TestXlsxExport:
    def test_sheets(self):
        wb, _, _ = _workbook(default_scenario())
        assert wb.sheetnames == XLSX_SHEETS

    def test_development_summary(self):
        wb, _, _ = _workbook(_edited_scenario())
        ws = wb["Development Summary"]
        assert ws["A1"].value == "Land Use"
        assert ws["A1"].font.bold
        rows = {r[0]: r for r in ws.iter_rows(min_row=2, values_only=True)}
        ferry = rows["Ferry Terminal"]
        assert ferry[2] == "GSA"
        assert ferry[3] == "No"
        assert ferry[4] == 2
        assert ferry[6] == pytest.approx(2)
        assert rows["Retail & Shophouses"][1] == "Commercial"

    def test_feasibility_values_numeric(self):
        wb, _, feasibility = _workbook(default_scenario())
        ws = wb["Feasibility Summary"]
        assert ws["B1"].value == "Value (IDR)"
        values = {r[0]: r[1] for r in ws.iter_rows(min_row=2, values_only=True)}
        assert values["Total Revenue"] == pytest.approx(feasibility.total_revenue)
        assert values["Profit Margin (%)"] == pytest.approx(feasibility.profit_margin)

    def test_efficiency_and_assumptions(self):
        wb, areas, _ = _workbook(default_scenario())
        metrics = wb["Efficiency + Basis"].iter_rows(min_row=2, max_row=13, values_only=True)
        eff = {r[0]: r[1] for r in metrics}
        assert eff["Net Developable Area (NDA)"] == pytest.approx(areas.nda)
        assumptions = {r[0]: r[1] for r in wb["Assumptions"].iter_rows(min_row=2, values_only=True) if r[0]}
        assert assumptions["Project Name"] == "Untitled Scenario"
        assert assumptions["Build Model"] == "land-sale"
        assert assumptions["Constraint Allowance (NCA) Override (%)"] is None

    def test_definitions_sheet(self):
        wb, _, _ = _workbook(default_scenario())
        rows = list(wb["Definitions"].iter_rows(min_row=2, values_only=True))
        assert rows == ACRONYMS


# ──────────────────────────────────────────────────────────────
# FORMATTING
# ──────────────────────────────────────────────────────────────

class TestFormatting:
    @pytest.mark.parametrize("value,expected", [
        (2.5e12, "Rp 2,5 T"),
        (1.25e9, "Rp 1,25 M"),
        (2_000_000, "Rp 2,0 jt"),
        (1234, "Rp 1.234"),
        (-3e9, "-Rp 3,0 M"),
        (0, "Rp 0"),
    ])
    def test_currency(self, value, expected):
        assert format_currency(value) == expected

    def test_number(self):
        assert format_number(1234.56) == "1,234.6"
        assert format_number(55, 2) == "55.00"

    def test_percent(self):
        assert format_percent(12.345) == "12.3%"
