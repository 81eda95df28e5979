"""
Scenario export and import.

  JSON   full scenario dump; re-importable through ``scenario_from_json``
  CSV    area summary, active allocation table, feasibility summary and
         definitions, for spreadsheets
  XLSX   workbook with one sheet each for the development summary,
         efficiency, feasibility, assumptions and definitions
"""

from __future__ import annotations

import csv
import io
import json
import logging
import re

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from app.allocation_engine.catalog import CatalogRegistry
from app.allocation_engine.presets import get_row_set, get_scale_preset, get_topography
from app.allocation_engine.scenario import ScenarioImportError, migrate_scenario
from app.config import settings
from app.models.schemas import CalculatedAreas, FeasibilityOutputs, Scenario

logger = logging.getLogger(__name__)

DEFAULT_FILE_STEM = "masterplan_scenario"

DEFINITIONS = [
    ("Gross Site Area (GSA)", "Total boundary area"),
    ("Constraint Allowance (NCA)", "Constraint reserve from topography proxy"),
    ("Non-Sellable Reserve (NSR)", "Roads, open space, and other public realm"),
    ("Net Developable Area (NDA)", "NDA = GSA - NCA - NSR"),
    ("Sellable / Revenue Area (SRA)", "Sum of sellable allocations"),
    ("Sellable Efficiency (SRA/GSA)", "SRA divided by GSA"),
]


def safe_file_name(name: str) -> str:
    """Turn a scenario name into a file stem: spaces to ``_``, no punctuation."""
    trimmed = (name or "").strip()
    if not trimmed:
        return DEFAULT_FILE_STEM
    return re.sub(r"[^\w-]", "", re.sub(r"\s+", "_", trimmed)) or DEFAULT_FILE_STEM


# ──────────────────────────────────────────────────────────────────
# JSON
# ──────────────────────────────────────────────────────────────────

def scenario_to_json(scenario: Scenario) -> str:
    return scenario.model_dump_json(indent=2)


def scenario_from_json(text: str) -> Scenario:
    """Parse an exported scenario.  Raises ScenarioImportError."""
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ScenarioImportError(f"Invalid JSON: {exc.msg}") from exc
    scenario = migrate_scenario(payload)
    logger.info("Imported scenario %s (%s)", scenario.id, scenario.name)
    return scenario


# ──────────────────────────────────────────────────────────────────
# CSV
# ──────────────────────────────────────────────────────────────────

def active_allocation_rows(scenario: Scenario, areas: CalculatedAreas) -> list[dict]:
    """Allocations with a non-zero share and area, joined to their category."""
    catalog = CatalogRegistry(scenario.custom_land_uses)
    rows = []
    for alloc in scenario.allocations:
        ha = areas.allocations_ha.get(alloc.category_id, 0)
        cat = catalog.get(alloc.category_id)
        if cat is None or alloc.percentage <= 0 or ha <= 0:
            continue
        rows.append({
            "category_id": cat.id,
            "label": cat.label,
            "group": cat.group.value,
            "basis": cat.allocation_basis.value,
            "percentage": alloc.percentage,
            "hectares": ha,
            "sellable": cat.sellable,
            "locked": alloc.locked,
        })
    return rows


def export_csv(
    scenario: Scenario,
    areas: CalculatedAreas,
    feasibility: FeasibilityOutputs,
) -> str:
    currency = settings.currency_code
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")

    writer.writerows([
        ["MasterPlan Scenario Export"],
        ["Scenario Name", scenario.name],
        ["Version", scenario.version],
        ["Gross Site Area (GSA) (ha)", areas.gsa],
        ["Constraint Allowance (NCA) (%)", areas.nca_percentage],
        ["Constraint Allowance (NCA) (ha)", areas.nca],
        ["Non-Sellable Reserve (NSR) (%)", areas.nsr_percentage],
        ["Non-Sellable Reserve (NSR) (ha)", areas.nsr],
        ["Net Developable Area (NDA) (ha)", areas.nda],
        ["Sellable / Revenue Area (SRA) (ha)", areas.sra],
        ["Sellable Efficiency (SRA/GSA) (%)", areas.sra_efficiency],
        [],
        ["Land Use", "Group", "Basis", "Percentage", "Area (ha)", "Sellable"],
    ])
    for row in active_allocation_rows(scenario, areas):
        writer.writerow([
            row["label"],
            row["group"],
            row["basis"],
            row["percentage"],
            row["hectares"],
            "Yes" if row["sellable"] else "No",
        ])

    writer.writerows([
        [],
        ["Feasibility Summary"],
        [f"Land Acquisition Cost ({currency})", feasibility.land_acquisition_cost],
        [f"Infrastructure Cost ({currency})", feasibility.infrastructure_cost],
        [f"Build Cost ({currency})", feasibility.build_cost],
        [f"Total Cost ({currency})", feasibility.total_cost],
        [f"Total Revenue ({currency})", feasibility.total_revenue],
        [f"Profit ({currency})", feasibility.profit],
        ["Profit Margin (%)", feasibility.profit_margin],
        [],
        ["Definitions"],
    ])
    writer.writerows(DEFINITIONS)
    return buf.getvalue()


# ──────────────────────────────────────────────────────────────────
# XLSX
# ──────────────────────────────────────────────────────────────────

XLSX_SHEETS = [
    "Development Summary",
    "Efficiency + Basis",
    "Feasibility Summary",
    "Assumptions",
    "Definitions",
]

ACRONYMS = [
    ("GSA", "Gross Site Area", "Total site area within boundary"),
    ("NCA", "Constraint Allowance", "Constraint reserve from topography proxy"),
    ("NSR", "Non-Sellable Reserve", "Roads, open space, and public realm reserve"),
    ("NDA", "Net Developable Area", "NDA = GSA - NCA - NSR"),
    ("SRA", "Sellable / Revenue Area", "Sum of sellable allocations within NDA"),
    ("SRA/GSA", "Sellable Efficiency", "SRA divided by GSA"),
]

_HEADER_FONT = Font(bold=True, color="FFFFFF")
_HEADER_FILL = PatternFill("solid", fgColor="1C3D5A")


def _write_sheet(ws, rows: list[list], widths: list[int]) -> None:
    """Write *rows* with the first row styled as a header."""
    for row in rows:
        ws.append(row)
    for cell in ws[1]:
        cell.font = _HEADER_FONT
        cell.fill = _HEADER_FILL
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
    for col, width in enumerate(widths, start=1):
        ws.column_dimensions[get_column_letter(col)].width = width
    ws.freeze_panes = "A2"


def export_xlsx(
    scenario: Scenario,
    areas: CalculatedAreas,
    feasibility: FeasibilityOutputs,
) -> bytes:
    """Build the scenario workbook in memory and return its bytes."""
    currency = settings.currency_code
    preset = get_scale_preset(scenario.preset_id)
    row_set = get_row_set(scenario.row_set_id)
    topo = get_topography(scenario.tdi)
    inputs = scenario.feasibility

    wb = Workbook()
    summary_ws = wb.active
    summary_ws.title = XLSX_SHEETS[0]
    summary = [[
        "Land Use", "Group", "Basis", "Sellable", "Percentage", "Area (ha)",
        "% of Gross Site Area (GSA)",
    ]]
    for row in active_allocation_rows(scenario, areas):
        summary.append([
            row["label"],
            row["group"],
            row["basis"],
            "Yes" if row["sellable"] else "No",
            row["percentage"],
            row["hectares"],
            row["hectares"] / areas.gsa * 100 if areas.gsa > 0 else 0,
        ])
    _write_sheet(summary_ws, summary, [34, 14, 8, 10, 12, 12, 16])
    for cells in summary_ws.iter_rows(min_row=2, min_col=5, max_col=7):
        for cell in cells:
            cell.number_format = "0.00"

    _write_sheet(wb.create_sheet(XLSX_SHEETS[1]), [
        ["Metric", "Value", "Unit"],
        ["Gross Site Area (GSA)", areas.gsa, "ha"],
        ["Constraint Allowance (NCA)", areas.nca, "ha"],
        ["Constraint Allowance (NCA) Percentage", areas.nca_percentage, "%"],
        ["Non-Sellable Reserve (NSR)", areas.nsr, "ha"],
        ["Non-Sellable Reserve (NSR) Percentage", areas.nsr_percentage, "%"],
        ["Net Developable Area (NDA)", areas.nda, "ha"],
        ["Net Developable Area (NDA) Percentage", areas.nda_percentage, "%"],
        ["Sellable / Revenue Area (SRA)", areas.sra, "ha"],
        ["Sellable Efficiency (SRA/GSA)", areas.sra_efficiency, "%"],
        ["Roads", areas.roads_ha, "ha"],
        ["Open Space", areas.open_space_ha, "ha"],
        ["Utilities & Facilities", areas.utilities_ha, "ha"],
        [],
        ["Basis Definition", "Description", ""],
        *[[term, meaning, ""] for term, meaning in DEFINITIONS],
    ], [40, 18, 8])

    _write_sheet(wb.create_sheet(XLSX_SHEETS[2]), [
        ["Metric", f"Value ({currency})"],
        ["Land Acquisition Cost", feasibility.land_acquisition_cost],
        ["Infrastructure Cost", feasibility.infrastructure_cost],
        ["Build Cost", feasibility.build_cost],
        ["Total Cost", feasibility.total_cost],
        ["Total Revenue", feasibility.total_revenue],
        ["Profit", feasibility.profit],
        ["Profit Margin (%)", feasibility.profit_margin],
        ["Profit per Ha", feasibility.profit_per_ha],
    ], [28, 24])

    _write_sheet(wb.create_sheet(XLSX_SHEETS[3]), [
        ["Input", "Value", "Notes"],
        ["Project Name", scenario.name, ""],
        ["Gross Site Area (ha)", scenario.gsa, ""],
        ["Scale Preset", f"{preset.id} - {preset.label}", ""],
        ["Topography Difficulty Index", f"{topo.index} - {topo.label}", "Constraint proxy only"],
        ["Right of Way (RoW) Set", f"{row_set.id} - {row_set.label}", "Multiplier for roads share"],
        ["Constraint Allowance (NCA) Override (%)", scenario.nca_override_percentage,
         "Blank means TDI default"],
        ["Non-Sellable Reserve (NSR) Override (%)", scenario.nsr_override_percentage,
         "Blank means preset default"],
        [],
        [f"Land Acquisition Cost ({currency}/sqm)", inputs.land_acquisition_cost, ""],
        [f"Roads Cost Rate ({currency}/sqm roads)", inputs.roads_cost_rate, ""],
        ["Build Model", inputs.build_model, "land-sale or build-and-sell"],
        [f"Residential Build Cost ({currency}/sqm)", inputs.residential_build_cost, ""],
        [f"Commercial Build Cost ({currency}/sqm)", inputs.commercial_build_cost, ""],
        ["Residential Coverage (%)", inputs.residential_coverage, ""],
        ["Commercial Coverage (%)", inputs.commercial_coverage, ""],
        [f"Residential Sale Price ({currency}/sqm)", inputs.residential_sale_price, ""],
        [f"Commercial Sale Price ({currency}/sqm)", inputs.commercial_sale_price, ""],
        [f"Custom Sellable Sale Price ({currency}/sqm)", inputs.custom_sellable_sale_price, ""],
    ], [40, 44, 30])

    _write_sheet(wb.create_sheet(XLSX_SHEETS[4]), [
        ["Acronym", "Full Term", "Formula / Definition"],
        *[list(entry) for entry in ACRONYMS],
    ], [12, 28, 48])

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
