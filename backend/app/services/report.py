"""
PDF summary report for a masterplan scenario.
Uses ReportLab to lay out the land-use program and feasibility estimate.

Sections:
  1. Headline metrics (GSA, NDA, SRA efficiency, profit margin)
  2. Site Parameters
  3. Area Breakdown (GSA -> NCA / NSR / NDA, reserve sub-split)
  4. Land-use Program (active allocations)
  5. Feasibility Estimate
  6. Definitions & Limitations
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import (
    HRFlowable, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle,
)

from app.allocation_engine.presets import get_row_set, get_scale_preset, get_topography
from app.models.schemas import CalculatedAreas, FeasibilityOutputs, Scenario
from app.services.export import DEFINITIONS, active_allocation_rows
from app.services.formatting import format_currency, format_number, format_percent

logger = logging.getLogger(__name__)

# ── Palette ──
BLUE = colors.HexColor('#1C3D5A')
DARK = colors.HexColor('#2D2D2D')
GREY = colors.HexColor('#7A7A7A')
LIGHT_BG = colors.HexColor('#F7F6F3')
GRID_COLOR = colors.HexColor('#DCDAD5')
WHITE = colors.white

PAGE_W, PAGE_H = A4
MARGIN = 0.8 * inch
CONTENT_W = PAGE_W - 2 * MARGIN


def _header_footer(canvas, doc):
    """Thin rule header with the report title; date and page number in the footer."""
    canvas.saveState()
    canvas.setFillColor(DARK)
    canvas.setFont('Helvetica-Bold', 8.5)
    canvas.drawString(doc.leftMargin, PAGE_H - 38, "MASTERPLAN SCENARIO")
    canvas.setFillColor(GREY)
    canvas.setFont('Helvetica', 7.5)
    canvas.drawRightString(PAGE_W - doc.rightMargin, PAGE_H - 38,
                           "Land-use Allocation & Feasibility")
    canvas.setStrokeColor(GRID_COLOR)
    canvas.setLineWidth(0.5)
    canvas.line(doc.leftMargin, PAGE_H - 48, PAGE_W - doc.rightMargin, PAGE_H - 48)

    canvas.setLineWidth(0.25)
    canvas.line(doc.leftMargin, 40, PAGE_W - doc.rightMargin, 40)
    canvas.setFillColor(colors.HexColor('#AAAAAA'))
    canvas.setFont('Helvetica', 7)
    canvas.drawString(doc.leftMargin, 28, datetime.now().strftime('%B %d, %Y'))
    canvas.drawRightString(PAGE_W - doc.rightMargin, 28, f"{doc.page}")
    canvas.restoreState()


# ──────────────────────────────────────────────────────────────────
# STYLES & TABLE HELPERS
# ──────────────────────────────────────────────────────────────────

def _get_styles():
    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(
        name='ReportTitle', fontSize=22, fontName='Helvetica-Bold',
        spaceAfter=4, textColor=DARK, leading=26,
    ))
    styles.add(ParagraphStyle(
        name='Subtitle', fontSize=10, fontName='Helvetica',
        textColor=GREY, leading=13,
    ))
    styles.add(ParagraphStyle(
        name='SectionHeader', fontSize=14, fontName='Helvetica-Bold',
        textColor=DARK, leading=18,
    ))
    styles.add(ParagraphStyle(
        name='SmallBody', fontSize=9, fontName='Helvetica',
        spaceAfter=3, leading=12, textColor=DARK,
    ))
    styles.add(ParagraphStyle(
        name='NoteText', fontSize=8, fontName='Helvetica',
        textColor=GREY, spaceAfter=3, leading=11,
    ))
    styles.add(ParagraphStyle(
        name='MetricNumber', fontSize=18, fontName='Helvetica-Bold',
        textColor=BLUE, alignment=TA_CENTER, leading=22,
    ))
    styles.add(ParagraphStyle(
        name='MetricLabel', fontSize=7.5, fontName='Helvetica',
        textColor=GREY, alignment=TA_CENTER, leading=10,
    ))
    return styles


def _section_header(text, styles):
    t = Table([[Paragraph(escape(text), styles['SectionHeader'])]], colWidths=[CONTENT_W])
    t.setStyle(TableStyle([
        ('TOPPADDING', (0, 0), (-1, -1), 10),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 4),
        ('LEFTPADDING', (0, 0), (-1, -1), 0),
        ('RIGHTPADDING', (0, 0), (-1, -1), 0),
        ('LINEBELOW', (0, 0), (-1, -1), 1, BLUE),
    ]))
    return t


def _make_kv_table(data: list[list[str]], col_widths=None) -> Table:
    if col_widths is None:
        col_widths = [2.4 * inch, CONTENT_W - 2.4 * inch]
    t = Table(data, colWidths=col_widths)
    style_cmds = [
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTNAME', (1, 0), (-1, -1), 'Helvetica'),
        ('TEXTCOLOR', (0, 0), (-1, -1), DARK),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 4),
        ('TOPPADDING', (0, 0), (-1, -1), 4),
        ('LINEBELOW', (0, 0), (-1, -1), 0.25, GRID_COLOR),
    ]
    for i in range(1, len(data), 2):
        style_cmds.append(('BACKGROUND', (0, i), (-1, i), LIGHT_BG))
    t.setStyle(TableStyle(style_cmds))
    return t


def _make_data_table(data: list[list[str]], col_widths=None) -> Table:
    if col_widths is None:
        ncols = len(data[0]) if data else 1
        col_widths = [CONTENT_W / ncols] * ncols
    t = Table(data, colWidths=col_widths, repeatRows=1)
    style_cmds = [
        ('FONTSIZE', (0, 0), (-1, -1), 8.5),
        ('FONTNAME', (0, 0), (-1, -1), 'Helvetica'),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('BACKGROUND', (0, 0), (-1, 0), BLUE),
        ('TEXTCOLOR', (0, 0), (-1, 0), WHITE),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 4),
        ('TOPPADDING', (0, 0), (-1, -1), 4),
        ('LINEBELOW', (0, 1), (-1, -1), 0.25, GRID_COLOR),
        ('ALIGN', (1, 1), (-1, -1), 'RIGHT'),
    ]
    for i in range(2, len(data), 2):
        style_cmds.append(('BACKGROUND', (0, i), (-1, i), LIGHT_BG))
    t.setStyle(TableStyle(style_cmds))
    return t


# ──────────────────────────────────────────────────────────────────
# SECTIONS
# ──────────────────────────────────────────────────────────────────

def _build_headline(story, styles, scenario, areas, feasibility):
    story.append(Paragraph(escape(scenario.name), styles['ReportTitle']))
    story.append(Paragraph(
        f"Scenario {escape(scenario.id)} &middot; version {escape(scenario.version)}",
        styles['Subtitle'],
    ))
    story.append(Spacer(1, 14))

    metrics = [
        (f"{format_number(areas.gsa)} ha", "Gross Site Area"),
        (f"{format_number(areas.nda)} ha", "Net Developable Area"),
        (format_percent(areas.sra_efficiency), "Sellable Efficiency"),
        (format_percent(feasibility.profit_margin), "Profit Margin"),
    ]
    row_values = [Paragraph(v, styles['MetricNumber']) for v, _ in metrics]
    row_labels = [Paragraph(label.upper(), styles['MetricLabel']) for _, label in metrics]
    t = Table([row_values, row_labels], colWidths=[CONTENT_W / len(metrics)] * len(metrics))
    t.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, -1), LIGHT_BG),
        ('BOX', (0, 0), (-1, -1), 0.5, GRID_COLOR),
        ('TOPPADDING', (0, 0), (-1, 0), 10),
        ('BOTTOMPADDING', (0, -1), (-1, -1), 10),
    ]))
    story.append(t)
    story.append(Spacer(1, 8))


def _build_parameters(story, styles, scenario):
    preset = get_scale_preset(scenario.preset_id)
    topo = get_topography(scenario.tdi)
    row_set = get_row_set(scenario.row_set_id)
    nca_override = scenario.nca_override_percentage
    nsr_override = scenario.nsr_override_percentage

    story.append(_section_header("Site Parameters", styles))
    story.append(Spacer(1, 4))
    story.append(_make_kv_table([
        ["Scale Preset", f"{preset.id} - {preset.label}"],
        ["Topography Difficulty Index", f"{topo.index} - {topo.label}"],
        ["Right of Way (RoW) Set", row_set.label],
        ["NCA Override", format_percent(nca_override) if nca_override is not None else "None (TDI default)"],
        ["NSR Override", format_percent(nsr_override) if nsr_override is not None else "None (preset default)"],
        ["Pricing Model", scenario.feasibility.build_model],
    ]))


def _build_area_breakdown(story, styles, areas):
    story.append(_section_header("Area Breakdown", styles))
    story.append(Spacer(1, 4))
    story.append(_make_data_table([
        ["Component", "Hectares", "% of GSA"],
        ["Gross Site Area (GSA)", format_number(areas.gsa, 2), "100.0%"],
        ["Constraint Allowance (NCA)", format_number(areas.nca, 2), format_percent(areas.nca_percentage)],
        ["Non-Sellable Reserve (NSR)", format_number(areas.nsr, 2),
         format_percent(areas.nsr / areas.gsa * 100 if areas.gsa > 0 else 0)],
        ["    Roads / RoW", format_number(areas.roads_ha, 2), ""],
        ["    Open Space", format_number(areas.open_space_ha, 2), ""],
        ["    Utilities & Facilities", format_number(areas.utilities_ha, 2), ""],
        ["Net Developable Area (NDA)", format_number(areas.nda, 2), format_percent(areas.nda_percentage)],
        ["Sellable Area (SRA)", format_number(areas.sra, 2), format_percent(areas.sra_efficiency)],
    ], col_widths=[3.2 * inch, 1.6 * inch, CONTENT_W - 4.8 * inch]))


def _build_program(story, styles, scenario, areas):
    story.append(_section_header("Land-use Program", styles))
    story.append(Spacer(1, 4))
    rows = active_allocation_rows(scenario, areas)
    if not rows:
        story.append(Paragraph("No land uses allocated.", styles['SmallBody']))
        return
    data = [["Land Use", "Group", "Basis", "%", "ha", "Sellable"]]
    for r in rows:
        data.append([
            r["label"] + (" (locked)" if r["locked"] else ""),
            r["group"],
            r["basis"],
            format_number(r["percentage"]),
            format_number(r["hectares"], 2),
            "Yes" if r["sellable"] else "No",
        ])
    story.append(_make_data_table(
        data,
        col_widths=[2.3 * inch, 1.1 * inch, 0.6 * inch, 0.7 * inch, 0.9 * inch,
                    CONTENT_W - 5.6 * inch],
    ))
    story.append(Paragraph(
        "NDA-basis percentages are shares of net developable area; "
        "GSA-basis percentages are shares of gross site area.",
        styles['NoteText'],
    ))


def _build_feasibility(story, styles, feasibility):
    story.append(_section_header("Feasibility Estimate", styles))
    story.append(Spacer(1, 4))
    story.append(_make_kv_table([
        ["Land Acquisition", format_currency(feasibility.land_acquisition_cost)],
        ["Infrastructure (Roads)", format_currency(feasibility.infrastructure_cost)],
        ["Build Cost", format_currency(feasibility.build_cost)],
        ["Total Cost", format_currency(feasibility.total_cost)],
        ["Total Revenue", format_currency(feasibility.total_revenue)],
        ["Profit", format_currency(feasibility.profit)],
        ["Profit Margin", format_percent(feasibility.profit_margin)],
        ["Profit per Hectare", format_currency(feasibility.profit_per_ha)],
    ]))


def _build_definitions(story, styles, report_id):
    story.append(_section_header("Definitions & Limitations", styles))
    story.append(Spacer(1, 4))
    for term, meaning in DEFINITIONS:
        story.append(Paragraph(f"<b>{term}</b>: {meaning}", styles['SmallBody']))
    story.append(Spacer(1, 10))
    story.append(HRFlowable(width="100%", thickness=0.5, color=GREY))
    story.append(Spacer(1, 4))
    story.append(Paragraph(
        "Areas are scalar proxies, not surveyed geometry. Costs and revenues are "
        "order-of-magnitude estimates from the unit rates entered for this scenario. "
        f"Report ID: {report_id}.",
        styles['NoteText'],
    ))


# ──────────────────────────────────────────────────────────────────
# MAIN ENTRY POINT
# ──────────────────────────────────────────────────────────────────

def generate_report_bytes(
    scenario: Scenario,
    areas: CalculatedAreas,
    feasibility: FeasibilityOutputs,
) -> bytes:
    """Render the scenario summary PDF and return it as bytes."""
    buffer = BytesIO()
    report_id = str(uuid.uuid4())[:8]

    doc = SimpleDocTemplate(
        buffer, pagesize=A4,
        topMargin=0.95 * inch, bottomMargin=0.8 * inch,
        leftMargin=MARGIN, rightMargin=MARGIN,
        title=scenario.name,
    )

    styles = _get_styles()
    story = []
    _build_headline(story, styles, scenario, areas, feasibility)
    _build_parameters(story, styles, scenario)
    _build_area_breakdown(story, styles, areas)
    _build_program(story, styles, scenario, areas)
    _build_feasibility(story, styles, feasibility)
    _build_definitions(story, styles, report_id)

    doc.build(story, onFirstPage=_header_footer, onLaterPages=_header_footer)
    logger.info("Rendered report %s for scenario %s", report_id, scenario.id)
    return buffer.getvalue()
