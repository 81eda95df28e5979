"""
Scenario API.

Scenarios live in the in-memory store.  Every edit is applied through the
store's per-scenario lock, so one mutation per scenario is in flight at a
time.  Areas and feasibility are recomputed on every read.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response

from app.allocation_engine.areas import calculate_areas
from app.allocation_engine.catalog import CatalogRegistry
from app.allocation_engine.feasibility import calculate_feasibility
from app.allocation_engine.presets import ROW_SETS, SCALE_PRESETS, TDI_VALUES
from app.allocation_engine.rebalancer import (
    add_custom_land_use,
    rebalance_to_preset,
    remove_custom_land_use,
    set_allocation,
    set_allocation_hectares,
    toggle_lock,
)
from app.allocation_engine.scenario import (
    ScenarioImportError,
    reset_scenario,
    update_parameters,
)
from app.models.schemas import (
    AllocationUpdateRequest,
    CalculatedAreas,
    CustomLandUseRequest,
    FeasibilityOutputs,
    LandUseCategory,
    ParameterUpdateRequest,
    Scenario,
    ScenarioSummary,
)
from app.services.export import (
    export_csv,
    export_xlsx,
    safe_file_name,
    scenario_from_json,
    scenario_to_json,
)
from app.services.report import generate_report_bytes
from app.services.scenario_store import scenario_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["scenarios"])


def _get_or_404(scenario_id: str) -> Scenario:
    scenario = scenario_store.get(scenario_id)
    if scenario is None:
        raise HTTPException(status_code=404, detail=f"No scenario with ID {scenario_id}.")
    return scenario


def _summarize(scenario: Scenario) -> ScenarioSummary:
    catalog = CatalogRegistry(scenario.custom_land_uses)
    areas = calculate_areas(scenario, catalog)
    feasibility = calculate_feasibility(scenario.feasibility, areas, catalog)
    return ScenarioSummary(scenario=scenario, areas=areas, feasibility=feasibility)


async def _apply(scenario_id: str, fn) -> Scenario:
    updated = await scenario_store.update(scenario_id, fn)
    if updated is None:
        raise HTTPException(status_code=404, detail=f"No scenario with ID {scenario_id}.")
    return updated


# ──────────────────────────────────────────────────────────────────
# REFERENCE DATA
# ──────────────────────────────────────────────────────────────────

@router.get("/catalog", response_model=list[LandUseCategory])
async def list_catalog():
    """Built-in land-use categories."""
    return CatalogRegistry().list()


@router.get("/presets")
async def list_presets():
    """Scale presets, topography classes and right-of-way sets."""
    return {
        "scale_presets": [p.to_dict() for p in SCALE_PRESETS.values()],
        "topography": [
            {"tdi": t.index, "label": t.label, "nca_target": t.nca_target}
            for t in TDI_VALUES.values()
        ],
        "row_sets": [
            {
                "id": r.id,
                "label": r.label,
                "primary_m": r.primary_m,
                "secondary_m": r.secondary_m,
                "roads_multiplier": r.roads_multiplier,
            }
            for r in ROW_SETS.values()
        ],
    }


# ──────────────────────────────────────────────────────────────────
# SCENARIO LIFECYCLE
# ──────────────────────────────────────────────────────────────────

@router.post("/scenarios", response_model=Scenario, status_code=201)
async def create_scenario():
    return scenario_store.create()


@router.get("/scenarios/{scenario_id}", response_model=Scenario)
async def get_scenario(scenario_id: str):
    return _get_or_404(scenario_id)


@router.delete("/scenarios/{scenario_id}", status_code=204)
async def delete_scenario(scenario_id: str):
    async with scenario_store.locked(scenario_id):
        if not scenario_store.delete(scenario_id):
            raise HTTPException(status_code=404, detail=f"No scenario with ID {scenario_id}.")
    return Response(status_code=204)


@router.post("/scenarios/{scenario_id}/reset", response_model=Scenario)
async def reset(scenario_id: str):
    return await _apply(scenario_id, reset_scenario)


@router.patch("/scenarios/{scenario_id}/parameters", response_model=Scenario)
async def patch_parameters(scenario_id: str, req: ParameterUpdateRequest):
    changes = req.model_dump(
        exclude_unset=True,
        exclude={"clear_nca_override", "clear_nsr_override", "feasibility"},
    )
    # Explicit nulls would be ambiguous; clearing goes through the flags
    for key in ("nca_override_percentage", "nsr_override_percentage"):
        if changes.get(key) is None:
            changes.pop(key, None)
    if req.feasibility is not None:
        changes["feasibility"] = req.feasibility.model_dump(exclude_none=True)
    if req.clear_nca_override:
        changes["nca_override_percentage"] = None
    if req.clear_nsr_override:
        changes["nsr_override_percentage"] = None
    return await _apply(scenario_id, lambda s: update_parameters(s, **changes))


# ──────────────────────────────────────────────────────────────────
# ALLOCATION EDITS
# ──────────────────────────────────────────────────────────────────

@router.put("/scenarios/{scenario_id}/allocations/{category_id}", response_model=Scenario)
async def put_allocation(scenario_id: str, category_id: str, req: AllocationUpdateRequest):
    """Set an allocation by percentage, or by hectares (converted on the spot)."""
    if (req.percentage is None) == (req.hectares is None):
        raise HTTPException(status_code=400, detail="Provide exactly one of percentage or hectares.")
    scenario = _get_or_404(scenario_id)
    if not any(a.category_id == category_id for a in scenario.allocations):
        raise HTTPException(status_code=404, detail=f"No allocation for category {category_id}.")

    if req.percentage is not None:
        return await _apply(scenario_id, lambda s: set_allocation(s, category_id, req.percentage))
    return await _apply(scenario_id, lambda s: set_allocation_hectares(s, category_id, req.hectares))


@router.post("/scenarios/{scenario_id}/allocations/{category_id}/lock", response_model=Scenario)
async def post_toggle_lock(scenario_id: str, category_id: str):
    return await _apply(scenario_id, lambda s: toggle_lock(s, category_id))


@router.post("/scenarios/{scenario_id}/rebalance", response_model=Scenario)
async def post_rebalance(scenario_id: str):
    return await _apply(scenario_id, rebalance_to_preset)


@router.post("/scenarios/{scenario_id}/custom-land-uses", status_code=201)
async def post_custom_land_use(scenario_id: str, req: CustomLandUseRequest):
    async with scenario_store.locked(scenario_id):
        scenario = _get_or_404(scenario_id)
        result = add_custom_land_use(
            scenario,
            name=req.name,
            custom_type=req.type,
            group=req.group,
            percentage=req.percentage,
            custom_category=req.category,
        )
        if not result.ok:
            raise HTTPException(status_code=400, detail=result.to_dict())
        scenario_store.put(result.scenario)
    return {**result.to_dict(), "scenario": result.scenario}


@router.delete("/scenarios/{scenario_id}/custom-land-uses/{category_id}", response_model=Scenario)
async def delete_custom_land_use(scenario_id: str, category_id: str):
    scenario = _get_or_404(scenario_id)
    if not any(c.id == category_id for c in scenario.custom_land_uses):
        raise HTTPException(status_code=404, detail=f"No custom land use {category_id}.")
    return await _apply(scenario_id, lambda s: remove_custom_land_use(s, category_id))


# ──────────────────────────────────────────────────────────────────
# DERIVED OUTPUTS
# ──────────────────────────────────────────────────────────────────

@router.get("/scenarios/{scenario_id}/areas", response_model=CalculatedAreas)
async def get_areas(scenario_id: str):
    return _summarize(_get_or_404(scenario_id)).areas


@router.get("/scenarios/{scenario_id}/feasibility", response_model=FeasibilityOutputs)
async def get_feasibility(scenario_id: str):
    return _summarize(_get_or_404(scenario_id)).feasibility


@router.get("/scenarios/{scenario_id}/summary", response_model=ScenarioSummary)
async def get_summary(scenario_id: str):
    return _summarize(_get_or_404(scenario_id))


# ──────────────────────────────────────────────────────────────────
# EXPORT / IMPORT
# ──────────────────────────────────────────────────────────────────

@router.get("/scenarios/{scenario_id}/export/json")
async def export_json(scenario_id: str):
    scenario = _get_or_404(scenario_id)
    filename = f"{safe_file_name(scenario.name)}.json"
    return Response(
        content=scenario_to_json(scenario),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/scenarios/{scenario_id}/export/csv")
async def export_csv_file(scenario_id: str):
    summary = _summarize(_get_or_404(scenario_id))
    filename = f"{safe_file_name(summary.scenario.name)}_export.csv"
    return Response(
        content=export_csv(summary.scenario, summary.areas, summary.feasibility),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/scenarios/{scenario_id}/export/xlsx")
async def export_xlsx_file(scenario_id: str):
    summary = _summarize(_get_or_404(scenario_id))
    filename = f"{safe_file_name(summary.scenario.name)}.xlsx"
    return Response(
        content=export_xlsx(summary.scenario, summary.areas, summary.feasibility),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/scenarios/{scenario_id}/export/pdf")
async def export_pdf(scenario_id: str):
    summary = _summarize(_get_or_404(scenario_id))
    try:
        pdf_bytes = generate_report_bytes(summary.scenario, summary.areas, summary.feasibility)
    except Exception as e:
        logger.exception("PDF render failed for scenario %s", scenario_id)
        raise HTTPException(status_code=500, detail=f"Report generation error: {type(e).__name__}: {e}")
    filename = f"{safe_file_name(summary.scenario.name)}_report.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/scenarios/import", response_model=Scenario, status_code=201)
async def import_scenario(request: Request):
    """Import an exported scenario JSON body.  An existing id is overwritten."""
    body = await request.body()
    try:
        scenario = scenario_from_json(body.decode("utf-8"))
    except (ScenarioImportError, UnicodeDecodeError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    async with scenario_store.locked(scenario.id):
        return scenario_store.put(scenario)
