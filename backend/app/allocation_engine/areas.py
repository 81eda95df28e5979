"""
Area breakdown for a scenario.

    GSA  gross site area (input)
    NCA  constraint allowance = GSA x TDI target (or override)
    NSR  non-sellable reserve = GSA x preset target (or override)
         + GSA-basis non-sellable allocations (public facilities)
    NDA  net developable area = max(0, GSA - NCA - NSR)
    SRA  sellable area = sum of sellable category hectares

The preset's base reserve is split into roads, open space and utilities.
Roads and open space are scaled down together when they would exceed the
base reserve; utilities take whatever is left plus the custom reserve.

All divisions by GSA are guarded so a zero-area site yields zeros, never
NaN.
"""

from __future__ import annotations

from typing import Optional

from app.allocation_engine.catalog import CatalogRegistry
from app.allocation_engine.presets import get_row_set, get_scale_preset, get_topography
from app.models.schemas import AllocationBasis, CalculatedAreas, Scenario


def calculate_areas(
    scenario: Scenario,
    catalog: Optional[CatalogRegistry] = None,
) -> CalculatedAreas:
    """Derive the full area breakdown for *scenario*."""
    if catalog is None:
        catalog = CatalogRegistry(scenario.custom_land_uses)

    gsa = scenario.gsa or 0
    preset = get_scale_preset(scenario.preset_id)
    row_set = get_row_set(scenario.row_set_id)

    nca_pct = scenario.nca_override_percentage
    if nca_pct is None:
        nca_pct = get_topography(scenario.tdi).nca_target
    nsr_pct = scenario.nsr_override_percentage
    if nsr_pct is None:
        nsr_pct = preset.nsr_target

    nca = gsa * nca_pct / 100
    base_nsr = gsa * nsr_pct / 100

    custom_reserve = 0.0
    for alloc in scenario.allocations:
        cat = catalog.get(alloc.category_id)
        if cat is None or cat.sellable or cat.allocation_basis != AllocationBasis.GSA:
            continue
        custom_reserve += gsa * alloc.percentage / 100

    nsr = base_nsr + custom_reserve
    nda = max(0.0, gsa - nca - nsr)
    nda_pct = nda / gsa * 100 if gsa > 0 else 0.0

    # Reserve sub-split
    roads_ha = gsa * preset.roads_target * row_set.roads_multiplier / 100
    open_space_ha = gsa * preset.open_space_target / 100
    if roads_ha + open_space_ha > base_nsr and base_nsr > 0:
        scale = base_nsr / (roads_ha + open_space_ha)
        roads_ha *= scale
        open_space_ha *= scale
    utilities_ha = max(0.0, base_nsr - roads_ha - open_space_ha) + custom_reserve

    sra = 0.0
    allocations_ha: dict[str, float] = {}
    for alloc in scenario.allocations:
        cat = catalog.get(alloc.category_id)
        basis = cat.allocation_basis if cat else AllocationBasis.NDA
        base = gsa if basis == AllocationBasis.GSA else nda
        ha = base * alloc.percentage / 100
        allocations_ha[alloc.category_id] = ha
        if cat is not None and cat.sellable:
            sra += ha

    sra_efficiency = sra / gsa * 100 if gsa > 0 else 0.0

    return CalculatedAreas(
        gsa=gsa,
        nca=nca,
        nsr=nsr,
        nda=nda,
        sra=sra,
        nca_percentage=nca_pct,
        nsr_percentage=nsr_pct,
        nda_percentage=nda_pct,
        sra_efficiency=sra_efficiency,
        roads_ha=roads_ha,
        open_space_ha=open_space_ha,
        utilities_ha=utilities_ha,
        allocations_ha=allocations_ha,
    )
