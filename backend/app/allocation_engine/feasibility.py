"""
Cost / revenue / profit estimate from an area breakdown.

Two pricing models:

  land-sale        Serviced plots are sold as land.  No build cost.
  build-and-sell   Residential and commercial plots are built out at their
                   coverage ratio and the floor area is sold.  Other
                   sellable plots are still sold as land.

Costs are land acquisition over the whole GSA plus road construction over
the roads area.  Rates are per square metre; areas arrive in hectares.

This is a total function: rates are not validated, so negative or
non-finite inputs propagate into the outputs.
"""

from __future__ import annotations

from app.allocation_engine.catalog import CatalogRegistry
from app.models.schemas import (
    CalculatedAreas,
    FeasibilityInputs,
    FeasibilityOutputs,
    LandUseGroup,
)

SQM_PER_HA = 10_000


def bucket_sellable_areas(
    areas: CalculatedAreas,
    catalog: CatalogRegistry,
) -> dict[str, float]:
    """Aggregate per-category hectares into residential / commercial / other.

    ``other`` holds sellable categories outside the residential and
    commercial groups.
    """
    buckets = {"residential": 0.0, "commercial": 0.0, "other": 0.0}
    for category_id, ha in areas.allocations_ha.items():
        cat = catalog.get(category_id)
        if cat is None:
            continue
        if cat.group == LandUseGroup.RESIDENTIAL:
            buckets["residential"] += ha
        elif cat.group == LandUseGroup.COMMERCIAL:
            buckets["commercial"] += ha
        elif cat.sellable:
            buckets["other"] += ha
    return buckets


def calculate_feasibility(
    inputs: FeasibilityInputs,
    areas: CalculatedAreas,
    catalog: CatalogRegistry,
) -> FeasibilityOutputs:
    """Convert an area breakdown into cost, revenue and profit figures."""
    gsa_sqm = areas.gsa * SQM_PER_HA
    roads_sqm = areas.roads_ha * SQM_PER_HA

    land_acquisition_cost = gsa_sqm * inputs.land_acquisition_cost
    infrastructure_cost = roads_sqm * inputs.roads_cost_rate

    buckets = bucket_sellable_areas(areas, catalog)
    res_sqm = buckets["residential"] * SQM_PER_HA
    com_sqm = buckets["commercial"] * SQM_PER_HA
    other_sqm = buckets["other"] * SQM_PER_HA

    other_revenue = other_sqm * inputs.custom_sellable_sale_price

    if inputs.build_model == "build-and-sell":
        res_built = res_sqm * inputs.residential_coverage / 100
        com_built = com_sqm * inputs.commercial_coverage / 100
        build_cost = (
            res_built * inputs.residential_build_cost
            + com_built * inputs.commercial_build_cost
        )
        total_revenue = (
            res_built * inputs.residential_sale_price
            + com_built * inputs.commercial_sale_price
            + other_revenue
        )
    else:
        build_cost = 0.0
        total_revenue = (
            res_sqm * inputs.residential_sale_price
            + com_sqm * inputs.commercial_sale_price
            + other_revenue
        )

    total_cost = land_acquisition_cost + infrastructure_cost + build_cost
    profit = total_revenue - total_cost
    profit_margin = profit / total_revenue * 100 if total_revenue > 0 else 0.0
    profit_per_ha = profit / areas.gsa if areas.gsa > 0 else 0.0

    return FeasibilityOutputs(
        land_acquisition_cost=land_acquisition_cost,
        infrastructure_cost=infrastructure_cost,
        build_cost=build_cost,
        total_cost=total_cost,
        total_revenue=total_revenue,
        profit=profit,
        profit_margin=profit_margin,
        profit_per_ha=profit_per_ha,
    )
