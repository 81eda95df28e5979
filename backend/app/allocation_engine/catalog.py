"""
Land-use catalog: the built-in library plus per-scenario custom categories.

The built-in library is static data.  Custom categories live on the
scenario and are only added or removed by the allocation rebalancer.
``CatalogRegistry`` is a read-through view over both sources, keyed by
stable string id::

    catalog = CatalogRegistry(scenario.custom_land_uses)
    cat = catalog.get("res_landed")
"""

from __future__ import annotations

from typing import Iterable, Optional

from app.models.schemas import (
    AllocationBasis,
    LandUseCategory,
    LandUseGroup,
    TargetBand,
)


def _builtin(
    id: str,
    label: str,
    group: LandUseGroup,
    sellable: bool,
    band: tuple[float, float, float],
) -> LandUseCategory:
    lo, hi, target = band
    return LandUseCategory(
        id=id,
        label=label,
        group=group,
        sellable=sellable,
        allocation_basis=AllocationBasis.NDA,
        default_band=TargetBand(min=lo, max=hi, target=target),
    )


# ──────────────────────────────────────────────────────────────────
# BUILT-IN LIBRARY
# ──────────────────────────────────────────────────────────────────
# Bands are % of NDA: (min, max, target).

LAND_USE_LIBRARY: tuple[LandUseCategory, ...] = (
    _builtin("res_landed", "Landed Housing", LandUseGroup.RESIDENTIAL, True, (30, 60, 40)),
    _builtin("res_townhouse", "Townhouses", LandUseGroup.RESIDENTIAL, True, (5, 20, 10)),
    _builtin("res_apartment", "Apartments / Mid-rise", LandUseGroup.RESIDENTIAL, True, (5, 20, 10)),
    _builtin("res_affordable", "Affordable Housing", LandUseGroup.RESIDENTIAL, True, (5, 15, 8)),
    _builtin("com_retail", "Retail & Shophouses", LandUseGroup.COMMERCIAL, True, (3, 10, 6)),
    _builtin("com_office", "Office", LandUseGroup.COMMERCIAL, True, (0, 8, 3)),
    _builtin("com_hospitality", "Hotel & Hospitality", LandUseGroup.COMMERCIAL, True, (0, 6, 2)),
    _builtin("mixed_use", "Mixed-use Centre", LandUseGroup.MIXED_USE, True, (0, 10, 4)),
    _builtin("emp_business_park", "Business Park", LandUseGroup.EMPLOYMENT, True, (0, 10, 3)),
    _builtin("ind_light", "Light Industrial", LandUseGroup.INDUSTRIAL, True, (0, 10, 2)),
    _builtin("ind_logistics", "Logistics & Warehousing", LandUseGroup.INDUSTRIAL, True, (0, 8, 1)),
    _builtin("civic_school", "School", LandUseGroup.CIVIC, False, (2, 6, 4)),
    _builtin("civic_health", "Health Clinic", LandUseGroup.CIVIC, False, (1, 3, 2)),
    _builtin("civic_worship", "Place of Worship", LandUseGroup.CIVIC, False, (1, 3, 2)),
    _builtin("civic_community", "Community Centre", LandUseGroup.CIVIC, False, (1, 3, 1.5)),
    _builtin("special_utility", "Utility Plot (substation, water, waste)", LandUseGroup.SPECIAL, False, (1, 3, 1.5)),
)

_LIBRARY_BY_ID: dict[str, LandUseCategory] = {c.id: c for c in LAND_USE_LIBRARY}


class CatalogRegistry:
    """Read-only lookup over built-in and custom land-use categories."""

    def __init__(self, custom_land_uses: Optional[Iterable[LandUseCategory]] = None):
        self._custom: dict[str, LandUseCategory] = {
            c.id: c for c in (custom_land_uses or [])
        }

    def list(self) -> list[LandUseCategory]:
        """Built-in categories first, then custom ones in insertion order."""
        return [*LAND_USE_LIBRARY, *self._custom.values()]

    def get(self, category_id: str) -> Optional[LandUseCategory]:
        return _LIBRARY_BY_ID.get(category_id) or self._custom.get(category_id)

    def is_builtin(self, category_id: str) -> bool:
        return category_id in _LIBRARY_BY_ID

    def is_custom(self, category_id: str) -> bool:
        return category_id in self._custom

    def basis_of(self, category_id: str) -> AllocationBasis:
        """Allocation basis of a category; unknown ids count as NDA."""
        cat = self.get(category_id)
        return cat.allocation_basis if cat else AllocationBasis.NDA

    def labels(self) -> set[str]:
        """Lower-cased labels across both sources, for de-duplication."""
        return {c.label.lower() for c in self.list()}


def builtin_category_ids() -> list[str]:
    return [c.id for c in LAND_USE_LIBRARY]
