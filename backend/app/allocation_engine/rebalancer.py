"""
Allocation rebalancer: state transitions over a scenario's allocation set.

Every operation takes a ``Scenario`` and returns a new one; the input is
never mutated, and intermediate (pre-redistribution) states are never
returned.

Allocations are split by the basis of their category:

  NDA basis   shares of net developable area.  The unlocked NDA entries are
              kept summing to 100% minus the locked NDA entries.  Editing one
              redistributes the difference across the other unlocked entries
              in proportion to their current values.
  GSA basis   non-sellable public facilities carved straight out of the
              gross site area.  Independent; editing one never touches the
              others.

Locked allocations are held fixed by every redistribution.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from app.allocation_engine.areas import calculate_areas
from app.allocation_engine.catalog import CatalogRegistry
from app.allocation_engine.rounding import largest_remainder_rounding
from app.models.schemas import (
    Allocation,
    AllocationBasis,
    CustomType,
    LandUseCategory,
    LandUseGroup,
    Scenario,
    TargetBand,
    utc_timestamp,
)

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────────────────────────
# RESULTS
# ──────────────────────────────────────────────────────────────────

class CustomLandUseError(str, Enum):
    EMPTY_NAME = "empty-name"
    PERCENTAGE_OUT_OF_RANGE = "percentage-out-of-range"
    CAPACITY_EXCEEDED = "capacity-exceeded"


ERROR_MESSAGES: dict[CustomLandUseError, str] = {
    CustomLandUseError.EMPTY_NAME: "Name is required.",
    CustomLandUseError.PERCENTAGE_OUT_OF_RANGE: "Allocation must be between 0 and 100%.",
    CustomLandUseError.CAPACITY_EXCEEDED: (
        "Total allocation cannot exceed 100%. "
        "Unlock or reduce existing rows first."
    ),
}


@dataclass
class CustomLandUseResult:
    """Outcome of ``add_custom_land_use``.

    On failure ``scenario`` is the unchanged input scenario.
    """
    ok: bool
    scenario: Scenario
    error: Optional[CustomLandUseError] = None
    category_id: Optional[str] = None

    @property
    def message(self) -> str:
        return ERROR_MESSAGES[self.error] if self.error else ""

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "error": self.error.value if self.error else None,
            "message": self.message,
            "category_id": self.category_id,
        }


# ──────────────────────────────────────────────────────────────────
# HELPERS
# ──────────────────────────────────────────────────────────────────

def _clamp_pct(value: float) -> float:
    return max(0.0, min(100.0, value))


def _touch(scenario: Scenario, **updates) -> Scenario:
    """Copy *scenario* with *updates* applied and a fresh timestamp."""
    updates["timestamp"] = utc_timestamp()
    return scenario.model_copy(update=updates)


def _copy_allocations(scenario: Scenario) -> list[Allocation]:
    return [a.model_copy() for a in scenario.allocations]


def _index_of(allocations: list[Allocation], category_id: str) -> Optional[int]:
    for i, a in enumerate(allocations):
        if a.category_id == category_id:
            return i
    return None


def _nda_indexes(allocations: list[Allocation], catalog: CatalogRegistry) -> list[int]:
    return [
        i for i, a in enumerate(allocations)
        if catalog.basis_of(a.category_id) == AllocationBasis.NDA
    ]


def _normalize_unlocked(allocations: list[Allocation], nda_idx: list[int]) -> None:
    """Round unlocked NDA entries so they fill 100% minus the locked ones."""
    locked_sum = sum(allocations[i].percentage for i in nda_idx if allocations[i].locked)
    unlocked = [i for i in nda_idx if not allocations[i].locked]
    rounded = largest_remainder_rounding(
        [allocations[i].percentage for i in unlocked],
        100 - locked_sum,
    )
    for i, value in zip(unlocked, rounded):
        allocations[i].percentage = value


def unlocked_nda_total(scenario: Scenario, catalog: Optional[CatalogRegistry] = None) -> float:
    """Sum of unlocked NDA percentages: the pool a sellable addition can draw from."""
    if catalog is None:
        catalog = CatalogRegistry(scenario.custom_land_uses)
    return sum(
        a.percentage for a in scenario.allocations
        if not a.locked and catalog.basis_of(a.category_id) == AllocationBasis.NDA
    )


# ──────────────────────────────────────────────────────────────────
# OPERATIONS
# ──────────────────────────────────────────────────────────────────

def set_allocation(scenario: Scenario, category_id: str, percentage: float) -> Scenario:
    """Set one allocation and redistribute the difference.

    GSA-basis entries are replaced in isolation.  For NDA-basis entries the
    change is taken from (or given to) the other unlocked NDA entries in
    proportion to their current values, each floored at 0, and the unlocked
    NDA set is then re-rounded onto ``100 - locked``.  With no other
    unlocked NDA entries the value is set as-is and the 100% sum is not
    preserved.
    """
    catalog = CatalogRegistry(scenario.custom_land_uses)
    allocations = _copy_allocations(scenario)

    target_idx = _index_of(allocations, category_id)
    if target_idx is None:
        logger.warning("set_allocation: unknown category %s", category_id)
        return scenario

    new_pct = _clamp_pct(percentage)
    delta = new_pct - allocations[target_idx].percentage
    allocations[target_idx].percentage = new_pct

    if catalog.basis_of(category_id) == AllocationBasis.GSA:
        return _touch(scenario, allocations=allocations)

    nda_idx = _nda_indexes(allocations, catalog)
    others = [i for i in nda_idx if i != target_idx and not allocations[i].locked]
    if not others:
        return _touch(scenario, allocations=allocations)

    others_total = sum(allocations[i].percentage for i in others)
    for i in others:
        if others_total > 0:
            share = allocations[i].percentage / others_total
        else:
            share = 1 / len(others)
        allocations[i].percentage = max(0.0, allocations[i].percentage - delta * share)

    _normalize_unlocked(allocations, nda_idx)
    return _touch(scenario, allocations=allocations)


def set_allocation_hectares(scenario: Scenario, category_id: str, hectares: float) -> Scenario:
    """Set an allocation from a hectare figure.

    The hectares are converted against the category's basis area (GSA or
    the current NDA) and only the resulting percentage is kept.  Returns
    the scenario unchanged when the basis area is zero.
    """
    catalog = CatalogRegistry(scenario.custom_land_uses)
    if _index_of(scenario.allocations, category_id) is None:
        logger.warning("set_allocation_hectares: unknown category %s", category_id)
        return scenario

    areas = calculate_areas(scenario, catalog)
    if catalog.basis_of(category_id) == AllocationBasis.GSA:
        base_area = areas.gsa
    else:
        base_area = areas.nda
    if base_area <= 0:
        return scenario

    ha = max(0.0, hectares)
    return set_allocation(scenario, category_id, min(100.0, ha / base_area * 100))


def toggle_lock(scenario: Scenario, category_id: str) -> Scenario:
    """Flip the lock on one allocation."""
    allocations = _copy_allocations(scenario)
    idx = _index_of(allocations, category_id)
    if idx is None:
        logger.warning("toggle_lock: unknown category %s", category_id)
        return scenario
    allocations[idx].locked = not allocations[idx].locked
    return _touch(scenario, allocations=allocations)


def rebalance_to_preset(scenario: Scenario) -> Scenario:
    """Spread the unlocked NDA share in proportion to each category's band target.

    Locked entries keep their values; the unlocked entries end up summing
    to ``100 - locked``.  Falls back to an equal split when every unlocked
    target is 0.  No-op when nothing is unlocked or the locked entries
    already take 100% or more.
    """
    catalog = CatalogRegistry(scenario.custom_land_uses)
    allocations = _copy_allocations(scenario)
    nda_idx = _nda_indexes(allocations, catalog)

    locked_sum = sum(allocations[i].percentage for i in nda_idx if allocations[i].locked)
    unlocked = [i for i in nda_idx if not allocations[i].locked]
    remaining = 100 - locked_sum
    if not unlocked or remaining <= 0:
        return scenario

    targets = []
    for i in unlocked:
        cat = catalog.get(allocations[i].category_id)
        targets.append(cat.default_band.target if cat else 0)
    target_total = sum(targets)

    if target_total > 0:
        shares = [t / target_total * remaining for t in targets]
    else:
        shares = [remaining / len(unlocked)] * len(unlocked)

    for i, value in zip(unlocked, largest_remainder_rounding(shares, remaining)):
        allocations[i].percentage = value
    return _touch(scenario, allocations=allocations)


def _dedupe_label(label: str, catalog: CatalogRegistry) -> str:
    taken = catalog.labels()
    if label.lower() not in taken:
        return label
    n = 2
    while f"{label} ({n})".lower() in taken:
        n += 1
    return f"{label} ({n})"


def add_custom_land_use(
    scenario: Scenario,
    name: str,
    custom_type: CustomType,
    group: LandUseGroup,
    percentage: float,
    custom_category: Optional[str] = None,
) -> CustomLandUseResult:
    """Create a custom land-use category and its allocation.

    Sellable customs take the NDA basis and must fit in the unlocked NDA
    pool.  Non-sellable customs take the GSA basis and are added to the
    reserve.  Labels are de-duplicated case-insensitively across the whole
    catalog.  A non-zero *percentage* is applied through ``set_allocation``.
    """
    catalog = CatalogRegistry(scenario.custom_land_uses)
    trimmed = (name or "").strip()
    if not trimmed:
        return CustomLandUseResult(False, scenario, CustomLandUseError.EMPTY_NAME)
    if percentage < 0 or percentage > 100:
        return CustomLandUseResult(False, scenario, CustomLandUseError.PERCENTAGE_OUT_OF_RANGE)

    sellable = custom_type == "sellable"
    if sellable and percentage > unlocked_nda_total(scenario, catalog):
        return CustomLandUseResult(False, scenario, CustomLandUseError.CAPACITY_EXCEEDED)

    category = LandUseCategory(
        id=f"custom_{uuid.uuid4()}",
        label=_dedupe_label(trimmed, catalog),
        group=group,
        sellable=sellable,
        allocation_basis=AllocationBasis.NDA if sellable else AllocationBasis.GSA,
        default_band=TargetBand(),
        is_custom=True,
        custom_type=custom_type,
        custom_category=custom_category or (
            "Other (Sellable)" if sellable else "Other (Non-sellable)"
        ),
    )
    updated = _touch(
        scenario,
        custom_land_uses=[*scenario.custom_land_uses, category],
        allocations=[
            *_copy_allocations(scenario),
            Allocation(category_id=category.id, percentage=0, locked=False),
        ],
    )
    logger.info("Added custom land use %s (%s, %s)", category.label, category.id, custom_type)

    if percentage > 0:
        updated = set_allocation(updated, category.id, percentage)
    return CustomLandUseResult(True, updated, category_id=category.id)


def remove_custom_land_use(scenario: Scenario, category_id: str) -> Scenario:
    """Remove a custom category and its allocation.

    The freed share is left unallocated; nothing is redistributed.
    Built-in and unknown ids are ignored.
    """
    if not any(c.id == category_id for c in scenario.custom_land_uses):
        logger.warning("remove_custom_land_use: %s is not a custom category", category_id)
        return scenario
    return _touch(
        scenario,
        custom_land_uses=[c for c in scenario.custom_land_uses if c.id != category_id],
        allocations=[a.model_copy() for a in scenario.allocations if a.category_id != category_id],
    )
