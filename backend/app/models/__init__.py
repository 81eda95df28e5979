from __future__ import annotations

from app.models.schemas import (
    Allocation,
    AllocationBasis,
    CalculatedAreas,
    FeasibilityInputs,
    FeasibilityOutputs,
    LandUseCategory,
    LandUseGroup,
    Scenario,
)

__all__ = [
    "Allocation",
    "AllocationBasis",
    "CalculatedAreas",
    "FeasibilityInputs",
    "FeasibilityOutputs",
    "LandUseCategory",
    "LandUseGroup",
    "Scenario",
]
