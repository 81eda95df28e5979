from __future__ import annotations

from app.allocation_engine.areas import calculate_areas
from app.allocation_engine.catalog import CatalogRegistry, LAND_USE_LIBRARY
from app.allocation_engine.feasibility import calculate_feasibility
from app.allocation_engine.rounding import largest_remainder_rounding

__all__ = [
    "CatalogRegistry",
    "LAND_USE_LIBRARY",
    "calculate_areas",
    "calculate_feasibility",
    "largest_remainder_rounding",
]
