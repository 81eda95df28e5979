"""
Scale presets, topography difficulty values and right-of-way sets.

Scale presets bucket target bands by project size:
  S1  Small site (5-20 ha) / urban edge
  S2  Medium (20-50 ha) / peri-urban
  S3  Large (50-150 ha) / new district
  S4  Very large (150+ ha) / new town

The topography difficulty index (TDI) maps slope classes to a constraint
allowance (NCA) target.  Right-of-way sets scale the roads share.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ScalePreset:
    id: str
    label: str
    description: str
    nsr_min: float
    nsr_max: float
    nsr_target: float
    open_space_target: float
    roads_target: float

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "description": self.description,
            "nsr_min": self.nsr_min,
            "nsr_max": self.nsr_max,
            "nsr_target": self.nsr_target,
            "open_space_target": self.open_space_target,
            "roads_target": self.roads_target,
        }


@dataclass(frozen=True)
class TopographyClass:
    index: int
    label: str
    nca_target: float


@dataclass(frozen=True)
class RowSet:
    id: str
    label: str
    primary_m: float
    secondary_m: float
    roads_multiplier: float


# ──────────────────────────────────────────────────────────────────
# TABLES
# ──────────────────────────────────────────────────────────────────

SCALE_PRESETS: dict[str, ScalePreset] = {
    "S1": ScalePreset(
        id="S1",
        label="Small site (5-20 ha) / urban edge",
        description="Non-Sellable Reserve (NSR): 20-30%, Open space: 6-12%, Roads/RoW: 12-18%",
        nsr_min=20, nsr_max=30, nsr_target=25,
        open_space_target=9, roads_target=15,
    ),
    "S2": ScalePreset(
        id="S2",
        label="Medium (20-50 ha) / peri-urban",
        description="Non-Sellable Reserve (NSR): 28-38%, Open space: 8-15%, Roads/RoW: 16-24%",
        nsr_min=28, nsr_max=38, nsr_target=33,
        open_space_target=12, roads_target=20,
    ),
    "S3": ScalePreset(
        id="S3",
        label="Large (50-150 ha) / new district",
        description="Non-Sellable Reserve (NSR): 35-45%, Open space: 10-18%, Roads/RoW: 20-30%",
        nsr_min=35, nsr_max=45, nsr_target=40,
        open_space_target=14, roads_target=25,
    ),
    "S4": ScalePreset(
        id="S4",
        label="Very large (150+ ha) / new town",
        description="Non-Sellable Reserve (NSR): 40-50%, Open space: 12-20%, Roads/RoW: 22-32%",
        nsr_min=40, nsr_max=50, nsr_target=45,
        open_space_target=16, roads_target=27,
    ),
}

TDI_VALUES: dict[int, TopographyClass] = {
    0: TopographyClass(0, "Flat / easy (0-3%)", 1.5),
    1: TopographyClass(1, "Gentle (3-7%)", 5),
    2: TopographyClass(2, "Rolling (7-12%)", 9.5),
    3: TopographyClass(3, "Steep (12-20%)", 16),
    4: TopographyClass(4, "Very steep / fragile (20-35%)", 27.5),
}

ROW_SETS: dict[str, RowSet] = {
    "A": RowSet("A", "RoW Set A (Primary 24m, Secondary 16m)", 24, 16, 1.0),
    "B": RowSet("B", "RoW Set B (Primary 30m, Secondary 20m)", 30, 20, 1.25),
    "C": RowSet("C", "RoW Set C (Primary 24m, Secondary 8m)", 24, 8, 0.8),
}

_FALLBACK_PRESET = "S3"
_FALLBACK_ROW_SET = "A"
MAX_TDI = 4


def get_scale_preset(preset_id: str) -> ScalePreset:
    """Return the scale preset, falling back to S3 for unknown ids."""
    return SCALE_PRESETS.get(preset_id, SCALE_PRESETS[_FALLBACK_PRESET])


def get_row_set(row_set_id: str) -> RowSet:
    """Return the right-of-way set, falling back to Set A for unknown ids."""
    return ROW_SETS.get(row_set_id, ROW_SETS[_FALLBACK_ROW_SET])


def get_topography(tdi: int) -> TopographyClass:
    """Return the topography class for a TDI, clamped to 0-4."""
    return TDI_VALUES[min(max(int(tdi), 0), MAX_TDI)]
