from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class LandUseGroup(str, Enum):
    RESIDENTIAL = "Residential"
    COMMERCIAL = "Commercial"
    CIVIC = "Civic"
    SPECIAL = "Special"
    EMPLOYMENT = "Employment"
    INDUSTRIAL = "Industrial"
    MIXED_USE = "Mixed-use"
    OTHER = "Other"


class AllocationBasis(str, Enum):
    NDA = "NDA"  # share of net developable area
    GSA = "GSA"  # carved directly out of gross site area


CustomType = Literal["sellable", "non-sellable"]
BuildModel = Literal["land-sale", "build-and-sell"]


# ──────────────────────────────────────────────────────────────────
# CATALOG & ALLOCATIONS
# ──────────────────────────────────────────────────────────────────

class TargetBand(BaseModel):
    """Percentage guidance for a category; shown to planners, never enforced."""
    min: float = 0
    max: float = 0
    target: float = 0


class LandUseCategory(BaseModel):
    id: str
    label: str
    group: LandUseGroup
    sellable: bool
    allocation_basis: AllocationBasis = AllocationBasis.NDA
    default_band: TargetBand = Field(default_factory=TargetBand)
    is_custom: bool = False
    custom_type: Optional[CustomType] = None
    custom_category: Optional[str] = None  # free-text sub-category label


class Allocation(BaseModel):
    category_id: str
    percentage: float = 0  # % of NDA or GSA depending on category basis
    locked: bool = False


# ──────────────────────────────────────────────────────────────────
# SCENARIO
# ──────────────────────────────────────────────────────────────────

class FeasibilityInputs(BaseModel):
    """Unit rates.  Money is per square metre, coverage is percent."""
    land_acquisition_cost: float = 1_000_000
    roads_cost_rate: float = 500_000
    residential_sale_price: float = 5_000_000
    commercial_sale_price: float = 8_000_000
    custom_sellable_sale_price: float = 6_000_000
    build_model: BuildModel = "land-sale"
    residential_build_cost: float = 3_000_000
    commercial_build_cost: float = 4_000_000
    residential_coverage: float = 60
    commercial_coverage: float = 70


class Scenario(BaseModel):
    id: str
    name: str = "Untitled Scenario"
    gsa: float = 100  # hectares
    tdi: int = 1  # topography difficulty index, 0-4
    preset_id: str = "S3"
    row_set_id: str = "A"
    nca_override_percentage: Optional[float] = None
    nsr_override_percentage: Optional[float] = None
    custom_land_uses: list[LandUseCategory] = []
    allocations: list[Allocation] = []
    feasibility: FeasibilityInputs = Field(default_factory=FeasibilityInputs)
    version: str = "0.0"
    timestamp: str = Field(default_factory=utc_timestamp)


# ──────────────────────────────────────────────────────────────────
# DERIVED OUTPUTS
# ──────────────────────────────────────────────────────────────────

class CalculatedAreas(BaseModel):
    gsa: float
    nca: float  # constraint allowance, ha
    nsr: float  # non-sellable reserve, ha
    nda: float  # net developable area, ha
    sra: float  # sellable / revenue area, ha
    nca_percentage: float
    nsr_percentage: float
    nda_percentage: float
    sra_efficiency: float  # SRA / GSA, %
    roads_ha: float
    open_space_ha: float
    utilities_ha: float
    allocations_ha: dict[str, float] = {}


class FeasibilityOutputs(BaseModel):
    land_acquisition_cost: float
    infrastructure_cost: float
    build_cost: float
    total_cost: float
    total_revenue: float
    profit: float
    profit_margin: float  # % of revenue
    profit_per_ha: float


class ScenarioSummary(BaseModel):
    scenario: Scenario
    areas: CalculatedAreas
    feasibility: FeasibilityOutputs


# ──────────────────────────────────────────────────────────────────
# REQUESTS
# ──────────────────────────────────────────────────────────────────

class FeasibilityUpdate(BaseModel):
    """Partial FeasibilityInputs; only the fields sent are merged."""
    land_acquisition_cost: Optional[float] = None
    roads_cost_rate: Optional[float] = None
    residential_sale_price: Optional[float] = None
    commercial_sale_price: Optional[float] = None
    custom_sellable_sale_price: Optional[float] = None
    build_model: Optional[BuildModel] = None
    residential_build_cost: Optional[float] = None
    commercial_build_cost: Optional[float] = None
    residential_coverage: Optional[float] = None
    commercial_coverage: Optional[float] = None


class ParameterUpdateRequest(BaseModel):
    name: Optional[str] = None
    gsa: Optional[float] = None
    tdi: Optional[int] = None
    preset_id: Optional[str] = None
    row_set_id: Optional[str] = None
    nca_override_percentage: Optional[float] = None
    nsr_override_percentage: Optional[float] = None
    clear_nca_override: bool = False
    clear_nsr_override: bool = False
    feasibility: Optional[FeasibilityUpdate] = None


class AllocationUpdateRequest(BaseModel):
    percentage: Optional[float] = None
    hectares: Optional[float] = None


class CustomLandUseRequest(BaseModel):
    name: str
    type: CustomType
    group: LandUseGroup = LandUseGroup.OTHER
    percentage: float = 0
    category: Optional[str] = None
