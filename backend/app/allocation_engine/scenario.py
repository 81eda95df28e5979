"""
Scenario lifecycle: defaults, parameter updates and import migration.

Imported scenarios may come from older exports using camelCase keys, with
missing feasibility fields, or with custom categories that predate the
``custom_type`` / ``allocation_basis`` fields.  ``migrate_scenario`` fills
all of that in before validation.
"""

from __future__ import annotations

import re
import uuid
from typing import Any, Optional

from pydantic import ValidationError

from app.allocation_engine.catalog import LAND_USE_LIBRARY
from app.allocation_engine.presets import MAX_TDI
from app.config import settings
from app.models.schemas import (
    Allocation,
    FeasibilityInputs,
    Scenario,
    utc_timestamp,
)

DEFAULT_ALLOCATION_ID = "res_landed"

_UNSET = object()
_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


class ScenarioImportError(ValueError):
    """Raised when an imported payload cannot be turned into a Scenario."""


def default_allocations() -> list[Allocation]:
    return [
        Allocation(
            category_id=cat.id,
            percentage=100 if cat.id == DEFAULT_ALLOCATION_ID else 0,
            locked=False,
        )
        for cat in LAND_USE_LIBRARY
    ]


def default_scenario(scenario_id: Optional[str] = None) -> Scenario:
    """A fresh scenario with every built-in category and landed housing at 100%."""
    return Scenario(
        id=scenario_id or str(uuid.uuid4()),
        gsa=settings.default_gsa_ha,
        tdi=settings.default_tdi,
        preset_id=settings.default_preset_id,
        row_set_id=settings.default_row_set_id,
        allocations=default_allocations(),
    )


def reset_scenario(scenario: Scenario) -> Scenario:
    """Replace *scenario* with defaults, keeping its id."""
    return default_scenario(scenario.id)


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def update_parameters(
    scenario: Scenario,
    *,
    name: Optional[str] = None,
    gsa: Optional[float] = None,
    tdi: Optional[int] = None,
    preset_id: Optional[str] = None,
    row_set_id: Optional[str] = None,
    nca_override_percentage: Any = _UNSET,
    nsr_override_percentage: Any = _UNSET,
    feasibility: Optional[dict] = None,
) -> Scenario:
    """Apply site parameter changes.

    GSA is clamped at 0, TDI to 0-4, and overrides to 0-100.  Pass
    ``None`` for an override to clear it; leave it out to keep it.
    Feasibility changes are merged key by key into the current inputs.
    """
    updates: dict[str, Any] = {"timestamp": utc_timestamp()}
    if name is not None:
        updates["name"] = name
    if gsa is not None:
        updates["gsa"] = max(0.0, gsa)
    if tdi is not None:
        updates["tdi"] = int(_clamp(tdi, 0, MAX_TDI))
    if preset_id is not None:
        updates["preset_id"] = preset_id
    if row_set_id is not None:
        updates["row_set_id"] = row_set_id
    if nca_override_percentage is not _UNSET:
        updates["nca_override_percentage"] = (
            None if nca_override_percentage is None
            else _clamp(nca_override_percentage, 0, 100)
        )
    if nsr_override_percentage is not _UNSET:
        updates["nsr_override_percentage"] = (
            None if nsr_override_percentage is None
            else _clamp(nsr_override_percentage, 0, 100)
        )
    if feasibility:
        merged = {**scenario.feasibility.model_dump(), **feasibility}
        updates["feasibility"] = FeasibilityInputs.model_validate(merged)
    return scenario.model_copy(update=updates)


# ──────────────────────────────────────────────────────────────────
# IMPORT MIGRATION
# ──────────────────────────────────────────────────────────────────

def _snake(key: str) -> str:
    return _CAMEL_RE.sub("_", key).lower()


def _snake_keys(obj: Any) -> Any:
    """Recursively convert camelCase dict keys to snake_case."""
    if isinstance(obj, dict):
        return {_snake(k): _snake_keys(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_snake_keys(v) for v in obj]
    return obj


def _migrate_custom(category: dict) -> dict:
    sellable = bool(category.get("sellable"))
    category = {**category, "is_custom": True}
    category.setdefault("custom_type", "sellable" if sellable else "non-sellable")
    if not category.get("allocation_basis"):
        category["allocation_basis"] = "NDA" if sellable else "GSA"
    return category


def migrate_scenario(payload: Any) -> Scenario:
    """Build a Scenario from an exported payload, filling legacy gaps.

    Raises ScenarioImportError when the payload is not an object or does
    not validate.
    """
    if not isinstance(payload, dict):
        raise ScenarioImportError("Invalid JSON structure.")

    data = _snake_keys(payload)
    base = default_scenario().model_dump()

    merged = {**base, **{k: v for k, v in data.items() if v is not None or k.endswith("_percentage")}}
    merged["feasibility"] = {**base["feasibility"], **(data.get("feasibility") or {})}
    merged["custom_land_uses"] = [
        _migrate_custom(c) for c in (data.get("custom_land_uses") or [])
        if isinstance(c, dict)
    ]
    merged["id"] = data.get("id") or str(uuid.uuid4())
    merged["timestamp"] = utc_timestamp()

    try:
        return Scenario.model_validate(merged)
    except ValidationError as exc:
        raise ScenarioImportError(f"Invalid scenario: {exc.error_count()} validation error(s)") from exc
