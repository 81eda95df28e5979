"""Tests for scenario defaults, parameter updates and import migration."""

import pytest

from app.allocation_engine.catalog import LAND_USE_LIBRARY
from app.allocation_engine.rebalancer import set_allocation
from app.allocation_engine.scenario import (
    ScenarioImportError,
    default_allocations,
    default_scenario,
    migrate_scenario,
    reset_scenario,
    update_parameters,
)
from app.models.schemas import AllocationBasis


class TestDefaults:
    def test_one_allocation_per_builtin(self):
        allocations = default_allocations()
        assert [a.category_id for a in allocations] == [c.id for c in LAND_USE_LIBRARY]

    def test_landed_housing_takes_everything(self):
        allocations = {a.category_id: a.percentage for a in default_allocations()}
        assert allocations["res_landed"] == 100
        assert sum(allocations.values()) == 100
        assert not any(a.locked for a in default_allocations())

    def test_default_scenario(self):
        scenario = default_scenario()
        assert scenario.name == "Untitled Scenario"
        assert scenario.gsa == 100
        assert scenario.tdi == 1
        assert scenario.preset_id == "S3"
        assert scenario.row_set_id == "A"
        assert scenario.custom_land_uses == []
        assert scenario.feasibility.build_model == "land-sale"

    def test_ids_unique(self):
        assert default_scenario().id != default_scenario().id

    def test_reset_keeps_id(self):
        edited = update_parameters(default_scenario("abc"), name="Edited", gsa=12)
        edited = set_allocation(edited, "res_townhouse", 40)
        reset = reset_scenario(edited)
        assert reset.id == "abc"
        assert reset.name == "Untitled Scenario"
        assert reset.gsa == 100
        assert reset.allocations == default_allocations()


class TestUpdateParameters:
    def test_basic_fields(self):
        s = update_parameters(
            default_scenario(), name="North Estate", gsa=42.5, tdi=3, preset_id="S2", row_set_id="C",
        )
        assert (s.name, s.gsa, s.tdi, s.preset_id, s.row_set_id) == ("North Estate", 42.5, 3, "S2", "C")

    def test_unspecified_fields_kept(self):
        base = update_parameters(default_scenario(), gsa=12)
        assert update_parameters(base, name="x").gsa == 12

    def test_gsa_clamped_at_zero(self):
        assert update_parameters(default_scenario(), gsa=-5).gsa == 0

    @pytest.mark.parametrize("tdi,expected", [(-1, 0), (9, 4), (2, 2)])
    def test_tdi_clamped(self, tdi, expected):
        assert update_parameters(default_scenario(), tdi=tdi).tdi == expected

    def test_overrides_clamped_and_cleared(self):
        s = update_parameters(default_scenario(), nca_override_percentage=150, nsr_override_percentage=-3)
        assert s.nca_override_percentage == 100
        assert s.nsr_override_percentage == 0
        s = update_parameters(s, nca_override_percentage=None)
        assert s.nca_override_percentage is None
        assert s.nsr_override_percentage == 0

    def test_feasibility_merged(self):
        s = update_parameters(default_scenario(), feasibility={"build_model": "build-and-sell"})
        s = update_parameters(s, feasibility={"residential_coverage": 45})
        assert s.feasibility.build_model == "build-and-sell"
        assert s.feasibility.residential_coverage == 45
        assert s.feasibility.residential_sale_price == 5_000_000


class TestMigrateScenario:
    LEGACY = {
        "id": "legacy-1",
        "name": "Imported",
        "gsa": 50,
        "tdi": 2,
        "presetId": "S2",
        "rowSetId": "B",
        "ncaOverridePercentage": None,
        "nsrOverridePercentage": 20,
        "customLandUses": [{
            "id": "custom_x",
            "label": "Kiosk",
            "group": "Commercial",
            "sellable": False,
            "defaultBand": {"min": 0, "max": 100, "target": 0},
        }],
        "allocations": [
            {"categoryId": "res_landed", "percentage": 100, "locked": False},
            {"categoryId": "custom_x", "percentage": 2, "locked": True},
        ],
        "feasibility": {"buildModel": "build-and-sell"},
        "version": "0.0",
    }

    def test_camel_case_keys(self):
        s = migrate_scenario(self.LEGACY)
        assert s.id == "legacy-1"
        assert s.preset_id == "S2"
        assert s.row_set_id == "B"
        assert s.nsr_override_percentage == 20
        assert s.nca_override_percentage is None
        assert s.allocations[1].category_id == "custom_x"
        assert s.allocations[1].locked is True

    def test_custom_fields_inferred(self):
        cat = migrate_scenario(self.LEGACY).custom_land_uses[0]
        assert cat.is_custom is True
        assert cat.custom_type == "non-sellable"
        assert cat.allocation_basis == AllocationBasis.GSA
        assert cat.default_band.max == 100

    def test_feasibility_defaults_merged(self):
        f = migrate_scenario(self.LEGACY).feasibility
        assert f.build_model == "build-and-sell"
        assert f.residential_sale_price == 5_000_000
        assert f.commercial_coverage == 70

    def test_existing_basis_kept(self):
        payload = {
            "customLandUses": [{
                "id": "custom_y", "label": "Stall", "group": "Other",
                "sellable": True, "customType": "sellable", "allocationBasis": "NDA",
            }],
        }
        cat = migrate_scenario(payload).custom_land_uses[0]
        assert cat.allocation_basis == AllocationBasis.NDA
        assert cat.custom_type == "sellable"

    def test_missing_fields_get_defaults(self):
        s = migrate_scenario({"name": "Bare"})
        assert s.name == "Bare"
        assert s.id
        assert len(s.allocations) == len(LAND_USE_LIBRARY)

    @pytest.mark.parametrize("payload", [None, [], "scenario", 42])
    def test_non_object_rejected(self, payload):
        with pytest.raises(ScenarioImportError):
            migrate_scenario(payload)

    def test_invalid_field_rejected(self):
        with pytest.raises(ScenarioImportError):
            migrate_scenario({"tdi": "steep"})
