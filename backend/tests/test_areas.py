"""Tests for the GSA -> NCA / NSR / NDA / SRA area breakdown."""

import pytest

from app.allocation_engine.areas import calculate_areas
from app.allocation_engine.presets import SCALE_PRESETS
from app.allocation_engine.rebalancer import add_custom_land_use
from app.allocation_engine.scenario import default_scenario, update_parameters
from app.models.schemas import Allocation, LandUseGroup


def _scenario(**params):
    return update_parameters(default_scenario(), **params)


# ──────────────────────────────────────────────────────────────
# HEADLINE AREAS
# ──────────────────────────────────────────────────────────────

class TestHeadlineAreas:
    def test_reference_site(self):
        """100 ha, gentle slope, large-site preset."""
        areas = calculate_areas(_scenario(gsa=100, tdi=1, preset_id="S3", row_set_id="A"))
        assert areas.nca == pytest.approx(5)
        assert areas.nsr == pytest.approx(40)
        assert areas.nda == pytest.approx(55)
        assert areas.nda_percentage == pytest.approx(55)
        assert areas.nca_percentage == 5
        assert areas.nsr_percentage == 40

    def test_default_allocation_is_all_sellable(self):
        areas = calculate_areas(_scenario(gsa=100))
        assert areas.allocations_ha["res_landed"] == pytest.approx(55)
        assert areas.sra == pytest.approx(55)
        assert areas.sra_efficiency == pytest.approx(55)

    def test_every_allocation_gets_an_area(self):
        scenario = _scenario(gsa=80)
        areas = calculate_areas(scenario)
        assert set(areas.allocations_ha) == {a.category_id for a in scenario.allocations}

    def test_overrides_replace_preset_targets(self):
        areas = calculate_areas(_scenario(
            gsa=200, nca_override_percentage=10, nsr_override_percentage=30,
        ))
        assert areas.nca == pytest.approx(20)
        assert areas.nsr == pytest.approx(60)
        assert areas.nda == pytest.approx(120)
        assert areas.nca_percentage == 10
        assert areas.nsr_percentage == 30

    def test_nda_floored_at_zero(self):
        areas = calculate_areas(_scenario(gsa=100, tdi=4, nsr_override_percentage=80))
        assert areas.nda == 0
        assert areas.sra == 0
        assert areas.nda_percentage == 0

    def test_zero_gsa_yields_zeros(self):
        areas = calculate_areas(_scenario(gsa=0))
        for field in ("nca", "nsr", "nda", "sra", "nda_percentage", "sra_efficiency",
                      "roads_ha", "open_space_ha", "utilities_ha"):
            assert getattr(areas, field) == 0, field
        assert all(v == 0 for v in areas.allocations_ha.values())


# ──────────────────────────────────────────────────────────────
# RESERVE SPLIT
# ──────────────────────────────────────────────────────────────

class TestReserveSplit:
    def test_roads_and_open_space_fit(self):
        areas = calculate_areas(_scenario(gsa=100, preset_id="S3", row_set_id="A"))
        assert areas.roads_ha == pytest.approx(25)
        assert areas.open_space_ha == pytest.approx(14)
        assert areas.utilities_ha == pytest.approx(1)

    def test_wide_row_scales_down(self):
        """Set B roads (31.25) + open space (14) exceed the 40 ha reserve."""
        areas = calculate_areas(_scenario(gsa=100, preset_id="S3", row_set_id="B"))
        scale = 40 / 45.25
        assert areas.roads_ha == pytest.approx(31.25 * scale)
        assert areas.open_space_ha == pytest.approx(14 * scale)
        assert areas.roads_ha + areas.open_space_ha == pytest.approx(40)
        assert areas.utilities_ha == pytest.approx(0)

    def test_narrow_row_leaves_utilities(self):
        areas = calculate_areas(_scenario(gsa=100, preset_id="S3", row_set_id="C"))
        assert areas.roads_ha == pytest.approx(20)
        assert areas.utilities_ha == pytest.approx(6)

    def test_reserve_override_scales_split(self):
        areas = calculate_areas(_scenario(gsa=100, nsr_override_percentage=30))
        assert areas.roads_ha + areas.open_space_ha == pytest.approx(30)


# ──────────────────────────────────────────────────────────────
# CUSTOM RESERVE
# ──────────────────────────────────────────────────────────────

class TestCustomReserve:
    def test_gsa_basis_custom_adds_to_reserve(self):
        result = add_custom_land_use(
            _scenario(gsa=100), "Fire Station", "non-sellable", LandUseGroup.CIVIC, 5,
        )
        areas = calculate_areas(result.scenario)
        assert areas.nsr == pytest.approx(45)
        assert areas.nda == pytest.approx(50)
        assert areas.utilities_ha == pytest.approx(6)
        assert areas.allocations_ha[result.category_id] == pytest.approx(5)
        assert areas.allocations_ha["res_landed"] == pytest.approx(50)
        assert areas.sra == pytest.approx(50)

    def test_custom_reserve_not_counted_as_sellable(self):
        result = add_custom_land_use(
            _scenario(gsa=100), "Water Tower", "non-sellable", LandUseGroup.SPECIAL, 3,
        )
        areas = calculate_areas(result.scenario)
        assert areas.sra == pytest.approx(areas.nda)

    def test_unknown_category_treated_as_nda_and_unsellable(self):
        scenario = _scenario(gsa=100)
        scenario = scenario.model_copy(update={
            "allocations": [*scenario.allocations, Allocation(category_id="ghost", percentage=10)],
        })
        areas = calculate_areas(scenario)
        assert areas.allocations_ha["ghost"] == pytest.approx(5.5)
        assert areas.sra == pytest.approx(55)


# ──────────────────────────────────────────────────────────────
# INVARIANTS
# ──────────────────────────────────────────────────────────────

class TestAreaInvariants:
    @pytest.mark.parametrize("gsa", [1, 37.5, 100, 1234])
    @pytest.mark.parametrize("tdi", [0, 1, 2, 3, 4])
    @pytest.mark.parametrize("preset_id", list(SCALE_PRESETS))
    def test_components_add_up_to_gsa(self, gsa, tdi, preset_id):
        for row_set_id in ("A", "B", "C"):
            areas = calculate_areas(_scenario(
                gsa=gsa, tdi=tdi, preset_id=preset_id, row_set_id=row_set_id,
            ))
            assert areas.nca + areas.nsr + areas.nda == pytest.approx(gsa)
            assert areas.roads_ha + areas.open_space_ha <= areas.nsr + 1e-9
            assert areas.nda >= 0
            assert areas.sra <= areas.nda + 1e-9
