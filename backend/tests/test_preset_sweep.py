"""Tests for the preset sweep script (direct engine mode)."""

import importlib.util
from pathlib import Path

import pytest

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "preset_sweep.py"


@pytest.fixture(scope="module")
def sweep():
    spec = importlib.util.spec_from_file_location("preset_sweep", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestPresetSweep:
    def test_full_grid(self, sweep):
        cases = sweep.sweep_cases()
        assert len(cases) == 4 * 5 * 3
        assert cases[0] == {"preset_id": "S1", "tdi": 0, "row_set_id": "A"}

    def test_filtered_grid(self, sweep):
        assert len(sweep.sweep_cases(presets=["S2"])) == 15

    def test_direct_case_rebalanced(self, sweep):
        result = sweep.run_direct_case(100, {"preset_id": "S3", "tdi": 1, "row_set_id": "A"})
        assert result["areas"]["nda"] == pytest.approx(55)
        # sellable band targets total 89% of NDA
        assert result["areas"]["sra"] == pytest.approx(55 * 0.89)

    def test_direct_case_without_rebalance(self, sweep):
        result = sweep.run_direct_case(
            100, {"preset_id": "S3", "tdi": 1, "row_set_id": "A"}, rebalance=False,
        )
        assert result["areas"]["sra"] == pytest.approx(55)

    def test_format_result(self, sweep):
        case = {"preset_id": "S4", "tdi": 2, "row_set_id": "B"}
        line = sweep.format_result(case, sweep.run_direct_case(250, case))
        assert "S4 / TDI 2 / RoW B" in line
        assert "NDA" in line

    def test_format_error(self, sweep):
        case = {"preset_id": "S1", "tdi": 0, "row_set_id": "A"}
        assert "ERROR: boom" in sweep.format_result(case, {"error": "boom"})
