#!/usr/bin/env python3
"""
Sweep the scale presets, topography classes and RoW sets for a site.

Prints the area breakdown and feasibility for every combination so the
preset tables can be reviewed by hand.  Runs against the live API or by
importing the engine directly.

Usage:
    # Direct import (no server needed):
    python3 scripts/preset_sweep.py --gsa 120

    # Against live API:
    python3 scripts/preset_sweep.py --gsa 120 --api http://localhost:8000
"""

from __future__ import annotations

import argparse
import asyncio
import itertools
import os
import sys

# Add backend to path for direct import mode
SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
BACKEND_DIR = os.path.join(os.path.dirname(SCRIPT_DIR), "backend")
sys.path.insert(0, BACKEND_DIR)

PRESET_IDS = ["S1", "S2", "S3", "S4"]
TDI_RANGE = [0, 1, 2, 3, 4]
ROW_SET_IDS = ["A", "B", "C"]


def sweep_cases(presets=None, tdis=None, row_sets=None) -> list[dict]:
    return [
        {"preset_id": p, "tdi": t, "row_set_id": r}
        for p, t, r in itertools.product(
            presets or PRESET_IDS, tdis or TDI_RANGE, row_sets or ROW_SET_IDS,
        )
    ]


# ──────────────────────────────────────────────────────────────────
# DIRECT ENGINE MODE (no server needed)
# ──────────────────────────────────────────────────────────────────

def run_direct_case(gsa: float, case: dict, rebalance: bool = True) -> dict:
    from app.allocation_engine.areas import calculate_areas
    from app.allocation_engine.catalog import CatalogRegistry
    from app.allocation_engine.feasibility import calculate_feasibility
    from app.allocation_engine.rebalancer import rebalance_to_preset
    from app.allocation_engine.scenario import default_scenario, update_parameters

    scenario = update_parameters(default_scenario(), gsa=gsa, **case)
    if rebalance:
        scenario = rebalance_to_preset(scenario)

    catalog = CatalogRegistry(scenario.custom_land_uses)
    areas = calculate_areas(scenario, catalog)
    feasibility = calculate_feasibility(scenario.feasibility, areas, catalog)
    return {"areas": areas.model_dump(), "feasibility": feasibility.model_dump()}


# ──────────────────────────────────────────────────────────────────
# API MODE
# ──────────────────────────────────────────────────────────────────

async def run_api_case(gsa: float, case: dict, api_base: str, rebalance: bool = True) -> dict:
    import httpx
    async with httpx.AsyncClient(base_url=api_base, timeout=30) as client:
        resp = await client.post("/api/v1/scenarios")
        if resp.status_code != 201:
            return {"error": f"API returned {resp.status_code}: {resp.text[:500]}"}
        scenario_id = resp.json()["id"]
        try:
            resp = await client.patch(
                f"/api/v1/scenarios/{scenario_id}/parameters",
                json={"gsa": gsa, **case},
            )
            resp.raise_for_status()
            if rebalance:
                resp = await client.post(f"/api/v1/scenarios/{scenario_id}/rebalance")
                resp.raise_for_status()
            resp = await client.get(f"/api/v1/scenarios/{scenario_id}/summary")
            resp.raise_for_status()
            summary = resp.json()
        finally:
            await client.delete(f"/api/v1/scenarios/{scenario_id}")
    return {"areas": summary["areas"], "feasibility": summary["feasibility"]}


# ──────────────────────────────────────────────────────────────────
# OUTPUT FORMATTING
# ──────────────────────────────────────────────────────────────────

def format_result(case: dict, result: dict) -> str:
    label = f"{case['preset_id']} / TDI {case['tdi']} / RoW {case['row_set_id']}"
    if "error" in result:
        return f"  {label:<22} ERROR: {result['error']}"
    a = result["areas"]
    f = result["feasibility"]
    return (
        f"  {label:<22} NCA {a['nca']:7.2f}  NSR {a['nsr']:7.2f}  NDA {a['nda']:7.2f}  "
        f"SRA {a['sra']:7.2f} ({a['sra_efficiency']:5.1f}%)  "
        f"margin {f['profit_margin']:6.1f}%"
    )


async def main():
    parser = argparse.ArgumentParser(description="Sweep masterplan presets")
    parser.add_argument("--gsa", type=float, default=100, help="Gross site area in ha")
    parser.add_argument("--api", type=str, help="API base URL (e.g. http://localhost:8000)")
    parser.add_argument("--presets", nargs="+", choices=PRESET_IDS, help="Preset ids to run")
    parser.add_argument("--no-rebalance", action="store_true",
                        help="Keep default allocations instead of rebalancing to preset targets")
    args = parser.parse_args()

    cases = sweep_cases(presets=args.presets)
    rebalance = not args.no_rebalance

    print(f"\n{'='*70}")
    print(f"PRESET SWEEP  GSA={args.gsa:g} ha  ({len(cases)} cases)")
    if args.api:
        print(f"API:  {args.api}")
    print(f"{'='*70}")

    errors = 0
    for case in cases:
        if args.api:
            result = await run_api_case(args.gsa, case, args.api, rebalance=rebalance)
        else:
            result = run_direct_case(args.gsa, case, rebalance=rebalance)
        if "error" in result:
            errors += 1
        print(format_result(case, result))

    print(f"\n  Completed: {len(cases) - errors}/{len(cases)}")
    print()


if __name__ == "__main__":
    asyncio.run(main())
