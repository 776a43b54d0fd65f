#!/usr/bin/env python3
"""
Capacity Expansion Model - Command Line Runner
==============================================

Loads a case folder, builds and solves the capacity expansion LP, prints a
summary and writes every report table to CSV.

Usage:
    zonal-cem cases/three_zones                        # Solve with HiGHS
    zonal-cem cases/three_zones --solver gurobi        # Use another Pyomo solver
    zonal-cem cases/three_zones --time-limit 600       # Cap solver time (s)
    zonal-cem cases/three_zones --output-dir results   # Where CSVs go
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from ..core.cem import CapacityExpansionModel, ModelSettings
from ..core.data_loader import CaseDataLoader
from ..core.exceptions import CEMError


def print_header(title: str) -> None:
    """Print a formatted header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Multi-zone capacity expansion over representative periods",
    )
    parser.add_argument("case_dir", help="Folder holding the case CSV tables")
    parser.add_argument("--solver", default="appsi_highs", help="Pyomo solver name")
    parser.add_argument("--time-limit", type=float, default=None,
                        help="Solver time limit in seconds")
    parser.add_argument("--output-dir", default="results", help="Folder for report CSVs")
    parser.add_argument("--strict-weights", action="store_true",
                        help="Reject period weights that do not add up to the horizon")
    parser.add_argument("--horizon-hours", type=float, default=8760.0,
                        help="Hours represented by the period weights")
    parser.add_argument("--keep-hydro", action="store_true",
                        help="Keep hydro and must-run resources as dispatchable units")
    parser.add_argument("--tee", action="store_true", help="Stream solver log")
    parser.add_argument("--loglevel", default="INFO", help="Logging level")
    return parser.parse_args(argv)


def run_case(args: argparse.Namespace) -> int:
    print_header("CAPACITY EXPANSION MODEL")

    print(f"\nLoading case from {args.case_dir}...")
    case = CaseDataLoader(args.case_dir)
    settings = ModelSettings(
        solver=args.solver,
        time_limit=args.time_limit,
        tee=args.tee,
        exclude_hydro_and_must_run=not args.keep_hydro,
        horizon_hours=args.horizon_hours,
        strict_weights=args.strict_weights,
    )
    cem = CapacityExpansionModel(case.catalog, case.demand, case.periods, case.network, settings)

    print("\nBuilding model...")
    cem.build_model()

    print("\nSolving...")
    if not cem.solve():
        outcome = cem.outcome
        print(f"Solve failed: {outcome.status.value} ({outcome.termination})")
        return 2

    cem.print_summary()

    results = cem.get_results()
    os.makedirs(args.output_dir, exist_ok=True)
    for name, table in results.tables().items():
        table.to_csv(os.path.join(args.output_dir, f"{name}.csv"), index=False)
    print(f"\nResults saved to {args.output_dir}/")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.loglevel.upper(), logging.INFO),
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )
    try:
        return run_case(args)
    except (CEMError, FileNotFoundError) as exc:
        logging.getLogger(__name__).error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
