#!/usr/bin/env python
"""
Run Grid Balancer: simulate N balancing cycles and save them to HDF5/CSV

Usage:
    python scripts/run_simulator.py [--cycles 100] [--config grid.json] [--p-fault 0.1]

Output:
    <output-dir>/dataset.h5          — per-cycle arrays and totals
    <output-dir>/cycles_meta.jsonl   — one cycle report per line
    <output-dir>/topology.json       — sources and loads
    <output-dir>/cycles_summary.csv  — one row per cycle
    <output-dir>/balance.png         — power vs demand (with --plot)
"""

import sys
import argparse
import logging
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from gridsim.config import DEFAULT_GRID_CONFIG, load_grid_config
from gridsim.errors import GridError
from gridsim.generator import GridRunner, RunnerSettings
from gridsim.history import plot_balance, reports_to_frame


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Run priority-based load balancing cycles on a small distribution grid",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Demo grid, 50 cycles
  python scripts/run_simulator.py --cycles 50

  # Custom grid with random faults, reproducible
  python scripts/run_simulator.py --config grid.json --p-fault 0.1 --seed 42 --plot
        """
    )

    parser.add_argument(
        "--cycles",
        type=int,
        default=50,
        help="Number of balancing cycles to run (default: 50)"
    )

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Grid config JSON (default: built-in demo grid)"
    )

    parser.add_argument(
        "--output-dir",
        type=str,
        default="data/raw/grid",
        help="Output directory for HDF5/JSONL/CSV files (default: data/raw/grid)"
    )

    parser.add_argument(
        "--p-fault",
        type=float,
        default=0.0,
        help="Probability of a random manual fault per cycle (default: 0.0)"
    )

    parser.add_argument(
        "--p-resolve",
        type=float,
        default=0.5,
        help="Probability of resolving one active fault per cycle (default: 0.5)"
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="RNG seed for variable sources and faults"
    )

    parser.add_argument(
        "--plot",
        action="store_true",
        help="Save balance.png next to the dataset"
    )

    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output"
    )

    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.cycles < 1:
        print("Error: --cycles must be >= 1")
        return 1

    try:
        cfg = load_grid_config(args.config) if args.config else DEFAULT_GRID_CONFIG
        settings = RunnerSettings(
            out_dir=args.output_dir,
            n_cycles=args.cycles,
            p_fault=args.p_fault,
            p_resolve=args.p_resolve,
            seed=args.seed,
        )
        runner = GridRunner(cfg, settings)
        reports = runner.run()
    except (OSError, ValueError, GridError) as e:
        print(f"\nError during simulation: {e}")
        return 1

    if args.plot:
        plot_balance(reports_to_frame(reports), Path(args.output_dir) / "balance.png")

    if not args.quiet:
        n_deficit = sum(1 for r in reports if r.deficit)
        print(f"\n{'='*70}")
        print(f"Cycles: {len(reports)}  deficit cycles: {n_deficit}")
        print(f"Output: {Path(args.output_dir).resolve()}")
        print(f"{'='*70}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
