#!/usr/bin/env python3
"""
Single Search Trial Runner

Runs one facilitated-diffusion search and prints the step counts.
"""

import argparse
import sys
import time
from pathlib import Path

# Add src/ to path
SRC = Path(__file__).resolve().parents[1]
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from facdiff_sim import IterationLimitExceeded, SearchParams, run_trial  # noqa: E402
from facdiff_sim.search import DEFAULT_MAX_ITERATIONS  # noqa: E402


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Run a single facilitated-diffusion search trial",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--sliding-len",
        type=int,
        required=True,
        help="Average sliding length (0 disables sliding)",
    )
    parser.add_argument(
        "--num-lines",
        type=int,
        required=True,
        help="Number of rails carrying a target",
    )
    parser.add_argument(
        "--side-length",
        type=int,
        default=100,
        help="Lattice side length (default: 100)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducibility (default: fresh entropy)",
    )
    parser.add_argument(
        "--max-iterations",
        type=int,
        default=DEFAULT_MAX_ITERATIONS,
        help="Soft cap on steps for this trial",
    )
    parser.add_argument(
        "--unique-rails",
        action="store_true",
        help="Draw pairwise distinct (y, z) rails",
    )
    args = parser.parse_args(argv)

    try:
        params = SearchParams(
            avg_sliding_len=args.sliding_len,
            num_target_lines=args.num_lines,
            side_length=args.side_length,
            max_iterations=args.max_iterations,
            unique_rails=args.unique_rails,
            seed=args.seed,
        )
    except ValueError as e:
        print(f"Invalid parameters: {e}", file=sys.stderr)
        return 2

    print(
        f"Running avgSlidingLen = {params.avg_sliding_len}, "
        f"numLines = {params.num_target_lines}, L = {params.side_length}"
    )
    start_time = time.time()
    try:
        result = run_trial(params)
    except IterationLimitExceeded as e:
        print(f"FAILED: {e}", file=sys.stderr)
        return 1
    elapsed = time.time() - start_time

    print(f"  iterations1D: {result.iterations_1d}")
    print(f"  iterations3D: {result.iterations_3d}")
    print(f"  attach events: {result.attach_count}")
    print(f"  final position: {result.final_position}")
    print(f"  time: {elapsed:.2f} seconds")
    return 0


if __name__ == "__main__":
    sys.exit(main())
