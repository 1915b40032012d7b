#!/usr/bin/env python3
"""
Facilitated-Diffusion Sweep Runner

Runs every (avgSlidingLen, numLines) configuration of the grid a fixed number
of times and writes one CSV row per trial:

    avgSlidingLen,numLines,iterations1D,iterations3D

Settings come from an optional JSON/TOML config file; command-line flags
override individual values.
"""

import argparse
import sys
from pathlib import Path

# Add src/ to path
SRC = Path(__file__).resolve().parents[1]
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from facdiff_sim import SweepConfig, run_sweep, write_results_csv  # noqa: E402
from facdiff_sim.sweep import load_sweep_config, write_manifest  # noqa: E402


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run a facilitated-diffusion parameter sweep",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON or TOML file with sweep settings",
    )
    parser.add_argument(
        "--sliding-lens",
        type=int,
        nargs="+",
        default=None,
        help="Grid of average sliding lengths",
    )
    parser.add_argument(
        "--num-lines",
        type=int,
        nargs="+",
        default=None,
        help="Grid of target-line counts",
    )
    parser.add_argument(
        "--repetitions",
        type=int,
        default=None,
        help="Trials per configuration (default: 2048)",
    )
    parser.add_argument(
        "--side-length",
        type=int,
        default=None,
        help="Lattice side length (default: 100)",
    )
    parser.add_argument(
        "--jobs",
        type=int,
        default=None,
        help="Number of parallel processes (default: 1)",
    )
    parser.add_argument(
        "--base-seed",
        type=int,
        default=None,
        help="Base seed; every trial gets an independent child seed",
    )
    parser.add_argument(
        "--max-iterations",
        type=int,
        default=None,
        help="Soft cap on steps per trial",
    )
    parser.add_argument(
        "--unique-rails",
        action="store_true",
        default=None,
        help="Draw pairwise distinct (y, z) rails",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output CSV path (default: results.csv)",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> SweepConfig:
    settings = {}
    if args.config is not None:
        settings.update(load_sweep_config(args.config).to_dict())
    overrides = {
        "sliding_len_grid": args.sliding_lens,
        "num_lines_grid": args.num_lines,
        "repetitions": args.repetitions,
        "side_length": args.side_length,
        "jobs": args.jobs,
        "base_seed": args.base_seed,
        "max_iterations": args.max_iterations,
        "unique_rails": args.unique_rails,
        "output": args.output,
    }
    settings.update({k: v for k, v in overrides.items() if v is not None})
    return SweepConfig.from_dict(settings)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = config_from_args(args)
    except ValueError as e:
        print(f"Invalid sweep settings: {e}", file=sys.stderr)
        return 2

    print("Sweep started:")
    print(f"  Sliding lengths: {list(config.sliding_len_grid)}")
    print(f"  Target lines: {list(config.num_lines_grid)}")
    print(f"  Repetitions: {config.repetitions}")
    print(f"  Total trials: {config.total_trials}")
    print(f"  Parallel jobs: {config.jobs}")
    print(f"  Output: {config.output}")
    print()

    step = max(1, config.total_trials // 20)

    def progress(done: int, total: int) -> None:
        if done % step == 0 or done == total:
            print(f"  [{done}/{total}] trials completed")

    result = run_sweep(config, progress=progress)

    print(f"Writing {config.output} now!")
    write_results_csv(config.output, result.rows)
    manifest_path = write_manifest(config, result)

    print()
    print("=" * 60)
    print("Sweep completed!")
    print(f"  Successful: {len(result.rows)}/{config.total_trials}")
    print(f"  Failed: {len(result.failures)}/{config.total_trials}")
    print(f"  Total time: {result.elapsed_seconds:.2f} seconds")
    print(f"  Manifest: {manifest_path}")
    print("=" * 60)

    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
