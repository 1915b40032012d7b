#!/usr/bin/env python3
"""
Summarize a sweep results CSV per (avgSlidingLen, numLines) configuration.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

SRC = Path(__file__).resolve().parents[1]
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from facdiff_sim import analysis  # noqa: E402


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Summarize sweep results")
    parser.add_argument("path", help="results CSV written by run_sweep.py")
    args = parser.parse_args(argv)

    try:
        rows = analysis.load_results_csv(args.path)
    except (OSError, ValueError) as e:
        print(f"Cannot read {args.path}: {e}", file=sys.stderr)
        return 1

    print(f"Loaded {rows.shape[0]} trials from {args.path}")
    print(analysis.format_summary(analysis.summarize(rows)))
    return 0


if __name__ == "__main__":
    sys.exit(main())
