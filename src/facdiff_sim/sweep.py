"""
Parameter sweep over sliding lengths and target-line counts.

Every (avg_sliding_len, num_lines) configuration is repeated
``repetitions`` times. Trial durations vary by orders of magnitude, so each
trial is submitted to the process pool on its own and collected with
``as_completed``. Results are written in grid order regardless of the order in
which workers finish.
"""

from __future__ import annotations

import csv
import itertools
import logging
import os
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from . import utils
from .errors import IterationLimitExceeded
from .lattice import DEFAULT_SIDE_LENGTH
from .search import DEFAULT_MAX_ITERATIONS, SearchParams, TrialResult, TrialSimulator

logger = logging.getLogger(__name__)

CSV_HEADER = ("avgSlidingLen", "numLines", "iterations1D", "iterations3D")

DEFAULT_SLIDING_LEN_GRID = (
    0, 5, 10, 30, 50, 100, 200, 300, 400, 500, 600, 700, 800, 900, 1000, 1100, 1200, 1300,
)
DEFAULT_NUM_LINES_GRID = (1, 10, 30, 50, 70, 100)
DEFAULT_REPETITIONS = 2 * 1024

ResultRow = Tuple[int, int, int, int]


@dataclass
class SweepConfig:
    """Grid, repetition count and execution settings of a sweep."""

    sliding_len_grid: Sequence[int] = DEFAULT_SLIDING_LEN_GRID
    num_lines_grid: Sequence[int] = DEFAULT_NUM_LINES_GRID
    repetitions: int = DEFAULT_REPETITIONS
    side_length: int = DEFAULT_SIDE_LENGTH
    jobs: int = 1
    base_seed: Optional[int] = None
    output: str = "results.csv"
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    unique_rails: bool = False

    def __post_init__(self) -> None:
        self.sliding_len_grid = tuple(int(v) for v in self.sliding_len_grid)
        self.num_lines_grid = tuple(int(v) for v in self.num_lines_grid)
        if not self.sliding_len_grid or not self.num_lines_grid:
            raise ValueError("sliding_len_grid and num_lines_grid must not be empty")
        if self.repetitions < 1:
            raise ValueError(f"repetitions must be positive, got {self.repetitions}")
        if self.jobs < 1:
            raise ValueError(f"jobs must be positive, got {self.jobs}")
        # reject bad grid values before any work is scheduled
        for avg_sliding_len, num_lines in self.configurations:
            self.trial_params(avg_sliding_len, num_lines)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SweepConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown sweep settings: {', '.join(sorted(unknown))}")
        return cls(**data)

    @property
    def configurations(self) -> List[Tuple[int, int]]:
        return list(itertools.product(self.sliding_len_grid, self.num_lines_grid))

    @property
    def total_trials(self) -> int:
        return len(self.configurations) * self.repetitions

    def trial_params(self, avg_sliding_len: int, num_lines: int) -> SearchParams:
        return SearchParams(
            avg_sliding_len=avg_sliding_len,
            num_target_lines=num_lines,
            side_length=self.side_length,
            max_iterations=self.max_iterations,
            unique_rails=self.unique_rails,
        )

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["sliding_len_grid"] = list(self.sliding_len_grid)
        out["num_lines_grid"] = list(self.num_lines_grid)
        return out


def load_sweep_config(path: str | os.PathLike[str]) -> SweepConfig:
    """Read a sweep configuration from a JSON or TOML file."""
    return SweepConfig.from_dict(utils.load_params(path))


@dataclass
class SweepResult:
    rows: List[ResultRow] = field(default_factory=list)
    failures: List[Dict[str, Any]] = field(default_factory=list)
    elapsed_seconds: float = 0.0
    entropy: Optional[int] = None

    @property
    def ok(self) -> bool:
        return not self.failures


def run_single_trial(
    params: SearchParams, seed: np.random.SeedSequence
) -> TrialResult:
    """
    Run one trial with its own generator.

    Module level so that ProcessPoolExecutor can pickle it.
    """
    return TrialSimulator(params, rng=utils.make_rng(seed)).run()


def _trial_tasks(config: SweepConfig, root: np.random.SeedSequence):
    seeds = utils.spawn_seeds(root, config.total_trials)
    index = 0
    for avg_sliding_len, num_lines in config.configurations:
        params = config.trial_params(avg_sliding_len, num_lines)
        for _ in range(config.repetitions):
            yield index, params, seeds[index]
            index += 1


def run_sweep(
    config: SweepConfig,
    progress: Optional[Callable[[int, int], None]] = None,
) -> SweepResult:
    """
    Run every trial of the sweep.

    Trials that hit the iteration cap are recorded as failures and left out
    of ``rows``. Any other exception aborts the sweep.
    """
    total = config.total_trials
    results: List[Optional[ResultRow]] = [None] * total
    failures: List[Dict[str, Any]] = []
    remaining = {cfg: config.repetitions for cfg in config.configurations}
    completed = 0
    root = np.random.SeedSequence(config.base_seed)
    start_time = time.time()

    logger.info(
        "Running %d trials over %d configurations with %d job(s)",
        total,
        len(remaining),
        config.jobs,
    )

    def record(index: int, params: SearchParams, outcome) -> None:
        nonlocal completed
        completed += 1
        key = (params.avg_sliding_len, params.num_target_lines)
        if isinstance(outcome, IterationLimitExceeded):
            failures.append(
                {
                    "index": index,
                    "avgSlidingLen": key[0],
                    "numLines": key[1],
                    "error": str(outcome),
                }
            )
        else:
            results[index] = (key[0], key[1], outcome.iterations_1d, outcome.iterations_3d)
        remaining[key] -= 1
        if remaining[key] == 0:
            logger.info("Finished avgSlidingLen = %d, numLines = %d", *key)
        if progress is not None:
            progress(completed, total)

    if config.jobs == 1:
        for index, params, seed in _trial_tasks(config, root):
            try:
                outcome = run_single_trial(params, seed)
            except IterationLimitExceeded as exc:
                outcome = exc
            record(index, params, outcome)
    else:
        with ProcessPoolExecutor(max_workers=config.jobs) as executor:
            future_to_task = {
                executor.submit(run_single_trial, params, seed): (index, params)
                for index, params, seed in _trial_tasks(config, root)
            }
            try:
                for future in as_completed(future_to_task):
                    index, params = future_to_task[future]
                    try:
                        outcome = future.result()
                    except IterationLimitExceeded as exc:
                        outcome = exc
                    record(index, params, outcome)
            except BaseException:
                # drop the queued trials instead of draining them on exit
                executor.shutdown(wait=False, cancel_futures=True)
                raise

    elapsed = time.time() - start_time
    if failures:
        logger.warning("%d of %d trials hit the iteration cap", len(failures), total)
    return SweepResult(
        rows=[row for row in results if row is not None],
        failures=failures,
        elapsed_seconds=elapsed,
        entropy=root.entropy,
    )


def write_results_csv(path: str | os.PathLike[str], rows: Sequence[ResultRow]) -> Path:
    """Write trial rows with the ``avgSlidingLen,numLines,iterations1D,iterations3D`` header."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, "w", newline="", encoding="utf-8") as csvfile:
        writer = csv.writer(csvfile, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for row in rows:
            writer.writerow([int(v) for v in row])
    logger.info("Wrote %d rows to %s", len(rows), out)
    return out


def manifest_path_for(output: str | os.PathLike[str]) -> Path:
    out = Path(output)
    return out.with_name(out.name + ".manifest.json")


def write_manifest(config: SweepConfig, result: SweepResult) -> Path:
    """Store run metadata and any failed trials next to the CSV."""
    path = manifest_path_for(config.output)
    manifest = {
        "config": config.to_dict(),
        "timestamp": utils.now_str(),
        "results": {
            "total": config.total_trials,
            "successful": len(result.rows),
            "failed": len(result.failures),
            "elapsed_seconds": result.elapsed_seconds,
            "entropy": None if result.entropy is None else str(result.entropy),
        },
    }
    if result.failures:
        manifest["failures"] = result.failures
    utils.write_json(path, manifest)
    return path


__all__ = [
    "CSV_HEADER",
    "SweepConfig",
    "SweepResult",
    "load_sweep_config",
    "manifest_path_for",
    "run_single_trial",
    "run_sweep",
    "write_manifest",
    "write_results_csv",
]
