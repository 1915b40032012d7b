"""
Per-configuration summaries of sweep results.

Reads the ``avgSlidingLen,numLines,iterations1D,iterations3D`` CSV written by
the sweep and reports mean step counts with standard errors.
"""
from __future__ import annotations

import csv
import os
from dataclasses import dataclass
from typing import List

import numpy as np
from scipy.stats import sem

from .sweep import CSV_HEADER


@dataclass
class ConfigSummary:
    avg_sliding_len: int
    num_lines: int
    trials: int
    mean_1d: float
    mean_3d: float
    mean_total: float
    sem_total: float


def load_results_csv(path: str | os.PathLike[str]) -> np.ndarray:
    """
    Load a results file into an (N, 4) int64 array.

    Raises:
        ValueError: If the header does not match the results schema or a row
            does not hold four integers.
    """
    with open(path, newline="", encoding="utf-8") as fh:
        reader = csv.reader(fh)
        header = next(reader, None)
        if header is None or tuple(header) != CSV_HEADER:
            raise ValueError(
                f"Expected header {','.join(CSV_HEADER)!r}, got {header!r}"
            )
        rows = []
        for lineno, row in enumerate(reader, start=2):
            if len(row) != len(CSV_HEADER):
                raise ValueError(f"line {lineno}: expected 4 fields, got {len(row)}")
            try:
                rows.append([int(v) for v in row])
            except ValueError as exc:
                raise ValueError(f"line {lineno}: {exc}") from exc
    return np.asarray(rows, dtype=np.int64).reshape(-1, len(CSV_HEADER))


def summarize(rows: np.ndarray) -> List[ConfigSummary]:
    """Group rows by (avgSlidingLen, numLines) in first-seen order."""
    rows = np.asarray(rows, dtype=np.int64).reshape(-1, len(CSV_HEADER))
    summaries: List[ConfigSummary] = []
    if rows.shape[0] == 0:
        return summaries

    keys, first_idx = np.unique(rows[:, :2], axis=0, return_index=True)
    for key in keys[np.argsort(first_idx)]:
        mask = (rows[:, 0] == key[0]) & (rows[:, 1] == key[1])
        it1d = rows[mask, 2].astype(np.float64)
        it3d = rows[mask, 3].astype(np.float64)
        total = it1d + it3d
        n = int(mask.sum())
        summaries.append(
            ConfigSummary(
                avg_sliding_len=int(key[0]),
                num_lines=int(key[1]),
                trials=n,
                mean_1d=float(it1d.mean()),
                mean_3d=float(it3d.mean()),
                mean_total=float(total.mean()),
                sem_total=float(sem(total)) if n > 1 else float("nan"),
            )
        )
    return summaries


def format_summary(summaries: List[ConfigSummary]) -> str:
    lines = [
        f"{'avgSlidingLen':>13} {'numLines':>8} {'trials':>6} "
        f"{'mean1D':>12} {'mean3D':>12} {'meanTotal':>12} {'sem':>10}"
    ]
    for s in summaries:
        lines.append(
            f"{s.avg_sliding_len:>13d} {s.num_lines:>8d} {s.trials:>6d} "
            f"{s.mean_1d:>12.1f} {s.mean_3d:>12.1f} {s.mean_total:>12.1f} {s.sem_total:>10.1f}"
        )
    return "\n".join(lines)


__all__ = ["ConfigSummary", "format_summary", "load_results_csv", "summarize"]
