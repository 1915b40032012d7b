# src/facdiff_sim/utils.py
from __future__ import annotations

import json
import os
import time
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np


def make_rng(seed: Optional[int | np.random.SeedSequence] = None) -> np.random.Generator:
    """Return an independent Generator. ``None`` draws fresh OS entropy."""
    return np.random.default_rng(seed)


def spawn_seeds(
    base_seed: Optional[int | np.random.SeedSequence], count: int
) -> List[np.random.SeedSequence]:
    """
    Derive ``count`` statistically independent child seeds from one base seed.

    Each trial of a sweep gets its own child so that trials can run in any
    order, in any process, and still be reproducible from ``base_seed``.
    """
    if count < 0:
        raise ValueError(f"count must be non-negative, got {count}")
    if isinstance(base_seed, np.random.SeedSequence):
        return base_seed.spawn(count)
    return np.random.SeedSequence(base_seed).spawn(count)


def now_str() -> str:
    return time.strftime("%Y%m%d-%H%M%S")


def write_json(path: str | os.PathLike[str], payload: Dict[str, Any]) -> None:
    """Write a JSON document, creating parent directories as needed."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, "w") as fh:
        json.dump(payload, fh, indent=2)


def load_params(path: str | os.PathLike[str]) -> Dict[str, Any]:
    """
    Load simulation parameters from JSON or TOML.
    """
    path = str(path)
    with open(path, "rb") as fh:
        data = fh.read()
    suffix = Path(path).suffix.lower()
    if suffix in {".json", ""}:
        return json.loads(data.decode("utf-8"))
    if suffix in {".toml", ".tml"}:
        return tomllib.loads(data.decode("utf-8"))
    raise ValueError(f"Unsupported parameter file format: {suffix}")
