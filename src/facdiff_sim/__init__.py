"""
Facilitated-Diffusion Search Library

A particle diffuses on a periodic cubic lattice, sliding along rails parallel
to the x-axis between free 3D steps, until it finds a target on a rail:
- TrialSimulator: one search trial (numba kernel with an explicit Generator)
- run_sweep: parameter sweep with per-trial process-pool dispatch
- analysis: per-configuration summaries of the results CSV
"""

from .errors import InvariantViolation, IterationLimitExceeded
from .lattice import (
    Lattice,
    build_lattice,
    generate_lines,
    generate_targets,
    modulus,
    sample_without_replacement,
)
from .search import (
    SearchParams,
    TrialResult,
    TrialSimulator,
    run_trial,
    simulate,
    sliding_length,
)
from .sweep import CSV_HEADER, SweepConfig, SweepResult, run_sweep, write_results_csv
from . import analysis, utils

__all__ = [
    # Simulator
    "TrialSimulator",
    "run_trial",
    "simulate",
    "sliding_length",
    # Geometry
    "Lattice",
    "build_lattice",
    "generate_lines",
    "generate_targets",
    "modulus",
    "sample_without_replacement",
    # Configuration / results
    "SearchParams",
    "TrialResult",
    "SweepConfig",
    "SweepResult",
    "CSV_HEADER",
    "run_sweep",
    "write_results_csv",
    # Errors
    "InvariantViolation",
    "IterationLimitExceeded",
    # Utilities
    "analysis",
    "utils",
]
