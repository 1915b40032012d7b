"""
Facilitated-diffusion target search on a periodic cubic lattice.

A walker alternates between free 3D diffusion and 1D sliding along rails
parallel to the x-axis until it lands on one of the targets.

State machine (one iteration = one lattice step):
1.  **Attach:** a free walker standing on a rail draws a sliding length from a
    geometric distribution (negative binomial, r=1) with the requested mean.
2.  **Slide:** while sliding steps remain, the walker moves +-x along the rail
    and the 1D counter is incremented.
3.  **Detach:** the first free step after a slide goes +-y or +-z so that the
    walker actually leaves the rail.
4.  **Diffuse:** otherwise the walker moves to one of its six neighbours and
    the 3D counter is incremented.

The stepping loop is compiled with numba. Randomness comes from an explicit
``numpy.random.Generator`` that is passed into the kernel, so each trial owns
its own stream.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Optional, Sequence, Tuple

import numpy as np
from numba import njit

from .errors import InvariantViolation, IterationLimitExceeded
from .lattice import DEFAULT_SIDE_LENGTH, Lattice, build_lattice, modulus

logger = logging.getLogger(__name__)

###############################################################################
# Constants
###############################################################################

DEFAULT_MAX_ITERATIONS = 1_000_000_000

DIRECTIONS_3D = np.array(
    [
        [0, 0, 1],
        [0, 1, 0],
        [1, 0, 0],
        [0, 0, -1],
        [0, -1, 0],
        [-1, 0, 0],
    ],
    dtype=np.int64,
)

# Excludes the rail axis so that a detaching walker cannot stay on the rail.
DIRECTIONS_DETACH = np.array(
    [
        [0, 0, 1],
        [0, 1, 0],
        [0, 0, -1],
        [0, -1, 0],
    ],
    dtype=np.int64,
)

DIRECTIONS_1D = np.array(
    [
        [1, 0, 0],
        [-1, 0, 0],
    ],
    dtype=np.int64,
)

###############################################################################
# Sliding-length sampler
###############################################################################


@njit
def sliding_length(avg_sliding_len: int, rng: np.random.Generator) -> int:
    """
    Number of 1D steps before detaching.

    Negative binomial with r=1 and success probability b, where
    a = m + m**2 and b = 1 - (a - m) / a. Its mean (1 - b) / b equals m.
    """
    if avg_sliding_len == 0:
        return 0
    a = avg_sliding_len + avg_sliding_len * avg_sliding_len
    b = 1.0 - (a - avg_sliding_len) / a
    return rng.negative_binomial(1, b)


@njit
def sample_sliding_lengths(
    avg_sliding_len: int, size: int, rng: np.random.Generator
) -> np.ndarray:
    out = np.empty(size, dtype=np.int64)
    for i in range(size):
        out[i] = sliding_length(avg_sliding_len, rng)
    return out


###############################################################################
# Walk kernel
###############################################################################


@njit
def walk_kernel(
    rail_mask: np.ndarray,
    target_mask: np.ndarray,
    avg_sliding_len: int,
    start: np.ndarray,
    max_iterations: int,
    rng: np.random.Generator,
) -> Tuple[int, int, int, int, int, int, bool]:
    """
    Run one walk until a target is hit or ``max_iterations`` steps were taken.

    Returns:
        (iterations_1d, iterations_3d, attach_count, x, y, z, capped)
    """
    side_length = rail_mask.shape[0]
    x = start[0]
    y = start[1]
    z = start[2]

    iterations_1d = 0
    iterations_3d = 0
    attach_count = 0
    remaining = 0
    is_sliding = False
    capped = False

    while not target_mask[x, y, z]:
        if iterations_1d + iterations_3d >= max_iterations:
            capped = True
            break

        on_rail = rail_mask[y, z]
        if on_rail and not is_sliding:
            remaining = sliding_length(avg_sliding_len, rng)
            is_sliding = True
            attach_count += 1

        if remaining > 0:
            if not on_rail:
                raise InvariantViolation("sliding step taken off a rail")
            iterations_1d += 1
            remaining -= 1
            step = DIRECTIONS_1D[rng.integers(0, 2)]
        else:
            iterations_3d += 1
            if is_sliding:
                is_sliding = False
                step = DIRECTIONS_DETACH[rng.integers(0, 4)]
            else:
                step = DIRECTIONS_3D[rng.integers(0, 6)]

        x = modulus(x + step[0], side_length)
        y = modulus(y + step[1], side_length)
        z = modulus(z + step[2], side_length)
        if (
            x < 0
            or x >= side_length
            or y < 0
            or y >= side_length
            or z < 0
            or z >= side_length
        ):
            raise InvariantViolation("walker left the lattice")

    if not capped and not rail_mask[y, z]:
        raise InvariantViolation("walk ended off a rail")

    return iterations_1d, iterations_3d, attach_count, x, y, z, capped


###############################################################################
# Simulator
###############################################################################


@dataclass
class SearchParams:
    """Parameters of a single search trial."""

    avg_sliding_len: int = 0
    num_target_lines: int = 1
    side_length: int = DEFAULT_SIDE_LENGTH
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    unique_rails: bool = False
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if self.side_length < 1:
            raise ValueError(f"side_length must be positive, got {self.side_length}")
        if self.avg_sliding_len < 0:
            raise ValueError(
                f"avg_sliding_len must be non-negative, got {self.avg_sliding_len}"
            )
        if not 1 <= self.num_target_lines <= self.side_length:
            raise ValueError(
                f"num_target_lines must lie in [1, {self.side_length}], "
                f"got {self.num_target_lines}"
            )
        if self.max_iterations < 0:
            raise ValueError(
                f"max_iterations must be non-negative, got {self.max_iterations}"
            )


@dataclass
class TrialResult:
    """Step counts of one completed trial."""

    iterations_1d: int
    iterations_3d: int
    attach_count: int = 0
    final_position: Tuple[int, int, int] = (0, 0, 0)
    seed: Optional[int] = None

    @property
    def total_iterations(self) -> int:
        return self.iterations_1d + self.iterations_3d

    def as_tuple(self) -> Tuple[int, int]:
        return self.iterations_1d, self.iterations_3d


class TrialSimulator:
    """
    Runs one search trial.

    The lattice is generated from the trial's own generator unless one is
    supplied, in which case the same geometry can be reused across walks.
    """

    def __init__(
        self,
        params: SearchParams | None = None,
        *,
        rng: Optional[np.random.Generator] = None,
        lattice: Optional[Lattice] = None,
    ) -> None:
        self.params = params or SearchParams()
        # seed is only reported when it built the generator
        self.seed = None if rng is not None else self.params.seed
        self.rng = rng if rng is not None else np.random.default_rng(self.params.seed)

        if lattice is not None:
            if lattice.side_length != self.params.side_length:
                raise ValueError(
                    f"lattice side length {lattice.side_length} does not match "
                    f"params.side_length {self.params.side_length}"
                )
            if lattice.num_targets != self.params.num_target_lines:
                raise ValueError(
                    f"lattice has {lattice.num_targets} targets, expected "
                    f"{self.params.num_target_lines}"
                )
        self.lattice = lattice

    def random_position(self) -> np.ndarray:
        return self.rng.integers(0, self.params.side_length, size=3).astype(np.int64)

    def run(self, start: Optional[Sequence[int]] = None) -> TrialResult:
        """Walk from ``start`` (random by default) until a target is reached."""
        params = self.params
        lattice = self.lattice
        if lattice is None:
            lattice = build_lattice(
                params.side_length,
                params.num_target_lines,
                self.rng,
                unique_rails=params.unique_rails,
            )

        if start is None:
            position = self.random_position()
        else:
            position = np.asarray(start, dtype=np.int64)
            if position.shape != (3,):
                raise ValueError(f"start must be a 3-vector, got shape {position.shape}")
            if position.min() < 0 or position.max() >= params.side_length:
                raise ValueError(f"start must lie in [0, {params.side_length})")

        logger.debug(
            "Starting trial: avg_sliding_len=%d, num_target_lines=%d, start=%s",
            params.avg_sliding_len,
            params.num_target_lines,
            position.tolist(),
        )

        (
            iterations_1d,
            iterations_3d,
            attach_count,
            x,
            y,
            z,
            capped,
        ) = walk_kernel(
            lattice.rail_mask,
            lattice.target_mask,
            params.avg_sliding_len,
            position,
            params.max_iterations,
            self.rng,
        )

        if capped:
            logger.error(
                "Trial hit the iteration cap (%d) without reaching a target: "
                "avg_sliding_len=%d, num_target_lines=%d, 1D=%d, 3D=%d",
                params.max_iterations,
                params.avg_sliding_len,
                params.num_target_lines,
                iterations_1d,
                iterations_3d,
            )
            raise IterationLimitExceeded(iterations_1d, iterations_3d, params.max_iterations)

        final = (int(x), int(y), int(z))
        if not lattice.is_on_target(final):
            raise InvariantViolation(f"walk ended at {final}, which is not a target")

        return TrialResult(
            iterations_1d=int(iterations_1d),
            iterations_3d=int(iterations_3d),
            attach_count=int(attach_count),
            final_position=final,
            seed=self.seed,
        )


def run_trial(
    params: SearchParams | None = None,
    *,
    rng: Optional[np.random.Generator] = None,
    lattice: Optional[Lattice] = None,
) -> TrialResult:
    """Run a single search trial and return its result record."""
    return TrialSimulator(params, rng=rng, lattice=lattice).run()


def simulate(
    avg_sliding_len: int,
    num_target_lines: int,
    rng: Optional[np.random.Generator] = None,
) -> Tuple[int, int]:
    """
    Backwards-compatible wrapper returning ``(iterations_1d, iterations_3d)``.
    """
    params = SearchParams(
        avg_sliding_len=avg_sliding_len, num_target_lines=num_target_lines
    )
    return run_trial(params, rng=rng).as_tuple()


def run_model(config: dict | None = None) -> TrialResult:
    params = config or {}
    known = {f.name for f in fields(SearchParams)}
    unknown = set(params) - known
    if unknown:
        raise ValueError(f"Unknown trial settings: {', '.join(sorted(unknown))}")
    return run_trial(SearchParams(**params))


__all__ = [
    "SearchParams",
    "TrialResult",
    "TrialSimulator",
    "run_model",
    "run_trial",
    "sample_sliding_lengths",
    "simulate",
    "sliding_length",
    "walk_kernel",
]


if __name__ == "__main__":
    result = run_trial(SearchParams(avg_sliding_len=10, num_target_lines=10, seed=42))
    print(result)
