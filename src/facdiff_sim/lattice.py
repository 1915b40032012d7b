"""
Rail and target geometry for the periodic search lattice.

The lattice is a cube of side ``L`` with periodic boundaries. ``L`` rails run
parallel to the x-axis, each identified by its (y, z) cross-section. A subset
of the rails carries exactly one target each, at a random x-coordinate.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence, Tuple

import numpy as np
from numba import njit

from .errors import InvariantViolation

DEFAULT_SIDE_LENGTH = 100


@njit(cache=True)
def modulus(a: int, b: int) -> int:
    """Mathematical modulo: the result lies in [0, b) for any sign of ``a``."""
    return ((a % b) + b) % b


def sample_without_replacement(
    domain_size: int, count: int, rng: np.random.Generator
) -> np.ndarray:
    """
    Draw ``count`` distinct integers from ``[0, domain_size)``.

    A full permutation is drawn and truncated, so every size-``count`` subset
    is equally likely. The order of the result carries no meaning.
    """
    if domain_size < 0 or count < 0:
        raise ValueError(
            f"domain_size and count must be non-negative, got {domain_size}, {count}"
        )
    if count > domain_size:
        raise ValueError(
            f"cannot draw {count} distinct values from a domain of size {domain_size}"
        )
    return rng.permutation(domain_size)[:count].astype(np.int64)


def generate_lines(
    side_length: int, rng: np.random.Generator, *, unique: bool = False
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Create ``side_length`` rails parallel to the x-axis.

    By default two independent permutations of ``[0, side_length)`` are paired
    index-wise. Each axis is then collision free but (y, z) pairs may repeat.
    With ``unique=True`` the rails are drawn without replacement from the full
    ``side_length**2`` cross-section instead.
    """
    if side_length < 1:
        raise ValueError(f"side_length must be positive, got {side_length}")
    if unique:
        flat = sample_without_replacement(side_length * side_length, side_length, rng)
        return flat // side_length, flat % side_length
    lines_y = sample_without_replacement(side_length, side_length, rng)
    lines_z = sample_without_replacement(side_length, side_length, rng)
    return lines_y, lines_z


def generate_targets(
    lines_y: Sequence[int],
    lines_z: Sequence[int],
    num_target_lines: int,
    rng: np.random.Generator,
    side_length: int | None = None,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Place one target on each of ``num_target_lines`` distinct rails.

    Returns ``(targets_y, targets_z, targets_x)``. The x-coordinates are an
    independent sample without replacement, paired positionally with the
    chosen rails.
    """
    lines_y = np.asarray(lines_y, dtype=np.int64)
    lines_z = np.asarray(lines_z, dtype=np.int64)
    if lines_y.shape != lines_z.shape:
        raise ValueError("lines_y and lines_z must have the same length")
    if side_length is None:
        side_length = lines_y.shape[0]
    if num_target_lines < 1:
        raise ValueError(f"num_target_lines must be at least 1, got {num_target_lines}")
    if num_target_lines > lines_y.shape[0]:
        raise ValueError(
            f"num_target_lines ({num_target_lines}) exceeds the number of rails "
            f"({lines_y.shape[0]})"
        )

    indices = sample_without_replacement(lines_y.shape[0], num_target_lines, rng)
    targets_y = lines_y[indices]
    targets_z = lines_z[indices]
    targets_x = sample_without_replacement(side_length, num_target_lines, rng)
    return targets_y, targets_z, targets_x


@dataclass
class Lattice:
    """Rails and targets of one trial, plus dense lookup masks for the kernel."""

    side_length: int
    lines_y: np.ndarray
    lines_z: np.ndarray
    targets_x: np.ndarray
    targets_y: np.ndarray
    targets_z: np.ndarray
    rail_mask: np.ndarray = field(init=False, repr=False)
    target_mask: np.ndarray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.lines_y = np.asarray(self.lines_y, dtype=np.int64)
        self.lines_z = np.asarray(self.lines_z, dtype=np.int64)
        self.targets_x = np.asarray(self.targets_x, dtype=np.int64)
        self.targets_y = np.asarray(self.targets_y, dtype=np.int64)
        self.targets_z = np.asarray(self.targets_z, dtype=np.int64)

        n = self.side_length
        if self.lines_y.shape != (n,) or self.lines_z.shape != (n,):
            raise ValueError(f"expected exactly {n} rails")
        k = self.targets_x.shape[0]
        if self.targets_y.shape != (k,) or self.targets_z.shape != (k,):
            raise ValueError("target coordinate arrays must have the same length")
        if not 1 <= k <= n:
            raise ValueError(f"number of targets must lie in [1, {n}], got {k}")
        for arr in (self.lines_y, self.lines_z, self.targets_x, self.targets_y, self.targets_z):
            if arr.min() < 0 or arr.max() >= n:
                raise ValueError(f"coordinates must lie in [0, {n})")

        self.rail_mask = np.zeros((n, n), dtype=np.bool_)
        self.rail_mask[self.lines_y, self.lines_z] = True
        self.target_mask = np.zeros((n, n, n), dtype=np.bool_)
        self.target_mask[self.targets_x, self.targets_y, self.targets_z] = True
        self.validate()

    @property
    def num_targets(self) -> int:
        return int(self.targets_x.shape[0])

    def validate(self) -> None:
        """Every target must sit on a rail."""
        for y, z in zip(self.targets_y, self.targets_z):
            on_rail = np.any((self.lines_y == y) & (self.lines_z == z))
            if not on_rail:
                raise InvariantViolation(f"target rail (y={y}, z={z}) is not a rail")

    def is_on_rail(self, position: Sequence[int]) -> bool:
        _, y, z = position
        return bool(np.any((self.lines_y == y) & (self.lines_z == z)))

    def is_on_target(self, position: Sequence[int]) -> bool:
        x, y, z = position
        return bool(
            np.any((self.targets_x == x) & (self.targets_y == y) & (self.targets_z == z))
        )


def build_lattice(
    side_length: int,
    num_target_lines: int,
    rng: np.random.Generator,
    *,
    unique_rails: bool = False,
) -> Lattice:
    """Generate the rails and targets of a fresh trial."""
    lines_y, lines_z = generate_lines(side_length, rng, unique=unique_rails)
    targets_y, targets_z, targets_x = generate_targets(
        lines_y, lines_z, num_target_lines, rng, side_length=side_length
    )
    return Lattice(
        side_length=side_length,
        lines_y=lines_y,
        lines_z=lines_z,
        targets_x=targets_x,
        targets_y=targets_y,
        targets_z=targets_z,
    )


__all__ = [
    "DEFAULT_SIDE_LENGTH",
    "Lattice",
    "build_lattice",
    "generate_lines",
    "generate_targets",
    "modulus",
    "sample_without_replacement",
]
