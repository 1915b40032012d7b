"""Exception types raised by the search simulator."""

from __future__ import annotations


class InvariantViolation(RuntimeError):
    """A lattice or walker invariant was broken. Indicates a logic defect."""


class IterationLimitExceeded(RuntimeError):
    """A trial hit its soft iteration cap before reaching a target."""

    def __init__(self, iterations_1d: int, iterations_3d: int, max_iterations: int):
        self.iterations_1d = int(iterations_1d)
        self.iterations_3d = int(iterations_3d)
        self.max_iterations = int(max_iterations)
        super().__init__(
            f"trial did not reach a target within {self.max_iterations} iterations "
            f"(1D={self.iterations_1d}, 3D={self.iterations_3d})"
        )

    def __reduce__(self):
        # keep the exception picklable across worker processes
        return (
            type(self),
            (self.iterations_1d, self.iterations_3d, self.max_iterations),
        )
