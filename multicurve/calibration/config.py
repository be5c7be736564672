"""Solver configuration for curve calibration."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping

SOLVER_METHODS = ("NEWTON", "BROYDEN")
JACOBIAN_MODES = ("ANALYTIC", "FINITE_DIFFERENCE")


@dataclass
class SolverConfig:
    """Configuration for the unit root finder.

    A unit has converged when the largest absolute residual is below
    ``absolute_tolerance``, or when the last step is below
    ``relative_tolerance * (1 + max|p|)``.
    """

    absolute_tolerance: float = 1e-10
    relative_tolerance: float = 1e-10
    max_iterations: int = 100
    method: str = "NEWTON"
    jacobian: str = "ANALYTIC"
    finite_difference_shift: float = 1e-7
    # Jacobians above this condition number are treated as singular
    max_condition_number: float = 1e14
    verbose: bool = False

    def __post_init__(self):
        self.method = str(self.method).upper()
        self.jacobian = str(self.jacobian).upper()
        if self.method not in SOLVER_METHODS:
            raise ValueError(
                f"Unknown solver method: {self.method}. Available: {', '.join(SOLVER_METHODS)}"
            )
        if self.jacobian not in JACOBIAN_MODES:
            raise ValueError(
                f"Unknown Jacobian mode: {self.jacobian}. Available: {', '.join(JACOBIAN_MODES)}"
            )
        if self.absolute_tolerance <= 0 or self.relative_tolerance <= 0:
            raise ValueError("Solver tolerances must be positive")
        if int(self.max_iterations) != self.max_iterations or self.max_iterations < 1:
            raise ValueError(f"max_iterations must be a positive integer, got {self.max_iterations}")
        self.max_iterations = int(self.max_iterations)
        if self.finite_difference_shift <= 0:
            raise ValueError("finite_difference_shift must be positive")
        if self.max_condition_number <= 1:
            raise ValueError("max_condition_number must be greater than 1")

    @classmethod
    def from_mapping(cls, settings: Mapping[str, Any]) -> "SolverConfig":
        """Build a config from plain settings, e.g. a parsed YAML or JSON section.

        Raises:
            ValueError: If a key is not a config field
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(settings) - known)
        if unknown:
            raise ValueError(
                f"Unknown solver settings: {', '.join(unknown)}. Available: {', '.join(sorted(known))}"
            )
        return cls(**dict(settings))
