"""Curve generators: turn parameter vectors into curves.

A generator describes how a curve is parameterised. Template generators are
bound to the instrument list of their curve once per calibration; the bound
generator knows its node times and parameter count and is then called on
every residual evaluation, so ``build`` must stay cheap and side-effect free.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence, Tuple

import numpy as np

from multicurve.errors import InvalidParameterVector
from multicurve.interpolation import INTERPOLATION_METHODS

from .base import BaseCurve
from .yield_curve import ConstantYieldCurve, YieldCurve


class CurveGenerator(ABC):
    """Contract between the calibration engine and a curve parameterisation."""

    @abstractmethod
    def parameter_count(self, instruments: Sequence) -> int:
        """Number of free parameters needed for the given instruments."""
        pass

    def initial_guess(self, instruments: Sequence) -> np.ndarray:
        """Starting point for the solver: each instrument's rate guess.

        Must have length ``parameter_count(instruments)``.
        """
        guess = np.array([inst.rate_guess for inst in instruments], dtype=float)
        count = self.parameter_count(instruments)
        if len(guess) != count:
            guess = np.full(count, float(np.mean(guess)) if len(guess) else 0.0)
        return guess

    def bind(self, instruments: Sequence) -> "CurveGenerator":
        """Return the final generator for this instrument list."""
        return self

    @abstractmethod
    def build(self, name: str, parameters: Sequence[float]) -> BaseCurve:
        """Build the curve for a parameter vector.

        Raises:
            InvalidParameterVector: If the vector length is wrong
        """
        pass

    def _check_length(self, name: str, parameters: Sequence[float], expected: int) -> None:
        if len(parameters) != expected:
            raise InvalidParameterVector(name, expected, len(parameters))


class InterpolatedYieldCurveGenerator(CurveGenerator):
    """Yield curve with one zero-rate node per instrument.

    Nodes sit at the instrument maturities (the last time at which each
    instrument depends on the curve). The template is unbound; ``bind``
    fixes the node times.
    """

    def __init__(
        self,
        interpolation_method: str = "LINEAR",
        node_times: Optional[Sequence[float]] = None,
    ):
        if interpolation_method.upper() not in INTERPOLATION_METHODS:
            raise ValueError(
                f"Unknown interpolation method: {interpolation_method}. "
                f"Available: {', '.join(INTERPOLATION_METHODS)}"
            )
        self.interpolation_method = interpolation_method.upper()
        self.node_times: Optional[Tuple[float, ...]] = (
            tuple(float(t) for t in node_times) if node_times is not None else None
        )

    def parameter_count(self, instruments: Sequence) -> int:
        if self.node_times is not None:
            return len(self.node_times)
        return len(instruments)

    def bind(self, instruments: Sequence) -> "InterpolatedYieldCurveGenerator":
        if self.node_times is not None:
            return self
        return InterpolatedYieldCurveGenerator(
            self.interpolation_method,
            node_times=[inst.maturity for inst in instruments],
        )

    def build(self, name: str, parameters: Sequence[float]) -> YieldCurve:
        if self.node_times is None:
            raise ValueError(
                f"Generator for curve '{name}' must be bound to instruments before build"
            )
        self._check_length(name, parameters, len(self.node_times))
        return YieldCurve(name, self.node_times, parameters, self.interpolation_method)

    def __repr__(self) -> str:
        return (f"InterpolatedYieldCurveGenerator('{self.interpolation_method}', "
                f"node_times={self.node_times})")


class ConstantYieldCurveGenerator(CurveGenerator):
    """Flat curve described by a single zero rate."""

    def parameter_count(self, instruments: Sequence) -> int:
        return 1

    def build(self, name: str, parameters: Sequence[float]) -> ConstantYieldCurve:
        self._check_length(name, parameters, 1)
        return ConstantYieldCurve(name, float(parameters[0]))

    def __repr__(self) -> str:
        return "ConstantYieldCurveGenerator()"
