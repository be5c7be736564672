"""
Base classes for curve interpolation methods.
"""
from abc import ABC, abstractmethod
from typing import Sequence

import numpy as np


class Interpolator(ABC):
    """Base class for curve interpolation methods.

    Besides the interpolated value, every interpolator reports the
    sensitivity of that value to each node value. Calibration uses these
    weights to turn instrument sensitivities into curve parameter
    sensitivities.
    """

    def __init__(self, pillars: Sequence[float], values: Sequence[float]):
        """
        Initialize interpolator.

        Args:
            pillars: Time to maturity points (in years)
            values: Values to interpolate (zero rates at the pillars)
        """
        if len(pillars) != len(values):
            raise ValueError("Pillars and values must have same length")
        if len(pillars) < 1:
            raise ValueError("Need at least 1 point for interpolation")

        # Stable sort keeps the caller's order for repeated pillars
        order = np.argsort(np.asarray(pillars, dtype=float), kind="stable")
        self.order = order
        self.pillars = np.asarray(pillars, dtype=float)[order]
        self.values = np.asarray(values, dtype=float)[order]

    @abstractmethod
    def interpolate(self, t: float) -> float:
        """Interpolate value at time t."""
        pass

    @abstractmethod
    def node_sensitivity(self, t: float) -> np.ndarray:
        """Derivative of the interpolated value at t with respect to each node value.

        The returned vector follows the order the values were supplied in,
        not the sorted pillar order.
        """
        pass

    def _bracket(self, t: float):
        """Return (index, weight) of the sorted segment containing t.

        Outside the pillar range the weight is pinned so that the result is
        flat extrapolation of the first or last value.
        """
        if t <= self.pillars[0]:
            return 0, 0.0
        if t >= self.pillars[-1]:
            return len(self.pillars) - 1, 0.0

        i = int(np.searchsorted(self.pillars, t, side="right")) - 1
        t1, t2 = self.pillars[i], self.pillars[i + 1]
        if t2 == t1:
            return i, 0.0
        return i, (t - t1) / (t2 - t1)

    def _unsort(self, sorted_weights: np.ndarray) -> np.ndarray:
        result = np.zeros(len(self.pillars))
        result[self.order] = sorted_weights
        return result
