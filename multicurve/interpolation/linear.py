"""
Linear interpolation methods for yield curves.
"""
import numpy as np

from .base import Interpolator


class LinearInterpolator(Interpolator):
    """Linear interpolation on the node values with flat extrapolation.

    Applied to zero rates this is the usual "linear on yield" scheme.
    Simple and local: each interpolated value depends on two nodes only.
    """

    def interpolate(self, t: float) -> float:
        """Linear interpolation between the surrounding nodes."""
        i, weight = self._bracket(t)
        if weight == 0.0:
            return float(self.values[i])
        v1, v2 = self.values[i], self.values[i + 1]
        return float(v1 + weight * (v2 - v1))

    def node_sensitivity(self, t: float) -> np.ndarray:
        weights = np.zeros(len(self.pillars))
        i, weight = self._bracket(t)
        weights[i] = 1.0 - weight
        if weight != 0.0:
            weights[i + 1] = weight
        return self._unsort(weights)
