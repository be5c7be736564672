"""
Step forward interpolation methods
"""
import numpy as np

from .base import Interpolator


class StepForwardContinuousInterpolator(Interpolator):
    """Step Forward (continuous) interpolation

    Forward rates are piecewise constant (step function) between pillar points.
    Node values are continuously compounded zero rates; the interpolation is
    linear in ``z(t) * t`` (the log discount factor), which is exactly the
    piecewise constant forward scheme. Zero rates are extrapolated flat.
    """

    def interpolate(self, t: float) -> float:
        """Interpolate the zero rate at time t."""
        i, weight = self._bracket(t)
        if weight == 0.0:
            return float(self.values[i])

        t1, t2 = self.pillars[i], self.pillars[i + 1]
        y1 = self.values[i] * t1
        y2 = self.values[i + 1] * t2
        return float((y1 + weight * (y2 - y1)) / t)

    def node_sensitivity(self, t: float) -> np.ndarray:
        weights = np.zeros(len(self.pillars))
        i, weight = self._bracket(t)
        if weight == 0.0:
            weights[i] = 1.0
            return self._unsort(weights)

        weights[i] = (1.0 - weight) * self.pillars[i] / t
        weights[i + 1] = weight * self.pillars[i + 1] / t
        return self._unsort(weights)
