"""
Yield curves described by zero rates at node times.
"""
from typing import Sequence

import numpy as np

from multicurve.interpolation import create_interpolator

from .base import BaseCurve


class YieldCurve(BaseCurve):
    """
    Curve of continuously compounded zero rates interpolated between nodes.

    The parameters are the zero rates at the node times, in the order the
    nodes were supplied. The same class serves discounting and forward
    projection curves; for a projection curve the discount factors are
    pseudo-discount factors of the index.
    """

    def __init__(self,
                 name: str,
                 node_times: Sequence[float],
                 zero_rates: Sequence[float],
                 interpolation_method: str = "LINEAR"):
        """
        Initialize yield curve.

        Args:
            name: Curve name
            node_times: Node times in years from the reference date
            zero_rates: Continuously compounded zero rates at the nodes
            interpolation_method: "LINEAR" (on zero rates) or "STEP_FORWARD"
        """
        if len(node_times) != len(zero_rates):
            raise ValueError("Node times and zero rates must have same length")

        super().__init__(name, zero_rates)
        self.node_times = tuple(float(t) for t in node_times)
        self.interpolation_method = interpolation_method
        self.interpolator = create_interpolator(
            interpolation_method, self.node_times, self._parameters
        )

    def zero(self, t: float) -> float:
        """Get continuously compounded zero rate at time t."""
        return self.interpolator.interpolate(t)

    def zero_parameter_sensitivity(self, t: float) -> np.ndarray:
        return self.interpolator.node_sensitivity(t)

    def __str__(self) -> str:
        return f"YieldCurve({self.name}, {len(self.node_times)} nodes, {self.interpolation_method})"

    def __repr__(self) -> str:
        return (f"YieldCurve(name='{self.name}', "
                f"node_times={list(self.node_times)}, "
                f"zero_rates={self._parameters.tolist()}, "
                f"interpolation_method='{self.interpolation_method}')")


class ConstantYieldCurve(BaseCurve):
    """Flat curve: a single zero rate for every time."""

    def __init__(self, name: str, rate: float):
        super().__init__(name, [rate])

    @property
    def rate(self) -> float:
        return float(self._parameters[0])

    def zero(self, t: float) -> float:
        return self.rate

    def zero_parameter_sensitivity(self, t: float) -> np.ndarray:
        return np.ones(1)

    def __repr__(self) -> str:
        return f"ConstantYieldCurve(name='{self.name}', rate={self.rate})"
