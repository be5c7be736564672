"""
Factory functions for creating interpolators.
"""
from typing import Sequence

from .base import Interpolator
from .linear import LinearInterpolator
from .step_forward import StepForwardContinuousInterpolator

INTERPOLATION_METHODS = ("LINEAR", "STEP_FORWARD")


def create_interpolator(method: str,
                        pillars: Sequence[float],
                        values: Sequence[float]) -> Interpolator:
    """
    Create an interpolator based on method name.

    Args:
        method: Interpolation method name
        pillars: Time points
        values: Zero rates at the time points

    Returns:
        Configured interpolator
    """
    method_upper = method.upper()

    if method_upper in ("LINEAR", "LINEAR_ZERO"):
        return LinearInterpolator(pillars, values)
    elif method_upper in ("STEP_FORWARD", "STEP_FORWARD_CONTINUOUS", "LOGLINEAR_DF"):
        return StepForwardContinuousInterpolator(pillars, values)
    else:
        raise ValueError(f"Unknown interpolation method: {method}. "
                         f"Available: {', '.join(INTERPOLATION_METHODS)}")
