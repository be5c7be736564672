"""
Interpolation methods for yield curves.

The calibration engine treats curves as opaque, but the reference curves it
ships with interpolate zero rates between nodes. Each interpolator also
reports how the interpolated value moves with every node value.
"""

# Base classes
from .base import Interpolator

# Factory
from .factory import INTERPOLATION_METHODS, create_interpolator

# Interpolation methods
from .linear import LinearInterpolator
from .step_forward import StepForwardContinuousInterpolator

__all__ = [
    'Interpolator',
    'LinearInterpolator',
    'StepForwardContinuousInterpolator',
    'INTERPOLATION_METHODS',
    'create_interpolator',
]
