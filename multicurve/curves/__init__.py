"""
Curves package - curve objects and the generators that build them.

Main APIs:
---------
    - Curve: Protocol every curve satisfies
    - YieldCurve: Interpolated zero-rate curve
    - ConstantYieldCurve: Flat curve with a single parameter
    - CurveGenerator: Parameter vector -> curve contract
    - InterpolatedYieldCurveGenerator / ConstantYieldCurveGenerator
"""

from .base import BaseCurve, Curve
from .generators import (
    ConstantYieldCurveGenerator,
    CurveGenerator,
    InterpolatedYieldCurveGenerator,
)
from .yield_curve import ConstantYieldCurve, YieldCurve

__all__ = [
    "Curve",
    "BaseCurve",
    "YieldCurve",
    "ConstantYieldCurve",
    "CurveGenerator",
    "InterpolatedYieldCurveGenerator",
    "ConstantYieldCurveGenerator",
]
