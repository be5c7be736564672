"""
Pricing package - residuals and gradients of calibration instruments.

Main APIs:
---------
    - InstrumentPricer: Protocol consumed by the calibration engine
    - ParSpreadMarketQuotePricer: Model quote minus market quote
    - PointSensitivity: Value with discount factor and FX derivatives
"""

from .base import InstrumentPricer, PointSensitivity
from .par_spread import ParSpreadMarketQuotePricer

__all__ = [
    "InstrumentPricer",
    "PointSensitivity",
    "ParSpreadMarketQuotePricer",
]
