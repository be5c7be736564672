"""Multi-curve interest rate calibration.

This package calibrates sets of interest rate curves simultaneously from
market quotes and chains the sensitivities of every curve parameter to the
quotes (and FX spots) it was built from, across units and blocks.

Key modules:
- calibration: Units, blocks, the unit solver and the sensitivity bundle
- curves: Yield curves and the generators that build them
- instruments: Deposits, FRAs, swaps, OIS and FX swaps
- pricing: Par spread market quote pricer
- provider: Curve and FX rate provider
- interpolation: Zero rate interpolators with node sensitivities
"""

from multicurve.calibration import (
    CalibrationBlock,
    CalibrationResult,
    CalibrationUnit,
    CurveBuildingRepository,
    CurveDefinition,
    SensitivityBundle,
    SolverConfig,
)
from multicurve.pricing import ParSpreadMarketQuotePricer
from multicurve.provider import MulticurveProvider

__version__ = "1.0.0"

__all__ = [
    "__version__",
    "CurveDefinition",
    "CalibrationUnit",
    "CalibrationBlock",
    "CalibrationResult",
    "CurveBuildingRepository",
    "SensitivityBundle",
    "SolverConfig",
    "ParSpreadMarketQuotePricer",
    "MulticurveProvider",
]
