"""
Calibration package - simultaneous multi-curve calibration with Jacobian chaining.

Main APIs:
---------
    - CurveDefinition / CalibrationUnit / CalibrationBlock: What to calibrate
    - SolverConfig: Root finder settings
    - UnitSolver: Newton/Broyden solve of a single unit
    - CurveBuildingRepository: Block orchestration and sensitivity chaining
    - SensitivityBundle / CurveBuildingBlock: Parameter-to-quote Jacobians
    - parameter_sensitivity / market_quote_sensitivity: Downstream risk

Usage:
------
    >>> repo = CurveBuildingRepository(ParSpreadMarketQuotePricer())
    >>> provider, bundle = repo.calibrate_block(block)
"""

from multicurve.errors import (
    CalibrationDidNotConverge,
    CalibrationError,
    InvalidParameterVector,
    NonInvertibleJacobian,
    UnderOrOverDeterminedUnit,
)

from .bundle import CurveBuildingBlock, SensitivityBundle, fx_axis
from .config import SolverConfig
from .market_quote import market_quote_sensitivity, parameter_sensitivity
from .repository import CalibrationResult, CurveBuildingRepository, UnitReport
from .solver import UnitSolution, UnitSolver
from .unit import CalibrationBlock, CalibrationUnit, CurveDefinition

__all__ = [
    "CurveDefinition",
    "CalibrationUnit",
    "CalibrationBlock",
    "SolverConfig",
    "UnitSolver",
    "UnitSolution",
    "CurveBuildingRepository",
    "CalibrationResult",
    "UnitReport",
    "CurveBuildingBlock",
    "SensitivityBundle",
    "fx_axis",
    "parameter_sensitivity",
    "market_quote_sensitivity",
    "CalibrationError",
    "InvalidParameterVector",
    "UnderOrOverDeterminedUnit",
    "CalibrationDidNotConverge",
    "NonInvertibleJacobian",
]
