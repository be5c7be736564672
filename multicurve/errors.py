"""Exceptions raised by curve generators and the calibration engine.

Every error aborts the calibration of the block it occurs in. The context
attached to each exception (unit index, curve names, iteration count) is
enough to reproduce the failure on the offending unit alone.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np


class CalibrationError(Exception):
    """Base class for calibration failures."""

    def __init__(
        self,
        message: str,
        *,
        unit_index: Optional[int] = None,
        curve_names: Sequence[str] = (),
    ):
        self.unit_index = unit_index
        self.curve_names = tuple(curve_names)
        super().__init__(self._with_context(message))

    def _with_context(self, message: str) -> str:
        if self.unit_index is None and not self.curve_names:
            return message
        where = []
        if self.unit_index is not None:
            where.append(f"unit {self.unit_index}")
        if self.curve_names:
            where.append("curves " + ", ".join(self.curve_names))
        return f"{message} [{'; '.join(where)}]"


class InvalidParameterVector(CalibrationError, ValueError):
    """Raised when a generator receives a parameter vector of the wrong length."""

    def __init__(self, curve_name: str, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Curve '{curve_name}' expects {expected} parameters, got {actual}",
            curve_names=(curve_name,),
        )


class UnderOrOverDeterminedUnit(CalibrationError, ValueError):
    """Raised when a unit's instrument count differs from its parameter count."""

    def __init__(
        self,
        unit_index: Optional[int],
        curve_names: Sequence[str],
        instrument_count: int,
        parameter_count: int,
    ):
        self.instrument_count = instrument_count
        self.parameter_count = parameter_count
        super().__init__(
            f"Unit has {instrument_count} instruments for {parameter_count} parameters",
            unit_index=unit_index,
            curve_names=curve_names,
        )


class CalibrationDidNotConverge(CalibrationError, RuntimeError):
    """Raised when the root finder hits the iteration cap."""

    def __init__(
        self,
        unit_index: Optional[int],
        curve_names: Sequence[str],
        iterations: int,
        residuals: np.ndarray,
    ):
        self.iterations = iterations
        self.residuals = np.asarray(residuals, dtype=float)
        self.residual_norm = float(np.max(np.abs(self.residuals))) if self.residuals.size else 0.0
        super().__init__(
            f"Calibration did not converge after {iterations} iterations "
            f"(max residual {self.residual_norm:.6e})",
            unit_index=unit_index,
            curve_names=curve_names,
        )


class NonInvertibleJacobian(CalibrationError, RuntimeError):
    """Raised when the residual Jacobian of a unit cannot be inverted."""

    def __init__(
        self,
        unit_index: Optional[int],
        curve_names: Sequence[str],
        condition_number: Optional[float] = None,
        reason: str = "singular residual Jacobian",
    ):
        self.condition_number = condition_number
        message = f"Non-invertible Jacobian: {reason}"
        if condition_number is not None:
            message += f" (condition number {condition_number:.3e})"
        super().__init__(message, unit_index=unit_index, curve_names=curve_names)
