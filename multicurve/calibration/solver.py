"""Vector root finder for one calibration unit.

The unknowns are the concatenated parameter vectors of the unit's curves;
the equations are the residuals of the unit's instruments. Each iteration
builds trial curves from the generators, reprices every instrument against
the known curves plus the trial curves, and takes a Newton step (or a
Broyden quasi-Newton step) on the residual vector.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from multicurve.errors import CalibrationDidNotConverge, NonInvertibleJacobian
from multicurve.provider import MulticurveProvider

from .config import SolverConfig
from .unit import CalibrationUnit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UnitSolution:
    """Converged state of a unit.

    ``jacobian`` is the residual Jacobian d(residuals)/d(parameters)
    evaluated at ``parameters``; rows follow the unit's instrument order and
    columns its parameter order.
    """

    parameters: np.ndarray
    residuals: np.ndarray
    jacobian: np.ndarray
    iterations: int
    curves: Tuple

    @property
    def residual_norm(self) -> float:
        return float(np.max(np.abs(self.residuals))) if self.residuals.size else 0.0


class UnitSolver:
    """Newton or Broyden solve of a single unit against a fixed provider."""

    def __init__(self, pricer, config: Optional[SolverConfig] = None):
        self.pricer = pricer
        self.config = config or SolverConfig()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def solve(
        self,
        unit: CalibrationUnit,
        provider: MulticurveProvider,
        unit_index: int = 0,
        initial_guess: Optional[Sequence[float]] = None,
    ) -> UnitSolution:
        """Calibrate the curves of ``unit`` so every instrument reprices at market.

        Args:
            unit: Curves and instruments solved together
            provider: Curves known before this unit; not modified
            unit_index: Position of the unit in its block, for error context
            initial_guess: Starting parameters; defaults to the unit's guess

        Returns:
            UnitSolution with the parameters, residuals, Jacobian and curves

        Raises:
            UnderOrOverDeterminedUnit: If instrument and parameter counts differ
            CalibrationDidNotConverge: If ``max_iterations`` is exhausted
            NonInvertibleJacobian: If the Jacobian is singular or ill-conditioned
        """
        unit.validate(unit_index)
        cfg = self.config
        names = unit.curve_names

        params = (np.array(initial_guess, dtype=float) if initial_guess is not None
                  else unit.guess())
        if params.shape != (unit.parameter_count,):
            raise ValueError(
                f"Initial guess has {params.size} values for {unit.parameter_count} parameters"
            )

        residuals = self._residuals(unit, provider, params, unit_index)
        jacobian = None
        iterations = 0

        while True:
            norm = float(np.max(np.abs(residuals)))
            logger.debug("Unit %s iter %s: max|r|=%.3e", unit_index, iterations, norm)
            if norm < cfg.absolute_tolerance:
                break
            if iterations >= cfg.max_iterations:
                raise CalibrationDidNotConverge(unit_index, names, iterations, residuals)

            if jacobian is None or cfg.method == "NEWTON":
                jacobian = self._jacobian(unit, provider, params, residuals)
            step = self._newton_step(jacobian, residuals, unit_index, names)

            params = params + step
            iterations += 1
            new_residuals = self._residuals(unit, provider, params, unit_index)
            if cfg.method == "BROYDEN":
                jacobian = jacobian + np.outer(
                    new_residuals - residuals - jacobian @ step, step
                ) / float(step @ step)
            residuals = new_residuals

            if np.max(np.abs(step)) < cfg.relative_tolerance * (1.0 + np.max(np.abs(params))):
                norm = float(np.max(np.abs(residuals)))
                if norm >= cfg.absolute_tolerance:
                    logger.warning(
                        "Unit %s (%s) stopped on step size at iter %s with max|r|=%.3e above tolerance %.1e",
                        unit_index, ", ".join(names), iterations, norm, cfg.absolute_tolerance,
                    )
                else:
                    logger.debug("Unit %s converged on step size at iter %s", unit_index, iterations)
                break

        final_jacobian = self._jacobian(unit, provider, params, residuals)
        self._check_conditioning(final_jacobian, unit_index, names)
        curves = tuple(unit.build_curves(params))

        if cfg.verbose:
            logger.info(
                "Unit %s (%s) converged in %s iterations, max|r|=%.3e",
                unit_index, ", ".join(names), iterations, float(np.max(np.abs(residuals))),
            )
        return UnitSolution(
            parameters=params,
            residuals=residuals,
            jacobian=final_jacobian,
            iterations=iterations,
            curves=curves,
        )

    # ------------------------------------------------------------------
    # Residuals and Jacobian
    # ------------------------------------------------------------------
    def _trial_provider(self, unit: CalibrationUnit, provider: MulticurveProvider,
                        params: np.ndarray) -> MulticurveProvider:
        return provider.with_curves(unit.build_curves(params))

    def _residuals(self, unit: CalibrationUnit, provider: MulticurveProvider,
                   params: np.ndarray, unit_index: int) -> np.ndarray:
        trial = self._trial_provider(unit, provider, params)
        residuals = np.array([self.pricer.residual(inst, trial) for inst in unit.instruments])
        if not np.all(np.isfinite(residuals)):
            raise NonInvertibleJacobian(unit_index, unit.curve_names, reason="non-finite residuals")
        return residuals

    def _jacobian(self, unit: CalibrationUnit, provider: MulticurveProvider,
                  params: np.ndarray, residuals: np.ndarray) -> np.ndarray:
        if self.config.jacobian == "FINITE_DIFFERENCE":
            return self._finite_difference_jacobian(unit, provider, params, residuals)
        trial = self._trial_provider(unit, provider, params)
        jacobian = np.zeros((unit.instrument_count, unit.parameter_count))
        slices = unit.parameter_slices()
        for row, inst in enumerate(unit.instruments):
            gradients = self.pricer.residual_gradients(inst, trial, unit.curve_names)
            for curve, sl in slices:
                jacobian[row, sl] = gradients[curve.name]
        return jacobian

    def _finite_difference_jacobian(self, unit: CalibrationUnit, provider: MulticurveProvider,
                                    params: np.ndarray, residuals: np.ndarray) -> np.ndarray:
        shift = self.config.finite_difference_shift
        jacobian = np.zeros((unit.instrument_count, unit.parameter_count))
        for col in range(unit.parameter_count):
            bumped = params.copy()
            bumped[col] += shift
            trial = self._trial_provider(unit, provider, bumped)
            bumped_residuals = np.array(
                [self.pricer.residual(inst, trial) for inst in unit.instruments]
            )
            jacobian[:, col] = (bumped_residuals - residuals) / shift
        return jacobian

    # ------------------------------------------------------------------
    # Linear algebra
    # ------------------------------------------------------------------
    def _check_conditioning(self, jacobian: np.ndarray, unit_index: int,
                            names: Sequence[str]) -> None:
        if not np.all(np.isfinite(jacobian)):
            raise NonInvertibleJacobian(unit_index, names, reason="non-finite Jacobian")
        condition = float(np.linalg.cond(jacobian))
        if not np.isfinite(condition) or condition > self.config.max_condition_number:
            raise NonInvertibleJacobian(unit_index, names, condition_number=condition)

    def _newton_step(self, jacobian: np.ndarray, residuals: np.ndarray,
                     unit_index: int, names: Sequence[str]) -> np.ndarray:
        self._check_conditioning(jacobian, unit_index, names)
        try:
            step = np.linalg.solve(jacobian, -residuals)
        except np.linalg.LinAlgError as exc:
            raise NonInvertibleJacobian(unit_index, names) from exc
        if not np.all(np.isfinite(step)):
            raise NonInvertibleJacobian(unit_index, names, reason="non-finite Newton step")
        return step
