"""Block calibration and Jacobian chaining.

Units of a block are solved in order. After each unit the converged curves
join the provider, and their parameter-to-quote Jacobian is computed by the
implicit function theorem: at the solution r(p, x) = 0, so

    dp/dx = -(dr/dp)^-1 . dr/dx

where x collects the unit's own quotes, the market inputs of every upstream
curve the unit prices against (reached through that curve's bundle entry),
and the FX spot rates the unit's instruments depend on directly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from multicurve.errors import NonInvertibleJacobian
from multicurve.provider import MulticurveProvider

from .bundle import CurveBuildingBlock, SensitivityBundle, fx_axis
from .config import SolverConfig
from .solver import UnitSolution, UnitSolver
from .unit import CalibrationBlock, CalibrationUnit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UnitReport:
    """Summary of one solved unit."""

    unit_index: int
    curve_names: Tuple[str, ...]
    iterations: int
    residual_norm: float


@dataclass(frozen=True)
class CalibrationResult:
    """Aggregate output of a block calibration."""

    provider: MulticurveProvider
    bundle: SensitivityBundle
    reports: Tuple[UnitReport, ...]

    def __iter__(self):
        yield self.provider
        yield self.bundle

    @property
    def iterations(self) -> int:
        return sum(r.iterations for r in self.reports)


class CurveBuildingRepository:
    """Calibrates blocks of units and assembles the sensitivity bundle."""

    def __init__(self, pricer, config: Optional[SolverConfig] = None):
        self.pricer = pricer
        self.config = config or SolverConfig()
        self._solver = UnitSolver(pricer, self.config)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def calibrate_block(
        self,
        block: CalibrationBlock,
        known_data: Optional[MulticurveProvider] = None,
        known_bundle: Optional[SensitivityBundle] = None,
    ) -> CalibrationResult:
        """Calibrate every unit of ``block`` in order.

        Args:
            block: Units to solve, in dependency order
            known_data: Curves and FX rates available before the block; copied
            known_bundle: Sensitivities of the known curves, if any

        Returns:
            CalibrationResult with the provider of known plus calibrated
            curves, the frozen bundle and one report per unit

        Raises:
            UnderOrOverDeterminedUnit: If any unit is not square; raised
                before anything is solved
            CalibrationDidNotConverge: If a unit exhausts its iterations
            NonInvertibleJacobian: If a unit's Jacobian cannot be inverted
        """
        for index, unit in enumerate(block):
            unit.validate(index)

        provider = known_data.copy() if known_data is not None else MulticurveProvider()
        bundle = known_bundle.copy() if known_bundle is not None else SensitivityBundle()
        for name in block.curve_names:
            if name in provider:
                logger.warning("Curve %s is already known and will be recalibrated", name)

        reports: List[UnitReport] = []
        for index, unit in enumerate(block):
            solution = self._solver.solve(unit, provider, unit_index=index)
            for curve in solution.curves:
                provider.add_curve(curve)
                self._warn_if_not_monotone(curve)
            self._store_unit_jacobian(unit, index, solution, provider, bundle)
            reports.append(UnitReport(
                unit_index=index,
                curve_names=unit.curve_names,
                iterations=solution.iterations,
                residual_norm=solution.residual_norm,
            ))

        if self.config.verbose:
            logger.info(
                "Calibrated block of %s units (%s) in %s iterations",
                len(block), ", ".join(block.curve_names), sum(r.iterations for r in reports),
            )
        return CalibrationResult(provider=provider, bundle=bundle.freeze(), reports=tuple(reports))

    def calibrate_blocks(
        self,
        blocks: Sequence[CalibrationBlock],
        known_data: Optional[MulticurveProvider] = None,
        known_bundle: Optional[SensitivityBundle] = None,
    ) -> CalibrationResult:
        """Calibrate blocks one after the other, each seeing the previous results."""
        if not blocks:
            raise ValueError("Need at least one block to calibrate")
        provider, bundle = known_data, known_bundle
        reports: List[UnitReport] = []
        result = None
        for block in blocks:
            result = self.calibrate_block(block, provider, bundle)
            provider, bundle = result.provider, result.bundle
            reports.extend(result.reports)
        return CalibrationResult(provider=result.provider, bundle=result.bundle, reports=tuple(reports))

    # ------------------------------------------------------------------
    # Jacobian chaining
    # ------------------------------------------------------------------
    def _store_unit_jacobian(
        self,
        unit: CalibrationUnit,
        unit_index: int,
        solution: UnitSolution,
        provider: MulticurveProvider,
        bundle: SensitivityBundle,
    ) -> None:
        instruments = unit.instruments
        n = len(instruments)
        upstream = self._upstream_curves(unit, provider, bundle)

        # Direct FX dependence, one column per pair
        fx_rows: List[Dict[str, float]] = [
            self.pricer.residual_gradient_wrt_fx(inst, provider) for inst in instruments
        ]
        fx_pairs: List[str] = []
        for row in fx_rows:
            for pair in row:
                if pair.upper() not in fx_pairs:
                    fx_pairs.append(pair.upper())

        own_axes = [(c.name, c.instrument_count) for c in unit.curves]
        layout = CurveBuildingBlock.union(
            [bundle.block(name) for name in upstream],
            [(fx_axis(pair), 1) for pair in fx_pairs] + own_axes,
        )

        # d residuals / d market inputs, laid out as `layout`
        rhs = np.zeros((n, layout.column_count))
        upstream_gradients = [
            self.pricer.residual_gradients(inst, provider, upstream) for inst in instruments
        ]
        for name in upstream:
            upstream_block, upstream_matrix = bundle.get(name)
            gradient = np.array([row[name] for row in upstream_gradients])
            rhs += upstream_block.expand(gradient @ upstream_matrix, layout)
        for row, gradients in enumerate(fx_rows):
            for pair, value in gradients.items():
                rhs[row, layout.columns(fx_axis(pair)).start] += value
        for curve, rows in unit.instrument_slices():
            start = layout.columns(curve.name).start
            for offset, inst in enumerate(curve.instruments):
                rhs[rows.start + offset, start + offset] = self.pricer.residual_gradient_wrt_quote(inst)

        try:
            sensitivities = -np.linalg.solve(solution.jacobian, rhs)
        except np.linalg.LinAlgError as exc:
            raise NonInvertibleJacobian(unit_index, unit.curve_names) from exc

        for curve, sl in unit.parameter_slices():
            bundle.add(curve.name, layout, sensitivities[sl, :])
        logger.debug(
            "Unit %s Jacobian stored with axes %s", unit_index, ", ".join(layout.axis_names)
        )

    def _upstream_curves(
        self,
        unit: CalibrationUnit,
        provider: MulticurveProvider,
        bundle: SensitivityBundle,
    ) -> List[str]:
        """Curves outside the unit, with a bundle entry, that its instruments price against."""
        own = set(unit.curve_names)
        upstream: List[str] = []
        fixed: List[str] = []
        for inst in unit.instruments:
            for name in inst.curve_names:
                if name in own or name in upstream:
                    continue
                if name in bundle:
                    upstream.append(name)
                elif name in provider and name not in fixed:
                    fixed.append(name)
                    logger.warning(
                        "Curve %s has no sensitivity entry; treated as fixed for %s",
                        name, ", ".join(unit.curve_names),
                    )
        return upstream

    @staticmethod
    def _warn_if_not_monotone(curve) -> None:
        times = getattr(curve, "node_times", None)
        if times is None or len(times) < 2:
            return
        dfs = np.array([curve.df(t) for t in sorted(times)])
        if np.any(np.diff(dfs) > 0):
            logger.warning("Curve %s has increasing discount factors", curve.name)
