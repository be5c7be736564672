import logging

import numpy as np
import pytest

from multicurve.calibration import (
    CalibrationUnit,
    CurveDefinition,
    SolverConfig,
    UnitSolver,
)
from multicurve.curves import ConstantYieldCurveGenerator, InterpolatedYieldCurveGenerator
from multicurve.errors import (
    CalibrationDidNotConverge,
    NonInvertibleJacobian,
    UnderOrOverDeterminedUnit,
)
from multicurve.instruments import deposit
from multicurve.pricing import ParSpreadMarketQuotePricer
from multicurve.provider import MulticurveProvider


class CountingPricer(ParSpreadMarketQuotePricer):
    def __init__(self):
        self.calls = 0

    def residual(self, instrument, provider):
        self.calls += 1
        return super().residual(instrument, provider)


class NanPricer(ParSpreadMarketQuotePricer):
    def residual(self, instrument, provider):
        return float("nan")


def _single_deposit_unit(rate=0.01):
    return CalibrationUnit((
        CurveDefinition("USD", InterpolatedYieldCurveGenerator(), [deposit("1Y", rate, "USD")]),
    ))


def test_one_year_deposit_from_zero_guess(pricer):
    solution = UnitSolver(pricer).solve(
        _single_deposit_unit(), MulticurveProvider(), initial_guess=[0.0]
    )
    curve = solution.curves[0]
    assert curve.df(1.0) == pytest.approx(1.0 / 1.01, abs=1e-10)
    assert solution.iterations < 5
    assert solution.residual_norm < 1e-10
    assert solution.jacobian.shape == (1, 1)


def test_solve_does_not_touch_provider(pricer, discount_definition):
    provider = MulticurveProvider()
    UnitSolver(pricer).solve(CalibrationUnit((discount_definition,)), provider)
    assert len(provider) == 0


def test_converged_unit_reprices_every_instrument(pricer, discount_definition):
    unit = CalibrationUnit((discount_definition,))
    solution = UnitSolver(pricer).solve(unit, MulticurveProvider())
    provider = MulticurveProvider(solution.curves)
    for inst in unit.instruments:
        assert abs(pricer.residual(inst, provider)) < 1e-10


@pytest.mark.parametrize(
    "config",
    [
        SolverConfig(method="BROYDEN"),
        SolverConfig(jacobian="FINITE_DIFFERENCE"),
        SolverConfig(method="BROYDEN", jacobian="FINITE_DIFFERENCE"),
    ],
    ids=["broyden", "finite-difference", "broyden-finite-difference"],
)
def test_alternative_modes_reach_newton_solution(pricer, discount_definition, config):
    unit = CalibrationUnit((discount_definition,))
    newton = UnitSolver(pricer).solve(unit, MulticurveProvider())
    other = UnitSolver(pricer, config).solve(unit, MulticurveProvider())
    np.testing.assert_allclose(other.parameters, newton.parameters, atol=1e-8)


def test_finite_difference_jacobian_matches_analytic(pricer, discount_definition):
    unit = CalibrationUnit((discount_definition,))
    analytic = UnitSolver(pricer).solve(unit, MulticurveProvider())
    numeric = UnitSolver(pricer, SolverConfig(jacobian="FINITE_DIFFERENCE")).solve(
        unit, MulticurveProvider()
    )
    np.testing.assert_allclose(numeric.jacobian, analytic.jacobian, atol=1e-5)


def test_dimension_mismatch_raised_before_pricing():
    pricer = CountingPricer()
    unit = CalibrationUnit((
        CurveDefinition(
            "USD",
            ConstantYieldCurveGenerator(),
            [deposit("1Y", 0.01, "USD"), deposit("2Y", 0.012, "USD")],
        ),
    ))
    with pytest.raises(UnderOrOverDeterminedUnit) as excinfo:
        UnitSolver(pricer).solve(unit, MulticurveProvider(), unit_index=3)
    assert excinfo.value.instrument_count == 2
    assert excinfo.value.parameter_count == 1
    assert excinfo.value.unit_index == 3
    assert excinfo.value.curve_names == ("USD",)
    assert pricer.calls == 0


def test_duplicate_tenors_give_singular_jacobian(pricer):
    unit = CalibrationUnit((
        CurveDefinition(
            "USD",
            InterpolatedYieldCurveGenerator(),
            [deposit("1Y", 0.010, "USD"), deposit("1Y", 0.011, "USD")],
        ),
    ))
    with pytest.raises(NonInvertibleJacobian) as excinfo:
        UnitSolver(pricer).solve(unit, MulticurveProvider())
    assert excinfo.value.curve_names == ("USD",)
    assert isinstance(excinfo.value, RuntimeError)


def test_iteration_cap_raises(pricer):
    solver = UnitSolver(pricer, SolverConfig(max_iterations=1))
    with pytest.raises(CalibrationDidNotConverge) as excinfo:
        solver.solve(_single_deposit_unit(), MulticurveProvider(), unit_index=2, initial_guess=[0.0])
    assert excinfo.value.iterations == 1
    assert excinfo.value.residuals.shape == (1,)
    assert excinfo.value.residual_norm > 1e-10
    assert "unit 2" in str(excinfo.value)


def test_non_finite_residuals_rejected():
    with pytest.raises(NonInvertibleJacobian, match="non-finite residuals"):
        UnitSolver(NanPricer()).solve(_single_deposit_unit(), MulticurveProvider())


def test_initial_guess_length_checked(pricer):
    with pytest.raises(ValueError, match="Initial guess"):
        UnitSolver(pricer).solve(_single_deposit_unit(), MulticurveProvider(), initial_guess=[0.0, 0.0])


def test_step_size_stop_above_tolerance_is_warned(pricer, caplog):
    # One Newton step on exp(z) - 1 = 1% leaves a residual of about 5e-5
    solver = UnitSolver(pricer, SolverConfig(relative_tolerance=1.0))
    with caplog.at_level(logging.WARNING, logger="multicurve.calibration.solver"):
        solution = solver.solve(_single_deposit_unit(), MulticurveProvider(), unit_index=4,
                                initial_guess=[0.0])
    assert solution.iterations == 1
    assert solution.residual_norm > 1e-10
    assert "Unit 4 (USD) stopped on step size" in caplog.text


def test_converged_solve_logs_no_warning(pricer, discount_definition, caplog):
    with caplog.at_level(logging.WARNING, logger="multicurve.calibration.solver"):
        UnitSolver(pricer).solve(CalibrationUnit((discount_definition,)), MulticurveProvider())
    assert caplog.records == []
