import logging

import numpy as np
import pytest

from multicurve.calibration import (
    CalibrationBlock,
    CalibrationUnit,
    CurveBuildingRepository,
    CurveDefinition,
    SensitivityBundle,
    SolverConfig,
)
from multicurve.curves import (
    ConstantYieldCurve,
    ConstantYieldCurveGenerator,
    InterpolatedYieldCurveGenerator,
)
from multicurve.errors import CalibrationDidNotConverge, UnderOrOverDeterminedUnit
from multicurve.instruments import deposit, deposits, fixed_float_swaps
from multicurve.provider import MulticurveProvider

DSC = "EUR-ESTR"
FWD = "EUR-EURIBOR3M"
USD = "USD-SOFR"
EUR_FX = "EUR-FX"


@pytest.fixture
def precise_repository(pricer):
    # Solve to noise level so bump-and-recalibrate differences are clean
    return CurveBuildingRepository(pricer, SolverConfig(absolute_tolerance=1e-14))


def test_every_instrument_reprices(pricer, dual_curve_block, dual_curve_result):
    provider = dual_curve_result.provider
    for unit in dual_curve_block:
        for inst in unit.instruments:
            assert abs(pricer.residual(inst, provider)) < 1e-9
    assert [r.curve_names for r in dual_curve_result.reports] == [(DSC,), (FWD,)]
    assert all(r.residual_norm < 1e-9 for r in dual_curve_result.reports)


def test_result_unpacks_to_provider_and_frozen_bundle(dual_curve_result):
    provider, bundle = dual_curve_result
    assert provider.curve_names == (DSC, FWD)
    assert bundle.curve_names == (DSC, FWD)
    assert bundle.frozen


def test_forward_jacobian_spans_discount_and_own_quotes(dual_curve_result):
    bundle = dual_curve_result.bundle
    assert bundle.block(DSC).axis_names == (DSC,)
    block = bundle.block(FWD)
    assert block.axis_names == (DSC, FWD)
    assert block[DSC] == (0, 7)
    assert block[FWD] == (7, 5)

    matrix = bundle.matrix(FWD)
    assert matrix.shape == (5, 12)
    assert np.abs(matrix[:, block.columns(DSC)]).max() > 1e-6
    assert np.all(np.abs(matrix[:, block.columns(FWD)]).max(axis=0) > 1e-6)


def test_deposit_discount_curve_feeds_at_market_swaps(pricer, repository):
    discount = CurveDefinition(
        "DSC", InterpolatedYieldCurveGenerator(),
        deposits([("6M", 0.035), ("1Y", 0.034), ("2Y", 0.032)], "DSC"),
    )
    forward = CurveDefinition(
        "FWD", InterpolatedYieldCurveGenerator(),
        fixed_float_swaps([("1Y", 0.037), ("2Y", 0.036), ("3Y", 0.035)], "DSC", "FWD"),
    )
    result = repository.calibrate_block(CalibrationBlock.single(discount, forward))

    for inst in forward.instruments:
        assert abs(pricer.residual(inst, result.provider)) < 1e-9
    block = result.bundle.block("FWD")
    matrix = result.bundle.matrix("FWD")
    assert block.axis_names == ("DSC", "FWD")
    assert np.all(np.abs(matrix[:, block.columns("DSC")]).max(axis=0) > 1e-8)
    assert np.all(np.abs(matrix[:, block.columns("FWD")]).max(axis=0) > 1e-8)


def test_discount_jacobian_is_inverse_of_residual_jacobian(pricer, repository, discount_definition):
    # Single unit: dp/dq = -J^-1 . diag(dr/dq) = J^-1
    result = repository.calibrate_block(CalibrationBlock.single(discount_definition))
    solution_jacobian = np.array([
        pricer.residual_gradient_wrt_parameters(inst, result.provider, DSC)
        for inst in discount_definition.instruments
    ])
    np.testing.assert_allclose(
        result.bundle.matrix(DSC) @ solution_jacobian, np.eye(7), atol=1e-9
    )


def test_chain_rule_matches_recalibration(
    precise_repository, make_discount_definition, make_forward_definition, bump_quote
):
    shift = 1e-5
    base = precise_repository.calibrate_block(
        CalibrationBlock.single(make_discount_definition(), make_forward_definition())
    )
    block = base.bundle.block(FWD)
    matrix = base.bundle.matrix(FWD)

    def forward_parameters(dsc_definition, fwd_definition):
        result = precise_repository.calibrate_block(CalibrationBlock.single(dsc_definition, fwd_definition))
        return result.provider.get_curve(FWD).parameters

    # 5Y OIS quote of the discount curve, reached through the chain rule
    up = forward_parameters(bump_quote(make_discount_definition(), 6, shift), make_forward_definition())
    down = forward_parameters(bump_quote(make_discount_definition(), 6, -shift), make_forward_definition())
    np.testing.assert_allclose(
        (up - down) / (2 * shift), matrix[:, block[DSC][0] + 6], atol=1e-7
    )

    # 2Y swap quote of the forward curve itself
    up = forward_parameters(make_discount_definition(), bump_quote(make_forward_definition(), 3, shift))
    down = forward_parameters(make_discount_definition(), bump_quote(make_forward_definition(), 3, -shift))
    np.testing.assert_allclose(
        (up - down) / (2 * shift), matrix[:, block[FWD][0] + 3], atol=1e-7
    )


def test_joint_unit_matches_chained_units(repository, discount_definition, forward_definition,
                                          dual_curve_result):
    joint = repository.calibrate_block(
        CalibrationBlock((CalibrationUnit((discount_definition, forward_definition)),))
    )
    assert joint.bundle.block(FWD) == dual_curve_result.bundle.block(FWD)
    np.testing.assert_allclose(
        joint.provider.get_curve(FWD).parameters,
        dual_curve_result.provider.get_curve(FWD).parameters,
        atol=1e-9,
    )
    np.testing.assert_allclose(
        joint.bundle.matrix(FWD), dual_curve_result.bundle.matrix(FWD), atol=1e-9
    )


def test_calibration_is_deterministic(repository, dual_curve_block):
    first = repository.calibrate_block(dual_curve_block)
    second = repository.calibrate_block(dual_curve_block)
    for name in (DSC, FWD):
        np.testing.assert_array_equal(
            first.provider.get_curve(name).parameters, second.provider.get_curve(name).parameters
        )
        np.testing.assert_array_equal(first.bundle.matrix(name), second.bundle.matrix(name))


def test_calibrate_blocks_chains_sensitivities(repository, discount_definition, forward_definition,
                                               dual_curve_result):
    result = repository.calibrate_blocks([
        CalibrationBlock.single(discount_definition),
        CalibrationBlock.single(forward_definition),
    ])
    assert len(result.reports) == 2
    assert result.bundle.frozen
    assert result.bundle.block(FWD).axis_names == (DSC, FWD)
    np.testing.assert_allclose(
        result.bundle.matrix(FWD), dual_curve_result.bundle.matrix(FWD), atol=1e-12
    )


def test_known_curve_without_sensitivities_is_fixed(repository, forward_definition, caplog):
    known = MulticurveProvider([ConstantYieldCurve(DSC, 0.035)])
    with caplog.at_level(logging.WARNING, logger="multicurve.calibration.repository"):
        result = repository.calibrate_block(CalibrationBlock.single(forward_definition), known)
    assert result.bundle.block(FWD).axis_names == (FWD,)
    assert result.bundle.curve_names == (FWD,)
    assert "treated as fixed" in caplog.text
    assert known.curve_names == (DSC,)


def test_known_bundle_is_chained(repository, discount_definition, forward_definition):
    first = repository.calibrate_block(CalibrationBlock.single(discount_definition))
    second = repository.calibrate_block(
        CalibrationBlock.single(forward_definition), first.provider, first.bundle
    )
    assert second.bundle.block(FWD).axis_names == (DSC, FWD)
    assert first.bundle.curve_names == (DSC,)


def test_fx_axis_for_fx_swap_curve(pricer, repository, fx_block, fx_market):
    result = repository.calibrate_block(fx_block, fx_market)
    for unit in fx_block:
        for inst in unit.instruments:
            assert abs(pricer.residual(inst, result.provider)) < 1e-9

    block = result.bundle.block(EUR_FX)
    assert block.axis_names == (USD, "FX:EURUSD", EUR_FX)
    fx_column = result.bundle.matrix(EUR_FX)[:, block.columns("FX:EURUSD")]
    assert np.all(np.abs(fx_column) > 1e-6)
    assert "FX:EURUSD" not in result.bundle.block(USD)


def test_fx_column_matches_spot_bump(precise_repository, fx_block):
    shift = 1e-5

    def eur_parameters(spot):
        market = MulticurveProvider(fx_rates={"EURUSD": spot})
        return precise_repository.calibrate_block(fx_block, market).provider.get_curve(EUR_FX).parameters

    base = precise_repository.calibrate_block(fx_block, MulticurveProvider(fx_rates={"EURUSD": 1.10}))
    block = base.bundle.block(EUR_FX)
    analytic = base.bundle.matrix(EUR_FX)[:, block.columns("FX:EURUSD").start]
    numeric = (eur_parameters(1.10 + shift) - eur_parameters(1.10 - shift)) / (2 * shift)
    np.testing.assert_allclose(numeric, analytic, atol=1e-7)


def test_square_check_runs_before_any_solve(repository, discount_definition):
    bad = CurveDefinition(
        FWD, ConstantYieldCurveGenerator(), [deposit("3M", 0.04, FWD), deposit("6M", 0.04, FWD)]
    )
    block = CalibrationBlock.single(discount_definition, bad)
    with pytest.raises(UnderOrOverDeterminedUnit) as excinfo:
        repository.calibrate_block(block)
    assert excinfo.value.unit_index == 1
    assert excinfo.value.curve_names == (FWD,)


def test_failure_leaves_known_data_untouched(pricer, dual_curve_block):
    known = MulticurveProvider([ConstantYieldCurve("OTHER", 0.02)])
    known_bundle = SensitivityBundle()
    repository = CurveBuildingRepository(pricer, SolverConfig(max_iterations=1))
    with pytest.raises(CalibrationDidNotConverge) as excinfo:
        repository.calibrate_block(dual_curve_block, known, known_bundle)
    assert excinfo.value.unit_index == 0
    assert known.curve_names == ("OTHER",)
    assert len(known_bundle) == 0


def _three_curve_block(bumps=(0.0, 0.0, 0.0)):
    a_quotes = [("6M", 0.035), ("1Y", 0.034), ("2Y", 0.032)]
    a_quotes = [(tenor, quote + bump) for (tenor, quote), bump in zip(a_quotes, bumps)]
    return CalibrationBlock((
        CalibrationUnit((CurveDefinition("A", InterpolatedYieldCurveGenerator(), deposits(a_quotes, "A")),)),
        CalibrationUnit((CurveDefinition(
            "B", InterpolatedYieldCurveGenerator(),
            fixed_float_swaps([("1Y", 0.037), ("2Y", 0.036), ("3Y", 0.035)], "A", "B"),
        ),)),
        CalibrationUnit((CurveDefinition(
            "C", InterpolatedYieldCurveGenerator(),
            fixed_float_swaps([("1Y", 0.040), ("2Y", 0.039), ("3Y", 0.038), ("5Y", 0.037)], "B", "C"),
        ),)),
    ))


def test_two_level_chain_matches_recalibration(precise_repository):
    shift = 1e-5
    base = precise_repository.calibrate_block(_three_curve_block())
    block = base.bundle.block("C")
    assert block.axis_names == ("A", "B", "C")
    assert (block["A"], block["B"], block["C"]) == ((0, 3), (3, 3), (6, 4))

    matrix = base.bundle.matrix("C")
    for index in range(3):
        bumps = [0.0, 0.0, 0.0]
        bumps[index] = shift
        up = precise_repository.calibrate_block(_three_curve_block(bumps))
        bumps[index] = -shift
        down = precise_repository.calibrate_block(_three_curve_block(bumps))
        numeric = (up.provider.get_curve("C").parameters - down.provider.get_curve("C").parameters) / (2 * shift)
        np.testing.assert_allclose(numeric, matrix[:, index], atol=1e-7)
    assert np.abs(matrix[:, block.columns("A")]).max() > 1e-6
