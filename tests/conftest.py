"""Shared market data and fixtures for the calibration tests.

Hard-coded EUR dual-curve quotes (ESTR discounting, EURIBOR 3M projection)
and a USD/EUR FX swap set. Rates are decimals, FX swap points are in price
units.
"""

import pytest

from multicurve.calibration import (
    CalibrationBlock,
    CalibrationUnit,
    CurveBuildingRepository,
    CurveDefinition,
    SolverConfig,
)
from multicurve.curves import InterpolatedYieldCurveGenerator
from multicurve.instruments import (
    deposit,
    fixed_float_swaps,
    fra,
    fx_swaps,
    overnight_indexed_swaps,
)
from multicurve.pricing import ParSpreadMarketQuotePricer
from multicurve.provider import MulticurveProvider

DSC = "EUR-ESTR"
FWD = "EUR-EURIBOR3M"
USD = "USD-SOFR"
EUR_FX = "EUR-FX"

ESTR_ON = 0.0390
ESTR_QUOTES = [
    ("1M", 0.0388),
    ("3M", 0.0385),
    ("6M", 0.0375),
    ("1Y", 0.0350),
    ("2Y", 0.0300),
    ("5Y", 0.0265),
]

EURIBOR3M_DEPOSIT = 0.0395
EURIBOR3M_FRA_3X6 = 0.0385
EURIBOR3M_SWAPS = [
    ("1Y", 0.0370),
    ("2Y", 0.0320),
    ("5Y", 0.0285),
]

SOFR_QUOTES = [
    ("3M", 0.0530),
    ("6M", 0.0520),
    ("1Y", 0.0500),
    ("2Y", 0.0460),
]

EURUSD_SPOT = 1.10
EURUSD_POINTS = [
    ("3M", 0.0041),
    ("6M", 0.0083),
    ("1Y", 0.0166),
    ("2Y", 0.0335),
]


def _discount_definition(quotes=None, on_rate=ESTR_ON, interpolation="LINEAR"):
    instruments = [deposit("ON", on_rate, DSC)]
    instruments += overnight_indexed_swaps(quotes or ESTR_QUOTES, DSC)
    return CurveDefinition(DSC, InterpolatedYieldCurveGenerator(interpolation), instruments)


def _forward_definition(swap_quotes=None, interpolation="LINEAR"):
    instruments = [
        deposit("3M", EURIBOR3M_DEPOSIT, FWD),
        fra("3M", "6M", EURIBOR3M_FRA_3X6, FWD),
    ]
    instruments += fixed_float_swaps(swap_quotes or EURIBOR3M_SWAPS, DSC, FWD)
    return CurveDefinition(FWD, InterpolatedYieldCurveGenerator(interpolation), instruments)


def _bump(definition, index, shift):
    """Copy of a curve definition with one instrument quote shifted."""
    instruments = [
        inst.with_quote(inst.quote + shift) if i == index else inst
        for i, inst in enumerate(definition.instruments)
    ]
    return CurveDefinition(definition.name, definition.generator, instruments)


@pytest.fixture
def pricer():
    return ParSpreadMarketQuotePricer()


@pytest.fixture
def repository(pricer):
    return CurveBuildingRepository(pricer, SolverConfig())


@pytest.fixture
def discount_definition():
    return _discount_definition()


@pytest.fixture
def forward_definition():
    return _forward_definition()


@pytest.fixture
def make_discount_definition():
    return _discount_definition


@pytest.fixture
def make_forward_definition():
    return _forward_definition


@pytest.fixture
def bump_quote():
    return _bump


@pytest.fixture
def dual_curve_block(discount_definition, forward_definition):
    return CalibrationBlock.single(discount_definition, forward_definition)


@pytest.fixture
def dual_curve_result(repository, dual_curve_block):
    return repository.calibrate_block(dual_curve_block)


@pytest.fixture
def usd_definition():
    return CurveDefinition(
        USD, InterpolatedYieldCurveGenerator(), overnight_indexed_swaps(SOFR_QUOTES, USD)
    )


@pytest.fixture
def eur_fx_definition():
    return CurveDefinition(
        EUR_FX,
        InterpolatedYieldCurveGenerator(),
        fx_swaps(EURUSD_POINTS, "EURUSD", base_curve=EUR_FX, quote_curve=USD),
    )


@pytest.fixture
def fx_block(usd_definition, eur_fx_definition):
    return CalibrationBlock((CalibrationUnit((usd_definition,)), CalibrationUnit((eur_fx_definition,))))


@pytest.fixture
def fx_market():
    return MulticurveProvider(fx_rates={"EURUSD": EURUSD_SPOT})
