"""Calibration instruments.

Instruments are plain frozen dataclasses tagged with an :class:`InstrumentKind`.
They carry their cashflow times as year fractions, the market quote they are
calibrated to, and the names of the curves they are priced against. Pricing
lives in :mod:`multicurve.pricing`, dispatched on ``kind``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Tuple


class InstrumentKind(Enum):
    """Instrument type tag used for pricer dispatch."""

    DEPOSIT = "DEPOSIT"
    FRA = "FRA"
    IRS = "IRS"
    OIS = "OIS"
    FX_SWAP = "FX_SWAP"


class _QuotedInstrument:
    """Shared helpers of all instrument dataclasses."""

    quote: float

    def with_quote(self, quote: float):
        """Copy of the instrument quoted at a different market level."""
        return replace(self, quote=float(quote))

    @property
    def rate_guess(self) -> float:
        """Rate used to seed the curve parameters this instrument calibrates."""
        return self.quote


@dataclass(frozen=True)
class Deposit(_QuotedInstrument):
    """Money-market deposit paying simple interest on the discounting curve."""

    start: float
    end: float
    accrual: float
    quote: float
    curve: str
    label: str = ""

    kind = InstrumentKind.DEPOSIT

    @property
    def maturity(self) -> float:
        return self.end

    @property
    def curve_names(self) -> Tuple[str, ...]:
        return (self.curve,)


@dataclass(frozen=True)
class ForwardRateAgreement(_QuotedInstrument):
    """FRA settling the forward rate of the index projection curve."""

    start: float
    end: float
    accrual: float
    quote: float
    forward_curve: str
    label: str = ""

    kind = InstrumentKind.FRA

    @property
    def maturity(self) -> float:
        return self.end

    @property
    def curve_names(self) -> Tuple[str, ...]:
        return (self.forward_curve,)


@dataclass(frozen=True)
class FixedFloatSwap(_QuotedInstrument):
    """Fixed versus IBOR swap quoted by its par fixed rate.

    Floating coupons pay at the end of their accrual period and are
    projected on ``forward_curve``; both legs discount on
    ``discount_curve``. The two names may coincide.
    """

    fixed_payment_times: Tuple[float, ...]
    fixed_accruals: Tuple[float, ...]
    float_start_times: Tuple[float, ...]
    float_end_times: Tuple[float, ...]
    float_accruals: Tuple[float, ...]
    quote: float
    discount_curve: str
    forward_curve: str
    label: str = ""

    kind = InstrumentKind.IRS

    def __post_init__(self):
        if len(self.fixed_payment_times) != len(self.fixed_accruals):
            raise ValueError("Fixed payment times and accruals must have same length")
        if not (len(self.float_start_times) == len(self.float_end_times) == len(self.float_accruals)):
            raise ValueError("Floating leg times and accruals must have same length")
        if not self.fixed_payment_times or not self.float_end_times:
            raise ValueError("Swap legs must have at least one period")

    @property
    def maturity(self) -> float:
        return max(self.fixed_payment_times[-1], self.float_end_times[-1])

    @property
    def curve_names(self) -> Tuple[str, ...]:
        if self.forward_curve == self.discount_curve:
            return (self.discount_curve,)
        return (self.discount_curve, self.forward_curve)


@dataclass(frozen=True)
class OvernightIndexedSwap(_QuotedInstrument):
    """Fixed versus compounded overnight swap on a single curve."""

    start: float
    fixed_payment_times: Tuple[float, ...]
    fixed_accruals: Tuple[float, ...]
    quote: float
    curve: str
    label: str = ""

    kind = InstrumentKind.OIS

    def __post_init__(self):
        if len(self.fixed_payment_times) != len(self.fixed_accruals):
            raise ValueError("Fixed payment times and accruals must have same length")
        if not self.fixed_payment_times:
            raise ValueError("OIS must have at least one fixed period")

    @property
    def maturity(self) -> float:
        return self.fixed_payment_times[-1]

    @property
    def curve_names(self) -> Tuple[str, ...]:
        return (self.curve,)


@dataclass(frozen=True)
class FxSwap(_QuotedInstrument):
    """FX swap quoted in forward points (forward minus spot, price units).

    ``pair`` is quoted as the price of the base currency in the quote
    currency; ``base_curve`` discounts the base currency and
    ``quote_curve`` the quote currency.
    """

    pair: str
    end: float
    quote: float
    base_curve: str
    quote_curve: str
    label: str = ""

    kind = InstrumentKind.FX_SWAP

    @property
    def maturity(self) -> float:
        return self.end

    @property
    def curve_names(self) -> Tuple[str, ...]:
        return (self.base_curve, self.quote_curve)

    @property
    def rate_guess(self) -> float:
        # Points are not a rate
        return 0.01
