"""Par spread market quote pricer.

The residual of an instrument is its model quote minus its market quote:
the par rate for deposits, FRAs, swaps and OIS, and the forward points for
FX swaps. Each instrument kind has a valuation function returning the model
quote together with its derivatives to discount factors (and FX spots); the
parameter gradients follow by the chain rule through
``Curve.df_parameter_sensitivity``.
"""

from __future__ import annotations

from typing import Callable, Dict, Sequence

import numpy as np

from multicurve.instruments import (
    Deposit,
    FixedFloatSwap,
    ForwardRateAgreement,
    FxSwap,
    InstrumentKind,
    OvernightIndexedSwap,
)
from multicurve.provider import MulticurveProvider

from .base import PointSensitivity


# ----------------------------------------------------------------------
# Valuations by instrument kind
# ----------------------------------------------------------------------
def _simple_rate(curve_name: str, start: float, end: float, accrual: float,
                 provider: MulticurveProvider) -> PointSensitivity:
    curve = provider.get_curve(curve_name)
    df_start = curve.df(start)
    df_end = curve.df(end)
    result = PointSensitivity((df_start / df_end - 1.0) / accrual)
    result.add(curve_name, start, 1.0 / (accrual * df_end))
    result.add(curve_name, end, -df_start / (accrual * df_end ** 2))
    return result


def _deposit(inst: Deposit, provider: MulticurveProvider) -> PointSensitivity:
    return _simple_rate(inst.curve, inst.start, inst.end, inst.accrual, provider)


def _fra(inst: ForwardRateAgreement, provider: MulticurveProvider) -> PointSensitivity:
    return _simple_rate(inst.forward_curve, inst.start, inst.end, inst.accrual, provider)


def _fixed_float_swap(inst: FixedFloatSwap, provider: MulticurveProvider) -> PointSensitivity:
    discount = provider.get_curve(inst.discount_curve)
    forward = provider.get_curve(inst.forward_curve)

    annuity = sum(
        alpha * discount.df(t)
        for t, alpha in zip(inst.fixed_payment_times, inst.fixed_accruals)
    )
    if annuity <= 0:
        raise ValueError(f"Swap {inst.label or inst.maturity} has non-positive annuity {annuity}")

    # Floating coupon j pays (P(s)/P(e) - 1) at e, projected on the forward curve
    float_pv = 0.0
    coupons = []
    for s, e in zip(inst.float_start_times, inst.float_end_times):
        p_start = forward.df(s)
        p_end = forward.df(e)
        d_pay = discount.df(e)
        coupon = p_start / p_end - 1.0
        float_pv += coupon * d_pay
        coupons.append((s, e, p_start, p_end, d_pay, coupon))

    par = float_pv / annuity
    result = PointSensitivity(par)
    for t, alpha in zip(inst.fixed_payment_times, inst.fixed_accruals):
        result.add(inst.discount_curve, t, -par * alpha / annuity)
    for s, e, p_start, p_end, d_pay, coupon in coupons:
        result.add(inst.discount_curve, e, coupon / annuity)
        result.add(inst.forward_curve, s, d_pay / (p_end * annuity))
        result.add(inst.forward_curve, e, -d_pay * p_start / (p_end ** 2 * annuity))
    return result


def _overnight_indexed_swap(inst: OvernightIndexedSwap, provider: MulticurveProvider) -> PointSensitivity:
    curve = provider.get_curve(inst.curve)
    annuity = sum(
        alpha * curve.df(t)
        for t, alpha in zip(inst.fixed_payment_times, inst.fixed_accruals)
    )
    if annuity <= 0:
        raise ValueError(f"OIS {inst.label or inst.maturity} has non-positive annuity {annuity}")

    # Compounded overnight leg telescopes to df(start) - df(end)
    par = (curve.df(inst.start) - curve.df(inst.maturity)) / annuity
    result = PointSensitivity(par)
    result.add(inst.curve, inst.start, 1.0 / annuity)
    result.add(inst.curve, inst.maturity, -1.0 / annuity)
    for t, alpha in zip(inst.fixed_payment_times, inst.fixed_accruals):
        result.add(inst.curve, t, -par * alpha / annuity)
    return result


def _fx_swap(inst: FxSwap, provider: MulticurveProvider) -> PointSensitivity:
    spot = provider.fx_rate(inst.pair)
    df_base = provider.get_curve(inst.base_curve).df(inst.end)
    df_quote = provider.get_curve(inst.quote_curve).df(inst.end)
    forward = spot * df_base / df_quote

    result = PointSensitivity(forward - spot)
    result.add(inst.base_curve, inst.end, spot / df_quote)
    result.add(inst.quote_curve, inst.end, -spot * df_base / df_quote ** 2)
    result.fx[inst.pair] = df_base / df_quote - 1.0
    return result


_VALUATIONS: Dict[InstrumentKind, Callable[..., PointSensitivity]] = {
    InstrumentKind.DEPOSIT: _deposit,
    InstrumentKind.FRA: _fra,
    InstrumentKind.IRS: _fixed_float_swap,
    InstrumentKind.OIS: _overnight_indexed_swap,
    InstrumentKind.FX_SWAP: _fx_swap,
}


class ParSpreadMarketQuotePricer:
    """Residual = model quote - market quote, for every supported instrument.

    The pricer is stateless; one instance can serve any number of
    calibrations.
    """

    def point_sensitivity(self, instrument, provider: MulticurveProvider) -> PointSensitivity:
        """Model quote and its derivatives to discount factors and FX spots."""
        kind = getattr(instrument, "kind", None)
        try:
            valuation = _VALUATIONS[kind]
        except KeyError:
            raise TypeError(
                f"No valuation for instrument {type(instrument).__name__} (kind={kind})"
            ) from None
        return valuation(instrument, provider)

    def model_quote(self, instrument, provider: MulticurveProvider) -> float:
        """Par rate (or forward points) implied by the provider's curves."""
        return self.point_sensitivity(instrument, provider).value

    def residual(self, instrument, provider: MulticurveProvider) -> float:
        return self.model_quote(instrument, provider) - instrument.quote

    def residual_gradient_wrt_parameters(
        self, instrument, provider: MulticurveProvider, curve_name: str
    ) -> np.ndarray:
        """Gradient of the residual with respect to the parameters of one curve.

        Curves the instrument does not reference get a zero gradient.
        """
        if curve_name not in instrument.curve_names:
            return np.zeros(provider.get_curve(curve_name).parameter_count)
        return self.point_sensitivity(instrument, provider).to_parameters(provider, curve_name)

    def residual_gradients(
        self, instrument, provider: MulticurveProvider, curve_names: Sequence[str]
    ) -> Dict[str, np.ndarray]:
        """Parameter gradients for each of ``curve_names``, valuing the instrument once."""
        sensitivity = None
        gradients = {}
        for name in curve_names:
            if name not in instrument.curve_names:
                gradients[name] = np.zeros(provider.get_curve(name).parameter_count)
                continue
            if sensitivity is None:
                sensitivity = self.point_sensitivity(instrument, provider)
            gradients[name] = sensitivity.to_parameters(provider, name)
        return gradients

    def residual_gradient_wrt_quote(self, instrument) -> float:
        return -1.0

    def residual_gradient_wrt_fx(self, instrument, provider: MulticurveProvider) -> Dict[str, float]:
        if instrument.kind is not InstrumentKind.FX_SWAP:
            return {}
        return dict(self.point_sensitivity(instrument, provider).fx)

    def __repr__(self) -> str:
        return "ParSpreadMarketQuotePricer()"
