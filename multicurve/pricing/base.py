"""Pricer interface consumed by the calibration engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Protocol, Sequence

import numpy as np

from multicurve.provider import MulticurveProvider


class InstrumentPricer(Protocol):
    """Residual and its gradients for one calibration instrument.

    The residual is zero when the curves in the provider reprice the
    instrument at its market quote.
    """

    def residual(self, instrument, provider: MulticurveProvider) -> float:
        ...

    def residual_gradient_wrt_parameters(
        self, instrument, provider: MulticurveProvider, curve_name: str
    ) -> np.ndarray:
        """Gradient with respect to every parameter of ``curve_name``."""
        ...

    def residual_gradients(
        self, instrument, provider: MulticurveProvider, curve_names: Sequence[str]
    ) -> Dict[str, np.ndarray]:
        """Parameter gradients for several curves from a single valuation."""
        ...

    def residual_gradient_wrt_quote(self, instrument) -> float:
        ...

    def residual_gradient_wrt_fx(self, instrument, provider: MulticurveProvider) -> Dict[str, float]:
        """Gradient with respect to the FX spot rates, keyed by pair."""
        ...


@dataclass
class PointSensitivity:
    """Model value with its derivatives to discount factors and FX spots.

    ``discount_factors`` maps curve name -> {time: d value / d df(time)}.
    """

    value: float
    discount_factors: Dict[str, Dict[float, float]] = field(default_factory=dict)
    fx: Dict[str, float] = field(default_factory=dict)

    def add(self, curve_name: str, t: float, amount: float) -> None:
        """Accumulate a derivative with respect to df(t) on a curve."""
        by_time = self.discount_factors.setdefault(curve_name, {})
        by_time[t] = by_time.get(t, 0.0) + amount

    def to_parameters(self, provider: MulticurveProvider, curve_name: str) -> np.ndarray:
        """Map discount factor sensitivities onto the curve's parameters."""
        curve = provider.get_curve(curve_name)
        gradient = np.zeros(curve.parameter_count)
        for t, amount in self.discount_factors.get(curve_name, {}).items():
            if amount != 0.0:
                gradient += amount * curve.df_parameter_sensitivity(t)
        return gradient
