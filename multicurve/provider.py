"""Market data provider threaded through a calibration.

The provider is the set of curves known at a point of the calibration: the
curves supplied by the caller plus every curve built by the units solved so
far. It also carries FX spot rates for instruments that need them.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, Mapping, Optional, Tuple

from multicurve.curves import Curve

logger = logging.getLogger(__name__)


class MulticurveProvider:
    """Ordered name -> curve map plus FX spot rates.

    FX pairs are six-letter codes such as ``"EURUSD"``, quoted as the price
    of one unit of the first currency in the second.
    """

    def __init__(
        self,
        curves: Optional[Iterable[Curve]] = None,
        fx_rates: Optional[Mapping[str, float]] = None,
    ):
        self._curves: Dict[str, Curve] = {}
        self._fx_rates: Dict[str, float] = {
            pair.upper(): float(rate) for pair, rate in (fx_rates or {}).items()
        }
        for curve in curves or ():
            self.add_curve(curve)

    # ------------------------------------------------------------------
    # Curves
    # ------------------------------------------------------------------
    def add_curve(self, curve: Curve) -> None:
        """Register a curve, replacing any curve with the same name."""
        if curve.name in self._curves:
            logger.debug("Replacing curve %s in provider", curve.name)
        self._curves[curve.name] = curve

    def get_curve(self, name: str) -> Curve:
        try:
            return self._curves[name]
        except KeyError:
            raise KeyError(
                f"Curve '{name}' not found in provider. "
                f"Available: {', '.join(self._curves) or 'none'}"
            ) from None

    @property
    def curve_names(self) -> Tuple[str, ...]:
        return tuple(self._curves)

    @property
    def curves(self) -> Dict[str, Curve]:
        return dict(self._curves)

    def with_curves(self, curves: Iterable[Curve]) -> "MulticurveProvider":
        """Return a new provider with the given curves added on top of this one."""
        provider = self.copy()
        for curve in curves:
            provider.add_curve(curve)
        return provider

    def copy(self) -> "MulticurveProvider":
        return MulticurveProvider(self._curves.values(), self._fx_rates)

    # ------------------------------------------------------------------
    # FX
    # ------------------------------------------------------------------
    def fx_rate(self, pair: str) -> float:
        try:
            return self._fx_rates[pair.upper()]
        except KeyError:
            raise KeyError(f"FX rate for '{pair}' not found in provider") from None

    @property
    def fx_rates(self) -> Dict[str, float]:
        return dict(self._fx_rates)

    def __contains__(self, name: object) -> bool:
        return name in self._curves

    def __iter__(self) -> Iterator[str]:
        return iter(self._curves)

    def __len__(self) -> int:
        return len(self._curves)

    def __repr__(self) -> str:
        return (f"MulticurveProvider(curves={list(self._curves)}, "
                f"fx_rates={self._fx_rates})")
