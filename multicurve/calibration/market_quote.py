"""Market quote sensitivities of downstream instruments.

A calibrated bundle turns curve parameter sensitivities into sensitivities
to the market quotes (and FX spots) the curves were built from: bucketed
risk. Summing the buckets of a curve axis gives its parallel risk.
"""

from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional

import numpy as np
import pandas as pd

from multicurve.provider import MulticurveProvider

from .bundle import SensitivityBundle, fx_axis

logger = logging.getLogger(__name__)


def parameter_sensitivity(pricer, instrument, provider: MulticurveProvider) -> Dict[str, np.ndarray]:
    """Gradient of the instrument's pricer value with respect to each curve it uses.

    Returns:
        Curve name -> gradient over that curve's parameters
    """
    return {
        name: np.asarray(pricer.residual_gradient_wrt_parameters(instrument, provider, name), dtype=float)
        for name in instrument.curve_names
    }


def market_quote_sensitivity(
    parameter_sensitivities: Mapping[str, np.ndarray],
    bundle: SensitivityBundle,
    fx_sensitivities: Optional[Mapping[str, float]] = None,
) -> pd.Series:
    """Chain parameter sensitivities through the bundle.

    Args:
        parameter_sensitivities: Curve name -> gradient over its parameters
        bundle: Calibrated sensitivity bundle
        fx_sensitivities: Optional direct FX dependence, pair -> gradient

    Returns:
        Series indexed by (axis, index). Curves without a bundle entry are
        fixed and contribute nothing.
    """
    totals: Dict[tuple, float] = {}
    for name, gradient in parameter_sensitivities.items():
        if name not in bundle:
            logger.debug("Curve %s has no sensitivity entry; skipped", name)
            continue
        block, matrix = bundle.get(name)
        gradient = np.asarray(gradient, dtype=float)
        if gradient.shape != (matrix.shape[0],):
            raise ValueError(
                f"Sensitivity to '{name}' has {gradient.size} values, curve has {matrix.shape[0]} parameters"
            )
        for label, value in zip(block.labels(), gradient @ matrix):
            totals[label] = totals.get(label, 0.0) + float(value)
    for pair, value in (fx_sensitivities or {}).items():
        label = (fx_axis(pair), 0)
        totals[label] = totals.get(label, 0.0) + float(value)

    if totals:
        index = pd.MultiIndex.from_tuples(list(totals), names=["axis", "index"])
    else:
        index = pd.MultiIndex.from_arrays([[], []], names=["axis", "index"])
    return pd.Series(list(totals.values()), index=index, dtype=float, name="market_quote_sensitivity")
