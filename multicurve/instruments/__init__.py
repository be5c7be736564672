"""
Instruments package - calibration instruments and their factory helpers.

Main APIs:
---------
    - InstrumentKind: Type tag used for pricer dispatch
    - Deposit, ForwardRateAgreement, FixedFloatSwap, OvernightIndexedSwap, FxSwap
    - tenor_to_years: Tenor string -> year fraction
    - deposits / fixed_float_swaps / overnight_indexed_swaps / fx_swaps:
      (tenor, quote) lists -> instruments
"""

from .factory import (
    deposit,
    deposits,
    fixed_float_swap,
    fixed_float_swaps,
    fra,
    fx_swap,
    fx_swaps,
    overnight_indexed_swap,
    overnight_indexed_swaps,
    payment_schedule,
    tenor_to_years,
)
from .types import (
    Deposit,
    FixedFloatSwap,
    ForwardRateAgreement,
    FxSwap,
    InstrumentKind,
    OvernightIndexedSwap,
)

__all__ = [
    "InstrumentKind",
    "Deposit",
    "ForwardRateAgreement",
    "FixedFloatSwap",
    "OvernightIndexedSwap",
    "FxSwap",
    "tenor_to_years",
    "payment_schedule",
    "deposit",
    "fra",
    "fixed_float_swap",
    "overnight_indexed_swap",
    "fx_swap",
    "deposits",
    "fixed_float_swaps",
    "overnight_indexed_swaps",
    "fx_swaps",
]
