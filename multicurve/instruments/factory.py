"""Build calibration instruments from ``(tenor, quote)`` market data.

Tenors map to plain year fractions: ``nD`` = n/365, ``nW`` = 7n/365,
``nM`` = n/12 and ``nY`` = n. ``ON`` and ``TN`` are one-day tenors starting
today and tomorrow respectively. No calendar or day-count adjustments are
applied.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

from .types import (
    Deposit,
    FixedFloatSwap,
    ForwardRateAgreement,
    FxSwap,
    OvernightIndexedSwap,
)

DAYS_PER_YEAR = 365.0

# Start offset in days of the overnight tenors
_OVERNIGHT_STARTS = {"ON": 0, "TN": 1}

_SCHEDULE_EPS = 1e-9


def tenor_to_years(tenor: str) -> float:
    """Convert tenor string (e.g., '1W', '3M', '2Y') to a year fraction."""
    t = tenor.upper().strip()
    if t in _OVERNIGHT_STARTS:
        return 1.0 / DAYS_PER_YEAR
    if not t or not t[:-1].isdigit():
        raise ValueError(f"Unsupported tenor: {tenor}")
    n = int(t[:-1])
    if t.endswith("D"):
        return n / DAYS_PER_YEAR
    if t.endswith("W"):
        return 7 * n / DAYS_PER_YEAR
    if t.endswith("M"):
        return n / 12.0
    if t.endswith("Y"):
        return float(n)
    raise ValueError(f"Unsupported tenor: {tenor}")


def payment_schedule(start: float, end: float, frequency: int) -> List[float]:
    """Period end times from ``start`` to ``end`` with ``frequency`` periods a year.

    Periods roll forward from ``start``; a final short stub ends at ``end``.
    """
    if frequency <= 0:
        raise ValueError(f"Payment frequency must be positive, got {frequency}")
    if end <= start:
        raise ValueError(f"Schedule end {end} must be after start {start}")
    step = 1.0 / frequency
    times: List[float] = []
    k = 1
    while start + k * step < end - _SCHEDULE_EPS:
        times.append(start + k * step)
        k += 1
    times.append(end)
    return times


def _accruals(start: float, times: Sequence[float]) -> Tuple[float, ...]:
    previous = [start] + list(times[:-1])
    return tuple(t - s for s, t in zip(previous, times))


def deposit(tenor: str, quote: float, curve: str, start: float = 0.0) -> Deposit:
    t = tenor.upper().strip()
    if t in _OVERNIGHT_STARTS:
        start = start + _OVERNIGHT_STARTS[t] / DAYS_PER_YEAR
    length = tenor_to_years(t)
    return Deposit(start, start + length, length, float(quote), curve, label=t)


def fra(start_tenor: str, end_tenor: str, quote: float, forward_curve: str) -> ForwardRateAgreement:
    """FRA such as 3Mx6M, quoted by its forward rate."""
    start = tenor_to_years(start_tenor)
    end = tenor_to_years(end_tenor)
    if end <= start:
        raise ValueError(f"FRA end {end_tenor} must be after start {start_tenor}")
    label = f"{start_tenor.upper().strip()}x{end_tenor.upper().strip()}"
    return ForwardRateAgreement(start, end, end - start, float(quote), forward_curve, label=label)


def fixed_float_swap(
    tenor: str,
    quote: float,
    discount_curve: str,
    forward_curve: str,
    fixed_frequency: int = 1,
    float_frequency: int = 4,
    start: float = 0.0,
) -> FixedFloatSwap:
    """Spot-starting fixed versus IBOR swap with regular schedules."""
    end = start + tenor_to_years(tenor)
    fixed_times = payment_schedule(start, end, fixed_frequency)
    float_ends = payment_schedule(start, end, float_frequency)
    float_starts = [start] + float_ends[:-1]
    return FixedFloatSwap(
        fixed_payment_times=tuple(fixed_times),
        fixed_accruals=_accruals(start, fixed_times),
        float_start_times=tuple(float_starts),
        float_end_times=tuple(float_ends),
        float_accruals=_accruals(start, float_ends),
        quote=float(quote),
        discount_curve=discount_curve,
        forward_curve=forward_curve,
        label=tenor.upper().strip(),
    )


def overnight_indexed_swap(
    tenor: str,
    quote: float,
    curve: str,
    payment_frequency: int = 1,
    start: float = 0.0,
) -> OvernightIndexedSwap:
    """OIS paying annually; tenors up to one year have a single payment."""
    end = start + tenor_to_years(tenor)
    times = payment_schedule(start, end, payment_frequency)
    return OvernightIndexedSwap(
        start=start,
        fixed_payment_times=tuple(times),
        fixed_accruals=_accruals(start, times),
        quote=float(quote),
        curve=curve,
        label=tenor.upper().strip(),
    )


def fx_swap(tenor: str, points: float, pair: str, base_curve: str, quote_curve: str) -> FxSwap:
    return FxSwap(
        pair=pair.upper(),
        end=tenor_to_years(tenor),
        quote=float(points),
        base_curve=base_curve,
        quote_curve=quote_curve,
        label=tenor.upper().strip(),
    )


def deposits(quotes: Iterable[Tuple[str, float]], curve: str) -> List[Deposit]:
    return [deposit(tenor, quote, curve) for tenor, quote in quotes]


def fixed_float_swaps(
    quotes: Iterable[Tuple[str, float]],
    discount_curve: str,
    forward_curve: str,
    fixed_frequency: int = 1,
    float_frequency: int = 4,
) -> List[FixedFloatSwap]:
    return [
        fixed_float_swap(tenor, quote, discount_curve, forward_curve,
                         fixed_frequency, float_frequency)
        for tenor, quote in quotes
    ]


def overnight_indexed_swaps(
    quotes: Iterable[Tuple[str, float]],
    curve: str,
    payment_frequency: int = 1,
) -> List[OvernightIndexedSwap]:
    return [overnight_indexed_swap(tenor, quote, curve, payment_frequency) for tenor, quote in quotes]


def fx_swaps(
    quotes: Iterable[Tuple[str, float]],
    pair: str,
    base_curve: str,
    quote_curve: str,
) -> List[FxSwap]:
    return [fx_swap(tenor, points, pair, base_curve, quote_curve) for tenor, points in quotes]
