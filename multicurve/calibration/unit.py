"""Calibration units and blocks.

A unit is a set of curves solved simultaneously: the instruments of all its
curves are repriced against the full parameter vector at once. A block is an
ordered list of units solved one after the other, each unit seeing the
curves built by the units before it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from multicurve.curves import CurveGenerator
from multicurve.errors import UnderOrOverDeterminedUnit


@dataclass(frozen=True)
class CurveDefinition:
    """One curve of a unit: its name, generator and calibration instruments.

    The generator is bound to the instrument list on construction, so node
    times and parameter count are fixed from then on.
    """

    name: str
    generator: CurveGenerator
    instruments: Tuple = ()
    bound_generator: CurveGenerator = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if not self.name:
            raise ValueError("Curve name must be a non-empty string")
        object.__setattr__(self, "instruments", tuple(self.instruments))
        object.__setattr__(self, "bound_generator", self.generator.bind(self.instruments))

    @property
    def instrument_count(self) -> int:
        return len(self.instruments)

    @property
    def parameter_count(self) -> int:
        return self.bound_generator.parameter_count(self.instruments)

    def initial_guess(self) -> np.ndarray:
        return np.asarray(self.bound_generator.initial_guess(self.instruments), dtype=float)

    def build(self, parameters: Sequence[float]):
        return self.bound_generator.build(self.name, parameters)


@dataclass(frozen=True)
class CalibrationUnit:
    """Curves calibrated jointly, in the order given.

    ``initial_guess`` optionally overrides the generators' starting point for
    the combined parameter vector.
    """

    curves: Tuple[CurveDefinition, ...]
    initial_guess: Optional[Tuple[float, ...]] = None

    def __post_init__(self):
        curves = tuple(self.curves)
        if not curves:
            raise ValueError("Calibration unit needs at least one curve")
        names = [c.name for c in curves]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate curve names in unit: {', '.join(duplicates)}")
        object.__setattr__(self, "curves", curves)
        if self.initial_guess is not None:
            object.__setattr__(self, "initial_guess", tuple(float(x) for x in self.initial_guess))

    @property
    def curve_names(self) -> Tuple[str, ...]:
        return tuple(c.name for c in self.curves)

    @property
    def instruments(self) -> Tuple:
        """All instruments in curve order; row order of the unit residual."""
        return tuple(inst for c in self.curves for inst in c.instruments)

    @property
    def instrument_count(self) -> int:
        return sum(c.instrument_count for c in self.curves)

    @property
    def parameter_count(self) -> int:
        return sum(c.parameter_count for c in self.curves)

    def parameter_slices(self) -> List[Tuple[CurveDefinition, slice]]:
        """Slice of the combined parameter vector owned by each curve."""
        out = []
        start = 0
        for curve in self.curves:
            count = curve.parameter_count
            out.append((curve, slice(start, start + count)))
            start += count
        return out

    def instrument_slices(self) -> List[Tuple[CurveDefinition, slice]]:
        """Slice of the combined quote vector owned by each curve."""
        out = []
        start = 0
        for curve in self.curves:
            out.append((curve, slice(start, start + curve.instrument_count)))
            start += curve.instrument_count
        return out

    def guess(self) -> np.ndarray:
        if self.initial_guess is not None:
            return np.array(self.initial_guess, dtype=float)
        return np.concatenate([c.initial_guess() for c in self.curves])

    def build_curves(self, parameters: np.ndarray) -> list:
        return [curve.build(parameters[sl]) for curve, sl in self.parameter_slices()]

    def validate(self, unit_index: Optional[int] = None) -> None:
        """Check the unit is square.

        Raises:
            UnderOrOverDeterminedUnit: If instrument and parameter counts differ
        """
        instruments = self.instrument_count
        parameters = self.parameter_count
        if instruments != parameters:
            raise UnderOrOverDeterminedUnit(unit_index, self.curve_names, instruments, parameters)
        if self.initial_guess is not None and len(self.initial_guess) != parameters:
            raise ValueError(
                f"Initial guess has {len(self.initial_guess)} values for {parameters} parameters"
            )


@dataclass(frozen=True)
class CalibrationBlock:
    """Ordered units; curve names are unique across the block."""

    units: Tuple[CalibrationUnit, ...]

    def __post_init__(self):
        units = tuple(self.units)
        if not units:
            raise ValueError("Calibration block needs at least one unit")
        names = [name for unit in units for name in unit.curve_names]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Curve names appear in more than one unit: {', '.join(duplicates)}")
        object.__setattr__(self, "units", units)

    @classmethod
    def single(cls, *curves: CurveDefinition) -> "CalibrationBlock":
        """Block with one unit per curve, in the order given."""
        return cls(tuple(CalibrationUnit((c,)) for c in curves))

    @property
    def curve_names(self) -> Tuple[str, ...]:
        return tuple(name for unit in self.units for name in unit.curve_names)

    def __iter__(self) -> Iterator[CalibrationUnit]:
        return iter(self.units)

    def __len__(self) -> int:
        return len(self.units)
