"""Sensitivity bundle: per-curve Jacobians of parameters to market quotes.

Each calibrated curve owns a matrix whose rows are the curve parameters and
whose columns are market inputs, grouped into named axes. A curve axis holds
the quotes of that curve's calibration instruments; an FX axis (named
``FX:<pair>``) holds one FX spot rate. The column layout of a matrix is
described by a :class:`CurveBuildingBlock`.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

FX_AXIS_PREFIX = "FX:"


def fx_axis(pair: str) -> str:
    """Axis name for the FX spot rate of ``pair``."""
    return f"{FX_AXIS_PREFIX}{pair.upper()}"


class CurveBuildingBlock:
    """Ordered column layout: axis name -> (start column, column count)."""

    def __init__(self, axes: Iterable[Tuple[str, int]] = ()):
        self._layout: Dict[str, Tuple[int, int]] = {}
        start = 0
        for name, count in axes:
            if name in self._layout:
                raise ValueError(f"Duplicate axis '{name}' in layout")
            if count < 0:
                raise ValueError(f"Axis '{name}' has negative column count {count}")
            self._layout[name] = (start, int(count))
            start += int(count)
        self._total = start

    @classmethod
    def union(
        cls,
        blocks: Iterable["CurveBuildingBlock"],
        extra_axes: Iterable[Tuple[str, int]] = (),
    ) -> "CurveBuildingBlock":
        """Layout holding every axis of ``blocks`` then ``extra_axes``, first seen first.

        Raises:
            ValueError: If an axis appears with two different column counts
        """
        counts: Dict[str, int] = {}

        def _merge(name: str, count: int) -> None:
            if name in counts and counts[name] != count:
                raise ValueError(
                    f"Axis '{name}' has inconsistent column counts {counts[name]} and {count}"
                )
            counts.setdefault(name, count)

        for block in blocks:
            for name, (_, count) in block.items():
                _merge(name, count)
        for name, count in extra_axes:
            _merge(name, count)
        return cls(counts.items())

    # ------------------------------------------------------------------
    # Layout queries
    # ------------------------------------------------------------------
    @property
    def column_count(self) -> int:
        return self._total

    @property
    def axis_names(self) -> Tuple[str, ...]:
        return tuple(self._layout)

    def columns(self, axis: str) -> slice:
        start, count = self[axis]
        return slice(start, start + count)

    def labels(self) -> List[Tuple[str, int]]:
        """One ``(axis, index)`` label per column."""
        return [(name, i) for name, (_, count) in self._layout.items() for i in range(count)]

    def expand(self, matrix: np.ndarray, target: "CurveBuildingBlock") -> np.ndarray:
        """Place the columns of ``matrix`` (laid out as self) into ``target``'s layout."""
        matrix = np.atleast_2d(np.asarray(matrix, dtype=float))
        if matrix.shape[1] != self._total:
            raise ValueError(
                f"Matrix has {matrix.shape[1]} columns, layout expects {self._total}"
            )
        out = np.zeros((matrix.shape[0], target.column_count))
        for name, (start, count) in self._layout.items():
            if name not in target:
                raise KeyError(f"Axis '{name}' missing from target layout")
            if target[name][1] != count:
                raise ValueError(f"Axis '{name}' has {count} columns, target has {target[name][1]}")
            out[:, target.columns(name)] += matrix[:, start:start + count]
        return out

    def items(self):
        return self._layout.items()

    def __getitem__(self, axis: str) -> Tuple[int, int]:
        try:
            return self._layout[axis]
        except KeyError:
            raise KeyError(f"Axis '{axis}' not in layout {list(self._layout)}") from None

    def __contains__(self, axis: object) -> bool:
        return axis in self._layout

    def __iter__(self) -> Iterator[str]:
        return iter(self._layout)

    def __len__(self) -> int:
        return len(self._layout)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CurveBuildingBlock):
            return NotImplemented
        return list(self._layout.items()) == list(other._layout.items())

    def __repr__(self) -> str:
        return f"CurveBuildingBlock({dict(self._layout)})"


class SensitivityBundle:
    """Curve name -> (column layout, d parameters / d market inputs).

    Built incrementally during a calibration and frozen when the block
    completes; ``add`` on a frozen bundle raises.
    """

    def __init__(self, entries: Optional[Mapping[str, Tuple[CurveBuildingBlock, np.ndarray]]] = None):
        self._entries: Dict[str, Tuple[CurveBuildingBlock, np.ndarray]] = {}
        self._frozen = False
        for name, (block, matrix) in (entries or {}).items():
            self.add(name, block, matrix)

    def add(self, curve_name: str, block: CurveBuildingBlock, matrix: np.ndarray) -> None:
        """Store the Jacobian of one curve.

        Raises:
            RuntimeError: If the bundle is frozen
            ValueError: If the matrix width does not match the layout
        """
        if self._frozen:
            raise RuntimeError(f"Cannot add '{curve_name}': sensitivity bundle is frozen")
        values = np.array(np.atleast_2d(matrix), dtype=float)
        if values.ndim != 2 or values.shape[1] != block.column_count:
            raise ValueError(
                f"Jacobian of '{curve_name}' has shape {values.shape}, "
                f"layout has {block.column_count} columns"
            )
        if curve_name in self._entries:
            logger.warning("Overwriting sensitivity entry for curve %s", curve_name)
        values.flags.writeable = False
        self._entries[curve_name] = (block, values)

    def freeze(self) -> "SensitivityBundle":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def copy(self) -> "SensitivityBundle":
        """Unfrozen copy sharing the (read-only) matrices."""
        bundle = SensitivityBundle()
        bundle._entries = dict(self._entries)
        return bundle

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------
    def get(self, curve_name: str) -> Tuple[CurveBuildingBlock, np.ndarray]:
        try:
            return self._entries[curve_name]
        except KeyError:
            raise KeyError(
                f"No sensitivity entry for curve '{curve_name}'. "
                f"Available: {', '.join(self._entries) or 'none'}"
            ) from None

    def block(self, curve_name: str) -> CurveBuildingBlock:
        return self.get(curve_name)[0]

    def matrix(self, curve_name: str) -> np.ndarray:
        return self.get(curve_name)[1]

    @property
    def curve_names(self) -> Tuple[str, ...]:
        return tuple(self._entries)

    def to_frame(self, curve_name: str) -> pd.DataFrame:
        """Labelled Jacobian of one curve: rows are parameters, columns (axis, index)."""
        block, matrix = self.get(curve_name)
        index = pd.MultiIndex.from_tuples(
            [(curve_name, i) for i in range(matrix.shape[0])], names=["curve", "parameter"]
        )
        columns = pd.MultiIndex.from_tuples(block.labels(), names=["axis", "index"])
        return pd.DataFrame(matrix, index=index, columns=columns)

    def __contains__(self, curve_name: object) -> bool:
        return curve_name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "open"
        return f"SensitivityBundle({list(self._entries)}, {state})"
