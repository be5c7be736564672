"""
Base curve classes and protocols for the calibration engine.
"""

import math
from abc import ABC, abstractmethod
from typing import Protocol, Sequence

import numpy as np


class Curve(Protocol):
    """Protocol defining the interface for all curves."""

    name: str

    @property
    def parameters(self) -> np.ndarray:
        """Parameter vector the curve was built from."""
        ...

    @property
    def parameter_count(self) -> int:
        ...

    def df(self, t: float) -> float:
        """Get discount factor at time t."""
        ...

    def zero(self, t: float) -> float:
        """Get zero rate at time t."""
        ...

    def forward_rate(self, start: float, end: float, accrual: float) -> float:
        """Get simply compounded forward rate between start and end."""
        ...

    def df_parameter_sensitivity(self, t: float) -> np.ndarray:
        """Derivative of df(t) with respect to each curve parameter."""
        ...


class BaseCurve(ABC):
    """Base implementation for yield curves described by zero rates.

    Times are year fractions from the curve reference date. Subclasses
    provide the continuously compounded zero rate and its parameter
    sensitivity; discount factors and forwards are derived here.
    """

    def __init__(self, name: str, parameters: Sequence[float]):
        """
        Initialize base curve.

        Args:
            name: Unique curve name used by providers and sensitivity bundles
            parameters: Parameter vector the curve is built from
        """
        self.name = name
        values = np.array(parameters, dtype=float)
        values.flags.writeable = False
        self._parameters = values

    @property
    def parameters(self) -> np.ndarray:
        return self._parameters

    @property
    def parameter_count(self) -> int:
        return len(self._parameters)

    @abstractmethod
    def zero(self, t: float) -> float:
        """Get continuously compounded zero rate at time t."""
        pass

    @abstractmethod
    def zero_parameter_sensitivity(self, t: float) -> np.ndarray:
        """Derivative of zero(t) with respect to each curve parameter."""
        pass

    def df(self, t: float) -> float:
        """Get discount factor at time t."""
        if t <= 0:
            return 1.0
        return math.exp(-self.zero(t) * t)

    def df_parameter_sensitivity(self, t: float) -> np.ndarray:
        """Derivative of df(t) with respect to each curve parameter."""
        if t <= 0:
            return np.zeros(self.parameter_count)
        return -t * self.df(t) * self.zero_parameter_sensitivity(t)

    def forward_rate(self, start: float, end: float, accrual: float) -> float:
        """Simply compounded forward rate between start and end."""
        if accrual <= 0:
            raise ValueError("Forward period must be positive")
        return (self.df(start) / self.df(end) - 1.0) / accrual

    def __str__(self) -> str:
        return (
            f"{self.__class__.__name__}({self.name})"
            if self.name
            else self.__class__.__name__
        )
