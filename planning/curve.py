"""
Lateral-offset curves parameterized by arc length.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence, Tuple, Union

import numpy as np
from numpy.polynomial import polynomial as P


ArcLength = Union[float, np.ndarray]


class Curve(Protocol):
    """Anything a candidate can wrap: evaluable and differentiable in s."""

    def at(self, s: ArcLength) -> ArcLength:
        ...

    def derivative(self) -> "Curve":
        ...


@dataclass(frozen=True)
class Polynomial:
    """
    Polynomial in arc length, rho(s) = c0 + c1*s + c2*s^2 + ...

    Coefficients are stored in ascending power order. Instances are immutable;
    derivative() always returns a new object.
    """
    coefficients: Tuple[float, ...]

    def __init__(self, coefficients: Sequence[float]):
        coeffs = tuple(float(c) for c in np.atleast_1d(coefficients))
        if not coeffs:
            raise ValueError("Polynomial needs at least one coefficient")
        object.__setattr__(self, "coefficients", coeffs)

    @property
    def degree(self) -> int:
        return len(self.coefficients) - 1

    def at(self, s: ArcLength) -> ArcLength:
        """
        Evaluate at arc length s.

        Scalars return a float, arrays return an ndarray. Values outside the
        candidate horizon are plain polynomial extrapolation.
        """
        value = P.polyval(s, self.coefficients)
        if np.ndim(value) == 0:
            return float(value)
        return value

    def derivative(self) -> "Polynomial":
        return Polynomial(P.polyder(self.coefficients))
