"""
Candidate trajectory record passed between the generator, the cost
evaluators and the selector.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Optional

from planning.curve import ArcLength, Curve


DEFAULT_MAX_LENGTH = 100.0


@dataclass
class TrajectoryCandidate:
    """
    One lateral-offset candidate for a single planning cycle.

    The record carries no policy. Each field has exactly one writer per cycle:

    - generator: curve, max_length, s0
    - geometry pass: max_curvature, comfortability
    - bounds pass: out_of_bounds, rho_cost
    - obstacle pass: hits_obstacle, static_safety
    - terrain pass: segmentation_cost
    - dynamic obstacle pass (external): dynamic_safety
    - aggregate pass: cost
    - selector: rank

    curve, first_derivative and second_derivative are read-only; only
    initialize() replaces them, so the derivatives always match the curve.
    """
    _curve: Optional[Curve] = field(default=None, init=False)
    _first_derivative: Optional[Curve] = field(default=None, init=False)
    _second_derivative: Optional[Curve] = field(default=None, init=False)
    out_of_bounds: bool = field(default=False, init=False)
    hits_obstacle: bool = field(default=False, init=False)
    cost: float = field(default=0.0, init=False)
    comfortability: float = field(default=0.0, init=False)
    static_safety: float = field(default=0.0, init=False)
    dynamic_safety: float = field(default=0.0, init=False)
    segmentation_cost: float = field(default=0.0, init=False)
    rho_cost: float = field(default=0.0, init=False)
    max_curvature: float = field(default=0.0, init=False)
    max_length: float = field(default=DEFAULT_MAX_LENGTH, init=False)
    s0: float = field(default=0.0, init=False)
    rank: int = field(default=-1, init=False)

    def __init__(self, curve: Optional[Curve] = None):
        self._curve = None
        self._first_derivative = None
        self._second_derivative = None
        self._reset()
        if curve is not None:
            self.initialize(curve)

    @property
    def curve(self) -> Optional[Curve]:
        return self._curve

    @property
    def first_derivative(self) -> Optional[Curve]:
        return self._first_derivative

    @property
    def second_derivative(self) -> Optional[Curve]:
        return self._second_derivative

    def initialize(self, curve: Curve) -> None:
        """
        (Re)initialize the candidate with a new curve.

        Derives both derivative curves once and resets every flag, cost,
        limit and the rank, so a slot can be reused for another curve.
        """
        self._curve = curve
        self._first_derivative = curve.derivative()
        self._second_derivative = self._first_derivative.derivative()
        self._reset()

    def _reset(self) -> None:
        self.out_of_bounds = False
        self.hits_obstacle = False
        self.cost = 0.0
        self.comfortability = 0.0
        self.static_safety = 0.0
        self.dynamic_safety = 0.0
        self.segmentation_cost = 0.0
        self.rho_cost = 0.0
        self.max_curvature = 0.0
        self.max_length = DEFAULT_MAX_LENGTH
        self.s0 = 0.0
        self.rank = -1

    # s outside [0, max_length] is not checked; the curve extrapolates.
    def at(self, s: ArcLength) -> ArcLength:
        """Signed lateral offset (rho) at arc length s."""
        return self._require(self._curve).at(s)

    def derivative_at(self, s: ArcLength) -> ArcLength:
        """First derivative of rho at arc length s."""
        return self._require(self._first_derivative).at(s)

    def second_derivative_at(self, s: ArcLength) -> ArcLength:
        """Second derivative of rho at arc length s."""
        return self._require(self._second_derivative).at(s)

    @property
    def is_feasible(self) -> bool:
        return not self.out_of_bounds and not self.hits_obstacle

    def copy(self) -> "TrajectoryCandidate":
        """Independent copy of every field, derived curves included."""
        return copy.deepcopy(self)

    @staticmethod
    def _require(curve: Optional[Curve]) -> Curve:
        if curve is None:
            raise ValueError("Candidate has not been initialized with a curve")
        return curve
