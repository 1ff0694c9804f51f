"""
Cost evaluation passes for candidate trajectories.

Each pass writes a disjoint set of candidate fields, so passes over
different candidates can run independently. The aggregate pass combines the
component costs; ranking (planning.selector) must wait until every pass has
finished for the whole candidate set.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from planning.candidate import TrajectoryCandidate
from planning.centerline import Centerline
from planning.occupancy_grid import OccupancyGrid

logger = logging.getLogger(__name__)


@dataclass
class CostWeights:
    """Weights of the component costs in the aggregate cost."""

    comfort: float = 1.0
    static_safety: float = 1.0
    # No evaluator in this repo writes dynamic_safety; weight defaults to off.
    dynamic_safety: float = 0.0
    rho: float = 1.0
    segmentation: float = 1.0


@dataclass
class CostEvaluatorConfig:
    """Sampling and geometric limits used by the passes."""

    sample_step: float = 0.5  # meters of arc length between samples
    corridor_half_width: float = 3.5  # meters either side of the centerline
    vehicle_half_width: float = 1.0  # meters; closer than this to an obstacle is a hit
    safety_distance: float = 4.0  # meters; clearance beyond this costs nothing


def sample_arc_length(candidate: TrajectoryCandidate, sample_step: float) -> np.ndarray:
    """Candidate-local arc length samples covering [0, max_length], both ends included."""
    if sample_step <= 0.0:
        raise ValueError(f"sample_step must be positive, got {sample_step}")
    max_length = max(0.0, float(candidate.max_length))
    num = int(np.ceil(max_length / sample_step)) + 1
    return np.linspace(0.0, max_length, max(num, 2))


def evaluate_geometry(candidate: TrajectoryCandidate, config: CostEvaluatorConfig) -> None:
    """Write max_curvature and comfortability."""
    s = sample_arc_length(candidate, config.sample_step)
    d1 = np.asarray(candidate.derivative_at(s), dtype=float)
    d2 = np.asarray(candidate.second_derivative_at(s), dtype=float)
    curvature = d2 / np.power(1.0 + d1 ** 2, 1.5)
    candidate.max_curvature = float(np.max(np.abs(curvature)))
    candidate.comfortability = float(np.mean(curvature ** 2))


def evaluate_bounds(candidate: TrajectoryCandidate, config: CostEvaluatorConfig) -> None:
    """Write out_of_bounds and rho_cost."""
    s = sample_arc_length(candidate, config.sample_step)
    rho = np.asarray(candidate.at(s), dtype=float)
    half_width = config.corridor_half_width
    candidate.out_of_bounds = bool(np.any(np.abs(rho) > half_width))
    # Final offset from the centerline, normalized by the corridor
    candidate.rho_cost = float(abs(rho[-1]) / half_width) if half_width > 0.0 else float(abs(rho[-1]))


def candidate_to_world(candidate: TrajectoryCandidate, centerline: Centerline,
                       sample_step: float):
    """World (x, y) samples of the candidate along the centerline."""
    s = sample_arc_length(candidate, sample_step)
    rho = np.asarray(candidate.at(s), dtype=float)
    return centerline.to_cartesian(candidate.s0 + s, rho)


def evaluate_obstacles(candidate: TrajectoryCandidate, centerline: Centerline,
                       grid: OccupancyGrid, config: CostEvaluatorConfig) -> None:
    """Write hits_obstacle and static_safety."""
    x, y = candidate_to_world(candidate, centerline, config.sample_step)
    occupied = np.asarray(grid.is_occupied(x, y))
    clearance = np.asarray(grid.clearance(x, y), dtype=float)
    min_clearance = float(np.min(clearance))

    candidate.hits_obstacle = bool(np.any(occupied)) or min_clearance < config.vehicle_half_width
    if config.safety_distance > 0.0 and np.isfinite(min_clearance):
        candidate.static_safety = float(max(0.0, 1.0 - min_clearance / config.safety_distance))
    else:
        candidate.static_safety = 0.0


def evaluate_segmentation(candidate: TrajectoryCandidate, centerline: Centerline,
                          cost_map: OccupancyGrid, config: CostEvaluatorConfig) -> None:
    """Write segmentation_cost: mean terrain cost (0..100 cells scaled to 0..1) along the path."""
    x, y = candidate_to_world(candidate, centerline, config.sample_step)
    values = np.asarray(cost_map.value_at(x, y, default=0.0), dtype=float)
    # Unknown cells (negative) are not penalized
    values = np.clip(values, 0.0, 100.0) / 100.0
    candidate.segmentation_cost = float(np.mean(values))


def aggregate_cost(candidate: TrajectoryCandidate, weights: CostWeights) -> float:
    """Write and return the weighted sum of the component costs."""
    candidate.cost = float(
        weights.comfort * candidate.comfortability
        + weights.static_safety * candidate.static_safety
        + weights.dynamic_safety * candidate.dynamic_safety
        + weights.rho * candidate.rho_cost
        + weights.segmentation * candidate.segmentation_cost
    )
    return candidate.cost


class CostEvaluator:
    """Runs every cost pass over a candidate set for one planning cycle."""

    def __init__(self, weights: Optional[CostWeights] = None,
                 config: Optional[CostEvaluatorConfig] = None):
        self.weights = weights or CostWeights()
        self.config = config or CostEvaluatorConfig()

    def evaluate(self, candidates: Sequence[TrajectoryCandidate],
                 centerline: Optional[Centerline] = None,
                 grid: Optional[OccupancyGrid] = None,
                 segmentation: Optional[OccupancyGrid] = None) -> List[TrajectoryCandidate]:
        """
        Evaluate all candidates in place.

        Obstacle and terrain passes need a centerline to place the candidate
        in the world; they are skipped when their inputs are missing.

        Returns:
            The same candidates, for chaining into the selector
        """
        world_passes = centerline is not None
        if not world_passes and (grid is not None or segmentation is not None):
            logger.warning("Grid supplied without a centerline; skipping obstacle and terrain passes")

        for candidate in candidates:
            evaluate_geometry(candidate, self.config)
            evaluate_bounds(candidate, self.config)
            if world_passes and grid is not None:
                evaluate_obstacles(candidate, centerline, grid, self.config)
            if world_passes and segmentation is not None:
                evaluate_segmentation(candidate, centerline, segmentation, self.config)
            aggregate_cost(candidate, self.weights)

        logger.debug(f"Evaluated {len(candidates)} candidate(s)")
        return list(candidates)
