"""
Candidate ranking and selection.

Feasible candidates (inside the corridor, clear of obstacles) always rank
ahead of infeasible ones. Within each group candidates are ordered by
ascending cost, then by smaller |s0|, then by input order.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from planning.candidate import TrajectoryCandidate

logger = logging.getLogger(__name__)


class SelectionStatus(Enum):
    OK = "ok"
    NO_FEASIBLE_TRAJECTORY = "no_feasible_trajectory"


@dataclass
class SelectionResult:
    """Outcome of one ranking pass."""
    status: SelectionStatus
    best: Optional[TrajectoryCandidate]
    ranked: List[TrajectoryCandidate] = field(default_factory=list)
    num_feasible: int = 0

    @property
    def has_trajectory(self) -> bool:
        return self.status is SelectionStatus.OK and self.best is not None


def _sort_key(candidate: TrajectoryCandidate) -> Tuple[float, float]:
    cost = float(candidate.cost)
    if math.isnan(cost):
        cost = math.inf
    return cost, abs(float(candidate.s0))


def rank_candidates(candidates: Sequence[TrajectoryCandidate]) -> int:
    """
    Assign ranks 0..N-1 in place.

    Must run after every cost evaluator for the cycle has finished.

    Returns:
        Number of feasible candidates (they hold ranks 0..K-1).
    """
    feasible = [c for c in candidates if c.is_feasible]
    infeasible = [c for c in candidates if not c.is_feasible]

    nan_costs = sum(1 for c in candidates if math.isnan(float(c.cost)))
    if nan_costs:
        logger.warning(f"{nan_costs} candidate(s) have NaN cost; ranking them last in their group")

    # sorted() is stable, so exact (cost, |s0|) ties keep input order
    ordered = sorted(feasible, key=_sort_key) + sorted(infeasible, key=_sort_key)
    for rank, candidate in enumerate(ordered):
        candidate.rank = rank
    return len(feasible)


def select_trajectory(candidates: Sequence[TrajectoryCandidate]) -> SelectionResult:
    """
    Rank the candidate set and pick the active trajectory.

    When nothing is feasible the result carries NO_FEASIBLE_TRAJECTORY and no
    best candidate; the rank 0 given to an infeasible candidate is only for
    diagnostics and must not be tracked.
    """
    num_feasible = rank_candidates(candidates)
    ranked = sorted(candidates, key=lambda c: c.rank)

    if num_feasible == 0:
        logger.warning(
            f"No feasible trajectory among {len(ranked)} candidate(s) "
            f"(out_of_bounds={sum(c.out_of_bounds for c in ranked)}, "
            f"hits_obstacle={sum(c.hits_obstacle for c in ranked)})"
        )
        return SelectionResult(
            status=SelectionStatus.NO_FEASIBLE_TRAJECTORY,
            best=None,
            ranked=ranked,
            num_feasible=0,
        )

    best = ranked[0]
    logger.debug(f"Selected candidate cost={best.cost:.4f} s0={best.s0:.2f} "
                 f"({num_feasible}/{len(ranked)} feasible)")
    return SelectionResult(
        status=SelectionStatus.OK,
        best=best,
        ranked=ranked,
        num_feasible=num_feasible,
    )
