"""
Tests for the trajectory candidate record.
"""

import numpy as np
import pytest
from planning.candidate import DEFAULT_MAX_LENGTH, TrajectoryCandidate
from planning.curve import Polynomial


def _dirty_candidate() -> TrajectoryCandidate:
    """Candidate with every field moved away from its default."""
    candidate = TrajectoryCandidate(Polynomial([0.5, 0.1, -0.01, 0.001]))
    candidate.out_of_bounds = True
    candidate.hits_obstacle = True
    candidate.cost = 12.0
    candidate.comfortability = 1.0
    candidate.static_safety = 2.0
    candidate.dynamic_safety = 3.0
    candidate.segmentation_cost = 4.0
    candidate.rho_cost = 5.0
    candidate.max_curvature = 0.3
    candidate.max_length = 42.0
    candidate.s0 = 7.0
    candidate.rank = 3
    return candidate


class TestInitialization:
    def test_defaults(self):
        candidate = TrajectoryCandidate(Polynomial([0.0, 1.0]))

        assert candidate.out_of_bounds is False
        assert candidate.hits_obstacle is False
        assert candidate.rank == -1
        assert candidate.max_curvature == 0.0
        assert candidate.max_length == DEFAULT_MAX_LENGTH == 100.0
        assert candidate.s0 == 0.0
        assert candidate.cost == 0.0
        assert candidate.is_feasible

    def test_derivatives_match_curve(self):
        curve = Polynomial([0.5, 0.1, -0.01, 0.001])
        candidate = TrajectoryCandidate(curve)

        for s in np.linspace(0.0, candidate.max_length, 21):
            assert candidate.at(s) == curve.at(s)
            assert candidate.derivative_at(s) == curve.derivative().at(s)
            assert candidate.second_derivative_at(s) == curve.derivative().derivative().at(s)

    def test_reinitialize_resets_everything(self):
        candidate = _dirty_candidate()
        new_curve = Polynomial([1.0, 0.0, 0.02])

        candidate.initialize(new_curve)

        fresh = TrajectoryCandidate(new_curve)
        assert candidate == fresh
        assert candidate.first_derivative == new_curve.derivative()
        assert candidate.second_derivative == Polynomial([0.04])

    def test_reinitialize_is_idempotent(self):
        curve = Polynomial([1.0, 2.0])
        candidate = TrajectoryCandidate(curve)
        candidate.initialize(curve)
        candidate.initialize(curve)
        assert candidate == TrajectoryCandidate(curve)

    @pytest.mark.parametrize("name", ["curve", "first_derivative", "second_derivative"])
    def test_curves_are_read_only(self, name):
        candidate = TrajectoryCandidate(Polynomial([0.0, 1.0]))

        with pytest.raises(AttributeError):
            setattr(candidate, name, Polynomial([0.0, 5.0]))

        assert candidate.curve == Polynomial([0.0, 1.0])
        assert candidate.derivative_at(1.0) == 1.0

    def test_initialize_is_the_only_way_to_swap_curves(self):
        candidate = TrajectoryCandidate(Polynomial([0.0, 1.0]))
        candidate.initialize(Polynomial([0.0, 5.0]))
        assert candidate.derivative_at(1.0) == 5.0
        assert candidate.second_derivative_at(1.0) == 0.0

    def test_empty_candidate(self):
        candidate = TrajectoryCandidate()
        assert candidate.curve is None
        assert candidate.first_derivative is None
        with pytest.raises(ValueError):
            candidate.at(1.0)
        with pytest.raises(ValueError):
            candidate.second_derivative_at(1.0)

        candidate.initialize(Polynomial([3.0]))
        assert candidate.at(1.0) == 3.0
        assert candidate.derivative_at(1.0) == 0.0


class TestQueries:
    def test_queries_do_not_mutate(self):
        candidate = _dirty_candidate()
        before = candidate.copy()

        candidate.at(3.0)
        candidate.derivative_at(np.array([0.0, 1.0]))
        candidate.second_derivative_at(500.0)

        assert candidate == before

    def test_no_range_validation(self):
        """Queries past max_length extrapolate the curve."""
        candidate = TrajectoryCandidate(Polynomial([0.0, 1.0]))
        candidate.max_length = 10.0
        assert candidate.at(25.0) == pytest.approx(25.0)
        assert candidate.at(-5.0) == pytest.approx(-5.0)

    def test_array_queries(self):
        candidate = TrajectoryCandidate(Polynomial([0.0, 0.0, 1.0]))
        np.testing.assert_allclose(candidate.derivative_at(np.array([0.0, 1.0, 2.0])), [0.0, 2.0, 4.0])


class TestMutation:
    def test_setters_accept_any_value(self):
        candidate = TrajectoryCandidate(Polynomial([0.0]))
        candidate.max_curvature = -1.0
        candidate.cost = -100.0
        candidate.max_length = 0.0
        assert candidate.max_curvature == -1.0
        assert candidate.cost == -100.0
        assert candidate.max_length == 0.0

    @pytest.mark.parametrize("oob,hit,feasible", [
        (False, False, True),
        (True, False, False),
        (False, True, False),
        (True, True, False),
    ])
    def test_feasibility(self, oob, hit, feasible):
        candidate = TrajectoryCandidate(Polynomial([0.0]))
        candidate.out_of_bounds = oob
        candidate.hits_obstacle = hit
        assert candidate.is_feasible is feasible


class TestCopy:
    def test_copy_has_every_field(self):
        original = _dirty_candidate()
        duplicate = original.copy()

        assert duplicate == original
        assert duplicate is not original

    def test_copy_is_independent(self):
        original = _dirty_candidate()
        duplicate = original.copy()

        duplicate.cost = 0.0
        duplicate.rank = 0
        duplicate.initialize(Polynomial([9.0]))

        assert original.cost == 12.0
        assert original.rank == 3
        assert original.at(0.0) == pytest.approx(0.5)
        assert original.derivative_at(0.0) == pytest.approx(0.1)
