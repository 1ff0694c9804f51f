"""
Tests for centerline (s, rho) -> (x, y) conversion.
"""

import math

import numpy as np
import pytest
from planning.centerline import Centerline


def test_straight_line_along_x():
    line = Centerline([[0.0, 0.0], [20.0, 0.0]])

    assert line.length == pytest.approx(20.0)
    assert line.to_cartesian(5.0, 0.0) == pytest.approx((5.0, 0.0))
    # Positive rho is to the left of travel
    assert line.to_cartesian(5.0, 1.5) == pytest.approx((5.0, 1.5))
    assert line.to_cartesian(5.0, -1.5) == pytest.approx((5.0, -1.5))


def test_l_shaped_path():
    line = Centerline([[0.0, 0.0], [10.0, 0.0], [10.0, 10.0]])

    assert line.length == pytest.approx(20.0)
    assert line.to_cartesian(15.0, 0.0) == pytest.approx((10.0, 5.0))
    assert line.to_cartesian(15.0, 1.0) == pytest.approx((9.0, 5.0))
    assert line.heading_at(5.0) == pytest.approx(0.0)
    assert line.heading_at(15.0) == pytest.approx(math.pi / 2)


def test_extends_past_ends():
    line = Centerline([[0.0, 0.0], [10.0, 0.0]])
    assert line.to_cartesian(-2.0, 0.0) == pytest.approx((-2.0, 0.0))
    assert line.to_cartesian(12.0, 1.0) == pytest.approx((12.0, 1.0))


def test_vectorized():
    line = Centerline([[0.0, 0.0], [10.0, 10.0]])
    s = np.array([0.0, math.sqrt(2.0), 2 * math.sqrt(2.0)])

    x, y = line.to_cartesian(s, np.zeros(3))

    np.testing.assert_allclose(x, [0.0, 1.0, 2.0], atol=1e-12)
    np.testing.assert_allclose(y, [0.0, 1.0, 2.0], atol=1e-12)


def test_repeated_points_dropped():
    line = Centerline([[0.0, 0.0], [0.0, 0.0], [5.0, 0.0], [5.0, 0.0]])
    assert len(line.points) == 2
    assert line.length == pytest.approx(5.0)


@pytest.mark.parametrize("points", [
    [[0.0, 0.0]],
    [[1.0, 1.0], [1.0, 1.0]],
    [0.0, 1.0, 2.0],
])
def test_degenerate_rejected(points):
    with pytest.raises(ValueError):
        Centerline(points)
