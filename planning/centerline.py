"""
Centerline polyline with arc-length / lateral-offset conversion.
"""

from __future__ import annotations

from typing import Sequence, Tuple, Union

import numpy as np


ArrayLike = Union[float, Sequence[float], np.ndarray]


class Centerline:
    """
    Reference path built from (x, y) points.

    Positions between vertices are linearly interpolated; the heading of the
    segment containing s is used for the lateral offset. Positive rho is to
    the left of the direction of travel. Queries past either end extend the
    first/last segment.
    """

    def __init__(self, points: Sequence[Sequence[float]]):
        pts = np.asarray(points, dtype=float)
        if pts.ndim != 2 or pts.shape[1] != 2:
            raise ValueError(f"Centerline points must have shape (N, 2), got {pts.shape}")

        # Drop repeated vertices (zero-length segments have no heading)
        keep = np.ones(len(pts), dtype=bool)
        keep[1:] = np.any(np.diff(pts, axis=0) != 0.0, axis=1)
        pts = pts[keep]
        if len(pts) < 2:
            raise ValueError("Centerline needs at least two distinct points")

        self.points = pts
        seg = np.diff(pts, axis=0)
        self._segment_lengths = np.hypot(seg[:, 0], seg[:, 1])
        self._segment_headings = np.arctan2(seg[:, 1], seg[:, 0])
        self.s = np.concatenate(([0.0], np.cumsum(self._segment_lengths)))

    @property
    def length(self) -> float:
        return float(self.s[-1])

    def _segment_index(self, s: np.ndarray) -> np.ndarray:
        idx = np.searchsorted(self.s, s, side="right") - 1
        return np.clip(idx, 0, len(self._segment_lengths) - 1)

    def heading_at(self, s: ArrayLike) -> ArrayLike:
        """Heading (radians) of the centerline at arc length s."""
        s_arr = np.asarray(s, dtype=float)
        heading = self._segment_headings[self._segment_index(s_arr)]
        return float(heading) if heading.ndim == 0 else heading

    def to_cartesian(self, s: ArrayLike, rho: ArrayLike) -> Tuple[ArrayLike, ArrayLike]:
        """
        Convert (s, rho) to world coordinates.

        Args:
            s: Arc length along the centerline (meters)
            rho: Signed lateral offset (meters, positive = left)

        Returns:
            (x, y), scalars for scalar input, arrays otherwise
        """
        s_arr, rho_arr = np.broadcast_arrays(np.asarray(s, dtype=float), np.asarray(rho, dtype=float))
        idx = self._segment_index(s_arr)
        heading = self._segment_headings[idx]
        ds = s_arr - self.s[idx]

        x = self.points[idx, 0] + ds * np.cos(heading) - rho_arr * np.sin(heading)
        y = self.points[idx, 1] + ds * np.sin(heading) + rho_arr * np.cos(heading)
        if x.ndim == 0:
            return float(x), float(y)
        return x, y
