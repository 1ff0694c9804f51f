"""
Occupancy grid input for obstacle and terrain cost passes.

The grid follows the ROS OccupancyGrid convention: row-major (ny, nx) cells,
values 0..100 for occupancy probability, negative for unknown. Building the
grid is the perception stack's job; this module only reads it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

import numpy as np
from scipy import ndimage


ArrayLike = Union[float, np.ndarray]


@dataclass
class OccupancyGrid:
    """Fixed-resolution grid anchored at origin (world x, y of cell (0, 0) corner)."""
    data: np.ndarray
    resolution: float = 1.0  # meters per cell
    origin: Tuple[float, float] = (0.0, 0.0)
    occupied_threshold: float = 50.0
    _clearance: Optional[np.ndarray] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        self.data = np.asarray(self.data, dtype=float)
        if self.data.ndim != 2:
            raise ValueError(f"Grid data must be 2-D, got shape {self.data.shape}")
        if self.resolution <= 0.0:
            raise ValueError(f"Grid resolution must be positive, got {self.resolution}")
        self.origin = (float(self.origin[0]), float(self.origin[1]))

    @classmethod
    def from_points(cls, points, resolution: float, origin: Tuple[float, float],
                    shape: Tuple[int, int], value: float = 100.0) -> "OccupancyGrid":
        """Rasterize obstacle (x, y) points into an otherwise free grid of shape (ny, nx)."""
        grid = cls(np.zeros(shape), resolution=resolution, origin=origin)
        pts = np.asarray(points, dtype=float).reshape(-1, 2)
        if len(pts):
            rows, cols, inside = grid._cells(pts[:, 0], pts[:, 1])
            grid.data[rows[inside], cols[inside]] = value
        return grid

    def fill_box(self, x_min: float, y_min: float, x_max: float, y_max: float, value: float) -> None:
        """Set every cell overlapping the world box [x_min, x_max] x [y_min, y_max] to value."""
        ny, nx = self.data.shape
        x0, y0 = self.origin
        c0 = int(np.clip(np.floor((x_min - x0) / self.resolution), 0, nx))
        c1 = int(np.clip(np.ceil((x_max - x0) / self.resolution), 0, nx))
        r0 = int(np.clip(np.floor((y_min - y0) / self.resolution), 0, ny))
        r1 = int(np.clip(np.ceil((y_max - y0) / self.resolution), 0, ny))
        self.data[r0:r1, c0:c1] = value
        self._clearance = None

    @property
    def shape(self) -> Tuple[int, int]:
        return self.data.shape

    @property
    def extent(self) -> Tuple[float, float, float, float]:
        """(x_min, x_max, y_min, y_max) in world coordinates."""
        ny, nx = self.data.shape
        x0, y0 = self.origin
        return x0, x0 + nx * self.resolution, y0, y0 + ny * self.resolution

    @property
    def occupied(self) -> np.ndarray:
        return self.data >= self.occupied_threshold

    def _cells(self, x: ArrayLike, y: ArrayLike):
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        cols = np.floor((x - self.origin[0]) / self.resolution).astype(int)
        rows = np.floor((y - self.origin[1]) / self.resolution).astype(int)
        ny, nx = self.data.shape
        inside = (rows >= 0) & (rows < ny) & (cols >= 0) & (cols < nx)
        return np.clip(rows, 0, ny - 1), np.clip(cols, 0, nx - 1), inside

    def value_at(self, x: ArrayLike, y: ArrayLike, default: float = 0.0) -> ArrayLike:
        """Raw cell value at world points; default for points outside the grid."""
        rows, cols, inside = self._cells(x, y)
        values = np.where(inside, self.data[rows, cols], default)
        return float(values) if values.ndim == 0 else values

    def is_occupied(self, x: ArrayLike, y: ArrayLike) -> Union[bool, np.ndarray]:
        """True where the point falls in an occupied cell. Outside the grid is free."""
        rows, cols, inside = self._cells(x, y)
        hits = inside & self.occupied[rows, cols]
        return bool(hits) if hits.ndim == 0 else hits

    def clearance(self, x: ArrayLike, y: ArrayLike) -> ArrayLike:
        """
        Distance (meters) from each point's cell to the nearest occupied cell.

        Points outside the grid get their distance to the grid boundary plus
        the clearance of the nearest border cell. Returns inf when the grid
        has no occupied cells.
        """
        if self._clearance is None:
            occupied = self.occupied
            if not occupied.any():
                self._clearance = np.full(self.data.shape, np.inf)
            else:
                self._clearance = ndimage.distance_transform_edt(~occupied) * self.resolution
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        rows, cols, inside = self._cells(x, y)
        x_min, x_max, y_min, y_max = self.extent
        outside = np.hypot(np.maximum(np.maximum(x_min - x, x - x_max), 0.0),
                           np.maximum(np.maximum(y_min - y, y - y_max), 0.0))
        dist = np.where(inside, self._clearance[rows, cols], self._clearance[rows, cols] + outside)
        return float(dist) if dist.ndim == 0 else dist
