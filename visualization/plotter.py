"""
Debug plot of the centerline, waypoints, candidates and occupancy grid.
Nothing here feeds back into planning.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import matplotlib
import numpy as np

from planning.candidate import TrajectoryCandidate
from planning.centerline import Centerline
from planning.occupancy_grid import OccupancyGrid

logger = logging.getLogger(__name__)

DPI = 100


class Plotter:
    """Collects planner state and renders it with matplotlib."""

    def __init__(self, nx: int = 800, ny: int = 800, sample_step: float = 0.5):
        self.nx = int(nx)
        self.ny = int(ny)
        self.sample_step = sample_step
        self.path: Optional[np.ndarray] = None
        self.waypoints: Optional[np.ndarray] = None
        self.curves: List[TrajectoryCandidate] = []
        self.grid: Optional[OccupancyGrid] = None
        self._centerline: Optional[Centerline] = None

    def set_path(self, path: Sequence[Sequence[float]]) -> None:
        """Set the centerline to plot (list of (x, y))."""
        self._centerline = Centerline(path)
        self.path = self._centerline.points

    def add_curves(self, curves: Sequence[TrajectoryCandidate]) -> None:
        """Add candidate paths. They are drawn relative to the centerline."""
        if self._centerline is None:
            raise ValueError("set_path() must be called before add_curves()")
        self.curves.extend(curves)

    def add_map(self, grid: OccupancyGrid) -> None:
        self.grid = grid

    def add_waypoints(self, waypoints: Sequence[Sequence[float]]) -> None:
        self.waypoints = np.asarray(waypoints, dtype=float).reshape(-1, 2)

    def get_dimensions(self) -> Tuple[int, int]:
        return self.nx, self.ny

    def _candidate_xy(self, candidate: TrajectoryCandidate):
        num = max(2, int(np.ceil(candidate.max_length / self.sample_step)) + 1)
        s = np.linspace(0.0, candidate.max_length, num)
        rho = np.asarray(candidate.at(s), dtype=float)
        return self._centerline.to_cartesian(candidate.s0 + s, rho)

    def _draw_order(self) -> List[TrajectoryCandidate]:
        """Unranked first, then worst to best, so rank 0 is drawn on top."""
        return sorted(self.curves, key=lambda c: (c.rank >= 0, -c.rank))

    def _draw(self, nx: int, ny: int):
        import matplotlib.pyplot as plt

        fig, ax = plt.subplots(figsize=(nx / DPI, ny / DPI), dpi=DPI)

        if self.grid is not None:
            ax.imshow(np.ma.masked_less(self.grid.data, 0.0), origin='lower',
                      extent=self.grid.extent, cmap='Greys', vmin=0.0, vmax=100.0,
                      interpolation='nearest')

        for candidate in self._draw_order():
            x, y = self._candidate_xy(candidate)
            if not candidate.is_feasible:
                ax.plot(x, y, color='tab:red', linewidth=0.8, alpha=0.6)
            elif candidate.rank == 0:
                ax.plot(x, y, color='tab:green', linewidth=2.5, label='selected')
            else:
                ax.plot(x, y, color='tab:blue', linewidth=0.8, alpha=0.6)

        if self.path is not None:
            ax.plot(self.path[:, 0], self.path[:, 1], 'k--', linewidth=1.0, label='centerline')
        if self.waypoints is not None and len(self.waypoints):
            ax.plot(self.waypoints[:, 0], self.waypoints[:, 1], 'o', color='tab:orange',
                    markersize=4, label='waypoints')

        ax.set_aspect('equal', adjustable='datalim')
        ax.set_xlabel('x (m)')
        ax.set_ylabel('y (m)')
        if ax.get_legend_handles_labels()[0]:
            ax.legend(loc='upper right', fontsize='small')
        fig.tight_layout()
        return fig

    def display(self, save: bool = False, ofname: Optional[Union[str, Path]] = None,
                nx: Optional[int] = None, ny: Optional[int] = None) -> Optional[Path]:
        """
        Show the plot, or save it.

        Args:
            save: True to write an image file instead of opening a window
            ofname: Output file name with extension (required when saving)
            nx: Horizontal pixels (defaults to the plotter's nx)
            ny: Vertical pixels (defaults to the plotter's ny)

        Returns:
            Path of the saved image, or None when displayed on screen
        """
        if nx is not None:
            self.nx = int(nx)
        if ny is not None:
            self.ny = int(ny)

        if save:
            if ofname is None:
                raise ValueError("ofname is required when save=True")
            matplotlib.use('Agg')  # Non-interactive backend
        import matplotlib.pyplot as plt

        fig = self._draw(self.nx, self.ny)
        if not save:
            plt.show()
            plt.close(fig)
            return None

        output = Path(ofname)
        output.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output, dpi=DPI)
        plt.close(fig)
        logger.info(f"Saved planner plot to {output}")
        return output
