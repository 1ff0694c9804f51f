"""
Path tracking: drives the vehicle's lateral offset toward the selected
candidate with the PID law.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from control.pid_controller import PIDController
from planning.candidate import TrajectoryCandidate
from planning.selector import SelectionResult

logger = logging.getLogger(__name__)


@dataclass
class TrackingCommand:
    """One control tick's output."""
    command: float
    raw_command: float
    setpoint: float
    error: float
    stop_requested: bool = False
    rank: int = -1
    clamped: bool = False


class PathTrackingController:
    """
    Tracks the rank-0 feasible candidate.

    Without a feasible reference the controller emits a hold command with
    stop_requested set so the vehicle layer can brake instead of following
    an unsafe trajectory.
    """

    def __init__(self, pid: Optional[PIDController] = None, max_command: Optional[float] = None):
        """
        Args:
            pid: Lateral PID controller (setpoint is overwritten every tick)
            max_command: Symmetric actuator limit applied to the PID output (None = no limit)
        """
        self.pid = pid or PIDController()
        self.max_command = max_command
        self.reference: Optional[TrajectoryCandidate] = None

    def set_reference(self, selection: SelectionResult) -> None:
        """Adopt the selector output for the coming ticks."""
        if selection.has_trajectory:
            self.reference = selection.best
            return

        if self.reference is not None:
            logger.warning("No feasible trajectory; dropping reference and resetting PID")
        self.reference = None
        self.pid.reset()

    def update(self, s: float, lateral_offset: float, dt: float) -> TrackingCommand:
        """
        Compute one control command.

        Args:
            s: Vehicle arc length along the global centerline (meters)
            lateral_offset: Vehicle signed lateral offset from the centerline (meters)
            dt: Tick duration (seconds)

        Returns:
            TrackingCommand; a hold command when there is no reference
        """
        if self.reference is None:
            logger.info("Holding: no reference trajectory")
            return TrackingCommand(
                command=0.0,
                raw_command=0.0,
                setpoint=float(lateral_offset),
                error=0.0,
                stop_requested=True,
            )

        local_s = s - self.reference.s0
        self.pid.setpoint = float(self.reference.at(local_s))
        raw = float(self.pid.get_control_variable(lateral_offset, dt))

        command = raw
        if self.max_command is not None:
            command = float(np.clip(raw, -self.max_command, self.max_command))

        return TrackingCommand(
            command=command,
            raw_command=raw,
            setpoint=self.pid.setpoint,
            error=self.pid.previous_error,
            stop_requested=False,
            rank=self.reference.rank,
            clamped=command != raw,
        )
