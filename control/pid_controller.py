"""
PID controller for path tracking.
Integral windup is handled by an overshoot limiter instead of a hard clamp.
"""

import math
from enum import Enum
from typing import Dict, Union


class SetpointCrossing(Enum):
    """Overshoot limiter phase."""
    NOT_YET_CROSSED = "not_yet_crossed"
    CROSSED = "crossed"


class OvershootLimiter:
    """
    Two-phase integral gating.

    Before the measured value first crosses the setpoint the integral term is
    suppressed entirely. Every crossing (error changes sign) resets the
    integral, and the first one moves the limiter to CROSSED for good (until
    reset()).
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self.state = SetpointCrossing.NOT_YET_CROSSED

    @property
    def crossed(self) -> bool:
        return self.state is SetpointCrossing.CROSSED

    def observe(self, error: float, previous_error: float) -> bool:
        """
        Feed one tick of error.

        Returns:
            True if the setpoint was crossed on this tick (integral must be reset)
        """
        if not self.enabled:
            return False
        if error * previous_error < 0.0:
            self.state = SetpointCrossing.CROSSED
            return True
        return False

    def integral_gain(self, ki: float) -> float:
        if self.enabled and not self.crossed:
            return 0.0
        return ki

    def reset(self):
        self.state = SetpointCrossing.NOT_YET_CROSSED


class PIDController:
    """
    PID controller with overshoot limiting (anti-windup).

    Output is not clamped; actuator limits belong to the caller. Not safe for
    concurrent ticks on one instance; use one controller per control axis.
    """

    def __init__(self, kp: float = 0.3, ki: float = 0.0, kd: float = 0.05,
                 overshoot_limiter: bool = True, setpoint: float = 0.0):
        """
        Initialize PID controller.

        Args:
            kp: Proportional gain
            ki: Integral gain
            kd: Derivative gain
            overshoot_limiter: Suppress integral action until the first setpoint
                crossing and reset the integral on every crossing
            setpoint: Initial target value
        """
        self.kp = kp
        self.ki = ki
        self.kd = kd
        self.setpoint = setpoint
        self.limiter = OvershootLimiter(enabled=overshoot_limiter)

        self.integral = 0.0
        self.previous_error = 0.0

    @property
    def overshoot_limiter_enabled(self) -> bool:
        return self.limiter.enabled

    @property
    def crossed_setpoint(self) -> bool:
        return self.limiter.crossed

    def get_control_variable(self, measured_value: float, dt: float,
                             return_metadata: bool = False) -> Union[float, Dict[str, float]]:
        """
        Advance the controller one tick.

        Args:
            measured_value: Current measurement of the controlled quantity
            dt: Tick duration (seconds), strictly positive
            return_metadata: If True, return a dict with the output and the
                individual terms instead of the bare output

        Returns:
            Control output, or dict with output and internal state
        """
        if not math.isfinite(dt) or dt <= 0.0:
            raise ValueError(f"dt must be a positive tick duration, got {dt}")

        error = self.setpoint - measured_value

        integral_reset = self.limiter.observe(error, self.previous_error)
        if integral_reset:
            self.integral = 0.0
        ki = self.limiter.integral_gain(self.ki)

        # Accumulates even while ki is gated off
        self.integral += error * dt
        derivative = (error - self.previous_error) / dt

        p_term = self.kp * error
        i_term = ki * self.integral
        d_term = self.kd * derivative
        output = p_term + i_term + d_term

        self.previous_error = error

        if return_metadata:
            return {
                'output': output,
                'error': error,
                'p_term': p_term,
                'i_term': i_term,
                'd_term': d_term,
                'integral': self.integral,
                'derivative': derivative,
                'crossed_setpoint': self.crossed_setpoint,
                'integral_reset': integral_reset,
            }
        return output

    def reset(self):
        """Reset controller state."""
        self.integral = 0.0
        self.previous_error = 0.0
        self.limiter.reset()
