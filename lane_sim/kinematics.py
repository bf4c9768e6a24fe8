from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple
import math

from .geometry_utils import angle_to_radians, round_number

# Velocity is rounded after each step so repeated float increments land
# exactly on the clamp bounds.
_VELOCITY_DIGITS = 10


@dataclass
class KinematicState:
    """Pose and speed of a car.

    Attributes
    ----------
    x, y : float
        Position in screen coordinates (y down).
    angle : float
        Heading in degrees, counter-clockwise on screen, 0 along +x.
    velocity : float
        Distance travelled per tick.
    """

    x: float
    y: float
    angle: float
    velocity: float

    def to_dict(self) -> Dict[str, Any]:
        return {"x": self.x, "y": self.y, "angle": self.angle, "velocity": self.velocity}


def stopping_distance(velocity: float, brake_power: float) -> float:
    """Distance covered while braking to a halt, one tick at a time.

    Each tick removes ``brake_power`` and then moves by what is left; the
    loop ends as soon as the remaining velocity is no longer positive.
    """
    if brake_power <= 0.0:
        raise ValueError(f"brake_power must be positive, got {brake_power}")
    remaining = velocity
    total = 0.0
    while remaining > 0.0:
        remaining -= brake_power
        if remaining <= 0.0:
            break
        total += remaining
    return total


def accelerate(velocity: float, power: float, max_velocity: float) -> float:
    """Velocity after one tick of acceleration, capped at ``max_velocity``."""
    nxt = round(velocity + power, _VELOCITY_DIGITS)
    return min(max_velocity, max(0.0, nxt))


def brake(velocity: float, power: float) -> float:
    """Velocity after one tick of braking, floored at zero."""
    nxt = round(velocity - power, _VELOCITY_DIGITS)
    return max(0.0, nxt)


def advance(x: float, y: float, angle: float, velocity: float) -> Tuple[float, float]:
    """Move a point by ``velocity`` along ``angle``; result rounded to 0.1."""
    theta = angle_to_radians(angle)
    new_x = round_number(x + math.cos(theta) * velocity, 1)
    new_y = round_number(y - math.sin(theta) * velocity, 1)
    return new_x, new_y
