from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, TYPE_CHECKING

from .geometry_utils import bearing_deg, round_number
from .sensors import Sensor

if TYPE_CHECKING:
    from .car import Car


class Reaction(str, Enum):
    ACCELERATE = "accelerate"
    BRAKE = "brake"


@dataclass
class Decision:
    """Outcome of one policy evaluation."""

    reaction: Reaction
    steer_to: Optional[Tuple[float, float]] = None
    reason: str = ""


def steering_angle(position: Tuple[float, float], target: Tuple[float, float], current: float) -> float:
    """Heading toward ``target``; ``current`` when the target is the position itself."""
    x, y = position
    tx, ty = target
    dx = round_number(tx - x, 1)
    dy = round_number(y - ty, 1)
    if dx == 0.0 and dy == 0.0:
        return current
    return bearing_deg(dx, dy)


def closest_side_reading(car: "Car") -> Optional[Sensor]:
    """Sensor other than ``front`` with the smallest positive reading."""
    best: Optional[Sensor] = None
    for sensor in car.sensors:
        if sensor.name == "front" or sensor.distance is None or sensor.distance <= 0.0:
            continue
        if best is None or sensor.distance < best.distance:
            best = sensor
    return best


class ReactionPolicy:
    """Greedy per-tick accelerate/brake/steer decision from sensor state.

    Priority order: anything ahead brakes; otherwise the closest side
    reading decides (pass vehicles that pull away or stand still, brake for
    the rest); otherwise brake early enough to stop at the route end.
    """

    def decide(self, car: "Car") -> Decision:
        node = car.current_target
        target = (node.x, node.y)

        if car.sensors["front"].distance is not None:
            return Decision(Reaction.BRAKE, reason="front")

        sensor = closest_side_reading(car)
        if sensor is not None:
            obj = sensor.collision_obj
            if obj is not None and obj.is_vehicle() and (obj.velocity > car.velocity or not obj.velocity):
                return Decision(Reaction.ACCELERATE, steer_to=target, reason=f"clear:{sensor.name}")
            return Decision(Reaction.BRAKE, reason=sensor.name)

        if car.remaining_distance() <= car.stopping_distance(car.velocity):
            return Decision(Reaction.BRAKE, reason="route_end")
        return Decision(Reaction.ACCELERATE, steer_to=target, reason="free")

    def apply(self, car: "Car", decision: Decision) -> None:
        if decision.steer_to is not None:
            angle = steering_angle(car.position, decision.steer_to, car.angle)
            if angle != car.angle:
                car.set_angle(angle)
        if decision.reaction is Reaction.ACCELERATE:
            car.accelerate()
        else:
            car.brake()
