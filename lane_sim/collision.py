from __future__ import annotations

from typing import List, Sequence, TYPE_CHECKING

from .obstacles import Collidable

if TYPE_CHECKING:
    from .car import Car


class CollisionDetector:
    """Per-tick hitbox test and sensor scans for one car.

    Both checks are skipped while the car is broken or has no route.
    """

    def __init__(self, car: "Car") -> None:
        self.car = car

    def check(self, obstacles: Sequence[Collidable]) -> List[Collidable]:
        """Run hitbox and sensor checks; return obstacles struck this tick."""
        car = self.car
        if car.broken or car.route_index is None:
            return []

        car.sensors.reset()

        struck = self.check_hitbox(obstacles)
        if struck:
            car.break_down()
            for obj in struck:
                if obj.is_breakable():
                    obj.break_down()

        self.scan(obstacles)
        return struck

    def check_hitbox(self, obstacles: Sequence[Collidable]) -> List[Collidable]:
        own = self.car.hitbox
        return [
            obj
            for obj in obstacles
            if obj is not self.car and obj.is_blocking() and own.overlaps(obj.hitbox)
        ]

    def scan(self, obstacles: Sequence[Collidable]) -> None:
        car = self.car
        sensors = car.sensors
        sensors["front"].update(obstacles)

        # Diagonal front sensors only react to vehicles on the same lane
        same_lane = [
            obj
            for obj in obstacles
            if not obj.is_vehicle() or obj.current_road_path is car.current_road_path
        ]
        sensors["fleft"].update(same_lane)
        sensors["fright"].update(same_lane)

        node = car.current_target
        if node.before_lane_change and car.detailed_route_index + 1 < len(car.detailed_route):
            node = car.detailed_route[car.detailed_route_index + 1]

        if node.lane_change and node.direction is not None:
            target_lane = [
                obj
                for obj in obstacles
                if obj.is_vehicle() and obj.current_road_path is node.road_path
            ]
            sensors[node.direction].update(target_lane)
            sensors[f"r{node.direction}"].update(target_lane)
