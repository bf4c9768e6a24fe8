"""
Autonomous car agent.

Each tick the owning driver calls :meth:`Car.check_collision` with the
current obstacle list and then :meth:`Car.update`. The car perceives with
its sensor array, lets the reaction policy pick accelerate or brake and a
heading, moves, and advances along its detailed route, rebuilding it (and
inserting lane changes) whenever a route waypoint is reached.

Arrival and break notifications are queued as :class:`AgentEvent` values;
the driver drains them after every car has finished its tick and only then
runs the user callbacks.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional, Sequence, Tuple
import random

from .collision import CollisionDetector
from .config import AgentConfig
from .errors import GeometryError, InvalidRouteError
from .geometry_utils import distance, random_int
from .kinematics import KinematicState, accelerate, advance, brake, stopping_distance
from .lane_change import build_lane_change_route
from .obstacles import Collidable, Hitbox
from .policy import Decision, ReactionPolicy
from .road import RoadNode, RoadPath, RouteNode
from .route import (
    DetailedRouteNode,
    RouteStatus,
    lane_change_direction,
    lane_path,
    next_way_node,
    remaining_distance,
    seed_detailed_route,
)
from .sensors import SensorArray


class TickResult(str, Enum):
    IDLE = "idle"
    CONTINUING = "continuing"
    ARRIVED = "arrived"
    JUST_BROKE = "just_broke"
    BROKEN = "broken"


class EventKind(str, Enum):
    ARRIVED = "arrived"
    BROKE = "broke"
    LANE_CHANGE_FALLBACK = "lane_change_fallback"


@dataclass
class AgentEvent:
    kind: EventKind
    car: "Car"
    detail: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"event": self.kind.value, "car": self.car.obstacle_id, **self.detail}


CarCallback = Callable[["Car"], None]


@dataclass
class RouteCallbacks:
    on_arrival: Optional[CarCallback] = None
    on_brake: Optional[CarCallback] = None


class Car(Collidable):
    """One vehicle with its route, sensors and kinematics.

    Parameters
    ----------
    position : tuple[float, float]
        Initial (x, y).
    angle : float
        Initial heading in degrees.
    config : AgentConfig, optional
        Kinematic and sensor parameters; defaults when omitted.
    rng : random.Random, optional
        Generator for the randomised top speed.
    car_id : str, optional
        Identity reported in events and telemetry.
    """

    def __init__(
        self,
        position: Tuple[float, float],
        angle: float = 0.0,
        config: Optional[AgentConfig] = None,
        rng: Optional[random.Random] = None,
        car_id: Optional[str] = None,
    ) -> None:
        super().__init__(car_id)
        self.config = config if config is not None else AgentConfig()
        self.rng = rng if rng is not None else random.Random()

        self.broken = False
        self._break_reported = True
        self.x = float(position[0])
        self.y = float(position[1])
        self.angle = float(angle)

        self.route: List[RouteNode] = []
        self.route_index: Optional[int] = None
        self.detailed_route: List[DetailedRouteNode] = []
        self.detailed_route_index: Optional[int] = None
        self.current_road_path: Optional[RoadPath] = None

        self.velocity = 0.0
        self.brake_power = self.config.brake_power
        self.acceleration_power = self.config.acceleration_power
        if self.config.max_velocity is not None:
            self.max_velocity = self.config.max_velocity
        else:
            self.max_velocity = random_int(
                self.rng, self.config.min_random_velocity, self.config.max_random_velocity
            ) / 10

        self.callbacks = RouteCallbacks()
        self.events: Deque[AgentEvent] = deque()

        half_length = self.config.car_length / 2.0
        self.sensors = SensorArray(
            self,
            near=half_length,
            far=self.stopping_distance(self.max_velocity) + half_length + self.config.sensor_margin,
        )
        self.sensors.reset()
        self.collision_detector = CollisionDetector(self)
        self.policy = ReactionPolicy()
        self.last_decision: Optional[Decision] = None

    @classmethod
    def create(cls, position: Tuple[float, float], angle: float, **kwargs: Any) -> "Car":
        return cls(position, angle, **kwargs)

    # ------------------------------------------------------------------
    # Collidable
    # ------------------------------------------------------------------
    @property
    def hitbox(self) -> Hitbox:
        return Hitbox(
            x=self.x,
            y=self.y,
            length=self.config.car_length,
            width=self.config.car_width,
            angle=self.angle,
        )

    def is_breakable(self) -> bool:
        return True

    def is_vehicle(self) -> bool:
        return True

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------
    @property
    def position(self) -> Tuple[float, float]:
        return self.x, self.y

    @property
    def current_target(self) -> DetailedRouteNode:
        return self.detailed_route[self.detailed_route_index]

    @property
    def status(self) -> RouteStatus:
        if self.broken:
            return RouteStatus.BROKEN
        if self.route_index is None:
            return RouteStatus.IDLE
        if any(n.is_maneuver for n in self.detailed_route[self.detailed_route_index:]):
            return RouteStatus.CHANGING_LANE
        return RouteStatus.EN_ROUTE

    def get_state(self) -> KinematicState:
        return KinematicState(x=self.x, y=self.y, angle=self.angle, velocity=self.velocity)

    def set_position(self, x: float, y: float) -> None:
        self.x = x
        self.y = y

    def set_angle(self, angle: float) -> None:
        self.angle = angle

    def stopping_distance(self, velocity: float) -> float:
        return stopping_distance(velocity, self.brake_power)

    def remaining_distance(self) -> float:
        return remaining_distance(self.position, self.route, self.route_index)

    # ------------------------------------------------------------------
    # Kinematics
    # ------------------------------------------------------------------
    def accelerate(self) -> None:
        self.velocity = accelerate(self.velocity, self.acceleration_power, self.max_velocity)

    def brake(self) -> None:
        self.velocity = brake(self.velocity, self.brake_power)

    def calculate_next_position(self) -> None:
        self.set_position(*advance(self.x, self.y, self.angle, self.velocity))

    # ------------------------------------------------------------------
    # Route handling
    # ------------------------------------------------------------------
    def set_route(self, route: Sequence[RouteNode], callbacks: Optional[RouteCallbacks] = None) -> None:
        """Assign a route and reset the detailed route to its first waypoint."""
        if not route:
            raise InvalidRouteError("Route needs at least one waypoint")
        self.route = list(route)
        self.route_index = 0
        self.current_road_path = self.route[0].road_path
        self.detailed_route = seed_detailed_route(self.route, 0)
        self.detailed_route_index = 0
        self.callbacks = callbacks if callbacks is not None else RouteCallbacks()

    def _clear_route(self) -> None:
        self.route = []
        self.route_index = None
        self.detailed_route = []
        self.detailed_route_index = None

    def _queue(self, kind: EventKind, **detail: Any) -> None:
        self.events.append(AgentEvent(kind=kind, car=self, detail=detail))

    def drain_events(self) -> List[AgentEvent]:
        """Hand over and forget all queued events."""
        out = list(self.events)
        self.events.clear()
        return out

    def _on_arrive_detailed_route(self) -> None:
        node = self.detailed_route[self.detailed_route_index]
        if node.lane_change:
            self.current_road_path = node.road_path

        if self.detailed_route_index + 1 >= len(self.detailed_route):
            self._on_arrive_route()
            return

        self.detailed_route_index += 1
        if node.before_lane_change:
            self.current_road_path = self.detailed_route[self.detailed_route_index].road_path

    def _on_arrive_route(self) -> None:
        current = self.route[self.route_index]
        if self.route_index + 1 >= len(self.route):
            self._clear_route()
            self._queue(EventKind.ARRIVED, x=self.x, y=self.y)
            return

        nxt = self.route[self.route_index + 1]
        if current.road_path.way is not nxt.road_path.way:
            branch = next_way_node(current)
            self.route_index += 1
            self.current_road_path = branch.road_path
            self._update_detailed_route(branch, include_start=True)
            return

        self.route_index += 1
        self._update_detailed_route(current)

    def _update_detailed_route(self, last_passed: RoadNode, include_start: bool = False) -> None:
        waypoint = self.route[self.route_index]
        lane = self.current_road_path

        if waypoint.road_path is not lane:
            direction = lane_change_direction(lane, waypoint.road_path)
            try:
                detailed = build_lane_change_route(self.position, lane, waypoint, direction, self.config)
            except GeometryError as exc:
                # No lane change possible: head straight for the waypoint
                self._queue(EventKind.LANE_CHANGE_FALLBACK, reason=str(exc), direction=direction)
                detailed = [
                    DetailedRouteNode(
                        x=waypoint.x,
                        y=waypoint.y,
                        road_path=waypoint.road_path,
                        lane_change=True,
                        direction=direction,
                    )
                ]
        else:
            start = last_passed
            if start.road_path is not lane:
                start = lane.get_next_node_from(self.x, self.y) or waypoint
                include_start = True
            if start.index > waypoint.index:
                start = waypoint
                include_start = True
            detailed = lane_path(start, waypoint, include_start=include_start)

        self.detailed_route = detailed
        self.detailed_route_index = 0

    # ------------------------------------------------------------------
    # Collision
    # ------------------------------------------------------------------
    def break_down(self) -> None:
        """Enter the terminal broken state; repeated calls are ignored."""
        if self.broken:
            return
        self.broken = True
        self._break_reported = False
        self.velocity = 0.0
        self._queue(EventKind.BROKE, x=self.x, y=self.y)

    def check_collision(self, obstacles: Sequence[Collidable]) -> List[Collidable]:
        return self.collision_detector.check(obstacles)

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------
    def update(self) -> TickResult:
        """Advance one tick."""
        if self.broken:
            if not self._break_reported:
                self._break_reported = True
                return TickResult.JUST_BROKE
            return TickResult.BROKEN
        if self.route_index is None:
            return TickResult.IDLE

        node = self.current_target
        if distance(node.x, node.y, self.x, self.y) <= self.max_velocity:
            self._on_arrive_detailed_route()

        if self.route_index is None:
            return TickResult.ARRIVED

        self.last_decision = self.policy.decide(self)
        self.policy.apply(self, self.last_decision)
        self.calculate_next_position()
        return TickResult.CONTINUING

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d.update(self.get_state().to_dict())
        d.update(
            {
                "max_velocity": self.max_velocity,
                "broken": self.broken,
                "status": self.status.value,
                "lane": self.current_road_path.name if self.current_road_path is not None else None,
                "route_index": self.route_index,
                "detailed_route_index": self.detailed_route_index,
                "sensors": self.sensors.readings(),
            }
        )
        return d
