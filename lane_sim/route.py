"""
Coarse route and detailed (fine-grained) route model.

A route is an ordered list of lane nodes. The detailed route is the list of
steering targets for the current route segment: the lane nodes leading to
the next waypoint, or a lane-change maneuver when the waypoint lies on
another lane.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .errors import InvalidRouteError
from .geometry_utils import distance
from .road import RoadNode, RoadPath, RouteNode


class RouteStatus(str, Enum):
    IDLE = "idle"
    EN_ROUTE = "en_route"
    CHANGING_LANE = "changing_lane"
    BROKEN = "broken"


@dataclass
class DetailedRouteNode:
    """A steering target, optionally part of a lane-change maneuver."""

    x: float
    y: float
    road_path: RoadPath
    before_lane_change: bool = False
    lane_change: bool = False
    direction: Optional[str] = None

    @classmethod
    def from_road_node(cls, node: RoadNode) -> "DetailedRouteNode":
        return cls(x=node.x, y=node.y, road_path=node.road_path)

    @property
    def is_maneuver(self) -> bool:
        return self.before_lane_change or self.lane_change

    def to_dict(self) -> Dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "lane": self.road_path.name,
            "before_lane_change": self.before_lane_change,
            "lane_change": self.lane_change,
            "direction": self.direction,
        }


def lane_change_direction(current: RoadPath, target: RoadPath) -> str:
    """``right`` when the target lane has the larger order, else ``left``."""
    return "right" if target.order > current.order else "left"


def seed_detailed_route(route: Sequence[RouteNode], index: int) -> List[DetailedRouteNode]:
    """Single-node expansion used right after a route is assigned."""
    return [DetailedRouteNode.from_road_node(route[index])]


def lane_path(
    start: RoadNode,
    waypoint: RouteNode,
    include_start: bool = False,
) -> List[DetailedRouteNode]:
    """Steering targets along one lane from ``start`` to ``waypoint``."""
    nodes = start.road_path.path_between(start, waypoint, include_start=include_start)
    if not nodes:
        nodes = [waypoint]
    return [DetailedRouteNode.from_road_node(n) for n in nodes]


def next_way_node(node: RouteNode) -> RoadNode:
    """First branch from a waypoint into the next way."""
    if not node.next_points:
        raise InvalidRouteError(
            f"Waypoint {node!r} ends way {node.road_path.way.way_id} without a next point"
        )
    return node.next_points[0]


def remaining_distance(position: Tuple[float, float], route: Sequence[RouteNode], index: int) -> float:
    """Distance to the current waypoint plus the rest of the route polyline."""
    x, y = position
    left = distance(x, y, route[index].x, route[index].y)
    for i in range(index + 1, len(route)):
        left += route[i - 1].distance_to(route[i])
    return left

