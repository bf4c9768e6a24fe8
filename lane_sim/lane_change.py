"""
Lane-change maneuver geometry.

From the car position a straight lead-in runs along the current lane, then
a diagonal at +/-45 degrees crosses every lane between the current and the
target lane. Each crossing point is the intersection of the diagonal with
the crossed lane's centre line; the maneuver then joins the target lane at
its next node and follows it to the waypoint.
"""

from __future__ import annotations

from typing import List, Tuple

from .config import AgentConfig
from .errors import GeometryError
from .geometry_utils import heading_vector, line_intersection, normalize_angle_deg
from .road import RoadPath, RouteNode
from .route import DetailedRouteNode, lane_path


def maneuver_angle(lane_angle: float, direction: str, offset: float = 45.0) -> float:
    """Diagonal heading for a lane change; right turns clockwise on screen."""
    mod = -1.0 if direction == "right" else 1.0
    return normalize_angle_deg(lane_angle + offset * mod)


def crossed_lanes(current_lane: RoadPath, target_lane: RoadPath, direction: str) -> List[RoadPath]:
    """Lanes crossed in order, ending with the target lane."""
    step = 1 if direction == "right" else -1
    count = abs(current_lane.order - target_lane.order)
    lanes = []
    for i in range(1, count + 1):
        lane = current_lane.way.lane(current_lane.order + step * i)
        if lane is None:
            raise GeometryError(
                f"Way {current_lane.way.way_id} has no lane {current_lane.order + step * i}"
            )
        lanes.append(lane)
    return lanes


def build_lane_change_route(
    position: Tuple[float, float],
    current_lane: RoadPath,
    waypoint: RouteNode,
    direction: str,
    config: AgentConfig,
) -> List[DetailedRouteNode]:
    """Detailed route moving from ``current_lane`` onto the waypoint's lane.

    Raises
    ------
    GeometryError
        If the diagonal never meets a crossed lane's segment ahead of the
        lead-in point, or the target lane has no node beyond the crossing.
    """
    target_lane = waypoint.road_path
    lane_angle = current_lane.get_angle()
    diagonal_angle = maneuver_angle(lane_angle, direction, config.lane_change_angle)

    x, y = position
    fx, fy = heading_vector(lane_angle)
    before = DetailedRouteNode(
        x=x + fx * config.lane_change_lead,
        y=y + fy * config.lane_change_lead,
        road_path=current_lane,
        before_lane_change=True,
    )
    dx, dy = heading_vector(diagonal_angle)
    diag_x = before.x + dx * config.lane_change_diagonal
    diag_y = before.y + dy * config.lane_change_diagonal

    nodes = [before]
    for lane in crossed_lanes(current_lane, target_lane, direction):
        start = lane.initial_point
        end = lane.deepest_point
        hit = line_intersection(before.x, before.y, diag_x, diag_y, start.x, start.y, end.x, end.y)
        if hit is None or hit.t_a < 0.0 or not 0.0 <= hit.t_b <= 1.0:
            raise GeometryError(f"Lane-change diagonal does not cross lane {lane.name}")
        nodes.append(
            DetailedRouteNode(
                x=hit.x,
                y=hit.y,
                road_path=lane,
                lane_change=True,
                direction=direction,
            )
        )

    last = nodes[-1]
    join = target_lane.get_next_node_from(last.x, last.y)
    if join is None:
        raise GeometryError(f"No node on lane {target_lane.name} ahead of the lane change")
    if join.index > waypoint.index:
        raise GeometryError(f"Lane change on {target_lane.name} overshoots the waypoint")
    return nodes + lane_path(join, waypoint, include_start=True)
