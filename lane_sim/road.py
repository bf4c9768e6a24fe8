"""
Lane graph: ways, lanes (road paths) and their nodes.

A :class:`Way` is a directed road segment with parallel lanes. Each lane is
a :class:`RoadPath` holding an ordered list of :class:`RoadNode` steering
points; lanes of a way are indexed by ``order`` and, looking along the way's
direction, a larger order lies further to the right. Route nodes handed to
cars are plain road nodes.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
import math

from .geometry_utils import bearing_deg, distance


Point = Tuple[float, float]


class RoadNode:
    """A point on a lane; also used as a coarse route waypoint."""

    def __init__(self, x: float, y: float, road_path: "RoadPath", index: int) -> None:
        self.x = float(x)
        self.y = float(y)
        self.road_path = road_path
        self.index = index
        self.next_points: List[RoadNode] = []

    def distance_to(self, other: "RoadNode") -> float:
        return distance(self.x, self.y, other.x, other.y)

    def __repr__(self) -> str:
        return f"RoadNode(x={self.x}, y={self.y}, lane={self.road_path.name}, index={self.index})"


# Coarse route waypoints are lane nodes.
RouteNode = RoadNode


class RoadPath:
    """One lane of a way."""

    def __init__(self, way: "Way", order: int, points: Sequence[Point]) -> None:
        if len(points) < 2:
            raise ValueError("A lane needs at least two points")
        self.way = way
        self.order = order
        self.nodes: List[RoadNode] = [
            RoadNode(x, y, self, i) for i, (x, y) in enumerate(points)
        ]

    @property
    def name(self) -> str:
        return f"{self.way.way_id}:{self.order}"

    @property
    def initial_point(self) -> RoadNode:
        return self.nodes[0]

    def get_deepest_point(self) -> RoadNode:
        """Farthest node of the lane."""
        return self.nodes[-1]

    @property
    def deepest_point(self) -> RoadNode:
        return self.get_deepest_point()

    def get_angle(self) -> float:
        """Lane heading in degrees, from the initial to the farthest node."""
        start = self.initial_point
        end = self.deepest_point
        return bearing_deg(end.x - start.x, start.y - end.y)

    def _projection(self, x: float, y: float) -> float:
        start = self.initial_point
        end = self.deepest_point
        dx = end.x - start.x
        dy = end.y - start.y
        norm = math.hypot(dx, dy)
        return ((x - start.x) * dx + (y - start.y) * dy) / norm

    def get_next_node_from(self, x: float, y: float) -> Optional[RoadNode]:
        """First node lying strictly ahead of (x, y) along the lane, or None."""
        s = self._projection(x, y)
        for node in self.nodes:
            if self._projection(node.x, node.y) > s + 1e-9:
                return node
        return None

    def path_between(
        self,
        start: RoadNode,
        end: RoadNode,
        include_start: bool = False,
    ) -> List[RoadNode]:
        """Lane nodes after ``start`` up to and including ``end``."""
        if start.road_path is not self or end.road_path is not self:
            raise ValueError(f"Nodes do not both belong to lane {self.name}")
        if end.index < start.index:
            raise ValueError(
                f"Node {end.index} lies behind node {start.index} on lane {self.name}"
            )
        first = start.index if include_start else start.index + 1
        return self.nodes[first:end.index + 1]

    def __repr__(self) -> str:
        return f"RoadPath({self.name})"


class Way:
    """Directed road segment grouping parallel lanes."""

    def __init__(self, way_id: str) -> None:
        self.way_id = way_id
        self.lanes: List[RoadPath] = []

    def add_lane(self, points: Sequence[Point]) -> RoadPath:
        lane = RoadPath(self, len(self.lanes), points)
        self.lanes.append(lane)
        return lane

    def lane(self, order: int) -> Optional[RoadPath]:
        if 0 <= order < len(self.lanes):
            return self.lanes[order]
        return None

    @classmethod
    def straight(
        cls,
        way_id: str,
        start: Point,
        end: Point,
        lane_count: int = 1,
        lane_width: float = 5.0,
        node_spacing: float = 10.0,
    ) -> "Way":
        """Build evenly spaced straight parallel lanes from start to end.

        Lane 0 is the leftmost lane looking from ``start`` toward ``end``;
        the centre line runs between the outermost lanes.
        """
        way = cls(way_id)
        sx, sy = start
        ex, ey = end
        total = math.hypot(ex - sx, ey - sy)
        if total <= 0.0:
            raise ValueError(f"Way {way_id} has zero length")
        ux = (ex - sx) / total
        uy = (ey - sy) / total
        # Right-hand normal in screen coordinates (y down)
        rx, ry = -uy, ux
        steps = max(1, int(math.ceil(total / node_spacing)))
        for k in range(lane_count):
            offset = (k - (lane_count - 1) / 2.0) * lane_width
            points = []
            for i in range(steps + 1):
                d = min(total, i * node_spacing)
                points.append((sx + ux * d + rx * offset, sy + uy * d + ry * offset))
            way.add_lane(points)
        return way

    def __repr__(self) -> str:
        return f"Way({self.way_id}, lanes={len(self.lanes)})"


class RoadNetwork:
    """Registry of ways and lane connections."""

    def __init__(self, ways: Optional[Iterable[Way]] = None) -> None:
        self.ways: Dict[str, Way] = {}
        for way in ways or []:
            self.add_way(way)

    def add_way(self, way: Way) -> Way:
        self.ways[way.way_id] = way
        return way

    def lane(self, way_id: str, order: int) -> RoadPath:
        try:
            lane = self.ways[way_id].lane(order)
        except KeyError as exc:
            raise KeyError(f"Unknown way: {way_id}") from exc
        if lane is None:
            raise KeyError(f"Way {way_id} has no lane {order}")
        return lane

    def node(self, way_id: str, order: int, index: int) -> RoadNode:
        """Lane node by position; negative indices count from the lane end."""
        return self.lane(way_id, order).nodes[index]

    @staticmethod
    def connect(from_lane: RoadPath, to_lane: RoadPath) -> None:
        """Make ``to_lane``'s initial node reachable from ``from_lane``'s end."""
        from_lane.deepest_point.next_points.append(to_lane.initial_point)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RoadNetwork":
        """Create a network from a dict of ways and connections.

        Each way entry either lists explicit ``lanes`` as point lists or
        gives ``start``/``end`` plus ``lane_count``, ``lane_width`` and
        ``node_spacing`` for straight lanes. Connections are
        ``{"from": [way, order], "to": [way, order]}``.
        """
        network = cls()
        for w in data.get("ways", []):
            way_id = str(w["id"])
            if "lanes" in w:
                way = Way(way_id)
                for points in w["lanes"]:
                    way.add_lane([(float(p[0]), float(p[1])) for p in points])
            else:
                way = Way.straight(
                    way_id,
                    (float(w["start"][0]), float(w["start"][1])),
                    (float(w["end"][0]), float(w["end"][1])),
                    lane_count=int(w.get("lane_count", 1)),
                    lane_width=float(w.get("lane_width", 5.0)),
                    node_spacing=float(w.get("node_spacing", 10.0)),
                )
            network.add_way(way)
        for c in data.get("connections", []):
            src = network.lane(str(c["from"][0]), int(c["from"][1]))
            dst = network.lane(str(c["to"][0]), int(c["to"][1]))
            cls.connect(src, dst)
        return network
