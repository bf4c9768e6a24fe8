from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, TYPE_CHECKING
import itertools

import numpy as np

from .geometry_utils import heading_vector, polygons_overlap, ray_polygon_distance, rectangle_corners

if TYPE_CHECKING:
    from .road import RoadPath


_ids = itertools.count()


@dataclass
class Hitbox:
    """Oriented rectangle used for exact overlap tests and sensor hits.

    Attributes
    ----------
    x, y : float
        Centre in world coordinates.
    length : float
        Extent along ``angle``.
    width : float
        Extent across ``angle``.
    angle : float
        Heading in degrees.
    """

    x: float
    y: float
    length: float
    width: float
    angle: float = 0.0

    def corners(self) -> np.ndarray:
        return rectangle_corners(self.x, self.y, self.length, self.width, self.angle)

    def overlaps(self, other: "Hitbox") -> bool:
        return polygons_overlap(self.corners(), other.corners())

    def ray_distance(self, ox: float, oy: float, angle: float, near: float, far: float) -> Optional[float]:
        """Distance along a ray from (ox, oy) at ``angle`` to this box, within [near, far]."""
        dx, dy = heading_vector(angle)
        return ray_polygon_distance(ox, oy, dx, dy, self.corners(), near, far)


class Collidable:
    """Anything a car can hit or sense.

    Subclasses answer capability questions instead of being inspected by
    type: whether they currently block (take part in hitbox tests), whether
    they break when struck, and whether they are a vehicle on a lane.
    """

    current_road_path: Optional["RoadPath"] = None
    velocity: float = 0.0

    def __init__(self, obstacle_id: Optional[str] = None) -> None:
        self.obstacle_id = obstacle_id if obstacle_id is not None else f"obj-{next(_ids)}"

    @property
    def hitbox(self) -> Hitbox:
        raise NotImplementedError

    def is_blocking(self) -> bool:
        return True

    def is_breakable(self) -> bool:
        return False

    def is_vehicle(self) -> bool:
        return False

    def break_down(self) -> None:
        """Receive the collision transition; a no-op for unbreakable things."""

    def to_dict(self) -> Dict[str, Any]:
        box = self.hitbox
        return {
            "id": self.obstacle_id,
            "type": type(self).__name__,
            "x": box.x,
            "y": box.y,
            "blocking": self.is_blocking(),
        }


class StaticObstacle(Collidable):
    """Fixed rectangular obstacle, always blocking."""

    def __init__(
        self,
        x: float,
        y: float,
        length: float,
        width: float,
        angle: float = 0.0,
        obstacle_id: Optional[str] = None,
    ) -> None:
        super().__init__(obstacle_id)
        self._hitbox = Hitbox(x=float(x), y=float(y), length=float(length), width=float(width), angle=float(angle))

    @property
    def hitbox(self) -> Hitbox:
        return self._hitbox


class TrafficSignal(Collidable):
    """Signal whose stop line blocks only while red.

    The state is owned by an external signal controller; the simulation only
    reads it.
    """

    STATES = ("red", "yellow", "green")

    def __init__(
        self,
        x: float,
        y: float,
        length: float = 2.0,
        width: float = 10.0,
        angle: float = 0.0,
        state: str = "green",
        obstacle_id: Optional[str] = None,
    ) -> None:
        super().__init__(obstacle_id)
        self._hitbox = Hitbox(x=float(x), y=float(y), length=float(length), width=float(width), angle=float(angle))
        self.state = "green"
        self.set_state(state)

    @property
    def hitbox(self) -> Hitbox:
        return self._hitbox

    def set_state(self, state: str) -> None:
        if state not in self.STATES:
            raise ValueError(f"Unknown signal state: {state}. Available: {list(self.STATES)}")
        self.state = state

    def is_blocking(self) -> bool:
        return self.state == "red"

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["state"] = self.state
        return d
