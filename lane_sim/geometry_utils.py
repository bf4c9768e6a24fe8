"""
Geometry utilities for the lane simulation.

Angle conversions, point distance, segment and line intersection,
oriented-rectangle helpers and the seeded random helpers used by agents.

All coordinates are in screen orientation: x grows to the right, y grows
downward, and headings are degrees counter-clockwise as seen on screen.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple
import math
import random

import numpy as np


# ---------------------------------------------------------------------------
# Angle helpers
# ---------------------------------------------------------------------------


def angle_to_radians(angle: float) -> float:
    """Degrees to radians."""
    return angle * math.pi / 180.0


def radians_to_angle(theta: float) -> float:
    """Radians to degrees."""
    return theta * 180.0 / math.pi


def normalize_angle_deg(angle: float) -> float:
    """Wrap angle to [-180, 180] degrees."""
    if angle > 180.0:
        angle -= 360.0 * math.ceil((angle - 180.0) / 360.0)
    if angle < -180.0:
        angle += 360.0 * math.ceil((-180.0 - angle) / 360.0)
    return angle


def bearing_deg(dx: float, dy: float) -> float:
    """Angle in degrees of vector (dx, dy) where dy already points up."""
    return radians_to_angle(math.atan2(dy, dx))


def heading_vector(angle: float) -> Tuple[float, float]:
    """Unit step for a heading in degrees (screen frame, y down)."""
    theta = angle_to_radians(angle)
    return math.cos(theta), -math.sin(theta)


def round_number(value: float, digits: int = 1) -> float:
    """Round to a fixed number of decimals."""
    return round(value, digits)


def distance(x1: float, y1: float, x2: float, y2: float) -> float:
    """Euclidean distance between two points."""
    return math.hypot(x2 - x1, y2 - y1)


# ---------------------------------------------------------------------------
# Segment and line intersection
# ---------------------------------------------------------------------------


@dataclass
class SegmentIntersection:
    """Intersection point of two lines and its parameter on each."""

    x: float
    y: float
    t_a: float  # parameter on line A, 0 at its first point, 1 at its second
    t_b: float  # parameter on line B


def line_intersection(
    a_x1: float,
    a_y1: float,
    a_x2: float,
    a_y2: float,
    b_x1: float,
    b_y1: float,
    b_x2: float,
    b_y2: float,
) -> Optional[SegmentIntersection]:
    """
    Intersection of the infinite lines through A and B.
    Parameters are not clamped; returns None for parallel or degenerate lines.
    """
    dx_a = a_x2 - a_x1
    dy_a = a_y2 - a_y1
    dx_b = b_x2 - b_x1
    dy_b = b_y2 - b_y1

    denom = dx_a * dy_b - dy_a * dx_b
    if abs(denom) < 1e-10:
        return None

    t = ((b_x1 - a_x1) * dy_b - (b_y1 - a_y1) * dx_b) / denom
    s = ((b_x1 - a_x1) * dy_a - (b_y1 - a_y1) * dx_a) / denom
    return SegmentIntersection(x=a_x1 + t * dx_a, y=a_y1 + t * dy_a, t_a=t, t_b=s)


def segment_intersect(
    a_x1: float,
    a_y1: float,
    a_x2: float,
    a_y2: float,
    b_x1: float,
    b_y1: float,
    b_x2: float,
    b_y2: float,
) -> Optional[SegmentIntersection]:
    """
    Find intersection of line segment A (a_x1,a_y1)-(a_x2,a_y2)
    and segment B (b_x1,b_y1)-(b_x2,b_y2).
    Returns SegmentIntersection or None if no intersection.
    """
    hit = line_intersection(a_x1, a_y1, a_x2, a_y2, b_x1, b_y1, b_x2, b_y2)
    if hit is None:
        return None
    if 0.0 <= hit.t_a <= 1.0 and 0.0 <= hit.t_b <= 1.0:
        return hit
    return None


# ---------------------------------------------------------------------------
# Oriented rectangles
# ---------------------------------------------------------------------------


def rectangle_corners(
    cx: float,
    cy: float,
    length: float,
    width: float,
    angle: float,
) -> np.ndarray:
    """Corners (4x2) of a rectangle centred at (cx, cy), long side along heading."""
    fx, fy = heading_vector(angle)
    # Right-hand normal in screen frame
    rx, ry = -fy, fx
    half_l = length / 2.0
    half_w = width / 2.0
    forward = np.array([fx, fy]) * half_l
    side = np.array([rx, ry]) * half_w
    centre = np.array([cx, cy], dtype=float)
    return np.array(
        [
            centre + forward + side,
            centre + forward - side,
            centre - forward - side,
            centre - forward + side,
        ]
    )


def polygons_overlap(a: np.ndarray, b: np.ndarray) -> bool:
    """Separating-axis test for two convex polygons given as (N, 2) arrays."""
    for poly in (a, b):
        edges = np.roll(poly, -1, axis=0) - poly
        axes = np.stack([-edges[:, 1], edges[:, 0]], axis=1)
        for axis in axes:
            norm = np.hypot(axis[0], axis[1])
            if norm < 1e-12:
                continue
            axis = axis / norm
            proj_a = a @ axis
            proj_b = b @ axis
            if proj_a.max() < proj_b.min() or proj_b.max() < proj_a.min():
                return False
    return True


def point_in_polygon(px: float, py: float, polygon: np.ndarray) -> bool:
    """Whether (px, py) lies inside or on a convex polygon."""
    edges = np.roll(polygon, -1, axis=0) - polygon
    rel = np.array([px, py], dtype=float) - polygon
    cross = edges[:, 0] * rel[:, 1] - edges[:, 1] * rel[:, 0]
    return bool(np.all(cross >= -1e-9) or np.all(cross <= 1e-9))


def ray_polygon_distance(
    ox: float,
    oy: float,
    dx: float,
    dy: float,
    polygon: np.ndarray,
    near: float,
    far: float,
) -> Optional[float]:
    """
    Nearest distance along the unit ray (dx, dy) from (ox, oy) at which it
    crosses an edge of polygon, restricted to [near, far]. None for no hit.

    A polygon that already covers the point at ``near`` reads as ``near``.
    """
    if point_in_polygon(ox + dx * near, oy + dy * near, polygon):
        return near
    end_x = ox + dx * far
    end_y = oy + dy * far
    best: Optional[float] = None
    n = len(polygon)
    for i in range(n):
        x1, y1 = polygon[i]
        x2, y2 = polygon[(i + 1) % n]
        hit = segment_intersect(ox, oy, end_x, end_y, float(x1), float(y1), float(x2), float(y2))
        if hit is None:
            continue
        d = hit.t_a * far
        if d < near:
            continue
        if best is None or d < best:
            best = d
    return best


# ---------------------------------------------------------------------------
# Random helpers
# ---------------------------------------------------------------------------


def random_int(rng: random.Random, vmin: int, vmax: int) -> int:
    """Inclusive random integer drawn from an injected generator."""
    return rng.randint(vmin, vmax)
