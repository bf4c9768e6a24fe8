from __future__ import annotations


class LaneSimError(Exception):
    """Base class for lane simulation errors."""


class InvalidRouteError(LaneSimError):
    """Route cannot be followed, e.g. a way boundary without a next point."""


class GeometryError(LaneSimError):
    """Lane-change geometry has no valid intersection with a crossed lane."""
