"""
Top-level package for the lane-based traffic agent simulator.

Components:
- geometry_utils: angle/point/segment/polygon helpers
- road: ways, lanes and lane nodes (the road network)
- obstacles: hitboxes, static obstacles and traffic signals
- sensors: directional range probes and the seven-sensor array
- collision: per-tick hitbox and sensor checks
- route: detailed-route nodes and route expansion helpers
- lane_change: lane-change maneuver geometry
- kinematics: stopping distance, acceleration/braking and motion
- policy: accelerate/brake/steer reaction policy
- car: the autonomous car agent
- world: fixed-step driver with deferred event dispatch
- metrics: run summaries and reports
"""

from .car import AgentEvent, Car, EventKind, RouteCallbacks, TickResult
from .config import AgentConfig, SimConfig, load_config
from .errors import GeometryError, InvalidRouteError, LaneSimError
from .obstacles import Collidable, Hitbox, StaticObstacle, TrafficSignal
from .road import RoadNetwork, RoadNode, RoadPath, RouteNode, Way
from .route import DetailedRouteNode, RouteStatus
from .sensors import Sensor, SensorArray
from .world import World

__all__ = [
    "AgentConfig",
    "AgentEvent",
    "Car",
    "Collidable",
    "DetailedRouteNode",
    "EventKind",
    "GeometryError",
    "Hitbox",
    "InvalidRouteError",
    "LaneSimError",
    "RoadNetwork",
    "RoadNode",
    "RoadPath",
    "RouteCallbacks",
    "RouteNode",
    "RouteStatus",
    "Sensor",
    "SensorArray",
    "SimConfig",
    "StaticObstacle",
    "TickResult",
    "TrafficSignal",
    "Way",
    "World",
    "load_config",
]
