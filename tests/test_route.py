from __future__ import annotations

import math

import pytest

from lane_sim.car import Car, EventKind, RouteCallbacks, TickResult
from lane_sim.config import AgentConfig
from lane_sim.errors import InvalidRouteError
from lane_sim.road import RoadNetwork, Way
from lane_sim.route import RouteStatus, remaining_distance
from lane_sim.world import World


def fast_config() -> AgentConfig:
    return AgentConfig(max_velocity=2.0, acceleration_power=0.1)


def two_ways(connected: bool) -> RoadNetwork:
    a = Way.straight("A", (0.0, 0.0), (100.0, 0.0), lane_count=1)
    b = Way.straight("B", (110.0, 0.0), (200.0, 0.0), lane_count=1)
    network = RoadNetwork([a, b])
    if connected:
        network.connect(a.lanes[0], b.lanes[0])
    return network


def test_set_route_seeds_detailed_route() -> None:
    lane = Way.straight("w", (0.0, 0.0), (100.0, 0.0)).lanes[0]
    car = Car((0.0, 0.0), 0.0, config=fast_config())
    assert car.status is RouteStatus.IDLE
    assert car.route_index is None and car.detailed_route_index is None

    car.set_route([lane.nodes[0], lane.deepest_point])
    assert car.route_index == 0
    assert car.detailed_route_index == 0
    assert len(car.detailed_route) == 1
    assert (car.current_target.x, car.current_target.y) == (0.0, 0.0)
    assert car.current_road_path is lane
    assert car.status is RouteStatus.EN_ROUTE


def test_empty_route_rejected() -> None:
    car = Car((0.0, 0.0), 0.0, config=fast_config())
    with pytest.raises(InvalidRouteError):
        car.set_route([])


def test_single_waypoint_route_arrives_immediately() -> None:
    lane = Way.straight("w", (0.0, 0.0), (100.0, 0.0)).lanes[0]
    car = Car((0.0, 0.0), 0.0, config=fast_config())
    car.set_route([lane.nodes[0]])

    assert car.update() is TickResult.ARRIVED
    assert car.route_index is None
    assert car.detailed_route_index is None
    assert car.route == [] and car.detailed_route == []
    assert [e.kind for e in car.drain_events()] == [EventKind.ARRIVED]
    assert car.update() is TickResult.IDLE


def test_same_lane_expansion_follows_lane_nodes() -> None:
    lane = Way.straight("w", (0.0, 0.0), (100.0, 0.0), node_spacing=10.0).lanes[0]
    car = Car((0.0, 0.0), 0.0, config=fast_config())
    car.set_route([lane.nodes[0], lane.nodes[5]])
    car.update()
    assert car.route_index == 1
    assert [n.x for n in car.detailed_route] == [10.0, 20.0, 30.0, 40.0, 50.0]


def test_arrival_callback_fires_once_after_tick() -> None:
    lane = Way.straight("w", (0.0, 0.0), (30.0, 0.0)).lanes[0]
    arrivals = []
    world = World()
    car = world.spawn_car(
        [lane.nodes[0], lane.deepest_point],
        config=fast_config(),
        callbacks=RouteCallbacks(on_arrival=lambda c: arrivals.append(c.route_index)),
        car_id="solo",
    )

    for _ in range(500):
        results = world.step()
        assert 0.0 <= car.velocity <= car.max_velocity
        if results[0][1] is TickResult.ARRIVED:
            # Callback ran after the tick's work, with route state cleared
            assert arrivals == [None]
    world.run(50)

    assert arrivals == [None]
    assert "solo" in world.arrival_ticks
    assert car.route_index is None and car.detailed_route_index is None
    assert math.isclose(car.x, 30.0, abs_tol=car.max_velocity)


def test_way_boundary_without_next_point_fails_fast() -> None:
    network = two_ways(connected=False)
    a = network.lane("A", 0)
    b = network.lane("B", 0)
    car = Car((0.0, 0.0), 0.0, config=fast_config())
    car.set_route([a.nodes[0], a.deepest_point, b.deepest_point])

    with pytest.raises(InvalidRouteError):
        for _ in range(500):
            car.update()


def test_way_boundary_follows_first_branch() -> None:
    network = two_ways(connected=True)
    a = network.lane("A", 0)
    b = network.lane("B", 0)
    car = Car((0.0, 0.0), 0.0, config=fast_config())
    car.set_route([a.nodes[0], a.deepest_point, b.deepest_point])

    for _ in range(500):
        car.update()
        if car.current_road_path is b:
            break

    assert car.current_road_path is b
    assert car.route_index == 2
    first = car.detailed_route[0]
    assert (first.x, first.y) == (110.0, 0.0)
    assert first.road_path is b

    for _ in range(500):
        if car.update() is TickResult.ARRIVED:
            break
    assert car.route_index is None


def test_remaining_distance_sums_route_polyline() -> None:
    lane = Way.straight("w", (0.0, 0.0), (100.0, 0.0)).lanes[0]
    route = [lane.nodes[2], lane.nodes[5], lane.deepest_point]
    assert math.isclose(remaining_distance((0.0, 0.0), route, 0), 100.0)
    assert math.isclose(remaining_distance((0.0, 0.0), route, 1), 100.0)
    assert math.isclose(remaining_distance((50.0, 0.0), route, 2), 50.0)
