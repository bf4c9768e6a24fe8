from __future__ import annotations

import math

from lane_sim.car import Car, TickResult
from lane_sim.config import AgentConfig
from lane_sim.kinematics import accelerate, advance, brake, stopping_distance
from lane_sim.road import Way


def test_stopping_distance_zero_at_rest() -> None:
    assert stopping_distance(0.0, 0.1) == 0.0


def test_stopping_distance_matches_tick_by_tick_braking() -> None:
    # 0.4 + 0.3 + 0.2 + 0.1 covered after each brake step
    assert math.isclose(stopping_distance(0.5, 0.1), 1.0, rel_tol=1e-9)
    assert math.isclose(stopping_distance(2.0, 0.1), 19.0, rel_tol=1e-9)


def test_stopping_distance_increases_with_velocity() -> None:
    # Strictly increasing only above the brake power; non-decreasing everywhere
    velocities = [0.0, 0.25, 0.5, 1.0, 1.5, 2.0]
    distances = [stopping_distance(v, 0.1) for v in velocities]
    assert all(d >= 0.0 for d in distances)
    assert all(b > a for a, b in zip(distances[1:], distances[2:]))
    assert distances[0] <= distances[1]


def test_stopping_distance_is_zero_up_to_brake_power() -> None:
    # The first brake step already halts the car, so nothing is covered
    for v in (0.0, 0.03, 0.05, 0.1):
        assert stopping_distance(v, 0.1) == 0.0
    assert math.isclose(stopping_distance(0.15, 0.1), 0.05, rel_tol=1e-9)


def test_accelerate_and_brake_are_clamped() -> None:
    assert accelerate(1.95, 0.1, 2.0) == 2.0
    assert brake(0.05, 0.1) == 0.0

    v = 0.0
    history = []
    for _ in range(30):
        v = accelerate(v, 0.1, 2.0)
        history.append(v)
    assert all(b >= a for a, b in zip(history, history[1:]))
    assert history[-1] == 2.0

    history = []
    for _ in range(30):
        v = brake(v, 0.1)
        history.append(v)
    assert all(b <= a for a, b in zip(history, history[1:]))
    assert history[-1] == 0.0


def test_advance_uses_screen_orientation() -> None:
    assert advance(0.0, 0.0, 0.0, 1.0) == (1.0, 0.0)
    # 90 degrees points up the screen (negative y)
    x, y = advance(0.0, 0.0, 90.0, 1.0)
    assert math.isclose(x, 0.0, abs_tol=1e-9)
    assert math.isclose(y, -1.0, abs_tol=1e-9)
    # Rounded to one decimal
    assert advance(0.0, 0.0, 30.0, 1.0) == (0.9, -0.5)


def test_car_reaches_top_speed_on_straight_lane() -> None:
    way = Way.straight("w", (0.0, 0.0), (100.0, 0.0), lane_count=1)
    lane = way.lanes[0]
    car = Car((0.0, 0.0), 0.0, config=AgentConfig(max_velocity=2.0, acceleration_power=0.1))
    car.set_route([lane.initial_point, lane.deepest_point])

    xs = []
    for _ in range(20):
        assert car.update() is TickResult.CONTINUING
        assert 0.0 <= car.velocity <= car.max_velocity
        xs.append(car.x)

    assert car.velocity == 2.0
    assert all(b > a for a, b in zip(xs, xs[1:]))
    assert car.y == 0.0
