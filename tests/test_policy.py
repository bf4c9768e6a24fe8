from __future__ import annotations

import math

from lane_sim.car import Car
from lane_sim.config import AgentConfig
from lane_sim.obstacles import StaticObstacle
from lane_sim.policy import Reaction, ReactionPolicy, steering_angle
from lane_sim.road import Way


def routed_car(velocity: float = 1.0) -> Car:
    lane = Way.straight("w", (0.0, 0.0), (200.0, 0.0)).lanes[0]
    car = Car((0.0, 0.0), 0.0, config=AgentConfig(max_velocity=2.0))
    car.set_route([lane.nodes[0], lane.deepest_point])
    car.velocity = velocity
    return car


def other_car(velocity: float) -> Car:
    car = Car((30.0, 10.0), 0.0, config=AgentConfig(max_velocity=2.0))
    car.velocity = velocity
    return car


def test_front_reading_always_brakes() -> None:
    car = routed_car()
    car.sensors["front"].distance = 20.0
    car.sensors["fleft"].distance = 8.0
    car.sensors["fleft"].collision_obj = other_car(2.0)
    decision = ReactionPolicy().decide(car)
    assert decision.reaction is Reaction.BRAKE
    assert decision.reason == "front"
    assert decision.steer_to is None


def test_faster_vehicle_on_the_side_lets_car_continue() -> None:
    car = routed_car(velocity=1.0)
    car.sensors["fright"].distance = 12.0
    car.sensors["fright"].collision_obj = other_car(1.5)
    decision = ReactionPolicy().decide(car)
    assert decision.reaction is Reaction.ACCELERATE
    assert decision.steer_to == (0.0, 0.0)


def test_stationary_vehicle_on_the_side_lets_car_continue() -> None:
    car = routed_car(velocity=1.0)
    car.sensors["fleft"].distance = 12.0
    car.sensors["fleft"].collision_obj = other_car(0.0)
    assert ReactionPolicy().decide(car).reaction is Reaction.ACCELERATE


def test_slower_vehicle_or_static_obstacle_brakes() -> None:
    car = routed_car(velocity=1.0)
    car.sensors["fleft"].distance = 12.0
    car.sensors["fleft"].collision_obj = other_car(0.5)
    assert ReactionPolicy().decide(car).reaction is Reaction.BRAKE

    car.sensors.reset()
    car.sensors["fright"].distance = 12.0
    car.sensors["fright"].collision_obj = StaticObstacle(x=10.0, y=10.0, length=2.0, width=2.0)
    assert ReactionPolicy().decide(car).reaction is Reaction.BRAKE


def test_closest_side_reading_wins() -> None:
    car = routed_car(velocity=1.0)
    car.sensors["fleft"].distance = 15.0
    car.sensors["fleft"].collision_obj = other_car(1.5)
    car.sensors["rright"].distance = 9.0
    car.sensors["rright"].collision_obj = other_car(0.5)
    decision = ReactionPolicy().decide(car)
    assert decision.reaction is Reaction.BRAKE
    assert decision.reason == "rright"


def test_brakes_before_route_end() -> None:
    lane = Way.straight("w", (0.0, 0.0), (100.0, 0.0)).lanes[0]
    car = Car((0.0, 0.0), 0.0, config=AgentConfig(max_velocity=2.0))
    car.set_route([lane.nodes[0], lane.nodes[1]])

    car.velocity = 2.0  # stops in 19 units, only 10 left
    assert ReactionPolicy().decide(car).reaction is Reaction.BRAKE

    car.velocity = 0.5
    assert ReactionPolicy().decide(car).reaction is Reaction.ACCELERATE


def test_steering_snaps_to_target_bearing() -> None:
    assert math.isclose(steering_angle((0.0, 0.0), (0.0, -10.0), 0.0), 90.0)
    assert math.isclose(steering_angle((0.0, 0.0), (-10.0, 0.0), 0.0), 180.0)
    assert math.isclose(steering_angle((0.0, 0.0), (10.0, 10.0), 0.0), -45.0)
    assert steering_angle((5.0, 5.0), (5.0, 5.0), 33.0) == 33.0


def test_apply_updates_heading_and_velocity() -> None:
    car = routed_car(velocity=1.0)
    car.set_angle(30.0)
    policy = ReactionPolicy()
    policy.apply(car, policy.decide(car))
    # Target is the car's own position, heading is kept
    assert car.angle == 30.0
    assert math.isclose(car.velocity, 1.01)
