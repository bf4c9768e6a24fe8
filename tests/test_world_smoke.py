from __future__ import annotations

import math
import random

from lane_sim.car import Car, RouteCallbacks, TickResult
from lane_sim.config import AgentConfig, load_yaml
from lane_sim.metrics import format_run_report
from lane_sim.road import RoadNetwork, Way
from lane_sim.world import World
from telemetry.logger import TelemetryLogger, read_jsonl


def test_scenario_run_smoke(tmp_path) -> None:
    cfg = load_yaml("configs/sim.yaml")
    scenario = cfg["scenario"]
    network = RoadNetwork.from_dict(scenario["network"])
    agent_cfg = AgentConfig.from_dict(cfg["agent"])
    rng = random.Random(cfg.get("seed", 0))

    telemetry_path = str(tmp_path / "telemetry.jsonl")
    with TelemetryLogger(telemetry_path, run_id="smoke") as logger:
        world = World(network=network, telemetry_logger=logger, snapshot_every=50)
        for entry in scenario["cars"]:
            route = [network.node(str(w[0]), int(w[1]), int(w[2])) for w in entry["route"]]
            world.spawn_car(route, config=agent_cfg, rng=rng, car_id=entry["id"])

        for _ in range(300):
            world.step()
            for car in world.cars:
                assert 0.0 <= car.velocity <= car.max_velocity

    snapshots = read_jsonl(telemetry_path, event="snapshot")
    assert len(snapshots) == 6 * len(scenario["cars"])
    assert all(r["run"] == "smoke" for r in snapshots)
    metrics = world.metrics()
    assert metrics.cars == len(scenario["cars"])
    assert metrics.ticks == 300
    assert "SIMULATION REPORT" in format_run_report(metrics)


def test_front_sensor_fires_before_cars_touch() -> None:
    horizontal = Way.straight("H", (0.0, 0.0), (200.0, 0.0))
    vertical = Way.straight("V", (100.0, -100.0), (100.0, 100.0))
    cfg = AgentConfig(max_velocity=2.0, acceleration_power=0.1)

    world = World(network=RoadNetwork([horizontal, vertical]))
    mover = world.spawn_car(
        [horizontal.lanes[0].initial_point, horizontal.lanes[0].deepest_point], config=cfg, car_id="mover"
    )
    # Idle car standing where the lanes cross
    crossing = world.add_car(Car((100.0, 0.0), vertical.lanes[0].get_angle(), config=cfg, car_id="crossing"))

    first_seen = None
    for tick in range(1, 301):
        world.step()
        if first_seen is None and mover.sensors["front"].distance is not None:
            first_seen = tick
        assert not mover.hitbox.overlaps(crossing.hitbox)

    assert first_seen is not None
    assert not mover.broken and not crossing.broken
    assert mover.velocity == 0.0
    assert mover.x < 100.0 - 2.5 - 5.0


def test_world_drains_events_after_all_cars() -> None:
    lane = Way.straight("w", (0.0, 0.0), (50.0, 0.0)).lanes[0]
    other = Way.straight("v", (0.0, 50.0), (50.0, 50.0)).lanes[0]
    seen = []
    world = World()

    def on_arrival(car: Car) -> None:
        # Every car of this tick has already been processed
        seen.append([c.route_index for c in world.cars])
        car.set_route([lane.nodes[0]])

    cfg = AgentConfig(max_velocity=2.0)
    world.spawn_car([lane.nodes[0]], config=cfg, callbacks=RouteCallbacks(on_arrival=on_arrival), car_id="a")
    world.spawn_car([other.nodes[0]], config=cfg, car_id="b")
    results = world.step()
    assert [r for _, r in results] == [TickResult.ARRIVED, TickResult.ARRIVED]
    assert seen == [[None, None]]
    # Re-routing from the callback takes effect on the next tick
    assert world.cars[0].route_index == 0


def test_front_sensor_fires_before_moving_cars_meet() -> None:
    horizontal = Way.straight("H", (0.0, 0.0), (200.0, 0.0))
    vertical = Way.straight("V", (100.0, -100.0), (100.0, 100.0))
    cfg = AgentConfig(max_velocity=2.0, acceleration_power=0.1)

    world = World(network=RoadNetwork([horizontal, vertical]))
    a = world.spawn_car(
        [horizontal.lanes[0].initial_point, horizontal.lanes[0].deepest_point], config=cfg, car_id="a"
    )
    b = world.spawn_car(
        [vertical.lanes[0].initial_point, vertical.lanes[0].deepest_point], config=cfg, car_id="b"
    )

    first_seen = None
    first_overlap = None
    for tick in range(1, 201):
        world.step()
        if first_seen is None and any(c.sensors["front"].distance is not None for c in (a, b)):
            first_seen = tick
        if first_overlap is None and a.hitbox.overlaps(b.hitbox):
            first_overlap = tick

    # Both cars head for the crossing; one of them must perceive the other first
    assert first_seen is not None
    if first_overlap is not None:
        assert first_seen < first_overlap


def test_mean_velocity_uses_running_totals() -> None:
    lane = Way.straight("w", (0.0, 0.0), (100.0, 0.0)).lanes[0]
    world = World()
    car = world.spawn_car([lane.initial_point, lane.deepest_point], config=AgentConfig(max_velocity=2.0))

    total = 0.0
    count = 0
    for _ in range(40):
        world.step()
        if car.route_index is not None and not car.broken:
            total += car.velocity
            count += 1

    assert world.velocity_count == count
    assert math.isclose(world.velocity_sum, total)
    assert math.isclose(world.metrics().mean_velocity, total / count)
