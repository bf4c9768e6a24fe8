from __future__ import annotations

import argparse
import random
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

# Ensure project root is on path when running this script directly
_script_dir = Path(__file__).resolve().parent
_project_root = _script_dir.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from lane_sim.car import Car, RouteCallbacks
from lane_sim.config import AgentConfig, load_config
from lane_sim.metrics import format_run_report
from lane_sim.obstacles import Collidable, StaticObstacle, TrafficSignal
from lane_sim.road import RoadNetwork, RouteNode
from lane_sim.world import World
from telemetry.logger import TelemetryLogger


def build_obstacles(entries: List[Dict[str, Any]]) -> List[Collidable]:
    obstacles: List[Collidable] = []
    for o in entries:
        kind = o.get("type", "static")
        common = dict(
            x=float(o["x"]),
            y=float(o["y"]),
            length=float(o.get("length", 2.0)),
            width=float(o.get("width", 5.0)),
            angle=float(o.get("angle", 0.0)),
            obstacle_id=o.get("id"),
        )
        if kind == "signal":
            obstacles.append(TrafficSignal(state=str(o.get("state", "green")), **common))
        elif kind == "static":
            obstacles.append(StaticObstacle(**common))
        else:
            raise ValueError(f"Unknown obstacle type: {kind}")
    return obstacles


def build_route(network: RoadNetwork, waypoints: List[List[Any]]) -> List[RouteNode]:
    return [network.node(str(w[0]), int(w[1]), int(w[2])) for w in waypoints]


def build_world(
    cfg: Dict[str, Any],
    agent_cfg: AgentConfig,
    seed: int,
    telemetry_logger: Optional[TelemetryLogger] = None,
    snapshot_every: int = 0,
) -> World:
    scenario = cfg.get("scenario", {})
    network = RoadNetwork.from_dict(scenario.get("network", {}))
    world = World(
        network=network,
        obstacles=build_obstacles(scenario.get("obstacles", [])),
        telemetry_logger=telemetry_logger,
        snapshot_every=snapshot_every,
    )
    rng = random.Random(seed)

    def on_arrival(car: Car) -> None:
        print(f"[tick {world.tick}] {car.obstacle_id} arrived at ({car.x:.1f}, {car.y:.1f})")

    def on_brake(car: Car) -> None:
        print(f"[tick {world.tick}] {car.obstacle_id} broke down at ({car.x:.1f}, {car.y:.1f})")

    for i, entry in enumerate(scenario.get("cars", [])):
        car_cfg = agent_cfg
        if "max_velocity" in entry:
            car_cfg = AgentConfig.from_dict({**agent_cfg.to_dict(), "max_velocity": entry["max_velocity"]})
        world.spawn_car(
            build_route(network, entry["route"]),
            config=car_cfg,
            rng=rng,
            callbacks=RouteCallbacks(on_arrival=on_arrival, on_brake=on_brake),
            car_id=str(entry.get("id", f"car_{i}")),
        )
    return world


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless lane simulation run.")
    parser.add_argument(
        "--config",
        type=str,
        default="configs/sim.yaml",
        help="Path to sim YAML config.",
    )
    parser.add_argument("--ticks", type=int, default=None, help="Override sim.max_ticks.")
    parser.add_argument("--seed", type=int, default=None, help="Override sim.seed.")
    parser.add_argument("--telemetry", type=str, default=None, help="Override sim.telemetry_path.")
    args = parser.parse_args()

    sim_cfg, agent_cfg, cfg = load_config(args.config)
    max_ticks = args.ticks if args.ticks is not None else sim_cfg.max_ticks
    seed = args.seed if args.seed is not None else sim_cfg.seed
    telemetry_path = args.telemetry or sim_cfg.telemetry_path

    telemetry_logger = TelemetryLogger(telemetry_path) if telemetry_path else None
    try:
        world = build_world(cfg, agent_cfg, seed, telemetry_logger, sim_cfg.snapshot_every)
        print(f"Running {len(world.cars)} cars for up to {max_ticks} ticks (seed={seed}).")
        world.run(max_ticks)
    finally:
        if telemetry_logger is not None:
            telemetry_logger.close()

    metrics = world.metrics()
    print(format_run_report(metrics))
    if sim_cfg.metrics_path:
        metrics.save(sim_cfg.metrics_path)
        print(f"Saved run metrics to {sim_cfg.metrics_path}")


if __name__ == "__main__":
    main()
