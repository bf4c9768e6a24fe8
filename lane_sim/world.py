from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple
import random

from .car import AgentEvent, Car, EventKind, RouteCallbacks, TickResult
from .config import AgentConfig
from .metrics import RunMetrics, build_run_metrics
from .obstacles import Collidable
from .road import RoadNetwork, RouteNode
from telemetry.logger import TelemetryLogger


class World:
    """Fixed-step driver for cars, static obstacles and signals.

    Cars are processed in insertion order: each one checks collisions
    against every collidable and then updates. Events queued during the
    tick are dispatched to callbacks and telemetry only after all cars are
    done.

    Parameters
    ----------
    network : RoadNetwork, optional
        Lane graph the routes refer to.
    obstacles : list[Collidable], optional
        Static obstacles and signals.
    telemetry_logger : TelemetryLogger, optional
        Receives one record per dispatched event, plus car snapshots every
        ``snapshot_every`` ticks when that is positive.
    """

    def __init__(
        self,
        network: Optional[RoadNetwork] = None,
        obstacles: Optional[Sequence[Collidable]] = None,
        telemetry_logger: Optional[TelemetryLogger] = None,
        snapshot_every: int = 0,
    ) -> None:
        self.network = network if network is not None else RoadNetwork()
        self.cars: List[Car] = []
        self.static_obstacles: List[Collidable] = list(obstacles) if obstacles is not None else []
        self.telemetry_logger = telemetry_logger
        self.snapshot_every = snapshot_every
        self.tick = 0
        self.arrival_ticks: Dict[str, int] = {}
        self.break_ticks: Dict[str, int] = {}
        self.velocity_sum = 0.0
        self.velocity_count = 0

    # ------------------------------------------------------------------
    # Population
    # ------------------------------------------------------------------
    def add_car(self, car: Car) -> Car:
        self.cars.append(car)
        return car

    def spawn_car(
        self,
        route: Sequence[RouteNode],
        angle: Optional[float] = None,
        config: Optional[AgentConfig] = None,
        rng: Optional[random.Random] = None,
        callbacks: Optional[RouteCallbacks] = None,
        car_id: Optional[str] = None,
    ) -> Car:
        """Create a car on the first waypoint, facing its lane, and route it."""
        first = route[0]
        if angle is None:
            angle = first.road_path.get_angle()
        car = Car((first.x, first.y), angle, config=config, rng=rng, car_id=car_id)
        car.set_route(route, callbacks)
        return self.add_car(car)

    def add_obstacle(self, obstacle: Collidable) -> None:
        self.static_obstacles.append(obstacle)

    def collidables(self) -> List[Collidable]:
        return [*self.cars, *self.static_obstacles]

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------
    def step(self) -> List[Tuple[Car, TickResult]]:
        """Advance every car by one tick, then dispatch queued events."""
        self.tick += 1
        collidables = self.collidables()
        results: List[Tuple[Car, TickResult]] = []
        for car in self.cars:
            car.check_collision(collidables)
            results.append((car, car.update()))
            if car.route_index is not None and not car.broken:
                self.velocity_sum += car.velocity
                self.velocity_count += 1

        self.dispatch_events()

        if self.telemetry_logger is not None and self.snapshot_every > 0 and self.tick % self.snapshot_every == 0:
            for car in self.cars:
                self.telemetry_logger.log_event(self.tick, "snapshot", **car.to_dict())
        return results

    def dispatch_events(self) -> List[AgentEvent]:
        """Drain every car's queue, record the events and run callbacks."""
        events: List[AgentEvent] = []
        for car in self.cars:
            events.extend(car.drain_events())

        for event in events:
            car = event.car
            if event.kind is EventKind.ARRIVED:
                self.arrival_ticks.setdefault(car.obstacle_id, self.tick)
            elif event.kind is EventKind.BROKE:
                self.break_ticks.setdefault(car.obstacle_id, self.tick)

            if self.telemetry_logger is not None:
                self.telemetry_logger.log_step({"tick": self.tick, **event.to_dict()})

            if event.kind is EventKind.ARRIVED and car.callbacks.on_arrival is not None:
                car.callbacks.on_arrival(car)
            elif event.kind is EventKind.BROKE and car.callbacks.on_brake is not None:
                car.callbacks.on_brake(car)
        return events

    def active_cars(self) -> List[Car]:
        return [c for c in self.cars if not c.broken and c.route_index is not None]

    def run(self, max_ticks: int, until_idle: bool = True) -> int:
        """Step up to ``max_ticks`` times; stop early once no car is active."""
        for _ in range(max_ticks):
            self.step()
            if until_idle and not self.active_cars():
                break
        return self.tick

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------
    def metrics(self) -> RunMetrics:
        return build_run_metrics(
            ticks=self.tick,
            cars=self.cars,
            arrival_ticks=self.arrival_ticks,
            break_ticks=self.break_ticks,
            velocity_sum=self.velocity_sum,
            velocity_count=self.velocity_count,
        )
