"""
Run metrics for lane simulations.

Aggregates arrivals, breakdowns and velocity over a run, and formats a
text report for the command line runner.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence, TYPE_CHECKING
import json
import os
import time

import numpy as np

if TYPE_CHECKING:
    from .car import Car


@dataclass
class RunMetrics:
    """Summary of one simulation run."""

    ticks: int
    cars: int
    arrived: int
    broken: int
    active: int
    mean_velocity: float = 0.0
    mean_arrival_tick: Optional[float] = None
    arrival_ticks: Dict[str, int] = field(default_factory=dict)
    break_ticks: Dict[str, int] = field(default_factory=dict)
    timestamp: str = ""

    @property
    def arrival_rate(self) -> float:
        return self.arrived / self.cars if self.cars else 0.0

    @property
    def collision_rate(self) -> float:
        return self.broken / self.cars if self.cars else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "ticks": int(self.ticks),
            "cars": int(self.cars),
            "arrived": int(self.arrived),
            "broken": int(self.broken),
            "active": int(self.active),
            "arrival_rate": self.arrival_rate,
            "collision_rate": self.collision_rate,
            "mean_velocity": float(self.mean_velocity),
            "mean_arrival_tick": self.mean_arrival_tick,
            "arrival_ticks": self.arrival_ticks,
            "break_ticks": self.break_ticks,
        }

    def save(self, path: str) -> None:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)


def build_run_metrics(
    ticks: int,
    cars: Sequence["Car"],
    arrival_ticks: Mapping[str, int],
    break_ticks: Mapping[str, int],
    velocity_sum: float = 0.0,
    velocity_count: int = 0,
) -> RunMetrics:
    """Build RunMetrics from the world's bookkeeping.

    Mean velocity comes from a running sum over every active car-tick.
    """
    broken = sum(1 for c in cars if c.broken)
    active = sum(1 for c in cars if not c.broken and c.route_index is not None)
    arrivals = list(arrival_ticks.values())
    return RunMetrics(
        ticks=ticks,
        cars=len(cars),
        arrived=len(arrival_ticks),
        broken=broken,
        active=active,
        mean_velocity=velocity_sum / velocity_count if velocity_count else 0.0,
        mean_arrival_tick=float(np.mean(arrivals)) if arrivals else None,
        arrival_ticks=dict(arrival_ticks),
        break_ticks=dict(break_ticks),
        timestamp=time.strftime("%Y-%m-%d_%H-%M-%S"),
    )


def format_run_report(metrics: RunMetrics) -> str:
    """Produce a human-readable table string for the run."""
    lines = [
        "=" * 56,
        "SIMULATION REPORT",
        "=" * 56,
        f"  Ticks:            {metrics.ticks}",
        f"  Cars:             {metrics.cars}",
        "  Arrived:          {} ({:.1%})".format(metrics.arrived, metrics.arrival_rate),
        "  Broken:           {} ({:.1%})".format(metrics.broken, metrics.collision_rate),
        f"  Still driving:    {metrics.active}",
        "  Mean velocity:    {:.3f}".format(metrics.mean_velocity),
        "  Mean arrival tick: {}".format(
            f"{metrics.mean_arrival_tick:.0f}" if metrics.mean_arrival_tick is not None else "N/A"
        ),
        "-" * 56,
    ]
    for car_id, tick in sorted(metrics.arrival_ticks.items()):
        lines.append(f"  {car_id:<24} arrived at tick {tick}")
    for car_id, tick in sorted(metrics.break_ticks.items()):
        lines.append(f"  {car_id:<24} broke at tick {tick}")
    lines.append("-" * 56)
    return "\n".join(lines)
