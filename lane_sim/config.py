"""
Configuration dataclasses and YAML loading.

``configs/sim.yaml`` is split into a ``sim`` section (driver settings), an
``agent`` section (kinematics, footprint, sensors, lane changes) and an
optional ``scenario`` section consumed by ``scripts/run_sim.py``.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional, Tuple

import yaml


def load_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


@dataclass
class AgentConfig:
    """Per-car kinematic and sensor parameters.

    Attributes
    ----------
    car_length, car_width : float
        Hitbox footprint. Sensors start at half the length.
    acceleration_power, brake_power : float
        Velocity change per tick when accelerating / braking.
    max_velocity : float or None
        Top speed per tick. None draws ``randint(15, 20) / 10`` from the
        car's generator.
    sensor_margin : float
        Extra sensor reach beyond the stopping distance at top speed.
    lane_change_lead, lane_change_diagonal, lane_change_angle : float
        Lane-change maneuver shape: straight lead-in, diagonal probe
        length and diagonal angle relative to the lane heading.
    """

    car_length: float = 10.0
    car_width: float = 5.0
    acceleration_power: float = 0.01
    brake_power: float = 0.1
    max_velocity: Optional[float] = None
    min_random_velocity: int = 15
    max_random_velocity: int = 20
    sensor_margin: float = 10.0
    lane_change_lead: float = 50.0
    lane_change_diagonal: float = 10.0
    lane_change_angle: float = 45.0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "AgentConfig":
        data = data or {}
        default = cls()
        max_velocity = data.get("max_velocity", default.max_velocity)
        cfg = cls(
            car_length=float(data.get("car_length", default.car_length)),
            car_width=float(data.get("car_width", default.car_width)),
            acceleration_power=float(data.get("acceleration_power", default.acceleration_power)),
            brake_power=float(data.get("brake_power", default.brake_power)),
            max_velocity=float(max_velocity) if max_velocity is not None else None,
            min_random_velocity=int(data.get("min_random_velocity", default.min_random_velocity)),
            max_random_velocity=int(data.get("max_random_velocity", default.max_random_velocity)),
            sensor_margin=float(data.get("sensor_margin", default.sensor_margin)),
            lane_change_lead=float(data.get("lane_change_lead", default.lane_change_lead)),
            lane_change_diagonal=float(data.get("lane_change_diagonal", default.lane_change_diagonal)),
            lane_change_angle=float(data.get("lane_change_angle", default.lane_change_angle)),
        )
        cfg.validate()
        return cfg

    def validate(self) -> None:
        if self.brake_power <= 0.0:
            raise ValueError(f"brake_power must be positive, got {self.brake_power}")
        if self.acceleration_power <= 0.0:
            raise ValueError(f"acceleration_power must be positive, got {self.acceleration_power}")
        if self.max_velocity is not None and self.max_velocity < 0.0:
            raise ValueError(f"max_velocity must be non-negative, got {self.max_velocity}")
        if self.min_random_velocity > self.max_random_velocity:
            raise ValueError("min_random_velocity exceeds max_random_velocity")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SimConfig:
    """Driver settings for a headless run."""

    max_ticks: int = 2000
    seed: int = 0
    telemetry_path: Optional[str] = None
    metrics_path: Optional[str] = None
    snapshot_every: int = 0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "SimConfig":
        data = data or {}
        default = cls()
        return cls(
            max_ticks=int(data.get("max_ticks", default.max_ticks)),
            seed=int(data.get("seed", default.seed)),
            telemetry_path=data.get("telemetry_path", default.telemetry_path),
            metrics_path=data.get("metrics_path", default.metrics_path),
            snapshot_every=int(data.get("snapshot_every", default.snapshot_every)),
        )


def load_config(path: str) -> Tuple[SimConfig, AgentConfig, Dict[str, Any]]:
    """Load ``sim`` and ``agent`` sections; the raw dict is returned as well."""
    cfg = load_yaml(path)
    return SimConfig.from_dict(cfg.get("sim")), AgentConfig.from_dict(cfg.get("agent")), cfg
