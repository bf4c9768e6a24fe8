from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, TYPE_CHECKING

import numpy as np

from .obstacles import Collidable

if TYPE_CHECKING:
    from .car import Car


# (name, bearing relative to the car heading in degrees)
SENSOR_LAYOUT: Tuple[Tuple[str, float], ...] = (
    ("front", 0.0),
    ("left", 90.0),
    ("right", -90.0),
    ("fleft", 45.0),
    ("fright", -45.0),
    ("rleft", 135.0),
    ("rright", -135.0),
)


@dataclass
class SensorConfig:
    """Range bounds for one directional probe."""

    angle: float
    near: float
    far: float


class Sensor:
    """Directional range probe attached to a car.

    Reports the distance to the nearest blocking obstacle hitbox along the
    car heading plus ``angle``, between ``near`` and ``far``.
    """

    def __init__(self, name: str, car: "Car", config: SensorConfig) -> None:
        self.name = name
        self.car = car
        self.config = config
        self.distance: Optional[float] = None
        self.collision_obj: Optional[Collidable] = None

    @property
    def angle(self) -> float:
        return self.config.angle

    @property
    def near(self) -> float:
        return self.config.near

    @property
    def far(self) -> float:
        return self.config.far

    def reset(self) -> None:
        self.distance = None
        self.collision_obj = None

    def update(self, candidates: Iterable[Collidable]) -> Optional[float]:
        """Scan candidates and keep the nearest hit."""
        x, y = self.car.position
        ray_angle = self.car.angle + self.config.angle
        best: Optional[float] = None
        best_obj: Optional[Collidable] = None
        for obj in candidates:
            if obj is self.car or not obj.is_blocking():
                continue
            d = obj.hitbox.ray_distance(x, y, ray_angle, self.config.near, self.config.far)
            if d is not None and (best is None or d < best):
                best = d
                best_obj = obj
        # Keep an earlier reading from this tick if it is closer
        if best is not None and (self.distance is None or best < self.distance):
            self.distance = best
            self.collision_obj = best_obj
        return self.distance

    def __repr__(self) -> str:
        return f"Sensor({self.name}, distance={self.distance})"


class SensorArray:
    """The seven probes covering a car's surroundings."""

    def __init__(self, car: "Car", near: float, far: float) -> None:
        self._sensors: Dict[str, Sensor] = {
            name: Sensor(name, car, SensorConfig(angle=angle, near=near, far=far))
            for name, angle in SENSOR_LAYOUT
        }

    def __getitem__(self, name: str) -> Sensor:
        return self._sensors[name]

    def __getattr__(self, name: str) -> Sensor:
        sensors = self.__dict__.get("_sensors")
        if sensors is not None and name in sensors:
            return sensors[name]
        raise AttributeError(name)

    def __iter__(self) -> Iterator[Sensor]:
        return iter(self._sensors.values())

    def __len__(self) -> int:
        return len(self._sensors)

    def names(self) -> List[str]:
        return list(self._sensors.keys())

    def reset(self) -> None:
        for sensor in self._sensors.values():
            sensor.reset()

    def readings(self) -> Dict[str, Optional[float]]:
        return {name: s.distance for name, s in self._sensors.items()}

    def as_array(self) -> np.ndarray:
        """Readings in layout order, NaN where nothing was detected."""
        return np.array(
            [np.nan if s.distance is None else s.distance for s in self._sensors.values()],
            dtype=np.float32,
        )
