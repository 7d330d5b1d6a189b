"""Scenario presets and the live, mutable state of one simulated device."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from .schemas import Mode, SensorState

ON = "ON"
OFF = "OFF"
CUSTOM_SCENARIO = "custom"

BASELINE_SENSORS = {
    "temperature": 25.0,
    "humidity": 60.0,
    "steam": 15.0,
    "soil": 45.0,
    "light": 1500,
    "water": 50.0,
}

SCENARIOS: Mapping[str, Mapping[str, float]] = MappingProxyType({
    "normal":     {"temperature": 25, "humidity": 60, "soil": 45, "light": 1500, "water": 50},
    "hot_day":    {"temperature": 35, "humidity": 40, "soil": 30, "light": 1200, "water": 30},
    "cold_night": {"temperature": 15, "humidity": 80, "soil": 70, "light": 50,   "water": 70},
    "dry_soil":   {"temperature": 28, "humidity": 35, "soil": 20, "light": 900,  "water": 20},
    "flood":      {"temperature": 22, "humidity": 85, "soil": 80, "light": 300,  "water": 90},
    "greenhouse": {"temperature": 28, "humidity": 75, "soil": 60, "light": 800,  "water": 60},
    "test_min":   {"temperature": 10, "humidity": 10, "soil": 10, "light": 100,  "water": 10},
    "test_max":   {"temperature": 40, "humidity": 90, "soil": 90, "light": 2000, "water": 90},
})


def scenario_names() -> list[str]:
    return list(SCENARIOS.keys())


@dataclass
class DeviceState:
    """Sensors, actuators and mode of one device.

    The actuator set is fixed at construction; ``actuators`` never gains or
    loses keys afterwards.
    """

    actuator_names: tuple[str, ...]
    sensors: SensorState = field(default_factory=lambda: SensorState(**BASELINE_SENSORS))
    actuators: dict[str, str] = field(default_factory=dict)
    mode: Mode = Mode.RANDOM
    scenario: str | None = None

    def __post_init__(self) -> None:
        self.actuator_names = tuple(n.upper() for n in self.actuator_names)
        self.actuators = {name: OFF for name in self.actuator_names}

    def has_actuator(self, name: str) -> bool:
        return name in self.actuators

    def merge_sensors(self, values: Mapping[str, float]) -> SensorState:
        merged = {**self.sensors.model_dump(), **values}
        self.sensors = SensorState.model_validate(merged)
        return self.sensors
