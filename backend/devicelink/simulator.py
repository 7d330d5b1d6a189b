"""In-process stand-in for the sensor board.

One ``DeviceSimulator`` owns one ``DeviceState``; request handlers get it
injected rather than reaching for module globals, so tests can run several
isolated devices side by side.  Handlers are coroutines on a single event
loop and every mutation below is synchronous, so no lock is needed.  Run the
handlers in a thread pool and this stops being true.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable, Mapping, Optional

from pydantic import ValidationError

from .errors import InvalidArgument, MissingParameter, NotFound, UnknownActuator
from .registry import (
    CUSTOM_SCENARIO,
    OFF,
    ON,
    SCENARIOS,
    DeviceState,
    scenario_names,
)
from .schemas import DeviceConfig, DeviceStateOut, Mode, SensorsOut, SensorState
from .settings import SimulatorSettings
from .utils import normalize_light

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]

CONNECTION_FAIL_DELAY = 5.0
CONNECTION_SLOW_DELAY = 3.0
CONNECTION_NORMAL_DELAY = 0.1
COMMAND_LATENCY = 0.1
READ_LATENCY = (0.05, 0.15)

# (lo, hi, decimals); raw light is drawn separately up to the calibration max
RANDOM_BANDS: dict[str, tuple[float, float, int]] = {
    "temperature": (18.0, 32.0, 1),
    "humidity": (40.0, 85.0, 1),
    "steam": (5.0, 30.0, 1),
    "soil": (20.0, 70.0, 1),
    "water": (10.0, 90.0, 1),
}


class DeviceSimulator:
    def __init__(
        self,
        settings: SimulatorSettings | None = None,
        *,
        rng: random.Random | None = None,
        sleep: Sleep | None = None,
    ) -> None:
        self.settings = settings or SimulatorSettings()
        self.config = DeviceConfig(
            light_calibration_max=self.settings.light_calibration_max,
            update_interval_ms=self.settings.update_interval_ms,
            version=self.settings.version,
        )
        self.state = DeviceState(actuator_names=self.settings.actuators)
        self.rng = rng or random.Random()
        self._sleep = sleep or asyncio.sleep

    # -------------------- sensors --------------------

    def _random_sensors(self) -> dict[str, float]:
        values: dict[str, float] = {
            name: round(self.rng.uniform(lo, hi), decimals)
            for name, (lo, hi, decimals) in RANDOM_BANDS.items()
        }
        values["light"] = self.rng.randint(0, self.config.light_calibration_max)
        return values

    def read_sensors(self) -> SensorState:
        """Current reading; in RANDOM mode every call draws fresh values."""

        if self.state.mode is Mode.RANDOM:
            self.state.merge_sensors(self._random_sensors())
        return self.state.sensors

    def normalize(self, raw: float) -> int:
        return normalize_light(raw, self.config.light_calibration_max)

    def sensors_payload(self) -> SensorsOut:
        sensors = self.read_sensors()
        return SensorsOut(**sensors.model_dump(), light_normalized=self.normalize(sensors.light))

    # -------------------- actuators --------------------

    def command(self, cmd: str | None, value: str | None = None) -> str:
        """Apply an actuator command and return the board's ``OK:<NAME>=<VALUE>`` line."""

        if not cmd:
            raise MissingParameter('Parameter "cmd" is required')
        name = cmd.upper()
        if not self.state.has_actuator(name):
            raise UnknownActuator(f'Command "{name}" not recognized')

        if value:
            # The board stores whatever it is given; no ON/OFF check.
            self.state.actuators[name] = value.upper()
        else:
            self.state.actuators[name] = OFF if self.state.actuators[name] == ON else ON

        logger.info("Actuators now %s", self.state.actuators)
        return f"OK:{name}={self.state.actuators[name]}"

    # -------------------- dev controls --------------------

    def set_values(
        self,
        sensors: Mapping[str, float] | None = None,
        actuators: Mapping[str, str] | None = None,
    ) -> None:
        updates = {str(k).upper(): str(v).upper() for k, v in (actuators or {}).items()}
        unknown = sorted(k for k in updates if not self.state.has_actuator(k))
        if unknown:
            raise UnknownActuator(
                f"Unknown actuators: {', '.join(unknown)}",
                available=list(self.state.actuator_names),
            )
        if sensors is not None:
            try:
                self.state.merge_sensors(sensors)
            except ValidationError as exc:
                raise InvalidArgument(f"Invalid sensor values: {exc.error_count()} error(s)") from exc
            self.state.mode = Mode.SCENARIO
            self.state.scenario = CUSTOM_SCENARIO
        self.state.actuators.update(updates)

    def apply_scenario(self, name: str) -> SensorState:
        preset = SCENARIOS.get(name)
        if preset is None:
            raise NotFound(f'Scenario "{name}" not found', available=scenario_names())
        self.state.merge_sensors(preset)
        self.state.mode = Mode.SCENARIO
        self.state.scenario = name
        logger.info("Scenario %s applied", name)
        return self.state.sensors

    def reset(self) -> None:
        self.state.mode = Mode.RANDOM
        self.state.scenario = None

    def set_mode(self, mode: str) -> Mode:
        if mode == Mode.RANDOM.value:
            self.reset()
        elif mode == Mode.SCENARIO.value:
            self.state.mode = Mode.SCENARIO
        else:
            raise InvalidArgument(
                f'Invalid mode "{mode}"',
                available=[m.value for m in Mode],
            )
        return self.state.mode

    def snapshot(self) -> DeviceStateOut:
        return DeviceStateOut(
            sensors=self.state.sensors,
            actuators=dict(self.state.actuators),
            config=self.config,
        )

    # -------------------- timing --------------------

    async def read_latency(self) -> None:
        if self.settings.latency:
            await self._sleep(self.rng.uniform(*READ_LATENCY))

    async def command_latency(self) -> None:
        if self.settings.latency:
            await self._sleep(COMMAND_LATENCY)

    async def simulate_connection(self, status: str) -> Optional[SensorsOut]:
        """Delay per ``status``; ``None`` means the request should time out."""

        if status == "fail":
            await self._sleep(CONNECTION_FAIL_DELAY)
            return None
        if status == "slow":
            await self._sleep(CONNECTION_SLOW_DELAY)
        else:
            await self._sleep(CONNECTION_NORMAL_DELAY)
        return self.sensors_payload()
