from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class Mode(str, Enum):
    RANDOM = "random"
    SCENARIO = "scenario"


class ConnectionStatus(str, Enum):
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class DataSource(str, Enum):
    REAL = "real"
    SIMULATED = "simulated"


class SensorReading(BaseModel):
    """One sample as the dashboard sees it (light already normalized once polled)."""

    temperature: float = 0.0
    humidity: float = 0.0
    steam: float = 0.0
    soil: float = 0.0
    light: float = 0.0
    water: float = 0.0


class SensorState(SensorReading):
    """Raw values held by the device; ``light`` is the uncalibrated count."""

    model_config = ConfigDict(extra="forbid")

    light: int = 0


class SensorsOut(SensorState):
    model_config = ConfigDict(extra="ignore")

    light_normalized: int


class HistoryEntry(BaseModel):
    timestamp: str
    temperature: float
    humidity: float
    steam: float
    soil: float
    light: float
    water: float


class DeviceConfig(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    light_calibration_max: int = Field(4095, alias="lightCalibrationMax")
    update_interval_ms: int = Field(2000, alias="updateIntervalMs")
    version: str = "ESP32-MOCK-v1.0"


class DeviceStateOut(BaseModel):
    sensors: SensorState
    actuators: dict[str, str]
    config: DeviceConfig


class StateResponse(BaseModel):
    success: bool = True
    timestamp: str
    mode: Mode
    scenario: Optional[str] = None
    state: DeviceStateOut
    endpoints: dict[str, str]


class SetRequest(BaseModel):
    sensors: Optional[dict[str, Any]] = None
    actuators: Optional[dict[str, str]] = None


class SetResponse(BaseModel):
    success: bool = True
    message: str
    mode: Mode
    scenario: Optional[str] = None
    state: DeviceStateOut


class ScenarioResponse(BaseModel):
    success: bool = True
    scenario: str
    message: str
    sensors: SensorState


class ModeResponse(BaseModel):
    success: bool = True
    message: str
    mode: Mode
    scenario: Optional[str] = None


class CommandResult(BaseModel):
    success: bool
    command: str
    value: Optional[str] = None
    error: Optional[str] = None
