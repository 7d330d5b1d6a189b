import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent / ".env")

DEFAULT_ACTUATORS = ("LED", "WATER", "FAN", "BUZZER")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_ms(name: str, default_ms: int) -> float:
    """Read a millisecond setting and return it in seconds."""

    return int(os.getenv(name, str(default_ms))) / 1000.0


def _split_names(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return DEFAULT_ACTUATORS
    names = tuple(dict.fromkeys(n.strip().upper() for n in raw.split(",") if n.strip()))
    return names or DEFAULT_ACTUATORS


@dataclass(frozen=True)
class PollerSettings:
    device_url: str = "http://localhost:3002"
    fallback_url: str = "http://10.106.33.1"
    poll_interval: float = 2.0       # seconds
    read_timeout: float = 3.0        # seconds
    command_timeout: float = 0.8     # seconds
    history_size: int = 20
    light_calibration_max: int = 4095
    sensors_path: str = "/sensors"

    @classmethod
    def from_env(cls) -> "PollerSettings":
        return cls(
            device_url=os.getenv("DEVICE_URL", cls.device_url).strip().rstrip("/"),
            fallback_url=os.getenv("DEVICE_FALLBACK_URL", cls.fallback_url).strip().rstrip("/"),
            poll_interval=_env_ms("POLL_INTERVAL_MS", 2000),
            read_timeout=_env_ms("READ_TIMEOUT_MS", 3000),
            command_timeout=_env_ms("COMMAND_TIMEOUT_MS", 800),
            history_size=int(os.getenv("HISTORY_SIZE", "20")),
            light_calibration_max=int(os.getenv("LIGHT_CALIBRATION_MAX", "4095")),
            sensors_path=os.getenv("SENSORS_PATH", cls.sensors_path),
        )


@dataclass(frozen=True)
class SimulatorSettings:
    host: str = "0.0.0.0"
    port: int = 3002
    actuators: tuple[str, ...] = DEFAULT_ACTUATORS
    light_calibration_max: int = 4095
    update_interval_ms: int = 2000
    version: str = "ESP32-MOCK-v1.0"
    latency: bool = True
    cors_origins: tuple[str, ...] = ("*",)

    @classmethod
    def from_env(cls) -> "SimulatorSettings":
        origins = tuple(
            o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()
        )
        return cls(
            host=os.getenv("SIMULATOR_HOST", cls.host),
            port=int(os.getenv("SIMULATOR_PORT", str(cls.port))),
            actuators=_split_names(os.getenv("SIMULATOR_ACTUATORS")),
            light_calibration_max=int(os.getenv("LIGHT_CALIBRATION_MAX", "4095")),
            update_interval_ms=int(os.getenv("POLL_INTERVAL_MS", "2000")),
            version=os.getenv("SIMULATOR_VERSION", cls.version),
            latency=_env_bool("SIMULATOR_LATENCY", True),
            cors_origins=origins or ("*",),
        )
