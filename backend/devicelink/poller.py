"""Periodic sensor polling with a synthetic fallback.

The poller never leaves its consumer without data: every tick ends with one
new history entry, taken from the device when it answers in time and from
``fallback.synthesize`` when it does not.  Ticks never overlap; the loop
sleeps only for what is left of the interval once a tick has finished.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from contextlib import suppress
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

import httpx
from pydantic import ValidationError

from .errors import InvalidShape, NetworkFailure, TelemetryError, Timeout
from .fallback import synthesize
from .history import HistoryBuffer
from .schemas import ConnectionStatus, DataSource, HistoryEntry, SensorReading
from .settings import PollerSettings
from .utils import normalize_light

logger = logging.getLogger(__name__)

Listener = Callable[[str, Any], None]


class Clock:
    """Wall clock and timers; tests swap in a fake to skip real waiting."""

    def monotonic(self) -> float:
        return time.monotonic()

    def now(self) -> datetime:
        return datetime.now()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


@dataclass(frozen=True)
class PollResult:
    reading: SensorReading
    status: ConnectionStatus
    source: DataSource
    error: Optional[str] = None


async def fetch_reading(
    client: httpx.AsyncClient,
    timeout: float,
    calibration_max: int = 4095,
    path: str = "/sensors",
) -> SensorReading:
    """GET the sensors route with a hard time bound; light comes back normalized.

    Raises ``Timeout``, ``NetworkFailure`` or ``InvalidShape``.
    """

    try:
        response = await asyncio.wait_for(client.get(path), timeout=timeout)
    except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
        raise Timeout(f"Request timed out after {timeout:g}s") from exc
    except httpx.RequestError as exc:
        raise NetworkFailure(str(exc) or exc.__class__.__name__) from exc

    if not response.is_success:
        raise NetworkFailure(f"HTTP error {response.status_code}: {response.reason_phrase}")

    try:
        data = response.json()
    except ValueError as exc:
        raise InvalidShape("Response body is not JSON") from exc
    if not isinstance(data, dict):
        raise InvalidShape("Received data in invalid format")

    try:
        reading = SensorReading.model_validate(data)
    except ValidationError as exc:
        raise InvalidShape(f"Invalid sensor payload: {exc.error_count()} error(s)") from exc

    return reading.model_copy(update={"light": float(normalize_light(reading.light, calibration_max))})


class Poller:
    def __init__(
        self,
        settings: PollerSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        clock: Clock | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.settings = settings or PollerSettings.from_env()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self.settings.device_url,
            timeout=httpx.Timeout(self.settings.read_timeout),
        )
        self._clock = clock or Clock()
        self._rng = rng or random.Random()
        self.history = HistoryBuffer(self.settings.history_size)

        self._tick_lock = asyncio.Lock()
        self._task: asyncio.Task | None = None
        self._loaded_once = False
        self._listeners: list[Listener] = []
        self._published: dict[str, Any] = {
            "reading": None,
            "status": ConnectionStatus.CONNECTING,
            "source": DataSource.REAL,
            "last_error": None,
            "last_update": None,
            "is_loading": True,
        }

    # -------------------- published state --------------------

    @property
    def reading(self) -> SensorReading | None:
        return self._published["reading"]

    @property
    def status(self) -> ConnectionStatus:
        return self._published["status"]

    @property
    def source(self) -> DataSource:
        return self._published["source"]

    @property
    def last_error(self) -> str | None:
        return self._published["last_error"]

    @property
    def last_update(self) -> str | None:
        return self._published["last_update"]

    @property
    def is_loading(self) -> bool:
        return self._published["is_loading"]

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener(field, value)`` whenever a published field changes."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            with suppress(ValueError):
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, field: str, value: Any) -> None:
        if self._published[field] == value:
            return
        self._published[field] = value
        for listener in list(self._listeners):
            try:
                listener(field, value)
            except Exception:  # noqa: BLE001 - one bad listener must not stop the tick
                logger.exception("Poller listener failed on %s", field)

    def _set_connection(self, status: ConnectionStatus) -> None:
        self._set("status", status)
        self._set("source", DataSource.REAL if status is ConnectionStatus.CONNECTED else DataSource.SIMULATED)

    def clear_error(self) -> None:
        self._set("last_error", None)

    def entries(self) -> list[HistoryEntry]:
        return self.history.entries()

    # -------------------- one tick --------------------

    def _record(self, reading: SensorReading) -> None:
        stamp = self._clock.now().isoformat(timespec="seconds")
        self.history.append(reading, stamp)
        self._set("reading", reading)
        self._set("last_update", stamp)

    def _accept(self, reading: SensorReading) -> PollResult:
        if self.status is ConnectionStatus.DISCONNECTED:
            logger.info("Device at %s reachable again", self.settings.device_url)
        self._record(reading)
        self._set_connection(ConnectionStatus.CONNECTED)
        self._set("last_error", None)
        logger.debug("Reading accepted: %s", reading)
        return PollResult(reading, self.status, self.source)

    def _fallback(self, message: str) -> PollResult:
        self._set_connection(ConnectionStatus.DISCONNECTED)
        if message != self.last_error:
            logger.warning("Device read failed, serving simulated data: %s", message)
            self._set("last_error", message)
        reading = synthesize(self._rng)
        self._record(reading)
        return PollResult(reading, self.status, self.source, message)

    async def fetch_once(self) -> PollResult:
        """Run one poll; never raises for device trouble."""

        async with self._tick_lock:
            if not self._loaded_once:
                self._set("is_loading", True)
            try:
                reading = await fetch_reading(
                    self._client,
                    self.settings.read_timeout,
                    self.settings.light_calibration_max,
                    self.settings.sensors_path,
                )
            except TelemetryError as exc:
                result = self._fallback(str(exc))
            except Exception as exc:  # noqa: BLE001 - a tick always ends with data
                logger.exception("Unexpected error while polling the device")
                result = self._fallback(str(exc) or exc.__class__.__name__)
            else:
                result = self._accept(reading)
            finally:
                self._loaded_once = True
                self._set("is_loading", False)
            return result

    # -------------------- loop --------------------

    async def _run(self) -> None:
        interval = self.settings.poll_interval
        while True:
            started = self._clock.monotonic()
            await self.fetch_once()
            elapsed = self._clock.monotonic() - started
            await self._clock.sleep(max(0.0, interval - elapsed))

    def start(self) -> None:
        if self.running:
            return
        logger.info(
            "Polling %s every %gs (timeout %gs)",
            self.settings.device_url,
            self.settings.poll_interval,
            self.settings.read_timeout,
        )
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task

    async def aclose(self) -> None:
        """Stop polling and drop everything this session collected."""

        await self.stop()
        self.history.clear()
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "Poller":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
