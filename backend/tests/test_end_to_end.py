import asyncio
import random
import sys
from pathlib import Path

import httpx

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from devicelink.dispatcher import CommandDispatcher
from devicelink.main import create_app
from devicelink.poller import Poller
from devicelink.schemas import ConnectionStatus, DataSource
from devicelink.settings import PollerSettings, SimulatorSettings
from devicelink.simulator import DeviceSimulator


async def _no_sleep(seconds: float) -> None:
    return None


def _setup(sensors_path: str = "/sensors"):
    sim = DeviceSimulator(SimulatorSettings(latency=False), rng=random.Random(11), sleep=_no_sleep)
    client = httpx.AsyncClient(transport=httpx.ASGITransport(app=create_app(sim)), base_url="http://device")
    settings = PollerSettings(device_url="http://device", sensors_path=sensors_path)
    return sim, client, settings


def test_poller_reads_scenario_from_simulator():
    sim, client, settings = _setup()

    async def run():
        resp = await client.post("/dev/scenario/flood")
        assert resp.status_code == 200
        poller = Poller(settings, client=client, rng=random.Random(0))
        first = await poller.fetch_once()
        second = await poller.fetch_once()
        await client.aclose()
        return first, second

    first, second = asyncio.run(run())

    assert first.status is ConnectionStatus.CONNECTED
    assert first.source is DataSource.REAL
    assert first.reading.temperature == 22
    assert first.reading.water == 90
    assert first.reading.light == 20
    assert first.reading == second.reading


def test_dispatcher_toggles_simulated_actuator():
    sim, client, settings = _setup()

    async def run():
        dispatcher = CommandDispatcher(settings, client=client)
        on = await dispatcher.send("led")
        off = await dispatcher.send("led")
        await client.aclose()
        return on, off

    on, off = asyncio.run(run())

    assert (on.success, on.value) == (True, "ON")
    assert (off.success, off.value) == (True, "OFF")
    assert sim.state.actuators["LED"] == "OFF"


def test_connection_fail_hook_drives_fallback():
    sim, client, settings = _setup("/dev/control/connection/fail")

    async def run():
        poller = Poller(settings, client=client, rng=random.Random(0))
        result = await poller.fetch_once()
        await client.aclose()
        return poller, result

    poller, result = asyncio.run(run())

    assert result.status is ConnectionStatus.DISCONNECTED
    assert result.source is DataSource.SIMULATED
    assert poller.last_error == "HTTP error 504: Gateway Timeout"
    assert len(poller.history) == 1
