import random
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from devicelink.main import create_app
from devicelink.registry import SCENARIOS
from devicelink.settings import SimulatorSettings
from devicelink.simulator import DeviceSimulator
from devicelink.utils import normalize_light

CANONICAL = ["normal", "hot_day", "cold_night", "dry_soil", "flood", "greenhouse", "test_min", "test_max"]


class SleepRecorder:
    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def sim(sleeper):
    return DeviceSimulator(SimulatorSettings(latency=False), rng=random.Random(42), sleep=sleeper)


@pytest.fixture
def client(sim):
    return TestClient(create_app(sim))


def test_sensors_random_mode_returns_normalized_light(client):
    body = client.get("/sensors").json()

    assert set(body) == {"temperature", "humidity", "steam", "soil", "light", "water", "light_normalized"}
    assert 0 <= body["light"] <= 4095
    assert body["light_normalized"] == normalize_light(body["light"])


def test_random_mode_rerandomizes_and_writes_back(client, sim):
    first = client.get("/sensors").json()
    assert sim.state.sensors.temperature == first["temperature"]
    second = client.get("/sensors").json()
    assert first != second


def test_random_light_stays_within_calibration_max():
    sim = DeviceSimulator(SimulatorSettings(latency=False, light_calibration_max=1023), rng=random.Random(1))

    lights = [sim.read_sensors().light for _ in range(50)]

    assert all(0 <= light <= 1023 for light in lights)
    assert sim.sensors_payload().light_normalized <= 100


def test_scenario_is_deterministic_until_next_mutation(client):
    resp = client.post("/dev/scenario/flood")
    assert resp.status_code == 200
    assert resp.json()["scenario"] == "flood"

    for _ in range(3):
        body = client.get("/sensors").json()
        for name, value in SCENARIOS["flood"].items():
            assert body[name] == value
        assert body["light_normalized"] == 20

    state = client.get("/dev/state").json()
    assert state["mode"] == "scenario"
    assert state["scenario"] == "flood"


def test_unknown_scenario_lists_presets(client, sim):
    resp = client.post("/dev/scenario/not_a_real_name")

    assert resp.status_code == 404
    body = resp.json()
    assert body["success"] is False
    assert sorted(body["available"]) == sorted(CANONICAL)
    assert sim.state.mode.value == "random"


def test_list_scenarios(client):
    body = client.get("/dev/scenarios").json()
    assert sorted(body["scenarios"]) == sorted(CANONICAL)


def test_actuator_toggle_is_case_insensitive(client):
    assert client.get("/actuator", params={"cmd": "led"}).text == "OK:LED=ON"
    assert client.get("/actuator", params={"cmd": "LED"}).text == "OK:LED=OFF"


def test_actuator_explicit_value_is_stored_verbatim(client, sim):
    resp = client.get("/actuator", params={"cmd": "fan", "value": "half"})

    assert resp.status_code == 200
    assert resp.text == "OK:FAN=HALF"
    assert sim.state.actuators["FAN"] == "HALF"


def test_actuator_requires_cmd(client):
    resp = client.get("/actuator")
    assert resp.status_code == 400
    assert resp.text.startswith("ERRO:")


def test_actuator_rejects_unknown_name(client, sim):
    resp = client.get("/actuator", params={"cmd": "pump"})

    assert resp.status_code == 400
    assert "PUMP" in resp.text
    assert "PUMP" not in sim.state.actuators


def test_feed_deployment_swaps_buzzer():
    settings = SimulatorSettings(latency=False, actuators=("LED", "WATER", "FAN", "FEED"))
    client = TestClient(create_app(DeviceSimulator(settings)))

    assert client.get("/actuator", params={"cmd": "feed"}).text == "OK:FEED=ON"
    assert client.get("/actuator", params={"cmd": "buzzer"}).status_code == 400


def test_set_sensors_switches_to_custom_scenario(client):
    resp = client.post("/dev/set", json={"sensors": {"temperature": 31.5, "light": 4095}})

    assert resp.status_code == 200
    body = resp.json()
    assert body["mode"] == "scenario"
    assert body["scenario"] == "custom"
    assert body["state"]["sensors"]["temperature"] == 31.5
    assert body["state"]["config"]["lightCalibrationMax"] == 4095

    reading = client.get("/sensors").json()
    assert reading["temperature"] == 31.5
    assert reading["light_normalized"] == 100


def test_set_empty_sensors_still_switches_to_custom(client, sim):
    before = sim.state.sensors
    body = client.post("/dev/set", json={"sensors": {}}).json()

    assert body["mode"] == "scenario"
    assert body["scenario"] == "custom"
    assert sim.state.sensors == before


def test_set_actuators_only_keeps_mode(client):
    body = client.post("/dev/set", json={"actuators": {"water": "on"}}).json()

    assert body["mode"] == "random"
    assert body["scenario"] is None
    assert body["state"]["actuators"]["WATER"] == "ON"


def test_set_rejects_unknown_actuator(client, sim):
    resp = client.post("/dev/set", json={"actuators": {"LASER": "ON"}})

    assert resp.status_code == 400
    assert resp.json()["available"] == list(sim.state.actuator_names)
    assert "LASER" not in sim.state.actuators


def test_set_rejects_unknown_sensor(client, sim):
    resp = client.post("/dev/set", json={"sensors": {"co2": 400}})

    assert resp.status_code == 400
    assert sim.state.mode.value == "random"


def test_reset_returns_to_random(client):
    client.post("/dev/scenario/hot_day")
    body = client.get("/dev/reset").json()

    assert body["success"] is True
    assert body["mode"] == "random"
    assert body["scenario"] is None


def test_mode_switch_keeps_scenario_label(client):
    client.post("/dev/scenario/greenhouse")
    client.get("/dev/control/mode/random")
    assert client.get("/dev/state").json()["scenario"] is None

    client.post("/dev/scenario/greenhouse")
    body = client.get("/dev/control/mode/scenario").json()
    assert body["mode"] == "scenario"
    assert body["scenario"] == "greenhouse"


def test_mode_switch_rejects_unknown_mode(client):
    resp = client.get("/dev/control/mode/chaos")

    assert resp.status_code == 400
    assert resp.json()["available"] == ["random", "scenario"]


def test_connection_fail_times_out(client, sleeper):
    resp = client.get("/dev/control/connection/fail")

    assert resp.status_code == 504
    assert sleeper.calls == [5.0]


def test_connection_slow_and_normal(client, sleeper):
    assert client.get("/dev/control/connection/slow").status_code == 200
    assert client.get("/dev/control/connection/ok").status_code == 200
    assert sleeper.calls == [3.0, 0.1]


def test_latency_uses_injected_sleep(sleeper):
    sim = DeviceSimulator(SimulatorSettings(latency=True), sleep=sleeper)
    client = TestClient(create_app(sim))

    client.get("/sensors")
    client.get("/actuator", params={"cmd": "LED"})

    assert len(sleeper.calls) == 2
    assert 0.05 <= sleeper.calls[0] <= 0.15
    assert sleeper.calls[1] == 0.1


def test_state_reports_full_device(client):
    body = client.get("/dev/state").json()

    assert body["success"] is True
    assert body["mode"] == "random"
    assert set(body["state"]) == {"sensors", "actuators", "config"}
    assert body["state"]["actuators"] == {"LED": "OFF", "WATER": "OFF", "FAN": "OFF", "BUZZER": "OFF"}


def test_isolated_simulators_do_not_share_state():
    a = TestClient(create_app(DeviceSimulator(SimulatorSettings(latency=False))))
    b = TestClient(create_app(DeviceSimulator(SimulatorSettings(latency=False))))

    a.get("/actuator", params={"cmd": "LED"})

    assert b.get("/dev/state").json()["state"]["actuators"]["LED"] == "OFF"


def test_health(client):
    assert client.get("/health").json() == {"ok": True}
