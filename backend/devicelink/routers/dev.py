"""Development-only routes: inspect and steer the simulated device."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from ..deps import get_simulator
from ..registry import SCENARIOS
from ..schemas import (
    ModeResponse,
    ScenarioResponse,
    SensorsOut,
    SetRequest,
    SetResponse,
    StateResponse,
)
from ..simulator import DeviceSimulator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dev", tags=["dev"])

ENDPOINTS = {
    "real": "/sensors, /actuator",
    "dev": "/dev/state, /dev/set, /dev/scenario/*, /dev/reset, /dev/control/*",
}


@router.get("/state", response_model=StateResponse)
async def get_state(sim: DeviceSimulator = Depends(get_simulator)):
    return StateResponse(
        timestamp=datetime.now(timezone.utc).isoformat(),
        mode=sim.state.mode,
        scenario=sim.state.scenario,
        state=sim.snapshot(),
        endpoints=ENDPOINTS,
    )


@router.post("/set", response_model=SetResponse)
async def set_values(payload: SetRequest, sim: DeviceSimulator = Depends(get_simulator)):
    sim.set_values(payload.sensors, payload.actuators)
    return SetResponse(
        message="State updated",
        mode=sim.state.mode,
        scenario=sim.state.scenario,
        state=sim.snapshot(),
    )


@router.get("/scenarios")
async def list_scenarios():
    return {"success": True, "scenarios": {name: dict(values) for name, values in SCENARIOS.items()}}


@router.post("/scenario/{name}", response_model=ScenarioResponse)
async def apply_scenario(name: str, sim: DeviceSimulator = Depends(get_simulator)):
    sensors = sim.apply_scenario(name)
    return ScenarioResponse(scenario=name, message=f'Scenario "{name}" applied', sensors=sensors)


@router.get("/reset", response_model=ModeResponse)
async def reset(sim: DeviceSimulator = Depends(get_simulator)):
    sim.reset()
    return ModeResponse(message="Back to random mode", mode=sim.state.mode, scenario=None)


@router.get("/control/mode/{mode}", response_model=ModeResponse)
async def set_mode(mode: str, sim: DeviceSimulator = Depends(get_simulator)):
    current = sim.set_mode(mode)
    return ModeResponse(message=f"Mode set to {current.value}", mode=current, scenario=sim.state.scenario)


@router.get("/control/connection/{status}", response_model=SensorsOut)
async def simulate_connection(status: str, sim: DeviceSimulator = Depends(get_simulator)):
    payload = await sim.simulate_connection(status)
    if payload is None:
        return PlainTextResponse("Timeout: device did not respond", status_code=504)
    return payload
