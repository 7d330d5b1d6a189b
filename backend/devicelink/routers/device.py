"""Routes that mirror the real board's firmware."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse

from ..deps import get_simulator
from ..errors import SimulatorError
from ..schemas import SensorsOut
from ..simulator import DeviceSimulator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["device"])


@router.get("/sensors", response_model=SensorsOut)
async def read_sensors(sim: DeviceSimulator = Depends(get_simulator)):
    logger.info("GET /sensors")
    payload = sim.sensors_payload()
    await sim.read_latency()
    return payload


@router.get("/actuator", response_class=PlainTextResponse)
async def actuator(
    cmd: Optional[str] = Query(None),
    value: Optional[str] = Query(None),
    sim: DeviceSimulator = Depends(get_simulator),
):
    logger.info("GET /actuator?cmd=%s&value=%s", cmd, value or "")
    try:
        line = sim.command(cmd, value)
    except SimulatorError as exc:
        return PlainTextResponse(f"ERRO: {exc.message}", status_code=400)
    await sim.command_latency()
    return PlainTextResponse(line)
