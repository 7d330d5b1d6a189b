from fastapi import Request

from .simulator import DeviceSimulator


def get_simulator(request: Request) -> DeviceSimulator:
    return request.app.state.simulator
