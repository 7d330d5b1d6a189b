"""Error taxonomy shared by the telemetry client and the device simulator."""

from __future__ import annotations

from typing import Any


class DeviceLinkError(Exception):
    """Base error for everything raised by devicelink."""


# -------------------- client side --------------------

class TelemetryError(DeviceLinkError):
    """A device read or command did not produce a usable answer."""


class NetworkFailure(TelemetryError):
    """Connection refused, DNS failure or a non-2xx reply."""


class Timeout(TelemetryError):
    """The request exceeded its time bound and was abandoned."""


class InvalidShape(TelemetryError):
    """The reply body was not the JSON object we expect."""


class AlreadyInFlight(TelemetryError):
    """A command is already being sent."""


# -------------------- simulator side --------------------

class SimulatorError(DeviceLinkError):
    status_code = 400

    def __init__(self, message: str, **payload: Any) -> None:
        super().__init__(message)
        self.message = message
        self.payload = payload

    def to_body(self) -> dict[str, Any]:
        return {"success": False, "error": self.message, **self.payload}


class MissingParameter(SimulatorError):
    pass


class UnknownActuator(SimulatorError):
    pass


class InvalidArgument(SimulatorError):
    pass


class NotFound(SimulatorError):
    status_code = 404
