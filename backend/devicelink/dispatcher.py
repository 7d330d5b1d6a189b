import asyncio
import logging
from typing import Optional

import httpx

from .errors import AlreadyInFlight, NetworkFailure, TelemetryError, Timeout
from .schemas import CommandResult
from .settings import PollerSettings

logger = logging.getLogger(__name__)

ALREADY_SENDING = "already sending"


def _parse_status_line(text: str) -> Optional[str]:
    # "OK:LED=ON" -> "ON"
    head, sep, tail = text.strip().partition("=")
    if not sep or not head.startswith("OK:"):
        return None
    return tail or None


class CommandDispatcher:
    """Sends actuator commands one at a time.

    A call made while another is still in flight is turned away at once with
    ``success=False``; nothing is queued.
    """

    def __init__(
        self,
        settings: PollerSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings or PollerSettings.from_env()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self.settings.device_url,
            timeout=httpx.Timeout(self.settings.command_timeout),
        )
        self._sending = False

    @property
    def is_sending(self) -> bool:
        return self._sending

    async def _dispatch(self, command: str, value: Optional[str]) -> str:
        params = {"cmd": command}
        if value:
            params["value"] = value
        timeout = self.settings.command_timeout
        try:
            response = await asyncio.wait_for(
                self._client.get("/actuator", params=params), timeout=timeout
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise Timeout(f"Command timed out after {timeout:g}s") from exc
        except httpx.RequestError as exc:
            raise NetworkFailure(str(exc) or exc.__class__.__name__) from exc

        if not response.is_success:
            detail = response.text.strip() or response.reason_phrase
            raise NetworkFailure(f"HTTP error {response.status_code}: {detail}")
        return response.text

    async def send(self, command: str, value: Optional[str] = None) -> CommandResult:
        try:
            return await self.send_or_raise(command, value)
        except AlreadyInFlight as exc:
            logger.debug("Command %s rejected: %s", command, exc)
            return CommandResult(success=False, command=command, error=str(exc))
        except TelemetryError as exc:
            logger.warning("Command %s failed: %s", command, exc)
            return CommandResult(success=False, command=command, error=str(exc))
        except Exception as exc:  # noqa: BLE001 - a command always ends with a result
            logger.exception("Unexpected error while sending %s", command)
            return CommandResult(success=False, command=command, error=str(exc) or exc.__class__.__name__)

    async def send_or_raise(self, command: str, value: Optional[str] = None) -> CommandResult:
        """Like ``send`` but raises ``AlreadyInFlight`` or ``TelemetryError`` instead of returning failure."""

        if self._sending:
            raise AlreadyInFlight(ALREADY_SENDING)
        self._sending = True
        try:
            body = await self._dispatch(command, value)
        finally:
            self._sending = False
        logger.info("Command sent: %s -> %s", command, body.strip())
        return CommandResult(success=True, command=command, value=_parse_status_line(body))

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
