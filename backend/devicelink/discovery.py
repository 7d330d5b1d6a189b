import logging

import httpx

from .settings import PollerSettings

logger = logging.getLogger(__name__)

PROBE_TIMEOUT = 1.5


async def discover_device_url(
    settings: PollerSettings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """Prefer the simulator when it answers ``/dev/state``, else the physical board."""

    settings = settings or PollerSettings.from_env()
    try:
        async with httpx.AsyncClient(timeout=PROBE_TIMEOUT, transport=transport) as client:
            response = await client.get(f"{settings.device_url}/dev/state")
    except httpx.RequestError as exc:
        logger.info("No simulator at %s (%s); using %s", settings.device_url, exc, settings.fallback_url)
        return settings.fallback_url

    if response.is_success:
        logger.info("Simulator detected at %s", settings.device_url)
        return settings.device_url
    logger.info("Simulator probe returned HTTP %s; using %s", response.status_code, settings.fallback_url)
    return settings.fallback_url
