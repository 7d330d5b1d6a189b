import asyncio
import dataclasses
import logging
import os

from devicelink.discovery import discover_device_url
from devicelink.poller import Poller
from devicelink.settings import PollerSettings

logger = logging.getLogger("watch_device")


def _log_change(field: str, value) -> None:
    if field == "reading" and value is not None:
        logger.info(
            "T=%.1f°C RH=%.1f%% steam=%.1f soil=%.1f light=%.0f%% water=%.1f",
            value.temperature, value.humidity, value.steam, value.soil, value.light, value.water,
        )
    elif field in ("status", "last_error"):
        logger.info("%s -> %s", field, getattr(value, "value", value))


async def main():
    settings = PollerSettings.from_env()
    url = await discover_device_url(settings)
    settings = dataclasses.replace(settings, device_url=url)

    async with Poller(settings) as poller:
        poller.subscribe(_log_change)
        poller.start()
        while True:
            await asyncio.sleep(60)
            logger.info("%d readings in history, source=%s", len(poller.history), poller.source.value)


if __name__ == "__main__":
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
