#!/usr/bin/env python3
"""Print notifications of one resource: ``python main.py <endpoint> <resource>``."""
import asyncio, logging, sys
from mbed_connector.config import ConnectorConfig, configure
from mbed_connector import DeviceConnector, NotificationType

log = logging.getLogger("main")

async def async_main(endpoint: str, resource: str):
    configure()
    async with DeviceConnector(ConnectorConfig.from_settings()) as connector:
        connector.on(NotificationType.REGISTRATION, lambda reg: log.info("registered: %s", reg.endpoint))
        connector.on(NotificationType.DEREGISTRATION, lambda ep: log.info("de-registered: %s", ep))
        connector.on(NotificationType.ERROR, lambda err: log.error("channel error: %s", err))

        await connector.start_long_polling()
        await connector.subscribe(
            endpoint, resource,
            lambda n: log.info("%s%s = %r", n.endpoint, n.path, n.payload),
        )
        # runs until the channel gives up
        await connector.channel.join()

if __name__ == "__main__":
    if len(sys.argv) != 3:
        sys.exit(__doc__)
    try:
        asyncio.run(async_main(sys.argv[1], sys.argv[2]))
    except KeyboardInterrupt:
        sys.exit("🌙  graceful shutdown")
