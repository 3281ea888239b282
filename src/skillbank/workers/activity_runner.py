"""Standalone runner for the activity event consumer.

Reads session and progress events from Redis Streams and drives badge
awards and skill progress until SIGINT or SIGTERM.

Usage: python -m skillbank.workers.activity_runner
"""

from __future__ import annotations

import asyncio
import logging
import signal

from skillbank.config import get_settings
from skillbank.middleware.logging import setup_logging
from skillbank.workers.activity_worker import activity_shutdown, activity_startup, consume_activity_events

logger = logging.getLogger(__name__)

STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


async def main() -> None:
    """Run the activity consumer until a stop signal arrives."""
    settings = get_settings()
    setup_logging(settings)

    stop = asyncio.Event()
    ctx: dict = {"stop": stop}  # type: ignore[type-arg]
    await activity_startup(ctx)

    loop = asyncio.get_running_loop()
    for sig in STOP_SIGNALS:
        loop.add_signal_handler(sig, stop.set)

    logger.info("Starting activity consumer (consumer=%s)", settings.activity_consumer_name)

    try:
        await consume_activity_events(ctx)
    finally:
        for sig in STOP_SIGNALS:
            loop.remove_signal_handler(sig)
        await activity_shutdown(ctx)
        logger.info("Activity consumer stopped")


if __name__ == "__main__":
    asyncio.run(main())
