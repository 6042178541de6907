"""Main entry point for switchwire.

Initializes logging in two phases (defaults then config-driven),
builds the InteractionBot and its HTTP adapter, and serves until
SIGTERM/SIGINT.

Key functions:
    main: Async entry point -- logging, config, bot, HTTP server and
        signal handlers.
    run: Synchronous wrapper for the ``switchwire`` console script.
"""

import asyncio
import signal

import structlog
from aiohttp import web

from .logging_config import setup_logging


async def main():
    """Main async entry point."""
    # Phase 1: defaults, cache_logger_on_first_use=False
    setup_logging()
    logger = structlog.get_logger("switchwire")

    # Import here to ensure logging is configured first
    from .bot import InteractionBot
    from .config import get_config
    from .server import create_app

    config = get_config()
    config.validate()

    # Phase 2: reconfigure with real config
    setup_logging(config)
    logger.info("switchwire_starting", host=config.server_host, port=config.server_port)

    bot = InteractionBot(config)
    runner = web.AppRunner(create_app(bot))
    await runner.setup()

    loop = asyncio.get_running_loop()
    shutdown_event = asyncio.Event()

    def handle_shutdown(sig):
        logger.info("shutdown_signal_received", signal=sig.name)
        shutdown_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, handle_shutdown, sig)
        except NotImplementedError:
            if sig == signal.SIGINT:
                signal.signal(
                    signal.SIGINT,
                    lambda s, f: handle_shutdown(signal.SIGINT),
                )

    try:
        site = web.TCPSite(runner, config.server_host, config.server_port)
        await site.start()
        logger.info("server_listening", host=config.server_host, port=config.server_port)
        await shutdown_event.wait()
    except Exception as e:
        logger.error("server_error", error=str(e))
        raise
    finally:
        # Cleanup stops the bot through the app's on_cleanup hook
        await runner.cleanup()
        logger.info("switchwire_stopped")


def run():
    """Synchronous entry point for the ``switchwire`` console script."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
