"""Main entry point for leaguebot.

Initializes logging in two phases (defaults then config-driven),
builds the dispatch pipeline from config, and runs the Discord client
with graceful shutdown on SIGTERM/SIGINT. Supports both Unix signal
handlers and Windows SIGINT fallback.

Key functions:
    build_dispatcher: Wire registry, cooldowns, backend and
        credentials into a Dispatcher.
    main: Async entry point.
    run: Synchronous wrapper that calls asyncio.run(main()).
"""

import asyncio
import signal
import sys
from functools import partial

import structlog

from .logging_config import setup_logging

__version__ = "1.0.0"


def build_dispatcher(config):
    """Create the dispatcher and its collaborators from a Config."""
    from .backend import BackendClient
    from .commands import CommandRegistry, builtin_commands
    from .cooldowns import CooldownTracker
    from .credentials import CredentialCache
    from .dispatcher import Dispatcher

    registry = CommandRegistry.load(
        builtin_commands(default_cooldown=config.default_cooldown),
        overrides=config.command_overrides,
    )
    backend = BackendClient(config.api_url, timeout=config.request_timeout)
    credentials = CredentialCache(
        partial(
            backend.authenticate,
            config.interact_username,
            config.interact_password,
        ),
        validity=config.credential_validity_seconds,
    )
    return Dispatcher(
        registry=registry,
        cooldowns=CooldownTracker(),
        credentials=credentials,
        backend=backend,
        prefix=config.prefix,
        palette=config.palette,
    )


async def main():
    """Main async entry point."""
    # Phase 1: defaults, cache_logger_on_first_use=False
    setup_logging()
    logger = structlog.get_logger("leaguebot")

    logger.info("leaguebot_starting", version=__version__)

    # Import here to ensure logging is configured first
    from .bot import LeagueBot
    from .config import get_config
    from .exceptions import ConfigurationError
    from .keepalive import KeepAliveServer

    config = get_config()
    config.validate()

    # Phase 2: reconfigure with real config, cache_logger_on_first_use=True
    setup_logging(config)

    if not config.bot_token:
        logger.error("bot_token_missing")
        sys.exit(1)

    try:
        dispatcher = build_dispatcher(config)
    except ConfigurationError as e:
        logger.error("configuration_error", error=str(e), setting=e.setting_name)
        sys.exit(1)

    keepalive = None
    if config.keepalive_enabled:
        keepalive = KeepAliveServer(config.keepalive_host, config.keepalive_port)
    bot = LeagueBot(dispatcher, keepalive=keepalive)

    # Setup graceful shutdown
    loop = asyncio.get_running_loop()
    shutdown_event = asyncio.Event()

    def handle_shutdown(sig):
        logger.info("shutdown_signal_received", signal=sig.name)
        shutdown_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, handle_shutdown, sig)
        except NotImplementedError:
            # Windows: add_signal_handler not supported.
            if sig == signal.SIGINT:
                signal.signal(
                    signal.SIGINT,
                    lambda s, f: handle_shutdown(signal.SIGINT),
                )

    try:
        bot_task = asyncio.create_task(bot.start(config.bot_token))
        shutdown_task = asyncio.create_task(shutdown_event.wait())

        done, _ = await asyncio.wait(
            {bot_task, shutdown_task}, return_when=asyncio.FIRST_COMPLETED
        )
        shutdown_task.cancel()
        if bot_task in done:
            # Login failure or gateway error surfaces here
            bot_task.result()

    except Exception as e:
        logger.error("bot_error", error=str(e))
        raise
    finally:
        if not bot.is_closed():
            await bot.close()
        logger.info("leaguebot_stopped")


def run():
    """Synchronous entry point for the ``leaguebot`` console script."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
