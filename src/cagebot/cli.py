"""Command-line entry point.

Loads settings, configures logging, logs in, performs the one-time setup and
then serves whispers until interrupted.
"""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence

from cagebot import __version__
from cagebot.bot.cagebot import Cagebot
from cagebot.bot.dispatcher import Dispatcher
from cagebot.bot.handlers import CommandHandlers
from cagebot.client.kol import KoLClient
from cagebot.core.config import Settings, get_settings
from cagebot.core.exceptions import CagebotError, ConfigurationError
from cagebot.core.logging import configure_logging, get_logger


logger = get_logger(__name__)

ROLLOVER_WAIT_SECONDS = 60


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cagebot",
        description="Hobopolis cage sitter for the Kingdom of Loathing",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override CAGEBOT_LOG_LEVEL",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit JSON log lines instead of the console renderer",
    )
    parser.add_argument("--log-file", help="Also write logs to this file")
    return parser


async def serve(settings: Settings) -> None:
    """Log in, run setup and dispatch whispers until cancelled."""
    async with KoLClient(settings.kol) as client:
        while not await client.log_in():
            logger.info("Waiting for rollover to finish", seconds=ROLLOVER_WAIT_SECONDS)
            await asyncio.sleep(ROLLOVER_WAIT_SECONDS)

        bot = Cagebot(client, settings)
        await bot.setup()

        dispatcher = Dispatcher(bot, CommandHandlers(bot), settings.dispatch)
        try:
            await dispatcher.run()
        finally:
            dispatcher.stop()


def main(argv: Sequence[str] | None = None) -> int:
    """Run the bot.

    Returns:
        Process exit code.
    """
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings()
    except ConfigurationError as exc:
        configure_logging()
        logger.critical("Invalid configuration", error=exc.message, **exc.details)
        return 1

    configure_logging(
        level=args.log_level or settings.log_level,
        json_format=args.json_logs or settings.json_logs,
        log_file=args.log_file,
    )

    if not settings.kol.has_credentials:
        logger.critical(
            "No game credentials configured",
            hint="set CAGEBOT_KOL_USERNAME and CAGEBOT_KOL_PASSWORD",
        )
        return 1

    logger.info("Starting Cagebot", version=__version__, username=settings.kol.username)
    try:
        asyncio.run(serve(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    except CagebotError as exc:
        logger.critical("Cagebot stopped", error=exc.message, **exc.details)
        return 1
    return 0


__all__ = ["build_parser", "main", "serve"]
