"""Cagebot - Hobopolis cage sitter for the Kingdom of Loathing.

A bot character that takes requests by whisper, adventures in the Hobopolis
sewers until it gets trapped in the C. H. U. M. cage, and waits there so
clanmates can pass through to the town square.

ARCHITECTURE:
- The game server owns TRUTH (adventures, fullness, inebriety, cage state)
- The bot keeps ESTIMATES between checks and reconciles them against the server
- Only one mutating command runs at a time; status queries are always answered

Example:
    >>> from cagebot import Cagebot, KoLClient, get_settings
    >>>
    >>> settings = get_settings()
    >>> client = KoLClient(settings.kol)
    >>> bot = Cagebot(client, settings)
    >>> await client.log_in()
    >>> await bot.setup()

Modules:
    core: Configuration, logging, constants and exceptions.
    models: Pydantic V2 schemas for game state, cage tasks and replies.
    client: Game client interface and its HTTP implementation.
    engine: Event classifier, diet, turn budget, cage lifecycle and adventure loop.
    storage: Runtime state persistence.
    bot: Command handlers, whisper dispatch and the exclusivity gate.
"""

from __future__ import annotations

# Core
from cagebot.core.config import Settings, get_settings
from cagebot.core.exceptions import CagebotError
from cagebot.core.logging import configure_logging, get_logger

# Client
from cagebot.client import GameClient, KoLClient

# Engine
from cagebot.engine import (
    AdventureLoop,
    CageTaskLifecycle,
    LoopState,
    LoopSummary,
    ResourceLedger,
    TurnBudgetTracker,
)

# Bot
from cagebot.bot import Cagebot, CommandHandlers, Dispatcher, ExclusivityGate


__version__ = "0.1.0"
__all__ = [
    # Version info
    "__version__",
    # Core
    "CagebotError",
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    # Client
    "GameClient",
    "KoLClient",
    # Engine
    "AdventureLoop",
    "CageTaskLifecycle",
    "LoopState",
    "LoopSummary",
    "ResourceLedger",
    "TurnBudgetTracker",
    # Bot
    "Cagebot",
    "CommandHandlers",
    "Dispatcher",
    "ExclusivityGate",
]
