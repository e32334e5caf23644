"""Chat-facing bot layer.

Modules:
    cagebot: The Cagebot aggregate owning all per-character state.
    handlers: Command handlers for whispered requests.
    dispatcher: Whisper polling, FIFO dispatch and the busy rejection.
    gate: The non-blocking exclusivity gate.
    replies: Human and machine-readable reply helpers.
    whiteboard: Clan basement whiteboard upkeep.
"""

from cagebot.bot.cagebot import Cagebot, StatusSnapshot
from cagebot.bot.dispatcher import Dispatcher
from cagebot.bot.gate import ExclusivityGate
from cagebot.bot.handlers import CommandHandlers
from cagebot.bot.replies import Replier
from cagebot.bot.whiteboard import WhiteboardEditor


__all__ = [
    "Cagebot",
    "StatusSnapshot",
    "CommandHandlers",
    "Dispatcher",
    "ExclusivityGate",
    "Replier",
    "WhiteboardEditor",
]
