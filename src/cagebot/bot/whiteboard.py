"""Clan basement whiteboard upkeep.

Clans that share the bot keep a line on their basement whiteboard saying
whether it is free. When the configured uncaged line is present the bot swaps
it for the caged line on starting a run, and back again when the task ends.
"""

from __future__ import annotations

from cagebot.client.base import GameClient
from cagebot.core.config import WhiteboardSettings
from cagebot.core.logging import get_logger
from cagebot.models.game import Player


logger = get_logger(__name__)


def render(template: str, player: Player) -> str:
    """Fill the ``${name}`` and ``${id}`` placeholders."""
    return template.replace("${name}", player.name).replace("${id}", player.id)


class WhiteboardEditor:
    """Swaps the bot's status line on the current clan's whiteboard."""

    def __init__(self, client: GameClient, settings: WhiteboardSettings) -> None:
        self.client = client
        self.settings = settings

    async def update(self, caged: bool, *, auto_escaped: bool = False) -> bool:
        """Rewrite the status line.

        Args:
            caged: Whether the bot is now caged (or about to be).
            auto_escaped: Use the auto-escape message instead of the uncaged one.

        Returns:
            True if the whiteboard was edited.
        """
        me = self.client.me
        if not self.settings.enabled or me is None:
            return False

        whiteboard = await self.client.get_whiteboard()
        if whiteboard is None or not whiteboard.editable:
            return False

        occupied = render(self.settings.caged_message or "", me)
        unoccupied = render(self.settings.uncaged_message or "", me)

        if caged:
            if unoccupied not in whiteboard.text:
                return False
            text = whiteboard.text.replace(unoccupied, occupied)
            logger.info("Editing basement whiteboard to show the bot is being caged")
        else:
            if occupied not in whiteboard.text:
                return False
            replacement = unoccupied
            if auto_escaped and self.settings.auto_escape_message:
                replacement = render(self.settings.auto_escape_message, me)
            text = whiteboard.text.replace(occupied, replacement)
            logger.info("Editing basement whiteboard to show the bot is free")

        await self.client.set_whiteboard(text)
        return True


__all__ = ["WhiteboardEditor", "render"]
