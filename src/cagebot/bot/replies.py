"""Outbound replies: human-readable text and machine-readable notices.

Requesters who add ``.api`` to a command get flat JSON objects back; everyone
else gets whispered prose. Every reply in the bot goes through the Replier so
the choice between the two happens in one place.
"""

from __future__ import annotations

from cagebot.client.base import GameClient
from cagebot.core.logging import get_logger
from cagebot.models.game import ChatMessage, Player
from cagebot.models.responses import Detail, NotifyResponse, RequestStatus


logger = get_logger(__name__)


BUSY_TEXT = "Sorry, I am currently busy processing a request. Please wait, or send a status request."
DIDNT_UNDERSTAND_TEXT = (
    "I'm afraid I didn't understand that. Whisper me \"help\" for details of how to use me."
)
CHEWED_OUT_TEXT = "Chewed out! I am now uncaged."

HELP_LINES = (
    "My commands:",
    "- status: Get my current status",
    "- diet: Get an estimate of the adventures my remaining food and drink will give",
    "- cage [clanname]: Try to get caged in the specified clan's hobopolis instance."
    " Add \"autorelease\" to have me escape once you make it through the sewers",
    "- escape: If you're the person who requested I got caged, chews out of the cage I'm in",
    "- release: Chew out of the cage, REGARDLESS of who is responsible for the caging."
    " Only usable if I've been caged for an hour or something's gone wrong.",
    "- help: Displays this message.",
    "Add .api to a command (e.g. status.api) for machine-readable replies.",
)


def human_time(seconds: float) -> str:
    """Format seconds as H:MM:SS."""
    total = max(int(seconds), 0)
    return f"{total // 3600}:{(total % 3600) // 60:02d}:{total % 60:02d}"


def plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


class Replier:
    """Sends replies through the game client.

    Attributes:
        client: Game client used to whisper.
    """

    def __init__(self, client: GameClient) -> None:
        self.client = client

    async def say(self, recipient: Player, *lines: str) -> None:
        """Whisper each line as its own message."""
        for line in lines:
            await self.client.send_private_message(recipient, line)

    async def notify(
        self,
        recipient: Player,
        *,
        api: bool,
        status: RequestStatus,
        detail: Detail | str,
        human: str | None = None,
    ) -> None:
        """Send a notice, as JSON for API users and as ``human`` otherwise.

        API users always get the notice; human users only when text is given.
        """
        if api:
            await self.client.send_private_message(
                recipient, NotifyResponse(status=status, details=str(detail)).to_chat()
            )
        elif human:
            await self.client.send_private_message(recipient, human)

    async def error(self, message: ChatMessage, detail: Detail, human: str) -> None:
        logger.info("Rejecting request", requester=str(message.who), detail=detail.value)
        await self.notify(
            message.who, api=message.api, status=RequestStatus.ERROR, detail=detail, human=human
        )

    async def busy(self, message: ChatMessage) -> None:
        await self.notify(
            message.who,
            api=message.api,
            status=RequestStatus.BUSY,
            detail=Detail.ALREADY_IN_USE,
            human=BUSY_TEXT,
        )


__all__ = [
    "BUSY_TEXT",
    "DIDNT_UNDERSTAND_TEXT",
    "CHEWED_OUT_TEXT",
    "HELP_LINES",
    "human_time",
    "plural",
    "Replier",
]
