"""Game transport: the abstract client contract and its HTTP implementation.

Modules:
    base: GameClient, the interface the engine depends on.
    kol: KoLClient, the httpx implementation against the live game.
    pages: Pure parsers for non-adventure pages.
    messages: Outbound message splitting.
"""

from __future__ import annotations

from cagebot.client.base import GameClient
from cagebot.client.kol import KoLClient
from cagebot.client.messages import split_message


__all__ = [
    "GameClient",
    "KoLClient",
    "split_message",
]
