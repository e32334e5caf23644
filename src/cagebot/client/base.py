"""Abstract game client.

Everything the bot knows about the game arrives through this interface. The
engine only ever talks to a GameClient, which keeps the adventure loop
testable against canned pages.

Transient failures are not exceptions here: page methods return ``None`` and
``get_status`` returns a pessimistic status, so the loop re-probes on its
next iteration instead of crashing.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from cagebot.models.game import ChatMessage, Clan, GameStatus, Player, Whiteboard


class GameClient(ABC):
    """Narrow contract between the bot and the game server."""

    @property
    @abstractmethod
    def me(self) -> Player | None:
        """The logged-in character, once known."""
        ...

    # -------------------------------------------------------------------------
    # Session
    # -------------------------------------------------------------------------

    @abstractmethod
    async def log_in(self) -> bool:
        """Log in if needed. Returns False while rollover is in progress."""
        ...

    @abstractmethod
    async def seconds_to_rollover(self) -> int:
        """Seconds until the next daily maintenance window."""
        ...

    # -------------------------------------------------------------------------
    # Adventuring
    # -------------------------------------------------------------------------

    @abstractmethod
    async def adventure(self) -> str | None:
        """Spend one adventure in the sewers and return the resulting page."""
        ...

    @abstractmethod
    async def choose(self, choice: int, option: int) -> str | None:
        """Pick an option of the pending choice adventure."""
        ...

    @abstractmethod
    async def visit_place(self) -> str | None:
        """Load the current location page without spending a turn."""
        ...

    # -------------------------------------------------------------------------
    # Character
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_status(self) -> GameStatus:
        """Authoritative character status."""
        ...

    @abstractmethod
    async def get_inventory(self) -> dict[int, int]:
        """Item ID to quantity."""
        ...

    @abstractmethod
    async def eat(self, item_id: int) -> str | None: ...

    @abstractmethod
    async def drink(self, item_id: int) -> str | None: ...

    @abstractmethod
    async def equip(self, item_id: int) -> None: ...

    @abstractmethod
    async def has_liver_of_steel(self) -> bool:
        """Whether the character sheet lists Liver of Steel."""
        ...

    @abstractmethod
    async def combat_macro_id(self, name: str) -> str | None:
        """ID of the combat macro called ``name``, if it exists."""
        ...

    @abstractmethod
    async def configure_autoattack(self, macro_id: str) -> None:
        """Use the macro as autoattack, bosses included."""
        ...

    # -------------------------------------------------------------------------
    # Clans
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_whitelists(self) -> list[Clan]: ...

    @abstractmethod
    async def join_clan(self, clan: Clan) -> None: ...

    @abstractmethod
    async def my_clan_id(self) -> str | None: ...

    @abstractmethod
    async def has_sewer_access(self) -> bool:
        """Whether the current clan's Hobopolis sewers can be entered."""
        ...

    @abstractmethod
    async def read_raid_log(self) -> str | None: ...

    @abstractmethod
    async def get_whiteboard(self) -> Whiteboard | None: ...

    @abstractmethod
    async def set_whiteboard(self, text: str) -> None: ...

    # -------------------------------------------------------------------------
    # Chat
    # -------------------------------------------------------------------------

    @abstractmethod
    async def fetch_new_whispers(self) -> list[ChatMessage]:
        """Whispers received since the last call, already acknowledged."""
        ...

    @abstractmethod
    async def send_private_message(self, recipient: Player, text: str) -> None:
        """Whisper a player. Long texts are split by the implementation."""
        ...


__all__ = ["GameClient"]
