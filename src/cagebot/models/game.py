"""Game-side models: players, clans, character status and chat whispers.

Models:
    Player: A player identity as the game reports it.
    Clan: A clan the bot is whitelisted in.
    GameStatus: Authoritative character status from the status API.
    ResourceState: Remaining food/drink capacity derived from a status.
    Whiteboard: Clan basement whiteboard contents.
    ChatMessage: An inbound whisper.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

from cagebot.core.constants import DEFAULT_MAX_INEBRIETY, MAX_FULLNESS


class Player(BaseModel):
    """A player identity.

    IDs are kept as strings, the way the game's chat API sends them.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Player ID")
    name: str = Field(description="Player name")

    def __str__(self) -> str:
        return f"{self.name} (#{self.id})"


class Clan(BaseModel):
    """A clan the bot can whitelist into."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Clan ID")
    name: str = Field(description="Clan name")


class GameStatus(BaseModel):
    """Character status as reported by ``api.php?what=status``.

    Attributes:
        adventures: Adventures remaining today.
        full: Fullness used.
        drunk: Inebriety used.
        level: Character level.
        turns_played: Total turns played, the server's authoritative counter.
        rollover: Unix timestamp of the next rollover.
        familiar: Active familiar ID, if any.
        meat: Meat on hand.
        equipment: Item ID per equipment slot.
    """

    model_config = ConfigDict(frozen=True)

    adventures: int = 0
    full: int = 0
    drunk: int = 0
    level: int = 1
    turns_played: int = 0
    rollover: int = 0
    familiar: int | None = None
    meat: int = 0
    equipment: dict[str, int] = Field(default_factory=dict)

    @classmethod
    def unavailable(cls) -> "GameStatus":
        """Pessimistic status used when the server did not answer.

        Low adventures and a full liver stop any loop relying on it, and a
        zero turn counter makes reconciliation report a desync.
        """
        return cls(adventures=10, full=14, drunk=19, level=1, turns_played=0)


@dataclass(frozen=True)
class ResourceState:
    """Remaining consumption capacity, recomputed from every status.

    Attributes:
        budget: Adventures remaining.
        food_used: Fullness used.
        drink_used: Inebriety used.
        max_food: Stomach capacity.
        max_drink: Liver capacity.
    """

    budget: int
    food_used: int
    drink_used: int
    max_food: int = MAX_FULLNESS
    max_drink: int = DEFAULT_MAX_INEBRIETY

    @classmethod
    def from_status(cls, status: GameStatus, max_drink: int) -> "ResourceState":
        return cls(
            budget=status.adventures,
            food_used=status.full,
            drink_used=status.drunk,
            max_drink=max_drink,
        )

    @property
    def food_remaining(self) -> int:
        return self.max_food - self.food_used

    @property
    def drink_remaining(self) -> int:
        return self.max_drink - self.drink_used

    @property
    def saturated(self) -> bool:
        """True once neither food nor drink can be consumed."""
        return self.food_remaining <= 0 and self.drink_remaining <= 0


class Whiteboard(BaseModel):
    """Clan basement whiteboard."""

    text: str = ""
    editable: bool = False


@dataclass
class ChatMessage:
    """An inbound private whisper.

    Attributes:
        who: Sender.
        text: Raw message text.
        api: Whether the sender asked for machine-readable replies (".api").
    """

    who: Player
    text: str
    api: bool = False

    @property
    def command(self) -> str:
        """First word of the message, lower-cased, without the ``.api`` suffix."""
        word = self.text.strip().split(" ", 1)[0].lower()
        return word.removesuffix(".api")

    @property
    def argument(self) -> str:
        """Everything after the first space, or an empty string."""
        parts = self.text.strip().split(" ", 1)
        return parts[1].strip() if len(parts) > 1 else ""


__all__ = [
    "Player",
    "Clan",
    "GameStatus",
    "ResourceState",
    "Whiteboard",
    "ChatMessage",
]
