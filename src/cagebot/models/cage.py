"""Cage task models and the persisted runtime state.

The field aliases are the keys used in the runtime state file.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from cagebot.core.constants import DEFAULT_MAX_INEBRIETY
from cagebot.models.game import Clan, Player


class CageTask(BaseModel):
    """Who asked for the cage, where, and since when.

    Attributes:
        requester: Player who requested the caging.
        clan: Clan whose sewers the bot is (or is getting) caged in.
        started: Unix timestamp of the request, refreshed when caging is confirmed.
        api_responses: Whether the requester wants machine-readable replies.
        auto_release: Escape automatically once the requester makes it through the sewers.
    """

    model_config = ConfigDict(populate_by_name=True)

    requester: Player
    clan: Clan
    started: float = Field(description="Unix timestamp in seconds")
    api_responses: bool = Field(default=False, alias="apiResponses")
    auto_release: bool = Field(default=False, alias="autoRelease")


class SavedState(BaseModel):
    """Runtime state written on every cage confirmation or clear.

    A reloaded task is only trusted when ``valid_at_turn`` equals the live
    turns-played counter; anything else means the character acted since.
    """

    model_config = ConfigDict(populate_by_name=True)

    valid_at_turn: int = Field(alias="validAtTurn")
    max_drunk: int = Field(default=DEFAULT_MAX_INEBRIETY, alias="maxDrunk")
    cage_task: CageTask | None = Field(default=None, alias="cageTask")


__all__ = [
    "CageTask",
    "SavedState",
]
