"""Pydantic schemas for Cagebot.

Modules:
    game: Players, clans, character status and whispers.
    cage: The cage task and the persisted runtime state.
    diet: Diet tables.
    responses: Machine-readable replies.
"""

from __future__ import annotations

from cagebot.models.cage import CageTask, SavedState
from cagebot.models.diet import ConsumableKind, ConsumableRule, barrel_diet, manual_diet
from cagebot.models.game import (
    ChatMessage,
    Clan,
    GameStatus,
    Player,
    ResourceState,
    Whiteboard,
)
from cagebot.models.responses import (
    BusyResponse,
    Detail,
    DietResponse,
    ExploredResponse,
    HoboState,
    NotifyResponse,
    RequestStatus,
    StatusResponse,
)


__all__ = [
    # Game
    "Player",
    "Clan",
    "GameStatus",
    "ResourceState",
    "Whiteboard",
    "ChatMessage",
    # Cage
    "CageTask",
    "SavedState",
    # Diet
    "ConsumableKind",
    "ConsumableRule",
    "manual_diet",
    "barrel_diet",
    # Responses
    "HoboState",
    "RequestStatus",
    "Detail",
    "BusyResponse",
    "StatusResponse",
    "DietResponse",
    "NotifyResponse",
    "ExploredResponse",
]
