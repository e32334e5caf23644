"""Machine-readable replies sent to ``.api`` requesters.

Every payload is a flat JSON object with a ``type`` discriminator. Spaces
are sent as ``%20`` because the chat server collapses and re-wraps long runs
of text, which would otherwise corrupt the JSON.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class HoboState(StrEnum):
    """What the bot is doing, from the point of view of the asker."""

    DIVING = "Diving"
    """Adventuring in the sewers, not caged yet."""

    CAGED = "Caged"
    """Caged, and the asker cannot release it yet."""

    RELEASABLE = "Releasable"
    """Caged, and the asker may release it."""


class RequestStatus(StrEnum):
    """Outcome classes of a ``notify`` reply."""

    ACCEPTED = "Accepted"
    BUSY = "Busy"
    ERROR = "Error"
    SEEN = "Seen"
    ISSUE = "Issue"
    NOTIFICATION = "Notification"


class Detail(StrEnum):
    """Detail codes of a ``notify`` reply."""

    ALREADY_IN_USE = "already_in_use"
    ROLLOVER = "rollover"
    INVALID_CLAN = "invalid_clan"
    ALREADY_CAGED = "already_caged"
    CLAN_AMBIGUOUS = "clan_ambiguous"
    NOT_WHITELISTED = "not_whitelisted"
    UNSUCCESSFUL_WHITELIST = "unsuccessful_whitelist"
    NO_HOBO_ACCESS = "no_hobo_access"
    DOING_CAGE = "doing_cage"
    LACK_BARREL_EDIBLES = "lack_barrel_edibles"
    LACK_EDIBLES = "lack_edibles"
    YOUR_CLAN_UNBAITED = "your_clan_unbaited"
    REMEMBER_TO_UNBAIT = "remember_to_unbait"


class _Response(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_chat(self) -> str:
        """Serialize for a whisper."""
        return self.model_dump_json(by_alias=True, exclude_none=True).replace(" ", "%20")


class BusyResponse(BaseModel):
    """Nested task description inside a status reply."""

    model_config = ConfigDict(populate_by_name=True)

    state: HoboState
    elapsed: int | None = None
    player: int | None = None
    clan: int | None = None


class StatusResponse(_Response):
    type: Literal["status"] = "status"
    advs: int
    full: int
    max_full: int = Field(alias="maxFull")
    drunk: int
    max_drunk: int | None = Field(default=None, alias="maxDrunk")
    caged: bool
    status: BusyResponse | None = None


class DietResponse(_Response):
    type: Literal["diet"] = "diet"
    possible_advs_today: int = Field(alias="possibleAdvsToday")
    food: int
    fullness_advs: int = Field(alias="fullnessAdvs")
    drink: int
    drunkness_advs: int = Field(alias="drunknessAdvs")


class NotifyResponse(_Response):
    type: Literal["notify"] = "notify"
    status: RequestStatus
    details: str | None = None


class ExploredResponse(_Response):
    """Summary of a finished adventure run."""

    type: Literal["explored"] = "explored"
    caged: bool
    advs_used: int = Field(alias="advsUsed")
    advs_left: int = Field(alias="advsLeft")
    grates: int
    total_grates: int = Field(alias="totalGrates")
    valves: int
    total_valves: int = Field(alias="totalValves")
    chews: int


__all__ = [
    "HoboState",
    "RequestStatus",
    "Detail",
    "BusyResponse",
    "StatusResponse",
    "DietResponse",
    "NotifyResponse",
    "ExploredResponse",
]
