"""Event classification for sewer adventure results.

Every page the adventure loop sees goes through this module, so the loop's
control flow never looks at raw HTML. An adventure result maps to exactly one
EventKind; two-step encounters (grate, valve) are then confirmed by
classifying the page returned by the follow-up choice.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import StrEnum

from cagebot.core.constants import (
    CAGE_CHOICES,
    GRATE_CHOICE,
    GRATE_OPEN_OPTION,
    LADDER_CHOICE,
    POP_CHOICE,
    VALVE_CHOICE,
    VALVE_TWIST_OPTION,
)


# =============================================================================
# Event Kinds
# =============================================================================


class EventKind(StrEnum):
    """Symbolic outcome of one adventure attempt."""

    CAGED = "caged"
    """The C. H. U. M. cage encounter; getting here costs no adventure."""

    GRATE = "grate"
    """Disgustin' Junction, where a sewer grate can be opened."""

    VALVE = "valve"
    """Somewhat Higher and Mostly Dry, where a valve can be twisted."""

    RESCUE = "rescue"
    """The Former or the Ladder, where a caged clanmate can be freed."""

    POP = "pop"
    """Free non-combat that must be dismissed before adventuring again."""

    EXHAUSTED = "exhausted"
    """The game refused the adventure for lack of adventures."""

    HAZARD = "hazard"
    """A terminal game state the loop must not continue through."""

    NEUTRAL = "neutral"
    """A combat or anything else that just costs a turn."""

    NO_RESPONSE = "no_response"
    """The request failed; nothing is known about the turn."""


@dataclass(frozen=True)
class Encounter:
    """Classified adventure result.

    Attributes:
        kind: What happened.
        opened: For grates and valves, whether progress was actually made.
        reason: Why a hazard is terminal.
        free_turn: Whether the encounter consumed no adventure.
        choice: Choice ID to answer, for choice encounters.
    """

    kind: EventKind
    opened: bool = False
    reason: str | None = None
    free_turn: bool = False
    choice: int | None = None

    @property
    def needs_confirmation(self) -> bool:
        return self.kind in (EventKind.GRATE, EventKind.VALVE)


# =============================================================================
# Page Markers
# =============================================================================


_CAGE = re.compile(r"Despite All Your Rage")
_GRATE = re.compile(r"Disgustin' Junction")
_VALVE = re.compile(r"Somewhat Higher and Mostly Dry")
_LADDER = re.compile(r"The Former or the Ladder")
_POP = re.compile(r"Pop!")
_GRATE_OPENED = re.compile(r"too tired to explore the tunnel on the other side", re.I)
_VALVE_TWISTED = re.compile(
    r"as the water level in the sewer lowers by a couple of inches", re.I
)
_MID_CHOICE = re.compile(r"whichchoice")
_CAGE_CHOICE_211 = re.compile(r" value=211>")

_EXHAUSTED = (
    re.compile(r"You're out of adventures", re.I),
    re.compile(r"You don't have any adventures left", re.I),
)

_HAZARDS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"down for nightly maintenance", re.I), "rollover"),
    (re.compile(r"(?:can't get there|isn't available|aren't allowed to go there)", re.I), "area unavailable"),
    (re.compile(r"You're way too drunk", re.I), "too drunk"),
    (re.compile(r"too beaten.up to", re.I), "beaten up"),
)


# =============================================================================
# Classification
# =============================================================================


def classify_adventure(page: str | None) -> Encounter:
    """Classify the page returned by one adventure attempt.

    Args:
        page: Page HTML, or None if the request failed.

    Returns:
        The encounter. Choice encounters carry the choice ID to answer.
    """
    if page is None:
        return Encounter(EventKind.NO_RESPONSE, free_turn=True)

    if _CAGE.search(page):
        return Encounter(EventKind.CAGED, free_turn=True, choice=cage_choice_id(page))
    if _GRATE.search(page):
        return Encounter(EventKind.GRATE, choice=GRATE_CHOICE)
    if _VALVE.search(page):
        return Encounter(EventKind.VALVE, choice=VALVE_CHOICE)
    if _LADDER.search(page):
        return Encounter(EventKind.RESCUE, choice=LADDER_CHOICE)
    if _POP.search(page):
        return Encounter(EventKind.POP, free_turn=True, choice=POP_CHOICE)

    for pattern in _EXHAUSTED:
        if pattern.search(page):
            return Encounter(EventKind.EXHAUSTED, free_turn=True)

    for pattern, reason in _HAZARDS:
        if pattern.search(page):
            return Encounter(EventKind.HAZARD, reason=reason, free_turn=True)

    return Encounter(EventKind.NEUTRAL)


def classify_confirmation(encounter: Encounter, page: str | None) -> Encounter:
    """Settle a grate or valve encounter from its follow-up page.

    When the game shows the encounter without granting progress, the turn
    was free and the returned encounter is marked as such.
    """
    if not encounter.needs_confirmation:
        return encounter

    marker = _GRATE_OPENED if encounter.kind is EventKind.GRATE else _VALVE_TWISTED
    opened = page is not None and marker.search(page) is not None
    return replace(encounter, opened=opened, free_turn=not opened)


def confirmation_option(encounter: Encounter) -> int:
    """Option that makes progress in a grate or valve encounter."""
    if encounter.kind is EventKind.GRATE:
        return GRATE_OPEN_OPTION
    if encounter.kind is EventKind.VALVE:
        return VALVE_TWIST_OPTION
    raise ValueError(f"No progress option for {encounter.kind}")


def is_mid_encounter(page: str | None) -> bool:
    """Whether a page shows an unanswered choice."""
    return page is not None and _MID_CHOICE.search(page) is not None


def is_caged_page(page: str | None) -> bool:
    return page is not None and _CAGE.search(page) is not None


def is_pop_page(page: str | None) -> bool:
    return page is not None and _POP.search(page) is not None


def cage_choice_id(page: str) -> int:
    """The cage has two choice IDs depending on how it was reached."""
    return CAGE_CHOICES[0] if _CAGE_CHOICE_211.search(page) else CAGE_CHOICES[1]


__all__ = [
    "EventKind",
    "Encounter",
    "classify_adventure",
    "classify_confirmation",
    "confirmation_option",
    "is_mid_encounter",
    "is_caged_page",
    "is_pop_page",
    "cage_choice_id",
]
