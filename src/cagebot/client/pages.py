"""Parsers for game pages that are not adventure results.

All functions are pure: they take page HTML and return plain values, so
they are tested against saved snippets without a server.
"""

from __future__ import annotations

import html
import re

from cagebot.models.game import Clan, Player, Whiteboard


_WHITELIST_SELECT = re.compile(
    r"<select[^>]*name=[\"']?whichclan[\"']?[^>]*>(.*?)</select>", re.S | re.I
)
_OPTION = re.compile(r"<option[^>]*value=[\"']?(\d+)[\"']?[^>]*>([^<]*)", re.I)
_MY_CLAN = re.compile(r"<b><a class=nounder href=\"showclan\.php\?whichclan=(\d+)")
_GRATES = re.compile(r"opened (?:a|(?:\d+)) sewer grates? (?:\d+ times )?\((\d+) turns?\)")
_VALVES = re.compile(r"lowered the water level (?:\d+ times )?\((\d+) turns?\)")
_EDITABLE_WHITEBOARD = re.compile(
    r"<textarea maxlength=5000 name=whiteboard rows=15 cols=60>(.*?)</textarea><br>", re.S
)
_READONLY_WHITEBOARD = re.compile(r"border: 1px solid black;'>(.*?)</td>")


def parse_whitelists(page: str | None) -> list[Clan]:
    """Clans offered in the recruiter's whitelist dropdown."""
    if not page:
        return []
    select = _WHITELIST_SELECT.search(page)
    if select is None:
        return []
    return [
        Clan(id=clan_id, name=html.unescape(name).strip())
        for clan_id, name in _OPTION.findall(select.group(1))
    ]


def parse_clan_id(profile_page: str | None) -> str | None:
    """Clan ID from a player profile page."""
    if not profile_page:
        return None
    match = _MY_CLAN.search(profile_page)
    return match.group(1) if match else None


def count_grates_and_valves(raid_log: str | None) -> tuple[int, int]:
    """Grates opened and valves twisted according to the raid log."""
    if not raid_log:
        return 0, 0
    grates = sum(int(turns) for turns in _GRATES.findall(raid_log))
    valves = sum(int(turns) for turns in _VALVES.findall(raid_log))
    return grates, valves


def made_it_through(raid_log: str | None, player: Player) -> bool:
    """Whether the raid log shows the player made it through the sewers."""
    if not raid_log:
        return False
    pattern = rf"\(#{re.escape(player.id)}\)(?:</a>)?\s*made it through the sewer"
    return re.search(pattern, raid_log) is not None


def parse_whiteboard(page: str | None) -> Whiteboard | None:
    """Whiteboard text and whether the bot may edit it.

    Read-only boards render as HTML with ``<br>`` line breaks; an empty board
    reads ``(nothing)``.
    """
    if page is None:
        return None
    match = _EDITABLE_WHITEBOARD.search(page)
    if match:
        return Whiteboard(text=html.unescape(match.group(1).replace("\r", "")), editable=True)

    match = _READONLY_WHITEBOARD.search(page)
    text = ""
    if match:
        text = (
            match.group(1)
            .replace("\n", "")
            .replace("<br>", "\n")
            .replace("<i>(nothing)</i>", "")
        )
    return Whiteboard(text=html.unescape(text.replace("\r", "")), editable=False)


def parse_macro_id(page: str | None, name: str) -> str | None:
    """ID of the named combat macro in a macro dropdown."""
    if not page:
        return None
    match = re.search(rf"value=\"?(\d+)\"?>{re.escape(name)}<", page)
    return match.group(1) if match else None


def has_liver_of_steel(charsheet: str | None) -> bool:
    return bool(charsheet) and ">Liver of Steel</a>" in charsheet


def has_sewer_access(hobopolis_page: str | None) -> bool:
    return bool(hobopolis_page) and "Old Sewers" in hobopolis_page


__all__ = [
    "parse_whitelists",
    "parse_clan_id",
    "count_grates_and_valves",
    "made_it_through",
    "parse_whiteboard",
    "parse_macro_id",
    "has_liver_of_steel",
    "has_sewer_access",
]
