"""Game constants for Cagebot.

This module collects the Kingdom of Loathing identifiers the bot relies on:
adventure locations, choice adventure numbers and options, item IDs and the
fixed resource limits of a character.
"""

from __future__ import annotations

# =============================================================================
# Resource Limits
# =============================================================================

MAX_FULLNESS = 15
"""Stomach capacity of a character with every fullness upgrade."""

DEFAULT_MAX_INEBRIETY = 14
"""Liver capacity without Liver of Steel."""

STEEL_LIVER_MAX_INEBRIETY = 19
"""Liver capacity with Liver of Steel."""

# =============================================================================
# Locations & Choices
# =============================================================================

SEWERS_SNARFBLAT = 166
"""Adventure location ID of the Hobopolis sewers."""

CAGE_CHOICES = (211, 212)
"""The two variants of the "Despite All Your Rage" cage choice."""

CAGE_STAY_OPTION = 2
"""Wait in the cage for rescue."""

CAGE_CHEW_OPTION = 1
"""Gnaw through the cage bars."""

GRATE_CHOICE = 198
GRATE_OPEN_OPTION = 3

VALVE_CHOICE = 197
VALVE_TWIST_OPTION = 3

LADDER_CHOICE = 199
LADDER_RESCUE_OPTION = 3
LADDER_SKIP_OPTION = 1

POP_CHOICE = 296
POP_OPTION = 1

# =============================================================================
# Items & Familiars
# =============================================================================

TUXEDO_SHIRT = 2489
"""Tuxedo shirt, boosts booze adventures while the Lil' Barrel Mimic is out."""

BARREL_MIMIC_FAMILIAR = 198
"""Familiar ID of the Lil' Barrel Mimic."""

# =============================================================================
# Cage Rules
# =============================================================================

GRATE_CAP = 20
"""Grates in a Hobopolis instance."""

VALVE_CAP = 20
"""Valves in a Hobopolis instance."""

RELEASE_AFTER_SECONDS = 3600
"""How long a requester holds exclusive release rights."""

COMBAT_MACRO_NAME = "CAGEBOT"
"""Name of the autoattack macro that must exist on the account."""

MESSAGE_LIMIT = 245
"""Encoded length of a single outbound chat message."""


__all__ = [
    "MAX_FULLNESS",
    "DEFAULT_MAX_INEBRIETY",
    "STEEL_LIVER_MAX_INEBRIETY",
    "SEWERS_SNARFBLAT",
    "CAGE_CHOICES",
    "CAGE_STAY_OPTION",
    "CAGE_CHEW_OPTION",
    "GRATE_CHOICE",
    "GRATE_OPEN_OPTION",
    "VALVE_CHOICE",
    "VALVE_TWIST_OPTION",
    "LADDER_CHOICE",
    "LADDER_RESCUE_OPTION",
    "LADDER_SKIP_OPTION",
    "POP_CHOICE",
    "POP_OPTION",
    "TUXEDO_SHIRT",
    "BARREL_MIMIC_FAMILIAR",
    "GRATE_CAP",
    "VALVE_CAP",
    "RELEASE_AFTER_SECONDS",
    "COMBAT_MACRO_NAME",
    "MESSAGE_LIMIT",
]
