"""Diet tables: the consumables the bot eats and drinks to keep adventuring.

Two curated tables exist. The manual table lists high-yield items an operator
stocks by hand; the Lil' Barrel Mimic table lists the generic consumables that
familiar drops, and is used whenever the mimic is the active familiar.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class ConsumableKind(StrEnum):
    """Which organ an item fills."""

    FOOD = "food"
    DRINK = "drink"


class ConsumableRule(BaseModel):
    """A diet table entry.

    Attributes:
        kind: Food or drink.
        item_id: Game item ID.
        name: Display name.
        level: Minimum character level to consume.
        cost: Fullness or inebriety taken up.
        adventures: Conservative estimate of adventures gained.
    """

    model_config = ConfigDict(frozen=True)

    kind: ConsumableKind
    item_id: int
    name: str
    level: int = Field(default=1, ge=1)
    cost: int = Field(gt=0)
    adventures: int = Field(ge=0)

    @property
    def efficiency(self) -> float:
        """Adventures per point of capacity."""
        return self.adventures / self.cost


def _food(item_id: int, name: str, level: int, cost: int, adventures: int) -> ConsumableRule:
    return ConsumableRule(
        kind=ConsumableKind.FOOD,
        item_id=item_id,
        name=name,
        level=level,
        cost=cost,
        adventures=adventures,
    )


def _drinks(
    drinks: list[tuple[str, int]], level: int, cost: int, adventures: int
) -> list[ConsumableRule]:
    return [
        ConsumableRule(
            kind=ConsumableKind.DRINK,
            item_id=item_id,
            name=name,
            level=level,
            cost=cost,
            adventures=adventures,
        )
        for name, item_id in drinks
    ]


def manual_diet() -> list[ConsumableRule]:
    """Items an operator keeps the bot stocked with."""
    return [
        _food(7215, "Fleetwood mac 'n' cheese", 8, 6, 30),
        _food(2767, "Crimbo pie", 7, 3, 11),
        *_drinks([("Psychotic Train wine", 7370)], 11, 6, 19),
        *_drinks([("Middle of the Road™ brand whiskey", 9948)], 1, 2, 4),
    ]


def barrel_diet() -> list[ConsumableRule]:
    """Consumables dropped by the Lil' Barrel Mimic, best first."""
    return [
        # Awesome
        _food(319, "Insanely spicy enchanted bean burrito", 5, 3, 11),
        _food(316, "Insanely spicy bean burrito", 4, 3, 10),
        _food(1256, "Insanely spicy jumping bean burrito", 4, 3, 10),
        *_drinks(
            [
                ("Roll in the hay", 679),
                ("Slap and Tickle", 680),
                ("Slip 'n' slide", 681),
                ("A little sump'm sump'm", 682),
                ("Pink pony", 684),
                ("Rockin' wagon", 797),
                ("Fuzzbump", 799),
                ("Calle de miel", 1018),
            ],
            level=4,
            cost=4,
            adventures=11,
        ),
        # Good
        _food(318, "Spicy enchanted bean burrito", 4, 3, 9),
        _food(315, "Spicy bean burrito", 3, 3, 8),
        _food(1255, "Spicy jumping bean burrito", 3, 3, 8),
        *_drinks(
            [
                ("Gin and tonic", 1567),
                ("Gibson", 1570),
                ("Vodka and tonic", 1568),
                ("Mimosette", 1564),
                ("Tequila sunset", 1565),
                ("Zmobie", 1566),
            ],
            level=3,
            cost=3,
            adventures=7,
        ),
        # Decent
        _food(317, "Enchanted bean burrito", 2, 3, 6),
        _food(314, "Bean burrito", 1, 3, 5),
        _food(1254, "Jumping bean burrito", 1, 3, 5),
        *_drinks(
            [
                ("Screwdriver", 250),
                ("Tequila sunrise", 1012),
                ("Martini", 251),
                ("Vodka martini", 1009),
                ("Strawberry daiquiri", 788),
                ("Margarita", 1013),
            ],
            level=1,
            cost=3,
            adventures=5,
        ),
    ]


__all__ = [
    "ConsumableKind",
    "ConsumableRule",
    "manual_diet",
    "barrel_diet",
]
