"""Resource ledger: keeps the adventure budget above the diet floor.

The ledger owns the ordered diet table and consumes the most efficient
stocked item whenever the character's adventures fall to the configured
floor. It reads all state from the server on every call; nothing about
fullness or inebriety is cached besides the liver capacity, which is
determined once at setup.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum

from cagebot.client.base import GameClient
from cagebot.core.constants import (
    BARREL_MIMIC_FAMILIAR,
    DEFAULT_MAX_INEBRIETY,
    STEEL_LIVER_MAX_INEBRIETY,
    TUXEDO_SHIRT,
)
from cagebot.core.logging import get_logger
from cagebot.models.diet import ConsumableKind, ConsumableRule, barrel_diet, manual_diet
from cagebot.models.game import GameStatus, ResourceState
from cagebot.models.responses import Detail, DietResponse


logger = get_logger(__name__)


# =============================================================================
# Results
# =============================================================================


class ReplenishOutcome(StrEnum):
    """Why a replenish call stopped."""

    SATISFIED = "satisfied"
    """Adventures were already above the floor; nothing was touched."""

    IMPROVED = "improved"
    """Items were consumed and the floor was crossed."""

    SATURATED = "saturated"
    """Stomach and liver are both full."""

    NO_SPACE = "no_space"
    """No usable rule fits the remaining capacity."""

    OUT_OF_ITEMS = "out_of_items"
    """Rules fit, but none of them is stocked."""

    CONSUME_FAILED = "consume_failed"
    """An item was consumed but adventures did not change."""


@dataclass
class ReplenishResult:
    """Result of one replenish call.

    Attributes:
        budget: Adventures after the call.
        outcome: Why the call stopped.
        consumed: Names of items consumed, in order.
        missing_ids: Item IDs that fit but were not stocked.
        missing_names: Names of those items.
    """

    budget: int
    outcome: ReplenishOutcome
    consumed: list[str] = field(default_factory=list)
    missing_ids: list[int] = field(default_factory=list)
    missing_names: list[str] = field(default_factory=list)

    @property
    def improved(self) -> bool:
        return bool(self.consumed) and self.outcome is not ReplenishOutcome.CONSUME_FAILED


@dataclass(frozen=True)
class DietIssue:
    """Out-of-band notice that the pantry needs restocking.

    Attributes:
        detail: Machine-readable detail code.
        message: Human-readable text for the requester.
    """

    detail: str
    message: str


IssueCallback = Callable[[DietIssue], Awaitable[None]]


# =============================================================================
# Resource Ledger
# =============================================================================


class ResourceLedger:
    """Diet engine for the bot character.

    Attributes:
        client: Game client used for status, inventory and consumption.
        floor: Adventures to maintain; replenishing only happens at or below it.
        max_drink: Liver capacity, None until setup has run.
    """

    def __init__(
        self,
        client: GameClient,
        floor: int,
        *,
        max_drink: int | None = None,
    ) -> None:
        self.client = client
        self.floor = floor
        self.max_drink = max_drink
        self._rules: list[ConsumableRule] = []
        self._generic = False
        self._owns_tuxedo = False

    @property
    def rules(self) -> list[ConsumableRule]:
        """Current rule order, most attractive first."""
        return list(self._rules)

    @property
    def generic(self) -> bool:
        """True when running on the barrel mimic's generic consumables."""
        return self._generic

    @property
    def liver_capacity(self) -> int:
        return self.max_drink or DEFAULT_MAX_INEBRIETY

    async def prepare(self, *, detect_liver: bool = True) -> None:
        """Determine liver capacity and pick the diet table.

        Args:
            detect_liver: Check the character sheet when capacity is unknown.
        """
        if self.max_drink is None and detect_liver:
            steel = await self.client.has_liver_of_steel()
            self.max_drink = STEEL_LIVER_MAX_INEBRIETY if steel else DEFAULT_MAX_INEBRIETY
            logger.info("Determined liver capacity", max_drink=self.max_drink)

        if self._rules:
            return

        status = await self.client.get_status()
        inventory = await self.client.get_inventory()
        self._owns_tuxedo = (
            inventory.get(TUXEDO_SHIRT, 0) > 0
            or status.equipment.get("shirt") == TUXEDO_SHIRT
        )
        self._generic = status.familiar == BARREL_MIMIC_FAMILIAR
        self.load_rules(barrel_diet() if self._generic else manual_diet(), generic=self._generic)
        self.sort_rules(inventory)

        logger.info(
            "Diet table selected",
            table="barrel" if self._generic else "manual",
            rules=len(self._rules),
            tuxedo=self._owns_tuxedo,
        )

    def load_rules(self, rules: list[ConsumableRule], *, generic: bool = False) -> None:
        """Replace the diet table."""
        self._rules = list(rules)
        self._generic = generic

    def sort_rules(self, inventory: dict[int, int]) -> None:
        """Order rules by efficiency, weighting by stock where kinds differ.

        Equal efficiencies, and any pair of a food and a drink, are compared
        by efficiency times owned quantity. This spreads consumption between
        stomach and liver and pushes unstocked items to the back.
        """

        def weight(rule: ConsumableRule, other: ConsumableRule) -> float:
            value = rule.efficiency
            if value == other.efficiency or rule.kind != other.kind:
                value *= inventory.get(rule.item_id, 0)
            return value

        # Pairwise weighting is not a key function; an insertion sort keeps it
        # stable and the tables are short.
        ordered: list[ConsumableRule] = []
        for rule in self._rules:
            index = len(ordered)
            while index > 0 and weight(rule, ordered[index - 1]) > weight(ordered[index - 1], rule):
                index -= 1
            ordered.insert(index, rule)
        self._rules = ordered

    # -------------------------------------------------------------------------
    # Replenishing
    # -------------------------------------------------------------------------

    async def replenish(self, on_issue: IssueCallback | None = None) -> ReplenishResult:
        """Consume items until adventures exceed the floor or nothing helps.

        Calling this with adventures already above the floor is a no-op, so
        redundant calls are safe.

        Args:
            on_issue: Awaited with a DietIssue when the pantry is empty.

        Returns:
            The budget reached and why replenishing stopped.
        """
        consumed: list[str] = []

        while True:
            status = await self.client.get_status()
            before = status.adventures

            if before > self.floor:
                outcome = ReplenishOutcome.IMPROVED if consumed else ReplenishOutcome.SATISFIED
                return ReplenishResult(budget=before, outcome=outcome, consumed=consumed)

            state = ResourceState.from_status(status, self.liver_capacity)
            if state.saturated:
                logger.info("Stomach and liver are full", adventures=before)
                return ReplenishResult(
                    budget=before, outcome=ReplenishOutcome.SATURATED, consumed=consumed
                )

            inventory = await self.client.get_inventory()
            candidate, missing, fits = self._pick(state, status.level, inventory)

            if not fits:
                logger.info("No diet item fits the remaining capacity", adventures=before)
                return ReplenishResult(
                    budget=before, outcome=ReplenishOutcome.NO_SPACE, consumed=consumed
                )

            if candidate is None:
                await self._report_missing(missing, on_issue)
                return ReplenishResult(
                    budget=before,
                    outcome=ReplenishOutcome.OUT_OF_ITEMS,
                    consumed=consumed,
                    missing_ids=[rule.item_id for rule in missing],
                    missing_names=[rule.name for rule in missing],
                )

            await self._consume(candidate, status, inventory)
            after = (await self.client.get_status()).adventures

            if after == before:
                logger.warning("Failed to consume item", item=candidate.name)
                return ReplenishResult(
                    budget=after, outcome=ReplenishOutcome.CONSUME_FAILED, consumed=consumed
                )

            consumed.append(candidate.name)
            self.sort_rules(await self.client.get_inventory())

            if after > self.floor:
                logger.info(
                    "Diet success, satisfied",
                    gained=after - before,
                    adventures=after,
                )
                return ReplenishResult(
                    budget=after, outcome=ReplenishOutcome.IMPROVED, consumed=consumed
                )

            logger.info(
                "Diet success, still at or below the floor",
                gained=after - before,
                adventures=after,
                floor=self.floor,
            )

    def _pick(
        self,
        state: ResourceState,
        level: int,
        inventory: dict[int, int],
    ) -> tuple[ConsumableRule | None, list[ConsumableRule], bool]:
        """First usable stocked rule, the unstocked rules skipped, and whether any fit."""
        missing: list[ConsumableRule] = []
        fits = False

        for rule in self._rules:
            if rule.level > level:
                continue
            remaining = (
                state.food_remaining if rule.kind is ConsumableKind.FOOD else state.drink_remaining
            )
            if rule.cost > remaining:
                continue

            fits = True
            if inventory.get(rule.item_id, 0) <= 0:
                missing.append(rule)
                continue
            return rule, missing, fits

        return None, missing, fits

    async def _consume(
        self,
        rule: ConsumableRule,
        status: GameStatus,
        inventory: dict[int, int],
    ) -> None:
        logger.info(
            "Consuming diet item",
            item=rule.name,
            kind=rule.kind.value,
            owned=inventory.get(rule.item_id, 0),
        )
        if rule.kind is ConsumableKind.FOOD:
            await self.client.eat(rule.item_id)
            return

        if not (self._generic and self._owns_tuxedo):
            await self.client.drink(rule.item_id)
            return

        prior_shirt = status.equipment.get("shirt", 0)
        if prior_shirt != TUXEDO_SHIRT:
            await self.client.equip(TUXEDO_SHIRT)
        try:
            await self.client.drink(rule.item_id)
        finally:
            if prior_shirt and prior_shirt != TUXEDO_SHIRT:
                await self.client.equip(prior_shirt)

    async def _report_missing(
        self,
        missing: list[ConsumableRule],
        on_issue: IssueCallback | None,
    ) -> None:
        if self._generic:
            logger.warning("Out of Lil' Barrel Mimic consumables")
            issue = DietIssue(
                detail=Detail.LACK_BARREL_EDIBLES.value,
                message="Please tell my operator that I am out of consumables.",
            )
        else:
            names = ", ".join(rule.name for rule in missing)
            ids = ",".join(str(rule.item_id) for rule in missing)
            logger.warning("Out of diet items", missing=names)
            issue = DietIssue(
                detail=f"{Detail.LACK_EDIBLES.value}:{ids}",
                message=f"Please tell my operator that I am out of {names}.",
            )

        if on_issue is not None:
            await on_issue(issue)

    # -------------------------------------------------------------------------
    # Reporting
    # -------------------------------------------------------------------------

    def possible_adventures(self, status: GameStatus, inventory: dict[int, int]) -> int:
        """Adventures the stocked items can still give today, filling greedily."""
        food_left = ResourceState.from_status(status, self.liver_capacity).food_remaining
        drink_left = self.liver_capacity - status.drunk
        adventures = 0

        for rule in self._rules:
            if rule.level > status.level:
                continue
            amount = inventory.get(rule.item_id, 0)
            while amount > 0:
                if rule.kind is ConsumableKind.FOOD:
                    if food_left < rule.cost:
                        break
                    food_left -= rule.cost
                else:
                    if drink_left < rule.cost:
                        break
                    drink_left -= rule.cost
                adventures += rule.adventures
                amount -= 1

        return adventures

    async def diet_report(self) -> DietResponse:
        """Totals of the usable stock, regardless of remaining capacity."""
        inventory = await self.client.get_inventory()
        status = await self.client.get_status()
        food = drink = fullness_advs = drunkness_advs = 0

        for rule in self._rules:
            count = inventory.get(rule.item_id, 0)
            if count <= 0 or rule.level > status.level:
                continue
            if rule.kind is ConsumableKind.FOOD:
                food += count * rule.cost
                fullness_advs += count * rule.adventures
            else:
                drink += count * rule.cost
                drunkness_advs += count * rule.adventures

        return DietResponse(
            possible_advs_today=self.possible_adventures(status, inventory),
            food=food,
            fullness_advs=fullness_advs,
            drink=drink,
            drunkness_advs=drunkness_advs,
        )


__all__ = [
    "ReplenishOutcome",
    "ReplenishResult",
    "DietIssue",
    "IssueCallback",
    "ResourceLedger",
]
