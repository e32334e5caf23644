"""Tests for the resource ledger."""

from __future__ import annotations

import asyncio

from cagebot.core.constants import BARREL_MIMIC_FAMILIAR, TUXEDO_SHIRT
from cagebot.engine.diet import DietIssue, ReplenishOutcome, ResourceLedger
from cagebot.models.diet import ConsumableKind, ConsumableRule, manual_diet
from fakes import FakeGameClient


MAC_AND_CHEESE = ConsumableRule(
    kind=ConsumableKind.FOOD,
    item_id=7215,
    name="Fleetwood mac 'n' cheese",
    level=8,
    cost=6,
    adventures=30,
)
WINE = ConsumableRule(
    kind=ConsumableKind.DRINK,
    item_id=7370,
    name="Psychotic Train wine",
    level=11,
    cost=6,
    adventures=19,
)
WHISKEY = ConsumableRule(
    kind=ConsumableKind.DRINK,
    item_id=9948,
    name="Middle of the Road™ brand whiskey",
    level=1,
    cost=2,
    adventures=4,
)


def make_ledger(client: FakeGameClient, rules: list[ConsumableRule], floor: int = 80) -> ResourceLedger:
    ledger = ResourceLedger(client, floor, max_drink=14)
    ledger.load_rules(rules)
    return ledger


class TestReplenish:
    """Tests for replenish."""

    def test_reaches_above_floor(self) -> None:
        """Test items are consumed until adventures pass the floor."""
        client = FakeGameClient(
            adventures=50,
            inventory={7215: 2},
            yields={7215: (6, 30)},
        )
        ledger = make_ledger(client, [MAC_AND_CHEESE])

        result = asyncio.run(ledger.replenish())

        assert result.outcome is ReplenishOutcome.IMPROVED
        assert result.budget == 110
        assert result.consumed == [MAC_AND_CHEESE.name, MAC_AND_CHEESE.name]
        assert client.full == 12
        assert client.inventory[7215] == 0

    def test_second_call_is_noop(self) -> None:
        """Test replenishing above the floor touches nothing."""
        client = FakeGameClient(
            adventures=50,
            inventory={7215: 2},
            yields={7215: (6, 30)},
        )
        ledger = make_ledger(client, [MAC_AND_CHEESE])

        asyncio.run(ledger.replenish())
        result = asyncio.run(ledger.replenish())

        assert result.outcome is ReplenishOutcome.SATISFIED
        assert result.budget == 110
        assert result.consumed == []
        assert client.consumed == [7215, 7215]

    def test_saturated(self) -> None:
        """Test nothing is attempted with stomach and liver full."""
        client = FakeGameClient(adventures=50, full=15, drunk=14, inventory={7215: 2})
        ledger = make_ledger(client, [MAC_AND_CHEESE])

        result = asyncio.run(ledger.replenish())

        assert result.outcome is ReplenishOutcome.SATURATED
        assert client.consumed == []

    def test_no_space(self) -> None:
        """Test rules that do not fit the remaining capacity are skipped."""
        client = FakeGameClient(adventures=50, full=12, drunk=14, inventory={7215: 2})
        ledger = make_ledger(client, [MAC_AND_CHEESE])

        result = asyncio.run(ledger.replenish())

        assert result.outcome is ReplenishOutcome.NO_SPACE

    def test_level_requirement(self) -> None:
        """Test items above the character's level are never chosen."""
        client = FakeGameClient(
            adventures=50,
            level=5,
            inventory={7215: 2, 9948: 1},
            yields={7215: (6, 30), 9948: (2, 4)},
        )
        ledger = make_ledger(client, [MAC_AND_CHEESE, WHISKEY])

        result = asyncio.run(ledger.replenish())

        assert 7215 not in client.consumed
        assert client.consumed == [9948]
        assert result.outcome is ReplenishOutcome.OUT_OF_ITEMS

    def test_consume_failed(self) -> None:
        """Test an item that gives nothing stops the loop."""
        client = FakeGameClient(adventures=50, inventory={7215: 2})
        ledger = make_ledger(client, [MAC_AND_CHEESE])

        result = asyncio.run(ledger.replenish())

        assert result.outcome is ReplenishOutcome.CONSUME_FAILED
        assert result.improved is False

    def test_missing_items_reported(self) -> None:
        """Test an empty pantry is reported with the missing item IDs."""
        client = FakeGameClient(adventures=50)
        ledger = make_ledger(client, manual_diet())
        issues: list[DietIssue] = []

        async def on_issue(issue: DietIssue) -> None:
            issues.append(issue)

        result = asyncio.run(ledger.replenish(on_issue))

        assert result.outcome is ReplenishOutcome.OUT_OF_ITEMS
        assert set(result.missing_ids) == {7215, 2767, 7370, 9948}
        assert len(issues) == 1
        detail, ids = issues[0].detail.split(":")
        assert detail == "lack_edibles"
        assert set(ids.split(",")) == {"7215", "2767", "7370", "9948"}
        assert "Psychotic Train wine" in issues[0].message

    def test_barrel_shortage_reported(self) -> None:
        """Test the generic table reports a single shortage code."""
        client = FakeGameClient(adventures=50, familiar=BARREL_MIMIC_FAMILIAR)
        ledger = ResourceLedger(client, 80, max_drink=14)
        issues: list[DietIssue] = []

        async def on_issue(issue: DietIssue) -> None:
            issues.append(issue)

        async def scenario() -> None:
            await ledger.prepare()
            await ledger.replenish(on_issue)

        asyncio.run(scenario())

        assert ledger.generic is True
        assert [issue.detail for issue in issues] == ["lack_barrel_edibles"]


class TestTuxedo:
    """Tests for the tuxedo shirt swap around barrel drinks."""

    def test_swap_and_restore(self) -> None:
        """Test the tuxedo is worn while drinking and the old shirt put back."""
        client = FakeGameClient(
            adventures=70,
            familiar=BARREL_MIMIC_FAMILIAR,
            equipment={"shirt": 1234},
            inventory={TUXEDO_SHIRT: 1, 679: 1},
            yields={679: (4, 11)},
        )
        ledger = ResourceLedger(client, 80, max_drink=14)

        async def scenario():
            await ledger.prepare()
            return await ledger.replenish()

        result = asyncio.run(scenario())

        assert result.outcome is ReplenishOutcome.IMPROVED
        assert client.shirts_while_drinking == [TUXEDO_SHIRT]
        assert client.equips == [TUXEDO_SHIRT, 1234]
        assert client.equipment["shirt"] == 1234

    def test_no_swap_on_manual_diet(self) -> None:
        """Test drinks off the manual table are drunk as they are."""
        client = FakeGameClient(
            adventures=75,
            inventory={TUXEDO_SHIRT: 1, 7370: 1},
            yields={7370: (6, 19)},
        )
        ledger = make_ledger(client, [WINE])

        asyncio.run(ledger.replenish())

        assert client.equips == []
        assert client.consumed == [7370]


class TestOrdering:
    """Tests for diet table ordering."""

    def test_efficiency_first(self) -> None:
        """Test the more efficient food comes first."""
        client = FakeGameClient()
        crimbo = ConsumableRule(
            kind=ConsumableKind.FOOD, item_id=2767, name="Crimbo pie", level=7, cost=3, adventures=11
        )
        ledger = make_ledger(client, [crimbo, MAC_AND_CHEESE])

        ledger.sort_rules({2767: 1, 7215: 1})

        assert [rule.item_id for rule in ledger.rules] == [7215, 2767]

    def test_stock_weighs_food_against_drink(self) -> None:
        """Test a well stocked drink beats a scarce food."""
        client = FakeGameClient()
        ledger = make_ledger(client, [MAC_AND_CHEESE, WINE])

        ledger.sort_rules({7215: 1, 7370: 5})

        assert [rule.item_id for rule in ledger.rules] == [7370, 7215]


class TestPrepare:
    """Tests for setup-time preparation."""

    def test_liver_of_steel(self) -> None:
        """Test liver capacity is detected once."""
        client = FakeGameClient()
        client.liver_of_steel = True
        ledger = ResourceLedger(client, 80)

        asyncio.run(ledger.prepare())

        assert ledger.max_drink == 19
        assert ledger.generic is False
        assert len(ledger.rules) == len(manual_diet())

    def test_skip_liver_detection(self) -> None:
        """Test capacity stays unknown when detection is skipped."""
        ledger = ResourceLedger(FakeGameClient(), 80)

        asyncio.run(ledger.prepare(detect_liver=False))

        assert ledger.max_drink is None
        assert ledger.liver_capacity == 14


class TestReports:
    """Tests for diet reporting."""

    def test_diet_report(self) -> None:
        """Test stock totals and the greedy estimate."""
        client = FakeGameClient(full=6, inventory={7215: 2, 9948: 3})
        ledger = make_ledger(client, [MAC_AND_CHEESE, WHISKEY])

        report = asyncio.run(ledger.diet_report())

        assert report.food == 12
        assert report.fullness_advs == 60
        assert report.drink == 6
        assert report.drunkness_advs == 12
        assert report.possible_advs_today == 30 + 12
