"""Adventure loop for getting caged in the Hobopolis sewers.

This module implements the state machine that spends adventures in the
sewers until the bot is caged, runs out of adventures, or hits a condition
it must not adventure through.

The AdventureLoop is the central coordinator for:
- Turn accounting through the TurnBudgetTracker
- Diet maintenance through the ResourceLedger
- Resolving grate, valve, rescue and cage encounters
- Escaping cages to keep opening grates and valves while ahead on adventures
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from cagebot.client.base import GameClient
from cagebot.core.config import AdventureSettings
from cagebot.core.constants import (
    CAGE_STAY_OPTION,
    LADDER_CHOICE,
    LADDER_RESCUE_OPTION,
    LADDER_SKIP_OPTION,
    POP_CHOICE,
    POP_OPTION,
)
from cagebot.core.exceptions import DesyncError, GameEngineError, HazardError, TransportError
from cagebot.core.logging import get_logger
from cagebot.engine.budget import TurnBudgetTracker
from cagebot.engine.classifier import (
    Encounter,
    EventKind,
    classify_adventure,
    classify_confirmation,
    confirmation_option,
    is_mid_encounter,
)
from cagebot.engine.diet import IssueCallback, ResourceLedger
from cagebot.engine.lifecycle import CageTaskLifecycle, chew_out


logger = get_logger(__name__)


# =============================================================================
# Loop State
# =============================================================================


class LoopState(StrEnum):
    """State of an adventure run."""

    IDLE = "idle"
    """No run has started."""

    RUNNING = "running"
    """Spending adventures in the sewers."""

    CAGED = "caged"
    """Terminal: the bot is in the cage."""

    EXHAUSTED = "exhausted"
    """Terminal: adventures fell to the reserve floor."""

    ABORTED = "aborted"
    """Terminal: a hazard or a desync stopped the run."""


@dataclass
class LoopAccounting:
    """Run-local counters.

    Attributes:
        grates: Grates opened this run.
        valves: Valves twisted this run.
        grates_found: Grates already open when the run started.
        valves_found: Valves already twisted when the run started.
        chew_outs: Cages escaped to keep working.
        rescue_attempted: Whether a caged clanmate rescue was tried.
        diet_failures: Consecutive diet attempts that gained nothing.
        diet_exhausted: Diet maintenance given up for this run.
        iterations: Adventure attempts made.
    """

    grates: int = 0
    valves: int = 0
    grates_found: int = 0
    valves_found: int = 0
    chew_outs: int = 0
    rescue_attempted: bool = False
    diet_failures: int = 0
    diet_exhausted: bool = False
    iterations: int = 0

    @property
    def grates_total(self) -> int:
        return self.grates + self.grates_found

    @property
    def valves_total(self) -> int:
        return self.valves + self.valves_found


@dataclass
class LoopSummary:
    """Result of a finished run.

    Attributes:
        state: Terminal state.
        actions_consumed: Adventures the run actually cost.
        budget_remaining: Adventures left afterwards.
        grates_opened: Grates opened this run.
        valves_opened: Valves twisted this run.
        chew_outs: Cages escaped to keep working.
        total_grates: Grates open in the instance, including earlier ones.
        total_valves: Valves twisted in the instance, including earlier ones.
        iterations: Adventure attempts made.
        reason: Why the run aborted, if it did.
        desynced: Whether the abort was a turn-counter desync.
    """

    state: LoopState
    actions_consumed: int
    budget_remaining: int
    grates_opened: int = 0
    valves_opened: int = 0
    chew_outs: int = 0
    total_grates: int = 0
    total_valves: int = 0
    iterations: int = 0
    reason: str | None = None
    desynced: bool = False

    @property
    def caged(self) -> bool:
        return self.state is LoopState.CAGED


# =============================================================================
# Adventure Loop
# =============================================================================


class AdventureLoop:
    """Spends adventures in the sewers until caged.

    A loop object runs once. The caller checks the entry preconditions
    (rollover distance, clan access) and puts the lifecycle's task in the
    pending phase before calling ``run``.

    Attributes:
        client: Game client.
        ledger: Diet engine.
        lifecycle: Cage task owner, finalized when the run ends.
        settings: Loop thresholds.
        accounting: Run-local counters.
    """

    def __init__(
        self,
        client: GameClient,
        ledger: ResourceLedger,
        lifecycle: CageTaskLifecycle,
        settings: AdventureSettings,
        *,
        grates_found: int = 0,
        valves_found: int = 0,
        on_diet_issue: IssueCallback | None = None,
    ) -> None:
        """Initialize the loop.

        Args:
            client: Game client.
            ledger: Diet engine, already prepared.
            lifecycle: Cage task lifecycle holding the pending task.
            settings: Loop thresholds.
            grates_found: Grates the raid log shows open already.
            valves_found: Valves the raid log shows twisted already.
            on_diet_issue: Awaited when the pantry runs dry.
        """
        self.client = client
        self.ledger = ledger
        self.lifecycle = lifecycle
        self.settings = settings
        self.accounting = LoopAccounting(grates_found=grates_found, valves_found=valves_found)
        self._on_diet_issue = on_diet_issue
        self._state = LoopState.IDLE
        self._drunk = 0
        self._caged = False
        self._out_of_adventures = False

    @property
    def state(self) -> LoopState:
        return self._state

    def _should_continue(self, tracker: TurnBudgetTracker) -> bool:
        return (
            not self._caged
            and not self._out_of_adventures
            and tracker.remaining_estimate > self.settings.reserve_floor
            and self._drunk <= self.ledger.liver_capacity
        )

    async def run(self) -> LoopSummary:
        """Adventure until a terminal state is reached.

        Engine and transport errors end the run as ABORTED; they are never
        raised to the caller.

        Returns:
            Summary of the run.
        """
        if self._state is not LoopState.IDLE:
            raise RuntimeError("AdventureLoop instances run once")

        self._state = LoopState.RUNNING
        tracker: TurnBudgetTracker | None = None
        reason: str | None = None
        desynced = False

        try:
            status = await self.client.get_status()
            self._drunk = status.drunk
            tracker = TurnBudgetTracker(
                self.client, status, threshold=self.settings.reconcile_threshold
            )
            logger.info(
                "Beginning turns in the sewers",
                adventures=status.adventures,
                grates_found=self.accounting.grates_found,
                valves_found=self.accounting.valves_found,
            )

            while self._should_continue(tracker):
                await self._maintain(tracker)
                if not self._should_continue(tracker):
                    break
                await self._step(tracker)
        except DesyncError as exc:
            reason = exc.reason
            desynced = True
            logger.error("Adventure run desynchronized from the server", details=exc.details)
        except GameEngineError as exc:
            reason = exc.reason
            logger.error("Adventure run aborted", reason=reason, details=exc.details)
        except TransportError as exc:
            reason = exc.message
            logger.error("Adventure run lost the game session", reason=reason)

        self._state = self._terminal_state(tracker, reason)
        if self._state is LoopState.ABORTED and reason is None:
            reason = "too drunk to continue"

        consumed, remaining = await self._finalize(tracker)
        logger.info(
            "Adventure run finished",
            state=self._state.value,
            spent=consumed,
            remaining=remaining,
            total_grates=self.accounting.grates_total,
            total_valves=self.accounting.valves_total,
            chew_outs=self.accounting.chew_outs,
        )

        return LoopSummary(
            state=self._state,
            actions_consumed=consumed,
            budget_remaining=remaining,
            grates_opened=self.accounting.grates,
            valves_opened=self.accounting.valves,
            chew_outs=self.accounting.chew_outs,
            total_grates=self.accounting.grates_total,
            total_valves=self.accounting.valves_total,
            iterations=self.accounting.iterations,
            reason=reason,
            desynced=desynced,
        )

    def _terminal_state(
        self, tracker: TurnBudgetTracker | None, reason: str | None
    ) -> LoopState:
        if self._caged:
            return LoopState.CAGED
        if reason is not None or tracker is None:
            return LoopState.ABORTED
        if self._out_of_adventures or tracker.remaining_estimate <= self.settings.reserve_floor:
            return LoopState.EXHAUSTED
        return LoopState.ABORTED

    async def _finalize(self, tracker: TurnBudgetTracker | None) -> tuple[int, int]:
        """Settle the lifecycle and the turn count.

        The lifecycle updates its task in memory before persisting, so a
        transport failure here still leaves the bot free to take requests.

        Returns:
            Adventures consumed and adventures remaining. Local estimates
            stand in when the server cannot be reached.
        """
        try:
            if self._caged:
                await self.lifecycle.confirm_caged()
            else:
                await self.lifecycle.clear()
            if tracker is None:
                return 0, 0
            consumed, final = await tracker.settle()
            return consumed, final.adventures
        except TransportError as exc:
            logger.error("Could not settle the adventure run", reason=exc.message)
            if tracker is None:
                return 0, 0
            return tracker.total_confirmed + tracker.estimated, tracker.remaining_estimate

    # -------------------------------------------------------------------------
    # Accounting
    # -------------------------------------------------------------------------

    async def _maintain(self, tracker: TurnBudgetTracker) -> None:
        """Reconcile when due, then eat or drink when at the diet floor."""
        if tracker.needs_reconcile():
            self._drunk = (await tracker.reconcile()).drunk

        if self.accounting.diet_exhausted:
            return
        if tracker.remaining_estimate > self.settings.maintain_adventures:
            return

        before = await tracker.reconcile()
        first_failure = self.accounting.diet_failures == 0
        await self.ledger.replenish(self._on_diet_issue if first_failure else None)

        after = await self.client.get_status()
        tracker.rebase(after.adventures)
        self._drunk = after.drunk

        if after.adventures > before.adventures:
            self.accounting.diet_failures = 0
            return

        self.accounting.diet_failures += 1
        if self.accounting.diet_failures >= self.settings.diet_failure_limit:
            self.accounting.diet_exhausted = True
            logger.warning(
                "Failed to maintain diet while adventuring, not trying again this run",
                adventures=after.adventures,
            )

    # -------------------------------------------------------------------------
    # Encounters
    # -------------------------------------------------------------------------

    async def _step(self, tracker: TurnBudgetTracker) -> None:
        """Spend one adventure and resolve what it led to."""
        self.accounting.iterations += 1
        tracker.spend()
        encounter = classify_adventure(await self.client.adventure())
        if encounter.free_turn:
            tracker.refund()

        kind = encounter.kind
        if kind is EventKind.CAGED:
            await self._caged_encounter(encounter, tracker)
        elif kind is EventKind.GRATE or kind is EventKind.VALVE:
            await self._progress_encounter(encounter, tracker)
        elif kind is EventKind.RESCUE:
            await self._rescue_encounter()
        elif kind is EventKind.POP:
            await self.client.choose(POP_CHOICE, POP_OPTION)
        elif kind is EventKind.EXHAUSTED:
            self._out_of_adventures = True
            return
        elif kind is EventKind.HAZARD:
            raise HazardError(encounter.reason or "unknown hazard")
        elif kind is EventKind.NO_RESPONSE:
            logger.debug("No response to adventure request")

        if not self._caged and is_mid_encounter(await self.client.visit_place()):
            raise HazardError("unexpectedly stuck in a choice")

    async def _rescue_encounter(self) -> None:
        """Free a caged clanmate once per run, then always walk past."""
        if self.accounting.rescue_attempted:
            await self.client.choose(LADDER_CHOICE, LADDER_SKIP_OPTION)
            return

        logger.info("Trying to rescue a caged clanmate")
        self.accounting.rescue_attempted = True
        await self.client.choose(LADDER_CHOICE, LADDER_RESCUE_OPTION)

    async def _progress_encounter(self, encounter: Encounter, tracker: TurnBudgetTracker) -> None:
        page = await self.client.choose(encounter.choice, confirmation_option(encounter))
        result = classify_confirmation(encounter, page)

        if result.free_turn:
            tracker.refund()
            return

        if result.kind is EventKind.GRATE:
            self.accounting.grates += 1
            logger.info("Opened grate", grates=self.accounting.grates)
        else:
            self.accounting.valves += 1
            logger.info("Twisted valve", valves=self.accounting.valves)

    async def _caged_encounter(self, encounter: Encounter, tracker: TurnBudgetTracker) -> None:
        await self.client.choose(encounter.choice, CAGE_STAY_OPTION)

        if not self._should_escape(tracker):
            self._caged = True
            logger.info("Caged")
            return

        if not await chew_out(self.client):
            self._caged = True
            raise HazardError("unexpectedly stuck in the cage")

        tracker.spend(self.settings.chew_out_cost)
        self.accounting.chew_outs += 1
        logger.info(
            "Escaped cage to continue opening grates and twisting valves",
            chew_outs=self.accounting.chew_outs,
        )

    def _should_escape(self, tracker: TurnBudgetTracker) -> bool:
        """Whether escaping the cage is worth it to keep opening things.

        Grates come first; valves are only pursued with a large surplus.
        """
        if not self.settings.open_everything:
            return False

        remaining = tracker.remaining_estimate
        if remaining <= self.settings.open_everything_while_adventures_above:
            logger.info("Not enough adventures to escape the cage", remaining=remaining)
            return False

        if self.accounting.grates_total < self.settings.grate_cap:
            return True
        return (
            self.accounting.valves_total < self.settings.valve_cap
            and remaining > self.settings.valve_surplus
        )


__all__ = [
    "LoopState",
    "LoopAccounting",
    "LoopSummary",
    "AdventureLoop",
]
