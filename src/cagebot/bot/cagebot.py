"""The bot aggregate: one game character and everything that acts on it.

A single Cagebot is built at process start and handed to the command
handlers and the dispatcher. It owns the diet engine, the cage task
lifecycle, the exclusivity gate and the whiteboard editor, so nothing in the
bot relies on module-level state.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from cagebot.bot.gate import ExclusivityGate
from cagebot.bot.replies import Replier
from cagebot.bot.whiteboard import WhiteboardEditor
from cagebot.client.base import GameClient
from cagebot.client.pages import made_it_through
from cagebot.core.config import Settings
from cagebot.core.constants import COMBAT_MACRO_NAME, MAX_FULLNESS
from cagebot.core.exceptions import SetupError
from cagebot.core.logging import get_logger
from cagebot.engine.diet import ResourceLedger
from cagebot.engine.lifecycle import CageTaskLifecycle
from cagebot.models.game import Player
from cagebot.models.responses import (
    BusyResponse,
    Detail,
    HoboState,
    RequestStatus,
    StatusResponse,
)
from cagebot.storage.state_store import StateStore


logger = get_logger(__name__)

AUTO_RELEASE_CHECK_SECONDS = 60


@dataclass(frozen=True)
class StatusSnapshot:
    """Point-in-time view of the bot for status replies.

    Attributes:
        caged: Whether the bot is in a cage.
        task_present: Whether a cage task is known.
        elapsed_seconds: Seconds since the task started, if known.
        releasable: Whether the asker may release the bot now.
        budget_remaining: Adventures left.
        full: Fullness used.
        drunk: Inebriety used.
        max_drunk: Liver capacity, if known.
        state: Diving, Caged or Releasable; None when idle.
    """

    caged: bool
    task_present: bool
    elapsed_seconds: float | None
    releasable: bool
    budget_remaining: int
    full: int
    drunk: int
    max_drunk: int | None
    state: HoboState | None

    def to_response(self, requester_id: str | None, clan_id: str | None) -> StatusResponse:
        busy = None
        if self.state is not None:
            busy = BusyResponse(
                state=self.state,
                elapsed=int(self.elapsed_seconds) if self.elapsed_seconds is not None else None,
                player=int(requester_id) if requester_id else None,
                clan=int(clan_id) if clan_id else None,
            )
        return StatusResponse(
            advs=self.budget_remaining,
            full=self.full,
            max_full=MAX_FULLNESS,
            drunk=self.drunk,
            max_drunk=self.max_drunk,
            caged=self.caged,
            status=busy,
        )


class Cagebot:
    """The bot character and its owned subsystems.

    Attributes:
        client: Game client.
        settings: Application settings.
        store: Runtime state store.
        ledger: Diet engine.
        lifecycle: Cage task lifecycle.
        gate: Exclusivity gate for mutating operations.
        whiteboard: Whiteboard editor.
        replies: Reply sender.
    """

    def __init__(
        self,
        client: GameClient,
        settings: Settings,
        *,
        store: StateStore | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.client = client
        self.settings = settings
        self.store = store or StateStore(settings.storage.state_file)
        self.ledger = ResourceLedger(client, settings.adventure.maintain_adventures)
        self.lifecycle = CageTaskLifecycle(
            client,
            self.store,
            release_after=settings.cage.release_after_seconds,
            probe_interval=settings.cage.uncage_probe_interval_seconds,
            clock=clock,
        )
        self.gate = ExclusivityGate()
        self.whiteboard = WhiteboardEditor(client, settings.whiteboard)
        self.replies = Replier(client)
        self._clock = clock
        self._setup_done = False
        self._last_raid_check = 0.0

    # =========================================================================
    # Setup
    # =========================================================================

    async def setup(self) -> None:
        """One-time startup: autoattack, liver capacity, diet table, saved state.

        Raises:
            SetupError: If the CAGEBOT combat macro does not exist.
        """
        caged = await self.lifecycle.probe()

        if not caged and not self._setup_done:
            macro_id = await self.client.combat_macro_id(COMBAT_MACRO_NAME)
            if macro_id is None:
                logger.critical(
                    "This account MUST have a combat macro named CAGEBOT "
                    "reading \"runaway;repeat;\". Please make that now and rerun."
                )
                raise SetupError(
                    "Combat macro not found, combat macro required to continue",
                    details={"macro": COMBAT_MACRO_NAME},
                )
            await self.client.configure_autoattack(macro_id)
            await self.ledger.prepare()
            self._setup_done = True
        else:
            await self.ledger.prepare(detect_liver=False)

        status = await self.client.get_status()
        saved = await self.lifecycle.restore(status)
        if saved is not None and self.ledger.max_drink is None:
            self.ledger.max_drink = saved.max_drunk
        self.lifecycle.max_drunk = self.ledger.liver_capacity

        logger.info(
            "Initial setup complete",
            caged=self.lifecycle.caged,
            task=self.lifecycle.task is not None,
            max_drunk=self.ledger.max_drink,
        )

        if not self.lifecycle.caged:
            await self.ledger.replenish()

    # =========================================================================
    # Status
    # =========================================================================

    async def status_snapshot(self, asker: Player | None = None) -> StatusSnapshot:
        """Current state as seen by ``asker``."""
        status = await self.client.get_status()
        lifecycle = self.lifecycle
        task = lifecycle.task

        state: HoboState | None = None
        if lifecycle.caged or task is not None:
            if not lifecycle.caged:
                state = HoboState.DIVING
            elif asker is not None and lifecycle.may_release(asker):
                state = HoboState.RELEASABLE
            elif asker is None and (task is None or lifecycle.releasable()):
                state = HoboState.RELEASABLE
            else:
                state = HoboState.CAGED

        return StatusSnapshot(
            caged=lifecycle.caged,
            task_present=task is not None,
            elapsed_seconds=lifecycle.seconds_in_task(),
            releasable=state is HoboState.RELEASABLE,
            budget_remaining=status.adventures,
            full=status.full,
            drunk=status.drunk,
            max_drunk=self.ledger.max_drink,
            state=state,
        )

    # =========================================================================
    # Periodic work
    # =========================================================================

    async def periodic_probe(self) -> None:
        """Uncage probe and auto-release check, run while the bot is idle."""
        if not self.lifecycle.caged or self.lifecycle.is_busy:
            return
        if not self.gate.try_acquire("probe"):
            return

        try:
            if await self.lifecycle.detect_third_party_uncaging():
                await self.whiteboard.update(caged=False)
                return
            await self.check_auto_release()
        finally:
            self.gate.release()

    async def check_auto_release(self, *, force: bool = False) -> bool:
        """Escape if the requester asked for it and has made it through the sewers.

        Returns:
            True if the bot escaped.
        """
        task = self.lifecycle.task
        if not self.lifecycle.caged or task is None or not task.auto_release:
            return False

        now = self._clock()
        if not force and now - self._last_raid_check < AUTO_RELEASE_CHECK_SECONDS:
            return False
        self._last_raid_check = now

        if not made_it_through(await self.client.read_raid_log(), task.requester):
            return False

        logger.info("Requester made it through the sewers, escaping", requester=str(task.requester))
        outcome = await self.lifecycle.escape(task.requester)
        if not outcome.released:
            return False

        await self.whiteboard.update(caged=False, auto_escaped=True)
        await self.replies.notify(
            task.requester,
            api=task.api_responses,
            status=RequestStatus.NOTIFICATION,
            detail=Detail.REMEMBER_TO_UNBAIT,
            human=(
                f"You made it through the sewers in {task.clan.name}, so I chewed out of "
                "the cage as requested. Remember to unbait your cage!"
            ),
        )
        await self.ledger.replenish()
        return True


__all__ = [
    "AUTO_RELEASE_CHECK_SECONDS",
    "StatusSnapshot",
    "Cagebot",
]
