"""Cage task lifecycle: who caged the bot, where, and who may free it.

The lifecycle owns the authoritative caged flag and the single CageTask
record. A task moves ABSENT -> PENDING when an adventure run starts,
PENDING -> ACTIVE when the run ends caged, and back to ABSENT on escape,
release, a failed run, or when a probe finds someone freed the bot through
the game directly.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from cagebot.client.base import GameClient
from cagebot.core.constants import (
    CAGE_CHEW_OPTION,
    DEFAULT_MAX_INEBRIETY,
    POP_CHOICE,
    POP_OPTION,
    RELEASE_AFTER_SECONDS,
)
from cagebot.core.exceptions import StateFileError
from cagebot.core.logging import get_logger
from cagebot.engine.classifier import cage_choice_id, is_caged_page, is_pop_page
from cagebot.models.cage import CageTask, SavedState
from cagebot.models.game import Clan, GameStatus, Player
from cagebot.storage.state_store import StateStore


logger = get_logger(__name__)


class TaskPhase(StrEnum):
    """Lifecycle phase of the cage task."""

    ABSENT = "absent"
    PENDING = "pending"
    ACTIVE = "active"


class ReleaseDecision(StrEnum):
    """Result of an escape or release request."""

    RELEASED = "released"
    NOT_CAGED = "not_caged"
    NOT_REQUESTER = "not_requester"
    NOT_RELEASABLE = "not_releasable"
    FAILED = "failed"


@dataclass(frozen=True)
class ReleaseOutcome:
    """What happened to an escape or release request.

    Attributes:
        decision: Whether the bot chewed out, and if not why.
        previous: The task that was ended, if one was known.
        initiator: Who asked.
    """

    decision: ReleaseDecision
    initiator: Player
    previous: CageTask | None = None

    @property
    def released(self) -> bool:
        return self.decision is ReleaseDecision.RELEASED

    @property
    def bystander_release(self) -> bool:
        """True when someone other than the original requester freed the bot."""
        return (
            self.released
            and self.previous is not None
            and self.previous.requester.id != self.initiator.id
        )


async def chew_out(client: GameClient) -> bool:
    """Gnaw out of the cage.

    Returns:
        False if the bot is still caged afterwards.
    """
    page = await client.adventure()

    if is_caged_page(page):
        response = await client.choose(cage_choice_id(page), CAGE_CHEW_OPTION)
        if is_caged_page(response):
            logger.error("Unexpectedly still caged after chewing through cage")
            return False
    elif is_pop_page(page):
        await client.choose(POP_CHOICE, POP_OPTION)

    return True


class CageTaskLifecycle:
    """Owner of the caged flag and the active cage task.

    Attributes:
        client: Game client used for probes and chewing out.
        store: Runtime state persistence.
        release_after: Seconds after which anyone may release the bot.
        probe_interval: Minimum seconds between third-party uncage probes.
        max_drunk: Liver capacity written alongside the task.
    """

    def __init__(
        self,
        client: GameClient,
        store: StateStore,
        *,
        release_after: int = RELEASE_AFTER_SECONDS,
        probe_interval: int = 15 * 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.client = client
        self.store = store
        self.release_after = release_after
        self.probe_interval = probe_interval
        self.max_drunk = DEFAULT_MAX_INEBRIETY
        self._clock = clock
        self._caged = False
        self._task: CageTask | None = None
        self._last_probe = clock()

    @property
    def caged(self) -> bool:
        return self._caged

    @property
    def task(self) -> CageTask | None:
        return self._task

    @property
    def phase(self) -> TaskPhase:
        if self._task is None:
            return TaskPhase.ABSENT
        return TaskPhase.ACTIVE if self._caged else TaskPhase.PENDING

    @property
    def is_busy(self) -> bool:
        """An adventure run is in progress."""
        return self.phase is TaskPhase.PENDING

    def seconds_in_task(self) -> float | None:
        if self._task is None:
            return None
        return self._clock() - self._task.started

    def releasable(self) -> bool:
        """Whether the release window has passed."""
        elapsed = self.seconds_in_task()
        return elapsed is not None and elapsed > self.release_after

    def may_release(self, player: Player) -> bool:
        """Whether ``player`` could release the bot right now."""
        return self._task is None or self._task.requester.id == player.id or self.releasable()

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def begin_pending(
        self,
        requester: Player,
        clan: Clan,
        *,
        api_responses: bool = False,
        auto_release: bool = False,
    ) -> CageTask:
        """Start a task for a new adventure run, replacing any earlier one."""
        if self._task is not None:
            logger.warning("Superseding stale cage task", requester=str(self._task.requester))

        self._caged = False
        self._task = CageTask(
            requester=requester,
            clan=clan,
            started=self._clock(),
            api_responses=api_responses,
            auto_release=auto_release,
        )
        return self._task

    async def confirm_caged(self) -> None:
        """Mark the pending task caged, restarting its clock, and persist it."""
        self._caged = True
        if self._task is not None:
            self._task = self._task.model_copy(update={"started": self._clock()})
        await self._persist()
        logger.info(
            "Cage task active",
            clan=self._task.clan.name if self._task else None,
        )

    async def clear(self) -> None:
        """Drop the task and mark the bot uncaged."""
        self._caged = False
        self._task = None
        await self._persist()

    async def _persist(self) -> None:
        status = await self.client.get_status()
        self.store.save(status.turns_played, self.max_drunk, self._task if self._caged else None)

    # -------------------------------------------------------------------------
    # Probing
    # -------------------------------------------------------------------------

    async def probe(self) -> bool:
        """Look at the current location to learn whether the bot is caged.

        A task is kept only while caged; finding the bot free drops it.

        Returns:
            The caged flag after probing.
        """
        self._last_probe = self._clock()
        page = await self.client.visit_place()

        if is_pop_page(page):
            page = await self.client.choose(POP_CHOICE, POP_OPTION)

        self._caged = is_caged_page(page)
        if not self._caged and self._task is not None:
            self._task = None
            await self._persist()
        return self._caged

    async def detect_third_party_uncaging(self, *, force: bool = False) -> bool:
        """Probe whether someone freed the bot through the game.

        Only runs while caged and not mid-run, at most once per probe
        interval unless forced. A task found stale is cleared silently.

        Returns:
            True if the bot was found uncaged and its record cleared.
        """
        if not self._caged or self.is_busy:
            return False
        if not force and self._clock() - self._last_probe < self.probe_interval:
            return False

        if await self.probe():
            return False

        logger.info("Found uncaged by a third party, cleared cage task")
        return True

    # -------------------------------------------------------------------------
    # Leaving the cage
    # -------------------------------------------------------------------------

    async def escape(self, initiator: Player) -> ReleaseOutcome:
        """Chew out on behalf of the original requester."""
        await self.detect_third_party_uncaging()

        if not self._caged:
            return ReleaseOutcome(ReleaseDecision.NOT_CAGED, initiator)
        if self._task is not None and self._task.requester.id != initiator.id:
            return ReleaseOutcome(ReleaseDecision.NOT_REQUESTER, initiator, self._task)

        return await self._leave(initiator)

    async def release(self, initiator: Player) -> ReleaseOutcome:
        """Chew out for anyone once the release window has passed."""
        await self.detect_third_party_uncaging()

        if not self._caged:
            return ReleaseOutcome(ReleaseDecision.NOT_CAGED, initiator)
        if not self.may_release(initiator):
            return ReleaseOutcome(ReleaseDecision.NOT_RELEASABLE, initiator, self._task)

        return await self._leave(initiator)

    async def _leave(self, initiator: Player) -> ReleaseOutcome:
        previous = self._task
        if not await chew_out(self.client):
            await self.probe()
            return ReleaseOutcome(ReleaseDecision.FAILED, initiator, previous)

        await self.clear()
        logger.info("Chewed out of cage", initiator=str(initiator))
        return ReleaseOutcome(ReleaseDecision.RELEASED, initiator, previous)

    # -------------------------------------------------------------------------
    # Restoring
    # -------------------------------------------------------------------------

    async def restore(self, status: GameStatus) -> SavedState | None:
        """Reload the persisted task after a restart.

        The saved record is trusted only while the bot is caged, has no task
        of its own yet, and the saved turn counter equals the live one.

        Returns:
            The trusted record, or None if it was missing or stale.
        """
        try:
            saved = self.store.load()
        except StateFileError as exc:
            logger.warning("Discarding unreadable runtime state", error=exc.message)
            return None

        if saved is None:
            return None
        if saved.valid_at_turn != status.turns_played:
            logger.info(
                "Discarding stale runtime state",
                saved_turn=saved.valid_at_turn,
                current_turn=status.turns_played,
            )
            return None

        self.max_drunk = saved.max_drunk
        if self._caged and self._task is None and saved.cage_task is not None:
            self._task = saved.cage_task
            logger.info(
                "Restored cage task",
                requester=str(saved.cage_task.requester),
                clan=saved.cage_task.clan.name,
            )
        return saved


__all__ = [
    "TaskPhase",
    "ReleaseDecision",
    "ReleaseOutcome",
    "chew_out",
    "CageTaskLifecycle",
]
