"""Turn-budget tracking for the adventure loop.

Individual requests do not map one to one onto spent adventures: some
encounters are free, chewing out of a cage costs several, and a POST can fail
without the game applying it. The tracker keeps an optimistic local estimate
and periodically reconciles it against the server's turns-played counter.
"""

from __future__ import annotations

from dataclasses import dataclass

from cagebot.client.base import GameClient
from cagebot.core.exceptions import DesyncError
from cagebot.core.logging import get_logger
from cagebot.models.game import GameStatus


logger = get_logger(__name__)


@dataclass(frozen=True)
class Checkpoint:
    """Last server-confirmed position.

    Attributes:
        budget: Adventures remaining at the checkpoint.
        turns_played: Server turn counter at the checkpoint.
    """

    budget: int
    turns_played: int


class TurnBudgetTracker:
    """Optimistic spend estimate with server reconciliation.

    Attributes:
        client: Game client used to fetch authoritative status.
        threshold: Estimated turns allowed before a reconciliation is due.
        checkpoint: Last confirmed budget and turn counter.
        estimated: Turns believed spent since the checkpoint.
        total_confirmed: Turns confirmed spent by earlier reconciliations.
        start_budget: Budget when tracking began.
    """

    def __init__(self, client: GameClient, status: GameStatus, *, threshold: int) -> None:
        self.client = client
        self.threshold = threshold
        self.checkpoint = Checkpoint(status.adventures, status.turns_played)
        self.estimated = 0
        self.total_confirmed = 0
        self.start_budget = status.adventures
        self.last_status = status

    @property
    def remaining_estimate(self) -> int:
        """Adventures believed left."""
        return self.checkpoint.budget - self.estimated

    def spend(self, turns: int = 1) -> None:
        self.estimated += turns

    def refund(self, turns: int = 1) -> None:
        self.estimated -= turns

    def needs_reconcile(self) -> bool:
        return self.estimated > self.threshold

    async def reconcile(self) -> GameStatus:
        """Fold the estimate into the confirmed total using server status.

        Returns:
            The status fetched for reconciliation.

        Raises:
            DesyncError: If turns were believed spent but the server's turn
                counter has not moved.
        """
        status = await self.client.get_status()

        if self.estimated > 0 and status.turns_played <= self.checkpoint.turns_played:
            raise DesyncError(
                "expected turns consumed but none were",
                expected=self.estimated,
                observed=status.turns_played - self.checkpoint.turns_played,
            )

        spent = self.checkpoint.budget - status.adventures
        if spent != self.estimated:
            logger.debug(
                "Estimate corrected by reconciliation",
                estimated=self.estimated,
                spent=spent,
            )

        self.total_confirmed += spent
        self.checkpoint = Checkpoint(status.adventures, status.turns_played)
        self.estimated = 0
        self.last_status = status
        return status

    def rebase(self, budget: int) -> None:
        """Move the checkpoint budget after adventures were gained by eating or drinking.

        Gains are not spending, so the confirmed total is untouched.
        """
        self.checkpoint = Checkpoint(budget, self.checkpoint.turns_played)

    async def settle(self) -> tuple[int, GameStatus]:
        """Compute the run's real spend, logging any gap from the estimate.

        Returns:
            Adventures consumed by the run and the final status.
        """
        status = await self.client.get_status()
        actual_segment = self.checkpoint.budget - status.adventures
        consumed = self.total_confirmed + actual_segment

        if self.estimated != actual_segment:
            logger.warning(
                "Turn estimate does not match server",
                estimated=self.estimated + self.total_confirmed,
                actual=consumed,
            )
        else:
            logger.info("Turns accounted for", spent=consumed, remaining=status.adventures)

        self.last_status = status
        return consumed, status


__all__ = [
    "Checkpoint",
    "TurnBudgetTracker",
]
