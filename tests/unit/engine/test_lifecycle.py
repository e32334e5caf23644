"""Tests for the cage task lifecycle."""

from __future__ import annotations

import asyncio

from cagebot.engine.lifecycle import (
    CageTaskLifecycle,
    ReleaseDecision,
    TaskPhase,
    chew_out,
)
from cagebot.models import Clan, Player
from cagebot.storage.state_store import StateStore
from fakes import FakeClock, FakeGameClient


def caged_lifecycle(
    client: FakeGameClient,
    store: StateStore,
    clock: FakeClock,
    requester: Player,
    clan: Clan,
) -> CageTaskLifecycle:
    """A lifecycle whose task is active, with the fake game caged."""
    lifecycle = CageTaskLifecycle(client, store, clock=clock)
    lifecycle.begin_pending(requester, clan)
    client.caged = True
    asyncio.run(lifecycle.confirm_caged())
    return lifecycle


class TestPhases:
    """Tests for task phases."""

    def test_transitions(
        self,
        client: FakeGameClient,
        store: StateStore,
        clock: FakeClock,
        requester: Player,
        clan: Clan,
    ) -> None:
        """Test ABSENT -> PENDING -> ACTIVE -> ABSENT."""
        lifecycle = CageTaskLifecycle(client, store, clock=clock)
        assert lifecycle.phase is TaskPhase.ABSENT

        lifecycle.begin_pending(requester, clan, api_responses=True)
        assert lifecycle.phase is TaskPhase.PENDING
        assert lifecycle.is_busy is True

        asyncio.run(lifecycle.confirm_caged())
        assert lifecycle.phase is TaskPhase.ACTIVE
        assert lifecycle.is_busy is False

        asyncio.run(lifecycle.clear())
        assert lifecycle.phase is TaskPhase.ABSENT
        assert lifecycle.caged is False

    def test_confirm_restarts_clock(
        self,
        client: FakeGameClient,
        store: StateStore,
        clock: FakeClock,
        requester: Player,
        clan: Clan,
    ) -> None:
        """Test the release window starts when the bot is actually caged."""
        lifecycle = CageTaskLifecycle(client, store, clock=clock)
        lifecycle.begin_pending(requester, clan)
        clock.advance(600)

        asyncio.run(lifecycle.confirm_caged())

        assert lifecycle.seconds_in_task() == 0


class TestAuthorization:
    """Tests for who may free the bot."""

    def test_escape_by_requester(
        self,
        client: FakeGameClient,
        store: StateStore,
        clock: FakeClock,
        requester: Player,
        clan: Clan,
    ) -> None:
        """Test the requester may escape at any time."""
        lifecycle = caged_lifecycle(client, store, clock, requester, clan)

        outcome = asyncio.run(lifecycle.escape(requester))

        assert outcome.decision is ReleaseDecision.RELEASED
        assert outcome.bystander_release is False
        assert lifecycle.phase is TaskPhase.ABSENT
        assert client.caged is False

    def test_escape_by_bystander(
        self,
        client: FakeGameClient,
        store: StateStore,
        clock: FakeClock,
        requester: Player,
        bystander: Player,
        clan: Clan,
    ) -> None:
        """Test escape is reserved for the requester."""
        lifecycle = caged_lifecycle(client, store, clock, requester, clan)

        outcome = asyncio.run(lifecycle.escape(bystander))

        assert outcome.decision is ReleaseDecision.NOT_REQUESTER
        assert lifecycle.caged is True

    def test_release_before_window(
        self,
        client: FakeGameClient,
        store: StateStore,
        clock: FakeClock,
        requester: Player,
        bystander: Player,
        clan: Clan,
    ) -> None:
        """Test others must wait out the release window."""
        lifecycle = caged_lifecycle(client, store, clock, requester, clan)
        clock.advance(3599)

        outcome = asyncio.run(lifecycle.release(bystander))

        assert outcome.decision is ReleaseDecision.NOT_RELEASABLE
        assert lifecycle.may_release(requester) is True
        assert lifecycle.may_release(bystander) is False

    def test_release_after_window(
        self,
        client: FakeGameClient,
        store: StateStore,
        clock: FakeClock,
        requester: Player,
        bystander: Player,
        clan: Clan,
    ) -> None:
        """Test anyone may release after an hour, and the requester is remembered."""
        lifecycle = caged_lifecycle(client, store, clock, requester, clan)
        clock.advance(3601)

        outcome = asyncio.run(lifecycle.release(bystander))

        assert outcome.decision is ReleaseDecision.RELEASED
        assert outcome.bystander_release is True
        assert outcome.previous is not None
        assert outcome.previous.requester == requester

    def test_release_without_task(
        self,
        client: FakeGameClient,
        store: StateStore,
        clock: FakeClock,
        bystander: Player,
    ) -> None:
        """Test a cage with no known task may be released by anyone."""
        client.caged = True
        lifecycle = CageTaskLifecycle(client, store, clock=clock)
        asyncio.run(lifecycle.probe())

        outcome = asyncio.run(lifecycle.release(bystander))

        assert outcome.decision is ReleaseDecision.RELEASED
        assert outcome.bystander_release is False

    def test_not_caged(
        self,
        client: FakeGameClient,
        store: StateStore,
        clock: FakeClock,
        requester: Player,
    ) -> None:
        """Test nothing happens when the bot is free."""
        lifecycle = CageTaskLifecycle(client, store, clock=clock)

        outcome = asyncio.run(lifecycle.escape(requester))

        assert outcome.decision is ReleaseDecision.NOT_CAGED
        assert client.choices == []

    def test_failed_chew(
        self,
        client: FakeGameClient,
        store: StateStore,
        clock: FakeClock,
        requester: Player,
        clan: Clan,
    ) -> None:
        """Test a failed chew-out keeps the task."""
        lifecycle = caged_lifecycle(client, store, clock, requester, clan)
        client.chew_fails = True

        outcome = asyncio.run(lifecycle.escape(requester))

        assert outcome.decision is ReleaseDecision.FAILED
        assert lifecycle.phase is TaskPhase.ACTIVE


class TestThirdPartyUncaging:
    """Tests for noticing someone freed the bot through the game."""

    def test_cleared_silently(
        self,
        client: FakeGameClient,
        store: StateStore,
        clock: FakeClock,
        requester: Player,
        clan: Clan,
    ) -> None:
        """Test the task is dropped when the probe finds the bot free."""
        lifecycle = caged_lifecycle(client, store, clock, requester, clan)
        client.caged = False

        assert asyncio.run(lifecycle.detect_third_party_uncaging(force=True)) is True
        assert lifecycle.phase is TaskPhase.ABSENT
        assert client.sent == []

        saved = store.load()
        assert saved is not None and saved.cage_task is None

    def test_rate_limited(
        self,
        client: FakeGameClient,
        store: StateStore,
        clock: FakeClock,
        requester: Player,
        clan: Clan,
    ) -> None:
        """Test probes wait for the probe interval unless forced."""
        lifecycle = caged_lifecycle(client, store, clock, requester, clan)
        client.caged = False

        assert asyncio.run(lifecycle.detect_third_party_uncaging()) is False
        assert lifecycle.caged is True

        clock.advance(15 * 60 + 1)
        assert asyncio.run(lifecycle.detect_third_party_uncaging()) is True

    def test_not_while_running(
        self,
        client: FakeGameClient,
        store: StateStore,
        clock: FakeClock,
        requester: Player,
        clan: Clan,
    ) -> None:
        """Test no probe happens while the task is pending."""
        lifecycle = CageTaskLifecycle(client, store, clock=clock)
        lifecycle.begin_pending(requester, clan)

        assert asyncio.run(lifecycle.detect_third_party_uncaging(force=True)) is False
        assert lifecycle.phase is TaskPhase.PENDING


class TestRestore:
    """Tests for reloading the task after a restart."""

    def test_restore_matching_turn(
        self,
        client: FakeGameClient,
        store: StateStore,
        clock: FakeClock,
        requester: Player,
        clan: Clan,
    ) -> None:
        """Test a record written at the live turn is trusted."""
        lifecycle = caged_lifecycle(client, store, clock, requester, clan)
        lifecycle.max_drunk = 19
        asyncio.run(lifecycle.confirm_caged())

        restarted = CageTaskLifecycle(client, store, clock=clock)

        async def scenario():
            await restarted.probe()
            return await restarted.restore(await client.get_status())

        saved = asyncio.run(scenario())

        assert saved is not None
        assert restarted.task is not None
        assert restarted.task.requester == requester
        assert restarted.max_drunk == 19
        assert restarted.phase is TaskPhase.ACTIVE

    def test_stale_record_discarded(
        self,
        client: FakeGameClient,
        store: StateStore,
        clock: FakeClock,
        requester: Player,
        clan: Clan,
    ) -> None:
        """Test any turn played since the record was written makes it stale."""
        caged_lifecycle(client, store, clock, requester, clan)
        client.turns_played += 1

        restarted = CageTaskLifecycle(client, store, clock=clock)

        async def scenario():
            await restarted.probe()
            return await restarted.restore(await client.get_status())

        assert asyncio.run(scenario()) is None
        assert restarted.task is None

    def test_unreadable_record(
        self,
        client: FakeGameClient,
        store: StateStore,
        clock: FakeClock,
    ) -> None:
        """Test a corrupt file is ignored."""
        store.path.write_text("{not json", encoding="utf-8")
        lifecycle = CageTaskLifecycle(client, store, clock=clock)

        assert asyncio.run(lifecycle.restore(asyncio.run(client.get_status()))) is None


class TestChewOut:
    """Tests for chew_out."""

    def test_not_caged(self, client: FakeGameClient) -> None:
        """Test chewing out while free is harmless."""
        assert asyncio.run(chew_out(client)) is True
        assert client.choices == []
