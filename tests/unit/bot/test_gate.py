"""Tests for the exclusivity gate and reply helpers."""

from __future__ import annotations

import asyncio

import pytest

from cagebot.bot.gate import ExclusivityGate
from cagebot.bot.replies import BUSY_TEXT, Replier, human_time, plural
from cagebot.models import ChatMessage, Player
from cagebot.models.responses import Detail, RequestStatus
from fakes import FakeGameClient


class TestExclusivityGate:
    """Tests for ExclusivityGate."""

    def test_acquire_and_release(self) -> None:
        """Test the gate is taken and freed."""
        gate = ExclusivityGate()

        assert gate.try_acquire("cage") is True
        assert gate.locked is True
        assert gate.holder == "cage"

        gate.release()
        assert gate.locked is False

    def test_second_acquire_fails_immediately(self) -> None:
        """Test a held gate refuses without waiting."""
        gate = ExclusivityGate()
        gate.try_acquire("cage")

        assert gate.try_acquire("escape") is False
        assert gate.holder == "cage"

    def test_release_unheld(self) -> None:
        """Test releasing a free gate is an error."""
        with pytest.raises(RuntimeError):
            ExclusivityGate().release()


class TestReplyHelpers:
    """Tests for reply formatting."""

    @pytest.mark.parametrize(
        "seconds,expected",
        [(0, "0:00:00"), (59, "0:00:59"), (3725, "1:02:05"), (-5, "0:00:00")],
    )
    def test_human_time(self, seconds: float, expected: str) -> None:
        """Test H:MM:SS formatting."""
        assert human_time(seconds) == expected

    def test_plural(self) -> None:
        """Test simple pluralisation."""
        assert plural(1, "grate") == "1 grate"
        assert plural(0, "grate") == "0 grates"


class TestReplier:
    """Tests for Replier."""

    def test_busy_human(self, client: FakeGameClient, requester: Player) -> None:
        """Test humans get the busy text."""
        asyncio.run(Replier(client).busy(ChatMessage(who=requester, text="cage x")))
        assert client.texts_to(requester) == [BUSY_TEXT]

    def test_busy_api(self, client: FakeGameClient, requester: Player) -> None:
        """Test API users get a notify payload."""
        asyncio.run(Replier(client).busy(ChatMessage(who=requester, text="cage.api x", api=True)))
        assert client.texts_to(requester) == [
            '{"type":"notify","status":"Busy","details":"already_in_use"}'
        ]

    def test_notify_without_human_text(self, client: FakeGameClient, requester: Player) -> None:
        """Test humans get nothing when a notice has no text for them."""
        asyncio.run(
            Replier(client).notify(
                requester, api=False, status=RequestStatus.ERROR, detail=Detail.ALREADY_CAGED
            )
        )
        assert client.sent == []
