"""Tests for game-side models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from cagebot.models import ChatMessage, GameStatus, Player, ResourceState


class TestPlayer:
    """Tests for Player."""

    def test_str(self) -> None:
        """Test the display form includes the ID."""
        assert str(Player(id="1234", name="Requester")) == "Requester (#1234)"

    def test_frozen(self) -> None:
        """Test players are immutable."""
        player = Player(id="1", name="A")
        with pytest.raises(ValidationError):
            player.name = "B"


class TestGameStatus:
    """Tests for GameStatus."""

    def test_unavailable_is_pessimistic(self) -> None:
        """Test the fallback status stops any loop relying on it."""
        status = GameStatus.unavailable()

        assert status.adventures == 10
        assert status.full == 14
        assert status.drunk == 19
        assert status.turns_played == 0


class TestResourceState:
    """Tests for ResourceState."""

    def test_remaining(self) -> None:
        """Test remaining capacity is derived from the status."""
        state = ResourceState.from_status(GameStatus(adventures=50, full=6, drunk=10), 19)

        assert state.budget == 50
        assert state.food_remaining == 9
        assert state.drink_remaining == 9
        assert state.saturated is False

    def test_saturated(self) -> None:
        """Test a full stomach and liver are saturated."""
        state = ResourceState.from_status(GameStatus(full=15, drunk=14), 14)
        assert state.saturated is True

    def test_partially_full_is_not_saturated(self) -> None:
        """Test room in either organ keeps consumption possible."""
        state = ResourceState.from_status(GameStatus(full=15, drunk=10), 14)
        assert state.saturated is False


class TestChatMessage:
    """Tests for ChatMessage parsing."""

    @pytest.mark.parametrize(
        "text,command,argument",
        [
            ("status", "status", ""),
            ("STATUS", "status", ""),
            ("status.api", "status", ""),
            ("cage Hobo Hunters", "cage", "Hobo Hunters"),
            ("cage.api  Hobo Hunters autorelease ", "cage", "Hobo Hunters autorelease"),
            ("  help", "help", ""),
        ],
    )
    def test_command_and_argument(self, text: str, command: str, argument: str) -> None:
        """Test the command word and its argument are split off."""
        message = ChatMessage(who=Player(id="1", name="A"), text=text)

        assert message.command == command
        assert message.argument == argument
