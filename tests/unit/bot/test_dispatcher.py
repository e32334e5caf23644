"""Tests for whisper dispatch and the exclusivity rules."""

from __future__ import annotations

import asyncio

import pytest

from cagebot.bot.cagebot import Cagebot
from cagebot.bot.dispatcher import MUTATING_COMMANDS, Dispatcher
from cagebot.bot.handlers import CommandHandlers
from cagebot.bot.replies import BUSY_TEXT, DIDNT_UNDERSTAND_TEXT
from cagebot.core.config import DispatchSettings
from cagebot.core.exceptions import TransportError
from cagebot.engine.lifecycle import TaskPhase
from cagebot.models import ChatMessage, Clan, Player
from fakes import CAGE_PAGE, FakeGameClient


FAST = DispatchSettings(poll_interval_seconds=0.01, idle_delay_seconds=0.01)


@pytest.fixture
def dispatcher(bot: Cagebot) -> Dispatcher:
    return Dispatcher(bot, CommandHandlers(bot), FAST)


class TestRouting:
    """Tests for command routing."""

    def test_mutating_commands(self) -> None:
        """Test which commands need the gate."""
        assert MUTATING_COMMANDS == {"cage", "escape", "release"}

    def test_mutating_commands_take_the_gate(
        self, bot: Cagebot, dispatcher: Dispatcher, client: FakeGameClient, requester: Player
    ) -> None:
        """Test every mutating command is refused while the gate is held."""
        bot.gate.try_acquire("cage")

        for command in sorted(MUTATING_COMMANDS):
            asyncio.run(dispatcher.dispatch(ChatMessage(who=requester, text=command)))

        assert client.texts_to(requester) == [BUSY_TEXT] * len(MUTATING_COMMANDS)

    def test_unknown_command(
        self, dispatcher: Dispatcher, client: FakeGameClient, requester: Player
    ) -> None:
        """Test unknown words get the fallback reply."""
        asyncio.run(dispatcher.dispatch(ChatMessage(who=requester, text="dance for me")))

        assert client.texts_to(requester) == [DIDNT_UNDERSTAND_TEXT]

    def test_command_case_and_suffix(
        self, dispatcher: Dispatcher, client: FakeGameClient, requester: Player
    ) -> None:
        """Test commands are matched case-insensitively without the API suffix."""
        asyncio.run(dispatcher.dispatch(ChatMessage(who=requester, text="HELP")))
        asyncio.run(
            dispatcher.dispatch(ChatMessage(who=requester, text="status.api", api=True))
        )

        texts = client.texts_to(requester)
        assert texts[0].startswith("Hi! I am Cagebot")
        assert texts[-1].startswith('{"type":"status"')


class TestExclusivity:
    """Tests for the non-blocking gate around mutating commands."""

    def test_rejected_while_gate_held(
        self, bot: Cagebot, dispatcher: Dispatcher, client: FakeGameClient, requester: Player
    ) -> None:
        """Test a mutating command is refused at once while another runs."""
        bot.gate.try_acquire("cage")

        asyncio.run(dispatcher.dispatch(ChatMessage(who=requester, text="escape")))

        assert client.texts_to(requester) == [BUSY_TEXT]
        assert dispatcher.pending_tasks == set()
        assert bot.gate.holder == "cage"

    def test_read_only_answered_while_gate_held(
        self, bot: Cagebot, dispatcher: Dispatcher, client: FakeGameClient, requester: Player
    ) -> None:
        """Test status requests bypass the gate."""
        bot.gate.try_acquire("cage")

        asyncio.run(dispatcher.dispatch(ChatMessage(who=requester, text="status")))

        assert client.texts_to(requester)[0] == (
            "I am not presently caged and have 100 adventures left."
        )

    def test_rejected_while_task_pending(
        self,
        bot: Cagebot,
        dispatcher: Dispatcher,
        client: FakeGameClient,
        requester: Player,
        bystander: Player,
        clan: Clan,
    ) -> None:
        """Test a pending cage task counts as busy even with the gate free."""
        bot.lifecycle.begin_pending(requester, clan)

        asyncio.run(dispatcher.dispatch(ChatMessage(who=bystander, text="release")))

        assert client.texts_to(bystander) == [BUSY_TEXT]
        assert bot.gate.locked is False

    def test_second_cage_is_busy(
        self,
        bot: Cagebot,
        dispatcher: Dispatcher,
        client: FakeGameClient,
        requester: Player,
        bystander: Player,
        clan: Clan,
    ) -> None:
        """Test only the first of two queued cage requests runs."""
        client.whitelists = [clan]
        client.pages.append(CAGE_PAGE)
        dispatcher.queue.extend(
            [
                ChatMessage(who=requester, text="cage Hobo Hunters"),
                ChatMessage(who=bystander, text="cage Hobo Hunters"),
            ]
        )

        asyncio.run(dispatcher.drain())

        assert client.texts_to(bystander) == [BUSY_TEXT]
        assert client.texts_to(requester)[1].startswith("Clang!")
        assert bot.lifecycle.task is not None
        assert bot.lifecycle.task.requester == requester
        assert bot.gate.locked is False
        assert dispatcher.pending_tasks == set()

    def test_gate_released_after_failure(
        self,
        bot: Cagebot,
        dispatcher: Dispatcher,
        client: FakeGameClient,
        requester: Player,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test a crashing command still frees the gate."""

        async def broken() -> list[Clan]:
            raise RuntimeError("whitelist page changed")

        monkeypatch.setattr(client, "get_whitelists", broken)
        dispatcher.queue.append(ChatMessage(who=requester, text="cage Hobo Hunters"))

        asyncio.run(dispatcher.drain())

        assert bot.gate.locked is False
        assert dispatcher.pending_tasks == set()

    def test_failed_cage_attempt_leaves_bot_free(
        self,
        bot: Cagebot,
        dispatcher: Dispatcher,
        client: FakeGameClient,
        requester: Player,
        clan: Clan,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test a cage that fails after starting its task does not lock out later ones."""
        client.whitelists = [clan]
        bot.settings.adventure.open_everything = True
        bot.settings.adventure.open_everything_while_adventures_above = 100
        failures = [TransportError("raid log timed out")]
        raid_log = client.read_raid_log

        async def flaky() -> str | None:
            if failures:
                raise failures.pop()
            return await raid_log()

        monkeypatch.setattr(client, "read_raid_log", flaky)

        dispatcher.queue.append(ChatMessage(who=requester, text="cage Hobo Hunters"))
        asyncio.run(dispatcher.drain())

        assert bot.lifecycle.phase is TaskPhase.ABSENT
        assert bot.lifecycle.is_busy is False
        assert bot.gate.locked is False

        client.pages.append(CAGE_PAGE)
        dispatcher.queue.append(ChatMessage(who=requester, text="cage Hobo Hunters"))
        asyncio.run(dispatcher.drain())

        texts = client.texts_to(requester)
        assert BUSY_TEXT not in texts
        assert texts[0] == "Attempting to get caged in Hobo Hunters."
        assert bot.lifecycle.phase is TaskPhase.ACTIVE


class TestPolling:
    """Tests for the poll and process loops."""

    def test_run_answers_whispers(
        self, dispatcher: Dispatcher, client: FakeGameClient, requester: Player
    ) -> None:
        """Test whispers fetched by the poller are answered."""
        client.whispers = [ChatMessage(who=requester, text="help")]

        async def scenario() -> None:
            runner = asyncio.create_task(dispatcher.run())
            for _ in range(200):
                await asyncio.sleep(0.01)
                if client.sent:
                    break
            dispatcher.stop()
            await asyncio.wait_for(runner, timeout=1)

        asyncio.run(scenario())

        assert client.texts_to(requester)[0].startswith("Hi! I am Cagebot")

    def test_poll_survives_transport_errors(
        self,
        dispatcher: Dispatcher,
        client: FakeGameClient,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test a failed fetch is logged and polling carries on."""
        calls = []

        async def flaky() -> list[ChatMessage]:
            calls.append(1)
            if len(calls) == 1:
                raise TransportError("chat server unreachable")
            dispatcher.stop()
            return []

        monkeypatch.setattr(client, "fetch_new_whispers", flaky)
        dispatcher._running = True

        asyncio.run(asyncio.wait_for(dispatcher.poll_forever(), timeout=1))

        assert len(calls) == 2
