"""Whisper polling and command dispatch.

Two coroutines run side by side: one polls the chat server for new whispers
and appends them to a FIFO queue, the other drains the queue one message at
a time. Read-only commands are answered inline. Mutating commands try the
exclusivity gate and, if they get it, run as a background task so status and
diet requests stay responsive during a long adventure run.
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Awaitable, Callable

from cagebot.bot.cagebot import Cagebot
from cagebot.bot.handlers import CommandHandlers
from cagebot.core.config import DispatchSettings
from cagebot.core.exceptions import TransportError
from cagebot.core.logging import bind_context, clear_context, get_logger
from cagebot.models.game import ChatMessage


logger = get_logger(__name__)

Handler = Callable[[ChatMessage], Awaitable[None]]

MUTATING_COMMANDS = frozenset({"cage", "escape", "release"})


class Dispatcher:
    """Routes whispers to command handlers.

    Attributes:
        bot: The bot aggregate.
        handlers: Command handlers.
        settings: Polling cadence.
    """

    def __init__(
        self,
        bot: Cagebot,
        handlers: CommandHandlers,
        settings: DispatchSettings,
    ) -> None:
        self.bot = bot
        self.handlers = handlers
        self.settings = settings
        self.queue: deque[ChatMessage] = deque()
        self._background: set[asyncio.Task[None]] = set()
        self._running = False
        self._read_only: dict[str, Handler] = {
            "status": handlers.status,
            "diet": handlers.diet,
            "help": handlers.help,
        }
        self._mutating: dict[str, Handler] = {
            name: getattr(handlers, name) for name in MUTATING_COMMANDS
        }

    @property
    def pending_tasks(self) -> set[asyncio.Task[None]]:
        """Mutating commands still running in the background."""
        return set(self._background)

    # =========================================================================
    # Dispatch
    # =========================================================================

    async def dispatch(self, message: ChatMessage) -> None:
        """Handle one whisper."""
        command = message.command
        logger.info("Processing whisper", sender=str(message.who), command=command)

        if command in self._mutating:
            await self._start_exclusive(message, self._mutating[command])
            return

        handler = self._read_only.get(command, self.handlers.didnt_understand)
        await handler(message)

    async def _start_exclusive(self, message: ChatMessage, handler: Handler) -> None:
        """Start a mutating command, or reject it at once if the bot is busy."""
        if self.bot.lifecycle.is_busy or not self.bot.gate.try_acquire(message.command):
            await self.handlers.busy(message)
            return

        task = asyncio.create_task(self._run_exclusive(message, handler))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _run_exclusive(self, message: ChatMessage, handler: Handler) -> None:
        """Run a mutating command that already holds the gate, then free it."""
        bind_context(requester=str(message.who), command=message.command)
        try:
            await handler(message)
        except Exception:
            logger.exception("Command failed", command=message.command)
        finally:
            self.bot.gate.release()
            clear_context()

    async def drain(self) -> None:
        """Dispatch every queued whisper, then wait for background commands."""
        while self.queue:
            await self.dispatch(self.queue.popleft())
        if self._background:
            await asyncio.gather(*self._background)

    # =========================================================================
    # Polling
    # =========================================================================

    async def poll_forever(self) -> None:
        """Fetch new whispers every poll interval."""
        while self._running:
            try:
                self.queue.extend(await self.bot.client.fetch_new_whispers())
            except TransportError as exc:
                logger.warning("Failed to fetch whispers", error=exc.message)
            await asyncio.sleep(self.settings.poll_interval_seconds)

    async def process_forever(self) -> None:
        """Drain the queue continuously, probing the cage while idle."""
        while self._running:
            if self.queue:
                await self.dispatch(self.queue.popleft())
                continue

            await self.bot.periodic_probe()
            await asyncio.sleep(self.settings.idle_delay_seconds)

    async def run(self) -> None:
        """Poll and dispatch until stopped."""
        self._running = True
        logger.info("Polling whispers", interval=self.settings.poll_interval_seconds)
        try:
            await asyncio.gather(self.poll_forever(), self.process_forever())
        finally:
            self._running = False

    def stop(self) -> None:
        self._running = False


__all__ = [
    "MUTATING_COMMANDS",
    "Dispatcher",
]
