"""Whisper command handlers.

Each public coroutine answers one command. ``cage``, ``escape`` and
``release`` change the character's state and are only ever called by the
dispatcher while it holds the exclusivity gate; the others are read-only.
"""

from __future__ import annotations

from cagebot.bot.cagebot import Cagebot
from cagebot.bot.replies import (
    CHEWED_OUT_TEXT,
    DIDNT_UNDERSTAND_TEXT,
    HELP_LINES,
    Replier,
    human_time,
    plural,
)
from cagebot.client.base import GameClient
from cagebot.client.pages import count_grates_and_valves
from cagebot.core.constants import MAX_FULLNESS
from cagebot.core.logging import get_logger
from cagebot.engine.diet import DietIssue, IssueCallback
from cagebot.engine.lifecycle import ReleaseOutcome
from cagebot.engine.loop import AdventureLoop, LoopState, LoopSummary
from cagebot.models.game import ChatMessage, Clan
from cagebot.models.responses import Detail, ExploredResponse, RequestStatus


logger = get_logger(__name__)

AUTORELEASE_FLAG = "autorelease"


def parse_cage_argument(argument: str) -> tuple[str, bool]:
    """Split ``<clan> [autorelease]`` into the clan name and the flag."""
    words = argument.split()
    if words and words[-1].lower() == AUTORELEASE_FLAG:
        return " ".join(words[:-1]), True
    return " ".join(words), False


def match_clans(clans: list[Clan], name: str) -> list[Clan]:
    """Whitelisted clans matching ``name``, case-insensitively.

    Substring matches are accepted, but a single exact match wins.
    """
    wanted = name.lower()
    matches = [clan for clan in clans if wanted in clan.name.lower()]
    exact = [clan for clan in matches if clan.name.lower() == wanted]
    return exact if len(exact) == 1 else matches


class CommandHandlers:
    """Answers whispered commands on behalf of a Cagebot.

    Attributes:
        bot: The bot aggregate.
    """

    def __init__(self, bot: Cagebot) -> None:
        self.bot = bot

    @property
    def client(self) -> GameClient:
        return self.bot.client

    @property
    def replies(self) -> Replier:
        return self.bot.replies

    # =========================================================================
    # Read-only commands
    # =========================================================================

    async def status(self, message: ChatMessage) -> None:
        logger.info("Status requested", requester=str(message.who), api=message.api)
        snapshot = await self.bot.status_snapshot(message.who)
        task = self.bot.lifecycle.task

        if message.api:
            response = snapshot.to_response(
                task.requester.id if task else None,
                task.clan.id if task else None,
            )
            await self.client.send_private_message(message.who, response.to_chat())
            return

        lines: list[str] = []
        advs = snapshot.budget_remaining
        if snapshot.caged and task is not None:
            elapsed = snapshot.elapsed_seconds or 0.0
            lines.append(
                f"I have been caged in {task.clan.name} for {human_time(elapsed)}, "
                f"at the request of {task.requester}."
            )
            if self.bot.lifecycle.releasable():
                lines.append(
                    "As I've been caged for at least an hour, anyone can release me by "
                    f"whispering \"release\" to me. I have {advs} adventures left."
                )
            else:
                remaining = self.bot.lifecycle.release_after - elapsed
                lines.append(
                    "They can release me at any time by whispering \"escape\" to me, or anyone "
                    f"can release me by whispering \"release\" to me in {human_time(remaining)}. "
                    f"I have {advs} adventures left."
                )
        elif snapshot.caged:
            lines.append(
                "I am caged, but I don't know where, when, or for how long. Anyone can release "
                f"me by whispering \"release\" to me. I have {advs} adventures left."
            )
        elif task is not None:
            lines.append(
                f"I am currently trying to get caged in {task.clan.name} at the request of "
                f"{task.requester}, and have {advs} adventures left."
            )
        else:
            lines.append(f"I am not presently caged and have {advs} adventures left.")

        max_drunk = snapshot.max_drunk if snapshot.max_drunk is not None else "???"
        lines.append(
            f"My current fullness is {snapshot.full}/{MAX_FULLNESS} and drunkenness is "
            f"{snapshot.drunk}/{max_drunk}."
        )
        await self.replies.say(message.who, *lines)

    async def diet(self, message: ChatMessage) -> None:
        logger.info("Diet requested", requester=str(message.who), api=message.api)
        report = await self.bot.ledger.diet_report()

        if message.api:
            await self.client.send_private_message(message.who, report.to_chat())
            return

        await self.replies.say(
            message.who,
            "My remaining diet today has an expected outcome of "
            f"{report.possible_advs_today} adventures.",
            f"I have enough food for {report.food} fullness and {report.fullness_advs} adventures.",
            f"I have enough drinks for another {report.drink} inebriety and "
            f"{report.drunkness_advs} adventures.",
        )

    async def help(self, message: ChatMessage) -> None:
        logger.info("Help requested", requester=str(message.who))
        me = self.client.me
        intro = f"Hi! I am {me}, and I am running a Cagebot." if me else "Hi! I am a Cagebot."
        await self.replies.say(message.who, intro, *HELP_LINES)

    async def didnt_understand(self, message: ChatMessage) -> None:
        logger.info("Incomprehensible request", requester=str(message.who))
        await self.replies.say(message.who, DIDNT_UNDERSTAND_TEXT)

    async def busy(self, message: ChatMessage) -> None:
        logger.info("Busy, rejecting request", requester=str(message.who), command=message.command)
        await self.replies.busy(message)

    def _issue_reporter(self, message: ChatMessage) -> IssueCallback:
        """Callback telling the requester the pantry needs restocking."""

        async def report(issue: DietIssue) -> None:
            await self.replies.notify(
                message.who,
                api=message.api,
                status=RequestStatus.ISSUE,
                detail=issue.detail,
                human=issue.message,
            )

        return report

    # =========================================================================
    # Caging
    # =========================================================================

    async def cage(self, message: ChatMessage) -> None:
        """Check the preconditions of a cage request and run the adventure loop."""
        bot = self.bot
        logger.info("Caging requested", requester=str(message.who), api=message.api)
        await bot.lifecycle.detect_third_party_uncaging()

        seconds = await self.client.seconds_to_rollover()
        if seconds < bot.settings.adventure.rollover_guard_seconds:
            await self.replies.error(
                message,
                Detail.ROLLOVER,
                f"Rollover is in {human_time(seconds)}, I do not wish to get into a bad state. "
                "Please try again after rollover.",
            )
            return

        clan_name, auto_release = parse_cage_argument(message.argument)
        if not clan_name:
            await self.replies.error(
                message, Detail.INVALID_CLAN, "Please provide the name of a clan I am whitelisted in."
            )
            return

        if bot.lifecycle.caged:
            if message.api:
                await self.replies.error(message, Detail.ALREADY_CAGED, "")
            else:
                logger.info("Already caged, sending status report instead")
                await self.status(message)
            return

        whitelists = match_clans(await self.client.get_whitelists(), clan_name)
        if len(whitelists) > 1:
            names = ", ".join(clan.name for clan in whitelists)
            await self.replies.error(
                message,
                Detail.CLAN_AMBIGUOUS,
                f"I'm in multiple clans named {clan_name}: {names}. Please be more specific.",
            )
            return
        if not whitelists:
            await self.replies.error(
                message,
                Detail.NOT_WHITELISTED,
                f"I'm not in any clans named {clan_name}. Check your spelling, "
                "or ensure I have a whitelist.",
            )
            return

        target = whitelists[0]
        logger.info("Clan matched, whitelisting", clan=target.name, clan_id=target.id)
        await self.client.join_clan(target)

        if await self.client.my_clan_id() != target.id:
            await self.replies.error(
                message,
                Detail.UNSUCCESSFUL_WHITELIST,
                f"I tried to whitelist to {target.name}, but was unable to. "
                "Did I accidentally become a clan leader?",
            )
            return

        if not await self.client.has_sewer_access():
            await self.replies.error(
                message,
                Detail.NO_HOBO_ACCESS,
                f"I can't seem to access the sewers in {target.name}. "
                "Is Hobopolis open? Do I have the right permissions?",
            )
            return

        await self.attempt_cage(message, target, auto_release=auto_release)

    async def attempt_cage(
        self,
        message: ChatMessage,
        target: Clan,
        *,
        auto_release: bool = False,
    ) -> LoopSummary:
        """Run the adventure loop in ``target`` and report the outcome.

        A failure before the loop has settled the task drops the pending
        task, so later requests are not refused as busy.
        """
        lifecycle = self.bot.lifecycle
        lifecycle.begin_pending(
            message.who, target, api_responses=message.api, auto_release=auto_release
        )
        try:
            return await self._run_cage(message, target)
        except Exception:
            if lifecycle.is_busy:
                logger.warning("Cage attempt failed, dropping pending task", clan=target.name)
                await lifecycle.clear()
            raise

    async def _run_cage(self, message: ChatMessage, target: Clan) -> LoopSummary:
        bot = self.bot
        settings = bot.settings.adventure
        grates_found = valves_found = 0
        if settings.open_everything:
            grates_found, valves_found = count_grates_and_valves(await self.client.read_raid_log())
            logger.info(
                "Read raid log",
                clan=target.name,
                grates_found=grates_found,
                valves_found=valves_found,
            )

        await bot.whiteboard.update(caged=True)
        await self.replies.notify(
            message.who,
            api=message.api,
            status=RequestStatus.ACCEPTED,
            detail=Detail.DOING_CAGE,
            human=f"Attempting to get caged in {target.name}.",
        )

        loop = AdventureLoop(
            self.client,
            bot.ledger,
            bot.lifecycle,
            settings,
            grates_found=grates_found,
            valves_found=valves_found,
            on_diet_issue=self._issue_reporter(message),
        )
        summary = await loop.run()

        if summary.caged:
            if not message.api:
                await self.replies.say(
                    message.who,
                    f"Clang! I am now caged in {target.name}. "
                    "Release me later by whispering \"escape\" to me.",
                )
        else:
            await bot.whiteboard.update(caged=False)
            if not message.api:
                await self.replies.say(message.who, self._failure_text(summary, target))

        await self._report_explored(message, summary)
        return summary

    @staticmethod
    def _failure_text(summary: LoopSummary, target: Clan) -> str:
        if summary.state is LoopState.EXHAUSTED:
            return f"I ran out of adventures trying to get caged in {target.name}."
        if summary.reason and not summary.desynced:
            return (
                f"Something went wrong while I was trying to get caged in {target.name}: "
                f"{summary.reason}. Good luck."
            )
        return (
            f"Something unspecified went wrong while I was trying to get caged in {target.name}. "
            "Good luck."
        )

    async def _report_explored(self, message: ChatMessage, summary: LoopSummary) -> None:
        if message.api:
            explored = ExploredResponse(
                caged=summary.caged,
                advs_used=summary.actions_consumed,
                advs_left=summary.budget_remaining,
                grates=summary.grates_opened,
                total_grates=summary.total_grates,
                valves=summary.valves_opened,
                total_valves=summary.total_valves,
                chews=summary.chew_outs,
            )
            await self.client.send_private_message(message.who, explored.to_chat())
            return

        escaped = (
            f" caged yet escaped {plural(summary.chew_outs, 'time')},"
            if summary.chew_outs > 0
            else ""
        )
        lines = [
            f"I opened {plural(summary.grates_opened, 'grate')} and turned "
            f"{plural(summary.valves_opened, 'valve')} on the way,{escaped} and spent "
            f"{plural(summary.actions_consumed, 'adventure')} "
            f"({summary.budget_remaining} remaining).",
        ]
        if summary.grates_opened > 0 or summary.valves_opened > 0:
            adventure = self.bot.settings.adventure
            lines.append(
                f"Hobopolis has {summary.total_grates} / {adventure.grate_cap} grates open, "
                f"{summary.total_valves} / {adventure.valve_cap} valves twisted."
            )
        await self.replies.say(message.who, *lines)

    # =========================================================================
    # Uncaging
    # =========================================================================

    async def escape(self, message: ChatMessage) -> None:
        logger.info("Escape requested", requester=str(message.who), api=message.api)
        outcome = await self.bot.lifecycle.escape(message.who)
        await self._finish_uncage(message, outcome)

    async def release(self, message: ChatMessage) -> None:
        logger.info("Release requested", requester=str(message.who), api=message.api)
        outcome = await self.bot.lifecycle.release(message.who)
        await self._finish_uncage(message, outcome)

    async def _finish_uncage(self, message: ChatMessage, outcome: ReleaseOutcome) -> None:
        if not outcome.released:
            logger.info("Not uncaging, sending status report instead", decision=outcome.decision.value)
            await self.status(message)
            return

        await self.bot.whiteboard.update(caged=False)
        if message.api:
            await self.status(message)
        else:
            await self.replies.say(message.who, CHEWED_OUT_TEXT)

        previous = outcome.previous
        if outcome.bystander_release and previous is not None:
            logger.info(
                "Reporting release to original requester", requester=str(previous.requester)
            )
            await self.replies.notify(
                previous.requester,
                api=previous.api_responses,
                status=RequestStatus.NOTIFICATION,
                detail=Detail.YOUR_CLAN_UNBAITED,
                human=(
                    f"I chewed out of the Hobopolis instance in {previous.clan.name} due to "
                    "receiving a release command after being left in for more than an hour. "
                    "YOUR CAGE IS NOW UNBAITED."
                ),
            )

        await self.bot.ledger.replenish(self._issue_reporter(message))


__all__ = [
    "AUTORELEASE_FLAG",
    "parse_cage_argument",
    "match_clans",
    "CommandHandlers",
]
