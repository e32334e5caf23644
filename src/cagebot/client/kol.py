"""HTTP client for the Kingdom of Loathing web interface.

The game has no real API for most actions: the bot submits the same forms a
browser would and scrapes the resulting pages. Every request is a POST that
carries the session's password hash, and the session cookie jar is kept by
the underlying httpx client.

Requests made during rollover, or in the last second before it, are skipped
and reported as ``None``; the server would throw the session away anyway.
"""

from __future__ import annotations

import time
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from cagebot.client import pages
from cagebot.client.base import GameClient
from cagebot.client.messages import split_message
from cagebot.core.config import KoLSettings
from cagebot.core.constants import SEWERS_SNARFBLAT
from cagebot.core.exceptions import SessionExpiredError, TransportError
from cagebot.core.logging import get_logger
from cagebot.models.game import ChatMessage, Clan, GameStatus, Player, Whiteboard
from cagebot.models.responses import NotifyResponse, RequestStatus


logger = get_logger(__name__)

API_FOR = "Cagesitter"
"""Value of the ``for`` parameter the game asks API consumers to send."""

ROLLOVER_RECHECK_SECONDS = 60


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


class KoLClient(GameClient):
    """GameClient talking to the live game over HTTPS.

    Attributes:
        settings: Connection settings.
    """

    def __init__(
        self,
        settings: KoLSettings,
        *,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Connection settings, including credentials.
            http: Optional preconfigured httpx client (used by tests).
        """
        self.settings = settings
        self._http = http or httpx.AsyncClient(
            base_url=settings.base_url,
            timeout=settings.request_timeout_seconds,
            follow_redirects=False,
            limits=httpx.Limits(max_keepalive_connections=5),
        )
        self._pwdhash: str | None = None
        self._player: Player | None = None
        self._rollover_at: int | None = None
        self._is_rollover = False
        self._rollover_checked_at = 0.0
        self._last_fetched = "0"

    async def close(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "KoLClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def me(self) -> Player | None:
        return self._player

    # =========================================================================
    # Session
    # =========================================================================

    async def _logged_in(self) -> bool:
        """Check the session by requesting the status API without redirects."""
        if self._pwdhash is None or self._is_rollover:
            return False

        try:
            response = await self._http.get("/api.php", params={"what": "status", "for": API_FOR})
        except httpx.HTTPError:
            logger.warning("Login check failed, assuming logged out")
            return False

        if response.status_code != 200:
            return False

        try:
            self._rollover_at = _to_int(response.json().get("rollover")) or None
        except ValueError:
            return False
        return True

    async def _check_rollover(self) -> bool:
        """Look at the front page for the maintenance notice."""
        now = time.monotonic()
        if self._is_rollover and now - self._rollover_checked_at < ROLLOVER_RECHECK_SECONDS:
            return True

        self._rollover_checked_at = now
        try:
            front = await self._http.get("/")
            self._is_rollover = "The system is currently down for nightly maintenance" in front.text
        except httpx.HTTPError:
            self._is_rollover = True

        if self._is_rollover:
            logger.info("Rollover appears to be in progress, checking again in one minute")
        return self._is_rollover

    async def _attempt_login(self) -> None:
        username = self.settings.username or ""
        password = self.settings.password.get_secret_value() if self.settings.password else ""
        try:
            login = await self._http.post(
                "/login.php",
                data={
                    "loggingin": "Yup.",
                    "loginname": username,
                    "password": password,
                    "secure": "0",
                    "submitbutton": "Log In",
                },
            )
            if login.status_code != 302:
                raise TransportError("Login was not accepted", url="/login.php")

            status = await self._http.get("/api.php", params={"what": "status", "for": API_FOR})
            data = status.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise TransportError(f"Login request failed: {exc}", url="/login.php") from exc

        self._pwdhash = str(data["pwd"])
        self._player = Player(id=str(data["playerid"]), name=str(data["name"]))
        self._rollover_at = _to_int(data.get("rollover")) or None

    async def log_in(self) -> bool:
        if await self._logged_in():
            return True

        self._pwdhash = None
        if await self._check_rollover():
            return False

        logger.info("Not logged in, logging in", username=self.settings.username)
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(TransportError),
                stop=stop_after_attempt(self.settings.login_retry_attempts),
                wait=wait_exponential(multiplier=1, min=2, max=10),
                reraise=True,
            ):
                with attempt:
                    await self._attempt_login()
        except TransportError as exc:
            raise SessionExpiredError(
                "Could not log in",
                details={"username": self.settings.username, "error": exc.message},
            ) from exc

        logger.info("Login success", player=str(self._player))
        return True

    async def seconds_to_rollover(self) -> int:
        if self._is_rollover:
            return 0

        now = int(time.time())
        if self._rollover_at is None or self._rollover_at <= now:
            self._rollover_at = None
            await self._logged_in()

        if self._rollover_at is None:
            return 0
        return self._rollover_at - now

    # =========================================================================
    # Requests
    # =========================================================================

    async def _request(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        *,
        data: dict[str, Any] | None = None,
    ) -> httpx.Response | None:
        """POST to a game page. Returns None on any transient failure."""
        if self._is_rollover or await self.seconds_to_rollover() <= 1:
            return None

        query = {"pwd": self._pwdhash, **(params or {})}
        try:
            return await self._http.post(f"/{path}", params=query, data=data)
        except httpx.HTTPError as exc:
            logger.debug("Request failed", path=path, error=str(exc))
            return None

    async def visit_url(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        *,
        data: dict[str, Any] | None = None,
    ) -> str | None:
        response = await self._request(path, params, data=data)
        return response.text if response is not None else None

    async def _api(self, what: str) -> dict[str, Any] | None:
        response = await self._request("api.php", {"what": what, "for": API_FOR})
        if response is None:
            return None
        try:
            payload = response.json()
        except ValueError:
            return None
        return payload if isinstance(payload, dict) else None

    # =========================================================================
    # Adventuring
    # =========================================================================

    async def adventure(self) -> str | None:
        return await self.visit_url("adventure.php", {"snarfblat": SEWERS_SNARFBLAT})

    async def choose(self, choice: int, option: int) -> str | None:
        return await self.visit_url("choice.php", {"whichchoice": choice, "option": option})

    async def visit_place(self) -> str | None:
        return await self.visit_url("place.php")

    # =========================================================================
    # Character
    # =========================================================================

    async def get_status(self) -> GameStatus:
        data = await self._api("status")
        if data is None:
            return GameStatus.unavailable()

        equipment = {
            slot: _to_int(item) for slot, item in (data.get("equipment") or {}).items()
        }
        familiar = data.get("familiar")
        return GameStatus(
            adventures=_to_int(data.get("adventures"), 10),
            full=_to_int(data.get("full")),
            drunk=_to_int(data.get("drunk")),
            level=_to_int(data.get("level"), 1) or 1,
            turns_played=_to_int(data.get("turnsplayed")),
            rollover=_to_int(data.get("rollover")),
            familiar=_to_int(familiar) if familiar else None,
            meat=_to_int(data.get("meat")),
            equipment=equipment,
        )

    async def get_inventory(self) -> dict[int, int]:
        data = await self._api("inventory")
        if data is None:
            return {}
        return {_to_int(item): _to_int(count) for item, count in data.items()}

    async def eat(self, item_id: int) -> str | None:
        return await self.visit_url("inv_eat.php", {"which": 1, "whichitem": item_id})

    async def drink(self, item_id: int) -> str | None:
        return await self.visit_url("inv_booze.php", {"which": 1, "whichitem": item_id})

    async def equip(self, item_id: int) -> None:
        await self.visit_url(
            "inv_equip.php",
            {"which": 2, "action": "equip", "whichitem": item_id, "ajax": 1},
        )

    async def has_liver_of_steel(self) -> bool:
        return pages.has_liver_of_steel(await self.visit_url("charsheet.php"))

    async def combat_macro_id(self, name: str) -> str | None:
        return pages.parse_macro_id(await self.visit_url("account_combatmacros.php"), name)

    async def configure_autoattack(self, macro_id: str) -> None:
        await self.visit_url("account.php", {"am": 1, "action": "flag_aabosses", "value": 1, "ajax": 1})
        await self.visit_url("account.php", {"am": 1, "action": "autoattack", "value": macro_id, "ajax": 1})

    # =========================================================================
    # Clans
    # =========================================================================

    async def get_whitelists(self) -> list[Clan]:
        return pages.parse_whitelists(await self.visit_url("clan_signup.php"))

    async def join_clan(self, clan: Clan) -> None:
        await self.visit_url(
            "showclan.php",
            {"whichclan": clan.id, "action": "joinclan", "confirm": "on", "recruiter": 1},
        )

    async def my_clan_id(self) -> str | None:
        who = self._player.id if self._player else 0
        return pages.parse_clan_id(await self.visit_url("showplayer.php", {"who": who}))

    async def has_sewer_access(self) -> bool:
        return pages.has_sewer_access(await self.visit_url("clan_hobopolis.php"))

    async def read_raid_log(self) -> str | None:
        return await self.visit_url("clan_raidlogs.php")

    async def get_whiteboard(self) -> Whiteboard | None:
        return pages.parse_whiteboard(await self.visit_url("clan_basement.php", {"whiteboard": 1}))

    async def set_whiteboard(self, text: str) -> None:
        await self.visit_url("clan_basement.php", {"action": "whitewrite"}, data={"whiteboard": text})

    # =========================================================================
    # Chat
    # =========================================================================

    async def _chat(self, graf: str) -> None:
        await self.visit_url("submitnewchat.php", {"graf": graf, "j": 1})

    async def send_private_message(self, recipient: Player, text: str) -> None:
        for chunk in split_message(text):
            await self._chat(f"/w {recipient.id} {chunk}")

    async def fetch_new_whispers(self) -> list[ChatMessage]:
        if self._is_rollover or not await self.log_in():
            return []

        response = await self._request(
            "newchatmessages.php", {"j": 1, "lasttime": self._last_fetched}
        )
        if response is None:
            return []
        try:
            payload = response.json()
        except ValueError:
            return []

        self._last_fetched = str(payload.get("last", self._last_fetched))
        whispers: list[ChatMessage] = []
        for raw in payload.get("msgs", []):
            if raw.get("type") != "private" or not raw.get("who"):
                continue
            sender = Player(id=str(raw["who"]["id"]), name=str(raw["who"]["name"]))
            text = str(raw.get("msg", ""))
            whispers.append(ChatMessage(who=sender, text=text, api=".api" in text))

        for whisper in whispers:
            if whisper.api:
                ack = NotifyResponse(status=RequestStatus.SEEN).to_chat()
            else:
                ack = "Message acknowledged."
            await self.send_private_message(whisper.who, ack)

        return whispers


__all__ = ["KoLClient"]
