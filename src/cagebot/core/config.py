"""Configuration management for Cagebot.

This module provides centralized configuration using pydantic-settings.
Values resolve from defaults, then a ``.env`` file, then environment
variables, producing one settings aggregate shared by the whole bot.

Example:
    >>> from cagebot.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.adventure.maintain_adventures
    80

Environment Variables:
    CAGEBOT_KOL_USERNAME: Name of the character the bot plays
    CAGEBOT_KOL_PASSWORD: Password of that character
    CAGEBOT_ADVENTURE_MAINTAIN_ADVENTURES: Adventures kept in reserve by eating and drinking
    CAGEBOT_ADVENTURE_OPEN_EVERYTHING: Escape cages to keep opening grates and valves
    CAGEBOT_ADVENTURE_OPEN_EVERYTHING_WHILE_ADVENTURES_ABOVE: Minimum adventures for escaping
    CAGEBOT_STORAGE_STATE_FILE: Path of the runtime state file
    CAGEBOT_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cagebot.core.constants import GRATE_CAP, RELEASE_AFTER_SECONDS, VALVE_CAP
from cagebot.core.exceptions import ConfigurationError


class KoLSettings(BaseSettings):
    """Connection settings for the game server.

    Attributes:
        username: Character name to log in as.
        password: Character password.
        base_url: Root URL of the game.
        request_timeout_seconds: Timeout applied to every request.
        login_retry_attempts: Login attempts before giving up.
    """

    model_config = SettingsConfigDict(
        env_prefix="CAGEBOT_KOL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    username: str | None = Field(default=None, description="Character name")
    password: SecretStr | None = Field(default=None, description="Character password")
    base_url: str = Field(
        default="https://www.kingdomofloathing.com",
        description="Root URL of the game",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=300,
        description="Per-request timeout",
    )
    login_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Login attempts before giving up",
    )

    @property
    def has_credentials(self) -> bool:
        """Check whether both username and password are configured."""
        return bool(self.username) and self.password is not None and bool(
            self.password.get_secret_value()
        )


class AdventureSettings(BaseSettings):
    """Tuning of the adventure loop and the diet engine.

    Attributes:
        maintain_adventures: Diet floor; eat or drink when adventures drop to it.
        open_everything: Escape cages to keep opening grates and twisting valves.
        open_everything_while_adventures_above: Only escape while above this many adventures.
        reserve_floor: Stop adventuring at or below this many adventures.
        chew_out_cost: Estimated adventures spent gnawing out of a cage.
        grate_cap: Grates worth opening per instance.
        valve_cap: Valves worth twisting per instance.
        valve_surplus: Adventures required before spending turns on valves.
        reconcile_every: Estimated turns between server reconciliations.
        reconcile_every_with_effects: Tighter interval while effects are maintained.
        maintain_effects: Whether an effect upkeep routine runs alongside the bot.
        diet_failure_limit: Consecutive failed diets before giving up for the run.
        rollover_guard_seconds: Refuse to start a run this close to rollover.
    """

    model_config = SettingsConfigDict(
        env_prefix="CAGEBOT_ADVENTURE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    maintain_adventures: int = Field(default=80, ge=0, description="Diet floor")
    open_everything: bool = Field(default=False, description="Escape to keep opening")
    open_everything_while_adventures_above: int = Field(
        default=80,
        ge=0,
        description="Minimum adventures for escaping a cage",
    )
    reserve_floor: int = Field(default=11, ge=0, description="Adventures never spent")
    chew_out_cost: int = Field(default=10, ge=0, description="Estimated cost of chewing out")
    grate_cap: int = Field(default=GRATE_CAP, ge=0, description="Grates per instance")
    valve_cap: int = Field(default=VALVE_CAP, ge=0, description="Valves per instance")
    valve_surplus: int = Field(default=160, ge=0, description="Adventures needed for valves")
    reconcile_every: int = Field(default=30, ge=1, description="Turns between reconciliations")
    reconcile_every_with_effects: int = Field(
        default=6,
        ge=1,
        description="Turns between reconciliations while effects are maintained",
    )
    maintain_effects: bool = Field(default=False, description="Effect upkeep is active")
    diet_failure_limit: int = Field(default=2, ge=1, description="Failed diets before giving up")
    rollover_guard_seconds: int = Field(default=420, ge=0, description="Rollover guard")

    @model_validator(mode="after")
    def validate_thresholds(self) -> "AdventureSettings":
        """Ensure the escape thresholds are ordered sensibly.

        Raises:
            ConfigurationError: If valves would be pursued with less surplus than grates.
        """
        if self.valve_surplus < self.open_everything_while_adventures_above:
            raise ConfigurationError(
                f"valve_surplus ({self.valve_surplus}) must not be below "
                f"open_everything_while_adventures_above "
                f"({self.open_everything_while_adventures_above})",
                config_key="valve_surplus",
            )
        if self.reconcile_every_with_effects > self.reconcile_every:
            raise ConfigurationError(
                "reconcile_every_with_effects must not exceed reconcile_every",
                config_key="reconcile_every_with_effects",
            )
        return self

    @property
    def reconcile_threshold(self) -> int:
        """Estimated turns allowed between reconciliations."""
        if self.maintain_effects:
            return self.reconcile_every_with_effects
        return self.reconcile_every


class CageSettings(BaseSettings):
    """Rules for releasing the cage.

    Attributes:
        release_after_seconds: After this long anyone may release the bot.
        uncage_probe_interval_seconds: Minimum time between third-party uncage probes.
    """

    model_config = SettingsConfigDict(
        env_prefix="CAGEBOT_CAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    release_after_seconds: int = Field(default=RELEASE_AFTER_SECONDS, ge=0)
    uncage_probe_interval_seconds: int = Field(default=15 * 60, ge=0)


class WhiteboardSettings(BaseSettings):
    """Clan basement whiteboard messages.

    ``${name}`` and ``${id}`` are replaced by the bot's name and player ID.
    The whiteboard is only edited when both caged and uncaged messages are set.
    """

    model_config = SettingsConfigDict(
        env_prefix="CAGEBOT_WHITEBOARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    caged_message: str | None = None
    uncaged_message: str | None = None
    auto_escape_message: str | None = None

    @property
    def enabled(self) -> bool:
        """Check whether whiteboard editing is configured."""
        return bool(self.caged_message) and bool(self.uncaged_message)


class StorageSettings(BaseSettings):
    """Configuration for on-disk state.

    Attributes:
        state_file: JSON file holding the runtime state between restarts.
    """

    model_config = SettingsConfigDict(
        env_prefix="CAGEBOT_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    state_file: Path = Field(
        default=Path("data/runtime_state.json"),
        description="Runtime state file",
    )

    @field_validator("state_file", mode="after")
    @classmethod
    def ensure_parent_exists(cls, value: Path) -> Path:
        """Create the directory holding the state file."""
        value.parent.mkdir(parents=True, exist_ok=True)
        return value


class DispatchSettings(BaseSettings):
    """Whisper polling cadence.

    Attributes:
        poll_interval_seconds: Delay between fetches of new whispers.
        idle_delay_seconds: Delay before re-checking an empty queue.
    """

    model_config = SettingsConfigDict(
        env_prefix="CAGEBOT_DISPATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    poll_interval_seconds: float = Field(default=3.0, gt=0)
    idle_delay_seconds: float = Field(default=1.0, gt=0)


class Settings(BaseSettings):
    """Main application settings aggregating all configuration domains.

    Attributes:
        app_name: Application name.
        debug: Enable debug mode.
        log_level: Application logging level.
        json_logs: Emit JSON log lines.
        kol: Game connection settings.
        adventure: Adventure loop and diet settings.
        cage: Release rules.
        whiteboard: Whiteboard messages.
        storage: State file location.
        dispatch: Polling cadence.
    """

    model_config = SettingsConfigDict(
        env_prefix="CAGEBOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = Field(default="Cagebot", description="Application name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    json_logs: bool = Field(default=False, description="Emit JSON log lines")

    kol: KoLSettings = Field(default_factory=KoLSettings)
    adventure: AdventureSettings = Field(default_factory=AdventureSettings)
    cage: CageSettings = Field(default_factory=CageSettings)
    whiteboard: WhiteboardSettings = Field(default_factory=WhiteboardSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    dispatch: DispatchSettings = Field(default_factory=DispatchSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        The application Settings instance.

    Raises:
        ConfigurationError: If configuration is invalid.
    """
    try:
        return Settings()
    except ConfigurationError:
        raise
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load application settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access."""
    get_settings.cache_clear()


__all__ = [
    "KoLSettings",
    "AdventureSettings",
    "CageSettings",
    "WhiteboardSettings",
    "StorageSettings",
    "DispatchSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
