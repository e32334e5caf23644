"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the Cagebot test suite. The fake game itself lives in ``fakes.py``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
import structlog

from cagebot.bot.cagebot import Cagebot
from cagebot.core.config import AdventureSettings, Settings, StorageSettings
from cagebot.models.game import Clan, Player
from cagebot.storage.state_store import StateStore
from fakes import FakeClock, FakeGameClient


if TYPE_CHECKING:
    from collections.abc import Generator


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from cagebot.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def restore_logging() -> Generator[None, None, None]:
    """Put the root logger and structlog back the way the test found them."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
    structlog.reset_defaults()


@pytest.fixture
def mock_env_vars(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set up mock environment variables for testing.

    Returns:
        Dictionary of environment variables that were set.
    """
    env_vars = {
        "CAGEBOT_KOL_USERNAME": "Cagebot",
        "CAGEBOT_KOL_PASSWORD": "hunter2",
        "CAGEBOT_DEBUG": "true",
        "CAGEBOT_LOG_LEVEL": "DEBUG",
        "CAGEBOT_ADVENTURE_MAINTAIN_ADVENTURES": "40",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture
def state_file(tmp_path: Path) -> Path:
    """Location of an isolated runtime state file."""
    return tmp_path / "data" / "runtime_state.json"


@pytest.fixture
def settings(state_file: Path) -> Settings:
    """Application settings writing state into the test's temp directory."""
    return Settings(
        adventure=AdventureSettings(),
        storage=StorageSettings(state_file=state_file),
    )


@pytest.fixture
def store(state_file: Path) -> StateStore:
    return StateStore(state_file)


# =============================================================================
# Game Fixtures
# =============================================================================


@pytest.fixture
def client() -> FakeGameClient:
    """A fresh fake game with 100 adventures."""
    return FakeGameClient()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def bot(
    client: FakeGameClient,
    settings: Settings,
    store: StateStore,
    clock: FakeClock,
) -> Cagebot:
    """A bot on the fake game, sharing the test clock and state file."""
    return Cagebot(client, settings, store=store, clock=clock)


@pytest.fixture
def requester() -> Player:
    return Player(id="1234", name="Requester")


@pytest.fixture
def bystander() -> Player:
    return Player(id="5678", name="Bystander")


@pytest.fixture
def clan() -> Clan:
    return Clan(id="90", name="Hobo Hunters")
