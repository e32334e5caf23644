"""Core module providing configuration, logging, constants and exceptions.

Exports:
    Exceptions:
        CagebotError: Base exception for all application errors.
        ConfigurationError: Configuration-related errors.
        SetupError: Fatal one-time setup failures.

    Configuration:
        Settings: Main application settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up application logging.
        get_logger: Get a configured logger instance.
"""

from __future__ import annotations

from cagebot.core.config import (
    AdventureSettings,
    CageSettings,
    DispatchSettings,
    KoLSettings,
    Settings,
    StorageSettings,
    WhiteboardSettings,
    clear_settings_cache,
    get_settings,
)
from cagebot.core.exceptions import (
    CagebotError,
    ConfigurationError,
    DesyncError,
    GameEngineError,
    HazardError,
    SessionExpiredError,
    SetupError,
    StateFileError,
    TransportError,
)
from cagebot.core.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)


__all__ = [
    # Exceptions
    "CagebotError",
    "ConfigurationError",
    "SetupError",
    "TransportError",
    "SessionExpiredError",
    "GameEngineError",
    "DesyncError",
    "HazardError",
    "StateFileError",
    # Configuration
    "Settings",
    "KoLSettings",
    "AdventureSettings",
    "CageSettings",
    "WhiteboardSettings",
    "StorageSettings",
    "DispatchSettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
]
