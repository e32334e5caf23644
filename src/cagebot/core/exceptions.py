"""Custom exception hierarchy for Cagebot.

All exceptions inherit from CagebotError, so the dispatcher can handle any
failure of a command uniformly while the adventure loop still distinguishes
desynchronisation from explicit game hazards.

Example:
    >>> from cagebot.core.exceptions import DesyncError
    >>> raise DesyncError("expected turns consumed but none were", expected=6, observed=0)
"""

from __future__ import annotations

from typing import Any


class CagebotError(Exception):
    """Base exception for all Cagebot errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary containing additional error context.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """Initialize the base exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary containing additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with optional details."""
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Configuration & Setup Exceptions
# =============================================================================


class ConfigurationError(CagebotError):
    """Raised when application configuration is invalid or missing."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration error with config key context.

        Args:
            message: Human-readable error description.
            config_key: The configuration key that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if config_key:
            combined_details["config_key"] = config_key
        super().__init__(message, details=combined_details)


class SetupError(CagebotError):
    """Raised when the one-time in-game setup cannot be completed.

    This is fatal: the bot must not start serving commands.
    """


# =============================================================================
# Transport Exceptions
# =============================================================================


class TransportError(CagebotError):
    """Raised when the game server cannot be reached or rejects the session."""

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if url:
            combined_details["url"] = url
        super().__init__(message, details=combined_details)


class SessionExpiredError(TransportError):
    """Raised when logging in fails after all retries."""


# =============================================================================
# Game Engine Exceptions
# =============================================================================


class GameEngineError(CagebotError):
    """Base exception for adventure loop failures.

    Engine errors never leave the adventure loop; they are converted into
    the terminal summary of the run.
    """

    @property
    def reason(self) -> str:
        """Short reason string reported to the requester."""
        return self.message


class DesyncError(GameEngineError):
    """Raised when the server reports fewer turns played than were spent."""

    def __init__(
        self,
        message: str,
        *,
        expected: int | None = None,
        observed: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize desync error with the turn counts involved.

        Args:
            message: Human-readable error description.
            expected: Turns the bot believes it spent.
            observed: Turns the server reports as played.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if expected is not None:
            combined_details["expected"] = expected
        if observed is not None:
            combined_details["observed"] = observed
        super().__init__(message, details=combined_details)


class HazardError(GameEngineError):
    """Raised when the game presents a state the loop cannot continue from."""


# =============================================================================
# Storage Exceptions
# =============================================================================


class StateFileError(CagebotError):
    """Raised when the persisted runtime state cannot be read."""

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if path:
            combined_details["path"] = path
        super().__init__(message, details=combined_details)


__all__ = [
    "CagebotError",
    "ConfigurationError",
    "SetupError",
    "TransportError",
    "SessionExpiredError",
    "GameEngineError",
    "DesyncError",
    "HazardError",
    "StateFileError",
]
