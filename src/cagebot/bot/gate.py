"""Non-blocking exclusivity gate for state-mutating commands.

Cage, escape, release and the periodic uncage probe all need the game
character to themselves. Instead of queueing behind each other they try the
gate and, if it is held, the caller reports "busy" straight away.
"""

from __future__ import annotations

from cagebot.core.logging import get_logger


logger = get_logger(__name__)


class ExclusivityGate:
    """A lock whose acquire never waits.

    All users run on one event loop, so plain attribute updates between
    awaits are enough to make acquisition atomic.
    """

    def __init__(self) -> None:
        self._holder: str | None = None

    @property
    def locked(self) -> bool:
        return self._holder is not None

    @property
    def holder(self) -> str | None:
        """Name of the operation holding the gate."""
        return self._holder

    def try_acquire(self, holder: str) -> bool:
        """Take the gate if it is free.

        Args:
            holder: Name of the operation, for logs.

        Returns:
            True if the gate was taken, False if it is already held.
        """
        if self._holder is not None:
            logger.debug("Gate busy", holder=self._holder, requested_by=holder)
            return False
        self._holder = holder
        return True

    def release(self) -> None:
        """Free the gate.

        Raises:
            RuntimeError: If the gate is not held.
        """
        if self._holder is None:
            raise RuntimeError("Released an exclusivity gate that was not held")
        self._holder = None


__all__ = ["ExclusivityGate"]
