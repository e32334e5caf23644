"""Storage module for Cagebot persistence.

Provides a JSON file store for the runtime state that lets a restarted bot
pick up the cage task it was running.
"""

from cagebot.storage.state_store import StateStore

__all__ = [
    "StateStore",
]
