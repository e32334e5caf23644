"""JSON file persistence for the bot's runtime state.

Only one record is kept: the turn counter it was written at, the liver
capacity, and the active cage task if any. It is rewritten whenever the
bot is confirmed caged or the task is cleared.

Storage location: ``data/runtime_state.json`` unless configured otherwise.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import ValidationError

from cagebot.core.exceptions import StateFileError
from cagebot.core.logging import get_logger
from cagebot.models.cage import CageTask, SavedState


logger = get_logger(__name__)


class StateStore:
    """Reads and writes the runtime state file."""

    def __init__(self, path: str | Path) -> None:
        """Initialize the store.

        Args:
            path: Location of the JSON state file.
        """
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def save(self, turns_played: int, max_drunk: int, task: CageTask | None) -> SavedState:
        """Write the state, replacing the previous file atomically.

        Args:
            turns_played: Server turn counter the state is valid at.
            max_drunk: Liver capacity.
            task: Active cage task, or None once cleared.

        Returns:
            The record that was written.
        """
        state = SavedState(valid_at_turn=turns_played, max_drunk=max_drunk, cage_task=task)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(
            state.model_dump_json(by_alias=True, indent=2),
            encoding="utf-8",
        )
        os.replace(tmp_path, self.path)

        logger.debug("Runtime state saved", path=str(self.path), turn=turns_played)
        return state

    def load(self) -> SavedState | None:
        """Read the state file.

        Returns:
            The saved record, or None if no file exists.

        Raises:
            StateFileError: If the file exists but cannot be parsed.
        """
        if not self.path.exists():
            return None

        try:
            return SavedState.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as exc:
            raise StateFileError(
                f"Could not read runtime state: {exc}",
                path=str(self.path),
            ) from exc


__all__ = ["StateStore"]
