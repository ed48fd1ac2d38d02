"""Undo/redo history over puzzle snapshots."""

from tangramengine.domain import Puzzle


class UndoRedoManager:
    """Bounded undo/redo stacks of puzzle snapshots.

    Callers save the state *before* a change. Undo and redo swap the given
    current state with the stored one, so the history never holds a live
    reference to the puzzle being edited.
    """

    def __init__(self, max_entries: int = 50) -> None:
        self.max_entries = max_entries
        self._undo: list[Puzzle] = []
        self._redo: list[Puzzle] = []

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_count(self) -> int:
        return len(self._undo)

    def save_state(self, puzzle: Puzzle) -> None:
        """Record a snapshot before a change; clears the redo stack."""
        self._undo.append(puzzle.snapshot())
        if len(self._undo) > self.max_entries:
            del self._undo[0]
        self._redo.clear()

    def undo(self, current: Puzzle) -> Puzzle | None:
        """Return the previous state, remembering ``current`` for redo."""
        if not self._undo:
            return None
        self._redo.append(current.snapshot())
        return self._undo.pop()

    def redo(self, current: Puzzle) -> Puzzle | None:
        """Return the next state, remembering ``current`` for undo."""
        if not self._redo:
            return None
        self._undo.append(current.snapshot())
        return self._redo.pop()

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()
