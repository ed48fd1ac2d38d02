"""Unit tests for undo/redo history."""

import pytest

from tangramengine.core.history import UndoRedoManager
from tangramengine.domain import Piece, PieceType, Puzzle


class TestUndoRedoManager:
    """Tests for UndoRedoManager class."""

    @pytest.fixture
    def history(self) -> UndoRedoManager:
        """Create a manager with a small capacity."""
        return UndoRedoManager(max_entries=3)

    def test_empty_history(self, history: UndoRedoManager) -> None:
        """Test nothing to undo or redo initially."""
        assert not history.can_undo
        assert not history.can_redo
        assert history.undo(Puzzle()) is None
        assert history.redo(Puzzle()) is None

    def test_undo_then_redo(self, history: UndoRedoManager) -> None:
        """Test undo restores the saved state and redo restores the change."""
        puzzle = Puzzle()
        history.save_state(puzzle)
        puzzle.add_piece(Piece("a", PieceType.SQUARE))

        previous = history.undo(puzzle)
        assert previous is not None
        assert previous.is_empty
        assert history.can_redo

        restored = history.redo(previous)
        assert restored is not None
        assert restored.piece_ids == ["a"]
        assert history.can_undo

    def test_snapshots_are_independent(self, history: UndoRedoManager) -> None:
        """Test later edits do not leak into saved snapshots."""
        puzzle = Puzzle(pieces=[Piece("a", PieceType.SQUARE)])
        history.save_state(puzzle)
        puzzle.add_piece(Piece("b", PieceType.SMALL_TRIANGLE_1))

        previous = history.undo(puzzle)
        assert previous is not None
        assert previous.piece_ids == ["a"]

    def test_save_clears_redo(self, history: UndoRedoManager) -> None:
        """Test a new change discards the redo stack."""
        puzzle = Puzzle()
        history.save_state(puzzle)
        history.undo(puzzle)
        assert history.can_redo

        history.save_state(puzzle)
        assert not history.can_redo

    def test_capacity(self, history: UndoRedoManager) -> None:
        """Test the oldest snapshot is dropped past capacity."""
        puzzle = Puzzle()
        for name in ("a", "b", "c", "d"):
            history.save_state(puzzle)
            puzzle.metadata.name = name

        assert history.undo_count == 3
        states = []
        current = puzzle
        while history.can_undo:
            current = history.undo(current)
            states.append(current.metadata.name)
        assert states == ["c", "b", "a"]

    def test_clear(self, history: UndoRedoManager) -> None:
        """Test clearing both stacks."""
        history.save_state(Puzzle())
        history.clear()
        assert not history.can_undo
