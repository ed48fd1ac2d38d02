"""Integration tests for complete editing sessions.

These tests drive an EditorSession through the add-piece and edit-piece
workflows and check the resulting puzzle with the validation engine.
"""

from pathlib import Path

import pytest

from tangramengine.core.transform import ViolationKind
from tangramengine.domain import (
    ConnectionKind,
    Free,
    Locked,
    Piece,
    PieceType,
    Point,
    Puzzle,
    Rotatable,
    Slidable,
    Transform,
)
from tangramengine.editor import (
    EditorSession,
    Idle,
    ManipulatingExistingPiece,
    ManipulatingFirstPiece,
    ManipulatingPendingPiece,
    PieceSelected,
    PreviewingPlacement,
    SelectingCanvasConnections,
    SelectingFirstPiece,
    SelectingNextPiece,
    SelectingPendingConnections,
)
from tangramengine.exceptions import ManipulationError
from tangramengine.io import load_puzzle_file, save_puzzle_file

CORNER = Point(425.0, 325.0)


def start_with_square() -> tuple[EditorSession, str]:
    """Session with a square base piece centered on the canvas."""
    session = EditorSession()
    session.select_first_piece(PieceType.SQUARE)
    result = session.confirm_first_piece()
    assert result.success and result.piece is not None
    return session, result.piece.id


def attach(
    session: EditorSession,
    piece_type: PieceType,
    canvas_ids: list[str],
    pending_ids: list[str],
):
    """Walk the add-piece workflow up to the preview."""
    assert session.select_next_piece(piece_type).accepted
    for point_id in canvas_ids:
        assert session.toggle_canvas_point(point_id)
    assert session.proceed_to_piece_points().accepted
    for point_id in pending_ids:
        assert session.toggle_pending_point(point_id)
    return session.preview_placement()


def corner_triangle() -> tuple[EditorSession, str, str]:
    """Square base with a small triangle rotated to 90 degrees at its top-right corner."""
    session, base = start_with_square()
    attach(session, PieceType.SMALL_TRIANGLE_1, [f"{base}_v2"], ["pending_v0"])
    session.rotate_pending(90.0)
    session.confirm_pending()
    placed = session.commit_placement()
    assert placed.success and placed.piece is not None
    return session, base, placed.piece.id


class TestFirstPiece:
    """Tests for placing the base piece."""

    def test_empty_session_starts_selecting(self) -> None:
        """Test a new session asks for the first shape."""
        session = EditorSession()
        assert session.state == SelectingFirstPiece()
        assert session.description == "Select your first shape"

    def test_place_square(self) -> None:
        """Test the base square lands centered and locked."""
        session, base = start_with_square()

        piece = session.puzzle.piece(base)
        assert piece is not None
        assert piece.transform.tx == pytest.approx(375.0)
        assert piece.transform.ty == pytest.approx(275.0)
        assert isinstance(session.modes[base], Locked)
        assert session.state == SelectingNextPiece()
        assert session.logger.stats.placements == 1

    def test_rotate_and_flip_parallelogram(self) -> None:
        """Test orienting a parallelogram before placing it."""
        session = EditorSession()
        session.select_first_piece(PieceType.PARALLELOGRAM)
        session.rotate_first_piece(45.0)
        assert session.flip_first_piece().accepted
        assert session.state == ManipulatingFirstPiece(PieceType.PARALLELOGRAM, 45.0, True)

        result = session.confirm_first_piece()

        assert result.piece is not None
        assert result.piece.transform.is_flipped
        assert result.piece.transform.rotation_degrees == pytest.approx(45.0)

    def test_rotation_accumulates(self) -> None:
        """Test rotations add up modulo a full turn."""
        session = EditorSession()
        session.select_first_piece(PieceType.MEDIUM_TRIANGLE)
        session.rotate_first_piece(-90.0)
        assert session.state == ManipulatingFirstPiece(PieceType.MEDIUM_TRIANGLE, 270.0)

    def test_flip_rejected_for_triangle(self) -> None:
        """Test only the parallelogram can be mirrored."""
        session = EditorSession()
        session.select_first_piece(PieceType.SQUARE)
        result = session.flip_first_piece()
        assert not result.accepted
        assert result.reason == "Square cannot be flipped"

    def test_cancel_returns_to_selection(self) -> None:
        """Test cancelling the base piece."""
        session = EditorSession()
        session.select_first_piece(PieceType.SQUARE)
        assert session.cancel_placement().state == SelectingFirstPiece()
        assert session.puzzle.is_empty

    def test_base_piece_only_for_empty_puzzle(self) -> None:
        """Test a loaded puzzle cannot take a second base piece."""
        session = EditorSession(Puzzle(pieces=[Piece("a", PieceType.SQUARE)]))
        assert session.state == Idle()
        assert not session.select_first_piece(PieceType.SMALL_TRIANGLE_1).accepted


class TestAddPiece:
    """Tests for attaching pieces to the assembly."""

    def test_points_offered(self) -> None:
        """Test canvas and pending points offered at each step."""
        session, base = start_with_square()
        session.select_next_piece(PieceType.SMALL_TRIANGLE_1)

        assert session.state == SelectingCanvasConnections(2)
        ids = {point.id for point in session.available_points}
        assert ids == {f"{base}_v{i}" for i in range(4)} | {f"{base}_e{i}" for i in range(4)}

        session.toggle_canvas_point(f"{base}_v2")
        session.proceed_to_piece_points()
        assert session.state == SelectingPendingConnections(PieceType.SMALL_TRIANGLE_1, 1)
        assert [p.id for p in session.available_points][:3] == [
            "pending_v0",
            "pending_v1",
            "pending_v2",
        ]

    def test_point_limit(self) -> None:
        """Test at most two canvas points can be selected and toggling deselects."""
        session, base = start_with_square()
        session.select_next_piece(PieceType.SMALL_TRIANGLE_1)

        assert session.toggle_canvas_point(f"{base}_v0")
        assert session.toggle_canvas_point(f"{base}_v1")
        assert not session.toggle_canvas_point(f"{base}_v2")
        assert session.toggle_canvas_point(f"{base}_v1")
        assert len(session.pending.canvas_points) == 1
        assert not session.toggle_canvas_point("unknown_v0")

    def test_duplicate_type_rejected(self) -> None:
        """Test a placed shape cannot be added again."""
        session, _ = start_with_square()
        result = session.select_next_piece(PieceType.SQUARE)
        assert not result.accepted
        assert result.reason == "Square is already placed"

    def test_vertex_attachment_rotates(self) -> None:
        """Test a vertex-attached piece can be rotated before committing."""
        session, base = start_with_square()
        preview = attach(session, PieceType.SMALL_TRIANGLE_1, [f"{base}_v2"], ["pending_v0"])

        assert preview.success
        state = session.state
        assert isinstance(state, ManipulatingPendingPiece)
        assert isinstance(state.mode, Rotatable)
        assert state.mode.pivot == CORNER

        rotated = session.rotate_pending(135.0)
        assert rotated.success
        assert rotated.piece is not None
        assert rotated.piece.transform.rotation_degrees == pytest.approx(90.0)
        assert rotated.piece.world_vertex(0).distance_to(CORNER) < 1e-6

        assert session.confirm_pending().state == PreviewingPlacement(rotated.piece)
        committed = session.commit_placement()

        assert committed.success
        assert len(session.puzzle.pieces) == 2
        assert len(session.puzzle.connections) == 1
        assert session.state == SelectingNextPiece()
        assert session.validate().is_valid

    def test_edge_attachment_slides(self) -> None:
        """Test an edge-attached piece can be slid along the shared edge."""
        session, base = start_with_square()
        preview = attach(session, PieceType.LARGE_TRIANGLE_1, [f"{base}_e1"], ["pending_e2"])

        assert preview.success
        state = session.state
        assert isinstance(state, ManipulatingPendingPiece)
        assert isinstance(state.mode, Slidable)
        assert state.mode.range == pytest.approx((0.0, 50.0))

        slid = session.slide_pending(0.0)
        assert slid.success
        assert slid.piece is not None
        leg = slid.piece.world_edge(2)
        assert leg.midpoint.x == pytest.approx(425.0)
        assert leg.midpoint.y == pytest.approx(275.0)

        session.confirm_pending()
        session.commit_placement()

        connection = session.puzzle.connections[0]
        assert connection.connection_type.kind is ConnectionKind.EDGE_TO_EDGE
        assert session.validate().is_valid

    def test_rotate_rejected_for_sliding_piece(self) -> None:
        """Test the pending piece only accepts its own mode's adjustment."""
        session, base = start_with_square()
        attach(session, PieceType.LARGE_TRIANGLE_1, [f"{base}_e1"], ["pending_e2"])
        result = session.rotate_pending(45.0)
        assert not result.success
        assert result.error == "the pending piece cannot rotate"

    def test_two_point_attachment_previews_directly(self) -> None:
        """Test two vertex pairs lock the new piece and skip adjustment."""
        session, base = start_with_square()
        preview = attach(
            session,
            PieceType.SMALL_TRIANGLE_1,
            [f"{base}_v1", f"{base}_v2"],
            ["pending_v0", "pending_v2"],
        )

        assert preview.success
        assert isinstance(session.state, PreviewingPlacement)
        placed = session.commit_placement()
        assert placed.piece is not None
        assert len(session.puzzle.connections) == 2
        assert isinstance(session.modes[placed.piece.id], Locked)
        assert session.validate().is_valid

    def test_overlapping_preview_must_be_adjusted(self) -> None:
        """Test an overlapping attachment cannot be confirmed until rotated clear."""
        session, base = start_with_square()
        preview = attach(session, PieceType.SMALL_TRIANGLE_1, [f"{base}_v0"], ["pending_v0"])

        assert not preview.success
        assert preview.overlapping_ids == [base]
        assert isinstance(session.state, ManipulatingPendingPiece)
        rejected = session.confirm_pending()
        assert not rejected.accepted
        assert rejected.reason == f"overlaps {base}"

        assert session.rotate_pending(-90.0).success
        assert session.confirm_pending().accepted
        assert session.commit_placement().success
        assert session.validate().is_valid

    def test_unmatched_points_rejected(self) -> None:
        """Test point pairs that cannot both be matched are never committed."""
        session, base = start_with_square()
        preview = attach(
            session,
            PieceType.SMALL_TRIANGLE_1,
            [f"{base}_v0", f"{base}_v2"],
            ["pending_v0", "pending_v1"],
        )

        assert not preview.success
        assert preview.piece is None
        assert isinstance(session.state, SelectingPendingConnections)
        assert session.commit_placement().error == "nothing to place"
        assert len(session.puzzle.pieces) == 1
        assert session.logger.stats.rejected_placements == 1

    def test_cancel_pending(self) -> None:
        """Test cancelling while choosing piece points."""
        session, base = start_with_square()
        session.select_next_piece(PieceType.SMALL_TRIANGLE_1)
        session.toggle_canvas_point(f"{base}_v2")
        session.proceed_to_piece_points()

        assert session.cancel_placement().state == SelectingNextPiece()
        assert session.pending.piece_type is None


class TestEditPiece:
    """Tests for editing placed pieces."""

    def test_base_piece_locked(self) -> None:
        """Test the base piece cannot be unlocked."""
        session, base, _ = corner_triangle()

        assert session.select_piece(base).state == PieceSelected(base, is_locked=True)
        result = session.unlock_selected()
        assert not result.accepted
        assert result.reason == "Base piece anchors the puzzle"

    def test_rotate_existing_piece(self) -> None:
        """Test unlocking, rotating and committing a placed piece."""
        session, _, triangle = corner_triangle()

        session.select_piece(triangle)
        unlocked = session.unlock_selected()
        assert unlocked.accepted
        assert isinstance(session.state, ManipulatingExistingPiece)

        result = session.rotate_selected(-90.0)
        assert result.is_valid
        assert session.commit_manipulation()
        assert session.state == Idle()

        piece = session.puzzle.piece(triangle)
        assert piece is not None
        assert piece.transform.rotation_degrees == pytest.approx(-90.0)
        assert piece.world_vertex(0).distance_to(CORNER) < 1e-6
        assert session.validate().is_valid

    def test_wrong_operation_unsupported(self) -> None:
        """Test a rotatable piece refuses to slide."""
        session, _, triangle = corner_triangle()
        session.select_piece(triangle)
        session.unlock_selected()

        result = session.slide_selected(10.0)

        assert not result.is_valid
        assert result.has_violation(ViolationKind.UNSUPPORTED)
        assert not session.commit_manipulation()

    def test_manipulation_requires_unlock(self) -> None:
        """Test manipulating without an unlocked piece raises."""
        session, _, _ = corner_triangle()
        with pytest.raises(ManipulationError):
            session.rotate_selected(45.0)

    def test_drag_free_piece(self) -> None:
        """Test a piece without connections is dragged."""
        puzzle = Puzzle(
            pieces=[
                Piece("sq", PieceType.SQUARE, Transform.translation(375.0, 275.0)),
                Piece("m", PieceType.MEDIUM_TRIANGLE, Transform.translation(100.0, 100.0)),
            ]
        )
        session = EditorSession(puzzle)
        session.select_piece("m")
        session.unlock_selected()
        assert isinstance(session.modes["m"], Free)

        result = session.drag_selected(Point(150.0, 120.0))
        assert result.is_valid
        assert session.commit_manipulation()

        centroid = session.puzzle.piece("m").world_centroid()
        assert centroid.x == pytest.approx(150.0)
        assert centroid.y == pytest.approx(120.0)

    def test_cancel_manipulation(self) -> None:
        """Test cancelling discards the pending result."""
        session, _, triangle = corner_triangle()
        session.select_piece(triangle)
        session.unlock_selected()
        session.rotate_selected(0.0)

        assert session.cancel_manipulation().state == Idle()
        assert session.puzzle.piece(triangle).transform.rotation_degrees == pytest.approx(90.0)


class TestStructureAndHistory:
    """Tests for removal and undo/redo."""

    def test_base_removal_rejected(self) -> None:
        """Test the base piece stays while others exist."""
        session, base, _ = corner_triangle()

        result = session.remove_piece(base)

        assert not result.success
        assert len(session.puzzle.pieces) == 2
        assert session.logger.stats.rejected_removals == 1

    def test_remove_and_undo(self) -> None:
        """Test removal can be undone and redone."""
        session, base, triangle = corner_triangle()

        assert session.remove_piece(triangle).success
        assert session.puzzle.piece_ids == [base]
        assert session.puzzle.connections == []
        assert session.state == SelectingNextPiece()

        assert session.undo()
        assert session.puzzle.piece_ids == [base, triangle]
        assert len(session.puzzle.connections) == 1

        assert session.redo()
        assert session.puzzle.piece_ids == [base]

    def test_undo_placements_to_empty(self) -> None:
        """Test undoing every placement returns to an empty puzzle."""
        session, _, _ = corner_triangle()

        assert session.undo()
        assert len(session.puzzle.pieces) == 1
        assert session.undo()
        assert session.puzzle.is_empty
        assert session.state == SelectingFirstPiece()
        assert not session.undo()

    def test_connectivity_preserved(self) -> None:
        """Test every committed step leaves the assembly connected."""
        session, base = start_with_square()
        attach(session, PieceType.SMALL_TRIANGLE_1, [f"{base}_v2"], ["pending_v0"])
        session.confirm_pending()
        session.commit_placement()
        assert session.validation.is_connected(session.puzzle.pieces, session.puzzle.connections)

        attach(session, PieceType.LARGE_TRIANGLE_1, [f"{base}_e3"], ["pending_e2"])
        session.confirm_pending()
        session.commit_placement()
        assert len(session.puzzle.pieces) == 3
        assert session.validation.is_connected(session.puzzle.pieces, session.puzzle.connections)

    def test_validation_is_idempotent(self) -> None:
        """Test validating does not change the puzzle or the outcome."""
        session, _, _ = corner_triangle()
        checksum = session.puzzle.solution_checksum()

        first = session.validate()
        second = session.validate()

        assert first == second
        assert session.puzzle.solution_checksum() == checksum
        assert session.logger.stats.validations == 2


class TestSavedWorkflow:
    """Tests for building a puzzle in a session and saving it."""

    def test_build_validate_and_save(self, tmp_path: Path) -> None:
        """Test placing, rotating into place, committing and saving by string path."""
        session = EditorSession()
        session.select_first_piece(PieceType.SQUARE)
        session.confirm_first_piece()

        session.select_next_piece(PieceType.SMALL_TRIANGLE_1)
        square_id = session.puzzle.pieces[0].id
        assert session.toggle_canvas_point(f"{square_id}_v2")
        assert session.proceed_to_piece_points().accepted
        assert session.toggle_pending_point("pending_v0")
        session.preview_placement()
        assert isinstance(session.state, ManipulatingPendingPiece)

        assert session.rotate_pending(90).success
        assert session.confirm_pending().accepted
        assert session.commit_placement().success

        report = session.validate()
        assert report.is_valid, report.errors

        target = str(tmp_path / "puzzle.json")
        written = save_puzzle_file(session.puzzle, target)
        assert written == Path(target)
        loaded = load_puzzle_file(target)
        assert loaded.piece_ids == session.puzzle.piece_ids
        assert loaded.solution_checksum() == session.puzzle.solution_checksum()
