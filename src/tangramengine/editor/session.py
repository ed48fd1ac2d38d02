"""Editing session orchestration.

An ``EditorSession`` ties the state machine to the placement, manipulation
and validation services. It owns the puzzle being edited, the undo history
and the in-progress selection, and it is the only place where the puzzle is
mutated during interactive editing.
"""

from dataclasses import dataclass, field

from tangramengine.config import EngineSettings, get_default_settings
from tangramengine.core.history import UndoRedoManager
from tangramengine.core.manipulation import ManipulationClassifier
from tangramengine.core.placement import PlacementResult, PlacementService, RemovalResult
from tangramengine.core.transform import (
    Drag,
    Operation,
    Rotate,
    Slide,
    TransformEngine,
    TransformResult,
    Violation,
    ViolationKind,
)
from tangramengine.core.validation import ValidationEngine, ValidationReport
from tangramengine.domain import (
    ConnectionPoint,
    Free,
    ManipulationMode,
    Piece,
    PieceType,
    Point,
    Puzzle,
    Rotatable,
    Slidable,
)
from tangramengine.editor.machine import EditorStateMachine, TransitionResult
from tangramengine.editor.state import (
    EditorState,
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
    UnlockingPiece,
)
from tangramengine.exceptions import ManipulationError
from tangramengine.utils.logging import EditorLogger

PENDING_PIECE_ID = "pending"
MAX_CONNECTION_POINTS = 2


@dataclass
class PendingSelection:
    """The piece being added and the points chosen for it so far."""

    piece_type: PieceType | None = None
    rotation: float = 0.0
    flipped: bool = False
    canvas_points: list[ConnectionPoint] = field(default_factory=list)
    pending_points: list[ConnectionPoint] = field(default_factory=list)
    preview: PlacementResult | None = None


def _rejected(state: EditorState, reason: str) -> TransitionResult:
    return TransitionResult(accepted=False, state=state, reason=reason)


def _toggle(points: list[ConnectionPoint], point: ConnectionPoint, limit: int) -> bool:
    for i, existing in enumerate(points):
        if existing.id == point.id:
            del points[i]
            return True
    if len(points) >= limit:
        return False
    points.append(point)
    return True


class EditorSession:
    """Drives the add-piece and edit-piece workflows for one puzzle."""

    def __init__(
        self,
        puzzle: Puzzle | None = None,
        settings: EngineSettings | None = None,
        editor_logger: EditorLogger | None = None,
    ) -> None:
        """Initialize a session.

        Args:
            puzzle: Puzzle to edit (a new empty puzzle if None)
            settings: Engine settings (defaults if None)
            editor_logger: Event logger shared with the state machine
        """
        self.settings = settings or get_default_settings()
        self.puzzle = puzzle if puzzle is not None else Puzzle()
        self.logger = editor_logger or EditorLogger()

        self.engine = TransformEngine(self.settings)
        self.placement = PlacementService(self.settings, self.engine)
        self.classifier = ManipulationClassifier(self.settings, self.engine)
        self.validation = ValidationEngine(self.settings)
        self.history = UndoRedoManager(self.settings.history.max_entries)
        self.machine = EditorStateMachine(self.puzzle, self.logger)

        self.pending = PendingSelection()
        self.manipulation: TransformResult | None = None
        self.available_points: list[ConnectionPoint] = []
        self.modes: dict[str, ManipulationMode] = {}
        self._after_puzzle_change()

    @property
    def state(self) -> EditorState:
        return self.machine.state

    @property
    def description(self) -> str:
        return self.machine.description

    @property
    def canvas_size(self) -> tuple[float, float]:
        return self.settings.canvas.size

    # Hooks

    def _transition(self, requested: EditorState) -> TransitionResult:
        result = self.machine.transition(requested, self.puzzle)
        if result.accepted:
            self._after_transition()
        return result

    def _after_transition(self) -> None:
        state = self.state
        if isinstance(state, SelectingCanvasConnections):
            self.available_points = [
                point
                for piece in self.puzzle.pieces
                for point in self.engine.connections.connection_points(piece)
            ]
        elif isinstance(state, SelectingPendingConnections):
            self.available_points = self.engine.connections.pending_connection_points(
                PENDING_PIECE_ID,
                state.piece_type,
                self.pending.rotation,
                self.pending.flipped,
            )
        else:
            self.available_points = []

    def _after_puzzle_change(self) -> None:
        self.modes = self.classifier.modes_for(self.puzzle)

    def _point(self, point_id: str) -> ConnectionPoint | None:
        return next((p for p in self.available_points if p.id == point_id), None)

    # First piece

    def select_first_piece(self, piece_type: PieceType) -> TransitionResult:
        """Pick the type of the base piece and start orienting it."""
        if isinstance(self.state, Idle):
            self._transition(SelectingFirstPiece())
        if not isinstance(self.state, (SelectingFirstPiece, ManipulatingFirstPiece)):
            return _rejected(self.state, "a base piece can only be chosen for an empty puzzle")
        self.pending = PendingSelection(piece_type)
        return self._transition(ManipulatingFirstPiece(piece_type))

    def rotate_first_piece(self, degrees: float) -> TransitionResult:
        """Rotate the base piece by ``degrees`` before it is placed."""
        state = self.state
        if not isinstance(state, ManipulatingFirstPiece):
            return _rejected(state, "no base piece is being positioned")
        rotation = (state.rotation + degrees) % 360.0
        self.pending.rotation = rotation
        return self._transition(ManipulatingFirstPiece(state.piece_type, rotation, state.flipped))

    def flip_first_piece(self) -> TransitionResult:
        """Mirror the base piece; only parallelograms can be flipped."""
        state = self.state
        if not isinstance(state, ManipulatingFirstPiece):
            return _rejected(state, "no base piece is being positioned")
        if not state.piece_type.can_flip:
            return _rejected(state, f"{state.piece_type.display_name} cannot be flipped")
        self.pending.flipped = not state.flipped
        return self._transition(
            ManipulatingFirstPiece(state.piece_type, state.rotation, not state.flipped)
        )

    def confirm_first_piece(self) -> PlacementResult:
        """Drop the base piece at the canvas center."""
        state = self.state
        if not isinstance(state, ManipulatingFirstPiece):
            return PlacementResult(success=False, error="no base piece is being positioned")

        result = self.placement.preview_first_piece(
            self.puzzle, state.piece_type, state.rotation, state.flipped, self.canvas_size
        )
        if not result.success or result.piece is None:
            self.logger.log_placement_rejected(state.piece_type.value, result.error or "invalid")
            return result

        self.history.save_state(self.puzzle)
        self.placement.commit(self.puzzle, result)
        self.logger.log_placement(result.piece.id, state.piece_type.value, 0)
        self.pending = PendingSelection()
        self._after_puzzle_change()
        self._transition(SelectingNextPiece())
        return result

    # Next pieces

    def select_next_piece(self, piece_type: PieceType) -> TransitionResult:
        """Pick the type of the next piece and start choosing canvas points."""
        if isinstance(self.state, Idle):
            self._transition(SelectingNextPiece())
        if not isinstance(self.state, SelectingNextPiece):
            return _rejected(self.state, "finish the current action first")
        if self.puzzle.has_piece_type(piece_type):
            return _rejected(self.state, f"{piece_type.display_name} is already placed")
        self.pending = PendingSelection(piece_type)
        return self._transition(SelectingCanvasConnections(MAX_CONNECTION_POINTS))

    def toggle_canvas_point(self, point_id: str) -> bool:
        """Select or deselect a connection point on a placed piece."""
        state = self.state
        if not isinstance(state, SelectingCanvasConnections):
            return False
        point = self._point(point_id)
        if point is None:
            return False
        return _toggle(self.pending.canvas_points, point, state.max_points)

    def proceed_to_piece_points(self) -> TransitionResult:
        """Move on to choosing the matching points of the new piece."""
        if not isinstance(self.state, SelectingCanvasConnections):
            return _rejected(self.state, "not selecting canvas points")
        if not self.pending.canvas_points or self.pending.piece_type is None:
            return _rejected(self.state, "select at least one connection point")
        return self._transition(
            SelectingPendingConnections(self.pending.piece_type, len(self.pending.canvas_points))
        )

    def toggle_pending_point(self, point_id: str) -> bool:
        """Select or deselect a connection point on the new piece."""
        state = self.state
        if not isinstance(state, SelectingPendingConnections):
            return False
        point = self._point(point_id)
        if point is None:
            return False
        return _toggle(self.pending.pending_points, point, state.max_points)

    def preview_placement(self) -> PlacementResult:
        """Align the new piece to the selected points without committing.

        A piece held by a single connection that still allows motion moves
        to ``ManipulatingPendingPiece`` so it can be adjusted; any other
        successful preview goes straight to ``PreviewingPlacement``.
        """
        state = self.state
        pending = self.pending
        if not isinstance(state, SelectingPendingConnections) or pending.piece_type is None:
            return PlacementResult(success=False, error="not selecting piece points")
        if len(pending.pending_points) != len(pending.canvas_points):
            return PlacementResult(
                success=False,
                error=f"select {len(pending.canvas_points)} point(s) on the new piece",
            )

        result = self.placement.preview_connected_piece(
            self.puzzle,
            pending.piece_type,
            pending.rotation,
            pending.flipped,
            pending.canvas_points,
            pending.pending_points,
            self.canvas_size,
        )
        pending.preview = result
        if result.piece is None:
            self.logger.log_placement_rejected(pending.piece_type.value, result.error or "invalid")
            return result

        mode = self.classifier.calculate_manipulation_mode(
            result.piece, result.connections, self.puzzle.pieces, False
        )
        if isinstance(mode, (Rotatable, Slidable)):
            rotation = result.piece.transform.rotation_degrees
            self._transition(ManipulatingPendingPiece(pending.piece_type, mode, rotation))
        elif result.success:
            self._transition(PreviewingPlacement(result.piece))
        else:
            self.logger.log_placement_rejected(pending.piece_type.value, result.error or "invalid")
        return result

    def _adjust_pending(self, operation: Operation) -> PlacementResult:
        state = self.state
        preview = self.pending.preview
        if (
            not isinstance(state, ManipulatingPendingPiece)
            or preview is None
            or preview.piece is None
            or not preview.connections
        ):
            return PlacementResult(success=False, error="no pending piece to adjust")

        transform_result = self.engine.calculate_transform(
            preview.piece,
            operation,
            preview.connections[0],
            self.puzzle.pieces,
            self.canvas_size,
        )
        result = self.placement.from_transform_result(
            preview.piece, transform_result, preview.connections
        )
        self.pending.preview = result
        if result.piece is not None:
            mode = self.classifier.calculate_manipulation_mode(
                result.piece, result.connections, self.puzzle.pieces, False
            )
            self._transition(
                ManipulatingPendingPiece(
                    state.piece_type, mode, result.piece.transform.rotation_degrees
                )
            )
        return result

    def rotate_pending(self, angle: float) -> PlacementResult:
        """Rotate the attached new piece to ``angle`` degrees about its pivot."""
        state = self.state
        if not isinstance(state, ManipulatingPendingPiece) or not isinstance(state.mode, Rotatable):
            return PlacementResult(success=False, error="the pending piece cannot rotate")
        return self._adjust_pending(Rotate(angle, state.mode.pivot))

    def slide_pending(self, distance: float) -> PlacementResult:
        """Slide the attached new piece ``distance`` along its track."""
        state = self.state
        if not isinstance(state, ManipulatingPendingPiece) or not isinstance(state.mode, Slidable):
            return PlacementResult(success=False, error="the pending piece cannot slide")
        return self._adjust_pending(Slide(distance, state.mode.track))

    def confirm_pending(self) -> TransitionResult:
        """Accept the adjusted position and show the placement preview."""
        preview = self.pending.preview
        if not isinstance(self.state, ManipulatingPendingPiece):
            return _rejected(self.state, "no pending piece to confirm")
        if preview is None or not preview.success or preview.piece is None:
            reason = preview.error if preview is not None and preview.error else "invalid placement"
            return _rejected(self.state, reason)
        return self._transition(PreviewingPlacement(preview.piece))

    def commit_placement(self) -> PlacementResult:
        """Add the previewed piece and its connections to the puzzle."""
        preview = self.pending.preview
        if not isinstance(self.state, PreviewingPlacement) or preview is None:
            return PlacementResult(success=False, error="nothing to place")
        if not preview.success or preview.piece is None:
            return preview

        self.history.save_state(self.puzzle)
        self.placement.commit(self.puzzle, preview)
        self.logger.log_placement(
            preview.piece.id, preview.piece.piece_type.value, len(preview.connections)
        )
        self.pending = PendingSelection()
        self._after_puzzle_change()
        self._transition(SelectingNextPiece())
        return preview

    def cancel_placement(self) -> TransitionResult:
        """Abandon the piece being added."""
        self.pending = PendingSelection()
        if isinstance(self.state, ManipulatingFirstPiece):
            return self._transition(SelectingFirstPiece())
        if self.machine.can_transition(SelectingNextPiece(), self.puzzle):
            return self._transition(SelectingNextPiece())
        return self._transition(Idle())

    # Existing pieces

    def select_piece(self, piece_id: str) -> TransitionResult:
        """Select a placed piece for editing."""
        if self.puzzle.piece(piece_id) is None:
            return _rejected(self.state, "Piece not found")
        is_locked = not self.classifier.can_unlock(self.puzzle, piece_id)
        return self._transition(PieceSelected(piece_id, is_locked))

    def unlock_selected(self) -> TransitionResult:
        """Unlock the selected piece and enter its manipulation mode."""
        state = self.state
        if not isinstance(state, PieceSelected):
            return _rejected(state, "no piece is selected")
        reason = self.classifier.lock_reason(self.puzzle, state.piece_id)
        if reason is not None:
            return _rejected(state, reason)

        result = self._transition(UnlockingPiece(state.piece_id))
        if not result.accepted:
            return result
        mode = self.classifier.mode_for(self.puzzle, state.piece_id)
        self.manipulation = None
        return self._transition(ManipulatingExistingPiece(state.piece_id, mode))

    def _manipulated(self) -> tuple[ManipulatingExistingPiece, Piece]:
        state = self.state
        if not isinstance(state, ManipulatingExistingPiece):
            raise ManipulationError("", "no piece is being manipulated")
        piece = self.puzzle.piece(state.piece_id)
        if piece is None:
            raise ManipulationError(state.piece_id, "piece no longer exists")
        return state, piece

    def _unsupported(self, piece: Piece, mode: ManipulationMode) -> TransformResult:
        violation = Violation(
            ViolationKind.UNSUPPORTED, piece_id=piece.id, message=f"piece is {mode.name}"
        )
        return TransformResult(piece.transform, False, (violation,))

    def _manipulate(self, piece: Piece, operation: Operation) -> TransformResult:
        connections = self.puzzle.connections_for(piece.id)
        result = self.engine.calculate_transform(
            piece,
            operation,
            connections[0] if connections else None,
            self.puzzle.other_pieces(piece.id),
            self.canvas_size,
        )
        self.manipulation = result
        return result

    def rotate_selected(self, angle: float) -> TransformResult:
        """Rotate the unlocked piece to ``angle`` degrees about its pivot.

        Raises:
            ManipulationError: If no piece is being manipulated
        """
        state, piece = self._manipulated()
        if not isinstance(state.mode, Rotatable):
            return self._unsupported(piece, state.mode)
        return self._manipulate(piece, Rotate(angle, state.mode.pivot))

    def slide_selected(self, distance: float) -> TransformResult:
        """Slide the unlocked piece ``distance`` along its track.

        Raises:
            ManipulationError: If no piece is being manipulated
        """
        state, piece = self._manipulated()
        if not isinstance(state.mode, Slidable):
            return self._unsupported(piece, state.mode)
        return self._manipulate(piece, Slide(distance, state.mode.track))

    def drag_selected(self, position: Point) -> TransformResult:
        """Move a free piece so its centroid lands on ``position``.

        Raises:
            ManipulationError: If no piece is being manipulated
        """
        state, piece = self._manipulated()
        if not isinstance(state.mode, Free):
            return self._unsupported(piece, state.mode)
        return self._manipulate(piece, Drag(position))

    def commit_manipulation(self) -> bool:
        """Apply the last valid manipulation result and return to Idle."""
        state = self.state
        result = self.manipulation
        if not isinstance(state, ManipulatingExistingPiece) or result is None:
            return False
        if not result.is_valid:
            return False

        self.history.save_state(self.puzzle)
        self.placement.apply_transform(self.puzzle, state.piece_id, result)
        self.manipulation = None
        self._after_puzzle_change()
        self._transition(Idle())
        return True

    def cancel_manipulation(self) -> TransitionResult:
        """Discard any manipulation in progress and return to Idle."""
        self.manipulation = None
        return self._transition(Idle())

    # Structure and history

    def remove_piece(self, piece_id: str) -> RemovalResult:
        """Remove a piece when doing so keeps the puzzle connected."""
        check = self.placement.check_removal(self.puzzle, piece_id)
        if not check.success:
            self.logger.log_removal_rejected(piece_id, check.reason or "rejected")
            return check

        self.history.save_state(self.puzzle)
        result = self.placement.remove_piece(self.puzzle, piece_id)
        self.logger.log_removal(piece_id, len(result.removed_connections))
        self._restart()
        return result

    def undo(self) -> bool:
        """Restore the puzzle as it was before the last change."""
        previous = self.history.undo(self.puzzle)
        if previous is None:
            return False
        self.puzzle = previous
        self._restart()
        return True

    def redo(self) -> bool:
        """Reapply the last undone change."""
        following = self.history.redo(self.puzzle)
        if following is None:
            return False
        self.puzzle = following
        self._restart()
        return True

    def reset(self) -> EditorState:
        """Drop any in-progress work and restart the add-piece workflow."""
        self._restart()
        return self.state

    def _restart(self) -> None:
        self.pending = PendingSelection()
        self.manipulation = None
        self._after_puzzle_change()
        self.machine.reset(self.puzzle)
        self._after_transition()

    def validate(self) -> ValidationReport:
        """Validate the whole puzzle."""
        report = self.validation.validate(self.puzzle)
        self.logger.log_validation(report.is_valid, len(report.errors))
        return report
