"""Piece placement and removal.

Placement is atomic: the new piece and every connection it declares are
computed and validated first, and only a successful result is committed to
the puzzle. Previews use exactly the same calculation as commits.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from tangramengine.config import EngineSettings, get_default_settings
from tangramengine.core.transform import (
    Place,
    TransformEngine,
    TransformResult,
    Violation,
    ViolationKind,
)
from tangramengine.core.validation import reachable_piece_ids
from tangramengine.domain import (
    Connection,
    ConnectionKind,
    ConnectionPoint,
    Piece,
    PieceType,
    Point,
    Puzzle,
    Transform,
    new_piece_id,
)
from tangramengine.exceptions import (
    DegenerateTransformError,
    InvalidConnectionPointsError,
    OverlapError,
    PieceRemovalError,
    PlacementError,
)

logger = logging.getLogger(__name__)

# Fractions of the slide range tried when a shared edge is blocked at its midpoint
EDGE_SEARCH_STEPS = (0.1, 0.005)


@dataclass(frozen=True, slots=True)
class PlacementResult:
    """Outcome of placing (or previewing) a piece.

    Attributes:
        success: True when the piece can be committed
        piece: The positioned piece (present even for most failures)
        connections: Connections the placement declares
        violations: Problems found by transform validation
        error: Human-readable failure reason
    """

    success: bool
    piece: Piece | None = None
    connections: tuple[Connection, ...] = field(default_factory=tuple)
    violations: tuple[Violation, ...] = field(default_factory=tuple)
    error: str | None = None

    @property
    def overlapping_ids(self) -> list[str]:
        return [
            v.piece_id
            for v in self.violations
            if v.kind is ViolationKind.OVERLAP and v.piece_id is not None
        ]


@dataclass(frozen=True, slots=True)
class RemovalResult:
    """Outcome of removing a piece."""

    success: bool
    reason: str | None = None
    removed_connections: tuple[Connection, ...] = field(default_factory=tuple)


def _describe_violations(violations: Sequence[Violation]) -> str:
    overlapping = [v.piece_id for v in violations if v.kind is ViolationKind.OVERLAP]
    if overlapping:
        return "overlaps " + ", ".join(str(piece_id) for piece_id in overlapping)
    hard = [v for v in violations if v.kind.is_hard]
    if hard:
        return hard[0].message or hard[0].kind.value
    return "invalid placement"


class PlacementService:
    """Places new pieces into a puzzle and removes existing ones."""

    def __init__(
        self,
        settings: EngineSettings | None = None,
        engine: TransformEngine | None = None,
    ) -> None:
        self.settings = settings or get_default_settings()
        self.engine = engine or TransformEngine(self.settings)
        self.connections = self.engine.connections

    def _type_error(self, puzzle: Puzzle, piece_type: PieceType) -> str | None:
        if puzzle.has_piece_type(piece_type):
            return f"{piece_type.value} is already placed"
        return None

    def from_transform_result(
        self,
        piece: Piece,
        result: TransformResult,
        connections: Sequence[Connection] = (),
    ) -> PlacementResult:
        """Wrap a transform validation result for a piece as a placement outcome."""
        if not result.is_valid:
            return PlacementResult(
                success=False,
                piece=piece.with_transform(result.transform),
                connections=tuple(connections),
                violations=result.violations,
                error=_describe_violations(result.violations),
            )
        return PlacementResult(
            success=True,
            piece=piece.with_transform(result.transform),
            connections=tuple(connections),
            violations=result.violations,
        )

    def preview_first_piece(
        self,
        puzzle: Puzzle,
        piece_type: PieceType,
        rotation: float = 0.0,
        flipped: bool = False,
        canvas_size: tuple[float, float] | None = None,
    ) -> PlacementResult:
        """Compute the base piece placement at the canvas center without committing."""
        if not puzzle.is_empty:
            return PlacementResult(success=False, error="puzzle already has a base piece")

        width, height = canvas_size or self.settings.canvas.size
        piece = Piece(new_piece_id(), piece_type)
        result = self.engine.calculate_transform(
            piece,
            Place(Point(width / 2.0, height / 2.0), rotation, flipped),
            canvas_size=(width, height),
        )
        return self.from_transform_result(piece, result)

    def preview_connected_piece(
        self,
        puzzle: Puzzle,
        piece_type: PieceType,
        rotation: float,
        flipped: bool,
        canvas_points: Sequence[ConnectionPoint],
        pending_points: Sequence[ConnectionPoint],
        canvas_size: tuple[float, float] | None = None,
    ) -> PlacementResult:
        """Compute a connected placement without committing it.

        Args:
            puzzle: Puzzle the piece would join
            piece_type: Type of the new piece
            rotation: Requested rotation in degrees
            flipped: Whether the new piece is mirrored
            canvas_points: Selected points on placed pieces
            pending_points: Matching points on the new piece
            canvas_size: (width, height) for the bounds check

        Returns:
            PlacementResult; failures carry an error and any violations
        """
        if puzzle.is_empty:
            return PlacementResult(success=False, error="place a base piece first")
        type_error = self._type_error(puzzle, piece_type)
        if type_error is not None:
            return PlacementResult(success=False, error=type_error)

        piece_id = new_piece_id()
        try:
            transform = self.connections.compute_alignment(
                piece_type, rotation, flipped, canvas_points, pending_points, puzzle.pieces
            )
        except InvalidConnectionPointsError as e:
            return PlacementResult(success=False, error=e.reason)

        piece = Piece(piece_id, piece_type, transform)
        pieces = [*puzzle.pieces, piece]
        connections = []
        for canvas_point, pending_point in list(zip(canvas_points, pending_points))[:2]:
            connection_type = self.connections.connection_type_from_points(
                canvas_point, pending_point, piece_id
            )
            connection = self.connections.create_connection(connection_type, pieces)
            if connection is None:
                return PlacementResult(
                    success=False,
                    piece=piece,
                    error=f"connection {canvas_point.id} cannot be established",
                )
            connections.append(connection)

        result = self.engine.evaluate_transform(
            piece, transform, connections, puzzle.pieces, canvas_size
        )
        if len(connections) == 1 and any(
            v.kind is ViolationKind.OVERLAP for v in result.violations
        ):
            offset = self.find_free_edge_offset(piece, connections[0], puzzle.pieces)
            if offset is not None:
                result = self.engine.evaluate_transform(
                    piece, offset, connections, puzzle.pieces, canvas_size
                )
        return self.from_transform_result(piece, result, connections)

    def find_free_edge_offset(
        self,
        piece: Piece,
        connection: Connection,
        others: Sequence[Piece],
    ) -> Transform | None:
        """Slide a piece along its shared edge to the first spot clear of overlaps.

        The whole range is walked in coarse steps first, then in fine steps.
        Only edge-to-edge connections are searched.

        Args:
            piece: Newly aligned piece
            connection: Its single edge-to-edge connection
            others: Pieces that must not be overlapped

        Returns:
            Transform of the first free position, or None when every position
            overlaps
        """
        roles, reason = self.engine.slide_roles(piece, connection, others)
        if reason is not None or roles.kind is not ConnectionKind.EDGE_TO_EDGE:
            return None

        span = self.engine.slide_span(roles)
        if span <= self.settings.geometry.fine_tolerance:
            return None

        for step in EDGE_SEARCH_STEPS:
            for i in range(round(1.0 / step) + 1):
                distance = min(i * step, 1.0) * span
                transform = self.engine.slid_to(roles, distance)
                if not self.engine.overlaps_any(piece.with_transform(transform), others):
                    logger.debug(
                        "Shifted %s to %.2f of %.2f along the shared edge",
                        piece.piece_type.value,
                        distance,
                        span,
                    )
                    return transform
        return None

    def commit(self, puzzle: Puzzle, result: PlacementResult) -> bool:
        """Append a successful placement and its connections to the puzzle."""
        if not result.success or result.piece is None:
            return False
        puzzle.add_piece(result.piece)
        for connection in result.connections:
            puzzle.add_connection(connection)
        logger.debug(
            "Placed %s as %s with %d connection(s)",
            result.piece.piece_type.value,
            result.piece.id,
            len(result.connections),
        )
        return True

    def place_first_piece(
        self,
        puzzle: Puzzle,
        piece_type: PieceType,
        rotation: float = 0.0,
        flipped: bool = False,
        canvas_size: tuple[float, float] | None = None,
    ) -> PlacementResult:
        """Place the base piece and commit it when valid."""
        result = self.preview_first_piece(puzzle, piece_type, rotation, flipped, canvas_size)
        self.commit(puzzle, result)
        return result

    def place_connected_piece(
        self,
        puzzle: Puzzle,
        piece_type: PieceType,
        rotation: float,
        flipped: bool,
        canvas_points: Sequence[ConnectionPoint],
        pending_points: Sequence[ConnectionPoint],
        canvas_size: tuple[float, float] | None = None,
    ) -> PlacementResult:
        """Place a connected piece and commit it when valid.

        The puzzle is left untouched on failure.
        """
        result = self.preview_connected_piece(
            puzzle, piece_type, rotation, flipped, canvas_points, pending_points, canvas_size
        )
        self.commit(puzzle, result)
        return result

    def place_or_raise(
        self,
        puzzle: Puzzle,
        piece_type: PieceType,
        rotation: float,
        flipped: bool,
        canvas_points: Sequence[ConnectionPoint],
        pending_points: Sequence[ConnectionPoint],
        canvas_size: tuple[float, float] | None = None,
    ) -> Piece:
        """Strict variant of ``place_connected_piece``.

        Raises:
            DegenerateTransformError: If the computed transform is not finite
            OverlapError: If the placement overlaps existing pieces
            PlacementError: For any other failure
        """
        result = self.place_connected_piece(
            puzzle, piece_type, rotation, flipped, canvas_points, pending_points, canvas_size
        )
        if result.success and result.piece is not None:
            return result.piece
        for violation in result.violations:
            if violation.kind is ViolationKind.NON_FINITE:
                raise DegenerateTransformError(piece_type.value, violation.message)
        if result.overlapping_ids:
            raise OverlapError(piece_type.value, result.overlapping_ids)
        raise PlacementError(piece_type.value, result.error or "invalid placement")

    def apply_transform(self, puzzle: Puzzle, piece_id: str, result: TransformResult) -> bool:
        """Commit a validated manipulation result to a placed piece."""
        piece = puzzle.piece(piece_id)
        if piece is None or not result.is_valid:
            return False
        return puzzle.update_piece(piece.with_transform(result.transform))

    def check_removal(self, puzzle: Puzzle, piece_id: str) -> RemovalResult:
        """Check whether a piece may be removed without committing anything."""
        if puzzle.piece(piece_id) is None:
            return RemovalResult(success=False, reason="Piece not found")
        if puzzle.is_first_piece(piece_id) and len(puzzle.pieces) > 1:
            return RemovalResult(
                success=False, reason="Cannot remove the base piece while other pieces exist"
            )

        remaining = [pid for pid in puzzle.piece_ids if pid != piece_id]
        links = [c.piece_ids for c in puzzle.connections if not c.involves(piece_id)]
        if len(reachable_piece_ids(remaining, links)) != len(remaining):
            return RemovalResult(
                success=False, reason="Removing this piece would disconnect the puzzle"
            )
        return RemovalResult(success=True)

    def remove_piece(self, puzzle: Puzzle, piece_id: str) -> RemovalResult:
        """Remove a piece and its connections when structural rules allow it."""
        check = self.check_removal(puzzle, piece_id)
        if not check.success:
            logger.debug("Removal of %s rejected: %s", piece_id, check.reason)
            return check
        removed = puzzle.remove_piece(piece_id)
        return RemovalResult(success=True, removed_connections=tuple(removed))

    def remove_or_raise(self, puzzle: Puzzle, piece_id: str) -> None:
        """Strict variant of ``remove_piece``.

        Raises:
            PieceRemovalError: If the piece cannot be removed
        """
        result = self.remove_piece(puzzle, piece_id)
        if not result.success:
            raise PieceRemovalError(piece_id, result.reason or "removal rejected")
