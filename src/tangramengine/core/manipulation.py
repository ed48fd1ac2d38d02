"""Manipulation classifier.

Decides how a placed piece may currently move, based on its connections and
the current positions of the pieces it is connected to, and trims the raw
connection ranges to positions that do not overlap other pieces.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from tangramengine.config import EngineSettings, get_default_settings
from tangramengine.core.connections import resolve_roles
from tangramengine.core.transform import TransformEngine, snap_to_nearest
from tangramengine.core.validation import reachable_piece_ids
from tangramengine.domain import (
    Connection,
    ConnectionKind,
    Free,
    Locked,
    ManipulationMode,
    Piece,
    Point,
    Puzzle,
    Rotatable,
    Slidable,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RotationLimits:
    """Overlap-free rotation range around the current angle.

    Attributes:
        min_angle: Lowest reachable candidate angle
        max_angle: Highest reachable candidate angle
        valid_angles: Every reachable candidate angle, ascending
    """

    min_angle: float
    max_angle: float
    valid_angles: tuple[float, ...]


@dataclass(frozen=True, slots=True)
class SlideLimits:
    """Overlap-free slide range around the current position."""

    min_distance: float
    max_distance: float


class ManipulationClassifier:
    """Classifies pieces into manipulation modes and computes trimmed limits."""

    def __init__(
        self,
        settings: EngineSettings | None = None,
        engine: TransformEngine | None = None,
    ) -> None:
        self.settings = settings or get_default_settings()
        self.engine = engine or TransformEngine(self.settings)

    @property
    def visual_scale(self) -> float:
        return self.settings.geometry.visual_scale

    def calculate_manipulation_mode(
        self,
        piece: Piece,
        connections: Sequence[Connection],
        all_pieces: Sequence[Piece],
        is_first_piece: bool,
    ) -> ManipulationMode:
        """Derive the manipulation mode of a piece from its connections.

        Args:
            piece: Piece to classify
            connections: Connections involving the piece
            all_pieces: Every piece in the puzzle (current positions)
            is_first_piece: Whether this is the base piece

        Returns:
            Locked, Rotatable, Slidable or Free
        """
        if is_first_piece:
            return Locked("Base piece anchors the puzzle")
        if len(connections) >= 2:
            return Locked(f"Piece has {len(connections)} connections")
        if not connections:
            return Free()

        connection = connections[0]
        roles = resolve_roles(connection.connection_type, [*all_pieces, piece], piece.id)
        if roles is None:
            logger.debug("Piece %s locked: unresolved connection %s", piece.id, connection.id)
            return Locked("Connection references a missing piece")

        scale = self.visual_scale
        if roles.kind is ConnectionKind.VERTEX_TO_VERTEX:
            return Rotatable(
                pivot=roles.stationary_vertex(scale),
                snap_angles=tuple(self.settings.snap.rotation_candidates()),
            )

        span = self.engine.slide_span(roles)
        fractions = self.settings.snap.slide_preset.fractions
        return Slidable(
            track=self.engine.slide_track(roles),
            range=(0.0, span),
            snap_positions=tuple(fraction * span for fraction in fractions),
        )

    def mode_for(self, puzzle: Puzzle, piece_id: str) -> ManipulationMode:
        """Manipulation mode of a piece in a puzzle."""
        piece = puzzle.piece(piece_id)
        if piece is None:
            return Locked("Piece not found")
        return self.calculate_manipulation_mode(
            piece,
            puzzle.connections_for(piece_id),
            puzzle.pieces,
            puzzle.is_first_piece(piece_id),
        )

    def modes_for(self, puzzle: Puzzle) -> dict[str, ManipulationMode]:
        """Manipulation mode of every piece, keyed by id."""
        return {piece.id: self.mode_for(puzzle, piece.id) for piece in puzzle.pieces}

    def calculate_rotation_limits(
        self,
        piece: Piece,
        connection: Connection,
        pivot: Point,
        other_pieces: Sequence[Piece],
    ) -> RotationLimits:
        """Walk candidate angles outward from the current one until an overlap.

        Args:
            piece: Rotating piece
            connection: Its single connection
            pivot: World pivot of the rotation
            other_pieces: Pieces that must not be overlapped

        Returns:
            Trimmed rotation limits; a piece that cannot rotate gets a range
            containing only its current angle
        """
        candidates = self.settings.snap.rotation_candidates()
        current = snap_to_nearest(piece.transform.rotation_degrees, candidates)
        roles, reason = self.engine.rotation_roles(piece, connection, other_pieces)
        if reason is not None:
            logger.debug("Rotation limits for %s: %s", piece.id, reason)
            return RotationLimits(current, current, (current,))

        step = self.settings.snap.rotation_step_degrees
        valid = [current]

        def is_free(angle: float) -> bool:
            transform = self.engine.rotated_about_vertex(
                piece, angle, roles.manipulated_index, pivot
            )
            return not self.engine.overlaps_any(piece.with_transform(transform), other_pieces)

        for direction in (1.0, -1.0):
            angle = current + direction * step
            while -180.0 - 1e-9 <= angle <= 180.0 + 1e-9 and is_free(angle):
                valid.append(angle)
                angle += direction * step

        valid.sort()
        return RotationLimits(valid[0], valid[-1], tuple(valid))

    def calculate_slide_limits(
        self,
        piece: Piece,
        connection: Connection,
        other_pieces: Sequence[Piece],
    ) -> SlideLimits:
        """Walk slide positions outward from the current one until an overlap.

        The search advances in fixed steps (``slide_search_step``) and stops at
        the first overlapping position or at the end of the raw range.
        """
        roles, reason = self.engine.slide_roles(piece, connection, other_pieces)
        if reason is not None:
            logger.debug("Slide limits for %s: %s", piece.id, reason)
            return SlideLimits(0.0, 0.0)

        span = self.engine.slide_span(roles)
        current = max(0.0, min(span, self.engine.slide_position(roles)))
        step = self.settings.snap.slide_search_step

        def is_free(distance: float) -> bool:
            moved = piece.with_transform(self.engine.slid_to(roles, distance))
            return not self.engine.overlaps_any(moved, other_pieces)

        upper = current
        while upper < span:
            candidate = min(upper + step, span)
            if not is_free(candidate):
                break
            upper = candidate

        lower = current
        while lower > 0.0:
            candidate = max(lower - step, 0.0)
            if not is_free(candidate):
                break
            lower = candidate

        return SlideLimits(lower, upper)

    def is_structural(self, puzzle: Puzzle, piece_id: str) -> bool:
        """True if removing the piece would disconnect the remaining pieces."""
        remaining = [pid for pid in puzzle.piece_ids if pid != piece_id]
        if len(remaining) < 2:
            return False
        links = [c.piece_ids for c in puzzle.connections if not c.involves(piece_id)]
        return len(reachable_piece_ids(remaining, links)) != len(remaining)

    def lock_reason(self, puzzle: Puzzle, piece_id: str) -> str | None:
        """Why a piece cannot be unlocked for editing, or None if it can."""
        if puzzle.piece(piece_id) is None:
            return "Piece not found"
        if puzzle.is_first_piece(piece_id):
            return "Base piece anchors the puzzle"
        count = len(puzzle.connections_for(piece_id))
        if count >= 2:
            return f"Piece has {count} connections"
        if self.is_structural(puzzle, piece_id):
            return "Piece holds other pieces together"
        return None

    def can_unlock(self, puzzle: Puzzle, piece_id: str) -> bool:
        return self.lock_reason(puzzle, piece_id) is None
