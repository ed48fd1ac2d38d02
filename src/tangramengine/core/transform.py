"""Transform engine: the single authority for computing piece transforms.

Every operation (initial placement, rotation about a pivot, sliding along a
track, free drag) is computed here and then validated by the same code path,
so a live preview and the final commit can never disagree.

Operations:
- Place: orient the piece and put its centroid at a point
- Rotate: snap to a 45-degree candidate about the connection pivot
- Slide: snap to a stop along the connected edge
- Drag: move the centroid to a point (unconnected pieces only)
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TypeAlias

from tangramengine.config import EngineSettings, get_default_settings
from tangramengine.core.connections import (
    ConnectionRoles,
    ConnectionService,
    edge_slide_geometry,
    resolve_roles,
)
from tangramengine.core.geometry import (
    bounding_box,
    nearest_point_on_segment,
    polygon_centroid,
    polygons_overlap,
)
from tangramengine.domain import (
    Connection,
    ConnectionKind,
    Piece,
    PieceType,
    Point,
    Segment,
    Transform,
    orientation_transform,
    rotation_about,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Place:
    """Initial placement: orient, then put the centroid on ``center``."""

    center: Point
    rotation: float = 0.0
    flipped: bool = False


@dataclass(frozen=True, slots=True)
class Rotate:
    """Rotate to an absolute angle (degrees) about ``pivot``."""

    angle: float
    pivot: Point


@dataclass(frozen=True, slots=True)
class Slide:
    """Slide ``distance`` units along ``track``."""

    distance: float
    track: Segment


@dataclass(frozen=True, slots=True)
class Drag:
    """Move the centroid to ``position``."""

    position: Point


Operation: TypeAlias = Place | Rotate | Slide | Drag


class ViolationKind(str, Enum):
    """Reasons a computed transform may be rejected."""

    OVERLAP = "overlap"
    CONNECTION_BROKEN = "connection_broken"
    OUT_OF_BOUNDS = "out_of_bounds"
    NON_FINITE = "non_finite"
    UNSUPPORTED = "unsupported"

    @property
    def is_hard(self) -> bool:
        """Hard violations invalidate the transform; out-of-bounds is advisory."""
        return self is not ViolationKind.OUT_OF_BOUNDS


@dataclass(frozen=True, slots=True)
class Violation:
    """A single problem with a computed transform.

    Attributes:
        kind: Violation category
        piece_id: Other piece involved (overlaps)
        connection_id: Connection involved (broken connections)
        message: Human-readable detail
    """

    kind: ViolationKind
    piece_id: str | None = None
    connection_id: str | None = None
    message: str = ""


@dataclass(frozen=True, slots=True)
class SnapInfo:
    """How a requested value was snapped.

    Attributes:
        requested: Value asked for (degrees or distance)
        snapped_value: Value actually applied
        snap_points: Legal values that were considered
    """

    requested: float
    snapped_value: float
    snap_points: tuple[float, ...]

    @property
    def did_snap(self) -> bool:
        return abs(self.requested - self.snapped_value) > 1e-9


@dataclass(frozen=True, slots=True)
class TransformResult:
    """Outcome of a transform calculation.

    Attributes:
        transform: Computed transform (the unchanged transform when rejected
            before validation)
        is_valid: True when no hard violation was found
        violations: Every violation found
        snap_info: Snapping details for rotate and slide operations
    """

    transform: Transform
    is_valid: bool
    violations: tuple[Violation, ...] = field(default_factory=tuple)
    snap_info: SnapInfo | None = None

    @property
    def overlapping_ids(self) -> list[str]:
        return [
            v.piece_id
            for v in self.violations
            if v.kind is ViolationKind.OVERLAP and v.piece_id is not None
        ]

    def has_violation(self, kind: ViolationKind) -> bool:
        return any(v.kind is kind for v in self.violations)


def snap_to_nearest(value: float, stops: Sequence[float]) -> float:
    """Return the stop nearest to ``value`` (first one on ties)."""
    return min(stops, key=lambda stop: abs(stop - value))


def _wrap_degrees(angle: float) -> float:
    """Wrap an angle to [-180, 180)."""
    return (angle + 180.0) % 360.0 - 180.0


class TransformEngine:
    """Computes and validates piece transforms for every operation kind."""

    def __init__(self, settings: EngineSettings | None = None) -> None:
        self.settings = settings or get_default_settings()
        self.geometry = self.settings.geometry
        self.snap = self.settings.snap
        self.canvas = self.settings.canvas
        self.connections = ConnectionService(self.geometry)

    @property
    def visual_scale(self) -> float:
        return self.geometry.visual_scale

    def calculate_transform(
        self,
        piece: Piece,
        operation: Operation,
        connection: Connection | None = None,
        other_pieces: Sequence[Piece] = (),
        canvas_size: tuple[float, float] | None = None,
    ) -> TransformResult:
        """Compute and validate the transform for an operation.

        Args:
            piece: Piece being placed or manipulated
            operation: Place, Rotate, Slide or Drag
            connection: Connection constraining the piece, if any
            other_pieces: Every other piece in the puzzle
            canvas_size: (width, height) for the bounds check

        Returns:
            TransformResult with the transform, validity, violations and
            snapping details
        """
        others = [p for p in other_pieces if p.id != piece.id]
        snap_info = None
        rejection = None

        if isinstance(operation, Place):
            transform = self.place_transform(
                piece.piece_type, operation.center, operation.rotation, operation.flipped
            )
        elif isinstance(operation, Rotate):
            transform, snap_info, rejection = self._rotate(piece, operation, connection, others)
        elif isinstance(operation, Slide):
            transform, snap_info, rejection = self._slide(piece, operation, connection, others)
        elif isinstance(operation, Drag):
            transform = self.drag_transform(piece, operation.position)
        else:
            raise TypeError(f"Unsupported operation: {operation!r}")

        if rejection is not None:
            return TransformResult(piece.transform, False, (rejection,), snap_info)

        connections = [connection] if connection is not None else []
        return self.evaluate_transform(piece, transform, connections, others, canvas_size, snap_info)

    def evaluate_transform(
        self,
        piece: Piece,
        transform: Transform,
        connections: Sequence[Connection] = (),
        other_pieces: Sequence[Piece] = (),
        canvas_size: tuple[float, float] | None = None,
        snap_info: SnapInfo | None = None,
    ) -> TransformResult:
        """Validate a candidate transform for a piece.

        Checks, in order: finiteness, overlap with every other piece, that
        each supplied connection still holds, and canvas bounds (advisory).

        Args:
            piece: Piece the transform is for
            transform: Candidate transform
            connections: Connections that must remain satisfied
            other_pieces: Pieces to test overlap against
            canvas_size: (width, height), defaults to the configured canvas
            snap_info: Snapping details to carry into the result

        Returns:
            TransformResult for the candidate
        """
        if not transform.is_finite():
            logger.debug("Rejected non-finite transform for piece %s", piece.id)
            violation = Violation(
                ViolationKind.NON_FINITE, message="transform has non-finite components"
            )
            return TransformResult(piece.transform, False, (violation,), snap_info)

        candidate = piece.with_transform(transform)
        vertices = candidate.world_vertices(self.visual_scale)
        violations: list[Violation] = []

        others = [p for p in other_pieces if p.id != piece.id]
        for other in others:
            if polygons_overlap(
                vertices,
                other.world_vertices(self.visual_scale),
                self.geometry.overlap_tolerance,
                self.geometry.touch_vertex_tolerance,
            ):
                violations.append(
                    Violation(ViolationKind.OVERLAP, piece_id=other.id, message="pieces overlap")
                )

        pieces = [*others, candidate]
        for connection in connections:
            if not self.connections.is_connection_satisfied(connection, pieces):
                violations.append(
                    Violation(
                        ViolationKind.CONNECTION_BROKEN,
                        connection_id=connection.id,
                        message="connection no longer holds",
                    )
                )

        width, height = canvas_size or self.canvas.size
        margin = self.canvas.bounds_margin
        min_x, min_y, max_x, max_y = bounding_box(vertices)
        if min_x < -margin or min_y < -margin or max_x > width + margin or max_y > height + margin:
            violations.append(
                Violation(ViolationKind.OUT_OF_BOUNDS, message="piece extends past the canvas")
            )

        is_valid = not any(v.kind.is_hard for v in violations)
        return TransformResult(transform, is_valid, tuple(violations), snap_info)

    def place_transform(
        self,
        piece_type: PieceType,
        center: Point,
        rotation: float = 0.0,
        flipped: bool = False,
    ) -> Transform:
        """Orient a piece and translate its visual centroid onto ``center``."""
        base = orientation_transform(piece_type, rotation, flipped)
        scaled = [v.scaled(self.visual_scale) for v in piece_type.vertices]
        centroid = polygon_centroid([base.apply(v) for v in scaled])
        return base.with_translation(center.x - centroid.x, center.y - centroid.y)

    def drag_transform(self, piece: Piece, position: Point) -> Transform:
        """Translate so the world centroid lands on ``position``."""
        centroid = piece.world_centroid(self.visual_scale)
        return piece.transform.translated(position.x - centroid.x, position.y - centroid.y)

    def rotated_about_vertex(
        self,
        piece: Piece,
        angle: float,
        vertex_index: int,
        pivot: Point,
    ) -> Transform:
        """Pure rotation to ``angle`` with local vertex ``vertex_index`` on ``pivot``.

        Any reflection of the current transform is kept.
        """
        base = orientation_transform(piece.piece_type, angle, piece.transform.is_flipped)
        local = piece.piece_type.vertices[vertex_index].scaled(self.visual_scale)
        mapped = base.apply(local)
        return base.with_translation(pivot.x - mapped.x, pivot.y - mapped.y)

    def rotated_about_point(self, piece: Piece, angle: float, pivot: Point) -> Transform:
        """Rotate the current pose about an arbitrary pivot to absolute ``angle``."""
        delta = angle - piece.transform.rotation_degrees
        return piece.transform.then(rotation_about(pivot, delta))

    def overlaps_any(self, piece: Piece, others: Sequence[Piece]) -> bool:
        """Check a pose against every other piece."""
        vertices = piece.world_vertices(self.visual_scale)
        return any(
            polygons_overlap(
                vertices,
                other.world_vertices(self.visual_scale),
                self.geometry.overlap_tolerance,
                self.geometry.touch_vertex_tolerance,
            )
            for other in others
            if other.id != piece.id
        )

    def rotation_roles(
        self,
        piece: Piece,
        connection: Connection,
        others: Sequence[Piece],
    ) -> tuple[ConnectionRoles | None, str | None]:
        """Resolve roles for rotating ``piece`` and say why rotation is impossible.

        Returns:
            (roles, reason); reason is None when the piece can rotate
        """
        roles = resolve_roles(connection.connection_type, [*others, piece], piece.id)
        if roles is None:
            return None, "connection references a missing piece or index"
        if roles.kind is ConnectionKind.EDGE_TO_EDGE:
            return roles, "edge-to-edge connections only allow sliding"
        if roles.manipulated_is_edge:
            return roles, "the piece owning the constrained edge cannot rotate"
        return roles, None

    def _rotate(
        self,
        piece: Piece,
        operation: Rotate,
        connection: Connection | None,
        others: Sequence[Piece],
    ) -> tuple[Transform, SnapInfo | None, Violation | None]:
        candidates = self.snap.rotation_candidates()
        requested = _wrap_degrees(operation.angle)

        roles = None
        if connection is not None:
            roles, reason = self.rotation_roles(piece, connection, others)
            if reason is not None:
                return piece.transform, None, Violation(ViolationKind.UNSUPPORTED, message=reason)

        def pose(angle: float) -> Transform:
            if roles is None:
                return self.rotated_about_point(piece, angle, operation.pivot)
            return self.rotated_about_vertex(piece, angle, roles.manipulated_index, operation.pivot)

        valid = [
            angle
            for angle in candidates
            if not self.overlaps_any(piece.with_transform(pose(angle)), others)
        ]
        chosen = snap_to_nearest(requested, valid) if valid else 0.0
        transform = pose(chosen)

        if roles is not None and roles.kind is ConnectionKind.VERTEX_TO_EDGE:
            edge = roles.stationary_edge(self.visual_scale)
            vertex = transform.apply(
                piece.piece_type.vertices[roles.manipulated_index].scaled(self.visual_scale)
            )
            nearest, drift = nearest_point_on_segment(vertex, edge.start, edge.end)
            if drift > self.geometry.reprojection_threshold:
                transform = transform.translated(nearest.x - vertex.x, nearest.y - vertex.y)

        logger.debug(
            "Rotation snapped: requested=%.1f chosen=%.1f valid=%d", requested, chosen, len(valid)
        )
        return transform, SnapInfo(operation.angle, chosen, tuple(candidates)), None

    def slide_roles(
        self,
        piece: Piece,
        connection: Connection,
        others: Sequence[Piece],
    ) -> tuple[ConnectionRoles | None, str | None]:
        """Resolve roles for sliding ``piece`` and say why sliding is impossible."""
        roles = resolve_roles(connection.connection_type, [*others, piece], piece.id)
        if roles is None:
            return None, "connection references a missing piece or index"
        if roles.kind is ConnectionKind.VERTEX_TO_VERTEX:
            return roles, "vertex-to-vertex connections only allow rotation"
        return roles, None

    def slide_span(self, roles: ConnectionRoles) -> float:
        """Length of the legal slide range for resolved roles."""
        if roles.kind is ConnectionKind.EDGE_TO_EDGE:
            return edge_slide_geometry(roles, self.visual_scale).span
        if roles.stationary_is_edge:
            return roles.stationary_edge(self.visual_scale).length
        return roles.manipulated_edge(self.visual_scale).length

    def slide_track(self, roles: ConnectionRoles) -> Segment:
        """World segment the slide follows, anchored on the stationary piece.

        When an edge slides past a stationary vertex, the track starts at
        that vertex and runs the way the piece moves as the distance grows.
        """
        scale = self.visual_scale
        if roles.kind is ConnectionKind.EDGE_TO_EDGE:
            return edge_slide_geometry(roles, scale).line
        if roles.stationary_is_edge:
            return roles.stationary_edge(scale)
        vertex = roles.stationary_vertex(scale)
        edge = roles.manipulated_edge(scale)
        return Segment(vertex, vertex - edge.direction.scaled(edge.length))

    def slide_position(self, roles: ConnectionRoles) -> float:
        """Current distance of the manipulated piece along its slide range."""
        scale = self.visual_scale
        if roles.kind is ConnectionKind.EDGE_TO_EDGE:
            slide = edge_slide_geometry(roles, scale)
            midpoint = roles.manipulated_edge(scale).midpoint
            along = slide.line.direction.dot(midpoint - slide.line.start)
            return along - slide.sliding_length / 2.0 - slide.low
        if roles.stationary_is_edge:
            edge = roles.stationary_edge(scale)
            return edge.direction.dot(roles.manipulated_vertex(scale) - edge.start)
        edge = roles.manipulated_edge(scale)
        return edge.direction.dot(roles.stationary_vertex(scale) - edge.start)

    def slid_to(self, roles: ConnectionRoles, distance: float) -> Transform:
        """Transform putting the manipulated piece ``distance`` along its range.

        No snapping or clamping is applied.
        """
        scale = self.visual_scale
        piece = roles.manipulated
        if roles.kind is ConnectionKind.EDGE_TO_EDGE:
            slide = edge_slide_geometry(roles, scale)
            along = slide.low + distance + slide.sliding_length / 2.0
            target = slide.line.start + slide.line.direction.scaled(along)
            current = roles.manipulated_edge(scale).midpoint
        elif roles.stationary_is_edge:
            edge = roles.stationary_edge(scale)
            target = edge.start + edge.direction.scaled(distance)
            current = roles.manipulated_vertex(scale)
        else:
            edge = roles.manipulated_edge(scale)
            target = roles.stationary_vertex(scale)
            current = edge.start + edge.direction.scaled(distance)
        return piece.transform.translated(target.x - current.x, target.y - current.y)

    def _slide(
        self,
        piece: Piece,
        operation: Slide,
        connection: Connection | None,
        others: Sequence[Piece],
    ) -> tuple[Transform, SnapInfo | None, Violation | None]:
        fractions = self.snap.slide_preset.fractions

        if connection is None:
            length = operation.track.length
            if length <= self.geometry.fine_tolerance:
                return piece.transform, None, Violation(
                    ViolationKind.NON_FINITE, message="track has zero length"
                )
            fraction = snap_to_nearest(max(0.0, min(1.0, operation.distance / length)), fractions)
            offset = operation.track.direction.scaled(fraction * length)
            snap_points = tuple(f * length for f in fractions)
            snap_info = SnapInfo(operation.distance, fraction * length, snap_points)
            return piece.transform.translated(offset.x, offset.y), snap_info, None

        roles, reason = self.slide_roles(piece, connection, others)
        if reason is not None:
            return piece.transform, None, Violation(ViolationKind.UNSUPPORTED, message=reason)

        span = self.slide_span(roles)
        if span <= self.geometry.fine_tolerance:
            fraction = 0.0
        else:
            fraction = snap_to_nearest(max(0.0, min(1.0, operation.distance / span)), fractions)
        distance = fraction * span
        snap_info = SnapInfo(operation.distance, distance, tuple(f * span for f in fractions))
        logger.debug("Slide snapped: requested=%.2f chosen=%.2f", operation.distance, distance)
        return self.slid_to(roles, distance), snap_info, None
