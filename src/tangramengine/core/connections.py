"""Connection model: roles, constraints, satisfaction checks and alignment.

Every component that needs to know which piece of a connection stays put and
which one moves goes through ``resolve_roles``. Constraints are always derived
from the current world geometry of both pieces.
"""

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from tangramengine.config import GeometryConfig
from tangramengine.core.geometry import (
    edge_partially_coincides,
    edges_coincide,
    point_on_segment,
    polygon_centroid,
)
from tangramengine.domain import (
    Connection,
    ConnectionKind,
    ConnectionPoint,
    ConnectionType,
    Constraint,
    EdgeToEdge,
    Piece,
    PieceType,
    Point,
    PointKind,
    RotationConstraint,
    Segment,
    Transform,
    TranslationConstraint,
    VertexToEdge,
    VertexToVertex,
    orientation_transform,
)
from tangramengine.exceptions import ConnectionNotSatisfiedError, InvalidConnectionPointsError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ConnectionRoles:
    """Which piece of a connection is stationary and which is manipulated.

    Attributes:
        kind: Connection kind
        stationary: Piece that does not move
        manipulated: Piece being moved
        stationary_index: Vertex or edge index on the stationary piece
        manipulated_index: Vertex or edge index on the manipulated piece
        stationary_is_edge: Whether the stationary index refers to an edge
        manipulated_is_edge: Whether the manipulated index refers to an edge
    """

    kind: ConnectionKind
    stationary: Piece
    manipulated: Piece
    stationary_index: int
    manipulated_index: int
    stationary_is_edge: bool
    manipulated_is_edge: bool

    def stationary_vertex(self, visual_scale: float) -> Point:
        return self.stationary.world_vertex(self.stationary_index, visual_scale)

    def manipulated_vertex(self, visual_scale: float) -> Point:
        return self.manipulated.world_vertex(self.manipulated_index, visual_scale)

    def stationary_edge(self, visual_scale: float) -> Segment:
        return self.stationary.world_edge(self.stationary_index, visual_scale)

    def manipulated_edge(self, visual_scale: float) -> Segment:
        return self.manipulated.world_edge(self.manipulated_index, visual_scale)

    def with_manipulated(self, piece: Piece) -> "ConnectionRoles":
        """Same roles with the manipulated piece replaced (e.g. a candidate pose)."""
        return ConnectionRoles(
            self.kind,
            self.stationary,
            piece,
            self.stationary_index,
            self.manipulated_index,
            self.stationary_is_edge,
            self.manipulated_is_edge,
        )


def _sides(connection_type: ConnectionType) -> tuple[tuple[str, int, bool], tuple[str, int, bool]]:
    """(piece id, index, is_edge) for both sides, newer/moving side last."""
    if isinstance(connection_type, VertexToVertex):
        return (
            (connection_type.piece_a_id, connection_type.vertex_a, False),
            (connection_type.piece_b_id, connection_type.vertex_b, False),
        )
    if isinstance(connection_type, EdgeToEdge):
        return (
            (connection_type.piece_a_id, connection_type.edge_a, True),
            (connection_type.piece_b_id, connection_type.edge_b, True),
        )
    return (
        (connection_type.edge_piece_id, connection_type.edge, True),
        (connection_type.vertex_piece_id, connection_type.vertex, False),
    )


def resolve_roles(
    connection_type: ConnectionType,
    pieces: Iterable[Piece],
    manipulated_id: str | None = None,
) -> ConnectionRoles | None:
    """Extract stationary and manipulated sides of a connection.

    Without ``manipulated_id`` the second piece (piece B, or the vertex piece
    of a vertex-to-edge connection) is treated as the manipulated one. The
    derived constraint does not depend on that choice: coincident vertices
    give the same pivot and the track is always the longer edge.

    Args:
        connection_type: Connection to resolve
        pieces: Pieces to look the referenced ids up in
        manipulated_id: Id of the piece being moved

    Returns:
        Resolved roles, or None if a piece is missing, an index is out of
        range or ``manipulated_id`` is not part of the connection
    """
    lookup = {piece.id: piece for piece in pieces}
    first, second = _sides(connection_type)
    if manipulated_id is not None:
        if manipulated_id == first[0] and manipulated_id != second[0]:
            first, second = second, first
        elif manipulated_id != second[0]:
            return None

    stationary_id, stationary_index, stationary_is_edge = first
    manipulated_id, manipulated_index, manipulated_is_edge = second
    stationary = lookup.get(stationary_id)
    manipulated = lookup.get(manipulated_id)
    if stationary is None or manipulated is None:
        return None

    for piece, index, is_edge in (
        (stationary, stationary_index, stationary_is_edge),
        (manipulated, manipulated_index, manipulated_is_edge),
    ):
        in_range = piece.has_edge(index) if is_edge else piece.has_vertex(index)
        if not in_range:
            return None

    return ConnectionRoles(
        kind=connection_type.kind,
        stationary=stationary,
        manipulated=manipulated,
        stationary_index=stationary_index,
        manipulated_index=manipulated_index,
        stationary_is_edge=stationary_is_edge,
        manipulated_is_edge=manipulated_is_edge,
    )


@dataclass(frozen=True, slots=True)
class EdgeSlideGeometry:
    """Slide parameters for an edge-to-edge connection.

    The manipulated edge occupies the interval ``[t0, t0 + sliding_length]``
    along the stationary edge line; ``t0`` ranges over ``[low, high]``.
    """

    line: Segment
    sliding_length: float
    low: float
    high: float

    @property
    def span(self) -> float:
        return self.high - self.low


def edge_slide_geometry(roles: ConnectionRoles, visual_scale: float) -> EdgeSlideGeometry:
    """Slide interval of the manipulated edge along the stationary edge."""
    line = roles.stationary_edge(visual_scale)
    sliding_length = roles.manipulated_edge(visual_scale).length
    difference = line.length - sliding_length
    return EdgeSlideGeometry(line, sliding_length, min(0.0, difference), max(0.0, difference))


class ConnectionService:
    """Derives constraints from connections and checks that they still hold."""

    def __init__(self, config: GeometryConfig | None = None) -> None:
        self.config = config or GeometryConfig()

    @property
    def visual_scale(self) -> float:
        return self.config.visual_scale

    def calculate_constraint(
        self,
        connection_type: ConnectionType,
        pieces: Iterable[Piece],
    ) -> Constraint | None:
        """Derive the motion a connection allows.

        Args:
            connection_type: Declared relation
            pieces: Current pieces

        Returns:
            RotationConstraint for vertex-to-vertex, TranslationConstraint for
            edge-to-edge and vertex-to-edge, or None when the connection cannot
            be declared (missing piece, bad index, vertices apart, zero-length
            edge)
        """
        roles = resolve_roles(connection_type, pieces)
        if roles is None:
            logger.debug("Constraint rejected: unresolved connection %s", connection_type)
            return None

        scale = self.visual_scale
        if roles.kind is ConnectionKind.VERTEX_TO_VERTEX:
            pivot = roles.stationary_vertex(scale)
            gap = pivot.distance_to(roles.manipulated_vertex(scale))
            if gap > self.config.connection_tolerance:
                logger.debug("Constraint rejected: vertices %.3f apart", gap)
                return None
            return RotationConstraint(center=pivot, min_degrees=0.0, max_degrees=360.0)

        if roles.kind is ConnectionKind.EDGE_TO_EDGE:
            stationary_edge = roles.stationary_edge(scale)
            manipulated_edge = roles.manipulated_edge(scale)
            if stationary_edge.length >= manipulated_edge.length:
                track, sliding = stationary_edge, manipulated_edge
            else:
                track, sliding = manipulated_edge, stationary_edge
            if track.length <= self.config.fine_tolerance:
                return None
            return TranslationConstraint(
                axis=track.direction,
                min_distance=0.0,
                max_distance=max(0.0, track.length - sliding.length),
            )

        if roles.stationary_is_edge:
            edge = roles.stationary_edge(scale)
        else:
            edge = roles.manipulated_edge(scale)
        if edge.length <= self.config.fine_tolerance:
            return None
        return TranslationConstraint(axis=edge.direction, min_distance=0.0, max_distance=edge.length)

    def create_connection(
        self,
        connection_type: ConnectionType,
        pieces: Iterable[Piece],
    ) -> Connection | None:
        """Create a connection with its derived constraint.

        Returns:
            The new connection, or None if no constraint can be derived
        """
        constraint = self.calculate_constraint(connection_type, pieces)
        if constraint is None:
            return None
        return Connection(connection_type=connection_type, constraint=constraint)

    def connect_or_raise(
        self,
        connection_type: ConnectionType,
        pieces: Iterable[Piece],
    ) -> Connection:
        """Strict variant of ``create_connection``.

        Raises:
            ConnectionNotSatisfiedError: If the declared points do not touch
        """
        connection = self.create_connection(connection_type, pieces)
        if connection is None:
            piece_a, piece_b = connection_type.piece_ids
            raise ConnectionNotSatisfiedError(
                f"{connection_type.kind.value} between {piece_a} and {piece_b}"
            )
        return connection

    def is_connection_satisfied(self, connection: Connection, pieces: Iterable[Piece]) -> bool:
        """Re-derive a connection from current transforms and check it still holds."""
        roles = resolve_roles(connection.connection_type, pieces)
        if roles is None:
            return False

        scale = self.visual_scale
        tolerance = self.config.connection_tolerance
        if roles.kind is ConnectionKind.VERTEX_TO_VERTEX:
            gap = roles.stationary_vertex(scale).distance_to(roles.manipulated_vertex(scale))
            return gap <= tolerance

        if roles.kind is ConnectionKind.EDGE_TO_EDGE:
            first = roles.stationary_edge(scale)
            second = roles.manipulated_edge(scale)
            return edges_coincide(first, second, tolerance) or edge_partially_coincides(
                first, second, tolerance
            )

        if roles.stationary_is_edge:
            edge, vertex = roles.stationary_edge(scale), roles.manipulated_vertex(scale)
        else:
            edge, vertex = roles.manipulated_edge(scale), roles.stationary_vertex(scale)
        return point_on_segment(vertex, edge.start, edge.end, tolerance)

    def connection_points(self, piece: Piece) -> list[ConnectionPoint]:
        """Selectable points of a placed piece: every vertex, then every edge midpoint."""
        scale = self.visual_scale
        points = [
            ConnectionPoint(piece.id, PointKind.VERTEX, i, vertex)
            for i, vertex in enumerate(piece.world_vertices(scale))
        ]
        points.extend(
            ConnectionPoint(piece.id, PointKind.EDGE, i, edge.midpoint)
            for i, edge in enumerate(piece.world_edges(scale))
        )
        return points

    def pending_connection_points(
        self,
        piece_id: str,
        piece_type: PieceType,
        rotation: float,
        flipped: bool = False,
    ) -> list[ConnectionPoint]:
        """Selectable points of a piece that has not been placed yet.

        Positions are relative to the piece origin, oriented as requested.
        """
        oriented = Piece(piece_id, piece_type, orientation_transform(piece_type, rotation, flipped))
        return self.connection_points(oriented)

    def point_position(self, point: ConnectionPoint, piece: Piece) -> Point:
        """World position of a connection point on a piece."""
        if point.kind is PointKind.VERTEX:
            return piece.world_vertex(point.index, self.visual_scale)
        return piece.world_edge(point.index, self.visual_scale).midpoint

    def _local_position(self, point: ConnectionPoint, piece_type: PieceType) -> Point:
        return self.point_position(point, Piece(point.piece_id, piece_type))

    def compute_alignment(
        self,
        piece_type: PieceType,
        rotation: float,
        flipped: bool,
        canvas_points: Sequence[ConnectionPoint],
        pending_points: Sequence[ConnectionPoint],
        pieces: Iterable[Piece],
    ) -> Transform:
        """Compute the transform placing a new piece onto selected canvas points.

        Only the first two point pairs are used. A single pair keeps the
        requested rotation and translates the piece point onto the canvas
        point; a single edge pair additionally orients the new edge along the
        canvas edge with the new piece on the far side. Two pairs determine the
        rotation from the direction between the points.

        Args:
            piece_type: Type of the new piece
            rotation: Requested rotation in degrees
            flipped: Whether the new piece is mirrored
            canvas_points: Selected points on placed pieces
            pending_points: Matching points on the new piece (local indices)
            pieces: Placed pieces

        Returns:
            World transform for the new piece

        Raises:
            InvalidConnectionPointsError: If the selections are empty, differ
                in count, reference missing pieces or out-of-range indices, or
                two vertex pairs cannot both be matched
        """
        if not canvas_points or not pending_points:
            raise InvalidConnectionPointsError("no connection points selected")
        if len(canvas_points) != len(pending_points):
            raise InvalidConnectionPointsError(
                f"{len(canvas_points)} canvas point(s) but {len(pending_points)} piece point(s)"
            )

        lookup = {piece.id: piece for piece in pieces}
        pairs = list(zip(canvas_points, pending_points))[:2]
        targets = []
        locals_ = []
        for canvas_point, pending_point in pairs:
            owner = lookup.get(canvas_point.piece_id)
            if owner is None:
                raise InvalidConnectionPointsError(f"piece '{canvas_point.piece_id}' not found")
            if not 0 <= canvas_point.index < owner.vertex_count:
                raise InvalidConnectionPointsError(
                    f"index {canvas_point.index} out of range on '{owner.id}'"
                )
            if not 0 <= pending_point.index < piece_type.vertex_count:
                raise InvalidConnectionPointsError(
                    f"index {pending_point.index} out of range on {piece_type.value}"
                )
            targets.append(self.point_position(canvas_point, owner))
            locals_.append(self._local_position(pending_point, piece_type))

        if len(pairs) == 1:
            canvas_point, pending_point = pairs[0]
            if canvas_point.kind is PointKind.EDGE and pending_point.kind is PointKind.EDGE:
                owner = lookup[canvas_point.piece_id]
                return self._align_edge_pair(
                    piece_type,
                    flipped,
                    owner.world_edge(canvas_point.index, self.visual_scale),
                    polygon_centroid(owner.world_vertices(self.visual_scale)),
                    pending_point.index,
                )
            base = orientation_transform(piece_type, rotation, flipped)
            return _translate_onto(base, locals_[0], targets[0])

        reflect = orientation_transform(piece_type, 0.0, flipped)
        local_first, local_second = reflect.apply(locals_[0]), reflect.apply(locals_[1])
        local_vector = local_second - local_first
        canvas_vector = targets[1] - targets[0]
        epsilon = self.config.fine_tolerance
        if local_vector.length <= epsilon or canvas_vector.length <= epsilon:
            raise InvalidConnectionPointsError("the two selected points coincide")

        angle = math.degrees(
            math.atan2(canvas_vector.y, canvas_vector.x) - math.atan2(local_vector.y, local_vector.x)
        )
        base = orientation_transform(piece_type, angle, flipped)
        transform = _translate_onto(base, locals_[0], targets[0])
        error = transform.apply(locals_[1]).distance_to(targets[1])
        involves_edge = any(
            point.kind is PointKind.EDGE for pair in pairs for point in pair
        )
        if error > self.config.connection_tolerance:
            if not involves_edge:
                raise InvalidConnectionPointsError(
                    f"second point pair is {error:.2f} units apart after alignment"
                )
            logger.debug("Accepting %.3f unit misalignment on an edge pair", error)
        return transform

    def _align_edge_pair(
        self,
        piece_type: PieceType,
        flipped: bool,
        canvas_edge: Segment,
        canvas_centroid: Point,
        edge_index: int,
    ) -> Transform:
        """Lay a local edge along a canvas edge, midpoint to midpoint.

        Of the two collinear orientations, the one placing the new piece on the
        opposite side of the edge from the existing piece is used.
        """
        reflected = Piece("", piece_type, orientation_transform(piece_type, 0.0, flipped))
        local_edge = reflected.world_edge(edge_index, self.visual_scale)
        canvas_angle = math.atan2(canvas_edge.vector.y, canvas_edge.vector.x)
        local_angle = math.atan2(local_edge.vector.y, local_edge.vector.x)
        existing_side = canvas_edge.direction.cross(canvas_centroid - canvas_edge.start)

        fallback = None
        for offset in (180.0, 0.0):
            angle = math.degrees(canvas_angle - local_angle) + offset
            transform = _translate_onto(
                orientation_transform(piece_type, angle, flipped),
                Piece("", piece_type).world_edge(edge_index, self.visual_scale).midpoint,
                canvas_edge.midpoint,
            )
            centroid = Piece("", piece_type, transform).world_centroid(self.visual_scale)
            new_side = canvas_edge.direction.cross(centroid - canvas_edge.start)
            if new_side * existing_side < 0:
                return transform
            if fallback is None:
                fallback = transform
        return fallback

    def connection_type_from_points(
        self,
        canvas_point: ConnectionPoint,
        pending_point: ConnectionPoint,
        new_piece_id: str,
    ) -> ConnectionType:
        """Build the connection type implied by a selected point pair.

        The existing piece always takes the first position so that the new
        piece is the manipulated side of the resulting connection.
        """
        existing_id = canvas_point.piece_id
        canvas_is_vertex = canvas_point.kind is PointKind.VERTEX
        pending_is_vertex = pending_point.kind is PointKind.VERTEX
        if canvas_is_vertex and pending_is_vertex:
            return VertexToVertex(existing_id, canvas_point.index, new_piece_id, pending_point.index)
        if not canvas_is_vertex and not pending_is_vertex:
            return EdgeToEdge(existing_id, canvas_point.index, new_piece_id, pending_point.index)
        if canvas_is_vertex:
            return VertexToEdge(existing_id, canvas_point.index, new_piece_id, pending_point.index)
        return VertexToEdge(new_piece_id, pending_point.index, existing_id, canvas_point.index)


def _translate_onto(base: Transform, local_point: Point, target: Point) -> Transform:
    mapped = base.apply(local_point)
    return base.with_translation(target.x - mapped.x, target.y - mapped.y)
