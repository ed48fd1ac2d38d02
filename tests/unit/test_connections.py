"""Unit tests for connection constraints and alignment."""

import pytest

from tangramengine.config import GeometryConfig
from tangramengine.core.connections import ConnectionService, edge_slide_geometry, resolve_roles
from tangramengine.domain import (
    ConnectionKind,
    ConnectionPoint,
    EdgeToEdge,
    Piece,
    PieceType,
    Point,
    PointKind,
    RotationConstraint,
    Transform,
    TranslationConstraint,
    VertexToEdge,
    VertexToVertex,
)
from tangramengine.exceptions import ConnectionNotSatisfiedError, InvalidConnectionPointsError


def vertex(piece_id: str, index: int) -> ConnectionPoint:
    return ConnectionPoint(piece_id, PointKind.VERTEX, index, Point(0.0, 0.0))


def edge(piece_id: str, index: int) -> ConnectionPoint:
    return ConnectionPoint(piece_id, PointKind.EDGE, index, Point(0.0, 0.0))


class TestConnectionService:
    """Tests for ConnectionService class."""

    @pytest.fixture
    def service(self) -> ConnectionService:
        """Create a connection service with default tolerances."""
        return ConnectionService(GeometryConfig())

    @pytest.fixture
    def square(self) -> Piece:
        """Square occupying (375, 275)-(425, 325)."""
        return Piece("sq", PieceType.SQUARE, Transform.translation(375.0, 275.0))

    @pytest.fixture
    def triangle(self) -> Piece:
        """Small triangle whose right-angle vertex sits on the square's vertex 2."""
        return Piece("t", PieceType.SMALL_TRIANGLE_1, Transform.translation(425.0, 325.0))

    @pytest.fixture
    def large(self) -> Piece:
        """Large triangle whose vertical leg runs along the square's right edge."""
        return Piece("lt", PieceType.LARGE_TRIANGLE_1, Transform.translation(425.0, 275.0))

    def test_vertex_to_vertex_gives_rotation(
        self, service: ConnectionService, square: Piece, triangle: Piece
    ) -> None:
        """Test coincident vertices give a full rotation about the stationary vertex."""
        constraint = service.calculate_constraint(
            VertexToVertex("sq", 2, "t", 0), [square, triangle]
        )
        assert isinstance(constraint, RotationConstraint)
        assert constraint.center == Point(425.0, 325.0)
        assert (constraint.min_degrees, constraint.max_degrees) == (0.0, 360.0)

    def test_vertex_to_vertex_requires_coincidence(
        self, service: ConnectionService, square: Piece, triangle: Piece
    ) -> None:
        """Test vertices further apart than the tolerance cannot connect."""
        assert service.calculate_constraint(VertexToVertex("sq", 0, "t", 0), [square, triangle]) is None

    def test_missing_piece_or_bad_index(
        self, service: ConnectionService, square: Piece, triangle: Piece
    ) -> None:
        """Test unresolvable connections give no constraint."""
        pieces = [square, triangle]
        assert service.calculate_constraint(VertexToVertex("sq", 2, "zz", 0), pieces) is None
        assert service.calculate_constraint(VertexToVertex("sq", 2, "t", 3), pieces) is None
        assert service.calculate_constraint(EdgeToEdge("sq", 4, "t", 0), pieces) is None

    def test_connect_or_raise(
        self, service: ConnectionService, square: Piece, triangle: Piece
    ) -> None:
        """Test the strict variant raises for points that do not touch."""
        pieces = [square, triangle]
        assert service.connect_or_raise(VertexToVertex("sq", 2, "t", 0), pieces).involves("t")
        with pytest.raises(ConnectionNotSatisfiedError, match="vertexToVertex between sq and t"):
            service.connect_or_raise(VertexToVertex("sq", 0, "t", 0), pieces)

    def test_edge_to_edge_tracks_longer_edge(
        self, service: ConnectionService, square: Piece, large: Piece
    ) -> None:
        """Test the slide range is the length difference along the longer edge."""
        constraint = service.calculate_constraint(EdgeToEdge("sq", 1, "lt", 2), [square, large])
        assert isinstance(constraint, TranslationConstraint)
        assert constraint.axis.x == pytest.approx(0.0)
        assert constraint.axis.y == pytest.approx(-1.0)
        assert constraint.min_distance == 0.0
        assert constraint.max_distance == pytest.approx(50.0)

    def test_equal_edges_have_empty_range(
        self, service: ConnectionService, square: Piece
    ) -> None:
        """Test equal edges cannot slide."""
        neighbour = Piece("sq2", PieceType.SQUARE, Transform.translation(425.0, 275.0))
        constraint = service.calculate_constraint(EdgeToEdge("sq", 1, "sq2", 3), [square, neighbour])
        assert isinstance(constraint, TranslationConstraint)
        assert constraint.span == pytest.approx(0.0)

    def test_vertex_to_edge_spans_edge(
        self, service: ConnectionService, square: Piece, triangle: Piece
    ) -> None:
        """Test vertex-to-edge translation runs the full edge length."""
        constraint = service.calculate_constraint(VertexToEdge("t", 0, "sq", 1), [square, triangle])
        assert isinstance(constraint, TranslationConstraint)
        assert constraint.axis.y == pytest.approx(1.0)
        assert constraint.max_distance == pytest.approx(50.0)

    def test_create_connection_round_trip(
        self, service: ConnectionService, square: Piece, triangle: Piece
    ) -> None:
        """Test a freshly created connection is satisfied by the pieces it came from."""
        pieces = [square, triangle]
        for connection_type in (VertexToVertex("sq", 2, "t", 0), VertexToEdge("t", 0, "sq", 1)):
            connection = service.create_connection(connection_type, pieces)
            assert connection is not None
            assert service.is_connection_satisfied(connection, pieces)

    def test_edge_connection_round_trip(
        self, service: ConnectionService, square: Piece, large: Piece
    ) -> None:
        """Test partially coincident edges satisfy an edge-to-edge connection."""
        connection = service.create_connection(EdgeToEdge("sq", 1, "lt", 2), [square, large])
        assert connection is not None
        assert service.is_connection_satisfied(connection, [square, large])

    def test_broken_connection(
        self, service: ConnectionService, square: Piece, triangle: Piece
    ) -> None:
        """Test moving a piece away breaks its connection."""
        connection = service.create_connection(VertexToVertex("sq", 2, "t", 0), [square, triangle])
        assert connection is not None
        moved = triangle.with_transform(Transform.translation(500.0, 325.0))
        assert not service.is_connection_satisfied(connection, [square, moved])
        assert not service.is_connection_satisfied(connection, [square])

    def test_connection_points(self, service: ConnectionService, square: Piece) -> None:
        """Test every vertex then every edge midpoint is selectable."""
        points = service.connection_points(square)
        assert [p.id for p in points] == [
            "sq_v0", "sq_v1", "sq_v2", "sq_v3", "sq_e0", "sq_e1", "sq_e2", "sq_e3",
        ]
        assert points[2].position == Point(425.0, 325.0)
        assert points[5].position == Point(425.0, 300.0)

    def test_pending_connection_points(self, service: ConnectionService) -> None:
        """Test points of an unplaced piece are relative to its origin."""
        points = service.pending_connection_points("pending", PieceType.SMALL_TRIANGLE_2, 0.0)
        assert len(points) == 6
        assert points[1].position == Point(50.0, 0.0)
        assert points[4].position == Point(25.0, 25.0)

    def test_align_single_vertex_pair(self, service: ConnectionService, square: Piece) -> None:
        """Test a single vertex pair translates the new piece onto the canvas point."""
        transform = service.compute_alignment(
            PieceType.SMALL_TRIANGLE_1, 0.0, False, [vertex("sq", 2)], [vertex("new", 0)], [square]
        )
        assert transform.tx == pytest.approx(425.0)
        assert transform.ty == pytest.approx(325.0)
        assert transform.rotation_degrees == pytest.approx(0.0)

    def test_align_two_vertex_pairs(self, service: ConnectionService, square: Piece) -> None:
        """Test two pairs determine the rotation."""
        transform = service.compute_alignment(
            PieceType.SMALL_TRIANGLE_1,
            90.0,
            False,
            [vertex("sq", 1), vertex("sq", 2)],
            [vertex("new", 0), vertex("new", 2)],
            [square],
        )
        placed = Piece("new", PieceType.SMALL_TRIANGLE_1, transform).world_vertices()
        assert placed[0].distance_to(Point(425.0, 275.0)) < 1e-6
        assert placed[2].distance_to(Point(425.0, 325.0)) < 1e-6
        assert transform.rotation_degrees == pytest.approx(0.0, abs=1e-6)

    def test_align_mismatched_pairs_raises(
        self, service: ConnectionService, square: Piece
    ) -> None:
        """Test two vertex pairs at different distances cannot both be matched."""
        with pytest.raises(InvalidConnectionPointsError):
            service.compute_alignment(
                PieceType.SMALL_TRIANGLE_1,
                0.0,
                False,
                [vertex("sq", 0), vertex("sq", 2)],
                [vertex("new", 0), vertex("new", 1)],
                [square],
            )

    def test_align_rejects_bad_selections(
        self, service: ConnectionService, square: Piece
    ) -> None:
        """Test empty, unbalanced and unknown selections."""
        with pytest.raises(InvalidConnectionPointsError):
            service.compute_alignment(PieceType.SQUARE, 0.0, False, [], [], [square])
        with pytest.raises(InvalidConnectionPointsError):
            service.compute_alignment(
                PieceType.SQUARE, 0.0, False, [vertex("sq", 0)], [], [square]
            )
        with pytest.raises(InvalidConnectionPointsError, match="not found"):
            service.compute_alignment(
                PieceType.SQUARE, 0.0, False, [vertex("zz", 0)], [vertex("new", 0)], [square]
            )

    def test_align_edge_pair_places_piece_outside(
        self, service: ConnectionService, square: Piece
    ) -> None:
        """Test a single edge pair lays the new edge along the canvas edge, facing away."""
        transform = service.compute_alignment(
            PieceType.SMALL_TRIANGLE_1, 0.0, False, [edge("sq", 1)], [edge("new", 0)], [square]
        )
        placed = Piece("new", PieceType.SMALL_TRIANGLE_1, transform)
        midpoint = placed.world_edge(0).midpoint
        assert midpoint.distance_to(Point(425.0, 300.0)) < 1e-6
        assert all(v.x >= 425.0 - 1e-6 for v in placed.world_vertices())

    def test_connection_type_from_points(self, service: ConnectionService) -> None:
        """Test the existing piece always takes the stationary position."""
        assert service.connection_type_from_points(
            vertex("sq", 2), vertex("p", 0), "new"
        ) == VertexToVertex("sq", 2, "new", 0)
        assert service.connection_type_from_points(
            edge("sq", 1), edge("p", 0), "new"
        ) == EdgeToEdge("sq", 1, "new", 0)
        assert service.connection_type_from_points(
            vertex("sq", 2), edge("p", 1), "new"
        ) == VertexToEdge("sq", 2, "new", 1)
        assert service.connection_type_from_points(
            edge("sq", 1), vertex("p", 0), "new"
        ) == VertexToEdge("new", 0, "sq", 1)


class TestRoles:
    """Tests for resolving stationary and manipulated sides."""

    @pytest.fixture
    def pieces(self) -> list[Piece]:
        """Square and a large triangle sharing the square's right edge."""
        return [
            Piece("sq", PieceType.SQUARE, Transform.translation(375.0, 275.0)),
            Piece("lt", PieceType.LARGE_TRIANGLE_1, Transform.translation(425.0, 275.0)),
        ]

    def test_default_manipulated_side(self, pieces: list[Piece]) -> None:
        """Test piece B is manipulated by default."""
        roles = resolve_roles(EdgeToEdge("sq", 1, "lt", 2), pieces)
        assert roles is not None
        assert roles.kind is ConnectionKind.EDGE_TO_EDGE
        assert roles.stationary.id == "sq"
        assert roles.manipulated.id == "lt"

    def test_explicit_manipulated_side(self, pieces: list[Piece]) -> None:
        """Test roles swap when piece A is the one being moved."""
        roles = resolve_roles(EdgeToEdge("sq", 1, "lt", 2), pieces, manipulated_id="sq")
        assert roles is not None
        assert roles.manipulated.id == "sq"
        assert roles.manipulated_index == 1

    def test_vertex_piece_moves_by_default(self, pieces: list[Piece]) -> None:
        """Test the vertex piece of a vertex-to-edge connection is manipulated."""
        roles = resolve_roles(VertexToEdge("lt", 0, "sq", 1), pieces)
        assert roles is not None
        assert roles.manipulated.id == "lt"
        assert roles.stationary_is_edge

    def test_unrelated_piece(self, pieces: list[Piece]) -> None:
        """Test a manipulated id outside the connection resolves to nothing."""
        assert resolve_roles(EdgeToEdge("sq", 1, "lt", 2), pieces, manipulated_id="x") is None

    def test_slide_geometry(self, pieces: list[Piece]) -> None:
        """Test a longer sliding edge starts before the stationary edge."""
        roles = resolve_roles(EdgeToEdge("sq", 1, "lt", 2), pieces)
        assert roles is not None
        slide = edge_slide_geometry(roles, 50.0)
        assert slide.sliding_length == pytest.approx(100.0)
        assert slide.low == pytest.approx(-50.0)
        assert slide.high == pytest.approx(0.0)
        assert slide.span == pytest.approx(50.0)
