"""Tests for domain models to verify they work correctly."""

import math

import pytest

from tangramengine.core.geometry import angle_at
from tangramengine.domain import (
    TOTAL_AREA,
    Connection,
    ConnectionPoint,
    EdgeToEdge,
    Free,
    Locked,
    Piece,
    PieceType,
    Point,
    PointKind,
    Puzzle,
    PuzzleMetadata,
    Rotatable,
    RotationConstraint,
    Segment,
    Slidable,
    Transform,
    TranslationConstraint,
    VertexToEdge,
    VertexToVertex,
    connection_type_from_dict,
    orientation_transform,
    rotation_about,
)


def assert_point(actual: Point, x: float, y: float) -> None:
    assert actual.x == pytest.approx(x, abs=1e-9)
    assert actual.y == pytest.approx(y, abs=1e-9)


class TestPoint:
    """Tests for Point class."""

    def test_point_arithmetic(self) -> None:
        """Test vector addition, subtraction and scaling."""
        p = Point(3.0, 4.0)
        q = Point(1.0, 2.0)
        assert p + q == Point(4.0, 6.0)
        assert p - q == Point(2.0, 2.0)
        assert p.scaled(2.0) == Point(6.0, 8.0)

    def test_point_products(self) -> None:
        """Test dot and cross products."""
        assert Point(1.0, 0.0).dot(Point(0.0, 1.0)) == 0.0
        assert Point(1.0, 0.0).cross(Point(0.0, 1.0)) == 1.0
        assert Point(0.0, 1.0).cross(Point(1.0, 0.0)) == -1.0

    def test_point_length_and_normalized(self) -> None:
        """Test vector length and unit vector."""
        p = Point(3.0, 4.0)
        assert p.length == 5.0
        assert_point(p.normalized(), 0.6, 0.8)
        assert Point(0.0, 0.0).normalized() == Point(0.0, 0.0)

    def test_point_is_finite(self) -> None:
        """Test non-finite coordinates are detected."""
        assert Point(1.0, 2.0).is_finite()
        assert not Point(math.nan, 0.0).is_finite()
        assert not Point(0.0, math.inf).is_finite()

    def test_point_serialization(self) -> None:
        """Test point serialization and deserialization."""
        p1 = Point(100.0, 200.0)
        assert p1.to_dict() == {"x": 100.0, "y": 200.0}
        assert Point.from_dict(p1.to_dict()) == p1
        assert p1.to_tuple() == (100.0, 200.0)

    def test_point_immutable(self) -> None:
        """Test that point is immutable."""
        p = Point(100.0, 200.0)
        with pytest.raises(AttributeError):
            p.x = 300.0  # type: ignore


class TestSegment:
    """Tests for Segment class."""

    def test_segment_measures(self) -> None:
        """Test length, direction and midpoint."""
        segment = Segment(Point(0.0, 0.0), Point(10.0, 0.0))
        assert segment.length == 10.0
        assert segment.direction == Point(1.0, 0.0)
        assert segment.midpoint == Point(5.0, 0.0)
        assert segment.point_at(0.25) == Point(2.5, 0.0)

    def test_segment_reversed(self) -> None:
        """Test reversing swaps endpoints."""
        segment = Segment(Point(0.0, 0.0), Point(1.0, 2.0))
        assert segment.reversed() == Segment(Point(1.0, 2.0), Point(0.0, 0.0))


class TestTransform:
    """Tests for Transform class."""

    def test_identity(self) -> None:
        """Test identity leaves points unchanged."""
        assert Transform.identity().apply(Point(3.0, -2.0)) == Point(3.0, -2.0)

    def test_rotation_is_counter_clockwise(self) -> None:
        """Test a quarter turn maps +x onto +y."""
        assert_point(Transform.rotation(90.0).apply(Point(1.0, 0.0)), 0.0, 1.0)

    def test_then_applies_self_first(self) -> None:
        """Test composition order: self, then other."""
        combined = Transform.rotation(90.0).then(Transform.translation(10.0, 0.0))
        assert_point(combined.apply(Point(1.0, 0.0)), 10.0, 1.0)

        reverse = Transform.translation(10.0, 0.0).then(Transform.rotation(90.0))
        assert_point(reverse.apply(Point(1.0, 0.0)), 0.0, 11.0)

    def test_rotation_degrees(self) -> None:
        """Test rotation angle is recovered from the linear part."""
        assert Transform.rotation(45.0).rotation_degrees == pytest.approx(45.0)
        assert Transform.rotation(-90.0).rotation_degrees == pytest.approx(-90.0)
        assert Transform.rotation(270.0).rotation_degrees == pytest.approx(-90.0)

    def test_flip_detection(self) -> None:
        """Test reflection gives a negative determinant."""
        flipped = Transform.scale(-1.0, 1.0).then(Transform.rotation(30.0))
        assert flipped.is_flipped
        assert not Transform.rotation(30.0).is_flipped
        assert flipped.rotation_degrees == pytest.approx(30.0)

    def test_non_finite(self) -> None:
        """Test non-finite components are detected."""
        assert Transform.identity().is_finite()
        assert not Transform(tx=math.nan).is_finite()

    def test_rotation_about_keeps_pivot(self) -> None:
        """Test rotation about a pivot leaves the pivot fixed."""
        pivot = Point(5.0, 5.0)
        transform = rotation_about(pivot, 73.0)
        assert_point(transform.apply(pivot), 5.0, 5.0)
        assert_point(rotation_about(pivot, 90.0).apply(Point(6.0, 5.0)), 5.0, 6.0)

    def test_serialization(self) -> None:
        """Test transform round trip through a dictionary."""
        transform = Transform(0.0, 1.0, -1.0, 0.0, 12.5, -3.0)
        assert Transform.from_dict(transform.to_dict()) == transform


class TestPieceType:
    """Tests for the piece catalog."""

    def test_seven_pieces(self) -> None:
        """Test the catalog has exactly seven pieces."""
        assert len(PieceType) == 7

    def test_raw_values(self) -> None:
        """Test camelCase identifiers used in puzzle files."""
        assert PieceType("smallTriangle1") is PieceType.SMALL_TRIANGLE_1
        assert PieceType.PARALLELOGRAM.value == "parallelogram"

    def test_total_area(self) -> None:
        """Test the set covers an area of 8 unit squares."""
        assert TOTAL_AREA == pytest.approx(8.0)

    @pytest.mark.parametrize("piece_type", list(PieceType))
    def test_angles_sum(self, piece_type: PieceType) -> None:
        """Test interior angles sum to (n - 2) * 180."""
        expected = (piece_type.vertex_count - 2) * 180.0
        assert sum(piece_type.vertex_angles) == pytest.approx(expected)

    @pytest.mark.parametrize("piece_type", list(PieceType))
    def test_angles_match_vertices(self, piece_type: PieceType) -> None:
        """Test each listed angle is the one measured at that vertex."""
        vertices = piece_type.vertices
        n = len(vertices)
        measured = [
            angle_at(vertices[i], vertices[i - 1], vertices[(i + 1) % n]) for i in range(n)
        ]
        assert measured == pytest.approx(list(piece_type.vertex_angles))

    @pytest.mark.parametrize("piece_type", list(PieceType))
    def test_vertices_counter_clockwise(self, piece_type: PieceType) -> None:
        """Test vertices are listed counter-clockwise."""
        vertices = piece_type.vertices
        n = len(vertices)
        doubled = sum(vertices[i].cross(vertices[(i + 1) % n]) for i in range(n))
        assert doubled / 2.0 == pytest.approx(piece_type.area)

    def test_only_parallelogram_flips(self) -> None:
        """Test chirality: only the parallelogram can be flipped."""
        assert [t for t in PieceType if t.can_flip] == [PieceType.PARALLELOGRAM]

    def test_edge_lengths(self) -> None:
        """Test edge lengths of the small triangle."""
        small = PieceType.SMALL_TRIANGLE_1
        assert small.edge_length(0) == pytest.approx(1.0)
        assert small.edge_length(1) == pytest.approx(math.sqrt(2.0))


class TestPiece:
    """Tests for Piece class."""

    def test_world_vertices_are_scaled_then_transformed(self) -> None:
        """Test world geometry uses local x scale, then the transform."""
        piece = Piece("sq", PieceType.SQUARE, Transform.translation(100.0, 50.0))
        vertices = piece.world_vertices(50.0)
        assert vertices[0] == Point(100.0, 50.0)
        assert vertices[2] == Point(150.0, 100.0)

    def test_world_edge(self) -> None:
        """Test edge i joins vertex i to vertex i + 1."""
        piece = Piece("t", PieceType.SMALL_TRIANGLE_1)
        edge = piece.world_edge(2, 50.0)
        assert edge == Segment(Point(0.0, 50.0), Point(0.0, 0.0))

    def test_index_ranges(self) -> None:
        """Test vertex and edge index checks."""
        piece = Piece("t", PieceType.SMALL_TRIANGLE_1)
        assert piece.has_vertex(2)
        assert not piece.has_vertex(3)
        assert not piece.has_edge(-1)

    def test_serialization(self) -> None:
        """Test piece round trip through a dictionary."""
        piece = Piece("p1", PieceType.MEDIUM_TRIANGLE, Transform.rotation(45.0))
        data = piece.to_dict()
        assert data["type"] == "mediumTriangle"
        assert Piece.from_dict(data) == piece

    def test_orientation_transform_ignores_flip_for_symmetric_pieces(self) -> None:
        """Test only flippable pieces are reflected."""
        assert not orientation_transform(PieceType.SQUARE, 0.0, True).is_flipped
        assert orientation_transform(PieceType.PARALLELOGRAM, 0.0, True).is_flipped


class TestConnections:
    """Tests for connection models."""

    def test_connection_type_round_trip(self) -> None:
        """Test each connection kind survives serialization."""
        for connection_type in (
            VertexToVertex("a", 0, "b", 2),
            EdgeToEdge("a", 1, "b", 0),
            VertexToEdge("b", 1, "a", 2),
        ):
            assert connection_type_from_dict(connection_type.to_dict()) == connection_type

    def test_vertex_to_edge_keys(self) -> None:
        """Test vertex-to-edge uses its own field names."""
        data = VertexToEdge("v", 1, "e", 2).to_dict()
        assert data == {
            "kind": "vertexToEdge",
            "vertexPiece": "v",
            "vertex": 1,
            "edgePiece": "e",
            "edge": 2,
        }

    def test_connection_round_trip(self) -> None:
        """Test a connection with its constraint survives serialization."""
        connection = Connection(
            EdgeToEdge("a", 1, "b", 0),
            TranslationConstraint(Point(1.0, 0.0), 0.0, 20.0),
        )
        restored = Connection.from_dict(connection.to_dict())
        assert restored == connection
        assert restored.constraint.span == 20.0

    def test_other_piece_id(self) -> None:
        """Test the opposite side of a connection is found."""
        connection = Connection(VertexToVertex("a", 0, "b", 0), RotationConstraint(Point(0, 0)))
        assert connection.other_piece_id("a") == "b"
        assert connection.other_piece_id("b") == "a"
        assert connection.other_piece_id("c") is None
        assert connection.involves("a")

    def test_connection_point_id(self) -> None:
        """Test connection point identifiers."""
        assert ConnectionPoint("p", PointKind.VERTEX, 2, Point(0, 0)).id == "p_v2"
        assert ConnectionPoint("p", PointKind.EDGE, 1, Point(0, 0)).id == "p_e1"


class TestManipulationModes:
    """Tests for manipulation mode values."""

    def test_descriptions(self) -> None:
        """Test human-readable descriptions."""
        assert Locked().description == "Locked: Position is fixed by connections"
        assert Locked("Piece has 2 connections").description == "Locked: Piece has 2 connections"
        assert Rotatable(Point(0, 0), (0.0,)).description == (
            "Rotate the piece around the connection point"
        )
        track = Segment(Point(0, 0), Point(1, 0))
        assert Slidable(track, (0.0, 1.0), (0.0,)).description == "Slide the piece along the edge"
        assert Free().description == "Drag the piece freely"

    def test_to_dict(self) -> None:
        """Test modes serialize with their name."""
        assert Locked("Base piece anchors the puzzle").to_dict()["mode"] == "locked"
        assert Rotatable(Point(1, 2), (0.0, 45.0)).to_dict()["snapAngles"] == [0.0, 45.0]


class TestPuzzle:
    """Tests for Puzzle aggregate."""

    @pytest.fixture
    def puzzle(self) -> Puzzle:
        """Create a two-piece puzzle with one connection."""
        puzzle = Puzzle(metadata=PuzzleMetadata(name="Test"))
        puzzle.add_piece(Piece("a", PieceType.SQUARE))
        puzzle.add_piece(Piece("b", PieceType.SMALL_TRIANGLE_1))
        puzzle.add_connection(
            Connection(VertexToVertex("a", 2, "b", 0), RotationConstraint(Point(0, 0)), id="c1")
        )
        return puzzle

    def test_first_piece(self, puzzle: Puzzle) -> None:
        """Test the first placed piece is the base."""
        assert puzzle.is_first_piece("a")
        assert not puzzle.is_first_piece("b")

    def test_has_piece_type(self, puzzle: Puzzle) -> None:
        """Test piece type lookup."""
        assert puzzle.has_piece_type(PieceType.SQUARE)
        assert not puzzle.has_piece_type(PieceType.PARALLELOGRAM)

    def test_remove_piece_cascades(self, puzzle: Puzzle) -> None:
        """Test removing a piece removes its connections."""
        removed = puzzle.remove_piece("b")
        assert [c.id for c in removed] == ["c1"]
        assert puzzle.connections == []
        assert puzzle.piece_ids == ["a"]

    def test_update_piece(self, puzzle: Puzzle) -> None:
        """Test replacing a piece by id."""
        moved = puzzle.pieces[1].with_transform(Transform.translation(5.0, 5.0))
        assert puzzle.update_piece(moved)
        assert puzzle.piece("b") == moved
        assert not puzzle.update_piece(Piece("zz", PieceType.SQUARE))

    def test_snapshot_is_independent(self, puzzle: Puzzle) -> None:
        """Test snapshots do not share lists with the original."""
        snapshot = puzzle.snapshot()
        puzzle.remove_piece("b")
        assert snapshot.piece_ids == ["a", "b"]
        assert len(snapshot.connections) == 1

    def test_checksum_ignores_order(self, puzzle: Puzzle) -> None:
        """Test the checksum depends on pieces, not their order."""
        reordered = Puzzle(pieces=list(reversed(puzzle.pieces)))
        assert reordered.solution_checksum() == puzzle.solution_checksum()
        assert len(puzzle.solution_checksum()) == 16

    def test_serialization(self, puzzle: Puzzle) -> None:
        """Test puzzle round trip through a dictionary."""
        data = puzzle.to_dict()
        assert data["name"] == "Test"
        assert data["solutionChecksum"] == puzzle.solution_checksum()

        restored = Puzzle.from_dict(data)
        assert restored.pieces == puzzle.pieces
        assert restored.connections == puzzle.connections
        assert restored.metadata.id == puzzle.metadata.id
