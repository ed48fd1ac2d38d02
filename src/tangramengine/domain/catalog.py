"""The fixed set of seven tangram pieces.

Local coordinates use the unit square as reference: the small triangle legs
have length 1, so the seven pieces together cover an area of 8. Vertices are
listed counter-clockwise and edge ``i`` joins vertex ``i`` to vertex
``(i + 1) % n``.
"""

import math
from enum import Enum

from tangramengine.domain.geometry import Point

_SQRT2 = math.sqrt(2.0)
_HALF_SQRT2 = _SQRT2 / 2.0


class PieceType(str, Enum):
    """Tangram piece type.

    Values match the identifiers stored in puzzle files.
    """

    SMALL_TRIANGLE_1 = "smallTriangle1"
    SMALL_TRIANGLE_2 = "smallTriangle2"
    SQUARE = "square"
    MEDIUM_TRIANGLE = "mediumTriangle"
    LARGE_TRIANGLE_1 = "largeTriangle1"
    LARGE_TRIANGLE_2 = "largeTriangle2"
    PARALLELOGRAM = "parallelogram"

    @property
    def vertices(self) -> tuple[Point, ...]:
        """Local-space vertices in counter-clockwise order."""
        return _VERTICES[self]

    @property
    def vertex_count(self) -> int:
        return len(_VERTICES[self])

    @property
    def area(self) -> float:
        """Area in local units."""
        return _AREAS[self]

    @property
    def vertex_angles(self) -> tuple[float, ...]:
        """Interior angle at each vertex in degrees."""
        return _ANGLES[self]

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def can_flip(self) -> bool:
        """Only the parallelogram is chiral, so only it may be reflected."""
        return self is PieceType.PARALLELOGRAM

    def edge_indices(self) -> list[tuple[int, int]]:
        """Vertex index pairs forming each edge."""
        n = self.vertex_count
        return [(i, (i + 1) % n) for i in range(n)]

    def edge_length(self, edge_index: int) -> float:
        """Local-space length of an edge."""
        start, end = self.edge_indices()[edge_index]
        return self.vertices[start].distance_to(self.vertices[end])


_SMALL = (Point(0.0, 0.0), Point(1.0, 0.0), Point(0.0, 1.0))
_LARGE = (Point(0.0, 0.0), Point(2.0, 0.0), Point(0.0, 2.0))

_VERTICES: dict[PieceType, tuple[Point, ...]] = {
    PieceType.SMALL_TRIANGLE_1: _SMALL,
    PieceType.SMALL_TRIANGLE_2: _SMALL,
    PieceType.SQUARE: (Point(0.0, 0.0), Point(1.0, 0.0), Point(1.0, 1.0), Point(0.0, 1.0)),
    PieceType.MEDIUM_TRIANGLE: (Point(0.0, 0.0), Point(_SQRT2, 0.0), Point(0.0, _SQRT2)),
    PieceType.LARGE_TRIANGLE_1: _LARGE,
    PieceType.LARGE_TRIANGLE_2: _LARGE,
    PieceType.PARALLELOGRAM: (
        Point(0.0, 0.0),
        Point(_SQRT2, 0.0),
        Point(_HALF_SQRT2, _HALF_SQRT2),
        Point(-_HALF_SQRT2, _HALF_SQRT2),
    ),
}

_AREAS: dict[PieceType, float] = {
    PieceType.SMALL_TRIANGLE_1: 0.5,
    PieceType.SMALL_TRIANGLE_2: 0.5,
    PieceType.SQUARE: 1.0,
    PieceType.MEDIUM_TRIANGLE: 1.0,
    PieceType.LARGE_TRIANGLE_1: 2.0,
    PieceType.LARGE_TRIANGLE_2: 2.0,
    PieceType.PARALLELOGRAM: 1.0,
}

_TRIANGLE_ANGLES = (90.0, 45.0, 45.0)

_ANGLES: dict[PieceType, tuple[float, ...]] = {
    PieceType.SMALL_TRIANGLE_1: _TRIANGLE_ANGLES,
    PieceType.SMALL_TRIANGLE_2: _TRIANGLE_ANGLES,
    PieceType.SQUARE: (90.0, 90.0, 90.0, 90.0),
    PieceType.MEDIUM_TRIANGLE: _TRIANGLE_ANGLES,
    PieceType.LARGE_TRIANGLE_1: _TRIANGLE_ANGLES,
    PieceType.LARGE_TRIANGLE_2: _TRIANGLE_ANGLES,
    PieceType.PARALLELOGRAM: (135.0, 45.0, 135.0, 45.0),
}

_DISPLAY_NAMES: dict[PieceType, str] = {
    PieceType.SMALL_TRIANGLE_1: "Small Triangle",
    PieceType.SMALL_TRIANGLE_2: "Small Triangle",
    PieceType.SQUARE: "Square",
    PieceType.MEDIUM_TRIANGLE: "Medium Triangle",
    PieceType.LARGE_TRIANGLE_1: "Large Triangle",
    PieceType.LARGE_TRIANGLE_2: "Large Triangle",
    PieceType.PARALLELOGRAM: "Parallelogram",
}

TOTAL_AREA = sum(_AREAS.values())
