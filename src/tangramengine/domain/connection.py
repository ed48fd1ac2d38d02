"""Connection and constraint models.

This module defines:
- VertexToVertex, EdgeToEdge, VertexToEdge: the closed set of connection kinds
- RotationConstraint, TranslationConstraint: motion allowed by a connection
- Connection: a declared relation plus its derived constraint
- ConnectionPoint: a selectable vertex or edge midpoint on a placed piece
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeAlias

from tangramengine.domain.geometry import Point


class ConnectionKind(str, Enum):
    """Discriminator stored alongside serialized connection types."""

    VERTEX_TO_VERTEX = "vertexToVertex"
    EDGE_TO_EDGE = "edgeToEdge"
    VERTEX_TO_EDGE = "vertexToEdge"


@dataclass(frozen=True, slots=True)
class VertexToVertex:
    """Vertex ``vertex_a`` of piece A coincides with vertex ``vertex_b`` of piece B."""

    piece_a_id: str
    vertex_a: int
    piece_b_id: str
    vertex_b: int

    kind = ConnectionKind.VERTEX_TO_VERTEX

    @property
    def piece_ids(self) -> tuple[str, str]:
        return (self.piece_a_id, self.piece_b_id)

    def involves(self, piece_id: str) -> bool:
        return piece_id in self.piece_ids

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "pieceA": self.piece_a_id,
            "vertexA": self.vertex_a,
            "pieceB": self.piece_b_id,
            "vertexB": self.vertex_b,
        }


@dataclass(frozen=True, slots=True)
class EdgeToEdge:
    """Edge ``edge_a`` of piece A lies along edge ``edge_b`` of piece B."""

    piece_a_id: str
    edge_a: int
    piece_b_id: str
    edge_b: int

    kind = ConnectionKind.EDGE_TO_EDGE

    @property
    def piece_ids(self) -> tuple[str, str]:
        return (self.piece_a_id, self.piece_b_id)

    def involves(self, piece_id: str) -> bool:
        return piece_id in self.piece_ids

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "pieceA": self.piece_a_id,
            "edgeA": self.edge_a,
            "pieceB": self.piece_b_id,
            "edgeB": self.edge_b,
        }


@dataclass(frozen=True, slots=True)
class VertexToEdge:
    """A vertex of one piece rests on an edge of another piece."""

    vertex_piece_id: str
    vertex: int
    edge_piece_id: str
    edge: int

    kind = ConnectionKind.VERTEX_TO_EDGE

    @property
    def piece_ids(self) -> tuple[str, str]:
        return (self.vertex_piece_id, self.edge_piece_id)

    def involves(self, piece_id: str) -> bool:
        return piece_id in self.piece_ids

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "vertexPiece": self.vertex_piece_id,
            "vertex": self.vertex,
            "edgePiece": self.edge_piece_id,
            "edge": self.edge,
        }


ConnectionType: TypeAlias = VertexToVertex | EdgeToEdge | VertexToEdge


def connection_type_from_dict(data: dict[str, Any]) -> ConnectionType:
    """Deserialize any connection type from its dictionary form.

    Args:
        data: Dictionary produced by a connection type's ``to_dict``

    Returns:
        The matching connection type instance

    Raises:
        ValueError: If the kind is unknown
        KeyError: If a required field is missing
    """
    kind = ConnectionKind(data["kind"])
    if kind is ConnectionKind.VERTEX_TO_VERTEX:
        return VertexToVertex(
            str(data["pieceA"]), int(data["vertexA"]), str(data["pieceB"]), int(data["vertexB"])
        )
    if kind is ConnectionKind.EDGE_TO_EDGE:
        return EdgeToEdge(
            str(data["pieceA"]), int(data["edgeA"]), str(data["pieceB"]), int(data["edgeB"])
        )
    return VertexToEdge(
        str(data["vertexPiece"]), int(data["vertex"]), str(data["edgePiece"]), int(data["edge"])
    )


@dataclass(frozen=True, slots=True)
class RotationConstraint:
    """Rotation about a fixed world point.

    Attributes:
        center: Pivot in world space, taken from the stationary piece
        min_degrees: Lower end of the allowed angle range
        max_degrees: Upper end of the allowed angle range
    """

    center: Point
    min_degrees: float = 0.0
    max_degrees: float = 360.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": "rotation",
            "center": self.center.to_dict(),
            "range": [self.min_degrees, self.max_degrees],
        }


@dataclass(frozen=True, slots=True)
class TranslationConstraint:
    """Translation along a fixed world axis.

    Attributes:
        axis: Unit direction of allowed motion
        min_distance: Lower end of the allowed travel
        max_distance: Upper end of the allowed travel
    """

    axis: Point
    min_distance: float = 0.0
    max_distance: float = 0.0

    @property
    def span(self) -> float:
        return self.max_distance - self.min_distance

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": "translation",
            "axis": self.axis.to_dict(),
            "range": [self.min_distance, self.max_distance],
        }


Constraint: TypeAlias = RotationConstraint | TranslationConstraint


def constraint_from_dict(data: dict[str, Any]) -> Constraint:
    """Deserialize a constraint from its dictionary form."""
    low, high = data["range"]
    if data["kind"] == "rotation":
        return RotationConstraint(Point.from_dict(data["center"]), float(low), float(high))
    if data["kind"] == "translation":
        return TranslationConstraint(Point.from_dict(data["axis"]), float(low), float(high))
    raise ValueError(f"Unknown constraint kind: {data['kind']!r}")


@dataclass(frozen=True, slots=True)
class Connection:
    """A declared relation between two placed pieces.

    Attributes:
        connection_type: Which vertices/edges are related
        constraint: Motion the relation still allows
        id: Unique identifier
    """

    connection_type: ConnectionType
    constraint: Constraint
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def piece_ids(self) -> tuple[str, str]:
        return self.connection_type.piece_ids

    def involves(self, piece_id: str) -> bool:
        return self.connection_type.involves(piece_id)

    def other_piece_id(self, piece_id: str) -> str | None:
        """Id of the piece on the other side of the connection."""
        first, second = self.piece_ids
        if piece_id == first:
            return second
        if piece_id == second:
            return first
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.connection_type.to_dict(),
            "constraint": self.constraint.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Connection":
        return cls(
            connection_type=connection_type_from_dict(data["type"]),
            constraint=constraint_from_dict(data["constraint"]),
            id=str(data["id"]),
        )


class PointKind(str, Enum):
    """Kind of selectable connection point."""

    VERTEX = "vertex"
    EDGE = "edge"


@dataclass(frozen=True, slots=True)
class ConnectionPoint:
    """A selectable point on a piece: a vertex or an edge midpoint.

    Attributes:
        piece_id: Owning piece
        kind: Vertex or edge
        index: Vertex or edge index
        position: World (or pending-local) position used for hit testing
    """

    piece_id: str
    kind: PointKind
    index: int
    position: Point

    @property
    def id(self) -> str:
        suffix = "v" if self.kind is PointKind.VERTEX else "e"
        return f"{self.piece_id}_{suffix}{self.index}"
