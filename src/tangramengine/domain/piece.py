"""Placed piece model.

A Piece is one placed instance of a catalog shape. World coordinates are
obtained by scaling the local vertices by the visual scale and mapping the
result through the piece transform.
"""

import uuid
from dataclasses import dataclass, field, replace
from typing import Any

from tangramengine.domain.catalog import PieceType
from tangramengine.domain.geometry import Point, Segment, Transform

DEFAULT_VISUAL_SCALE = 50.0


def new_piece_id() -> str:
    """Generate a unique piece identifier."""
    return uuid.uuid4().hex


@dataclass(frozen=True, slots=True)
class Piece:
    """A placed tangram piece.

    Attributes:
        id: Unique identifier within the puzzle
        piece_type: Catalog shape of the piece
        transform: World transform applied after visual scaling
    """

    id: str
    piece_type: PieceType
    transform: Transform = field(default_factory=Transform.identity)

    @property
    def vertex_count(self) -> int:
        return self.piece_type.vertex_count

    def scaled_vertices(self, visual_scale: float = DEFAULT_VISUAL_SCALE) -> list[Point]:
        """Local vertices multiplied by the visual scale, before the transform."""
        return [vertex.scaled(visual_scale) for vertex in self.piece_type.vertices]

    def world_vertices(self, visual_scale: float = DEFAULT_VISUAL_SCALE) -> list[Point]:
        """Vertices in world space.

        Args:
            visual_scale: Factor applied to local coordinates

        Returns:
            Transformed vertices in catalog order
        """
        return [self.transform.apply(vertex) for vertex in self.scaled_vertices(visual_scale)]

    def world_vertex(self, index: int, visual_scale: float = DEFAULT_VISUAL_SCALE) -> Point:
        local = self.piece_type.vertices[index].scaled(visual_scale)
        return self.transform.apply(local)

    def world_edge(self, index: int, visual_scale: float = DEFAULT_VISUAL_SCALE) -> Segment:
        """Edge ``index`` in world space, from vertex i to vertex i+1."""
        start, end = self.piece_type.edge_indices()[index]
        return Segment(
            self.world_vertex(start, visual_scale),
            self.world_vertex(end, visual_scale),
        )

    def world_edges(self, visual_scale: float = DEFAULT_VISUAL_SCALE) -> list[Segment]:
        vertices = self.world_vertices(visual_scale)
        n = len(vertices)
        return [Segment(vertices[i], vertices[(i + 1) % n]) for i in range(n)]

    def world_centroid(self, visual_scale: float = DEFAULT_VISUAL_SCALE) -> Point:
        """Average of the world vertices."""
        vertices = self.world_vertices(visual_scale)
        n = len(vertices)
        return Point(sum(v.x for v in vertices) / n, sum(v.y for v in vertices) / n)

    def has_vertex(self, index: int) -> bool:
        return 0 <= index < self.vertex_count

    def has_edge(self, index: int) -> bool:
        return 0 <= index < self.vertex_count

    def with_transform(self, transform: Transform) -> "Piece":
        """Copy of this piece with a new transform."""
        return replace(self, transform=transform)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary.

        Returns:
            Dictionary with id, type and transform fields
        """
        return {
            "id": self.id,
            "type": self.piece_type.value,
            "transform": self.transform.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Piece":
        """Deserialize from dictionary.

        Args:
            data: Dictionary with id, type and transform fields

        Returns:
            Piece instance
        """
        return cls(
            id=str(data["id"]),
            piece_type=PieceType(data["type"]),
            transform=Transform.from_dict(data["transform"]),
        )


def orientation_transform(
    piece_type: PieceType,
    rotation_degrees: float,
    flipped: bool = False,
) -> Transform:
    """Linear transform orienting a piece: optional reflection, then rotation.

    Reflection is only honoured for piece types that can flip.

    Args:
        piece_type: Catalog shape
        rotation_degrees: Counter-clockwise rotation
        flipped: Mirror horizontally before rotating

    Returns:
        Transform without translation
    """
    rotation = Transform.rotation(rotation_degrees)
    if flipped and piece_type.can_flip:
        return Transform.scale(-1.0, 1.0).then(rotation)
    return rotation
