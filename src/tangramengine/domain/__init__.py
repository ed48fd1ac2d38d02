"""Domain models for tangramengine.

This module contains the value types describing pieces, their geometry,
connections and puzzles. All models are designed to be:

- Immutable where possible (using frozen dataclasses)
- Serializable to plain dictionaries for persistence
- Independent of any rendering or input layer

Key classes:
- Point, Segment, Transform: 2D geometry values
- PieceType: The seven catalog shapes
- Piece: A placed piece instance
- VertexToVertex, EdgeToEdge, VertexToEdge: Connection kinds
- RotationConstraint, TranslationConstraint: Motion allowed by a connection
- Connection, ConnectionPoint: Declared relations and selectable points
- Locked, Rotatable, Slidable, Free: Manipulation modes
- Puzzle, PuzzleMetadata: The assembly aggregate
"""

from tangramengine.domain.catalog import TOTAL_AREA, PieceType
from tangramengine.domain.connection import (
    Connection,
    ConnectionKind,
    ConnectionPoint,
    ConnectionType,
    Constraint,
    EdgeToEdge,
    PointKind,
    RotationConstraint,
    TranslationConstraint,
    VertexToEdge,
    VertexToVertex,
    connection_type_from_dict,
    constraint_from_dict,
)
from tangramengine.domain.geometry import Point, Segment, Transform, rotation_about
from tangramengine.domain.manipulation import Free, Locked, ManipulationMode, Rotatable, Slidable
from tangramengine.domain.piece import (
    DEFAULT_VISUAL_SCALE,
    Piece,
    new_piece_id,
    orientation_transform,
)
from tangramengine.domain.puzzle import Category, Difficulty, Puzzle, PuzzleMetadata

__all__: list[str] = [
    # Geometry values
    "Point",
    "Segment",
    "Transform",
    "rotation_about",
    # Catalog
    "PieceType",
    "TOTAL_AREA",
    "DEFAULT_VISUAL_SCALE",
    "Piece",
    "new_piece_id",
    "orientation_transform",
    # Connections
    "ConnectionKind",
    "ConnectionType",
    "VertexToVertex",
    "EdgeToEdge",
    "VertexToEdge",
    "Constraint",
    "RotationConstraint",
    "TranslationConstraint",
    "Connection",
    "ConnectionPoint",
    "PointKind",
    "connection_type_from_dict",
    "constraint_from_dict",
    # Manipulation modes
    "ManipulationMode",
    "Locked",
    "Rotatable",
    "Slidable",
    "Free",
    # Puzzle
    "Category",
    "Difficulty",
    "Puzzle",
    "PuzzleMetadata",
]
