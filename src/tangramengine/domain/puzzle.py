"""Puzzle aggregate: ordered pieces, their connections and descriptive metadata."""

import hashlib
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Any

from tangramengine.domain.catalog import PieceType
from tangramengine.domain.connection import Connection
from tangramengine.domain.piece import Piece


class Difficulty(IntEnum):
    """Puzzle difficulty from 1 (beginner) to 5 (expert)."""

    BEGINNER = 1
    EASY = 2
    MEDIUM = 3
    HARD = 4
    EXPERT = 5

    @property
    def display_name(self) -> str:
        return self.name.capitalize()


class Category(str, Enum):
    """Built-in puzzle categories."""

    ANIMALS = "Animals"
    PEOPLE = "People"
    OBJECTS = "Objects"
    LETTERS = "Letters"
    NUMBERS = "Numbers"
    GEOMETRIC = "Geometric"
    ABSTRACT = "Abstract"
    CUSTOM = "Custom"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PuzzleMetadata:
    """Descriptive information about a puzzle.

    Attributes:
        name: Human-readable name
        id: Unique identifier
        category: Category label (free-form, defaults to Custom)
        difficulty: Difficulty rating
        tags: Free-form search tags
        created_by: Optional author identifier
        created_at: Creation timestamp (UTC)
        modified_at: Last modification timestamp (UTC)
    """

    name: str = "Untitled"
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    category: str = Category.CUSTOM.value
    difficulty: Difficulty = Difficulty.MEDIUM
    tags: list[str] = field(default_factory=list)
    created_by: str | None = None
    created_at: datetime = field(default_factory=_now)
    modified_at: datetime = field(default_factory=_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "difficulty": int(self.difficulty),
            "tags": list(self.tags),
            "createdBy": self.created_by,
            "createdAt": self.created_at.isoformat(),
            "modifiedAt": self.modified_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PuzzleMetadata":
        created_at = datetime.fromisoformat(data["createdAt"]) if "createdAt" in data else _now()
        modified_at = (
            datetime.fromisoformat(data["modifiedAt"]) if "modifiedAt" in data else created_at
        )
        return cls(
            name=str(data.get("name", "Untitled")),
            id=str(data.get("id") or uuid.uuid4().hex),
            category=str(data.get("category", Category.CUSTOM.value)),
            difficulty=Difficulty(int(data.get("difficulty", Difficulty.MEDIUM))),
            tags=[str(tag) for tag in data.get("tags", [])],
            created_by=data.get("createdBy"),
            created_at=created_at,
            modified_at=modified_at,
        )


@dataclass
class Puzzle:
    """A tangram assembly.

    The puzzle holds its pieces in placement order; the first piece is the
    base piece. Geometric invariants (no overlaps, explained contacts,
    connectivity) are checked by the validation engine rather than enforced
    here.

    Attributes:
        pieces: Placed pieces in placement order
        connections: Declared connections between pieces
        metadata: Descriptive information
    """

    pieces: list[Piece] = field(default_factory=list)
    connections: list[Connection] = field(default_factory=list)
    metadata: PuzzleMetadata = field(default_factory=PuzzleMetadata)

    @property
    def is_empty(self) -> bool:
        return not self.pieces

    @property
    def piece_ids(self) -> list[str]:
        return [piece.id for piece in self.pieces]

    def piece(self, piece_id: str) -> Piece | None:
        """Find a piece by id."""
        for piece in self.pieces:
            if piece.id == piece_id:
                return piece
        return None

    def pieces_by_id(self) -> dict[str, Piece]:
        return {piece.id: piece for piece in self.pieces}

    def is_first_piece(self, piece_id: str) -> bool:
        return bool(self.pieces) and self.pieces[0].id == piece_id

    def has_piece_type(self, piece_type: PieceType) -> bool:
        return any(piece.piece_type is piece_type for piece in self.pieces)

    def connections_for(self, piece_id: str) -> list[Connection]:
        """All connections touching the given piece."""
        return [c for c in self.connections if c.involves(piece_id)]

    def other_pieces(self, piece_id: str) -> list[Piece]:
        return [piece for piece in self.pieces if piece.id != piece_id]

    def add_piece(self, piece: Piece) -> None:
        self.pieces.append(piece)
        self._touch()

    def update_piece(self, piece: Piece) -> bool:
        """Replace the stored piece with the same id.

        Returns:
            True if a piece was replaced
        """
        for index, existing in enumerate(self.pieces):
            if existing.id == piece.id:
                self.pieces[index] = piece
                self._touch()
                return True
        return False

    def remove_piece(self, piece_id: str) -> list[Connection]:
        """Remove a piece together with every connection referencing it.

        Structural rules (base piece, connectivity) are checked by the
        placement service before calling this.

        Returns:
            The connections that were removed
        """
        removed = self.connections_for(piece_id)
        self.pieces = [piece for piece in self.pieces if piece.id != piece_id]
        self.connections = [c for c in self.connections if not c.involves(piece_id)]
        self._touch()
        return removed

    def add_connection(self, connection: Connection) -> None:
        self.connections.append(connection)
        self._touch()

    def remove_connection(self, connection_id: str) -> bool:
        before = len(self.connections)
        self.connections = [c for c in self.connections if c.id != connection_id]
        removed = len(self.connections) != before
        if removed:
            self._touch()
        return removed

    def snapshot(self) -> "Puzzle":
        """Independent copy suitable for undo history."""
        return Puzzle(
            pieces=list(self.pieces),
            connections=list(self.connections),
            metadata=replace(self.metadata, tags=list(self.metadata.tags)),
        )

    def solution_checksum(self) -> str:
        """Stable fingerprint of piece shapes and positions.

        Pieces are sorted by id so the checksum does not depend on placement
        order.
        """
        parts = []
        for piece in sorted(self.pieces, key=lambda p: p.id):
            t = piece.transform
            parts.append(
                f"{piece.piece_type.value}|{t.a:.4f},{t.b:.4f},{t.c:.4f},{t.d:.4f},"
                f"{t.tx:.2f},{t.ty:.2f}"
            )
        digest = hashlib.sha256(";".join(parts).encode("utf-8")).hexdigest()
        return digest[:16]

    def _touch(self) -> None:
        self.metadata.modified_at = _now()

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.metadata.to_dict(),
            "pieces": [piece.to_dict() for piece in self.pieces],
            "connections": [connection.to_dict() for connection in self.connections],
            "solutionChecksum": self.solution_checksum(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Puzzle":
        return cls(
            pieces=[Piece.from_dict(item) for item in data.get("pieces", [])],
            connections=[Connection.from_dict(item) for item in data.get("connections", [])],
            metadata=PuzzleMetadata.from_dict(data),
        )
