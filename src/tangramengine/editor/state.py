"""Editor workflow states.

Every state is an immutable value. The state machine replaces the current
state wholesale on each accepted transition.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TypeAlias

from tangramengine.domain import ManipulationMode, Piece, PieceType


class StateKind(str, Enum):
    """Discriminator used by the transition table."""

    IDLE = "idle"
    SELECTING_FIRST_PIECE = "selectingFirstPiece"
    MANIPULATING_FIRST_PIECE = "manipulatingFirstPiece"
    SELECTING_NEXT_PIECE = "selectingNextPiece"
    SELECTING_CANVAS_CONNECTIONS = "selectingCanvasConnections"
    SELECTING_PENDING_CONNECTIONS = "selectingPendingConnections"
    MANIPULATING_PENDING_PIECE = "manipulatingPendingPiece"
    PREVIEWING_PLACEMENT = "previewingPlacement"
    PIECE_SELECTED = "pieceSelected"
    UNLOCKING_PIECE = "unlockingPiece"
    MANIPULATING_EXISTING_PIECE = "manipulatingExistingPiece"
    ERROR = "error"


def _points_noun(count: int) -> str:
    return "connection point" if count == 1 else "connection points"


@dataclass(frozen=True, slots=True)
class Idle:
    kind = StateKind.IDLE

    @property
    def description(self) -> str:
        return "Select a shape to add or tap a piece to edit"


@dataclass(frozen=True, slots=True)
class SelectingFirstPiece:
    kind = StateKind.SELECTING_FIRST_PIECE

    @property
    def description(self) -> str:
        return "Select your first shape"


@dataclass(frozen=True, slots=True)
class ManipulatingFirstPiece:
    """The base piece is being oriented before it is dropped on the canvas."""

    piece_type: PieceType
    rotation: float = 0.0
    flipped: bool = False

    kind = StateKind.MANIPULATING_FIRST_PIECE

    @property
    def description(self) -> str:
        return "Rotate or flip to position the piece"


@dataclass(frozen=True, slots=True)
class SelectingNextPiece:
    kind = StateKind.SELECTING_NEXT_PIECE

    @property
    def description(self) -> str:
        return "Select the next shape to add"


@dataclass(frozen=True, slots=True)
class SelectingCanvasConnections:
    max_points: int = 2

    kind = StateKind.SELECTING_CANVAS_CONNECTIONS

    @property
    def description(self) -> str:
        return f"Select up to {self.max_points} {_points_noun(self.max_points)} on existing pieces"


@dataclass(frozen=True, slots=True)
class SelectingPendingConnections:
    piece_type: PieceType
    max_points: int = 1

    kind = StateKind.SELECTING_PENDING_CONNECTIONS

    @property
    def description(self) -> str:
        return (
            f"Select up to {self.max_points} matching "
            f"{_points_noun(self.max_points)} on the new piece"
        )


@dataclass(frozen=True, slots=True)
class ManipulatingPendingPiece:
    """The new piece is attached by one connection and can still be adjusted."""

    piece_type: PieceType
    mode: ManipulationMode
    rotation: float = 0.0

    kind = StateKind.MANIPULATING_PENDING_PIECE

    @property
    def description(self) -> str:
        return self.mode.description


@dataclass(frozen=True, slots=True)
class PreviewingPlacement:
    piece: Piece

    kind = StateKind.PREVIEWING_PLACEMENT

    @property
    def description(self) -> str:
        return "Confirm or cancel piece placement"


@dataclass(frozen=True, slots=True)
class PieceSelected:
    piece_id: str
    is_locked: bool = True

    kind = StateKind.PIECE_SELECTED

    @property
    def description(self) -> str:
        if self.is_locked:
            return "Piece is locked. Unlock to edit"
        return "Piece selected for editing"


@dataclass(frozen=True, slots=True)
class UnlockingPiece:
    piece_id: str

    kind = StateKind.UNLOCKING_PIECE

    @property
    def description(self) -> str:
        return "Unlocking piece for manipulation"


@dataclass(frozen=True, slots=True)
class ManipulatingExistingPiece:
    piece_id: str
    mode: ManipulationMode

    kind = StateKind.MANIPULATING_EXISTING_PIECE

    @property
    def description(self) -> str:
        return self.mode.description


@dataclass(frozen=True, slots=True)
class Error:
    message: str

    kind = StateKind.ERROR

    @property
    def description(self) -> str:
        return self.message


EditorState: TypeAlias = (
    Idle
    | SelectingFirstPiece
    | ManipulatingFirstPiece
    | SelectingNextPiece
    | SelectingCanvasConnections
    | SelectingPendingConnections
    | ManipulatingPendingPiece
    | PreviewingPlacement
    | PieceSelected
    | UnlockingPiece
    | ManipulatingExistingPiece
    | Error
)
