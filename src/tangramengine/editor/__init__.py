"""Interactive editing workflow for tangramengine.

The state machine decides which workflow steps are legal; the session
drives the services and mutates the puzzle on commit.
"""

from tangramengine.editor.machine import EditorStateMachine, TransitionResult, is_valid_transition
from tangramengine.editor.session import EditorSession, PendingSelection
from tangramengine.editor.state import (
    EditorState,
    Error,
    Idle,
    ManipulatingExistingPiece,
    ManipulatingFirstPiece,
    ManipulatingPendingPiece,
    PieceSelected,
    PreviewingPlacement,
    SelectingCanvasConnections,
    SelectingFirstPiece,
    SelectingNextPiece,
    SelectingPendingConnections,
    StateKind,
    UnlockingPiece,
)

__all__ = [
    # States
    "EditorState",
    "StateKind",
    "Idle",
    "SelectingFirstPiece",
    "ManipulatingFirstPiece",
    "SelectingNextPiece",
    "SelectingCanvasConnections",
    "SelectingPendingConnections",
    "ManipulatingPendingPiece",
    "PreviewingPlacement",
    "PieceSelected",
    "UnlockingPiece",
    "ManipulatingExistingPiece",
    "Error",
    # Machine
    "EditorStateMachine",
    "TransitionResult",
    "is_valid_transition",
    # Session
    "EditorSession",
    "PendingSelection",
]
