"""Editor state machine.

The transition table is a pure function of the current state, the requested
state and the puzzle. The machine itself only stores the current state and
reports rejected requests.
"""

from dataclasses import dataclass

from tangramengine.domain import Puzzle
from tangramengine.editor.state import (
    EditorState,
    Error,
    Idle,
    SelectingFirstPiece,
    SelectingNextPiece,
    StateKind,
)
from tangramengine.utils.logging import EditorLogger

_ALLOWED: dict[StateKind, frozenset[StateKind]] = {
    StateKind.IDLE: frozenset({StateKind.PIECE_SELECTED}),
    StateKind.SELECTING_FIRST_PIECE: frozenset({StateKind.MANIPULATING_FIRST_PIECE}),
    StateKind.MANIPULATING_FIRST_PIECE: frozenset(
        {
            StateKind.MANIPULATING_FIRST_PIECE,
            StateKind.SELECTING_NEXT_PIECE,
            StateKind.SELECTING_FIRST_PIECE,
        }
    ),
    StateKind.SELECTING_NEXT_PIECE: frozenset(
        {StateKind.SELECTING_CANVAS_CONNECTIONS, StateKind.PIECE_SELECTED}
    ),
    StateKind.SELECTING_CANVAS_CONNECTIONS: frozenset({StateKind.SELECTING_PENDING_CONNECTIONS}),
    StateKind.SELECTING_PENDING_CONNECTIONS: frozenset(
        {
            StateKind.MANIPULATING_PENDING_PIECE,
            StateKind.PREVIEWING_PLACEMENT,
            StateKind.SELECTING_NEXT_PIECE,
        }
    ),
    StateKind.MANIPULATING_PENDING_PIECE: frozenset(
        {
            StateKind.MANIPULATING_PENDING_PIECE,
            StateKind.PREVIEWING_PLACEMENT,
            StateKind.SELECTING_NEXT_PIECE,
        }
    ),
    StateKind.PREVIEWING_PLACEMENT: frozenset({StateKind.SELECTING_NEXT_PIECE}),
    StateKind.PIECE_SELECTED: frozenset({StateKind.UNLOCKING_PIECE}),
    StateKind.UNLOCKING_PIECE: frozenset({StateKind.MANIPULATING_EXISTING_PIECE}),
    StateKind.MANIPULATING_EXISTING_PIECE: frozenset(),
}


def is_valid_transition(current: EditorState, requested: EditorState, puzzle: Puzzle) -> bool:
    """Check a transition against the workflow rules.

    Args:
        current: State the editor is in
        requested: State the editor would move to
        puzzle: Puzzle being edited, consulted for the Idle exits

    Returns:
        True if the transition is legal
    """
    if requested.kind is StateKind.IDLE:
        return current.kind is not StateKind.IDLE
    if requested.kind is StateKind.ERROR:
        return True
    if current.kind is StateKind.ERROR:
        return True
    if current.kind is StateKind.IDLE:
        if requested.kind is StateKind.SELECTING_FIRST_PIECE:
            return puzzle.is_empty
        if requested.kind is StateKind.SELECTING_NEXT_PIECE:
            return not puzzle.is_empty
    return requested.kind in _ALLOWED.get(current.kind, frozenset())


@dataclass(frozen=True, slots=True)
class TransitionResult:
    """Outcome of a transition request.

    Attributes:
        accepted: Whether the machine moved to the requested state
        state: State after the request
        reason: Why the request was rejected
    """

    accepted: bool
    state: EditorState
    reason: str | None = None


class EditorStateMachine:
    """Holds the current editor state and enforces the transition table."""

    def __init__(self, puzzle: Puzzle, editor_logger: EditorLogger | None = None) -> None:
        self.logger = editor_logger or EditorLogger()
        self._state: EditorState = self.initial_state(puzzle)

    @staticmethod
    def initial_state(puzzle: Puzzle) -> EditorState:
        """State to start editing a puzzle in."""
        return SelectingFirstPiece() if puzzle.is_empty else Idle()

    @property
    def state(self) -> EditorState:
        return self._state

    @property
    def description(self) -> str:
        return self._state.description

    def can_transition(self, requested: EditorState, puzzle: Puzzle) -> bool:
        return is_valid_transition(self._state, requested, puzzle)

    def transition(self, requested: EditorState, puzzle: Puzzle) -> TransitionResult:
        """Move to ``requested`` if the transition is legal.

        A rejected request leaves the state unchanged and is logged.
        """
        current = self._state
        if not is_valid_transition(current, requested, puzzle):
            self.logger.log_transition_rejected(current.kind.value, requested.kind.value)
            return TransitionResult(
                accepted=False,
                state=current,
                reason=f"cannot go from {current.kind.value} to {requested.kind.value}",
            )
        self._state = requested
        self.logger.log_transition(current.kind.value, requested.kind.value)
        return TransitionResult(accepted=True, state=requested)

    def fail(self, message: str) -> TransitionResult:
        """Enter the Error state."""
        previous = self._state
        self._state = Error(message)
        self.logger.log_transition(previous.kind.value, self._state.kind.value)
        return TransitionResult(accepted=True, state=self._state)

    def reset(self, puzzle: Puzzle) -> EditorState:
        """Return to the start of the add-piece workflow."""
        previous = self._state
        self._state = SelectingFirstPiece() if puzzle.is_empty else SelectingNextPiece()
        self.logger.log_transition(previous.kind.value, self._state.kind.value)
        return self._state
