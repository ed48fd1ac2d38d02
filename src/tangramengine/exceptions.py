"""Exception hierarchy for Tangram Engine."""


class TangramEngineError(Exception):
    """Base exception for all Tangram Engine errors."""

    pass


class GeometryError(TangramEngineError):
    """Errors in geometric calculations."""

    pass


class DegenerateTransformError(GeometryError):
    """A computed transform has non-finite components."""

    def __init__(self, piece_id: str, reason: str) -> None:
        self.piece_id = piece_id
        self.reason = reason
        super().__init__(f"Degenerate transform for piece '{piece_id}': {reason}")


class ConnectionDeclarationError(TangramEngineError):
    """Errors related to declaring connections between pieces."""

    pass


class InvalidConnectionPointsError(ConnectionDeclarationError):
    """Selected connection points cannot be paired."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid connection points: {reason}")


class ConnectionNotSatisfiedError(ConnectionDeclarationError):
    """A connection was declared between points that do not touch."""

    def __init__(self, description: str) -> None:
        self.description = description
        super().__init__(f"Connection cannot be established: {description}")


class PlacementError(TangramEngineError):
    """Errors placing a piece into a puzzle."""

    def __init__(self, piece_type: str, reason: str) -> None:
        self.piece_type = piece_type
        self.reason = reason
        super().__init__(f"Cannot place '{piece_type}': {reason}")


class OverlapError(PlacementError):
    """The placed piece would overlap existing pieces."""

    def __init__(self, piece_type: str, overlapping_ids: list[str]) -> None:
        self.overlapping_ids = overlapping_ids
        super().__init__(piece_type, f"overlaps {', '.join(overlapping_ids)}")


class StructuralError(TangramEngineError):
    """Errors that would break structural puzzle invariants."""

    pass


class PieceRemovalError(StructuralError):
    """A piece cannot be removed from the puzzle."""

    def __init__(self, piece_id: str, reason: str) -> None:
        self.piece_id = piece_id
        self.reason = reason
        super().__init__(f"Cannot remove piece '{piece_id}': {reason}")


class ManipulationError(TangramEngineError):
    """Errors manipulating an already placed piece."""

    def __init__(self, piece_id: str, reason: str) -> None:
        self.piece_id = piece_id
        self.reason = reason
        super().__init__(f"Cannot manipulate piece '{piece_id}': {reason}")


class PuzzleDataError(TangramEngineError):
    """Puzzle payload could not be decoded."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid puzzle data in {source}: {reason}")
