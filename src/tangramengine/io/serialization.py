"""Reading and writing puzzle documents.

Puzzles are stored as JSON objects with camelCase keys. Piece types use
their catalog raw values (``"smallTriangle1"``, ``"square"`` ...).
"""

import json
import logging
from pathlib import Path
from typing import Any

from tangramengine.domain import Puzzle
from tangramengine.exceptions import PuzzleDataError

logger = logging.getLogger(__name__)


def puzzle_from_payload(payload: Any, source: str = "<payload>") -> Puzzle:
    """Build a puzzle from a decoded JSON document.

    Args:
        payload: Decoded JSON value
        source: Where the payload came from, used in error messages

    Returns:
        The decoded puzzle

    Raises:
        PuzzleDataError: If the payload is not a valid puzzle document
    """
    if not isinstance(payload, dict):
        raise PuzzleDataError(source, "expected a JSON object")
    for key in ("pieces", "connections"):
        if key in payload and not isinstance(payload[key], list):
            raise PuzzleDataError(source, f"'{key}' must be a list")

    try:
        puzzle = Puzzle.from_dict(payload)
    except KeyError as e:
        raise PuzzleDataError(source, f"missing field {e}") from e
    except (AttributeError, TypeError, ValueError) as e:
        raise PuzzleDataError(source, str(e)) from e

    piece_ids = puzzle.piece_ids
    if len(set(piece_ids)) != len(piece_ids):
        raise PuzzleDataError(source, "duplicate piece ids")

    stored = payload.get("solutionChecksum")
    if stored is not None and stored != puzzle.solution_checksum():
        logger.warning("Checksum mismatch in %s: stored %s", source, stored)
    return puzzle


def puzzle_to_payload(puzzle: Puzzle) -> dict[str, Any]:
    """Encode a puzzle as a JSON-compatible dictionary."""
    return puzzle.to_dict()


def load_puzzle_file(path: str | Path) -> Puzzle:
    """Load a puzzle from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist
        PuzzleDataError: If the file is not a valid puzzle document
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Puzzle file not found: {path}")
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise PuzzleDataError(str(path), f"invalid JSON: {e.msg} at line {e.lineno}") from e
    puzzle = puzzle_from_payload(payload, source=str(path))
    logger.debug("Loaded %d piece(s) from %s", len(puzzle.pieces), path)
    return puzzle


def save_puzzle_file(puzzle: Puzzle, path: str | Path) -> Path:
    """Write a puzzle to a JSON file, creating parent directories.

    Returns:
        The path written
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(puzzle_to_payload(puzzle), indent=2) + "\n", encoding="utf-8")
    logger.debug("Saved %d piece(s) to %s", len(puzzle.pieces), path)
    return path
