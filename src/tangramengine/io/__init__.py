"""Puzzle I/O layer for tangramengine.

This module handles reading and writing puzzle documents as JSON and is
the only place outside the CLI that touches the filesystem.

Key functions:
- puzzle_from_payload / puzzle_to_payload: Decoded JSON <-> Puzzle
- load_puzzle_file / save_puzzle_file: Files <-> Puzzle
"""

from tangramengine.io.serialization import (
    load_puzzle_file,
    puzzle_from_payload,
    puzzle_to_payload,
    save_puzzle_file,
)

__all__ = [
    "load_puzzle_file",
    "puzzle_from_payload",
    "puzzle_to_payload",
    "save_puzzle_file",
]
