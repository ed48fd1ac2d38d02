"""Tangram Engine - Geometric constraint and validation engine for tangram puzzles.

Tangram Engine assembles the seven fixed tangram pieces into connected,
non-overlapping arrangements. It computes legal placement transforms, restricts
manipulation of a placed piece to the freedom its connections allow, detects
illegal overlaps with exact polygon geometry and sequences the editing workflow
through a strict state machine.

Example:
    $ tangramengine validate my-puzzle.json

This prints the validation report for the assembly stored in my-puzzle.json.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
