"""Command-line interface for tangramengine.

This module provides the CLI using Typer with rich output for puzzle
inspection.

Key features:
- Validation reports with a failing exit code
- Manipulation mode tables
- Piece and connection listings
"""

from tangramengine.cli.app import app, cli

__all__ = ["app", "cli"]
