"""Rich console output helpers for the CLI.

This module renders puzzles, validation reports and manipulation modes as
formatted console text and tables.
"""

from rich.console import Console
from rich.table import Table
from rich.text import Text

from tangramengine.core import ValidationReport
from tangramengine.domain import (
    Connection,
    Free,
    Locked,
    ManipulationMode,
    Piece,
    Puzzle,
    Rotatable,
    Slidable,
)

console = Console()

# Unicode symbols for consistent visual language
SYM_STEP = "▸"  # Step indicator
SYM_OK = "✓"  # Success
SYM_ERR = "✗"  # Error
SYM_DOT = "·"  # Separator/secondary info


def print_header(version: str) -> None:
    """Print application header.

    Args:
        version: Application version string
    """
    console.print(f"\n[bold]Tangram Engine[/bold] v{version}")
    console.print("─" * 44)


def print_step(message: str) -> None:
    """Print a step indicator."""
    console.print(f"\n{SYM_STEP} {message}")


def print_puzzle_info(path: str, puzzle: Puzzle) -> None:
    """Print a one-line summary of a loaded puzzle.

    Args:
        path: Path the puzzle was loaded from
        puzzle: Loaded puzzle
    """
    # Text keeps paths with brackets from being read as markup
    line = Text("  ")
    line.append(path)
    line.append(f" ({puzzle.metadata.name})")
    console.print(line)
    console.print(
        f"  {len(puzzle.pieces)} pieces {SYM_DOT} {len(puzzle.connections)} connections "
        f"{SYM_DOT} checksum {puzzle.solution_checksum()}"
    )


def print_validation_report(report: ValidationReport) -> None:
    """Print a validation result with one line per problem."""
    if report.is_valid:
        console.print(f"\n[bold green]{SYM_OK} Valid[/bold green]")
        return

    count = len(report.errors)
    plural = "problem" if count == 1 else "problems"
    console.print(f"\n[bold red]{SYM_ERR} Invalid[/bold red] {SYM_DOT} {count} {plural}")
    for error in report.errors:
        console.print(f"  {SYM_DOT} {error}", markup=False)


def _mode_detail(mode: ManipulationMode) -> str:
    if isinstance(mode, Locked):
        return mode.reason
    if isinstance(mode, Rotatable):
        return f"pivot ({mode.pivot.x:.1f}, {mode.pivot.y:.1f}) {SYM_DOT} {len(mode.snap_angles)} angles"
    if isinstance(mode, Slidable):
        low, high = mode.range
        return f"range {low:.1f}..{high:.1f} {SYM_DOT} {len(mode.snap_positions)} stops"
    if isinstance(mode, Free):
        return mode.description
    return ""


def print_modes_table(puzzle: Puzzle, modes: dict[str, ManipulationMode]) -> None:
    """Print the manipulation mode of every piece."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("Piece")
    table.add_column("Type")
    table.add_column("Mode")
    table.add_column("Detail")
    for piece in puzzle.pieces:
        mode = modes[piece.id]
        table.add_row(piece.id, piece.piece_type.display_name, mode.name, _mode_detail(mode))
    console.print(table)


def print_pieces_table(pieces: list[Piece], visual_scale: float) -> None:
    """Print each piece with its rotation and world vertices."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("Piece")
    table.add_column("Type")
    table.add_column("Rotation", justify="right")
    table.add_column("Vertices")
    for piece in pieces:
        vertices = " ".join(
            f"({v.x:.1f}, {v.y:.1f})" for v in piece.world_vertices(visual_scale)
        )
        flipped = " (flipped)" if piece.transform.is_flipped else ""
        table.add_row(
            piece.id,
            piece.piece_type.display_name,
            f"{piece.transform.rotation_degrees:.1f}°{flipped}",
            vertices,
        )
    console.print(table)


def print_connections(connections: list[Connection]) -> None:
    """Print one line per declared connection."""
    if not connections:
        console.print(f"  {SYM_DOT} no connections")
        return
    for connection in connections:
        first, second = connection.piece_ids
        kind = connection.connection_type.kind.value
        console.print(f"  {connection.id}: {kind} {first} {SYM_DOT} {second}", markup=False)


def print_error(message: str, details: str | None = None) -> None:
    """Print error message.

    Args:
        message: Main error message
        details: Optional detailed error information
    """
    console.print(f"\n[bold red]{SYM_ERR} Error:[/bold red] {message}")
    if details:
        console.print(f"  {details}")
