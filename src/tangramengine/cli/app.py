"""Command line interface for inspecting tangram puzzle files."""

from pathlib import Path
from typing import Annotated

import typer

from tangramengine import __version__
from tangramengine.cli.output import (
    console,
    print_connections,
    print_error,
    print_header,
    print_modes_table,
    print_pieces_table,
    print_puzzle_info,
    print_step,
    print_validation_report,
)
from tangramengine.config import EngineSettings, LoggingConfig
from tangramengine.core import ManipulationClassifier, ValidationEngine
from tangramengine.domain import Puzzle
from tangramengine.exceptions import PuzzleDataError
from tangramengine.io import load_puzzle_file
from tangramengine.utils.logging import configure_logging

app = typer.Typer(
    name="tangramengine",
    help="Validate and inspect tangram puzzle documents.",
    add_completion=False,
    no_args_is_help=True,
)

PuzzleArgument = Annotated[
    Path,
    typer.Argument(help="Path to a puzzle JSON file", show_default=False),
]
LogFileOption = Annotated[
    Path | None,
    typer.Option("--log-file", help="Write JSON engine logs to this file"),
]
LogLevelOption = Annotated[
    str,
    typer.Option("--log-level", help="Console log level (DEBUG|INFO|WARNING|ERROR)"),
]
QuietOption = Annotated[
    bool,
    typer.Option("--quiet", "-q", help="Print only results"),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]Tangram Engine[/bold blue] v{__version__}")
        raise typer.Exit()


@app.callback()
def global_options(
    ctx: typer.Context,
    log_file: LogFileOption = None,
    log_level: LogLevelOption = "WARNING",
    quiet: QuietOption = False,
    _version: Annotated[  # noqa: ARG001
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Validate and inspect tangram puzzle documents.

    Example:
        tangramengine validate my-puzzle.json
    """
    logging_config = LoggingConfig(log_file=log_file, log_level=log_level)
    configure_logging(logging_config, quiet=quiet)
    ctx.obj = {"settings": EngineSettings(logging=logging_config), "quiet": quiet}


def _context(ctx: typer.Context) -> tuple[EngineSettings, bool]:
    return ctx.obj["settings"], ctx.obj["quiet"]


def _load(path: Path, quiet: bool) -> Puzzle:
    """Load a puzzle, turning load failures into a clean exit."""
    if not path.exists():
        print_error(
            f"Input file not found: {path}",
            details="Check the path to the puzzle document.",
        )
        raise typer.Exit(code=1)
    if not path.is_file():
        print_error(
            f"Input path is not a file: {path}",
            details="Pass a puzzle JSON file, not a directory.",
        )
        raise typer.Exit(code=1)

    try:
        puzzle = load_puzzle_file(path)
    except PuzzleDataError as e:
        print_error(f"Could not load puzzle: {e.reason}")
        raise typer.Exit(code=1) from None

    if not quiet:
        print_header(__version__)
        print_step("Loaded puzzle")
        print_puzzle_info(str(path), puzzle)
    return puzzle


@app.command()
def validate(
    ctx: typer.Context,
    puzzle_file: PuzzleArgument,
    include_touches: Annotated[
        bool,
        typer.Option("--include-touches", help="Let touching pieces count as connected"),
    ] = False,
) -> None:
    """Check a puzzle for overlaps, unexplained contacts and connectivity.

    Exits with code 1 when the puzzle is invalid.
    """
    settings, quiet = _context(ctx)
    puzzle = _load(puzzle_file, quiet)

    report = ValidationEngine(settings).validate(puzzle, include_touches=include_touches)
    if not quiet:
        print_step("Validation")
    print_validation_report(report)
    if not report.is_valid:
        raise typer.Exit(code=1)


@app.command()
def modes(ctx: typer.Context, puzzle_file: PuzzleArgument) -> None:
    """Show how each piece of a puzzle may be manipulated."""
    settings, quiet = _context(ctx)
    puzzle = _load(puzzle_file, quiet)

    if puzzle.is_empty:
        console.print("\nPuzzle has no pieces.")
        return

    classifier = ManipulationClassifier(settings)
    if not quiet:
        print_step("Manipulation modes")
    print_modes_table(puzzle, classifier.modes_for(puzzle))


@app.command()
def describe(ctx: typer.Context, puzzle_file: PuzzleArgument) -> None:
    """List piece positions and declared connections."""
    settings, quiet = _context(ctx)
    puzzle = _load(puzzle_file, quiet)

    if not quiet:
        print_step("Pieces")
    print_pieces_table(puzzle.pieces, settings.geometry.visual_scale)
    if not quiet:
        print_step("Connections")
    print_connections(puzzle.connections)


def cli() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    cli()
