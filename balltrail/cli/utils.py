"""CLI utilities for balltrail."""

import functools
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import typer
from rich.console import Console

from balltrail.core.errors import BalltrailError, TrajectoryFileError

console = Console()


F = TypeVar("F", bound=Callable[..., Any])


def handle_errors(func: F) -> F:
    """Decorator to handle common errors in CLI commands."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except BalltrailError as e:
            console.print(f"\n[red]Error:[/red] {e.message}")
            if e.hint:
                console.print(f"[dim]Hint: {e.hint}[/dim]")
            raise typer.Exit(1)
        except FileNotFoundError as e:
            console.print(f"\n[red]Error:[/red] File not found: {e.filename}")
            raise typer.Exit(1)
        except PermissionError as e:
            console.print(f"\n[red]Error:[/red] Permission denied: {e.filename}")
            console.print("[dim]Hint: Check file permissions or try a different output path[/dim]")
            raise typer.Exit(1)
        except KeyboardInterrupt:
            console.print("\n[yellow]Interrupted by user[/yellow]")
            raise typer.Exit(130)
        except Exception as e:
            console.print(f"\n[red]Unexpected error:[/red] {type(e).__name__}: {e}")
            console.print("[dim]Run with --verbose for more detail[/dim]")
            raise typer.Exit(1)

    return wrapper  # type: ignore[return-value]


def validate_trajectory_file(path: Path) -> None:
    """Validate that a trajectory input file exists and looks like JSON."""
    if not path.exists():
        raise TrajectoryFileError(
            f"Trajectory file not found: {path}",
            hint="Check the file path and try again",
        )

    if not path.is_file():
        raise TrajectoryFileError(
            f"Not a file: {path}",
            hint="Provide a path to a JSON file, not a directory",
        )

    if path.suffix.lower() != ".json":
        raise TrajectoryFileError(
            f"Unsupported trajectory format: {path.suffix}",
            hint="Ball positions must be stored as .json",
        )


def validate_output_path(path: Path) -> None:
    """Validate that output path is writable."""
    if not path.parent.exists():
        raise TrajectoryFileError(
            f"Output directory does not exist: {path.parent}",
            hint="Create the directory first or use a different path",
        )
