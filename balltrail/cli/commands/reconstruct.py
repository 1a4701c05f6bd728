"""Reconstruct command - clean up raw ball positions for playback overlay."""

from __future__ import annotations

import dataclasses
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from balltrail.cli.utils import handle_errors, validate_output_path, validate_trajectory_file
from balltrail.core.config import BalltrailConfig, get_config
from balltrail.core.models import PipelineResult
from balltrail.tracking.kinematics import compute_kinematics
from balltrail.tracking.pipeline import PipelineConfig, TrajectoryPipeline
from balltrail.tracking.trajectory_io import load_positions, save_result

console = Console()


def _build_config(
    settings: BalltrailConfig,
    max_velocity: float | None,
    max_gap: float | None,
    window: int | None,
    fps: float | None,
    no_outliers: bool,
    no_gaps: bool,
    no_smooth: bool,
) -> PipelineConfig:
    """Apply command-line overrides on top of file/env settings."""
    config = settings.to_pipeline_config()
    overrides: dict[str, object] = {}
    if max_velocity is not None:
        overrides["max_velocity"] = max_velocity
    if max_gap is not None:
        overrides["max_gap_duration"] = max_gap
    if window is not None:
        overrides["smoothing_window"] = window
    if fps is not None:
        overrides["fps"] = fps
    if no_outliers:
        overrides["remove_outliers"] = False
    if no_gaps:
        overrides["interpolate_gaps"] = False
    if no_smooth:
        overrides["smooth_trajectory"] = False
    return dataclasses.replace(config, **overrides) if overrides else config


def _print_summary(result: PipelineResult, output: Path) -> None:
    stats = result.stats
    kinematics = compute_kinematics(result.positions)

    table = Table(show_header=True, header_style="bold")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Input positions", str(stats.original_count))
    if stats.rejected_invalid > 0:
        table.add_row("Invalid (dropped)", str(stats.rejected_invalid))
    table.add_row("Outliers removed", str(stats.removed_outliers))
    table.add_row("Interpolated", str(stats.interpolated_points))
    table.add_row("Final positions", str(stats.final_count))
    table.add_row("Duration", f"{kinematics.duration:.2f}s")
    table.add_row("Path length", f"{kinematics.path_length:.3f}")
    table.add_row("Mean speed", f"{kinematics.mean_speed:.3f}/s")
    table.add_row("Peak speed", f"{kinematics.peak_speed:.3f}/s")

    console.print(table)
    console.print(f"  Output: {output}")

    if stats.original_count > 0 and stats.removed_outliers / stats.original_count > 0.3:
        console.print(
            "\n[yellow]Warning:[/yellow] More than 30% of positions were removed as outliers. "
            "Consider raising --max-velocity for fast-moving balls."
        )


@handle_errors
def reconstruct(
    input_path: Path = typer.Argument(
        ...,
        help="JSON file with raw ball positions ({timestamp, x, y} points)",
    ),
    output: Path = typer.Option(
        None,
        "--output", "-o",
        help="Output JSON file (default: input_reconstructed.json)",
    ),
    config_path: Path | None = typer.Option(
        None,
        "--config", "-c",
        help="YAML config file (default: balltrail.yaml lookup + env vars)",
    ),
    max_velocity: float | None = typer.Option(
        None,
        "--max-velocity",
        help="Outlier velocity limit in normalized units per second",
    ),
    max_gap: float | None = typer.Option(
        None,
        "--max-gap",
        help="Longest gap in seconds to interpolate",
    ),
    window: int | None = typer.Option(
        None,
        "--window",
        help="Smoothing window in frames (odd)",
    ),
    fps: float | None = typer.Option(
        None,
        "--fps",
        help="Video frame rate used for gap detection",
    ),
    no_outliers: bool = typer.Option(False, "--no-outliers", help="Skip outlier removal"),
    no_gaps: bool = typer.Option(False, "--no-gaps", help="Skip gap interpolation"),
    no_smooth: bool = typer.Option(False, "--no-smooth", help="Skip smoothing"),
    quiet: bool = typer.Option(
        False,
        "--quiet", "-q",
        help="Suppress summary output",
    ),
) -> None:
    """Reconstruct a smooth ball trajectory from raw tracker positions.

    Removes teleportation outliers, fills short gaps with spline samples,
    and smooths residual jitter.

    Example:
        balltrail reconstruct rally_ball.json --fps 60 -o rally_clean.json
    """
    validate_trajectory_file(input_path)

    if output is None:
        output = input_path.with_name(f"{input_path.stem}_reconstructed.json")
    validate_output_path(output)

    settings = BalltrailConfig.from_yaml(config_path) if config_path else get_config()
    config = _build_config(
        settings, max_velocity, max_gap, window, fps, no_outliers, no_gaps, no_smooth,
    )

    if not quiet:
        console.print(f"[bold]Trajectory reconstruction:[/bold] {input_path.name}")

    positions = load_positions(input_path)
    result = TrajectoryPipeline(config).run(positions)
    save_result(result, output)

    if not quiet:
        console.print("\n[green]Reconstruction complete![/green]")
        _print_summary(result, output)
