"""JSON persistence for raw ball positions and reconstructed trajectories."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from balltrail.core.errors import TrajectoryFileError
from balltrail.core.models import PipelineResult, Position

logger = logging.getLogger(__name__)

# Container keys tried, in order, when the file holds an object
POSITION_LIST_KEYS = ("positions", "ballPositions", "filteredPositions")


def _extract_list(data: Any, path: Path) -> list[Any]:
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in POSITION_LIST_KEYS:
            value = data.get(key)
            if isinstance(value, list):
                return value
    raise TrajectoryFileError(
        f"No position list found in {path}",
        hint=f"Expected a JSON list or an object with one of: {', '.join(POSITION_LIST_KEYS)}",
    )


def _parse_point(raw: Any) -> Position | None:
    if not isinstance(raw, dict):
        return None
    x = raw.get("x", raw.get("X"))
    y = raw.get("y", raw.get("Y"))
    timestamp = raw.get("timestamp")
    if timestamp is None or x is None or y is None:
        return None
    if any(isinstance(v, bool) for v in (timestamp, x, y)):
        return None
    try:
        return Position(timestamp=float(timestamp), x=float(x), y=float(y))
    except (TypeError, ValueError):
        return None


def load_positions(path: Path) -> list[Position]:
    """
    Load raw ball positions from a JSON file.

    Non-finite values are kept here; the pipeline's validation drops them.

    Args:
        path: JSON file with a list of {timestamp, x, y} points, or an object
            wrapping such a list.

    Returns:
        Positions in file order. Points missing a field are skipped.

    Raises:
        TrajectoryFileError: If the file is not JSON or holds no position list.
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise TrajectoryFileError(
            f"Invalid JSON in {path}: {e.msg} (line {e.lineno})",
            hint="Check that the file is a complete JSON document",
        ) from e
    except UnicodeDecodeError as e:
        raise TrajectoryFileError(
            f"Cannot decode {path}: {e.reason} at byte {e.start}",
            hint="Trajectory files must be UTF-8 encoded JSON",
        ) from e

    raw_points = _extract_list(data, path)
    positions = []
    for raw in raw_points:
        position = _parse_point(raw)
        if position is not None:
            positions.append(position)

    skipped = len(raw_points) - len(positions)
    if skipped > 0:
        logger.debug(f"Skipped {skipped} incomplete points in {path}")
    logger.info(f"Loaded {len(positions)} positions from {path}")
    return positions


def save_result(result: PipelineResult, path: Path) -> None:
    """Write a reconstructed trajectory as {filteredPositions, stats} JSON."""
    path = Path(path)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(result.to_dict(), f, indent=2)
    logger.info(f"Saved {len(result)} positions to {path}")
