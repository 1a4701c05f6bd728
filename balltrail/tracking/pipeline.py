"""
Trajectory reconstruction pipeline.

RawPositions -> OutlierFilter -> GapInterpolator -> TemporalSmoother

The pipeline is a pure function of (positions, config): it never raises on
bad samples, never mutates its input, and keeps no state between runs.
"""

from __future__ import annotations

import functools
import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from balltrail.core.models import (
    PipelineResult,
    PipelineStats,
    Position,
    ReconstructedPosition,
)
from balltrail.tracking.gap_interpolator import GapInterpolator
from balltrail.tracking.outlier_filter import OutlierFilter, OutlierThresholds
from balltrail.tracking.smoother import TemporalSmoother

if TYPE_CHECKING:
    from balltrail.core.config import BalltrailConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineConfig:
    """Stage switches and parameters for trajectory reconstruction.

    Out-of-range values degrade the affected stage to a no-op instead of
    raising (e.g. an even smoothing_window disables smoothing).
    """

    remove_outliers: bool = True
    max_velocity: float = 0.6  # normalized units per second
    interpolate_gaps: bool = True
    max_gap_duration: float = 0.5  # seconds; longer gaps are discontinuities
    smooth_trajectory: bool = True
    smoothing_window: int = 3  # frames, odd
    fps: float = 30.0
    outlier_thresholds: OutlierThresholds = field(default_factory=OutlierThresholds)


def _coerce_position(raw: Any) -> Position | None:
    """Convert one raw sample to a Position, or None if it is unusable.

    Accepts Position objects and mappings with timestamp and x/y (or the
    tracker's uppercase X/Y) keys.
    """
    if isinstance(raw, Position):
        values = (raw.timestamp, raw.x, raw.y)
    elif isinstance(raw, Mapping):
        values = (
            raw.get("timestamp"),
            raw.get("x", raw.get("X")),
            raw.get("y", raw.get("Y")),
        )
    else:
        return None

    # bool is an int subclass; true/false are not coordinates
    if any(isinstance(v, bool) for v in values):
        return None

    try:
        timestamp, x, y = (float(v) for v in values)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None

    if not (math.isfinite(timestamp) and math.isfinite(x) and math.isfinite(y)):
        return None
    return Position(timestamp=timestamp, x=x, y=y)


def validate_positions(
    positions: Iterable[Any],
) -> tuple[tuple[ReconstructedPosition, ...], int]:
    """
    Drop malformed samples and sort the rest by timestamp.

    Args:
        positions: Raw samples from the tracker.

    Returns:
        (sorted positions tagged with their input index, number rejected)
    """
    valid: list[ReconstructedPosition] = []
    rejected = 0
    for index, raw in enumerate(positions):
        position = _coerce_position(raw)
        if position is None:
            rejected += 1
            logger.debug(f"Dropping malformed position at index {index}: {raw!r}")
            continue
        valid.append(ReconstructedPosition.from_position(position, source_index=index))

    # Stable sort: equal timestamps keep input order
    valid.sort(key=lambda p: p.timestamp)
    return tuple(valid), rejected


class TrajectoryPipeline:
    """Runs the reconstruction stages in fixed order and collects stats."""

    def __init__(self, config: PipelineConfig | None = None):
        self.config = config or PipelineConfig()

    @classmethod
    def from_settings(cls, settings: BalltrailConfig | None = None) -> TrajectoryPipeline:
        """Build a pipeline from global (YAML/env) settings."""
        if settings is None:
            from balltrail.core.config import get_config

            settings = get_config()
        return cls(settings.to_pipeline_config())

    def run(self, positions: Iterable[Any]) -> PipelineResult:
        """
        Reconstruct a trajectory from raw tracker positions.

        Args:
            positions: Raw samples; Position objects or {timestamp, x, y} mappings.

        Returns:
            PipelineResult with the chronologically sorted trajectory and stats.
        """
        cfg = self.config
        current, rejected = validate_positions(positions)
        original_count = len(current)
        removed_outliers = 0
        interpolated_points = 0

        if cfg.remove_outliers:
            outlier_filter = OutlierFilter(cfg.max_velocity, cfg.outlier_thresholds)
            filtered = outlier_filter.filter(current)
            current = filtered.positions  # type: ignore[assignment]
            removed_outliers = filtered.removed_count

        if cfg.interpolate_gaps:
            interpolator = GapInterpolator(cfg.max_gap_duration, cfg.fps)
            interpolated = interpolator.interpolate(current)
            current = interpolated.positions
            interpolated_points = interpolated.added_count

        if cfg.smooth_trajectory:
            current = TemporalSmoother(cfg.smoothing_window).smooth(current)

        stats = PipelineStats(
            original_count=original_count,
            removed_outliers=removed_outliers,
            interpolated_points=interpolated_points,
            final_count=len(current),
            rejected_invalid=rejected,
        )

        if original_count > 0:
            parts = [f"Trajectory pipeline: {original_count} positions"]
            if rejected > 0:
                parts.append(f"{rejected} invalid dropped")
            if removed_outliers > 0:
                parts.append(f"-{removed_outliers} outliers")
            if interpolated_points > 0:
                parts.append(f"+{interpolated_points} interpolated")
            parts.append(f"{stats.final_count} final")
            logger.info(", ".join(parts))

        return PipelineResult(positions=tuple(current), stats=stats)


@functools.lru_cache(maxsize=16)
def _cached_reconstruct(
    positions: tuple[Position, ...],
    config: PipelineConfig,
) -> PipelineResult:
    return TrajectoryPipeline(config).run(positions)


def reconstruct_trajectory(
    positions: Iterable[Any],
    config: PipelineConfig | None = None,
) -> PipelineResult:
    """Reconstruct a trajectory; memoized when given a tuple of Positions."""
    config = config or PipelineConfig()
    if isinstance(positions, tuple) and all(isinstance(p, Position) for p in positions):
        return _cached_reconstruct(positions, config)
    return TrajectoryPipeline(config).run(positions)
