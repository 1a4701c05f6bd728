"""
Gap interpolation for ball trajectories.

Fills frames the tracker missed with Catmull-Rom samples. Gaps longer than
max_gap_duration are left open: the ball most likely left the frame, and
bridging would invent a trajectory.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass

from balltrail.core.models import Position, ReconstructedPosition
from balltrail.tracking.geometry import catmull_rom

logger = logging.getLogger(__name__)

# A gap starts at this many frame intervals between consecutive samples
GAP_THRESHOLD_FRAMES = 2.5


@dataclass(frozen=True)
class InterpolationResult:
    """Output of gap interpolation."""

    positions: tuple[ReconstructedPosition, ...]
    added_count: int = 0


def _as_reconstructed(position: Position, index: int) -> ReconstructedPosition:
    if isinstance(position, ReconstructedPosition):
        return position
    return ReconstructedPosition.from_position(position, source_index=index)


class GapInterpolator:
    """Synthesizes samples inside gaps too large for normal frame spacing."""

    def __init__(self, max_gap_duration: float = 0.5, fps: float = 30.0):
        self.max_gap_duration = max_gap_duration
        self.fps = fps

    @property
    def frame_interval(self) -> float | None:
        """Expected time between samples, or None when fps is unusable."""
        if not math.isfinite(self.fps) or self.fps <= 0:
            return None
        return 1.0 / self.fps

    @property
    def max_gap_usable(self) -> bool:
        """Non-finite or non-positive gap limits turn interpolation off."""
        return math.isfinite(self.max_gap_duration) and self.max_gap_duration > 0

    def missing_frames(self, dt: float) -> int:
        """Number of samples to synthesize for a gap of dt seconds."""
        frame_interval = self.frame_interval
        if frame_interval is None or not self.max_gap_usable:
            return 0
        if dt <= frame_interval * GAP_THRESHOLD_FRAMES or dt > self.max_gap_duration:
            return 0
        # Round half up so an exact .5 frame count behaves the same everywhere
        return max(0, math.floor(dt / frame_interval + 0.5) - 1)

    def interpolate(self, positions: Sequence[Position]) -> InterpolationResult:
        """
        Fill gaps in a chronologically sorted trajectory.

        Args:
            positions: Positions sorted by timestamp. Plain positions are
                tagged with their index in this sequence as source_index.

        Returns:
            InterpolationResult whose positions are the input plus synthesized
            samples, in chronological order.
        """
        source = [_as_reconstructed(p, i) for i, p in enumerate(positions)]
        if len(source) < 2:
            return InterpolationResult(positions=tuple(source))

        result: list[ReconstructedPosition] = []
        added_count = 0
        last = len(source) - 1

        for i, curr in enumerate(source):
            result.append(curr)
            if i == last:
                break

            nxt = source[i + 1]
            count = self.missing_frames(nxt.timestamp - curr.timestamp)
            if count == 0:
                continue

            # Spline context; endpoints act as their own neighbors at the edges
            p0 = source[i - 1] if i > 0 else curr
            p3 = source[i + 2] if i + 2 <= last else nxt

            for j in range(1, count + 1):
                sample = catmull_rom(p0, curr, nxt, p3, j / (count + 1))
                result.append(
                    ReconstructedPosition.from_position(sample, is_interpolated=True)
                )
            added_count += count
            logger.debug(
                f"Gap of {nxt.timestamp - curr.timestamp:.3f}s after "
                f"t={curr.timestamp:.3f}: interpolated {count} positions"
            )

        if added_count > 0:
            logger.info(f"Interpolated {added_count} missing positions")

        return InterpolationResult(positions=tuple(result), added_count=added_count)
