"""
Outlier removal for ball trajectories (teleportation detection).

Each detector looks for one failure signature of the upstream tracker and
returns the indices it finds suspicious. The filter takes the union of all
detector flags, then runs a single repair pass that keeps flagged points
which still fit their unflagged neighbors. Taking the union over-flags some
genuinely fast motion; the repair pass wins most of it back.

Note: detectors overlap (ping-pong and sustained deviation often flag the
same index), so removed_count is not a minimal edit distance.
"""

from __future__ import annotations

import functools
import logging
import operator
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

import numpy as np

from balltrail.core.models import Position
from balltrail.tracking.geometry import distance, midpoint, velocity
from balltrail.tracking.kinematics import MotionTable, motion_table

logger = logging.getLogger(__name__)

# Below this many points there is no neighborhood to judge against
MIN_POSITIONS_FOR_FILTERING = 3


@dataclass(frozen=True)
class OutlierThresholds:
    """Detector and repair constants.

    Empirical values with no documented derivation behind them.
    Treat them as defaults to recalibrate, not as derived limits.
    """

    window3_velocity_factor: float = 1.2
    window5_velocity_factor: float = 1.5
    sharp_turn_angle_deg: float = 90.0
    sharp_turn_min_segment: float = 0.02
    ping_pong_ratio: float = 0.3
    ping_pong_min_distance: float = 0.05
    sustained_min_points: int = 6
    sustained_distance: float = 0.15
    sustained_max_dt: float = 0.15
    adaptive_min_distance: float = 0.03
    adaptive_max_distance: float = 0.12
    adaptive_velocity_scale: float = 0.08
    adaptive_lookback: int = 3
    repair_midpoint_ratio: float = 0.4
    repair_velocity_factor: float = 0.5
    spike_bridge_factor: float = 1.5


class Detector(Protocol):
    """Flags indices of a position sequence that look physically impossible."""

    name: str

    def flag(self, positions: Sequence[Position], table: MotionTable) -> frozenset[int]:
        ...


# =============================================================================
# Detectors
# =============================================================================


@dataclass(frozen=True)
class FrameVelocityDetector:
    """Adjacent pair moving faster than max_velocity: flag both endpoints."""

    max_velocity: float
    name: str = "frame_velocity"

    def flag(self, positions: Sequence[Position], table: MotionTable) -> frozenset[int]:
        steps = np.nonzero(table.step_velocity > self.max_velocity)[0]
        flagged = {int(k) for k in steps} | {int(k) + 1 for k in steps}
        return frozenset(flagged)


@dataclass(frozen=True)
class WindowVelocityDetector:
    """Average velocity over a multi-step window above a limit.

    Catches a tracker sliding onto a false positive over a few frames, where
    no single step is fast enough to trip the frame check. Flags every index
    of the window except its first.
    """

    span: int
    velocity_limit: float
    name: str = "window_velocity"

    def flag(self, positions: Sequence[Position], table: MotionTable) -> frozenset[int]:
        window_vel = table.window_velocity(self.span)
        flagged: set[int] = set()
        for i in np.nonzero(window_vel > self.velocity_limit)[0]:
            flagged.update(range(int(i) - self.span + 1, int(i) + 1))
        return frozenset(flagged)


@dataclass(frozen=True)
class SharpTurnDetector:
    """Direction reversal sharper than angle_deg over two non-trivial segments."""

    angle_deg: float = 90.0
    min_segment: float = 0.02
    name: str = "sharp_turn"

    def flag(self, positions: Sequence[Position], table: MotionTable) -> frozenset[int]:
        flagged: set[int] = set()
        for i in range(1, table.size - 1):
            if (
                table.turn_angle[i] > self.angle_deg
                and table.step_distance[i - 1] > self.min_segment
                and table.step_distance[i] > self.min_segment
            ):
                flagged.add(i)
        return frozenset(flagged)


@dataclass(frozen=True)
class PingPongDetector:
    """A -> B -> A alternation between two distant locations.

    When point i lands back near point i-2 after a long hop from i-1, the
    intermediate point i-1 is the false detection.
    """

    ratio: float = 0.3
    min_distance: float = 0.05
    name: str = "ping_pong"

    def flag(self, positions: Sequence[Position], table: MotionTable) -> frozenset[int]:
        flagged: set[int] = set()
        for i in range(2, table.size - 1):
            dist_to_prev1 = float(table.step_distance[i - 1])
            dist_to_prev2 = table.distance_between(i - 2, i)
            if dist_to_prev2 < dist_to_prev1 * self.ratio and dist_to_prev1 > self.min_distance:
                flagged.add(i - 1)
        return frozenset(flagged)


@dataclass(frozen=True)
class SustainedDeviationDetector:
    """Ball parked in a different region shortly after a window start.

    For each window, compares the next 2-4 points against the midpoint of
    the first two. A point far away within max_dt flags everything from the
    second window point up to it.
    """

    min_points: int = 6
    max_distance: float = 0.15
    max_dt: float = 0.15
    name: str = "sustained_deviation"

    def flag(self, positions: Sequence[Position], table: MotionTable) -> frozenset[int]:
        n = table.size
        if n < self.min_points:
            return frozenset()

        flagged: set[int] = set()
        for start in range(n - 4):
            center_x = (table.xs[start] + table.xs[start + 1]) / 2
            center_y = (table.ys[start] + table.ys[start + 1]) / 2
            for j in range(start + 2, min(start + 5, n)):
                dist = float(np.hypot(table.xs[j] - center_x, table.ys[j] - center_y))
                dt = float(table.timestamps[j] - table.timestamps[start])
                if dist > self.max_distance and dt < self.max_dt:
                    flagged.update(range(start + 1, j + 1))
        return frozenset(flagged)


@dataclass(frozen=True)
class AdaptiveDistanceDetector:
    """Per-frame distance above a ceiling that scales with local speed.

    A slow ball gets a tight ceiling, a fast shot a lenient one. The ceiling
    is min_distance + local_velocity * velocity_scale, clamped to
    [min_distance, max_distance].
    """

    min_distance: float = 0.03
    max_distance: float = 0.12
    velocity_scale: float = 0.08
    lookback: int = 3
    name: str = "adaptive_distance"

    def flag(self, positions: Sequence[Position], table: MotionTable) -> frozenset[int]:
        local_velocity = table.trailing_velocity(self.lookback)
        flagged: set[int] = set()
        for i in range(1, table.size):
            ceiling = self.min_distance + float(local_velocity[i]) * self.velocity_scale
            ceiling = min(self.max_distance, max(self.min_distance, ceiling))
            if table.step_distance[i - 1] > ceiling:
                flagged.add(i - 1)
                flagged.add(i)
        return frozenset(flagged)


def default_detectors(
    max_velocity: float,
    thresholds: OutlierThresholds | None = None,
) -> tuple[Detector, ...]:
    """Build the standard detector set for a velocity limit."""
    th = thresholds or OutlierThresholds()
    return (
        FrameVelocityDetector(max_velocity),
        WindowVelocityDetector(
            span=2,
            velocity_limit=max_velocity * th.window3_velocity_factor,
            name="window3_velocity",
        ),
        WindowVelocityDetector(
            span=4,
            velocity_limit=max_velocity * th.window5_velocity_factor,
            name="window5_velocity",
        ),
        SharpTurnDetector(th.sharp_turn_angle_deg, th.sharp_turn_min_segment),
        PingPongDetector(th.ping_pong_ratio, th.ping_pong_min_distance),
        SustainedDeviationDetector(
            th.sustained_min_points, th.sustained_distance, th.sustained_max_dt,
        ),
        AdaptiveDistanceDetector(
            th.adaptive_min_distance,
            th.adaptive_max_distance,
            th.adaptive_velocity_scale,
            th.adaptive_lookback,
        ),
    )


# =============================================================================
# Filter
# =============================================================================


@dataclass(frozen=True)
class OutlierResult:
    """Output of the outlier filter."""

    positions: tuple[Position, ...]
    removed_count: int = 0
    kept_indices: tuple[int, ...] = field(default_factory=tuple)
    flagged: frozenset[int] = field(default_factory=frozenset)


class OutlierFilter:
    """Removes observations that cannot correspond to real ball motion.

    Detection is a fold over independent detectors (union of their index
    sets); removal is one repair pass over the flagged indices.
    """

    def __init__(
        self,
        max_velocity: float = 0.6,
        thresholds: OutlierThresholds | None = None,
        detectors: Sequence[Detector] | None = None,
    ):
        self.max_velocity = max_velocity
        self.thresholds = thresholds or OutlierThresholds()
        if detectors is None:
            detectors = default_detectors(max_velocity, self.thresholds)
        self.detectors = tuple(detectors)

    def detector_flags(self, positions: Sequence[Position]) -> dict[str, frozenset[int]]:
        """Run every detector and return its flags keyed by detector name."""
        table = motion_table(positions)
        return {d.name: d.flag(positions, table) for d in self.detectors}

    def flag(self, positions: Sequence[Position]) -> frozenset[int]:
        """Union of all detector flags."""
        per_detector = self.detector_flags(positions)
        for name, flagged in per_detector.items():
            if flagged:
                logger.debug(f"Detector {name}: {len(flagged)} suspicious positions")
        return functools.reduce(operator.or_, per_detector.values(), frozenset())

    def filter(self, positions: Sequence[Position]) -> OutlierResult:
        """
        Remove outliers from a chronologically sorted position sequence.

        Args:
            positions: Positions sorted by timestamp.

        Returns:
            OutlierResult with the order-preserving subsequence of kept
            positions and the number removed.
        """
        positions = tuple(positions)
        n = len(positions)
        if n < MIN_POSITIONS_FOR_FILTERING:
            return OutlierResult(positions=positions, kept_indices=tuple(range(n)))

        flagged = self.flag(positions)
        kept_indices = tuple(
            i for i in range(n)
            if i not in flagged or self._is_consistent(positions, i, flagged)
        )

        removed_count = n - len(kept_indices)
        if removed_count > 0:
            logger.info(
                f"Removed {removed_count} outlier positions "
                f"({len(flagged)} flagged of {n})"
            )

        return OutlierResult(
            positions=tuple(positions[i] for i in kept_indices),
            removed_count=removed_count,
            kept_indices=kept_indices,
            flagged=flagged,
        )

    def _is_consistent(
        self,
        positions: Sequence[Position],
        i: int,
        flagged: frozenset[int],
    ) -> bool:
        """Decide whether a flagged position still fits the trajectory."""
        n = len(positions)
        th = self.thresholds
        prev_ok = i > 0 and (i - 1) not in flagged
        next_ok = i < n - 1 and (i + 1) not in flagged

        if prev_ok and next_ok:
            # Both neighbors trusted: must sit near the line between them
            prev, nxt = positions[i - 1], positions[i + 1]
            deviation = distance(positions[i], midpoint(prev, nxt))
            return deviation < distance(prev, nxt) * th.repair_midpoint_ratio

        slow_limit = self.max_velocity * th.repair_velocity_factor
        if prev_ok:
            return velocity(positions[i - 1], positions[i]) < slow_limit
        if next_ok:
            return velocity(positions[i], positions[i + 1]) < slow_limit

        return self._bridges_spike(positions, i)

    def _is_spike(self, positions: Sequence[Position], i: int) -> bool:
        """Interior point reached and left at impossible speed, off the neighbor line."""
        if i <= 0 or i >= len(positions) - 1:
            return False
        prev, curr, nxt = positions[i - 1], positions[i], positions[i + 1]
        if velocity(prev, curr) <= self.max_velocity or velocity(curr, nxt) <= self.max_velocity:
            return False
        deviation = distance(curr, midpoint(prev, nxt))
        return deviation >= distance(prev, nxt) * self.thresholds.repair_midpoint_ratio

    def _bridges_spike(self, positions: Sequence[Position], i: int) -> bool:
        """Keep a flagged anchor whose suspicion comes from an adjacent spike.

        The position must connect plausibly to the point on the far side of
        the spike. Spikes themselves are never rescued.
        """
        if self._is_spike(positions, i):
            return False

        bridge_limit = self.max_velocity * self.thresholds.spike_bridge_factor
        for neighbor in (i - 1, i + 1):
            if not self._is_spike(positions, neighbor):
                continue
            far = 2 * neighbor - i
            if not 0 <= far < len(positions):
                continue
            a, b = (positions[i], positions[far]) if i < far else (positions[far], positions[i])
            if velocity(a, b) < bridge_limit:
                return True
        return False
