"""
Per-sequence motion tables and trajectory kinematics.

MotionTable precomputes step distances, velocities and turn angles once per
input sequence so that every outlier detector reads the same values instead
of rescanning the positions. TrajectoryKinematics summarizes a reconstructed
trajectory for statistics consumers.
"""

from __future__ import annotations

import functools
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from balltrail.core.models import Position, ReconstructedPosition


def _read_only(arr: np.ndarray) -> np.ndarray:
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True, eq=False)
class MotionTable:
    """Read-only motion values derived from one position sequence.

    Step arrays have length n-1; step k describes the pair (k, k+1).
    Per-index arrays have length n.
    """

    timestamps: np.ndarray
    xs: np.ndarray
    ys: np.ndarray
    step_dx: np.ndarray
    step_dy: np.ndarray
    step_distance: np.ndarray
    step_dt: np.ndarray
    step_velocity: np.ndarray  # 0 where step_dt <= 0
    turn_angle: np.ndarray  # degrees; 0 at both endpoints

    @property
    def size(self) -> int:
        return len(self.timestamps)

    def distance_between(self, i: int, j: int) -> float:
        return float(np.hypot(self.xs[j] - self.xs[i], self.ys[j] - self.ys[i]))

    def window_velocity(self, span: int) -> np.ndarray:
        """Average velocity over `span` steps ending at each index.

        Entry i covers positions i-span .. i. Entries with i < span, or with a
        non-positive time delta, are 0.
        """
        n = self.size
        result = np.zeros(n, dtype=np.float64)
        if span < 1 or n <= span:
            return result

        dist = np.hypot(self.xs[span:] - self.xs[:-span], self.ys[span:] - self.ys[:-span])
        dt = self.timestamps[span:] - self.timestamps[:-span]
        with np.errstate(divide="ignore", invalid="ignore"):
            vel = np.where(dt > 0, dist / dt, 0.0)
        result[span:] = vel
        return result

    def trailing_velocity(self, lookback: int) -> np.ndarray:
        """Mean of up to `lookback` step velocities leading into each index.

        Entry i (for i >= 2) averages the steps min(lookback, i) back from i.
        Entries 0 and 1 are 0: one step is not enough context.
        """
        n = self.size
        result = np.zeros(n, dtype=np.float64)
        if lookback < 1:
            return result
        cumulative = np.concatenate(([0.0], np.cumsum(self.step_velocity)))
        for i in range(2, n):
            span = min(lookback, i)
            result[i] = (cumulative[i] - cumulative[i - span]) / span
        return result


def _build_motion_table(positions: Sequence[Position]) -> MotionTable:
    ts = np.array([p.timestamp for p in positions], dtype=np.float64)
    xs = np.array([p.x for p in positions], dtype=np.float64)
    ys = np.array([p.y for p in positions], dtype=np.float64)

    dx = np.diff(xs)
    dy = np.diff(ys)
    dt = np.diff(ts)
    dist = np.hypot(dx, dy)

    with np.errstate(divide="ignore", invalid="ignore"):
        vel = np.where(dt > 0, dist / dt, 0.0)

    angles = np.zeros(len(positions), dtype=np.float64)
    if len(positions) >= 3:
        mag = dist[:-1] * dist[1:]
        dot = dx[:-1] * dx[1:] + dy[:-1] * dy[1:]
        with np.errstate(divide="ignore", invalid="ignore"):
            cos_angle = np.where(mag > 0, dot / mag, 1.0)
        angles[1:-1] = np.degrees(np.arccos(np.clip(cos_angle, -1.0, 1.0)))

    return MotionTable(
        timestamps=_read_only(ts),
        xs=_read_only(xs),
        ys=_read_only(ys),
        step_dx=_read_only(dx),
        step_dy=_read_only(dy),
        step_distance=_read_only(dist),
        step_dt=_read_only(dt),
        step_velocity=_read_only(vel),
        turn_angle=_read_only(angles),
    )


@functools.lru_cache(maxsize=32)
def _cached_motion_table(positions: tuple[Position, ...]) -> MotionTable:
    return _build_motion_table(positions)


def motion_table(positions: Sequence[Position]) -> MotionTable:
    """Get the motion table for a sequence, memoized for tuple inputs."""
    if isinstance(positions, tuple):
        return _cached_motion_table(positions)
    return _build_motion_table(positions)


@dataclass(frozen=True)
class TrajectoryKinematics:
    """Aggregate motion statistics for a reconstructed trajectory."""

    duration: float  # seconds between first and last sample
    path_length: float  # normalized units travelled
    mean_speed: float  # path_length / duration
    peak_speed: float  # fastest single step, units/sec
    interpolated_fraction: float  # share of synthesized samples


def compute_kinematics(positions: Sequence[Position]) -> TrajectoryKinematics:
    """
    Compute kinematic statistics from a chronologically sorted trajectory.

    Args:
        positions: Trajectory samples (plain or reconstructed positions).

    Returns:
        TrajectoryKinematics; all zeros for fewer than two samples.
    """
    if not positions:
        return TrajectoryKinematics(0.0, 0.0, 0.0, 0.0, 0.0)

    interpolated = sum(
        1 for p in positions
        if isinstance(p, ReconstructedPosition) and p.is_interpolated
    )
    interpolated_fraction = interpolated / len(positions)

    if len(positions) < 2:
        return TrajectoryKinematics(0.0, 0.0, 0.0, 0.0, interpolated_fraction)

    table = motion_table(positions)
    duration = float(table.timestamps[-1] - table.timestamps[0])
    path_length = float(np.sum(table.step_distance))
    mean_speed = path_length / duration if duration > 0 else 0.0
    peak_speed = float(np.max(table.step_velocity))

    return TrajectoryKinematics(
        duration=duration,
        path_length=path_length,
        mean_speed=mean_speed,
        peak_speed=peak_speed,
        interpolated_fraction=interpolated_fraction,
    )
