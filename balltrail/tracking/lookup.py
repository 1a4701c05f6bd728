"""Playback-time lookup over reconstructed trajectories."""

from __future__ import annotations

import bisect
from collections.abc import Sequence
from typing import TypeVar

from balltrail.core.config import get_config
from balltrail.core.models import Position

P = TypeVar("P", bound=Position)


def find_nearest_position(
    positions: Sequence[P],
    timestamp: float,
    threshold: float | None = None,
) -> P | None:
    """
    Find the sample closest in time to a playback timestamp.

    Args:
        positions: Trajectory sorted by timestamp.
        timestamp: Playback time in seconds.
        threshold: Max time difference in seconds to accept a match.
            Defaults to the configured lookup.time_threshold.

    Returns:
        Nearest position within threshold, or None.
    """
    if not positions:
        return None
    if threshold is None:
        threshold = get_config().lookup.time_threshold

    idx = bisect.bisect_left(positions, timestamp, key=lambda p: p.timestamp)

    nearest: P | None = None
    best_diff = float("inf")
    # Only the insertion point and its neighbors can be closest
    for i in range(max(0, idx - 1), min(len(positions), idx + 2)):
        diff = abs(positions[i].timestamp - timestamp)
        if diff < best_diff and diff <= threshold:
            best_diff = diff
            nearest = positions[i]
    return nearest
