"""
Temporal smoothing for ball trajectories.

Centered, distance-weighted moving average over x/y. Timestamps and
interpolation metadata are never touched, so smoothed output lines up
sample-for-sample with its input.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Sequence
from typing import TypeVar

import numpy as np

from balltrail.core.models import Position

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=Position)

# Weight falloff per frame of distance from the window center
WEIGHT_FALLOFF = 0.5


class TemporalSmoother:
    """Suppresses frame-level jitter without shifting timestamps."""

    def __init__(self, window: int = 3):
        self.window = window

    @property
    def is_active(self) -> bool:
        """Even or non-positive windows have no center: smoothing is off."""
        return self.window >= 1 and self.window % 2 == 1

    def weights(self, offsets: np.ndarray) -> np.ndarray:
        return 1.0 / (1.0 + np.abs(offsets) * WEIGHT_FALLOFF)

    def smooth(self, positions: Sequence[P]) -> tuple[P, ...]:
        """
        Smooth x/y of a chronologically sorted trajectory.

        Args:
            positions: Trajectory samples.

        Returns:
            New positions with the same timestamps and metadata. Returned
            unmodified when the window is invalid or longer than the sequence.
        """
        positions = tuple(positions)
        n = len(positions)
        if not self.is_active or n < self.window:
            if not self.is_active:
                logger.debug(f"Smoothing window {self.window} is not a positive odd number, skipping")
            return positions

        xs = np.array([p.x for p in positions], dtype=np.float64)
        ys = np.array([p.y for p in positions], dtype=np.float64)
        half = self.window // 2

        smoothed: list[P] = []
        for i, pos in enumerate(positions):
            # Window clamped to the sequence bounds
            start = max(0, i - half)
            end = min(n - 1, i + half)
            w = self.weights(np.arange(start, end + 1) - i)
            total = float(np.sum(w))
            smoothed.append(
                dataclasses.replace(
                    pos,
                    x=float(np.dot(w, xs[start:end + 1]) / total),
                    y=float(np.dot(w, ys[start:end + 1]) / total),
                )
            )

        return tuple(smoothed)
