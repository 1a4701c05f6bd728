"""Core domain models for balltrail."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Position:
    """Ball observation in normalized image-plane coordinates."""

    timestamp: float  # seconds
    x: float  # 0-1, left to right
    y: float  # 0-1, top to bottom


@dataclass(frozen=True)
class ReconstructedPosition(Position):
    """Position in a reconstructed trajectory.

    source_index points back into the caller's original input list. It is
    None for samples synthesized by gap interpolation.
    """

    is_interpolated: bool = False
    source_index: int | None = None

    @classmethod
    def from_position(
        cls,
        position: Position,
        source_index: int | None = None,
        is_interpolated: bool = False,
    ) -> ReconstructedPosition:
        """Wrap a plain position, keeping existing metadata when present."""
        if isinstance(position, ReconstructedPosition) and source_index is None:
            source_index = position.source_index
            is_interpolated = position.is_interpolated
        return cls(
            timestamp=position.timestamp,
            x=position.x,
            y=position.y,
            is_interpolated=is_interpolated,
            source_index=source_index,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the camelCase keys overlay consumers expect."""
        return {
            "timestamp": self.timestamp,
            "x": self.x,
            "y": self.y,
            "isInterpolated": self.is_interpolated,
            "sourceIndex": self.source_index,
        }


@dataclass(frozen=True)
class PipelineStats:
    """Counts collected while reconstructing a trajectory."""

    original_count: int = 0
    removed_outliers: int = 0
    interpolated_points: int = 0
    final_count: int = 0
    rejected_invalid: int = 0  # non-finite points dropped before any stage

    def to_dict(self) -> dict[str, int]:
        return {
            "originalCount": self.original_count,
            "removedOutliers": self.removed_outliers,
            "interpolatedPoints": self.interpolated_points,
            "finalCount": self.final_count,
            "rejectedInvalid": self.rejected_invalid,
        }


@dataclass(frozen=True)
class PipelineResult:
    """Reconstructed trajectory plus the stats describing how it was built."""

    positions: tuple[ReconstructedPosition, ...] = field(default_factory=tuple)
    stats: PipelineStats = field(default_factory=PipelineStats)

    def __len__(self) -> int:
        return len(self.positions)

    @property
    def interpolated_count(self) -> int:
        """Number of synthesized samples in the output."""
        return sum(1 for p in self.positions if p.is_interpolated)

    def to_dict(self) -> dict[str, Any]:
        return {
            "filteredPositions": [p.to_dict() for p in self.positions],
            "stats": self.stats.to_dict(),
        }
