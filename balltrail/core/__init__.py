"""Core domain models and configuration."""

from balltrail.core.config import BalltrailConfig, get_config
from balltrail.core.errors import BalltrailError, ConfigError, TrajectoryFileError
from balltrail.core.models import (
    PipelineResult,
    PipelineStats,
    Position,
    ReconstructedPosition,
)

__all__ = [
    "BalltrailConfig",
    "BalltrailError",
    "ConfigError",
    "PipelineResult",
    "PipelineStats",
    "Position",
    "ReconstructedPosition",
    "TrajectoryFileError",
    "get_config",
]
