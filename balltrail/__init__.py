"""balltrail - Ball trajectory reconstruction for playback overlays."""

__version__ = "0.1.0"

# Core exports for library usage
from balltrail.core.config import BalltrailConfig, get_config
from balltrail.core.models import PipelineResult, PipelineStats, Position, ReconstructedPosition
from balltrail.tracking.pipeline import PipelineConfig, TrajectoryPipeline, reconstruct_trajectory

__all__ = [
    "BalltrailConfig",
    "PipelineConfig",
    "PipelineResult",
    "PipelineStats",
    "Position",
    "ReconstructedPosition",
    "TrajectoryPipeline",
    "get_config",
    "reconstruct_trajectory",
]
