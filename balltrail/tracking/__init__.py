"""Ball trajectory reconstruction: outlier removal, gap filling, smoothing."""

from balltrail.tracking.gap_interpolator import GapInterpolator, InterpolationResult
from balltrail.tracking.geometry import catmull_rom, distance, lerp, turn_angle, velocity
from balltrail.tracking.kinematics import (
    MotionTable,
    TrajectoryKinematics,
    compute_kinematics,
    motion_table,
)
from balltrail.tracking.lookup import find_nearest_position
from balltrail.tracking.outlier_filter import (
    AdaptiveDistanceDetector,
    Detector,
    FrameVelocityDetector,
    OutlierFilter,
    OutlierResult,
    OutlierThresholds,
    PingPongDetector,
    SharpTurnDetector,
    SustainedDeviationDetector,
    WindowVelocityDetector,
    default_detectors,
)
from balltrail.tracking.pipeline import (
    PipelineConfig,
    TrajectoryPipeline,
    reconstruct_trajectory,
    validate_positions,
)
from balltrail.tracking.smoother import TemporalSmoother
from balltrail.tracking.trajectory_io import load_positions, save_result

__all__ = [
    # Geometry
    "catmull_rom",
    "distance",
    "lerp",
    "turn_angle",
    "velocity",
    # Kinematics
    "MotionTable",
    "TrajectoryKinematics",
    "compute_kinematics",
    "motion_table",
    # Outlier filter
    "Detector",
    "FrameVelocityDetector",
    "WindowVelocityDetector",
    "SharpTurnDetector",
    "PingPongDetector",
    "SustainedDeviationDetector",
    "AdaptiveDistanceDetector",
    "OutlierFilter",
    "OutlierResult",
    "OutlierThresholds",
    "default_detectors",
    # Gap interpolation
    "GapInterpolator",
    "InterpolationResult",
    # Smoothing
    "TemporalSmoother",
    # Pipeline
    "PipelineConfig",
    "TrajectoryPipeline",
    "reconstruct_trajectory",
    "validate_positions",
    # Lookup and I/O
    "find_nearest_position",
    "load_positions",
    "save_result",
]
