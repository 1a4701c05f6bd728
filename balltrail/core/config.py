"""Configuration management for balltrail."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from platformdirs import user_config_dir
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from balltrail.core.errors import ConfigError

if TYPE_CHECKING:
    from balltrail.tracking.pipeline import PipelineConfig


CONFIG_FILENAME = "balltrail.yaml"


# =============================================================================
# Nested Configuration Classes
# =============================================================================


class OutlierSettings(BaseModel):
    """Outlier detector thresholds.

    Empirical defaults with no derivation behind them; recalibrate against
    ground-truth trajectories before trusting them on a new sport or camera.
    """

    # Multi-frame velocity windows (multiples of max_velocity)
    window3_velocity_factor: float = 1.2
    window5_velocity_factor: float = 1.5

    # Sharp turns: angle in degrees, both segments longer than min_segment
    sharp_turn_angle_deg: float = 90.0
    sharp_turn_min_segment: float = 0.02

    # Ping-pong: back near the point two frames earlier
    ping_pong_ratio: float = 0.3
    ping_pong_min_distance: float = 0.05

    # Sustained deviation from the start of a short window
    sustained_min_points: int = 6
    sustained_distance: float = 0.15
    sustained_max_dt: float = 0.15

    # Velocity-adaptive per-frame distance ceiling
    adaptive_min_distance: float = 0.03
    adaptive_max_distance: float = 0.12
    adaptive_velocity_scale: float = 0.08
    adaptive_lookback: int = 3

    # Repair pass
    repair_midpoint_ratio: float = 0.4
    repair_velocity_factor: float = 0.5
    spike_bridge_factor: float = 1.5


class PipelineSettings(BaseModel):
    """Trajectory reconstruction stage settings."""

    remove_outliers: bool = True
    max_velocity: float = 0.6  # normalized units per second
    interpolate_gaps: bool = True
    max_gap_duration: float = 0.5  # seconds; longer gaps are left open
    smooth_trajectory: bool = True
    smoothing_window: int = 3  # frames, odd
    fps: float = 30.0


class LookupSettings(BaseModel):
    """Playback lookup settings."""

    # Max distance in seconds between playback time and a trajectory sample
    time_threshold: float = 0.1


# =============================================================================
# Main Configuration Class
# =============================================================================


class BalltrailConfig(BaseSettings):
    """Configuration settings for balltrail."""

    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    outliers: OutlierSettings = Field(default_factory=OutlierSettings)
    lookup: LookupSettings = Field(default_factory=LookupSettings)

    model_config = SettingsConfigDict(
        env_prefix="BALLTRAIL_",
        env_nested_delimiter="__",  # Allows BALLTRAIL_PIPELINE__MAX_VELOCITY
    )

    @classmethod
    def _validated(cls, source: str, **data: Any) -> BalltrailConfig:
        """Construct settings, reporting bad values as ConfigError."""
        try:
            return cls(**data)
        except ValidationError as e:
            fields = ", ".join(".".join(str(part) for part in err["loc"]) for err in e.errors())
            raise ConfigError(
                f"Invalid settings in {source}: {fields}",
                hint="Check value types in the config file and BALLTRAIL_* environment variables",
            ) from e

    # -------------------------------------------------------------------------
    # YAML Loading
    # -------------------------------------------------------------------------

    @classmethod
    def from_yaml(cls, path: Path) -> BalltrailConfig:
        """Load configuration from YAML file."""
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(
                f"Invalid YAML in {path}: {e}",
                hint="Check the file for indentation or quoting mistakes",
            ) from e

        if data is None:
            return cls._validated(str(path))
        if not isinstance(data, dict):
            raise ConfigError(
                f"Config file {path} must contain a mapping at the top level",
            )
        return cls._validated(str(path), **data)

    @classmethod
    def find_and_load(cls) -> BalltrailConfig:
        """Find and load config from standard locations."""
        locations = [
            Path.cwd() / CONFIG_FILENAME,
            Path(user_config_dir("balltrail")) / CONFIG_FILENAME,
        ]

        for path in locations:
            if path.exists():
                return cls.from_yaml(path)

        # Fall back to defaults + environment variables
        return cls._validated("environment")

    def to_pipeline_config(self) -> PipelineConfig:
        """Build the immutable config consumed by the reconstruction pipeline."""
        from balltrail.tracking.outlier_filter import OutlierThresholds
        from balltrail.tracking.pipeline import PipelineConfig

        return PipelineConfig(
            **self.pipeline.model_dump(),
            outlier_thresholds=OutlierThresholds(**self.outliers.model_dump()),
        )


# =============================================================================
# Global Config Instance
# =============================================================================

_config: BalltrailConfig | None = None


def get_config() -> BalltrailConfig:
    """Get global configuration instance."""
    global _config
    if _config is None:
        _config = BalltrailConfig.find_and_load()
    return _config


def set_config(config: BalltrailConfig) -> None:
    """Set global configuration instance."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset global configuration instance (useful for testing)."""
    global _config
    _config = None
