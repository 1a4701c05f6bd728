"""Exceptions raised at balltrail's outer surfaces (files, config, CLI).

The reconstruction pipeline itself never raises; it degrades to a no-op.
"""


class BalltrailError(Exception):
    """Base exception for balltrail errors."""

    def __init__(self, message: str, hint: str | None = None):
        self.message = message
        self.hint = hint
        super().__init__(message)


class TrajectoryFileError(BalltrailError):
    """Error reading or writing a trajectory file."""
    pass


class ConfigError(BalltrailError):
    """Error loading a configuration file."""
    pass
