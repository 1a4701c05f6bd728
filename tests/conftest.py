"""Pytest configuration and fixtures."""

import pytest

from balltrail.core.config import reset_config
from balltrail.core.models import Position


@pytest.fixture(autouse=True)
def _fresh_config():
    """Each test starts without a cached global config."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def line_trajectory() -> list[Position]:
    """30 frames of a ball moving slowly right at 30fps (0.15 units/s)."""
    return [Position(timestamp=i / 30, x=0.2 + i * 0.005, y=0.5) for i in range(30)]
