"""Unit tests for gap interpolation."""

from __future__ import annotations

import pytest

from balltrail.core.models import Position, ReconstructedPosition
from balltrail.tracking.gap_interpolator import GapInterpolator


def _make_pos(t: float, x: float, y: float) -> Position:
    """Helper to create a Position."""
    return Position(timestamp=t, x=x, y=y)


class TestMissingFrames:
    """Tests for gap sizing."""

    def test_two_hundred_ms_at_30fps(self) -> None:
        assert GapInterpolator(fps=30.0).missing_frames(0.2) == 5

    def test_normal_frame_spacing_is_not_a_gap(self) -> None:
        interpolator = GapInterpolator(fps=30.0)
        assert interpolator.missing_frames(1 / 30) == 0
        assert interpolator.missing_frames(2 / 30) == 0

    def test_gap_longer_than_max_duration(self) -> None:
        assert GapInterpolator(max_gap_duration=0.5, fps=30.0).missing_frames(0.6) == 0

    def test_gap_at_max_duration_is_filled(self) -> None:
        assert GapInterpolator(max_gap_duration=0.5, fps=30.0).missing_frames(0.5) == 14

    @pytest.mark.parametrize("fps", [0.0, -30.0, float("nan"), float("inf")])
    def test_unusable_fps_disables_interpolation(self, fps: float) -> None:
        interpolator = GapInterpolator(fps=fps)
        assert interpolator.frame_interval is None
        assert interpolator.missing_frames(0.2) == 0


class TestGapInterpolator:
    """Tests for Catmull-Rom gap filling."""

    def test_fills_gap_with_interpolated_points(self) -> None:
        positions = [_make_pos(0.0, 0.1, 0.1), _make_pos(0.2, 0.3, 0.1)]
        result = GapInterpolator(max_gap_duration=0.5, fps=30.0).interpolate(positions)

        assert result.added_count == 5
        assert len(result.positions) == 7
        middle = result.positions[1:-1]
        assert all(p.is_interpolated for p in middle)
        assert all(0.0 < p.timestamp < 0.2 for p in middle)
        assert all(p.source_index is None for p in middle)

    def test_original_points_kept_and_tagged(self) -> None:
        positions = [_make_pos(0.0, 0.1, 0.1), _make_pos(0.2, 0.3, 0.1)]
        result = GapInterpolator().interpolate(positions)

        first, last = result.positions[0], result.positions[-1]
        assert (first.timestamp, first.x, first.y) == (0.0, 0.1, 0.1)
        assert (last.timestamp, last.x, last.y) == (0.2, 0.3, 0.1)
        assert not first.is_interpolated
        assert first.source_index == 0
        assert last.source_index == 1

    def test_discontinuity_not_bridged(self) -> None:
        positions = [_make_pos(0.0, 0.1, 0.1), _make_pos(1.0, 0.5, 0.1)]
        result = GapInterpolator(max_gap_duration=0.5, fps=30.0).interpolate(positions)

        assert result.added_count == 0
        assert len(result.positions) == 2

    def test_regular_spacing_passes_through(self, line_trajectory) -> None:
        result = GapInterpolator().interpolate(line_trajectory)

        assert result.added_count == 0
        assert [(p.timestamp, p.x, p.y) for p in result.positions] == [
            (p.timestamp, p.x, p.y) for p in line_trajectory
        ]

    def test_timestamps_strictly_increase(self) -> None:
        positions = [
            _make_pos(0.0, 0.1, 0.1),
            _make_pos(0.2, 0.2, 0.2),
            _make_pos(0.233, 0.21, 0.2),
            _make_pos(0.5, 0.4, 0.3),
        ]
        result = GapInterpolator().interpolate(positions)

        timestamps = [p.timestamp for p in result.positions]
        assert all(b > a for a, b in zip(timestamps, timestamps[1:]))
        assert result.added_count > 0

    def test_collinear_uniform_motion_stays_linear(self) -> None:
        """Catmull-Rom through evenly spaced collinear points is a straight line."""
        positions = [
            _make_pos(0.0, 0.1, 0.5),
            _make_pos(0.2, 0.2, 0.5),
            _make_pos(0.4, 0.3, 0.5),
            _make_pos(0.6, 0.4, 0.5),
        ]
        result = GapInterpolator(max_gap_duration=0.5, fps=30.0).interpolate(positions)

        # Samples between the 2nd and 3rd points have full spline context
        start = next(i for i, p in enumerate(result.positions) if p.source_index == 1)
        middle = result.positions[start + 1:start + 6]
        assert all(p.is_interpolated for p in middle)
        for j, p in enumerate(middle, start=1):
            assert p.x == pytest.approx(0.2 + 0.1 * j / 6)
            assert p.y == pytest.approx(0.5)

    def test_existing_metadata_preserved(self) -> None:
        positions = [
            ReconstructedPosition(0.0, 0.1, 0.1, source_index=4),
            ReconstructedPosition(0.2, 0.3, 0.1, source_index=9),
        ]
        result = GapInterpolator().interpolate(positions)
        assert result.positions[0].source_index == 4
        assert result.positions[-1].source_index == 9

    def test_single_point_and_empty(self) -> None:
        interpolator = GapInterpolator()
        assert interpolator.interpolate([]).positions == ()
        single = interpolator.interpolate([_make_pos(0.0, 0.1, 0.1)])
        assert len(single.positions) == 1
        assert single.added_count == 0


class TestUnusableMaxGap:
    """Gap limits that cannot bound a gap disable interpolation."""

    @pytest.mark.parametrize("max_gap", [float("inf"), float("nan"), 0.0, -1.0])
    def test_no_points_synthesized(self, max_gap: float) -> None:
        interpolator = GapInterpolator(max_gap_duration=max_gap, fps=30.0)
        positions = [_make_pos(0.0, 0.1, 0.1), _make_pos(1000.0, 0.5, 0.1)]

        assert not interpolator.max_gap_usable
        assert interpolator.missing_frames(0.2) == 0
        result = interpolator.interpolate(positions)
        assert result.added_count == 0
        assert len(result.positions) == 2
