"""Unit tests for the reconstruction pipeline."""

from __future__ import annotations

import math

from balltrail.core.models import Position
from balltrail.tracking.pipeline import (
    PipelineConfig,
    TrajectoryPipeline,
    reconstruct_trajectory,
    validate_positions,
)


def _make_pos(t: float, x: float, y: float) -> Position:
    """Helper to create a Position."""
    return Position(timestamp=t, x=x, y=y)


class TestValidatePositions:
    """Tests for input sanitizing."""

    def test_sorts_and_tags_source_index(self) -> None:
        positions = [
            _make_pos(0.2, 0.3, 0.5),
            _make_pos(0.0, 0.1, 0.5),
            _make_pos(0.1, 0.2, 0.5),
        ]
        valid, rejected = validate_positions(positions)

        assert rejected == 0
        assert [p.timestamp for p in valid] == [0.0, 0.1, 0.2]
        assert [p.source_index for p in valid] == [1, 2, 0]

    def test_drops_non_finite(self) -> None:
        positions = [
            _make_pos(0.0, 0.1, 0.5),
            _make_pos(0.1, float("nan"), 0.5),
            _make_pos(float("inf"), 0.2, 0.5),
            _make_pos(0.2, 0.3, 0.5),
        ]
        valid, rejected = validate_positions(positions)

        assert rejected == 2
        assert [p.source_index for p in valid] == [0, 3]

    def test_accepts_mappings_with_upper_case_keys(self) -> None:
        raw = [
            {"timestamp": 0.0, "X": 0.1, "Y": 0.2},
            {"timestamp": 0.1, "x": 0.15, "y": 0.2},
            {"timestamp": 0.2, "x": None, "y": 0.2},
            "not a position",
        ]
        valid, rejected = validate_positions(raw)

        assert rejected == 2
        assert (valid[0].x, valid[0].y) == (0.1, 0.2)
        assert valid[1].x == 0.15

    def test_rejects_boolean_values(self) -> None:
        raw = [
            {"timestamp": True, "x": 0.1, "y": 0.2},
            {"timestamp": 0.1, "x": 0.15, "y": False},
            {"timestamp": 0.2, "x": 0.2, "y": 0.2},
        ]
        valid, rejected = validate_positions(raw)

        assert rejected == 2
        assert len(valid) == 1
        assert valid[0].source_index == 2


class TestTrajectoryPipeline:
    """End-to-end behavior of the stage chain."""

    def test_slow_motion_kept(self) -> None:
        positions = [_make_pos(0.0, 0.1, 0.1), _make_pos(10.0, 0.6, 0.1)]
        result = TrajectoryPipeline().run(positions)

        assert result.stats.removed_outliers == 0
        assert result.stats.final_count == 2
        assert len(result) == 2

    def test_spike_removed(self) -> None:
        positions = [
            _make_pos(0.0, 0.1, 0.1),
            _make_pos(0.033, 0.9, 0.9),
            _make_pos(0.066, 0.15, 0.12),
        ]
        result = TrajectoryPipeline().run(positions)

        assert result.stats.removed_outliers == 1
        assert [p.source_index for p in result.positions] == [0, 2]
        assert (result.positions[0].x, result.positions[0].y) == (0.1, 0.1)
        assert (result.positions[1].x, result.positions[1].y) == (0.15, 0.12)

    def test_gap_interpolated(self) -> None:
        positions = [_make_pos(0.0, 0.1, 0.1), _make_pos(0.2, 0.3, 0.1)]
        result = TrajectoryPipeline(PipelineConfig(fps=30.0)).run(positions)

        assert result.stats.interpolated_points == 5
        assert result.interpolated_count == 5
        assert result.stats.final_count == 7
        interpolated = [p for p in result.positions if p.is_interpolated]
        assert all(0.0 < p.timestamp < 0.2 for p in interpolated)

    def test_discontinuity_left_open(self) -> None:
        positions = [_make_pos(0.0, 0.1, 0.1), _make_pos(1.0, 0.5, 0.1)]
        result = TrajectoryPipeline().run(positions)

        assert result.stats.interpolated_points == 0
        assert len(result) == 2

    def test_empty_input(self) -> None:
        result = TrajectoryPipeline().run([])

        assert result.positions == ()
        assert result.stats.original_count == 0
        assert result.stats.final_count == 0

    def test_single_position(self) -> None:
        result = TrajectoryPipeline().run([_make_pos(0.5, 0.4, 0.4)])

        assert len(result) == 1
        assert result.stats.original_count == 1
        assert result.stats.removed_outliers == 0
        assert result.stats.interpolated_points == 0
        assert result.positions[0].source_index == 0

    def test_invalid_points_counted_separately(self) -> None:
        positions = [
            _make_pos(0.0, 0.1, 0.5),
            _make_pos(1 / 30, float("nan"), 0.5),
            _make_pos(2 / 30, 0.11, 0.5),
        ]
        result = TrajectoryPipeline().run(positions)

        assert result.stats.rejected_invalid == 1
        assert result.stats.original_count == 2
        assert all(math.isfinite(p.x) and math.isfinite(p.y) for p in result.positions)

    def test_unsorted_input_sorted_output(self) -> None:
        positions = [
            _make_pos(2 / 30, 0.12, 0.5),
            _make_pos(0.0, 0.10, 0.5),
            _make_pos(1 / 30, 0.11, 0.5),
        ]
        result = TrajectoryPipeline().run(positions)

        timestamps = [p.timestamp for p in result.positions]
        assert timestamps == sorted(timestamps)
        assert [p.source_index for p in result.positions] == [1, 2, 0]

    def test_count_identity(self, line_trajectory) -> None:
        positions = list(line_trajectory)
        positions[10] = _make_pos(positions[10].timestamp, 0.8, 0.1)
        del positions[20:26]  # gap of 7 frames

        stats = TrajectoryPipeline().run(positions).stats
        assert stats.removed_outliers > 0
        assert stats.interpolated_points > 0
        assert stats.final_count == (
            stats.original_count - stats.removed_outliers + stats.interpolated_points
        )

    def test_all_stages_disabled(self) -> None:
        config = PipelineConfig(
            remove_outliers=False,
            interpolate_gaps=False,
            smooth_trajectory=False,
        )
        positions = [
            _make_pos(0.0, 0.1, 0.1),
            _make_pos(0.033, 0.9, 0.9),
            _make_pos(0.3, 0.15, 0.12),
        ]
        result = TrajectoryPipeline(config).run(positions)

        assert [(p.timestamp, p.x, p.y) for p in result.positions] == [
            (p.timestamp, p.x, p.y) for p in positions
        ]
        assert result.stats.removed_outliers == 0
        assert result.stats.interpolated_points == 0

    def test_input_not_mutated(self, line_trajectory) -> None:
        snapshot = list(line_trajectory)
        TrajectoryPipeline().run(line_trajectory)
        assert line_trajectory == snapshot

    def test_to_dict_uses_camel_case(self) -> None:
        result = TrajectoryPipeline().run([_make_pos(0.0, 0.1, 0.1)])
        data = result.to_dict()

        assert set(data) == {"filteredPositions", "stats"}
        assert data["filteredPositions"][0]["isInterpolated"] is False
        assert data["stats"]["originalCount"] == 1


class TestReconstructTrajectory:
    """Tests for the memoized entry point."""

    def test_same_tuple_returns_cached_result(self, line_trajectory) -> None:
        positions = tuple(line_trajectory)
        config = PipelineConfig()

        first = reconstruct_trajectory(positions, config)
        second = reconstruct_trajectory(positions, config)
        assert first is second

    def test_list_input_not_cached(self, line_trajectory) -> None:
        first = reconstruct_trajectory(line_trajectory)
        second = reconstruct_trajectory(line_trajectory)

        assert first is not second
        assert first == second

    def test_deterministic(self, line_trajectory) -> None:
        config = PipelineConfig(smoothing_window=5)
        assert reconstruct_trajectory(line_trajectory, config) == reconstruct_trajectory(
            list(line_trajectory), config
        )

    def test_from_settings(self) -> None:
        from balltrail.core.config import BalltrailConfig

        settings = BalltrailConfig(pipeline={"max_velocity": 1.5, "smoothing_window": 5})
        pipeline = TrajectoryPipeline.from_settings(settings)

        assert pipeline.config.max_velocity == 1.5
        assert pipeline.config.smoothing_window == 5
