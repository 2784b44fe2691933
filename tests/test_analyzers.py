"""
Unit tests for the exercise analyzer pipeline.

Tests for per-frame analysis, reposition handling, safety notices
and set management.
"""

import json
import pytest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from formcoach.analyzers import ExerciseAnalyzer, Notice, Phase
from formcoach.config import AnalyzerConfig
from formcoach.errors import ConfigurationError

from pose_factory import leg_frame, sequence, with_points

UP = 170
DOWN = 90
ONE_REP = [UP] * 5 + [DOWN] * 5 + [UP]


class TestExerciseAnalyzer:
    """Test suite for ExerciseAnalyzer."""

    def test_unknown_exercise_fails_fast(self):
        """Test an unknown id raises at construction."""
        with pytest.raises(ConfigurationError):
            ExerciseAnalyzer("handstand")

    def test_clean_down_frame(self):
        """Test a clean 90 degree squat frame."""
        analysis = ExerciseAnalyzer("squat").analyze(leg_frame(DOWN))
        assert analysis.phase == Phase.DOWN
        assert analysis.confidence == 1.0
        assert analysis.form_score == 100.0
        assert analysis.phase_score == 100.0
        assert analysis.feedback == ()
        assert analysis.notices == ()
        assert analysis.metrics is not None

    def test_rep_sequence(self):
        analyzer = ExerciseAnalyzer("squat")
        results = [analyzer.analyze(frame) for frame in sequence([UP, DOWN, UP])]
        assert [r.rep_count for r in results] == [0, 0, 1]
        assert results[-1].rep_completed

    def test_rule_feedback_items(self):
        """Test rule violations become feedback with severity and correction."""
        frame = with_points(leg_frame(UP), left_knee=(0.6, 0.7))
        analysis = ExerciseAnalyzer("squat").analyze(frame)
        rule_items = [item for item in analysis.feedback if item.source == "rule"]
        assert [item.message for item in rule_items] == ["Knees caving in"]
        assert rule_items[0].correction == "Push knees out"
        assert Notice.CRITICAL_VIOLATION in analysis.notices
        assert analysis.form_score == 70.0

    def test_phase_check_feedback(self):
        """Test failing phase checks are reported as phase feedback."""
        analyzer = ExerciseAnalyzer("squat")
        analyzer.analyze(leg_frame(DOWN, timestamp=0.0))
        analysis = analyzer.analyze(leg_frame(135, timestamp=0.1))
        assert Notice.INSUFFICIENT_SIGNAL in analysis.notices
        phase_items = [item for item in analysis.feedback if item.source == "phase"]
        assert [item.message for item in phase_items] == ["Go lower until thighs are parallel"]
        assert analysis.phase_score == 85.0


class TestReposition:
    """Test suite for blind frames."""

    def test_reposition_collapses_into_one_message(self):
        analyzer = ExerciseAnalyzer("squat")
        blind = [with_points(frame, left_knee=None) for frame in sequence([DOWN] * 3)]
        results = [analyzer.analyze(frame) for frame in blind]

        for streak, analysis in enumerate(results, start=1):
            assert analysis.needs_reposition
            assert len(analysis.feedback) == 1
            assert analysis.feedback[0].source == "system"
            assert analysis.reposition_streak == streak
            assert analysis.missing_landmarks == ("left_knee",)
            assert analysis.metrics is None

        assert analyzer.tracker.session.start_time is None
        assert len(analyzer.aggregator.frames) == 0

    def test_streak_resets_when_visible(self):
        analyzer = ExerciseAnalyzer("squat")
        analyzer.analyze(with_points(leg_frame(DOWN, timestamp=0.0), left_hip=None))
        analysis = analyzer.analyze(leg_frame(DOWN, timestamp=0.1))
        assert analysis.reposition_streak == 0
        assert not analysis.needs_reposition
        assert analyzer.stats()["reposition_streak"] == 0


class TestSafetyNotices:
    """Test suite for partial range, fatigue and critical notices."""

    def test_partial_range_rep(self):
        """Test a shallow hip travel flags the rep as partial range."""
        analyzer = ExerciseAnalyzer("squat")
        results = [analyzer.analyze(frame) for frame in sequence(ONE_REP)]
        assert results[-1].rep_completed
        assert Notice.PARTIAL_RANGE in results[-1].notices
        assert results[-1].metrics.range_of_motion < 100.0

    def test_full_range_rep(self):
        analyzer = ExerciseAnalyzer("squat")
        results = [analyzer.analyze(frame) for frame in sequence(ONE_REP, thigh=0.3)]
        assert results[-1].rep_completed
        assert results[-1].metrics.range_of_motion == 100.0
        assert Notice.PARTIAL_RANGE not in results[-1].notices

    def test_partial_range_ignored_when_not_required(self):
        analyzer = ExerciseAnalyzer("lunge")
        results = [analyzer.analyze(frame) for frame in sequence(ONE_REP)]
        assert results[-1].rep_completed
        assert Notice.PARTIAL_RANGE not in results[-1].notices

    def test_fatigue_notice(self):
        """Test the fatigue notice follows the configured threshold."""
        analyzer = ExerciseAnalyzer("squat", AnalyzerConfig(fatigue_warning_threshold=0.0))
        assert Notice.FATIGUE in analyzer.analyze(leg_frame(DOWN)).notices

        analyzer = ExerciseAnalyzer("squat")
        assert Notice.FATIGUE not in analyzer.analyze(leg_frame(DOWN)).notices

    def test_fatigue_after_form_breaks_down(self):
        """Test clean early frames followed by critical faults trip the default threshold."""
        frames = sequence([UP] * 10)
        hip = frames[0].landmark("left_hip")
        worn_out = [
            with_points(
                frame,
                left_shoulder=(hip.x + 0.3, hip.y - 0.1),
                right_shoulder=(hip.x + 0.3, hip.y - 0.1),
                right_knee=(0.6, 0.7),
            )
            for frame in frames[5:]
        ]

        analyzer = ExerciseAnalyzer("squat")
        fresh = [analyzer.analyze(frame) for frame in frames[:5]]
        tired = [analyzer.analyze(frame) for frame in worn_out]

        assert [r.form_score for r in fresh] == [100.0] * 5
        assert all(Notice.FATIGUE not in r.notices for r in fresh)
        assert [r.form_score for r in tired] == [40.0] * 5
        assert tired[-1].metrics.fatigue == 1.0
        assert Notice.FATIGUE in tired[-1].notices
        assert Notice.CRITICAL_VIOLATION in tired[-1].notices


class TestSetsAndSummary:
    """Test suite for set management and summaries."""

    def test_reset_for_new_set(self):
        analyzer = ExerciseAnalyzer("squat")
        for frame in sequence([UP, DOWN, UP]):
            analyzer.analyze(frame)
        analyzer.reset_for_new_set()

        stats = analyzer.stats()
        assert stats["rep_count"] == 0
        assert stats["total_reps"] == 1
        assert stats["set_number"] == 2
        assert stats["phase"] is None
        assert len(analyzer.aggregator.frames) == 0

    def test_summary(self):
        analyzer = ExerciseAnalyzer("squat")
        for frame in sequence([UP, DOWN, UP, DOWN, UP]):
            analyzer.analyze(frame)
        summary = analyzer.summary()
        assert summary.total_reps == 2
        assert summary.calories_burned == round(2 * 0.32, 1)
        assert 0.0 <= summary.average_form_score <= 100.0

    def test_valid_reps(self):
        analyzer = ExerciseAnalyzer("squat")
        for frame in sequence([UP, DOWN, UP]):
            analyzer.analyze(frame)
        assert analyzer.stats()["valid_reps"] == 1

    def test_hold_stats(self):
        analyzer = ExerciseAnalyzer("plank")
        frame = leg_frame(UP)
        hold = with_points(frame, left_ankle=(0.5, 0.95), right_ankle=(0.5, 0.95))
        analysis = analyzer.analyze(hold)
        assert analysis.phase == Phase.HOLD
        assert analysis.hold_seconds == 0.0
        assert analyzer.stats()["hold_seconds"] == 0.0

    def test_to_dict_is_json_serializable(self):
        analyzer = ExerciseAnalyzer("squat")
        analyzer.analyze(leg_frame(DOWN))
        data = json.loads(json.dumps(analyzer.to_dict()))
        assert data["last_analysis"]["phase"] == "down"
        assert data["profile"]["id"] == "squat"
