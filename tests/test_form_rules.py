"""
Unit tests for the form rule evaluator.
"""

import logging
import pytest
import sys
import os
from dataclasses import replace

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from formcoach.analyzers.exercise_library import get_profile
from formcoach.analyzers.form_rules import FormRuleEvaluator
from formcoach.analyzers.profiles import (
    FORM_RULE_TYPES,
    AlignmentRule,
    AngleRule,
    Phase,
    RuleFeedback,
    Severity,
)
from formcoach.analyzers.scoring import flat_penalty_score, severity_weighted_score

from pose_factory import leg_frame, with_points

JERKY = [0.1, 2.0] * 5
STEADY = [0.4] * 10


def rule_ids(evaluation):
    return [v.rule_id for v in evaluation.violations]


@pytest.fixture
def squat_rules():
    return FormRuleEvaluator(get_profile("squat"))


class TestFormRuleEvaluator:
    """Test suite for rule evaluation on squat frames."""

    def test_dispatch_covers_all_rule_types(self, squat_rules):
        assert set(squat_rules._checks) == set(FORM_RULE_TYPES)

    def test_clean_squat(self, squat_rules):
        """Test a 90 degree squat with upright torso has no violations."""
        evaluation = squat_rules.evaluate(leg_frame(90), phase=Phase.DOWN)
        assert evaluation.violations == ()
        assert evaluation.score == 100.0

    def test_rounded_back_is_critical(self, squat_rules):
        """Test a torso leaning far forward costs 30 points."""
        frame = leg_frame(90)
        hip = frame.landmark("left_hip")
        frame = with_points(
            frame,
            left_shoulder=(hip.x + 0.3, hip.y - 0.1),
            right_shoulder=(hip.x + 0.3, hip.y - 0.1),
        )
        evaluation = squat_rules.evaluate(frame, phase=Phase.DOWN)
        assert rule_ids(evaluation) == ["spine-neutral"]
        assert evaluation.score == 70.0
        assert evaluation.has_critical
        violation = evaluation.violations[0]
        assert violation.message == "Rounded back"
        assert violation.correction == "Chest up. Neutral spine."

    def test_knee_valgus(self, squat_rules):
        frame = with_points(leg_frame(170), right_knee=(0.6, 0.7))
        evaluation = squat_rules.evaluate(frame, phase=Phase.UP)
        assert rule_ids(evaluation) == ["knee-valgus"]

    def test_forward_lean(self, squat_rules):
        """Test a head far ahead of the hips is a major violation."""
        frame = leg_frame(90)
        hip = frame.landmark("left_hip")
        frame = with_points(frame, nose=(hip.x + 0.25, hip.y - 0.4))
        evaluation = squat_rules.evaluate(frame, phase=Phase.DOWN)
        assert rule_ids(evaluation) == ["excessive-forward-lean"]
        assert evaluation.score == 85.0
        assert evaluation.violations[0].measured == pytest.approx(0.25)

    def test_small_lean_is_allowed(self, squat_rules):
        frame = leg_frame(90)
        hip = frame.landmark("left_hip")
        frame = with_points(frame, nose=(hip.x + 0.1, hip.y - 0.4))
        assert "excessive-forward-lean" not in rule_ids(squat_rules.evaluate(frame, phase=Phase.DOWN))

    def test_uneven_hips(self, squat_rules):
        frame = leg_frame(170)
        hip = frame.landmark("right_hip")
        frame = with_points(frame, right_hip=(hip.x, hip.y + 0.08))
        evaluation = squat_rules.evaluate(frame, phase=Phase.UP)
        assert "hip-level" in rule_ids(evaluation)
        assert evaluation.score == severity_weighted_score(
            [v.severity for v in evaluation.violations]
        )

    def test_depth_rule_only_in_down_phase(self, squat_rules):
        """Test a phase-scoped rule is skipped outside its phases."""
        frame = leg_frame(125)
        assert "squat-depth" not in rule_ids(squat_rules.evaluate(frame, phase=Phase.UP))
        assert "squat-depth" in rule_ids(squat_rules.evaluate(frame, phase=Phase.DOWN))

    def test_velocity_needs_enough_samples(self, squat_rules):
        """Test too few velocity samples never raise a violation."""
        evaluation = squat_rules.evaluate(leg_frame(170), JERKY[:4], phase=Phase.UP)
        assert "controlled-tempo" not in rule_ids(evaluation)

    def test_jerky_velocity(self, squat_rules):
        evaluation = squat_rules.evaluate(leg_frame(170), JERKY, phase=Phase.UP)
        assert rule_ids(evaluation) == ["controlled-tempo"]
        assert evaluation.score == 95.0

    def test_steady_velocity(self, squat_rules):
        evaluation = squat_rules.evaluate(leg_frame(170), STEADY, phase=Phase.UP)
        assert evaluation.violations == ()


class TestRuleFailures:
    """Test suite for rules that cannot be computed."""

    def test_missing_landmark_skips_rule(self, squat_rules, caplog):
        """Test a missing landmark skips only the rules that need it."""
        frame = with_points(leg_frame(90), right_hip=None)
        with caplog.at_level(logging.WARNING):
            evaluation = squat_rules.evaluate(frame, STEADY, phase=Phase.DOWN)
        assert "hip-level" in evaluation.skipped
        assert "squat-depth" not in evaluation.skipped
        assert evaluation.score == 100.0
        assert "hip-level" in caplog.text

    def test_unknown_calculation_is_skipped(self):
        profile = replace(get_profile("squat"), form_rules=(
            AngleRule(
                id="shin",
                severity=Severity.MAJOR,
                feedback=RuleFeedback("Shin", "Shin"),
                optimal=60,
                calculation="shin-angle",
            ),
            AlignmentRule(
                id="twist",
                severity=Severity.MAJOR,
                feedback=RuleFeedback("Twist", "Twist"),
                calculation="spinal-twist",
            ),
        ))
        evaluation = FormRuleEvaluator(profile).evaluate(leg_frame(90))
        assert evaluation.skipped == ("shin", "twist")
        assert evaluation.violations == ()

    def test_scalar_optimum(self):
        """Test a scalar optimum is valid within the tolerance."""
        rule = AngleRule(
            id="knee",
            severity=Severity.MINOR,
            feedback=RuleFeedback("Knee", "Knee"),
            optimal=90,
            tolerance=5,
            points=("left_hip", "left_knee", "left_ankle"),
        )
        evaluator = FormRuleEvaluator(replace(get_profile("squat"), form_rules=(rule,)))
        assert evaluator.evaluate(leg_frame(94)).violations == ()
        violation, = evaluator.evaluate(leg_frame(100)).violations
        assert violation.measured == pytest.approx(100.0)

    def test_middle_point_deviation(self):
        """Test the glute bridge keeps hips between shoulders and knees."""
        evaluator = FormRuleEvaluator(get_profile("glute-bridge"))
        frame = leg_frame(90)
        hip = frame.landmark("left_hip")
        drifted = with_points(frame, left_hip=(hip.x + 0.5, hip.y))
        assert "hips-centered" in rule_ids(evaluator.evaluate(drifted))


class TestScoring:
    """Test suite for the scoring strategies."""

    @pytest.mark.parametrize("count", [0, 1, 3, 7, 50])
    def test_flat_penalty_is_clamped(self, count):
        assert 0.0 <= flat_penalty_score(count) <= 100.0

    def test_flat_penalty(self):
        assert flat_penalty_score(2) == 70.0
        assert flat_penalty_score(10) == 0.0

    def test_severity_weights_stack(self):
        severities = [Severity.CRITICAL, Severity.MAJOR, Severity.MINOR]
        assert severity_weighted_score(severities) == 50.0

    def test_severity_score_is_clamped(self):
        assert severity_weighted_score([Severity.CRITICAL] * 10) == 0.0
        assert severity_weighted_score([]) == 100.0
