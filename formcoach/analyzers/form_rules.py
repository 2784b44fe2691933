"""
Form Rules Module
=================

Evaluates a profile's declarative form rules against a pose frame.

Each rule type has its own check method, looked up by rule class. The
lookup table is validated against the full set of rule types when the
evaluator is created, so adding a rule type without a check fails at
construction instead of being silently ignored.

A rule that cannot be computed for a frame (missing landmark, unknown
calculation) is logged and skipped; the remaining rules still run.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from . import biomechanics
from .pose import PoseFrame
from .profiles import (
    FORM_RULE_TYPES,
    AlignmentRule,
    AngleRule,
    ExerciseProfile,
    FormRule,
    Phase,
    Severity,
    SymmetryRule,
    VelocityRule,
)
from .scoring import severity_weighted_score
from ..config import AnalyzerConfig
from ..errors import ConfigurationError, FormCoachError, RuleEvaluationError

logger = logging.getLogger(__name__)

ANGLE_CALCULATIONS: Dict[str, Callable[[PoseFrame, str], float]] = {
    "knee-angle": biomechanics.knee_angle,
    "elbow-angle": biomechanics.elbow_angle,
    "hip-angle": biomechanics.hip_angle,
    "torso-angle": lambda frame, side: biomechanics.torso_angle(frame),
}


@dataclass(frozen=True)
class Violation:
    """A failed form rule for the current frame."""
    rule_id: str
    kind: str
    severity: Severity
    message: str
    correction: str
    measured: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "rule_id": self.rule_id,
            "kind": self.kind,
            "severity": self.severity.value,
            "message": self.message,
            "correction": self.correction,
            "measured": None if self.measured is None else round(self.measured, 2),
        }


@dataclass(frozen=True)
class RuleEvaluation:
    """Violations found in one frame and the severity-weighted score."""
    violations: Tuple[Violation, ...]
    score: float
    skipped: Tuple[str, ...] = ()

    @property
    def has_critical(self) -> bool:
        return any(v.severity == Severity.CRITICAL for v in self.violations)


def _violation(rule: FormRule, measured: Optional[float] = None) -> Violation:
    return Violation(
        rule_id=rule.id,
        kind=rule.kind,
        severity=rule.severity,
        message=rule.feedback.violation,
        correction=rule.feedback.correction,
        measured=measured,
    )


class FormRuleEvaluator:
    """
    Checks every form rule of a profile on each frame.

    Attributes:
        profile (ExerciseProfile): Exercise whose rules are evaluated
        config (AnalyzerConfig): Supplies the minimum velocity sample count
    """

    def __init__(self, profile: ExerciseProfile, config: Optional[AnalyzerConfig] = None):
        self.profile = profile
        self.config = config or AnalyzerConfig()

        self._checks = {
            AngleRule: self._check_angle,
            AlignmentRule: self._check_alignment,
            SymmetryRule: self._check_symmetry,
            VelocityRule: self._check_velocity,
        }
        unhandled = [t.__name__ for t in FORM_RULE_TYPES if t not in self._checks]
        if unhandled:
            raise ConfigurationError(f"No check for rule types: {', '.join(unhandled)}")

    def evaluate(
        self,
        frame: PoseFrame,
        velocities: Sequence[float] = (),
        phase: Optional[Phase] = None,
    ) -> RuleEvaluation:
        """
        Evaluate all applicable rules for one frame.

        Args:
            frame: Current pose frame
            velocities: Buffered velocity samples, oldest first
            phase: Active phase; rules scoped to other phases are skipped

        Returns:
            RuleEvaluation with violations in rule order
        """
        violations: List[Violation] = []
        skipped: List[str] = []

        for rule in self.profile.form_rules:
            if rule.phases and phase not in rule.phases:
                continue

            check = self._checks.get(type(rule))
            if check is None:
                raise ConfigurationError(f"Unsupported form rule: {type(rule).__name__}")

            try:
                violation = check(rule, frame, velocities)
            except (FormCoachError, KeyError, ValueError, ArithmeticError) as e:
                logger.warning("%s: rule '%s' skipped: %s", self.profile.id, rule.id, e)
                skipped.append(rule.id)
                continue

            if violation is not None:
                violations.append(violation)

        score = severity_weighted_score(v.severity for v in violations)
        return RuleEvaluation(violations=tuple(violations), score=score, skipped=tuple(skipped))

    def _check_angle(self, rule: AngleRule, frame: PoseFrame, velocities) -> Optional[Violation]:
        if rule.calculation is not None:
            calculate = ANGLE_CALCULATIONS.get(rule.calculation)
            if calculate is None:
                raise RuleEvaluationError(f"Unknown angle calculation: {rule.calculation}")
            value = calculate(frame, rule.side)
        elif len(rule.points) == 3:
            first, vertex, second = (frame.landmark(name) for name in rule.points)
            value = biomechanics.angle(first, vertex, second)
        else:
            raise RuleEvaluationError(f"Angle rule '{rule.id}' needs a calculation or 3 points")

        if isinstance(rule.optimal, tuple):
            low, high = rule.optimal
            valid = low - rule.tolerance <= value <= high + rule.tolerance
        else:
            valid = abs(value - rule.optimal) <= rule.tolerance

        return None if valid else _violation(rule, value)

    def _check_alignment(self, rule: AlignmentRule, frame: PoseFrame, velocities) -> Optional[Violation]:
        if rule.calculation == "knee-valgus":
            collapsed = (biomechanics.detect_knee_valgus(frame, "left")
                         or biomechanics.detect_knee_valgus(frame, "right"))
            return _violation(rule) if collapsed else None

        if rule.calculation == "middle-point-deviation":
            if len(rule.points) != 3:
                raise RuleEvaluationError(f"Alignment rule '{rule.id}' needs 3 points")
            p1, p2, p3 = (frame.landmark(name) for name in rule.points)
            if biomechanics.is_aligned(p1, p2, p3, rule.axis, rule.tolerance):
                return None
            deviation = abs(p2.axis(rule.axis) - (p1.axis(rule.axis) + p3.axis(rule.axis)) / 2)
            return _violation(rule, deviation)

        if rule.calculation == "forward-lean":
            lean = biomechanics.forward_lean(frame)
            return _violation(rule, lean) if lean > rule.tolerance else None

        raise RuleEvaluationError(f"Unknown alignment calculation: {rule.calculation}")

    def _check_symmetry(self, rule: SymmetryRule, frame: PoseFrame, velocities) -> Optional[Violation]:
        left, right = (frame.landmark(name) for name in rule.points)
        difference = biomechanics.symmetry(left, right, rule.axis)
        return _violation(rule, difference) if difference > rule.tolerance else None

    def _check_velocity(self, rule: VelocityRule, frame: PoseFrame, velocities) -> Optional[Violation]:
        # Not enough history yet: no evidence of jerky movement
        if len(velocities) < self.config.velocity_min_samples:
            return None
        value = biomechanics.smoothness(list(velocities))
        return _violation(rule, value) if value < rule.tolerance else None
