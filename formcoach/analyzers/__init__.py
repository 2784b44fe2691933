"""
Exercise Analyzers Module
=========================

Pose geometry, exercise profiles and the per-frame analysis pipeline.
"""

from .pose import LandmarkPoint, PoseFrame, JOINT_NAMES
from .profiles import ExerciseKind, ExerciseProfile, Phase, Severity
from .exercise_library import PROFILES, available_exercises, get_profile
from .phase_detector import Notice, PhaseRepDetector, PhaseResult
from .form_rules import FormRuleEvaluator, RuleEvaluation, Violation
from .temporal import FormMetrics, TemporalAggregator
from .session import RepResult, SessionSummary, SessionTracker
from .exercise_analyzer import ExerciseAnalyzer, FeedbackItem, FrameAnalysis

__all__ = [
    "LandmarkPoint",
    "PoseFrame",
    "JOINT_NAMES",
    "ExerciseKind",
    "ExerciseProfile",
    "Phase",
    "Severity",
    "PROFILES",
    "available_exercises",
    "get_profile",
    "Notice",
    "PhaseRepDetector",
    "PhaseResult",
    "FormRuleEvaluator",
    "RuleEvaluation",
    "Violation",
    "FormMetrics",
    "TemporalAggregator",
    "RepResult",
    "SessionSummary",
    "SessionTracker",
    "ExerciseAnalyzer",
    "FeedbackItem",
    "FrameAnalysis",
]
