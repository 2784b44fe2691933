"""
Exercise Analyzer Module
========================

Per-frame analysis pipeline for one exercise session.

Classes:
    FeedbackItem: One structured feedback entry (severity + text pair)
    FrameAnalysis: Everything produced for a single pose frame
    ExerciseAnalyzer: Runs phase detection, form rules and temporal
        metrics for every incoming frame

Usage:
    analyzer = ExerciseAnalyzer("squat")
    for frame in frames:
        result = analyzer.analyze(frame)
    summary = analyzer.summary()

One analyzer belongs to exactly one session and must not be fed from
several threads at once.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .exercise_library import get_profile
from .form_rules import FormRuleEvaluator
from .phase_detector import Notice, PhaseRepDetector
from .pose import PoseFrame
from .profiles import Phase, Severity
from .session import SessionSummary, SessionTracker
from .temporal import FormMetrics, TemporalAggregator
from ..config import AnalyzerConfig

logger = logging.getLogger(__name__)

# Reps scored at or above this count as valid
VALID_REP_SCORE = 70.0

REPOSITION_MESSAGE = "Move so your whole body is visible to the camera"


@dataclass(frozen=True)
class FeedbackItem:
    """Structured feedback; ``source`` is "phase", "rule" or "system"."""
    source: str
    message: str
    correction: str = ""
    severity: Optional[Severity] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "severity": self.severity.value if self.severity else None,
            "message": self.message,
            "correction": self.correction,
        }


@dataclass(frozen=True)
class FrameAnalysis:
    """Result of analyzing one pose frame."""
    exercise_id: str
    timestamp: float
    phase: Optional[Phase]
    confidence: float
    form_score: float
    phase_score: float
    feedback: Tuple[FeedbackItem, ...] = ()
    rep_completed: bool = False
    rep_count: int = 0
    hold_seconds: Optional[float] = None
    notices: Tuple[Notice, ...] = ()
    metrics: Optional[FormMetrics] = None
    missing_landmarks: Tuple[str, ...] = ()
    reposition_streak: int = 0

    @property
    def needs_reposition(self) -> bool:
        return Notice.REPOSITION in self.notices

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "exercise_id": self.exercise_id,
            "timestamp": self.timestamp,
            "phase": self.phase.value if self.phase else None,
            "confidence": round(self.confidence, 3),
            "form_score": round(self.form_score, 1),
            "phase_score": round(self.phase_score, 1),
            "feedback": [item.to_dict() for item in self.feedback],
            "rep_completed": self.rep_completed,
            "rep_count": self.rep_count,
            "hold_seconds": None if self.hold_seconds is None else round(self.hold_seconds, 2),
            "notices": [notice.value for notice in self.notices],
            "metrics": self.metrics.to_dict() if self.metrics else None,
            "missing_landmarks": list(self.missing_landmarks),
            "reposition_streak": self.reposition_streak,
        }


class ExerciseAnalyzer:
    """
    Analyzer for a single exercise session.

    Attributes:
        profile (ExerciseProfile): Exercise being analyzed
        tracker (SessionTracker): Session state and totals
        detector (PhaseRepDetector): Phase state machine and rep counter
        evaluator (FormRuleEvaluator): Declarative form rules
        aggregator (TemporalAggregator): Rolling buffers and metrics

    Raises:
        ConfigurationError: If the exercise id is unknown
    """

    def __init__(self, exercise_id: str, config: Optional[AnalyzerConfig] = None):
        self.config = config or AnalyzerConfig()
        self.profile = get_profile(exercise_id)

        self.tracker = SessionTracker(self.profile)
        self.detector = PhaseRepDetector(self.profile, self.config)
        self.evaluator = FormRuleEvaluator(self.profile, self.config)
        self.aggregator = TemporalAggregator(self.profile, self.config)

        self._reposition_streak = 0
        self.last_analysis: Optional[FrameAnalysis] = None
        logger.info("Analyzer created for '%s'", self.profile.id)

    @property
    def exercise_id(self) -> str:
        return self.profile.id

    def analyze(self, frame: PoseFrame) -> FrameAnalysis:
        """
        Process one pose frame.

        Args:
            frame: Pose frame from the pose estimator

        Returns:
            FrameAnalysis for the frame
        """
        phase_result = self.detector.process(frame, self.tracker)

        if phase_result.needs_reposition:
            self._reposition_streak += 1
            if self._reposition_streak == 1:
                logger.info(
                    "%s: reposition needed, missing %s",
                    self.profile.id, ", ".join(phase_result.missing_landmarks),
                )
            analysis = FrameAnalysis(
                exercise_id=self.profile.id,
                timestamp=frame.timestamp,
                phase=phase_result.phase,
                confidence=0.0,
                form_score=0.0,
                phase_score=0.0,
                feedback=(FeedbackItem(
                    source="system",
                    message=REPOSITION_MESSAGE,
                    correction="Not visible: " + ", ".join(phase_result.missing_landmarks),
                ),),
                rep_count=phase_result.rep_count,
                notices=phase_result.notices,
                missing_landmarks=phase_result.missing_landmarks,
                reposition_streak=self._reposition_streak,
            )
            self.last_analysis = analysis
            return analysis

        if self._reposition_streak:
            logger.info("%s: back in view after %d frames", self.profile.id, self._reposition_streak)
        self._reposition_streak = 0

        self.aggregator.push_frame(frame)
        evaluation = self.evaluator.evaluate(frame, self.aggregator.velocities, phase_result.phase)
        self.aggregator.push_score(evaluation.score)
        metrics = self.aggregator.metrics(evaluation.score, evaluation.violations)

        feedback: List[FeedbackItem] = [
            FeedbackItem(source="phase", message=message) for message in phase_result.failed_checks
        ]
        feedback.extend(
            FeedbackItem(
                source="rule",
                message=violation.message,
                correction=violation.correction,
                severity=violation.severity,
            )
            for violation in evaluation.violations
        )

        notices = list(phase_result.notices)
        if (phase_result.rep_completed
                and self.profile.rep_counting.requires_full_rom
                and metrics.range_of_motion < 100.0):
            notices.append(Notice.PARTIAL_RANGE)
        if metrics.fatigue >= self.config.fatigue_warning_threshold:
            notices.append(Notice.FATIGUE)
        if evaluation.has_critical:
            notices.append(Notice.CRITICAL_VIOLATION)

        analysis = FrameAnalysis(
            exercise_id=self.profile.id,
            timestamp=frame.timestamp,
            phase=phase_result.phase,
            confidence=phase_result.confidence,
            form_score=evaluation.score,
            phase_score=phase_result.form_score,
            feedback=tuple(feedback),
            rep_completed=phase_result.rep_completed,
            rep_count=phase_result.rep_count,
            hold_seconds=phase_result.hold_seconds,
            notices=tuple(notices),
            metrics=metrics,
        )
        self.last_analysis = analysis
        return analysis

    def reset_for_new_set(self) -> None:
        """Start the next set; session totals are kept, buffers are cleared."""
        self.tracker.reset_for_new_set()
        self.aggregator.reset()
        self._reposition_streak = 0
        self.last_analysis = None

    def summary(self) -> SessionSummary:
        return self.tracker.summary()

    def stats(self) -> Dict[str, Any]:
        """Current counters for display."""
        session = self.tracker.session
        return {
            "exercise_id": self.profile.id,
            "phase": session.current_phase.value if session.current_phase else None,
            "set_number": session.set_number,
            "rep_count": session.rep_count,
            "total_reps": self.tracker.total_reps,
            "valid_reps": sum(1 for rep in session.reps if rep.form_score >= VALID_REP_SCORE),
            "hold_seconds": (
                self.tracker.hold_seconds(session.last_timestamp)
                if session.last_timestamp is not None else None
            ),
            "average_form_score": self.tracker.average_score,
            "elapsed_seconds": round(self.tracker.elapsed_seconds, 1),
            "reposition_streak": self._reposition_streak,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "profile": self.profile.to_dict(),
            "stats": self.stats(),
            "last_analysis": self.last_analysis.to_dict() if self.last_analysis else None,
        }
