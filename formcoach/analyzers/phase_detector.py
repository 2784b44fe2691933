"""
Phase Detector Module
=====================

Movement phase state machine with rep and hold counting.

Each frame, every phase that declares angle checks gets a confidence equal
to the share of its checks that pass. The most confident phase wins, with
ties going to the phase declared first. When nothing matches, the previous
phase is kept so noise between two phase ranges does not flip the state.

Reps are counted on exactly one transition: DOWN -> UP. Holds are timed
from the frame that enters HOLD until the frame that leaves it. TIMED
exercises only track phase and elapsed time.

Usage:
    detector = PhaseRepDetector(profile)
    tracker = SessionTracker(profile)
    result = detector.process(frame, tracker)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .pose import PoseFrame
from .profiles import ExerciseKind, ExerciseProfile, Phase
from .scoring import flat_penalty_score
from .session import SessionTracker
from ..config import AnalyzerConfig

logger = logging.getLogger(__name__)


class Notice(Enum):
    """Per-frame status and safety signals."""
    REPOSITION = "reposition"
    INSUFFICIENT_SIGNAL = "insufficient_signal"
    PARTIAL_RANGE = "partial_range"
    FATIGUE = "fatigue"
    CRITICAL_VIOLATION = "critical_violation"


@dataclass(frozen=True)
class PhaseResult:
    """Outcome of phase detection for one frame."""
    phase: Optional[Phase]
    confidence: float
    form_score: float
    failed_checks: Tuple[str, ...] = ()
    rep_completed: bool = False
    rep_count: int = 0
    hold_seconds: Optional[float] = None
    phase_changed: bool = False
    notices: Tuple[Notice, ...] = ()
    missing_landmarks: Tuple[str, ...] = ()

    @property
    def needs_reposition(self) -> bool:
        return Notice.REPOSITION in self.notices


class PhaseRepDetector:
    """
    Selects the current phase and counts reps/holds for one profile.

    Attributes:
        profile (ExerciseProfile): Exercise being analyzed
        config (AnalyzerConfig): Visibility threshold and check penalty
    """

    def __init__(self, profile: ExerciseProfile, config: Optional[AnalyzerConfig] = None):
        self.profile = profile
        self.config = config or AnalyzerConfig()

    def phase_confidences(self, frame: PoseFrame) -> Dict[Phase, float]:
        """Confidence per phase; phases without angle checks are left out."""
        confidences = {}
        for definition in self.profile.phases:
            checks = definition.angle_checks
            if not checks:
                continue
            matched = sum(1 for check in checks if check.matches(frame))
            confidences[definition.phase] = matched / len(checks)
        return confidences

    def select_phase(self, frame: PoseFrame) -> Tuple[Optional[Phase], float]:
        """Highest-confidence phase, or (None, 0.0) when nothing matches."""
        best_phase: Optional[Phase] = None
        best_confidence = 0.0
        # dicts keep declaration order, so strict ">" favors the first phase
        for phase, confidence in self.phase_confidences(frame).items():
            if confidence > best_confidence:
                best_phase = phase
                best_confidence = confidence
        return best_phase, best_confidence

    def score_phase(self, frame: PoseFrame, phase: Optional[Phase]) -> Tuple[float, List[str]]:
        """Coarse score and failing-check messages for the active phase."""
        failed: List[str] = []
        definition = self.profile.phase_definition(phase)
        if definition is not None:
            for check in definition.angle_checks:
                # Unmeasurable checks are not penalized
                if check.matches(frame) is False:
                    failed.append(check.feedback)
        return flat_penalty_score(len(failed), self.config.phase_check_penalty), failed

    def process(self, frame: PoseFrame, tracker: SessionTracker) -> PhaseResult:
        """
        Run phase detection for one frame and update the session.

        Args:
            frame: Incoming pose frame
            tracker: Session tracker for this exercise

        Returns:
            PhaseResult for the frame. When a required landmark is missing
            or not visible enough, the result asks the user to reposition
            and the session is left untouched.
        """
        session = tracker.session

        missing = frame.missing(self.profile.required_landmarks, self.config.visibility_threshold)
        if missing:
            logger.debug("%s: reposition, missing %s", self.profile.id, ", ".join(missing))
            return PhaseResult(
                phase=session.current_phase,
                confidence=0.0,
                form_score=0.0,
                rep_count=session.rep_count,
                notices=(Notice.REPOSITION,),
                missing_landmarks=tuple(missing),
            )

        tracker.observe(frame.timestamp)

        notices: List[Notice] = []
        phase, confidence = self.select_phase(frame)
        if phase is None:
            phase = session.current_phase
            notices.append(Notice.INSUFFICIENT_SIGNAL)
            logger.debug("%s: insufficient signal, keeping phase %s", self.profile.id, phase)

        score, failed = self.score_phase(frame, phase)

        rep_completed = False
        phase_changed = phase is not None and phase != session.current_phase
        if phase_changed:
            previous = tracker.transition_to(phase)
            if (self.profile.kind == ExerciseKind.REPS
                    and previous == Phase.DOWN
                    and phase == Phase.UP):
                tracker.record_rep(score, frame.timestamp, failed)
                rep_completed = True

        hold_seconds = None
        if self.profile.kind == ExerciseKind.HOLD:
            if session.current_phase == Phase.HOLD:
                tracker.start_hold(frame.timestamp)
            else:
                tracker.end_hold(frame.timestamp)
            hold_seconds = tracker.hold_seconds(frame.timestamp)

        tracker.record_score(score)

        return PhaseResult(
            phase=phase,
            confidence=confidence,
            form_score=score,
            failed_checks=tuple(failed),
            rep_completed=rep_completed,
            rep_count=session.rep_count,
            hold_seconds=hold_seconds,
            phase_changed=phase_changed,
            notices=tuple(notices),
        )
