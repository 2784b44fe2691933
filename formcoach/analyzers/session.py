"""
Session Module
==============

Session state for one exercise, and the tracker that owns it.

Classes:
    RepResult: Immutable record of one completed repetition
    AnalysisSession: Mutable per-exercise session state
    SessionSummary: Immutable snapshot returned to callers
    SessionTracker: Owns an AnalysisSession and derives totals from it

All times come from pose frame timestamps (seconds), so a session's
duration is the span of frames it has processed.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .profiles import ExerciseProfile, Phase

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RepResult:
    """Record of a single repetition."""
    rep_number: int
    form_score: float
    duration_seconds: float
    feedback: Tuple[str, ...] = ()
    set_number: int = 1
    rushed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rep_number": self.rep_number,
            "set_number": self.set_number,
            "form_score": round(self.form_score, 1),
            "duration_seconds": round(self.duration_seconds, 2),
            "feedback": list(self.feedback),
            "rushed": self.rushed,
        }


@dataclass
class AnalysisSession:
    """Complete exercise session data."""
    exercise_id: str

    # Timing (frame timestamps)
    start_time: Optional[float] = None
    last_timestamp: Optional[float] = None
    rep_start_time: Optional[float] = None
    hold_start_time: Optional[float] = None

    # Phase tracking
    current_phase: Optional[Phase] = None
    last_phase: Optional[Phase] = None

    # Progress
    set_number: int = 1
    rep_count: int = 0
    reps: List[RepResult] = field(default_factory=list)
    completed_holds: int = 0
    best_hold_seconds: float = 0.0

    # Running form score
    score_total: float = 0.0
    score_samples: int = 0


@dataclass(frozen=True)
class SessionSummary:
    """Immutable end-of-session snapshot."""
    exercise_id: str
    total_reps: int
    total_holds: int
    best_hold_seconds: float
    sets: int
    average_form_score: float
    total_duration_seconds: float
    calories_burned: float
    reps: Tuple[RepResult, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "exercise_id": self.exercise_id,
            "total_reps": self.total_reps,
            "total_holds": self.total_holds,
            "best_hold_seconds": round(self.best_hold_seconds, 1),
            "sets": self.sets,
            "average_form_score": self.average_form_score,
            "total_duration_seconds": self.total_duration_seconds,
            "calories_burned": self.calories_burned,
            "reps": [rep.to_dict() for rep in self.reps],
        }


class SessionTracker:
    """
    Owns the AnalysisSession for one exercise.

    The session is only mutated through these methods, which the phase
    detector calls while processing a frame.
    """

    def __init__(self, profile: ExerciseProfile):
        self.profile = profile
        self.session = AnalysisSession(exercise_id=profile.id)

    def observe(self, timestamp: float) -> None:
        """Advance the session clock to a processed frame."""
        session = self.session
        if session.start_time is None:
            session.start_time = timestamp
        if session.rep_start_time is None:
            session.rep_start_time = timestamp
        session.last_timestamp = timestamp

    def transition_to(self, phase: Phase) -> Optional[Phase]:
        """Enter ``phase`` and return the phase that was left."""
        session = self.session
        session.last_phase = session.current_phase
        session.current_phase = phase
        return session.last_phase

    def record_rep(self, form_score: float, timestamp: float, feedback: List[str]) -> RepResult:
        """Count a completed rep and restart the rep timer."""
        session = self.session
        session.rep_count += 1
        started = session.rep_start_time if session.rep_start_time is not None else timestamp
        duration = max(0.0, timestamp - started)

        rep = RepResult(
            rep_number=session.rep_count,
            form_score=form_score,
            duration_seconds=duration,
            feedback=tuple(feedback),
            set_number=session.set_number,
            rushed=duration < self.profile.rep_counting.min_duration,
        )
        session.reps.append(rep)
        session.rep_start_time = timestamp
        logger.info(
            "%s: rep %d (set %d) score=%.0f duration=%.2fs",
            session.exercise_id, rep.rep_number, rep.set_number, form_score, duration,
        )
        return rep

    def record_score(self, score: float) -> None:
        """Add a frame score to the running average; zero scores are skipped."""
        if score > 0:
            self.session.score_total += score
            self.session.score_samples += 1

    def start_hold(self, timestamp: float) -> None:
        if self.session.hold_start_time is None:
            self.session.hold_start_time = timestamp

    def end_hold(self, timestamp: float) -> None:
        """Close an open hold and keep the best hold time."""
        session = self.session
        if session.hold_start_time is None:
            return
        held = max(0.0, timestamp - session.hold_start_time)
        session.completed_holds += 1
        session.best_hold_seconds = max(session.best_hold_seconds, held)
        session.hold_start_time = None
        logger.info("%s: hold ended after %.1fs", session.exercise_id, held)

    def hold_seconds(self, timestamp: float) -> Optional[float]:
        """Seconds held so far, or None when not holding."""
        if self.session.hold_start_time is None:
            return None
        return max(0.0, timestamp - self.session.hold_start_time)

    @property
    def elapsed_seconds(self) -> float:
        session = self.session
        if session.start_time is None or session.last_timestamp is None:
            return 0.0
        return max(0.0, session.last_timestamp - session.start_time)

    @property
    def average_score(self) -> float:
        session = self.session
        if session.score_samples == 0:
            return 100.0
        return round(session.score_total / session.score_samples, 1)

    @property
    def total_reps(self) -> int:
        return len(self.session.reps)

    def reset_for_new_set(self) -> None:
        """
        Start the next set of the same exercise.

        Clears rep count, phase and hold timer; start time, exercise and
        the rep history are kept. A hold still open is recorded first.
        """
        session = self.session
        if session.last_timestamp is not None:
            self.end_hold(session.last_timestamp)
        session.rep_count = 0
        session.current_phase = None
        session.last_phase = None
        session.hold_start_time = None
        session.rep_start_time = session.last_timestamp
        session.set_number += 1
        logger.info("%s: starting set %d", session.exercise_id, session.set_number)

    def summary(self) -> SessionSummary:
        """Snapshot of the session; does not modify it."""
        session = self.session
        duration = round(self.elapsed_seconds, 1)

        # An open hold counts toward the best time but not the hold total
        best_hold = session.best_hold_seconds
        if session.last_timestamp is not None:
            best_hold = max(best_hold, self.hold_seconds(session.last_timestamp) or 0.0)

        return SessionSummary(
            exercise_id=session.exercise_id,
            total_reps=self.total_reps,
            total_holds=session.completed_holds,
            best_hold_seconds=best_hold,
            sets=session.set_number,
            average_form_score=self.average_score,
            total_duration_seconds=duration,
            calories_burned=self.profile.calories.estimate(self.total_reps, duration),
            reps=tuple(session.reps),
        )
