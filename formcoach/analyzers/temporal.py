"""
Temporal Aggregator Module
==========================

Bounded rolling history of frames, velocities and scores, and the metrics
derived from it: consistency, fatigue, smoothness and range of motion.
"""

from collections import deque
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from . import biomechanics
from .form_rules import Violation
from .pose import PoseFrame
from .profiles import ExerciseProfile
from ..config import AnalyzerConfig

NEUTRAL_ROM = 50.0
FULL_ROM = 100.0

# Score spread / drop that maps to the bottom of the [0, 1] range
CONSISTENCY_SPREAD = 50.0
FATIGUE_DROP = 30.0
FATIGUE_WINDOW = 5
CONSISTENCY_MIN_SAMPLES = 3


@dataclass(frozen=True)
class FormMetrics:
    """Per-frame quality metrics."""
    score: float
    violations: Tuple[Violation, ...] = ()
    average_velocity: float = 0.0
    smoothness: float = 1.0
    consistency: float = 1.0
    fatigue: float = 0.0
    range_of_motion: float = NEUTRAL_ROM

    def to_dict(self) -> dict:
        return {
            "score": round(self.score, 1),
            "violations": [v.to_dict() for v in self.violations],
            "average_velocity": round(self.average_velocity, 4),
            "smoothness": round(self.smoothness, 3),
            "consistency": round(self.consistency, 3),
            "fatigue": round(self.fatigue, 3),
            "range_of_motion": round(self.range_of_motion, 1),
        }


class TemporalAggregator:
    """
    Rolling buffers for one analyzer instance.

    All three buffers evict their oldest entry once full.
    """

    def __init__(self, profile: ExerciseProfile, config: Optional[AnalyzerConfig] = None):
        self.profile = profile
        self.config = config or AnalyzerConfig()

        self.frames = deque(maxlen=self.config.frame_buffer_size)
        self.velocities = deque(maxlen=self.config.velocity_buffer_size)
        self.scores = deque(maxlen=self.config.score_buffer_size)

    def push_frame(self, frame: PoseFrame) -> Optional[float]:
        """
        Buffer a frame and the tracked joint's speed since the previous one.

        Returns:
            The new velocity sample, or None if none could be taken
        """
        sample = None
        joint = self.profile.velocity_joint
        if self.frames:
            previous = self.frames[-1]
            if joint in previous.landmarks and joint in frame.landmarks:
                sample = biomechanics.velocity(previous, frame, joint)
                self.velocities.append(sample)
        self.frames.append(frame)
        return sample

    def push_score(self, score: float) -> None:
        self.scores.append(score)

    def consistency(self) -> float:
        """1 - min(std(scores) / 50, 1); 1.0 with fewer than 3 scores."""
        if len(self.scores) < CONSISTENCY_MIN_SAMPLES:
            return 1.0
        spread = float(np.std(np.asarray(self.scores, dtype=float)))
        return 1.0 - min(spread / CONSISTENCY_SPREAD, 1.0)

    def fatigue(self) -> float:
        """Normalized drop from the earliest to the latest buffered scores."""
        if len(self.scores) < FATIGUE_WINDOW:
            return 0.0
        scores = list(self.scores)
        early = float(np.mean(scores[:FATIGUE_WINDOW]))
        late = float(np.mean(scores[-FATIGUE_WINDOW:]))
        return max(0.0, min(1.0, (early - late) / FATIGUE_DROP))

    def average_velocity(self) -> float:
        if not self.velocities:
            return 0.0
        return float(np.mean(np.asarray(self.velocities, dtype=float)))

    def smoothness(self) -> float:
        return biomechanics.smoothness(list(self.velocities))

    def range_of_motion(self) -> float:
        """
        Percentage of the expected trigger travel covered by buffered frames.

        Timer-based exercises are always at full range. With too few frames
        the result is a neutral 50%.
        """
        trigger = self.profile.rep_counting
        if trigger.is_timer:
            return FULL_ROM
        if len(self.frames) < self.config.rom_min_frames:
            return NEUTRAL_ROM

        positions = [
            frame.landmarks[trigger.joint].axis(trigger.axis)
            for frame in self.frames
            if trigger.joint in frame.landmarks
        ]
        if not positions:
            return NEUTRAL_ROM

        span = trigger.expected_span
        if span <= 0:
            return FULL_ROM
        observed = max(positions) - min(positions)
        return min(observed / span * 100.0, FULL_ROM)

    def metrics(self, score: float, violations: Tuple[Violation, ...] = ()) -> FormMetrics:
        return FormMetrics(
            score=score,
            violations=violations,
            average_velocity=self.average_velocity(),
            smoothness=self.smoothness(),
            consistency=self.consistency(),
            fatigue=self.fatigue(),
            range_of_motion=self.range_of_motion(),
        )

    def reset(self) -> None:
        self.frames.clear()
        self.velocities.clear()
        self.scores.clear()
