"""
Exercise Profile Module
=======================

Read-only, declarative description of an exercise: which joints must be
visible, how its phases are recognised, which form rules apply, how reps
are triggered and how calories are estimated.

Form rules are a closed set of rule types (AngleRule, AlignmentRule,
SymmetryRule, VelocityRule). Profiles reject anything else at
construction time. A rule with a non-empty ``phases`` tuple only applies
while one of those phases is active.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Tuple, Union

from . import biomechanics
from .pose import AXES, PoseFrame
from ..errors import ConfigurationError

TIMER_TRIGGER = "timer"


class ExerciseKind(Enum):
    """
    How progress is counted for an exercise.

    REPS counts DOWN -> UP transitions and HOLD times the HOLD phase.
    TIMED is duration-only: phases and form rules still run, but no reps
    or holds are recorded and progress is the elapsed time (calories per
    minute).
    """
    REPS = "reps"
    HOLD = "hold"
    TIMED = "timed"


class Phase(Enum):
    """Movement phase tags."""
    START = "start"
    DOWN = "down"
    HOLD = "hold"
    UP = "up"
    TRANSITION = "transition"


class Severity(Enum):
    """Form rule severity levels."""
    MINOR = "minor"
    MAJOR = "major"
    CRITICAL = "critical"


@dataclass(frozen=True)
class AngleCheck:
    """
    Angle range a phase expects at one joint.

    The angle is measured at ``joint`` between the two ``connected_to``
    landmarks.
    """
    joint: str
    connected_to: Tuple[str, str]
    min_angle: float
    max_angle: float
    feedback: str

    @property
    def landmarks(self) -> Tuple[str, str, str]:
        return (self.connected_to[0], self.joint, self.connected_to[1])

    def measure(self, frame: PoseFrame) -> Optional[float]:
        """Angle in degrees, or None if any landmark is absent."""
        first, vertex, second = (frame.get(name) for name in self.landmarks)
        if first is None or vertex is None or second is None:
            return None
        return biomechanics.angle(first, vertex, second)

    def matches(self, frame: PoseFrame) -> Optional[bool]:
        """Whether the angle is in range; None when it cannot be measured."""
        value = self.measure(frame)
        if value is None:
            return None
        return self.min_angle <= value <= self.max_angle


@dataclass(frozen=True)
class PhaseDefinition:
    """A movement phase and the angle checks that identify it."""
    phase: Phase
    description: str = ""
    angle_checks: Tuple[AngleCheck, ...] = ()


@dataclass(frozen=True)
class RuleFeedback:
    """Paired violation/correction text for a form rule."""
    violation: str
    correction: str


@dataclass(frozen=True)
class AngleRule:
    """
    Joint angle must sit near an optimum.

    ``optimal`` is either a scalar (valid within ``tolerance`` of it) or a
    (min, max) range (valid within the range widened by ``tolerance``).
    The angle comes from a named ``calculation`` when given, else from the
    three ``points``.
    """
    kind: ClassVar[str] = "angle"

    id: str
    severity: Severity
    feedback: RuleFeedback
    optimal: Union[float, Tuple[float, float]]
    tolerance: float = 0.0
    points: Tuple[str, ...] = ()
    calculation: Optional[str] = None
    side: str = "left"
    phases: Tuple[Phase, ...] = ()


@dataclass(frozen=True)
class AlignmentRule:
    """
    Alignment check.

    ``calculation`` is ``knee-valgus``, ``middle-point-deviation`` (three
    points, deviation measured along ``axis``) or ``forward-lean`` (nose
    ahead of the hips by more than ``tolerance``).
    """
    kind: ClassVar[str] = "alignment"

    id: str
    severity: Severity
    feedback: RuleFeedback
    calculation: str
    points: Tuple[str, ...] = ()
    axis: str = "y"
    tolerance: float = 0.05
    phases: Tuple[Phase, ...] = ()


@dataclass(frozen=True)
class SymmetryRule:
    """Left/right counterpart points must stay level along ``axis``."""
    kind: ClassVar[str] = "symmetry"

    id: str
    severity: Severity
    feedback: RuleFeedback
    points: Tuple[str, str]
    axis: str = "y"
    tolerance: float = 0.05
    phases: Tuple[Phase, ...] = ()


@dataclass(frozen=True)
class VelocityRule:
    """Movement smoothness must stay at or above ``tolerance``."""
    kind: ClassVar[str] = "velocity"

    id: str
    severity: Severity
    feedback: RuleFeedback
    tolerance: float
    phases: Tuple[Phase, ...] = ()


FormRule = Union[AngleRule, AlignmentRule, SymmetryRule, VelocityRule]
FORM_RULE_TYPES = (AngleRule, AlignmentRule, SymmetryRule, VelocityRule)


@dataclass(frozen=True)
class RepTrigger:
    """
    Rep-counting trigger: a joint's travel along one axis.

    ``joint == "timer"`` marks a time-based (isometric) exercise.
    ``min_duration`` is in seconds.
    """
    joint: str
    axis: str = "y"
    start_threshold: float = 0.0
    end_threshold: float = 0.0
    min_duration: float = 0.0
    requires_full_rom: bool = False

    @property
    def is_timer(self) -> bool:
        return self.joint == TIMER_TRIGGER

    @property
    def expected_span(self) -> float:
        return abs(self.end_threshold - self.start_threshold)


@dataclass(frozen=True)
class CalorieModel:
    """Calorie estimate, either per rep or per minute (never both)."""
    per_rep: Optional[float] = None
    per_minute: Optional[float] = None

    def __post_init__(self):
        if (self.per_rep is None) == (self.per_minute is None):
            raise ConfigurationError(
                "Calorie model needs exactly one of per_rep or per_minute"
            )

    def estimate(self, reps: int, duration_seconds: float) -> float:
        if self.per_rep is not None:
            calories = reps * self.per_rep
        else:
            calories = (duration_seconds / 60) * self.per_minute
        return round(calories, 1)


@dataclass(frozen=True)
class ExerciseProfile:
    """
    Static configuration for one exercise.

    Attributes:
        id (str): Registry key
        kind (ExerciseKind): reps, hold or timed
        required_landmarks (tuple): Joints that must be visible to analyze
        phases (tuple): Ordered phase definitions; order breaks ties
        form_rules (tuple): Declarative form rules
        rep_counting (RepTrigger): Trigger used for range of motion
        calories (CalorieModel): Calorie estimate
    """
    id: str
    name: str
    kind: ExerciseKind
    required_landmarks: Tuple[str, ...]
    phases: Tuple[PhaseDefinition, ...]
    rep_counting: RepTrigger
    calories: CalorieModel
    form_rules: Tuple[FormRule, ...] = ()
    description: str = ""
    tips: Tuple[str, ...] = ()
    common_mistakes: Tuple[str, ...] = ()
    default_reps: int = 10
    default_sets: int = 3
    default_hold_seconds: Optional[int] = None
    rest_seconds: int = 60

    def __post_init__(self):
        if not self.phases:
            raise ConfigurationError(f"Profile '{self.id}' defines no phases")
        if not self.required_landmarks:
            raise ConfigurationError(f"Profile '{self.id}' requires no landmarks")

        tags = [definition.phase for definition in self.phases]
        if len(tags) != len(set(tags)):
            raise ConfigurationError(f"Profile '{self.id}' declares a phase twice")

        for rule in self.form_rules:
            if not isinstance(rule, FORM_RULE_TYPES):
                raise ConfigurationError(
                    f"Profile '{self.id}' has unsupported form rule {type(rule).__name__}"
                )
            axis = getattr(rule, "axis", "y")
            if axis not in AXES:
                raise ConfigurationError(f"Rule '{rule.id}' uses unknown axis {axis!r}")

        if self.rep_counting.axis not in AXES:
            raise ConfigurationError(
                f"Profile '{self.id}' triggers on unknown axis {self.rep_counting.axis!r}"
            )

    def phase_definition(self, phase: Optional[Phase]) -> Optional[PhaseDefinition]:
        for definition in self.phases:
            if definition.phase == phase:
                return definition
        return None

    @property
    def velocity_joint(self) -> str:
        """Joint whose speed feeds the velocity buffer."""
        if self.rep_counting.is_timer:
            return self.required_landmarks[0]
        return self.rep_counting.joint

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind.value,
            "description": self.description,
            "required_landmarks": list(self.required_landmarks),
            "phases": [definition.phase.value for definition in self.phases],
            "form_rules": [
                {"id": rule.id, "kind": rule.kind, "severity": rule.severity.value}
                for rule in self.form_rules
            ],
            "tips": list(self.tips),
            "common_mistakes": list(self.common_mistakes),
            "default_reps": self.default_reps,
            "default_sets": self.default_sets,
            "default_hold_seconds": self.default_hold_seconds,
            "rest_seconds": self.rest_seconds,
            "calories_per_rep": self.calories.per_rep,
            "calories_per_minute": self.calories.per_minute,
        }
