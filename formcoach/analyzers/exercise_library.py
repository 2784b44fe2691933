"""
Exercise Library
================

Built-in exercise profiles and the registry that looks them up.

Coordinates are normalized image coordinates (y grows downward), angles
are in degrees and durations in seconds. The registry is built once at
import time and is read-only.
"""

from types import MappingProxyType
from typing import List, Mapping

from .profiles import (
    AlignmentRule,
    AngleCheck,
    AngleRule,
    CalorieModel,
    ExerciseKind,
    ExerciseProfile,
    Phase,
    PhaseDefinition,
    RepTrigger,
    RuleFeedback,
    Severity,
    SymmetryRule,
    TIMER_TRIGGER,
    VelocityRule,
)
from ..errors import ConfigurationError

LOWER_BODY = (
    "left_hip", "right_hip",
    "left_knee", "right_knee",
    "left_ankle", "right_ankle",
)
SHOULDERS = ("left_shoulder", "right_shoulder")
ARMS = ("left_elbow", "right_elbow", "left_wrist", "right_wrist")


SQUAT = ExerciseProfile(
    id="squat",
    name="Squats",
    kind=ExerciseKind.REPS,
    description="Fundamental lower body exercise for strength and endurance",
    required_landmarks=LOWER_BODY + SHOULDERS,
    phases=(
        PhaseDefinition(
            phase=Phase.UP,
            description="Standing position",
            angle_checks=(
                AngleCheck("left_knee", ("left_hip", "left_ankle"), 160, 180,
                           "Extend fully at the top"),
            ),
        ),
        PhaseDefinition(
            phase=Phase.DOWN,
            description="Squat position - thighs parallel",
            angle_checks=(
                AngleCheck("left_knee", ("left_hip", "left_ankle"), 70, 110,
                           "Go lower until thighs are parallel"),
            ),
        ),
    ),
    form_rules=(
        AngleRule(
            id="squat-depth",
            severity=Severity.MAJOR,
            feedback=RuleFeedback("Shallow squat", "Lower to parallel"),
            optimal=(80, 95),
            tolerance=10,
            calculation="knee-angle",
            phases=(Phase.DOWN,),
        ),
        AngleRule(
            id="spine-neutral",
            severity=Severity.CRITICAL,
            feedback=RuleFeedback("Rounded back", "Chest up. Neutral spine."),
            optimal=(70, 90),
            tolerance=10,
            calculation="torso-angle",
        ),
        AlignmentRule(
            id="knee-valgus",
            severity=Severity.CRITICAL,
            feedback=RuleFeedback("Knees caving in", "Push knees out"),
            calculation="knee-valgus",
        ),
        AlignmentRule(
            id="excessive-forward-lean",
            severity=Severity.MAJOR,
            feedback=RuleFeedback("Leaning too far forward", "Sit back into your heels"),
            calculation="forward-lean",
            tolerance=0.15,
        ),
        SymmetryRule(
            id="hip-level",
            severity=Severity.MINOR,
            feedback=RuleFeedback("Uneven hips", "Keep weight even on both feet"),
            points=("left_hip", "right_hip"),
            tolerance=0.05,
        ),
        VelocityRule(
            id="controlled-tempo",
            severity=Severity.MINOR,
            feedback=RuleFeedback("Jerky movement", "Move at a steady tempo"),
            tolerance=0.5,
        ),
    ),
    rep_counting=RepTrigger(
        joint="left_hip",
        axis="y",
        start_threshold=0.65,
        end_threshold=0.90,
        min_duration=0.8,
        requires_full_rom=True,
    ),
    calories=CalorieModel(per_rep=0.32),
    tips=(
        "Keep your weight on your heels",
        "Don't let knees cave inward",
        "Maintain a neutral spine",
    ),
    common_mistakes=(
        "Knees going past toes too much",
        "Rounding the lower back",
        "Not going low enough",
    ),
    default_reps=12,
)

PUSH_UP = ExerciseProfile(
    id="push-up",
    name="Push-Ups",
    kind=ExerciseKind.REPS,
    description="Classic upper body push exercise",
    required_landmarks=SHOULDERS + ARMS + ("left_hip", "right_hip", "left_ankle", "right_ankle"),
    phases=(
        PhaseDefinition(
            phase=Phase.UP,
            description="Arms extended, plank position",
            angle_checks=(
                AngleCheck("left_elbow", ("left_shoulder", "left_wrist"), 160, 180,
                           "Fully extend your arms"),
            ),
        ),
        PhaseDefinition(
            phase=Phase.DOWN,
            description="Chest near ground",
            angle_checks=(
                AngleCheck("left_elbow", ("left_shoulder", "left_wrist"), 70, 100,
                           "Go lower"),
            ),
        ),
    ),
    form_rules=(
        AngleRule(
            id="push-up-depth",
            severity=Severity.MAJOR,
            feedback=RuleFeedback("Not deep enough", "Lower chest to floor"),
            optimal=(75, 90),
            tolerance=10,
            calculation="elbow-angle",
            phases=(Phase.DOWN,),
        ),
        AngleRule(
            id="hip-sag",
            severity=Severity.CRITICAL,
            feedback=RuleFeedback("Hips sagging", "Engage core. Straight body."),
            optimal=(165, 180),
            tolerance=5,
            points=("left_shoulder", "left_hip", "left_ankle"),
        ),
        SymmetryRule(
            id="elbow-level",
            severity=Severity.MINOR,
            feedback=RuleFeedback("Uneven arms", "Press evenly through both hands"),
            points=("left_elbow", "right_elbow"),
            tolerance=0.04,
        ),
    ),
    rep_counting=RepTrigger(
        joint="left_shoulder",
        axis="y",
        start_threshold=0.2,
        end_threshold=0.4,
        min_duration=0.6,
        requires_full_rom=True,
    ),
    calories=CalorieModel(per_rep=0.4),
    tips=(
        "Keep your body in a straight line",
        "Lower until your chest nearly touches the floor",
    ),
    common_mistakes=("Hips sagging", "Partial range of motion"),
)

LUNGE = ExerciseProfile(
    id="lunge",
    name="Lunges",
    kind=ExerciseKind.REPS,
    description="Single-leg strength and balance",
    required_landmarks=LOWER_BODY + SHOULDERS,
    phases=(
        PhaseDefinition(
            phase=Phase.UP,
            description="Standing tall",
            angle_checks=(
                AngleCheck("left_knee", ("left_hip", "left_ankle"), 150, 180,
                           "Return to standing"),
            ),
        ),
        PhaseDefinition(
            phase=Phase.DOWN,
            description="Front knee bent to 90 degrees",
            angle_checks=(
                AngleCheck("left_knee", ("left_hip", "left_ankle"), 70, 110,
                           "Lower until your front knee is at 90 degrees"),
            ),
        ),
    ),
    form_rules=(
        AngleRule(
            id="lunge-depth",
            severity=Severity.MAJOR,
            feedback=RuleFeedback("Shallow lunge", "Drop the back knee lower"),
            optimal=(85, 100),
            tolerance=10,
            calculation="knee-angle",
            phases=(Phase.DOWN,),
        ),
        AngleRule(
            id="torso-upright",
            severity=Severity.MAJOR,
            feedback=RuleFeedback("Leaning forward", "Keep your chest up"),
            optimal=(75, 90),
            tolerance=10,
            calculation="torso-angle",
        ),
        AlignmentRule(
            id="knee-valgus",
            severity=Severity.CRITICAL,
            feedback=RuleFeedback("Front knee caving in", "Track knee over toes"),
            calculation="knee-valgus",
        ),
    ),
    rep_counting=RepTrigger(
        joint="left_hip",
        axis="y",
        start_threshold=0.6,
        end_threshold=0.8,
        min_duration=0.8,
        requires_full_rom=False,
    ),
    calories=CalorieModel(per_rep=0.35),
    tips=("Keep your front knee over your ankle", "Step far enough forward"),
    common_mistakes=("Knee caving inward", "Leaning the torso forward"),
)

GLUTE_BRIDGE = ExerciseProfile(
    id="glute-bridge",
    name="Glute Bridges",
    kind=ExerciseKind.REPS,
    description="Hip extension for glutes and hamstrings",
    required_landmarks=SHOULDERS + ("left_hip", "right_hip", "left_knee", "right_knee"),
    phases=(
        PhaseDefinition(
            phase=Phase.DOWN,
            description="Hips lowered",
            angle_checks=(
                AngleCheck("left_hip", ("left_shoulder", "left_knee"), 100, 145,
                           "Lower your hips under control"),
            ),
        ),
        PhaseDefinition(
            phase=Phase.UP,
            description="Hips lifted in line with shoulders and knees",
            angle_checks=(
                AngleCheck("left_hip", ("left_shoulder", "left_knee"), 160, 180,
                           "Squeeze your glutes to lift higher"),
            ),
        ),
    ),
    form_rules=(
        AngleRule(
            id="full-extension",
            severity=Severity.MAJOR,
            feedback=RuleFeedback("Hips not fully extended", "Drive hips up"),
            optimal=(165, 180),
            tolerance=5,
            calculation="hip-angle",
            phases=(Phase.UP,),
        ),
        AlignmentRule(
            id="hips-centered",
            severity=Severity.MINOR,
            feedback=RuleFeedback("Hips drifting", "Keep hips between shoulders and knees"),
            calculation="middle-point-deviation",
            points=("left_shoulder", "left_hip", "left_knee"),
            axis="x",
            tolerance=0.25,
        ),
        SymmetryRule(
            id="hip-level",
            severity=Severity.MINOR,
            feedback=RuleFeedback("One hip dropping", "Lift both hips evenly"),
            points=("left_hip", "right_hip"),
            tolerance=0.04,
        ),
    ),
    rep_counting=RepTrigger(
        joint="left_hip",
        axis="y",
        start_threshold=0.75,
        end_threshold=0.6,
        min_duration=0.6,
        requires_full_rom=False,
    ),
    calories=CalorieModel(per_rep=0.3),
    tips=("Press through your heels", "Pause at the top"),
    common_mistakes=("Arching the lower back", "Pushing through the toes"),
    default_reps=15,
)

WALL_SIT = ExerciseProfile(
    id="wall-sit",
    name="Wall Sit",
    kind=ExerciseKind.HOLD,
    description="Isometric hold for leg endurance",
    required_landmarks=LOWER_BODY,
    phases=(
        PhaseDefinition(
            phase=Phase.START,
            description="Standing against the wall",
            angle_checks=(
                AngleCheck("left_knee", ("left_hip", "left_ankle"), 140, 180,
                           "Slide down the wall"),
            ),
        ),
        PhaseDefinition(
            phase=Phase.HOLD,
            description="Wall sit hold position",
            angle_checks=(
                AngleCheck("left_knee", ("left_hip", "left_ankle"), 80, 100,
                           "Adjust until knees are at 90 degrees"),
            ),
        ),
    ),
    form_rules=(
        AlignmentRule(
            id="knee-valgus",
            severity=Severity.CRITICAL,
            feedback=RuleFeedback("Knees caving in", "Push knees out"),
            calculation="knee-valgus",
            phases=(Phase.HOLD,),
        ),
        SymmetryRule(
            id="knee-level",
            severity=Severity.MINOR,
            feedback=RuleFeedback("Uneven knees", "Keep both thighs level"),
            points=("left_knee", "right_knee"),
            tolerance=0.04,
        ),
        VelocityRule(
            id="stay-still",
            severity=Severity.MINOR,
            feedback=RuleFeedback("Shaking", "Breathe and stay steady"),
            tolerance=0.5,
            phases=(Phase.HOLD,),
        ),
    ),
    rep_counting=RepTrigger(joint=TIMER_TRIGGER),
    calories=CalorieModel(per_minute=5),
    tips=("Press your back firmly into the wall", "Breathe steadily throughout"),
    common_mistakes=("Thighs not parallel to ground", "Knees caving inward"),
    default_reps=1,
    default_hold_seconds=30,
)

PLANK = ExerciseProfile(
    id="plank",
    name="Plank",
    kind=ExerciseKind.HOLD,
    description="Isometric core hold",
    required_landmarks=SHOULDERS + ("left_hip", "right_hip", "left_ankle", "right_ankle"),
    phases=(
        PhaseDefinition(
            phase=Phase.HOLD,
            description="Straight line from shoulders to ankles",
            angle_checks=(
                AngleCheck("left_hip", ("left_shoulder", "left_ankle"), 160, 180,
                           "Straighten your body"),
            ),
        ),
        PhaseDefinition(
            phase=Phase.TRANSITION,
            description="Resting or getting into position",
            angle_checks=(
                AngleCheck("left_hip", ("left_shoulder", "left_ankle"), 0, 140,
                           "Get into plank position"),
            ),
        ),
    ),
    form_rules=(
        AngleRule(
            id="hip-sag",
            severity=Severity.CRITICAL,
            feedback=RuleFeedback("Hips sagging", "Engage core. Lift hips."),
            optimal=(165, 180),
            tolerance=5,
            points=("left_shoulder", "left_hip", "left_ankle"),
            phases=(Phase.HOLD,),
        ),
        SymmetryRule(
            id="shoulder-level",
            severity=Severity.MINOR,
            feedback=RuleFeedback("Rotating", "Keep shoulders square"),
            points=("left_shoulder", "right_shoulder"),
            tolerance=0.04,
        ),
        VelocityRule(
            id="stay-still",
            severity=Severity.MINOR,
            feedback=RuleFeedback("Shaking", "Brace and hold still"),
            tolerance=0.5,
            phases=(Phase.HOLD,),
        ),
    ),
    rep_counting=RepTrigger(joint=TIMER_TRIGGER),
    calories=CalorieModel(per_minute=4),
    tips=("Squeeze your glutes", "Keep your neck neutral"),
    common_mistakes=("Hips sagging", "Hips piking too high"),
    default_reps=1,
    default_hold_seconds=30,
    rest_seconds=45,
)

PROFILES: Mapping[str, ExerciseProfile] = MappingProxyType({
    profile.id: profile
    for profile in (SQUAT, PUSH_UP, LUNGE, GLUTE_BRIDGE, WALL_SIT, PLANK)
})

ALIASES: Mapping[str, str] = MappingProxyType({
    "squats": "squat",
    "pushup": "push-up",
    "push-ups": "push-up",
    "lunges": "lunge",
    "glute-bridges": "glute-bridge",
})


def get_profile(exercise_id: str) -> ExerciseProfile:
    """
    Look up an exercise profile.

    Raises:
        ConfigurationError: If no profile exists for ``exercise_id``
    """
    key = ALIASES.get(exercise_id, exercise_id)
    profile = PROFILES.get(key)
    if profile is None:
        raise ConfigurationError(f"Exercise not found: {exercise_id}")
    return profile


def available_exercises() -> List[str]:
    """Ids of all registered profiles."""
    return sorted(PROFILES)
