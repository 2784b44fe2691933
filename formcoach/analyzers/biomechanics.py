"""
Biomechanics Module
===================

Pure geometry helpers shared by phase detection and form rules.

None of these functions look at landmark visibility; callers filter
low-confidence landmarks before measuring.
"""

import math
from typing import Sequence

import numpy as np

from .pose import LandmarkPoint, PoseFrame

# Knee collapse: horizontal knee-ankle gap beyond hip-ankle gap by this factor
KNEE_VALGUS_RATIO = 1.1


def angle(p1: LandmarkPoint, vertex: LandmarkPoint, p2: LandmarkPoint) -> float:
    """
    Calculate the angle at ``vertex`` formed by ``p1`` and ``p2``.

    Args:
        p1: First point
        vertex: Middle point (vertex)
        p2: Third point

    Returns:
        Angle in degrees (0-180)
    """
    radians = np.arctan2(p2.y - vertex.y, p2.x - vertex.x) - np.arctan2(
        p1.y - vertex.y, p1.x - vertex.x
    )
    result = np.abs(radians * 180.0 / np.pi)
    if result > 180.0:
        result = 360 - result
    return float(result)


def distance(p1: LandmarkPoint, p2: LandmarkPoint) -> float:
    """Euclidean distance between two points in 3D."""
    return math.sqrt((p2.x - p1.x) ** 2 + (p2.y - p1.y) ** 2 + (p2.z - p1.z) ** 2)


def midpoint(p1: LandmarkPoint, p2: LandmarkPoint) -> LandmarkPoint:
    """Midpoint of two landmarks, keeping the lower of the two visibilities."""
    return LandmarkPoint(
        x=(p1.x + p2.x) / 2,
        y=(p1.y + p2.y) / 2,
        z=(p1.z + p2.z) / 2,
        visibility=min(p1.visibility, p2.visibility),
    )


def is_aligned(
    p1: LandmarkPoint,
    p2: LandmarkPoint,
    p3: LandmarkPoint,
    axis: str,
    tolerance: float,
) -> bool:
    """
    Check that ``p2`` sits on the line between ``p1`` and ``p3``.

    The allowed deviation from the midpoint is ``tolerance`` times the
    span of ``p1``..``p3`` along the axis, so the test does not depend on
    subject size or camera distance.
    """
    mid = (p1.axis(axis) + p3.axis(axis)) / 2
    deviation = abs(p2.axis(axis) - mid)
    span = abs(p3.axis(axis) - p1.axis(axis))
    return deviation <= tolerance * span


def symmetry(left: LandmarkPoint, right: LandmarkPoint, axis: str) -> float:
    """Absolute difference between left/right counterparts along one axis."""
    return abs(left.axis(axis) - right.axis(axis))


def velocity(previous: PoseFrame, current: PoseFrame, joint: str) -> float:
    """
    Speed of ``joint`` between two frames in units per second.

    Returns 0.0 when the frames are not in increasing time order.
    """
    elapsed = current.timestamp - previous.timestamp
    if elapsed <= 0:
        return 0.0
    return distance(previous.landmark(joint), current.landmark(joint)) / elapsed


def smoothness(velocities: Sequence[float]) -> float:
    """
    Movement smoothness in [0, 1] from a velocity series.

    1 - min(total_variation / (mean_velocity * n), 1). Fewer than two
    samples, or a motionless series, count as smooth.
    """
    if len(velocities) < 2:
        return 1.0

    series = np.asarray(velocities, dtype=float)
    total_variation = float(np.sum(np.abs(np.diff(series))))
    mean_velocity = float(np.mean(series))
    if mean_velocity <= 0:
        return 1.0
    return 1.0 - min(total_variation / (mean_velocity * len(series)), 1.0)


# Named joint calculations used by the exercise library

def knee_angle(frame: PoseFrame, side: str = "left") -> float:
    return angle(
        frame.landmark(f"{side}_hip"),
        frame.landmark(f"{side}_knee"),
        frame.landmark(f"{side}_ankle"),
    )


def elbow_angle(frame: PoseFrame, side: str = "left") -> float:
    return angle(
        frame.landmark(f"{side}_shoulder"),
        frame.landmark(f"{side}_elbow"),
        frame.landmark(f"{side}_wrist"),
    )


def hip_angle(frame: PoseFrame, side: str = "left") -> float:
    return angle(
        frame.landmark(f"{side}_shoulder"),
        frame.landmark(f"{side}_hip"),
        frame.landmark(f"{side}_knee"),
    )


def torso_angle(frame: PoseFrame) -> float:
    """Inclination of the hip->shoulder line against the horizontal, in degrees."""
    shoulder = midpoint(frame.landmark("left_shoulder"), frame.landmark("right_shoulder"))
    hip = midpoint(frame.landmark("left_hip"), frame.landmark("right_hip"))
    return abs(math.degrees(math.atan2(shoulder.y - hip.y, shoulder.x - hip.x)))


def forward_lean(frame: PoseFrame) -> float:
    """Horizontal distance between the nose and the hip midpoint."""
    hip = midpoint(frame.landmark("left_hip"), frame.landmark("right_hip"))
    return abs(frame.landmark("nose").x - hip.x)


def detect_knee_valgus(frame: PoseFrame, side: str = "left") -> bool:
    """
    Detect inward knee collapse on one side.

    True when the horizontal knee-ankle distance exceeds the hip-ankle
    distance by more than 10%.
    """
    knee = frame.landmark(f"{side}_knee")
    ankle = frame.landmark(f"{side}_ankle")
    hip = frame.landmark(f"{side}_hip")

    knee_ankle = abs(knee.x - ankle.x)
    hip_ankle = abs(hip.x - ankle.x)
    return knee_ankle > hip_ankle * KNEE_VALGUS_RATIO
