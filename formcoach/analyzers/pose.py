"""
Pose Module
===========

Immutable pose data handed to the analyzers by an external pose estimator.

Classes:
    LandmarkPoint: One joint position with its visibility confidence
    PoseFrame: Timestamped snapshot of all tracked joints

Joint names follow the MediaPipe pose landmark order in snake_case, e.g.
``left_shoulder`` or ``right_foot_index``.
"""

import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Sequence

from ..errors import InvalidPoseFrameError, MissingLandmarkError

# MediaPipe PoseLandmark order (index -> name)
JOINT_NAMES = (
    "nose",
    "left_eye_inner", "left_eye", "left_eye_outer",
    "right_eye_inner", "right_eye", "right_eye_outer",
    "left_ear", "right_ear",
    "mouth_left", "mouth_right",
    "left_shoulder", "right_shoulder",
    "left_elbow", "right_elbow",
    "left_wrist", "right_wrist",
    "left_pinky", "right_pinky",
    "left_index", "right_index",
    "left_thumb", "right_thumb",
    "left_hip", "right_hip",
    "left_knee", "right_knee",
    "left_ankle", "right_ankle",
    "left_heel", "right_heel",
    "left_foot_index", "right_foot_index",
)

AXES = ("x", "y", "z")


def _finite(value: Any, field_name: str) -> float:
    """Parse a number, rejecting NaN and infinities."""
    number = float(value)
    if not math.isfinite(number):
        raise InvalidPoseFrameError(f"{field_name} must be a finite number")
    return number


def _visibility(value: Any, name: str) -> float:
    visibility = _finite(value, f"{name}.visibility")
    if not 0.0 <= visibility <= 1.0:
        raise InvalidPoseFrameError(f"{name}.visibility must be within [0, 1]")
    return visibility


@dataclass(frozen=True)
class LandmarkPoint:
    """A single pose landmark with 3D coordinates and visibility."""
    x: float
    y: float
    z: float = 0.0
    visibility: float = 1.0

    def axis(self, name: str) -> float:
        """Return the coordinate along ``name`` ("x", "y" or "z")."""
        if name not in AXES:
            raise ValueError(f"Unknown axis: {name!r}")
        return getattr(self, name)


@dataclass(frozen=True)
class PoseFrame:
    """
    Timestamped snapshot of tracked landmarks.

    Attributes:
        timestamp (float): Capture time in seconds
        landmarks (Mapping[str, LandmarkPoint]): Read-only joint mapping
    """
    timestamp: float
    landmarks: Mapping[str, LandmarkPoint] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "landmarks", MappingProxyType(dict(self.landmarks)))

    def get(self, joint: str) -> Optional[LandmarkPoint]:
        return self.landmarks.get(joint)

    def landmark(self, joint: str) -> LandmarkPoint:
        """Get a landmark, raising MissingLandmarkError when absent."""
        point = self.landmarks.get(joint)
        if point is None:
            raise MissingLandmarkError(joint)
        return point

    def missing(self, joints: Sequence[str], min_visibility: float) -> list:
        """Return the joints that are absent or below ``min_visibility``."""
        return [
            joint for joint in joints
            if joint not in self.landmarks
            or self.landmarks[joint].visibility < min_visibility
        ]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PoseFrame":
        """
        Build a frame from its JSON form.

        Args:
            data: {"timestamp": <seconds>, "landmarks": {name: {x, y, z, visibility}}}

        Returns:
            Parsed PoseFrame

        Raises:
            InvalidPoseFrameError: If the payload is malformed
        """
        if not isinstance(data, dict):
            raise InvalidPoseFrameError("Pose frame must be a JSON object")
        if "timestamp" not in data:
            raise InvalidPoseFrameError("Pose frame is missing 'timestamp'")
        raw_landmarks = data.get("landmarks")
        if not isinstance(raw_landmarks, dict):
            raise InvalidPoseFrameError("'landmarks' must map joint names to points")

        try:
            timestamp = _finite(data["timestamp"], "timestamp")
            landmarks = {}
            for name, point in raw_landmarks.items():
                visibility = _visibility(point.get("visibility", 1.0), name)
                landmarks[str(name)] = LandmarkPoint(
                    x=_finite(point["x"], f"{name}.x"),
                    y=_finite(point["y"], f"{name}.y"),
                    z=_finite(point.get("z", 0.0), f"{name}.z"),
                    visibility=visibility,
                )
        except InvalidPoseFrameError:
            raise
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise InvalidPoseFrameError(f"Malformed landmark data: {e}") from e

        return cls(timestamp=timestamp, landmarks=landmarks)

    @classmethod
    def from_landmark_list(cls, landmarks: Sequence[Any], timestamp: float) -> "PoseFrame":
        """
        Convert an index-ordered landmark list (MediaPipe order) to a frame.

        Each item only needs ``x``, ``y``, ``z`` and ``visibility`` attributes,
        so MediaPipe's ``results.pose_landmarks.landmark`` can be passed as-is.
        """
        if len(landmarks) > len(JOINT_NAMES):
            raise InvalidPoseFrameError(
                f"Expected at most {len(JOINT_NAMES)} landmarks, got {len(landmarks)}"
            )
        points = {}
        for idx, lm in enumerate(landmarks):
            name = JOINT_NAMES[idx]
            points[name] = LandmarkPoint(
                x=_finite(lm.x, f"{name}.x"),
                y=_finite(lm.y, f"{name}.y"),
                z=_finite(getattr(lm, "z", 0.0), f"{name}.z"),
                visibility=_visibility(getattr(lm, "visibility", 1.0), name),
            )
        return cls(timestamp=_finite(timestamp, "timestamp"), landmarks=points)
