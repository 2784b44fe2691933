"""
Errors Module
=============

Exception taxonomy for pose analysis.

Only ``ConfigurationError`` is meant to reach callers; the others are
recovered inside the per-frame pipeline.
"""


class FormCoachError(Exception):
    """Base class for all analysis errors."""


class ConfigurationError(FormCoachError):
    """An exercise id has no profile, or a profile is malformed."""


class MissingLandmarkError(FormCoachError, KeyError):
    """A joint needed for a calculation is absent from the frame."""

    def __init__(self, joint: str):
        super().__init__(joint)
        self.joint = joint

    def __str__(self) -> str:
        return f"Landmark not present in frame: {self.joint}"


class RuleEvaluationError(FormCoachError):
    """A single form rule cannot be computed for the current frame."""


class InvalidPoseFrameError(FormCoachError, ValueError):
    """Incoming pose data could not be parsed into a frame."""
