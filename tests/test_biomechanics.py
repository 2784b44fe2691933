"""
Unit tests for the biomechanics helpers.

Tests for angles, distances, alignment, symmetry, velocity and smoothness.
"""

import pytest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from formcoach.analyzers import biomechanics
from formcoach.analyzers.pose import LandmarkPoint, PoseFrame
from formcoach.errors import MissingLandmarkError

from pose_factory import leg_frame, with_points


def point(x, y, z=0.0, visibility=1.0):
    return LandmarkPoint(x, y, z, visibility)


class TestAngle:
    """Test suite for the three-point angle."""

    def test_right_angle(self):
        """Test a 90 degree angle at the vertex."""
        assert biomechanics.angle(point(0, 1), point(0, 0), point(1, 0)) == pytest.approx(90.0)

    def test_straight_line(self):
        """Test collinear points give 180 degrees."""
        assert biomechanics.angle(point(-1, 0), point(0, 0), point(1, 0)) == pytest.approx(180.0)

    def test_point_order_does_not_matter(self):
        """Test the angle is the same with the outer points swapped."""
        a, vertex, b = point(0.2, 0.9), point(0.5, 0.5), point(0.9, 0.6)
        assert biomechanics.angle(a, vertex, b) == pytest.approx(biomechanics.angle(b, vertex, a))

    def test_reflex_angle_is_reflected(self):
        """Test bearings more than 180 degrees apart are folded back."""
        value = biomechanics.angle(point(-1, 0.1), point(0, 0), point(-1, -0.1))
        assert 0 <= value <= 180
        assert value == pytest.approx(11.42, abs=0.01)

    @pytest.mark.parametrize("knee_angle", [75, 90, 135, 170])
    def test_knee_angle_from_frame(self, knee_angle):
        """Test the named knee calculation on synthetic legs."""
        frame = leg_frame(knee_angle)
        assert biomechanics.knee_angle(frame) == pytest.approx(knee_angle, abs=1e-6)
        assert biomechanics.knee_angle(frame, "right") == pytest.approx(knee_angle, abs=1e-6)


class TestDistanceAndMidpoint:
    """Test suite for distance and midpoint."""

    def test_distance_is_3d(self):
        """Test the z coordinate contributes to the distance."""
        assert biomechanics.distance(point(0, 0, 0), point(1, 2, 2)) == pytest.approx(3.0)

    def test_midpoint_keeps_lower_visibility(self):
        """Test midpoint averages positions and keeps the minimum visibility."""
        mid = biomechanics.midpoint(point(0, 0, 0, 0.9), point(1, 2, 4, 0.4))
        assert (mid.x, mid.y, mid.z) == (0.5, 1.0, 2.0)
        assert mid.visibility == 0.4


class TestAlignmentAndSymmetry:
    """Test suite for alignment and symmetry checks."""

    def test_aligned_within_tolerance(self):
        """Test a middle point close to the midpoint is aligned."""
        assert biomechanics.is_aligned(point(0, 0), point(0, 0.52), point(0, 1), "y", 0.05)

    def test_not_aligned_outside_tolerance(self):
        """Test a middle point far from the midpoint is not aligned."""
        assert not biomechanics.is_aligned(point(0, 0), point(0, 0.6), point(0, 1), "y", 0.05)

    def test_alignment_is_scale_normalized(self):
        """Test the same relative deviation gives the same answer at any scale."""
        small = biomechanics.is_aligned(point(0, 0), point(0, 0.052), point(0, 0.1), "y", 0.05)
        large = biomechanics.is_aligned(point(0, 0), point(0, 0.52), point(0, 1.0), "y", 0.05)
        assert small == large

    def test_symmetry_difference(self):
        """Test symmetry is the absolute difference along one axis."""
        assert biomechanics.symmetry(point(0.4, 0.5), point(0.6, 0.58), "y") == pytest.approx(0.08)
        assert biomechanics.symmetry(point(0.4, 0.5), point(0.6, 0.58), "x") == pytest.approx(0.2)

    def test_unknown_axis(self):
        """Test an unknown axis is rejected."""
        with pytest.raises(ValueError):
            biomechanics.symmetry(point(0, 0), point(1, 1), "w")


class TestVelocityAndSmoothness:
    """Test suite for velocity and smoothness."""

    def test_velocity(self):
        """Test distance moved divided by elapsed seconds."""
        previous = PoseFrame(0.0, {"left_hip": point(0.5, 0.5)})
        current = PoseFrame(0.5, {"left_hip": point(0.5, 0.6)})
        assert biomechanics.velocity(previous, current, "left_hip") == pytest.approx(0.2)

    def test_velocity_without_elapsed_time(self):
        """Test frames with the same timestamp give zero velocity."""
        previous = PoseFrame(1.0, {"left_hip": point(0.5, 0.5)})
        current = PoseFrame(1.0, {"left_hip": point(0.9, 0.5)})
        assert biomechanics.velocity(previous, current, "left_hip") == 0.0

    def test_velocity_missing_joint(self):
        """Test a missing joint raises MissingLandmarkError."""
        previous = PoseFrame(0.0, {"left_hip": point(0.5, 0.5)})
        current = PoseFrame(0.1, {})
        with pytest.raises(MissingLandmarkError):
            biomechanics.velocity(previous, current, "left_hip")

    def test_constant_velocity_is_smooth(self):
        """Test a constant series has smoothness 1.0."""
        assert biomechanics.smoothness([0.3] * 10) == 1.0

    def test_alternating_velocity_is_jerky(self):
        """Test a series jumping between far-apart values is below 0.5."""
        assert biomechanics.smoothness([0.1, 2.0] * 5) < 0.5

    @pytest.mark.parametrize("series", [[], [0.7]])
    def test_short_series_is_smooth(self, series):
        """Test fewer than two samples default to smooth."""
        assert biomechanics.smoothness(series) == 1.0

    def test_motionless_series_is_smooth(self):
        """Test an all-zero series does not divide by zero."""
        assert biomechanics.smoothness([0.0, 0.0, 0.0]) == 1.0


class TestNamedCalculations:
    """Test suite for exercise-specific calculations."""

    def test_upright_torso(self):
        """Test shoulders straight above hips give 90 degrees."""
        assert biomechanics.torso_angle(leg_frame(170)) == pytest.approx(90.0)

    def test_knee_valgus_detected(self):
        """Test a knee far inside the hip-ankle line is flagged."""
        frame = with_points(leg_frame(170), left_knee=(0.6, 0.7))
        assert biomechanics.detect_knee_valgus(frame, "left")
        assert not biomechanics.detect_knee_valgus(frame, "right")

    def test_forward_lean(self):
        """Test the horizontal nose offset from the hip midpoint."""
        frame = leg_frame(90)
        assert biomechanics.forward_lean(frame) == pytest.approx(0.0, abs=1e-9)
        hip = frame.landmark("left_hip")
        leaning = with_points(frame, nose=(hip.x - 0.2, hip.y - 0.3))
        assert biomechanics.forward_lean(leaning) == pytest.approx(0.2)
