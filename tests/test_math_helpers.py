"""
Tests for math helper functions.
"""

import math
import numpy as np
import pytest

from utils.math_helpers import (
    as_vector,
    normalize_angle,
    angle_difference,
    vector_magnitude,
    vector_normalize,
    quaternion_multiply,
    quaternion_from_axis_angle,
    quaternion_from_yaw_pitch,
    quaternion_to_rotation_matrix,
    calculate_bearing,
)


class TestAngleNormalization:
    """Tests for angle normalization functions."""

    def test_normalize_angle_positive(self):
        """Test normalizing angles > pi."""
        assert abs(normalize_angle(2.5 * math.pi) - (0.5 * math.pi)) < 0.001
        assert abs(abs(normalize_angle(3 * math.pi)) - math.pi) < 0.001

    def test_normalize_angle_negative(self):
        """Test normalizing angles < -pi."""
        assert abs(normalize_angle(-2.5 * math.pi) - (-0.5 * math.pi)) < 0.001

    def test_normalize_angle_in_range(self):
        """Test angles already in valid range."""
        assert normalize_angle(0.5) == pytest.approx(0.5)
        assert normalize_angle(-0.5) == pytest.approx(-0.5)
        assert normalize_angle(math.pi) == pytest.approx(math.pi)


class TestAngleDifference:
    """Tests for angle difference calculations."""

    def test_angle_difference_positive(self):
        """Test positive angle difference."""
        diff = angle_difference(0, math.pi / 2)
        assert diff == pytest.approx(math.pi / 2)

    def test_angle_difference_wrap_around(self):
        """Test angle difference across the wrap-around point."""
        # Going from 170° to -170° should be a +20° turn, not -340°
        diff = angle_difference(math.radians(170), math.radians(-170))
        assert diff == pytest.approx(math.radians(20))


class TestVectorOperations:
    """Tests for vector operations."""

    def test_as_vector(self):
        """Test conversion of point-likes to float arrays."""
        vec = as_vector((1, 2, 3))
        assert vec.dtype == np.float64
        np.testing.assert_array_equal(vec, [1.0, 2.0, 3.0])

    def test_as_vector_rejects_wrong_shape(self):
        """Test that non-3D input is rejected."""
        with pytest.raises(ValueError):
            as_vector((1.0, 2.0))

    def test_vector_magnitude(self):
        """Test magnitude calculation."""
        assert vector_magnitude(np.array([3.0, 4.0, 0.0])) == pytest.approx(5.0)
        assert vector_magnitude(np.array([1.0, 1.0, 1.0])) == pytest.approx(math.sqrt(3))

    def test_vector_normalize(self):
        """Test vector normalization."""
        normalized = vector_normalize(np.array([3.0, 4.0, 0.0]))
        np.testing.assert_array_almost_equal(normalized, [0.6, 0.8, 0.0])

    def test_vector_normalize_zero(self):
        """Test normalizing zero vector."""
        normalized = vector_normalize(np.array([0.0, 0.0, 0.0]))
        np.testing.assert_array_equal(normalized, [0.0, 0.0, 0.0])


class TestQuaternionOperations:
    """Tests for quaternion operations."""

    def test_identity_quaternion(self):
        """Test that zero yaw and pitch give no rotation."""
        quat = quaternion_from_yaw_pitch(0.0, 0.0)
        np.testing.assert_array_almost_equal(quat, [1.0, 0.0, 0.0, 0.0])
        np.testing.assert_array_almost_equal(quaternion_to_rotation_matrix(quat), np.eye(3))

    def test_zero_quaternion_is_identity_rotation(self):
        """Test that a degenerate quaternion does not produce NaNs."""
        np.testing.assert_array_equal(quaternion_to_rotation_matrix(np.zeros(4)), np.eye(3))

    def test_axis_angle_rotation(self):
        """Test a quarter turn about Z maps +X to +Y."""
        quat = quaternion_from_axis_angle(np.array([0.0, 0.0, 2.0]), math.pi / 2)
        np.testing.assert_array_almost_equal(quaternion_to_rotation_matrix(quat)[:, 0], [0.0, 1.0, 0.0])

    def test_multiply_composes_rotations(self):
        """Test that two quarter turns make a half turn."""
        quarter = quaternion_from_axis_angle(np.array([0.0, 0.0, 1.0]), math.pi / 2)
        half = quaternion_multiply(quarter, quarter)
        np.testing.assert_array_almost_equal(quaternion_to_rotation_matrix(half)[:, 0], [-1.0, 0.0, 0.0])

    def test_yaw_pitch_looks_down(self):
        """Test that positive pitch tilts the forward axis downward."""
        quat = quaternion_from_yaw_pitch(math.pi / 2, math.radians(30))
        forward = quaternion_to_rotation_matrix(quat)[:, 0]
        np.testing.assert_array_almost_equal(
            forward, [0.0, math.cos(math.radians(30)), -math.sin(math.radians(30))]
        )


class TestBearing:
    """Tests for bearing calculations."""

    def test_bearing_along_x(self):
        """Test bearing toward +X."""
        assert calculate_bearing((0, 0, 0), (10, 0, 5)) == pytest.approx(0.0)

    def test_bearing_along_y(self):
        """Test bearing toward +Y."""
        assert calculate_bearing((0, 0, 0), (0, 10, 0)) == pytest.approx(math.pi / 2)
