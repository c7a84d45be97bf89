"""
Mathematical helper functions for the inspection planner.

Provides common mathematical operations used throughout the system:
- Angle normalization and difference calculations
- Vector operations (conversion, magnitude, normalization)
- Quaternion operations (composition, yaw/pitch construction, rotation matrices)
- Planar bearings

All functions use numpy arrays for vector operations.
"""

import math
from typing import Sequence, Union

import numpy as np
from numpy.typing import NDArray


# Type aliases for clarity
Vector3 = NDArray[np.float64]  # 3D vector [x, y, z]
Quaternion = NDArray[np.float64]  # [w, x, y, z]
PointLike = Union[Vector3, Sequence[float]]

UNIT_Y = np.array([0.0, 1.0, 0.0])
UNIT_Z = np.array([0.0, 0.0, 1.0])


def as_vector(point: PointLike) -> Vector3:
    """
    Convert a point-like value to a float64 numpy vector.

    Args:
        point: Tuple, list or array with three components

    Returns:
        Copy of the point as a float64 array of shape (3,)
    """
    vector = np.array(point, dtype=np.float64)
    if vector.shape != (3,):
        raise ValueError(f"Expected a 3D point, got shape {vector.shape}")
    return vector


def normalize_angle(angle_rad: float) -> float:
    """
    Normalize an angle to the range [-pi, pi].

    Args:
        angle_rad: Angle in radians

    Returns:
        Normalized angle in radians within [-pi, pi]

    Example:
        >>> normalize_angle(3 * math.pi)  # 540 degrees
        -3.141592...  # -180 degrees
    """
    while angle_rad > math.pi:
        angle_rad -= 2 * math.pi
    while angle_rad < -math.pi:
        angle_rad += 2 * math.pi
    return angle_rad


def angle_difference(angle1_rad: float, angle2_rad: float) -> float:
    """
    Calculate the shortest angular difference between two angles.

    Args:
        angle1_rad: First angle in radians
        angle2_rad: Second angle in radians

    Returns:
        Shortest angular difference in radians, range [-pi, pi]
    """
    return normalize_angle(angle2_rad - angle1_rad)


def vector_magnitude(vector: PointLike) -> float:
    """
    Calculate the magnitude (length) of a vector.

    Example:
        >>> vector_magnitude(np.array([3.0, 4.0, 0.0]))
        5.0
    """
    return float(np.linalg.norm(vector))


def vector_normalize(vector: Vector3) -> Vector3:
    """
    Normalize a vector to unit length.

    Args:
        vector: Input vector

    Returns:
        Unit vector in same direction, or zero vector if input is zero
    """
    mag = vector_magnitude(vector)
    if mag < 1e-10:  # Avoid division by zero
        return np.zeros_like(vector, dtype=np.float64)
    return vector / mag


# =============================================================================
# Quaternion Operations
# =============================================================================
# Quaternions are stored scalar-first: [w, x, y, z]


def quaternion_multiply(q1: Quaternion, q2: Quaternion) -> Quaternion:
    """
    Hamilton product q1 * q2 (apply q2 first, then q1).

    Args:
        q1: Left quaternion [w, x, y, z]
        q2: Right quaternion [w, x, y, z]

    Returns:
        Product quaternion [w, x, y, z]
    """
    w1, x1, y1, z1 = q1
    w2, x2, y2, z2 = q2
    return np.array([
        w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
        w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
        w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
        w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2,
    ])


def quaternion_from_axis_angle(axis: Vector3, angle_rad: float) -> Quaternion:
    """
    Build a unit quaternion rotating by angle_rad about axis.

    Args:
        axis: Rotation axis (need not be normalized)
        angle_rad: Rotation angle in radians

    Returns:
        Quaternion [w, x, y, z]
    """
    unit = vector_normalize(np.asarray(axis, dtype=np.float64))
    half = angle_rad / 2
    return np.concatenate(([math.cos(half)], unit * math.sin(half)))


def quaternion_from_yaw_pitch(yaw_rad: float, pitch_rad: float) -> Quaternion:
    """
    Orientation from a yaw about Z followed by a pitch about the local Y axis.

    Args:
        yaw_rad: Heading in radians, 0 = +X
        pitch_rad: Pitch in radians, positive tilts +X toward -Z

    Returns:
        Quaternion [w, x, y, z]
    """
    return quaternion_multiply(
        quaternion_from_axis_angle(UNIT_Z, yaw_rad),
        quaternion_from_axis_angle(UNIT_Y, pitch_rad),
    )


def quaternion_to_rotation_matrix(quat: Quaternion) -> NDArray[np.float64]:
    """
    Convert a quaternion to a 3x3 rotation matrix.

    A zero quaternion yields the identity.
    """
    norm = float(np.linalg.norm(quat))
    if norm == 0.0:
        return np.eye(3)
    w, x, y, z = np.asarray(quat, dtype=np.float64) / norm
    return np.array([
        [1 - 2 * (y * y + z * z), 2 * (x * y - w * z), 2 * (x * z + w * y)],
        [2 * (x * y + w * z), 1 - 2 * (x * x + z * z), 2 * (y * z - w * x)],
        [2 * (x * z - w * y), 2 * (y * z + w * x), 1 - 2 * (x * x + y * y)],
    ])


def calculate_bearing(from_pos: PointLike, to_pos: PointLike) -> float:
    """
    Heading from one position to another in the XY plane.

    Returns:
        Yaw in radians, 0 = +X, positive = counterclockwise
    """
    return math.atan2(to_pos[1] - from_pos[1], to_pos[0] - from_pos[0])
