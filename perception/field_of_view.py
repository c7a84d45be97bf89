"""
Camera field-of-view volumes for next-best-view scoring.

A FieldOfView is the frustum seen by the inspection camera from a pose:
bounded by horizontal and vertical opening angles and by a depth range
along the camera's forward axis. The camera looks along its body +X axis,
+Y is left and +Z is up.
"""

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from mapping.bounding_box import BoundingBox
from utils.errors import ConfigurationError
from utils.math_helpers import (
    PointLike,
    Quaternion,
    Vector3,
    as_vector,
    calculate_bearing,
    quaternion_from_yaw_pitch,
    quaternion_to_rotation_matrix,
)


@dataclass(frozen=True)
class FoVAngle:
    """Full opening angle of the camera along one axis, stored in radians."""

    radians: float

    def __post_init__(self):
        if not 0.0 < self.radians < math.pi:
            raise ConfigurationError(
                f"Field-of-view angle must be in (0, 180) degrees, got {math.degrees(self.radians)}"
            )

    @classmethod
    def from_degrees(cls, degrees: float) -> "FoVAngle":
        return cls(math.radians(degrees))

    @property
    def degrees(self) -> float:
        return math.degrees(self.radians)

    @property
    def half_tan(self) -> float:
        """Tangent of the half angle; lateral extent per meter of depth."""
        return math.tan(self.radians / 2)


@dataclass(frozen=True)
class DepthRange:
    """Distances along the forward axis the camera resolves usefully."""

    min: float
    max: float

    def __post_init__(self):
        if self.min < 0 or self.max <= self.min:
            raise ConfigurationError(
                f"Depth range must satisfy 0 <= min < max, got [{self.min}, {self.max}]"
            )


@dataclass(frozen=True, eq=False)
class Pose:
    """Position and orientation quaternion [w, x, y, z]."""

    position: Vector3
    orientation: Quaternion

    def __post_init__(self):
        object.__setattr__(self, "position", as_vector(self.position))
        object.__setattr__(self, "orientation", np.asarray(self.orientation, dtype=np.float64))


@dataclass(frozen=True, eq=False)
class FieldOfView:
    """
    Frustum seen by the camera from a pose.

    Attributes:
        pose: Camera pose
        horizontal: Full horizontal opening angle
        vertical: Full vertical opening angle
        depth_range: Near and far limits along the forward axis
        target: Optional point of interest the camera is focused on
    """

    pose: Pose
    horizontal: FoVAngle
    vertical: FoVAngle
    depth_range: DepthRange
    target: Optional[Vector3] = None

    @property
    def rotation(self) -> NDArray[np.float64]:
        """Rotation matrix whose columns are the forward, left and up axes."""
        return quaternion_to_rotation_matrix(self.pose.orientation)

    @property
    def forward(self) -> Vector3:
        return self.rotation[:, 0]

    @property
    def left(self) -> Vector3:
        return self.rotation[:, 1]

    @property
    def up(self) -> Vector3:
        return self.rotation[:, 2]

    def corners(self) -> NDArray[np.float64]:
        """
        Corners of the near and far planes.

        Returns:
            (8, 3) array, near plane first
        """
        rotation = self.rotation
        h = self.horizontal.half_tan
        v = self.vertical.half_tan
        corners = []
        for depth in (self.depth_range.min, self.depth_range.max):
            for sy in (1.0, -1.0):
                for sz in (1.0, -1.0):
                    local = np.array([depth, sy * h * depth, sz * v * depth])
                    corners.append(self.pose.position + rotation @ local)
        return np.array(corners)

    def contains(self, points: NDArray[np.float64]) -> NDArray[np.bool_]:
        """
        Vectorised test of which points lie inside the frustum.

        Args:
            points: (N, 3) array of world points

        Returns:
            Boolean mask of length N
        """
        points = np.atleast_2d(np.asarray(points, dtype=np.float64))
        # World -> camera frame: local = R^T (p - position)
        local = (points - self.pose.position) @ self.rotation
        depth = local[:, 0]
        return (
            (depth >= self.depth_range.min)
            & (depth <= self.depth_range.max)
            & (np.abs(local[:, 1]) <= depth * self.horizontal.half_tan)
            & (np.abs(local[:, 2]) <= depth * self.vertical.half_tan)
        )

    def distance_to_target(self) -> Optional[float]:
        if self.target is None:
            return None
        return float(np.linalg.norm(as_vector(self.target) - self.pose.position))


def compute_bbx(fov: FieldOfView) -> BoundingBox:
    """Axis-aligned box enclosing the frustum."""
    return BoundingBox.from_points(fov.corners())


def look_at_orientation(position: PointLike, target: PointLike, pitch_rad: float = 0.0) -> Quaternion:
    """
    Orientation that yaws toward target with a fixed camera pitch.

    The pitch is not derived from the height difference; the gimbal pitch
    is a property of the camera mount.
    """
    return quaternion_from_yaw_pitch(calculate_bearing(position, target), pitch_rad)


def make_fov(
    position: PointLike,
    target: Optional[PointLike],
    horizontal_deg: float,
    vertical_deg: float,
    depth_min: float,
    depth_max: float,
    pitch_deg: float = 0.0,
) -> FieldOfView:
    """
    Build the field of view of a camera at position looking toward target.

    Without a target the camera keeps yaw 0 (looking along +X).
    """
    pitch = math.radians(pitch_deg)
    if target is None:
        orientation = quaternion_from_yaw_pitch(0.0, pitch)
        target_vec = None
    else:
        orientation = look_at_orientation(position, target, pitch)
        target_vec = as_vector(target)
    return FieldOfView(
        pose=Pose(as_vector(position), orientation),
        horizontal=FoVAngle.from_degrees(horizontal_deg),
        vertical=FoVAngle.from_degrees(vertical_deg),
        depth_range=DepthRange(depth_min, depth_max),
        target=target_vec,
    )
