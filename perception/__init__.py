"""
Perception module for the drone inspection planner.

This module models what the inspection camera can see:
- Field-of-view frustums and their bounding boxes
- Next-best-view gain scoring against the occupancy map
"""

from perception.field_of_view import (
    DepthRange,
    FieldOfView,
    FoVAngle,
    Pose,
    compute_bbx,
    look_at_orientation,
    make_fov,
)
from perception.gain import GainWeights, VoxelCounts, classify_fov, gain_of_fov

__all__ = [
    "DepthRange",
    "FieldOfView",
    "FoVAngle",
    "Pose",
    "compute_bbx",
    "look_at_orientation",
    "make_fov",
    "GainWeights",
    "VoxelCounts",
    "classify_fov",
    "gain_of_fov",
]
