"""
Utility modules for the drone inspection planner.

This package contains helper functions and utilities used throughout
the planner: structured logging and vector/quaternion math.
"""

from utils.logger import setup_logger, get_logger, planning_run_context
from utils.math_helpers import (
    normalize_angle,
    angle_difference,
    vector_magnitude,
    vector_normalize,
    quaternion_from_yaw_pitch,
)

__all__ = [
    "setup_logger",
    "get_logger",
    "planning_run_context",
    "normalize_angle",
    "angle_difference",
    "vector_magnitude",
    "vector_normalize",
    "quaternion_from_yaw_pitch",
]
