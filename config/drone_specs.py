"""
Physical specifications of the inspection drone and its camera.

These values bound what the planner may ask of the vehicle: cruise speeds
for trajectory generation and the camera frustum used when scoring
next-best-view candidates.

Note: Values marked (estimated) should be replaced by the numbers of the
actual airframe and camera once they are measured.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Dict


@dataclass(frozen=True)
class DroneSpecs:
    """
    Physical specifications of the inspection drone.

    These are hardware limits that should never be exceeded.

    Attributes:
        name: Drone model identifier
        max_speed_ms: Maximum speed magnitude
        camera_fov_horizontal_deg: Full horizontal opening angle of the camera
        camera_fov_vertical_deg: Full vertical opening angle of the camera
        camera_depth_min_m: Closest distance the camera resolves usefully
        camera_depth_max_m: Furthest distance the camera resolves usefully
        camera_pitch_deg: Mounting pitch of the camera (positive = down)
    """

    # Identification
    name: str = "Inspection Quadrotor"

    # Velocity limits (physical maximums)
    max_speed_ms: float = 5.0  # (estimated) Maximum speed magnitude

    # Inspection camera
    camera_fov_horizontal_deg: float = 90.0  # (estimated) Horizontal FOV
    camera_fov_vertical_deg: float = 60.0  # (estimated) Vertical FOV
    camera_depth_min_m: float = 0.5  # (estimated)
    camera_depth_max_m: float = 4.0  # (estimated)
    camera_pitch_deg: float = 0.0  # Gimbal level with the horizon

    def can_achieve_velocity(self, velocity_ms: float) -> bool:
        """Check if a given velocity is physically achievable."""
        return abs(velocity_ms) <= self.max_speed_ms

    def camera_fov_parameters(self) -> Dict[str, float]:
        """
        Field-of-view parameters of the inspection camera.

        Returns:
            Dictionary with horizontal/vertical angles (degrees),
            depth range (meters) and pitch (degrees)
        """
        return {
            "horizontal_deg": self.camera_fov_horizontal_deg,
            "vertical_deg": self.camera_fov_vertical_deg,
            "depth_min": self.camera_depth_min_m,
            "depth_max": self.camera_depth_max_m,
            "pitch_deg": self.camera_pitch_deg,
        }


@lru_cache()
def get_drone_specs() -> DroneSpecs:
    """
    Get the drone specifications instance (cached singleton).

    Returns:
        DroneSpecs: The drone physical specifications.

    Example:
        specs = get_drone_specs()
        max_speed = specs.max_speed_ms
    """
    return DroneSpecs()
