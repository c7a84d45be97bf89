"""
Trajectory generation along smoothed paths.

Smooths planner waypoints with a Bezier spline and samples the curve at
constant speed, giving timed states the flight controller can track.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np

from config.drone_specs import get_drone_specs
from config.settings import get_settings
from planning import bezier_spline
from utils.errors import ConfigurationError
from utils.logger import get_logger
from utils.math_helpers import PointLike, angle_difference, calculate_bearing, normalize_angle

logger = get_logger(__name__)


@dataclass
class TrajectoryPoint:
    """A single point on a trajectory."""

    time: float  # Time from trajectory start (seconds)
    position: Tuple[float, float, float]
    velocity: Tuple[float, float, float]
    yaw: float = 0.0  # Radians, direction of travel


@dataclass
class Trajectory:
    """
    A complete trajectory with timing information.

    Contains a series of trajectory points that define position and
    velocity over time.
    """

    points: List[TrajectoryPoint] = field(default_factory=list)
    total_time: float = 0.0
    length: float = 0.0

    def get_state_at_time(self, t: float) -> Optional[TrajectoryPoint]:
        """
        Interpolate trajectory state at a given time.

        Args:
            t: Time from trajectory start

        Returns:
            Interpolated TrajectoryPoint or None if t is out of range
        """
        if not self.points or t < 0:
            return None

        if t >= self.total_time:
            return self.points[-1]

        for i in range(len(self.points) - 1):
            if self.points[i].time <= t < self.points[i + 1].time:
                p1 = self.points[i]
                p2 = self.points[i + 1]
                dt = p2.time - p1.time
                alpha = (t - p1.time) / dt if dt > 0 else 0

                pos = tuple(
                    p1.position[j] + alpha * (p2.position[j] - p1.position[j])
                    for j in range(3)
                )
                vel = tuple(
                    p1.velocity[j] + alpha * (p2.velocity[j] - p1.velocity[j])
                    for j in range(3)
                )

                return TrajectoryPoint(
                    time=t,
                    position=pos,
                    velocity=vel,
                    yaw=normalize_angle(p1.yaw + alpha * angle_difference(p1.yaw, p2.yaw)),
                )

        return self.points[-1]


@dataclass
class TrajectoryGenerator:
    """
    Generates constant-speed trajectories along a Bezier-smoothed path.

    The spline passes through the first and last waypoint and is pulled
    toward the intermediate ones, so the flown path cuts corners of the
    planner's polyline.

    Example:
        generator = TrajectoryGenerator()
        trajectory = generator.generate_trajectory(waypoints, speed=1.5)
        state = trajectory.get_state_at_time(2.0)
    """

    resolution: Optional[int] = None
    time_step: Optional[float] = None

    def __post_init__(self):
        self.settings = get_settings()
        self.specs = get_drone_specs()
        if self.resolution is None:
            self.resolution = self.settings.spline.resolution
        if self.time_step is None:
            self.time_step = self.settings.spline.trajectory_time_step
        if not (math.isfinite(self.time_step) and self.time_step > 0):
            raise ConfigurationError(f"Trajectory time step must be positive, got {self.time_step}")

    def smooth(self, waypoints: Sequence[PointLike]) -> bezier_spline.SplineState:
        """Build the spline through the waypoints."""
        return bezier_spline.build(waypoints, self.resolution)

    def generate_trajectory(
        self,
        waypoints: Sequence[PointLike],
        speed: Optional[float] = None,
    ) -> Trajectory:
        """
        Generate a trajectory along the smoothed waypoints.

        Args:
            waypoints: Ordered positions, usually a planner path
            speed: Desired speed in m/s (defaults to the cruise speed setting)

        Returns:
            Trajectory object with timed points
        """
        if len(waypoints) < 2:
            logger.warning("Need at least 2 waypoints for trajectory")
            return Trajectory()

        if speed is None:
            speed = self.settings.spline.cruise_speed
        if not (math.isfinite(speed) and speed > 0):
            raise ConfigurationError(f"Trajectory speed must be positive, got {speed}")

        # Clamp speed to drone limits
        if not self.specs.can_achieve_velocity(speed):
            logger.warning("Requested speed exceeds drone limit", speed=speed, limit=self.specs.max_speed_ms)
            speed = self.specs.max_speed_ms

        spline = self.smooth(waypoints)
        length = spline.arc_length
        if length <= 0:
            logger.warning("Waypoints span no distance, trajectory is empty")
            return Trajectory()

        spacing = speed * self.time_step
        distances = list(np.arange(0.0, length, spacing))
        if length - distances[-1] > 1e-9:
            distances.append(length)

        positions = [bezier_spline.point_at_distance(spline, d) for d in distances]
        times = [float(d) / speed for d in distances]

        points = []
        for i, (t, position) in enumerate(zip(times, positions)):
            if i + 1 < len(positions):
                segment = positions[i + 1] - position
                dt = times[i + 1] - t
            else:
                segment = position - positions[i - 1]
                dt = t - times[i - 1]
            velocity = segment / dt if dt > 0 else np.zeros(3)
            yaw = calculate_bearing(position, position + segment)

            points.append(TrajectoryPoint(
                time=t,
                position=tuple(float(v) for v in position),
                # Come to rest at the end
                velocity=tuple(float(v) for v in velocity) if i + 1 < len(positions) else (0.0, 0.0, 0.0),
                yaw=yaw,
            ))

        trajectory = Trajectory(points=points, total_time=times[-1], length=length)

        logger.debug(
            "Generated trajectory",
            waypoints=len(waypoints),
            points=len(points),
            length=round(length, 3),
            duration=round(trajectory.total_time, 3),
        )

        return trajectory
