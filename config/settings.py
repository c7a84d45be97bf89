"""
Centralized settings and tunable parameters for the inspection planner.

All magic numbers and configuration values should be defined here,
making it easy to tune the planner without modifying code logic.

Usage:
    from config.settings import get_settings
    settings = get_settings()
    print(settings.planner.step_size)
"""

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings


class PlannerSettings(BaseSettings):
    """Default tuning parameters for the RRT tree planner."""

    max_iterations: int = Field(
        default=1000,
        description="Maximum number of tree growth steps per planning run"
    )
    goal_bias: float = Field(
        default=0.1,
        description="Probability of sampling the goal instead of a random point"
    )
    probability_of_testing_full_path_from_new_node_to_goal: float = Field(
        default=0.05,
        description="Probability of trying a direct connection from a new node to the goal"
    )
    step_size: float = Field(
        default=1.0,
        description="Maximum edge length when growing the tree (meters)"
    )
    goal_distance_tolerance: float = Field(
        default=0.5,
        description="Distance at which the goal counts as reached (meters)"
    )

    # Sampling region
    sampling_margin: float = Field(
        default=2.0,
        description="Padding added around the sampling region (meters)"
    )

    # Collision policy
    unknown_is_occupied: bool = Field(
        default=False,
        description="Treat unknown voxels as obstacles during collision checks"
    )

    optimize_waypoints: bool = Field(
        default=False,
        description="Shortcut the backtracked path with line-of-sight pruning"
    )
    require_map: bool = Field(
        default=True,
        description="Reject planning requests when no occupancy map can be fetched"
    )


class NBVSettings(BaseSettings):
    """Settings for next-best-view gain scoring."""

    weight_free: float = Field(
        default=0.0,
        description="Gain weight of free voxels inside the field of view"
    )
    weight_occupied: float = Field(
        default=1.0,
        description="Gain weight of occupied voxels inside the field of view"
    )
    weight_unknown: float = Field(
        default=2.0,
        description="Gain weight of unknown voxels inside the field of view"
    )
    weight_distance_to_object: float = Field(
        default=0.1,
        description="Penalty per meter between the viewpoint and the inspection target"
    )
    gain_of_interest_threshold: float = Field(
        default=1.0,
        description="Gain at which a viewpoint is good enough to stop searching"
    )


class MapSettings(BaseSettings):
    """Settings for the occupancy map collaborator."""

    resolution: float = Field(
        default=0.25,
        description="Edge length of a voxel (meters)"
    )
    clear_radius_around_start: float = Field(
        default=0.0,
        description="Half-size of the box cleared around the start before planning (0 = off)"
    )


class SplineSettings(BaseSettings):
    """Settings for spline smoothing and trajectory sampling."""

    resolution: int = Field(
        default=100,
        description="Number of sample intervals along the Bezier spline"
    )
    trajectory_time_step: float = Field(
        default=0.1,
        description="Time step for trajectory discretization (seconds)"
    )
    cruise_speed: float = Field(
        default=1.0,
        description="Default speed along the smoothed path (m/s)"
    )


class LoggingSettings(BaseSettings):
    """Settings for logging and planning event recording."""

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_to_file: bool = Field(
        default=False,
        description="Whether to log to file"
    )
    log_directory: str = Field(
        default="logs",
        description="Directory for log files"
    )

    # Planning event recording
    record_planning_events: bool = Field(
        default=False,
        description="Whether to record tree growth events"
    )
    recording_directory: str = Field(
        default="planning_data",
        description="Directory for planning event recordings"
    )


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    This provides a single point of access for all planner configuration.
    """

    planner: PlannerSettings = Field(default_factory=PlannerSettings)
    nbv: NBVSettings = Field(default_factory=NBVSettings)
    map: MapSettings = Field(default_factory=MapSettings)
    spline: SplineSettings = Field(default_factory=SplineSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    class Config:
        env_prefix = "INSPECT_"  # Environment variables like INSPECT_PLANNER__STEP_SIZE
        env_nested_delimiter = "__"


@lru_cache()
def get_settings() -> Settings:
    """
    Get the global settings instance (cached singleton).

    Returns:
        Settings: The global settings object with all configuration.

    Example:
        settings = get_settings()
        step = settings.planner.step_size
    """
    return Settings()
