#!/usr/bin/env python3
"""
Drone Inspection Planner
Main Entry Point

Runs the RRT planner against a demo voxel scene: a free room with a wall
in the middle and a partially unexplored structure to inspect behind it.

Usage:
    # Plan from the start to the goal behind the wall
    python main.py

    # Search a viewpoint on the inspection target
    python main.py --mode nbv

    # Smooth the path into a timed trajectory
    python main.py --smooth --speed 1.5

    # Reproducible run with event recording
    python main.py --seed 7 --record
"""

import argparse
import sys
from typing import Optional, Sequence

from config.drone_specs import get_drone_specs
from config.settings import get_settings
from mapping.bounding_box import BoundingBox
from mapping.occupancy_map import VoxelOccupancyMap, VoxelState
from perception.gain import GainWeights
from planning.nbv import NBVRequest
from planning.path_planner import PathPlanner, PlanningMode, PlanningRequest, PlanningResponse
from planning.trajectory_generator import TrajectoryGenerator
from utils.errors import PlannerError
from utils.logger import get_logger, setup_logger

# Initialize logger
logger = get_logger(__name__)

DEFAULT_START = (0.0, 0.0, 1.5)
DEFAULT_GOAL = (12.0, 0.0, 1.5)
DEFAULT_TARGET = (10.0, 4.0, 1.5)


def build_demo_map(resolution: float) -> VoxelOccupancyMap:
    """
    Build the demo scene.

    Room of 16 x 12 x 4 m, free by default. A wall at x = 5 spans the room
    except for a 2 m gap on the +Y side. The inspection structure around
    DEFAULT_TARGET has an occupied core wrapped in unknown space.
    """
    occupancy = VoxelOccupancyMap(
        resolution=resolution,
        bounds=BoundingBox((-2.0, -6.0, 0.0), (14.0, 6.0, 4.0)),
        default_state=VoxelState.FREE,
    )

    # Wall with a gap between y = 3 and y = 5
    occupancy.mark_box(BoundingBox((5.0, -6.0, 0.0), (5.5, 3.0, 4.0)), VoxelState.OCCUPIED)
    occupancy.mark_box(BoundingBox((5.0, 5.0, 0.0), (5.5, 6.0, 4.0)), VoxelState.OCCUPIED)

    # Inspection structure
    occupancy.mark_box(BoundingBox.around(DEFAULT_TARGET, 1.5), VoxelState.UNKNOWN)
    occupancy.mark_box(BoundingBox.around(DEFAULT_TARGET, 0.5), VoxelState.OCCUPIED)

    logger.info(
        "Demo map built",
        resolution=resolution,
        occupied_voxels=occupancy.count(VoxelState.OCCUPIED),
        unknown_voxels=occupancy.count(VoxelState.UNKNOWN),
    )
    return occupancy


def build_request(args: argparse.Namespace) -> PlanningRequest:
    """Translate command line arguments into a planning request."""
    mode = PlanningMode(args.mode)

    nbv = None
    if mode is PlanningMode.NBV:
        camera = get_drone_specs().camera_fov_parameters()
        nbv = NBVRequest(
            target=tuple(args.target),
            horizontal_deg=camera["horizontal_deg"],
            vertical_deg=camera["vertical_deg"],
            depth_min=camera["depth_min"],
            depth_max=camera["depth_max"],
            pitch_deg=camera["pitch_deg"],
            weights=GainWeights.from_settings(),
            gain_of_interest_threshold=(
                args.threshold if args.threshold is not None
                else get_settings().nbv.gain_of_interest_threshold
            ),
        )

    return PlanningRequest(
        start=tuple(args.start),
        mode=mode,
        goal=tuple(args.goal) if mode is PlanningMode.GOAL else None,
        nbv=nbv,
        step_size=args.step_size,
        max_iterations=args.max_iterations,
        optimize_waypoints=True if args.optimize else None,
        seed=args.seed,
    )


def report(response: PlanningResponse) -> None:
    """Log the outcome of a planning request."""
    logger.info(
        "Planning finished",
        success=response.success,
        iterations=response.iterations,
        waypoints=len(response.waypoints),
        found_nbv_with_sufficient_gain=response.found_nbv_with_sufficient_gain,
        gain=None if response.gain is None else round(response.gain, 4),
        failure=None if response.failure is None else response.failure.value,
    )
    for i, waypoint in enumerate(response.waypoints):
        logger.info(f"Waypoint {i}", position=tuple(round(float(v), 3) for v in waypoint))


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main entry point for the inspection planner demo.

    Args:
        argv: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 = success, 1 = planning failed, 2 = invalid input)
    """
    args = parse_args(argv)

    # Setup logging
    setup_logger(log_level="DEBUG" if args.verbose else None)
    settings = get_settings()
    if args.record:
        settings.logging.record_planning_events = True

    logger.info("=" * 60)
    logger.info("Drone Inspection Planner", mode=args.mode)
    logger.info("=" * 60)

    occupancy = build_demo_map(settings.map.resolution)
    planner = PathPlanner(lambda: occupancy)

    try:
        request = build_request(args)
        response = planner.handle(request)
    except PlannerError as e:
        logger.error("Planning request rejected", error=str(e))
        return 2

    report(response)

    if planner.last_recorder is not None:
        logger.info("Tree statistics", **planner.last_recorder.get_statistics())

    if args.smooth and len(response.waypoints) >= 2:
        trajectory = TrajectoryGenerator().generate_trajectory(response.waypoints, speed=args.speed)
        logger.info(
            "Trajectory generated",
            points=len(trajectory.points),
            length_m=round(trajectory.length, 2),
            duration_s=round(trajectory.total_time, 2),
        )

    return 0 if response.success else 1


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Drone Inspection Planner - RRT and next-best-view demo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Goal-directed planning through the demo scene
    python main.py

    # Next-best-view search on a custom target
    python main.py --mode nbv --target 10 4 1.5

    # Shortcut and smooth the path
    python main.py --optimize --smooth --speed 2.0

    # Verbose logging
    python main.py --verbose
        """,
    )

    parser.add_argument(
        "--mode", "-m",
        choices=[m.value for m in PlanningMode],
        default=PlanningMode.GOAL.value,
        help="Planning mode (default: goal)",
    )

    parser.add_argument(
        "--start",
        type=float,
        nargs=3,
        default=list(DEFAULT_START),
        metavar=("X", "Y", "Z"),
        help="Start position (default: %(default)s)",
    )

    parser.add_argument(
        "--goal",
        type=float,
        nargs=3,
        default=list(DEFAULT_GOAL),
        metavar=("X", "Y", "Z"),
        help="Goal position in goal mode (default: %(default)s)",
    )

    parser.add_argument(
        "--target",
        type=float,
        nargs=3,
        default=list(DEFAULT_TARGET),
        metavar=("X", "Y", "Z"),
        help="Inspection target in nbv mode (default: %(default)s)",
    )

    parser.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Gain of interest threshold in nbv mode (default: from settings)",
    )

    parser.add_argument(
        "--step-size",
        type=float,
        default=None,
        help="Maximum tree edge length in meters (default: from settings)",
    )

    parser.add_argument(
        "--max-iterations",
        type=int,
        default=None,
        help="Growth step budget (default: from settings)",
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducible runs",
    )

    parser.add_argument(
        "--optimize",
        action="store_true",
        help="Shortcut the path with line-of-sight pruning",
    )

    parser.add_argument(
        "--smooth",
        action="store_true",
        help="Smooth the path into a timed trajectory",
    )

    parser.add_argument(
        "--speed", "-s",
        type=float,
        default=None,
        help="Trajectory speed in m/s (default: cruise speed from settings)",
    )

    parser.add_argument(
        "--record",
        action="store_true",
        help="Record tree growth events to CSV",
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    return parser.parse_args(argv)


if __name__ == "__main__":
    sys.exit(main())
