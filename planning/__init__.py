"""
Planning module for the drone inspection planner.

This module handles path planning and trajectory generation:
- RRT tree growth over the occupancy map (goal-directed and next-best-view)
- Bezier spline smoothing of waypoint paths
- Constant-speed trajectories along smoothed paths
- Planner event hooks and recording
"""

from planning.events import PlannerObserver
from planning.nbv import NBVPlanner, NBVRequest, NBVResult
from planning.path_planner import PathPlanner, PlanningMode, PlanningRequest, PlanningResponse
from planning.rrt import RRT, FailureReason, PlanningFailure, make_planner_config, plan
from planning.trajectory_generator import TrajectoryGenerator
from planning.tree_recorder import TreeRecorder

__all__ = [
    "PlannerObserver",
    "NBVPlanner",
    "NBVRequest",
    "NBVResult",
    "PathPlanner",
    "PlanningMode",
    "PlanningRequest",
    "PlanningResponse",
    "RRT",
    "FailureReason",
    "PlanningFailure",
    "make_planner_config",
    "plan",
    "TrajectoryGenerator",
    "TreeRecorder",
]
