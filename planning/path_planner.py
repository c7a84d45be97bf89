"""
Planning request facade.

Answers goal-directed and next-best-view requests against the current
occupancy map. Each request gets its own map snapshot and its own RRT, so
requests never share tree state.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, List, Optional

from config.settings import get_settings
from mapping.bounding_box import BoundingBox
from mapping.occupancy_map import OccupancyMap
from mapping.query_adapter import OccupancyQueryAdapter
from planning.events import PlannerObserver
from planning.nbv import NBVPlanner, NBVRequest
from planning.rrt import RRT, FailureReason, PlanningFailure, Point3, Waypoints, make_planner_config
from planning.tree_recorder import TreeRecorder
from utils.errors import CollaboratorUnavailable, ConfigurationError
from utils.logger import get_logger, planning_run_context

logger = get_logger(__name__)

MapProvider = Callable[[], Optional[OccupancyMap]]


class PlanningMode(Enum):
    """Kind of planning request."""
    GOAL = "goal"
    NBV = "nbv"


@dataclass(frozen=True)
class PlanningRequest:
    """
    One planning request.

    Tuning values left as None fall back to PlannerSettings.

    Attributes:
        start: Current drone position
        mode: GOAL or NBV
        goal: Goal position (GOAL mode only)
        nbv: Camera and scoring parameters (NBV mode only)
        seed: Random seed for reproducible runs
    """

    start: Point3
    mode: PlanningMode = PlanningMode.GOAL
    goal: Optional[Point3] = None
    nbv: Optional[NBVRequest] = None

    goal_bias: Optional[float] = None
    probability_of_testing_full_path_from_new_node_to_goal: Optional[float] = None
    step_size: Optional[float] = None
    goal_distance_tolerance: Optional[float] = None
    max_iterations: Optional[int] = None
    optimize_waypoints: Optional[bool] = None
    bounds: Optional[BoundingBox] = field(default=None, compare=False)
    seed: Optional[int] = None


@dataclass(frozen=True)
class PlanningResponse:
    """
    Answer to a planning request.

    Attributes:
        waypoints: Path from the start, empty if nothing usable was found
        success: Whether the request was fully satisfied
        found_nbv_with_sufficient_gain: NBV mode only, whether the threshold was reached
        gain: NBV mode only, gain of the best viewpoint
        iterations: Growth steps performed
        failure: Why a goal-directed run stopped without success
    """

    waypoints: Waypoints
    success: bool
    found_nbv_with_sufficient_gain: bool = False
    gain: Optional[float] = None
    iterations: int = 0
    failure: Optional[FailureReason] = None


class PathPlanner:
    """
    Entry point for planning requests.

    Example:
        planner = PathPlanner(lambda: occupancy)
        response = planner.find_path(PlanningRequest(start=(0, 0, 1), goal=(5, 0, 1)))
    """

    def __init__(self, map_provider: MapProvider, observers: Iterable[PlannerObserver] = ()):
        self.map_provider = map_provider
        self.observers: List[PlannerObserver] = list(observers)
        self.settings = get_settings()
        self.last_recorder: Optional[TreeRecorder] = None

    def handle(
        self,
        request: PlanningRequest,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> PlanningResponse:
        """Dispatch a request on its mode."""
        if request.mode is PlanningMode.NBV:
            return self.next_best_view(request, should_cancel)
        return self.find_path(request, should_cancel)

    def find_path(
        self,
        request: PlanningRequest,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> PlanningResponse:
        """
        Plan a collision-free path from request.start to request.goal.

        Raises:
            ConfigurationError: If the request has no goal or invalid tuning values
            CollaboratorUnavailable: If no map is available and one is required
        """
        if request.goal is None:
            raise ConfigurationError("Goal-directed planning needs a goal position")

        with planning_run_context(run_id=uuid.uuid4().hex[:8], mode=PlanningMode.GOAL.value):
            config = make_planner_config(
                request.start,
                request.goal,
                goal_bias=request.goal_bias,
                probability_of_testing_full_path_from_new_node_to_goal=(
                    request.probability_of_testing_full_path_from_new_node_to_goal
                ),
                step_size=request.step_size,
                goal_distance_tolerance=request.goal_distance_tolerance,
                max_iterations=request.max_iterations,
                optimize_waypoints=request.optimize_waypoints,
                bounds=request.bounds,
                seed=request.seed,
            )
            rrt = self._make_rrt(config, request)
            result = rrt.run(should_cancel)
            self._save_recording()

            if isinstance(result, PlanningFailure):
                return PlanningResponse(
                    waypoints=result.best_effort,
                    success=False,
                    iterations=result.iterations,
                    failure=result.reason,
                )
            return PlanningResponse(waypoints=result, success=True, iterations=rrt.iterations)

    def next_best_view(
        self,
        request: PlanningRequest,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> PlanningResponse:
        """
        Search for a viewpoint on request.nbv.target with enough gain.

        Raises:
            ConfigurationError: If the request has no NBV section or invalid tuning values
            CollaboratorUnavailable: If no map is available and one is required
        """
        if request.nbv is None:
            raise ConfigurationError("Next-best-view planning needs camera parameters")

        with planning_run_context(run_id=uuid.uuid4().hex[:8], mode=PlanningMode.NBV.value):
            # No goal: direct connection and goal tolerance play no part here
            config = make_planner_config(
                request.start,
                None,
                goal_bias=0.0,
                probability_of_testing_full_path_from_new_node_to_goal=0.0,
                step_size=request.step_size,
                goal_distance_tolerance=0.0,
                max_iterations=request.max_iterations,
                optimize_waypoints=request.optimize_waypoints,
                bounds=request.bounds,
                seed=request.seed,
            )
            rrt = self._make_rrt(config, request)
            result = NBVPlanner(rrt, request.nbv).plan(should_cancel)
            self._save_recording()

            return PlanningResponse(
                waypoints=result.waypoints,
                success=result.success,
                found_nbv_with_sufficient_gain=result.found_nbv_with_sufficient_gain,
                gain=result.best_gain if result.waypoints else None,
                iterations=result.iterations,
            )

    def clear_map_region(self, region: BoundingBox) -> None:
        """Mark a region of the provider's map free."""
        self._adapter(self._fetch_map()).clear_region(region)

    def reset_map(self) -> None:
        """Forget everything the provider's map knows."""
        self._adapter(self._fetch_map()).reset()

    def _fetch_map(self) -> Optional[OccupancyMap]:
        try:
            occupancy = self.map_provider()
        except CollaboratorUnavailable:
            if self.settings.planner.require_map:
                raise
            logger.warning("Occupancy map provider failed, planning without a map")
            occupancy = None

        if occupancy is None and self.settings.planner.require_map:
            raise CollaboratorUnavailable("No occupancy map available for planning")
        return occupancy

    def _adapter(self, occupancy: Optional[OccupancyMap]) -> OccupancyQueryAdapter:
        return OccupancyQueryAdapter(
            occupancy,
            unknown_is_occupied=self.settings.planner.unknown_is_occupied,
            fallback_resolution=self.settings.map.resolution,
        )

    def _make_rrt(self, config, request: PlanningRequest) -> RRT:
        occupancy = self._fetch_map()
        # The run plans on a private copy; the provider's map stays live
        snapshot = occupancy.copy() if occupancy is not None else None
        adapter = self._adapter(snapshot)

        radius = self.settings.map.clear_radius_around_start
        if radius > 0:
            logger.debug("Clearing region around start", radius=radius)
            adapter.clear_region(BoundingBox.around(request.start, radius))

        observers = list(self.observers)
        self.last_recorder = None
        if self.settings.logging.record_planning_events:
            self.last_recorder = TreeRecorder()
            observers.append(self.last_recorder)

        return RRT(config, adapter, observers)

    def _save_recording(self) -> None:
        if self.last_recorder is not None:
            self.last_recorder.save()
