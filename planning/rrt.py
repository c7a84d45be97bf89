"""
Rapidly-exploring random tree planner.

Grows a tree of collision-free positions from a start point. Each step
samples a point (the goal with probability goal_bias, otherwise uniformly
inside the sampling region), finds the nearest tree node, steps toward the
sample by at most step_size and keeps the new point if the segment is
free in the occupancy map. A path is extracted by backtracking parent
indices from a node to the root.

The tree is a flat arena: nodes live in one list and refer to their parent
by index, which is always lower than their own.

Usage:
    config = make_planner_config(start=(0, 0, 1), goal=(10, 0, 1), step_size=0.5)
    result = plan(config, OccupancyQueryAdapter(occupancy))
    if isinstance(result, PlanningFailure):
        ...
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from config.settings import get_settings
from mapping.bounding_box import BoundingBox
from mapping.query_adapter import OccupancyQueryAdapter
from planning.events import ObserverList, PlannerObserver
from utils.errors import ConfigurationError, QueryDomainError
from utils.logger import get_logger
from utils.math_helpers import PointLike, Quaternion, Vector3, as_vector

logger = get_logger(__name__)

Point3 = Tuple[float, float, float]
Waypoints = Tuple[Vector3, ...]  # Root-to-target order, read-only arrays


class FailureReason(Enum):
    """Why a planning run ended without success."""
    MAX_ITERATIONS = "max_iterations"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class PlanningFailure:
    """
    Structured failure of a planning run.

    Attributes:
        reason: Why the run stopped
        iterations: Growth steps performed
        best_effort: Path to the most useful node found (may be empty)
    """

    reason: FailureReason
    iterations: int
    best_effort: Waypoints = ()


@dataclass(frozen=True)
class PlannerConfig:
    """
    Validated tuning parameters of one planning run.

    Build with make_planner_config(), which rejects invalid values.
    """

    start: Point3
    goal: Optional[Point3]
    goal_bias: float
    probability_of_testing_full_path_from_new_node_to_goal: float
    step_size: float
    goal_distance_tolerance: float
    max_iterations: int
    sampling_margin: float = 2.0
    bounds: Optional[BoundingBox] = field(default=None, compare=False)
    optimize_waypoints: bool = False
    seed: Optional[int] = None


def make_planner_config(
    start: PointLike,
    goal: Optional[PointLike] = None,
    *,
    goal_bias: Optional[float] = None,
    probability_of_testing_full_path_from_new_node_to_goal: Optional[float] = None,
    step_size: Optional[float] = None,
    goal_distance_tolerance: Optional[float] = None,
    max_iterations: Optional[int] = None,
    sampling_margin: Optional[float] = None,
    bounds: Optional[BoundingBox] = None,
    optimize_waypoints: Optional[bool] = None,
    seed: Optional[int] = None,
) -> PlannerConfig:
    """
    Build a PlannerConfig, filling unspecified values from PlannerSettings.

    Args:
        start: Root position of the tree
        goal: Goal position, or None when planning for next-best-view
        goal_bias: Probability of sampling the goal, in [0, 1]
        probability_of_testing_full_path_from_new_node_to_goal: Probability, in [0, 1]
        step_size: Maximum edge length, > 0
        goal_distance_tolerance: Distance counting as "goal reached", >= 0
        max_iterations: Growth step budget, > 0
        sampling_margin: Padding around the sampling region, >= 0
        bounds: Explicit sampling region (overrides the derived one)
        optimize_waypoints: Shortcut the extracted path
        seed: Seed of the random generator (None = nondeterministic)

    Returns:
        Validated PlannerConfig

    Raises:
        ConfigurationError: If any value is out of range
    """
    defaults = get_settings().planner

    def pick(value, default):
        return default if value is None else value

    config = PlannerConfig(
        start=_finite_point("start", start),
        goal=None if goal is None else _finite_point("goal", goal),
        goal_bias=float(pick(goal_bias, defaults.goal_bias)),
        probability_of_testing_full_path_from_new_node_to_goal=float(pick(
            probability_of_testing_full_path_from_new_node_to_goal,
            defaults.probability_of_testing_full_path_from_new_node_to_goal,
        )),
        step_size=float(pick(step_size, defaults.step_size)),
        goal_distance_tolerance=float(pick(goal_distance_tolerance, defaults.goal_distance_tolerance)),
        max_iterations=pick(max_iterations, defaults.max_iterations),
        sampling_margin=float(pick(sampling_margin, defaults.sampling_margin)),
        bounds=bounds,
        optimize_waypoints=bool(pick(optimize_waypoints, defaults.optimize_waypoints)),
        seed=seed,
    )

    for name in ("goal_bias", "probability_of_testing_full_path_from_new_node_to_goal"):
        value = getattr(config, name)
        if not 0.0 <= value <= 1.0:
            raise ConfigurationError(f"{name} must be in [0, 1], got {value}")
    if not (math.isfinite(config.step_size) and config.step_size > 0):
        raise ConfigurationError(f"step_size must be positive, got {config.step_size}")
    if not (math.isfinite(config.goal_distance_tolerance) and config.goal_distance_tolerance >= 0):
        raise ConfigurationError(
            f"goal_distance_tolerance must be non-negative, got {config.goal_distance_tolerance}"
        )
    if (
        isinstance(config.max_iterations, bool)
        or not isinstance(config.max_iterations, (int, np.integer))
        or config.max_iterations <= 0
    ):
        raise ConfigurationError(f"max_iterations must be a positive integer, got {config.max_iterations!r}")
    if not (math.isfinite(config.sampling_margin) and config.sampling_margin >= 0):
        raise ConfigurationError(f"sampling_margin must be non-negative, got {config.sampling_margin}")

    return config


def _finite_point(name: str, point: PointLike) -> Point3:
    try:
        vector = as_vector(point)
    except ValueError as e:
        raise ConfigurationError(f"{name}: {e}") from e
    if not np.all(np.isfinite(vector)):
        raise ConfigurationError(f"{name} must be finite, got {vector}")
    return (float(vector[0]), float(vector[1]), float(vector[2]))


@dataclass
class TreeNode:
    """
    One pose in the tree.

    Attributes:
        position: Node position
        parent: Index of the parent node, None for the root
        cost: Path length from the root
        orientation: Camera orientation assigned in next-best-view mode
        gain: Viewpoint gain assigned in next-best-view mode
    """

    position: Vector3
    parent: Optional[int]
    cost: float = 0.0
    orientation: Optional[Quaternion] = None
    gain: Optional[float] = None


class Tree:
    """
    Arena of tree nodes addressed by insertion index.

    Every node except the root has a parent with a lower index, so
    following parents always terminates at the root.
    """

    ROOT = 0

    def __init__(self, root: PointLike):
        root_position = as_vector(root)
        root_position.setflags(write=False)
        self._nodes: List[TreeNode] = [TreeNode(root_position, None, 0.0)]
        self._positions: List[Vector3] = [root_position]
        self.newest_index = self.ROOT

    def __len__(self) -> int:
        return len(self._nodes)

    def __getitem__(self, index: int) -> TreeNode:
        return self._nodes[index]

    @property
    def nodes(self) -> Sequence[TreeNode]:
        return tuple(self._nodes)

    def add(self, position: PointLike, parent: int) -> int:
        """
        Append a node.

        Args:
            position: Position of the new node
            parent: Index of an existing node

        Returns:
            Index of the new node
        """
        if not 0 <= parent < len(self._nodes):
            raise QueryDomainError(f"Parent index {parent} is not in the tree")
        point = as_vector(position)
        point.setflags(write=False)
        parent_node = self._nodes[parent]
        cost = parent_node.cost + float(np.linalg.norm(point - parent_node.position))
        self._nodes.append(TreeNode(point, parent, cost))
        self._positions.append(point)
        self.newest_index = len(self._nodes) - 1
        return self.newest_index

    def nearest_index(self, point: PointLike) -> int:
        """Index of the node closest to point (linear scan)."""
        distances = np.linalg.norm(np.asarray(self._positions) - np.asarray(point, dtype=np.float64), axis=1)
        return int(np.argmin(distances))

    def backtrack(self, index: int) -> Waypoints:
        """
        Positions from the root to the node at index.

        Raises:
            QueryDomainError: If index is not in the tree
        """
        if not 0 <= index < len(self._nodes):
            raise QueryDomainError(f"Node index {index} is not in the tree")
        path = []
        current: Optional[int] = index
        while current is not None:
            node = self._nodes[current]
            path.append(node.position)
            current = node.parent
        path.reverse()
        return tuple(path)


class RRT:
    """
    Incremental RRT over an occupancy map snapshot.

    One instance serves one planning run; it is not safe to share between
    concurrent runs.

    Example:
        rrt = RRT(config, adapter)
        while not rrt.goal_reached and rrt.iterations < config.max_iterations:
            rrt.grow_one_step()
    """

    def __init__(
        self,
        config: PlannerConfig,
        adapter: OccupancyQueryAdapter,
        observers: Iterable[PlannerObserver] = (),
    ):
        self.config = config
        self.adapter = adapter
        self.tree = Tree(config.start)
        self.iterations = 0
        self._goal = None if config.goal is None else as_vector(config.goal)
        self._goal_index: Optional[int] = None
        self._rng = np.random.default_rng(config.seed)
        self._observers = ObserverList()
        for observer in observers:
            self._observers.register(observer)
        self.sampling_region = self._sampling_region()

    def register_observer(self, observer: PlannerObserver) -> None:
        self._observers.register(observer)

    @property
    def goal_reached(self) -> bool:
        return self._goal_index is not None

    @property
    def goal_index(self) -> Optional[int]:
        return self._goal_index

    def _sampling_region(self) -> BoundingBox:
        if self.config.bounds is not None:
            return self.config.bounds

        points = [self.config.start]
        if self.config.goal is not None:
            points.append(self.config.goal)
        region = BoundingBox.from_points(points)

        map_bounds = self.adapter.bounds()
        if map_bounds is not None:
            region = region.union(map_bounds)

        return region.padded(max(self.config.sampling_margin, self.config.step_size))

    def sample(self) -> Vector3:
        """Draw the next candidate point."""
        if self._goal is not None and self._rng.random() < self.config.goal_bias:
            return self._goal.copy()
        return self._rng.uniform(self.sampling_region.min_corner, self.sampling_region.max_corner)

    def nearest_node_index(self, point: PointLike) -> int:
        return self.tree.nearest_index(point)

    def steer(self, origin: Vector3, towards: Vector3) -> Vector3:
        """Step from origin toward a point by at most step_size."""
        delta = towards - origin
        distance = float(np.linalg.norm(delta))
        if distance <= self.config.step_size:
            return towards.copy()
        return origin + delta * (self.config.step_size / distance)

    def segment_is_free(self, start: Vector3, end: Vector3) -> bool:
        """Collision check a segment and report it to observers."""
        free, travelled = self.adapter.segment_is_free(start, end)
        self._observers.on_raycast(start, end - start, travelled, not free)
        return free

    def grow_one_step(self) -> Optional[int]:
        """
        Perform one growth iteration.

        Returns:
            Index of the node added, or None if the candidate was rejected
            (or the goal had already been reached)
        """
        if self.goal_reached:
            return None

        self.iterations += 1
        candidate = self.sample()
        nearest = self.nearest_node_index(candidate)
        origin = self.tree[nearest].position
        new_point = self.steer(origin, candidate)

        if np.array_equal(new_point, origin):
            return None
        if not self.segment_is_free(origin, new_point):
            return None

        index = self.tree.add(new_point, nearest)
        self._observers.on_node_created(origin, self.tree[index].position)
        logger.debug("Node added", index=index, parent=nearest, iteration=self.iterations)

        if self._goal is not None:
            self._check_goal(index)
        return index

    def _check_goal(self, index: int) -> None:
        position = self.tree[index].position
        distance = float(np.linalg.norm(self._goal - position))

        if distance <= self.config.goal_distance_tolerance:
            self._goal_index = index
            # Snap to the exact goal when the last stretch is free
            if distance > 0 and self.segment_is_free(position, self._goal):
                self._goal_index = self._add_goal_node(index)
            return

        if self._rng.random() < self.config.probability_of_testing_full_path_from_new_node_to_goal:
            if self.segment_is_free(position, self._goal):
                logger.debug("Direct connection to goal found", index=index)
                self._goal_index = self._add_goal_node(index)

    def _add_goal_node(self, parent: int) -> int:
        goal_index = self.tree.add(self._goal, parent)
        self._observers.on_node_created(self.tree[parent].position, self.tree[goal_index].position)
        return goal_index

    def backtrack(self, index: int) -> Waypoints:
        return self.tree.backtrack(index)

    def waypoints_from_newest_node(self) -> Waypoints:
        return self.waypoints_to(self.tree.newest_index)

    def waypoints_from_nearest_node_to(self, point: PointLike) -> Waypoints:
        return self.waypoints_to(self.nearest_node_index(point))

    def optimize_waypoints(self, waypoints: Waypoints) -> Waypoints:
        """
        Greedy line-of-sight shortcutting.

        From each kept waypoint, jump to the furthest later waypoint that is
        reachable in a straight collision-free line.
        """
        for a, b in zip(waypoints, waypoints[1:]):
            self._observers.before_waypoint_optimization(a, b)

        if len(waypoints) <= 2:
            optimized = waypoints
        else:
            kept = [waypoints[0]]
            i = 0
            last = len(waypoints) - 1
            while i < last:
                j = last
                while j > i + 1 and not self.segment_is_free(waypoints[i], waypoints[j]):
                    j -= 1
                kept.append(waypoints[j])
                i = j
            optimized = tuple(kept)

        for a, b in zip(optimized, optimized[1:]):
            self._observers.after_waypoint_optimization(a, b)

        logger.debug("Waypoints optimized", before=len(waypoints), after=len(optimized))
        return optimized

    def waypoints_to(self, index: int) -> Waypoints:
        """Backtracked (and optionally optimized) path from the root to a node."""
        waypoints = self.backtrack(index)
        if self.config.optimize_waypoints:
            waypoints = self.optimize_waypoints(waypoints)
        return waypoints

    def run(self, should_cancel: Optional[Callable[[], bool]] = None) -> Union[Waypoints, PlanningFailure]:
        """
        Grow until the goal is reached or the iteration budget is spent.

        Args:
            should_cancel: Polled between growth steps; returning True
                stops the run with FailureReason.CANCELLED

        Returns:
            Waypoints from start to goal, or a PlanningFailure whose
            best_effort path leads to the node nearest the goal
        """
        if self._goal is None:
            raise ConfigurationError("Goal-directed planning needs a goal position")

        logger.info(
            "Planning started",
            start=self.config.start,
            goal=self.config.goal,
            max_iterations=self.config.max_iterations,
        )

        while self.iterations < self.config.max_iterations:
            if should_cancel is not None and should_cancel():
                logger.warning("Planning cancelled", iterations=self.iterations)
                return self._failure(FailureReason.CANCELLED)

            self.grow_one_step()

            if self.goal_reached:
                waypoints = self.waypoints_to(self._goal_index)
                logger.info(
                    "Goal reached",
                    iterations=self.iterations,
                    nodes=len(self.tree),
                    waypoints=len(waypoints),
                    path_cost=round(self.tree[self._goal_index].cost, 3),
                )
                return waypoints

        logger.warning("Iteration budget exhausted", iterations=self.iterations, nodes=len(self.tree))
        return self._failure(FailureReason.MAX_ITERATIONS)

    def _failure(self, reason: FailureReason) -> PlanningFailure:
        return PlanningFailure(
            reason=reason,
            iterations=self.iterations,
            best_effort=self.waypoints_from_nearest_node_to(self._goal),
        )


def plan(
    config: PlannerConfig,
    adapter: OccupancyQueryAdapter,
    observers: Iterable[PlannerObserver] = (),
) -> Union[Waypoints, PlanningFailure]:
    """
    Run goal-directed planning to completion.

    Args:
        config: Validated planner configuration with a goal
        adapter: Occupancy map snapshot
        observers: Optional event observers

    Returns:
        Waypoints on success, otherwise a PlanningFailure
    """
    return RRT(config, adapter, observers).run()
