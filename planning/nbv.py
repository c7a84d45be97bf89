"""
Next-best-view planning.

Grows an RRT without a goal and scores every new node as a camera
viewpoint looking at the inspection target. The search stops at the first
node whose gain reaches the threshold. If the budget runs out first, the
path to the best-scoring node is returned as a best-effort result.

Gain scoring is part of the control flow here, not an observer: the loop
reads the score of every node to decide when to stop.
"""

import math
from dataclasses import dataclass, field
from typing import Callable, Optional

from config.settings import get_settings
from perception.field_of_view import FieldOfView, make_fov
from perception.gain import GainWeights, gain_of_fov
from planning.rrt import RRT, Point3, Waypoints
from utils.errors import ConfigurationError
from utils.logger import get_logger
from utils.math_helpers import PointLike, as_vector

logger = get_logger(__name__)


@dataclass(frozen=True)
class NBVRequest:
    """
    Camera and scoring parameters of a next-best-view search.

    Attributes:
        target: Point the camera should look at (inspection subject)
        horizontal_deg: Full horizontal opening angle of the camera
        vertical_deg: Full vertical opening angle of the camera
        depth_min: Near limit of the camera (meters)
        depth_max: Far limit of the camera (meters)
        pitch_deg: Camera pitch, positive looks down
        weights: Gain weights
        gain_of_interest_threshold: Gain at which a viewpoint is accepted
    """

    target: Point3
    horizontal_deg: float
    vertical_deg: float
    depth_min: float
    depth_max: float
    pitch_deg: float = 0.0
    weights: GainWeights = field(default_factory=GainWeights.from_settings)
    gain_of_interest_threshold: float = field(
        default_factory=lambda: get_settings().nbv.gain_of_interest_threshold
    )

    def __post_init__(self):
        object.__setattr__(self, "target", tuple(float(v) for v in as_vector(self.target)))
        if not math.isfinite(self.gain_of_interest_threshold):
            raise ConfigurationError(
                f"gain_of_interest_threshold must be finite, got {self.gain_of_interest_threshold}"
            )
        # Fail early on invalid angles or depth range
        self.fov_at(self.target)

    def fov_at(self, position: PointLike) -> FieldOfView:
        """Field of view of the camera at position, looking at the target."""
        return make_fov(
            position,
            self.target,
            self.horizontal_deg,
            self.vertical_deg,
            self.depth_min,
            self.depth_max,
            self.pitch_deg,
        )


@dataclass(frozen=True)
class NBVResult:
    """
    Outcome of a next-best-view search.

    A best-effort fallback has success=False and
    found_nbv_with_sufficient_gain=False, yet carries the path to the best
    node seen so the caller may still use it.
    """

    waypoints: Waypoints
    success: bool
    found_nbv_with_sufficient_gain: bool
    best_gain: float
    iterations: int


class NBVPlanner:
    """
    Drives an RRT in next-best-view mode.

    Example:
        rrt = RRT(make_planner_config(start), adapter)
        result = NBVPlanner(rrt, request).plan()
    """

    def __init__(self, rrt: RRT, request: NBVRequest):
        if rrt.config.goal is not None:
            # A reached goal stops tree growth before the budget is spent
            raise ConfigurationError(
                f"Next-best-view search needs an RRT without a goal, got goal {rrt.config.goal}"
            )
        self.rrt = rrt
        self.request = request
        self.best_gain = -math.inf
        self.best_index: Optional[int] = None

    def evaluate(self, index: int) -> float:
        """Score the node at index and store its orientation and gain."""
        node = self.rrt.tree[index]
        fov = self.request.fov_at(node.position)
        node.orientation = fov.pose.orientation
        node.gain = gain_of_fov(fov, self.rrt.adapter, self.request.weights)

        if node.gain > self.best_gain:
            logger.debug("New best viewpoint", index=index, gain=round(node.gain, 4))
            self.best_gain = node.gain
            self.best_index = index
        return node.gain

    def plan(self, should_cancel: Optional[Callable[[], bool]] = None) -> NBVResult:
        """
        Search until a viewpoint reaches the gain threshold.

        Args:
            should_cancel: Polled between growth steps; returning True ends
                the search with the best-effort result

        Returns:
            NBVResult
        """
        threshold = self.request.gain_of_interest_threshold
        max_iterations = self.rrt.config.max_iterations

        logger.info(
            "Next-best-view search started",
            start=self.rrt.config.start,
            target=self.request.target,
            threshold=threshold,
            max_iterations=max_iterations,
        )

        while self.rrt.iterations < max_iterations:
            if should_cancel is not None and should_cancel():
                logger.warning("Next-best-view search cancelled", iterations=self.rrt.iterations)
                break

            index = self.rrt.grow_one_step()
            if index is None:
                continue

            gain = self.evaluate(index)
            if gain >= threshold:
                logger.info(
                    "Found viewpoint with sufficient gain",
                    gain=round(gain, 4),
                    iterations=self.rrt.iterations,
                    nodes=len(self.rrt.tree),
                )
                return NBVResult(
                    waypoints=self.rrt.waypoints_to(index),
                    success=True,
                    found_nbv_with_sufficient_gain=True,
                    best_gain=gain,
                    iterations=self.rrt.iterations,
                )

        return self._best_effort()

    def _best_effort(self) -> NBVResult:
        if self.best_index is None:
            logger.warning("No viewpoint could be scored", iterations=self.rrt.iterations)
            waypoints: Waypoints = ()
        else:
            logger.warning(
                "No viewpoint reached the gain threshold, using best found",
                best_gain=round(self.best_gain, 4),
                iterations=self.rrt.iterations,
            )
            waypoints = self.rrt.waypoints_to(self.best_index)

        return NBVResult(
            waypoints=waypoints,
            success=False,
            found_nbv_with_sufficient_gain=False,
            best_gain=self.best_gain,
            iterations=self.rrt.iterations,
        )
