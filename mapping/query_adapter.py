"""
Occupancy query adapter used by the planner and the gain scorer.

Wraps an optional OccupancyMap and enforces the conservative policy:
when no map is assigned, or the map fails to answer, space is occupied.
Unknown space is treated as occupied only when unknown_is_occupied is set.
"""

import math
from typing import List, Optional, Tuple

import numpy as np

from mapping.bounding_box import BoundingBox
from mapping.occupancy_map import OccupancyMap, VoxelState
from utils.errors import CollaboratorUnavailable
from utils.logger import get_logger
from utils.math_helpers import PointLike, as_vector

logger = get_logger(__name__)


class OccupancyQueryAdapter:
    """
    Read-mostly view of an occupancy map snapshot for one planning run.

    Example:
        adapter = OccupancyQueryAdapter(occupancy, unknown_is_occupied=False)
        free, travelled = adapter.segment_is_free((0, 0, 1), (1, 0, 1))
    """

    def __init__(
        self,
        occupancy_map: Optional[OccupancyMap] = None,
        unknown_is_occupied: bool = False,
        fallback_resolution: float = 0.25,
    ):
        self._map = occupancy_map
        self.unknown_is_occupied = unknown_is_occupied
        self._fallback_resolution = fallback_resolution
        self._degraded_reported = False

        if occupancy_map is None:
            logger.warning("No occupancy map assigned, treating all space as occupied")
            self._degraded_reported = True

    @property
    def available(self) -> bool:
        """Whether a map is assigned."""
        return self._map is not None

    @property
    def resolution(self) -> float:
        if self._map is None:
            return self._fallback_resolution
        return self._map.resolution

    def bounds(self) -> Optional[BoundingBox]:
        if self._map is None:
            return None
        return self._map.bounds()

    def classify(self, point: PointLike) -> VoxelState:
        """
        Classify the voxel containing point.

        Missing map, missing data and unreachable maps all classify as occupied.
        """
        if self._map is None:
            return VoxelState.OCCUPIED
        try:
            state = self._map.query(point)
        except CollaboratorUnavailable as e:
            self._report_degraded(str(e))
            return VoxelState.OCCUPIED
        if state is None:
            self._report_degraded("map returned no data")
            return VoxelState.OCCUPIED
        return state

    def classify_many(self, points: np.ndarray) -> List[VoxelState]:
        """Classify each row of an (N, 3) array."""
        return [self.classify(p) for p in np.asarray(points, dtype=np.float64)]

    def is_blocking(self, state: VoxelState) -> bool:
        """Whether a voxel in this state blocks flight."""
        if state is VoxelState.OCCUPIED:
            return True
        return state is VoxelState.UNKNOWN and self.unknown_is_occupied

    def is_occupied(self, point: PointLike) -> bool:
        return self.is_blocking(self.classify(point))

    def segment_is_free(self, start: PointLike, end: PointLike) -> Tuple[bool, float]:
        """
        Check a straight segment against the map.

        The segment is sampled every half voxel, both endpoints included.

        Args:
            start: Segment start
            end: Segment end

        Returns:
            (free, distance) where distance is the segment length when free,
            otherwise the distance from start to the first blocking sample
        """
        a = as_vector(start)
        b = as_vector(end)
        length = float(np.linalg.norm(b - a))

        step = self.resolution / 2
        samples = max(int(math.ceil(length / step)), 1)

        for i in range(samples + 1):
            t = i / samples
            if self.is_occupied(a + (b - a) * t):
                return False, length * t
        return True, length

    def clear_region(self, region: BoundingBox) -> None:
        """Clear a region of the underlying map, if it supports it."""
        if self._map is None:
            return
        try:
            self._map.clear_region(region)
        except NotImplementedError:
            logger.warning("Occupancy map does not support clearing regions")

    def reset(self) -> None:
        """Reset the underlying map, if it supports it."""
        if self._map is None:
            return
        try:
            self._map.reset()
        except NotImplementedError:
            logger.warning("Occupancy map does not support reset")

    def _report_degraded(self, reason: str) -> None:
        if not self._degraded_reported:
            logger.warning("Occupancy query failed, treating space as occupied", reason=reason)
            self._degraded_reported = True
