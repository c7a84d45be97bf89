"""
Volumetric occupancy map collaborator.

The planner never owns the map it plans against; it queries one through
the OccupancyMap interface. VoxelOccupancyMap is the in-process provider:
a sparse voxel grid classifying space as free, occupied or unknown, used by
the CLI demo, by tests, and as a snapshot of a remote map.

Example:
    occupancy = VoxelOccupancyMap(resolution=0.25, bounds=BoundingBox((0, 0, 0), (10, 10, 5)),
                                  default_state=VoxelState.FREE)
    occupancy.mark_box(BoundingBox((4, 0, 0), (5, 10, 5)), VoxelState.OCCUPIED)
    occupancy.query((4.5, 2.0, 1.0))  # VoxelState.OCCUPIED
"""

import math
from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, Optional, Tuple

import numpy as np

from mapping.bounding_box import BoundingBox
from utils.math_helpers import PointLike
from utils.logger import get_logger

logger = get_logger(__name__)

VoxelKey = Tuple[int, int, int]


class VoxelState(Enum):
    """Classification of a single voxel."""
    FREE = "free"
    OCCUPIED = "occupied"
    UNKNOWN = "unknown"


class OccupancyMap(ABC):
    """
    Interface of a volumetric occupancy map provider.

    Implementations may raise CollaboratorUnavailable from query() when the
    underlying map cannot be reached; the query adapter treats that as
    occupied space.
    """

    @property
    @abstractmethod
    def resolution(self) -> float:
        """Edge length of a voxel in meters."""

    @abstractmethod
    def query(self, point: PointLike) -> Optional[VoxelState]:
        """Classify the voxel containing point (None = no data)."""

    @abstractmethod
    def bounds(self) -> Optional[BoundingBox]:
        """Metric extent of the mapped region, if known."""

    def clear_region(self, region: BoundingBox) -> None:
        """Mark every voxel inside region as free."""
        raise NotImplementedError(f"{type(self).__name__} does not support clearing regions")

    def reset(self) -> None:
        """Forget everything; all space becomes unknown."""
        raise NotImplementedError(f"{type(self).__name__} does not support reset")

    def copy(self) -> "OccupancyMap":
        """Independent snapshot that later changes to this map do not reach."""
        raise NotImplementedError(f"{type(self).__name__} does not support snapshots")


class VoxelOccupancyMap(OccupancyMap):
    """
    Sparse voxel grid keyed by integer voxel indices floor(p / resolution).

    Voxels that were never set take default_state when they lie inside
    bounds, and are UNKNOWN outside bounds (or everywhere if no bounds).

    Attributes:
        default_state: State of unset voxels inside bounds
    """

    def __init__(
        self,
        resolution: float = 0.25,
        bounds: Optional[BoundingBox] = None,
        default_state: VoxelState = VoxelState.UNKNOWN,
    ):
        if resolution <= 0:
            raise ValueError(f"Voxel resolution must be positive, got {resolution}")
        self._resolution = float(resolution)
        self._bounds = bounds
        self.default_state = default_state
        self._voxels: Dict[VoxelKey, VoxelState] = {}

    @property
    def resolution(self) -> float:
        return self._resolution

    def bounds(self) -> Optional[BoundingBox]:
        if self._bounds is not None:
            return self._bounds
        if not self._voxels:
            return None
        keys = np.array(list(self._voxels.keys()), dtype=np.float64)
        return BoundingBox(
            keys.min(axis=0) * self._resolution,
            (keys.max(axis=0) + 1) * self._resolution,
        )

    def key_of(self, point: PointLike) -> VoxelKey:
        """Integer index of the voxel containing point."""
        r = self._resolution
        return (
            int(math.floor(point[0] / r)),
            int(math.floor(point[1] / r)),
            int(math.floor(point[2] / r)),
        )

    def center_of(self, key: VoxelKey) -> np.ndarray:
        """Metric center of a voxel."""
        return (np.array(key, dtype=np.float64) + 0.5) * self._resolution

    def query(self, point: PointLike) -> VoxelState:
        state = self._voxels.get(self.key_of(point))
        if state is not None:
            return state
        if self._bounds is not None and self._bounds.contains(point):
            return self.default_state
        return VoxelState.UNKNOWN

    def set_voxel(self, point: PointLike, state: VoxelState) -> None:
        """Set the state of the voxel containing point."""
        self._voxels[self.key_of(point)] = state

    def mark_box(self, region: BoundingBox, state: VoxelState) -> int:
        """
        Set every voxel overlapping region to state.

        Args:
            region: Metric box to fill
            state: State to write

        Returns:
            Number of voxels written
        """
        lo = self.key_of(region.min_corner)
        hi = self.key_of(region.max_corner)
        count = 0
        for ix in range(lo[0], hi[0] + 1):
            for iy in range(lo[1], hi[1] + 1):
                for iz in range(lo[2], hi[2] + 1):
                    self._voxels[(ix, iy, iz)] = state
                    count += 1
        return count

    def clear_region(self, region: BoundingBox) -> None:
        cleared = self.mark_box(region, VoxelState.FREE)
        logger.debug("Cleared map region", voxels=cleared)

    def reset(self) -> None:
        self._voxels.clear()
        self.default_state = VoxelState.UNKNOWN
        logger.info("Occupancy map reset")

    def copy(self) -> "VoxelOccupancyMap":
        """Independent snapshot of this map."""
        snapshot = VoxelOccupancyMap(self._resolution, self._bounds, self.default_state)
        snapshot._voxels = dict(self._voxels)
        return snapshot

    def count(self, state: VoxelState) -> int:
        """Number of explicitly set voxels in a given state."""
        return sum(1 for s in self._voxels.values() if s is state)

    def __len__(self) -> int:
        return len(self._voxels)
