"""
Axis-aligned bounding boxes.

Used to describe the planner's sampling region, the extent of an occupancy
map, regions to clear, and the voxel window enumerated for a field of view.
"""

from dataclasses import dataclass
from typing import Iterable

import numpy as np

from utils.math_helpers import PointLike, Vector3, as_vector


@dataclass(frozen=True, eq=False)
class BoundingBox:
    """
    Axis-aligned box given by two corners.

    Attributes:
        min_corner: Smallest x, y, z
        max_corner: Largest x, y, z
    """

    min_corner: Vector3
    max_corner: Vector3

    def __post_init__(self):
        lo = as_vector(self.min_corner)
        hi = as_vector(self.max_corner)
        if np.any(lo > hi):
            raise ValueError(f"Invalid bounding box: min {lo} exceeds max {hi}")
        object.__setattr__(self, "min_corner", lo)
        object.__setattr__(self, "max_corner", hi)

    @classmethod
    def from_points(cls, points: Iterable[PointLike]) -> "BoundingBox":
        """Smallest box containing all points."""
        stacked = np.array([as_vector(p) for p in points])
        if stacked.size == 0:
            raise ValueError("Cannot build a bounding box from zero points")
        return cls(stacked.min(axis=0), stacked.max(axis=0))

    @classmethod
    def around(cls, center: PointLike, half_size: float) -> "BoundingBox":
        """Cube of edge 2 * half_size centered on a point."""
        c = as_vector(center)
        return cls(c - half_size, c + half_size)

    @property
    def size(self) -> Vector3:
        return self.max_corner - self.min_corner

    @property
    def center(self) -> Vector3:
        return (self.min_corner + self.max_corner) / 2

    def contains(self, point: PointLike) -> bool:
        p = np.asarray(point, dtype=np.float64)
        return bool(np.all(p >= self.min_corner) and np.all(p <= self.max_corner))

    def union(self, other: "BoundingBox") -> "BoundingBox":
        return BoundingBox(
            np.minimum(self.min_corner, other.min_corner),
            np.maximum(self.max_corner, other.max_corner),
        )

    def padded(self, margin: float) -> "BoundingBox":
        return BoundingBox(self.min_corner - margin, self.max_corner + margin)
