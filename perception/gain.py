"""
Next-best-view gain scoring.

Scores a candidate viewpoint by the mix of free, occupied and unknown voxels
its camera would see, minus a penalty for standing far from the inspection
target. The score is a pure function of the field of view, the map snapshot
and the weights: it never writes to the map and has no randomness.

Usage:
    weights = GainWeights.from_settings()
    gain = gain_of_fov(fov, adapter, weights)
"""

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable

import numpy as np
from numpy.typing import NDArray

from config.settings import get_settings
from mapping.occupancy_map import VoxelState
from mapping.query_adapter import OccupancyQueryAdapter
from perception.field_of_view import FieldOfView, compute_bbx
from utils.errors import ConfigurationError
from utils.logger import get_logger

logger = get_logger(__name__)


def identity(x: float) -> float:
    return x


@dataclass(frozen=True)
class GainWeights:
    """
    Weights of the gain terms.

    Attributes:
        weight_free: Reward per unit fraction of free voxels in view
        weight_occupied: Reward per unit fraction of occupied voxels in view
        weight_unknown: Reward per unit fraction of unknown voxels in view
        weight_distance_to_object: Penalty per meter to the target
        reshape: Monotonic function applied to the raw score
    """

    weight_free: float = 0.0
    weight_occupied: float = 1.0
    weight_unknown: float = 2.0
    weight_distance_to_object: float = 0.1
    reshape: Callable[[float], float] = field(default=identity, compare=False)

    def __post_init__(self):
        for name in ("weight_free", "weight_occupied", "weight_unknown", "weight_distance_to_object"):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                raise ConfigurationError(f"{name} must be a non-negative finite number, got {value}")

    @classmethod
    def from_settings(cls, reshape: Callable[[float], float] = identity) -> "GainWeights":
        """Weights configured in NBVSettings."""
        nbv = get_settings().nbv
        return cls(
            weight_free=nbv.weight_free,
            weight_occupied=nbv.weight_occupied,
            weight_unknown=nbv.weight_unknown,
            weight_distance_to_object=nbv.weight_distance_to_object,
            reshape=reshape,
        )


@dataclass(frozen=True)
class VoxelCounts:
    """Number of voxels of each class inside a field of view."""

    free: int = 0
    occupied: int = 0
    unknown: int = 0

    @property
    def total(self) -> int:
        return self.free + self.occupied + self.unknown

    def fraction(self, count: int) -> float:
        """Share of the total; zero for an empty field of view."""
        return count / self.total if self.total > 0 else 0.0


def voxel_centers_in_fov(fov: FieldOfView, resolution: float) -> NDArray[np.float64]:
    """
    Centers of the map voxels whose center lies inside the frustum.

    Args:
        fov: Field of view
        resolution: Voxel edge length of the map grid

    Returns:
        (N, 3) array of voxel centers, in x-major order
    """
    bbx = compute_bbx(fov)
    lo = np.floor(bbx.min_corner / resolution).astype(int)
    hi = np.floor(bbx.max_corner / resolution).astype(int)
    axes = [(np.arange(lo[i], hi[i] + 1) + 0.5) * resolution for i in range(3)]
    grid = np.stack(np.meshgrid(*axes, indexing="ij"), axis=-1).reshape(-1, 3)
    return grid[fov.contains(grid)]


def classify_fov(fov: FieldOfView, adapter: OccupancyQueryAdapter) -> VoxelCounts:
    """Count free, occupied and unknown voxels visible in a field of view."""
    centers = voxel_centers_in_fov(fov, adapter.resolution)
    counts = Counter(adapter.classify_many(centers))
    return VoxelCounts(
        free=counts[VoxelState.FREE],
        occupied=counts[VoxelState.OCCUPIED],
        unknown=counts[VoxelState.UNKNOWN],
    )


def gain_of_fov(
    fov: FieldOfView,
    adapter: OccupancyQueryAdapter,
    weights: GainWeights,
) -> float:
    """
    Score a viewpoint.

    raw = w_free * f_free + w_occ * f_occ + w_unknown * f_unknown
          - w_dist * |target - position|

    where f_* are the class fractions of voxels in view (zero when nothing
    is in view) and the distance term is dropped when the field of view has
    no target. The raw score is passed through weights.reshape.

    Args:
        fov: Candidate field of view
        adapter: Map snapshot to score against
        weights: Gain weights

    Returns:
        Finite gain

    Raises:
        ConfigurationError: If the reshape function yields a non-finite value
    """
    counts = classify_fov(fov, adapter)

    raw = (
        weights.weight_free * counts.fraction(counts.free)
        + weights.weight_occupied * counts.fraction(counts.occupied)
        + weights.weight_unknown * counts.fraction(counts.unknown)
    )

    distance = fov.distance_to_target()
    if distance is not None:
        raw -= weights.weight_distance_to_object * distance

    gain = float(weights.reshape(raw))
    if not math.isfinite(gain):
        raise ConfigurationError(f"Gain reshape produced a non-finite value from {raw}")

    logger.debug(
        "Scored viewpoint",
        free=counts.free,
        occupied=counts.occupied,
        unknown=counts.unknown,
        gain=round(gain, 4),
    )
    return gain
