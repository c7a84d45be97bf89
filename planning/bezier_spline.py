"""
Bezier spline engine.

Turns an ordered waypoint list into one Bezier curve of degree n - 1 and
precomputes everything needed for cheap queries:
- the binomial coefficient row for the control-point count (LRU cached per count)
- resolution + 1 curve samples at evenly spaced times in [0, 1]
- a cumulative arc-length table over those samples

A built SplineState is immutable; queries never modify it.

Usage:
    spline = build(waypoints, resolution=100)
    p = point_at_time(spline, 0.5)      # nearest precomputed sample
    q = point_at_distance(spline, 2.0)  # exact evaluation, 2 m along the curve
"""

import math
from dataclasses import dataclass
from functools import lru_cache
from typing import Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

from utils.errors import ConfigurationError, QueryDomainError
from utils.logger import get_logger
from utils.math_helpers import PointLike

logger = get_logger(__name__)


@lru_cache(maxsize=32)
def binomial_lut(size: int) -> Tuple[int, ...]:
    """
    Binomial coefficients C(size - 1, i) for i in [0, size).

    Kept in an LRU cache of recent control-point counts; a count that falls
    out of the cache is recomputed on its next use.
    """
    if size <= 0:
        return ()
    return tuple(math.comb(size - 1, i) for i in range(size))


def log_binomial_lut(size: int) -> NDArray[np.float64]:
    """Natural logarithm of binomial_lut(size), finite for any size."""
    degree = size - 1
    return np.array(
        [math.lgamma(degree + 1) - math.lgamma(i + 1) - math.lgamma(degree - i + 1) for i in range(size)],
        dtype=np.float64,
    )


def bernstein_basis(times: NDArray[np.float64], size: int) -> NDArray[np.float64]:
    """
    Bernstein basis values for a curve with size control points.

    Weights are summed in log space. Binomials of long waypoint lists do not
    fit in a float, their products with t^i (1 - t)^(n - i) do.

    Args:
        times: (M,) array of curve parameters in [0, 1]
        size: Number of control points

    Returns:
        (M, size) array, row m holding the weight of each control point at times[m]
    """
    degree = size - 1
    i = np.arange(size)
    t = np.asarray(times, dtype=np.float64)[:, None]

    with np.errstate(divide="ignore", invalid="ignore"):
        # 0 * log(0) is taken as 0 so that t = 0 and t = 1 stay exact
        head = np.where(i == 0, 0.0, i * np.log(t))
        tail = np.where(i == degree, 0.0, (degree - i) * np.log1p(-t))
    return np.exp(log_binomial_lut(size) + head + tail)


@dataclass(frozen=True, eq=False)
class SplineState:
    """
    Precomputed Bezier curve.

    Attributes:
        control_points: (n, 3) input points
        resolution: Number of sample intervals
        binomial_lut: Binomial coefficients, one per control point
        spline_points: (resolution + 1, 3) curve samples
        distance_lut: (resolution + 1,) cumulative arc length at each sample
    """

    control_points: NDArray[np.float64]
    resolution: int
    binomial_lut: Tuple[int, ...]
    spline_points: NDArray[np.float64]
    distance_lut: NDArray[np.float64]

    @property
    def size(self) -> int:
        """Number of control points."""
        return len(self.control_points)

    @property
    def is_empty(self) -> bool:
        return self.size == 0

    @property
    def arc_length(self) -> float:
        """Approximate total length of the curve."""
        if self.is_empty:
            return 0.0
        return float(self.distance_lut[-1])


def build(points: Sequence[PointLike], resolution: int) -> SplineState:
    """
    Build a spline from control points.

    Args:
        points: Ordered control points (waypoints); may be empty
        resolution: Number of sample intervals, at least 1

    Returns:
        Immutable SplineState. An empty point list yields an empty state on
        which queries raise QueryDomainError.

    Raises:
        ConfigurationError: If resolution < 1 or points are not 3D
    """
    if isinstance(resolution, bool) or not isinstance(resolution, (int, np.integer)) or resolution < 1:
        raise ConfigurationError(f"Spline resolution must be a positive integer, got {resolution!r}")
    resolution = int(resolution)

    control = np.array(points, dtype=np.float64) if len(points) else np.empty((0, 3))
    if control.ndim != 2 or control.shape[1] != 3:
        raise ConfigurationError(f"Spline control points must be 3D, got shape {control.shape}")
    control.setflags(write=False)
    size = len(control)

    if size == 0:
        empty = np.empty((0, 3))
        empty.setflags(write=False)
        lut = np.empty(0)
        lut.setflags(write=False)
        return SplineState(control, resolution, (), empty, lut)

    times = np.arange(resolution + 1, dtype=np.float64) / resolution
    samples = bernstein_basis(times, size) @ control
    samples.setflags(write=False)

    segment_lengths = np.linalg.norm(np.diff(samples, axis=0), axis=1)
    distance_lut = np.concatenate(([0.0], np.cumsum(segment_lengths)))
    distance_lut.setflags(write=False)

    logger.debug(
        "Built Bezier spline",
        control_points=size,
        resolution=resolution,
        arc_length=round(float(distance_lut[-1]), 3),
    )
    return SplineState(control, resolution, binomial_lut(size), samples, distance_lut)


def evaluate(state: SplineState, t: float) -> NDArray[np.float64]:
    """
    Exact point on the curve at parameter t in [0, 1].

    Raises:
        QueryDomainError: On an empty spline or t outside [0, 1]
    """
    _require_built(state)
    _require_unit_interval(t)
    return (bernstein_basis(np.array([t]), state.size) @ state.control_points)[0]


def point_at_time(state: SplineState, t: float) -> NDArray[np.float64]:
    """
    Precomputed sample nearest to parameter t.

    The sample index is round(resolution * t), so the error is bounded by
    half a sample interval. Use point_at_distance or evaluate when that
    matters.

    Raises:
        QueryDomainError: On an empty spline or t outside [0, 1]
    """
    _require_built(state)
    _require_unit_interval(t)
    index = int(math.floor(state.resolution * t + 0.5))
    return state.spline_points[index].copy()


def point_at_distance(state: SplineState, distance: float) -> NDArray[np.float64]:
    """
    Point at a given arc length along the curve.

    Finds the table interval bracketing distance, interpolates a fractional
    sample index inside it and evaluates the curve exactly at that time.
    The bracket search is a linear scan from the start, O(resolution) per
    query. Distances <= 0 give the first sample and distances beyond the
    arc length give the last sample.

    Raises:
        QueryDomainError: On an empty spline or a NaN distance
    """
    _require_built(state)
    if math.isnan(distance):
        raise QueryDomainError("Distance along spline must not be NaN")

    lut = state.distance_lut
    if distance <= 0.0:
        return state.spline_points[0].copy()
    if distance >= lut[-1]:
        return state.spline_points[-1].copy()

    index = 0
    while index < state.resolution - 1 and lut[index + 1] <= distance:
        index += 1

    interval = lut[index + 1] - lut[index]
    fraction = (distance - lut[index]) / interval if interval > 0 else 0.0
    t = min((index + fraction) / state.resolution, 1.0)
    return evaluate(state, t)


def _require_built(state: SplineState) -> None:
    if state.is_empty:
        raise QueryDomainError("Spline has no control points")


def _require_unit_interval(t: float) -> None:
    if not 0.0 <= t <= 1.0:
        raise QueryDomainError(f"Spline time must be in [0, 1], got {t}")
