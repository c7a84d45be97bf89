"""
Tests for the Bezier spline engine.
"""

import math

import numpy as np
import pytest

from planning.bezier_spline import binomial_lut, build, evaluate, point_at_distance, point_at_time
from utils.errors import ConfigurationError, QueryDomainError

CORNER = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (1.0, 1.0, 0.0)]


@pytest.fixture
def corner_spline():
    """Quadratic curve around a right-angle corner, 10 sample intervals."""
    return build(CORNER, resolution=10)


class TestBinomialTable:
    """Tests for the binomial coefficient table."""

    def test_rows(self):
        """Test that the table is row size - 1 of Pascal's triangle."""
        assert binomial_lut(1) == (1,)
        assert binomial_lut(3) == (1, 2, 1)
        assert binomial_lut(5) == (1, 4, 6, 4, 1)

    def test_empty(self):
        """Test that zero control points give an empty table."""
        assert binomial_lut(0) == ()

    def test_recomputed_after_eviction(self):
        """Test that counts dropped from the cache are rebuilt on demand."""
        for size in range(1, 40):
            binomial_lut(size)
        assert binomial_lut.cache_info().currsize == 32
        assert binomial_lut(4) == (1, 3, 3, 1)

    def test_stored_on_state(self, corner_spline):
        """Test that the state carries the table for its point count."""
        assert corner_spline.binomial_lut == (1, 2, 1)


class TestBuild:
    """Tests for spline construction."""

    def test_sample_count(self, corner_spline):
        """Test that resolution + 1 samples and distances are stored."""
        assert corner_spline.spline_points.shape == (11, 3)
        assert corner_spline.distance_lut.shape == (11,)
        assert corner_spline.size == 3

    def test_endpoints(self, corner_spline):
        """Test that the curve starts and ends on the outer control points."""
        np.testing.assert_array_almost_equal(corner_spline.spline_points[0], CORNER[0])
        np.testing.assert_array_almost_equal(corner_spline.spline_points[-1], CORNER[-1])

    def test_distance_table_monotonic(self, corner_spline):
        """Test that cumulative arc length starts at zero and never decreases."""
        lut = corner_spline.distance_lut
        assert lut[0] == 0.0
        assert np.all(np.diff(lut) >= 0)

    def test_arc_length_between_chord_and_polygon(self, corner_spline):
        """Test that arc length is bounded by the chord and the control polygon."""
        assert math.sqrt(2) <= corner_spline.arc_length <= 2.0

    def test_state_is_read_only(self, corner_spline):
        """Test that precomputed arrays cannot be modified."""
        assert not corner_spline.spline_points.flags.writeable
        assert not corner_spline.distance_lut.flags.writeable
        with pytest.raises(ValueError):
            corner_spline.spline_points[0, 0] = 5.0

    def test_rebuild_is_identical(self, corner_spline):
        """Test that building twice from the same input gives the same state."""
        again = build(CORNER, resolution=10)
        np.testing.assert_array_equal(again.spline_points, corner_spline.spline_points)
        np.testing.assert_array_equal(again.distance_lut, corner_spline.distance_lut)

    def test_long_waypoint_list(self):
        """Test a path with more control points than float binomials allow."""
        points = [(i * 0.1, 0.0, 0.0) for i in range(1100)]
        spline = build(points, resolution=100)

        assert np.all(np.isfinite(spline.spline_points))
        assert len(spline.binomial_lut) == 1100
        np.testing.assert_array_almost_equal(spline.spline_points[0], points[0])
        np.testing.assert_array_almost_equal(spline.spline_points[-1], points[-1])
        # Evenly spaced collinear points give a uniformly parameterized line
        assert spline.arc_length == pytest.approx(109.9, rel=1e-6)
        np.testing.assert_allclose(point_at_distance(spline, 30.0), [30.0, 0.0, 0.0], atol=1e-6)

    def test_input_not_aliased(self):
        """Test that mutating the input afterwards does not change the spline."""
        points = np.array(CORNER)
        spline = build(points, resolution=4)
        points[0] = (9.0, 9.0, 9.0)
        np.testing.assert_array_almost_equal(spline.spline_points[0], CORNER[0])

    def test_empty_points(self):
        """Test that an empty waypoint list builds an empty spline."""
        spline = build([], resolution=10)
        assert spline.is_empty
        assert spline.arc_length == 0.0

    @pytest.mark.parametrize("resolution", [0, -3, 2.5, True])
    def test_invalid_resolution(self, resolution):
        """Test that non-positive or non-integer resolutions are rejected."""
        with pytest.raises(ConfigurationError):
            build(CORNER, resolution=resolution)

    def test_invalid_points(self):
        """Test that points that are not 3D are rejected."""
        with pytest.raises(ConfigurationError):
            build([(0.0, 0.0), (1.0, 1.0)], resolution=10)


class TestPointAtTime:
    """Tests for sample lookup by curve parameter."""

    def test_midpoint(self, corner_spline):
        """Test the sample at t = 0.5 of the quadratic corner."""
        np.testing.assert_array_almost_equal(point_at_time(corner_spline, 0.5), [0.75, 0.25, 0.0])

    def test_rounds_to_nearest_sample(self, corner_spline):
        """Test that t is rounded to the closest sample, not truncated."""
        np.testing.assert_array_almost_equal(point_at_time(corner_spline, 0.04), [0.0, 0.0, 0.0])
        # 0.05 rounds up to sample 1 (t = 0.1): x = 2t - t^2, y = t^2
        np.testing.assert_array_almost_equal(point_at_time(corner_spline, 0.05), [0.19, 0.01, 0.0])

    def test_endpoints(self, corner_spline):
        """Test the first and last sample."""
        np.testing.assert_array_almost_equal(point_at_time(corner_spline, 0.0), CORNER[0])
        np.testing.assert_array_almost_equal(point_at_time(corner_spline, 1.0), CORNER[-1])

    @pytest.mark.parametrize("t", [-0.1, 1.5])
    def test_out_of_range(self, corner_spline, t):
        """Test that times outside [0, 1] are rejected."""
        with pytest.raises(QueryDomainError):
            point_at_time(corner_spline, t)

    def test_empty_spline(self):
        """Test that querying an empty spline is rejected."""
        with pytest.raises(QueryDomainError):
            point_at_time(build([], resolution=10), 0.5)

    def test_returned_point_is_a_copy(self, corner_spline):
        """Test that callers may modify the returned point."""
        point = point_at_time(corner_spline, 0.0)
        point[0] = 42.0
        assert corner_spline.spline_points[0, 0] == 0.0


class TestPointAtDistance:
    """Tests for lookup by arc length."""

    def test_clamps_below_zero(self, corner_spline):
        """Test that non-positive distances give the first sample."""
        np.testing.assert_array_almost_equal(point_at_distance(corner_spline, 0.0), CORNER[0])
        np.testing.assert_array_almost_equal(point_at_distance(corner_spline, -1.0), CORNER[0])

    def test_clamps_beyond_length(self, corner_spline):
        """Test that distances past the end give the last sample."""
        np.testing.assert_array_almost_equal(point_at_distance(corner_spline, 1e9), CORNER[-1])

    def test_half_length_of_symmetric_curve(self, corner_spline):
        """Test that half the arc length lands on the middle of a symmetric curve."""
        point = point_at_distance(corner_spline, corner_spline.arc_length / 2)
        np.testing.assert_allclose(point, [0.75, 0.25, 0.0], atol=1e-6)

    def test_straight_line_is_exact(self):
        """Test that a two-point spline is parameterized by distance."""
        line = build([(0.0, 0.0, 0.0), (2.0, 0.0, 0.0)], resolution=8)
        np.testing.assert_allclose(point_at_distance(line, 0.73), [0.73, 0.0, 0.0], atol=1e-9)
        np.testing.assert_allclose(point_at_distance(line, 1.5), [1.5, 0.0, 0.0], atol=1e-9)

    def test_progresses_along_curve(self, corner_spline):
        """Test that larger distances never move back toward the start."""
        distances = np.linspace(0.0, corner_spline.arc_length, 25)
        points = [point_at_distance(corner_spline, d) for d in distances]
        from_start = [np.linalg.norm(p - np.array(CORNER[0])) for p in points]
        assert all(b >= a - 1e-9 for a, b in zip(from_start, from_start[1:]))

    def test_lies_on_curve(self, corner_spline):
        """Test that the result is an exact curve point, not a chord point."""
        point = point_at_distance(corner_spline, 0.37)
        # Every point of this curve satisfies x = 2 sqrt(y) - y
        assert point[0] == pytest.approx(2 * math.sqrt(point[1]) - point[1], abs=1e-9)

    def test_single_point_spline(self):
        """Test that a one-point spline returns that point for any distance."""
        spline = build([(3.0, 2.0, 1.0)], resolution=5)
        np.testing.assert_array_equal(point_at_distance(spline, 0.5), [3.0, 2.0, 1.0])

    def test_nan_distance(self, corner_spline):
        """Test that NaN is rejected."""
        with pytest.raises(QueryDomainError):
            point_at_distance(corner_spline, float("nan"))


class TestEvaluate:
    """Tests for exact evaluation."""

    def test_matches_closed_form(self, corner_spline):
        """Test evaluation against the quadratic Bezier formula."""
        for t in (0.0, 0.3, 0.5, 0.9, 1.0):
            expected = [2 * t - t * t, t * t, 0.0]
            np.testing.assert_allclose(evaluate(corner_spline, t), expected, atol=1e-12)
