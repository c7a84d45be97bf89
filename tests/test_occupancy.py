"""
Tests for the occupancy map collaborator and the conservative query adapter.
"""

import numpy as np
import pytest

from mapping.bounding_box import BoundingBox
from mapping.occupancy_map import OccupancyMap, VoxelOccupancyMap, VoxelState
from mapping.query_adapter import OccupancyQueryAdapter
from utils.errors import CollaboratorUnavailable


class UnreachableMap(OccupancyMap):
    """Map provider whose backend is down."""

    @property
    def resolution(self) -> float:
        return 0.5

    def query(self, point):
        raise CollaboratorUnavailable("map server not responding")

    def bounds(self):
        return None


class SilentMap(OccupancyMap):
    """Map provider that has no data anywhere."""

    @property
    def resolution(self) -> float:
        return 0.5

    def query(self, point):
        return None

    def bounds(self):
        return None


class TestBoundingBox:
    """Tests for axis-aligned boxes."""

    def test_from_points(self):
        """Test the smallest box around a point set."""
        box = BoundingBox.from_points([(1, 5, 0), (-2, 3, 4), (0, 0, 1)])
        np.testing.assert_array_equal(box.min_corner, [-2, 0, 0])
        np.testing.assert_array_equal(box.max_corner, [1, 5, 4])

    def test_invalid_corners(self):
        """Test that a min corner above the max corner is rejected."""
        with pytest.raises(ValueError):
            BoundingBox((1, 0, 0), (0, 1, 1))

    def test_contains_is_inclusive(self):
        """Test containment including the faces."""
        box = BoundingBox((0, 0, 0), (1, 1, 1))
        assert box.contains((1.0, 0.5, 0.0))
        assert not box.contains((1.01, 0.5, 0.5))

    def test_union_and_padding(self):
        """Test combining and growing boxes."""
        box = BoundingBox((0, 0, 0), (1, 1, 1)).union(BoundingBox((2, -1, 0), (3, 0, 1))).padded(0.5)
        np.testing.assert_array_equal(box.min_corner, [-0.5, -1.5, -0.5])
        np.testing.assert_array_equal(box.max_corner, [3.5, 1.5, 1.5])

    def test_around(self):
        """Test a cube centered on a point."""
        box = BoundingBox.around((1, 1, 1), 0.5)
        np.testing.assert_array_equal(box.size, [1.0, 1.0, 1.0])
        np.testing.assert_array_equal(box.center, [1.0, 1.0, 1.0])


class TestVoxelOccupancyMap:
    """Tests for the in-process voxel map."""

    def test_default_state_inside_bounds(self, free_map):
        """Test that unset voxels inside bounds take the default state."""
        assert free_map.query((2.0, 0.0, 1.0)) is VoxelState.FREE

    def test_unknown_outside_bounds(self, free_map):
        """Test that space outside the bounds is unknown."""
        assert free_map.query((50.0, 0.0, 1.0)) is VoxelState.UNKNOWN

    def test_set_voxel(self, free_map):
        """Test that explicitly set voxels override the default."""
        free_map.set_voxel((2.1, 0.1, 1.1), VoxelState.OCCUPIED)
        assert free_map.query((2.2, 0.2, 1.2)) is VoxelState.OCCUPIED
        assert free_map.query((2.6, 0.2, 1.2)) is VoxelState.FREE

    def test_mark_box(self, free_map):
        """Test filling a box of voxels."""
        written = free_map.mark_box(BoundingBox((0.0, 0.0, 0.0), (0.4, 0.4, 0.4)), VoxelState.OCCUPIED)
        assert written == 8
        assert free_map.count(VoxelState.OCCUPIED) == 8

    def test_clear_region(self, wall_map):
        """Test that clearing a region frees it."""
        assert wall_map.query((5.1, 0.0, 1.0)) is VoxelState.OCCUPIED
        wall_map.clear_region(BoundingBox.around((5.1, 0.0, 1.0), 0.3))
        assert wall_map.query((5.1, 0.0, 1.0)) is VoxelState.FREE

    def test_reset(self, wall_map):
        """Test that reset forgets everything."""
        wall_map.reset()
        assert len(wall_map) == 0
        assert wall_map.query((5.1, 0.0, 1.0)) is VoxelState.UNKNOWN

    def test_copy_is_independent(self, free_map):
        """Test that a copy does not see later writes."""
        snapshot = free_map.copy()
        free_map.set_voxel((1.0, 1.0, 1.0), VoxelState.OCCUPIED)
        assert snapshot.query((1.0, 1.0, 1.0)) is VoxelState.FREE

    def test_bounds_derived_from_voxels(self):
        """Test bounds of an unbounded map follow its voxels."""
        occupancy = VoxelOccupancyMap(resolution=0.5)
        assert occupancy.bounds() is None
        occupancy.set_voxel((1.2, 0.2, 0.2), VoxelState.FREE)
        box = occupancy.bounds()
        np.testing.assert_array_equal(box.min_corner, [1.0, 0.0, 0.0])
        np.testing.assert_array_equal(box.max_corner, [1.5, 0.5, 0.5])

    def test_invalid_resolution(self):
        """Test that a non-positive resolution is rejected."""
        with pytest.raises(ValueError):
            VoxelOccupancyMap(resolution=0.0)


class TestQueryAdapter:
    """Tests for the conservative occupancy policy."""

    def test_no_map_is_occupied(self):
        """Test that a missing map makes every point occupied."""
        adapter = OccupancyQueryAdapter(None)
        assert not adapter.available
        assert adapter.classify((0.0, 0.0, 0.0)) is VoxelState.OCCUPIED
        assert adapter.is_occupied((0.0, 0.0, 0.0))

    def test_unreachable_map_is_occupied(self):
        """Test that a map raising CollaboratorUnavailable counts as occupied."""
        adapter = OccupancyQueryAdapter(UnreachableMap())
        assert adapter.classify((1.0, 2.0, 3.0)) is VoxelState.OCCUPIED
        free, travelled = adapter.segment_is_free((0, 0, 0), (1, 0, 0))
        assert not free
        assert travelled == 0.0

    def test_missing_data_is_occupied(self):
        """Test that a map answering with no data counts as occupied."""
        adapter = OccupancyQueryAdapter(SilentMap())
        assert adapter.is_occupied((1.0, 2.0, 3.0))

    def test_unknown_passable_by_default(self, free_map):
        """Test that unknown space does not block unless configured to."""
        lenient = OccupancyQueryAdapter(free_map)
        strict = OccupancyQueryAdapter(free_map, unknown_is_occupied=True)
        outside = (50.0, 0.0, 1.0)
        assert lenient.classify(outside) is VoxelState.UNKNOWN
        assert not lenient.is_occupied(outside)
        assert strict.is_occupied(outside)

    def test_segment_free(self, free_adapter):
        """Test a segment through free space."""
        free, travelled = free_adapter.segment_is_free((0.0, 0.0, 1.0), (4.0, 0.0, 1.0))
        assert free
        assert travelled == pytest.approx(4.0)

    def test_segment_blocked(self, wall_map):
        """Test that a segment through the wall is blocked at the wall."""
        adapter = OccupancyQueryAdapter(wall_map)
        free, travelled = adapter.segment_is_free((4.0, 0.0, 1.0), (6.0, 0.0, 1.0))
        assert not free
        assert 0.9 <= travelled <= 1.1

    def test_segment_through_gap(self, wall_map):
        """Test that a segment through the gap in the wall is free."""
        adapter = OccupancyQueryAdapter(wall_map)
        free, _ = adapter.segment_is_free((4.0, 2.0, 1.0), (6.0, 2.0, 1.0))
        assert free

    def test_segment_checks_end_point(self, wall_map):
        """Test that an end point inside an obstacle blocks the segment."""
        adapter = OccupancyQueryAdapter(wall_map)
        free, _ = adapter.segment_is_free((4.5, 0.0, 1.0), (5.1, 0.0, 1.0))
        assert not free

    def test_zero_length_segment(self, free_adapter):
        """Test a degenerate segment in free space."""
        assert free_adapter.segment_is_free((1.0, 1.0, 1.0), (1.0, 1.0, 1.0)) == (True, 0.0)

    def test_clear_and_reset_without_support(self):
        """Test that maps without write support are left alone."""
        adapter = OccupancyQueryAdapter(UnreachableMap())
        adapter.clear_region(BoundingBox.around((0, 0, 0), 1.0))
        adapter.reset()

    def test_resolution_fallback(self):
        """Test that the adapter reports a resolution without a map."""
        assert OccupancyQueryAdapter(None, fallback_resolution=0.3).resolution == 0.3
