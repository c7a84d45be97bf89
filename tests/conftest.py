"""
Pytest configuration and shared fixtures for inspection planner tests.
"""

import pytest

from config.settings import get_settings
from mapping.bounding_box import BoundingBox
from mapping.occupancy_map import VoxelOccupancyMap, VoxelState
from mapping.query_adapter import OccupancyQueryAdapter


@pytest.fixture(autouse=True)
def fresh_settings():
    """Give every test its own settings instance."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def room_bounds():
    """Bounds of a 12 x 6 x 4 m test room."""
    return BoundingBox((-1.0, -3.0, 0.0), (11.0, 3.0, 4.0))


@pytest.fixture
def free_map(room_bounds):
    """
    Room where every voxel inside the bounds is free.

    Space outside the bounds is unknown.
    """
    return VoxelOccupancyMap(resolution=0.25, bounds=room_bounds, default_state=VoxelState.FREE)


@pytest.fixture
def occupied_map(room_bounds):
    """Room filled completely with obstacles."""
    return VoxelOccupancyMap(resolution=0.25, bounds=room_bounds, default_state=VoxelState.OCCUPIED)


@pytest.fixture
def wall_map(room_bounds):
    """
    Free room split by a wall at x = 5 with a gap between y = 1 and y = 3.
    """
    occupancy = VoxelOccupancyMap(resolution=0.25, bounds=room_bounds, default_state=VoxelState.FREE)
    occupancy.mark_box(BoundingBox((5.0, -3.0, 0.0), (5.4, 0.9, 4.0)), VoxelState.OCCUPIED)
    return occupancy


@pytest.fixture
def free_adapter(free_map):
    """Query adapter over the free room."""
    return OccupancyQueryAdapter(free_map)


@pytest.fixture
def sample_waypoints():
    """Sample waypoints for testing smoothing."""
    return [
        (0.0, 0.0, 1.0),
        (2.0, 0.0, 1.0),
        (2.0, 2.0, 1.0),
        (4.0, 2.0, 2.0),
    ]
