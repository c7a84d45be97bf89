"""
Mapping module for the drone inspection planner.

This module wraps the external volumetric occupancy map:
- Voxel classification (free, occupied, unknown)
- Sparse in-memory voxel maps and snapshots
- Conservative query adapter used by planning and gain scoring
"""

from mapping.bounding_box import BoundingBox
from mapping.occupancy_map import OccupancyMap, VoxelOccupancyMap, VoxelState
from mapping.query_adapter import OccupancyQueryAdapter

__all__ = [
    "BoundingBox",
    "OccupancyMap",
    "VoxelOccupancyMap",
    "VoxelState",
    "OccupancyQueryAdapter",
]
