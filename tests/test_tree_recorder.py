"""
Tests for planner event recording.
"""

import csv

import numpy as np

from planning.rrt import RRT, make_planner_config
from planning.tree_recorder import NODE_CREATED, RAYCAST, TreeRecorder


class TestTreeRecorder:
    """Tests for in-memory recording and CSV export."""

    def test_records_events(self):
        """Test that each hook appends one event."""
        recorder = TreeRecorder()
        origin = np.zeros(3)
        new = np.array([1.0, 0.0, 0.0])

        recorder.on_node_created(origin, new)
        recorder.on_raycast(origin, new - origin, 1.0, False)
        recorder.before_waypoint_optimization(origin, new)
        recorder.after_waypoint_optimization(origin, new)

        assert [e.kind for e in recorder.events] == [
            NODE_CREATED, RAYCAST, "before_optimization", "after_optimization"
        ]
        assert [e.sequence for e in recorder.events] == [0, 1, 2, 3]
        assert recorder.events[1].end_x == 1.0

    def test_skip_raycasts(self):
        """Test that raycast recording can be turned off."""
        recorder = TreeRecorder(record_raycasts=False)
        recorder.on_raycast(np.zeros(3), np.ones(3), 1.7, True)
        assert recorder.events == []

    def test_statistics(self):
        """Test summary statistics."""
        recorder = TreeRecorder()
        recorder.on_node_created(np.zeros(3), np.array([3.0, 4.0, 0.0]))
        recorder.on_node_created(np.zeros(3), np.array([1.0, 0.0, 0.0]))
        recorder.on_raycast(np.zeros(3), np.ones(3), 0.5, True)
        recorder.on_raycast(np.zeros(3), np.ones(3), 1.7, False)

        stats = recorder.get_statistics()
        assert stats["nodes_created"] == 2
        assert stats["raycasts"] == 2
        assert stats["raycast_hits"] == 1
        assert stats["hit_ratio"] == 0.5
        assert stats["total_edge_length_m"] == 6.0
        assert stats["max_edge_length_m"] == 5.0

    def test_statistics_empty(self):
        """Test statistics without any events."""
        assert "error" in TreeRecorder().get_statistics()

    def test_save(self, tmp_path):
        """Test CSV export."""
        recorder = TreeRecorder()
        recorder.on_node_created(np.zeros(3), np.array([1.0, 2.0, 3.0]))

        filepath = recorder.save("tree.csv", directory=str(tmp_path / "runs"))

        assert filepath == tmp_path / "runs" / "tree.csv"
        with open(filepath, newline="") as f:
            rows = list(csv.DictReader(f))
        assert len(rows) == 1
        assert rows[0]["kind"] == NODE_CREATED
        assert float(rows[0]["end_z"]) == 3.0

    def test_clear(self):
        """Test forgetting recorded events."""
        recorder = TreeRecorder()
        recorder.on_node_created(np.zeros(3), np.ones(3))
        recorder.clear()
        assert recorder.events == []

    def test_attached_to_planner(self, free_adapter):
        """Test recording a real planning run."""
        recorder = TreeRecorder()
        rrt = RRT(make_planner_config((0.0, 0.0, 1.0), None, seed=2), free_adapter, observers=[recorder])
        for _ in range(25):
            rrt.grow_one_step()

        stats = recorder.get_statistics()
        assert stats["nodes_created"] == len(rrt.tree) - 1
        assert stats["raycasts"] >= stats["nodes_created"]
