"""
Tree growth recording for planner analysis.

Records the events a planning run emits (new nodes, collision checks,
waypoint optimization) for offline inspection and debugging of tree
growth.

Usage:
    recorder = TreeRecorder()
    rrt = RRT(config, adapter, observers=[recorder])
    rrt.run()

    recorder.save("run_001.csv")
"""

import csv
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import numpy as np

from config.settings import get_settings
from planning.events import PlannerObserver
from utils.logger import get_logger
from utils.math_helpers import Vector3

logger = get_logger(__name__)

NODE_CREATED = "node_created"
RAYCAST = "raycast"
BEFORE_OPTIMIZATION = "before_optimization"
AFTER_OPTIMIZATION = "after_optimization"


@dataclass
class TreeEvent:
    """Single recorded planner event."""

    sequence: int  # Order of arrival
    kind: str

    # Segment start (parent node or ray origin)
    start_x: float
    start_y: float
    start_z: float

    # Segment end (new node, or origin + direction for rays)
    end_x: float
    end_y: float
    end_z: float

    # Raycast only
    length: float = 0.0
    did_hit: bool = False


@dataclass
class TreeRecorder(PlannerObserver):
    """
    Records planner events in memory and saves them to CSV.

    Attributes:
        events: Recorded events in arrival order
        record_raycasts: Whether collision checks are recorded too
    """

    events: List[TreeEvent] = field(default_factory=list)
    record_raycasts: bool = True

    def _append(
        self,
        kind: str,
        start: Vector3,
        end: Vector3,
        length: float = 0.0,
        did_hit: bool = False,
    ) -> None:
        self.events.append(TreeEvent(
            sequence=len(self.events),
            kind=kind,
            start_x=float(start[0]),
            start_y=float(start[1]),
            start_z=float(start[2]),
            end_x=float(end[0]),
            end_y=float(end[1]),
            end_z=float(end[2]),
            length=float(length),
            did_hit=bool(did_hit),
        ))

    def on_node_created(self, parent: Vector3, new: Vector3) -> None:
        self._append(NODE_CREATED, parent, new)

    def on_raycast(self, origin: Vector3, direction: Vector3, length: float, did_hit: bool) -> None:
        if self.record_raycasts:
            self._append(RAYCAST, origin, np.asarray(origin) + np.asarray(direction), length, did_hit)

    def before_waypoint_optimization(self, start: Vector3, end: Vector3) -> None:
        self._append(BEFORE_OPTIMIZATION, start, end)

    def after_waypoint_optimization(self, start: Vector3, end: Vector3) -> None:
        self._append(AFTER_OPTIMIZATION, start, end)

    def clear(self) -> None:
        """Forget all recorded events."""
        self.events = []

    def save(self, filename: Optional[str] = None, directory: Optional[str] = None) -> Path:
        """
        Save recorded events to a CSV file.

        Args:
            filename: Output filename (auto-generated if not provided)
            directory: Output directory (defaults to the recording directory setting)

        Returns:
            Path to saved file
        """
        if directory is None:
            directory = get_settings().logging.recording_directory

        output_dir = Path(directory)
        output_dir.mkdir(parents=True, exist_ok=True)

        if filename is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            filename = f"tree_{timestamp}.csv"

        filepath = output_dir / filename

        with open(filepath, "w", newline="") as f:
            writer = csv.writer(f)

            writer.writerow([
                "sequence", "kind",
                "start_x", "start_y", "start_z",
                "end_x", "end_y", "end_z",
                "length", "did_hit",
            ])

            for event in self.events:
                writer.writerow([
                    event.sequence, event.kind,
                    event.start_x, event.start_y, event.start_z,
                    event.end_x, event.end_y, event.end_z,
                    event.length, event.did_hit,
                ])

        logger.info("Tree events saved", filepath=str(filepath), events=len(self.events))
        return filepath

    def get_statistics(self) -> dict:
        """
        Summarize the recorded events.

        Returns:
            Dictionary with tree growth statistics
        """
        if not self.events:
            return {"error": "No planner events recorded"}

        nodes = [e for e in self.events if e.kind == NODE_CREATED]
        raycasts = [e for e in self.events if e.kind == RAYCAST]
        hits = sum(1 for e in raycasts if e.did_hit)

        edge_lengths = np.array([
            np.linalg.norm([e.end_x - e.start_x, e.end_y - e.start_y, e.end_z - e.start_z])
            for e in nodes
        ])

        return {
            "total_events": len(self.events),
            "nodes_created": len(nodes),
            "raycasts": len(raycasts),
            "raycast_hits": hits,
            "hit_ratio": round(hits / len(raycasts), 3) if raycasts else 0.0,
            "total_edge_length_m": round(float(np.sum(edge_lengths)), 2) if len(nodes) else 0.0,
            "max_edge_length_m": round(float(np.max(edge_lengths)), 2) if len(nodes) else 0.0,
            "segments_before_optimization": sum(1 for e in self.events if e.kind == BEFORE_OPTIMIZATION),
            "segments_after_optimization": sum(1 for e in self.events if e.kind == AFTER_OPTIMIZATION),
        }
