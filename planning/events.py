"""
Planner event hooks.

Observers subscribe to tree growth without the planner knowing their
concrete types (visualization, recording, debugging). Notifications are
fire-and-forget: observers cannot influence the search. Gain scoring in
next-best-view mode is not an observer; see planning.nbv.
"""

from typing import List

from utils.math_helpers import Vector3


class PlannerObserver:
    """
    Base class for planner observers; every hook defaults to a no-op.

    Example:
        class PrintNodes(PlannerObserver):
            def on_node_created(self, parent, new):
                print(parent, "->", new)
    """

    def on_node_created(self, parent: Vector3, new: Vector3) -> None:
        """A node was added to the tree as a child of parent."""

    def on_raycast(self, origin: Vector3, direction: Vector3, length: float, did_hit: bool) -> None:
        """A segment collision check was performed."""

    def before_waypoint_optimization(self, start: Vector3, end: Vector3) -> None:
        """One segment of the backtracked path, before shortcutting."""

    def after_waypoint_optimization(self, start: Vector3, end: Vector3) -> None:
        """One segment of the path after shortcutting."""


class ObserverList(PlannerObserver):
    """Fans a notification out to every registered observer."""

    def __init__(self):
        self._observers: List[PlannerObserver] = []

    def register(self, observer: PlannerObserver) -> None:
        self._observers.append(observer)

    def __len__(self) -> int:
        return len(self._observers)

    def on_node_created(self, parent: Vector3, new: Vector3) -> None:
        for observer in self._observers:
            observer.on_node_created(parent, new)

    def on_raycast(self, origin: Vector3, direction: Vector3, length: float, did_hit: bool) -> None:
        for observer in self._observers:
            observer.on_raycast(origin, direction, length, did_hit)

    def before_waypoint_optimization(self, start: Vector3, end: Vector3) -> None:
        for observer in self._observers:
            observer.before_waypoint_optimization(start, end)

    def after_waypoint_optimization(self, start: Vector3, end: Vector3) -> None:
        for observer in self._observers:
            observer.after_waypoint_optimization(start, end)
