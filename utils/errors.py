"""
Error taxonomy shared by the planner, the gain scorer and the spline engine.

Contract violations and configuration mistakes are exceptions. Running out
of iterations is not: the planner returns a structured PlanningFailure
(see planning.rrt) because a usable best-effort path usually exists.
"""


class PlannerError(Exception):
    """Base class for all errors raised by the inspection planner."""


class ConfigurationError(PlannerError, ValueError):
    """A tuning parameter is out of range; raised before any work starts."""


class QueryDomainError(PlannerError, ValueError):
    """A query was made outside its valid domain (programming error)."""


class CollaboratorUnavailable(PlannerError, RuntimeError):
    """The occupancy map (or another external collaborator) cannot be reached."""
