"""
Planner collaborators for the MoveTo stage.
"""

from moveto.planning.base import (
    CartesianPlanningRequest,
    JointPlanningRequest,
    PlannerInterface,
    PlanningRequest,
)
from moveto.planning.joint_interpolation import JointInterpolationPlanner

__all__ = [
    "PlannerInterface",
    "PlanningRequest",
    "JointPlanningRequest",
    "CartesianPlanningRequest",
    "JointInterpolationPlanner",
]
