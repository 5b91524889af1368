"""
Pipeline stages and the solution records they produce.
"""

from moveto.stages.base import StageBase, SubTrajectory
from moveto.stages.cost import Constant, CostTerm, PathLength
from moveto.stages.move_to import MoveTo, MoveToProperties

__all__ = [
    "StageBase",
    "SubTrajectory",
    "CostTerm",
    "Constant",
    "PathLength",
    "MoveTo",
    "MoveToProperties",
]
