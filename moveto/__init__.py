"""
MoveTo Python Package

A motion-planning pipeline stage that moves a robot to a goal given as a named
pose, joint values, a robot-state diff, or a Cartesian pose / point for an ik
frame, using an injected planner.

Key components:
- MoveTo: the stage (configure, init once, compute per incoming scene)
- PlannerInterface: contract for planners; JointInterpolationPlanner is the default
- RobotModel / PlanningScene: kinematic model and scene the stage works on
- load_description: build a robot model from a JSON description file
"""

from ._version import __version__
from .planning import JointInterpolationPlanner, PlannerInterface
from .protocol.goals import (
    IkFrame,
    JointValueGoal,
    NamedPoseGoal,
    PointGoal,
    Pose,
    PoseGoal,
    RobotStateGoal,
    coerce_goal,
)
from .protocol.types import Constraints, Direction
from .robot import PlanningScene, RobotModel, RobotState, RobotTrajectory
from .robot.description import build_robot_model, build_scene, load_description
from .stages import MoveTo, MoveToProperties, SubTrajectory
from .utils.errors import ConfigurationError, InitStageError, RobotModelError

__all__ = [
    "__version__",
    "MoveTo",
    "MoveToProperties",
    "SubTrajectory",
    "PlannerInterface",
    "JointInterpolationPlanner",
    "RobotModel",
    "RobotState",
    "RobotTrajectory",
    "PlanningScene",
    "Direction",
    "Constraints",
    "Pose",
    "IkFrame",
    "NamedPoseGoal",
    "JointValueGoal",
    "RobotStateGoal",
    "PoseGoal",
    "PointGoal",
    "coerce_goal",
    "build_robot_model",
    "build_scene",
    "load_description",
    "ConfigurationError",
    "InitStageError",
    "RobotModelError",
]
