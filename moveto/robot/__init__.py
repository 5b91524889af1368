"""
Robot-side collaborators: kinematic model, state, scene and trajectories.
"""

from moveto.robot.model import JointGroup, JointModel, JointType, LinkModel, RobotModel
from moveto.robot.scene import PlanningScene, SceneFrame
from moveto.robot.state import RobotState
from moveto.robot.trajectory import RobotTrajectory

__all__ = [
    "JointGroup",
    "JointModel",
    "JointType",
    "LinkModel",
    "RobotModel",
    "RobotState",
    "PlanningScene",
    "SceneFrame",
    "RobotTrajectory",
]
