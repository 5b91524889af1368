"""
Ik-frame resolution and Cartesian target computation.

All functions are pure over their (goal, group, scene) inputs: they read frame
transforms from the scene but never modify it.

Transform chain for a Cartesian request:
  ik_world     = T(ik_frame.frame_id) * ik_frame.pose
  target       = T(goal.frame_id) * goal.pose          (pose goal)
               = ik_world with translation T(goal.frame_id) * goal.point   (point goal)
  final_target = target * ik_world^-1 * T(parent_link)
where parent_link is the robot link the ik frame is rigidly fixed to, so the
planner moves that link and the ik frame ends up at ``target``.
"""

from __future__ import annotations

import logging

import sophuspy as sp

from moveto.protocol.goals import (
    GoalSpec,
    IkFrame,
    PointGoal,
    PoseGoal,
    goal_type_name,
)
from moveto.robot.model import JointGroup, LinkModel
from moveto.robot.scene import PlanningScene
from moveto.utils.errors import ConfigurationError
from moveto.utils.se3_utils import (
    se3_identity,
    se3_transform_point,
    se3_with_translation,
)

logger = logging.getLogger(__name__)


# ----- FrameResolver -----


def unique_tip(group: JointGroup) -> str | None:
    """The group's end-effector tip if it has exactly one."""
    tips = group.end_effector_tips
    return tips[0] if len(tips) == 1 else None


def resolve_ik_frame(
    ik_frame: IkFrame | None, group: JointGroup, scene: PlanningScene
) -> tuple[str, sp.SE3]:
    """
    Frame id and local offset of the frame to move towards the goal.

    Raises:
        ConfigurationError: No unique tip to fall back on, or unknown frame
    """
    if ik_frame is None:
        tips = group.end_effector_tips
        if not tips:
            raise ConfigurationError(
                f"missing ik_frame: group '{group.name}' has no end-effector tip"
            )
        if len(tips) > 1:
            raise ConfigurationError(
                f"ambiguous ik frame: group '{group.name}' has {len(tips)} "
                f"end-effector tips ({', '.join(tips)})"
            )
        return tips[0], se3_identity()

    frame_id = ik_frame.frame_id
    if not frame_id:
        tip = unique_tip(group)
        if tip is None:
            raise ConfigurationError(
                "frame_id of ik_frame is empty and no unique group tip was found"
            )
        frame_id = tip
    if not scene.knows_frame_transform(frame_id):
        raise ConfigurationError(f"ik_frame specified in unknown frame '{frame_id}'")
    return frame_id, ik_frame.pose.to_se3()


def ik_frame_world_pose(frame_id: str, offset: sp.SE3, scene: PlanningScene) -> sp.SE3:
    return scene.frame_transform(frame_id) * offset


# ----- CartesianTargetResolver -----


def _known_frame(scene: PlanningScene, frame_id: str) -> sp.SE3:
    if not scene.knows_frame_transform(frame_id):
        raise ConfigurationError(f"goal specified in unknown frame '{frame_id}'")
    return scene.frame_transform(frame_id)


def pose_goal_target(goal: PoseGoal, scene: PlanningScene) -> sp.SE3:
    """Goal pose re-expressed in the world frame."""
    return _known_frame(scene, goal.frame_id) * goal.pose.to_se3()


def point_goal_target(
    goal: PointGoal, ik_world: sp.SE3, scene: PlanningScene
) -> sp.SE3:
    """Current ik-frame orientation at the goal point (in world)."""
    point = se3_transform_point(_known_frame(scene, goal.frame_id), goal.point)
    return se3_with_translation(ik_world, point)


def cartesian_target(goal: GoalSpec, ik_world: sp.SE3, scene: PlanningScene) -> sp.SE3:
    """
    World-frame target for a pose or point goal.

    Raises:
        ConfigurationError: If the goal is neither a pose nor a point
    """
    if isinstance(goal, PoseGoal):
        return pose_goal_target(goal, scene)
    if isinstance(goal, PointGoal):
        return point_goal_target(goal, ik_world, scene)
    raise ConfigurationError(f"invalid goal type: {goal_type_name(goal)}")


def rigid_parent_link(frame_id: str, scene: PlanningScene) -> LinkModel:
    link = scene.rigidly_connected_parent_link(frame_id)
    if link is None:
        raise ConfigurationError(f"ik_frame '{frame_id}' is not attached to the robot")
    return link


def rebase_target(target: sp.SE3, ik_world: sp.SE3, link_world: sp.SE3) -> sp.SE3:
    """Pose ``link`` must reach so that the ik frame lands on ``target``."""
    return target * ik_world.inverse() * link_world

