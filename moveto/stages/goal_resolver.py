"""
Joint-space interpretation of a goal.

Goals are tried in fixed priority order: named pose, robot-state diff, joint
map. The first structural match decides; if that match is invalid the whole
invocation fails instead of falling through to the next interpretation.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from moveto.config import TRACE
from moveto.protocol.goals import (
    GoalSpec,
    JointValueGoal,
    NamedPoseGoal,
    RobotStateGoal,
)
from moveto.robot.model import JointGroup
from moveto.robot.state import RobotState
from moveto.utils.errors import ConfigurationError, RobotModelError

logger = logging.getLogger(__name__)


def validate_joints(joint_names: Iterable[str], group: JointGroup) -> None:
    """Raise ConfigurationError for the first joint that is not part of ``group``."""
    for name in joint_names:
        if not group.has_joint(name):
            raise ConfigurationError(
                f"Joint '{name}' is not part of group '{group.name}'"
            )


def apply_named_pose(goal: NamedPoseGoal, group: JointGroup, state: RobotState) -> None:
    if not state.set_to_default_values(group, goal.name):
        raise ConfigurationError(f"Unknown joint pose: {goal.name}")


def apply_state_diff(goal: RobotStateGoal, group: JointGroup, state: RobotState) -> None:
    if not goal.is_diff:
        raise ConfigurationError("Expecting a diff state")
    validate_joints(goal.joint_state.name, group)
    validate_joints(goal.multi_dof_joint_state.joint_names, group)
    try:
        state.apply_state_message(goal)
    except RobotModelError as e:
        raise ConfigurationError(str(e)) from e


def apply_joint_map(goal: JointValueGoal, group: JointGroup, state: RobotState) -> None:
    validate_joints(goal.joints, group)
    for name in goal.joints:
        if state.model.joint(name).variable_count != 1:
            raise ConfigurationError(
                f"Joint '{name}' is not a single-variable joint; use a robot state goal"
            )
    state.set_variable_positions(goal.joints)


def resolve_joint_goal(goal: GoalSpec, group: JointGroup, state: RobotState) -> bool:
    """
    Write a joint-space goal into ``state``.

    Returns:
        True if the goal is a joint-space goal (``state`` was updated), False
        if it must be resolved as a Cartesian goal instead.

    Raises:
        ConfigurationError: If the goal is joint-space but cannot be applied
    """
    if isinstance(goal, NamedPoseGoal):
        apply_named_pose(goal, group, state)
    elif isinstance(goal, RobotStateGoal):
        apply_state_diff(goal, group, state)
    elif isinstance(goal, JointValueGoal):
        apply_joint_map(goal, group, state)
    else:
        return False
    logger.log(TRACE, "Resolved %s for group '%s' to %r", type(goal).__name__, group.name, state)
    return True
