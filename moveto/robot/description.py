"""
JSON robot / scene description.

A small URDF/SRDF-like document decoded with msgspec:

{
  "name": "arm",
  "root": "world",
  "joints": [
    {"name": "j1", "type": "revolute", "parent": "world", "child": "l1",
     "origin": {"position": [0, 0, 0.1]}, "axis": [0, 0, 1],
     "lower": -3.14, "upper": 3.14}
  ],
  "groups": [
    {"name": "arm", "joints": ["j1"], "tips": ["l1"],
     "states": {"home": {"j1": 0.0}}}
  ],
  "frames": [{"name": "table", "pose": {"position": [1, 0, 0]}}]
}
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import msgspec

from moveto.config import PLANNING_FRAME_DEFAULT
from moveto.protocol.goals import Pose, Vec3
from moveto.robot.model import JointGroup, JointModel, JointType, RobotModel
from moveto.robot.scene import PlanningScene
from moveto.utils.errors import RobotModelError

logger = logging.getLogger(__name__)


class JointDescription(msgspec.Struct, frozen=True, forbid_unknown_fields=True):
    name: str
    type: Annotated[
        str, msgspec.Meta(pattern=r"^(fixed|revolute|continuous|prismatic|floating)$")
    ]
    parent: str
    child: str
    origin: Pose = msgspec.field(default_factory=Pose)
    axis: Vec3 = msgspec.field(default_factory=lambda: [0.0, 0.0, 1.0])
    lower: float = -3.141592653589793
    upper: float = 3.141592653589793


class GroupDescription(msgspec.Struct, frozen=True, forbid_unknown_fields=True):
    name: str
    joints: list[str]
    tips: list[str] = msgspec.field(default_factory=list)
    states: dict[str, dict[str, float]] = msgspec.field(default_factory=dict)


class FrameDescription(msgspec.Struct, frozen=True, forbid_unknown_fields=True):
    name: str
    pose: Pose = msgspec.field(default_factory=Pose)
    link: str | None = None


class RobotDescription(msgspec.Struct, frozen=True, forbid_unknown_fields=True):
    name: str
    joints: list[JointDescription]
    root: str = PLANNING_FRAME_DEFAULT
    groups: list[GroupDescription] = msgspec.field(default_factory=list)
    frames: list[FrameDescription] = msgspec.field(default_factory=list)


def build_robot_model(desc: RobotDescription) -> RobotModel:
    """Construct a RobotModel from a decoded description."""
    joints = [
        JointModel(
            name=j.name,
            type=JointType.from_string(j.type),
            parent_link=j.parent,
            child_link=j.child,
            origin=j.origin.to_se3(),
            axis=j.axis,
            lower=j.lower,
            upper=j.upper,
        )
        for j in desc.joints
    ]
    groups = [
        JointGroup(
            name=g.name,
            joint_names=tuple(g.joints),
            end_effector_tips=tuple(g.tips),
            default_states=g.states,
        )
        for g in desc.groups
    ]
    return RobotModel(desc.name, joints, groups, root_link=desc.root)


def build_scene(desc: RobotDescription) -> PlanningScene:
    """Scene with the default state and every described frame registered."""
    scene = PlanningScene(build_robot_model(desc))
    for frame in desc.frames:
        scene.add_frame(frame.name, frame.pose.to_se3(), frame.link)
    return scene


def decode_description(data: bytes | str) -> RobotDescription:
    """
    Decode a JSON description.

    Raises:
        RobotModelError: If the document does not match the schema
    """
    try:
        return msgspec.json.decode(data, type=RobotDescription)
    except msgspec.ValidationError as e:
        raise RobotModelError(f"Invalid robot description: {e}") from e


def load_description(path: str | Path) -> RobotDescription:
    p = Path(path)
    logger.debug("Loading robot description from %s", p)
    return decode_description(p.read_bytes())
