"""
Goal and frame message types for the MoveTo stage.

A goal is a tagged union of msgspec structs. Host code may hand the stage a
loosely-typed value (a string, a joint map, a dict from a config file, an SE3);
``coerce_goal`` maps any of those onto exactly one union member and never
raises. Input that matches nothing becomes ``UnrecognizedGoal`` so the stage can
report it as a per-invocation failure.

JSON / dict form uses a ``"type"`` field:
  {"type": "named", "name": "home"}
  {"type": "joints", "joints": {"j1": 0.5}}
  {"type": "state", "joint_state": {"name": [...], "position": [...]}, "is_diff": true}
  {"type": "pose", "frame_id": "world", "pose": {"position": [...], "orientation": [...]}}
  {"type": "point", "frame_id": "world", "point": [x, y, z]}
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Annotated, Any, TypeAlias, Union

import msgspec
import numpy as np
import sophuspy as sp

from moveto.config import PLANNING_FRAME_DEFAULT
from moveto.utils.se3_utils import se3_from_quat, se3_quat

logger = logging.getLogger(__name__)

Vec3 = Annotated[list[float], msgspec.Meta(min_length=3, max_length=3)]
Quat = Annotated[list[float], msgspec.Meta(min_length=4, max_length=4)]


def _enc_hook(obj: object) -> object:
    """Custom encoder hook for numpy types."""
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, (np.integer, np.floating)):
        return obj.item()
    raise NotImplementedError(f"Cannot encode {type(obj)}")


_json_encoder = msgspec.json.Encoder(enc_hook=_enc_hook)


# =============================================================================
# Geometry messages
# =============================================================================


class Pose(msgspec.Struct, frozen=True):
    """Position + ``[x, y, z, w]`` orientation quaternion."""

    position: Vec3 = msgspec.field(default_factory=lambda: [0.0, 0.0, 0.0])
    orientation: Quat = msgspec.field(default_factory=lambda: [0.0, 0.0, 0.0, 1.0])

    def __post_init__(self) -> None:
        if not any(self.orientation):
            raise ValueError("orientation quaternion must be non-zero")

    def to_se3(self) -> sp.SE3:
        return se3_from_quat(self.position, self.orientation)

    @classmethod
    def from_se3(cls, se3: sp.SE3) -> Pose:
        return cls(
            position=[float(v) for v in se3.translation()],
            orientation=[float(v) for v in se3_quat(se3)],
        )


class IkFrame(msgspec.Struct, frozen=True):
    """Frame of the robot to be moved towards a Cartesian goal.

    ``frame_id`` may be empty, meaning "the unique end-effector tip of the
    group"; ``pose`` is the offset relative to that frame.
    """

    frame_id: str = ""
    pose: Pose = msgspec.field(default_factory=Pose)


class JointState(msgspec.Struct, frozen=True):
    """Named single-dof joint positions."""

    name: list[str] = msgspec.field(default_factory=list)
    position: list[float] = msgspec.field(default_factory=list)

    def __post_init__(self) -> None:
        if len(self.name) != len(self.position):
            raise ValueError("JointState name and position lengths differ")


class MultiDofJointState(msgspec.Struct, frozen=True):
    """Named multi-dof joint values, one transform per joint."""

    joint_names: list[str] = msgspec.field(default_factory=list)
    transforms: list[Pose] = msgspec.field(default_factory=list)

    def __post_init__(self) -> None:
        if len(self.joint_names) != len(self.transforms):
            raise ValueError("MultiDofJointState names and transforms lengths differ")


# =============================================================================
# Goal union
# =============================================================================


class NamedPoseGoal(msgspec.Struct, tag="named", frozen=True):
    """Named default configuration of the joint group (e.g. "home")."""

    name: str


class RobotStateGoal(msgspec.Struct, tag="state", frozen=True):
    """Robot state message; only accepted as a diff against the current state."""

    joint_state: JointState = msgspec.field(default_factory=JointState)
    multi_dof_joint_state: MultiDofJointState = msgspec.field(
        default_factory=MultiDofJointState
    )
    is_diff: bool = False


class JointValueGoal(msgspec.Struct, tag="joints", frozen=True):
    """Map of joint name to target position."""

    joints: dict[str, float]


class PoseGoal(msgspec.Struct, tag="pose", frozen=True):
    """Target pose for the ik frame, expressed in ``frame_id``."""

    frame_id: str
    pose: Pose


class PointGoal(msgspec.Struct, tag="point", frozen=True):
    """Target position for the ik frame, expressed in ``frame_id``."""

    frame_id: str
    point: Vec3


class UnrecognizedGoal(msgspec.Struct, tag="unrecognized", frozen=True):
    """Placeholder for input that matches no goal type."""

    type_name: str


GoalSpec: TypeAlias = Union[
    NamedPoseGoal,
    RobotStateGoal,
    JointValueGoal,
    PoseGoal,
    PointGoal,
    UnrecognizedGoal,
]

JOINT_SPACE_GOALS = (NamedPoseGoal, RobotStateGoal, JointValueGoal)
CARTESIAN_GOALS = (PoseGoal, PointGoal)
_GOAL_TYPES = JOINT_SPACE_GOALS + CARTESIAN_GOALS + (UnrecognizedGoal,)


def _is_joint_map(value: Mapping) -> bool:
    return all(
        isinstance(k, str)
        and isinstance(v, (int, float, np.integer, np.floating))
        and not isinstance(v, bool)
        for k, v in value.items()
    )


def coerce_goal(value: Any, planning_frame: str = PLANNING_FRAME_DEFAULT) -> GoalSpec:
    """Map a loosely-typed goal value onto the goal union.

    A bare ``sp.SE3`` is taken as a pose in ``planning_frame``.

    Never raises: anything that cannot be interpreted becomes
    ``UnrecognizedGoal`` carrying the offending type name.
    """
    if isinstance(value, _GOAL_TYPES):
        return value
    if isinstance(value, str):
        return NamedPoseGoal(name=value)
    if isinstance(value, sp.SE3):
        return PoseGoal(frame_id=planning_frame, pose=Pose.from_se3(value))
    if isinstance(value, Mapping):
        if "type" in value:
            try:
                return msgspec.convert(dict(value), type=GoalSpec)
            except (msgspec.ValidationError, ValueError) as e:
                logger.debug("Tagged goal %r failed validation: %s", value, e)
                return UnrecognizedGoal(type_name=f"dict[type={value['type']!r}]")
        if value and _is_joint_map(value):
            return JointValueGoal(joints={k: float(v) for k, v in value.items()})
    return UnrecognizedGoal(type_name=type(value).__name__)


def goal_type_name(goal: GoalSpec) -> str:
    """Human-readable name of a goal's type for error messages."""
    if isinstance(goal, UnrecognizedGoal):
        return goal.type_name
    return type(goal).__name__


def decode_goal(data: bytes | str) -> GoalSpec:
    """Decode a JSON goal document.

    Raises:
        msgspec.ValidationError: If the document is not a valid tagged goal
    """
    return msgspec.json.decode(data, type=GoalSpec)


def encode_goal(goal: GoalSpec) -> bytes:
    """Encode a goal struct to JSON bytes."""
    return _json_encoder.encode(goal)
