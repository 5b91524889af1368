# Kinematic tree, joint groups and rigid-parent lookup
from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Final

import numpy as np
import sophuspy as sp
from numpy.typing import NDArray

from moveto.config import PLANNING_FRAME_DEFAULT
from moveto.utils.errors import RobotModelError
from moveto.utils.se3_utils import (
    se3_from_axis_angle,
    se3_from_quat,
    se3_from_trans,
    se3_identity,
)

logger = logging.getLogger(__name__)

# Variable suffixes of a floating joint: translation then [x, y, z, w] quaternion
FLOATING_SUFFIXES: Final = (
    "trans_x",
    "trans_y",
    "trans_z",
    "rot_x",
    "rot_y",
    "rot_z",
    "rot_w",
)


class JointType(Enum):
    """Supported joint kinds."""

    FIXED = "fixed"
    REVOLUTE = "revolute"
    CONTINUOUS = "continuous"
    PRISMATIC = "prismatic"
    FLOATING = "floating"

    @classmethod
    def from_string(cls, name: str) -> JointType:
        try:
            return cls(name.strip().lower())
        except ValueError:
            raise RobotModelError(f"Unknown joint type '{name}'") from None


@dataclass
class JointModel:
    """
    Joint connecting ``parent_link`` to ``child_link``.

    The child link frame is ``origin * motion(values)`` relative to the parent
    link frame.
    """

    name: str
    type: JointType
    parent_link: str
    child_link: str
    origin: sp.SE3 = field(default_factory=se3_identity)
    axis: NDArray[np.float64] = field(
        default_factory=lambda: np.array([0.0, 0.0, 1.0])
    )
    lower: float = -np.pi
    upper: float = np.pi

    def __post_init__(self) -> None:
        self.axis = np.asarray(self.axis, dtype=np.float64)
        if self.type == JointType.CONTINUOUS:
            self.lower, self.upper = -np.inf, np.inf
        if self.lower > self.upper:
            raise RobotModelError(
                f"Joint '{self.name}' has lower bound {self.lower} above upper {self.upper}"
            )

    @property
    def variable_count(self) -> int:
        if self.type == JointType.FIXED:
            return 0
        if self.type == JointType.FLOATING:
            return len(FLOATING_SUFFIXES)
        return 1

    @property
    def variable_names(self) -> list[str]:
        if self.type == JointType.FIXED:
            return []
        if self.type == JointType.FLOATING:
            return [f"{self.name}/{s}" for s in FLOATING_SUFFIXES]
        return [self.name]

    def default_values(self) -> NDArray[np.float64]:
        """Zero (clamped into bounds) for 1-dof joints, identity for floating joints."""
        if self.type == JointType.FLOATING:
            return np.array([0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 1.0])
        if self.type == JointType.FIXED:
            return np.empty(0)
        return np.array([min(max(0.0, self.lower), self.upper)])

    def motion(self, values: NDArray[np.float64]) -> sp.SE3:
        """Transform contributed by the joint variables."""
        if self.type in (JointType.REVOLUTE, JointType.CONTINUOUS):
            return se3_from_axis_angle(self.axis, float(values[0]))
        if self.type == JointType.PRISMATIC:
            n = np.linalg.norm(self.axis)
            d = self.axis / n if n > 0.0 else self.axis
            return se3_from_trans(*(d * float(values[0])))
        if self.type == JointType.FLOATING:
            return se3_from_quat(values[0:3], values[3:7])
        return se3_identity()

    def transform(self, values: NDArray[np.float64]) -> sp.SE3:
        return self.origin * self.motion(values)


@dataclass
class LinkModel:
    """Rigid body of the robot; ``parent_joint`` is None only for the root."""

    name: str
    parent_joint: JointModel | None = None
    child_joints: list[JointModel] = field(default_factory=list)

    @property
    def parent_link_name(self) -> str | None:
        return self.parent_joint.parent_link if self.parent_joint else None


@dataclass(frozen=True)
class JointGroup:
    """
    Named subset of joints with optional end-effector tips and named states.

    Read-only once the owning RobotModel is built.
    """

    name: str
    joint_names: tuple[str, ...]
    end_effector_tips: tuple[str, ...] = ()
    default_states: Mapping[str, Mapping[str, float]] = field(default_factory=dict)
    variable_names: tuple[str, ...] = ()

    def has_joint(self, joint_name: str) -> bool:
        return joint_name in self.joint_names

    def default_configuration(self, name: str) -> Mapping[str, float] | None:
        """Variable values of a named state, or None if the group lacks it."""
        return self.default_states.get(name)


class RobotModel:
    """
    Tree of links and joints plus the joint groups defined on it.

    Variables of all non-fixed joints are laid out in breadth-first joint order;
    ``variable_index`` maps variable name to position in a RobotState vector.
    """

    def __init__(
        self,
        name: str,
        joints: Iterable[JointModel],
        groups: Iterable[JointGroup] = (),
        root_link: str = PLANNING_FRAME_DEFAULT,
    ) -> None:
        self.name = name
        self.root_link = root_link
        self.links: dict[str, LinkModel] = {root_link: LinkModel(root_link)}
        self.joints: dict[str, JointModel] = {}

        pending = list(joints)
        for joint in pending:
            if joint.name in self.joints:
                raise RobotModelError(f"Duplicate joint '{joint.name}'")
            self.joints[joint.name] = joint
            if joint.child_link == root_link:
                raise RobotModelError(f"Joint '{joint.name}' has the root link as child")
            child = self.links.setdefault(joint.child_link, LinkModel(joint.child_link))
            if child.parent_joint is not None:
                raise RobotModelError(
                    f"Link '{joint.child_link}' has two parent joints "
                    f"('{child.parent_joint.name}', '{joint.name}')"
                )
            child.parent_joint = joint
        for joint in pending:
            parent = self.links.get(joint.parent_link)
            if parent is None:
                raise RobotModelError(
                    f"Joint '{joint.name}' references unknown parent link '{joint.parent_link}'"
                )
            parent.child_joints.append(joint)

        self.joint_order: list[JointModel] = self._breadth_first_joints()
        if len(self.joint_order) != len(self.joints):
            unreachable = set(self.joints) - {j.name for j in self.joint_order}
            raise RobotModelError(
                f"Joints not connected to root '{root_link}': {sorted(unreachable)}"
            )

        self.variable_names: list[str] = []
        self._joint_slices: dict[str, slice] = {}
        for joint in self.joint_order:
            start = len(self.variable_names)
            self.variable_names.extend(joint.variable_names)
            self._joint_slices[joint.name] = slice(start, len(self.variable_names))
        self.variable_index: dict[str, int] = {
            n: i for i, n in enumerate(self.variable_names)
        }

        self.groups: dict[str, JointGroup] = {}
        for group in groups:
            self.add_group(group)

        logger.debug(
            "Built robot model '%s': %d links, %d joints, %d variables, groups=%s",
            name,
            len(self.links),
            len(self.joints),
            len(self.variable_names),
            list(self.groups),
        )

    def _breadth_first_joints(self) -> list[JointModel]:
        order: list[JointModel] = []
        queue = deque([self.links[self.root_link]])
        while queue:
            link = queue.popleft()
            for joint in link.child_joints:
                order.append(joint)
                queue.append(self.links[joint.child_link])
        return order

    # ----- lookup -----

    @property
    def variable_count(self) -> int:
        return len(self.variable_names)

    def has_link(self, name: str) -> bool:
        return name in self.links

    def link(self, name: str) -> LinkModel:
        try:
            return self.links[name]
        except KeyError:
            raise RobotModelError(f"Unknown link '{name}'") from None

    def joint(self, name: str) -> JointModel:
        try:
            return self.joints[name]
        except KeyError:
            raise RobotModelError(f"Unknown joint '{name}'") from None

    def joint_slice(self, joint_name: str) -> slice:
        return self._joint_slices[joint_name]

    def has_group(self, name: str) -> bool:
        return name in self.groups

    def group(self, name: str) -> JointGroup | None:
        return self.groups.get(name)

    def add_group(self, group: JointGroup) -> JointGroup:
        """Validate and register a group; returns the stored (completed) group."""
        for jn in group.joint_names:
            if jn not in self.joints:
                raise RobotModelError(f"Group '{group.name}' references unknown joint '{jn}'")
        for tip in group.end_effector_tips:
            if tip not in self.links:
                raise RobotModelError(f"Group '{group.name}' tip '{tip}' is not a link")
        variables = tuple(
            v for jn in group.joint_names for v in self.joints[jn].variable_names
        )
        for state_name, values in group.default_states.items():
            for var in values:
                if var not in variables:
                    raise RobotModelError(
                        f"Named state '{state_name}' of group '{group.name}' "
                        f"sets variable '{var}' outside the group"
                    )
        stored = JointGroup(
            name=group.name,
            joint_names=tuple(group.joint_names),
            end_effector_tips=tuple(group.end_effector_tips),
            default_states={k: dict(v) for k, v in group.default_states.items()},
            variable_names=variables,
        )
        self.groups[group.name] = stored
        return stored

    def group_variable_indices(self, group: JointGroup) -> NDArray[np.intp]:
        return np.array(
            [self.variable_index[v] for v in group.variable_names], dtype=np.intp
        )

    def variable_bounds(self, variable_names: Iterable[str]) -> NDArray[np.float64]:
        """(N, 2) array of [lower, upper] per variable (floating joints unbounded)."""
        out = []
        for var in variable_names:
            joint = self.joints[var.split("/", 1)[0]]
            if joint.type == JointType.FLOATING:
                out.append((-np.inf, np.inf))
            else:
                out.append((joint.lower, joint.upper))
        return np.array(out, dtype=np.float64).reshape(-1, 2)

    def rigidly_connected_parent_link(self, link_name: str) -> LinkModel:
        """Nearest ancestor (or the link itself) not attached through a fixed joint."""
        link = self.link(link_name)
        while link.parent_joint is not None and link.parent_joint.type == JointType.FIXED:
            link = self.links[link.parent_joint.parent_link]
        return link

    def __repr__(self) -> str:
        return f"RobotModel(name={self.name!r}, links={len(self.links)}, joints={len(self.joints)})"
