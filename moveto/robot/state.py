"""
Robot configuration with lazily computed forward kinematics.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

import numpy as np
import sophuspy as sp
from numpy.typing import ArrayLike, NDArray

from moveto.protocol.goals import RobotStateGoal
from moveto.robot.model import JointGroup, RobotModel
from moveto.utils.errors import RobotModelError
from moveto.utils.se3_utils import se3_identity

logger = logging.getLogger(__name__)


class RobotState:
    """
    Position (and velocity) of every variable of a RobotModel.

    Link transforms are computed on demand and cached until the next write.
    """

    __slots__ = ("model", "positions", "velocities", "_link_transforms")

    def __init__(
        self,
        model: RobotModel,
        positions: ArrayLike | None = None,
        velocities: ArrayLike | None = None,
    ) -> None:
        self.model = model
        if positions is None:
            self.positions = np.empty(model.variable_count, dtype=np.float64)
            self.set_to_default_values()
        else:
            self.positions = np.array(positions, dtype=np.float64)
            if self.positions.shape != (model.variable_count,):
                raise RobotModelError(
                    f"Expected {model.variable_count} positions, got {self.positions.shape}"
                )
        self.velocities = (
            np.zeros(model.variable_count, dtype=np.float64)
            if velocities is None
            else np.array(velocities, dtype=np.float64)
        )
        self._link_transforms: dict[str, sp.SE3] | None = None

    def copy(self) -> RobotState:
        return RobotState(self.model, self.positions, self.velocities)

    def __repr__(self) -> str:
        values = ", ".join(
            f"{n}={v:.4g}" for n, v in zip(self.model.variable_names, self.positions)
        )
        return f"RobotState({values})"

    def _invalidate(self) -> None:
        self._link_transforms = None

    # ----- variable access -----

    def variable_position(self, name: str) -> float:
        return float(self.positions[self.model.variable_index[name]])

    def set_variable_position(self, name: str, value: float) -> None:
        try:
            idx = self.model.variable_index[name]
        except KeyError:
            raise RobotModelError(f"Unknown variable '{name}'") from None
        self.positions[idx] = float(value)
        self._invalidate()

    def set_variable_positions(self, values: Mapping[str, float]) -> None:
        for name, value in values.items():
            self.set_variable_position(name, value)

    def joint_positions(self, joint_name: str) -> NDArray[np.float64]:
        return self.positions[self.model.joint_slice(joint_name)].copy()

    def set_joint_positions(self, joint_name: str, values: ArrayLike) -> None:
        sl = self.model.joint_slice(joint_name)
        arr = np.asarray(values, dtype=np.float64).reshape(-1)
        if arr.shape[0] != sl.stop - sl.start:
            raise RobotModelError(
                f"Joint '{joint_name}' expects {sl.stop - sl.start} values, got {arr.shape[0]}"
            )
        self.positions[sl] = arr
        self._invalidate()

    def group_positions(self, group: JointGroup) -> NDArray[np.float64]:
        return self.positions[self.model.group_variable_indices(group)].copy()

    def set_to_default_values(
        self, group: JointGroup | None = None, name: str | None = None
    ) -> bool:
        """
        Reset variables to model defaults, or apply a named state of ``group``.

        Returns False (state untouched) if the group has no such named state.
        """
        if group is None:
            for joint in self.model.joint_order:
                sl = self.model.joint_slice(joint.name)
                self.positions[sl] = joint.default_values()
            self._invalidate()
            return True
        values = group.default_configuration(name or "")
        if values is None:
            return False
        self.set_variable_positions(values)
        return True

    def apply_state_message(self, msg: RobotStateGoal) -> None:
        """Overwrite only the joints named in ``msg`` (diff semantics)."""
        for name, value in zip(msg.joint_state.name, msg.joint_state.position):
            self.set_variable_position(name, value)
        for name, pose in zip(
            msg.multi_dof_joint_state.joint_names, msg.multi_dof_joint_state.transforms
        ):
            self.set_joint_positions(name, [*pose.position, *pose.orientation])

    def invert_velocity(self) -> None:
        self.velocities *= -1.0

    # ----- kinematics -----

    def update(self) -> None:
        """Recompute all link transforms."""
        model = self.model
        transforms: dict[str, sp.SE3] = {model.root_link: se3_identity()}
        for joint in model.joint_order:
            values = self.positions[model.joint_slice(joint.name)]
            transforms[joint.child_link] = transforms[joint.parent_link] * joint.transform(
                values
            )
        self._link_transforms = transforms

    def global_link_transform(self, link_name: str) -> sp.SE3:
        """World transform of a link."""
        if self._link_transforms is None:
            self.update()
        assert self._link_transforms is not None
        try:
            return self._link_transforms[link_name]
        except KeyError:
            raise RobotModelError(f"Unknown link '{link_name}'") from None
