"""
Type definitions shared by the stage, its planners and host code.

Defines enums, constraint structs and the diagnostic marker record.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Literal

import msgspec
import sophuspy as sp

from moveto.protocol.goals import Pose, Quat, Vec3


class Direction(Enum):
    """Direction in which a stage propagates a solution."""

    FORWARD = 0  # start state -> goal
    BACKWARD = 1  # goal -> end state; stored trajectories are time-reversed


# =============================================================================
# Path constraints (passed through to the planner unchanged)
# =============================================================================


class JointConstraint(msgspec.Struct, frozen=True):
    joint_name: str
    position: float
    tolerance_above: float = 0.0
    tolerance_below: float = 0.0
    weight: float = 1.0


class PositionConstraint(msgspec.Struct, frozen=True):
    link_name: str
    frame_id: str
    target_point: Vec3
    tolerance: float = 0.0
    weight: float = 1.0


class OrientationConstraint(msgspec.Struct, frozen=True):
    link_name: str
    frame_id: str
    orientation: Quat
    absolute_tolerance: Vec3 = msgspec.field(
        default_factory=lambda: [0.0, 0.0, 0.0]
    )
    weight: float = 1.0


class Constraints(msgspec.Struct, frozen=True):
    """Constraint set to maintain along the whole trajectory."""

    name: str = ""
    joint_constraints: list[JointConstraint] = msgspec.field(default_factory=list)
    position_constraints: list[PositionConstraint] = msgspec.field(
        default_factory=list
    )
    orientation_constraints: list[OrientationConstraint] = msgspec.field(
        default_factory=list
    )

    def is_empty(self) -> bool:
        return not (
            self.joint_constraints
            or self.position_constraints
            or self.orientation_constraints
        )


# =============================================================================
# Diagnostic markers
# =============================================================================

MarkerType = Literal["ARROW"]
Color = tuple[float, float, float, float]


@dataclass(slots=True, frozen=True)
class Marker:
    """Visualization primitive attached to a solution (side output only)."""

    ns: str
    frame_id: str
    pose: Pose
    scale: tuple[float, float, float]
    color: Color
    type: MarkerType = "ARROW"

    @property
    def se3(self) -> sp.SE3:
        return self.pose.to_se3()
