"""
Planner contract used by the MoveTo stage.

The stage never plans by itself: it hands a joint-space or Cartesian request to
a planner injected at construction time. Returning None is the normal way to
say "no trajectory within the budget"; exceptions are reserved for misuse.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import sophuspy as sp

from moveto.protocol.types import Constraints
from moveto.robot.model import JointGroup, LinkModel, RobotModel
from moveto.robot.scene import PlanningScene
from moveto.robot.trajectory import RobotTrajectory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JointPlanningRequest:
    """Plan from ``from_scene``'s current state to ``to_scene``'s current state."""

    from_scene: PlanningScene
    to_scene: PlanningScene
    group: JointGroup
    timeout: float
    path_constraints: Constraints = field(default_factory=Constraints)


@dataclass(frozen=True)
class CartesianPlanningRequest:
    """Plan until ``link`` reaches the world-frame ``target``."""

    from_scene: PlanningScene
    link: LinkModel
    target: sp.SE3
    group: JointGroup
    timeout: float
    path_constraints: Constraints = field(default_factory=Constraints)


PlanningRequest = JointPlanningRequest | CartesianPlanningRequest


class PlannerInterface(ABC):
    """Abstract planner: one-time init, then any number of plan calls."""

    def __init__(self) -> None:
        self.robot_model: RobotModel | None = None

    def init(self, robot_model: RobotModel) -> None:
        """Bind the planner to a robot model; called once before any plan()."""
        self.robot_model = robot_model

    def plan(self, request: PlanningRequest) -> RobotTrajectory | None:
        """Dispatch a request to the matching plan_* method."""
        if isinstance(request, JointPlanningRequest):
            return self.plan_joint(
                request.from_scene,
                request.to_scene,
                request.group,
                request.timeout,
                request.path_constraints,
            )
        return self.plan_cartesian(
            request.from_scene,
            request.link,
            request.target,
            request.group,
            request.timeout,
            request.path_constraints,
        )

    @abstractmethod
    def plan_joint(
        self,
        from_scene: PlanningScene,
        to_scene: PlanningScene,
        group: JointGroup,
        timeout: float,
        path_constraints: Constraints,
    ) -> RobotTrajectory | None:
        raise NotImplementedError

    @abstractmethod
    def plan_cartesian(
        self,
        from_scene: PlanningScene,
        link: LinkModel,
        target: sp.SE3,
        group: JointGroup,
        timeout: float,
        path_constraints: Constraints,
    ) -> RobotTrajectory | None:
        raise NotImplementedError
