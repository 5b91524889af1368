"""
Base abstractions shared by pipeline stages.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from moveto.config import STORE_FAILURES_DEFAULT, TRACE
from moveto.protocol.types import Direction, Marker
from moveto.robot.model import RobotModel
from moveto.robot.scene import PlanningScene
from moveto.robot.trajectory import RobotTrajectory
from moveto.utils.errors import InitStageError

if TYPE_CHECKING:
    from moveto.stages.cost import CostTerm

logger = logging.getLogger(__name__)


class SubTrajectory:
    """
    Solution record produced by one stage invocation.

    Holds the end scene, an optional trajectory, a failure flag with message,
    diagnostic markers and a cost. A successful record always carries a
    non-empty trajectory.
    """

    __slots__ = ("scene", "_trajectory", "_failure", "comment", "_markers", "cost")

    def __init__(self, scene: PlanningScene | None = None) -> None:
        self.scene = scene
        self._trajectory: RobotTrajectory | None = None
        self._failure = False
        self.comment = ""
        self._markers: list[Marker] = []
        self.cost = 0.0

    @property
    def trajectory(self) -> RobotTrajectory | None:
        return self._trajectory

    def set_trajectory(self, trajectory: RobotTrajectory | None) -> None:
        self._trajectory = trajectory

    @property
    def is_failure(self) -> bool:
        return self._failure

    @property
    def success(self) -> bool:
        return not self._failure

    def mark_as_failure(self, message: str = "") -> None:
        """Flag the record as failed; an empty message keeps any earlier comment."""
        self._failure = True
        if message:
            self.comment = message

    @property
    def markers(self) -> list[Marker]:
        """Append-only diagnostic marker list."""
        return self._markers

    def __repr__(self) -> str:
        status = f"failed: {self.comment!r}" if self._failure else "ok"
        return f"SubTrajectory({status}, trajectory={self._trajectory!r}, cost={self.cost:.4g})"


class StageBase(ABC):
    """
    Reusable base for stages with shared lifecycle and logging helpers.

    Subclasses implement do_init() for setup-time validation and compute() for
    one invocation. Errors raised from do_init() are fatal (InitStageError);
    compute() must report per-invocation problems on the returned record.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.store_failures: bool = STORE_FAILURES_DEFAULT
        self.robot_model: RobotModel | None = None
        self.cost_term: CostTerm | None = None

    # Logging helpers (uniform, include stage identity)
    def log_trace(self, msg: str, *args: Any) -> None:
        logger.log(TRACE, "[%s] " + msg, self.name, *args)

    def log_debug(self, msg: str, *args: Any) -> None:
        logger.debug("[%s] " + msg, self.name, *args)

    def log_warning(self, msg: str, *args: Any) -> None:
        logger.warning("[%s] " + msg, self.name, *args)

    def log_error(self, msg: str, *args: Any) -> None:
        logger.error("[%s] " + msg, self.name, *args)

    def set_cost_term(self, cost_term: CostTerm | None) -> None:
        self.cost_term = cost_term

    def do_init(self, robot_model: RobotModel) -> None:
        """Subclass hook for setup-time validation; override in subclasses."""
        return

    def init(self, robot_model: RobotModel) -> None:
        """Public init wrapper providing centralized logging and error handling."""
        self.log_trace("init start")
        self.robot_model = robot_model
        try:
            self.do_init(robot_model)
        except InitStageError as e:
            self.log_error("Init error: %s", e.message)
            raise
        except Exception as e:
            self.log_error("Init error: %s", e)
            raise InitStageError(self.name, str(e)) from e
        self.log_trace("init ok")

    def apply_cost(self, solution: SubTrajectory) -> SubTrajectory:
        if self.cost_term is not None:
            solution.cost = self.cost_term(solution)
        return solution

    @abstractmethod
    def compute(
        self, state: PlanningScene, direction: Direction = Direction.FORWARD
    ) -> SubTrajectory | None:
        """Run one invocation starting from (forward) or ending at (backward) ``state``."""
        raise NotImplementedError

    def compute_forward(self, state: PlanningScene) -> SubTrajectory | None:
        return self.compute(state, Direction.FORWARD)

    def compute_backward(self, state: PlanningScene) -> SubTrajectory | None:
        return self.compute(state, Direction.BACKWARD)
