"""
MoveTo stage: plan from the incoming scene to a goal.

The goal is either joint-space (named pose, robot-state diff, joint map) or
Cartesian (pose or point for an ik frame). Joint-space goals are written into a
private scene diff and planned to directly; Cartesian goals are converted into
a world-frame target for the robot link the ik frame is rigidly attached to.

Per-invocation configuration problems become failed solutions; a missing or
unknown joint group is reported once at init().
"""

from __future__ import annotations

from typing import Annotated, Any

import msgspec
import sophuspy as sp

from moveto.config import DEFAULT_TIMEOUT_S, MARKER_SCALE
from moveto.planning.base import (
    CartesianPlanningRequest,
    JointPlanningRequest,
    PlannerInterface,
    PlanningRequest,
)
from moveto.planning.joint_interpolation import JointInterpolationPlanner
from moveto.protocol.goals import IkFrame, Pose, coerce_goal
from moveto.protocol.types import Constraints, Direction, Marker
from moveto.robot.model import JointGroup, RobotModel
from moveto.robot.scene import PlanningScene
from moveto.robot.trajectory import RobotTrajectory
from moveto.stages.base import StageBase, SubTrajectory
from moveto.stages.cost import PathLength
from moveto.stages.frames import (
    cartesian_target,
    ik_frame_world_pose,
    rebase_target,
    resolve_ik_frame,
    rigid_parent_link,
)
from moveto.stages.goal_resolver import resolve_joint_goal
from moveto.stages.markers import append_frame
from moveto.utils.errors import ConfigurationError, InitStageError


class MoveToProperties(msgspec.Struct, kw_only=True):
    """
    Settings of a MoveTo stage.

    ``goal`` is kept as given and coerced on every compute(), so a dict loaded
    from a config file and a struct built in code behave the same.
    """

    group: str = ""
    goal: Any = None
    ik_frame: IkFrame | None = None
    path_constraints: Constraints = msgspec.field(default_factory=Constraints)
    timeout: Annotated[float, msgspec.Meta(ge=0.0)] = DEFAULT_TIMEOUT_S

    def __post_init__(self) -> None:
        if self.timeout < 0.0:
            raise ValueError(f"timeout must be >= 0, got {self.timeout}")


class MoveTo(StageBase):
    """Move the robot to a joint-space or Cartesian goal using an injected planner."""

    def __init__(
        self,
        name: str = "move to",
        planner: PlannerInterface | None = None,
        properties: MoveToProperties | None = None,
    ) -> None:
        super().__init__(name)
        self.planner = planner if planner is not None else JointInterpolationPlanner()
        self.properties = properties if properties is not None else MoveToProperties()
        self.marker_scale = MARKER_SCALE
        self.set_cost_term(PathLength())

    # ----- property setters -----

    def set_group(self, group: str) -> None:
        self.properties.group = group

    def set_goal(self, goal: Any) -> None:
        """Set the goal: a goal struct, a named pose, a joint map, a tagged dict or an SE3."""
        self.properties.goal = goal

    def set_ik_frame(
        self, frame: IkFrame | Pose | sp.SE3 | str | None, link: str = ""
    ) -> None:
        """
        Set the robot frame moved to Cartesian goals.

        Accepts an IkFrame, a link name, or an offset pose relative to ``link``
        (empty ``link`` means the group's unique tip). None clears the setting.
        """
        if frame is None or isinstance(frame, IkFrame):
            self.properties.ik_frame = frame
        elif isinstance(frame, str):
            self.properties.ik_frame = IkFrame(frame_id=frame)
        elif isinstance(frame, Pose):
            self.properties.ik_frame = IkFrame(frame_id=link, pose=frame)
        elif isinstance(frame, sp.SE3):
            self.properties.ik_frame = IkFrame(frame_id=link, pose=Pose.from_se3(frame))
        else:
            raise TypeError(f"Unsupported ik frame type {type(frame).__name__}")

    def set_timeout(self, timeout: float) -> None:
        if timeout < 0.0:
            raise ValueError(f"timeout must be >= 0, got {timeout}")
        self.properties.timeout = float(timeout)

    def set_path_constraints(self, constraints: Constraints) -> None:
        self.properties.path_constraints = constraints

    # ----- lifecycle -----

    def do_init(self, robot_model: RobotModel) -> None:
        group = self.properties.group
        if not group:
            raise InitStageError(self.name, "no joint model group set")
        if not robot_model.has_group(group):
            raise InitStageError(self.name, f"invalid joint model group: {group}")
        self.planner.init(robot_model)

    def compute(
        self, state: PlanningScene, direction: Direction = Direction.FORWARD
    ) -> SubTrajectory | None:
        scene = state.diff()
        solution = SubTrajectory(scene)
        try:
            group = self._group(scene.model)
            request = self._request(state, scene, group, solution.markers)
        except ConfigurationError as e:
            self.log_warning("%s", e)
            # Partial goal writes must not leak into the reported end scene
            solution.scene = state.diff()
            solution.mark_as_failure(str(e))
            return solution

        self.log_debug("planning %s (timeout %.3fs)", type(request).__name__, request.timeout)
        planned = self.planner.plan(request)
        success = planned is not None and not planned.empty

        if planned is None or planned.empty:
            if not self.store_failures:
                self.log_debug("planning failed, not storing failure")
                return None
            # Straight-line stand-in so the failed attempt can still be displayed
            trajectory = RobotTrajectory(scene.model, group)
            trajectory.add_suffix_waypoint(state.current_state, 0.0)
            trajectory.add_suffix_waypoint(scene.current_state, 1.0)
        else:
            trajectory = planned

        scene.set_current_state(trajectory.last_waypoint())
        if direction == Direction.BACKWARD:
            trajectory.reverse()
        solution.set_trajectory(trajectory)
        if not success:
            solution.mark_as_failure("planning failed")
        self.apply_cost(solution)
        self.log_trace("%r", solution)
        return solution

    # ----- helpers -----

    def _group(self, model: RobotModel) -> JointGroup:
        group = model.group(self.properties.group)
        if group is None:
            raise ConfigurationError(f"invalid joint model group: {self.properties.group}")
        return group

    def _request(
        self,
        start: PlanningScene,
        scene: PlanningScene,
        group: JointGroup,
        markers: list[Marker],
    ) -> PlanningRequest:
        """Resolve the goal into a planner request; may write into ``scene``."""
        props = self.properties
        if props.goal is None:
            raise ConfigurationError("undefined goal")
        goal = coerce_goal(props.goal, scene.planning_frame)

        if resolve_joint_goal(goal, group, scene.current_state):
            return JointPlanningRequest(
                from_scene=start,
                to_scene=scene,
                group=group,
                timeout=props.timeout,
                path_constraints=props.path_constraints,
            )

        frame_id, offset = resolve_ik_frame(props.ik_frame, group, scene)
        ik_world = ik_frame_world_pose(frame_id, offset, scene)
        target = cartesian_target(goal, ik_world, scene)

        append_frame(markers, target, scene.planning_frame, "target frame", self.marker_scale)
        append_frame(markers, ik_world, scene.planning_frame, "ik frame", self.marker_scale)

        link = rigid_parent_link(frame_id, scene)
        link_target = rebase_target(target, ik_world, scene.frame_transform(link.name))
        self.log_trace("ik frame '%s' moves with link '%s'", frame_id, link.name)
        return CartesianPlanningRequest(
            from_scene=start,
            link=link,
            target=link_target,
            group=group,
            timeout=props.timeout,
            path_constraints=props.path_constraints,
        )
