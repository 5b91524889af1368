"""Unit test fixtures: small robot models, scenes and a recording planner."""

from __future__ import annotations

import numpy as np
import pytest

from moveto.planning.base import PlannerInterface
from moveto.robot.model import JointGroup, JointModel, JointType, RobotModel
from moveto.robot.scene import PlanningScene
from moveto.robot.state import RobotState
from moveto.robot.trajectory import RobotTrajectory
from moveto.stages.move_to import MoveTo
from moveto.utils.se3_utils import se3_from_trans


def make_arm_model(j1_locked: bool = False) -> RobotModel:
    """
    Three revolute joints, a fixed flange and a prismatic finger.

    world -j1(z)-> link1 -j2(y)-> link2 -j3(y)-> link3 -flange(fixed)-> tool0
          -finger(x, prismatic)-> finger_link

    With ``j1_locked`` the base joint has ``lower == upper == 0``.
    """
    joints = [
        JointModel(
            "j1",
            JointType.REVOLUTE,
            "world",
            "link1",
            se3_from_trans(0, 0, 0.1),
            [0, 0, 1],
            lower=0.0 if j1_locked else -np.pi,
            upper=0.0 if j1_locked else np.pi,
        ),
        JointModel("j2", JointType.REVOLUTE, "link1", "link2", se3_from_trans(0, 0, 0.4), [0, 1, 0]),
        JointModel("j3", JointType.REVOLUTE, "link2", "link3", se3_from_trans(0, 0, 0.4), [0, 1, 0]),
        JointModel("flange", JointType.FIXED, "link3", "tool0", se3_from_trans(0, 0, 0.1)),
        JointModel(
            "finger",
            JointType.PRISMATIC,
            "tool0",
            "finger_link",
            se3_from_trans(0, 0, 0.05),
            [1, 0, 0],
            lower=0.0,
            upper=0.04,
        ),
    ]
    groups = [
        JointGroup(
            "arm",
            ("j1", "j2", "j3"),
            end_effector_tips=("tool0",),
            default_states={
                "home": {"j1": 0.0, "j2": 0.0, "j3": 0.0},
                "ready": {"j1": 0.5, "j2": -0.3, "j3": 0.6},
            },
        ),
        JointGroup("hand", ("finger",), default_states={"open": {"finger": 0.04}}),
        JointGroup(
            "arm_with_hand",
            ("j1", "j2", "j3", "finger"),
            end_effector_tips=("tool0", "finger_link"),
        ),
    ]
    return RobotModel("arm_bot", joints, groups)


def make_mobile_model() -> RobotModel:
    """Floating base carrying one revolute joint."""
    joints = [
        JointModel("base", JointType.FLOATING, "world", "base_link"),
        JointModel("j1", JointType.REVOLUTE, "base_link", "arm_link", se3_from_trans(0, 0, 0.2)),
    ]
    groups = [JointGroup("whole", ("base", "j1"), end_effector_tips=("arm_link",))]
    return RobotModel("mobile_bot", joints, groups)


class RecordingPlanner(PlannerInterface):
    """
    Planner fake that records every call.

    Joint requests return start -> midpoint -> goal; Cartesian requests return
    start -> start with j1 += 0.25. ``fail`` makes every call return None.
    """

    def __init__(self, fail: bool = False) -> None:
        super().__init__()
        self.fail = fail
        self.init_calls = 0
        self.calls: list[tuple[str, dict]] = []

    def init(self, robot_model: RobotModel) -> None:
        super().init(robot_model)
        self.init_calls += 1

    def _trajectory(self, start: RobotState, end: RobotState, group: JointGroup) -> RobotTrajectory:
        mid = start.copy()
        mid.positions[:] = 0.5 * (start.positions + end.positions)
        traj = RobotTrajectory(start.model, group)
        traj.add_suffix_waypoint(start, 0.0)
        traj.add_suffix_waypoint(mid, 0.25)
        traj.add_suffix_waypoint(end, 0.75)
        return traj

    def plan_joint(self, from_scene, to_scene, group, timeout, path_constraints):
        self.calls.append(
            (
                "joint",
                dict(
                    from_scene=from_scene,
                    goal=to_scene.current_state.copy(),
                    group=group,
                    timeout=timeout,
                    path_constraints=path_constraints,
                ),
            )
        )
        if self.fail:
            return None
        return self._trajectory(from_scene.current_state, to_scene.current_state, group)

    def plan_cartesian(self, from_scene, link, target, group, timeout, path_constraints):
        self.calls.append(
            (
                "cartesian",
                dict(
                    from_scene=from_scene,
                    link=link,
                    target=target,
                    group=group,
                    timeout=timeout,
                    path_constraints=path_constraints,
                ),
            )
        )
        if self.fail:
            return None
        end = from_scene.current_state.copy()
        end.set_variable_position("j1", end.variable_position("j1") + 0.25)
        return self._trajectory(from_scene.current_state, end, group)


@pytest.fixture
def arm_model() -> RobotModel:
    return make_arm_model()


@pytest.fixture
def mobile_model() -> RobotModel:
    return make_mobile_model()


@pytest.fixture
def locked_arm_model() -> RobotModel:
    return make_arm_model(j1_locked=True)


@pytest.fixture
def arm_scene(arm_model) -> PlanningScene:
    """Arm at j = [0.1, 0.2, 0.3] with a world-fixed 'table' and a 'camera' on link3."""
    scene = PlanningScene(arm_model)
    scene.current_state.set_variable_positions({"j1": 0.1, "j2": 0.2, "j3": 0.3})
    scene.add_frame("table", se3_from_trans(1.0, 0.0, 0.0))
    scene.add_frame("camera", se3_from_trans(0.0, 0.0, 0.05), link="link3")
    return scene


@pytest.fixture
def planner() -> RecordingPlanner:
    return RecordingPlanner()


@pytest.fixture
def stage(arm_model, planner) -> MoveTo:
    """MoveTo on group 'arm', initialised, with the recording planner."""
    s = MoveTo("move to", planner=planner)
    s.set_group("arm")
    s.store_failures = True
    s.init(arm_model)
    return s


@pytest.fixture
def failing_planner() -> RecordingPlanner:
    return RecordingPlanner(fail=True)


@pytest.fixture
def make_stage(arm_model):
    """Factory for initialised MoveTo stages on the arm model."""

    def _make(
        group: str = "arm",
        planner: PlannerInterface | None = None,
        store_failures: bool = True,
    ) -> MoveTo:
        s = MoveTo(planner=planner if planner is not None else RecordingPlanner())
        s.set_group(group)
        s.store_failures = store_failures
        s.init(arm_model)
        return s

    return _make
