"""
Unit tests for the kinematic model, robot state and planning scene.
"""

import numpy as np
import pytest

from moveto.protocol.goals import JointState, MultiDofJointState, Pose, RobotStateGoal
from moveto.robot.model import JointGroup, JointModel, JointType, RobotModel
from moveto.robot.scene import PlanningScene
from moveto.robot.state import RobotState
from moveto.utils.errors import RobotModelError
from moveto.utils.se3_utils import se3_from_trans


class TestRobotModel:
    def test_variable_layout(self, arm_model):
        assert arm_model.variable_names == ["j1", "j2", "j3", "finger"]
        assert arm_model.variable_index["finger"] == 3

    def test_floating_joint_variables(self, mobile_model):
        assert mobile_model.variable_count == 8
        assert mobile_model.variable_names[:3] == ["base/trans_x", "base/trans_y", "base/trans_z"]

    def test_group_variable_names_filled(self, arm_model, mobile_model):
        assert arm_model.group("arm").variable_names == ("j1", "j2", "j3")
        assert len(mobile_model.group("whole").variable_names) == 8

    def test_missing_group_is_none(self, arm_model):
        assert arm_model.group("legs") is None
        assert not arm_model.has_group("legs")

    def test_rigid_parent_walks_fixed_joints(self, arm_model):
        assert arm_model.rigidly_connected_parent_link("tool0").name == "link3"
        assert arm_model.rigidly_connected_parent_link("link2").name == "link2"

    def test_continuous_joint_unbounded(self):
        joint = JointModel("c", JointType.CONTINUOUS, "world", "l")
        assert joint.lower == -np.inf and joint.upper == np.inf

    def test_bounds(self, arm_model):
        bounds = arm_model.variable_bounds(["finger", "j1"])
        assert np.allclose(bounds, [[0.0, 0.04], [-np.pi, np.pi]])

    @pytest.mark.parametrize(
        "joints, message",
        [
            (
                [
                    JointModel("a", JointType.REVOLUTE, "world", "l1"),
                    JointModel("a", JointType.REVOLUTE, "l1", "l2"),
                ],
                "Duplicate joint",
            ),
            (
                [
                    JointModel("a", JointType.REVOLUTE, "world", "l1"),
                    JointModel("b", JointType.REVOLUTE, "world", "l1"),
                ],
                "two parent joints",
            ),
            ([JointModel("a", JointType.REVOLUTE, "nowhere", "l1")], "unknown parent link"),
        ],
    )
    def test_inconsistent_trees_rejected(self, joints, message):
        with pytest.raises(RobotModelError, match=message):
            RobotModel("bad", joints)

    def test_group_with_unknown_joint_rejected(self):
        joints = [JointModel("a", JointType.REVOLUTE, "world", "l1")]
        with pytest.raises(RobotModelError, match="unknown joint 'b'"):
            RobotModel("bad", joints, [JointGroup("g", ("a", "b"))])

    def test_named_state_outside_group_rejected(self, arm_model):
        with pytest.raises(RobotModelError, match="outside the group"):
            arm_model.add_group(JointGroup("g", ("j1",), default_states={"s": {"j2": 0.0}}))

    def test_joint_type_parsing(self):
        assert JointType.from_string(" Revolute ") is JointType.REVOLUTE
        with pytest.raises(RobotModelError):
            JointType.from_string("ball")


class TestRobotState:
    def test_defaults_clamped_into_bounds(self, arm_model):
        state = RobotState(arm_model)
        assert np.allclose(state.positions, 0.0)

    def test_forward_kinematics(self, arm_model):
        state = RobotState(arm_model)
        tool = state.global_link_transform("tool0")
        assert np.allclose(tool.translation(), [0.0, 0.0, 1.0])

        state.set_variable_position("j2", np.pi / 2)
        tool = state.global_link_transform("tool0")
        # Rotating +90 deg about y swings the upper arm along +x
        assert np.allclose(tool.translation(), [0.5, 0.0, 0.5])

    def test_cache_invalidated_on_write(self, arm_model):
        state = RobotState(arm_model)
        before = state.global_link_transform("link3").translation().copy()
        state.set_variable_position("j2", 0.4)
        after = state.global_link_transform("link3").translation()
        assert not np.allclose(before, after)

    def test_copy_is_independent(self, arm_model):
        state = RobotState(arm_model)
        other = state.copy()
        other.set_variable_position("j1", 1.0)
        assert state.variable_position("j1") == 0.0

    def test_unknown_variable(self, arm_model):
        with pytest.raises(RobotModelError, match="Unknown variable 'x'"):
            RobotState(arm_model).set_variable_position("x", 0.0)

    def test_unknown_link(self, arm_model):
        with pytest.raises(RobotModelError, match="Unknown link"):
            RobotState(arm_model).global_link_transform("nowhere")

    def test_wrong_position_count(self, arm_model):
        with pytest.raises(RobotModelError):
            RobotState(arm_model, positions=[0.0, 0.0])

    def test_named_default(self, arm_model):
        state = RobotState(arm_model)
        assert state.set_to_default_values(arm_model.group("hand"), "open")
        assert state.variable_position("finger") == pytest.approx(0.04)
        assert not state.set_to_default_values(arm_model.group("hand"), "closed")

    def test_apply_state_message(self, mobile_model):
        state = RobotState(mobile_model)
        state.apply_state_message(
            RobotStateGoal(
                joint_state=JointState(name=["j1"], position=[0.3]),
                multi_dof_joint_state=MultiDofJointState(
                    joint_names=["base"], transforms=[Pose(position=[1.0, 0.0, 0.0])]
                ),
                is_diff=True,
            )
        )
        assert state.variable_position("j1") == pytest.approx(0.3)
        base = state.global_link_transform("base_link")
        assert np.allclose(base.translation(), [1.0, 0.0, 0.0])


class TestPlanningScene:
    def test_diff_isolated_from_parent(self, arm_scene):
        before = arm_scene.current_state.positions.copy()
        child = arm_scene.diff()
        child.current_state.set_variable_position("j1", 1.2)
        assert np.array_equal(arm_scene.current_state.positions, before)
        assert child.parent is arm_scene

    def test_set_current_state_copies(self, arm_scene, arm_model):
        state = RobotState(arm_model)
        arm_scene.set_current_state(state)
        state.set_variable_position("j1", 2.0)
        assert arm_scene.current_state.variable_position("j1") == 0.0

    def test_set_current_state_other_model(self, arm_scene, mobile_model):
        with pytest.raises(RobotModelError):
            arm_scene.set_current_state(RobotState(mobile_model))

    def test_knows_frames(self, arm_scene):
        for frame in ("world", "link1", "tool0", "table", "camera"):
            assert arm_scene.knows_frame_transform(frame)
        assert not arm_scene.knows_frame_transform("shelf")
        assert not arm_scene.knows_frame_transform("")

    def test_child_sees_parent_frames(self, arm_scene):
        child = arm_scene.diff()
        child.add_frame("cup", se3_from_trans(0.0, 1.0, 0.0))
        assert child.knows_frame_transform("table")
        assert child.knows_frame_transform("cup")
        assert not arm_scene.knows_frame_transform("cup")

    def test_attached_frame_follows_link(self, arm_scene):
        link = arm_scene.frame_transform("link3")
        camera = arm_scene.frame_transform("camera")
        expected = link * se3_from_trans(0.0, 0.0, 0.05)
        assert np.allclose(camera.matrix(), expected.matrix())

    def test_unknown_frame_raises_keyerror(self, arm_scene):
        with pytest.raises(KeyError):
            arm_scene.frame_transform("shelf")

    def test_frame_cannot_shadow_link(self, arm_scene):
        with pytest.raises(RobotModelError, match="shadows"):
            arm_scene.add_frame("tool0", se3_from_trans(0.0, 0.0, 0.0))

    def test_frame_on_unknown_link(self, arm_scene):
        with pytest.raises(RobotModelError, match="unknown link"):
            arm_scene.add_frame("cup", se3_from_trans(0.0, 0.0, 0.0), link="hand")

    def test_rigid_parent_of_world_frame(self, arm_scene):
        assert arm_scene.rigidly_connected_parent_link("table") is None
        assert arm_scene.rigidly_connected_parent_link("camera").name == "link3"

    def test_default_state_when_none_given(self, arm_model):
        scene = PlanningScene(arm_model)
        assert np.allclose(scene.current_state.positions, 0.0)
