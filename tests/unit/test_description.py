"""
Unit tests for the JSON robot description loader and the moveto CLI.
"""

import json

import numpy as np
import pytest

from moveto.cli import main
from moveto.robot.description import (
    build_robot_model,
    build_scene,
    decode_description,
    load_description,
)
from moveto.utils.errors import RobotModelError

ARM_DESCRIPTION = {
    "name": "arm",
    "joints": [
        {"name": "j1", "type": "revolute", "parent": "world", "child": "link1",
         "origin": {"position": [0, 0, 0.1]}, "axis": [0, 0, 1]},
        {"name": "j2", "type": "revolute", "parent": "link1", "child": "link2",
         "origin": {"position": [0, 0, 0.4]}, "axis": [0, 1, 0]},
        {"name": "flange", "type": "fixed", "parent": "link2", "child": "tool0",
         "origin": {"position": [0, 0, 0.3]}},
    ],
    "groups": [
        {"name": "arm", "joints": ["j1", "j2"], "tips": ["tool0"],
         "states": {"home": {"j1": 0.0, "j2": 0.0}, "ready": {"j1": 0.5, "j2": -0.3}}},
    ],
    "frames": [
        {"name": "table", "pose": {"position": [0.5, 0.0, 0.0]}},
        {"name": "camera", "pose": {"position": [0.0, 0.0, 0.05]}, "link": "link2"},
    ],
}


class TestDescription:
    def test_build_model(self):
        model = build_robot_model(decode_description(json.dumps(ARM_DESCRIPTION)))
        assert model.variable_names == ["j1", "j2"]
        assert model.group("arm").end_effector_tips == ("tool0",)
        assert model.rigidly_connected_parent_link("tool0").name == "link2"

    def test_build_scene_registers_frames(self):
        scene = build_scene(decode_description(json.dumps(ARM_DESCRIPTION)))
        assert scene.knows_frame_transform("table")
        assert np.allclose(scene.frame_transform("table").translation(), [0.5, 0.0, 0.0])
        assert scene.rigidly_connected_parent_link("camera").name == "link2"

    def test_unknown_field_rejected(self):
        bad = dict(ARM_DESCRIPTION, color="red")
        with pytest.raises(RobotModelError, match="Invalid robot description"):
            decode_description(json.dumps(bad))

    def test_bad_joint_type_rejected(self):
        bad = json.loads(json.dumps(ARM_DESCRIPTION))
        bad["joints"][0]["type"] = "ball"
        with pytest.raises(RobotModelError):
            decode_description(json.dumps(bad))

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "arm.json"
        path.write_text(json.dumps(ARM_DESCRIPTION))
        assert load_description(path).name == "arm"


class TestCli:
    def _write(self, tmp_path, **overrides):
        problem = {
            "robot": ARM_DESCRIPTION,
            "start": {"j1": 0.1},
            "stage": {"group": "arm", "goal": {"type": "named", "name": "ready"}},
        }
        problem.update(overrides)
        path = tmp_path / "problem.json"
        path.write_text(json.dumps(problem))
        return str(path)

    def test_named_goal(self, tmp_path, capsys):
        rc = main([self._write(tmp_path), "-q"])
        summary = json.loads(capsys.readouterr().out)
        assert rc == 0
        assert summary["success"] is True
        assert summary["end_state"]["j1"] == pytest.approx(0.5)
        assert summary["waypoints"] >= 2

    def test_point_goal_backward(self, tmp_path, capsys):
        goal = {"type": "point", "frame_id": "world", "point": [0.2, 0.0, 0.7]}
        path = self._write(
            tmp_path,
            stage={"group": "arm", "goal": goal, "timeout": 0.2},
            direction="backward",
            store_failures=True,
        )
        main([path, "-q"])
        summary = json.loads(capsys.readouterr().out)
        # Markers are attached whether or not the 2-joint arm can reach the point
        assert summary["markers"] == ["ik frame", "target frame"]
        assert summary["waypoints"] >= 2

    def test_configuration_error_reported(self, tmp_path, capsys):
        path = self._write(tmp_path, stage={"group": "arm", "goal": "dance"})
        rc = main([path, "-q"])
        summary = json.loads(capsys.readouterr().out)
        assert rc == 1
        assert summary["success"] is False
        assert summary["comment"] == "Unknown joint pose: dance"

    def test_unknown_group_is_fatal(self, tmp_path):
        path = self._write(tmp_path, stage={"group": "legs", "goal": "home"})
        assert main([path, "-q"]) == 2

    def test_missing_file(self, tmp_path):
        assert main([str(tmp_path / "nope.json"), "-q"]) == 2
