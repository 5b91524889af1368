"""
Planning scene: robot model, current state and named frames.

``PlanningScene.diff()`` returns a child scene that starts from the parent's
current state and frames; writes to the child never reach the parent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import sophuspy as sp

from moveto.robot.model import LinkModel, RobotModel
from moveto.robot.state import RobotState
from moveto.utils.errors import RobotModelError
from moveto.utils.se3_utils import se3_copy, se3_identity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SceneFrame:
    """Named frame fixed relative to a robot link, or to the world if ``link`` is None."""

    name: str
    pose: sp.SE3
    link: str | None = None


class PlanningScene:
    """Robot model + current state + extra named frames (objects, markers)."""

    def __init__(
        self,
        model: RobotModel,
        state: RobotState | None = None,
        parent: PlanningScene | None = None,
    ) -> None:
        self.model = model
        self.parent = parent
        self._state = state.copy() if state is not None else RobotState(model)
        # Only frames added to this scene; lookups fall back to the parent chain
        self._frames: dict[str, SceneFrame] = {}

    def diff(self) -> PlanningScene:
        """Child scene recording changes on top of this one."""
        return PlanningScene(self.model, self._state, parent=self)

    @property
    def planning_frame(self) -> str:
        return self.model.root_link

    # ----- state -----

    @property
    def current_state(self) -> RobotState:
        """Mutable current state of *this* scene."""
        return self._state

    def set_current_state(self, state: RobotState) -> None:
        if state.model is not self.model:
            raise RobotModelError("State belongs to a different robot model")
        self._state = state.copy()

    # ----- frames -----

    def add_frame(self, name: str, pose: sp.SE3, link: str | None = None) -> None:
        """Register a frame fixed to ``link`` (or to the world)."""
        if self.model.has_link(name) or name == self.planning_frame:
            raise RobotModelError(f"Frame '{name}' shadows a robot link")
        if link is not None and not self.model.has_link(link):
            raise RobotModelError(f"Frame '{name}' attached to unknown link '{link}'")
        self._frames[name] = SceneFrame(name, se3_copy(pose), link)

    def _find_frame(self, name: str) -> SceneFrame | None:
        scene: PlanningScene | None = self
        while scene is not None:
            frame = scene._frames.get(name)
            if frame is not None:
                return frame
            scene = scene.parent
        return None

    def knows_frame_transform(self, frame_id: str) -> bool:
        if not frame_id:
            return False
        return (
            frame_id == self.planning_frame
            or self.model.has_link(frame_id)
            or self._find_frame(frame_id) is not None
        )

    def frame_transform(self, frame_id: str) -> sp.SE3:
        """
        World transform of a frame in the current state.

        Raises:
            KeyError: If the frame is unknown (check knows_frame_transform first)
        """
        if frame_id == self.planning_frame:
            return se3_identity()
        if self.model.has_link(frame_id):
            return self._state.global_link_transform(frame_id)
        frame = self._find_frame(frame_id)
        if frame is None:
            raise KeyError(f"Unknown frame '{frame_id}'")
        if frame.link is None:
            return se3_copy(frame.pose)
        return self._state.global_link_transform(frame.link) * frame.pose

    def frame_link(self, frame_id: str) -> str | None:
        """Robot link a frame is rigidly fixed to, or None for world-fixed frames."""
        if self.model.has_link(frame_id):
            return frame_id
        frame = self._find_frame(frame_id)
        return frame.link if frame is not None else None

    def rigidly_connected_parent_link(self, frame_id: str) -> LinkModel | None:
        """Nearest robot link moving rigidly with ``frame_id``; None if not on the robot."""
        link = self.frame_link(frame_id)
        if link is None:
            return None
        return self.model.rigidly_connected_parent_link(link)
