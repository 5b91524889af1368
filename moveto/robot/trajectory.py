"""
Waypoint trajectory produced by planners and stored in solutions.

Times are kept as durations from the previous waypoint (the first entry is the
offset of waypoint 0, normally 0.0).
"""

from __future__ import annotations

import logging

import numpy as np
from numpy.typing import NDArray

from moveto.robot.model import JointGroup, RobotModel
from moveto.robot.state import RobotState
from moveto.utils.errors import RobotModelError

logger = logging.getLogger(__name__)


class RobotTrajectory:
    """
    Ordered (RobotState, duration-from-previous) waypoints for one joint group.

    A trajectory may be empty; solutions only store non-empty ones.
    """

    __slots__ = ("model", "group", "_waypoints", "_durations")

    def __init__(self, model: RobotModel, group: JointGroup | None = None) -> None:
        self.model = model
        self.group = group
        self._waypoints: list[RobotState] = []
        self._durations: list[float] = []

    def __len__(self) -> int:
        return len(self._waypoints)

    def __getitem__(self, idx: int) -> RobotState:
        return self._waypoints[idx]

    def __iter__(self):
        return iter(self._waypoints)

    @property
    def empty(self) -> bool:
        return not self._waypoints

    @property
    def durations_from_previous(self) -> list[float]:
        return list(self._durations)

    def add_suffix_waypoint(self, state: RobotState, dt: float) -> RobotTrajectory:
        """Append a copy of ``state`` reached ``dt`` seconds after the previous waypoint."""
        if state.model is not self.model:
            raise RobotModelError("Waypoint belongs to a different robot model")
        if dt < 0.0:
            raise ValueError(f"Negative waypoint duration {dt}")
        self._waypoints.append(state.copy())
        self._durations.append(float(dt))
        return self

    def first_waypoint(self) -> RobotState:
        return self._waypoints[0]

    def last_waypoint(self) -> RobotState:
        return self._waypoints[-1]

    def waypoint_times(self) -> NDArray[np.float64]:
        """Absolute time of every waypoint."""
        return np.cumsum(np.asarray(self._durations, dtype=np.float64))

    @property
    def duration(self) -> float:
        return float(sum(self._durations))

    def positions(self, group: JointGroup | None = None) -> NDArray[np.float64]:
        """(N, V) array of waypoint positions, restricted to ``group`` if given."""
        if not self._waypoints:
            n = self.model.variable_count if group is None else len(group.variable_names)
            return np.empty((0, n), dtype=np.float64)
        if group is None:
            return np.stack([wp.positions for wp in self._waypoints])
        idx = self.model.group_variable_indices(group)
        return np.stack([wp.positions[idx] for wp in self._waypoints])

    def reverse(self) -> RobotTrajectory:
        """
        Time-reverse in place.

        Waypoints swap order and velocities flip sign. The first duration is
        kept as the new start offset and the gaps between waypoints are reversed,
        so each pair of neighbours stays the same time apart.
        """
        self._waypoints.reverse()
        for wp in self._waypoints:
            wp.invert_velocity()
        if self._durations:
            self._durations = [self._durations[0]] + self._durations[:0:-1]
        return self

    def __repr__(self) -> str:
        g = self.group.name if self.group else None
        return f"RobotTrajectory(group={g!r}, waypoints={len(self)}, duration={self.duration:.3f})"
