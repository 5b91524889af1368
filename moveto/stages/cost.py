"""
Cost terms used to rank solutions of sibling attempts.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import TYPE_CHECKING

import numpy as np
from numba import njit  # type: ignore[import-untyped]

if TYPE_CHECKING:
    from moveto.stages.base import SubTrajectory


@njit(cache=True)
def _path_length(positions: np.ndarray, weights: np.ndarray) -> float:
    """Sum of weighted Euclidean distances between consecutive rows."""
    total = 0.0
    for i in range(1, positions.shape[0]):
        seg = 0.0
        for j in range(positions.shape[1]):
            d = (positions[i, j] - positions[i - 1, j]) * weights[j]
            seg += d * d
        total += np.sqrt(seg)
    return total


class CostTerm(ABC):
    @abstractmethod
    def __call__(self, solution: SubTrajectory) -> float:
        raise NotImplementedError


class Constant(CostTerm):
    """Same cost for every solution."""

    def __init__(self, cost: float = 0.0) -> None:
        self.cost = cost

    def __call__(self, solution: SubTrajectory) -> float:
        return self.cost


class PathLength(CostTerm):
    """
    Joint-space length of the trajectory.

    Args:
        joint_weights: Optional per-variable weights. When given, only the
            named variables are counted; otherwise every variable weighs 1.0.
    """

    def __init__(self, joint_weights: Mapping[str, float] | None = None) -> None:
        self.joint_weights = dict(joint_weights) if joint_weights else {}

    def __call__(self, solution: SubTrajectory) -> float:
        traj = solution.trajectory
        if traj is None or len(traj) < 2:
            return 0.0
        positions = np.ascontiguousarray(traj.positions(traj.group))
        names = (
            traj.group.variable_names if traj.group else traj.model.variable_names
        )
        if self.joint_weights:
            weights = np.array([self.joint_weights.get(n, 0.0) for n in names])
        else:
            weights = np.ones(len(names))
        return float(_path_length(positions, weights.astype(np.float64)))
