"""
Reference planner: straight-line joint interpolation with a least-squares IK
front end for Cartesian requests.

Not collision aware. Joint constraints in the path constraint set are checked
on every interpolated waypoint; position / orientation constraints are not
supported and are logged once per request.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import numpy as np
import sophuspy as sp
from numpy.typing import NDArray
from scipy.optimize import least_squares
from scipy.spatial.transform import Rotation

from moveto.config import IK_MAX_RESTARTS, IK_TOLERANCE, MAX_STEP_RAD, TRACE
from moveto.planning.base import PlannerInterface
from moveto.protocol.types import Constraints
from moveto.robot.model import JointGroup, JointType, LinkModel, RobotModel
from moveto.robot.scene import PlanningScene
from moveto.robot.state import RobotState
from moveto.robot.trajectory import RobotTrajectory

logger = logging.getLogger(__name__)

# Rate limiting for IK warnings (avoid log spam when a host retries many goals)
_ik_last_warn_time: float = 0.0
_IK_WARN_INTERVAL: float = 1.0


def _rate_limited_warning(msg: str, *args: object) -> None:
    """Log a warning with rate limiting to avoid spam."""
    global _ik_last_warn_time
    now = time.monotonic()
    if now - _ik_last_warn_time > _IK_WARN_INTERVAL:
        logger.warning(msg, *args)
        _ik_last_warn_time = now


@dataclass
class SolveIKResult:
    """IK result for one Cartesian request."""

    state: RobotState | None
    success: bool
    attempts: int
    residual: float


def pose_error(current: sp.SE3, target: sp.SE3) -> NDArray[np.float64]:
    """6-vector [dx, dy, dz, rx, ry, rz] from ``current`` to ``target`` (world frame)."""
    dp = target.translation() - current.translation()
    R_err = target.rotationMatrix() @ current.rotationMatrix().T
    return np.concatenate([dp, Rotation.from_matrix(R_err).as_rotvec()])


class JointInterpolationPlanner(PlannerInterface):
    """
    Interpolates linearly in joint space.

    Args:
        max_step: Largest per-variable change between two waypoints (rad or m)
        max_velocity: Speed used to time the waypoints (rad/s or m/s)
        seed: RNG seed for IK restarts (fixed for reproducible plans)
    """

    def __init__(
        self,
        max_step: float = MAX_STEP_RAD,
        max_velocity: float = 1.0,
        ik_tolerance: float = IK_TOLERANCE,
        ik_max_restarts: int = IK_MAX_RESTARTS,
        seed: int = 0,
    ) -> None:
        super().__init__()
        if max_step <= 0.0 or max_velocity <= 0.0:
            raise ValueError("max_step and max_velocity must be positive")
        self.max_step = max_step
        self.max_velocity = max_velocity
        self.ik_tolerance = ik_tolerance
        self.ik_max_restarts = max(0, int(ik_max_restarts))
        self.seed = seed

    # ----- joint space -----

    def interpolate(
        self, start: RobotState, goal: RobotState, group: JointGroup
    ) -> RobotTrajectory:
        """Waypoints from ``start`` to ``goal`` with at most ``max_step`` per variable."""
        delta = goal.positions - start.positions
        span = float(np.max(np.abs(delta))) if delta.size else 0.0
        n_steps = max(1, int(np.ceil(span / self.max_step)))
        dt = (span / n_steps) / self.max_velocity

        traj = RobotTrajectory(start.model, group)
        traj.add_suffix_waypoint(start, 0.0)
        wp = start.copy()
        for k in range(1, n_steps):
            wp.positions[:] = start.positions + delta * (k / n_steps)
            wp.velocities[:] = delta / max(n_steps * dt, 1e-12)
            traj.add_suffix_waypoint(wp, dt)
        traj.add_suffix_waypoint(goal, dt)
        return traj

    def _check_constraints(
        self, traj: RobotTrajectory, constraints: Constraints
    ) -> bool:
        if constraints.position_constraints or constraints.orientation_constraints:
            logger.warning(
                "JointInterpolationPlanner ignores %d position / %d orientation constraints",
                len(constraints.position_constraints),
                len(constraints.orientation_constraints),
            )
        model = traj.model
        for jc in constraints.joint_constraints:
            idx = model.variable_index.get(jc.joint_name)
            if idx is None:
                logger.warning("Joint constraint on unknown joint '%s'", jc.joint_name)
                return False
            lo = jc.position - jc.tolerance_below
            hi = jc.position + jc.tolerance_above
            values = traj.positions()[:, idx]
            if np.any(values < lo) or np.any(values > hi):
                logger.debug(
                    "Joint constraint on '%s' [%.4f, %.4f] violated", jc.joint_name, lo, hi
                )
                return False
        return True

    def plan_joint(
        self,
        from_scene: PlanningScene,
        to_scene: PlanningScene,
        group: JointGroup,
        timeout: float,
        path_constraints: Constraints,
    ) -> RobotTrajectory | None:
        traj = self.interpolate(from_scene.current_state, to_scene.current_state, group)
        logger.log(TRACE, "Joint interpolation produced %d waypoints", len(traj))
        if not self._check_constraints(traj, path_constraints):
            return None
        return traj

    # ----- Cartesian -----

    @staticmethod
    def _ik_variables(model: RobotModel, group: JointGroup) -> list[str]:
        """Movable single-dof joints of the group.

        Floating joints and locked joints (``lower == upper``) keep their
        start value.
        """
        names = []
        for jn in group.joint_names:
            joint = model.joint(jn)
            if joint.type in (JointType.FIXED, JointType.FLOATING):
                continue
            if joint.upper <= joint.lower:
                continue
            names.append(jn)
        return names

    def solve_ik(
        self,
        start: RobotState,
        link: LinkModel,
        target: sp.SE3,
        group: JointGroup,
        timeout: float,
    ) -> SolveIKResult:
        """Bounded least-squares IK for ``link`` seeded from ``start``, with random restarts."""
        model = start.model
        names = self._ik_variables(model, group)
        if not names:
            return SolveIKResult(None, False, 0, float("inf"))
        idx = np.array([model.variable_index[n] for n in names], dtype=np.intp)
        bounds = model.variable_bounds(names)
        lb, ub = bounds[:, 0], bounds[:, 1]
        # scipy rejects seeds on the bound itself
        eps = 1e-9
        lb_seed = np.where(np.isfinite(lb), lb + eps, -np.pi)
        ub_seed = np.where(np.isfinite(ub), ub - eps, np.pi)

        work = start.copy()

        def residual(x: NDArray[np.float64]) -> NDArray[np.float64]:
            work.positions[idx] = x
            work.update()
            return pose_error(work.global_link_transform(link.name), target)

        rng = np.random.default_rng(self.seed)
        deadline = time.perf_counter() + max(0.0, timeout)
        lo = np.where(np.isfinite(lb), lb + eps, -np.inf)
        hi = np.where(np.isfinite(ub), ub - eps, np.inf)
        # Ranges narrower than 2*eps seed at their midpoint
        narrow = lo > hi
        lo[narrow] = hi[narrow] = 0.5 * (lb[narrow] + ub[narrow])
        x0 = np.clip(start.positions[idx], lo, hi)
        best_cost = float("inf")
        attempts = 0
        while attempts <= self.ik_max_restarts:
            attempts += 1
            sol = least_squares(residual, x0, bounds=(lb, ub), xtol=1e-12, ftol=1e-12)
            err = float(np.linalg.norm(sol.fun))
            best_cost = min(best_cost, err)
            if err <= self.ik_tolerance:
                work.positions[idx] = sol.x
                work.update()
                return SolveIKResult(work, True, attempts, err)
            if time.perf_counter() >= deadline:
                break
            x0 = rng.uniform(lb_seed, ub_seed)
        return SolveIKResult(None, False, attempts, best_cost)

    def plan_cartesian(
        self,
        from_scene: PlanningScene,
        link: LinkModel,
        target: sp.SE3,
        group: JointGroup,
        timeout: float,
        path_constraints: Constraints,
    ) -> RobotTrajectory | None:
        start = from_scene.current_state
        result = self.solve_ik(start, link, target, group, timeout)
        if not result.success or result.state is None:
            _rate_limited_warning(
                "IK for link '%s' failed after %d attempt(s), residual %.3g",
                link.name,
                result.attempts,
                result.residual,
            )
            return None
        traj = self.interpolate(start, result.state, group)
        if not self._check_constraints(traj, path_constraints):
            return None
        return traj
