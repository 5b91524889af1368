"""Command-line interface: run a MoveTo stage on a JSON problem file.

Problem file layout:

{
  "robot": { ...robot description, see moveto.robot.description... },
  "start": {"j1": 0.0, "j2": 0.5},
  "stage": {"group": "arm", "goal": {"type": "named", "name": "home"},
            "ik_frame": {"frame_id": "tool0"}, "timeout": 1.0},
  "direction": "forward",
  "store_failures": true
}
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Literal

import msgspec

import moveto.config as cfg
from moveto.config import TRACE
from moveto.planning.joint_interpolation import JointInterpolationPlanner
from moveto.protocol.types import Direction
from moveto.robot.description import RobotDescription, build_scene
from moveto.stages.base import SubTrajectory
from moveto.stages.move_to import MoveTo, MoveToProperties
from moveto.utils.errors import InitStageError, RobotModelError

logger = logging.getLogger("moveto.cli")


class Problem(msgspec.Struct, forbid_unknown_fields=True):
    robot: RobotDescription
    stage: MoveToProperties
    start: dict[str, float] = msgspec.field(default_factory=dict)
    direction: Literal["forward", "backward"] = "forward"
    store_failures: bool | None = None


class SolutionSummary(msgspec.Struct):
    success: bool
    comment: str
    cost: float
    waypoints: int
    duration: float
    end_state: dict[str, float]
    markers: list[str]


def summarize(solution: SubTrajectory) -> SolutionSummary:
    traj = solution.trajectory
    end_state: dict[str, float] = {}
    if solution.scene is not None:
        state = solution.scene.current_state
        end_state = dict(zip(state.model.variable_names, state.positions.tolist()))
    return SolutionSummary(
        success=solution.success,
        comment=solution.comment,
        cost=solution.cost,
        waypoints=len(traj) if traj is not None else 0,
        duration=traj.duration if traj is not None else 0.0,
        end_state=end_state,
        markers=sorted({m.ns for m in solution.markers}),
    )


def _log_level(args: argparse.Namespace) -> int:
    # Precedence: --log-level, then -v/-q, then MOVETO_TRACE, then MOVETO_LOG_LEVEL
    if args.log_level:
        if args.log_level == "TRACE":
            cfg.TRACE_ENABLED = True
            return TRACE
        return getattr(logging, args.log_level)
    if args.verbose >= 3:
        cfg.TRACE_ENABLED = True
        return TRACE
    if args.verbose >= 2:
        return logging.DEBUG
    if args.verbose == 1:
        return logging.INFO
    if args.quiet:
        return logging.WARNING
    if cfg.TRACE_ENABLED:
        return TRACE
    level = logging.getLevelName(cfg.LOG_LEVEL_DEFAULT)
    return level if isinstance(level, int) else logging.INFO


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the moveto command."""
    parser = argparse.ArgumentParser(description="Plan a MoveTo stage from a JSON problem")
    parser.add_argument("problem", help="Path to the JSON problem file")
    parser.add_argument(
        "--direction",
        choices=["forward", "backward"],
        help="Override the propagation direction of the problem file",
    )
    parser.add_argument(
        "--timeout", type=float, help="Override the planner timeout (seconds)"
    )
    parser.add_argument(
        "--no-store-failures",
        action="store_true",
        help="Do not report failed planning attempts",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity; -v=INFO, -vv=DEBUG, -vvv=TRACE",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Enable quiet logging (WARNING level)",
    )
    parser.add_argument(
        "--log-level",
        choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set specific log level",
    )
    args = parser.parse_args(argv)

    log_level = _log_level(args)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
    logging.getLogger("numba").setLevel(max(log_level, logging.INFO))

    try:
        with open(args.problem, "rb") as f:
            problem = msgspec.json.decode(f.read(), type=Problem)
    except (OSError, msgspec.DecodeError) as e:
        logger.error("Cannot read problem %s: %s", args.problem, e)
        return 2

    from moveto.utils.warmup import warmup_jit

    warmup_jit()

    try:
        scene = build_scene(problem.robot)
        scene.current_state.set_variable_positions(problem.start)
    except RobotModelError as e:
        logger.error("Invalid robot: %s", e)
        return 2

    stage = MoveTo(planner=JointInterpolationPlanner(), properties=problem.stage)
    if args.timeout is not None:
        stage.set_timeout(args.timeout)
    if problem.store_failures is not None:
        stage.store_failures = problem.store_failures
    if args.no_store_failures:
        stage.store_failures = False

    try:
        stage.init(scene.model)
    except InitStageError as e:
        logger.error("%s", e)
        return 2

    direction_name = args.direction or problem.direction
    direction = Direction.BACKWARD if direction_name == "backward" else Direction.FORWARD
    solution = stage.compute(scene, direction)
    if solution is None:
        logger.warning("No solution produced")
        return 1

    sys.stdout.write(
        msgspec.json.format(msgspec.json.encode(summarize(solution))).decode()
        + "\n"
    )
    return 0 if solution.success else 1


if __name__ == "__main__":
    raise SystemExit(main())
