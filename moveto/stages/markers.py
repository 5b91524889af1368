"""
Frame markers attached to solutions for visualization.

A frame is drawn as three arrows along its x (red), y (green) and z (blue) axes.
"""

from __future__ import annotations

import math

import sophuspy as sp

from moveto.config import MARKER_SCALE
from moveto.protocol.goals import Pose
from moveto.protocol.types import Color, Marker
from moveto.utils.se3_utils import se3_ry, se3_rz

_AXES: tuple[tuple[sp.SE3, Color], ...] = (
    (se3_rz(0.0), (1.0, 0.0, 0.0, 1.0)),
    (se3_rz(math.pi / 2), (0.0, 1.0, 0.0, 1.0)),
    (se3_ry(-math.pi / 2), (0.0, 0.0, 1.0, 1.0)),
)


def make_frame(
    pose: sp.SE3, frame_id: str, ns: str, scale: float = MARKER_SCALE
) -> list[Marker]:
    """Three arrow markers showing ``pose`` expressed in ``frame_id``."""
    shaft = 0.1 * scale
    return [
        Marker(
            ns=ns,
            frame_id=frame_id,
            pose=Pose.from_se3(pose * axis),
            scale=(scale, shaft, shaft),
            color=color,
        )
        for axis, color in _AXES
    ]


def append_frame(
    markers: list[Marker],
    pose: sp.SE3,
    frame_id: str,
    ns: str,
    scale: float = MARKER_SCALE,
) -> None:
    markers.extend(make_frame(pose, frame_id, ns, scale))
