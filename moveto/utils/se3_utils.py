"""SE3 helpers built on sophuspy.

Every rigid transform in the package is a ``sophuspy.SE3``. These wrappers keep
construction and conversion in one place (quaternions follow the scipy /
geometry_msgs ``[x, y, z, w]`` order).
"""

import numpy as np
import sophuspy as sp
from numpy.typing import ArrayLike
from scipy.spatial.transform import Rotation

__all__ = [
    "se3_identity",
    "se3_copy",
    "se3_from_rpy",
    "se3_from_trans",
    "se3_from_quat",
    "se3_from_axis_angle",
    "se3_quat",
    "se3_with_translation",
    "se3_transform_point",
    "se3_ry",
    "se3_rz",
]

_ZERO = (0.0, 0.0, 0.0)


def se3_identity() -> sp.SE3:
    """Identity transform."""
    return sp.SE3(np.eye(3), _ZERO)


def se3_copy(se3: sp.SE3) -> sp.SE3:
    """Independent copy of a transform."""
    return sp.SE3(se3.rotationMatrix(), se3.translation())


def se3_from_rpy(x: float, y: float, z: float, roll: float, pitch: float, yaw: float) -> sp.SE3:
    """Transform from a translation and extrinsic xyz roll/pitch/yaw in radians."""
    R = Rotation.from_euler("xyz", (roll, pitch, yaw)).as_matrix()
    return sp.SE3(R, (x, y, z))


def se3_from_trans(x: float, y: float, z: float) -> sp.SE3:
    """Pure translation."""
    return sp.SE3(np.eye(3), (x, y, z))


def se3_from_quat(position: ArrayLike, quat_xyzw: ArrayLike) -> sp.SE3:
    """Create SE3 from a position and an ``[x, y, z, w]`` quaternion.

    The quaternion is normalized; a zero quaternion is rejected by scipy.
    """
    R = Rotation.from_quat(np.asarray(quat_xyzw, dtype=np.float64)).as_matrix()
    return sp.SE3(R, np.asarray(position, dtype=np.float64))


def se3_from_axis_angle(axis: ArrayLike, angle: float) -> sp.SE3:
    """Pure rotation of ``angle`` radians about ``axis`` (normalized here)."""
    a = np.asarray(axis, dtype=np.float64)
    norm = np.linalg.norm(a)
    if norm == 0.0:
        return se3_identity()
    return sp.SE3(Rotation.from_rotvec(a / norm * angle).as_matrix(), _ZERO)


def se3_quat(se3: sp.SE3) -> np.ndarray:
    """Orientation of ``se3`` as an ``[x, y, z, w]`` quaternion."""
    return Rotation.from_matrix(se3.rotationMatrix()).as_quat()


def se3_with_translation(se3: sp.SE3, translation: ArrayLike) -> sp.SE3:
    """Copy of ``se3`` keeping its rotation and replacing its translation."""
    return sp.SE3(se3.rotationMatrix(), np.asarray(translation, dtype=np.float64))


def se3_transform_point(se3: sp.SE3, point: ArrayLike) -> np.ndarray:
    """Apply ``se3`` to a 3D point."""
    p = np.asarray(point, dtype=np.float64)
    return se3.rotationMatrix() @ p + se3.translation()


def se3_ry(angle: float) -> sp.SE3:
    return se3_from_axis_angle((0.0, 1.0, 0.0), angle)


def se3_rz(angle: float) -> sp.SE3:
    return se3_from_axis_angle((0.0, 0.0, 1.0), angle)
