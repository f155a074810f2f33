"""4x4 homogeneous transform builders (column-vector convention)."""

from __future__ import annotations

import math
from collections.abc import Iterable

import numpy as np

AXIS_VECTORS: dict[str, tuple[float, float, float]] = {
    "x": (1.0, 0.0, 0.0),
    "y": (0.0, 1.0, 0.0),
    "z": (0.0, 0.0, 1.0),
}


def translation_matrix(x: float, y: float, z: float) -> np.ndarray:
    mat = np.eye(4, dtype=np.float64)
    mat[:3, 3] = (x, y, z)
    return mat


def scale_matrix(x: float, y: float, z: float) -> np.ndarray:
    return np.diag([x, y, z, 1.0]).astype(np.float64)


def rotation_matrix(angle_rad: float, axis: tuple[float, float, float]) -> np.ndarray:
    """Rotation about an arbitrary axis (Rodrigues form, right-handed)."""
    a = np.asarray(axis, dtype=np.float64)
    norm = np.linalg.norm(a)
    mat = np.eye(4, dtype=np.float64)
    if norm == 0.0:
        return mat
    x, y, z = a / norm
    c = math.cos(angle_rad)
    s = math.sin(angle_rad)
    t = 1.0 - c
    mat[:3, :3] = [
        [t * x * x + c, t * x * y - s * z, t * x * z + s * y],
        [t * x * y + s * z, t * y * y + c, t * y * z - s * x],
        [t * x * z - s * y, t * y * z + s * x, t * z * z + c],
    ]
    return mat


def axis_rotation_matrix(axis: str, angle_deg: float) -> np.ndarray:
    """Rotation about a named principal axis by an angle in degrees."""
    return rotation_matrix(math.radians(angle_deg), AXIS_VECTORS[axis])


def compose(matrices: Iterable[np.ndarray]) -> np.ndarray:
    """Post-multiply matrices left-to-right, as successive calls on a matrix stack would."""
    result = np.eye(4, dtype=np.float64)
    for mat in matrices:
        result = result @ mat
    return result
