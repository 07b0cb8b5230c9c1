"""
Node transform utilities.

Conversions between glTF TRS components and 4x4 column-major-semantics
matrices (numpy, row-major storage, M @ v for column vectors).

Key conventions:
- Quaternions are [x, y, z, w], the glTF and scipy order
- Scale is extracted from column norms; a negative determinant flips X
"""

from typing import List, Tuple

import numpy as np
from scipy.spatial.transform import Rotation


def compose_matrix(translation: List[float], rotation: List[float], scale: List[float]) -> np.ndarray:
    """
    Build a local transform matrix from TRS components.

    Args:
        translation: [x, y, z]
        rotation: Quaternion [x, y, z, w]
        scale: [x, y, z]

    Returns:
        4x4 float64 matrix equal to T * R * S
    """
    matrix = np.eye(4)
    matrix[:3, :3] = Rotation.from_quat(_safe_quat(rotation)).as_matrix() * np.asarray(scale, dtype=np.float64)
    matrix[:3, 3] = translation
    return matrix


def decompose_matrix(matrix) -> Tuple[List[float], List[float], List[float]]:
    """
    Split a 4x4 affine matrix into TRS components.

    Args:
        matrix: 4x4 matrix (row-major storage)

    Returns:
        Tuple of (translation, rotation [x, y, z, w], scale)
    """
    matrix = np.asarray(matrix, dtype=np.float64).reshape(4, 4)
    translation = matrix[:3, 3].tolist()

    basis = matrix[:3, :3]
    scale = np.linalg.norm(basis, axis=0)
    if np.linalg.det(basis) < 0:
        scale[0] = -scale[0]

    safe_scale = np.where(scale == 0, 1.0, scale)
    rotation = Rotation.from_matrix(basis / safe_scale).as_quat()

    return translation, rotation.tolist(), scale.tolist()


def matrix_from_gltf(values: List[float]) -> np.ndarray:
    """glTF stores matrices column-major; return a row-major 4x4."""
    return np.asarray(values, dtype=np.float64).reshape(4, 4).T


def _safe_quat(rotation: List[float]) -> List[float]:
    """Return the quaternion, or identity if it has zero length."""
    if not any(rotation):
        return [0.0, 0.0, 0.0, 1.0]
    return rotation
