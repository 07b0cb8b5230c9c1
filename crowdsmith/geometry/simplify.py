"""
Mesh simplification.

Quadric edge-collapse decimation through trimesh (fast-simplification
backend). Decimation only produces new positions and faces, so every other
vertex attribute is carried over from the nearest original vertex.
"""

import logging

import numpy as np
import trimesh

from crowdsmith.document.model import Document, Primitive, TRIANGLES
from .join import compact_indices

logger = logging.getLogger(__name__)

# Faces below which decimation is not worth running
MIN_FACES = 16

# Error budget -> fraction of faces removed. An error of 0.015 (LOD 3) removes
# three quarters of the triangles.
ERROR_TO_REDUCTION = 50.0
MAX_REDUCTION = 0.95


def target_face_count(faces: int, ratio: float, error: float) -> int:
    """
    Face count to decimate to.

    Args:
        faces: Current face count
        ratio: Lower bound as a fraction of current faces (0 lets error decide)
        error: Error budget relative to mesh size

    Returns:
        Target number of faces, never above ``faces``
    """
    reduction = min(MAX_REDUCTION, max(0.0, error * ERROR_TO_REDUCTION))
    target = max(int(faces * ratio), int(faces * (1.0 - reduction)))
    return min(faces, max(1, target))


def simplify(document: Document, ratio: float = 0.0, error: float = 0.001) -> int:
    """
    Decimate every indexed triangle primitive.

    Returns:
        Number of primitives simplified
    """
    simplified = 0
    for primitive in document.list_primitives():
        if simplify_primitive(document, primitive, ratio, error):
            simplified += 1
    logger.info(f"Simplified {simplified} primitives (error {error})")
    return simplified


def simplify_primitive(document: Document, primitive: Primitive, ratio: float, error: float) -> bool:
    """Decimate one primitive in place. Returns False when it was left unchanged."""
    position = primitive.get_attribute('POSITION')
    if primitive.mode != TRIANGLES or position is None or primitive.indices is None:
        return False

    faces = primitive.indices.array.reshape(-1, 3).astype(np.int64)
    if len(faces) < MIN_FACES:
        return False

    target = target_face_count(len(faces), ratio, error)
    if target >= len(faces):
        return False

    original = trimesh.Trimesh(vertices=position.to_float(), faces=faces, process=False)
    decimated = original.simplify_quadric_decimation(face_count=target)
    if len(decimated.faces) == 0:
        logger.warning("Decimation collapsed primitive to nothing; keeping original")
        return False

    _, nearest = original.kdtree.query(decimated.vertices)

    for semantic, accessor in zip(primitive.list_semantics(), primitive.list_attributes()):
        if semantic == 'POSITION':
            data, normalized = np.asarray(decimated.vertices, dtype=np.float32), False
        else:
            data, normalized = accessor.array[nearest], accessor.normalized
        primitive.set_attribute(
            semantic,
            document.create_accessor(accessor.name, data, accessor.type, normalized),
        )

    vertex_count = len(decimated.vertices)
    indices = compact_indices(np.asarray(decimated.faces).reshape(-1), vertex_count)
    primitive.set_indices(document.create_accessor("indices", indices, 'SCALAR'))

    logger.debug(f"Decimated primitive {len(faces)} -> {len(decimated.faces)} faces")
    return True
