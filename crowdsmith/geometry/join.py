"""
Joining primitives into one draw call.
"""

import logging
from typing import List

import numpy as np

from crowdsmith.document.model import Document, Primitive, TRIANGLES

logger = logging.getLogger(__name__)


def join_primitives(document: Document, primitives: List[Primitive]) -> Primitive:
    """
    Concatenate primitives into a single new primitive.

    Attributes present on every input are concatenated in input order; others
    are dropped with a warning. Indices are offset by the running vertex
    count, and primitives without indices contribute sequential ones.

    Args:
        document: Document that will own the new accessors
        primitives: Primitives to join (node transforms are not applied)

    Returns:
        Detached primitive using the first input's material

    Raises:
        ValueError: If no primitives are given, or one is not a triangle list
    """
    if not primitives:
        raise ValueError("Cannot join an empty primitive list")
    for primitive in primitives:
        if primitive.mode != TRIANGLES:
            raise ValueError(f"Cannot join primitive with mode {primitive.mode}")

    semantics = [s for s in primitives[0].list_semantics()
                 if all(p.get_attribute(s) is not None for p in primitives)]
    dropped = {s for p in primitives for s in p.list_semantics()} - set(semantics)
    if dropped:
        logger.warning(f"Dropping attributes not shared by every primitive: {sorted(dropped)}")

    joined = document.create_primitive()
    joined.set_material(primitives[0].get_material())
    joined.mode = TRIANGLES

    for semantic in semantics:
        accessors = [p.get_attribute(semantic) for p in primitives]
        first = accessors[0]
        uniform = all(a.array.dtype == first.array.dtype and a.normalized == first.normalized
                      and a.components == first.components for a in accessors)
        if uniform:
            data = np.concatenate([a.array for a in accessors])
            normalized = first.normalized
        else:
            data = np.concatenate([a.to_float() for a in accessors])
            normalized = False
        joined.set_attribute(
            semantic,
            document.create_accessor(first.name, data, first.type, normalized),
        )

    offset = 0
    indices = []
    for primitive in primitives:
        count = primitive.vertex_count
        if primitive.indices is not None:
            indices.append(primitive.indices.array.reshape(-1).astype(np.uint32) + offset)
        else:
            indices.append(np.arange(offset, offset + count, dtype=np.uint32))
        offset += count

    merged = np.concatenate(indices) if indices else np.zeros(0, dtype=np.uint32)
    joined.set_indices(document.create_accessor("indices", compact_indices(merged, offset), 'SCALAR'))
    return joined


def compact_indices(indices: np.ndarray, vertex_count: int) -> np.ndarray:
    """Pick the narrowest index type able to address ``vertex_count`` vertices."""
    dtype = np.uint16 if vertex_count < 65535 else np.uint32
    return indices.astype(dtype)
