"""
Vertex welding.
"""

import logging

import numpy as np

from crowdsmith.document.model import Document, Primitive, TRIANGLES
from .join import compact_indices

logger = logging.getLogger(__name__)


def weld(document: Document) -> int:
    """
    Merge bitwise-identical vertices in every primitive and index the result.

    Two vertices are identical when every attribute matches exactly. The
    first occurrence of each vertex keeps its relative order.

    Returns:
        Total number of vertices removed
    """
    removed = 0
    for primitive in document.list_primitives():
        if primitive.mode != TRIANGLES or primitive.get_attribute('POSITION') is None:
            continue
        removed += weld_primitive(document, primitive)
    if removed:
        logger.info(f"Welded {removed} duplicate vertices")
    return removed


def weld_primitive(document: Document, primitive: Primitive) -> int:
    """Weld one primitive in place, replacing its accessors. Returns vertices removed."""
    count = primitive.vertex_count
    if count == 0:
        return 0

    semantics = primitive.list_semantics()
    accessors = primitive.list_attributes()
    rows = np.concatenate(
        [np.ascontiguousarray(a.array).view(np.uint8).reshape(count, -1) for a in accessors],
        axis=1,
    )
    keys = np.ascontiguousarray(rows).view(np.dtype((np.void, rows.shape[1]))).reshape(-1)
    _, first, inverse = np.unique(keys, return_index=True, return_inverse=True)
    inverse = inverse.reshape(-1)

    # Renumber unique vertices by first occurrence
    order = np.argsort(first)
    rank = np.empty_like(order)
    rank[order] = np.arange(len(order))
    remap = rank[inverse]
    kept = first[order]

    if primitive.indices is not None:
        old_indices = primitive.indices.array.reshape(-1).astype(np.int64)
    else:
        old_indices = np.arange(count)

    unique_count = len(kept)
    if unique_count == count and primitive.indices is not None:
        return 0

    for semantic, accessor in zip(semantics, accessors):
        primitive.set_attribute(
            semantic,
            document.create_accessor(accessor.name, accessor.array[kept], accessor.type, accessor.normalized),
        )
    new_indices = compact_indices(remap[old_indices], unique_count)
    primitive.set_indices(document.create_accessor("indices", new_indices, 'SCALAR'))
    return count - unique_count
