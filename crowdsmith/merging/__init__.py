"""
Document, skeleton and primitive consolidation
"""

from .documents import merge_documents
from .skeletons import consolidate_skeletons
from .primitives import (
    cleanup_attributes,
    lod_material_filter,
    merge_primitives,
    remove_primitives_by_material,
    reparent_primitives,
)

__all__ = [
    'merge_documents',
    'consolidate_skeletons',
    'cleanup_attributes',
    'lod_material_filter',
    'merge_primitives',
    'remove_primitives_by_material',
    'reparent_primitives',
]
