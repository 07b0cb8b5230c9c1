"""
Geometry transforms: join, weld, cleanup, simplification, compression

simplify and compress_geometry are imported from their modules directly so
that trimesh and DracoPy load only when those steps run.
"""

from .join import join_primitives
from .weld import weld
from .cleanup import prune, flatten, sparse
from .stats import get_scene_vertex_count

__all__ = [
    'join_primitives',
    'weld',
    'prune',
    'flatten',
    'sparse',
    'get_scene_vertex_count',
]
