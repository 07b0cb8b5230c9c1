"""
Texturing: atlas packing, UV remapping, compositing and texture cleanup
"""

from .atlas import (
    ATLAS_FILL,
    Atlas,
    AtlasLayout,
    AtlasSlot,
    compute_atlas_width,
    create_atlases,
    slots_for_lod,
)
from .uv_remapper import remap_uvs_to_atlas
from .compositor import copy_textures_to_atlases
from .textures import channels_for_lod, cleanup_textures, resize_textures

__all__ = [
    'ATLAS_FILL',
    'Atlas',
    'AtlasLayout',
    'AtlasSlot',
    'compute_atlas_width',
    'create_atlases',
    'slots_for_lod',
    'remap_uvs_to_atlas',
    'copy_textures_to_atlases',
    'channels_for_lod',
    'cleanup_textures',
    'resize_textures',
]
