"""
Texture atlas compositing.

Copies every consolidated primitive's original per-channel texture into its
tile of the matching atlas. Work is strictly sequential: one decoded source
raster is alive at a time.
"""

import logging
from typing import Dict, Sequence

from crowdsmith.document.model import Primitive, get_channel_texture
from .atlas import Atlas, AtlasSlot, round_half_up

logger = logging.getLogger(__name__)


def copy_textures_to_atlases(
    atlases: Dict[AtlasSlot, Atlas],
    atlas_width: int,
    resolution: int,
    primitives: Sequence[Primitive],
) -> int:
    """
    Composite original textures into their tiles.

    Primitives are processed from the last index down to 0. A primitive
    whose original material lacks a slot's texture leaves that tile at the
    neutral fill.

    Args:
        atlases: Slot -> atlas, from create_atlases
        atlas_width: Tiles per atlas row
        resolution: Atlas edge length in pixels
        primitives: Consolidated primitives; position is the tile index

    Returns:
        Number of textures copied
    """
    tile_res = resolution / atlas_width
    copied = 0

    for i in range(len(primitives) - 1, -1, -1):
        material = primitives[i].original_material
        if material is None:
            continue

        off_x = round_half_up((i % atlas_width) * tile_res)
        off_y = round_half_up((i // atlas_width) * tile_res)

        for slot, atlas in atlases.items():
            slot = AtlasSlot(slot)
            texture = get_channel_texture(material, slot.channel)
            if texture is None or not texture.image:
                continue
            atlas.copy(texture, off_x, off_y)
            copied += 1
            logger.debug(f"Tile {i} <- {texture.name!r} ({slot.value}) at {off_x},{off_y}")

    logger.info(f"Composited {copied} textures into {len(atlases)} atlases")
    return copied
